"""clix CLI — the ``clix`` command, itself bootstrapped through ``clix.CLI``.

Prints the version report of any installed distribution.
"""
