"""Allow ``python -m clix`` invocation."""

from clix.cli.app import main

if __name__ == "__main__":
    main()
