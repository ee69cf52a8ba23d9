"""Behavioral toggles for the CLI lifecycle."""

from __future__ import annotations

from enum import Flag, auto


class Options(Flag):
    """Independent toggles; combine with ``|`` and test with ``in``."""

    NONE = 0
    DISABLE_LOGGING = auto()  # skip logger initialization
    DISABLE_VERSION = auto()  # do not intercept --version/--version-json
    DISABLE_DEPS = auto()  # omit dependencies from version output
    DISABLE_BUILD_SETTINGS = auto()  # omit build settings from version output
    DISABLE_GLOBAL_LOGGER = auto()  # do not install the process-wide logger
    SUBCOMMANDS_OPTIONAL = auto()  # allow running without a subcommand
