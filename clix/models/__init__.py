"""clix data models — all Pydantic v2, all frozen (immutable)."""

from clix.models.application import Application, Link, github_links
from clix.models.version import (
    BuildInfo,
    BuildSetting,
    Module,
    NonSensitiveVersion,
    Version,
    VersionOptions,
)

__all__ = [
    "Application",
    "BuildInfo",
    "BuildSetting",
    "Link",
    "Module",
    "NonSensitiveVersion",
    "Version",
    "VersionOptions",
    "github_links",
]
