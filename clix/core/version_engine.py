"""Version aggregation — merges build metadata with the declared application.

Precedence, first non-empty value wins, applied per field:

    name        : main module path  -> executable base name
    version     : main module version -> "unknown"
    commit      : setting vcs.revision -> main module sum -> "unknown"
    date        : setting vcs.time -> "unknown"
    description : plain-text summary of the resolved report

A missing metadata source is not an error: every field falls through to
its default and settings/dependencies are empty.
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path

from clix.core.metadata import MetadataSource
from clix.models.application import Application
from clix.models.version import BuildInfo, Version, VersionOptions

UNKNOWN = "unknown"


def executable_name() -> str:
    """Base name of the executable the program was invoked as."""
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "python"


def build_version(
    app: Application,
    options: VersionOptions | None = None,
    source: MetadataSource | None = None,
) -> Version:
    """Aggregate a ``Version`` record for the running program."""
    build: BuildInfo | None = source.read() if source is not None else None

    # Environment facts are always read fresh.
    version = Version(
        application=app,
        settings=list(build.settings) if build else [],
        dependencies=list(build.dependencies) if build else [],
        command=executable_name(),
        python_version=platform.python_version(),
        os=sys.platform,
        arch=platform.machine().lower(),
    )

    resolved: dict[str, str] = {}
    if build is not None:
        resolved = {
            "name": app.name or build.main.path,
            "version": app.version or build.main.version,
            "commit": app.commit or version.get_setting("vcs.revision", build.main.sum),
            "date": app.date or version.get_setting("vcs.time", UNKNOWN),
        }

    application = app.model_copy(update={
        "name": resolved.get("name") or app.name or version.command,
        "version": resolved.get("version") or app.version or UNKNOWN,
        "commit": resolved.get("commit") or app.commit or UNKNOWN,
        "date": resolved.get("date") or app.date or UNKNOWN,
    })
    version = version.model_copy(update={"application": application})

    if not application.description:
        description = version.summary(color=False)
        version = version.model_copy(update={
            "application": application.model_copy(update={"description": description}),
        })

    return version.with_options(options)
