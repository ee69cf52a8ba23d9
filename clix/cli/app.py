"""The ``clix`` command — version reports for installed distributions.

Entry point: ``clix`` (configured via pyproject.toml console_scripts).

The command bootstraps itself through :class:`clix.CLI`, so the built-in
flags apply to it as well: ``clix --version`` reports on clix itself,
while ``clix <distribution>`` reports on any installed distribution.
"""

from __future__ import annotations

import sys
from typing import Annotated, Optional

import typer
from pydantic import BaseModel
from rich.console import Console

from clix.core.lifecycle import CLI
from clix.core.metadata import DistributionMetadataSource, StaticMetadataSource
from clix.core.options import Options
from clix.core.version_engine import build_version
from clix.models.application import Application
from clix.models.version import VersionOptions

DESCRIPTION = "Print the version report of an installed Python distribution."

err_console = Console(stderr=True)


class InspectFlags(BaseModel):
    """Flags of the ``clix`` command."""

    distribution: Annotated[Optional[str], typer.Argument(
        help="Installed distribution to report on. Defaults to clix itself.",
        show_default=False,
    )] = None
    as_json: Annotated[bool, typer.Option("--json", help="Print the report as JSON.")] = False
    redact: Annotated[bool, typer.Option(
        "--redact", help="Leave out build settings and dependencies.")] = False
    no_deps: Annotated[bool, typer.Option(
        "--no-deps", help="Leave dependencies out of the text report.")] = False
    no_settings: Annotated[bool, typer.Option(
        "--no-settings", help="Leave build settings out of the text report.")] = False


def run(argv: list[str] | None = None) -> int:
    """Run the ``clix`` command and return its exit code."""
    cli = CLI(
        InspectFlags,
        app=Application(name="clix", description=DESCRIPTION),
        metadata_source=DistributionMetadataSource("clix"),
        options=Options.DISABLE_GLOBAL_LOGGER,
        prog_name="clix",
    ).parse(argv)
    flags = cli.flags
    target = flags.distribution or "clix"
    cli.logger.with_fields(distribution=target).debug("reading distribution metadata")

    build_info = DistributionMetadataSource(target).read()
    if build_info is None:
        err_console.print(f"[bold red]Error:[/bold red] distribution '{target}' is not installed.")
        return 1

    version = build_version(
        Application(),
        VersionOptions(disable_deps=flags.no_deps, disable_build_settings=flags.no_settings),
        StaticMetadataSource(build_info),
    )

    if flags.as_json:
        report = version.redact() if flags.redact else version
        sys.stdout.write(report.to_json())
    elif flags.redact:
        sys.stdout.write(version.summary())
    else:
        sys.stdout.write(version.render())
    return 0


def main() -> None:
    """CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
