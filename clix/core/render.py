"""Rendering helpers for the plain-text version report.

Blocks are assembled as Rich markup and resolved by :func:`to_text`,
either to ANSI sequences or to bare text, depending on whether color is
enabled for the output stream.

Color scheme
------------
- cyan    : application name, section headers, dependency paths
- yellow  : application version, dependency versions
- green   : build facts (commit, date, runtime)
- magenta : link URLs and build setting values
"""

from __future__ import annotations

import io
import os
import sys
from typing import TYPE_CHECKING, TextIO

from rich.color import ColorSystem
from rich.console import Console
from rich.markup import escape
from rich.text import Text

if TYPE_CHECKING:
    from clix.models.application import Link
    from clix.models.version import BuildSetting, Module, Version, VersionOptions

# Width of a go.sum style checksum column.
SUM_WIDTH = 47


# ---------------------------------------------------------------------------
# Color resolution
# ---------------------------------------------------------------------------


def color_enabled(stream: TextIO | None = None) -> bool:
    """Whether markup should be rendered as ANSI color for *stream*.

    ``NO_COLOR`` wins over ``FORCE_COLOR``; otherwise color follows
    whether the stream is a terminal.
    """
    if os.environ.get("NO_COLOR"):
        return False
    force = os.environ.get("FORCE_COLOR")
    if force and force != "0":
        return True
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def to_text(markup: str, color: bool | None = None) -> str:
    """Resolve Rich markup to ANSI text, or strip it when color is off."""
    if color is None:
        color = color_enabled()
    text = Text.from_markup(markup, emoji=False)
    if not color:
        return text.plain
    # Segments are rendered one by one so tabs are kept verbatim.
    console = Console(file=io.StringIO(), force_terminal=True, color_system="standard")
    return "".join(
        segment.style.render(segment.text, color_system=ColorSystem.STANDARD)
        if segment.style
        else segment.text
        for segment in text.render(console)
    )


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def _aligned_rows(rows: list[tuple[str, str]]) -> str:
    """Render ``|  name :: value`` rows with names right-aligned."""
    longest = max((len(name) for name, _ in rows), default=0)
    return "".join(
        f"|  {escape(name.rjust(longest))} :: [magenta]{escape(value)}[/]\n"
        for name, value in rows
    )


def render_header(version: Version) -> str:
    """Name/version line followed by the build block."""
    app = version.application
    facts = [
        ("build commit", app.commit),
        ("build date", app.date),
        ("python version", f"{version.python_version} {version.os}/{version.arch}"),
    ]
    longest = max(len(label) for label, _ in facts)

    lines = [f"[cyan]{escape(app.name)}[/] :: [yellow]{escape(app.version)}[/]\n"]
    lines.extend(
        f"|  {label.rjust(longest)} :: [green]{escape(value)}[/]\n"
        for label, value in facts
    )
    return "".join(lines)


def render_links(links: list[Link]) -> str:
    """The ``helpful links`` block; empty when there are no links."""
    if not links:
        return ""
    return "\n[cyan]helpful links:[/]\n" + _aligned_rows(
        [(link.name, link.url) for link in links]
    )


def render_settings(settings: list[BuildSetting]) -> str:
    """The ``build options`` block."""
    return "\n[cyan]build options:[/]\n" + _aligned_rows(
        [(s.key, s.value) for s in settings]
    )


def render_dependency(module: Module) -> str:
    """A single dependency row, rendered from the resolved module."""
    m = module.resolve()
    checksum = m.sum or "unknown"
    return (
        f"  {escape(checksum.rjust(SUM_WIDTH))} :: "
        f"[cyan]{escape(m.path)}[/] :: [yellow]{escape(m.version)}[/]\n"
    )


def render_dependencies(dependencies: list[Module]) -> str:
    """The ``dependencies`` block."""
    return "\n[cyan]dependencies:[/]\n" + "".join(
        render_dependency(m) for m in dependencies
    )


# ---------------------------------------------------------------------------
# Full report
# ---------------------------------------------------------------------------


def render_summary(version: Version) -> str:
    """Header, build block and links — the base shown in help text."""
    return render_header(version) + render_links(version.application.links)


def render_version(version: Version, options: VersionOptions | None = None) -> str:
    """The complete report, honoring the section toggles in *options*."""
    parts = [render_summary(version)]
    if options is None or not options.disable_build_settings:
        parts.append(render_settings(version.settings))
    if options is None or not options.disable_deps:
        parts.append(render_dependencies(version.dependencies))
    return "".join(parts)
