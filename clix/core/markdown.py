"""Markdown documentation for a bootstrapped command.

Extracts parameter metadata from the click command built by
:mod:`clix.core.parser` and lays it out as a markdown page: title,
description, usage, arguments, options, subcommands and links.
"""

from __future__ import annotations

import click

from clix.models.application import Application


def _cell(text: object) -> str:
    return str(text).replace("|", "\\|").replace("\n", " ")


def _option_row(param: click.Option) -> str:
    flags = ", ".join(f"`{opt}`" for opt in [*param.opts, *param.secondary_opts])
    envvar = param.envvar
    if isinstance(envvar, (list, tuple)):
        envvar = ", ".join(envvar)
    env = f"`{envvar}`" if envvar else ""
    default = ""
    if (
        param.expose_value
        and param.default not in (None, False, ())
        and not callable(param.default)
    ):
        default = f"`{getattr(param.default, 'value', param.default)}`"
    return f"| {flags} | {env} | {default} | {_cell(param.help or '')} |"


def generate_markdown(
    command: click.Command,
    app: Application,
    *,
    prog_name: str,
    commands: dict[str, str] | None = None,
) -> str:
    """Render *command* as a markdown document."""
    ctx = click.Context(command, info_name=prog_name)
    lines = [f"# {app.name}", ""]

    description = app.description.strip()
    if description:
        lines += ["```", description, "```", ""]

    lines += ["## Usage", "", "```", ctx.get_usage(), "```", ""]

    params = [p for p in command.get_params(ctx) if not getattr(p, "hidden", False)]
    arguments = [p for p in params if isinstance(p, click.Argument)]
    options = [p for p in params if isinstance(p, click.Option)]

    if arguments:
        lines += ["## Arguments", ""]
        for argument in arguments:
            required = "required" if argument.required else "optional"
            help_text = getattr(argument, "help", None) or ""
            lines.append(f"- `{argument.human_readable_name}` ({required}) {help_text}".rstrip())
        lines.append("")

    if options:
        lines += [
            "## Options",
            "",
            "| Flags | Environment | Default | Description |",
            "| --- | --- | --- | --- |",
        ]
        lines += [_option_row(option) for option in options]
        lines.append("")

    if commands:
        lines += ["## Commands", ""]
        lines += [
            f"- `{name}`: {help_text}" if help_text else f"- `{name}`"
            for name, help_text in commands.items()
        ]
        lines.append("")

    if app.links:
        lines += ["## Links", ""]
        lines += [f"- {link.name}: <{link.url}>" for link in app.links]
        lines.append("")

    return "\n".join(lines)
