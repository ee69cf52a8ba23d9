"""Argument parsing adapter — flag schemas to Typer/Click commands.

A flag schema is a pydantic model. Each field becomes a command-line
parameter: Typer ``Option``/``Argument`` metadata attached with
``Annotated`` is handed to Typer untouched, a field carrying only a
pydantic ``description`` becomes an option with that help text, and any
other field gets Typer's defaults (``--field-name`` for fields with a
default, a positional argument for required ones).

The built-in flags are appended to every command:

    -v/--version          print the version report and exit
    --version-json        print the version report as JSON and exit
    -D/--debug            debug logging (env: DEBUG)
    --generate-markdown   print markdown documentation and exit (hidden)
    --log.level/--log.format/--log.quiet/--log.path
                          logger settings (env: LOG_*)

Parsing never exits the process: help requests and failures surface as
:class:`HelpRequested` and :class:`ParseError`.
"""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Annotated, Any, Optional

import click
import typer
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.fields import FieldInfo
from typer.models import ArgumentInfo, OptionInfo, ParameterInfo

from clix.config import LogFormat, LoggerConfig, LogLevel


class ParseError(Exception):
    """Raised when the command line cannot be parsed."""

    exit_code = 1

    def __init__(self, message: str, *, usage: str = "", hint: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.usage = usage
        self.hint = hint

    def render(self) -> str:
        """Usage, hint and error message, as click would print them."""
        lines = [line for line in (self.usage, self.hint) if line]
        if lines:
            lines.append("")
        lines.append(f"Error: {self.message}")
        return "\n".join(lines) + "\n"


class HelpRequested(Exception):
    """Raised when the user asked for help; the parser already printed it."""

    exit_code = 0


class SchemaConflictError(ValueError):
    """Raised when a flag schema redefines a built-in parameter."""


class BuiltinFlags(BaseModel):
    """Parsed values of the built-in flags."""

    model_config = ConfigDict(frozen=True)

    version: bool = False
    version_json: bool = False
    debug: bool = False
    generate_markdown: bool = False
    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None
    log_quiet: bool = False
    log_path: Optional[Path] = None

    def logger_config(self) -> LoggerConfig:
        """Logger settings: explicit flags first, then ``LOG_*`` env vars."""
        overrides: dict[str, Any] = {
            "level": self.log_level,
            "format": self.log_format,
            "path": self.log_path,
        }
        if self.log_quiet:
            overrides["quiet"] = True
        return LoggerConfig(**{k: v for k, v in overrides.items() if v is not None})


class ParseResult(BaseModel):
    """A successfully parsed command line."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    flags: Any
    builtins: BuiltinFlags
    args: list[str] = []


# Python parameter names of the built-ins -> BuiltinFlags field names.
BUILTIN_PARAMS: dict[str, str] = {
    "clix_version": "version",
    "clix_version_json": "version_json",
    "clix_debug": "debug",
    "clix_generate_markdown": "generate_markdown",
    "clix_log_level": "log_level",
    "clix_log_format": "log_format",
    "clix_log_quiet": "log_quiet",
    "clix_log_path": "log_path",
}


def _builtin_parameters() -> list[inspect.Parameter]:
    specs: list[tuple[str, Any, Any, OptionInfo]] = [
        ("clix_version", bool, False, typer.Option(
            "--version", "-v", help="Print version information and exit.")),
        ("clix_version_json", bool, False, typer.Option(
            "--version-json", help="Print version information in JSON format and exit.")),
        ("clix_debug", bool, False, typer.Option(
            "--debug", "-D", envvar="DEBUG", help="Enable debug mode.")),
        ("clix_generate_markdown", bool, False, typer.Option(
            "--generate-markdown", hidden=True,
            help="Generate markdown documentation and write to stdout.")),
        ("clix_log_level", Optional[LogLevel], None, typer.Option(
            "--log.level", case_sensitive=False, rich_help_panel="Logging Options",
            help="Logging level. [env: LOG_LEVEL]")),
        ("clix_log_format", Optional[LogFormat], None, typer.Option(
            "--log.format", case_sensitive=False, rich_help_panel="Logging Options",
            help="Log output format. [env: LOG_FORMAT]")),
        ("clix_log_quiet", bool, False, typer.Option(
            "--log.quiet", rich_help_panel="Logging Options",
            help="Only log errors. [env: LOG_QUIET]")),
        ("clix_log_path", Optional[Path], None, typer.Option(
            "--log.path", rich_help_panel="Logging Options",
            help="Also write logs to this file. [env: LOG_PATH]")),
    ]
    return [
        inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            default=default,
            annotation=Annotated[annotation, info],
        )
        for name, annotation, default, info in specs
    ]


_BUILTIN_DECLS = {
    "--version", "-v", "--version-json", "--debug", "-D", "--generate-markdown",
    "--log.level", "--log.format", "--log.quiet", "--log.path", "--help", "-h",
}


def _schema_parameters(
    schema: type[BaseModel],
    defaults: dict[str, Any],
) -> list[inspect.Parameter]:
    params: list[inspect.Parameter] = []
    for name, field in schema.model_fields.items():
        if name in BUILTIN_PARAMS:
            raise SchemaConflictError(f"Flag field '{name}' is reserved.")

        infos = [m for m in field.metadata if isinstance(m, ParameterInfo)]
        if not infos and field.description:
            infos = [typer.Option(help=field.description)]

        declared = [decl for info in infos for decl in _declarations(info)]
        if not declared and not _is_argument(field, infos):
            declared = [f"--{name.replace('_', '-')}"]
        clash = _BUILTIN_DECLS.intersection(declared)
        if clash:
            raise SchemaConflictError(
                f"Flag field '{name}' redefines built-in {sorted(clash)}."
            )

        annotation: Any = field.annotation
        if infos:
            annotation = Annotated[annotation, infos[0]]

        if name in defaults:
            default = defaults[name]
        elif field.is_required():
            default = inspect.Parameter.empty
        else:
            default = field.get_default(call_default_factory=True)

        params.append(inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            default=default,
            annotation=annotation,
        ))
    return params


def _is_argument(field: FieldInfo, infos: list[ParameterInfo]) -> bool:
    if infos:
        return isinstance(infos[0], ArgumentInfo)
    return field.is_required()


def _declarations(info: ParameterInfo) -> list[str]:
    decls = list(getattr(info, "param_decls", None) or [])
    # Annotated-style typer.Option("--name") stores the first decl as default.
    if isinstance(info.default, str) and info.default.startswith("-"):
        decls.append(info.default)
    return [part for decl in decls for part in decl.split("/") if part]


def build_command(
    schema: type[BaseModel],
    defaults: dict[str, Any] | None = None,
    *,
    name: str,
    help: str | None = None,
    epilog: str | None = None,
    allow_interspersed: bool = True,
) -> click.Command:
    """Build a click command for *schema* plus the built-in flags.

    ``allow_interspersed=False`` stops option parsing at the first
    positional argument, which is how subcommand arguments are kept
    in the residual arguments.
    """
    params = _schema_parameters(schema, defaults or {}) + _builtin_parameters()

    def callback(**kwargs: Any) -> dict[str, Any]:
        return kwargs

    callback.__signature__ = inspect.Signature(params)  # type: ignore[attr-defined]
    callback.__annotations__ = {p.name: p.annotation for p in params}

    app = typer.Typer(add_completion=False, rich_markup_mode="rich")
    app.command(
        name=name,
        help=help,
        epilog=epilog,
        context_settings={
            "allow_extra_args": True,
            "allow_interspersed_args": allow_interspersed,
            "help_option_names": ["-h", "--help"],
        },
    )(callback)
    return typer.main.get_command(app)


def parse_args(
    command: click.Command,
    schema: type[BaseModel],
    argv: list[str],
    *,
    prog_name: str,
) -> ParseResult:
    """Parse *argv* against *command* and validate the values into *schema*.

    Raises
    ------
    HelpRequested
        ``-h/--help`` was given; help text has already been printed.
    ParseError
        The arguments are malformed or fail schema validation.
    """
    try:
        ctx = command.make_context(prog_name, list(argv))
    except click.exceptions.Exit as exc:
        if exc.exit_code == 0:
            raise HelpRequested() from None
        raise ParseError(f"exited with status {exc.exit_code}") from None
    except click.UsageError as exc:
        usage, hint = _usage(exc.ctx)
        raise ParseError(exc.format_message(), usage=usage, hint=hint) from exc
    except click.ClickException as exc:
        raise ParseError(exc.format_message()) from exc

    values = dict(ctx.params)
    builtin_values = {
        field: values.pop(param)
        for param, field in BUILTIN_PARAMS.items()
        if param in values
    }
    try:
        flags = schema.model_validate(values)
        builtins = BuiltinFlags.model_validate(builtin_values)
    except ValidationError as exc:
        usage, hint = _usage(ctx)
        raise ParseError(str(exc), usage=usage, hint=hint) from exc

    return ParseResult(flags=flags, builtins=builtins, args=list(ctx.args))


def _usage(ctx: click.Context | None) -> tuple[str, str]:
    if ctx is None:
        return "", ""
    usage = ctx.get_usage()
    hint = f"Try '{ctx.command_path} {ctx.help_option_names[0]}' for help."
    return usage, hint
