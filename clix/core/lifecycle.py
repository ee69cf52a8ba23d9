"""CLI lifecycle controller — parse, intercept, log-init, return.

States advance linearly and are enforced by ``VALID_TRANSITIONS``:

    UNINITIALIZED -> FLAGS_ALLOCATED -> VERSION_BUILT -> ARGS_PARSED
        ARGS_PARSED -> TERMINATED | LOGGER_READY | RETURNED
        LOGGER_READY -> RETURNED

``CLI.bootstrap`` never exits the process. Every "stop here" decision
(help, bad flags, version output, markdown) comes back as a
:class:`Terminate` outcome; ``CLI.parse`` is the thin entry point that
writes the captured output and calls ``sys.exit``.

Usage::

    class Flags(BaseModel):
        name: Annotated[str, typer.Option("--name", "-n", help="Who to greet.")] = "world"

    cli = CLI(Flags, app=Application(links=github_links("github.com/acme/greet")))
    cli.parse()
    cli.logger.info("hello %s", cli.flags.name)
"""

from __future__ import annotations

import inspect
import sys
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

import click
import typer
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict
from rich.markup import escape

from clix.core.logger import FieldLogger, install, new_logger
from clix.core.markdown import generate_markdown
from clix.core.metadata import MetadataSource, discover_metadata_source
from clix.core.options import Options
from clix.core.parser import (
    BuiltinFlags,
    HelpRequested,
    ParseError,
    build_command,
    parse_args,
)
from clix.core.render import color_enabled
from clix.core.version_engine import build_version
from clix.models.application import Application
from clix.models.version import Version, VersionOptions

FlagsT = TypeVar("FlagsT", bound=BaseModel)

Installer = Callable[[FieldLogger], None]


class NoFlags(BaseModel):
    """Flag schema for programs that only need the built-in flags."""


class LifecycleState(str, Enum):
    """Bootstrap progress of a ``CLI``."""

    UNINITIALIZED = "uninitialized"
    FLAGS_ALLOCATED = "flags_allocated"
    VERSION_BUILT = "version_built"
    ARGS_PARSED = "args_parsed"
    TERMINATED = "terminated"
    LOGGER_READY = "logger_ready"
    RETURNED = "returned"


# Terminal states (TERMINATED, RETURNED) have no outgoing transitions.
VALID_TRANSITIONS: dict[LifecycleState, set[LifecycleState]] = {
    LifecycleState.UNINITIALIZED: {LifecycleState.FLAGS_ALLOCATED},
    LifecycleState.FLAGS_ALLOCATED: {LifecycleState.VERSION_BUILT},
    LifecycleState.VERSION_BUILT: {LifecycleState.ARGS_PARSED, LifecycleState.TERMINATED},
    LifecycleState.ARGS_PARSED: {
        LifecycleState.TERMINATED,
        LifecycleState.LOGGER_READY,
        LifecycleState.RETURNED,
    },
    LifecycleState.LOGGER_READY: {LifecycleState.RETURNED},
    LifecycleState.TERMINATED: set(),
    LifecycleState.RETURNED: set(),
}


class InvalidTransitionError(RuntimeError):
    """Raised when the lifecycle is driven out of order (e.g. parsed twice)."""


class Terminate(BaseModel):
    """Stop the program with *exit_code* after emitting the captured text."""

    model_config = ConfigDict(frozen=True)

    exit_code: int
    stdout: str = ""
    stderr: str = ""


class Proceed(BaseModel):
    """Bootstrap finished; control returns to the caller."""

    model_config = ConfigDict(frozen=True)

    args: list[str] = []


Outcome = Terminate | Proceed


def exit_with(outcome: Terminate) -> None:
    """Write the outcome's text and exit the process."""
    if outcome.stdout:
        sys.stdout.write(outcome.stdout)
        sys.stdout.flush()
    if outcome.stderr:
        sys.stderr.write(outcome.stderr)
        sys.stderr.flush()
    sys.exit(outcome.exit_code)


class CLI(Generic[FlagsT]):
    """Bootstraps a command-line program around a user flag schema.

    Parameters
    ----------
    schema:
        Pydantic model class describing the program's flags. Defaults to
        the type of *flags*, or :class:`NoFlags`.
    flags:
        Optional pre-built flags instance; its values become the defaults.
    app:
        Declared application identity. Blank fields are resolved from
        build metadata.
    version_options:
        Section toggles for the plain-text version report.
    metadata_source:
        Where build metadata comes from. Discovered from the running
        program when omitted.
    installer:
        Publishes the bootstrapped logger process-wide. Defaults to
        :func:`clix.core.logger.install`.
    env_file:
        A dotenv file loaded (without overriding) before parsing.
    options:
        Initial :class:`Options`; more can be given to ``parse``.
    prog_name:
        Name shown in usage text. Defaults to the executable name.
    """

    def __init__(
        self,
        schema: type[FlagsT] | None = None,
        *,
        flags: FlagsT | None = None,
        app: Application | None = None,
        version_options: VersionOptions | None = None,
        metadata_source: MetadataSource | None = None,
        installer: Installer | None = None,
        env_file: str | Path | None = None,
        options: Options = Options.NONE,
        prog_name: str | None = None,
    ) -> None:
        if schema is None:
            schema = type(flags) if flags is not None else NoFlags  # type: ignore[assignment]
        self.schema: type[FlagsT] = schema  # type: ignore[assignment]
        self.flags: FlagsT | None = flags
        self.app = app or Application()
        self.version_options = version_options or VersionOptions()
        self.metadata_source = metadata_source
        self.installer: Installer = installer or install
        self.env_file = env_file
        self.options = options
        self.prog_name = prog_name

        self.state = LifecycleState.UNINITIALIZED
        self.version: Version | None = None
        self.builtins = BuiltinFlags()
        self.args: list[str] = []
        self.logger: FieldLogger | None = None

        self._command: click.Command | None = None
        self._subcommands = typer.Typer(add_completion=False, rich_markup_mode="rich")
        self._subcommands.callback()(lambda: None)
        self._subcommand_help: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def set(self, *options: Options) -> None:
        """Union *options* into the active set."""
        for option in options:
            self.options |= option

    def is_set(self, option: Options) -> bool:
        return bool(self.options & option)

    @property
    def debug(self) -> bool:
        return self.builtins.debug

    # ------------------------------------------------------------------
    # Subcommands
    # ------------------------------------------------------------------

    def command(
        self, name: str | None = None, *, help: str | None = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a subcommand, Typer style."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            command_name = name or typer.main.get_command_name(func.__name__)
            self._subcommands.command(name=command_name, help=help)(func)
            summary = help or (inspect.getdoc(func) or "").partition("\n")[0]
            self._subcommand_help[command_name] = summary
            return func

        return decorator

    def dispatch(self, *, standalone_mode: bool = True) -> Any:
        """Run the subcommand named by the residual arguments."""
        if not self._subcommand_help or not self.args:
            return None
        group = typer.main.get_command(self._subcommands)
        return group.main(
            args=self.args,
            prog_name=self._prog_name(),
            standalone_mode=standalone_mode,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _advance(self, target: LifecycleState) -> None:
        allowed = VALID_TRANSITIONS.get(self.state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition from {self.state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        self.state = target

    def _terminate(self, exit_code: int, *, stdout: str = "", stderr: str = "") -> Terminate:
        self._advance(LifecycleState.TERMINATED)
        return Terminate(exit_code=exit_code, stdout=stdout, stderr=stderr)

    def _prog_name(self) -> str:
        if self.prog_name:
            return self.prog_name
        if self.version is not None:
            return self.version.command
        return Path(sys.argv[0]).name

    def _effective_version_options(self) -> VersionOptions:
        return self.version_options.model_copy(update={
            "disable_deps": self.version_options.disable_deps
            or self.is_set(Options.DISABLE_DEPS),
            "disable_build_settings": self.version_options.disable_build_settings
            or self.is_set(Options.DISABLE_BUILD_SETTINGS),
        })

    def _defaults(self) -> dict[str, Any]:
        if self.flags is None:
            return {}
        return {name: getattr(self.flags, name) for name in self.schema.model_fields
                if hasattr(self.flags, name)}

    def _help_text(self, version: Version) -> str:
        summary = escape(version.summary(color=False))
        description = escape(self.app.description)
        if description.strip() == summary.strip():
            return summary
        return f"{description}\n\n{summary}"

    def build_command(self) -> click.Command:
        """The click command for the schema plus built-ins (cached)."""
        if self._command is None:
            self._command = build_command(
                self.schema,
                self._defaults(),
                name=self._prog_name(),
                help=self._help_text(self.version) if self.version is not None else None,
                allow_interspersed=not self._subcommand_help,
            )
        return self._command

    def markdown(self) -> str:
        """Markdown documentation for this program."""
        return generate_markdown(
            self.build_command(),
            self.app,
            prog_name=self._prog_name(),
            commands=self._subcommand_help,
        )

    def bootstrap(self, argv: list[str] | None = None, *options: Options) -> Outcome:
        """Run the lifecycle without exiting the process.

        Returns :class:`Terminate` when the program should stop (help,
        parse errors, version or markdown output), else :class:`Proceed`.
        """
        # UNINITIALIZED -> FLAGS_ALLOCATED
        self._advance(LifecycleState.FLAGS_ALLOCATED)
        self.set(*options)
        if self.flags is None:
            self.flags = self.schema.model_construct()
        if self.env_file is not None:
            load_dotenv(self.env_file, override=False)

        # FLAGS_ALLOCATED -> VERSION_BUILT
        self._advance(LifecycleState.VERSION_BUILT)
        source = self.metadata_source
        if source is None:
            source = discover_metadata_source()
        self.version = build_version(self.app, self._effective_version_options(), source)
        self.app = self.version.application

        # VERSION_BUILT -> ARGS_PARSED
        argv = list(sys.argv[1:] if argv is None else argv)
        try:
            result = parse_args(
                self.build_command(), self.schema, argv, prog_name=self._prog_name()
            )
        except HelpRequested as exc:
            return self._terminate(exc.exit_code)
        except ParseError as exc:
            return self._terminate(exc.exit_code, stderr=exc.render())

        self._advance(LifecycleState.ARGS_PARSED)
        self.flags = result.flags
        self.builtins = result.builtins
        self.args = result.args

        # ARGS_PARSED -> TERMINATED
        if not self.is_set(Options.DISABLE_VERSION):
            if self.builtins.version_json:
                return self._terminate(1, stdout=self.version.to_json())
            if self.builtins.version:
                rendered = self.version.render(color=color_enabled(sys.stdout))
                return self._terminate(1, stdout=rendered)
        if self.builtins.generate_markdown:
            return self._terminate(0, stdout=self.markdown())
        try:
            self._check_subcommand(self.args)
        except ParseError as exc:
            return self._terminate(exc.exit_code, stderr=exc.render())

        # ARGS_PARSED -> LOGGER_READY
        if not self.is_set(Options.DISABLE_LOGGING):
            self._advance(LifecycleState.LOGGER_READY)
            self.logger = new_logger(
                self.app.name,
                self.builtins.logger_config(),
                debug=self.builtins.debug,
            )
            if not self.is_set(Options.DISABLE_GLOBAL_LOGGER):
                self.installer(self.logger)
            self.logger.with_fields(
                name=self.app.name,
                version=self.app.version,
                commit=self.app.commit,
                python_version=self.version.python_version,
                os=self.version.os,
                arch=self.version.arch,
            ).info("logger initialized")

        self._advance(LifecycleState.RETURNED)
        return Proceed(args=self.args)

    def _check_subcommand(self, args: list[str]) -> None:
        if not self._subcommand_help:
            return
        if not args:
            if self.is_set(Options.SUBCOMMANDS_OPTIONAL):
                return
            raise ParseError("Missing command.", hint=self._command_hint())
        if args[0] not in self._subcommand_help:
            raise ParseError(f"No such command '{args[0]}'.", hint=self._command_hint())

    def _command_hint(self) -> str:
        return f"Available commands: {', '.join(sorted(self._subcommand_help))}."

    def parse(self, argv: list[str] | None = None, *options: Options) -> CLI[FlagsT]:
        """Bootstrap, exiting the process on any terminating outcome."""
        outcome = self.bootstrap(argv, *options)
        if isinstance(outcome, Terminate):
            exit_with(outcome)
        return self
