"""Version report models — build settings, dependency modules, and the
aggregated ``Version`` record with its redacted projection.

The JSON shape produced by ``Version.to_json`` is part of the public
contract (``--version-json``); field aliases below define it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from clix.core.render import render_summary, render_version, to_text
from clix.models.application import Application


class Module(BaseModel):
    """A dependency module, optionally redirected to a replacement."""

    model_config = ConfigDict(frozen=True)

    path: str = ""
    version: str = ""
    sum: str = ""  # checksum
    replace: Module | None = Field(default=None, serialization_alias="replaces")

    def resolve(self) -> Module:
        """Follow the replace chain to the terminal module."""
        if self.replace is None:
            return self
        return self.replace.resolve()

    def __str__(self) -> str:
        m = self.resolve()
        return f"{m.sum} :: {m.path} :: {m.version}"


class BuildSetting(BaseModel):
    """A single key/value fact about how the program was built."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str

    @field_validator("key")
    @classmethod
    def _check_key(cls, v: str) -> str:
        if any(c in v for c in "= \t\n"):
            raise ValueError(f"build setting key {v!r} contains '=', whitespace or newline")
        return v

    @field_validator("value")
    @classmethod
    def _check_value(cls, v: str) -> str:
        if "\n" in v:
            raise ValueError("build setting value must not contain newlines")
        return v

    def __str__(self) -> str:
        return f"{self.key}: {self.value}"


class VersionOptions(BaseModel):
    """Rendering toggles for the plain-text version output. Never serialized."""

    model_config = ConfigDict(frozen=True)

    disable_build_settings: bool = False
    disable_deps: bool = False


class BuildInfo(BaseModel):
    """Raw build metadata as yielded by a metadata source."""

    model_config = ConfigDict(frozen=True)

    main: Module = Module()
    dependencies: list[Module] = []
    settings: list[BuildSetting] = []


class NonSensitiveVersion(BaseModel):
    """Version report without build settings or dependencies."""

    model_config = ConfigDict(frozen=True)

    application: Application
    command: str
    python_version: str
    os: str
    arch: str

    def to_json(self) -> str:
        return self.model_dump_json(indent=4, by_alias=True) + "\n"


class Version(BaseModel):
    """The aggregated version report for the running program.

    Built once per invocation by :func:`clix.core.version_engine.build_version`.
    The record itself is immutable; only the render options attached via
    :meth:`with_options` may change afterwards.
    """

    model_config = ConfigDict(frozen=True)

    application: Application
    settings: list[BuildSetting] = Field(default_factory=list, serialization_alias="build_settings")
    dependencies: list[Module] = []
    command: str  # executable name the program was invoked as
    python_version: str
    os: str
    arch: str

    _options: VersionOptions | None = PrivateAttr(default=None)

    @property
    def options(self) -> VersionOptions:
        return self._options or VersionOptions()

    def with_options(self, options: VersionOptions | None) -> Version:
        """Attach render options and return ``self``."""
        self._options = options
        return self

    def get_setting(self, key: str, default: str) -> str:
        """Return the first build setting value for *key*, else *default*."""
        for setting in self.settings:
            if setting.key == key:
                return setting.value
        return default

    def summary(self, color: bool | None = None) -> str:
        """Render the header, build and links blocks."""
        return to_text(render_summary(self), color=color)

    def render(self, color: bool | None = None) -> str:
        """Render the full plain-text version report."""
        return to_text(render_version(self, self.options), color=color)

    def redact(self) -> NonSensitiveVersion:
        """Project down to the fields safe for less-trusted display contexts."""
        return NonSensitiveVersion(
            application=self.application.model_copy(deep=True),
            command=self.command,
            python_version=self.python_version,
            os=self.os,
            arch=self.arch,
        )

    def to_json(self) -> str:
        """Serialize with 4-space indentation and a trailing newline."""
        return self.model_dump_json(indent=4, by_alias=True, exclude_none=True) + "\n"
