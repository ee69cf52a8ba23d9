"""Shared test fixtures for clix."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

import pytest

from clix.core import logger as clix_logger
from clix.core.lifecycle import CLI
from clix.core.logger import FieldLogger
from clix.core.metadata import StaticMetadataSource
from clix.models.application import Application, Link
from clix.models.version import BuildInfo, BuildSetting, Module, Version

_ENV_VARS = ("NO_COLOR", "FORCE_COLOR", "DEBUG", "LOG_LEVEL", "LOG_FORMAT", "LOG_QUIET", "LOG_PATH")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test as ``mytool`` with no color/debug/logging env vars set."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(sys, "argv", ["/usr/local/bin/mytool"])


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any process-wide logger installed during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    clix_logger.reset()
    root.setLevel(level)


@pytest.fixture
def build_info() -> BuildInfo:
    """Build metadata resembling a VCS-installed distribution."""
    return BuildInfo(
        main=Module(path="mytool", version="1.4.2", sum="sha256:mainsum"),
        settings=[
            BuildSetting(key="installer", value="pip"),
            BuildSetting(key="vcs", value="git"),
            BuildSetting(key="vcs.revision", value="abc123"),
            BuildSetting(key="vcs.time", value="2024-05-01T12:00:00Z"),
        ],
        dependencies=[
            Module(path="click", version="8.1.7", sum="sha256:clicksum"),
            Module(
                path="rich",
                version="13.7.0",
                sum="sha256:richsum",
                replace=Module(path="file:///src/rich", version="13.7.0-dev", sum=""),
            ),
        ],
    )


@pytest.fixture
def version() -> Version:
    """A fully populated Version with deterministic environment facts."""
    return Version(
        application=Application(
            name="tool",
            description="A tool.",
            version="1.0.0",
            commit="abc",
            date="today",
            links=[
                Link(name="docs", url="https://docs.example.com"),
                Link(name="homepage", url="https://example.com"),
            ],
        ),
        settings=[
            BuildSetting(key="vcs", value="git"),
            BuildSetting(key="vcs.revision", value="abc"),
        ],
        dependencies=[Module(path="dep", version="2.0", sum="sha256:x")],
        command="tool",
        python_version="3.12.1",
        os="linux",
        arch="x86_64",
    )


@pytest.fixture
def installed() -> list[FieldLogger]:
    """Records loggers passed to the installer instead of going global."""
    return []


@pytest.fixture
def make_cli(build_info: BuildInfo, installed: list[FieldLogger]) -> Callable[..., CLI]:
    """Factory fixture: a CLI wired to static metadata and a recording installer."""

    def _factory(schema: Any = None, **overrides: Any) -> CLI:
        defaults: dict[str, Any] = {
            "metadata_source": StaticMetadataSource(build_info),
            "installer": installed.append,
        }
        defaults.update(overrides)
        return CLI(schema, **defaults)

    return _factory
