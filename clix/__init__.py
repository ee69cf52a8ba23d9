"""clix: CLI bootstrap helper.

Parses flags and environment variables against a pydantic flag schema,
aggregates a version report from installed-distribution metadata, and
wires up a structured logger, intercepting the built-in ``--version``,
``--version-json``, ``--generate-markdown`` and ``--debug`` flags before
handing control back to the program.
"""

__version__ = "0.1.0"
__description__ = "CLI bootstrap helper: flags, version reporting and logging"

from clix.config import LogFormat, LoggerConfig, LogLevel
from clix.core.lifecycle import CLI, LifecycleState, NoFlags, Proceed, Terminate
from clix.core.logger import FieldLogger, get_logger
from clix.core.metadata import (
    DistributionMetadataSource,
    MetadataSource,
    StaticMetadataSource,
    discover_metadata_source,
)
from clix.core.options import Options
from clix.core.version_engine import build_version
from clix.models import (
    Application,
    BuildInfo,
    BuildSetting,
    Link,
    Module,
    NonSensitiveVersion,
    Version,
    VersionOptions,
    github_links,
)

__all__ = [
    "CLI",
    "Application",
    "BuildInfo",
    "BuildSetting",
    "DistributionMetadataSource",
    "FieldLogger",
    "LifecycleState",
    "Link",
    "LogFormat",
    "LogLevel",
    "LoggerConfig",
    "MetadataSource",
    "Module",
    "NoFlags",
    "NonSensitiveVersion",
    "Options",
    "Proceed",
    "StaticMetadataSource",
    "Terminate",
    "Version",
    "VersionOptions",
    "__version__",
    "build_version",
    "discover_metadata_source",
    "get_logger",
    "github_links",
]
