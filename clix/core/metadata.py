"""Build metadata sources.

A metadata source is anything with a ``read()`` method returning a
:class:`~clix.models.version.BuildInfo`, or ``None`` when no metadata is
available. The version engine treats an absent source exactly like a
source that returns ``None``.

The default source reads installed-distribution metadata through
``importlib.metadata``:

- main module     : distribution name, version, and the RECORD hash of
                    its METADATA file
- build settings  : installer, requires-python, and PEP 610
                    ``direct_url.json`` facts (url, editable, vcs ...)
- dependencies    : the installed transitive requirement closure; a
                    dependency installed from a direct URL carries a
                    ``replace`` module pointing at that URL
"""

from __future__ import annotations

import json
import logging
import re
import sys
from importlib import metadata
from pathlib import Path
from typing import Protocol, runtime_checkable

from clix.models.version import BuildInfo, BuildSetting, Module

logger = logging.getLogger(__name__)

# Leading project name of a PEP 508 requirement string.
_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")
_EXTRA_MARKER = re.compile(r"\bextra\s*==")


@runtime_checkable
class MetadataSource(Protocol):
    """Anything that can yield build metadata for the running program."""

    def read(self) -> BuildInfo | None: ...


def canonical_name(name: str) -> str:
    """PEP 503 normalized project name."""
    return re.sub(r"[-_.]+", "-", name).lower()


class StaticMetadataSource:
    """Yields a fixed ``BuildInfo``, or nothing at all."""

    def __init__(self, build_info: BuildInfo | None = None) -> None:
        self._build_info = build_info

    def read(self) -> BuildInfo | None:
        return self._build_info


class DistributionMetadataSource:
    """Reads build metadata for an installed distribution.

    Parameters
    ----------
    name:
        Distribution (project) name, e.g. ``"clix"``.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def read(self) -> BuildInfo | None:
        try:
            dist = metadata.distribution(self.name)
        except metadata.PackageNotFoundError:
            logger.debug("Distribution '%s' is not installed.", self.name)
            return None

        main = Module(
            path=dist.metadata.get("Name") or self.name,
            version=dist.version or "",
            sum=_metadata_sum(dist),
        )
        return BuildInfo(
            main=main,
            settings=_build_settings(dist),
            dependencies=_dependencies(dist),
        )


# ---------------------------------------------------------------------------
# Distribution introspection
# ---------------------------------------------------------------------------


def _metadata_sum(dist: metadata.Distribution) -> str:
    """The RECORD hash of the distribution's METADATA file, if recorded."""
    for file in dist.files or []:
        if file.name == "METADATA" and file.parent.name.endswith(".dist-info"):
            if file.hash is not None:
                return f"{file.hash.mode}:{file.hash.value}"
    return ""


def _direct_url(dist: metadata.Distribution) -> dict:
    """The PEP 610 ``direct_url.json`` of *dist*; ``{}`` when absent or malformed."""
    raw = dist.read_text("direct_url.json")
    if not raw:
        return {}
    try:
        direct = json.loads(raw)
    except json.JSONDecodeError:
        direct = None
    if not isinstance(direct, dict):
        logger.warning("Ignoring malformed direct_url.json for '%s'.", dist.metadata.get("Name"))
        return {}
    return direct


def _section(direct: dict, name: str) -> dict:
    section = direct.get(name)
    return section if isinstance(section, dict) else {}


def _text(mapping: dict, key: str) -> str:
    """String value of *key*, or ``""`` for missing and non-string values."""
    value = mapping.get(key)
    return value if isinstance(value, str) else ""


def _build_settings(dist: metadata.Distribution) -> list[BuildSetting]:
    settings: list[tuple[str, str]] = []

    installer = (dist.read_text("INSTALLER") or "").strip()
    if installer:
        settings.append(("installer", installer))

    requires_python = dist.metadata.get("Requires-Python")
    if requires_python:
        settings.append(("requires-python", requires_python))

    direct = _direct_url(dist)
    if _text(direct, "url"):
        settings.append(("url", _text(direct, "url")))
    if "dir_info" in direct:
        editable = _section(direct, "dir_info").get("editable") is True
        settings.append(("editable", str(editable).lower()))
    vcs_info = _section(direct, "vcs_info")
    for key, field in (("vcs", "vcs"), ("vcs.requested", "requested_revision"), ("vcs.revision", "commit_id")):
        if _text(vcs_info, field):
            settings.append((key, _text(vcs_info, field)))

    return [
        BuildSetting(key=key, value=value.replace("\n", " "))
        for key, value in settings
    ]


def _requirement_names(dist: metadata.Distribution) -> list[str]:
    """Names of the unconditional (non-extra) requirements of *dist*."""
    names: list[str] = []
    for requirement in dist.requires or []:
        spec, _, marker = requirement.partition(";")
        if marker and _EXTRA_MARKER.search(marker):
            continue
        match = _REQUIREMENT_NAME.match(spec)
        if match:
            names.append(match.group(1))
    return names


def _replacement(dist: metadata.Distribution) -> Module | None:
    direct = _direct_url(dist)
    if not _text(direct, "url"):
        return None
    return Module(
        path=_text(direct, "url"),
        version=dist.version or "",
        sum=_text(_section(direct, "vcs_info"), "commit_id"),
    )


def _dependencies(root: metadata.Distribution) -> list[Module]:
    """The installed transitive requirement closure of *root*."""
    seen: dict[str, metadata.Distribution] = {}
    pending = list(_requirement_names(root))
    root_name = canonical_name(root.metadata.get("Name") or "")

    while pending:
        name = canonical_name(pending.pop())
        if name in seen or name == root_name:
            continue
        try:
            dist = metadata.distribution(name)
        except metadata.PackageNotFoundError:
            continue
        seen[name] = dist
        pending.extend(_requirement_names(dist))

    return [
        Module(
            path=dist.metadata.get("Name") or name,
            version=dist.version or "",
            sum=_metadata_sum(dist),
            replace=_replacement(dist),
        )
        for name, dist in sorted(seen.items())
    ]


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def discover_metadata_source(command: str | None = None) -> DistributionMetadataSource | None:
    """Find the distribution that owns the running program.

    Tries a ``console_scripts`` entry point named after the executable,
    then the distribution providing the top-level package of ``__main__``.
    """
    command = command or Path(sys.argv[0]).name
    for entry_point in metadata.entry_points(group="console_scripts", name=command):
        if entry_point.dist is not None:
            return DistributionMetadataSource(entry_point.dist.metadata["Name"])

    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    if spec is not None and spec.name:
        top_level = spec.name.partition(".")[0]
        owners = metadata.packages_distributions().get(top_level, [])
        if owners:
            return DistributionMetadataSource(owners[0])
    return None
