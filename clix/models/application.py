"""Application identity models — name, version, provenance and links."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Link(BaseModel):
    """A named URL shown in help and version output."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class Application(BaseModel):
    """User-declared application identity.

    Any field left blank is resolved by the version engine, so after
    aggregation no string field is empty.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    description: str = ""
    version: str = ""
    commit: str = ""  # VCS revision
    date: str = ""  # VCS commit timestamp
    links: list[Link] = []


def github_links(repo: str, branch: str = "", homepage: str = "") -> list[Link]:
    """Return an opinionated set of project links using GitHub conventions.

    Examples
    --------
    >>> [link.name for link in github_links("github.com/acme/tool")]
    ['github', 'issues', 'support', 'contributing', 'security']
    """
    repo = repo.removeprefix("https://").rstrip("/")
    branch = branch or "master"

    links: list[Link] = []
    if homepage:
        links.append(Link(name="homepage", url=homepage))

    links.extend([
        Link(name="github", url=f"https://{repo}"),
        Link(name="issues", url=f"https://{repo}/issues/new/choose"),
        Link(name="support", url=f"https://{repo}/blob/{branch}/.github/SUPPORT.md"),
        Link(name="contributing", url=f"https://{repo}/blob/{branch}/.github/CONTRIBUTING.md"),
        Link(name="security", url=f"https://{repo}/security/policy"),
    ])
    return links
