"""Integration test: a complete program bootstrapped end to end.

Builds a small two-command tool the way a downstream project would,
with the real process-wide logger installer, and drives it through
version output, logging, and subcommand dispatch.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated

import pytest
import typer
from pydantic import BaseModel

from clix import CLI, Application, LifecycleState, Options, github_links
from clix.config import LogFormat
from clix.core.logger import get_logger
from clix.core.metadata import StaticMetadataSource


class DeployFlags(BaseModel):
    region: Annotated[str, typer.Option("--region", "-r", help="Target region.")] = "eu-west-1"
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Plan only.")] = False


def make_tool(build_info):
    cli = CLI(
        DeployFlags,
        app=Application(
            description="Deploys things.",
            links=github_links("github.com/acme/deployer", homepage="https://deployer.example"),
        ),
        metadata_source=StaticMetadataSource(build_info),
    )

    @cli.command()
    def push(service: str):
        """Push a service."""
        get_logger().with_fields(service=service).info("pushing")
        return service

    @cli.command()
    def status():
        """Show status."""
        return "ok"

    return cli


class TestEndToEnd:
    def test_version_text(self, build_info, capsys):
        cli = make_tool(build_info)
        with pytest.raises(SystemExit) as excinfo:
            cli.parse(["--version"])
        assert excinfo.value.code == 1
        out = capsys.readouterr().out
        assert out.startswith("mytool :: 1.4.2\n")
        assert "build commit :: abc123\n" in out
        assert "helpful links:\n" in out
        assert "https://github.com/acme/deployer/issues/new/choose" in out
        assert f"{'unknown'.rjust(47)} :: file:///src/rich :: 13.7.0-dev\n" in out
        assert cli.state == LifecycleState.TERMINATED

    def test_version_json_without_logging(self, build_info, capsys):
        cli = make_tool(build_info)
        with pytest.raises(SystemExit) as excinfo:
            cli.parse(["--version-json"], Options.DISABLE_LOGGING)
        assert excinfo.value.code == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["application"]["description"] == "Deploys things."
        assert [link["name"] for link in payload["application"]["links"]] == [
            "homepage", "github", "issues", "support", "contributing", "security",
        ]
        assert payload["dependencies"][1]["replaces"]["path"] == "file:///src/rich"
        assert get_logger().logger.name == "clix"

    def test_run_subcommand_with_global_logger(self, build_info, capsys):
        cli = make_tool(build_info)
        cli.parse(["-r", "us-east-1", "--log.format", "json", "push", "api"])
        assert cli.flags == DeployFlags(region="us-east-1")
        assert cli.args == ["push", "api"]
        assert get_logger() is cli.logger
        assert logging.getLogger().level == logging.INFO
        assert cli.builtins.log_format == LogFormat.JSON

        assert cli.dispatch(standalone_mode=False) == "api"
        records = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
        assert [r["message"] for r in records] == ["logger initialized", "pushing"]
        assert records[1]["service"] == "api"

    def test_markdown(self, build_info, capsys):
        cli = make_tool(build_info)
        with pytest.raises(SystemExit) as excinfo:
            cli.parse(["--generate-markdown"])
        assert excinfo.value.code == 0
        doc = capsys.readouterr().out
        assert doc.startswith("# mytool\n\n```\nDeploys things.\n```\n")
        assert "| `--region`, `-r` |  | `eu-west-1` | Target region. |" in doc
        assert "- `push`: Push a service.\n- `status`: Show status.\n" in doc
        assert "- homepage: <https://deployer.example>" in doc

    def test_missing_command(self, build_info, capsys):
        with pytest.raises(SystemExit) as excinfo:
            make_tool(build_info).parse([])
        assert excinfo.value.code == 1
        assert "Error: Missing command." in capsys.readouterr().err
