"""Unit tests for the ``clix`` command — reports on installed distributions."""

from __future__ import annotations

import json

import pytest

from clix.cli.app import run

# pydantic is a hard dependency, so it is always installed alongside clix.
TARGET = "pydantic"


class TestBuiltins:
    def test_help(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run(["--help"])
        assert excinfo.value.code == 0
        out = capsys.readouterr().out
        assert "Usage" in out
        assert "--json" in out

    def test_version_json(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run(["--version-json"])
        assert excinfo.value.code == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["application"]["name"] == "clix"
        assert payload["command"] == "mytool"

    def test_bad_flag(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run(["--frobnicate"])
        assert excinfo.value.code == 1
        assert "No such option" in capsys.readouterr().err


class TestReport:
    def test_text(self, capsys):
        assert run([TARGET]) == 0
        out = capsys.readouterr().out
        assert out.startswith(f"{TARGET} :: ")
        assert "build commit ::" in out
        assert "\x1b[" not in out

    def test_no_deps(self, capsys):
        assert run([TARGET, "--no-deps", "--no-settings"]) == 0
        out = capsys.readouterr().out
        assert "dependencies:" not in out
        assert "build options:" not in out

    def test_json(self, capsys):
        assert run([TARGET, "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["application"]["name"] == TARGET
        assert "build_settings" in payload
        assert "dependencies" in payload

    def test_redacted_json(self, capsys):
        assert run([TARGET, "--json", "--redact"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert set(payload) == {"application", "command", "python_version", "os", "arch"}

    def test_redacted_text(self, capsys):
        assert run([TARGET, "--redact"]) == 0
        out = capsys.readouterr().out
        assert "dependencies:" not in out

    def test_unknown_distribution(self, capsys):
        assert run(["definitely-not-installed-xyz"]) == 1
        assert "is not installed" in capsys.readouterr().err
