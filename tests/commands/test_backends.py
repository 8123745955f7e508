"""Tests for the backends CLI command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from memoboot.cli import cli
from tests.conftest import FakeRunner


@pytest.mark.usefixtures("cli_fake_runner")
class TestBackendsCommand:
    def test_lists_menu(self, cli_runner: CliRunner, fake_runner: FakeRunner) -> None:
        result = cli_runner.invoke(cli, ["backends"])
        assert result.exit_code == 0, result.output
        assert "SQLite file" in result.output
        assert "Locally installed PostgreSQL" in result.output
        assert "mark42" not in result.output
        assert fake_runner.calls == []

    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "backends"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [i["key"] for i in data["data"]["items"]] == ["1", "2", "3"]

    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["backends", "--examples"])
        assert result.exit_code == 0
        assert "memoboot backends" in result.output
