"""Tests for the lockers command group."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from lockerctl.cli import cli


def _json(cli_runner: CliRunner, *args: str) -> dict[str, Any]:
    result = cli_runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    data: dict[str, Any] = json.loads(result.stdout)["data"]
    return data


@pytest.fixture
def system(cli_runner: CliRunner, _isolated_site: None) -> str:
    cli_runner.invoke(cli, ["system", "create", "Lobby"])
    return "1"


@pytest.mark.usefixtures("_isolated_site")
class TestLockersCommands:
    def test_add(self, cli_runner: CliRunner, system: str) -> None:
        data = _json(cli_runner, "lockers", "add", system, "--count", "3", "--size", "small")
        assert data["locker_ids"] == [1, 2, 3]
        assert data["counts"]["small"] == 3

    def test_add_size_is_case_insensitive(self, cli_runner: CliRunner, system: str) -> None:
        data = _json(cli_runner, "lockers", "add", system, "--count", "1", "--size", "LARGE")
        assert data["counts"]["large"] == 1

    def test_add_bad_size(self, cli_runner: CliRunner, system: str) -> None:
        result = cli_runner.invoke(cli, ["lockers", "add", system, "--count", "1", "--size", "xl"])
        assert result.exit_code == 2

    def test_add_unknown_system(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["lockers", "add", "4", "--count", "1", "--size", "small"])
        assert result.exit_code == 1
        assert "UNKNOWN_SYSTEM" in result.stderr

    def test_add_grid_uses_configured_defaults(
        self, cli_runner: CliRunner, system: str
    ) -> None:
        data = _json(cli_runner, "lockers", "add-grid", system, "--size", "medium")
        assert len(data["locker_ids"]) == 30
        assert data["lockers"][-1]["position"] == {"row": 5, "column": 6}

    def test_add_grid_explicit(self, cli_runner: CliRunner, system: str) -> None:
        data = _json(
            cli_runner, "lockers", "add-grid", system, "--rows", "2", "--columns", "3",
            "--size", "small",
        )
        assert data["counts"]["total"] == 6

    def test_remove(self, cli_runner: CliRunner, system: str) -> None:
        cli_runner.invoke(cli, ["lockers", "add", system, "--count", "3", "--size", "small"])
        result = cli_runner.invoke(
            cli, ["-q", "lockers", "remove", system, "--count", "2", "--size", "small"]
        )
        assert result.stdout.split() == ["3", "2"]

    def test_remove_too_many(self, cli_runner: CliRunner, system: str) -> None:
        cli_runner.invoke(cli, ["lockers", "add", system, "--count", "1", "--size", "small"])
        result = cli_runner.invoke(
            cli, ["lockers", "remove", system, "--count", "2", "--size", "small"]
        )
        assert result.exit_code == 1
        assert "INSUFFICIENT_CAPACITY" in result.stderr
        assert _json(cli_runner, "lockers", "counts", system)["total"] == 1

    def test_remove_one(self, cli_runner: CliRunner, system: str) -> None:
        cli_runner.invoke(cli, ["lockers", "add", system, "--count", "2", "--size", "small"])
        data = _json(cli_runner, "lockers", "remove-one", "1")
        assert data["id"] == 1
        assert _json(cli_runner, "lockers", "counts", system)["total"] == 1

    def test_counts_and_summary(self, cli_runner: CliRunner, system: str) -> None:
        cli_runner.invoke(cli, ["lockers", "add", system, "--count", "2", "--size", "small"])
        result = cli_runner.invoke(cli, ["lockers", "counts", system])
        assert "System 1" in result.stdout
        summary = _json(cli_runner, "lockers", "summary")
        assert summary["systems"] == 1
        assert summary["available"] == 2

    def test_list_filters(self, cli_runner: CliRunner, system: str) -> None:
        cli_runner.invoke(cli, ["lockers", "add", system, "--count", "2", "--size", "small"])
        cli_runner.invoke(cli, ["lockers", "add", system, "--count", "1", "--size", "large"])
        data = _json(cli_runner, "lockers", "list", system, "--size", "large")
        assert [item["id"] for item in data["items"]] == [3]
        data = _json(cli_runner, "lockers", "list", system, "--status", "occupied")
        assert data["count"] == 0
