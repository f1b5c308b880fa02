"""Tests for the store, lookup, retrieve, and packages commands."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from lockerctl.cli import cli

_STORE = [
    "store", "1", "--size", "small", "--name", "Ana Ruiz", "--contact", "ana@example.org",
    "--product", "Book", "--by", "concierge",
]


@pytest.fixture
def stocked(cli_runner: CliRunner, _isolated_site: None) -> None:
    cli_runner.invoke(cli, ["system", "create", "Lobby"])
    cli_runner.invoke(cli, ["lockers", "add", "1", "--count", "2", "--size", "small"])


def _store(cli_runner: CliRunner, *extra: str) -> dict[str, Any]:
    result = cli_runner.invoke(cli, ["--json", *_STORE, *extra])
    assert result.exit_code == 0, result.output
    data: dict[str, Any] = json.loads(result.stdout)["data"]
    return data


@pytest.mark.usefixtures("_isolated_site", "stocked")
class TestStoreCommand:
    def test_store_prints_receipt(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, _STORE)
        assert result.exit_code == 0, result.output
        assert "Package stored" in result.stdout
        assert "PKG-0001" in result.stdout

    def test_store_quiet(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", *_STORE])
        custody_id, locker_id, otp = result.stdout.split()
        assert (custody_id, locker_id) == ("PKG-0001", "1")
        assert len(otp) == 6 and otp.isdigit()

    def test_store_optional_fields(self, cli_runner: CliRunner) -> None:
        data = _store(cli_runner, "--tracking", "1Z999", "--courier", "UPS")
        result = cli_runner.invoke(cli, ["--json", "lookup", str(data["locker_id"])])
        view = json.loads(result.stdout)["data"]
        assert view["tracking_number"] == "1Z999"
        assert view["courier"] == "UPS"

    def test_store_when_full(self, cli_runner: CliRunner) -> None:
        _store(cli_runner)
        _store(cli_runner)
        result = cli_runner.invoke(cli, ["--json", *_STORE])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "NO_LOCKER_AVAILABLE"

    def test_store_requires_staff(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, _STORE[:-2])
        assert result.exit_code == 2


@pytest.mark.usefixtures("_isolated_site", "stocked")
class TestLookupCommand:
    def test_lookup_hides_code(self, cli_runner: CliRunner) -> None:
        stored = _store(cli_runner)
        result = cli_runner.invoke(cli, ["--json", "lookup", str(stored["locker_id"])])
        assert result.exit_code == 0
        assert stored["otp"] not in result.stdout
        assert json.loads(result.stdout)["data"]["id"] == stored["custody_id"]

    def test_lookup_empty_locker(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["lookup", "2"])
        assert result.exit_code == 1
        assert "LOCKER_NOT_OCCUPIED" in result.stderr


@pytest.mark.usefixtures("_isolated_site", "stocked")
class TestRetrieveCommand:
    def test_retrieve(self, cli_runner: CliRunner) -> None:
        stored = _store(cli_runner)
        locker = str(stored["locker_id"])
        result = cli_runner.invoke(
            cli, ["--json", "retrieve", locker, "--otp", stored["otp"], "--by", "Ana"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["status"] == "closed"
        assert data["retrieved_by"] == "Ana"
        assert "otp" not in data

    def test_retrieve_prompts_for_code(self, cli_runner: CliRunner) -> None:
        stored = _store(cli_runner)
        result = cli_runner.invoke(
            cli,
            ["retrieve", str(stored["locker_id"]), "--by", "Ana"],
            input=f"{stored['otp']}\n",
        )
        assert result.exit_code == 0, result.output
        assert stored["otp"] not in result.stdout

    def test_wrong_code_keeps_package(self, cli_runner: CliRunner) -> None:
        stored = _store(cli_runner)
        locker = str(stored["locker_id"])
        wrong = "000000" if stored["otp"] != "000000" else "111111"
        result = cli_runner.invoke(cli, ["retrieve", locker, "--otp", wrong, "--by", "Ana"])
        assert result.exit_code == 1
        assert "INVALID_OTP" in result.stderr
        assert cli_runner.invoke(cli, ["lookup", locker]).exit_code == 0

    def test_code_works_once(self, cli_runner: CliRunner) -> None:
        stored = _store(cli_runner)
        args = ["retrieve", str(stored["locker_id"]), "--otp", stored["otp"], "--by", "Ana"]
        assert cli_runner.invoke(cli, args).exit_code == 0
        replay = cli_runner.invoke(cli, args)
        assert replay.exit_code == 1
        assert "INVALID_OTP" in replay.stderr


@pytest.mark.usefixtures("_isolated_site", "stocked")
class TestPackagesAndHistory:
    def test_packages(self, cli_runner: CliRunner) -> None:
        first = _store(cli_runner)
        _store(cli_runner, "--contact", "bo@example.org")
        result = cli_runner.invoke(cli, ["-q", "packages", "--contact", "ana@example.org"])
        assert result.stdout.split() == [first["custody_id"]]
        result = cli_runner.invoke(cli, ["packages", "--system", "1"])
        assert "2 packages waiting" in result.stdout

    def test_packages_unknown_system(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["packages", "--system", "5"])
        assert result.exit_code == 1

    def test_history(self, cli_runner: CliRunner) -> None:
        stored = _store(cli_runner)
        cli_runner.invoke(
            cli,
            ["retrieve", str(stored["locker_id"]), "--otp", stored["otp"], "--by", "Ana"],
        )
        result = cli_runner.invoke(cli, ["--json", "history", "--system", "1"])
        items = json.loads(result.stdout)["data"]["items"]
        assert [item["id"] for item in items] == [stored["custody_id"]]
        assert "otp" not in items[0]
        assert stored["otp"] not in result.stdout

    def test_history_range(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "history", "--until", "2000-01-01"])
        assert result.exit_code == 0
        assert result.stdout.strip() == ""

    def test_history_bad_date(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["history", "--since", "yesterday"])
        assert result.exit_code == 1
        assert "VALIDATION_FAILED" in result.stderr
