"""Tests for the discount CLI command group."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from verifyhub.cli import cli


def _json(runner: CliRunner, args: list[str]) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.mark.usefixtures("_isolated_store")
class TestDiscountCommands:
    def test_add(self, cli_runner: CliRunner) -> None:
        data = _json(
            cli_runner,
            ["discount", "add", "welcome10", "PERCENTAGE", "10", "--description", "First order", "--limit", "100"],
        )["data"]
        assert data["code"] == "WELCOME10"
        assert data["discount_type"] == "percentage"
        assert data["usage_limit"] == 100

    def test_add_duplicate(self, cli_runner: CliRunner) -> None:
        _json(cli_runner, ["discount", "add", "FLAT5", "fixed", "5"])
        result = cli_runner.invoke(cli, ["discount", "add", "flat5", "fixed", "5"])
        assert result.exit_code == 1
        assert "CONFLICT" in result.output

    def test_add_rejects_per_user_limit(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["discount", "add", "ONCE", "fixed", "5", "--per-user", "1"])
        assert result.exit_code == 2

    def test_add_bad_percentage(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["discount", "add", "HUGE", "percentage", "150"])
        assert result.exit_code == 1

    def test_list_show_deactivate(self, cli_runner: CliRunner) -> None:
        _json(cli_runner, ["discount", "add", "A10", "percentage", "10"])
        _json(cli_runner, ["discount", "add", "B5", "fixed", "5"])
        assert _json(cli_runner, ["discount", "show", "a10"])["data"]["code"] == "A10"
        _json(cli_runner, ["discount", "deactivate", "A10"])
        active = _json(cli_runner, ["discount", "list", "--active"])["data"]["items"]
        assert [d["code"] for d in active] == ["B5"]
        assert _json(cli_runner, ["discount", "list"])["data"]["count"] == 2

    def test_use_and_remove(self, cli_runner: CliRunner) -> None:
        _json(cli_runner, ["discount", "add", "A10", "percentage", "10"])
        assert _json(cli_runner, ["discount", "use", "A10"])["data"]["usage_count"] == 1
        _json(cli_runner, ["discount", "remove", "A10"])
        assert cli_runner.invoke(cli, ["discount", "show", "A10"]).exit_code == 1

    def test_validate(self, cli_runner: CliRunner) -> None:
        _json(cli_runner, ["discount", "add", "FLAT5", "fixed", "5", "--min-amount", "30"])
        ok = _json(cli_runner, ["discount", "validate", "FLAT5", "42.50"])["data"]
        assert ok["valid"] is True
        assert ok["amount_off"] == 5.0
        low = cli_runner.invoke(cli, ["discount", "validate", "FLAT5", "20"])
        assert low.exit_code == 0
        assert "NOT APPLICABLE" in low.output
