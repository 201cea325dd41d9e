"""Tests for the price CLI command group."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from verifyhub.cli import cli

# Origin equal to the destination keeps the distance at zero.
HERE = ["--lat", "6.4541", "--lng", "3.3947", "--from-lat", "6.4541", "--from-lng", "3.3947"]


def _json(runner: CliRunner, args: list[str]) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.mark.usefixtures("_isolated_store")
class TestQuoteCommand:
    def test_quote_standard_slot(self, cli_runner: CliRunner) -> None:
        data = _json(
            cli_runner, ["price", "quote", "DOCUMENT_VERIFICATION", *HERE, "--at", "2026-11-02T12:00"]
        )["data"]
        assert data["total"] == 20.0
        assert data["distance_km"] == 0.0
        assert data["suggestions"][0]["time_slot"] == "economy"

    def test_quote_rush_hour_inspection(self, cli_runner: CliRunner) -> None:
        data = _json(
            cli_runner,
            ["price", "quote", "property_inspection", *HERE, "--at", "2026-11-02T09:00", "--no-suggestions"],
        )["data"]
        # 20 base + 4 rush hour + 5 type + 6 difficulty
        assert data["total"] == 35.0
        assert "suggestions" not in data

    def test_quote_live_mode(self, cli_runner: CliRunner) -> None:
        data = _json(
            cli_runner,
            ["price", "quote", "IDENTITY_VERIFICATION", *HERE, "--at", "2026-11-02T12:00", "--mode", "LIVE"],
        )["data"]
        assert data["total"] == 23.0

    def test_quote_with_discount(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["discount", "add", "WELCOME10", "percentage", "10"])
        data = _json(
            cli_runner,
            ["price", "quote", "DOCUMENT_VERIFICATION", *HERE, "--at", "2026-11-02T12:00", "--discount", "welcome10"],
        )
        assert data["data"]["total"] == 18.0
        assert data["warnings"] == []

    def test_quote_unknown_discount_warns(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            ["price", "quote", "DOCUMENT_VERIFICATION", *HERE, "--at", "2026-11-02T12:00", "--discount", "NOPE"],
        )
        assert result.exit_code == 0
        assert "WARNING: Discount code 'NOPE' not found" in result.output

    def test_quote_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["price", "quote", "DOCUMENT_VERIFICATION", *HERE, "--at", "2026-11-02T12:00"]
        )
        assert result.exit_code == 0
        assert "Base fee" in result.output
        assert "Cheaper slots" in result.output

    def test_quote_quiet(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["-q", "price", "quote", "DOCUMENT_VERIFICATION", *HERE, "--at", "2026-11-02T12:00"]
        )
        assert result.output.strip() == "USD 20.00"

    def test_quote_existing_request(self, cli_runner: CliRunner) -> None:
        created = _json(
            cli_runner,
            [
                "request",
                "create",
                "--client",
                "client-1",
                "--title",
                "Verify title deed",
                "--description",
                "Confirm the deed matches the land registry entry",
                "--category",
                "DOCUMENT_VERIFICATION",
                "--address",
                "12 Marina Road, Lagos Island",
                "--lat",
                "6.4541",
                "--lng",
                "3.3947",
            ],
        )
        request_id = created["data"]["id"]
        data = _json(cli_runner, ["price", "quote", "--request", request_id])["data"]
        assert data["request_id"] == request_id
        assert data["distance_km"] > 0

    def test_quote_requires_category(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["price", "quote", *HERE])
        assert result.exit_code == 2

    def test_quote_requires_destination(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["price", "quote", "DOCUMENT_VERIFICATION"])
        assert result.exit_code == 2
        assert "--lat and --lng" in result.output

    def test_origin_needs_both_coordinates(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["price", "quote", "DOCUMENT_VERIFICATION", "--lat", "6.4", "--lng", "3.3", "--from-lat", "6.5"]
        )
        assert result.exit_code == 2


@pytest.mark.usefixtures("_isolated_store")
class TestSuggestAndTravel:
    def test_suggest(self, cli_runner: CliRunner) -> None:
        data = _json(
            cli_runner, ["price", "suggest", "PROPERTY_INSPECTION", *HERE, "--at", "2026-11-02T09:00"]
        )["data"]
        assert [s["time_slot"] for s in data["items"]] == ["economy", "standard"]

    def test_suggest_cheapest_slot_human(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["price", "suggest", "DOCUMENT_VERIFICATION", *HERE, "--at", "2026-11-02T21:00"]
        )
        assert result.exit_code == 0
        assert "Already in the cheapest slot." in result.output

    def test_travel(self, cli_runner: CliRunner) -> None:
        data = _json(
            cli_runner, ["price", "travel", "--lat", "1", "--lng", "0", "--from-lat", "0", "--from-lng", "0"]
        )["data"]
        assert data["travel_minutes"] == 223

    def test_travel_default_origin(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, ["price", "travel", "--lat", "6.4541", "--lng", "3.3947"])["data"]
        assert 7 < data["distance_km"] < 9
