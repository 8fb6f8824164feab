"""Tests for CLI functionality."""

from __future__ import annotations

import json

from carbon_edge.cli import main


def test_cli_main_no_args() -> None:
    """A subcommand is required."""
    assert main([]) == 1


def test_cli_main_help(capsys) -> None:
    """Test CLI help output."""
    result = main(["--help"])
    assert result == 0

    captured = capsys.readouterr()
    assert "usage:" in captured.out.lower()
    assert "dual-grid" in captured.out


def test_cli_providers(capsys) -> None:
    assert main(["providers"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert [item["key"] for item in payload] == [
        "aws-cloudfront",
        "azure",
        "cloudflare",
        "google-cloud",
    ]
    assert payload[2]["edgeCount"] == 18


def test_cli_dual_grid_with_static_provider(capsys) -> None:
    assert main(["dual-grid", "Stockholm", "Paris", "--content-type", "video"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["userSample"]["carbonIntensity"] == 40.0
    assert payload["edgeSample"]["carbonIntensity"] == 60.0
    assert payload["weightedIntensity"] == 48.0
    assert payload["recommendation"]["action"] == "proceed"
    assert payload["degraded"] is False


def test_cli_optimal_edge(capsys) -> None:
    assert main(["optimal-edge", "Oslo", "--cdn-provider", "aws-cloudfront"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["edgeId"] == "eu-north-1"


def test_cli_alternatives_respects_max_results(capsys) -> None:
    code = main(
        [
            "alternatives",
            "Berlin",
            "eu-central-1",
            "--cdn-provider",
            "aws-cloudfront",
            "--max-results",
            "2",
        ]
    )

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload) == 2
    assert payload[0]["carbonIntensity"] <= payload[1]["carbonIntensity"]


def test_cli_reports_client_errors(capsys) -> None:
    code = main(["optimal-edge", "Berlin", "--cdn-provider", "fastly"])

    assert code == 1
    error = json.loads(capsys.readouterr().err)
    assert error["statusCode"] == 404


def test_cli_rejects_invalid_coordinates(capsys) -> None:
    code = main(["dual-grid", "Berlin", "Paris", "--lat", "95", "--lon", "0"])

    assert code == 1
    assert json.loads(capsys.readouterr().err)["statusCode"] == 400
