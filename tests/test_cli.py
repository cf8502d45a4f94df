"""Tests for the billfold command line."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from billfold.cli import app

runner = CliRunner()


def test_routes_lists_longest_first(tmp_path: Path) -> None:
    result = runner.invoke(app, ["routes", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines
    lengths = [len(line.split()[1]) for line in lines]
    assert lengths == sorted(lengths, reverse=True)
    assert any(line.endswith("/api/months *") for line in lines)


def test_match_hit(tmp_path: Path) -> None:
    result = runner.invoke(app, ["match", "POST", "/api/months/2025-01/bills/abc/reset", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "POST /api/months/bills/reset ->" in result.output
    assert "reset" in result.output.split("->")[1]


def test_match_prefers_exact_list_route(tmp_path: Path) -> None:
    result = runner.invoke(app, ["match", "GET", "/api/months", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "MonthHandlers.list" in result.output


def test_match_miss(tmp_path: Path) -> None:
    result = runner.invoke(app, ["match", "GET", "/api/nothing/here", "--data-dir", str(tmp_path)])
    assert result.exit_code == 1
    assert "No route matches GET /api/nothing/here" in result.output


def test_no_args_shows_help() -> None:
    result = runner.invoke(app, [])
    assert "serve" in result.output
    assert "routes" in result.output
