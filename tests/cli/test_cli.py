"""Tests for the Typer CLI.

Tests cover:
- version and status commands
- Offline check of a high-risk post ending in needs_review
"""

from typer.testing import CliRunner

from content_trust import __version__
from content_trust.cli.main import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_status_lists_components():
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "Consensus" in result.stdout


def test_offline_check():
    result = runner.invoke(app, ["check", "Vaccines cause autism.", "--topic", "health", "--offline"])
    assert result.exit_code == 0
    assert "needs_review" in result.stdout
    assert "Degraded stages" in result.stdout
