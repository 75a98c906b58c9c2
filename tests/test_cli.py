"""Tests for the command line entry point."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cgtop.app import main
from cgtop.stats import STATS


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


def test_list_stats(runner: CliRunner) -> None:
    """--list prints the catalog without starting the UI."""
    with patch("cgtop.app.CgtopApp") as mock_app:
        result = runner.invoke(main, ["--list"])

    assert result.exit_code == 0
    assert "Available statistics:" in result.output
    assert f"  1: {STATS[0].desc}" in result.output
    assert len(result.output.splitlines()) == len(STATS) + 1
    mock_app.assert_not_called()


def test_no_cgroup2_mount(runner: CliRunner) -> None:
    """Exit status 1 when no cgroup2 file system is mounted."""
    with (
        patch("cgtop.app.find_cgroup2_mount", return_value=None),
        patch("cgtop.logging.configure"),
        patch("cgtop.app.CgtopApp") as mock_app,
    ):
        result = runner.invoke(main, [])

    assert result.exit_code == 1
    assert "cgroup2" in result.output
    mock_app.assert_not_called()


def test_stat_out_of_range(runner: CliRunner) -> None:
    result = runner.invoke(main, ["-s", str(len(STATS) + 1)])
    assert result.exit_code == 2


def test_interval_too_small(runner: CliRunner) -> None:
    result = runner.invoke(main, ["-i", "0.1"])
    assert result.exit_code == 2


def test_starts_app(runner: CliRunner, tmp_path: Path) -> None:
    """Options end up in the application config."""
    with (
        patch("cgtop.logging.configure") as mock_configure,
        patch("cgtop.app.CgtopApp") as mock_app,
    ):
        mock_app.return_value.return_code = 0
        result = runner.invoke(main, ["--cgroup-root", str(tmp_path), "-s", "3", "-i", "2", "-d"])

    assert result.exit_code == 0
    mock_configure.assert_called_once_with(None, True)
    config = mock_app.call_args.args[0]
    assert config.cgroup_root == tmp_path
    assert config.stat == 2
    assert config.refresh_interval == 2.0
    assert config.debug
    mock_app.return_value.run.assert_called_once_with()


def test_discovered_mount_used(runner: CliRunner, tmp_path: Path) -> None:
    with (
        patch("cgtop.app.find_cgroup2_mount", return_value=tmp_path),
        patch("cgtop.logging.configure"),
        patch("cgtop.app.CgtopApp") as mock_app,
    ):
        mock_app.return_value.return_code = 0
        result = runner.invoke(main, [])

    assert result.exit_code == 0
    assert mock_app.call_args.args[0].cgroup_root == tmp_path
