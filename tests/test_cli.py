"""Tests for the tcover command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tcover.cli import cli
from tcover.cli.commands import EXIT_CONFIG_ERROR, EXIT_FAILURE, EXIT_SUCCESS


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    """A runner whose log output stays out of stdout assertions."""
    monkeypatch.setenv("TCOVER_LOG_LEVEL", "ERROR")
    return CliRunner()


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    return tmp_path / "results"


class TestCheckCommand:
    """Tests for `tcover check`."""

    def test_covering_array(self, runner, benchmark_dir, tmp_path, full_suite, write_arrays):
        arrays = write_arrays(tmp_path / "ca.txt", [full_suite])

        result = runner.invoke(cli, ["check", str(benchmark_dir / "toy.model"), str(arrays)])

        assert result.exit_code == EXIT_SUCCESS
        assert "All 1 array(s) are covering arrays" in result.output

    def test_partial_coverage_fails(self, runner, benchmark_dir, tmp_path, write_arrays):
        arrays = write_arrays(tmp_path / "ca.txt", [[[0, 0, 0], [1, 1, 1]]])

        result = runner.invoke(
            cli, ["check", str(benchmark_dir / "toy.model"), str(arrays), "--json"]
        )

        assert result.exit_code == EXIT_FAILURE
        data = json.loads(result.output)
        assert data["model"] == "toy"
        assert data["strength"] == 2
        assert data["arrays"][0]["coverage"] == 0.5
        assert data["arrays"][0]["total_covered"] == 6

    def test_constraints_option(
        self, runner, benchmark_dir, tmp_path, allowed_suite, write_arrays
    ):
        arrays = write_arrays(tmp_path / "ca.txt", [allowed_suite])

        result = runner.invoke(
            cli,
            [
                "check",
                str(benchmark_dir / "tight.model"),
                str(arrays),
                "--constraints",
                str(benchmark_dir / "tight.constraints"),
                "--json",
            ],
        )

        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.output)
        assert data["arrays"][0]["total_invalid"] == 1
        assert data["arrays"][0]["coverage"] == 1.0
        assert data["oracle"]["queries"] > 0

    def test_invalid_rows_reported(self, runner, benchmark_dir, tmp_path, write_arrays):
        arrays = write_arrays(tmp_path / "ca.txt", [[[0, -1, 0]]])

        result = runner.invoke(
            cli, ["check", str(benchmark_dir / "toy.model"), str(arrays), "--json"]
        )

        assert result.exit_code == EXIT_FAILURE
        data = json.loads(result.output)
        assert data["arrays"][0]["status"] == "invalid"
        assert data["arrays"][0]["coverage"] is None

    def test_strength_option(self, runner, benchmark_dir, tmp_path, full_suite, write_arrays):
        arrays = write_arrays(tmp_path / "ca.txt", [full_suite])

        result = runner.invoke(
            cli, ["check", str(benchmark_dir / "toy.model"), str(arrays), "-t", "3", "--json"]
        )

        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.output)["arrays"][0]["total_space"] == 8

    def test_strength_too_large(self, runner, benchmark_dir, tmp_path, full_suite, write_arrays):
        arrays = write_arrays(tmp_path / "ca.txt", [full_suite])

        result = runner.invoke(
            cli, ["check", str(benchmark_dir / "toy.model"), str(arrays), "-t", "4"]
        )

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "exceeds number of parameters" in result.output

    def test_malformed_model(self, runner, tmp_path, full_suite, write_arrays):
        model = tmp_path / "broken.model"
        model.write_text("2\n3\n2 2\n")
        arrays = write_arrays(tmp_path / "ca.txt", [full_suite])

        result = runner.invoke(cli, ["check", str(model), str(arrays)])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "E301" in result.output

    def test_missing_arrays_file(self, runner, benchmark_dir, tmp_path):
        result = runner.invoke(
            cli, ["check", str(benchmark_dir / "toy.model"), str(tmp_path / "none.txt")]
        )

        assert result.exit_code != EXIT_SUCCESS


class TestExperimentCommand:
    """Tests for `tcover experiment`."""

    def test_all_good(self, runner, benchmark_dir, results_dir, full_suite, write_arrays):
        write_arrays(results_dir / "IPO" / "ipo_toy_1.txt", [full_suite])

        result = runner.invoke(
            cli, ["experiment", str(results_dir), "--benchmark-dir", str(benchmark_dir)]
        )

        assert result.exit_code == EXIT_SUCCESS
        assert "IPO + ipo + toy" in result.output
        assert "Seems all good" in result.output

    def test_problematic_file(self, runner, benchmark_dir, results_dir, write_arrays):
        write_arrays(results_dir / "CASA" / "sa_toy_1.txt", [[[0, 0, 0]]])

        result = runner.invoke(
            cli, ["experiment", str(results_dir), "--benchmark-dir", str(benchmark_dir)]
        )

        assert result.exit_code == EXIT_FAILURE
        assert "The following files are problematic:" in result.output

    def test_bound_and_json(
        self, runner, benchmark_dir, results_dir, full_suite, write_arrays
    ):
        write_arrays(results_dir / "IPO" / "ipo_toy_1.txt", [full_suite, [[0, 0, 0]]])

        result = runner.invoke(
            cli,
            [
                "experiment",
                str(results_dir),
                "--benchmark-dir",
                str(benchmark_dir),
                "--bound",
                "1",
                "--json",
            ],
        )

        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.output)
        assert data["files"][0]["arrays_found"] == 2
        assert data["files"][0]["arrays_checked"] == 1

    def test_invalid_bound(self, runner, benchmark_dir, results_dir, full_suite, write_arrays):
        write_arrays(results_dir / "IPO" / "ipo_toy_1.txt", [full_suite])

        result = runner.invoke(
            cli,
            ["experiment", str(results_dir), "--benchmark-dir", str(benchmark_dir), "-b", "0"],
        )

        assert result.exit_code == EXIT_CONFIG_ERROR


class TestGlobalOptions:
    """Tests for options shared by every command."""

    def test_config_file(self, runner, benchmark_dir, tmp_path, full_suite, write_arrays):
        config = tmp_path / "tcover.yaml"
        config.write_text("strength: 3\n")
        arrays = write_arrays(tmp_path / "ca.txt", [full_suite])

        result = runner.invoke(
            cli,
            ["-c", str(config), "check", str(benchmark_dir / "toy.model"), str(arrays), "--json"],
        )

        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.output)["strength"] == 3

    def test_invalid_config(self, runner, benchmark_dir, tmp_path, full_suite, write_arrays):
        config = tmp_path / "tcover.yaml"
        config.write_text("on_contradiction: ignore\n")
        arrays = write_arrays(tmp_path / "ca.txt", [full_suite])

        result = runner.invoke(
            cli, ["-c", str(config), "check", str(benchmark_dir / "toy.model"), str(arrays)]
        )

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "E401" in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "check" in result.output
        assert "experiment" in result.output
