"""Tests for the report parsing in scripts/test.py."""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "test.py"


@pytest.fixture(scope="module")
def runner():
    spec = importlib.util.spec_from_file_location("assettracker_test_runner", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestReadSummary:
    """Tests for reading counts from the pytest JSON report."""

    def test_counts_from_summary(self, runner, tmp_path) -> None:
        path = tmp_path / "pytest.json"
        path.write_text(
            json.dumps({"summary": {"passed": 12, "failed": 2, "skipped": 1, "total": 15}}),
            encoding="utf-8",
        )
        assert runner.read_summary(path) == {"passed": 12, "failed": 2, "skipped": 1, "error": 0}

    def test_errors_counted(self, runner, tmp_path) -> None:
        path = tmp_path / "pytest.json"
        path.write_text(json.dumps({"summary": {"error": 3}}), encoding="utf-8")
        assert runner.read_summary(path)["error"] == 3

    def test_missing_report_gives_zeros(self, runner, tmp_path) -> None:
        counts = runner.read_summary(tmp_path / "absent.json")
        assert counts == {"passed": 0, "failed": 0, "skipped": 0, "error": 0}

    def test_corrupt_report_gives_zeros(self, runner, tmp_path) -> None:
        path = tmp_path / "pytest.json"
        path.write_text("{not json", encoding="utf-8")
        assert runner.read_summary(path)["passed"] == 0


class TestReadCoverage:
    """Tests for reading the coverage total."""

    def test_percent_covered(self, runner, tmp_path) -> None:
        path = tmp_path / "coverage.json"
        path.write_text(json.dumps({"totals": {"percent_covered": 91.4}}), encoding="utf-8")
        assert runner.read_coverage(path) == pytest.approx(91.4)

    def test_missing_report_is_zero(self, runner, tmp_path) -> None:
        assert runner.read_coverage(tmp_path / "absent.json") == 0.0
