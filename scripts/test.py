"""Run pytest with coverage and print a one-line result.

Writes:
    .reports/test/pytest.json        - pytest-json-report output
    .reports/test/coverage.json      - coverage.py JSON output
    .reports/test/pytest_output.txt  - Full pytest console output

Stdout:
    [test] PASS: 120 passed, 0 failed, 0 skipped | coverage: 91.4%
"""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
REPORT_DIR = ROOT / ".reports" / "test"


def read_summary(pytest_json_path: Path) -> dict[str, int]:
    """Pass/fail/skip/error counts from a pytest-json-report file."""
    counts = {"passed": 0, "failed": 0, "skipped": 0, "error": 0}
    if pytest_json_path.exists():
        try:
            summary = json.loads(pytest_json_path.read_text(encoding="utf-8")).get("summary", {})
            for key in counts:
                counts[key] = summary.get(key, 0)
        except json.JSONDecodeError:
            pass
    return counts


def read_coverage(coverage_json_path: Path) -> float:
    """Total percent covered from a coverage.py JSON report."""
    if coverage_json_path.exists():
        try:
            cov_data = json.loads(coverage_json_path.read_text(encoding="utf-8"))
            return cov_data.get("totals", {}).get("percent_covered", 0.0)
        except json.JSONDecodeError:
            pass
    return 0.0


def run(verbose: bool = False) -> int:
    """Run the suite, write reports and return pytest's exit code."""
    REPORT_DIR.mkdir(parents=True, exist_ok=True)
    pytest_json_path = REPORT_DIR / "pytest.json"
    coverage_json_path = REPORT_DIR / "coverage.json"

    result = subprocess.run(
        [
            sys.executable,
            "-m",
            "pytest",
            "--json-report",
            f"--json-report-file={pytest_json_path}",
            "--json-report-omit=keywords,streams,log",
            "--cov=assettracker",
            f"--cov-report=json:{coverage_json_path}",
            "--cov-report=term",
            "-q",
        ],
        cwd=ROOT,
        capture_output=True,
        text=True,
        check=False,
    )
    output = result.stdout + result.stderr
    (REPORT_DIR / "pytest_output.txt").write_text(output, encoding="utf-8")

    counts = read_summary(pytest_json_path)
    coverage_pct = read_coverage(coverage_json_path)
    status = "PASS" if result.returncode == 0 else "FAIL"
    print(
        f"[test] {status}: {counts['passed']} passed, {counts['failed']} failed, "
        f"{counts['skipped']} skipped | coverage: {coverage_pct:.1f}%"
    )
    if verbose:
        print(output)
    return result.returncode


if __name__ == "__main__":
    sys.exit(run(verbose="-v" in sys.argv or "--verbose" in sys.argv))
