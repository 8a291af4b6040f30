"""Tests for JSON and CSV reports."""

import csv
import json

import pytest

from compat_scanner import __version__
from compat_scanner.config import load_config
from compat_scanner.core.compatibility_analyzer import BatchEntry, analyze_compatibility
from compat_scanner.core.types import (
    IMPACT_INCOMPATIBLE_DESKTOP,
    CompatibilityResult,
    Evidence,
    make_impact,
)
from compat_scanner.reporters import CSVReporter, JSONReporter
from compat_scanner.reporters.csv_reporter import HEADERS, _defuse_csv_cell
from compat_scanner.reporters.json_reporter import _validate_output_path


@pytest.fixture
def result(python_heavy_plugin):
    return analyze_compatibility(str(python_heavy_plugin))


class TestJSONReporter:
    def test_single_report(self, result, tmp_path):
        output = tmp_path / "report.json"
        report = JSONReporter(load_config()).generate(result, str(output), plugin_path="/x/analyzer-plugin")

        assert report["metadata"]["scanner_version"] == __version__
        assert report["metadata"]["plugin_path"] == "analyzer-plugin"
        assert report["metadata"]["scan_mode"] == "balanced"
        assert report["result"] == result.to_dict()
        assert report["gate"] == {
            "fail_on": "incompatible",
            "targets": ["claude-desktop", "cowork", "claude-code"],
            "passed": False,
            "failures": [{"target": "claude-desktop", "verdict": "incompatible"}],
        }
        assert json.loads(output.read_text(encoding="utf-8")) == report

    def test_multi_report(self, result):
        entries = [
            BatchEntry(path="/m/analyzer-plugin", result=result),
            BatchEntry(path="/m/broken", error="No plugin manifest found"),
        ]
        report = JSONReporter(load_config()).generate_multi(entries)

        assert report["multi_scan"] is True
        assert report["aggregate"]["total_scans"] == 2
        assert report["aggregate"]["analyzed_count"] == 1
        assert report["aggregate"]["error_count"] == 1
        assert report["aggregate"]["gate_failures"] == 1
        assert report["aggregate"]["by_target"]["claude-desktop"]["incompatible"] == 1
        assert report["aggregate"]["by_target"]["claude-code"]["compatible"] == 1
        assert report["scans"][1] == {
            "metadata": {"plugin_path": "/m/broken"},
            "error": "No plugin manifest found",
        }


class TestOutputPathValidation:
    def test_rejects_sensitive_directories(self):
        with pytest.raises(ValueError, match="sensitive"):
            _validate_output_path("/etc/report.json")

    def test_rejects_missing_parent(self, tmp_path):
        with pytest.raises(ValueError, match="does not exist"):
            _validate_output_path(str(tmp_path / "nope" / "report.json"))

    def test_rejects_overwriting_scripts(self, tmp_path):
        script = tmp_path / "run.py"
        script.write_text("print(1)", encoding="utf-8")
        with pytest.raises(ValueError, match="executable"):
            _validate_output_path(str(script))

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            _validate_output_path("")


class TestCSVReporter:
    def test_one_row_per_evidence(self, result, tmp_path):
        path = CSVReporter().generate(result, str(tmp_path / "out.csv"))
        with open(path, newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))

        assert rows[0] == HEADERS
        assert rows[0][-3:] == ["claude-desktop", "cowork", "claude-code"]
        assert len(rows) == 1 + len(result.evidence)
        pip_row = next(r for r in rows[1:] if r[4] == "pip install")
        assert pip_row[0] == "analyzer-plugin"
        assert pip_row[1] == "code-block"
        assert pip_row[-3:] == ["incompatible", "compatible", "compatible"]

    def test_multi_skips_failed_entries(self, result, tmp_path):
        entries = [BatchEntry(path="a", result=result), BatchEntry(path="b", error="bad")]
        path = CSVReporter().generate_multi(entries, str(tmp_path / "all.csv"))
        with open(path, newline="", encoding="utf-8") as fh:
            assert len(list(csv.reader(fh))) == 1 + len(result.evidence)

    def test_formula_injection_defused(self):
        evidence = Evidence(
            source="hook",
            file="=cmd|' /C calc'!A0",
            signal="hook-command: bash",
            detail="@SUM(1+1)",
            impact=make_impact(IMPACT_INCOMPATIBLE_DESKTOP),
        )
        result = CompatibilityResult(plugin="+evil", analyzed=make_impact(), evidence=[evidence])
        rows = list(csv.reader(CSVReporter().generate_string([result]).splitlines()))

        assert rows[1][0] == "\t+evil"
        assert rows[1][2].startswith("\t=")
        assert rows[1][5].startswith("\t@")

    def test_defuse_leaves_plain_text(self):
        assert _defuse_csv_cell("python3") == "python3"
        assert _defuse_csv_cell("") == ""
