"""
CSV Reporter - Exports compatibility evidence as CSV.

One row per evidence item with one verdict column per target, suitable for
import into spreadsheets when curating a marketplace.
"""

import csv
import io
from pathlib import Path
from typing import List, Optional

from ..core.compatibility_analyzer import BatchEntry
from ..core.types import ALL_TARGETS, CompatibilityResult
from .json_reporter import _validate_output_path

_CSV_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def _defuse_csv_cell(value: str) -> str:
    """Neutralize CSV formula injection by prefixing dangerous cells with a tab."""
    if value and value[0] in _CSV_FORMULA_PREFIXES:
        return "\t" + value
    return value


def _sanitize(text: Optional[str], max_length: int = 0) -> str:
    """Sanitize text for CSV: collapse whitespace, optionally truncate."""
    if text is None:
        return ""
    text = " ".join(str(text).split())
    if max_length and len(text) > max_length:
        text = text[: max_length - 3] + "..."
    return _defuse_csv_cell(text)


HEADERS = [
    "Plugin",
    "Source",
    "File",
    "Line",
    "Signal",
    "Detail",
] + [target.value for target in ALL_TARGETS]


def _rows_for(result: CompatibilityResult) -> List[List[str]]:
    name = _sanitize(result.plugin) or "unknown"
    rows: List[List[str]] = []
    for e in result.evidence:
        rows.append([
            name,
            _defuse_csv_cell(e.source),
            _sanitize(e.file),
            str(e.line) if e.line is not None else "",
            _sanitize(e.signal, max_length=200),
            _sanitize(e.detail, max_length=500),
        ] + [e.impact[target].value for target in ALL_TARGETS])
    return rows


def _write_rows(csv_path: Path, rows: List[List[str]]) -> None:
    with open(csv_path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_ALL)
        writer.writerow(HEADERS)
        writer.writerows(rows)


class CSVReporter:
    """Generates CSV reports from compatibility results."""

    def generate(self, result: CompatibilityResult, output_path: Optional[str] = None) -> str:
        """
        Generate a CSV report for one plugin.

        Args:
            result: Compatibility result to export.
            output_path: Explicit CSV file path. If ``None``, the path is
                         derived from the plugin name in the current directory.

        Returns:
            The absolute path of the written CSV file.
        """
        if output_path:
            csv_path = _validate_output_path(output_path)
        else:
            safe_name = _sanitize(result.plugin).strip().replace(" ", "-") or "scan"
            csv_path = Path(f"{safe_name}-compatibility.csv").resolve()

        _write_rows(csv_path, _rows_for(result))
        return str(csv_path)

    def generate_multi(self, entries: List[BatchEntry], output_path: Optional[str] = None) -> str:
        """Generate one CSV for a whole sweep; plugins that failed to parse are skipped."""
        if output_path:
            csv_path = _validate_output_path(output_path)
        else:
            csv_path = Path("multi-scan-compatibility.csv").resolve()

        rows: List[List[str]] = []
        for entry in entries:
            if entry.result is not None:
                rows.extend(_rows_for(entry.result))

        _write_rows(csv_path, rows)
        return str(csv_path)

    def generate_string(self, results: List[CompatibilityResult]) -> str:
        """Generate CSV content as an in-memory string (for stdout / pipes)."""
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL)
        writer.writerow(HEADERS)
        for result in results:
            writer.writerows(_rows_for(result))
        return buf.getvalue()
