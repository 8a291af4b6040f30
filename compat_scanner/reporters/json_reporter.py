"""
JSON Reporter - Outputs compatibility results in JSON format.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..config.scan_config import ScanConfig
from ..core.compatibility_analyzer import BatchEntry
from ..core.types import ALL_TARGETS, CompatibilityResult, Verdict


SENSITIVE_DIRS = [
    "/etc", "/usr", "/bin", "/sbin", "/var", "/boot", "/proc", "/sys",
    "/System", "/Library",  # macOS
    "C:\\Windows", "C:\\Program Files",  # Windows
]


def _validate_output_path(output_path: str) -> Path:
    """
    Validate and sanitize output file path.

    Args:
        output_path: User-provided output path

    Returns:
        Validated Path object

    Raises:
        ValueError: If path is invalid or potentially dangerous
    """
    if not output_path:
        raise ValueError("Output path cannot be empty")

    resolved = Path(output_path).resolve()

    # Block writes to sensitive system directories
    for sensitive in SENSITIVE_DIRS:
        try:
            resolved.relative_to(sensitive)
        except ValueError:
            continue
        raise ValueError(f"Cannot write to sensitive directory: {sensitive}")

    parent = resolved.parent
    if not parent.exists():
        raise ValueError(f"Parent directory does not exist: {parent}")

    if not os.access(parent, os.W_OK):
        raise ValueError(f"Parent directory is not writable: {parent}")

    # Block overwriting executables and scripts
    dangerous_extensions = [".exe", ".dll", ".so", ".sh", ".bash", ".zsh", ".py", ".js", ".rb"]
    if resolved.suffix.lower() in dangerous_extensions and resolved.exists():
        raise ValueError(f"Cannot overwrite executable file: {resolved}")

    return resolved


def _write_json(report: Dict[str, Any], output_path: str) -> None:
    validated_path = _validate_output_path(output_path)
    with open(validated_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)
        f.write("\n")


class JSONReporter:
    """Generates JSON reports from compatibility results."""

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or ScanConfig()

    def generate(
        self,
        result: CompatibilityResult,
        output_path: Optional[str] = None,
        plugin_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Generate a JSON report for one plugin."""
        report = {
            "metadata": self._metadata(plugin_path),
            "result": result.to_dict(),
            "gate": self._gate(result),
        }

        if output_path:
            _write_json(report, output_path)

        return report

    def generate_multi(
        self,
        entries: List[BatchEntry],
        output_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Generate a combined JSON report for a marketplace sweep.

        Plugins that could not be analyzed appear with their error in
        place of a result.
        """
        scans: List[Dict[str, Any]] = []
        by_target = {
            target.value: {verdict.value: 0 for verdict in Verdict}
            for target in ALL_TARGETS
        }
        error_count = 0
        gate_failures = 0

        for entry in entries:
            if entry.result is None:
                error_count += 1
                scans.append({
                    "metadata": {"plugin_path": entry.path},
                    "error": entry.error,
                })
                continue

            single = self.generate(entry.result, plugin_path=entry.path)
            scans.append(single)
            if not single["gate"]["passed"]:
                gate_failures += 1
            for target in ALL_TARGETS:
                by_target[target.value][entry.result.analyzed[target].value] += 1

        report: Dict[str, Any] = {
            "multi_scan": True,
            "metadata": self._metadata(None),
            "aggregate": {
                "total_scans": len(entries),
                "analyzed_count": len(entries) - error_count,
                "error_count": error_count,
                "gate_failures": gate_failures,
                "by_target": by_target,
            },
            "scans": scans,
        }

        if output_path:
            _write_json(report, output_path)

        return report

    def _metadata(self, plugin_path: Optional[str]) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "scanner_version": __version__,
            "scan_timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "scan_mode": self.config.scan_mode,
        }
        if plugin_path:
            metadata["plugin_path"] = Path(plugin_path).name
        return metadata

    def _gate(self, result: CompatibilityResult) -> Dict[str, Any]:
        failures = self.config.gate_failures(result)
        return {
            "fail_on": self.config.gate.fail_on,
            "targets": [t.value for t in self.config.gate_targets()],
            "passed": not failures,
            "failures": [
                {"target": target.value, "verdict": verdict.value}
                for target, verdict in failures
            ],
        }
