"""
Claude Plugin Compatibility Scanner - Main CLI Entry Point

Usage:
    compat-scanner <plugin_path> [options]
    compat-scanner <marketplace_path> --discover [options]
    compat-scanner rules [--list|--stats|--export FILE]
"""

import argparse
import json
import logging
import os
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from compat_scanner.config import ScanConfig, load_config
from compat_scanner.config.modes import list_modes
from compat_scanner.core.compatibility_analyzer import BatchEntry, CompatibilityAnalyzer
from compat_scanner.core.plugin_parser import PluginManifestError
from compat_scanner.core.types import ALL_TARGETS, CompatibilityResult, Verdict
from compat_scanner.reporters.csv_reporter import CSVReporter
from compat_scanner.reporters.json_reporter import JSONReporter
from compat_scanner.rules import get_rule_loader, reload_rules
from compat_scanner.utils.discovery import discover_plugins
from compat_scanner.utils.logging_setup import setup_logging


logger = logging.getLogger("compat_scanner.main")


VERDICT_MARKERS = {
    Verdict.COMPATIBLE: "✓",
    Verdict.NEEDS_REVIEW: "?",
    Verdict.INCOMPATIBLE: "✗",
}


def _sanitize_traceback(tb_str: str) -> str:
    """Redact the home directory from traceback strings before printing."""
    home = os.path.expanduser("~")
    return tb_str.replace(home, "~")


class PluginCompatScanner:
    """Orchestrates analysis, reporting and gating for one or many plugins."""

    def __init__(self, verbose: bool = False, config: Optional[ScanConfig] = None):
        """Initialize the scanner.

        Args:
            verbose: Enable verbose output.
            config: Optional ScanConfig; uses defaults if not provided.
        """
        self.verbose = verbose
        self.config = config or ScanConfig()

        self.rule_loader = get_rule_loader()
        self.analyzer = CompatibilityAnalyzer(self.config, self.rule_loader)

        # Reporters
        self.json_reporter = JSONReporter(self.config)
        self.csv_reporter = CSVReporter()

        if self.rule_loader.errors:
            logger.warning("%d rule loading error(s)", len(self.rule_loader.errors))
            for error in self.rule_loader.errors[:5]:
                logger.warning("  %s", error)

    def scan_plugin(self, plugin_path: str) -> CompatibilityResult:
        """Analyze a single plugin directory."""
        # Progress is logged to stderr; stdout carries only the report
        logger.info("Analyzing plugin: %s", plugin_path)
        result = self.analyzer.analyze(plugin_path)
        logger.info("  Files: %d, evidence: %d", result.summary.total_files, len(result.evidence))
        for error in result.errors:
            logger.debug("  %s", error)
        return result

    def scan_many(self, plugin_paths: List[str]) -> List[BatchEntry]:
        """Analyze several plugin directories as one batch."""
        return self.analyzer.analyze_many(plugin_paths, self.config.performance.workers)

    def generate_report(
        self,
        result: CompatibilityResult,
        output_format: str = "json",
        output_path: Optional[str] = None,
        plugin_path: Optional[str] = None,
    ) -> Any:
        """
        Generate a report in the specified format.

        Returns:
            The report dict for json, the CSV text (or written path) for csv.
        """
        if output_format == "json":
            return self.json_reporter.generate(result, output_path, plugin_path=plugin_path)
        elif output_format == "csv":
            if output_path:
                return self.csv_reporter.generate(result, output_path)
            return self.csv_reporter.generate_string([result])
        else:
            raise ValueError(f"Unknown output format: {output_format}")

    def generate_multi_report(
        self,
        entries: List[BatchEntry],
        output_format: str = "json",
        output_path: Optional[str] = None,
    ) -> Any:
        """Generate a combined report for a batch of plugins."""
        if output_format == "json":
            return self.json_reporter.generate_multi(entries, output_path)
        elif output_format == "csv":
            if output_path:
                return self.csv_reporter.generate_multi(entries, output_path)
            return self.csv_reporter.generate_string([e.result for e in entries if e.result])
        else:
            raise ValueError(f"Unknown output format: {output_format}")

    def gate_passed(self, result: CompatibilityResult) -> bool:
        failures = self.config.gate_failures(result)
        for target, verdict in failures:
            logger.info("Failing %s: %s is %s", result.plugin, target.value, verdict.value)
        return not failures


def print_summary(result: CompatibilityResult) -> None:
    """Print per-target verdicts and the evidence behind them to stdout."""
    title = result.plugin + (f" v{result.version}" if result.version else "")

    print("\n" + "=" * 60)
    print(f"COMPATIBILITY: {title}")
    print("=" * 60)
    for target in ALL_TARGETS:
        verdict = result.analyzed[target]
        print(f"  {VERDICT_MARKERS[verdict]} {target.value:<16} {verdict.value}")
    if result.declared is not None:
        print(f"  Declared targets: {', '.join(result.declared) or '(none)'}")

    summary = result.summary
    print(
        f"\nFiles: {summary.total_files} total, {summary.skill_files} markdown, "
        f"{summary.script_files} scripts, {summary.hook_files} hook configs, "
        f"{summary.mcp_configs} MCP configs"
    )

    if result.evidence:
        print(f"\nEVIDENCE ({len(result.evidence)}):")
        print("-" * 60)
        for e in result.evidence:
            location = f"{e.file}:{e.line}" if e.line is not None else e.file
            impact = ", ".join(
                f"{t.value}={e.impact[t].value}"
                for t in ALL_TARGETS
                if e.impact[t] is not Verdict.COMPATIBLE
            )
            print(f"  [{e.source}] {e.signal}")
            print(f"      {location}")
            print(f"      {e.detail}")
            print(f"      Impact: {impact}")

    if result.errors:
        print(f"\nERRORS ({len(result.errors)}):")
        for error in result.errors:
            print(f"  - {error}")
    print("=" * 60)


def print_batch_summary(entries: List[BatchEntry]) -> None:
    """Print one line per plugin of a sweep."""
    print("\n" + "=" * 60)
    print(f"SWEEP SUMMARY: {len(entries)} plugin(s)")
    print("=" * 60)
    header = "  ".join(f"{t.value:<14}" for t in ALL_TARGETS)
    print(f"  {'plugin':<28}{header}")
    for entry in entries:
        if entry.result is None:
            print(f"  {Path(entry.path).name:<28}ERROR: {entry.error}")
            continue
        cells = "  ".join(f"{entry.result.analyzed[t].value:<14}" for t in ALL_TARGETS)
        print(f"  {entry.result.plugin[:27]:<28}{cells}")
    print("=" * 60)


def handle_rules_cli(argv: Sequence[str]) -> None:
    """Handle the 'rules' CLI subcommand."""
    parser = argparse.ArgumentParser(
        prog="compat-scanner rules",
        description="Inspect compatibility rule tables"
    )
    parser.add_argument(
        "--list", "-l",
        action="store_true",
        dest="list_rules",
        help="List command rules in evaluation order"
    )
    parser.add_argument(
        "--stats", "-s",
        action="store_true",
        help="Show rule statistics"
    )
    parser.add_argument(
        "--reload", "-r",
        action="store_true",
        help="Reload rules from disk"
    )
    parser.add_argument(
        "--export", "-e",
        metavar="FILE",
        help="Export all rules to JSON file (use '-' for stdout)"
    )

    args = parser.parse_args(argv)
    handle_rules_command(args)


def handle_rules_command(args) -> None:
    """Handle the 'rules' subcommand."""
    loader = get_rule_loader()

    if args.reload:
        loader = reload_rules()
        print("Rules reloaded from disk.")

    if args.stats:
        stats = loader.get_stats()
        print("\n" + "=" * 60)
        print("RULE STATISTICS")
        print("=" * 60)
        print(f"Command rules:    {stats['command_rules']}")
        print(f"Binaries:         {stats['binaries']}")
        print(f"Script rules:     {stats['script_rules']}")
        print(f"Import rules:     {stats['import_rules']}")
        print(f"Restricted tools: {stats['restricted_tools']}")
        print(f"Loading errors:   {stats['errors']}")
        return

    if args.export:
        output = json.dumps(loader.to_dict(), indent=2)
        if args.export == "-":
            print(output)
        else:
            with open(args.export, "w", encoding="utf-8") as f:
                f.write(output)
            print(f"Rules exported to: {args.export}")
        return

    # Default: list command rules in evaluation order
    print(f"\nCommand rules ({len(loader.command_rules)}, first match wins):\n")
    for rule in loader.command_rules:
        print(f"  {rule.priority:>4}  {rule.signal:<14} {rule.impact_name:<36} {rule.pattern}")
    print(f"\nBinaries: {', '.join(sorted(loader.binaries))}")
    print(f"Script extensions: {', '.join(sorted(loader.script_rules))}")
    print(f"Restricted tools: {', '.join(sorted(loader.restricted_tools))}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compat-scanner",
        description="Claude Plugin Compatibility Scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a local plugin
  compat-scanner /path/to/plugin

  # Machine-readable report
  compat-scanner /path/to/plugin --format json --output-file report.json

  # Sweep a marketplace repo with 8 workers
  compat-scanner /path/to/marketplace --discover --workers 8

  # Publishing gate: fail unless compatible on Claude Desktop
  compat-scanner /path/to/plugin --fail-on needs-review --target claude-desktop

  # Show the command rule table
  compat-scanner rules --list

Environment variables:
  COMPAT_SCANNER_MODE       - Scan mode (strict, balanced, permissive)
  COMPAT_SCANNER_WORKERS    - Worker threads
  COMPAT_SCANNER_LOG_LEVEL  - Log level (DEBUG, INFO, WARNING, ERROR)
  COMPAT_SCANNER_VERBOSE    - Verbose output (1/true/yes)
        """
    )

    parser.add_argument(
        "plugin_path",
        nargs="?",
        help="Path to plugin directory (or marketplace tree with --discover)"
    )

    parser.add_argument(
        "--discover",
        action="store_true",
        default=False,
        help="Recursively discover all plugins in the given directory and analyze each one",
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker threads for scanners and sweeps (default: 1)"
    )

    parser.add_argument(
        "--format", "-o",
        choices=["text", "json", "csv"],
        default=None,
        dest="output_format",
        help="Output format (default: text)"
    )

    parser.add_argument(
        "--output-file", "-f",
        help="Output file path (prints to stdout if not specified)"
    )

    parser.add_argument(
        "--config",
        help="Path to compat-scanner.yaml (auto-discovers if not specified)"
    )

    parser.add_argument(
        "--mode",
        choices=["strict", "balanced", "permissive"],
        default=None,
        help="Scan mode: strict (fail on needs-review), balanced (default), permissive (report only)"
    )

    parser.add_argument(
        "--list-modes",
        action="store_true",
        help="List scan modes and exit"
    )

    parser.add_argument(
        "--fail-on",
        choices=["needs-review", "incompatible"],
        default=None,
        help="Exit with non-zero code if any gated target has this verdict or worse"
    )

    parser.add_argument(
        "--target", "-t",
        action="append",
        choices=[t.value for t in ALL_TARGETS],
        default=None,
        dest="targets",
        help="Restrict the gate to this target (repeatable; default: all targets)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress summary output"
    )

    return parser


def _cli_overrides(args) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.mode:
        overrides["scan_mode"] = args.mode
    if args.workers is not None:
        overrides.setdefault("performance", {})["workers"] = args.workers
    if args.output_format:
        overrides.setdefault("output", {})["format"] = args.output_format
    if args.output_file:
        overrides.setdefault("output", {})["output_file"] = args.output_file
    if args.verbose:
        overrides.setdefault("output", {})["verbose"] = True
    if args.fail_on:
        overrides.setdefault("gate", {})["fail_on"] = args.fail_on
    if args.targets:
        overrides.setdefault("gate", {})["targets"] = list(args.targets)
    return overrides


def _emit(report: Any, output_format: str, output_file: Optional[str], quiet: bool) -> None:
    """Print a generated report, or say where it was written."""
    if output_file:
        if not quiet:
            print(f"\n{output_format.upper()} report saved to: {output_file}")
        return
    if output_format == "json":
        print(json.dumps(report, indent=2))
    elif output_format == "csv":
        sys.stdout.write(report)


def _run_discover(scanner: PluginCompatScanner, args, config: ScanConfig) -> int:
    root = Path(args.plugin_path)
    if not root.exists():
        print(f"Error: Path does not exist: {args.plugin_path}", file=sys.stderr)
        return 1

    plugins = discover_plugins(str(root))
    if not plugins:
        print("No plugins discovered in the given path", file=sys.stderr)
        return 1

    output_format = config.output.format
    output_file = config.output.output_file
    show_text = not args.quiet and (output_format == "text" or output_file)

    if show_text:
        print(f"\n{'='*60}")
        print(f"DISCOVERY: Found {len(plugins)} plugin(s)")
        print(f"{'='*60}")
        for i, p in enumerate(plugins, 1):
            print(f"  {i}. {p.name} @ {p.path}")

    entries = scanner.scan_many([p.path for p in plugins])

    if show_text:
        if scanner.verbose:
            for entry in entries:
                if entry.result is not None:
                    print_summary(entry.result)
        print_batch_summary(entries)

    if output_format != "text":
        report = scanner.generate_multi_report(entries, output_format, output_file)
        _emit(report, output_format, output_file, args.quiet)

    exit_code = 0
    for entry in entries:
        if entry.result is None:
            exit_code = 1
        elif not scanner.gate_passed(entry.result):
            exit_code = 1
    return exit_code


def _run_single(scanner: PluginCompatScanner, args, config: ScanConfig) -> int:
    plugin_path = Path(args.plugin_path)
    if not plugin_path.exists():
        print(f"Error: Plugin path does not exist: {args.plugin_path}", file=sys.stderr)
        return 1

    result = scanner.scan_plugin(str(plugin_path))

    output_format = config.output.format
    output_file = config.output.output_file

    # Keep stdout parseable when the report itself goes there
    if not args.quiet and (output_format == "text" or output_file):
        print_summary(result)

    if output_format != "text":
        report = scanner.generate_report(result, output_format, output_file, str(plugin_path))
        _emit(report, output_format, output_file, args.quiet)

    return 0 if scanner.gate_passed(result) else 1


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)

    # Check if first arg is 'rules' subcommand
    if argv and argv[0] == "rules":
        handle_rules_cli(argv[1:])
        sys.exit(0)

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.list_modes:
        for mode in list_modes():
            print(f"  {mode['name']:<12} {mode['description']}")
        sys.exit(0)

    if not args.plugin_path:
        parser.error("plugin_path is required")

    try:
        overrides = _cli_overrides(args)
        config = load_config(
            config_path=args.config,
            cli_overrides=overrides if overrides else None,
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    verbose = args.verbose or config.output.verbose
    setup_logging(
        level=config.logging.level,
        verbose=verbose,
        quiet=args.quiet,
        log_file=config.logging.file,
    )

    logger.info("Scan mode: %s", config.scan_mode)

    try:
        scanner = PluginCompatScanner(verbose=verbose, config=config)
        if args.discover:
            sys.exit(_run_discover(scanner, args, config))
        sys.exit(_run_single(scanner, args, config))

    except (PluginManifestError, ValueError) as e:
        print(f"Validation error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        if not verbose:
            print("Error: An error occurred during scanning. Use --verbose for details.", file=sys.stderr)
        else:
            print(f"Error: {e}", file=sys.stderr)
            print(_sanitize_traceback(traceback.format_exc()), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
