"""
Compatibility Analyzer - Runs every evidence scanner over a plugin and
aggregates the results into per-target verdicts.

Pipeline:
1. Parse the manifest and list the plugin's files (PluginParser)
2. Build one scan task per (file, scanner) in a fixed order
3. Run the tasks inline or on a thread pool, collecting results by task index
4. Drop informational (all-compatible) evidence
5. Merge what is left, worst evidence wins
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .code_block_scanner import scan_code_blocks
from .frontmatter_scanner import scan_frontmatter, scan_manifest_declaration
from .hook_scanner import scan_hooks_config
from .mcp_scanner import scan_mcp_config
from .plugin_parser import ParsedPlugin, PluginManifestError, PluginParser
from .script_scanner import classify_script_file, scan_script_imports
from .types import (
    ALL_TARGETS,
    CompatibilityResult,
    Evidence,
    ImpactVector,
    ScanSummary,
    Verdict,
)
from ..config.scan_config import ScanConfig
from ..rules.rule_loader import RuleLoader, get_rule_loader


logger = logging.getLogger(__name__)


# (label, thunk); the label names the scanner and file for error messages
ScanTask = Tuple[str, Callable[[], List[Evidence]]]


def aggregate_verdicts(evidence: Iterable[Evidence]) -> ImpactVector:
    """
    Compute the per-target verdict as the worst impact across all evidence.

    Every target defaults to compatible, so no evidence means compatible
    everywhere. Adding evidence can only keep or worsen a verdict.
    """
    result: ImpactVector = {target: Verdict.COMPATIBLE for target in ALL_TARGETS}
    for item in evidence:
        for target in ALL_TARGETS:
            if item.impact[target].rank > result[target].rank:
                result[target] = item.impact[target]
    return result


@dataclass
class BatchEntry:
    """Outcome of analyzing one plugin in a batch sweep."""

    path: str
    result: Optional[CompatibilityResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


class CompatibilityAnalyzer:
    """Analyzes plugin directories for compatibility across all targets."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        rule_loader: Optional[RuleLoader] = None,
    ):
        self.config = config or ScanConfig()
        self.rule_loader = rule_loader or get_rule_loader()

    def analyze(self, plugin_dir: str) -> CompatibilityResult:
        """
        Analyze a plugin directory.

        Raises:
            PluginManifestError: If the directory has no valid plugin manifest.
        """
        parser = PluginParser(plugin_dir, self.config.files)
        parsed = parser.parse()
        logger.debug("Parsed %s: %d file(s)", parsed.manifest.name, len(parsed.files))

        errors = list(parsed.errors)
        tasks = self._build_tasks(parsed, errors)
        batches = self._run_tasks(tasks, errors)

        all_evidence = [item for batch in batches for item in batch]
        meaningful = [item for item in all_evidence if not item.is_informational()]
        logger.debug(
            "%s: %d evidence item(s), %d after dropping informational",
            parsed.manifest.name, len(all_evidence), len(meaningful),
        )

        return CompatibilityResult(
            plugin=parsed.manifest.name,
            version=parsed.manifest.version,
            declared=parsed.manifest.targets,
            analyzed=aggregate_verdicts(meaningful),
            evidence=meaningful,
            summary=self._summarize(parsed),
            errors=errors,
        )

    def analyze_many(
        self, plugin_dirs: List[str], workers: Optional[int] = None
    ) -> List[BatchEntry]:
        """
        Analyze several plugins independently.

        A plugin whose manifest is missing or invalid gets an entry with
        ``error`` set; the rest of the batch still runs. Entries come back
        in input order.
        """
        total = len(plugin_dirs)
        if total == 0:
            return []

        max_workers = workers if workers is not None else self.config.performance.workers
        effective_workers = max(1, min(int(max_workers), total))

        if effective_workers == 1:
            return [self._analyze_entry(path) for path in plugin_dirs]

        ordered: Dict[int, BatchEntry] = {}
        with ThreadPoolExecutor(max_workers=effective_workers) as pool:
            future_to_idx = {
                pool.submit(self._analyze_entry, path): idx
                for idx, path in enumerate(plugin_dirs)
            }
            for future in as_completed(future_to_idx):
                ordered[future_to_idx[future]] = future.result()

        return [ordered[idx] for idx in range(total)]

    # ── Internals ─────────────────────────────────────────────────

    def _analyze_entry(self, plugin_dir: str) -> BatchEntry:
        try:
            return BatchEntry(path=plugin_dir, result=self.analyze(plugin_dir))
        except PluginManifestError as e:
            logger.warning("Skipping %s: %s", plugin_dir, e)
            return BatchEntry(path=plugin_dir, error=str(e))

    def _build_tasks(self, parsed: ParsedPlugin, errors: List[str]) -> List[ScanTask]:
        """Build scan tasks in their fixed evidence order."""
        enabled = self.config.is_scanner_enabled
        loader = self.rule_loader
        tasks: List[ScanTask] = []

        manifest = parsed.manifest
        if enabled("declaration"):
            tasks.append((
                f"declaration:{manifest.path}",
                lambda: scan_manifest_declaration(manifest.raw, manifest.path),
            ))

        for f in parsed.files:
            if f.kind == "markdown" and f.content is not None:
                if enabled("code_block"):
                    tasks.append((
                        f"code_block:{f.path}",
                        lambda f=f: scan_code_blocks(f.content, f.path, loader),
                    ))
                if enabled("frontmatter"):
                    tasks.append((
                        f"frontmatter:{f.path}",
                        lambda f=f: scan_frontmatter(f.frontmatter, f.path, loader),
                    ))

            elif f.kind == "script":
                # Presence needs no content; an unreadable script still counts
                if enabled("script"):
                    tasks.append((
                        f"script:{f.path}",
                        lambda f=f: [e for e in [classify_script_file(f.path, loader)] if e],
                    ))
                if enabled("script_import") and f.content is not None:
                    tasks.append((
                        f"script_import:{f.path}",
                        lambda f=f: scan_script_imports(f.content, f.path, loader),
                    ))

            elif f.kind == "hooks" and f.data is not None:
                if not isinstance(f.data, dict):
                    errors.append(f"Unrecognized hooks config in {f.path}: expected an object")
                elif enabled("hook"):
                    tasks.append((
                        f"hook:{f.path}",
                        lambda f=f: scan_hooks_config(f.data, f.path, loader),
                    ))

            elif f.kind == "mcp" and f.data is not None:
                if not isinstance(f.data, dict):
                    errors.append(f"Unrecognized MCP config in {f.path}: expected an object")
                elif enabled("mcp"):
                    tasks.append((
                        f"mcp:{f.path}",
                        lambda f=f: scan_mcp_config(f.data, f.path, loader),
                    ))

        return tasks

    def _run_tasks(self, tasks: List[ScanTask], errors: List[str]) -> List[List[Evidence]]:
        """Run scan tasks and return their results in task order."""
        total = len(tasks)
        effective_workers = max(1, min(int(self.config.performance.workers), total))

        if effective_workers == 1:
            return [self._run_task(label, thunk, errors) for label, thunk in tasks]

        # Ordered results: index -> evidence list
        ordered: Dict[int, List[Evidence]] = {}
        task_errors: Dict[int, List[str]] = {}
        with ThreadPoolExecutor(max_workers=effective_workers) as pool:
            future_to_idx = {}
            for idx, (label, thunk) in enumerate(tasks):
                task_errors[idx] = []
                future = pool.submit(self._run_task, label, thunk, task_errors[idx])
                future_to_idx[future] = idx

            for future in as_completed(future_to_idx):
                ordered[future_to_idx[future]] = future.result()

        for idx in range(total):
            errors.extend(task_errors[idx])
        return [ordered[idx] for idx in range(total)]

    @staticmethod
    def _run_task(
        label: str, thunk: Callable[[], List[Evidence]], errors: List[str]
    ) -> List[Evidence]:
        try:
            return thunk()
        except Exception as e:  # a scanner defect must not fail the plugin
            message = f"Scanner {label} failed: {e}"
            logger.warning(message)
            errors.append(message)
            return []

    @staticmethod
    def _summarize(parsed: ParsedPlugin) -> ScanSummary:
        return ScanSummary(
            total_files=len(parsed.files),
            skill_files=len(parsed.files_of_kind("markdown")),
            script_files=len(parsed.files_of_kind("script")),
            hook_files=len(parsed.files_of_kind("hooks")),
            mcp_configs=len(parsed.files_of_kind("mcp")),
        )


def analyze_compatibility(
    plugin_dir: str, config: Optional[ScanConfig] = None
) -> CompatibilityResult:
    """
    Analyze a plugin directory for compatibility across all target surfaces.

    Raises:
        PluginManifestError: If the directory has no valid plugin manifest.
    """
    return CompatibilityAnalyzer(config).analyze(plugin_dir)


def analyze_many(
    plugin_dirs: List[str],
    workers: Optional[int] = None,
    config: Optional[ScanConfig] = None,
) -> List[BatchEntry]:
    """Analyze several plugins; one BatchEntry per input, in input order."""
    return CompatibilityAnalyzer(config).analyze_many(plugin_dirs, workers)
