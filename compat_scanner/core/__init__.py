"""Core components for parsing plugins and collecting compatibility evidence."""

from .types import (
    ALL_TARGETS,
    CompatibilityResult,
    Evidence,
    ScanSummary,
    Target,
    Verdict,
    make_impact,
)
from .command_classifier import Classification, classify_command, classify_command_binary
from .code_block_scanner import scan_code_blocks
from .hook_scanner import scan_hooks_config
from .mcp_scanner import scan_mcp_config
from .script_scanner import classify_script_file, scan_node_imports, scan_python_imports
from .frontmatter_scanner import scan_frontmatter, scan_manifest_declaration
from .plugin_parser import ParsedPlugin, PluginManifestError, PluginParser
from .compatibility_analyzer import (
    BatchEntry,
    CompatibilityAnalyzer,
    aggregate_verdicts,
    analyze_compatibility,
    analyze_many,
)

__all__ = [
    "ALL_TARGETS",
    "CompatibilityResult",
    "Evidence",
    "ScanSummary",
    "Target",
    "Verdict",
    "make_impact",
    "Classification",
    "classify_command",
    "classify_command_binary",
    "scan_code_blocks",
    "scan_hooks_config",
    "scan_mcp_config",
    "classify_script_file",
    "scan_node_imports",
    "scan_python_imports",
    "scan_frontmatter",
    "scan_manifest_declaration",
    "ParsedPlugin",
    "PluginManifestError",
    "PluginParser",
    "BatchEntry",
    "CompatibilityAnalyzer",
    "aggregate_verdicts",
    "analyze_compatibility",
    "analyze_many",
]
