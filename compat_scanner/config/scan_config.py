"""
Scan Configuration - Loads and merges configuration from multiple sources.

Priority (highest to lowest):
1. CLI arguments
2. Config file (compat-scanner.yaml)
3. Environment variables
4. Scan mode defaults (strict/balanced/permissive)
5. Built-in defaults
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..core.types import ALL_TARGETS, CompatibilityResult, Target, Verdict


# Verdicts a publishing gate may fail on (None = report only)
GATE_THRESHOLDS = (None, Verdict.NEEDS_REVIEW.value, Verdict.INCOMPATIBLE.value)


# ── Built-in defaults ──────────────────────────────────────────────

DEFAULT_CONFIG: Dict[str, Any] = {
    "scan_mode": "balanced",

    # "scanners" and "gate" are filled in by the scan mode profile

    # File handling
    "files": {
        "markdown_extensions": [".md"],
        "script_extensions": [".py", ".sh", ".bash", ".mjs", ".js", ".cjs"],
        "max_file_size_kb": 1024,
        "skip_dirs": [
            "node_modules",
            ".git",
            "__pycache__",
            ".venv",
            "venv",
        ],
    },

    # Parallelism; 1 = run scanners inline
    "performance": {
        "workers": 1,
    },

    # Output configuration
    "output": {
        "format": "text",       # "text", "json", "csv"
        "output_file": None,
        "verbose": False,
    },

    # Logging
    "logging": {
        "level": "WARNING",
        "file": None,
    },
}


@dataclass
class ScannerConfig:
    """Which evidence scanners to run."""
    declaration: bool = True
    frontmatter: bool = True
    code_block: bool = True
    script: bool = True
    script_import: bool = True
    hook: bool = True
    mcp: bool = True


@dataclass
class FilesConfig:
    """File handling configuration."""
    markdown_extensions: List[str] = field(default_factory=lambda: [".md"])
    script_extensions: List[str] = field(default_factory=lambda: [
        ".py", ".sh", ".bash", ".mjs", ".js", ".cjs"
    ])
    max_file_size_kb: int = 1024
    skip_dirs: List[str] = field(default_factory=lambda: [
        "node_modules", ".git", "__pycache__", ".venv", "venv"
    ])


@dataclass
class PerformanceConfig:
    """Concurrency settings."""
    workers: int = 1


@dataclass
class GateConfig:
    """Publishing gate: which verdicts fail a plugin, and on which targets."""
    fail_on: Optional[str] = None   # "needs-review", "incompatible" or None
    targets: List[str] = field(default_factory=list)   # empty = all targets


@dataclass
class OutputConfig:
    """Output configuration."""
    format: str = "text"
    output_file: Optional[str] = None
    verbose: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "WARNING"
    file: Optional[str] = None


@dataclass
class ScanConfig:
    """Top-level scan configuration."""
    scan_mode: str = "balanced"
    scanners: ScannerConfig = field(default_factory=ScannerConfig)
    files: FilesConfig = field(default_factory=FilesConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    gate: GateConfig = field(default_factory=GateConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def is_scanner_enabled(self, name: str) -> bool:
        """Check if a specific evidence scanner is enabled."""
        return getattr(self.scanners, name, True)

    def gate_targets(self) -> Tuple[Target, ...]:
        """Targets the gate applies to (all when none configured)."""
        if not self.gate.targets:
            return ALL_TARGETS
        wanted = {str(t) for t in self.gate.targets}
        return tuple(t for t in ALL_TARGETS if t.value in wanted)

    def gate_failures(self, result: CompatibilityResult) -> List[Tuple[Target, Verdict]]:
        """Return the (target, verdict) pairs that fail the configured gate."""
        if not self.gate.fail_on:
            return []
        threshold = Verdict(self.gate.fail_on)
        return [
            (target, result.analyzed[target])
            for target in self.gate_targets()
            if result.analyzed[target].rank >= threshold.rank
        ]


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base (override wins)."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_from_file(config_path: Path) -> Dict[str, Any]:
    """Load configuration from a YAML file."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (FileNotFoundError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def _load_from_env() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    env_config: Dict[str, Any] = {}

    # Scan mode
    mode = os.environ.get("COMPAT_SCANNER_MODE")
    if mode:
        env_config["scan_mode"] = mode

    # Workers
    if os.environ.get("COMPAT_SCANNER_WORKERS"):
        env_config.setdefault("performance", {})["workers"] = int(os.environ["COMPAT_SCANNER_WORKERS"])

    # Verbose
    if os.environ.get("COMPAT_SCANNER_VERBOSE", "").lower() in ("1", "true", "yes"):
        env_config.setdefault("output", {})["verbose"] = True

    # Log level
    if os.environ.get("COMPAT_SCANNER_LOG_LEVEL"):
        env_config.setdefault("logging", {})["level"] = os.environ["COMPAT_SCANNER_LOG_LEVEL"]

    return env_config


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return a config section; an empty (null) section means defaults."""
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(value).__name__}")
    return value


def _config_dict_to_dataclass(data: Dict[str, Any]) -> ScanConfig:
    """Convert a merged config dict to a ScanConfig dataclass."""
    return ScanConfig(
        scan_mode=data.get("scan_mode") or "balanced",
        scanners=ScannerConfig(**{
            k: v for k, v in _section(data, "scanners").items()
            if hasattr(ScannerConfig, k)
        }),
        files=FilesConfig(**{
            k: v for k, v in _section(data, "files").items()
            if k in FilesConfig.__dataclass_fields__
        }),
        performance=PerformanceConfig(**{
            k: v for k, v in _section(data, "performance").items()
            if hasattr(PerformanceConfig, k)
        }),
        gate=GateConfig(**{
            k: v for k, v in _section(data, "gate").items()
            if k in GateConfig.__dataclass_fields__
        }),
        output=OutputConfig(**{
            k: v for k, v in _section(data, "output").items()
            if hasattr(OutputConfig, k)
        }),
        logging=LoggingConfig(**{
            k: v for k, v in _section(data, "logging").items()
            if hasattr(LoggingConfig, k)
        }),
    )


def load_config(
    config_path: Optional[str] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
) -> ScanConfig:
    """Load configuration with proper priority merging.

    Priority (highest to lowest):
    1. CLI arguments (cli_overrides)
    2. Config file
    3. Environment variables
    4. Built-in defaults

    Args:
        config_path: Path to a YAML config file. Auto-discovers if None.
        cli_overrides: Dict of CLI-level overrides.

    Returns:
        Merged ScanConfig instance.

    Raises:
        ValueError: If the gate threshold is unknown or a section is not a mapping.
    """
    # Start with built-in defaults
    merged = DEFAULT_CONFIG.copy()

    # Layer 2: Environment variables
    env_config = _load_from_env()
    if env_config:
        merged = _deep_merge(merged, env_config)

    # Layer 3: Config file
    if config_path:
        file_config = _load_from_file(Path(config_path))
    else:
        # Auto-discover a config file in CWD
        candidates = [
            Path.cwd() / "compat-scanner.yaml",
            Path.cwd() / ".compat-scanner.yaml",
        ]
        file_config = {}
        for candidate in candidates:
            if candidate.exists():
                file_config = _load_from_file(candidate)
                break

    if file_config:
        merged = _deep_merge(merged, file_config)

    # Layer 4: CLI overrides (highest priority)
    if cli_overrides:
        merged = _deep_merge(merged, cli_overrides)

    # Mode overrides are LOW priority: only fill in where not explicitly set
    from .modes import get_mode_overrides
    mode = merged.get("scan_mode", "balanced")
    final = _deep_merge(get_mode_overrides(mode), merged)

    config = _config_dict_to_dataclass(final)
    if config.gate.fail_on not in GATE_THRESHOLDS:
        raise ValueError(f"Invalid gate threshold: {config.gate.fail_on}")
    return config
