"""Static compatibility analysis for Claude plugins across Claude surfaces."""

__version__ = "0.1.0"

# core first: rules and config import core.types
from .core import (
    ALL_TARGETS,
    CompatibilityResult,
    Evidence,
    PluginManifestError,
    Target,
    Verdict,
    analyze_compatibility,
    analyze_many,
)

__all__ = [
    "__version__",
    "ALL_TARGETS",
    "CompatibilityResult",
    "Evidence",
    "PluginManifestError",
    "Target",
    "Verdict",
    "analyze_compatibility",
    "analyze_many",
]
