"""
Scan Mode Profiles - Predefined gate profiles for different curation use cases.

Modes:
- strict:     Every scanner enabled; anything short of compatible on any target
              fails the gate. Good for marketplace approval.
- balanced:   Default. Every scanner enabled; only incompatible verdicts fail.
- permissive: Import scanning off, report only. Good for quick surveys of
              large or legacy marketplaces.
"""

from typing import Any, Dict


# ── Strict Mode ────────────────────────────────────────────────────
STRICT_OVERRIDES: Dict[str, Any] = {
    "scanners": {
        "declaration": True,
        "frontmatter": True,
        "code_block": True,
        "script": True,
        "script_import": True,
        "hook": True,
        "mcp": True,
    },
    "gate": {
        "fail_on": "needs-review",
    },
}


# ── Balanced Mode (default) ───────────────────────────────────────
BALANCED_OVERRIDES: Dict[str, Any] = {
    "scanners": {
        "declaration": True,
        "frontmatter": True,
        "code_block": True,
        "script": True,
        "script_import": True,
        "hook": True,
        "mcp": True,
    },
    "gate": {
        "fail_on": "incompatible",
    },
}


# ── Permissive Mode ───────────────────────────────────────────────
PERMISSIVE_OVERRIDES: Dict[str, Any] = {
    "scanners": {
        "script_import": False,  # Skip import parsing for speed
    },
    "gate": {
        "fail_on": None,
    },
}


MODE_MAP = {
    "strict": STRICT_OVERRIDES,
    "balanced": BALANCED_OVERRIDES,
    "permissive": PERMISSIVE_OVERRIDES,
}


def get_mode_overrides(mode: str) -> Dict[str, Any]:
    """Get configuration overrides for a scan mode.

    Args:
        mode: One of "strict", "balanced", "permissive".

    Returns:
        Dict of config overrides to apply.
    """
    return MODE_MAP.get(str(mode).lower(), BALANCED_OVERRIDES).copy()


def list_modes() -> list:
    """List all available scan modes with descriptions."""
    return [
        {
            "name": "strict",
            "description": "All scanners; fail on needs-review or worse. For marketplace approval.",
        },
        {
            "name": "balanced",
            "description": "All scanners; fail on incompatible only. Default.",
        },
        {
            "name": "permissive",
            "description": "No import scanning, never fails. For quick surveys.",
        },
    ]
