"""
Compatibility Types - Core value objects for plugin compatibility analysis.

Three Claude surfaces with different runtime capabilities:
- claude-desktop: Most restrictive (MCP servers only, no local scripts)
- cowork: Middle ground (VM with Python 3.10 + Node.js 22, restricted network)
- claude-code: Least restrictive (full local environment)
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


class Target(str, Enum):
    """Claude surface where a plugin can run."""

    CLAUDE_DESKTOP = "claude-desktop"
    COWORK = "cowork"
    CLAUDE_CODE = "claude-code"

    def __str__(self) -> str:
        return self.value


# All targets in order of restrictiveness (most to least)
ALL_TARGETS = (Target.CLAUDE_DESKTOP, Target.COWORK, Target.CLAUDE_CODE)


class Verdict(str, Enum):
    """
    Three-tier verdict to handle ambiguity in static analysis.

    - compatible: High confidence this works on the target
    - needs-review: Signals detected but uncertain, a curator decides
    - incompatible: Definitive evidence it cannot work on the target
    """

    COMPATIBLE = "compatible"
    NEEDS_REVIEW = "needs-review"
    INCOMPATIBLE = "incompatible"

    @property
    def rank(self) -> int:
        return _VERDICT_RANK[self]

    def __str__(self) -> str:
        return self.value


_VERDICT_RANK = {
    Verdict.COMPATIBLE: 0,
    Verdict.NEEDS_REVIEW: 1,
    Verdict.INCOMPATIBLE: 2,
}


def worst(*verdicts: Verdict) -> Verdict:
    """Return the most restrictive verdict (compatible when none given)."""
    result = Verdict.COMPATIBLE
    for verdict in verdicts:
        if verdict.rank > result.rank:
            result = verdict
    return result


# Where a compatibility signal was detected
EVIDENCE_SOURCES = frozenset({
    "declaration",    # Author-declared targets in plugin.json or frontmatter
    "frontmatter",    # allowed-tools in SKILL.md frontmatter
    "code-block",     # Fenced code blocks in markdown
    "script",         # Script files (.py, .sh, .mjs) in plugin directory
    "script-import",  # Import statements inside script files
    "hook",           # Hook handler commands in hooks.json
    "mcp-server",     # MCP server configs in .mcp.json
})


ImpactVector = Dict[Target, Verdict]


def _template(
    desktop: Verdict,
    cowork: Verdict = Verdict.COMPATIBLE,
    code: Verdict = Verdict.COMPATIBLE,
) -> Mapping[Target, Verdict]:
    return MappingProxyType({
        Target.CLAUDE_DESKTOP: desktop,
        Target.COWORK: cowork,
        Target.CLAUDE_CODE: code,
    })


# Shared impact templates. Read-only: use make_impact() for a private copy.
IMPACT_ALL_OK = _template(Verdict.COMPATIBLE)
IMPACT_NEEDS_REVIEW_DESKTOP = _template(Verdict.NEEDS_REVIEW)
IMPACT_INCOMPATIBLE_DESKTOP = _template(Verdict.INCOMPATIBLE)
IMPACT_DESKTOP_INCOMPATIBLE_COWORK_REVIEW = _template(
    Verdict.INCOMPATIBLE, Verdict.NEEDS_REVIEW
)

IMPACT_TEMPLATES: Mapping[str, Mapping[Target, Verdict]] = MappingProxyType({
    "all-ok": IMPACT_ALL_OK,
    "needs-review-desktop": IMPACT_NEEDS_REVIEW_DESKTOP,
    "incompatible-desktop": IMPACT_INCOMPATIBLE_DESKTOP,
    "desktop-incompatible-cowork-review": IMPACT_DESKTOP_INCOMPATIBLE_COWORK_REVIEW,
})


def make_impact(template: Mapping[Target, Verdict] = IMPACT_ALL_OK) -> ImpactVector:
    """Return an independent, fully populated copy of an impact template."""
    return {target: Verdict(template[target]) for target in ALL_TARGETS}


def validate_impact(impact: Mapping[Any, Any]) -> ImpactVector:
    """
    Coerce a mapping into a complete impact vector.

    Raises:
        ValueError: If a target is missing or a value is not a verdict.
    """
    result: ImpactVector = {}
    for target in ALL_TARGETS:
        if target in impact:
            value = impact[target]
        elif target.value in impact:
            value = impact[target.value]
        else:
            raise ValueError(f"Impact vector is missing target: {target.value}")
        result[target] = Verdict(value)
    return result


@dataclass(frozen=True)
class Evidence:
    """A single piece of compatibility evidence found during analysis."""

    source: str
    file: str
    signal: str
    detail: str
    impact: ImpactVector
    line: Optional[int] = None

    def __post_init__(self) -> None:
        if self.source not in EVIDENCE_SOURCES:
            raise ValueError(f"Unknown evidence source: {self.source}")
        # Own the vector so later edits to the caller's dict cannot leak in
        object.__setattr__(self, "impact", validate_impact(self.impact))

    def is_informational(self) -> bool:
        """True when this evidence is compatible on every target."""
        return all(self.impact[t] is Verdict.COMPATIBLE for t in ALL_TARGETS)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "source": self.source,
            "file": self.file,
        }
        if self.line is not None:
            result["line"] = self.line
        result["signal"] = self.signal
        result["detail"] = self.detail
        result["impact"] = {t.value: self.impact[t].value for t in ALL_TARGETS}
        return result


@dataclass(frozen=True)
class ScanSummary:
    """Summary counts for quick assessment."""

    total_files: int = 0
    skill_files: int = 0
    script_files: int = 0
    hook_files: int = 0
    mcp_configs: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalFiles": self.total_files,
            "skillFiles": self.skill_files,
            "scriptFiles": self.script_files,
            "hookFiles": self.hook_files,
            "mcpConfigs": self.mcp_configs,
        }


@dataclass(frozen=True)
class CompatibilityResult:
    """
    Aggregated compatibility result for a single plugin.

    Plugin verdict = worst verdict across all evidence for each target.
    ``declared`` is informational only and never feeds ``analyzed``.
    """

    plugin: str
    analyzed: ImpactVector
    evidence: List[Evidence] = field(default_factory=list)
    summary: ScanSummary = field(default_factory=ScanSummary)
    version: Optional[str] = None
    declared: Optional[List[str]] = None
    errors: List[str] = field(default_factory=list)

    def is_compatible(self, target: Target) -> bool:
        return self.analyzed[Target(target)] is Verdict.COMPATIBLE

    def worst_verdict(self) -> Verdict:
        return worst(*self.analyzed.values())

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"plugin": self.plugin}
        if self.version is not None:
            result["version"] = self.version
        if self.declared is not None:
            result["declared"] = list(self.declared)
        result["analyzed"] = {t.value: self.analyzed[t].value for t in ALL_TARGETS}
        result["evidence"] = [e.to_dict() for e in self.evidence]
        result["summary"] = self.summary.to_dict()
        if self.errors:
            result["errors"] = list(self.errors)
        return result
