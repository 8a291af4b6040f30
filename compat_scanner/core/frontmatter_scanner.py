"""
Frontmatter Scanner - Turns author declarations into compatibility evidence.

Covers two kinds of declaration:
- allowed-tools in skill frontmatter naming tools that need local access
- targets lists (skill frontmatter or plugin manifest) that leave out surfaces

Declaration evidence is merged like any other evidence; it neither
overrides nor outranks what the other scanners find.
"""

import re
from typing import Any, Dict, List, Optional

from .types import ALL_TARGETS, Evidence, Verdict, make_impact
from ..rules.rule_loader import RuleLoader, get_rule_loader


# `Bash`, `Bash(git add:*)`, `mcp__server__tool`
_TOOL_TOKEN_RE = re.compile(r"[\w-]+(?:\([^)]*\))?")


def _tool_names(allowed_tools: Any) -> List[str]:
    """Normalize allowed-tools (list or comma/space separated string) to tool names."""
    if isinstance(allowed_tools, str):
        tokens = _TOOL_TOKEN_RE.findall(allowed_tools)
    elif isinstance(allowed_tools, list):
        tokens = [str(tool) for tool in allowed_tools if tool is not None]
    else:
        return []

    names = []
    for token in tokens:
        name = token.split("(", 1)[0].strip()
        if name:
            names.append(name)
    return names


def scan_allowed_tools(
    allowed_tools: Any, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """Return evidence for each restricted tool in an allowed-tools list."""
    loader = rule_loader or get_rule_loader()
    evidence: List[Evidence] = []
    seen = set()

    for tool_name in _tool_names(allowed_tools):
        restriction = loader.restricted_tools.get(tool_name)
        if restriction is None or tool_name in seen:
            continue
        seen.add(tool_name)
        evidence.append(Evidence(
            source="frontmatter",
            file=file_path,
            signal=f"allowed-tools: {tool_name}",
            detail=f'Skill requires "{tool_name}" tool which needs local environment access',
            impact=restriction.make_impact(),
        ))

    return evidence


def scan_targets_declaration(targets: Any, file_path: str) -> Optional[Evidence]:
    """
    Turn an author-declared targets list into declaration evidence.

    Surfaces left out of the list are marked incompatible. Returns None when
    every surface is declared or the value is not a list.
    """
    if not isinstance(targets, list):
        return None

    declared = [str(t) for t in targets]
    declared_set = set(declared)
    excluded = [t for t in ALL_TARGETS if t.value not in declared_set]
    if not excluded:
        return None

    impact = make_impact()
    for target in excluded:
        impact[target] = Verdict.INCOMPATIBLE

    listed = ", ".join(declared)
    not_listed = ", ".join(t.value for t in excluded)
    return Evidence(
        source="declaration",
        file=file_path,
        signal=f"targets: [{listed}]",
        detail=f"Author declares plugin targets: {listed}. Not listed: {not_listed}",
        impact=impact,
    )


def scan_frontmatter(
    fields: Any, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """
    Scan already-parsed frontmatter fields of a skill/command/agent document.

    Checks ``allowed-tools`` for restricted tools and ``targets`` for
    author-declared surfaces.
    """
    if not isinstance(fields, dict):
        return []

    evidence: List[Evidence] = []

    allowed_tools = fields.get("allowed-tools")
    if allowed_tools is not None:
        evidence.extend(scan_allowed_tools(allowed_tools, file_path, rule_loader))

    target_evidence = scan_targets_declaration(fields.get("targets"), file_path)
    if target_evidence:
        evidence.append(target_evidence)

    return evidence


def scan_manifest_declaration(manifest: Dict[str, Any], file_path: str) -> List[Evidence]:
    """Scan the plugin manifest's ``targets`` field."""
    if not isinstance(manifest, dict):
        return []
    target_evidence = scan_targets_declaration(manifest.get("targets"), file_path)
    return [target_evidence] if target_evidence else []
