"""
Command Classifier - Maps shell commands and launch binaries to runtime signals.

Two entry points:
- classify_command: first match in the ordered command rule table
- classify_command_binary: exact lookup for an isolated executable name

Both always hand back a private copy of the rule's impact vector.
"""

from dataclasses import dataclass
from typing import Optional

from .types import ImpactVector, make_impact
from ..rules.rule_loader import RuleLoader, get_rule_loader


@dataclass(frozen=True)
class Classification:
    """Result of classifying a command: signal name and per-target impact."""

    signal: str
    impact: ImpactVector


def classify_command(
    command: str, rule_loader: Optional[RuleLoader] = None
) -> Optional[Classification]:
    """
    Classify a command string against the ordered command rules.

    Rule order is load-bearing: the first matching rule wins, so
    ``pip install pandas`` is a package install rather than a python call.

    Returns:
        The first matching classification, or None.
    """
    if not isinstance(command, str) or not command:
        return None

    loader = rule_loader or get_rule_loader()
    for rule in loader.command_rules:
        if rule.match(command):
            return Classification(signal=rule.signal, impact=make_impact(rule.impact))
    return None


def classify_command_binary(
    binary: str, rule_loader: Optional[RuleLoader] = None
) -> Optional[Classification]:
    """
    Classify a standalone binary name (e.g. "python3", "node", "uv").

    Unlike classify_command this is an exact, case-sensitive lookup, used
    for MCP server command fields which hold a program name, not a shell line.
    """
    if not isinstance(binary, str):
        return None

    loader = rule_loader or get_rule_loader()
    entry = loader.binaries.get(binary)
    if entry is None:
        return None
    return Classification(signal=entry.signal, impact=entry.make_impact())
