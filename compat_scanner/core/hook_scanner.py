"""
Hook Scanner - Finds runtime requirements in lifecycle hook handlers.

Handles the shapes hook configurations come in:
- {"hooks": {...}} wrapper as written in hooks/hooks.json
- event -> [handler, ...]
- event -> [{"matcher": "...", "hooks": [handler, ...]}, ...]
- event -> handler (single object)

Only handlers of type "command" can require a runtime; prompt and agent
handlers produce no evidence.
"""

from typing import Any, Iterator, List, Optional, Tuple

from .command_classifier import classify_command
from .types import Evidence
from ..rules.rule_loader import RuleLoader


def _iter_handlers(hooks_config: dict) -> Iterator[Tuple[str, dict]]:
    """Yield (event_name, handler) pairs from a hooks mapping."""
    for event_name, event_hooks in hooks_config.items():
        # Alternate format where the event directly holds one handler
        if isinstance(event_hooks, dict):
            event_hooks = [event_hooks]
        if not isinstance(event_hooks, list):
            continue

        for entry in event_hooks:
            if not isinstance(entry, dict):
                continue

            inner_hooks = entry.get("hooks")
            if inner_hooks is None:
                yield str(event_name), entry
                continue

            if not isinstance(inner_hooks, list):
                inner_hooks = [inner_hooks] if inner_hooks else []
            for handler in inner_hooks:
                if isinstance(handler, dict):
                    yield str(event_name), handler


def scan_hooks_config(
    config: Any, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """
    Scan a deserialized hooks configuration for command handlers.

    Args:
        config: Parsed hooks JSON (anything; malformed input yields no evidence)
        file_path: Path of the hooks file relative to the plugin root
        rule_loader: Optional custom rule loader

    Returns:
        One Evidence per classified command handler.
    """
    if not isinstance(config, dict):
        return []

    hooks_config = config.get("hooks", config)
    if not isinstance(hooks_config, dict):
        return []

    evidence: List[Evidence] = []
    for event_name, handler in _iter_handlers(hooks_config):
        if handler.get("type") != "command":
            continue

        command = handler.get("command")
        if not isinstance(command, str) or not command.strip():
            continue

        classification = classify_command(command, rule_loader)
        if classification is None:
            continue

        evidence.append(Evidence(
            source="hook",
            file=file_path,
            signal=f"hook-command: {classification.signal}",
            detail=f"{event_name} hook runs '{classification.signal}': {command[:120]}",
            impact=classification.impact,
        ))

    return evidence
