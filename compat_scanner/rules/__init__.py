"""
Compatibility Rules Module

The ordered command table, the binary lookup table, script extension rules
and restricted tools live in YAML files under the yaml/ directory and are
loaded once per process. The loaded tables are read-only.

Usage:
    from compat_scanner.rules import get_rule_loader

    loader = get_rule_loader()
    for rule in loader.command_rules:
        ...
"""

from .rule_loader import (
    CommandRule,
    RuleLoader,
    RuleTables,
    SignalRule,
    get_rule_loader,
    reload_rules,
)

__all__ = [
    "CommandRule",
    "RuleLoader",
    "RuleTables",
    "SignalRule",
    "get_rule_loader",
    "reload_rules",
]
