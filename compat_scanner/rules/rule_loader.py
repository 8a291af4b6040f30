"""
YAML Rule Loader

Loads the compatibility rule tables from YAML files and exposes them as
read-only, ordered tables for the classifiers.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Pattern, Tuple

import yaml

from ..core.types import IMPACT_TEMPLATES, ImpactVector, Target, Verdict, make_impact


@dataclass(frozen=True)
class CommandRule:
    """A single ordered command pattern rule."""

    priority: int
    signal: str
    pattern: str
    compiled_pattern: Pattern
    impact_name: str

    @property
    def impact(self) -> Mapping[Target, Verdict]:
        return IMPACT_TEMPLATES[self.impact_name]

    def match(self, command: str) -> bool:
        return self.compiled_pattern.search(command) is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priority": self.priority,
            "signal": self.signal,
            "pattern": self.pattern,
            "impact": self.impact_name,
        }


@dataclass(frozen=True)
class SignalRule:
    """A lookup-table entry: signal name plus impact template."""

    signal: str
    impact_name: str

    @property
    def impact(self) -> Mapping[Target, Verdict]:
        return IMPACT_TEMPLATES[self.impact_name]

    def make_impact(self) -> ImpactVector:
        return make_impact(self.impact)


@dataclass
class RuleTables:
    """Everything loaded from the rules directory, frozen after load."""

    command_rules: Tuple[CommandRule, ...] = ()
    binaries: Mapping[str, SignalRule] = field(default_factory=lambda: MappingProxyType({}))
    script_rules: Mapping[str, SignalRule] = field(default_factory=lambda: MappingProxyType({}))
    import_rules: Mapping[str, SignalRule] = field(default_factory=lambda: MappingProxyType({}))
    restricted_tools: Mapping[str, SignalRule] = field(default_factory=lambda: MappingProxyType({}))


class RuleLoader:
    """Loads and validates compatibility rule tables from YAML files."""

    # Mapping of string flags to re module constants
    FLAG_MAP = {
        "IGNORECASE": re.IGNORECASE,
        "MULTILINE": re.MULTILINE,
        "DOTALL": re.DOTALL,
    }

    # Maximum pattern length to prevent ReDoS
    MAX_PATTERN_LENGTH = 1000

    def __init__(self, rules_dir: Optional[Path] = None):
        """
        Initialize the rule loader.

        Args:
            rules_dir: Directory containing YAML rule files.
                      Defaults to compat_scanner/rules/yaml/
        """
        if rules_dir is None:
            rules_dir = Path(__file__).parent / "yaml"

        self.rules_dir = Path(rules_dir)
        self.errors: List[str] = []
        self.tables = RuleTables()

        self._command_rules: List[CommandRule] = []
        self._binaries: Dict[str, SignalRule] = {}
        self._script_rules: Dict[str, SignalRule] = {}
        self._import_rules: Dict[str, SignalRule] = {}
        self._restricted_tools: Dict[str, SignalRule] = {}
        self._loaded = False

    def load_all(self) -> "RuleLoader":
        """Load all YAML rule files from the rules directory."""
        if not self.rules_dir.exists():
            self.errors.append(f"Rules directory not found: {self.rules_dir}")
            return self

        yaml_files = sorted(self.rules_dir.glob("*.yaml")) + sorted(self.rules_dir.glob("*.yml"))
        for yaml_file in yaml_files:
            self._load_file(yaml_file)

        self._freeze()
        return self

    def _load_file(self, filepath: Path) -> None:
        """Internal method to load and parse a YAML rule file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.errors.append(f"YAML parsing error in {filepath}: {e}")
            return
        except OSError as e:
            self.errors.append(f"Error loading {filepath}: {e}")
            return

        if not content:
            self.errors.append(f"Empty rule file: {filepath}")
            return
        if not isinstance(content, dict):
            self.errors.append(f"Rule file is not a mapping: {filepath}")
            return

        for rule_data in content.get("command_rules", None) or []:
            rule = self._parse_command_rule(rule_data, filepath)
            if rule:
                self._command_rules.append(rule)

        self._parse_table(content.get("binaries"), self._binaries, "binaries", filepath)
        self._parse_table(content.get("script_rules"), self._script_rules, "script_rules", filepath)
        self._parse_table(
            content.get("import_rules"), self._import_rules, "import_rules", filepath,
            signal_key="signal_prefix",
        )
        self._parse_table(
            content.get("restricted_tools"), self._restricted_tools, "restricted_tools", filepath,
            signal_key=None,
        )

    def _parse_command_rule(self, rule_data: Any, filepath: Path) -> Optional[CommandRule]:
        """Parse a single ordered command rule."""
        if not isinstance(rule_data, dict):
            self.errors.append(f"Command rule is not a mapping in {filepath}")
            return None

        for required in ("priority", "signal", "pattern", "impact"):
            if required not in rule_data:
                self.errors.append(f"Missing required field '{required}' in command rule from {filepath}")
                return None

        signal = str(rule_data["signal"])
        priority = rule_data["priority"]
        if not isinstance(priority, int) or isinstance(priority, bool):
            self.errors.append(f"Invalid priority in command rule '{signal}'")
            return None

        impact_name = rule_data["impact"]
        if impact_name not in IMPACT_TEMPLATES:
            self.errors.append(f"Unknown impact template '{impact_name}' in command rule '{signal}'")
            return None

        pattern = str(rule_data["pattern"])
        if len(pattern) > self.MAX_PATTERN_LENGTH:
            self.errors.append(f"Pattern too long in command rule '{signal}' (max {self.MAX_PATTERN_LENGTH})")
            return None

        flags = 0
        for flag_name in rule_data.get("pattern_flags", []) or []:
            if flag_name in self.FLAG_MAP:
                flags |= self.FLAG_MAP[flag_name]
            else:
                self.errors.append(f"Unknown flag '{flag_name}' in command rule '{signal}'")

        try:
            compiled = re.compile(pattern, flags)
        except re.error as e:
            self.errors.append(f"Invalid regex in command rule '{signal}': {e}")
            return None

        return CommandRule(
            priority=priority,
            signal=signal,
            pattern=pattern,
            compiled_pattern=compiled,
            impact_name=impact_name,
        )

    def _parse_table(
        self,
        data: Any,
        target: Dict[str, SignalRule],
        section: str,
        filepath: Path,
        signal_key: Optional[str] = "signal",
    ) -> None:
        """Parse a name -> {signal, impact} lookup table."""
        if data is None:
            return
        if not isinstance(data, dict):
            self.errors.append(f"Section '{section}' is not a mapping in {filepath}")
            return

        for key, entry in data.items():
            key = str(key)
            if not isinstance(entry, dict):
                self.errors.append(f"Entry '{key}' in '{section}' is not a mapping")
                continue
            impact_name = entry.get("impact")
            if impact_name not in IMPACT_TEMPLATES:
                self.errors.append(f"Unknown impact template '{impact_name}' for '{key}' in '{section}'")
                continue
            if signal_key is None:
                signal = key
            elif signal_key in entry:
                signal = str(entry[signal_key])
            else:
                self.errors.append(f"Missing '{signal_key}' for '{key}' in '{section}'")
                continue
            if key in target:
                self.errors.append(f"Duplicate entry '{key}' in '{section}'")
            target[key] = SignalRule(signal=signal, impact_name=impact_name)

    def _freeze(self) -> None:
        """Order command rules and publish read-only tables."""
        seen: Dict[int, str] = {}
        ordered: List[CommandRule] = []
        # sorted() is stable: equal priorities would keep file order, but are rejected
        for rule in sorted(self._command_rules, key=lambda r: r.priority):
            if rule.priority in seen:
                self.errors.append(
                    f"Duplicate priority {rule.priority} for command rules "
                    f"'{seen[rule.priority]}' and '{rule.signal}'"
                )
                continue
            seen[rule.priority] = rule.signal
            ordered.append(rule)

        self.tables = RuleTables(
            command_rules=tuple(ordered),
            binaries=MappingProxyType(dict(self._binaries)),
            script_rules=MappingProxyType(dict(self._script_rules)),
            import_rules=MappingProxyType(dict(self._import_rules)),
            restricted_tools=MappingProxyType(dict(self._restricted_tools)),
        )
        self._loaded = True

    @property
    def command_rules(self) -> Tuple[CommandRule, ...]:
        return self.tables.command_rules

    @property
    def binaries(self) -> Mapping[str, SignalRule]:
        return self.tables.binaries

    @property
    def script_rules(self) -> Mapping[str, SignalRule]:
        return self.tables.script_rules

    @property
    def import_rules(self) -> Mapping[str, SignalRule]:
        return self.tables.import_rules

    @property
    def restricted_tools(self) -> Mapping[str, SignalRule]:
        return self.tables.restricted_tools

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about loaded rules."""
        return {
            "command_rules": len(self.command_rules),
            "binaries": len(self.binaries),
            "script_rules": len(self.script_rules),
            "import_rules": len(self.import_rules),
            "restricted_tools": len(self.restricted_tools),
            "errors": len(self.errors),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Export all tables as a dictionary."""
        return {
            "command_rules": [r.to_dict() for r in self.command_rules],
            "binaries": {k: {"signal": v.signal, "impact": v.impact_name} for k, v in self.binaries.items()},
            "script_rules": {k: {"signal": v.signal, "impact": v.impact_name} for k, v in self.script_rules.items()},
            "restricted_tools": {k: v.impact_name for k, v in self.restricted_tools.items()},
            "stats": self.get_stats(),
            "errors": self.errors,
        }


# Singleton instance for global access
_global_loader: Optional[RuleLoader] = None


def get_rule_loader() -> RuleLoader:
    """Get the global rule loader instance."""
    global _global_loader
    if _global_loader is None:
        _global_loader = RuleLoader().load_all()
    return _global_loader


def reload_rules() -> RuleLoader:
    """Reload all rules from disk."""
    global _global_loader
    _global_loader = RuleLoader().load_all()
    return _global_loader
