"""Tests for author declarations: allowed-tools and targets."""

from compat_scanner.core.frontmatter_scanner import (
    scan_allowed_tools,
    scan_frontmatter,
    scan_manifest_declaration,
    scan_targets_declaration,
)
from compat_scanner.core.types import Target, Verdict


class TestAllowedTools:
    def test_string_form_with_scoped_bash(self):
        evidence = scan_allowed_tools("Read, Bash(git add:*), Bash(git commit:*), Grep", "SKILL.md")
        assert [e.signal for e in evidence] == ["allowed-tools: Bash"]
        assert evidence[0].source == "frontmatter"
        assert evidence[0].impact == {
            Target.CLAUDE_DESKTOP: Verdict.INCOMPATIBLE,
            Target.COWORK: Verdict.NEEDS_REVIEW,
            Target.CLAUDE_CODE: Verdict.COMPATIBLE,
        }

    def test_list_form(self):
        evidence = scan_allowed_tools(["Read", "Edit", "Write", "NotebookEdit", "WebFetch"], "SKILL.md")
        assert [e.signal for e in evidence] == [
            "allowed-tools: Edit",
            "allowed-tools: Write",
            "allowed-tools: NotebookEdit",
        ]

    def test_unrestricted_tools_only(self):
        assert scan_allowed_tools("Read Grep Glob", "SKILL.md") == []

    def test_malformed(self):
        assert scan_allowed_tools(42, "SKILL.md") == []
        assert scan_allowed_tools([None, {"x": 1}], "SKILL.md") == []


class TestTargetsDeclaration:
    def test_unlisted_targets_are_incompatible(self):
        evidence = scan_targets_declaration(["claude-code"], "plugin.json")
        assert evidence.source == "declaration"
        assert evidence.signal == "targets: [claude-code]"
        assert evidence.impact[Target.CLAUDE_DESKTOP] is Verdict.INCOMPATIBLE
        assert evidence.impact[Target.COWORK] is Verdict.INCOMPATIBLE
        assert evidence.impact[Target.CLAUDE_CODE] is Verdict.COMPATIBLE
        assert "Not listed: claude-desktop, cowork" in evidence.detail

    def test_all_listed_yields_nothing(self):
        assert scan_targets_declaration(["claude-desktop", "cowork", "claude-code"], "plugin.json") is None

    def test_unknown_names_ignored(self):
        evidence = scan_targets_declaration(["claude-code", "cowork", "vscode"], "plugin.json")
        assert evidence.impact[Target.CLAUDE_DESKTOP] is Verdict.INCOMPATIBLE
        assert evidence.impact[Target.COWORK] is Verdict.COMPATIBLE

    def test_non_list(self):
        assert scan_targets_declaration("claude-code", "plugin.json") is None
        assert scan_targets_declaration(None, "plugin.json") is None


class TestScanFrontmatter:
    def test_tools_then_targets(self):
        fields = {"name": "deploy", "allowed-tools": "Bash", "targets": ["claude-code", "cowork"]}
        evidence = scan_frontmatter(fields, "skills/deploy/SKILL.md")
        assert [e.source for e in evidence] == ["frontmatter", "declaration"]

    def test_no_relevant_fields(self):
        assert scan_frontmatter({"name": "x", "description": "y"}, "SKILL.md") == []
        assert scan_frontmatter(None, "SKILL.md") == []

    def test_manifest_declaration(self):
        evidence = scan_manifest_declaration({"name": "p", "targets": ["claude-desktop"]}, "plugin.json")
        assert len(evidence) == 1
        assert evidence[0].impact[Target.CLAUDE_CODE] is Verdict.INCOMPATIBLE
        assert scan_manifest_declaration({"name": "p"}, "plugin.json") == []
