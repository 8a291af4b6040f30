"""Tests for the core value objects."""

import pytest

from compat_scanner.core.types import (
    ALL_TARGETS,
    IMPACT_ALL_OK,
    IMPACT_INCOMPATIBLE_DESKTOP,
    IMPACT_NEEDS_REVIEW_DESKTOP,
    CompatibilityResult,
    Evidence,
    ScanSummary,
    Target,
    Verdict,
    make_impact,
    validate_impact,
    worst,
)


class TestVerdictOrder:
    def test_total_order(self):
        assert Verdict.COMPATIBLE.rank < Verdict.NEEDS_REVIEW.rank < Verdict.INCOMPATIBLE.rank

    def test_worst_defaults_to_compatible(self):
        assert worst() is Verdict.COMPATIBLE

    def test_worst_picks_most_restrictive(self):
        assert worst(Verdict.NEEDS_REVIEW, Verdict.COMPATIBLE) is Verdict.NEEDS_REVIEW
        assert worst(Verdict.NEEDS_REVIEW, Verdict.INCOMPATIBLE, Verdict.COMPATIBLE) is Verdict.INCOMPATIBLE

    def test_string_values_are_stable(self):
        assert [v.value for v in Verdict] == ["compatible", "needs-review", "incompatible"]
        assert [t.value for t in ALL_TARGETS] == ["claude-desktop", "cowork", "claude-code"]


class TestImpactTemplates:
    def test_templates_are_read_only(self):
        with pytest.raises(TypeError):
            IMPACT_ALL_OK[Target.CLAUDE_DESKTOP] = Verdict.INCOMPATIBLE

    def test_make_impact_returns_independent_copies(self):
        first = make_impact(IMPACT_NEEDS_REVIEW_DESKTOP)
        second = make_impact(IMPACT_NEEDS_REVIEW_DESKTOP)
        first[Target.COWORK] = Verdict.INCOMPATIBLE

        assert second[Target.COWORK] is Verdict.COMPATIBLE
        assert IMPACT_NEEDS_REVIEW_DESKTOP[Target.COWORK] is Verdict.COMPATIBLE

    def test_incompatible_desktop_template(self):
        impact = make_impact(IMPACT_INCOMPATIBLE_DESKTOP)
        assert impact == {
            Target.CLAUDE_DESKTOP: Verdict.INCOMPATIBLE,
            Target.COWORK: Verdict.COMPATIBLE,
            Target.CLAUDE_CODE: Verdict.COMPATIBLE,
        }

    def test_validate_impact_accepts_string_keys(self):
        impact = validate_impact({
            "claude-desktop": "incompatible",
            "cowork": "needs-review",
            "claude-code": "compatible",
        })
        assert impact[Target.CLAUDE_DESKTOP] is Verdict.INCOMPATIBLE
        assert impact[Target.COWORK] is Verdict.NEEDS_REVIEW

    def test_validate_impact_rejects_missing_target(self):
        with pytest.raises(ValueError, match="cowork"):
            validate_impact({"claude-desktop": "compatible", "claude-code": "compatible"})


class TestEvidence:
    def _evidence(self, impact, **kwargs):
        fields = dict(source="code-block", file="SKILL.md", signal="python3",
                      detail="Code block runs python3", impact=impact)
        fields.update(kwargs)
        return Evidence(**fields)

    def test_rejects_unknown_source(self):
        with pytest.raises(ValueError, match="Unknown evidence source"):
            self._evidence(make_impact(), source="telepathy")

    def test_owns_its_impact_vector(self):
        impact = make_impact(IMPACT_NEEDS_REVIEW_DESKTOP)
        evidence = self._evidence(impact)
        impact[Target.CLAUDE_DESKTOP] = Verdict.INCOMPATIBLE

        assert evidence.impact[Target.CLAUDE_DESKTOP] is Verdict.NEEDS_REVIEW

    def test_is_informational(self):
        assert self._evidence(make_impact()).is_informational()
        assert not self._evidence(make_impact(IMPACT_NEEDS_REVIEW_DESKTOP)).is_informational()

    def test_to_dict_omits_missing_line(self):
        data = self._evidence(make_impact()).to_dict()
        assert "line" not in data
        assert data["impact"] == {
            "claude-desktop": "compatible",
            "cowork": "compatible",
            "claude-code": "compatible",
        }

    def test_to_dict_includes_line(self):
        data = self._evidence(make_impact(), line=7).to_dict()
        assert data["line"] == 7


class TestCompatibilityResult:
    def test_to_dict_contract(self):
        result = CompatibilityResult(
            plugin="demo",
            version="1.2.0",
            declared=["claude-code"],
            analyzed=make_impact(IMPACT_NEEDS_REVIEW_DESKTOP),
            summary=ScanSummary(total_files=3, skill_files=1, mcp_configs=1),
        )
        data = result.to_dict()

        assert data["plugin"] == "demo"
        assert data["version"] == "1.2.0"
        assert data["declared"] == ["claude-code"]
        assert data["analyzed"]["claude-desktop"] == "needs-review"
        assert data["evidence"] == []
        assert data["summary"] == {
            "totalFiles": 3,
            "skillFiles": 1,
            "scriptFiles": 0,
            "hookFiles": 0,
            "mcpConfigs": 1,
        }
        assert "errors" not in data

    def test_optional_fields_omitted(self):
        data = CompatibilityResult(plugin="demo", analyzed=make_impact()).to_dict()
        assert "version" not in data
        assert "declared" not in data

    def test_is_compatible_and_worst_verdict(self):
        result = CompatibilityResult(plugin="demo", analyzed=make_impact(IMPACT_INCOMPATIBLE_DESKTOP))
        assert not result.is_compatible(Target.CLAUDE_DESKTOP)
        assert result.is_compatible("cowork")
        assert result.worst_verdict() is Verdict.INCOMPATIBLE
