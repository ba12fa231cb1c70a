"""
Tests for the Reputation Risk Decider — mode policy and mitigations.
"""

import pytest
from safetygate.decider import MitigationRule, _validate, assess_reputation_risk
from safetygate.patterns import ConfigurationError
from safetygate.types import (
    LEVEL_RANK,
    ClaimUnit,
    CourtContext,
    DetectionResult,
    RiskSignal,
    Span,
)


def _signal(category, level, evidence=(), targets=(), start=0):
    return RiskSignal(
        id=f"SIG-{start}",
        category=category,
        level=level,
        span=Span(start, start + 4),
        text="text",
        rationale="test",
        targets=tuple(targets),
        evidence_refs=tuple(evidence),
        confidence=0.5,
    )


def _claim(target, severity, has_evidence=False):
    return ClaimUnit(
        target=target,
        predicate_summary="p",
        severity=severity,
        has_evidence=has_evidence,
    )


def _decide(signals=(), claims=(), mode="public", court=None):
    return assess_reputation_risk(
        DetectionResult(signals=list(signals), claim_units=list(claims)), mode, court
    )


def _types(decision):
    return [m.type for m in decision.required_mitigations]


class TestOverall:
    def test_empty_is_low(self):
        decision = _decide()
        assert decision.overall == "LOW"
        assert decision.categories == []

    def test_max_of_signals_and_claims(self):
        decision = _decide(
            signals=[_signal("privacy", "MEDIUM")],
            claims=[_claim("Ali", "HIGH")],
        )
        assert decision.overall == "HIGH"

    def test_categories_listed_once(self):
        decision = _decide(signals=[
            _signal("privacy", "LOW", start=0),
            _signal("privacy", "MEDIUM", start=10),
            _signal("defamation", "MEDIUM", start=20),
        ])
        assert sorted(decision.categories) == ["defamation", "privacy"]

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            _decide(mode="broadcast")


class TestModeEscalation:
    @pytest.mark.parametrize("mode", ["court_mode", "controlled_legal"])
    def test_unevidenced_high_escalates(self, mode):
        assert _decide(signals=[_signal("defamation", "HIGH")], mode=mode).overall == "CRITICAL"

    @pytest.mark.parametrize("mode", ["court_mode", "controlled_legal"])
    def test_evidenced_high_does_not_escalate(self, mode):
        decision = _decide(signals=[_signal("defamation", "HIGH", evidence=["E1"])], mode=mode)
        assert decision.overall == "HIGH"

    def test_public_high_not_escalated(self):
        assert _decide(signals=[_signal("defamation", "HIGH")]).overall == "HIGH"

    @pytest.mark.parametrize("level", ["LOW", "MEDIUM", "HIGH", "CRITICAL"])
    def test_public_sensitive_data_forces_critical(self, level):
        decision = _decide(signals=[_signal("sensitive_personal_data", level)])
        assert decision.overall == "CRITICAL"

    def test_research_capped_at_high(self):
        decision = _decide(
            signals=[_signal("defamation", "CRITICAL")],
            claims=[_claim("Ali", "CRITICAL")],
            mode="research_only",
        )
        assert decision.overall == "HIGH"

    def test_research_cap_lifted_by_incitement(self):
        decision = _decide(
            signals=[_signal("defamation", "CRITICAL"), _signal("incitement_or_harassment", "HIGH", start=10)],
            mode="research_only",
        )
        assert decision.overall == "CRITICAL"

    @pytest.mark.parametrize("mode", ["court_mode", "controlled_legal", "public"])
    def test_overall_never_below_contributions(self, mode):
        signals = [_signal("privacy", "MEDIUM"), _signal("defamation", "HIGH", start=10)]
        claims = [_claim("Ali", "CRITICAL")]
        decision = _decide(signals, claims, mode=mode)
        floor = max(LEVEL_RANK[x] for x in ["MEDIUM", "HIGH", "CRITICAL"])
        assert LEVEL_RANK[decision.overall] >= floor


class TestMitigations:
    def test_criminal_allegation_public(self):
        decision = _decide(
            signals=[_signal("unverified_criminal_allegation", "CRITICAL", targets=["Ali"])],
            claims=[_claim("Ali", "CRITICAL")],
        )
        types = _types(decision)
        assert "force_allegation_language" in types
        evidence = [m for m in decision.required_mitigations if m.type == "require_evidence"]
        assert len(evidence) == 1
        assert evidence[0].min == 1
        assert evidence[0].for_targets == ["Ali"]

    def test_require_evidence_omitted_for_research(self):
        decision = _decide(
            signals=[_signal("unverified_criminal_allegation", "HIGH")],
            mode="research_only",
        )
        assert "require_evidence" not in _types(decision)

    def test_sensitive_data(self):
        decision = _decide(signals=[_signal("sensitive_personal_data", "CRITICAL")])
        redact = [m for m in decision.required_mitigations if m.type == "remove_or_redact"]
        assert any("national_id" in m.fields for m in redact)
        reviews = [m for m in decision.required_mitigations if m.type == "require_human_review"]
        assert [m.role for m in reviews] == ["admin"]

    def test_public_high_restricts_distribution(self):
        decision = _decide(signals=[_signal("defamation", "HIGH")])
        restrict = [m for m in decision.required_mitigations if m.type == "restrict_distribution"]
        assert restrict
        assert restrict[0].restrict_to == ["controlled_legal", "research_only"]

    def test_court_baseline_disclaimers(self):
        keys = {m.key for m in _decide(mode="court_mode").required_mitigations}
        assert {"no_judicial_determination", "data_limitations", "methodology",
                "lod_appendix", "key_issues_appendix"} <= keys

    def test_controlled_legal_has_no_appendices(self):
        keys = {m.key for m in _decide(mode="controlled_legal").required_mitigations}
        assert "no_judicial_determination" in keys
        assert "lod_appendix" not in keys

    def test_duplicates_merged(self):
        decision = _decide(
            signals=[_signal("defamation", "HIGH")],
            mode="court_mode",
        )
        keys = [m.key for m in decision.required_mitigations if m.key]
        assert len(keys) == len(set(keys))

    def test_court_context_in_disclaimers(self):
        decision = _decide(mode="court_mode", court=CourtContext("LHC", "appeal"))
        disclaimers = [m for m in decision.required_mitigations if m.type == "add_disclaimer"]
        assert disclaimers
        assert all("court_style:LHC" in m.fields for m in disclaimers)


class TestTableValidation:
    def test_unknown_category(self):
        with pytest.raises(ConfigurationError):
            _validate((MitigationRule("slander", "add_disclaimer"),))

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError):
            _validate((MitigationRule("privacy", "notify_press"),))

    def test_restrict_needs_targets(self):
        with pytest.raises(ConfigurationError):
            _validate((MitigationRule("privacy", "restrict_distribution"),))


class TestDisclaimerWording:
    def test_court_disclaimers_carry_text(self):
        decision = _decide(mode="court_mode", court=CourtContext("SHC", "writ"))
        by_key = {m.key: m for m in decision.required_mitigations if m.type == "add_disclaimer"}
        assert by_key["no_judicial_determination"].text.startswith(
            "This submission does not constitute a judicial determination"
        )
        assert "Independent verification" in by_key["data_limitations"].text

    def test_default_wording_without_court_context(self):
        decision = _decide(signals=[_signal("defamation", "MEDIUM")])
        disclaimer = [m for m in decision.required_mitigations if m.key == "no_judicial_determination"]
        assert disclaimer[0].text

    def test_keys_without_wording(self):
        decision = _decide(mode="court_mode")
        by_key = {m.key: m for m in decision.required_mitigations if m.type == "add_disclaimer"}
        assert by_key["methodology"].text is None

    def test_non_disclaimers_have_no_text(self):
        decision = _decide(signals=[_signal("sensitive_personal_data", "CRITICAL")])
        assert all(m.text is None for m in decision.required_mitigations if m.type != "add_disclaimer")
