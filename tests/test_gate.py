"""
Tests for the Safety Gate orchestrator — blockers, warnings, override.
"""

import logging

import pytest
from safetygate.gate import run_safety_gate
from safetygate.types import (
    LEVEL_RANK,
    Entity,
    EvidenceArtifact,
    GateContext,
    SafetyGateInput,
)

JOHN = GateContext(entities=(Entity(name="John Doe", category="person"),))
JOHN_WITH_EVIDENCE = GateContext(
    entities=(Entity(name="John Doe", category="person"),),
    evidence_artifacts=(EvidenceArtifact(id="E1", artifact_value="fraud"),),
)


def _gate(text, mode="public", context=None, **kwargs):
    return run_safety_gate(SafetyGateInput(
        text=text, mode=mode, context=context or GateContext(), **kwargs
    ))


def _codes(issues):
    return [i.code for i in issues]


class TestUnverifiedAllegation:
    """A bare criminal assertion in public mode is blocked."""

    def test_blocked(self):
        result = _gate("John Doe committed fraud.")
        assert result.decision.overall == "CRITICAL"
        assert "CRITICAL_RISK" in _codes(result.blockers)
        assert result.export_allowed is False
        assert any(s.category == "unverified_criminal_allegation" and s.level == "CRITICAL"
                   for s in result.signals)

    def test_rewrite_plan_returned(self):
        result = _gate("John Doe committed fraud.")
        assert result.rewrite_plan.rewritten_text.startswith("It has been alleged")


class TestEvidenceBackedAllegation:
    """Evidence drops the allegation to HIGH; warning only."""

    def test_overall_high(self):
        result = _gate("John Doe committed fraud.", context=JOHN_WITH_EVIDENCE)
        assert result.decision.overall == "HIGH"
        assert "CRITICAL_RISK" not in _codes(result.blockers)
        assert "SIGNAL_UNVERIFIED_CRIMINAL_ALLEGATION" in _codes(result.warnings)

    def test_claim_has_evidence(self):
        result = _gate("John Doe committed fraud.", context=JOHN_WITH_EVIDENCE)
        assert result.claim_units[0].has_evidence is True

    def test_confidence_raised(self):
        bare = _gate("John Doe committed fraud.", context=JOHN)
        backed = _gate("John Doe committed fraud.", context=JOHN_WITH_EVIDENCE)
        assert backed.signals[0].confidence > bare.signals[0].confidence


class TestSensitiveData:
    TEXT = "The complainant's CNIC is 3520212345671."

    def test_pii_blocker(self):
        result = _gate(self.TEXT)
        assert "PII_DETECTED" in _codes(result.blockers)
        assert result.decision.overall == "CRITICAL"

    def test_redacted_in_rewrite(self):
        result = _gate(self.TEXT)
        assert "[ID REDACTED]" in result.rewrite_plan.rewritten_text
        assert "3520212345671" not in result.rewrite_plan.rewritten_text

    def test_no_duplicate_warning(self):
        result = _gate(self.TEXT)
        assert not any(c == "SIGNAL_SENSITIVE_PERSONAL_DATA" for c in _codes(result.warnings))

    @pytest.mark.parametrize("text", [
        "Reach him on 0300 1234567.",
        "His email is ali.khan@example.com.",
        "He reportedly lives at House No. 12, Street 5.",
    ])
    def test_public_always_critical(self, text):
        assert _gate(text).decision.overall == "CRITICAL"


class TestAdminOverride:
    def test_override_clears_blockers(self):
        result = _gate("John Doe committed fraud.", is_admin_override=True)
        assert result.blockers == []
        assert result.export_allowed is True

    def test_override_keeps_warnings_and_rewrite(self):
        result = _gate("John Doe committed fraud.", is_admin_override=True)
        assert "SIGNAL_UNVERIFIED_CRIMINAL_ALLEGATION" in _codes(result.warnings)
        assert result.rewrite_plan.transformations
        assert result.decision.overall == "CRITICAL"


class TestCourtMode:
    def test_evidence_gap_warning(self):
        result = _gate("John Doe committed fraud.", mode="court_mode", context=JOHN)
        assert "COURT_EVIDENCE_GAP" in _codes(result.warnings)
        assert "COURT_EVIDENCE_GAP" not in _codes(result.blockers)

    def test_gap_suppressed_by_override(self):
        result = _gate(
            "John Doe committed fraud.", mode="court_mode", context=JOHN, is_admin_override=True
        )
        assert "COURT_EVIDENCE_GAP" not in _codes(result.warnings)

    def test_no_gap_outside_court_mode(self):
        result = _gate("John Doe committed fraud.", mode="controlled_legal", context=JOHN)
        assert "COURT_EVIDENCE_GAP" not in _codes(result.warnings)

    def test_court_context_echoed(self):
        result = _gate(
            "The order is void.", mode="court_mode", court_style="LHC", filing_type="writ"
        )
        assert result.court.court_style == "LHC"
        assert result.rewrite_plan.rewritten_text.startswith(
            "May it please this Honourable Lahore High Court,"
        )

    def test_partial_court_context_ignored(self):
        result = _gate("The order is void.", mode="court_mode", court_style="LHC")
        assert result.court is None


class TestNeutralInput:
    def test_empty_text(self):
        result = _gate("")
        assert result.signals == []
        assert result.decision.overall == "LOW"
        assert result.blockers == []
        assert result.rewrite_plan.rewritten_text == ""

    def test_clean_text(self):
        result = _gate("The hearing is fixed for Monday.")
        assert result.blockers == []
        assert result.warnings == []
        assert result.export_allowed is True

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            SafetyGateInput(text="x", mode="broadcast")


class TestProperties:
    TEXTS = [
        "John Doe committed fraud.",
        "Ahmed is a crook and lives at House No. 12, Street 5.",
        "The police are a mafia. The judge is biased!",
        "Reportedly, the matter pending before the court shows he is guilty.",
        "His medical history was leaked.",
    ]

    @pytest.mark.parametrize("mode", ["court_mode", "controlled_legal", "public"])
    @pytest.mark.parametrize("text", TEXTS)
    def test_overall_at_least_every_signal(self, text, mode):
        result = _gate(text, mode=mode)
        for s in result.signals:
            assert LEVEL_RANK[result.decision.overall] >= LEVEL_RANK[s.level]
        for c in result.claim_units:
            assert LEVEL_RANK[result.decision.overall] >= LEVEL_RANK[c.severity]

    @pytest.mark.parametrize("text", TEXTS)
    def test_warning_per_low_medium_signal(self, text):
        result = _gate(text, is_admin_override=True)
        minor = [s for s in result.signals if LEVEL_RANK[s.level] <= LEVEL_RANK["MEDIUM"]]
        signal_warnings = [w for w in result.warnings if w.code.startswith("SIGNAL_")]
        assert len(signal_warnings) == len(minor)
        assert {w.signal_id for w in signal_warnings} == {s.id for s in minor}


class TestLogging:
    def test_one_info_line(self, caplog):
        caplog.set_level(logging.INFO, logger="safetygate")
        _gate("John Doe committed fraud.")
        records = [r for r in caplog.records if r.name == "safetygate.gate"]
        assert len(records) == 1
        assert records[0].overall == "CRITICAL"
        assert records[0].signals_count == 2
