"""
Tests for sentence segmentation and the Claim Extractor.
"""

from safetygate.claims import extract_claims, hedge_edit, hedge_prefix, suggest_rewrite
from safetygate.detector import detect_risk_signals
from safetygate.sentences import sentence_index_at, split_sentences
from safetygate.types import Entity, EvidenceArtifact, GateContext


def _texts(text):
    return [text[s.start:s.end] for s in split_sentences(text)]


def _claims(text, entities=(), artifacts=(), mode="public"):
    ctx = GateContext(
        entities=tuple(Entity(name=n, category=c) for n, c in entities),
        evidence_artifacts=tuple(EvidenceArtifact(id=i, artifact_value=v) for i, v in artifacts),
    )
    signals = detect_risk_signals(text, ctx, mode)
    return extract_claims(text, signals, mode)


class TestSentences:
    def test_terminal_punctuation(self):
        assert _texts("First one. Second one!  Third?") == [
            "First one.", "Second one!", "Third?",
        ]

    def test_abbreviations_do_not_split(self):
        assert _texts("Dr. Khan met Mr. Ali at House No. 4. Then he left.") == [
            "Dr. Khan met Mr. Ali at House No. 4.", "Then he left.",
        ]

    def test_initials_do_not_split(self):
        assert _texts("J. Smith signed it. Done.") == ["J. Smith signed it.", "Done."]

    def test_paragraph_break(self):
        assert _texts("Heading\n\nBody text") == ["Heading", "Body text"]

    def test_spans_trimmed(self):
        spans = split_sentences("  Leading space.  ")
        assert spans[0].start == 2

    def test_empty(self):
        assert split_sentences("") == []

    def test_index_lookup(self):
        text = "One. Two."
        sentences = split_sentences(text)
        assert sentence_index_at(sentences, 0) == 0
        assert sentence_index_at(sentences, 5) == 1
        # Whitespace between sentences belongs to the next one
        assert sentence_index_at(sentences, 4) == 1


class TestHedgeTemplates:
    def test_critical(self):
        assert suggest_rewrite("John Doe committed fraud.", "CRITICAL") == (
            "It has been alleged, but not judicially established, that John Doe committed fraud."
        )

    def test_high(self):
        assert suggest_rewrite("Ali took bribes.", "HIGH") == "It is alleged that Ali took bribes."

    def test_medium_and_low(self):
        assert suggest_rewrite("Ali took bribes.", "MEDIUM").startswith("Reportedly, ")
        assert suggest_rewrite("Ali took bribes.", "LOW").startswith(
            "According to the available record, "
        )

    def test_starter_word_lowercased(self):
        assert suggest_rewrite("The minister took bribes.", "HIGH") == (
            "It is alleged that the minister took bribes."
        )

    def test_hedge_edit_consumes_starter(self):
        consumed, replacement = hedge_edit("They lied.", "HIGH")
        assert consumed == 4
        assert replacement == "It is alleged that they"

    def test_proper_noun_not_consumed(self):
        consumed, _ = hedge_edit("Ali lied.", "HIGH")
        assert consumed == 0

    def test_court_register(self):
        assert hedge_prefix("CRITICAL", "court_mode").startswith(
            "It is alleged, subject to proof and verification"
        )
        assert hedge_prefix("CRITICAL", "controlled_legal") == hedge_prefix("CRITICAL", "court_mode")
        assert hedge_prefix("CRITICAL", "research_only") == hedge_prefix("CRITICAL")


class TestClaimUnits:
    def test_one_claim_per_target(self):
        claims = _claims("John Doe committed fraud.", entities=[("John Doe", "person")])
        assert len(claims) == 1
        claim = claims[0]
        assert claim.target == "John Doe"
        assert claim.severity == "CRITICAL"
        assert claim.has_evidence is False
        assert claim.predicate_summary == "committed; fraud"
        assert claim.suggested_rewrite.startswith("It has been alleged")

    def test_no_targets_no_claims(self):
        assert _claims("John Doe committed fraud.") == []

    def test_two_targets(self):
        claims = _claims(
            "Ali and Omar committed fraud.",
            entities=[("Ali", "person"), ("Omar", "person")],
        )
        assert sorted(c.target for c in claims) == ["Ali", "Omar"]

    def test_claims_per_sentence(self):
        claims = _claims(
            "Ali committed fraud. Ali is a thief.",
            entities=[("Ali", "person")],
        )
        assert len(claims) == 2
        assert claims[0].sentence_span.start < claims[1].sentence_span.start

    def test_evidence_is_sentence_level(self):
        claims = _claims(
            "John Doe committed fraud.",
            entities=[("John Doe", "person")],
            artifacts=[("E1", "fraud")],
        )
        assert claims[0].has_evidence is True
        assert claims[0].evidence_refs == ["E1"]
        assert claims[0].severity == "HIGH"

    def test_empty_inputs(self):
        assert extract_claims("", []) == []
        assert extract_claims("Some text.", []) == []
