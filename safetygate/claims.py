"""
Claim Extractor — Per-Target Claim Units

Groups signals by sentence and target entity. Each (sentence, target)
pair that triggered at least one signal becomes a ClaimUnit carrying
the worst signal level for that target and a hedged rewrite of the
sentence.
"""

from __future__ import annotations

import re
from typing import Optional

from safetygate.sentences import sentence_index_at, split_sentences
from safetygate.types import ClaimUnit, RiskSignal, max_level

# Severity-keyed hedge openings
HEDGE_TEMPLATES: dict[str, str] = {
    "CRITICAL": "It has been alleged, but not judicially established, that ",
    "HIGH": "It is alleged that ",
    "MEDIUM": "Reportedly, ",
    "LOW": "According to the available record, ",
}

# Court register, used for court_mode and controlled_legal
COURT_HEDGE_TEMPLATES: dict[str, str] = {
    "CRITICAL": "It is alleged, subject to proof and verification, that ",
    "HIGH": "It is submitted, subject to proof, that ",
    "MEDIUM": "It is alleged that ",
    "LOW": "As per the available record, it is alleged that ",
}

COURT_REGISTER_MODES = ("court_mode", "controlled_legal")

# Sentence openers that read naturally in lower case after a hedge
LOWERCASE_STARTERS = frozenset({
    "The", "This", "That", "These", "Those", "He", "She", "They", "It",
    "His", "Her", "Their", "Its", "A", "An", "We", "Our",
})

_FIRST_WORD_RE = re.compile(r"[A-Za-z]+\b")


def hedge_prefix(severity: str, mode: Optional[str] = None) -> str:
    templates = COURT_HEDGE_TEMPLATES if mode in COURT_REGISTER_MODES else HEDGE_TEMPLATES
    return templates[severity]


def hedge_edit(sentence_text: str, severity: str, mode: Optional[str] = None) -> tuple[int, str]:
    """
    Compute the hedge as an edit at the start of a sentence.

    Returns (consumed, replacement): the first `consumed` characters of
    the sentence are replaced by `replacement`. When the sentence opens
    with a common function word it is lower-cased inside the
    replacement; otherwise nothing is consumed.
    """
    prefix = hedge_prefix(severity, mode)
    m = _FIRST_WORD_RE.match(sentence_text)
    if m and m.group(0) in LOWERCASE_STARTERS:
        return m.end(), prefix + m.group(0).lower()
    return 0, prefix


def suggest_rewrite(sentence_text: str, severity: str, mode: Optional[str] = None) -> str:
    consumed, replacement = hedge_edit(sentence_text, severity, mode)
    return replacement + sentence_text[consumed:]


def extract_claims(
    text: str,
    signals: list[RiskSignal],
    mode: Optional[str] = None,
) -> list[ClaimUnit]:
    """
    Build claim units from detector output.

    Signals without targets contribute to `has_evidence` for their
    sentence but produce no claim unit of their own.
    """
    if not isinstance(text, str) or not text or not signals:
        return []

    sentences = split_sentences(text)
    by_sentence: dict[int, list[RiskSignal]] = {}
    for signal in signals:
        idx = sentence_index_at(sentences, signal.span.start)
        if idx < 0:
            continue
        by_sentence.setdefault(idx, []).append(signal)

    claims: list[ClaimUnit] = []
    for idx in sorted(by_sentence):
        sentence = sentences[idx]
        sentence_text = text[sentence.start:sentence.end]
        sentence_signals = by_sentence[idx]

        evidence_refs = list(dict.fromkeys(
            ref for s in sentence_signals for ref in s.evidence_refs
        ))
        targets = list(dict.fromkeys(
            t for s in sentence_signals for t in s.targets
        ))

        for target in targets:
            target_signals = [s for s in sentence_signals if target in s.targets]
            severity = max_level(s.level for s in target_signals)
            claims.append(ClaimUnit(
                target=target,
                predicate_summary="; ".join(dict.fromkeys(s.text for s in target_signals)),
                severity=severity,
                has_evidence=bool(evidence_refs),
                evidence_refs=evidence_refs,
                suggested_rewrite=suggest_rewrite(sentence_text, severity, mode),
                sentence_span=sentence,
            ))
    return claims
