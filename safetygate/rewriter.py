"""
Court-Safe Rewriter — Span-Stable Text Transformation

Produces a rewritten text plus a complete transformation log. Every
edit is computed against the ORIGINAL text as a non-overlapping span
and the output is rebuilt in a single pass, so recorded offsets never
drift and replaying the log reproduces the rewritten text exactly.

Rule order (earlier rules win on conflict):
  1. REDACT_<KIND>       — sensitive personal data → fixed placeholder
  2. SOFTEN_LABEL        — inflammatory labels → neutral phrasing
     COURT_PHRASE_*      — jurisdiction phrasing (court context only)
  3. HEDGE_CLAIM         — unhedged severe assertions → allegation framing
  4. SOFTEN_<TERM>       — bare legal terms in still-unframed sentences
                           (court register only)
  5. COURT_OPENING       — formal opening (court context only)

Whether a sentence is framed depends only on rule identity and base
level, never on evidence or target adjustments. Those read the
surrounding text, which the rewrite itself changes.

The rewriter is idempotent: its own output, re-detected, produces no
further transformations.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Optional

import diff_match_patch as dmp_module

from safetygate.claims import COURT_REGISTER_MODES, LOWERCASE_STARTERS, hedge_edit, hedge_prefix
from safetygate.court_language import (
    OPENING_RE,
    OPENING_SCAN_CHARS,
    PHRASE_RULES,
    get_court_phrases,
    match_case,
)
from safetygate.patterns import ConfigurationError, PatternTable, has_hedging, pattern_table
from safetygate.sentences import sentence_index_at, split_sentences
from safetygate.types import (
    LEVEL_RANK,
    ClaimUnit,
    DetectionResult,
    RewriteResult,
    RewriteTransformation,
    RiskSignal,
    Span,
    max_level,
)

logger = logging.getLogger(__name__)

_dmp = dmp_module.diff_match_patch()

# Categories whose severe signals require allegation framing
ASSERTION_CATEGORIES = frozenset({
    "defamation",
    "unverified_criminal_allegation",
    "institutional_accusation",
    "sub_judice",
    "contempt_of_court",
})

# Inflammatory label → neutral phrasing
LABEL_SOFTENING: dict[str, str] = {
    "mafia": "alleged organized network",
    "crook": "person under scrutiny",
    "crooks": "persons under scrutiny",
    "traitor": "person accused of disloyalty",
    "traitors": "persons accused of disloyalty",
    "blackmailer": "person alleged to have exerted pressure",
    "blackmailers": "persons alleged to have exerted pressure",
    "goon": "associate",
    "goons": "associates",
    "thug": "individual",
    "thugs": "individuals",
    "gangster": "person alleged to be part of a group",
    "gangsters": "persons alleged to be part of a group",
    "scum": "persons concerned",
    "vermin": "persons concerned",
}

# Lower-level rules whose sentences are still framed in the court register
COURT_FRAMED_RULES = frozenset({"UCA_OFFENCE_TERM", "DEF_INFLAMMATORY_ACT"})

DEFAULT_REDACTION = "[REDACTED]"


@dataclass(frozen=True)
class TermRule:
    """Replace a bare legal term with allegation-framed wording."""
    id: str
    pattern: re.Pattern
    replacement: str
    reason: str


TERM_SOFTENING: tuple[TermRule, ...] = (
    TermRule(
        "SOFTEN_CONSPIRACY",
        re.compile(r"\bcriminal\s+conspiracy\b", re.IGNORECASE),
        "alleged criminal conspiracy (subject to judicial determination)",
        "Conspiracy not proved",
    ),
    TermRule(
        "SOFTEN_FABRICATION",
        re.compile(r"\bfabricated\s+evidence\b", re.IGNORECASE),
        "alleged fabrication of evidence",
        "Fabrication not adjudicated",
    ),
    TermRule(
        "SOFTEN_ILLEGAL",
        re.compile(r"\billegal\b", re.IGNORECASE),
        "allegedly unlawful",
        "Legality not judicially determined",
    ),
    TermRule(
        "SOFTEN_FRAUD",
        re.compile(r"\bfraud\b", re.IGNORECASE),
        "alleged irregularity",
        "Fraud not adjudicated",
    ),
    TermRule(
        "SOFTEN_CORRUPTION",
        re.compile(r"\bcorruption\b", re.IGNORECASE),
        "alleged corruption",
        "Corruption not adjudicated",
    ),
    TermRule(
        "SOFTEN_SABOTAGE",
        re.compile(r"\bsabotage\b", re.IGNORECASE),
        "alleged adverse impact",
        "Inflammatory language",
    ),
    TermRule(
        "SOFTEN_HARASSMENT",
        re.compile(r"\bharassment\b", re.IGNORECASE),
        "alleged harassment",
        "Not judicially determined",
    ),
)

# A softened term must read as framed, or a second pass would soften it again
for _term in TERM_SOFTENING:
    if _term.pattern.search("") is not None:
        raise ConfigurationError(f"{_term.id}: pattern matches empty text")
    if not has_hedging(_term.replacement):
        raise ConfigurationError(f"{_term.id}: replacement carries no allegation marker")


@dataclass(frozen=True)
class _Edit:
    start: int
    end: int
    replacement: str
    rule_id: str
    reason: str
    lead: bool = False      # Sorts before other edits at the same offset


def _conflicts(edit: _Edit, accepted: list[_Edit]) -> bool:
    """
    Two edits conflict if their spans overlap, or if a zero-width
    insertion falls strictly inside the other edit's span.
    """
    for other in accepted:
        if edit.start < other.end and other.start < edit.end:
            return True
        if edit.start == edit.end and other.start < edit.start < other.end:
            return True
        if other.start == other.end and edit.start < other.start < edit.end:
            return True
    return False


def replay_transformations(
    original: str, transformations: list[RewriteTransformation]
) -> str:
    """
    Rebuild rewritten text from the original and its transformation log.

    Transformations must be non-overlapping and in ascending span
    order, as produced by CourtSafeRewriter.
    """
    parts: list[str] = []
    cursor = 0
    for t in transformations:
        parts.append(original[cursor:t.span.start])
        parts.append(t.to_text)
        cursor = t.span.end
    parts.append(original[cursor:])
    return "".join(parts)


def compute_diff_spans(original: str, rewritten: str) -> list[dict]:
    """
    Character diff between original and rewritten text.

    Uses diff-match-patch. Returns equal/delete/insert spans with
    positions in both texts.
    """
    diffs = _dmp.diff_main(original, rewritten)
    _dmp.diff_cleanupSemantic(diffs)

    spans = []
    orig_pos = 0
    new_pos = 0

    for op, text in diffs:
        if op == 0:  # EQUAL
            spans.append({
                "type": "equal",
                "text": text,
                "orig_start": orig_pos,
                "orig_end": orig_pos + len(text),
                "new_start": new_pos,
                "new_end": new_pos + len(text),
            })
            orig_pos += len(text)
            new_pos += len(text)
        elif op == -1:  # DELETE
            spans.append({
                "type": "delete",
                "text": text,
                "orig_start": orig_pos,
                "orig_end": orig_pos + len(text),
            })
            orig_pos += len(text)
        elif op == 1:  # INSERT
            spans.append({
                "type": "insert",
                "text": text,
                "new_start": new_pos,
                "new_end": new_pos + len(text),
            })
            new_pos += len(text)

    return spans


class CourtSafeRewriter:
    """Rule-ordered rewriter over an injected pattern table."""

    def __init__(self, table: PatternTable = pattern_table):
        self._table = table

    def rewrite(
        self,
        text: str,
        detection: DetectionResult,
        mode: str,
        court_style: Optional[str] = None,
        filing_type: Optional[str] = None,
    ) -> RewriteResult:
        """
        Rewrite text using signals detected over that same text.

        Jurisdiction phrasing and the formal opening apply only when
        both court_style and filing_type are supplied.
        """
        if not isinstance(text, str) or not text.strip():
            return RewriteResult(rewritten_text=text if isinstance(text, str) else "")

        signals = [s for s in detection.signals if self._span_valid(text, s)]
        sentences = split_sentences(text)
        phrases = (
            get_court_phrases(court_style, filing_type)
            if court_style and filing_type else None
        )

        accepted: list[_Edit] = []

        # --- Rule 1: Redaction ---
        for signal in signals:
            if signal.category != "sensitive_personal_data":
                continue
            rule = self._table.get(signal.rule_id)
            placeholder = rule.redaction if rule and rule.redaction else DEFAULT_REDACTION
            kind = (signal.claim_type or "data").upper()
            self._accept(accepted, _Edit(
                signal.span.start, signal.span.end, placeholder,
                f"REDACT_{kind}", "Sensitive personal data removed",
            ))

        # --- Rule 2: Label softening + jurisdiction phrasing ---
        for signal in signals:
            if signal.claim_type != "label":
                continue
            neutral = LABEL_SOFTENING.get(signal.text.lower())
            if neutral:
                self._accept(accepted, _Edit(
                    signal.span.start, signal.span.end, match_case(signal.text, neutral),
                    "SOFTEN_LABEL", "Inflammatory label replaced with neutral phrasing",
                ))

        if phrases is not None:
            for rule in PHRASE_RULES:
                phrase = phrases.get(rule.phrase_key)
                if not phrase:
                    continue
                for m in rule.pattern.finditer(text):
                    self._accept(accepted, _Edit(
                        m.start(), m.end(), match_case(m.group(0), phrase),
                        rule.id, rule.reason,
                    ))

        # --- Rule 3: Allegation framing ---
        self._hedge_sentences(text, sentences, signals, detection.claim_units, mode, accepted)

        # --- Rule 4: Term softening ---
        if mode in COURT_REGISTER_MODES:
            self._soften_terms(text, sentences, accepted)

        # --- Rule 5: Formal opening ---
        if phrases is not None and not OPENING_RE.search(text[:OPENING_SCAN_CHARS]):
            opening = phrases.get("submission_open")
            if opening:
                self._accept(accepted, _Edit(
                    0, 0, opening + "\n\n", "COURT_OPENING",
                    "Formal submission opening added", lead=True,
                ))

        accepted.sort(key=lambda e: (e.start, e.end, 0 if e.lead else 1))
        transformations = [
            RewriteTransformation(
                rule_id=e.rule_id,
                from_text=text[e.start:e.end],
                to_text=e.replacement,
                reason=e.reason,
                span=Span(e.start, e.end),
            )
            for e in accepted
        ]
        rewritten = replay_transformations(text, transformations)

        return RewriteResult(
            rewritten_text=rewritten,
            transformations=transformations,
            diff_spans=compute_diff_spans(text, rewritten) if transformations else [],
        )

    @staticmethod
    def _span_valid(text: str, signal: RiskSignal) -> bool:
        span = signal.span
        return 0 <= span.start < span.end <= len(text) and text[span.start:span.end] == signal.text

    @staticmethod
    def _accept(accepted: list[_Edit], edit: _Edit) -> bool:
        if _conflicts(edit, accepted):
            logger.debug("Rewrite edit dropped on conflict: %s", edit.rule_id)
            return False
        accepted.append(edit)
        return True

    def _hedge_sentences(
        self,
        text: str,
        sentences: list[Span],
        signals: list[RiskSignal],
        claims: list[ClaimUnit],
        mode: str,
        accepted: list[_Edit],
    ):
        """Prefix each unhedged sentence carrying a severe assertion."""
        severe: dict[int, list[str]] = {}
        for signal in signals:
            if not self._needs_framing(signal, mode):
                continue
            idx = sentence_index_at(sentences, signal.span.start)
            if idx >= 0:
                severe.setdefault(idx, []).append(signal.level)

        for idx in sorted(severe):
            sentence = sentences[idx]
            if has_hedging(self._apply_within(text, sentence, accepted)):
                continue

            sentence_claims = [
                c for c in claims
                if c.sentence_span is not None and c.sentence_span == sentence
            ]
            severity = max_level(
                [c.severity for c in sentence_claims] or severe[idx]
            )
            sentence_text = text[sentence.start:sentence.end]
            consumed, replacement = hedge_edit(sentence_text, severity, mode)

            if consumed and self._accept(accepted, _Edit(
                sentence.start, sentence.start + consumed, replacement,
                "HEDGE_CLAIM", f"{severity} assertion framed as allegation",
            )):
                continue

            # The first word is taken by an earlier edit: insert instead
            insertion = _Edit(
                sentence.start, sentence.start, hedge_prefix(severity, mode),
                "HEDGE_CLAIM", f"{severity} assertion framed as allegation",
            )
            if self._accept(accepted, insertion):
                self._lowercase_lead(text, sentence, accepted)

    def _needs_framing(self, signal: RiskSignal, mode: str) -> bool:
        """
        Does this signal call for allegation framing of its sentence?

        Decided from the rule's base level. Evidence and protected-target
        adjustments are ignored: they depend on nearby text that
        redaction and substitution change between passes.
        """
        if mode in COURT_REGISTER_MODES and signal.rule_id in COURT_FRAMED_RULES:
            return True
        if signal.category not in ASSERTION_CATEGORIES:
            return False
        rule = self._table.get(signal.rule_id)
        level = rule.level if rule is not None else signal.level
        return LEVEL_RANK[level] >= LEVEL_RANK["HIGH"]

    @classmethod
    def _soften_terms(cls, text: str, sentences: list[Span], accepted: list[_Edit]):
        """Soften bare legal terms in sentences no earlier rule has framed."""
        framed = [
            has_hedging(cls._apply_within(text, sentence, accepted))
            for sentence in sentences
        ]
        for rule in TERM_SOFTENING:
            for m in rule.pattern.finditer(text):
                idx = sentence_index_at(sentences, m.start())
                if idx < 0 or framed[idx]:
                    continue
                cls._accept(accepted, _Edit(
                    m.start(), m.end(), match_case(m.group(0), rule.replacement),
                    rule.id, rule.reason,
                ))

    @staticmethod
    def _apply_within(text: str, sentence: Span, accepted: list[_Edit]) -> str:
        """Sentence text with already-accepted edits inside it applied."""
        inside = sorted(
            (e for e in accepted if sentence.start <= e.start and e.end <= sentence.end),
            key=lambda e: (e.start, e.end),
        )
        parts: list[str] = []
        cursor = sentence.start
        for e in inside:
            parts.append(text[cursor:e.start])
            parts.append(e.replacement)
            cursor = e.end
        parts.append(text[cursor:sentence.end])
        return "".join(parts)

    @staticmethod
    def _lowercase_lead(text: str, sentence: Span, accepted: list[_Edit]):
        """Lower-case an edit that now follows a hedge at sentence start."""
        for i, e in enumerate(accepted):
            if e.start != sentence.start or e.start == e.end:
                continue
            first_word = text[e.start:e.end].split(" ", 1)[0]
            if first_word in LOWERCASE_STARTERS and e.replacement:
                accepted[i] = replace(
                    e, replacement=e.replacement[0].lower() + e.replacement[1:]
                )
            break


# ============================================================
# SINGLETON
# ============================================================

rewriter = CourtSafeRewriter()


def rewrite_court_safe(
    text: str,
    detection: DetectionResult,
    mode: str,
    court_style: Optional[str] = None,
    filing_type: Optional[str] = None,
) -> RewriteResult:
    """Run the default rewriter. See CourtSafeRewriter.rewrite."""
    return rewriter.rewrite(text, detection, mode, court_style, filing_type)
