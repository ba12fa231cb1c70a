"""
Risk Signal Detector — Span-Tagged Classification

Scans text against the pattern table and emits one RiskSignal per
surviving match. Every signal's span indexes the exact text passed in,
so downstream stages (claims, rewriter) can work against the original
offsets without re-scanning.

Deterministic, regex-only. Never raises on empty or non-string input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Optional

from safetygate.config import settings
from safetygate.patterns import PatternTable, RiskRule, has_hedging, pattern_table
from safetygate.sentences import sentence_index_at, split_sentences
from safetygate.types import (
    CATEGORY_RANK,
    DISTRIBUTION_MODES,
    LEVEL_RANK,
    EvidenceArtifact,
    GateContext,
    RiskSignal,
    Span,
    shift_level,
)

logger = logging.getLogger(__name__)

# Confidence adjustments
HEDGE_CONFIDENCE_PENALTY = 0.15
EVIDENCE_CONFIDENCE_BONUS = 0.10

# Shortest artifact value considered for substring matching
MIN_ARTIFACT_CHARS = 3

_WORD_RE = re.compile(r"\w+")


@dataclass(frozen=True)
class _Candidate:
    signal: RiskSignal
    order: int      # Rule position in the table, final tie-break


class RiskSignalDetector:
    """
    Deterministic detection engine over an injected pattern table.

    Instantiated once as a module singleton (`detector`). Holds no
    mutable state; safe to share across threads.
    """

    def __init__(
        self,
        table: PatternTable = pattern_table,
        protected_categories: tuple[str, ...] = settings.PROTECTED_ENTITY_CATEGORIES,
        context_window: int = settings.CONTEXT_WINDOW,
    ):
        self._table = table
        self._protected = frozenset(c.lower() for c in protected_categories)
        self._window = context_window

    @property
    def table(self) -> PatternTable:
        return self._table

    def detect(
        self,
        text: str,
        context: Optional[GateContext] = None,
        mode: str = "controlled_legal",
    ) -> list[RiskSignal]:
        """
        Detect risk signals in text.

        Args:
            text: Raw report or section text.
            context: Optional entities and evidence artifacts. Absent
                context means no targets and no evidence refs.
            mode: Distribution mode of the caller. Detection itself is
                mode-independent; mode policy is applied by the decider.

        Returns:
            Signals sorted by span start, ids SIG-1..SIG-n.
        """
        if mode not in DISTRIBUTION_MODES:
            raise ValueError(f"Unknown distribution mode: {mode!r}")
        if not isinstance(text, str) or not text.strip():
            return []

        context = context or GateContext()
        sentences = split_sentences(text)

        # --- Phase 1: Rule matching ---
        candidates: list[_Candidate] = []
        for order, (rule, regex) in enumerate(self._table.compiled()):
            for match in regex.finditer(text):
                start, end = match.span()
                if start == end:
                    continue
                signal = self._build_signal(text, rule, start, end, sentences, context)
                candidates.append(_Candidate(signal=signal, order=order))

        # --- Phase 2: Overlap resolution ---
        kept = self._resolve_overlaps(candidates)

        # --- Phase 3: Ordering + ids ---
        kept.sort(key=lambda s: (s.span.start, s.span.end))
        signals = [replace(s, id=f"SIG-{i}") for i, s in enumerate(kept, start=1)]

        logger.debug(
            "Detection complete",
            extra={"mode": mode, "signals_count": len(signals)},
        )
        return signals

    def _build_signal(
        self,
        text: str,
        rule: RiskRule,
        start: int,
        end: int,
        sentences: list[Span],
        context: GateContext,
    ) -> RiskSignal:
        idx = sentence_index_at(sentences, start)
        sentence = sentences[idx] if idx >= 0 else Span(0, len(text))
        sentence_text = text[sentence.start:sentence.end]
        matched = text[start:end]

        targets, protected = self._resolve_targets(text, start, end, sentence, context)
        evidence_refs = self._resolve_evidence(
            sentence_text, matched, context.evidence_artifacts
        )
        hedged = has_hedging(sentence_text)

        level = rule.level
        if not rule.fixed_level:
            if hedged:
                level = shift_level(level, -1)
            if evidence_refs:
                level = shift_level(level, -1)
            if protected:
                level = shift_level(level, +1)

        confidence = rule.confidence
        if hedged:
            confidence -= HEDGE_CONFIDENCE_PENALTY
        if evidence_refs:
            confidence += EVIDENCE_CONFIDENCE_BONUS
        confidence = round(min(1.0, max(0.0, confidence)), 2)

        return RiskSignal(
            id="",
            category=rule.category,
            level=level,
            span=Span(start, end),
            text=matched,
            rationale=rule.rationale,
            targets=targets,
            claim_type=rule.claim_type,
            evidence_refs=evidence_refs,
            confidence=confidence,
            rule_id=rule.id,
        )

    def _resolve_targets(
        self,
        text: str,
        start: int,
        end: int,
        sentence: Span,
        context: GateContext,
    ) -> tuple[tuple[str, ...], bool]:
        """
        Find entity names in the context window around a match.

        The window is ±context_window characters, clipped to the
        sentence that contains the match. Names match whole-word and
        case-insensitively.
        """
        if not context.entities:
            return (), False

        lo, hi = max(0, start - self._window), min(len(text), end + self._window)
        if sentence.start <= start < sentence.end:
            lo, hi = max(lo, sentence.start), min(hi, sentence.end)
        window = text[lo:hi]

        targets: list[str] = []
        protected = False
        for entity in context.entities:
            name = (entity.name or "").strip()
            if not name or name in targets:
                continue
            name_re = r"(?<!\w)" + re.escape(name) + r"(?!\w)"
            if re.search(name_re, window, re.IGNORECASE):
                targets.append(name)
                if (entity.category or "").strip().lower() in self._protected:
                    protected = True
        return tuple(targets), protected

    @staticmethod
    def _resolve_evidence(
        sentence_text: str,
        matched: str,
        artifacts: tuple[EvidenceArtifact, ...],
    ) -> tuple[str, ...]:
        """
        Evidence artifacts backing a match.

        An artifact backs the match when its value occurs in the
        containing sentence, or when it contains a significant word
        (more than 4 characters) of the matched text.
        """
        if not artifacts:
            return ()

        sentence_lower = sentence_text.lower()
        key_words = [w for w in _WORD_RE.findall(matched.lower()) if len(w) > 4]

        refs: list[str] = []
        for artifact in artifacts:
            value = (artifact.artifact_value or "").strip().lower()
            if len(value) < MIN_ARTIFACT_CHARS or artifact.id in refs:
                continue
            if value in sentence_lower or any(w in value for w in key_words):
                refs.append(artifact.id)
        return tuple(refs)

    @staticmethod
    def _resolve_overlaps(candidates: list[_Candidate]) -> list[RiskSignal]:
        """
        Keep one signal per overlapping region.

        Higher level wins; on equal level the higher-precedence
        category wins; then the earlier span; then table order.
        """
        ranked = sorted(
            candidates,
            key=lambda c: (
                -LEVEL_RANK[c.signal.level],
                -CATEGORY_RANK[c.signal.category],
                c.signal.span.start,
                c.order,
            ),
        )
        kept: list[RiskSignal] = []
        for candidate in ranked:
            span = candidate.signal.span
            if any(span.overlaps(k.span) for k in kept):
                continue
            kept.append(candidate.signal)
        return kept


# ============================================================
# SINGLETON
# ============================================================

detector = RiskSignalDetector()


def detect_risk_signals(
    text: str,
    context: Optional[GateContext] = None,
    mode: str = "controlled_legal",
) -> list[RiskSignal]:
    """Run the default detector. See RiskSignalDetector.detect."""
    return detector.detect(text, context, mode)
