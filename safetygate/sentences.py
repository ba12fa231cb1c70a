"""
Sentence segmentation shared by the detector, claim extractor, and rewriter.

Segmentation is independent of detection: a boundary is terminal
punctuation followed by whitespace, or a paragraph break. Spans are
trimmed of surrounding whitespace and index the original text.
"""

from __future__ import annotations

import re
from bisect import bisect_right

from safetygate.types import Span

_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+|\n\s*\n")
_LAST_WORD_RE = re.compile(r"(?<![A-Za-z.])([A-Za-z.]+)\.$")

# A period after these does not end a sentence
ABBREVIATIONS = frozenset({
    "mr", "mrs", "ms", "dr", "prof", "hon", "st", "jr", "sr", "no", "nos",
    "vs", "v", "co", "ltd", "inc", "govt", "dept", "art", "sec", "e.g", "i.e",
    "a.k.a", "etc",
})


def _is_abbreviation(text: str, boundary_start: int) -> bool:
    m = _LAST_WORD_RE.search(text, max(0, boundary_start - 20), boundary_start)
    if not m:
        return False
    word = m.group(1)
    # Single-letter initials ("J. Smith")
    if len(word) == 1 and word.isupper():
        return True
    return word.lower() in ABBREVIATIONS


def split_sentences(text: str) -> list[Span]:
    """Split text into trimmed sentence spans, in order."""
    spans: list[Span] = []
    if not text:
        return spans

    pos = 0
    for m in _BOUNDARY_RE.finditer(text):
        # Paragraph breaks always split
        if m.group(0).count("\n") < 2 and _is_abbreviation(text, m.start()):
            continue
        _append_trimmed(spans, text, pos, m.start())
        pos = m.end()
    _append_trimmed(spans, text, pos, len(text))
    return spans


def _append_trimmed(spans: list[Span], text: str, start: int, end: int):
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start < end:
        spans.append(Span(start, end))


def sentence_index_at(sentences: list[Span], pos: int) -> int:
    """
    Index of the sentence containing `pos`.

    Positions in the whitespace between sentences belong to the
    following sentence. Returns -1 when there are no sentences.
    """
    if not sentences:
        return -1
    starts = [s.start for s in sentences]
    idx = bisect_right(starts, pos) - 1
    if idx >= 0 and pos < sentences[idx].end:
        return idx
    if idx + 1 < len(sentences):
        return idx + 1
    return len(sentences) - 1
