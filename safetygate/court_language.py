"""
Court-Safe Language — Jurisdiction Phrase Table

Deterministic phrase sets for court filings, keyed by
(court_style, filing_type). Every court and filing type starts from
the default set; per-court overrides replace individual phrase keys.
Unknown keys fall back to the IHC writ set.

The phrase substitution rules used by the rewriter live here too, so
the whole jurisdiction layer is one pluggable table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from safetygate.patterns import ConfigurationError

COURT_STYLES: tuple[str, ...] = ("IHC", "SHC", "LHC", "PHC", "BHC", "AJKHC", "GBCC", "SC")
FILING_TYPES: tuple[str, ...] = ("writ", "criminal_misc", "appeal", "representation")

FALLBACK_COURT = ("IHC", "writ")


# ============================================================
# PHRASES
# ============================================================

DEFAULT_PHRASES: dict[str, tuple[str, ...]] = {
    "submission_open": (
        "May it please this Honourable Court,",
        "It is humbly submitted before this Honourable Court that,",
    ),
    "it_is_respectfully_submitted": (
        "It is respectfully submitted that",
        "It is humbly submitted that",
        "The petitioner respectfully submits that",
    ),
    "prima_facie": (
        "it appears prima facie that",
        "it appears from the available material that",
    ),
    "judge_reference": ("the learned Judge",),
    "court_reference": ("this Honourable Court",),
    "indicates": ("prima facie indicates that",),
    # Disclaimer wording, keyed like the decider's add_disclaimer mitigations
    "no_judicial_determination": (
        "This submission does not constitute a judicial determination of any fact alleged herein.",
    ),
    "data_limitations": (
        "The data presented herein is derived from case records and analytical tools. "
        "Independent verification is recommended.",
    ),
}

COURT_OVERRIDES: dict[str, dict[str, dict[str, tuple[str, ...]]]] = {
    "SC": {
        "writ": {
            "submission_open": ("May it please this Honourable Supreme Court of Pakistan,",),
            "court_reference": ("this Honourable Supreme Court",),
        },
        "appeal": {
            "submission_open": (
                "May it please this Honourable Supreme Court of Pakistan,",
                "Before this Apex Court, it is respectfully submitted that,",
            ),
            "court_reference": ("this Honourable Supreme Court",),
        },
    },
    "IHC": {"writ": {"submission_open": ("May it please this Honourable Islamabad High Court,",)}},
    "SHC": {"writ": {"submission_open": ("May it please this Honourable Sindh High Court,",)}},
    "LHC": {"writ": {"submission_open": ("May it please this Honourable Lahore High Court,",)}},
    "PHC": {"writ": {"submission_open": ("May it please this Honourable Peshawar High Court,",)}},
    "BHC": {"writ": {"submission_open": ("May it please this Honourable Balochistan High Court,",)}},
}


def _build_library() -> dict[tuple[str, str], dict[str, tuple[str, ...]]]:
    library = {}
    for court, filings in COURT_OVERRIDES.items():
        if court not in COURT_STYLES:
            raise ConfigurationError(f"Court override for unknown court {court!r}")
        for filing, overrides in filings.items():
            if filing not in FILING_TYPES:
                raise ConfigurationError(f"Court override for unknown filing type {filing!r}")
            unknown = set(overrides) - set(DEFAULT_PHRASES)
            if unknown:
                raise ConfigurationError(f"Unknown phrase keys for {court}/{filing}: {sorted(unknown)}")

    for court in COURT_STYLES:
        for filing in FILING_TYPES:
            phrases = dict(DEFAULT_PHRASES)
            phrases.update(COURT_OVERRIDES.get(court, {}).get(filing, {}))
            library[(court, filing)] = phrases
    return library


COURT_LIBRARY = _build_library()


def get_court_phrases(court_style: str, filing_type: str) -> dict[str, str]:
    """First phrase of each key for a court and filing type."""
    phrases = COURT_LIBRARY.get((court_style, filing_type), COURT_LIBRARY[FALLBACK_COURT])
    return {key: values[0] if values else "" for key, values in phrases.items()}


def disclaimer_text(key: Optional[str], court_style: Optional[str] = None,
                    filing_type: Optional[str] = None) -> Optional[str]:
    """Wording for a disclaimer key, or None when the library has none."""
    if not key:
        return None
    if court_style and filing_type:
        phrases = get_court_phrases(court_style, filing_type)
    else:
        phrases = get_court_phrases(*FALLBACK_COURT)
    return phrases.get(key) or None


# ============================================================
# SUBSTITUTION RULES
# ============================================================

@dataclass(frozen=True)
class PhraseRule:
    """Replace informal phrasing with the court phrase under `phrase_key`."""
    id: str
    pattern: re.Pattern
    phrase_key: str
    reason: str


PHRASE_RULES: tuple[PhraseRule, ...] = (
    PhraseRule(
        id="COURT_PHRASE_SUBMISSION",
        pattern=re.compile(
            r"\b(?:we|I)\s+(?:strongly\s+|firmly\s+)?(?:believe|think|feel|maintain)\s+that\b",
            re.IGNORECASE,
        ),
        phrase_key="it_is_respectfully_submitted",
        reason="Personal opinion recast as a formal submission",
    ),
    PhraseRule(
        id="COURT_PHRASE_PRIMA_FACIE",
        pattern=re.compile(
            r"\bit\s+is\s+(?:clear|obvious|evident|plain|apparent)\s+that\b",
            re.IGNORECASE,
        ),
        phrase_key="prima_facie",
        reason="Certainty recast as a prima facie observation",
    ),
    PhraseRule(
        id="COURT_PHRASE_PROVES",
        pattern=re.compile(r"\bproves?\s+that\b", re.IGNORECASE),
        phrase_key="indicates",
        reason="Proof claim recast as a prima facie indication",
    ),
    PhraseRule(
        id="COURT_PHRASE_JUDGE",
        pattern=re.compile(r"\bthe\s+judge\b", re.IGNORECASE),
        phrase_key="judge_reference",
        reason="Judicial officer referred to in court register",
    ),
    PhraseRule(
        id="COURT_PHRASE_COURT",
        pattern=re.compile(r"\bthis\s+court\b", re.IGNORECASE),
        phrase_key="court_reference",
        reason="Court referred to in court register",
    ),
)

for _rule in PHRASE_RULES:
    if _rule.phrase_key not in DEFAULT_PHRASES:
        raise ConfigurationError(f"{_rule.id}: unknown phrase key {_rule.phrase_key!r}")
    if _rule.pattern.search("") is not None:
        raise ConfigurationError(f"{_rule.id}: pattern matches empty text")

# Text already carrying a formal opening
OPENING_RE = re.compile(
    r"\b(?:may\s+it\s+please|it\s+is\s+(?:humbly|respectfully)\s+submitted)\b",
    re.IGNORECASE,
)
OPENING_SCAN_CHARS = 200


def match_case(source: str, phrase: str) -> str:
    """Give `phrase` the capitalisation of the first letter of `source`."""
    if not phrase or not source:
        return phrase
    if source[0].isupper():
        return phrase[0].upper() + phrase[1:]
    return phrase[0].lower() + phrase[1:]
