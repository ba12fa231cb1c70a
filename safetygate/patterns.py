"""
Pattern Table — Immutable Detection Rules

The pattern table defines, for every risk category, the phrasing that
raises a signal:
  1. What counts as a risk (category + base level)
  2. How confident a bare match is
  3. How sensitive data is redacted (fixed placeholders)

The table is versioned and compiled once. A malformed rule is a
configuration error raised while the table is built, so a broken
table stops the process at import time instead of failing per call.

Every rule is:
- Deterministic (regex-based, no LLM)
- Tagged with exactly one risk category
- Immutable once the table is constructed
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional

from safetygate.types import LEVEL_RANK, RISK_CATEGORIES

# --- Table version (stamped on /patterns and /health) ---
PATTERN_TABLE_VERSION = "2024.2"


class ConfigurationError(ValueError):
    """A static rule table (patterns, mitigations, rewrite rules) is malformed."""


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class RiskRule:
    """
    A single detection rule.

    `level` is the base level before hedging, evidence, and
    protected-target adjustments. Rules with `fixed_level` keep their
    base level regardless of context (sensitive identifiers stay
    sensitive whether or not the sentence is hedged).
    """
    id: str
    category: str
    level: str
    pattern: str
    rationale: str
    confidence: float
    claim_type: Optional[str] = None
    fixed_level: bool = False
    # Fixed placeholder used by the rewriter (sensitive data only)
    redaction: Optional[str] = None
    case_sensitive: bool = False


# Offence vocabulary shared by the criminal-allegation rules
_OFFENCES = (
    r"fraud|corruption|murder|theft|kidnapping|extortion|bribery|"
    r"money\s+laundering|terrorism|embezzlement|forgery|smuggling|"
    r"tax\s+evasion"
)


# ============================================================
# RISK RULES
# ============================================================

RISK_RULES: tuple[RiskRule, ...] = (

    # --- Unverified criminal allegations ---

    RiskRule(
        id="UCA_ASSERTED_ACT",
        category="unverified_criminal_allegation",
        level="CRITICAL",
        pattern=(
            r"\b(?:committed|perpetrated|carried\s+out|orchestrated|masterminded|"
            r"(?:is|was|are|were)\s+guilty\s+of|"
            r"(?:was|were|has\s+been|have\s+been)\s+convicted\s+of|"
            r"engaged\s+in|took\s+part\s+in)"
            r"(?=\s+(?:acts?\s+of\s+|an?\s+|the\s+)?(?:" + _OFFENCES + r")\b)"
        ),
        rationale="Criminal wrongdoing asserted as fact without allegation framing",
        confidence=0.85,
        claim_type="criminal_act",
    ),
    RiskRule(
        id="UCA_OFFENCE_TERM",
        category="unverified_criminal_allegation",
        level="MEDIUM",
        pattern=r"\b(?:" + _OFFENCES + r")\b",
        rationale="Reference to a criminal offence that has not been adjudicated",
        confidence=0.6,
        claim_type="offence_reference",
    ),

    # --- Defamation ---

    RiskRule(
        id="DEF_CRIMINAL_LABEL",
        category="defamation",
        level="CRITICAL",
        pattern=(
            r"\b(?:is|are|was|were)\s+(?:an?\s+)?(?:(?:known|notorious|proven)\s+)?"
            r"(?:criminal|fraudster|terrorist|murderer|thief|crook|traitor|rapist|"
            r"extortionist|money\s+launderer|corrupt)\b"
        ),
        rationale="Person or body labelled a criminal as a statement of fact",
        confidence=0.85,
        claim_type="criminal_label",
    ),
    RiskRule(
        id="DEF_CERTAINTY_MARKER",
        category="defamation",
        level="HIGH",
        pattern=(
            r"\b(?:undeniabl[ey]|indisputabl[ey]|irrefutabl[ey]|incontrovertibl[ey]|"
            r"conclusively\s+(?:proved|proven|established|shown)|"
            r"beyond\s+(?:any|all|a)\s+(?:shadow\s+of\s+(?:a\s+)?)?doubt|"
            r"without\s+(?:any\s+)?doubt)\b"
        ),
        rationale="Absolute certainty marker used without evidence reference",
        confidence=0.7,
        claim_type="certainty_marker",
    ),
    RiskRule(
        id="DEF_INFLAMMATORY_ACT",
        category="defamation",
        level="MEDIUM",
        pattern=(
            r"\b(?:vendetta|sabotaged?|hijacked|abducted|terrori[sz]ed|extorted|"
            r"blackmailed|fabricated\s+evidence)\b"
        ),
        rationale="Inflammatory characterisation of conduct",
        confidence=0.65,
        claim_type="inflammatory_act",
    ),

    # --- Incitement / harassment ---

    RiskRule(
        id="INC_LABEL",
        category="incitement_or_harassment",
        level="HIGH",
        pattern=(
            r"\b(?:mafia|crooks?|traitors?|blackmailers?|goons?|thugs?|"
            r"gangsters?|scum|vermin)\b"
        ),
        rationale="Inflammatory label applied to a person or group",
        confidence=0.8,
        claim_type="label",
    ),
    RiskRule(
        id="INC_CALL_TO_ACTION",
        category="incitement_or_harassment",
        level="HIGH",
        pattern=(
            r"\b(?:hunt\s+(?:him|her|them)\s+down|"
            r"teach\s+(?:him|her|them)\s+a\s+lesson|"
            r"make\s+(?:him|her|them)\s+pay|"
            r"(?:should|must|deserves?\s+to)\s+be\s+"
            r"(?:punished|beaten|attacked|lynched|hanged|shot)|"
            r"expose\s+(?:him|her|them)\s+everywhere)\b"
        ),
        rationale="Language that invites action against a person",
        confidence=0.8,
        claim_type="call_to_action",
    ),

    # --- Institutional accusations ---

    RiskRule(
        id="INST_ACCUSATION",
        category="institutional_accusation",
        level="HIGH",
        pattern=(
            r"\b(?:NADRA|FIA|NAB|ISI|CDA|"
            r"(?:the\s+)?(?:police|army|military|government|ministry|department|"
            r"municipal\s+corporation|agency|administration))\b"
            r"[^.!?\n]{0,80}?"
            r"\b(?:(?:is|are|was|were|has\s+been|have\s+been)\s+"
            r"(?:deeply\s+|thoroughly\s+)?(?:corrupt|criminal|complicit|a\s+mafia|"
            r"involved\s+in|behind)|perpetrated|orchestrated)\b"
        ),
        rationale="Institution accused of wrongdoing as statement of fact",
        confidence=0.7,
        claim_type="institutional",
    ),
    RiskRule(
        id="INST_SYSTEMIC",
        category="institutional_accusation",
        level="HIGH",
        pattern=(
            r"\b(?:state\s+terrorism|institutional\s+corruption|"
            r"systemic\s+(?:abuse|corruption)|government\s+conspiracy|"
            r"state[- ]sponsored\s+(?:abuse|harassment|persecution))\b"
        ),
        rationale="Systemic wrongdoing attributed to the state as fact",
        confidence=0.75,
        claim_type="institutional",
    ),

    # --- Sub judice / contempt ---

    RiskRule(
        id="SUBJ_GUILT_DECLARATION",
        category="sub_judice",
        level="CRITICAL",
        pattern=(
            r"\b(?:pending\s+(?:before|in)\s+(?:the\s+)?"
            r"(?:court|tribunal|high\s+court|supreme\s+court)|"
            r"sub[\s-]?judice|ongoing\s+(?:trial|proceedings?|prosecution))\b"
            r"[^.!?\n]{0,120}?"
            r"\b(?:guilty|criminal|corrupt|fraudster|liar|culprit)\b"
        ),
        rationale="Guilt declaration about a matter that is sub judice",
        confidence=0.8,
        claim_type="guilt_declaration",
    ),
    RiskRule(
        id="CONTEMPT_SCANDALISING",
        category="contempt_of_court",
        level="CRITICAL",
        pattern=(
            r"\b(?:(?:the\s+)?(?:judge|judges|judiciary|court|bench|magistrate|tribunal)\s+"
            r"(?:is|was|are|were|has\s+been)\s+"
            r"(?:biased|corrupt|bought|compromised|partisan|a\s+puppet|"
            r"in\s+(?:the\s+)?pocket\s+of)|"
            r"(?:bribed|bought\s+off|paid\s+off)\s+the\s+(?:judge|court|bench|magistrate))\b"
        ),
        rationale="Statement scandalising the court or imputing judicial corruption",
        confidence=0.8,
        claim_type="scandalising_court",
    ),
    RiskRule(
        id="CONTEMPT_PREJUDGMENT",
        category="contempt_of_court",
        level="HIGH",
        pattern=(
            r"\bthe\s+(?:court|judge|bench|tribunal)\s+"
            r"(?:must|will|has\s+no\s+choice\s+but\s+to|cannot\s+but)\s+"
            r"(?:convict|punish|sentence|find\s+(?:him|her|them)\s+guilty)\b"
        ),
        rationale="Outcome of pending proceedings dictated to the court",
        confidence=0.75,
        claim_type="prejudgment",
    ),

    # --- Misidentification ---

    RiskRule(
        id="MISID_UNCERTAIN_IDENTITY",
        category="misidentification",
        level="MEDIUM",
        pattern=(
            r"\b(?:possibly|probably|believed\s+to\s+be|thought\s+to\s+be|"
            r"may\s+be|might\s+be|appears\s+to\s+be)\s+"
            r"the\s+same\s+(?:person|individual|man|woman)\b"
        ),
        rationale="Identity of the person is asserted on uncertain grounds",
        confidence=0.6,
        claim_type="uncertain_identity",
    ),
    RiskRule(
        id="MISID_NAME_ONLY",
        category="misidentification",
        level="LOW",
        pattern=(
            r"\b(?:[Aa]|[Oo]ne|[Ss]ome)\s+(?:person|man|woman|individual|officer)\s+"
            r"(?:named|called|identified\s+only\s+as)\s+[A-Z][a-z]+\b"
        ),
        rationale="Person identified by a single name only",
        confidence=0.5,
        claim_type="partial_identity",
        case_sensitive=True,
    ),
    RiskRule(
        id="MISID_ALIAS",
        category="misidentification",
        level="LOW",
        pattern=r"\b(?:alias\b|a\.k\.a\.|also\s+known\s+as\b)",
        rationale="Alias used to link identities",
        confidence=0.5,
        claim_type="alias",
    ),

    # --- Privacy ---

    RiskRule(
        id="PRIV_PRIVATE_LIFE",
        category="privacy",
        level="MEDIUM",
        pattern=(
            r"\b(?:his|her|their)\s+(?:medical\s+(?:history|records?|condition)|"
            r"mental\s+health|psychiatric\s+(?:history|treatment)|"
            r"sexual\s+(?:orientation|history)|religious\s+beliefs?|"
            r"private\s+(?:life|messages|correspondence|photographs)|"
            r"children(?:'s)?\s+school)\b"
        ),
        rationale="Disclosure of private-life details",
        confidence=0.65,
        claim_type="private_life",
    ),
    RiskRule(
        id="PRIV_RESIDENCE",
        category="privacy",
        level="MEDIUM",
        pattern=r"\b(?:lives|resides|is\s+staying)\s+(?:at|near)\b",
        rationale="Disclosure of where a person lives",
        confidence=0.6,
        claim_type="residence",
    ),

    # --- Sensitive personal data ---

    RiskRule(
        id="SPD_NATIONAL_ID",
        category="sensitive_personal_data",
        level="CRITICAL",
        pattern=r"\b(?:\d{5}-\d{7}-\d|\d{13})\b",
        rationale="National identity number detected: must be redacted",
        confidence=0.95,
        claim_type="national_id",
        fixed_level=True,
        redaction="[ID REDACTED]",
    ),
    RiskRule(
        id="SPD_PHONE",
        category="sensitive_personal_data",
        level="CRITICAL",
        pattern=(
            r"(?<![\w+])(?:(?:\+92[\s-]?|0)\d{3}[\s-]?\d{7}|"
            r"\+\d{1,3}[\s-]\d{3}[\s-]\d{3}[\s-]\d{4})\b"
        ),
        rationale="Phone number detected: must be redacted",
        confidence=0.95,
        claim_type="phone",
        fixed_level=True,
        redaction="[PHONE REDACTED]",
    ),
    RiskRule(
        id="SPD_ADDRESS",
        category="sensitive_personal_data",
        level="CRITICAL",
        pattern=(
            r"\b(?:House|Plot|Flat|Apartment)\s+(?:No\.?\s*)?\d+[A-Z]?(?:/\d+)?"
            r"[, ]+(?:Street|Block|Sector|Phase)\s+[\w-]+"
        ),
        rationale="Street address detected: must be redacted",
        confidence=0.9,
        claim_type="address",
        fixed_level=True,
        redaction="[ADDRESS REDACTED]",
    ),
    RiskRule(
        id="SPD_BANK_NUMBER",
        category="sensitive_personal_data",
        level="CRITICAL",
        pattern=r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b",
        rationale="Bank card or account number detected: must be redacted",
        confidence=0.9,
        claim_type="bank_number",
        fixed_level=True,
        redaction="[ACCOUNT REDACTED]",
    ),
    RiskRule(
        id="SPD_EMAIL",
        category="sensitive_personal_data",
        level="CRITICAL",
        pattern=r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b",
        rationale="Personal email address detected: must be redacted",
        confidence=0.9,
        claim_type="email",
        fixed_level=True,
        redaction="[EMAIL REDACTED]",
    ),
)


# ============================================================
# HEDGING MARKERS
# ============================================================

# Phrasing that frames a statement as allegation rather than fact
HEDGING_RE = re.compile(
    r"\b(?:alleged(?:ly)?|reportedly|purportedly|according\s+to|"
    r"it\s+is\s+(?:respectfully\s+|humbly\s+)?submitted|prima\s+facie|"
    r"subject\s+to\s+(?:proof|verification))\b",
    re.IGNORECASE,
)


def has_hedging(text: str) -> bool:
    """True if the text contains an allegation or attribution marker."""
    return bool(HEDGING_RE.search(text))


# ============================================================
# THE TABLE
# ============================================================

class PatternTable:
    """
    Compiled, validated, read-only set of risk rules.

    Built once (see `pattern_table` below) and injected into the
    detector and rewriter. Holds no mutable state after construction.
    """

    def __init__(
        self,
        rules: tuple[RiskRule, ...] = RISK_RULES,
        version: str = PATTERN_TABLE_VERSION,
    ):
        self.version = version
        self._rules = tuple(rules)
        self._by_id: dict[str, RiskRule] = {}
        for rule in self._rules:
            if rule.id in self._by_id:
                raise ConfigurationError(f"Duplicate rule id: {rule.id}")
            self._by_id[rule.id] = rule
        self._compiled = tuple(self._compile(rule) for rule in self._rules)

    @staticmethod
    def _compile(rule: RiskRule) -> re.Pattern:
        if rule.category not in RISK_CATEGORIES:
            raise ConfigurationError(
                f"Rule {rule.id}: unknown category {rule.category!r}"
            )
        if rule.level not in LEVEL_RANK:
            raise ConfigurationError(f"Rule {rule.id}: unknown level {rule.level!r}")
        if not 0.0 <= rule.confidence <= 1.0:
            raise ConfigurationError(
                f"Rule {rule.id}: confidence {rule.confidence} outside [0, 1]"
            )
        if rule.category == "sensitive_personal_data" and not rule.redaction:
            raise ConfigurationError(
                f"Rule {rule.id}: sensitive data rules need a redaction placeholder"
            )

        flags = 0 if rule.case_sensitive else re.IGNORECASE
        try:
            compiled = re.compile(rule.pattern, flags)
        except re.error as e:
            raise ConfigurationError(f"Rule {rule.id}: invalid pattern: {e}") from e

        if compiled.search("") is not None:
            raise ConfigurationError(f"Rule {rule.id}: pattern matches empty text")
        return compiled

    @property
    def rules(self) -> tuple[RiskRule, ...]:
        return self._rules

    def compiled(self) -> Iterator[tuple[RiskRule, re.Pattern]]:
        """Yield (rule, compiled regex) in table order."""
        return zip(self._rules, self._compiled)

    def get(self, rule_id: str) -> Optional[RiskRule]:
        return self._by_id.get(rule_id)

    def describe(self) -> list[dict]:
        """Rule metadata for the GET /patterns endpoint."""
        return [
            {
                "id": r.id,
                "category": r.category,
                "level": r.level,
                "rationale": r.rationale,
                "confidence": r.confidence,
                "claim_type": r.claim_type,
                "fixed_level": r.fixed_level,
                "redaction": r.redaction,
            }
            for r in self._rules
        ]

    def __len__(self) -> int:
        return len(self._rules)


# ============================================================
# SINGLETON: built once at import, never mutated
# ============================================================

pattern_table = PatternTable()
