"""
Safety Types — Shared Data Model

Records passed between the detector, claim extractor, decider, rewriter,
gate, and QA validator. Closed sets (levels, categories, modes) are plain
string constants, validated where records are built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


# ============================================================
# CLOSED SETS
# ============================================================

RISK_LEVELS: tuple[str, ...] = ("LOW", "MEDIUM", "HIGH", "CRITICAL")

# Total order over levels
LEVEL_RANK: dict[str, int] = {level: i for i, level in enumerate(RISK_LEVELS)}

RISK_CATEGORIES: tuple[str, ...] = (
    "defamation",
    "privacy",
    "contempt_of_court",
    "sub_judice",
    "incitement_or_harassment",
    "sensitive_personal_data",
    "unverified_criminal_allegation",
    "institutional_accusation",
    "misidentification",
)

# Overlap tie-break order, highest first
CATEGORY_PRECEDENCE: tuple[str, ...] = (
    "contempt_of_court",
    "sub_judice",
    "defamation",
    "unverified_criminal_allegation",
    "institutional_accusation",
    "misidentification",
    "incitement_or_harassment",
    "privacy",
    "sensitive_personal_data",
)

CATEGORY_RANK: dict[str, int] = {
    cat: len(CATEGORY_PRECEDENCE) - i for i, cat in enumerate(CATEGORY_PRECEDENCE)
}

DISTRIBUTION_MODES: tuple[str, ...] = (
    "court_mode",
    "controlled_legal",
    "research_only",
    "public",
)

MITIGATION_TYPES: tuple[str, ...] = (
    "add_disclaimer",
    "require_evidence",
    "force_allegation_language",
    "remove_or_redact",
    "require_human_review",
    "restrict_distribution",
)


def max_level(levels) -> str:
    """Highest level in an iterable of levels; LOW when empty."""
    best = "LOW"
    for level in levels:
        if LEVEL_RANK[level] > LEVEL_RANK[best]:
            best = level
    return best


def shift_level(level: str, steps: int) -> str:
    """Move a level up (positive) or down (negative), clamped to the scale."""
    idx = LEVEL_RANK[level] + steps
    idx = max(0, min(idx, len(RISK_LEVELS) - 1))
    return RISK_LEVELS[idx]


# ============================================================
# INPUT CONTEXT
# ============================================================

@dataclass(frozen=True)
class Entity:
    """A named person or organization known to the report layer."""
    name: str
    category: Optional[str] = None   # e.g. "person", "minor", "judge"


@dataclass(frozen=True)
class EvidenceArtifact:
    """An evidence item whose value can be matched against claim text."""
    id: str
    artifact_value: Optional[str] = None


@dataclass(frozen=True)
class GateContext:
    """
    Optional detection context.

    No entities means signals carry no targets and no protected-target
    upgrade happens. No artifacts means no signal is evidence-backed.
    """
    entities: tuple[Entity, ...] = ()
    evidence_artifacts: tuple[EvidenceArtifact, ...] = ()


# ============================================================
# DETECTION
# ============================================================

@dataclass(frozen=True)
class Span:
    """Half-open character range into the original input text."""
    start: int
    end: int

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class RiskSignal:
    """A single detected risk occurrence."""
    id: str
    category: str
    level: str
    span: Span
    text: str               # Always original_text[span.start:span.end]
    rationale: str
    targets: tuple[str, ...] = ()
    claim_type: Optional[str] = None
    evidence_refs: tuple[str, ...] = ()
    confidence: float = 0.0
    rule_id: str = ""


@dataclass
class ClaimUnit:
    """Per-sentence, per-target risk assertion aggregated from signals."""
    target: str
    predicate_summary: str
    severity: str
    has_evidence: bool
    evidence_refs: list[str] = field(default_factory=list)
    suggested_rewrite: str = ""
    sentence_span: Optional[Span] = None


@dataclass
class DetectionResult:
    """Detector + claim extractor output consumed by the decider and rewriter."""
    signals: list[RiskSignal] = field(default_factory=list)
    claim_units: list[ClaimUnit] = field(default_factory=list)


# ============================================================
# DECISION
# ============================================================

@dataclass
class ReputationMitigation:
    """A required corrective action attached to a risk decision."""
    type: str
    key: Optional[str] = None
    min: Optional[int] = None
    for_targets: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    role: Optional[str] = None
    # Modes in which this mitigation applies; empty means every mode
    allowed_modes: list[str] = field(default_factory=list)
    # restrict_distribution only: channels the report may still go to
    restrict_to: list[str] = field(default_factory=list)
    # add_disclaimer only: resolved wording, when the phrase library has it
    text: Optional[str] = None


@dataclass
class ReputationRiskDecision:
    overall: str
    categories: list[str]
    signals: list[RiskSignal]
    required_mitigations: list[ReputationMitigation]


# ============================================================
# REWRITE
# ============================================================

@dataclass(frozen=True)
class RewriteTransformation:
    """One textual substitution; span refers to the original text."""
    rule_id: str
    from_text: str
    to_text: str
    reason: str
    span: Span


@dataclass
class RewriteResult:
    rewritten_text: str
    transformations: list[RewriteTransformation] = field(default_factory=list)
    diff_spans: list[dict] = field(default_factory=list)


# ============================================================
# GATE
# ============================================================

@dataclass(frozen=True)
class CourtContext:
    court_style: str
    filing_type: str


@dataclass
class GateIssue:
    """A blocker or warning raised by the gate."""
    code: str
    message: str
    action: Optional[str] = None
    signal_id: Optional[str] = None


@dataclass
class SafetyGateInput:
    text: str
    mode: str
    context: GateContext = field(default_factory=GateContext)
    court_style: Optional[str] = None
    filing_type: Optional[str] = None
    is_admin_override: bool = False

    def __post_init__(self):
        if self.mode not in DISTRIBUTION_MODES:
            raise ValueError(f"Unknown distribution mode: {self.mode!r}")


@dataclass
class SafetyGateResult:
    mode: str
    court: Optional[CourtContext]
    decision: ReputationRiskDecision
    signals: list[RiskSignal]
    claim_units: list[ClaimUnit]
    rewrite_plan: RewriteResult
    blockers: list[GateIssue] = field(default_factory=list)
    warnings: list[GateIssue] = field(default_factory=list)

    @property
    def export_allowed(self) -> bool:
        return not self.blockers


# ============================================================
# QA
# ============================================================

@dataclass(frozen=True)
class YearRange:
    min: int
    max: int


@dataclass
class SafetyQAContext:
    """Summary of an assembled report, produced after template rendering."""
    mode: str
    relationships_total: int = 0
    connections_total: int = 0
    court_mode: bool = False
    has_evidence: bool = False
    severe_claims: int = 0
    has_front_matter: bool = True
    has_disclaimer: bool = True
    raw_html: Optional[str] = None
    year_range: Optional[YearRange] = None        # detected event years
    case_year_range: Optional[YearRange] = None   # declared case years


@dataclass
class SafetyQAIssue:
    code: str
    level: str              # "critical" | "warning"
    message: str
    action: Optional[str] = None


@dataclass
class SafetyQAReport:
    passed: bool
    issues: list[SafetyQAIssue] = field(default_factory=list)
