"""
API Schemas — Request and Response Models

Pydantic models for the SafetyGate API.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field

_MODE_PATTERN = "^(court_mode|controlled_legal|research_only|public)$"


# ============================================================
# GATE
# ============================================================

class EntityIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(None, max_length=50,
                                    description="e.g. person, organization, minor, judge.")


class EvidenceArtifactIn(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    artifact_value: Optional[str] = Field(None, max_length=5_000)


class GateRequest(BaseModel):
    """POST /gate request body."""
    text: str = Field(..., max_length=200_000,
                      description="Report or section text to screen (may be empty).")
    mode: str = Field(..., pattern=_MODE_PATTERN,
                      description="Distribution mode: court_mode, controlled_legal, research_only, public.")
    entities: list[EntityIn] = Field(default_factory=list, max_length=1_000)
    evidence_artifacts: list[EvidenceArtifactIn] = Field(default_factory=list, max_length=1_000)
    court_style: Optional[str] = Field(None, max_length=10,
                                       description="IHC, SHC, LHC, PHC, BHC, AJKHC, GBCC or SC.")
    filing_type: Optional[str] = Field(None, max_length=30,
                                       description="writ, criminal_misc, appeal or representation.")
    is_admin_override: bool = False

    model_config = {"json_schema_extra": {"examples": [
        {
            "text": "John Doe committed fraud.",
            "mode": "public",
            "entities": [{"name": "John Doe", "category": "person"}],
        },
    ]}}


class SpanModel(BaseModel):
    start: int
    end: int


class SignalResponse(BaseModel):
    id: str
    category: str
    level: str
    span: SpanModel
    text: str
    rationale: str
    targets: list[str] = []
    claim_type: Optional[str] = None
    evidence_refs: list[str] = []
    confidence: float
    rule_id: str = ""


class ClaimUnitResponse(BaseModel):
    target: str
    predicate_summary: str
    severity: str
    has_evidence: bool
    evidence_refs: list[str] = []
    suggested_rewrite: str
    sentence_span: Optional[SpanModel] = None


class MitigationResponse(BaseModel):
    type: str
    key: Optional[str] = None
    min: Optional[int] = None
    for_targets: list[str] = []
    fields: list[str] = []
    role: Optional[str] = None
    allowed_modes: list[str] = []
    restrict_to: list[str] = []
    text: Optional[str] = None


class DecisionResponse(BaseModel):
    overall: str
    categories: list[str]
    signals: list[SignalResponse]
    required_mitigations: list[MitigationResponse]


class TransformationResponse(BaseModel):
    rule_id: str
    from_text: str = Field(..., serialization_alias="from")
    to_text: str = Field(..., serialization_alias="to")
    reason: str
    span: SpanModel


class RewritePlanResponse(BaseModel):
    rewritten_text: str
    transformations: list[TransformationResponse]
    diff_spans: list[dict] = []


class CourtResponse(BaseModel):
    court_style: str
    filing_type: str


class IssueResponse(BaseModel):
    code: str
    message: str
    action: Optional[str] = None
    signal_id: Optional[str] = None


class GateResponse(BaseModel):
    """POST /gate response body."""
    mode: str
    court: Optional[CourtResponse] = None
    decision: DecisionResponse
    signals: list[SignalResponse]
    claim_units: list[ClaimUnitResponse]
    rewrite_plan: RewritePlanResponse
    blockers: list[IssueResponse]
    warnings: list[IssueResponse]
    export_allowed: bool
    pattern_table_version: str


# ============================================================
# QA
# ============================================================

class YearRangeIn(BaseModel):
    min: int
    max: int


class QARequest(BaseModel):
    """POST /qa request body."""
    mode: str = Field(..., pattern=_MODE_PATTERN)
    relationships_total: int = Field(0, ge=0)
    connections_total: int = Field(0, ge=0)
    court_mode: bool = False
    has_evidence: bool = False
    severe_claims: int = Field(0, ge=0)
    has_front_matter: bool = True
    has_disclaimer: bool = True
    raw_html: Optional[str] = Field(None, max_length=1_000_000)
    year_range: Optional[YearRangeIn] = None
    case_year_range: Optional[YearRangeIn] = None


class QAIssueResponse(BaseModel):
    code: str
    level: str
    message: str
    action: Optional[str] = None


class QAResponse(BaseModel):
    """POST /qa response body."""
    passed: bool = Field(..., serialization_alias="pass")
    issues: list[QAIssueResponse]


# ============================================================
# HEALTH
# ============================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    gate_version: str
    pattern_table_version: str
    rules_count: int
