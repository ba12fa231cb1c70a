"""
Reputation Risk Decider — Mode-Aware Aggregation

Folds signals and claim units into one overall level, applying the
distribution mode's escalation policy, and derives the mitigations the
caller must apply before the report can leave the system.

Policy by mode:
  court_mode / controlled_legal — an unevidenced HIGH signal counts as CRITICAL
  public                        — any sensitive personal data forces CRITICAL
  research_only                 — capped at HIGH unless incitement is present
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from safetygate.court_language import disclaimer_text
from safetygate.patterns import ConfigurationError
from safetygate.types import (
    DISTRIBUTION_MODES,
    LEVEL_RANK,
    MITIGATION_TYPES,
    RISK_CATEGORIES,
    ClaimUnit,
    CourtContext,
    DetectionResult,
    ReputationMitigation,
    ReputationRiskDecision,
    RiskSignal,
    max_level,
)

logger = logging.getLogger(__name__)

_ALL_MODES = DISTRIBUTION_MODES
_COURT_MODES = ("court_mode", "controlled_legal")


# ============================================================
# MITIGATION TABLE
# ============================================================

@dataclass(frozen=True)
class MitigationRule:
    """
    One row of the mitigation table.

    `category` is None for mode baselines, which apply to every
    decision in their allowed modes. `evidence_targets` fills
    `for_targets` from unevidenced severe claims.
    """
    category: Optional[str]
    type: str
    allowed_modes: tuple[str, ...] = _ALL_MODES
    key: Optional[str] = None
    min: Optional[int] = None
    fields: tuple[str, ...] = ()
    role: Optional[str] = None
    restrict_to: tuple[str, ...] = ()
    evidence_targets: bool = False


CATEGORY_MITIGATIONS: tuple[MitigationRule, ...] = (
    # --- Sensitive personal data ---
    MitigationRule(
        "sensitive_personal_data", "remove_or_redact",
        fields=("national_id", "phone", "address", "bank_number", "email"),
    ),
    MitigationRule("sensitive_personal_data", "require_human_review", role="admin"),

    # --- Criminal allegations ---
    MitigationRule("unverified_criminal_allegation", "force_allegation_language"),
    MitigationRule(
        "unverified_criminal_allegation", "require_evidence", min=1,
        allowed_modes=("court_mode", "controlled_legal", "public"),
        evidence_targets=True,
    ),

    # --- Defamation ---
    MitigationRule("defamation", "force_allegation_language"),
    MitigationRule(
        "defamation", "add_disclaimer", key="no_judicial_determination",
        allowed_modes=("court_mode", "controlled_legal", "public"),
    ),
    MitigationRule("defamation", "require_human_review", role="editor", allowed_modes=("public",)),

    # --- Sub judice / contempt ---
    MitigationRule("sub_judice", "add_disclaimer", key="sub_judice_notice"),
    MitigationRule(
        "sub_judice", "restrict_distribution",
        allowed_modes=("public", "research_only"),
        restrict_to=("court_mode", "controlled_legal"),
    ),
    MitigationRule("sub_judice", "require_human_review", role="legal_counsel"),
    MitigationRule(
        "contempt_of_court", "remove_or_redact", fields=("statements_about_judiciary",),
    ),
    MitigationRule("contempt_of_court", "require_human_review", role="legal_counsel"),

    # --- Incitement ---
    MitigationRule(
        "incitement_or_harassment", "remove_or_redact", fields=("inflammatory_labels",),
    ),
    MitigationRule(
        "incitement_or_harassment", "restrict_distribution",
        allowed_modes=("public",), restrict_to=("controlled_legal",),
    ),

    # --- Institutional accusations ---
    MitigationRule("institutional_accusation", "force_allegation_language"),
    MitigationRule(
        "institutional_accusation", "require_evidence", min=1,
        allowed_modes=_COURT_MODES, evidence_targets=True,
    ),

    # --- Identity ---
    MitigationRule("misidentification", "require_human_review", role="editor"),
    MitigationRule(
        "misidentification", "add_disclaimer", key="identity_verification",
        allowed_modes=("public", "research_only"),
    ),

    # --- Privacy ---
    MitigationRule(
        "privacy", "remove_or_redact", fields=("private_life_details",),
        allowed_modes=("public", "research_only"),
    ),
    MitigationRule("privacy", "add_disclaimer", key="privacy_notice", allowed_modes=_COURT_MODES),
)

# Applied to every decision in the listed modes
MODE_MITIGATIONS: tuple[MitigationRule, ...] = (
    MitigationRule(None, "add_disclaimer", key="no_judicial_determination", allowed_modes=_COURT_MODES),
    MitigationRule(None, "add_disclaimer", key="data_limitations", allowed_modes=_COURT_MODES),
    MitigationRule(None, "add_disclaimer", key="methodology", allowed_modes=_COURT_MODES),
    MitigationRule(None, "force_allegation_language", allowed_modes=_COURT_MODES),
    MitigationRule(None, "add_disclaimer", key="lod_appendix", allowed_modes=("court_mode",)),
    MitigationRule(None, "add_disclaimer", key="key_issues_appendix", allowed_modes=("court_mode",)),
    MitigationRule(
        None, "remove_or_redact", fields=("names_unless_public_record",),
        allowed_modes=("public",),
    ),
)


def _validate(rows: tuple[MitigationRule, ...]) -> tuple[MitigationRule, ...]:
    for row in rows:
        if row.category is not None and row.category not in RISK_CATEGORIES:
            raise ConfigurationError(f"Mitigation row: unknown category {row.category!r}")
        if row.type not in MITIGATION_TYPES:
            raise ConfigurationError(f"Mitigation row: unknown type {row.type!r}")
        for mode in row.allowed_modes + row.restrict_to:
            if mode not in DISTRIBUTION_MODES:
                raise ConfigurationError(f"Mitigation row: unknown mode {mode!r}")
        if row.type == "restrict_distribution" and not row.restrict_to:
            raise ConfigurationError("restrict_distribution rows need restrict_to")
        if row.type == "require_evidence" and (row.min is None or row.min < 1):
            raise ConfigurationError("require_evidence rows need min >= 1")
    return rows


_validate(CATEGORY_MITIGATIONS)
_validate(MODE_MITIGATIONS)


# ============================================================
# DECISION
# ============================================================

def effective_level(signal: RiskSignal, mode: str) -> str:
    """A signal's contribution to overall, before mode caps."""
    if mode in _COURT_MODES and signal.level == "HIGH" and not signal.evidence_refs:
        return "CRITICAL"
    return signal.level


def assess_reputation_risk(
    detection: DetectionResult,
    mode: str,
    court: Optional[CourtContext] = None,
) -> ReputationRiskDecision:
    """
    Aggregate a detection result into a ReputationRiskDecision.

    overall is the maximum effective contribution across signals and
    claim units. research_only caps every contribution at HIGH unless
    incitement is present; public forces CRITICAL on sensitive data.
    """
    if mode not in DISTRIBUTION_MODES:
        raise ValueError(f"Unknown distribution mode: {mode!r}")

    signals = list(detection.signals)
    claims = list(detection.claim_units)

    contributions = [effective_level(s, mode) for s in signals]
    contributions.extend(c.severity for c in claims)

    if mode == "research_only" and not any(
        s.category == "incitement_or_harassment" for s in signals
    ):
        contributions = [
            "HIGH" if LEVEL_RANK[level] > LEVEL_RANK["HIGH"] else level
            for level in contributions
        ]

    overall = max_level(contributions)
    if mode == "public" and any(s.category == "sensitive_personal_data" for s in signals):
        overall = "CRITICAL"

    categories = [c for c in RISK_CATEGORIES if any(s.category == c for s in signals)]
    mitigations = _required_mitigations(signals, claims, categories, overall, mode, court)

    logger.debug(
        "Decision complete",
        extra={"mode": mode, "overall": overall, "signals_count": len(signals)},
    )
    return ReputationRiskDecision(
        overall=overall,
        categories=categories,
        signals=signals,
        required_mitigations=mitigations,
    )


def _required_mitigations(
    signals: list[RiskSignal],
    claims: list[ClaimUnit],
    categories: list[str],
    overall: str,
    mode: str,
    court: Optional[CourtContext],
) -> list[ReputationMitigation]:
    unevidenced = [
        c.target for c in claims
        if not c.has_evidence and LEVEL_RANK[c.severity] >= LEVEL_RANK["HIGH"]
    ]

    rows = [r for r in MODE_MITIGATIONS if mode in r.allowed_modes]
    rows.extend(
        r for r in CATEGORY_MITIGATIONS
        if r.category in categories and mode in r.allowed_modes
    )

    merged: dict[tuple, ReputationMitigation] = {}
    for row in rows:
        targets: list[str] = []
        if row.evidence_targets:
            category_targets = {
                t for s in signals if s.category == row.category for t in s.targets
            }
            targets = [t for t in dict.fromkeys(unevidenced) if t in category_targets]
        fields = list(row.fields)
        text = None
        if row.type == "add_disclaimer":
            if court:
                fields = fields + [f"court_style:{court.court_style}", f"filing_type:{court.filing_type}"]
                text = disclaimer_text(row.key, court.court_style, court.filing_type)
            else:
                text = disclaimer_text(row.key)
        _merge(merged, ReputationMitigation(
            type=row.type,
            key=row.key,
            min=row.min,
            for_targets=targets,
            fields=fields,
            role=row.role,
            allowed_modes=list(row.allowed_modes),
            restrict_to=list(row.restrict_to),
            text=text,
        ))

    # --- Overall-level mitigations ---
    if overall == "CRITICAL":
        _merge(merged, ReputationMitigation(
            type="require_human_review", role="admin", allowed_modes=list(_ALL_MODES),
        ))
    if mode == "public" and LEVEL_RANK[overall] >= LEVEL_RANK["HIGH"]:
        _merge(merged, ReputationMitigation(
            type="restrict_distribution",
            allowed_modes=["public"],
            restrict_to=["controlled_legal", "research_only"],
        ))

    return list(merged.values())


def _merge(merged: dict[tuple, ReputationMitigation], mitigation: ReputationMitigation):
    """Collapse duplicate mitigations, unioning their targets and modes."""
    key = (
        mitigation.type,
        mitigation.key,
        mitigation.role,
        mitigation.min,
        tuple(mitigation.fields),
        tuple(mitigation.restrict_to),
    )
    existing = merged.get(key)
    if existing is None:
        merged[key] = mitigation
        return
    for target in mitigation.for_targets:
        if target not in existing.for_targets:
            existing.for_targets.append(target)
    for mode in mitigation.allowed_modes:
        if mode not in existing.allowed_modes:
            existing.allowed_modes.append(mode)
