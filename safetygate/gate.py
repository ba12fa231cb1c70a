"""
Safety Gate — Orchestrator

One synchronous call composing detect → claims → decide → rewrite,
then turning the outcome into blockers (export-preventing) and
warnings (advisory). The rewrite plan is always computed and
returned, including under admin override, so callers can show a diff.
"""

from __future__ import annotations

import time
from typing import Optional

from safetygate.claims import extract_claims
from safetygate.decider import assess_reputation_risk
from safetygate.detector import RiskSignalDetector, detector as default_detector
from safetygate.logging import get_logger
from safetygate.rewriter import CourtSafeRewriter, rewriter as default_rewriter
from safetygate.types import (
    LEVEL_RANK,
    ClaimUnit,
    CourtContext,
    DetectionResult,
    GateIssue,
    ReputationRiskDecision,
    RiskSignal,
    SafetyGateInput,
    SafetyGateResult,
)

logger = get_logger("gate")


def run_safety_gate(
    gate_input: SafetyGateInput,
    detector: Optional[RiskSignalDetector] = None,
    rewriter: Optional[CourtSafeRewriter] = None,
) -> SafetyGateResult:
    """
    Run the full safety gate over one piece of text.

    Args:
        gate_input: Text, mode, optional context and court details.
        detector: Override the default detector (custom pattern table).
        rewriter: Override the default rewriter.

    Returns:
        SafetyGateResult. Policy violations are data (blockers and
        warnings), never exceptions.
    """
    t0 = time.monotonic()
    detector = detector or default_detector
    rewriter = rewriter or default_rewriter

    text = gate_input.text if isinstance(gate_input.text, str) else ""
    mode = gate_input.mode

    court = None
    if gate_input.court_style and gate_input.filing_type:
        court = CourtContext(
            court_style=gate_input.court_style,
            filing_type=gate_input.filing_type,
        )

    # --- Step 1: Detect ---
    signals = detector.detect(text, gate_input.context, mode)
    claims = extract_claims(text, signals, mode)
    detection = DetectionResult(signals=signals, claim_units=claims)

    # --- Step 2: Decide ---
    decision = assess_reputation_risk(detection, mode, court)

    # --- Step 3: Rewrite ---
    rewrite_plan = rewriter.rewrite(
        text, detection, mode, gate_input.court_style, gate_input.filing_type
    )

    # --- Step 4: Blockers / warnings ---
    blockers = _blockers(decision, signals, gate_input.is_admin_override)
    warnings = _warnings(claims, signals, blockers, mode, gate_input.is_admin_override)

    result = SafetyGateResult(
        mode=mode,
        court=court,
        decision=decision,
        signals=signals,
        claim_units=claims,
        rewrite_plan=rewrite_plan,
        blockers=blockers,
        warnings=warnings,
    )

    logger.info(
        "Safety gate complete",
        extra={
            "mode": mode,
            "overall": decision.overall,
            "signals_count": len(signals),
            "claims_count": len(claims),
            "blockers_count": len(blockers),
            "warnings_count": len(warnings),
            "transformations_count": len(rewrite_plan.transformations),
            "admin_override": gate_input.is_admin_override,
            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
        },
    )
    return result


def _blockers(
    decision: ReputationRiskDecision,
    signals: list[RiskSignal],
    admin_override: bool,
) -> list[GateIssue]:
    if admin_override:
        return []

    blockers = []
    if decision.overall == "CRITICAL":
        blockers.append(GateIssue(
            code="CRITICAL_RISK",
            message="Critical reputation risk detected. Export is blocked.",
            action="Review and resolve critical signals, or use admin override",
        ))
    if any(s.category == "sensitive_personal_data" for s in signals):
        blockers.append(GateIssue(
            code="PII_DETECTED",
            message="Sensitive personal data detected in report text.",
            action="Data has been auto-redacted in rewritten text",
        ))
    return blockers


def _warnings(
    claims: list[ClaimUnit],
    signals: list[RiskSignal],
    blockers: list[GateIssue],
    mode: str,
    admin_override: bool,
) -> list[GateIssue]:
    warnings = []

    if mode == "court_mode" and not admin_override:
        gaps = [
            c for c in claims
            if LEVEL_RANK[c.severity] >= LEVEL_RANK["HIGH"] and not c.has_evidence
        ]
        if gaps:
            warnings.append(GateIssue(
                code="COURT_EVIDENCE_GAP",
                message=(
                    f"{len(gaps)} severe claim(s) lack evidence. They will appear in "
                    "an appendix marked \"requires verification\"."
                ),
                action="Link evidence artifacts to the flagged claims",
            ))

    pii_blocked = any(b.code == "PII_DETECTED" for b in blockers)
    for signal in signals:
        if LEVEL_RANK[signal.level] > LEVEL_RANK["MEDIUM"]:
            continue
        if pii_blocked and signal.category == "sensitive_personal_data":
            continue
        warnings.append(GateIssue(
            code=f"SIGNAL_{signal.category.upper()}",
            message=f"{signal.level.title()} {signal.category.replace('_', ' ')} risk: "
                    f"\"{signal.text}\"",
            action=signal.rationale,
            signal_id=signal.id,
        ))
    return warnings
