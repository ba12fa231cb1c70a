"""
Safety QA — Document-Level Assertions

Runs after the full report is assembled. Checks structural invariants
over summary counts, flags and the rendered HTML. The PII patterns
here are independent of the detector's pattern table.

pass = no issue at "critical" level.
"""

from __future__ import annotations

import re

from safetygate.logging import get_logger
from safetygate.types import SafetyQAContext, SafetyQAIssue, SafetyQAReport

logger = get_logger("qa")

NATIONAL_ID_RE = re.compile(r"\b(?:\d{5}-\d{7}-\d|\d{13})\b")
PHONE_RE = re.compile(r"(?<![\w+])(?:\+92|0)\d{3}[\s-]?\d{7}\b")
ADDRESS_RE = re.compile(r"\b(?:House|Plot|Flat|Apartment)\s+(?:No\.?\s*)?\d+", re.IGNORECASE)

# Years of slack either side of the declared case range
TIMELINE_TOLERANCE_YEARS = 2

# Relative gap between relationship and connection totals
NET_DISCREPANCY_RATIO = 0.5


def run_safety_qa(ctx: SafetyQAContext) -> SafetyQAReport:
    """Run every document-level check and collect issues in check order."""
    issues: list[SafetyQAIssue] = []

    # --- 1. Network consistency ---
    rel, conn = ctx.relationships_total, ctx.connections_total
    if rel > 0 and conn == 0:
        issues.append(SafetyQAIssue(
            code="NET_ZERO",
            level="critical",
            message=f"{rel:,} relationships exist but connections shows 0",
            action="Use relationship count or load graph snapshot",
        ))
    elif rel > 0 and conn > 0 and abs(rel - conn) / max(rel, conn) > NET_DISCREPANCY_RATIO:
        issues.append(SafetyQAIssue(
            code="NET_DISCREPANCY",
            level="warning",
            message=f"Relationships ({rel:,}) and connections ({conn:,}) differ by more than 50%",
            action="Verify graph snapshot against relationship records",
        ))

    # --- 2. Front matter ---
    if not ctx.has_front_matter:
        issues.append(SafetyQAIssue(
            code="NO_FRONTMATTER",
            level="warning",
            message="Report missing front-matter blocks (Methodology, Definitions, Data Quality)",
        ))

    # --- 3. Disclaimer ---
    if not ctx.has_disclaimer:
        issues.append(SafetyQAIssue(
            code="NO_DISCLAIMER",
            level="warning",
            message="Report missing legal disclaimer",
        ))

    # --- 4. Court-mode evidence ---
    court = ctx.court_mode or ctx.mode == "court_mode"
    if court and ctx.severe_claims > 0 and not ctx.has_evidence:
        issues.append(SafetyQAIssue(
            code="COURT_NO_EVIDENCE_SEVERE",
            level="critical",
            message=f"{ctx.severe_claims:,} severe claims without evidence annexures in court mode",
            action="Add evidence documents before generating court submission",
        ))

    # --- 5. Public-mode PII leakage ---
    if ctx.mode == "public" and ctx.raw_html:
        if NATIONAL_ID_RE.search(ctx.raw_html):
            issues.append(SafetyQAIssue(
                code="PII_NATIONAL_ID",
                level="critical",
                message="National ID number detected in public-mode report",
                action="Redact identity numbers before publishing",
            ))
        if PHONE_RE.search(ctx.raw_html):
            issues.append(SafetyQAIssue(
                code="PII_PHONE",
                level="critical",
                message="Phone number detected in public-mode report",
                action="Redact phone numbers before publishing",
            ))
        if ADDRESS_RE.search(ctx.raw_html):
            issues.append(SafetyQAIssue(
                code="PII_ADDRESS",
                level="warning",
                message="Possible address detected in public-mode report",
            ))

    # --- 6. Timeline sanity ---
    if ctx.year_range and ctx.case_year_range:
        if ctx.year_range.min < ctx.case_year_range.min - TIMELINE_TOLERANCE_YEARS:
            issues.append(SafetyQAIssue(
                code="TIMELINE_EARLY",
                level="warning",
                message=(
                    f"Events found from {ctx.year_range.min} but case starts "
                    f"{ctx.case_year_range.min}"
                ),
            ))
        if ctx.year_range.max > ctx.case_year_range.max + TIMELINE_TOLERANCE_YEARS:
            issues.append(SafetyQAIssue(
                code="TIMELINE_LATE",
                level="warning",
                message=(
                    f"Events found up to {ctx.year_range.max} but case ends "
                    f"{ctx.case_year_range.max}"
                ),
            ))

    passed = not any(i.level == "critical" for i in issues)
    logger.info(
        "Safety QA complete",
        extra={"mode": ctx.mode, "passed": passed, "issues_count": len(issues)},
    )
    return SafetyQAReport(passed=passed, issues=issues)
