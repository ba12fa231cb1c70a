"""
SafetyGate — Pre-Export Reputation Risk Gate

Deterministic defamation, privacy and contempt-of-court screening for
report text, with a court-safe rewrite and a document-level QA pass.

Public API:
  - pattern_table:        Immutable, versioned detection rules
  - detect_risk_signals:  Span-tagged risk signals for a text
  - extract_claims:       Per-sentence, per-target claim units
  - assess_reputation_risk: Mode-aware overall level + mitigations
  - rewrite_court_safe:   Redaction, allegation framing, court phrasing
  - run_safety_gate:      All of the above in one call, with blockers/warnings
  - run_safety_qa:        Independent assertions over an assembled report

Usage:
    from safetygate import SafetyGateInput, run_safety_gate
    result = run_safety_gate(SafetyGateInput(text=text, mode="public"))
"""

__version__ = "1.0.0"

from safetygate.patterns import (
    pattern_table,
    PatternTable,
    RiskRule,
    ConfigurationError,
    PATTERN_TABLE_VERSION,
)
from safetygate.detector import detect_risk_signals, RiskSignalDetector
from safetygate.claims import extract_claims
from safetygate.decider import assess_reputation_risk
from safetygate.rewriter import rewrite_court_safe, replay_transformations, CourtSafeRewriter
from safetygate.gate import run_safety_gate
from safetygate.qa import run_safety_qa
from safetygate.types import (
    Entity,
    EvidenceArtifact,
    GateContext,
    SafetyGateInput,
    SafetyGateResult,
    SafetyQAContext,
    SafetyQAReport,
    YearRange,
)

__all__ = [
    "pattern_table",
    "PatternTable",
    "RiskRule",
    "ConfigurationError",
    "PATTERN_TABLE_VERSION",
    "detect_risk_signals",
    "RiskSignalDetector",
    "extract_claims",
    "assess_reputation_risk",
    "rewrite_court_safe",
    "replay_transformations",
    "CourtSafeRewriter",
    "run_safety_gate",
    "run_safety_qa",
    "Entity",
    "EvidenceArtifact",
    "GateContext",
    "SafetyGateInput",
    "SafetyGateResult",
    "SafetyQAContext",
    "SafetyQAReport",
    "YearRange",
]
