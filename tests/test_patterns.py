"""
Tests for the Pattern Table — rule validation and coverage.

A malformed table must fail at construction, never per call.
"""

import pytest
from safetygate.patterns import (
    PATTERN_TABLE_VERSION,
    RISK_RULES,
    ConfigurationError,
    PatternTable,
    RiskRule,
    has_hedging,
    pattern_table,
)
from safetygate.types import RISK_CATEGORIES


def _rule(**overrides) -> RiskRule:
    fields = dict(
        id="TEST_RULE",
        category="defamation",
        level="HIGH",
        pattern=r"\bwidget\b",
        rationale="test",
        confidence=0.5,
    )
    fields.update(overrides)
    return RiskRule(**fields)


class TestTableVersion:
    def test_version_exists(self):
        assert PATTERN_TABLE_VERSION
        assert pattern_table.version == PATTERN_TABLE_VERSION

    def test_all_rules_loaded(self):
        assert len(pattern_table) == len(RISK_RULES)

    def test_every_category_has_a_rule(self):
        covered = {r.category for r in pattern_table.rules}
        assert covered == set(RISK_CATEGORIES)

    def test_rule_ids_unique(self):
        ids = [r.id for r in pattern_table.rules]
        assert len(ids) == len(set(ids))

    def test_lookup_by_id(self):
        rule = pattern_table.get("SPD_NATIONAL_ID")
        assert rule is not None
        assert rule.redaction == "[ID REDACTED]"
        assert pattern_table.get("NOPE") is None


class TestSensitiveRules:
    """Sensitive data rules are fixed-level with a placeholder."""

    def test_sensitive_rules_fixed(self):
        sensitive = [r for r in pattern_table.rules if r.category == "sensitive_personal_data"]
        assert sensitive
        for rule in sensitive:
            assert rule.fixed_level is True
            assert rule.level == "CRITICAL"
            assert rule.redaction

    def test_placeholders_do_not_match_any_rule(self):
        placeholders = [r.redaction for r in pattern_table.rules if r.redaction]
        for placeholder in placeholders:
            for _, regex in pattern_table.compiled():
                assert not regex.search(placeholder)


class TestValidation:
    """Every malformed rule is a ConfigurationError."""

    def test_valid_custom_table(self):
        table = PatternTable(rules=(_rule(),), version="test")
        assert len(table) == 1
        assert table.version == "test"

    def test_invalid_regex(self):
        with pytest.raises(ConfigurationError, match="invalid pattern"):
            PatternTable(rules=(_rule(pattern="(unclosed"),))

    def test_unknown_category(self):
        with pytest.raises(ConfigurationError, match="unknown category"):
            PatternTable(rules=(_rule(category="slander"),))

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError, match="unknown level"):
            PatternTable(rules=(_rule(level="SEVERE"),))

    def test_confidence_out_of_range(self):
        with pytest.raises(ConfigurationError, match="confidence"):
            PatternTable(rules=(_rule(confidence=1.5),))

    def test_duplicate_ids(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            PatternTable(rules=(_rule(), _rule(pattern=r"\bgadget\b")))

    def test_empty_match_pattern(self):
        with pytest.raises(ConfigurationError, match="empty"):
            PatternTable(rules=(_rule(pattern=r"x*"),))

    def test_sensitive_rule_needs_redaction(self):
        with pytest.raises(ConfigurationError, match="redaction"):
            PatternTable(rules=(_rule(category="sensitive_personal_data"),))

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestHedging:
    def test_allegedly(self):
        assert has_hedging("He allegedly took the money.")

    def test_according_to(self):
        assert has_hedging("According to the FIR, he was present.")

    def test_submission_phrasing(self):
        assert has_hedging("It is respectfully submitted that the order is void.")

    def test_plain_assertion(self):
        assert not has_hedging("He took the money.")


class TestDescribe:
    def test_describe_shape(self):
        rules = pattern_table.describe()
        assert len(rules) == len(pattern_table)
        first = rules[0]
        for key in ("id", "category", "level", "rationale", "confidence"):
            assert key in first
