"""
Tests for WorkflowPolicy and the startup validation gate.
"""

from dataclasses import FrozenInstanceError, replace
from datetime import timedelta
from decimal import Decimal

import pytest

from equipment_kernel.domain.policy import (
    DEFAULT_POLICY,
    WorkflowPolicy,
    assert_workflow_rules_valid,
    validate_policy_constants,
    validate_workflow_rules,
)
from equipment_kernel.exceptions import ConfigurationError


class TestDefaults:

    def test_default_thresholds(self):
        assert DEFAULT_POLICY.overdue_threshold_hours == 72
        assert DEFAULT_POLICY.maintenance_due_days == 90
        assert DEFAULT_POLICY.lost_threshold_days == 30
        assert DEFAULT_POLICY.high_value_threshold == Decimal("500")
        assert DEFAULT_POLICY.default_checkout_days == 7
        assert DEFAULT_POLICY.sweep_interval_seconds == 3600
        assert DEFAULT_POLICY.max_lock_retries == 3

    def test_timedelta_views(self):
        assert DEFAULT_POLICY.overdue_threshold == timedelta(hours=72)
        assert DEFAULT_POLICY.maintenance_due == timedelta(days=90)
        assert DEFAULT_POLICY.default_checkout_period == timedelta(days=7)

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_POLICY.overdue_threshold_hours = 1


class TestValidation:

    def test_defaults_valid(self):
        assert validate_policy_constants(DEFAULT_POLICY) == []
        assert validate_workflow_rules() == (True, [])
        assert_workflow_rules_valid()

    @pytest.mark.parametrize(
        "field,value,fragment",
        [
            ("overdue_threshold_hours", 0, "must be positive"),
            ("overdue_threshold_hours", 720, "must be below 720 hours"),
            ("maintenance_due_days", -1, "must be positive"),
            ("maintenance_due_days", 365, "must be below 365 days"),
            ("lost_threshold_days", 0, "must be positive"),
            ("lost_threshold_days", 400, "must be below 365 days"),
            ("high_value_threshold", Decimal("-1"), "must not be negative"),
            ("default_checkout_days", 0, "must be positive"),
            ("sweep_interval_seconds", 0, "must be positive"),
            ("max_lock_retries", 0, "must be at least 1"),
        ],
    )
    def test_out_of_bounds_rejected(self, field, value, fragment):
        policy = replace(DEFAULT_POLICY, **{field: value})
        errors = validate_policy_constants(policy)
        assert len(errors) == 1
        assert field in errors[0]
        assert fragment in errors[0]

    def test_upper_edges_accepted(self):
        policy = WorkflowPolicy(
            overdue_threshold_hours=719,
            maintenance_due_days=364,
            lost_threshold_days=364,
            high_value_threshold=Decimal("0"),
        )
        assert validate_policy_constants(policy) == []

    def test_every_violation_reported(self):
        policy = WorkflowPolicy(overdue_threshold_hours=0, maintenance_due_days=0)
        ok, errors = validate_workflow_rules(policy)
        assert not ok
        assert len(errors) == 2

    def test_assert_raises_configuration_error(self):
        policy = WorkflowPolicy(max_lock_retries=0)
        with pytest.raises(ConfigurationError) as exc_info:
            assert_workflow_rules_valid(policy)
        assert exc_info.value.code == "CONFIGURATION_ERROR"
        assert exc_info.value.errors == ("max_lock_retries must be at least 1, got 0",)
