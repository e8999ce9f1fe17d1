"""
Workflow policy constants (``equipment_kernel.domain.policy``).

Responsibility
--------------
Frozen value object holding the tunable thresholds that drive approval
flags and the automatic sweep, plus the startup validation that combines
the policy checks with the transition-table checks.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  The YAML loader
in ``equipment_config`` builds a ``WorkflowPolicy``; the kernel never
imports ``equipment_config``.

Invariants enforced
-------------------
* 0 < overdue_threshold_hours < 30 days.
* 0 < maintenance_due_days < 365.
* 0 < lost_threshold_days < 365.
* high_value_threshold >= 0, default_checkout_days > 0,
  sweep_interval_seconds > 0, max_lock_retries >= 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from equipment_kernel.domain.transitions import validate_rule_table
from equipment_kernel.exceptions import ConfigurationError

MAX_OVERDUE_THRESHOLD_HOURS = 30 * 24
MAX_MAINTENANCE_DUE_DAYS = 365
MAX_LOST_THRESHOLD_DAYS = 365


@dataclass(frozen=True)
class WorkflowPolicy:
    """Thresholds for approval gating and time-based promotion."""

    overdue_threshold_hours: int = 72
    maintenance_due_days: int = 90
    lost_threshold_days: int = 30
    high_value_threshold: Decimal = Decimal("500")
    default_checkout_days: int = 7
    sweep_interval_seconds: int = 3600
    max_lock_retries: int = 3

    @property
    def overdue_threshold(self) -> timedelta:
        return timedelta(hours=self.overdue_threshold_hours)

    @property
    def maintenance_due(self) -> timedelta:
        return timedelta(days=self.maintenance_due_days)

    @property
    def default_checkout_period(self) -> timedelta:
        return timedelta(days=self.default_checkout_days)


DEFAULT_POLICY = WorkflowPolicy()


def validate_policy_constants(policy: WorkflowPolicy) -> list[str]:
    """Return every sanity violation in ``policy`` (empty when valid)."""
    errors: list[str] = []

    def _bounded(name: str, value: int, ceiling: int, unit: str) -> None:
        if value <= 0:
            errors.append(f"{name} must be positive, got {value}")
        elif value >= ceiling:
            errors.append(f"{name} must be below {ceiling} {unit}, got {value}")

    _bounded(
        "overdue_threshold_hours", policy.overdue_threshold_hours,
        MAX_OVERDUE_THRESHOLD_HOURS, "hours",
    )
    _bounded(
        "maintenance_due_days", policy.maintenance_due_days,
        MAX_MAINTENANCE_DUE_DAYS, "days",
    )
    _bounded(
        "lost_threshold_days", policy.lost_threshold_days,
        MAX_LOST_THRESHOLD_DAYS, "days",
    )

    if policy.high_value_threshold < 0:
        errors.append(
            f"high_value_threshold must not be negative, got {policy.high_value_threshold}"
        )
    if policy.default_checkout_days <= 0:
        errors.append(
            f"default_checkout_days must be positive, got {policy.default_checkout_days}"
        )
    if policy.sweep_interval_seconds <= 0:
        errors.append(
            f"sweep_interval_seconds must be positive, got {policy.sweep_interval_seconds}"
        )
    if policy.max_lock_retries < 1:
        errors.append(
            f"max_lock_retries must be at least 1, got {policy.max_lock_retries}"
        )

    return errors


def validate_workflow_rules(
    policy: WorkflowPolicy = DEFAULT_POLICY,
) -> tuple[bool, list[str]]:
    """Validate the transition table and the policy constants together."""
    _, errors = validate_rule_table()
    errors = errors + validate_policy_constants(policy)
    return (not errors, errors)


def assert_workflow_rules_valid(policy: WorkflowPolicy = DEFAULT_POLICY) -> None:
    """Startup gate.

    Raises:
        ConfigurationError: If ``validate_workflow_rules`` reports any error.
    """
    ok, errors = validate_workflow_rules(policy)
    if not ok:
        raise ConfigurationError(errors)
