"""
Pure domain layer.

Status enums, the transition rule table, workflow policy, preconditions
and DTOs.  NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (the Clock is injected; SystemClock is the single time boundary)

All domain objects are immutable and deterministic.
"""

from equipment_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from equipment_kernel.domain.dtos import (
    SYSTEM_ACTOR_ID,
    CheckoutDetails,
    DamageDetails,
    StatusHistoryEntry,
    TenantScope,
    TransitionContext,
    TransitionFailure,
    TransitionResult,
)
from equipment_kernel.domain.policy import (
    DEFAULT_POLICY,
    WorkflowPolicy,
    assert_workflow_rules_valid,
    validate_workflow_rules,
)
from equipment_kernel.domain.status import (
    DamageSeverity,
    EquipmentCondition,
    EquipmentStatus,
    MaintenancePriority,
    MaintenanceStatus,
    TransactionStatus,
)
from equipment_kernel.domain.transitions import (
    ALLOWED_TRANSITIONS,
    allowed_targets,
    is_transition_allowed,
    validate_rule_table,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "CheckoutDetails",
    "Clock",
    "DEFAULT_POLICY",
    "DamageDetails",
    "DamageSeverity",
    "DeterministicClock",
    "EquipmentCondition",
    "EquipmentStatus",
    "MaintenancePriority",
    "MaintenanceStatus",
    "SYSTEM_ACTOR_ID",
    "StatusHistoryEntry",
    "SystemClock",
    "TenantScope",
    "TransactionStatus",
    "TransitionContext",
    "TransitionFailure",
    "TransitionResult",
    "WorkflowPolicy",
    "allowed_targets",
    "assert_workflow_rules_valid",
    "is_transition_allowed",
    "validate_rule_table",
    "validate_workflow_rules",
]
