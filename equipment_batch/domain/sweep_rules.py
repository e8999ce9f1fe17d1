"""
Pure sweep rules.

Contract:
    The cutoff functions are PURE: given the current time and the policy
    they return the instant before which a checkout is overdue or a
    maintenance interval has lapsed.  The sweeper reads the clock once per
    pass and hands the result to the selector.

Architecture: equipment_batch/domain.  ZERO I/O.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from equipment_kernel.domain.dtos import TenantScope, TransitionContext
from equipment_kernel.domain.policy import WorkflowPolicy
from equipment_kernel.domain.status import EquipmentStatus

OVERDUE_REASON = "Automatic transition - equipment overdue"
MAINTENANCE_DUE_REASON = "Automatic transition - scheduled maintenance due"


class SweepKind(str, Enum):
    """The two time-based promotions, with their target status."""

    OVERDUE = "overdue"
    MAINTENANCE_DUE = "maintenance_due"

    @property
    def target_status(self) -> EquipmentStatus:
        if self is SweepKind.OVERDUE:
            return EquipmentStatus.OVERDUE
        return EquipmentStatus.MAINTENANCE


def overdue_cutoff(now: datetime, policy: WorkflowPolicy) -> datetime:
    """Checkouts due before this instant are overdue."""
    return now - policy.overdue_threshold


def maintenance_cutoff(now: datetime, policy: WorkflowPolicy) -> datetime:
    """Equipment last maintained (or created) before this instant is due."""
    return now - policy.maintenance_due


def system_context(scope: TenantScope, kind: SweepKind, sweep_id: str) -> TransitionContext:
    """The synthetic actor context every automatic transition runs under."""
    if kind is SweepKind.OVERDUE:
        return TransitionContext.system(
            scope, OVERDUE_REASON, {"sweepId": sweep_id},
        )
    return TransitionContext.system(
        scope,
        MAINTENANCE_DUE_REASON,
        {"sweepId": sweep_id, "maintenanceType": "SCHEDULED"},
    )
