"""
Workflow DTOs (``equipment_kernel.domain.dtos``).

Frozen value objects passed into and returned from the workflow engine.
ZERO I/O.  ``TransitionResult.to_dict()`` is the JSON shape handed to the
HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from equipment_kernel.domain.status import DamageSeverity, EquipmentStatus

# Actor recorded on audit entries written by the automatic sweep.
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000000")


@dataclass(frozen=True)
class TenantScope:
    """Organization/school restriction applied to every equipment query.

    A school scope sees the school's own equipment plus the organization's
    shared equipment (rows with no school).  An organization scope
    (``school_id is None``) sees every row of the organization.
    """

    organization_id: UUID
    school_id: UUID | None = None

    @property
    def tenant_key(self) -> str:
        if self.school_id is None:
            return str(self.organization_id)
        return f"{self.organization_id}/{self.school_id}"


@dataclass(frozen=True)
class DamageDetails:
    """Structured damage payload for transitions into DAMAGED."""

    description: str
    severity: DamageSeverity = DamageSeverity.MEDIUM
    repair_required: bool = True


@dataclass(frozen=True)
class CheckoutDetails:
    """Structured checkout payload for transitions into CHECKED_OUT.

    ``holder_id`` defaults to the actor; ``due_date`` defaults to the
    policy's checkout period after now.
    """

    holder_id: UUID | None = None
    due_date: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TransitionContext:
    """Caller identity, tenant scope and optional payload for one transition."""

    actor_id: UUID
    scope: TenantScope
    reason: str | None = None
    damage_report: DamageDetails | None = None
    checkout: CheckoutDetails | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def system(
        cls,
        scope: TenantScope,
        reason: str,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionContext:
        """Synthetic context used by the automatic sweep."""
        meta = {"autoTransition": True}
        meta.update(metadata or {})
        return cls(actor_id=SYSTEM_ACTOR_ID, scope=scope, reason=reason, metadata=meta)

    @property
    def effective_reason(self) -> str | None:
        """The stated reason, falling back to the damage description."""
        if self.reason and self.reason.strip():
            return self.reason.strip()
        if self.damage_report and self.damage_report.description.strip():
            return self.damage_report.description.strip()
        return None


class TransitionFailure(str, Enum):
    """Machine-checkable failure kinds; values match the exception codes."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    MISSING_REASON = "MISSING_REASON"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


FAILURE_HTTP_STATUS: dict[TransitionFailure, int] = {
    TransitionFailure.NOT_FOUND: 404,
    TransitionFailure.INVALID_TRANSITION: 400,
    TransitionFailure.MISSING_REASON: 400,
    TransitionFailure.PERSISTENCE_ERROR: 500,
}


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of ``WorkflowEngine.transition``."""

    success: bool
    message: str
    new_status: EquipmentStatus | None = None
    previous_status: EquipmentStatus | None = None
    requires_approval: bool = False
    failure: TransitionFailure | None = None
    notifications: tuple[str, ...] = ()

    @classmethod
    def failed(cls, failure: TransitionFailure, message: str) -> TransitionResult:
        return cls(success=False, message=message, failure=failure)

    @property
    def http_status(self) -> int:
        if self.success:
            return 200
        return FAILURE_HTTP_STATUS.get(self.failure, 500)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "requiresApproval": self.requires_approval,
        }
        if self.new_status is not None:
            data["newStatus"] = self.new_status.value
        if self.failure is not None:
            data["errorCode"] = self.failure.value
        if self.notifications:
            data["notifications"] = list(self.notifications)
        return data


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One STATUS_CHANGE audit entry, as returned by history queries."""

    entry_id: UUID
    equipment_id: UUID
    previous_status: EquipmentStatus
    new_status: EquipmentStatus
    reason: str | None
    actor_id: UUID
    occurred_at: datetime
    details: dict[str, Any] = field(default_factory=dict)
