"""
StatusEffects -- side effects attached to specific target statuses.

Responsibility:
    Creates or closes the secondary records a transition implies
    (checkout transactions, maintenance requests, damage reports) and
    stamps the equipment fields that belong to a status (retirement,
    maintenance completion).  Each target status maps to one effect
    function in ``STATUS_EFFECTS``; the workflow engine calls
    ``StatusEffects.apply`` and never branches on status itself.

Architecture position:
    Kernel > Services -- flush-only, runs inside WorkflowEngine's
    transaction.  Preconditions live in ``domain/status_rules.py``.

Invariants enforced:
    - At most one open checkout per equipment: entering CHECKED_OUT opens
      one, entering AVAILABLE closes it.
    - retired_at/retired_reason are set on entering RETIRED.
    - At most one pending maintenance request per equipment episode:
      DAMAGED -> MAINTENANCE carries the repair request forward.
    - Leaving DAMAGED or MAINTENANCE for AVAILABLE completes the pending
      requests; from MAINTENANCE it also stamps last_maintenance_date.
    - Retirement cancels whatever is still pending.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from uuid import UUID

from sqlalchemy import select

from equipment_kernel.domain.dtos import TransitionContext
from equipment_kernel.domain.policy import WorkflowPolicy
from equipment_kernel.domain.status import (
    DamageSeverity,
    EquipmentStatus,
    MaintenancePriority,
    MaintenanceStatus,
    TransactionStatus,
)
from equipment_kernel.logging_config import get_logger
from equipment_kernel.models.checkout_transaction import CheckoutTransaction
from equipment_kernel.models.equipment import Equipment
from equipment_kernel.models.maintenance import DamageReport, MaintenanceRequest
from equipment_kernel.services.base import BaseService

logger = get_logger("services.status_effects")

DEFAULT_MAINTENANCE_DESCRIPTION = "Routine maintenance"
DEFAULT_DAMAGE_DESCRIPTION = "Equipment damaged"

_SERVICED_STATUSES = frozenset({EquipmentStatus.DAMAGED, EquipmentStatus.MAINTENANCE})

_REPAIR_PRIORITY: Mapping[DamageSeverity, MaintenancePriority] = MappingProxyType({
    DamageSeverity.MINOR: MaintenancePriority.LOW,
    DamageSeverity.MEDIUM: MaintenancePriority.MEDIUM,
    DamageSeverity.MODERATE: MaintenancePriority.MEDIUM,
    DamageSeverity.MAJOR: MaintenancePriority.HIGH,
    DamageSeverity.CRITICAL: MaintenancePriority.HIGH,
})


@dataclass(frozen=True)
class EffectInput:
    """Everything an effect function may read."""

    equipment: Equipment
    previous_status: EquipmentStatus
    context: TransitionContext
    policy: WorkflowPolicy
    now: datetime


def _metadata_severity(data: EffectInput) -> DamageSeverity:
    """Severity passed loosely through context metadata; unknown values read as MEDIUM."""
    raw = data.context.metadata.get("severity")
    try:
        return DamageSeverity.parse(raw)
    except ValueError:
        logger.warning(
            "unknown_damage_severity",
            extra={"equipment_id": str(data.equipment.id), "severity": str(raw)},
        )
        return DamageSeverity.MEDIUM


Effect = Callable[["StatusEffects", EffectInput], None]


class StatusEffects(BaseService[Equipment]):
    """
    Applies the side effect registered for a target status.

    Contract:
        ``apply`` flushes but never commits; the caller's transaction
        decides whether the effects persist.
    """

    def apply(
        self,
        equipment: Equipment,
        previous_status: EquipmentStatus,
        target: EquipmentStatus,
        context: TransitionContext,
        policy: WorkflowPolicy,
        now: datetime,
    ) -> None:
        effect = STATUS_EFFECTS.get(target)
        if effect is None:
            return
        effect(self, EffectInput(equipment, previous_status, context, policy, now))
        self.session.flush()

    def _pending_requests(self, equipment_id: UUID) -> list[MaintenanceRequest]:
        return list(self.session.execute(
            select(MaintenanceRequest).where(
                MaintenanceRequest.equipment_id == equipment_id,
                MaintenanceRequest.status == MaintenanceStatus.PENDING,
            )
        ).scalars().all())

    def _close_pending(self, data: EffectInput, status: MaintenanceStatus) -> int:
        pending = self._pending_requests(data.equipment.id)
        for request in pending:
            request.status = status
            request.completed_at = data.now
        return len(pending)

    # -------------------------------------------------------------------------
    # Effects
    # -------------------------------------------------------------------------

    def open_checkout(self, data: EffectInput) -> None:
        checkout = data.context.checkout
        holder_id = (checkout.holder_id if checkout else None) or data.context.actor_id
        due_date = (checkout.due_date if checkout else None) or (
            data.now + data.policy.default_checkout_period
        )
        txn = CheckoutTransaction(
            equipment_id=data.equipment.id,
            user_id=holder_id,
            checked_out_by_id=data.context.actor_id,
            status=TransactionStatus.CHECKED_OUT,
            checked_out_at=data.now,
            due_date=due_date,
            notes=checkout.notes if checkout else None,
            organization_id=data.equipment.organization_id,
            school_id=data.equipment.school_id,
        )
        self.session.add(txn)

    def request_maintenance(self, data: EffectInput) -> None:
        if data.previous_status == EquipmentStatus.DAMAGED:
            pending = self._pending_requests(data.equipment.id)
            if pending:
                logger.debug(
                    "repair_request_carried_forward",
                    extra={
                        "equipment_id": str(data.equipment.id),
                        "request_id": str(pending[0].id),
                    },
                )
                return

        self.session.add(
            MaintenanceRequest(
                equipment_id=data.equipment.id,
                requested_by_id=data.context.actor_id,
                description=data.context.effective_reason or DEFAULT_MAINTENANCE_DESCRIPTION,
                priority=MaintenancePriority.MEDIUM,
                status=MaintenanceStatus.PENDING,
                created_at=data.now,
                organization_id=data.equipment.organization_id,
                school_id=data.equipment.school_id,
            )
        )

    def report_damage(self, data: EffectInput) -> None:
        """One damage report plus a repair request for it."""
        damage = data.context.damage_report
        description = (
            damage.description.strip() if damage and damage.description.strip()
            else data.context.effective_reason or DEFAULT_DAMAGE_DESCRIPTION
        )
        severity = damage.severity if damage else _metadata_severity(data)
        repair_required = damage.repair_required if damage else True

        self.session.add(
            DamageReport(
                equipment_id=data.equipment.id,
                reported_by_id=data.context.actor_id,
                description=description,
                severity=severity,
                repair_required=repair_required,
                created_at=data.now,
                organization_id=data.equipment.organization_id,
                school_id=data.equipment.school_id,
            )
        )
        if repair_required:
            self.session.add(
                MaintenanceRequest(
                    equipment_id=data.equipment.id,
                    requested_by_id=data.context.actor_id,
                    description=f"Repair: {description}",
                    priority=_REPAIR_PRIORITY[severity],
                    severity=severity,
                    status=MaintenanceStatus.PENDING,
                    created_at=data.now,
                    organization_id=data.equipment.organization_id,
                    school_id=data.equipment.school_id,
                )
            )

    def retire(self, data: EffectInput) -> None:
        data.equipment.retired_at = data.now
        data.equipment.retired_reason = data.context.effective_reason
        cancelled = self._close_pending(data, MaintenanceStatus.CANCELLED)
        if cancelled:
            logger.info(
                "maintenance_requests_cancelled",
                extra={"equipment_id": str(data.equipment.id), "count": cancelled},
            )

    def make_available(self, data: EffectInput) -> None:
        """Close the open checkout; finish pending repair or maintenance work."""
        open_txns = self.session.execute(
            select(CheckoutTransaction).where(
                CheckoutTransaction.equipment_id == data.equipment.id,
                CheckoutTransaction.status == TransactionStatus.CHECKED_OUT,
            )
        ).scalars().all()
        for txn in open_txns:
            txn.status = TransactionStatus.RETURNED
            txn.returned_at = data.now
            txn.returned_by_id = data.context.actor_id

        completed = 0
        if data.previous_status in _SERVICED_STATUSES:
            completed = self._close_pending(data, MaintenanceStatus.COMPLETED)
        if data.previous_status == EquipmentStatus.MAINTENANCE:
            data.equipment.last_maintenance_date = data.now

        logger.debug(
            "equipment_made_available",
            extra={
                "equipment_id": str(data.equipment.id),
                "closed_checkouts": len(open_txns),
                "completed_requests": completed,
                "previous_status": data.previous_status.value,
            },
        )


STATUS_EFFECTS: Mapping[EquipmentStatus, Effect] = MappingProxyType({
    EquipmentStatus.CHECKED_OUT: StatusEffects.open_checkout,
    EquipmentStatus.MAINTENANCE: StatusEffects.request_maintenance,
    EquipmentStatus.DAMAGED: StatusEffects.report_damage,
    EquipmentStatus.RETIRED: StatusEffects.retire,
    EquipmentStatus.AVAILABLE: StatusEffects.make_available,
})
