"""
Module: equipment_kernel.selectors.equipment_selector
Responsibility: Read-only queries over equipment: single-item lookup, sweep
    candidate scans, and status history from the audit log.
Architecture position: Kernel > Selectors.  May import from models/,
    domain DTOs, and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Every query is tenant scoped via scope_clause().
    - Soft-deleted equipment (is_deleted) is never returned.
    - Candidate scans return identifiers only; the workflow engine re-reads
      each row under lock before acting on it.

Failure modes:
    - Returns None or empty list when nothing matches (never raises on
      absence of data).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from equipment_kernel.domain.dtos import StatusHistoryEntry, TenantScope
from equipment_kernel.domain.status import EquipmentStatus, TransactionStatus
from equipment_kernel.models.audit_entry import EQUIPMENT_ENTITY, AuditAction, AuditEntry
from equipment_kernel.models.checkout_transaction import CheckoutTransaction
from equipment_kernel.models.equipment import Equipment
from equipment_kernel.selectors.base import BaseSelector, scope_clause


@dataclass
class EquipmentDTO:
    """Data transfer object for an equipment row."""

    id: UUID
    organization_id: UUID
    school_id: UUID | None
    name: str
    status: EquipmentStatus
    purchase_price: Decimal | None
    last_maintenance_date: datetime | None
    last_status_change: datetime | None
    retired_at: datetime | None
    retired_reason: str | None
    version: int


@dataclass
class CheckoutDTO:
    """Data transfer object for a checkout transaction."""

    id: UUID
    equipment_id: UUID
    user_id: UUID
    status: TransactionStatus
    checked_out_at: datetime
    due_date: datetime
    returned_at: datetime | None
    returned_by_id: UUID | None


class EquipmentSelector(BaseSelector[Equipment]):
    """
    Selector for equipment queries.

    Guarantees:
        - Read-only: No mutations are performed.
        - Candidate scans are ordered (oldest due date / oldest maintenance
          first) so sweeps are deterministic.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _visible(self, scope: TenantScope):
        return and_(
            scope_clause(Equipment, scope),
            Equipment.is_deleted.is_(False),
        )

    def _to_dto(self, equipment: Equipment) -> EquipmentDTO:
        return EquipmentDTO(
            id=equipment.id,
            organization_id=equipment.organization_id,
            school_id=equipment.school_id,
            name=equipment.name,
            status=equipment.status,
            purchase_price=equipment.purchase_price,
            last_maintenance_date=equipment.last_maintenance_date,
            last_status_change=equipment.last_status_change,
            retired_at=equipment.retired_at,
            retired_reason=equipment.retired_reason,
            version=equipment.version,
        )

    def get(self, equipment_id: UUID, scope: TenantScope) -> EquipmentDTO | None:
        """Equipment by id within scope, or None if absent/deleted/out of scope."""
        equipment = self.session.execute(
            select(Equipment).where(
                Equipment.id == equipment_id,
                self._visible(scope),
            )
        ).scalar_one_or_none()
        if equipment is None:
            return None
        return self._to_dto(equipment)

    def is_visible(self, equipment_id: UUID, scope: TenantScope) -> bool:
        return self.session.execute(
            select(Equipment.id).where(
                Equipment.id == equipment_id,
                self._visible(scope),
            )
        ).scalar_one_or_none() is not None

    def list_by_status(
        self,
        scope: TenantScope,
        status: EquipmentStatus,
    ) -> list[EquipmentDTO]:
        rows = self.session.execute(
            select(Equipment)
            .where(self._visible(scope), Equipment.status == status)
            .order_by(Equipment.name)
        ).scalars().all()
        return [self._to_dto(row) for row in rows]

    def open_checkout(self, equipment_id: UUID) -> CheckoutDTO | None:
        """The CHECKED_OUT transaction for an item, if any."""
        txn = self.session.execute(
            select(CheckoutTransaction).where(
                CheckoutTransaction.equipment_id == equipment_id,
                CheckoutTransaction.status == TransactionStatus.CHECKED_OUT,
            )
        ).scalar_one_or_none()
        if txn is None:
            return None
        return CheckoutDTO(
            id=txn.id,
            equipment_id=txn.equipment_id,
            user_id=txn.user_id,
            status=txn.status,
            checked_out_at=txn.checked_out_at,
            due_date=txn.due_date,
            returned_at=txn.returned_at,
            returned_by_id=txn.returned_by_id,
        )

    def overdue_candidates(
        self,
        scope: TenantScope,
        cutoff: datetime,
    ) -> list[UUID]:
        """
        CHECKED_OUT equipment whose open transaction fell due before ``cutoff``.

        The caller computes ``cutoff`` as now minus the overdue threshold.
        """
        return list(
            self.session.execute(
                select(Equipment.id)
                .join(
                    CheckoutTransaction,
                    CheckoutTransaction.equipment_id == Equipment.id,
                )
                .where(
                    self._visible(scope),
                    Equipment.status == EquipmentStatus.CHECKED_OUT,
                    CheckoutTransaction.status == TransactionStatus.CHECKED_OUT,
                    CheckoutTransaction.due_date < cutoff,
                )
                .order_by(CheckoutTransaction.due_date, Equipment.id)
            ).scalars().all()
        )

    def maintenance_due_candidates(
        self,
        scope: TenantScope,
        cutoff: datetime,
    ) -> list[UUID]:
        """
        AVAILABLE equipment last maintained before ``cutoff``.

        Equipment never maintained counts from its creation date.
        """
        return list(
            self.session.execute(
                select(Equipment.id)
                .where(
                    self._visible(scope),
                    Equipment.status == EquipmentStatus.AVAILABLE,
                    or_(
                        Equipment.last_maintenance_date < cutoff,
                        and_(
                            Equipment.last_maintenance_date.is_(None),
                            Equipment.created_at < cutoff,
                        ),
                    ),
                )
                .order_by(Equipment.created_at, Equipment.id)
            ).scalars().all()
        )

    def workflow_history(
        self,
        equipment_id: UUID,
        scope: TenantScope,
    ) -> list[StatusHistoryEntry]:
        """STATUS_CHANGE audit entries for one item, newest first."""
        entries = self.session.execute(
            select(AuditEntry)
            .where(
                AuditEntry.entity_type == EQUIPMENT_ENTITY,
                AuditEntry.entity_id == equipment_id,
                AuditEntry.action == AuditAction.STATUS_CHANGE.value,
                scope_clause(AuditEntry, scope),
            )
            .order_by(AuditEntry.occurred_at.desc())
        ).scalars().all()

        return [
            StatusHistoryEntry(
                entry_id=entry.id,
                equipment_id=entry.entity_id,
                previous_status=EquipmentStatus(entry.previous_status),
                new_status=EquipmentStatus(entry.new_status),
                reason=entry.reason,
                actor_id=entry.actor_id,
                occurred_at=entry.occurred_at,
                details=dict(entry.details or {}),
            )
            for entry in entries
        ]
