"""
AuditSink -- append-only audit trail for equipment status changes.

Responsibility:
    Writes exactly one ``AuditEntry`` per successful transition, inside
    the transition's own database transaction.

Architecture position:
    Kernel > Services -- called by WorkflowEngine only.

Invariants enforced:
    - Append-only: entries are never modified or deleted (ORM listeners
      in ``db/immutability.py``).
    - The details payload always carries previousStatus, newStatus,
      reason and metadata, so the entry is self-describing.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from equipment_kernel.domain.status import EquipmentStatus
from equipment_kernel.logging_config import get_logger
from equipment_kernel.models.audit_entry import EQUIPMENT_ENTITY, AuditAction, AuditEntry
from equipment_kernel.services.base import BaseService

logger = get_logger("services.audit_sink")


class AuditSink(BaseService[AuditEntry]):
    """Flush-only writer of STATUS_CHANGE audit entries."""

    def record_status_change(
        self,
        equipment_id: UUID,
        previous_status: EquipmentStatus,
        new_status: EquipmentStatus,
        actor_id: UUID,
        organization_id: UUID,
        school_id: UUID | None,
        occurred_at: datetime,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry:
        """
        Append the audit entry for one transition.

        The tenant columns are the equipment's own, not the caller's, so
        shared equipment stays visible to every school of the organization.
        """
        entry = AuditEntry(
            entity_type=EQUIPMENT_ENTITY,
            entity_id=equipment_id,
            action=AuditAction.STATUS_CHANGE.value,
            previous_status=previous_status.value,
            new_status=new_status.value,
            reason=reason,
            details={
                "previousStatus": previous_status.value,
                "newStatus": new_status.value,
                "reason": reason,
                "metadata": dict(metadata or {}),
            },
            actor_id=actor_id,
            organization_id=organization_id,
            school_id=school_id,
            occurred_at=occurred_at,
        )
        self.session.add(entry)
        self.session.flush()

        logger.debug(
            "audit_entry_recorded",
            extra={
                "audit_entry_id": str(entry.id),
                "equipment_id": str(equipment_id),
                "previous_status": previous_status.value,
                "new_status": new_status.value,
            },
        )
        return entry
