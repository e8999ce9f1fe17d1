"""
Module: equipment_kernel.models.audit_entry
Responsibility: ORM persistence for the append-only equipment audit log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Audit entries are append-only; UPDATE and DELETE are rejected by ORM
      listeners (db/immutability.py).
    - Exactly one STATUS_CHANGE entry per successful transition, written in
      the same database transaction as the status change.

Audit relevance:
    AuditEntry IS the audit trail.  Status history queries read it back
    newest-first per equipment, tenant scoped.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from equipment_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    """Types of auditable actions."""

    STATUS_CHANGE = "STATUS_CHANGE"


EQUIPMENT_ENTITY = "EQUIPMENT"


class AuditEntry(Base):
    """
    One recorded state change.

    Contract:
        Rows are append-only, never updated or deleted.
    """

    __tablename__ = "audit_entries"

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_occurred", "occurred_at"),
        Index("idx_audit_tenant", "organization_id", "school_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    action: Mapped[str] = mapped_column(String(50), nullable=False)

    previous_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    new_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    organization_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    school_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditEntry {self.action} {self.entity_type}:{self.entity_id} "
            f"{self.previous_status}->{self.new_status}>"
        )
