"""
Module: equipment_kernel.models.checkout_transaction
Responsibility: ORM persistence for the checkout/return ledger.
Architecture position: Kernel > Models.

Invariants enforced:
    - At most one CHECKED_OUT transaction per equipment (partial unique
      index on PostgreSQL and SQLite).
    - Opened when equipment enters CHECKED_OUT; closed (RETURNED with
      returned_at and returned_by_id) when it goes back to AVAILABLE.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Enum as SAEnum, ForeignKey, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from equipment_kernel.db.base import Base, UUIDString
from equipment_kernel.domain.status import TransactionStatus


class CheckoutTransaction(Base):
    """One checkout of one piece of equipment to one holder."""

    __tablename__ = "checkout_transactions"

    __table_args__ = (
        Index("idx_checkout_equipment_status", "equipment_id", "status"),
        Index("idx_checkout_due_date", "due_date"),
        Index(
            "uq_checkout_open_per_equipment",
            "equipment_id",
            unique=True,
            postgresql_where=text("status = 'CHECKED_OUT'"),
            sqlite_where=text("status = 'CHECKED_OUT'"),
        ),
    )

    equipment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("equipment.id"),
        nullable=False,
    )

    # Holder of the equipment
    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    checked_out_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(TransactionStatus, native_enum=False, length=20),
        default=TransactionStatus.CHECKED_OUT,
        nullable=False,
    )

    checked_out_at: Mapped[datetime] = mapped_column(nullable=False)

    due_date: Mapped[datetime] = mapped_column(nullable=False)

    returned_at: Mapped[datetime | None] = mapped_column(nullable=True)

    returned_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    organization_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    school_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CheckoutTransaction {self.id} equipment={self.equipment_id} "
            f"status={self.status.value}>"
        )

    @property
    def is_open(self) -> bool:
        return self.status == TransactionStatus.CHECKED_OUT
