"""
Module: equipment_kernel.models.equipment
Responsibility: ORM persistence for equipment records and their lifecycle
    status.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/status.py only.

Invariants enforced:
    - status is always an EquipmentStatus member.
    - retired_at is set iff status == RETIRED (maintained by the workflow
      engine, the only writer of status).
    - version is the optimistic-lock column: every UPDATE is conditional on
      the version read, so a stale writer fails with StaleDataError.
    - Rows are never hard-deleted; is_deleted hides them from the engine.

Failure modes:
    - StaleDataError on flush when another transaction updated the row
      after it was read.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Enum as SAEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from equipment_kernel.db.base import TrackedBase, UUIDString
from equipment_kernel.domain.status import (
    INITIAL_STATUS,
    EquipmentCondition,
    EquipmentStatus,
)


class Equipment(TrackedBase):
    """
    A physical item owned by a school or, when school_id is NULL, shared
    across its organization.

    Contract:
        status is mutated exclusively by WorkflowEngine.
    """

    __tablename__ = "equipment"

    __table_args__ = (
        Index("idx_equipment_tenant", "organization_id", "school_id"),
        Index("idx_equipment_status", "status"),
    )

    organization_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    school_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    serial_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[EquipmentStatus] = mapped_column(
        SAEnum(EquipmentStatus, native_enum=False, length=20),
        default=INITIAL_STATUS,
        nullable=False,
    )

    condition: Mapped[EquipmentCondition] = mapped_column(
        SAEnum(EquipmentCondition, native_enum=False, length=20),
        default=EquipmentCondition.GOOD,
        nullable=False,
    )

    purchase_price: Mapped[Decimal | None] = mapped_column(nullable=True)

    last_maintenance_date: Mapped[datetime | None] = mapped_column(nullable=True)

    last_status_change: Mapped[datetime | None] = mapped_column(nullable=True)

    retired_at: Mapped[datetime | None] = mapped_column(nullable=True)

    retired_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Equipment {self.id} status={self.status.value} v{self.version}>"

    @property
    def is_retired(self) -> bool:
        return self.status == EquipmentStatus.RETIRED
