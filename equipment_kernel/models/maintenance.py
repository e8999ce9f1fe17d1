"""
Module: equipment_kernel.models.maintenance
Responsibility: ORM persistence for maintenance requests and damage reports.
Architecture position: Kernel > Models.

Both record types are created only as side effects of a status transition
(into MAINTENANCE or DAMAGED), inside the transition's database
transaction.  Callers of the workflow engine never create them directly.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, Enum as SAEnum, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from equipment_kernel.db.base import Base, UUIDString
from equipment_kernel.domain.status import (
    DamageSeverity,
    MaintenancePriority,
    MaintenanceStatus,
)


class MaintenanceRequest(Base):
    """Work order raised when equipment enters MAINTENANCE or DAMAGED."""

    __tablename__ = "maintenance_requests"

    __table_args__ = (
        Index("idx_maintenance_equipment_status", "equipment_id", "status"),
    )

    equipment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("equipment.id"),
        nullable=False,
    )

    requested_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    priority: Mapped[MaintenancePriority] = mapped_column(
        SAEnum(MaintenancePriority, native_enum=False, length=10),
        default=MaintenancePriority.MEDIUM,
        nullable=False,
    )

    severity: Mapped[DamageSeverity | None] = mapped_column(
        SAEnum(DamageSeverity, native_enum=False, length=10),
        nullable=True,
    )

    status: Mapped[MaintenanceStatus] = mapped_column(
        SAEnum(MaintenanceStatus, native_enum=False, length=10),
        default=MaintenanceStatus.PENDING,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    organization_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    school_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<MaintenanceRequest {self.id} equipment={self.equipment_id} status={self.status.value}>"


class DamageReport(Base):
    """Damage record created when equipment enters DAMAGED."""

    __tablename__ = "damage_reports"

    __table_args__ = (
        Index("idx_damage_equipment", "equipment_id"),
    )

    equipment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("equipment.id"),
        nullable=False,
    )

    reported_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    severity: Mapped[DamageSeverity] = mapped_column(
        SAEnum(DamageSeverity, native_enum=False, length=10),
        default=DamageSeverity.MEDIUM,
        nullable=False,
    )

    repair_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    organization_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    school_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<DamageReport {self.id} equipment={self.equipment_id} severity={self.severity.value}>"
