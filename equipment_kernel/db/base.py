"""
Module: equipment_kernel.db.base
Responsibility: Declarative bases for the equipment tables.  Every row
    (equipment, checkouts, maintenance and damage records, audit entries,
    tenants) gets a uuid4 primary key and carries organization/school ids
    as the same portable UUID column type.
Architecture position: Kernel > DB.  Imported by every model; imports
    nothing else from the kernel.

Invariants enforced:
    - Purchase prices map to Numeric(14, 2), never float.
    - Timestamps are DateTime(timezone=True).
    - Equipment records who created and last changed them (TrackedBase);
      the workflow engine stamps updated_by_id with the transition actor.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID held as String(36) so SQLite and PostgreSQL share one schema."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(14, 2),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Base for records edited over time.

    created_at doubles as the maintenance baseline for equipment that has
    never been serviced, so callers may set it explicitly; otherwise the
    database fills it in.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
