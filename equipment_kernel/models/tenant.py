"""
Module: equipment_kernel.models.tenant
Responsibility: Registry of tenants the scheduler sweeps.

A tenant row is a school (school_id set) or an organization as a whole
(school_id NULL).  Only active tenants are swept.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from equipment_kernel.db.base import Base, UUIDString
from equipment_kernel.domain.dtos import TenantScope


class Tenant(Base):
    __tablename__ = "tenants"

    organization_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    school_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_scope(self) -> TenantScope:
        return TenantScope(organization_id=self.organization_id, school_id=self.school_id)

    def __repr__(self) -> str:
        return f"<Tenant {self.name} active={self.is_active}>"
