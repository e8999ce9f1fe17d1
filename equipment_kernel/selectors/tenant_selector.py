"""
Module: equipment_kernel.selectors.tenant_selector
Responsibility: Enumerate the tenant scopes the scheduler sweeps.
"""

from sqlalchemy import select

from equipment_kernel.domain.dtos import TenantScope
from equipment_kernel.models.tenant import Tenant
from equipment_kernel.selectors.base import BaseSelector


class TenantSelector(BaseSelector[Tenant]):

    def active_scopes(self) -> list[TenantScope]:
        """Scopes of every active tenant, in a stable order."""
        tenants = self.session.execute(
            select(Tenant)
            .where(Tenant.is_active.is_(True))
            .order_by(Tenant.organization_id, Tenant.name)
        ).scalars().all()
        return [tenant.to_scope() for tenant in tenants]
