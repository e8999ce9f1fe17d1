"""Read-only query selectors."""

from equipment_kernel.selectors.base import BaseSelector, scope_clause
from equipment_kernel.selectors.equipment_selector import (
    CheckoutDTO,
    EquipmentDTO,
    EquipmentSelector,
)
from equipment_kernel.selectors.tenant_selector import TenantSelector

__all__ = [
    "BaseSelector",
    "CheckoutDTO",
    "EquipmentDTO",
    "EquipmentSelector",
    "TenantSelector",
    "scope_clause",
]
