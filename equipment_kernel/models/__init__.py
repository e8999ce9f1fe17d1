"""Domain models for the equipment kernel."""

from equipment_kernel.models.audit_entry import EQUIPMENT_ENTITY, AuditAction, AuditEntry
from equipment_kernel.models.checkout_transaction import CheckoutTransaction
from equipment_kernel.models.equipment import Equipment
from equipment_kernel.models.maintenance import DamageReport, MaintenanceRequest
from equipment_kernel.models.tenant import Tenant

__all__ = [
    "AuditAction",
    "AuditEntry",
    "CheckoutTransaction",
    "DamageReport",
    "EQUIPMENT_ENTITY",
    "Equipment",
    "MaintenanceRequest",
    "Tenant",
]
