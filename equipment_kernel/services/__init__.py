"""Kernel services - the write side of the equipment kernel."""

from equipment_kernel.services.audit_sink import AuditSink
from equipment_kernel.services.base import BaseService
from equipment_kernel.services.status_effects import STATUS_EFFECTS, StatusEffects
from equipment_kernel.services.workflow_engine import WorkflowEngine

__all__ = [
    "AuditSink",
    "BaseService",
    "STATUS_EFFECTS",
    "StatusEffects",
    "WorkflowEngine",
]
