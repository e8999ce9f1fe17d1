"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The audit trail answers "who changed this equipment, when, and why".  It is
only worth anything if it cannot be rewritten after the fact.  Damage reports
are evidence of the same kind.  Retired equipment is terminal: nothing may
bring it back into circulation.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check the rules:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, ImmutabilityViolationError is raised and the flush is
aborted.  The database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | When Immutable                  | Why
----------------|---------------------------------|------------------------------
AuditEntry      | ALWAYS (from creation)          | Audit trail is append-only
DamageReport    | ALWAYS (from creation)          | Evidence of a damage event
Equipment       | status, once RETIRED            | RETIRED is terminal

===============================================================================
USAGE
===============================================================================

Called once at application startup (and by the test fixtures):

    from equipment_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    from equipment_kernel.db.immutability import unregister_immutability_listeners
    unregister_immutability_listeners()

===============================================================================
"""

from sqlalchemy import event, inspect

from equipment_kernel.exceptions import ImmutabilityViolationError
from equipment_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, entity_id, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_audit_entry_immutability(mapper, connection, target):
    """Prevent any updates to AuditEntry records."""
    raise _blocked(
        "AuditEntry", target.id, "UPDATE",
        "Audit entries are immutable and cannot be modified",
    )


def _check_audit_entry_delete(mapper, connection, target):
    """Prevent deletion of AuditEntry records."""
    raise _blocked(
        "AuditEntry", target.id, "DELETE",
        "Audit entries cannot be deleted",
    )


def _check_damage_report_immutability(mapper, connection, target):
    raise _blocked(
        "DamageReport", target.id, "UPDATE",
        "Damage reports are immutable once filed",
    )


def _check_damage_report_delete(mapper, connection, target):
    raise _blocked(
        "DamageReport", target.id, "DELETE",
        "Damage reports cannot be deleted",
    )


def _check_retired_equipment_status(mapper, connection, target):
    """
    Block any status change on equipment whose committed status is RETIRED.

    Uses attribute history: the deleted side holds the value loaded from the
    database, so RETIRED -> anything is caught while AVAILABLE -> RETIRED
    (the retirement itself) passes.
    """
    from equipment_kernel.domain.status import EquipmentStatus

    history = inspect(target).attrs.status.history
    if not history.has_changes():
        return
    if EquipmentStatus.RETIRED in (history.deleted or ()):
        raise _blocked(
            "Equipment", target.id, "UPDATE",
            "Retired equipment cannot change status",
        )


def _check_equipment_delete(mapper, connection, target):
    raise _blocked(
        "Equipment", target.id, "DELETE",
        "Equipment is soft-deleted via is_deleted, never removed",
    )


def _listeners():
    from equipment_kernel.models.audit_entry import AuditEntry
    from equipment_kernel.models.equipment import Equipment
    from equipment_kernel.models.maintenance import DamageReport

    return (
        (AuditEntry, "before_update", _check_audit_entry_immutability),
        (AuditEntry, "before_delete", _check_audit_entry_delete),
        (DamageReport, "before_update", _check_damage_report_immutability),
        (DamageReport, "before_delete", _check_damage_report_delete),
        (Equipment, "before_update", _check_retired_equipment_status),
        (Equipment, "before_delete", _check_equipment_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are left alone.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
