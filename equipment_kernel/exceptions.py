"""
Typed Exception Hierarchy for the Equipment Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the workflow engine (the HTTP layer, the sweeper, tests) must be
able to tell a rejected transition from a missing record from a database
outage without parsing message strings.  Every error therefore:

  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA (equipment id, statuses, ...) as attributes

Example - WRONG way to handle errors:
    try:
        engine.apply(...)
    except Exception as e:
        if "not allowed" in str(e):  # FRAGILE
            ...

Example - RIGHT way:
    except InvalidTransitionError as e:
        respond(400, code=e.code, current=e.current_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    EquipmentKernelError (base)
    |
    +-- WorkflowError                    (expected, recoverable by caller)
    |   +-- EquipmentNotFoundError
    |   +-- InvalidTransitionError
    |   +-- UnknownStatusError
    |   +-- MissingReasonError
    |
    +-- PersistenceError                 (storage failure, rolled back)
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ConfigurationError               (fatal at startup only)
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                        | When Raised
----------------------------|-------------------------------------------------
NOT_FOUND                   | Equipment absent, soft-deleted, or out of scope
INVALID_TRANSITION          | Rule table rejects current -> target
                            | or names no known status
MISSING_REASON              | DAMAGED requested without a description
PERSISTENCE_ERROR           | Database failure while applying a transition
OPTIMISTIC_LOCK_CONFLICT    | Equipment row changed under a pending update
CONFIGURATION_ERROR         | Rule table or policy constants inconsistent
IMMUTABILITY_VIOLATION      | UPDATE/DELETE attempted on an audit entry

===============================================================================
"""


class EquipmentKernelError(Exception):
    """
    Base exception for all equipment kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "EQUIPMENT_KERNEL_ERROR"


# Workflow (validation) exceptions


class WorkflowError(EquipmentKernelError):
    """Base exception for transition requests the caller can correct."""

    code: str = "WORKFLOW_ERROR"


class EquipmentNotFoundError(WorkflowError):
    """
    Equipment does not exist in the caller's tenant scope.

    The message is identical whether the row is absent, soft-deleted, or
    owned by another tenant.
    """

    code: str = "NOT_FOUND"

    def __init__(self, equipment_id: str):
        self.equipment_id = equipment_id
        super().__init__("Equipment not found")


class InvalidTransitionError(WorkflowError):
    """The rule table does not allow current_status -> target_status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, equipment_id: str, current_status: str, target_status: str):
        self.equipment_id = equipment_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Transition from {current_status} to {target_status} is not allowed"
        )


class UnknownStatusError(WorkflowError):
    """The requested target is not an equipment status at all."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, equipment_id: str, target_status: str):
        self.equipment_id = equipment_id
        self.target_status = target_status
        super().__init__(f"Unknown equipment status: {target_status!r}")


class MissingReasonError(WorkflowError):
    """A transition that requires a reason was requested without one."""

    code: str = "MISSING_REASON"

    def __init__(self, equipment_id: str, target_status: str):
        self.equipment_id = equipment_id
        self.target_status = target_status
        super().__init__(
            f"Reason is required when marking equipment as {target_status.lower()}"
        )


# Persistence exceptions


class PersistenceError(EquipmentKernelError):
    """
    Storage failure while applying a transition.

    The enclosing database transaction has been rolled back; no partial
    effect is visible.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, equipment_id: str, detail: str):
        self.equipment_id = equipment_id
        self.detail = detail
        super().__init__("Failed to update equipment status")


# Concurrency exceptions


class ConcurrencyError(EquipmentKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Configuration exceptions


class ConfigurationError(EquipmentKernelError):
    """
    The transition rule table or the workflow policy is inconsistent.

    Raised during startup validation.  Never a runtime condition to recover
    from.
    """

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, errors: list[str] | tuple[str, ...]):
        self.errors = tuple(errors)
        super().__init__(
            "Workflow configuration is invalid: " + "; ".join(self.errors)
        )


# Immutability exceptions


class ImmutabilityViolationError(EquipmentKernelError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
