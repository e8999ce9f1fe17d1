"""
Status-specific preconditions (``equipment_kernel.domain.status_rules``).

Responsibility
--------------
Pure checks evaluated after the rule table accepts a transition and before
anything is written.  Each target status maps to one precondition; the
workflow engine looks the precondition up and never branches on status
itself.  Side effects live in ``equipment_kernel.services.status_effects``.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.

Invariants enforced
-------------------
* DAMAGED requires a non-empty reason (or damage description).
* LOST above the high-value threshold and every RETIRED flag
  ``requires_approval``; the flag is advisory and never blocks.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from uuid import UUID

from equipment_kernel.domain.dtos import TransitionContext
from equipment_kernel.domain.policy import WorkflowPolicy
from equipment_kernel.domain.status import EquipmentStatus
from equipment_kernel.exceptions import MissingReasonError


@dataclass(frozen=True)
class EquipmentFacts:
    """The equipment attributes preconditions are allowed to look at."""

    equipment_id: UUID
    status: EquipmentStatus
    purchase_price: Decimal | None = None


@dataclass(frozen=True)
class PreconditionOutcome:
    requires_approval: bool = False
    message: str | None = None


PASSED = PreconditionOutcome()

Precondition = Callable[
    [EquipmentFacts, EquipmentStatus, TransitionContext, WorkflowPolicy],
    PreconditionOutcome,
]


def no_precondition(
    equipment: EquipmentFacts,
    target: EquipmentStatus,
    context: TransitionContext,
    policy: WorkflowPolicy,
) -> PreconditionOutcome:
    return PASSED


def require_reason(
    equipment: EquipmentFacts,
    target: EquipmentStatus,
    context: TransitionContext,
    policy: WorkflowPolicy,
) -> PreconditionOutcome:
    """Reject the transition when neither a reason nor a description was given."""
    if context.effective_reason is None:
        raise MissingReasonError(str(equipment.equipment_id), target.value)
    return PASSED


def flag_high_value_loss(
    equipment: EquipmentFacts,
    target: EquipmentStatus,
    context: TransitionContext,
    policy: WorkflowPolicy,
) -> PreconditionOutcome:
    price = equipment.purchase_price
    if price is not None and price > policy.high_value_threshold:
        return PreconditionOutcome(
            requires_approval=True,
            message="High-value equipment marked as lost - requires management approval",
        )
    return PASSED


def flag_retirement(
    equipment: EquipmentFacts,
    target: EquipmentStatus,
    context: TransitionContext,
    policy: WorkflowPolicy,
) -> PreconditionOutcome:
    return PreconditionOutcome(
        requires_approval=True,
        message="Equipment retirement requires approval",
    )


PRECONDITIONS: Mapping[EquipmentStatus, Precondition] = MappingProxyType({
    EquipmentStatus.AVAILABLE: no_precondition,
    EquipmentStatus.CHECKED_OUT: no_precondition,
    EquipmentStatus.OVERDUE: no_precondition,
    EquipmentStatus.MAINTENANCE: no_precondition,
    EquipmentStatus.LOST: flag_high_value_loss,
    EquipmentStatus.DAMAGED: require_reason,
    EquipmentStatus.RETIRED: flag_retirement,
})


def check_preconditions(
    equipment: EquipmentFacts,
    target: EquipmentStatus,
    context: TransitionContext,
    policy: WorkflowPolicy,
) -> PreconditionOutcome:
    """Run the precondition registered for ``target``.

    Raises:
        MissingReasonError: From ``require_reason``.
    """
    precondition = PRECONDITIONS.get(target, no_precondition)
    return precondition(equipment, target, context, policy)


# Advisory notices handed back to the caller; delivery is external.
_NOTIFICATIONS: Mapping[EquipmentStatus, tuple[str, ...]] = MappingProxyType({
    EquipmentStatus.DAMAGED: ("Damage notification sent to administrators",),
    EquipmentStatus.LOST: ("Loss notification sent to administrators",),
    EquipmentStatus.MAINTENANCE: ("Maintenance notification sent to maintenance team",),
})


def status_notifications(target: EquipmentStatus) -> tuple[str, ...]:
    return _NOTIFICATIONS.get(target, ())
