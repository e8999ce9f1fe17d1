"""
Transition rule table (``equipment_kernel.domain.transitions``).

Responsibility
--------------
The single, immutable definition of which equipment status changes are
legal.  ``is_transition_allowed`` is a pure lookup; ``validate_rule_table``
checks the table's internal consistency and runs at process startup.

Architecture position
---------------------
**Kernel domain layer** -- pure data and functions.  ZERO I/O.

Invariants enforced
-------------------
* Every status named as a destination is itself a source key.
* Every ``EquipmentStatus`` member has an entry (possibly empty).
* RETIRED has no outgoing transitions.
* No status transitions to itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from equipment_kernel.domain.status import TERMINAL_STATUSES, EquipmentStatus

S = EquipmentStatus

ALLOWED_TRANSITIONS: Mapping[EquipmentStatus, frozenset[EquipmentStatus]] = MappingProxyType({
    S.AVAILABLE: frozenset({S.CHECKED_OUT, S.MAINTENANCE, S.LOST, S.DAMAGED, S.RETIRED}),
    S.CHECKED_OUT: frozenset({S.AVAILABLE, S.OVERDUE, S.LOST, S.DAMAGED}),
    S.OVERDUE: frozenset({S.AVAILABLE, S.LOST, S.DAMAGED}),
    S.MAINTENANCE: frozenset({S.AVAILABLE, S.RETIRED}),
    S.LOST: frozenset({S.AVAILABLE}),
    S.DAMAGED: frozenset({S.AVAILABLE, S.MAINTENANCE, S.RETIRED}),
    S.RETIRED: frozenset(),
})

del S


def is_transition_allowed(
    current: EquipmentStatus,
    target: EquipmentStatus,
    table: Mapping[EquipmentStatus, frozenset[EquipmentStatus]] = ALLOWED_TRANSITIONS,
) -> bool:
    """Return True when ``table`` lists ``target`` as a successor of ``current``."""
    return target in table.get(current, frozenset())


def allowed_targets(
    current: EquipmentStatus,
    table: Mapping[EquipmentStatus, frozenset[EquipmentStatus]] = ALLOWED_TRANSITIONS,
) -> frozenset[EquipmentStatus]:
    """All statuses reachable from ``current`` in one transition."""
    return table.get(current, frozenset())


def validate_rule_table(
    table: Mapping[EquipmentStatus, frozenset[EquipmentStatus]] = ALLOWED_TRANSITIONS,
) -> tuple[bool, list[str]]:
    """Check the rule table for internal consistency.

    Returns:
        ``(ok, errors)`` -- ``ok`` is True iff ``errors`` is empty.
    """
    errors: list[str] = []

    for status in EquipmentStatus:
        if status not in table:
            errors.append(f"Status {status.value} has no entry in the transition table")

    for source, targets in table.items():
        for target in sorted(targets, key=lambda s: s.value):
            if target not in table:
                errors.append(
                    f"Destination {target.value} (from {source.value}) "
                    "is not a source key in the transition table"
                )
            if target == source:
                errors.append(f"Status {source.value} transitions to itself")

    for terminal in sorted(TERMINAL_STATUSES, key=lambda s: s.value):
        if table.get(terminal):
            errors.append(
                f"{terminal.value} should be a terminal state with no outgoing transitions"
            )

    return (not errors, errors)
