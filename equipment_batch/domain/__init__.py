"""Pure sweep rules and result types.  ZERO I/O."""

from equipment_batch.domain.sweep_rules import (
    MAINTENANCE_DUE_REASON,
    OVERDUE_REASON,
    SweepKind,
    maintenance_cutoff,
    overdue_cutoff,
    system_context,
)
from equipment_batch.domain.types import (
    SchedulerStatus,
    SweepFailure,
    SweepResult,
    TickResult,
)

__all__ = [
    "MAINTENANCE_DUE_REASON",
    "OVERDUE_REASON",
    "SchedulerStatus",
    "SweepFailure",
    "SweepKind",
    "SweepResult",
    "TickResult",
    "maintenance_cutoff",
    "overdue_cutoff",
    "system_context",
]
