"""
equipment_batch.domain.types -- Pure frozen dataclasses for sweeps and the
scheduler.  ZERO I/O.

``to_dict()`` methods produce the camelCase shapes reported to operators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class SweepFailure:
    """One equipment item the sweep could not promote."""

    equipment_id: UUID
    kind: str
    error_code: str
    message: str


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one sweep over one tenant scope.

    Counts include successful transitions only; a candidate that another
    writer moved first shows up in ``failures`` instead.
    """

    sweep_id: str
    tenant_key: str
    started_at: datetime
    overdue_transitions: int = 0
    maintenance_transitions: int = 0
    failures: tuple[SweepFailure, ...] = ()
    duration_ms: float = 0.0

    @property
    def total_transitions(self) -> int:
        return self.overdue_transitions + self.maintenance_transitions

    def to_dict(self) -> dict[str, Any]:
        return {
            "overdueTransitions": self.overdue_transitions,
            "maintenanceTransitions": self.maintenance_transitions,
            "failures": len(self.failures),
        }


@dataclass(frozen=True)
class TickResult:
    """Totals of one scheduler tick across every active tenant."""

    started_at: datetime | None
    skipped: bool = False
    tenants_swept: int = 0
    tenant_failures: int = 0
    overdue_transitions: int = 0
    maintenance_transitions: int = 0
    failures: int = 0
    sweeps: tuple[SweepResult, ...] = field(default=(), repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "skipped": self.skipped,
            "tenantsSwept": self.tenants_swept,
            "tenantFailures": self.tenant_failures,
            "overdueTransitions": self.overdue_transitions,
            "maintenanceTransitions": self.maintenance_transitions,
            "failures": self.failures,
        }


@dataclass(frozen=True)
class SchedulerStatus:
    """Snapshot returned by ``SweepScheduler.get_status()``."""

    initialized: bool
    is_running: bool
    interval_seconds: int
    tick_in_progress: bool
    total_runs: int
    last_run_at: datetime | None = None
    last_result: TickResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "initialized": self.initialized,
            "isRunning": self.is_running,
            "intervalSeconds": self.interval_seconds,
            "tickInProgress": self.tick_in_progress,
            "totalRuns": self.total_runs,
            "lastRunAt": self.last_run_at.isoformat() if self.last_run_at else None,
            "lastResult": self.last_result.to_dict() if self.last_result else None,
        }
