"""
TransitionSweeper -- time-based promotion of equipment status.

Contract:
    ``sweep(scope)`` finds CHECKED_OUT equipment whose checkout fell due
    more than the overdue threshold ago, and AVAILABLE equipment whose
    maintenance interval has lapsed, and moves each through
    ``WorkflowEngine.transition`` under a system actor.

Architecture: equipment_batch/services.  Reads candidates through the
    kernel's EquipmentSelector; writes only via the WorkflowEngine.

Invariants enforced:
    - Idempotent: with nothing eligible a sweep is a no-op, and a
      promoted item no longer matches the candidate query.
    - One item's failure never aborts the scan.  Each transition commits
      on its own, so an interrupted sweep keeps what it already did.
    - All timestamps from the injected Clock.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from equipment_kernel.domain.clock import Clock
from equipment_kernel.domain.dtos import TenantScope
from equipment_kernel.logging_config import LogContext, get_logger
from equipment_kernel.selectors.equipment_selector import EquipmentSelector
from equipment_kernel.services.workflow_engine import WorkflowEngine

from equipment_batch.domain.sweep_rules import (
    SweepKind,
    maintenance_cutoff,
    overdue_cutoff,
    system_context,
)
from equipment_batch.domain.types import SweepFailure, SweepResult

logger = get_logger("batch.sweeper")


class TransitionSweeper:
    """Scan-and-promote cycle for one tenant scope at a time.

    Non-goals:
        - Does NOT mark long-overdue equipment LOST; that stays a human
          decision.
        - Does NOT manage threads or timing; see SweepScheduler.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        engine: WorkflowEngine,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._engine = engine
        self._policy = engine.policy
        self._clock = clock or engine.clock

    def sweep(self, scope: TenantScope) -> SweepResult:
        """Run both promotion passes for ``scope``."""
        sweep_id = str(uuid4())
        start_time = time.monotonic()
        started_at = self._clock.now()

        with LogContext.bind(sweep_id=sweep_id, tenant_id=scope.tenant_key):
            overdue, overdue_failures = self._run_pass(
                scope, SweepKind.OVERDUE, sweep_id,
            )
            maintenance, maintenance_failures = self._run_pass(
                scope, SweepKind.MAINTENANCE_DUE, sweep_id,
            )

            result = SweepResult(
                sweep_id=sweep_id,
                tenant_key=scope.tenant_key,
                started_at=started_at,
                overdue_transitions=overdue,
                maintenance_transitions=maintenance,
                failures=tuple(overdue_failures + maintenance_failures),
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
            )

            logger.info(
                "sweep_completed",
                extra={
                    "overdue_transitions": result.overdue_transitions,
                    "maintenance_transitions": result.maintenance_transitions,
                    "failure_count": len(result.failures),
                    "duration_ms": result.duration_ms,
                },
            )
        return result

    def _candidates(self, scope: TenantScope, kind: SweepKind, now: datetime) -> list[UUID]:
        with self._session_factory() as session:
            selector = EquipmentSelector(session)
            if kind is SweepKind.OVERDUE:
                return selector.overdue_candidates(scope, overdue_cutoff(now, self._policy))
            return selector.maintenance_due_candidates(
                scope, maintenance_cutoff(now, self._policy),
            )

    def _run_pass(
        self,
        scope: TenantScope,
        kind: SweepKind,
        sweep_id: str,
    ) -> tuple[int, list[SweepFailure]]:
        candidates = self._candidates(scope, kind, self._clock.now())
        context = system_context(scope, kind, sweep_id)
        target = kind.target_status

        logger.debug(
            "sweep_pass_started",
            extra={"kind": kind.value, "candidate_count": len(candidates)},
        )

        succeeded = 0
        failures: list[SweepFailure] = []

        for equipment_id in candidates:
            try:
                result = self._engine.transition(equipment_id, target, context)
            except Exception as exc:
                logger.exception(
                    "sweep_item_exception",
                    extra={"kind": kind.value, "item_equipment_id": str(equipment_id)},
                )
                failures.append(
                    SweepFailure(equipment_id, kind.value, type(exc).__name__, str(exc))
                )
                continue

            if result.success:
                succeeded += 1
                continue

            logger.warning(
                "sweep_item_failed",
                extra={
                    "kind": kind.value,
                    "item_equipment_id": str(equipment_id),
                    "error_code": result.failure.value if result.failure else None,
                    "reason": result.message,
                },
            )
            failures.append(
                SweepFailure(
                    equipment_id=equipment_id,
                    kind=kind.value,
                    error_code=result.failure.value if result.failure else "UNKNOWN",
                    message=result.message,
                )
            )

        return succeeded, failures
