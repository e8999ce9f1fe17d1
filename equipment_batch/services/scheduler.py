"""
SweepScheduler -- in-process polling scheduler for the transition sweeper.

Contract:
    ``tick()`` sweeps every active tenant once and returns the totals.
    ``start()`` / ``stop()`` run ticks on a background thread at a fixed
    interval; ``trigger_now()`` runs one on demand.

Architecture: equipment_batch/services.  Holds its own lifecycle state;
    there is no module-level scheduler handle.

Invariants enforced:
    - Single flight: a tick that starts while another is running is
      skipped, not queued.
    - One tenant's failure never stops the others.
    - Graceful shutdown: the stop signal is checked between tenants.
    - The rule table and policy are validated before the first tick.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.orm import Session

from equipment_kernel.domain.clock import Clock, SystemClock
from equipment_kernel.domain.policy import (
    DEFAULT_POLICY,
    WorkflowPolicy,
    assert_workflow_rules_valid,
)
from equipment_kernel.logging_config import get_logger
from equipment_kernel.selectors.tenant_selector import TenantSelector

from equipment_batch.domain.types import SchedulerStatus, TickResult
from equipment_batch.services.sweeper import TransitionSweeper

logger = get_logger("batch.scheduler")


class SweepScheduler:
    """Runs the sweeper for all active tenants on an interval.

    Non-goals:
        - NOT a distributed scheduler (no leader election); run one per
          deployment.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        sweeper: TransitionSweeper,
        policy: WorkflowPolicy = DEFAULT_POLICY,
        clock: Clock | None = None,
        interval_seconds: int | None = None,
    ):
        self._session_factory = session_factory
        self._sweeper = sweeper
        self._policy = policy
        self._clock = clock or SystemClock()
        self._interval = interval_seconds or policy.sweep_interval_seconds

        self._initialized = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._total_runs = 0
        self._last_run_at: datetime | None = None
        self._last_result: TickResult | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self) -> None:
        """Validate configuration.

        Raises:
            ConfigurationError: If the rule table or policy is inconsistent.
        """
        assert_workflow_rules_valid(self._policy)
        self._initialized = True
        logger.info(
            "scheduler_initialized",
            extra={"interval_seconds": self._interval},
        )

    def start(self) -> None:
        """Start ticking in a background thread (initializes first if needed)."""
        if self.is_running:
            return
        if not self._initialized:
            self.initialize()

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="equipment-sweep-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("scheduler_started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the current tick to finish.

        Args:
            timeout: Max seconds to wait for the thread to finish.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Ticks
    # -------------------------------------------------------------------------

    def tick(self) -> TickResult:
        """Sweep every active tenant once (public for testing)."""
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("scheduler_tick_skipped", extra={"reason": "tick_in_progress"})
            return TickResult(started_at=self._clock.now(), skipped=True)

        try:
            result = self._run_tick()
        finally:
            self._tick_lock.release()

        with self._state_lock:
            self._total_runs += 1
            self._last_run_at = result.started_at
            self._last_result = result
        return result

    def trigger_now(self) -> TickResult:
        """Run a tick immediately, outside the interval."""
        logger.info("scheduler_manual_trigger")
        return self.tick()

    def get_status(self) -> SchedulerStatus:
        with self._state_lock:
            return SchedulerStatus(
                initialized=self._initialized,
                is_running=self.is_running,
                interval_seconds=self._interval,
                tick_in_progress=self._tick_lock.locked(),
                total_runs=self._total_runs,
                last_run_at=self._last_run_at,
                last_result=self._last_result,
            )

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        """Background polling loop.  Exits when stop_event is set."""
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_exception")
            self._stop_event.wait(timeout=self._interval)

    def _run_tick(self) -> TickResult:
        start_time = time.monotonic()
        started_at = self._clock.now()

        with self._session_factory() as session:
            scopes = TenantSelector(session).active_scopes()

        sweeps = []
        tenant_failures = 0

        for scope in scopes:
            if self._stop_event.is_set():
                logger.info(
                    "scheduler_tick_interrupted",
                    extra={"tenants_total": len(scopes), "tenants_swept": len(sweeps)},
                )
                break
            try:
                sweeps.append(self._sweeper.sweep(scope))
            except Exception:
                tenant_failures += 1
                logger.exception(
                    "tenant_sweep_failed",
                    extra={"tenant_key": scope.tenant_key},
                )

        result = TickResult(
            started_at=started_at,
            tenants_swept=len(sweeps),
            tenant_failures=tenant_failures,
            overdue_transitions=sum(s.overdue_transitions for s in sweeps),
            maintenance_transitions=sum(s.maintenance_transitions for s in sweeps),
            failures=sum(len(s.failures) for s in sweeps),
            sweeps=tuple(sweeps),
        )

        logger.info(
            "scheduler_tick_completed",
            extra={
                "tenants_swept": result.tenants_swept,
                "tenant_failures": result.tenant_failures,
                "overdue_transitions": result.overdue_transitions,
                "maintenance_transitions": result.maintenance_transitions,
                "failures": result.failures,
                "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return result
