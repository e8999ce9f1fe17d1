"""
WorkflowEngine -- the only writer of equipment status.

Responsibility:
    Executes one requested status transition end to end:

        load (tenant scoped, row lock)
          -> target status parse
          -> rule table check
          -> status precondition
          -> status update + side effects + audit entry (one transaction)
          -> TransitionResult

    Expected failures (not found, rejected transition, missing reason,
    storage error) come back as a failed ``TransitionResult``; callers
    never need a try/except around ``transition``.

Architecture position:
    Kernel > Services -- imperative shell.  Owns its transactions: every
    attempt opens a Session from the injected factory, commits or rolls
    back, and closes it.  AuditSink and StatusEffects write into that
    Session without committing.

Invariants enforced:
    - Steps before the status update never mutate anything.
    - Status update, side effects and the audit entry commit together or
      not at all.
    - Per-equipment serialization: the row is read ``FOR UPDATE`` and the
      UPDATE is conditional on the ``version`` column.  A version conflict
      rolls back and retries the whole attempt (up to max_lock_retries);
      the retry re-reads the row, so a loser sees the winner's status.
    - The rule table and policy are validated at construction.

Failure modes:
    - ConfigurationError from the constructor if the rule table or policy
      is inconsistent.
    - Everything else is reported through TransitionResult.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from equipment_kernel.domain.clock import Clock, SystemClock
from equipment_kernel.domain.dtos import (
    StatusHistoryEntry,
    TenantScope,
    TransitionContext,
    TransitionFailure,
    TransitionResult,
)
from equipment_kernel.domain.policy import (
    DEFAULT_POLICY,
    WorkflowPolicy,
    assert_workflow_rules_valid,
)
from equipment_kernel.domain.status import EquipmentStatus
from equipment_kernel.domain.status_rules import (
    EquipmentFacts,
    check_preconditions,
    status_notifications,
)
from equipment_kernel.domain.transitions import allowed_targets, is_transition_allowed
from equipment_kernel.exceptions import (
    EquipmentNotFoundError,
    ImmutabilityViolationError,
    InvalidTransitionError,
    OptimisticLockError,
    PersistenceError,
    UnknownStatusError,
    WorkflowError,
)
from equipment_kernel.logging_config import LogContext, get_logger
from equipment_kernel.models.equipment import Equipment
from equipment_kernel.selectors.base import scope_clause
from equipment_kernel.selectors.equipment_selector import EquipmentSelector
from equipment_kernel.services.audit_sink import AuditSink
from equipment_kernel.services.status_effects import StatusEffects

logger = get_logger("services.workflow_engine")


class WorkflowEngine:
    """
    Validates and applies equipment status transitions.

    Contract:
        ``transition()`` returns a TransitionResult for every outcome.
        ``get_history()`` returns STATUS_CHANGE audit entries newest first
        and raises EquipmentNotFoundError for invisible equipment.

    Non-goals:
        - Does NOT decide when time-based transitions are due; that is the
          sweeper's job.
        - Does NOT deliver notifications; it only names them.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        policy: WorkflowPolicy = DEFAULT_POLICY,
        clock: Clock | None = None,
    ):
        assert_workflow_rules_valid(policy)
        self._session_factory = session_factory
        self._policy = policy
        self._clock = clock or SystemClock()

    @property
    def policy(self) -> WorkflowPolicy:
        return self._policy

    @property
    def clock(self) -> Clock:
        return self._clock

    # -------------------------------------------------------------------------
    # Transition
    # -------------------------------------------------------------------------

    def transition(
        self,
        equipment_id: UUID,
        target_status: EquipmentStatus | str,
        context: TransitionContext,
    ) -> TransitionResult:
        """Move ``equipment_id`` to ``target_status`` on behalf of ``context``."""
        with LogContext.bind(
            correlation_id=LogContext.get_all().get("correlation_id") or str(uuid4()),
            actor_id=str(context.actor_id),
            tenant_id=context.scope.tenant_key,
            equipment_id=str(equipment_id),
        ):
            return self._transition_with_retry(equipment_id, target_status, context)

    def _transition_with_retry(
        self,
        equipment_id: UUID,
        target: EquipmentStatus | str,
        context: TransitionContext,
    ) -> TransitionResult:
        start_time = time.monotonic()
        target_label = target.value if isinstance(target, EquipmentStatus) else str(target)
        max_attempts = self._policy.max_lock_retries

        for attempt in range(1, max_attempts + 1):
            try:
                result = self._attempt(equipment_id, target, context)
            except StaleDataError:
                logger.warning(
                    "transition_lock_conflict",
                    extra={
                        "target_status": target_label,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                    },
                )
                continue
            except WorkflowError as exc:
                logger.info(
                    "transition_rejected",
                    extra={
                        "target_status": target_label,
                        "error_code": exc.code,
                        "reason": str(exc),
                    },
                )
                return TransitionResult.failed(TransitionFailure(exc.code), str(exc))
            except PersistenceError as exc:
                logger.error(
                    "transition_persistence_failed",
                    extra={
                        "target_status": target_label,
                        "detail": exc.detail,
                        "attempt": attempt,
                    },
                    exc_info=True,
                )
                return TransitionResult.failed(
                    TransitionFailure.PERSISTENCE_ERROR, str(exc),
                )

            logger.info(
                "transition_completed",
                extra={
                    "previous_status": result.previous_status.value,
                    "new_status": result.new_status.value,
                    "requires_approval": result.requires_approval,
                    "attempt": attempt,
                    "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
                },
            )
            return result

        conflict = OptimisticLockError("Equipment", str(equipment_id))
        logger.error(
            "transition_lock_retries_exhausted",
            extra={
                "target_status": target_label,
                "max_attempts": max_attempts,
                "error_code": conflict.code,
            },
        )
        failure = PersistenceError(str(equipment_id), str(conflict))
        return TransitionResult.failed(TransitionFailure.PERSISTENCE_ERROR, str(failure))

    def _attempt(
        self,
        equipment_id: UUID,
        target: EquipmentStatus | str,
        context: TransitionContext,
    ) -> TransitionResult:
        """
        One attempt in its own Session.

        Raises:
            WorkflowError: Rejected before any write.
            StaleDataError: Version conflict; rolled back, safe to retry.
            PersistenceError: Any other database failure; rolled back.
        """
        session = self._session_factory()
        try:
            result = self._apply(session, equipment_id, target, context)
            session.commit()
            return result
        except StaleDataError:
            session.rollback()
            raise
        except (SQLAlchemyError, ImmutabilityViolationError) as exc:
            session.rollback()
            raise PersistenceError(str(equipment_id), str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _apply(
        self,
        session: Session,
        equipment_id: UUID,
        target_status: EquipmentStatus | str,
        context: TransitionContext,
    ) -> TransitionResult:
        equipment = self._load_for_update(session, equipment_id, context.scope)
        if equipment is None:
            raise EquipmentNotFoundError(str(equipment_id))

        try:
            target = EquipmentStatus.parse(target_status)
        except ValueError:
            raise UnknownStatusError(str(equipment_id), str(target_status)) from None

        previous = EquipmentStatus(equipment.status)
        if not is_transition_allowed(previous, target):
            raise InvalidTransitionError(str(equipment_id), previous.value, target.value)

        outcome = check_preconditions(
            EquipmentFacts(
                equipment_id=equipment.id,
                status=previous,
                purchase_price=equipment.purchase_price,
            ),
            target,
            context,
            self._policy,
        )

        now = self._clock.now()
        equipment.status = target
        equipment.last_status_change = now
        equipment.updated_by_id = context.actor_id

        StatusEffects(session).apply(
            equipment, previous, target, context, self._policy, now,
        )
        AuditSink(session).record_status_change(
            equipment_id=equipment.id,
            previous_status=previous,
            new_status=target,
            actor_id=context.actor_id,
            organization_id=equipment.organization_id,
            school_id=equipment.school_id,
            occurred_at=now,
            reason=context.effective_reason,
            metadata=context.metadata,
        )

        if outcome.requires_approval:
            logger.warning(
                "transition_requires_approval",
                extra={
                    "new_status": target.value,
                    "approval_reason": outcome.message,
                    "purchase_price": equipment.purchase_price,
                },
            )

        return TransitionResult(
            success=True,
            message=f"Equipment status updated to {target.value}",
            new_status=target,
            previous_status=previous,
            requires_approval=outcome.requires_approval,
            notifications=status_notifications(target),
        )

    def _load_for_update(
        self,
        session: Session,
        equipment_id: UUID,
        scope: TenantScope,
    ) -> Equipment | None:
        return session.execute(
            select(Equipment)
            .where(
                Equipment.id == equipment_id,
                Equipment.is_deleted.is_(False),
                scope_clause(Equipment, scope),
            )
            .with_for_update()
        ).scalar_one_or_none()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_history(
        self,
        equipment_id: UUID,
        scope: TenantScope,
    ) -> list[StatusHistoryEntry]:
        """
        Status history for one item, newest first.

        Raises:
            EquipmentNotFoundError: Absent, soft-deleted, or out of scope.
        """
        with self._session_factory() as session:
            selector = EquipmentSelector(session)
            if not selector.is_visible(equipment_id, scope):
                raise EquipmentNotFoundError(str(equipment_id))
            return selector.workflow_history(equipment_id, scope)

    def available_transitions(
        self,
        equipment_id: UUID,
        scope: TenantScope,
    ) -> frozenset[EquipmentStatus]:
        """
        Statuses the item may move to from its current status.

        Raises:
            EquipmentNotFoundError: Absent, soft-deleted, or out of scope.
        """
        with self._session_factory() as session:
            equipment = EquipmentSelector(session).get(equipment_id, scope)
        if equipment is None:
            raise EquipmentNotFoundError(str(equipment_id))
        return allowed_targets(equipment.status)
