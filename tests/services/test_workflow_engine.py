"""
Tests for WorkflowEngine.transition against in-memory SQLite.

Invariants tested:
- Only pairs in the rule table succeed; everything else is
  INVALID_TRANSITION with the status unchanged and nothing written.
- RETIRED is terminal.
- Every success writes exactly one STATUS_CHANGE audit entry.
- Approval flags are advisory: the transition still commits.
- History comes back newest first.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from equipment_kernel.domain.dtos import TransitionFailure
from equipment_kernel.domain.policy import WorkflowPolicy
from equipment_kernel.domain.status import EquipmentStatus
from equipment_kernel.domain.transitions import ALLOWED_TRANSITIONS
from equipment_kernel.exceptions import ConfigurationError, EquipmentNotFoundError
from equipment_kernel.models.audit_entry import AuditEntry
from equipment_kernel.models.equipment import Equipment
from equipment_kernel.services.workflow_engine import WorkflowEngine

S = EquipmentStatus

REJECTED_PAIRS = [
    (current, target)
    for current in EquipmentStatus
    for target in EquipmentStatus
    if target not in ALLOWED_TRANSITIONS[current]
]


class TestConstruction:

    def test_invalid_policy_rejected(self, session_factory):
        with pytest.raises(ConfigurationError):
            WorkflowEngine(session_factory, policy=WorkflowPolicy(overdue_threshold_hours=0))


class TestAllowedTransitions:

    def test_checkout(self, workflow_engine, make_equipment, make_context, load):
        equipment_id = make_equipment()

        result = workflow_engine.transition(equipment_id, S.CHECKED_OUT, make_context())

        assert result.success
        assert result.new_status == S.CHECKED_OUT
        assert result.previous_status == S.AVAILABLE
        assert result.message == "Equipment status updated to CHECKED_OUT"
        assert not result.requires_approval
        assert load(Equipment, equipment_id).status == S.CHECKED_OUT

    def test_string_target_accepted(self, workflow_engine, make_equipment, make_context):
        equipment_id = make_equipment()
        result = workflow_engine.transition(equipment_id, "maintenance", make_context())
        assert result.success
        assert result.new_status == S.MAINTENANCE

    def test_stamps_last_status_change_and_actor(
        self, workflow_engine, make_equipment, make_context, load, clock, actor_id,
    ):
        equipment_id = make_equipment()
        clock.advance(60)

        workflow_engine.transition(equipment_id, S.MAINTENANCE, make_context())

        equipment = load(Equipment, equipment_id)
        assert equipment.last_status_change == clock.now()
        assert equipment.updated_by_id == actor_id

    def test_version_increments(self, workflow_engine, make_equipment, make_context, load):
        equipment_id = make_equipment()
        before = load(Equipment, equipment_id).version

        workflow_engine.transition(equipment_id, S.CHECKED_OUT, make_context())

        assert load(Equipment, equipment_id).version == before + 1

    def test_full_lifecycle(self, workflow_engine, make_equipment, make_context, load):
        equipment_id = make_equipment()
        path = [S.CHECKED_OUT, S.OVERDUE, S.DAMAGED, S.MAINTENANCE, S.AVAILABLE, S.RETIRED]

        for target in path:
            result = workflow_engine.transition(
                equipment_id, target, make_context(reason="lifecycle"),
            )
            assert result.success, (target, result.message)

        assert load(Equipment, equipment_id).status == S.RETIRED


class TestRejectedTransitions:

    @pytest.mark.parametrize("current,target", REJECTED_PAIRS)
    def test_pair_rejected_and_status_unchanged(
        self, workflow_engine, make_equipment, make_context, load, count_rows,
        current, target,
    ):
        equipment_id = make_equipment(status=current)

        result = workflow_engine.transition(
            equipment_id, target, make_context(reason="attempt"),
        )

        assert not result.success
        assert result.failure == TransitionFailure.INVALID_TRANSITION
        assert result.message == (
            f"Transition from {current.value} to {target.value} is not allowed"
        )
        assert load(Equipment, equipment_id).status == current
        assert count_rows(AuditEntry) == 0

    def test_retired_is_terminal(
        self, workflow_engine, make_equipment, make_context, load,
    ):
        equipment_id = make_equipment(status=S.MAINTENANCE)
        assert workflow_engine.transition(
            equipment_id, S.RETIRED, make_context(reason="obsolete"),
        ).success

        for target in EquipmentStatus:
            result = workflow_engine.transition(equipment_id, target, make_context())
            assert result.failure == TransitionFailure.INVALID_TRANSITION
        assert load(Equipment, equipment_id).status == S.RETIRED

    def test_unknown_status_rejected(self, workflow_engine, make_equipment, make_context):
        equipment_id = make_equipment()
        result = workflow_engine.transition(equipment_id, "BROKEN", make_context())
        assert result.failure == TransitionFailure.INVALID_TRANSITION
        assert "BROKEN" in result.message

    def test_unknown_equipment(self, workflow_engine, make_context):
        result = workflow_engine.transition(uuid4(), S.CHECKED_OUT, make_context())
        assert result.failure == TransitionFailure.NOT_FOUND
        assert result.message == "Equipment not found"
        assert result.http_status == 404

    def test_soft_deleted_equipment_not_found(
        self, workflow_engine, make_equipment, make_context,
    ):
        equipment_id = make_equipment(is_deleted=True)
        result = workflow_engine.transition(equipment_id, S.CHECKED_OUT, make_context())
        assert result.failure == TransitionFailure.NOT_FOUND


class TestPreconditions:

    def test_damaged_without_reason(
        self, workflow_engine, make_equipment, make_context, load, count_rows,
    ):
        equipment_id = make_equipment()

        result = workflow_engine.transition(equipment_id, S.DAMAGED, make_context())

        assert result.failure == TransitionFailure.MISSING_REASON
        assert result.message == "Reason is required when marking equipment as damaged"
        assert load(Equipment, equipment_id).status == S.AVAILABLE
        assert count_rows(AuditEntry) == 0

    def test_high_value_loss_flags_approval(
        self, workflow_engine, make_equipment, make_context, load,
    ):
        equipment_id = make_equipment(purchase_price=Decimal("1000.00"))

        result = workflow_engine.transition(equipment_id, S.LOST, make_context(reason="cannot locate"))

        assert result.success
        assert result.requires_approval
        assert result.new_status == S.LOST
        assert result.to_dict()["requiresApproval"] is True
        assert result.to_dict()["newStatus"] == "LOST"
        assert load(Equipment, equipment_id).status == S.LOST

    def test_low_value_loss_no_approval(
        self, workflow_engine, make_equipment, make_context,
    ):
        equipment_id = make_equipment(purchase_price=Decimal("120.00"))
        result = workflow_engine.transition(equipment_id, S.LOST, make_context())
        assert result.success
        assert not result.requires_approval

    def test_retirement_from_maintenance(
        self, workflow_engine, make_equipment, make_context, load, clock,
    ):
        equipment_id = make_equipment(status=S.MAINTENANCE)

        result = workflow_engine.transition(
            equipment_id, S.RETIRED, make_context(reason="obsolete"),
        )

        assert result.success
        assert result.requires_approval
        equipment = load(Equipment, equipment_id)
        assert equipment.status == S.RETIRED
        assert equipment.retired_at == clock.now()
        assert equipment.retired_reason == "obsolete"
        assert equipment.is_retired

    def test_approval_logged(
        self, workflow_engine, make_equipment, make_context, captured_logs,
    ):
        equipment_id = make_equipment(status=S.MAINTENANCE)
        workflow_engine.transition(equipment_id, S.RETIRED, make_context(reason="old"))

        records = [r for r in captured_logs() if r["message"] == "transition_requires_approval"]
        assert len(records) == 1
        assert records[0]["new_status"] == "RETIRED"
        assert records[0]["equipment_id"] == str(equipment_id)


class TestNotifications:

    @pytest.mark.parametrize(
        "target,expected",
        [
            (S.DAMAGED, ["Damage notification sent to administrators"]),
            (S.LOST, ["Loss notification sent to administrators"]),
            (S.MAINTENANCE, ["Maintenance notification sent to maintenance team"]),
        ],
    )
    def test_notifications_returned(
        self, workflow_engine, make_equipment, make_context, target, expected,
    ):
        equipment_id = make_equipment()
        result = workflow_engine.transition(equipment_id, target, make_context(reason="x"))
        assert result.to_dict()["notifications"] == expected

    def test_checkout_has_no_notifications(
        self, workflow_engine, make_equipment, make_context,
    ):
        equipment_id = make_equipment()
        result = workflow_engine.transition(equipment_id, S.CHECKED_OUT, make_context())
        assert "notifications" not in result.to_dict()


class TestAudit:

    def test_one_entry_per_success(
        self, workflow_engine, make_equipment, make_context, query_all, actor_id, clock,
    ):
        equipment_id = make_equipment(school_id=None)

        workflow_engine.transition(
            equipment_id, S.MAINTENANCE, make_context(reason="filter", metadata={"k": 1}),
        )

        entries = query_all(AuditEntry, AuditEntry.entity_id == equipment_id)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == "STATUS_CHANGE"
        assert entry.entity_type == "EQUIPMENT"
        assert entry.previous_status == "AVAILABLE"
        assert entry.new_status == "MAINTENANCE"
        assert entry.reason == "filter"
        assert entry.actor_id == actor_id
        assert entry.school_id is None
        assert entry.occurred_at == clock.now()
        assert entry.details == {
            "previousStatus": "AVAILABLE",
            "newStatus": "MAINTENANCE",
            "reason": "filter",
            "metadata": {"k": 1},
        }

    def test_damage_description_recorded_as_reason(
        self, workflow_engine, make_equipment, make_context, query_all,
    ):
        from equipment_kernel.domain.dtos import DamageDetails

        equipment_id = make_equipment()
        workflow_engine.transition(
            equipment_id,
            S.DAMAGED,
            make_context(damage_report=DamageDetails(description="Bent hinge")),
        )

        [entry] = query_all(AuditEntry, AuditEntry.entity_id == equipment_id)
        assert entry.reason == "Bent hinge"

    def test_completed_logged_with_context(
        self, workflow_engine, make_equipment, make_context, captured_logs, scope,
    ):
        equipment_id = make_equipment()
        workflow_engine.transition(equipment_id, S.CHECKED_OUT, make_context())

        [record] = [r for r in captured_logs() if r["message"] == "transition_completed"]
        assert record["equipment_id"] == str(equipment_id)
        assert record["tenant_id"] == scope.tenant_key
        assert record["previous_status"] == "AVAILABLE"
        assert record["new_status"] == "CHECKED_OUT"
        assert "correlation_id" in record

    def test_rejection_logged(
        self, workflow_engine, make_equipment, make_context, captured_logs,
    ):
        equipment_id = make_equipment(status=S.LOST)
        workflow_engine.transition(equipment_id, S.CHECKED_OUT, make_context())

        [record] = [r for r in captured_logs() if r["message"] == "transition_rejected"]
        assert record["error_code"] == "INVALID_TRANSITION"


class TestHistory:

    def test_newest_first(
        self, workflow_engine, make_equipment, make_context, scope, clock,
    ):
        equipment_id = make_equipment()
        for target in (S.CHECKED_OUT, S.AVAILABLE, S.MAINTENANCE):
            clock.advance(60)
            assert workflow_engine.transition(equipment_id, target, make_context()).success

        history = workflow_engine.get_history(equipment_id, scope)

        assert [h.new_status for h in history] == [S.MAINTENANCE, S.AVAILABLE, S.CHECKED_OUT]
        assert [h.previous_status for h in history] == [
            S.AVAILABLE, S.CHECKED_OUT, S.AVAILABLE,
        ]
        assert history[0].occurred_at > history[1].occurred_at > history[2].occurred_at

    def test_empty_history(self, workflow_engine, make_equipment, scope):
        equipment_id = make_equipment()
        assert workflow_engine.get_history(equipment_id, scope) == []

    def test_unknown_equipment_raises(self, workflow_engine, scope):
        with pytest.raises(EquipmentNotFoundError):
            workflow_engine.get_history(uuid4(), scope)

    def test_available_transitions(self, workflow_engine, make_equipment, scope):
        equipment_id = make_equipment(status=S.LOST)
        assert workflow_engine.available_transitions(equipment_id, scope) == frozenset(
            {S.AVAILABLE}
        )
