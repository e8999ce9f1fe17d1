"""
ORM immutability listeners.

Audit entries and damage reports are append-only; retired equipment can
never change status, even through a direct ORM write.
"""

import pytest
from sqlalchemy import select

from equipment_kernel.domain.status import EquipmentStatus
from equipment_kernel.exceptions import ImmutabilityViolationError
from equipment_kernel.models.audit_entry import AuditEntry
from equipment_kernel.models.equipment import Equipment
from equipment_kernel.models.maintenance import DamageReport


@pytest.fixture
def audited_equipment(workflow_engine, make_equipment, make_context):
    equipment_id = make_equipment()
    assert workflow_engine.transition(
        equipment_id, EquipmentStatus.DAMAGED, make_context(reason="Dropped"),
    ).success
    return equipment_id


class TestAuditEntries:

    def test_update_blocked(self, session_factory, audited_equipment, captured_logs):
        with session_factory() as session:
            entry = session.execute(select(AuditEntry)).scalar_one()
            entry.reason = "rewritten"
            with pytest.raises(ImmutabilityViolationError) as exc_info:
                session.flush()
            session.rollback()

        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"
        assert exc_info.value.entity_type == "AuditEntry"
        assert any(
            r["message"] == "immutability_violation_blocked" for r in captured_logs()
        )

    def test_delete_blocked(self, session_factory, audited_equipment, count_rows):
        with session_factory() as session:
            entry = session.execute(select(AuditEntry)).scalar_one()
            session.delete(entry)
            with pytest.raises(ImmutabilityViolationError):
                session.flush()
            session.rollback()

        assert count_rows(AuditEntry) == 1


class TestDamageReports:

    def test_update_blocked(self, session_factory, audited_equipment):
        with session_factory() as session:
            report = session.execute(select(DamageReport)).scalar_one()
            report.description = "Nothing happened"
            with pytest.raises(ImmutabilityViolationError):
                session.flush()
            session.rollback()

    def test_delete_blocked(self, session_factory, audited_equipment):
        with session_factory() as session:
            report = session.execute(select(DamageReport)).scalar_one()
            session.delete(report)
            with pytest.raises(ImmutabilityViolationError):
                session.flush()
            session.rollback()


class TestEquipment:

    def test_retired_status_frozen(self, session_factory, make_equipment, load):
        equipment_id = make_equipment(status=EquipmentStatus.RETIRED)

        with session_factory() as session:
            equipment = session.get(Equipment, equipment_id)
            equipment.status = EquipmentStatus.AVAILABLE
            with pytest.raises(ImmutabilityViolationError):
                session.flush()
            session.rollback()

        assert load(Equipment, equipment_id).status == EquipmentStatus.RETIRED

    def test_retired_non_status_fields_editable(self, session_factory, make_equipment, load):
        equipment_id = make_equipment(status=EquipmentStatus.RETIRED)

        with session_factory() as session:
            session.get(Equipment, equipment_id).serial_number = "SN-42"
            session.commit()

        assert load(Equipment, equipment_id).serial_number == "SN-42"

    def test_hard_delete_blocked(self, session_factory, make_equipment):
        equipment_id = make_equipment()
        with session_factory() as session:
            session.delete(session.get(Equipment, equipment_id))
            with pytest.raises(ImmutabilityViolationError):
                session.flush()
            session.rollback()
