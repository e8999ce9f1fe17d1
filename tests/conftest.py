"""
Pytest fixtures for the equipment workflow test suite.

Provides:
- In-memory SQLite engine with the real ORM models (one database per test)
- Session factory, deterministic clock, and a ready WorkflowEngine
- Tenant scopes and equipment factories
- Structured log capture

The concurrency tests build their own file-backed database; see
tests/concurrency/test_transition_race.py.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

import equipment_kernel.models  # noqa: F401
from equipment_kernel.db.base import Base
from equipment_kernel.db.immutability import register_immutability_listeners
from equipment_kernel.domain.clock import DeterministicClock
from equipment_kernel.domain.dtos import TenantScope, TransitionContext
from equipment_kernel.domain.policy import DEFAULT_POLICY
from equipment_kernel.domain.status import EquipmentStatus
from equipment_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from equipment_kernel.models.equipment import Equipment
from equipment_kernel.models.tenant import Tenant
from equipment_kernel.services.workflow_engine import WorkflowEngine

# Fixed identities so failures are readable
ORG_ID = UUID("00000000-0000-0000-0000-00000000a001")
SCHOOL_ID = UUID("00000000-0000-0000-0000-00000000b001")
OTHER_SCHOOL_ID = UUID("00000000-0000-0000-0000-00000000b002")
OTHER_ORG_ID = UUID("00000000-0000-0000-0000-00000000a002")
OTHER_ORG_SCHOOL_ID = UUID("00000000-0000-0000-0000-00000000b003")
TEST_ACTOR_ID = UUID("00000000-0000-0000-0000-0000000000c1")

_SCHOOL = object()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True, scope="session")
def _immutability_listeners():
    register_immutability_listeners()
    yield


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture equipment_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, workflow_engine):
            workflow_engine.transition(...)
            logs = captured_logs()
            assert any(r["message"] == "transition_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("equipment_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture
def clock():
    # Use naive datetimes for SQLite compatibility (SQLite strips tzinfo)
    return DeterministicClock(datetime(2026, 2, 1, 12, 0, 0))


@pytest.fixture
def policy():
    return DEFAULT_POLICY


@pytest.fixture
def workflow_engine(session_factory, policy, clock):
    return WorkflowEngine(session_factory, policy=policy, clock=clock)


# =============================================================================
# Tenant scopes
# =============================================================================


@pytest.fixture
def actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def scope():
    """School scope: the school's equipment plus the organization's shared items."""
    return TenantScope(organization_id=ORG_ID, school_id=SCHOOL_ID)


@pytest.fixture
def org_scope():
    return TenantScope(organization_id=ORG_ID)


@pytest.fixture
def other_school_scope():
    return TenantScope(organization_id=ORG_ID, school_id=OTHER_SCHOOL_ID)


@pytest.fixture
def other_org_scope():
    return TenantScope(organization_id=OTHER_ORG_ID, school_id=OTHER_ORG_SCHOOL_ID)


@pytest.fixture
def make_context(actor_id, scope):
    """Build a TransitionContext for the default school scope."""

    def _make(reason=None, **kwargs) -> TransitionContext:
        kwargs.setdefault("actor_id", actor_id)
        kwargs.setdefault("scope", scope)
        return TransitionContext(reason=reason, **kwargs)

    return _make


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def make_equipment(session_factory, clock, actor_id):
    """Insert one equipment row (committed) and return its id."""

    def _make(
        status: EquipmentStatus = EquipmentStatus.AVAILABLE,
        name: str = "Projector",
        organization_id: UUID = ORG_ID,
        school_id=_SCHOOL,
        purchase_price: Decimal | None = None,
        last_maintenance_date: datetime | None = None,
        created_at: datetime | None = None,
        is_deleted: bool = False,
    ) -> UUID:
        created = created_at or clock.now()
        with session_factory() as session:
            equipment = Equipment(
                organization_id=organization_id,
                school_id=SCHOOL_ID if school_id is _SCHOOL else school_id,
                name=name,
                status=status,
                purchase_price=purchase_price,
                last_maintenance_date=last_maintenance_date,
                is_deleted=is_deleted,
                created_at=created,
                updated_at=created,
                created_by_id=actor_id,
            )
            session.add(equipment)
            session.commit()
            return equipment.id

    return _make


@pytest.fixture
def make_tenant(session_factory):
    def _make(
        name: str,
        organization_id: UUID = ORG_ID,
        school_id: UUID | None = SCHOOL_ID,
        is_active: bool = True,
    ) -> UUID:
        with session_factory() as session:
            tenant = Tenant(
                organization_id=organization_id,
                school_id=school_id,
                name=name,
                is_active=is_active,
            )
            session.add(tenant)
            session.commit()
            return tenant.id

    return _make


@pytest.fixture
def load(session_factory):
    """Fresh read of one row by primary key (detached, fully loaded)."""

    def _load(model, row_id):
        with session_factory() as session:
            return session.get(model, row_id)

    return _load


@pytest.fixture
def query_all(session_factory):
    """All rows of ``model`` matching the given column filters."""

    def _query(model, *criteria):
        with session_factory() as session:
            return list(session.execute(select(model).where(*criteria)).scalars().all())

    return _query


@pytest.fixture
def count_rows(session_factory):
    def _count(model, *criteria) -> int:
        with session_factory() as session:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            return session.execute(stmt).scalar_one()

    return _count
