"""
Module: equipment_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors, and the
    tenant-scope predicate every equipment query is filtered by.
Architecture position: Kernel > Selectors.  May import from db/base.py,
    models/, and domain DTOs.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: Selectors accept a Session from the caller but MUST NOT
      call session.add(), session.delete(), session.commit(), or session.flush().
    - Tenant scope: every query over tenant-owned rows goes through
      scope_clause(); there is no unscoped equipment read.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from equipment_kernel.db.base import Base
from equipment_kernel.domain.dtos import TenantScope

ModelType = TypeVar("ModelType", bound=Base)


def scope_clause(model, scope: TenantScope) -> ColumnElement[bool]:
    """
    WHERE clause restricting ``model`` rows to ``scope``.

    A school scope matches the school's own rows and the organization's
    shared rows (school_id IS NULL).  An organization scope matches every
    row of the organization.
    """
    in_org = model.organization_id == scope.organization_id
    if scope.school_id is None:
        return in_org
    return and_(
        in_org,
        or_(model.school_id == scope.school_id, model.school_id.is_(None)),
    )


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or identifiers.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
