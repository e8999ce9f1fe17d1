"""
BaseService -- abstract base for kernel services that write within a
caller-owned transaction.

Responsibility:
    Provides the common constructor and session-handling contract.
    Concrete services receive a SQLAlchemy ``Session`` and use
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  AuditSink and
    StatusEffects extend this class; WorkflowEngine owns the transaction
    they write into.

Failure modes:
    - If a subclass calls ``session.commit()``, a transition's status
      change, side effects and audit entry no longer commit or roll back
      together.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from equipment_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for flush-only kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
