"""
Equipment enumerations (``equipment_kernel.domain.status``).

Pure value types shared by the domain, the ORM models and the services.
ZERO I/O.
"""

from __future__ import annotations

from enum import Enum


class EquipmentStatus(str, Enum):
    """Lifecycle status of a piece of equipment.

    AVAILABLE is the initial state on creation; RETIRED is terminal.
    """

    AVAILABLE = "AVAILABLE"
    CHECKED_OUT = "CHECKED_OUT"
    OVERDUE = "OVERDUE"
    MAINTENANCE = "MAINTENANCE"
    LOST = "LOST"
    DAMAGED = "DAMAGED"
    RETIRED = "RETIRED"

    @classmethod
    def parse(cls, value: str | EquipmentStatus) -> EquipmentStatus:
        """Parse an enum string from the API layer (case-insensitive).

        Raises:
            ValueError: If ``value`` names no status.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown equipment status: {value!r}") from None


INITIAL_STATUS = EquipmentStatus.AVAILABLE
TERMINAL_STATUSES: frozenset[EquipmentStatus] = frozenset({EquipmentStatus.RETIRED})


class EquipmentCondition(str, Enum):
    """Physical condition recorded on the equipment row."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    DAMAGED = "DAMAGED"
    NEEDS_REPAIR = "NEEDS_REPAIR"


class TransactionStatus(str, Enum):
    """Checkout ledger status."""

    CHECKED_OUT = "CHECKED_OUT"
    RETURNED = "RETURNED"


class MaintenanceStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MaintenancePriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class DamageSeverity(str, Enum):
    """Severity of a damage report; MEDIUM is the default."""

    MINOR = "MINOR"
    MEDIUM = "MEDIUM"
    MODERATE = "MODERATE"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"

    @classmethod
    def parse(cls, value: str | DamageSeverity | None) -> DamageSeverity:
        if value is None:
            return cls.MEDIUM
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown damage severity: {value!r}") from None
