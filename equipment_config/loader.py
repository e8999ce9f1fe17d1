"""
Policy Loader (``equipment_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the kernel's frozen
``WorkflowPolicy``.  Runtime callers go through
``equipment_config.get_active_policy()``; this module is its machinery.

Invariants enforced
-------------------
* Unknown keys and wrongly typed values are errors, never ignored.
* Keys absent from the file keep the ``WorkflowPolicy`` defaults.
* ``compute_checksum`` is deterministic for identical parsed values.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad keys or values  -> ``ConfigurationError`` listing every problem.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from equipment_kernel.domain.policy import WorkflowPolicy
from equipment_kernel.exceptions import ConfigurationError

# YAML section -> WorkflowPolicy fields it may set
_SECTIONS: dict[str, tuple[str, ...]] = {
    "workflow": (
        "overdue_threshold_hours",
        "maintenance_due_days",
        "lost_threshold_days",
        "high_value_threshold",
        "default_checkout_days",
    ),
    "scheduler": ("sweep_interval_seconds",),
    "concurrency": ("max_lock_retries",),
}

_METADATA_KEYS = frozenset({"config_id", "version", "description"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _parse_int(name: str, value: Any, errors: list[str]) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{name} must be an integer, got {value!r}")
        return None
    return value


def _parse_decimal(name: str, value: Any, errors: list[str]) -> Decimal | None:
    if isinstance(value, bool) or isinstance(value, float):
        # floats lose cents; amounts are written as strings or integers
        errors.append(f"{name} must be a string or integer amount, got {value!r}")
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        errors.append(f"{name} is not a valid amount: {value!r}")
        return None


def parse_policy(data: dict[str, Any]) -> WorkflowPolicy:
    """
    Build a ``WorkflowPolicy`` from a parsed configuration set.

    Only shape and types are checked here; value ranges are checked by
    ``validate_workflow_rules``.

    Raises:
        ConfigurationError: On unknown keys or wrongly typed values.
    """
    errors: list[str] = []
    values: dict[str, Any] = {}
    decimal_fields = {
        f.name for f in fields(WorkflowPolicy) if f.type in ("Decimal", Decimal)
    }

    for key, section in data.items():
        if key in _METADATA_KEYS:
            continue
        if key not in _SECTIONS:
            errors.append(f"unknown configuration section: {key}")
            continue
        if not isinstance(section, dict):
            errors.append(f"section {key} must be a mapping")
            continue
        for name, raw in section.items():
            if name not in _SECTIONS[key]:
                errors.append(f"unknown key {key}.{name}")
                continue
            if name in decimal_fields:
                parsed = _parse_decimal(name, raw, errors)
            else:
                parsed = _parse_int(name, raw, errors)
            if parsed is not None:
                values[name] = parsed

    if errors:
        raise ConfigurationError(errors)
    return WorkflowPolicy(**values)


def compute_checksum(policy: WorkflowPolicy) -> str:
    """SHA-256 of the canonical JSON form of the parsed policy."""
    canonical = json.dumps(asdict(policy), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
