"""
equipment_config -- single public entrypoint for workflow configuration.

Responsibility:
    Provides the ONLY way to obtain the workflow policy at runtime through
    ``get_active_policy()``.  Returns the kernel's frozen
    ``WorkflowPolicy``.  The kernel MUST NEVER import from
    ``equipment_config``.

Invariants enforced:
    - Every returned policy has passed ``validate_workflow_rules`` (rule
      table consistency plus threshold bounds).
    - Same YAML always yields the same policy checksum.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ConfigurationError`` -- unknown keys, wrong types, or values out
      of bounds.

Audit relevance:
    Every successful call emits a ``workflow_policy_loaded`` log entry
    with the config id, version and checksum, tying sweeps and approval
    flags back to the configuration that governed them.
"""

from __future__ import annotations

from pathlib import Path

from equipment_kernel.domain.policy import WorkflowPolicy, validate_workflow_rules
from equipment_kernel.exceptions import ConfigurationError
from equipment_kernel.logging_config import get_logger

from equipment_config.loader import compute_checksum, load_yaml_file, parse_policy

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_policy(config_path: Path | None = None) -> WorkflowPolicy:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a configuration set file.
            Defaults to equipment_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ConfigurationError: If parsing or validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)

    policy = parse_policy(data)

    ok, errors = validate_workflow_rules(policy)
    if not ok:
        _logger.error(
            "workflow_policy_invalid",
            extra={"config_path": str(path), "errors": errors},
        )
        raise ConfigurationError(errors)

    _logger.info(
        "workflow_policy_loaded",
        extra={
            "config_id": data.get("config_id"),
            "config_version": data.get("version"),
            "config_path": str(path),
            "checksum": compute_checksum(policy),
            "overdue_threshold_hours": policy.overdue_threshold_hours,
            "maintenance_due_days": policy.maintenance_due_days,
            "sweep_interval_seconds": policy.sweep_interval_seconds,
        },
    )
    return policy


__all__ = ["get_active_policy", "compute_checksum"]
