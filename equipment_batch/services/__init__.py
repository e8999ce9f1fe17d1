"""Sweep execution and scheduling services."""

from equipment_batch.services.scheduler import SweepScheduler
from equipment_batch.services.sweeper import TransitionSweeper

__all__ = ["SweepScheduler", "TransitionSweeper"]
