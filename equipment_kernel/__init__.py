"""
Equipment Kernel - lifecycle workflow engine for school equipment.

A transactional state machine over equipment records with:
- A fixed, validated transition rule table
- Atomic status changes with their side effects (checkouts, returns,
  maintenance requests, damage reports)
- Row-level locking for per-equipment serialization
- Append-only audit trail for every status change
"""

__version__ = "0.1.0"
