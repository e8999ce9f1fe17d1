"""
equipment_batch -- time-based equipment transitions and their scheduler.

Provides the automatic transition sweeper (overdue checkouts, maintenance
due) and an in-process polling scheduler that runs it for every active
tenant.

Architecture:
    equipment_batch/ is a top-level package.  It drives the kernel's
    WorkflowEngine and never writes equipment rows itself.  Nothing in
    equipment_kernel imports from equipment_batch.
"""
