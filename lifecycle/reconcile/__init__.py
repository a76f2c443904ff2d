"""Reconciliation of pending operations against workflow runs.

- find_matching_run / classify_conclusion / reconcile: pure matching logic
- Archiver: deletes a reconciled operation's record and branch
- ReconcileWorkflow: runs a full cycle with per-operation failure isolation
"""

from lifecycle.reconcile.archiver import ArchiveError, Archiver
from lifecycle.reconcile.models import (
    CycleAbortedError,
    CycleResult,
    FailureStage,
    OperationOutcome,
    OperationStatus,
    ReconcileError,
    RepositoryOutcome,
    UnrecognizedConclusionError,
)
from lifecycle.reconcile.reconciler import (
    CONCLUSION_EVENT_TYPES,
    build_completion_event,
    classify_conclusion,
    find_matching_run,
    reconcile,
)
from lifecycle.reconcile.workflow import ReconcileWorkflow

__all__ = [
    # Matching
    "CONCLUSION_EVENT_TYPES",
    "build_completion_event",
    "classify_conclusion",
    "find_matching_run",
    "reconcile",
    # Archival
    "ArchiveError",
    "Archiver",
    # Orchestration
    "ReconcileWorkflow",
    # Results and errors
    "CycleAbortedError",
    "CycleResult",
    "FailureStage",
    "OperationOutcome",
    "OperationStatus",
    "ReconcileError",
    "RepositoryOutcome",
    "UnrecognizedConclusionError",
]
