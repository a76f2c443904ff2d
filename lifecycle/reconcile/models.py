"""Reconciliation results and errors.

Results are reported at two levels:
- OperationOutcome: what happened to one pending operation this cycle
- RepositoryOutcome: the outcomes of every operation in one repository
- CycleResult: the outcomes of a completed cycle

A cycle that cannot complete raises CycleAbortedError instead of returning
a result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from lifecycle.events.models import CompletionEventType
from lifecycle.github.models import RunConclusion


class OperationStatus(str, Enum):
    """Result of processing one operation in a cycle.

    Attributes:
        RESOLVED: Matched, archived and its completion event published.
        SKIPPED: No concluded run on the operation's branch yet.
        FAILED: Matched, but a step failed; logged and left for next cycle.
    """

    RESOLVED = "resolved"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureStage(str, Enum):
    """Step at which a matched operation failed."""

    MATCH = "match"
    READ = "read"
    CLASSIFY = "classify"
    ARCHIVE_RECORD = "archive_record"
    ARCHIVE_BRANCH = "archive_branch"
    PUBLISH = "publish"


class ReconcileError(Exception):
    """Base exception for reconciliation errors.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying exception, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class UnrecognizedConclusionError(ReconcileError):
    """Raised when a run concluded with a value that resolves no event type."""

    def __init__(self, conclusion: Optional[RunConclusion], run_id: Optional[int] = None):
        self.conclusion = conclusion
        self.run_id = run_id
        value = conclusion.value if conclusion is not None else None
        super().__init__(f"Unable to handle run conclusion [{value}]")


class CycleAbortedError(ReconcileError):
    """Raised when a failure stops the whole reconciliation cycle.

    Attributes:
        repository: Repository being processed when the cycle aborted, or
            None if it aborted while listing operations.
    """

    def __init__(
        self,
        message: str,
        repository: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.repository = repository


@dataclass
class OperationOutcome:
    """What happened to one pending operation."""
    repository: str
    operation_id: str
    status: OperationStatus
    run_id: Optional[int] = None
    event_type: Optional[CompletionEventType] = None
    event_id: Optional[str] = None
    stage: Optional[FailureStage] = None
    error: Optional[str] = None


@dataclass
class RepositoryOutcome:
    """Outcomes of all pending operations in one repository."""
    repository: str
    run_count: int
    outcomes: List[OperationOutcome] = field(default_factory=list)

    def _count(self, status: OperationStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def resolved(self) -> int:
        return self._count(OperationStatus.RESOLVED)

    @property
    def skipped(self) -> int:
        return self._count(OperationStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(OperationStatus.FAILED)


@dataclass
class CycleResult:
    """Results from a completed reconciliation cycle."""
    repositories: List[RepositoryOutcome]
    pending_operations: int
    malformed_keys: int
    execution_time: float = 0.0

    @property
    def outcomes(self) -> List[OperationOutcome]:
        return [outcome for repo in self.repositories for outcome in repo.outcomes]

    @property
    def resolved(self) -> int:
        return sum(repo.resolved for repo in self.repositories)

    @property
    def skipped(self) -> int:
        return sum(repo.skipped for repo in self.repositories)

    @property
    def failed(self) -> int:
        return sum(repo.failed for repo in self.repositories)

    def summary(self) -> dict:
        return {
            "repositories_checked": len(self.repositories),
            "pending_operations": self.pending_operations,
            "malformed_keys": self.malformed_keys,
            "operations_resolved": self.resolved,
            "operations_skipped": self.skipped,
            "operations_failed": self.failed,
            "execution_time": round(self.execution_time, 3),
        }
