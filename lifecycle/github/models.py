"""GitHub Actions workflow run models.

This module defines the subset of the GitHub workflow run payload the
reconciler relies on:
- RunStatus: Lifecycle status of a run (queued, in_progress, completed, ...)
- RunConclusion: Outcome of a completed run
- Run: A single workflow run
- RepoRuns: Response body of the workflow run listing

Source:
- GET /repos/{owner}/{repo}/actions/runs
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RunStatus(str, Enum):
    """Lifecycle status of a workflow run.

    Only COMPLETED runs carry a conclusion. Statuses GitHub adds in the
    future map to UNKNOWN rather than failing validation.
    """

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    WAITING = "waiting"
    REQUESTED = "requested"
    PENDING = "pending"
    ACTION_REQUIRED = "action_required"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "RunStatus":
        return cls.UNKNOWN


class RunConclusion(str, Enum):
    """Conclusion of a completed workflow run.

    Only SUCCESS, FAILURE and TIMED_OUT resolve an operation. Every other
    conclusion, including values GitHub adds later (mapped to UNKNOWN),
    leaves the operation pending.
    """

    SUCCESS = "success"
    FAILURE = "failure"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    NEUTRAL = "neutral"
    SKIPPED = "skipped"
    ACTION_REQUIRED = "action_required"
    STALE = "stale"
    STARTUP_FAILURE = "startup_failure"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "RunConclusion":
        return cls.UNKNOWN


class Run(BaseModel):
    """A GitHub Actions workflow run.

    Attributes:
        run_id: Workflow run id.
        branch_name: Head branch the run executed on. This is the
            correlation key with a pending operation's id.
        status: Lifecycle status of the run.
        conclusion: Outcome, or None while the run has not concluded.
        name: Workflow name.
        run_number: Sequential run number within the workflow.
        html_url: Link to the run in the GitHub UI.
        updated_at: Last time the run changed.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    run_id: int = Field(..., alias="id")
    branch_name: Optional[str] = Field(default=None, alias="head_branch")
    status: RunStatus = RunStatus.UNKNOWN
    conclusion: Optional[RunConclusion] = None
    name: Optional[str] = None
    run_number: Optional[int] = None
    html_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def is_concluded(self) -> bool:
        """Whether the run has finished and reported a conclusion."""
        return self.status == RunStatus.COMPLETED and self.conclusion is not None

    def to_reference(self) -> Dict[str, Any]:
        """Compact description of the run for event payloads."""
        return {
            "runId": self.run_id,
            "branchName": self.branch_name,
            "conclusion": self.conclusion.value if self.conclusion else None,
            "runNumber": self.run_number,
            "htmlUrl": self.html_url,
        }


class RepoRuns(BaseModel):
    """Response body of the workflow run listing."""

    model_config = ConfigDict(extra="ignore")

    total_count: int = 0
    workflow_runs: List[Run] = Field(default_factory=list)
