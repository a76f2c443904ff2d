"""GitHub API client for workflow run lookup and branch cleanup."""

from lifecycle.github.client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
)
from lifecycle.github.models import RepoRuns, Run, RunConclusion, RunStatus

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "RateLimitError",
    "RepoRuns",
    "Run",
    "RunConclusion",
    "RunStatus",
]
