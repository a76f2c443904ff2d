"""Pytest configuration and shared fakes for all tests."""

from typing import List
from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from fakes import InMemoryS3
from lifecycle.github.client import GitHubClient
from lifecycle.metrics import ReconcileMetrics


@pytest.fixture
def calls() -> List[tuple]:
    """Shared call log for ordering assertions across fakes."""
    return []


@pytest.fixture
def s3(calls):
    return InMemoryS3(calls=calls)


@pytest.fixture
def github(calls):
    """A mocked GitHubClient with per-repository run listings.

    Set ``github.runs_by_repo[repo]`` to a list of Run objects or to an
    exception instance to raise.
    """
    client = MagicMock(spec=GitHubClient)
    client.runs_by_repo = {}

    def list_runs(owner, repo):
        calls.append(("list_runs", repo))
        runs = client.runs_by_repo.get(repo, [])
        if isinstance(runs, Exception):
            raise runs
        return runs

    def delete_branch(owner, repo, branch):
        calls.append(("delete_branch", f"{repo}/{branch}"))

    client.list_runs.side_effect = list_runs
    client.delete_branch.side_effect = delete_branch
    return client


@pytest.fixture
def publisher(calls):
    """A mocked EventPublisher that records what it was given."""
    mock = MagicMock()
    mock.published = []

    def publish(event):
        calls.append(("publish", event.event_type.value))
        mock.published.append(event)

    mock.publish.side_effect = publish
    return mock


@pytest.fixture
def metrics():
    return ReconcileMetrics(registry=CollectorRegistry())


@pytest.fixture
def settings_env(monkeypatch):
    """Set the required reconciler environment variables."""
    monkeypatch.setenv("RECONCILE_GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("RECONCILE_REPO_OWNER", "contoso")
    monkeypatch.setenv("RECONCILE_OPERATION_BUCKET", "pending-operations")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    yield monkeypatch
