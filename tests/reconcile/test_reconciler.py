"""Unit tests for run matching and conclusion classification."""

import uuid
from datetime import timezone

import pytest

from lifecycle.events.models import DATA_VERSION, CompletionEventType
from lifecycle.github.models import Run, RunConclusion, RunStatus
from lifecycle.reconcile import (
    UnrecognizedConclusionError,
    classify_conclusion,
    find_matching_run,
    reconcile,
)
from lifecycle.storage.models import Operation


def _make_run(
    run_id: int = 1,
    branch: str = "abc123",
    conclusion: RunConclusion = RunConclusion.SUCCESS,
    status: RunStatus = RunStatus.COMPLETED,
) -> Run:
    return Run(run_id=run_id, branch_name=branch, status=status, conclusion=conclusion)


def _make_operation(
    operation_id: str = "abc123",
    repo_name: str = "repoX",
    tenant_id: str = "t1",
    subscription_id: str = "s1",
) -> Operation:
    return Operation(
        operation_id=operation_id,
        repo_name=repo_name,
        tenant_id=tenant_id,
        subscription_id=subscription_id,
        metadata={"offer": "contoso-saas"},
    )


class TestFindMatchingRun:

    def test_exact_branch_match(self):
        runs = [_make_run(1, "other"), _make_run(2, "abc123")]

        assert find_matching_run(runs, "abc123").run_id == 2

    def test_no_match(self):
        assert find_matching_run([_make_run(1, "other")], "abc123") is None

    def test_empty_run_list(self):
        assert find_matching_run([], "abc123") is None

    def test_comparison_is_exact(self):
        runs = [_make_run(1, "ABC123"), _make_run(2, "abc1234"), _make_run(3, " abc123")]

        assert find_matching_run(runs, "abc123") is None

    def test_first_run_wins(self):
        runs = [
            _make_run(9, "abc123", RunConclusion.FAILURE),
            _make_run(8, "abc123", RunConclusion.SUCCESS),
        ]

        assert find_matching_run(runs, "abc123").run_id == 9

    def test_unconcluded_first_match_is_no_match(self):
        runs = [
            _make_run(9, "abc123", conclusion=None, status=RunStatus.IN_PROGRESS),
            _make_run(8, "abc123", RunConclusion.SUCCESS),
        ]

        assert find_matching_run(runs, "abc123") is None

    def test_completed_without_conclusion_is_no_match(self):
        runs = [_make_run(9, "abc123", conclusion=None, status=RunStatus.COMPLETED)]

        assert find_matching_run(runs, "abc123") is None


class TestClassifyConclusion:

    @pytest.mark.parametrize(
        "conclusion, expected",
        [
            (RunConclusion.FAILURE, CompletionEventType.CONFIGURATION_FAILED),
            (RunConclusion.SUCCESS, CompletionEventType.CONFIGURED),
            (RunConclusion.TIMED_OUT, CompletionEventType.CONFIGURATION_TIMED_OUT),
        ],
    )
    def test_terminal_conclusions(self, conclusion, expected):
        assert classify_conclusion(_make_run(conclusion=conclusion)) == expected

    @pytest.mark.parametrize(
        "conclusion",
        [
            RunConclusion.CANCELLED,
            RunConclusion.NEUTRAL,
            RunConclusion.SKIPPED,
            RunConclusion.ACTION_REQUIRED,
            RunConclusion.STALE,
            RunConclusion.STARTUP_FAILURE,
            RunConclusion.UNKNOWN,
        ],
    )
    def test_other_conclusions_raise(self, conclusion):
        with pytest.raises(UnrecognizedConclusionError) as exc_info:
            classify_conclusion(_make_run(run_id=5, conclusion=conclusion))

        assert exc_info.value.conclusion == conclusion
        assert exc_info.value.run_id == 5
        assert conclusion.value in str(exc_info.value)


class TestReconcile:

    def test_builds_completion_event(self):
        operation = _make_operation()
        run = _make_run(42, "abc123", RunConclusion.SUCCESS)

        event = reconcile(operation, run)

        assert event.event_type == CompletionEventType.CONFIGURED
        assert event.subject == "/saas/tenants/t1/subscriptions/s1"
        assert event.data_version == DATA_VERSION
        assert event.event_time.tzinfo == timezone.utc
        assert uuid.UUID(event.id)
        assert event.data["operation"]["operationId"] == "abc123"
        assert event.data["operation"]["repoName"] == "repoX"
        assert event.data["operation"]["metadata"] == {"offer": "contoso-saas"}
        assert event.data["run"]["runId"] == 42

    def test_event_ids_are_unique(self):
        operation = _make_operation()
        run = _make_run()

        assert reconcile(operation, run).id != reconcile(operation, run).id

    def test_wire_format(self):
        event = reconcile(_make_operation(), _make_run(conclusion=RunConclusion.TIMED_OUT))

        wire = event.to_wire()

        assert set(wire) == {"id", "eventType", "dataVersion", "eventTime", "subject", "data"}
        assert wire["eventType"] == "SubscriptionConfigurationTimedOut"
        assert isinstance(wire["eventTime"], str)

    def test_unrecognized_conclusion_propagates(self):
        with pytest.raises(UnrecognizedConclusionError):
            reconcile(_make_operation(), _make_run(conclusion=RunConclusion.CANCELLED))
