"""Property-based tests for operation/run reconciliation.

Property: a completion event is produced for an operation iff the first run
whose branch name equals the operation id has concluded with success,
failure or timed_out. Every other operation stays pending and untouched.

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

from typing import Dict, List, Optional
from unittest.mock import MagicMock

from hypothesis import given, settings, strategies as st

from fakes import InMemoryS3, operation_json
from lifecycle.events.models import CompletionEventType
from lifecycle.github.models import Run, RunConclusion, RunStatus
from lifecycle.reconcile import (
    CONCLUSION_EVENT_TYPES,
    OperationStatus,
    ReconcileWorkflow,
    UnrecognizedConclusionError,
    classify_conclusion,
)
from lifecycle.storage import OperationStore


operation_ids = st.sampled_from(["op-a", "op-b", "op-c", "op-d", "op-e"])

conclusions = st.one_of(st.none(), st.sampled_from(list(RunConclusion)))


@st.composite
def run_strategy(draw, run_id: int):
    conclusion = draw(conclusions)
    status = RunStatus.COMPLETED if conclusion is not None else draw(
        st.sampled_from([RunStatus.QUEUED, RunStatus.IN_PROGRESS, RunStatus.COMPLETED])
    )
    return Run(
        run_id=run_id,
        branch_name=draw(st.one_of(operation_ids, st.just("main"))),
        status=status,
        conclusion=conclusion,
    )


@st.composite
def runs_strategy(draw):
    count = draw(st.integers(min_value=0, max_value=8))
    return [draw(run_strategy(run_id=i + 1)) for i in range(count)]


def _expected_event(runs: List[Run], operation_id: str) -> Optional[CompletionEventType]:
    for run in runs:
        if run.branch_name == operation_id:
            if run.status != RunStatus.COMPLETED or run.conclusion is None:
                return None
            return CONCLUSION_EVENT_TYPES.get(run.conclusion)
    return None


@settings(max_examples=100)
@given(conclusion=st.sampled_from(list(RunConclusion)))
def test_classification_is_total_over_terminal_conclusions(conclusion):
    run = Run(run_id=1, branch_name="op-a", status=RunStatus.COMPLETED, conclusion=conclusion)

    if conclusion in (RunConclusion.SUCCESS, RunConclusion.FAILURE, RunConclusion.TIMED_OUT):
        assert classify_conclusion(run) == CONCLUSION_EVENT_TYPES[conclusion]
    else:
        try:
            classify_conclusion(run)
        except UnrecognizedConclusionError as e:
            assert e.conclusion == conclusion
        else:
            raise AssertionError(f"{conclusion} should not classify")


@settings(max_examples=100)
@given(
    pending=st.lists(operation_ids, min_size=1, max_size=5, unique=True),
    runs=runs_strategy(),
)
def test_event_iff_concluded_terminal_match(pending, runs):
    s3 = InMemoryS3({f"repoX/{op}": operation_json("repoX", op) for op in pending})
    github = MagicMock()
    github.list_runs.return_value = runs
    published = []
    publisher = MagicMock()
    publisher.publish.side_effect = published.append

    workflow = ReconcileWorkflow(
        store=OperationStore("bucket", s3_client=s3),
        github_client=github,
        publisher=publisher,
        repo_owner="contoso",
    )
    result = workflow.execute()

    expected: Dict[str, Optional[CompletionEventType]] = {
        op: _expected_event(runs, op) for op in pending
    }
    resolved = {op for op, event_type in expected.items() if event_type is not None}

    assert {e.data["operation"]["operationId"]: e.event_type for e in published} == {
        op: expected[op] for op in resolved
    }
    assert set(s3.objects) == {f"repoX/{op}" for op in pending if op not in resolved}
    assert {call.args[2] for call in github.delete_branch.call_args_list} == resolved

    for outcome in result.outcomes:
        if outcome.operation_id in resolved:
            assert outcome.status == OperationStatus.RESOLVED
        else:
            assert outcome.status in (OperationStatus.SKIPPED, OperationStatus.FAILED)
