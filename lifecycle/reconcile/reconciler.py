"""Matching of pending operations to workflow runs.

An operation is correlated with a run through its id, which is also the
name of the branch the configuration run was pushed to. Only a concluded
run can resolve an operation, and only three conclusions map to a
completion event:

    failure   -> SubscriptionConfigurationFailed
    success   -> SubscriptionConfigured
    timed_out -> SubscriptionConfigurationTimedOut

Anything else raises UnrecognizedConclusionError and the operation stays
pending.
"""

from typing import Dict, Iterable, Optional

import structlog

from lifecycle.events.models import CompletionEvent, CompletionEventType, subject_for
from lifecycle.github.models import Run, RunConclusion
from lifecycle.reconcile.models import UnrecognizedConclusionError
from lifecycle.storage.models import Operation

logger = structlog.get_logger()


CONCLUSION_EVENT_TYPES: Dict[RunConclusion, CompletionEventType] = {
    RunConclusion.FAILURE: CompletionEventType.CONFIGURATION_FAILED,
    RunConclusion.SUCCESS: CompletionEventType.CONFIGURED,
    RunConclusion.TIMED_OUT: CompletionEventType.CONFIGURATION_TIMED_OUT,
}


def find_matching_run(runs: Iterable[Run], operation_id: str) -> Optional[Run]:
    """
    Find the run for an operation.

    The first run whose branch name equals the operation id wins; later runs
    on the same branch are ignored. If that run has not concluded yet the
    operation has no match this cycle.

    Args:
        runs: Runs of the operation's repository, in provider order
        operation_id: Operation id (branch name) to match

    Returns:
        The concluded matching run, or None
    """
    for run in runs:
        if run.branch_name == operation_id:
            if not run.is_concluded:
                logger.debug(
                    "Matching run has not concluded",
                    operation_id=operation_id,
                    run_id=run.run_id,
                    status=run.status.value,
                )
                return None
            return run
    return None


def classify_conclusion(run: Run) -> CompletionEventType:
    """
    Map a run's conclusion to the completion event it produces.

    Raises:
        UnrecognizedConclusionError: If the conclusion resolves no event type
    """
    try:
        return CONCLUSION_EVENT_TYPES[run.conclusion]
    except KeyError:
        raise UnrecognizedConclusionError(run.conclusion, run_id=run.run_id) from None


def build_completion_event(
    operation: Operation,
    run: Run,
    event_type: CompletionEventType,
) -> CompletionEvent:
    """Build the completion event announcing an operation's outcome."""
    return CompletionEvent(
        event_type=event_type,
        subject=subject_for(operation.tenant_id, operation.subscription_id),
        data={
            "operation": operation.model_dump(mode="json", by_alias=True),
            "run": run.to_reference(),
        },
    )


def reconcile(operation: Operation, run: Run) -> CompletionEvent:
    """
    Resolve an operation against its concluded run.

    Args:
        operation: The pending operation
        run: The run matched to it

    Returns:
        The completion event to publish once the operation is archived

    Raises:
        UnrecognizedConclusionError: If the run's conclusion resolves nothing
    """
    return build_completion_event(operation, run, classify_conclusion(run))
