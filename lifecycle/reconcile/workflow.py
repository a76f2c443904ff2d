"""Reconciliation cycle orchestration."""

import time
from typing import Dict, List, Optional

import structlog

from lifecycle.events.publisher import EventPublisher
from lifecycle.github.client import GitHubClient
from lifecycle.github.models import Run
from lifecycle.metrics import ReconcileMetrics
from lifecycle.reconcile.archiver import ArchiveError, Archiver
from lifecycle.reconcile.models import (
    CycleAbortedError,
    CycleResult,
    FailureStage,
    OperationOutcome,
    OperationStatus,
    RepositoryOutcome,
)
from lifecycle.reconcile.reconciler import find_matching_run, reconcile
from lifecycle.storage.models import RecordHandle, parse_record_key
from lifecycle.storage.operation_store import OperationStore

logger = structlog.get_logger()


class ReconcileWorkflow:
    """
    Runs one reconciliation cycle.

    Pending operations are listed and grouped by repository. For each
    repository the workflow runs are fetched once, then each operation is
    matched, read, classified, archived and announced in turn.

    Failures fall in two tiers:
    - listing operations or fetching a repository's runs aborts the cycle
      with CycleAbortedError; repositories not yet reached are untouched
    - anything that goes wrong with a single matched operation is logged
      and recorded as a FAILED outcome; the operation stays pending
    """

    def __init__(
        self,
        store: OperationStore,
        github_client: GitHubClient,
        publisher: EventPublisher,
        repo_owner: str,
        metrics: Optional[ReconcileMetrics] = None,
    ):
        self.store = store
        self.github_client = github_client
        self.publisher = publisher
        self.repo_owner = repo_owner
        self.metrics = metrics
        self.archiver = Archiver(store, github_client, repo_owner)

    def execute(self) -> CycleResult:
        """
        Execute one reconciliation cycle.

        Returns:
            CycleResult with the outcome of every pending operation

        Raises:
            CycleAbortedError: If operations cannot be listed or the runs of
                a repository cannot be fetched
        """
        start_time = time.monotonic()

        grouped, malformed = self._load_pending()
        pending = sum(len(operations) for operations in grouped.values())

        logger.info(
            "Starting reconciliation cycle",
            repository_count=len(grouped),
            pending_operations=pending,
            malformed_keys=malformed,
        )
        if self.metrics:
            self.metrics.record_pending(pending, malformed)

        repositories: List[RepositoryOutcome] = []
        for repository, operations in grouped.items():
            repositories.append(self._process_repository(repository, operations))

        result = CycleResult(
            repositories=repositories,
            pending_operations=pending,
            malformed_keys=malformed,
            execution_time=time.monotonic() - start_time,
        )

        logger.info("Reconciliation cycle completed", **result.summary())
        return result

    def _load_pending(self):
        try:
            handles = self.store.list_pending()
            grouped = self.store.group_by_repository(handles)
        except Exception as e:
            logger.error("Failed to list pending operations", error=str(e), exc_info=True)
            raise CycleAbortedError(
                f"Failed to list pending operations: {e}",
                original_error=e,
            ) from e

        malformed = sum(1 for handle in handles if parse_record_key(handle.key) is None)
        return grouped, malformed

    def _process_repository(
        self,
        repository: str,
        operations: Dict[str, RecordHandle],
    ) -> RepositoryOutcome:
        """Fetch a repository's runs and process each of its operations."""
        try:
            runs = self.github_client.list_runs(self.repo_owner, repository)
        except Exception as e:
            logger.error(
                "Failed to fetch workflow runs, aborting cycle",
                owner=self.repo_owner,
                repository=repository,
                error=str(e),
                exc_info=True,
            )
            raise CycleAbortedError(
                f"Failed to fetch workflow runs for {self.repo_owner}/{repository}: {e}",
                repository=repository,
                original_error=e,
            ) from e

        repo_outcome = RepositoryOutcome(repository=repository, run_count=len(runs))

        for operation_id, handle in operations.items():
            outcome = self._process_operation(repository, operation_id, handle, runs)
            repo_outcome.outcomes.append(outcome)
            if self.metrics:
                self.metrics.record_operation(
                    outcome.status.value,
                    event_type=outcome.event_type.value if outcome.event_type else None,
                    stage=outcome.stage.value if outcome.stage else None,
                )

        logger.info(
            "Repository reconciled",
            repository=repository,
            run_count=len(runs),
            resolved=repo_outcome.resolved,
            skipped=repo_outcome.skipped,
            failed=repo_outcome.failed,
        )
        return repo_outcome

    def _process_operation(
        self,
        repository: str,
        operation_id: str,
        handle: RecordHandle,
        runs: List[Run],
    ) -> OperationOutcome:
        """Reconcile one operation. Never raises."""
        stage = FailureStage.MATCH
        run: Optional[Run] = None
        try:
            run = find_matching_run(runs, operation_id)
            if run is None:
                return OperationOutcome(
                    repository=repository,
                    operation_id=operation_id,
                    status=OperationStatus.SKIPPED,
                )

            stage = FailureStage.READ
            operation = self.store.read(handle)

            stage = FailureStage.CLASSIFY
            event = reconcile(operation, run)

            stage = FailureStage.ARCHIVE_RECORD
            self.archiver.archive(handle, operation)

            # Deletions above are not undone if this fails.
            stage = FailureStage.PUBLISH
            self.publisher.publish(event)

        except Exception as e:
            if isinstance(e, ArchiveError):
                stage = e.stage
            logger.error(
                "Run reconciliation failed",
                repository=repository,
                operation_id=operation_id,
                run_id=run.run_id if run else None,
                stage=stage.value,
                error=str(e),
                exc_info=True,
            )
            return OperationOutcome(
                repository=repository,
                operation_id=operation_id,
                status=OperationStatus.FAILED,
                run_id=run.run_id if run else None,
                stage=stage,
                error=str(e),
            )

        logger.info(
            "Operation reconciled",
            repository=repository,
            operation_id=operation_id,
            run_id=run.run_id,
            event_type=event.event_type.value,
            event_id=event.id,
        )
        return OperationOutcome(
            repository=repository,
            operation_id=operation_id,
            status=OperationStatus.RESOLVED,
            run_id=run.run_id,
            event_type=event.event_type,
            event_id=event.id,
        )
