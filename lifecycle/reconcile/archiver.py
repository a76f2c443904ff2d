"""Archival of reconciled operations."""

from typing import Optional

import structlog

from lifecycle.github.client import GitHubClient
from lifecycle.reconcile.models import FailureStage, ReconcileError
from lifecycle.storage.models import Operation, RecordHandle
from lifecycle.storage.operation_store import OperationStore

logger = structlog.get_logger()


class ArchiveError(ReconcileError):
    """Raised when archiving a reconciled operation fails part way.

    Attributes:
        stage: ARCHIVE_RECORD or ARCHIVE_BRANCH.
        record_deleted: Whether the tracking record was already removed.
            The record is not restored when the branch deletion fails.
    """

    def __init__(
        self,
        message: str,
        stage: FailureStage,
        record_deleted: bool,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.stage = stage
        self.record_deleted = record_deleted


class Archiver:
    """
    Removes the traces of a reconciled operation.

    The tracking record is deleted first, then the CI branch. There is no
    rollback: if the branch deletion fails the record stays deleted and the
    branch is left behind.
    """

    def __init__(self, store: OperationStore, github_client: GitHubClient, repo_owner: str):
        self.store = store
        self.github_client = github_client
        self.repo_owner = repo_owner

    def archive(self, handle: RecordHandle, operation: Operation) -> None:
        """
        Delete the operation's tracking record, then its CI branch.

        Args:
            handle: Handle of the tracking record
            operation: The operation read from that record

        Raises:
            ArchiveError: If either deletion fails
        """
        try:
            self.store.delete(handle)
        except Exception as e:
            raise ArchiveError(
                f"Failed to delete tracking record {handle.key}: {e}",
                stage=FailureStage.ARCHIVE_RECORD,
                record_deleted=False,
                original_error=e,
            ) from e

        try:
            self.github_client.delete_branch(
                self.repo_owner,
                operation.repo_name,
                operation.operation_id,
            )
        except Exception as e:
            raise ArchiveError(
                f"Tracking record {handle.key} deleted but branch "
                f"{operation.repo_name}/{operation.operation_id} was not: {e}",
                stage=FailureStage.ARCHIVE_BRANCH,
                record_deleted=True,
                original_error=e,
            ) from e

        logger.info(
            "Operation archived",
            repository=operation.repo_name,
            operation_id=operation.operation_id,
            key=handle.key,
        )
