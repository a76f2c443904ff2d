"""S3-backed store of pending provisioning operations."""

from typing import Dict, Iterable, List, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from lifecycle.storage.models import Operation, RecordHandle, parse_record_key

logger = structlog.get_logger()


class OperationStoreError(Exception):
    """Base exception for operation store errors.

    Attributes:
        message: Human-readable error description.
        key: Record key involved, if any.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.key = key
        self.original_error = original_error
        super().__init__(message)


class OperationReadError(OperationStoreError):
    """Raised when a record cannot be downloaded or deserialized."""
    pass


def _describe_client_error(e: ClientError) -> str:
    error = e.response.get("Error", {})
    return f"{error.get('Code', 'Unknown')} - {error.get('Message', str(e))}"


class OperationStore:
    """
    Lists, reads and deletes pending operation records.

    Layout:
        Bucket: configured operation bucket
        Object key: "{repository}/{operation_id}"
        Object body: JSON-encoded Operation
    """

    def __init__(self, bucket: str, s3_client=None):
        """
        Initialize OperationStore.

        Args:
            bucket: Name of the bucket holding pending operation records
            s3_client: Optional boto3 S3 client (for testing)
        """
        self.bucket = bucket
        self._s3 = s3_client or boto3.client("s3")

    def list_pending(self) -> List[RecordHandle]:
        """
        List every record currently stored, walking all result pages.

        Returns:
            List of RecordHandle in listing order

        Raises:
            OperationStoreError: If the listing fails
        """
        handles: List[RecordHandle] = []
        try:
            paginator = self._s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket):
                for item in page.get("Contents", []):
                    handles.append(
                        RecordHandle(
                            key=item["Key"],
                            size=item.get("Size", 0),
                            last_modified=item.get("LastModified"),
                        )
                    )
        except ClientError as e:
            raise OperationStoreError(
                f"Failed to list operations in {self.bucket}: {_describe_client_error(e)}",
                original_error=e,
            ) from e
        except BotoCoreError as e:
            raise OperationStoreError(
                f"Failed to list operations in {self.bucket}: {e}",
                original_error=e,
            ) from e

        logger.info("Pending operations listed", bucket=self.bucket, count=len(handles))
        return handles

    def group_by_repository(
        self, handles: Iterable[RecordHandle]
    ) -> Dict[str, Dict[str, RecordHandle]]:
        """
        Group record handles by repository, then by operation id.

        Handles whose key is not "{repository}/{operation_id}" are dropped.

        Args:
            handles: Record handles from list_pending

        Returns:
            Ordered mapping repository -> operation id -> handle
        """
        grouped: Dict[str, Dict[str, RecordHandle]] = {}
        for handle in handles:
            parsed = parse_record_key(handle.key)
            if parsed is None:
                logger.debug("Ignoring malformed operation key", key=handle.key)
                continue
            grouped.setdefault(parsed.repository, {})[parsed.operation_id] = handle
        return grouped

    def read(self, handle: RecordHandle) -> Operation:
        """
        Download and deserialize an operation record.

        Args:
            handle: Handle of the record to read

        Returns:
            The stored Operation

        Raises:
            OperationReadError: If the download or deserialization fails
        """
        try:
            response = self._s3.get_object(Bucket=self.bucket, Key=handle.key)
            body = response["Body"].read()
        except ClientError as e:
            raise OperationReadError(
                f"Failed to read operation {handle.key}: {_describe_client_error(e)}",
                key=handle.key,
                original_error=e,
            ) from e
        except BotoCoreError as e:
            raise OperationReadError(
                f"Failed to read operation {handle.key}: {e}",
                key=handle.key,
                original_error=e,
            ) from e

        try:
            return Operation.model_validate_json(body)
        except ValidationError as e:
            raise OperationReadError(
                f"Operation {handle.key} is not a valid operation record",
                key=handle.key,
                original_error=e,
            ) from e

    def delete(self, handle: RecordHandle) -> None:
        """
        Delete an operation record. Deleting a missing record is not an error.

        Args:
            handle: Handle of the record to delete

        Raises:
            OperationStoreError: If the delete fails
        """
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=handle.key)
        except ClientError as e:
            raise OperationStoreError(
                f"Failed to delete operation {handle.key}: {_describe_client_error(e)}",
                key=handle.key,
                original_error=e,
            ) from e
        except BotoCoreError as e:
            raise OperationStoreError(
                f"Failed to delete operation {handle.key}: {e}",
                key=handle.key,
                original_error=e,
            ) from e

        logger.debug("Operation record deleted", bucket=self.bucket, key=handle.key)
