"""Pending operation storage.

Operations waiting on a CI run are stored as JSON objects keyed by
"{repository}/{operation_id}".
"""

from lifecycle.storage.models import (
    Operation,
    RecordHandle,
    RecordKey,
    parse_record_key,
)
from lifecycle.storage.operation_store import (
    OperationReadError,
    OperationStore,
    OperationStoreError,
)

__all__ = [
    "Operation",
    "OperationReadError",
    "OperationStore",
    "OperationStoreError",
    "RecordHandle",
    "RecordKey",
    "parse_record_key",
]
