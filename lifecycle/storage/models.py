"""Pending operation models.

This module defines the data models for tracking records:
- Operation: The deserialized payload of a tracking record
- RecordHandle: A listing entry pointing at a stored record
- RecordKey: The (repository, operation id) pair parsed from a record key
- parse_record_key: Strict parser for "{repository}/{operation_id}" keys

Operations are written by the provisioning front end when a subscription
configuration run is kicked off, and removed by the reconciler once the
matching workflow run has concluded.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


KEY_SEPARATOR = "/"


class Operation(BaseModel):
    """A provisioning operation waiting for its CI run to conclude.

    Records are stored as JSON. Both camelCase keys (as written by the
    provisioning front end) and snake_case keys are accepted.

    Attributes:
        operation_id: Operation identifier, also the name of the CI branch.
        repo_name: Repository the configuration run was pushed to.
        tenant_id: Tenant that owns the subscription.
        subscription_id: Subscription being configured.
        metadata: Arbitrary caller-supplied context, passed through untouched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    operation_id: str = Field(..., min_length=1)
    repo_name: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    subscription_id: str = Field(..., min_length=1)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def record_key(self) -> str:
        """Key under which this operation is stored."""
        return f"{self.repo_name}{KEY_SEPARATOR}{self.operation_id}"


@dataclass(frozen=True)
class RecordHandle:
    """A tracking record as seen in a listing, before its payload is read."""
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None


class RecordKey(NamedTuple):
    repository: str
    operation_id: str


def parse_record_key(key: str) -> Optional[RecordKey]:
    """
    Split a record key into repository and operation id.

    Args:
        key: Stored key, expected as "{repository}/{operation_id}"

    Returns:
        RecordKey, or None if the key does not have exactly two non-empty
        segments
    """
    parts = key.strip().split(KEY_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        return None
    return RecordKey(repository=parts[0], operation_id=parts[1])
