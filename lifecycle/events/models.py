"""Completion event models.

This module defines the events emitted when a pending operation is
reconciled:
- CompletionEventType: The three terminal outcomes of a configuration run
- CompletionEvent: The event envelope published to the event bus

The envelope follows the Event Grid schema the subscription lifecycle
consumers already understand (id, eventType, subject, eventTime,
dataVersion, data).
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DATA_VERSION = "1.0"


class CompletionEventType(str, Enum):
    """Terminal outcomes of a subscription configuration run.

    Attributes:
        CONFIGURED: The run succeeded.
        CONFIGURATION_FAILED: The run failed.
        CONFIGURATION_TIMED_OUT: The run hit its time limit.
    """

    CONFIGURED = "SubscriptionConfigured"
    CONFIGURATION_FAILED = "SubscriptionConfigurationFailed"
    CONFIGURATION_TIMED_OUT = "SubscriptionConfigurationTimedOut"


def subject_for(tenant_id: str, subscription_id: str) -> str:
    """Event subject identifying a tenant's subscription."""
    return f"/saas/tenants/{tenant_id}/subscriptions/{subscription_id}"


class CompletionEvent(BaseModel):
    """Event announcing that a provisioning operation has concluded.

    Attributes:
        id: Unique event id (uuid4).
        event_type: Terminal outcome of the operation.
        data_version: Version of the data payload schema.
        event_time: When the event was built (UTC).
        subject: "/saas/tenants/{tenantId}/subscriptions/{subscriptionId}".
        data: {"operation": <operation record>, "run": <run reference>}.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: CompletionEventType
    data_version: str = DATA_VERSION
    event_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    subject: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase keys and an ISO-8601 event time."""
        return self.model_dump(mode="json", by_alias=True)

    def to_log_dict(self) -> Dict[str, Any]:
        """Flat summary of the event for structured logging."""
        operation = self.data.get("operation", {})
        run = self.data.get("run", {})
        return {
            "event_id": self.id,
            "event_type": self.event_type.value,
            "subject": self.subject,
            "operation_id": operation.get("operationId"),
            "run_id": run.get("runId"),
        }
