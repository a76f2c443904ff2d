"""Event publishers for completion events.

This module defines an abstract EventPublisher interface and concrete
implementations for the supported event sinks:

- EventBridgePublisher: Puts events on an Amazon EventBridge bus
- LoggingEventPublisher: Logs events instead of publishing them (dry run)
- NullEventPublisher: Discards events (for testing)

Unlike observability emitters, a completion publisher must report failure
to its caller: the reconciler logs a failed publish against the operation
it belongs to.

Source:
- lifecycle/events/models.py (CompletionEvent)
- lifecycle/config.py (event_sink, event_bus_name, event_source)
"""

import json
from abc import ABC, abstractmethod
from typing import Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from lifecycle.config import ReconcileSettings
from lifecycle.events.models import CompletionEvent


logger = structlog.get_logger()


class EventPublishError(Exception):
    """Raised when a completion event could not be published.

    Attributes:
        message: Human-readable error description.
        event_id: Id of the event that was not published.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        event_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.event_id = event_id
        self.original_error = original_error
        super().__init__(message)


class EventPublisher(ABC):
    """Abstract base class for completion event publishers."""

    @abstractmethod
    def publish(self, event: CompletionEvent) -> None:
        """Publish a completion event.

        Args:
            event: The event to publish.

        Raises:
            EventPublishError: If the event was not accepted by the sink.
        """

    def close(self) -> None:
        """Release resources held by the publisher."""


class EventBridgePublisher(EventPublisher):
    """Publishes completion events to an Amazon EventBridge bus.

    Each event becomes one entry: DetailType is the event type and Detail is
    the full event envelope, so rules can route on either.

    Attributes:
        event_bus_name: Name or ARN of the target bus.
        source: Source field stamped on every entry.
    """

    def __init__(
        self,
        event_bus_name: str = "default",
        source: str = "saas.lifecycle",
        events_client=None,
    ):
        """
        Args:
            event_bus_name: Name or ARN of the target bus.
            source: Source field stamped on every entry.
            events_client: Optional boto3 EventBridge client (for testing).
        """
        self.event_bus_name = event_bus_name
        self.source = source
        self._events = events_client or boto3.client("events")

    def publish(self, event: CompletionEvent) -> None:
        entry = {
            "Source": self.source,
            "DetailType": event.event_type.value,
            "Detail": json.dumps(event.to_wire()),
            "EventBusName": self.event_bus_name,
            "Resources": [],
            "Time": event.event_time,
        }

        try:
            response = self._events.put_events(Entries=[entry])
        except ClientError as e:
            error = e.response.get("Error", {})
            raise EventPublishError(
                f"EventBridge rejected event {event.id}: "
                f"{error.get('Code', 'Unknown')} - {error.get('Message', str(e))}",
                event_id=event.id,
                original_error=e,
            ) from e
        except BotoCoreError as e:
            raise EventPublishError(
                f"Failed to reach EventBridge for event {event.id}: {e}",
                event_id=event.id,
                original_error=e,
            ) from e

        if response.get("FailedEntryCount", 0) > 0:
            failed = (response.get("Entries") or [{}])[0]
            raise EventPublishError(
                f"EventBridge failed to accept event {event.id}: "
                f"{failed.get('ErrorCode')} - {failed.get('ErrorMessage')}",
                event_id=event.id,
            )

        logger.info(
            "Completion event published",
            event_bus=self.event_bus_name,
            **event.to_log_dict(),
        )


class LoggingEventPublisher(EventPublisher):
    """Publisher that only logs events.

    Useful for dry runs against a real store and GitHub organization when
    downstream consumers must not see the events.
    """

    def publish(self, event: CompletionEvent) -> None:
        logger.info(
            "Completion event (not published)",
            payload=event.to_wire(),
            **event.to_log_dict(),
        )


class NullEventPublisher(EventPublisher):
    """Publisher that discards all events."""

    def publish(self, event: CompletionEvent) -> None:
        pass


def create_event_publisher(
    settings: ReconcileSettings,
    events_client=None,
) -> EventPublisher:
    """Build the publisher selected by configuration.

    Args:
        settings: Reconciler settings.
        events_client: Optional boto3 EventBridge client (for testing).

    Returns:
        An EventPublisher for the configured sink.
    """
    if settings.event_sink == "logging":
        logger.warning("Completion events will be logged, not published")
        return LoggingEventPublisher()

    return EventBridgePublisher(
        event_bus_name=settings.event_bus_name,
        source=settings.event_source,
        events_client=events_client or boto3.client("events", region_name=settings.aws_region),
    )
