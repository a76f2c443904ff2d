"""Completion events for reconciled operations.

Event Publishers:
- EventPublisher: Abstract base class for event publication
- EventBridgePublisher: Publishes to an Amazon EventBridge bus
- LoggingEventPublisher: Logs events without publishing them
- NullEventPublisher: Discards events (for testing)

Factory:
- create_event_publisher: Builds a publisher from settings
"""

from lifecycle.events.models import (
    DATA_VERSION,
    CompletionEvent,
    CompletionEventType,
    subject_for,
)
from lifecycle.events.publisher import (
    EventBridgePublisher,
    EventPublishError,
    EventPublisher,
    LoggingEventPublisher,
    NullEventPublisher,
    create_event_publisher,
)

__all__ = [
    # Event models
    "DATA_VERSION",
    "CompletionEvent",
    "CompletionEventType",
    "subject_for",
    # Publishers
    "EventPublisher",
    "EventPublishError",
    "EventBridgePublisher",
    "LoggingEventPublisher",
    "NullEventPublisher",
    "create_event_publisher",
]
