"""In-process publish/subscribe bus for synchronizer state changes.

Events are dispatched synchronously on the publishing call, so subscribers see
them in publication order. A failing handler is logged and recorded in the
dead letter queue; it never interrupts delivery to the other subscribers.
"""

import logging
import re
import time
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from typing_extensions import override

logger = logging.getLogger(__name__)

TOPIC_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")


class EventPriority(Enum):
    """Event priority levels."""

    LOW = 0
    NORMAL = 1
    HIGH = 2


class EventBusError(Exception):
    """Base exception for event bus errors."""


class EventSubscriptionError(EventBusError):
    """Exception raised when a subscription is rejected."""

    def __init__(self, message: str, topic: str | None = None) -> None:
        super().__init__(message)
        self.topic: str | None = topic


class EventTopic:
    """Dotted topic name with ``*`` wildcard matching."""

    def __init__(self, name: str) -> None:
        self.name: str = name

    def is_valid(self) -> bool:
        return bool(TOPIC_PATTERN.match(self.name))

    def matches(self, pattern: str) -> bool:
        """Check if the topic matches ``pattern`` (``*`` spans any characters)."""
        regex_pattern = re.escape(pattern).replace(r"\*", ".*")
        return re.fullmatch(regex_pattern, self.name) is not None

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EventTopic):
            return False
        return self.name == other.name

    @override
    def __hash__(self) -> int:
        return hash(self.name)

    @override
    def __repr__(self) -> str:
        return f"EventTopic('{self.name}')"


@dataclass
class Event:
    """Represents an event on the bus."""

    topic: EventTopic
    data: dict[str, object]
    priority: EventPriority = EventPriority.NORMAL
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)

    def serialize(self) -> dict[str, object]:
        return {
            "event_id": self.event_id,
            "topic": self.topic.name,
            "data": self.data,
            "priority": self.priority.value,
            "timestamp": self.timestamp,
        }


@dataclass
class FailedEvent:
    """An event a subscriber failed to handle."""

    event: Event
    error: Exception
    subscriber_id: str
    failed_at: float = field(default_factory=time.time)


class DeadLetterQueue:
    """Bounded record of failed deliveries."""

    def __init__(self, max_size: int = 100) -> None:
        self.max_size: int = max_size
        self._failed_events: deque[FailedEvent] = deque(maxlen=max_size)

    def add_failed_event(self, event: Event, error: Exception, subscriber_id: str) -> None:
        self._failed_events.append(FailedEvent(event=event, error=error, subscriber_id=subscriber_id))

    def get_failed_events(self) -> list[FailedEvent]:
        return list(self._failed_events)

    def clear(self) -> None:
        self._failed_events.clear()

    def __len__(self) -> int:
        return len(self._failed_events)


class EventSubscriber:
    """Handler bound to a topic pattern with an optional filter."""

    def __init__(
        self,
        topic: str,
        handler: Callable[[Event], None],
        event_filter: Callable[[Event], bool] | None = None,
    ) -> None:
        """Initialize event subscriber.

        Args:
            topic: Topic pattern to subscribe to (``*`` wildcard allowed)
            handler: Function to handle events
            event_filter: Optional predicate; events it rejects are skipped
        """
        self.topic: str = topic
        self.handler: Callable[[Event], None] = handler
        self.event_filter: Callable[[Event], bool] | None = event_filter
        self.subscriber_id: str = str(uuid.uuid4())

    def can_handle_event(self, event: Event) -> bool:
        if not event.topic.matches(self.topic):
            return False
        if self.event_filter is None:
            return True
        try:
            return self.event_filter(event)
        except Exception as e:
            logger.warning("Event filter failed for event %s: %s", event.event_id, e)
            return False

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EventSubscriber):
            return False
        return self.subscriber_id == other.subscriber_id

    @override
    def __hash__(self) -> int:
        return hash(self.subscriber_id)


class EventBus:
    """Synchronous publish/subscribe bus."""

    def __init__(self, dead_letter_size: int = 100) -> None:
        self._subscribers: list[EventSubscriber] = []
        self.dead_letter_queue: DeadLetterQueue = DeadLetterQueue(dead_letter_size)
        self._stats: dict[str, int] = {
            "events_published": 0,
            "events_delivered": 0,
            "events_failed": 0,
        }

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(
        self,
        topic: str,
        handler: Callable[[Event], None],
        event_filter: Callable[[Event], bool] | None = None,
    ) -> EventSubscriber:
        """Register ``handler`` for topics matching ``topic``.

        Raises:
            EventSubscriptionError: If the pattern is empty or malformed
        """
        if not topic or not EventTopic(topic.replace("*", "x")).is_valid():
            msg = f"Invalid topic pattern: {topic!r}"
            raise EventSubscriptionError(msg, topic=topic)

        subscriber = EventSubscriber(topic, handler, event_filter)
        self._subscribers.append(subscriber)
        logger.debug("Registered subscriber %s for topic '%s'", subscriber.subscriber_id, topic)
        return subscriber

    def unsubscribe(self, subscriber: EventSubscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(
        self,
        topic: str,
        data: dict[str, object] | None = None,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Event:
        """Create an event on ``topic`` and deliver it to every matching subscriber."""
        event = Event(topic=EventTopic(topic), data=data or {}, priority=priority)
        self.publish_event(event)
        return event

    def publish_event(self, event: Event) -> None:
        self._stats["events_published"] += 1

        # Snapshot: handlers may subscribe or unsubscribe during delivery
        for subscriber in list(self._subscribers):
            if not subscriber.can_handle_event(event):
                continue
            try:
                subscriber.handler(event)
            except Exception as e:
                logger.exception(
                    "Subscriber %s failed to handle event on '%s'",
                    subscriber.subscriber_id,
                    event.topic.name,
                )
                self.dead_letter_queue.add_failed_event(event, e, subscriber.subscriber_id)
                self._stats["events_failed"] += 1
            else:
                self._stats["events_delivered"] += 1

    def get_stats(self) -> dict[str, int]:
        stats = self._stats.copy()
        stats["subscribers_count"] = len(self._subscribers)
        return stats
