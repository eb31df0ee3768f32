"""Real-time notifications: push stream, connection state and local mirror."""

from learnquest_client.realtime.event_bus import Event, EventBus, EventPriority
from learnquest_client.realtime.sse import ServerSentEvent, SSEDecoder
from learnquest_client.realtime.state import ConnectionState, ConnectionStateMachine, StateTransitionError
from learnquest_client.realtime.stream import PushStream, StreamError, StreamSubscription
from learnquest_client.realtime.synchronizer import NotificationsSnapshot, NotificationSynchronizer

__all__ = [
    "ConnectionState",
    "ConnectionStateMachine",
    "Event",
    "EventBus",
    "EventPriority",
    "NotificationSynchronizer",
    "NotificationsSnapshot",
    "PushStream",
    "SSEDecoder",
    "ServerSentEvent",
    "StateTransitionError",
    "StreamError",
    "StreamSubscription",
]
