"""Local mirror of the user's notifications.

The synchronizer combines a paged pull with the push stream:

- ``load_notifications`` replaces the local list with one page (no merge)
- mutations (mark read, delete) touch local state only after the server
  confirmed them; ``delete_all_notifications`` then zeroes the counters
  locally, the single mutation that does not re-read stats
- push events prepend their notification, replacing any local copy with the
  same id, and replace the stats wholesale since the server is authoritative

Every change is republished on the event bus under ``notifications.*`` or
``connection.*`` and handed to snapshot listeners. All of this runs on one
event loop; overlapping mutations are applied in completion order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

from learnquest_client.models.notifications import (
    Notification,
    NotificationFilter,
    NotificationPreferences,
    NotificationStats,
    RealTimeNotificationEvent,
)
from learnquest_client.realtime.event_bus import EventBus, EventPriority
from learnquest_client.realtime.state import ConnectionState, ConnectionStateMachine
from learnquest_client.realtime.stream import StreamSubscription
from learnquest_client.utils.sanitization import sanitize_exception

if TYPE_CHECKING:
    from learnquest_client.facades.notifications import NotificationFacade

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class NotificationsSnapshot:
    """Read-only view of the synchronizer state."""

    notifications: tuple[Notification, ...]
    stats: NotificationStats | None
    preferences: NotificationPreferences | None
    loading: bool
    error: str | None
    connection: ConnectionState
    authenticated: bool

    @property
    def connected(self) -> bool:
        return self.connection is ConnectionState.CONNECTED

    @property
    def local_unread(self) -> int:
        """Unread entities in the local list."""
        return sum(1 for notification in self.notifications if not notification.is_read)


SnapshotListener = Callable[[NotificationsSnapshot], None]


class NotificationSynchronizer:
    """Keeps notifications, stats and preferences in sync with the server.

    Example:
        >>> sync = NotificationSynchronizer(NotificationFacade(client))
        >>> await sync.set_authenticated(True)
        >>> await sync.wait_until_connected(5)
        >>> sync.snapshot().stats.unread_count
    """

    def __init__(
        self,
        facade: NotificationFacade,
        *,
        event_bus: EventBus | None = None,
        page_size: int = 50,
        auto_connect: bool = True,
    ) -> None:
        self._facade: NotificationFacade = facade
        self._bus: EventBus = event_bus or EventBus()
        self._page_size: int = page_size
        self._auto_connect: bool = auto_connect

        self._notifications: list[Notification] = []
        self._stats: NotificationStats | None = None
        self._preferences: NotificationPreferences | None = None
        self._loading: bool = False
        self._error: str | None = None
        self._authenticated: bool = False
        # Bumped on every sign-in and sign-out; results from an older session are dropped
        self._session: int = 0
        # Bumped on every connect and disconnect; callbacks of an older stream are ignored
        self._attempt: int = 0

        self._machine: ConnectionStateMachine = ConnectionStateMachine()
        self._subscription: StreamSubscription | None = None
        self._connected: asyncio.Event = asyncio.Event()
        self._listeners: list[SnapshotListener] = []

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def state_machine(self) -> ConnectionStateMachine:
        return self._machine

    @property
    def connection_state(self) -> ConnectionState:
        return self._machine.current_state

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def snapshot(self) -> NotificationsSnapshot:
        return NotificationsSnapshot(
            notifications=tuple(self._notifications),
            stats=self._stats,
            preferences=self._preferences,
            loading=self._loading,
            error=self._error,
            connection=self._machine.current_state,
            authenticated=self._authenticated,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change.

        Returns:
            Function removing the listener; calling it twice is harmless
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Session

    async def set_authenticated(self, authenticated: bool) -> None:
        """Follow the session: load everything on sign-in, wipe on sign-out."""
        self._authenticated = authenticated
        self._session += 1
        if authenticated:
            logger.info("Session authenticated, loading notifications")
            session = self._session
            for load in (self.load_notifications, self.load_stats, self.load_preferences):
                await load()
                if self._stale(session):
                    return
            if self._auto_connect:
                await self.connect_real_time()
            return

        logger.info("Session ended, clearing notifications")
        self._notifications = []
        self._stats = None
        self._preferences = None
        self._error = None
        await self.disconnect_real_time()
        self._changed("notifications.cleared")

    async def close(self) -> None:
        await self.disconnect_real_time()

    # Pull

    async def load_notifications(self, notification_filter: NotificationFilter | None = None) -> None:
        """Replace the local list and stats with one page from the server."""
        if not self._authenticated:
            return

        session = self._session
        self._loading = True
        self._error = None
        self._changed("notifications.loading")
        try:
            response = await self._facade.get_notifications(
                notification_filter or NotificationFilter(page_size=self._page_size)
            )
        finally:
            self._loading = False

        if self._stale(session):
            logger.debug("Dropping notification page from an ended session")
            return
        if response.success and response.data is not None:
            self._notifications = list(response.data.notifications)
            if response.data.stats is not None:
                self._stats = response.data.stats
            logger.debug("Loaded %d notifications", len(self._notifications))
            self._changed("notifications.loaded", count=len(self._notifications))
        else:
            self._fail(response.message or "failed to load notifications")

    async def load_stats(self) -> None:
        """Refresh the aggregate counts without touching the list."""
        if not self._authenticated:
            return
        session = self._session
        response = await self._facade.get_stats()
        if self._stale(session):
            return
        if response.success and response.data is not None:
            self._stats = response.data
            self._changed("notifications.stats")
        else:
            logger.warning("Failed to load notification stats: %s", response.message)

    # Mutations

    async def mark_as_read(self, notification_ids: Sequence[int]) -> bool:
        if not self._authenticated:
            return False
        session = self._session
        response = await self._facade.mark_as_read(notification_ids)
        if not response.success:
            self._fail(response.message or "failed to mark notifications as read")
            return False
        if self._stale(session):
            return True

        flipped = self._flip_read(set(notification_ids))
        self._changed("notifications.read", ids=list(notification_ids), flipped=flipped)
        await self.load_stats()
        return True

    async def mark_all_as_read(self) -> bool:
        if not self._authenticated:
            return False
        session = self._session
        response = await self._facade.mark_all_as_read()
        if not response.success:
            self._fail(response.message or "failed to mark all notifications as read")
            return False
        if self._stale(session):
            return True

        flipped = self._flip_read(None)
        self._changed("notifications.read", ids="all", flipped=flipped)
        await self.load_stats()
        return True

    async def delete_notification(self, notification_id: int) -> bool:
        if not self._authenticated:
            return False
        session = self._session
        response = await self._facade.delete_notification(notification_id)
        if not response.success:
            self._fail(response.message or "failed to delete notification")
            return False
        if self._stale(session):
            return True

        removed = self._remove_local(notification_id)
        if removed is not None and self._stats is not None:
            unread = self._stats.unread_count - (0 if removed.is_read else 1)
            self._stats = self._stats.model_copy(
                update={
                    "total_notifications": max(0, self._stats.total_notifications - 1),
                    "unread_count": max(0, unread),
                }
            )
        self._changed("notifications.deleted", id=notification_id)
        await self.load_stats()
        return True

    async def delete_all_notifications(self) -> bool:
        """Delete everything; counters are zeroed locally without a stats reload."""
        if not self._authenticated:
            return False
        session = self._session
        response = await self._facade.delete_all_notifications()
        if not response.success:
            self._fail(response.message or "failed to delete all notifications")
            return False
        if self._stale(session):
            return True

        self._notifications = []
        if self._stats is not None:
            self._stats = self._stats.model_copy(update={"total_notifications": 0, "unread_count": 0})
        self._changed("notifications.cleared")
        return True

    # Preferences

    async def load_preferences(self) -> None:
        if not self._authenticated:
            return
        session = self._session
        response = await self._facade.get_preferences()
        if self._stale(session):
            return
        if response.success and response.data is not None:
            self._preferences = response.data
            self._changed("notifications.preferences")
        else:
            logger.warning("Failed to load notification preferences: %s", response.message)

    async def update_preferences(self, changes: NotificationPreferences | Mapping[str, object]) -> bool:
        """Send preference changes and merge them locally once accepted.

        Raises:
            ValueError: If a mapping key names no preference field or a value
                does not validate for its field
        """
        if not self._authenticated:
            return False
        if not isinstance(changes, NotificationPreferences):
            # Keys and values are validated before anything goes on the wire
            changes = self._validated_changes(changes)

        session = self._session
        response = await self._facade.update_preferences(changes)
        if not response.success:
            self._fail(response.message or "failed to update notification preferences")
            return False
        if self._stale(session):
            return True

        if isinstance(changes, NotificationPreferences):
            self._preferences = changes
        elif self._preferences is not None:
            self._preferences = NotificationPreferences.model_validate(
                {**self._preferences.model_dump(), **changes}
            )
        self._changed("notifications.preferences")
        return True

    def _validated_changes(self, changes: Mapping[str, object]) -> dict[str, object]:
        """Field-named changes with values coerced by the preference model."""
        normalized = NotificationPreferences.normalize_keys(changes)
        base = self._preferences or NotificationPreferences()
        merged = NotificationPreferences.model_validate({**base.model_dump(), **normalized})
        return {name: getattr(merged, name) for name in normalized}

    # Push stream

    async def connect_real_time(self) -> None:
        """Open the push stream unless signed out or already connecting/connected."""
        if not self._authenticated or self._machine.current_state is not ConnectionState.DISCONNECTED:
            return

        self._machine.transition_to(ConnectionState.CONNECTING, reason="connect requested")
        self._changed("connection.connecting")

        self._attempt += 1
        attempt = self._attempt

        def on_message(payload: str) -> None:
            self._handle_message(payload, attempt)

        def on_error(error: BaseException) -> None:
            self._handle_error(error, attempt)

        def on_open() -> None:
            self._handle_open(attempt)

        subscription = await self._facade.connect_real_time(on_message, on_error, on_open)
        if subscription is None:
            if attempt == self._attempt and self._machine.current_state is ConnectionState.CONNECTING:
                message = "real-time notifications unavailable"
                self._machine.transition_to(ConnectionState.DISCONNECTED, reason="no stream", error=message)
                self._error = message
                self._changed("connection.disconnected", error=message)
            return
        if attempt != self._attempt or self._machine.current_state is ConnectionState.DISCONNECTED:
            # Disconnected or superseded while the stream was opening
            logger.debug("Closing push stream opened for an ended session")
            await subscription.close()
            return
        self._subscription = subscription

    async def disconnect_real_time(self) -> None:
        """Close the push stream; a no-op when already disconnected."""
        self._attempt += 1
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()
        if self._machine.current_state is not ConnectionState.DISCONNECTED:
            self._machine.transition_to(ConnectionState.DISCONNECTED, reason="disconnect requested")
            self._connected.clear()
            self._changed("connection.disconnected")

    async def wait_until_connected(self, timeout: float) -> bool:
        """Wait for the stream handshake; False when ``timeout`` seconds pass first."""
        if self._machine.current_state is ConnectionState.CONNECTED:
            return True
        try:
            async with asyncio.timeout(timeout):
                _ = await self._connected.wait()
        except TimeoutError:
            return False
        return True

    def apply_push_event(self, event: RealTimeNotificationEvent) -> None:
        """Merge one push event into local state."""
        if event.notification is not None:
            notification = event.notification
            self._notifications = [notification] + [
                n for n in self._notifications if n.notification_id != notification.notification_id
            ]
        if event.stats is not None:
            self._stats = event.stats
        self._changed(
            "notifications.received",
            event=event.event,
            id=event.notification.notification_id if event.notification is not None else None,
        )

    def _handle_open(self, attempt: int) -> None:
        if attempt != self._attempt or self._machine.current_state is not ConnectionState.CONNECTING:
            return
        self._machine.transition_to(ConnectionState.CONNECTED, reason="stream open")
        self._error = None
        self._connected.set()
        logger.info("Real-time notifications connected")
        self._changed("connection.connected")

    def _handle_message(self, payload: str, attempt: int) -> None:
        if attempt != self._attempt or not self._authenticated:
            logger.debug("Ignoring push payload from a closed stream")
            return
        try:
            event = RealTimeNotificationEvent.model_validate_json(payload)
        except ValidationError as e:
            logger.warning("Ignoring malformed push payload (%d error(s))", e.error_count())
            return
        self.apply_push_event(event)

    def _handle_error(self, error: BaseException, attempt: int) -> None:
        if attempt != self._attempt:
            return
        self._subscription = None
        self._connected.clear()
        if self._machine.current_state is ConnectionState.DISCONNECTED:
            return
        message = f"real-time connection lost: {sanitize_exception(error)}"
        self._machine.transition_to(ConnectionState.DISCONNECTED, reason="stream error", error=message)
        self._error = message
        self._changed("connection.disconnected", error=message, priority=EventPriority.HIGH)

    # Internals

    def _flip_read(self, ids: set[int] | None) -> int:
        """Mark matching local entities read; returns how many changed."""
        now = datetime.now(UTC)
        flipped = 0
        updated: list[Notification] = []
        for notification in self._notifications:
            if not notification.is_read and (ids is None or notification.notification_id in ids):
                notification = notification.model_copy(
                    update={"is_read": True, "read_at": notification.read_at or now}
                )
                flipped += 1
            updated.append(notification)
        self._notifications = updated

        if flipped and self._stats is not None:
            unread = max(0, self._stats.unread_count - flipped)
            self._stats = self._stats.model_copy(update={"unread_count": unread})
        return flipped

    def _remove_local(self, notification_id: int) -> Notification | None:
        for index, notification in enumerate(self._notifications):
            if notification.notification_id == notification_id:
                return self._notifications.pop(index)
        return None

    def _stale(self, session: int) -> bool:
        return session != self._session or not self._authenticated

    def _fail(self, message: str) -> None:
        logger.warning("Notification operation failed: %s", message)
        self._error = message
        self._changed("notifications.error", error=message)

    def _changed(self, topic: str, priority: EventPriority = EventPriority.NORMAL, **data: object) -> None:
        self._bus.publish(topic, dict(data), priority)
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener raised")

