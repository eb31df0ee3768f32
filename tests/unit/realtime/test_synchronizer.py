"""Unit tests for the notification synchronizer.

Tests cover:
- Loading on sign-in and wiping on sign-out
- Push events prepending, de-duplicating and replacing stats
- Malformed push payloads being ignored
- Mutations applied only after server confirmation
- Delete-all zeroing counters without a stats reload
- Connection lifecycle: idempotent connect, unavailable stream, dropped stream
- Stream, page and stats results arriving after sign-out being discarded
- Snapshot listeners and event bus publication
"""

import asyncio

import pytest

from learnquest_client.realtime.event_bus import Event, EventPriority
from learnquest_client.realtime.state import ConnectionState
from learnquest_client.realtime.synchronizer import NotificationsSnapshot, NotificationSynchronizer
from tests.fixtures.factories import FakeNotificationFacade, make_notification, make_stats, push_payload


@pytest.fixture
def seeded_facade() -> FakeNotificationFacade:
    """Provide a backend holding three notifications, one of them read."""
    return FakeNotificationFacade(
        [make_notification(3), make_notification(2, is_read=True), make_notification(1)],
    )


@pytest.fixture
def synchronizer(seeded_facade: FakeNotificationFacade) -> NotificationSynchronizer:
    """Provide a synchronizer over the seeded backend."""
    return NotificationSynchronizer(seeded_facade)  # pyright: ignore[reportArgumentType]  # duck-typed fake


@pytest.fixture
async def signed_in(synchronizer: NotificationSynchronizer) -> NotificationSynchronizer:
    """Provide a synchronizer that has loaded state and opened the stream."""
    await synchronizer.set_authenticated(True)
    return synchronizer


def ids(snapshot: NotificationsSnapshot) -> list[int]:
    return [notification.notification_id for notification in snapshot.notifications]


class TestSession:
    """Test following the authentication state."""

    async def test_sign_in_loads_everything(
        self, synchronizer: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        await synchronizer.set_authenticated(True)

        snapshot = synchronizer.snapshot()
        assert ids(snapshot) == [3, 2, 1]
        assert snapshot.stats == make_stats(3, 2)
        assert snapshot.preferences == seeded_facade.preferences
        assert snapshot.loading is False
        assert snapshot.error is None
        assert snapshot.authenticated is True
        assert seeded_facade.calls == ["get_notifications", "get_stats", "get_preferences", "connect_real_time"]
        assert synchronizer.connection_state is ConnectionState.CONNECTING

    async def test_auto_connect_disabled(self, seeded_facade: FakeNotificationFacade) -> None:
        synchronizer = NotificationSynchronizer(seeded_facade, auto_connect=False)  # pyright: ignore[reportArgumentType]

        await synchronizer.set_authenticated(True)

        assert "connect_real_time" not in seeded_facade.calls
        assert synchronizer.connection_state is ConnectionState.DISCONNECTED

    async def test_nothing_loads_while_signed_out(
        self, synchronizer: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        await synchronizer.load_notifications()
        await synchronizer.load_stats()
        await synchronizer.connect_real_time()

        assert seeded_facade.calls == []
        assert await synchronizer.mark_all_as_read() is False

    async def test_sign_out_clears_state_and_closes_stream(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        await signed_in.set_authenticated(False)

        snapshot = signed_in.snapshot()
        assert snapshot.notifications == ()
        assert snapshot.stats is None
        assert snapshot.preferences is None
        assert snapshot.authenticated is False
        assert snapshot.connection is ConnectionState.DISCONNECTED
        assert seeded_facade.subscriptions[0].closed is True

    async def test_load_failure_keeps_previous_list(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.failing.add("get_notifications")

        await signed_in.load_notifications()

        snapshot = signed_in.snapshot()
        assert ids(snapshot) == [3, 2, 1]
        assert snapshot.error == "server error"
        assert snapshot.loading is False

    async def test_page_without_stats_keeps_stats(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.page_carries_stats = False
        seeded_facade.add(make_notification(4))

        await signed_in.load_notifications()

        snapshot = signed_in.snapshot()
        assert ids(snapshot) == [4, 3, 2, 1]
        assert snapshot.stats == make_stats(3, 2)


class TestPushEvents:
    """Test merging of push-stream messages."""

    async def test_new_notification_is_prepended(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.open_stream()

        seeded_facade.push(make_notification(10))

        snapshot = signed_in.snapshot()
        assert ids(snapshot) == [10, 3, 2, 1]
        assert snapshot.stats == make_stats(4, 3)

    async def test_duplicate_id_moves_to_front(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        """Test that a pushed copy replaces the local one instead of duplicating it."""
        seeded_facade.push(make_notification(1, title="updated"))

        snapshot = signed_in.snapshot()
        assert ids(snapshot) == [1, 3, 2]
        assert snapshot.notifications[0].title == "updated"

    async def test_event_without_stats_keeps_stats(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.push_raw(push_payload(make_notification(11)))

        assert signed_in.snapshot().stats == make_stats(3, 2)

    async def test_stats_only_event(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.push_raw(push_payload(None, make_stats(9, 0), event="stats_update"))

        snapshot = signed_in.snapshot()
        assert ids(snapshot) == [3, 2, 1]
        assert snapshot.stats == make_stats(9, 0)

    @pytest.mark.parametrize(
        "payload",
        ["not json", "[1, 2]", '{"notification": {"notificationId": "abc"}}', ""],
    )
    async def test_malformed_payload_ignored(
        self,
        signed_in: NotificationSynchronizer,
        seeded_facade: FakeNotificationFacade,
        payload: str,
    ) -> None:
        before = signed_in.snapshot()

        seeded_facade.push_raw(payload)

        after = signed_in.snapshot()
        assert after.notifications == before.notifications
        assert after.stats == before.stats

    async def test_received_event_published(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        received: list[Event] = []
        _ = signed_in.event_bus.subscribe("notifications.received", received.append)

        seeded_facade.push(make_notification(12))

        assert len(received) == 1
        assert received[0].data == {"event": "new_notification", "id": 12}


class TestMutations:
    """Test server-confirmed local mutations."""

    async def test_mark_as_read(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        assert await signed_in.mark_as_read([3]) is True

        snapshot = signed_in.snapshot()
        first = snapshot.notifications[0]
        assert first.is_read is True
        assert first.read_at is not None
        assert snapshot.stats == make_stats(3, 1)
        assert seeded_facade.calls[-2:] == ["mark_as_read", "get_stats"]

    async def test_mark_as_read_is_idempotent(self, signed_in: NotificationSynchronizer) -> None:
        """Test that marking an already read notification changes nothing."""
        _ = await signed_in.mark_as_read([3])
        first = signed_in.snapshot()

        _ = await signed_in.mark_as_read([3, 2])

        second = signed_in.snapshot()
        assert second.notifications == first.notifications
        assert second.stats == first.stats

    async def test_mark_all_as_read(self, signed_in: NotificationSynchronizer) -> None:
        assert await signed_in.mark_all_as_read() is True

        snapshot = signed_in.snapshot()
        assert all(notification.is_read for notification in snapshot.notifications)
        assert snapshot.local_unread == 0
        assert snapshot.stats is not None
        assert snapshot.stats.unread_count == 0

    async def test_failed_mutation_leaves_state(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.failing.add("mark_as_read")
        before = signed_in.snapshot()

        assert await signed_in.mark_as_read([3]) is False

        after = signed_in.snapshot()
        assert after.notifications == before.notifications
        assert after.stats == before.stats
        assert after.error == "server error"

    async def test_delete_notification(self, signed_in: NotificationSynchronizer) -> None:
        assert await signed_in.delete_notification(3) is True

        snapshot = signed_in.snapshot()
        assert ids(snapshot) == [2, 1]
        assert snapshot.stats == make_stats(2, 1)

    async def test_delete_adjusts_stats_before_reload(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        """Test the local counter adjustment when the stats reload fails."""
        seeded_facade.failing.add("get_stats")

        _ = await signed_in.delete_notification(2)

        assert signed_in.snapshot().stats == make_stats(2, 2)

    async def test_failed_delete_keeps_entity(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.failing.add("delete_notification")

        assert await signed_in.delete_notification(3) is False
        assert ids(signed_in.snapshot()) == [3, 2, 1]

    async def test_delete_all_zeroes_counters_without_reload(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        assert await signed_in.delete_all_notifications() is True

        snapshot = signed_in.snapshot()
        assert snapshot.notifications == ()
        assert snapshot.stats is not None
        assert snapshot.stats.total_notifications == 0
        assert snapshot.stats.unread_count == 0
        assert seeded_facade.calls[-1] == "delete_all_notifications"


class TestPreferences:
    """Test preference updates."""

    async def test_partial_update_merges(self, signed_in: NotificationSynchronizer) -> None:
        assert await signed_in.update_preferences({"emailNotifications": False, "quiet_hours_start": "22:00"})

        preferences = signed_in.snapshot().preferences
        assert preferences is not None
        assert preferences.email_notifications is False
        assert preferences.quiet_hours_start == "22:00"
        assert preferences.push_notifications is True

    async def test_unknown_key_rejected_before_sending(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        with pytest.raises(ValueError, match="smsNotifications"):
            _ = await signed_in.update_preferences({"smsNotifications": True})

        assert "update_preferences" not in seeded_facade.calls

    async def test_values_are_coerced_before_merging(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        assert await signed_in.update_preferences({"pushNotifications": "no"})

        preferences = signed_in.snapshot().preferences
        assert preferences is not None
        assert preferences.push_notifications is False
        assert seeded_facade.preferences.push_notifications is False

    async def test_invalid_value_rejected_before_sending(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        before = signed_in.snapshot().preferences

        with pytest.raises(ValueError, match="valid boolean"):
            _ = await signed_in.update_preferences({"emailNotifications": "sometimes"})

        assert "update_preferences" not in seeded_facade.calls
        assert signed_in.snapshot().preferences == before

    async def test_failed_update_keeps_preferences(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.failing.add("update_preferences")
        before = signed_in.snapshot().preferences

        assert await signed_in.update_preferences({"email_notifications": False}) is False
        assert signed_in.snapshot().preferences == before


class TestConnection:
    """Test the push-stream connection lifecycle."""

    async def test_open_moves_to_connected(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.open_stream()

        assert signed_in.connection_state is ConnectionState.CONNECTED
        assert await signed_in.wait_until_connected(0.1) is True
        assert signed_in.snapshot().connected is True

    async def test_wait_times_out(self, signed_in: NotificationSynchronizer) -> None:
        assert await signed_in.wait_until_connected(0.01) is False

    async def test_connect_is_idempotent(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        await signed_in.connect_real_time()
        seeded_facade.open_stream()
        await signed_in.connect_real_time()

        assert seeded_facade.calls.count("connect_real_time") == 1

    async def test_unavailable_stream(self, seeded_facade: FakeNotificationFacade) -> None:
        seeded_facade.stream_available = False
        synchronizer = NotificationSynchronizer(seeded_facade)  # pyright: ignore[reportArgumentType]

        await synchronizer.set_authenticated(True)

        snapshot = synchronizer.snapshot()
        assert snapshot.connection is ConnectionState.DISCONNECTED
        assert snapshot.error == "real-time notifications unavailable"
        assert ids(snapshot) == [3, 2, 1]

    async def test_dropped_stream_disconnects(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        disconnected: list[Event] = []
        _ = signed_in.event_bus.subscribe("connection.disconnected", disconnected.append)
        seeded_facade.open_stream()

        seeded_facade.drop_stream(ConnectionError("reset by peer"))

        snapshot = signed_in.snapshot()
        assert snapshot.connection is ConnectionState.DISCONNECTED
        assert snapshot.error == "real-time connection lost: ConnectionError: reset by peer"
        assert disconnected[0].priority is EventPriority.HIGH
        assert signed_in.state_machine.last_error == snapshot.error

    async def test_reconnect_after_drop(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.drop_stream(ConnectionError("gone"))

        await signed_in.connect_real_time()
        seeded_facade.open_stream()

        assert signed_in.connection_state is ConnectionState.CONNECTED
        assert signed_in.snapshot().error is None
        assert len(seeded_facade.subscriptions) == 2

    async def test_disconnect_is_idempotent(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        events: list[Event] = []
        _ = signed_in.event_bus.subscribe("connection.disconnected", events.append)

        await signed_in.disconnect_real_time()
        await signed_in.disconnect_real_time()

        assert len(events) == 1
        assert seeded_facade.subscriptions[0].close_calls == 1
        assert signed_in.connection_state is ConnectionState.DISCONNECTED


class TestListeners:
    """Test snapshot listeners."""

    async def test_listener_receives_snapshots(self, synchronizer: NotificationSynchronizer) -> None:
        snapshots: list[NotificationsSnapshot] = []
        unsubscribe = synchronizer.subscribe(snapshots.append)

        await synchronizer.set_authenticated(True)
        count = len(snapshots)
        unsubscribe()
        unsubscribe()
        await synchronizer.load_stats()

        assert count > 0
        assert len(snapshots) == count
        assert snapshots[0].loading is True

    async def test_raising_listener_does_not_break_updates(
        self, synchronizer: NotificationSynchronizer
    ) -> None:
        def broken(snapshot: NotificationsSnapshot) -> None:
            raise RuntimeError("listener failed")

        _ = synchronizer.subscribe(broken)

        await synchronizer.set_authenticated(True)

        assert ids(synchronizer.snapshot()) == [3, 2, 1]


class TestSignOutDuringWork:
    """Test that work finishing after sign-out leaves the cleared state alone."""

    async def test_stream_opened_after_sign_out_is_closed(
        self, synchronizer: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        gate = asyncio.Event()
        seeded_facade.gates["connect_real_time"] = gate
        sign_in = asyncio.create_task(synchronizer.set_authenticated(True))
        _ = await seeded_facade.held("connect_real_time").wait()

        await synchronizer.set_authenticated(False)
        gate.set()
        await sign_in
        seeded_facade.open_stream()
        seeded_facade.push(make_notification(99))

        snapshot = synchronizer.snapshot()
        assert seeded_facade.subscriptions[0].closed is True
        assert snapshot.notifications == ()
        assert snapshot.stats is None
        assert snapshot.connection is ConnectionState.DISCONNECTED

    async def test_page_answered_after_sign_out_is_dropped(
        self, synchronizer: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        gate = asyncio.Event()
        seeded_facade.gates["get_notifications"] = gate
        sign_in = asyncio.create_task(synchronizer.set_authenticated(True))
        _ = await seeded_facade.held("get_notifications").wait()

        await synchronizer.set_authenticated(False)
        gate.set()
        await sign_in

        snapshot = synchronizer.snapshot()
        assert snapshot.notifications == ()
        assert snapshot.stats is None
        assert snapshot.loading is False
        assert "get_stats" not in seeded_facade.calls
        assert "connect_real_time" not in seeded_facade.calls

    async def test_stats_answered_after_sign_out_are_dropped(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        gate = asyncio.Event()
        seeded_facade.gates["get_stats"] = gate
        reload = asyncio.create_task(signed_in.load_stats())
        _ = await seeded_facade.held("get_stats").wait()

        await signed_in.set_authenticated(False)
        gate.set()
        await reload

        assert signed_in.snapshot().stats is None

    async def test_push_after_sign_out_is_ignored(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        seeded_facade.open_stream()

        await signed_in.set_authenticated(False)
        seeded_facade.push(make_notification(99))

        assert signed_in.snapshot().notifications == ()
        assert signed_in.snapshot().stats is None

    async def test_disconnect_while_connecting_closes_stream(
        self, signed_in: NotificationSynchronizer, seeded_facade: FakeNotificationFacade
    ) -> None:
        await signed_in.disconnect_real_time()
        gate = asyncio.Event()
        seeded_facade.gates["connect_real_time"] = gate
        connect = asyncio.create_task(signed_in.connect_real_time())
        _ = await seeded_facade.held("connect_real_time").wait()

        await signed_in.disconnect_real_time()
        gate.set()
        await connect
        seeded_facade.open_stream()

        assert seeded_facade.subscriptions[-1].closed is True
        assert signed_in.connection_state is ConnectionState.DISCONNECTED
