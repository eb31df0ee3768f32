"""Property-based tests for the notification mirror using Hypothesis.

Tests cover:
- After any sequence of confirmed mutations and push events, the local list
  and stats agree with the server
- A push event always lands first and never duplicates an id
"""

import asyncio

from hypothesis import given, settings, strategies as st

from learnquest_client.models.notifications import RealTimeNotificationEvent
from learnquest_client.realtime.synchronizer import NotificationSynchronizer
from tests.fixtures.factories import FakeNotificationFacade, make_notification

ids = st.integers(min_value=1, max_value=12)

initial_notifications = st.lists(st.tuples(ids, st.booleans()), unique_by=lambda item: item[0], max_size=8)

operations = st.lists(
    st.one_of(
        st.tuples(st.just("read"), st.lists(ids, max_size=3)),
        st.tuples(st.just("read_all"), st.none()),
        st.tuples(st.just("delete"), ids),
        st.tuples(st.just("delete_all"), st.none()),
        st.tuples(st.just("push"), st.tuples(ids, st.booleans())),
    ),
    max_size=15,
)


async def replay(
    seed: list[tuple[int, bool]], steps: list[tuple[str, object]]
) -> tuple[FakeNotificationFacade, NotificationSynchronizer]:
    """Seed the fake server, sign in and apply every step in order."""
    facade = FakeNotificationFacade([make_notification(i, is_read=read) for i, read in seed])
    sync = NotificationSynchronizer(facade)  # pyright: ignore[reportArgumentType]  # duck-typed fake
    await sync.set_authenticated(True)
    facade.open_stream()

    for name, arg in steps:
        if name == "read":
            assert isinstance(arg, list)
            _ = await sync.mark_as_read(arg)
        elif name == "read_all":
            _ = await sync.mark_all_as_read()
        elif name == "delete":
            assert isinstance(arg, int)
            _ = await sync.delete_notification(arg)
        elif name == "delete_all":
            _ = await sync.delete_all_notifications()
        else:
            assert isinstance(arg, tuple)
            notification_id, is_read = arg
            facade.push(make_notification(notification_id, is_read=is_read))
    return facade, sync


class TestMirrorConsistency:
    """Property: the local mirror tracks the server through any history."""

    @settings(max_examples=60, deadline=None)
    @given(initial_notifications, operations)
    def test_list_and_stats_match_server(
        self, seed: list[tuple[int, bool]], steps: list[tuple[str, object]]
    ) -> None:
        facade, sync = asyncio.run(replay(seed, steps))
        snapshot = sync.snapshot()

        assert [(n.notification_id, n.is_read) for n in snapshot.notifications] == [
            (n.notification_id, n.is_read) for n in facade.server
        ]
        assert snapshot.stats is not None
        assert snapshot.stats.total_notifications == len(facade.server)
        assert snapshot.stats.unread_count == facade.stats().unread_count
        assert snapshot.local_unread == snapshot.stats.unread_count
        assert 0 <= snapshot.stats.unread_count <= snapshot.stats.total_notifications


class TestPushMerge:
    """Property: push events prepend and de-duplicate."""

    @given(st.lists(ids, unique=True, max_size=10), ids)
    def test_pushed_notification_first_and_unique(self, existing: list[int], pushed: int) -> None:
        facade = FakeNotificationFacade()
        sync = NotificationSynchronizer(facade)  # pyright: ignore[reportArgumentType]  # duck-typed fake
        for notification_id in reversed(existing):
            sync.apply_push_event(RealTimeNotificationEvent(notification=make_notification(notification_id)))

        sync.apply_push_event(RealTimeNotificationEvent(notification=make_notification(pushed, title="fresh")))

        result = [n.notification_id for n in sync.snapshot().notifications]
        assert result[0] == pushed
        assert sync.snapshot().notifications[0].title == "fresh"
        assert len(result) == len(set(result))
        assert set(result) == set(existing) | {pushed}
        assert result[1:] == [i for i in existing if i != pushed]
