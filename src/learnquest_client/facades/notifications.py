"""Notification façade: reads, mutations, admin helpers and the push stream."""

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Final
from urllib.parse import urlencode

from learnquest_client.api.client import ApiClient
from learnquest_client.facades.base import Facade, convert
from learnquest_client.models.notifications import (
    BulkCreateNotificationRequest,
    CreateNotificationRequest,
    Notification,
    NotificationFilter,
    NotificationPage,
    NotificationPreferences,
    NotificationPriority,
    NotificationStats,
)
from learnquest_client.realtime.stream import PushStream, StreamSubscription
from learnquest_client.types.aliases import ErrorCallback, MessageCallback, OpenCallback
from learnquest_client.types.models import ApiResponse

logger = logging.getLogger(__name__)

DEFAULT_STREAM_PATH: Final[str] = "/Notifications/real-time"


def _iso(value: date | datetime | str) -> str:
    return value if isinstance(value, str) else value.isoformat()


class NotificationFacade(Facade):
    """Operations under ``/notification`` plus the real-time stream."""

    def __init__(
        self,
        client: ApiClient,
        *,
        stream: PushStream | None = None,
        stream_path: str = DEFAULT_STREAM_PATH,
    ) -> None:
        super().__init__(client)
        self._stream: PushStream = stream or PushStream()
        self._stream_path: str = stream_path

    async def get_notifications(
        self, notification_filter: NotificationFilter | None = None
    ) -> ApiResponse[NotificationPage]:
        params = (notification_filter or NotificationFilter()).to_params()
        return convert(await self._client.get("/notification", params=params), NotificationPage)

    async def get_recent(self, limit: int = 5) -> ApiResponse[list[Notification]]:
        response = await self._client.get("/notification/recent", params={"limit": limit})
        return convert(response, list[Notification])

    async def get_unread_count(self) -> ApiResponse[int]:
        return convert(await self._client.get("/notification/unread-count"), int)

    async def get_stats(self) -> ApiResponse[NotificationStats]:
        return convert(await self._client.get("/notification/stats"), NotificationStats)

    async def mark_as_read(self, notification_ids: Sequence[int]) -> ApiResponse[object]:
        payload = {"notificationIds": list(notification_ids)}
        return await self._client.post("/notification/mark-read", payload)

    async def mark_all_as_read(self) -> ApiResponse[object]:
        return await self._client.post("/notification/mark-all-read")

    async def delete_notification(self, notification_id: int) -> ApiResponse[object]:
        return await self._client.delete(f"/notification/{notification_id}")

    async def delete_notifications(self, notification_ids: Sequence[int]) -> ApiResponse[object]:
        return await self._client.delete("/notification/bulk", list(notification_ids))

    async def delete_all_notifications(self) -> ApiResponse[object]:
        return await self._client.delete("/notification/all")

    async def create_notification(self, request: CreateNotificationRequest) -> ApiResponse[object]:
        return await self._client.post("/notification", request.to_payload())

    async def create_bulk_notification(self, request: BulkCreateNotificationRequest) -> ApiResponse[list[int]]:
        response = await self._client.post("/notification/bulk", request.to_payload())
        return convert(response, list[int])

    async def create_course_notification(
        self,
        user_id: int,
        course_id: int,
        title: str,
        message: str,
        *,
        type: str = "CourseUpdate",
        priority: str = NotificationPriority.NORMAL,
    ) -> ApiResponse[object]:
        params = {
            "userId": user_id,
            "courseId": course_id,
            "title": title,
            "message": message,
            "type": type,
            "priority": priority,
        }
        return await self._client.post("/notification/course", params=params)

    async def create_achievement_notification(
        self,
        user_id: int,
        achievement_id: int,
        achievement_name: str,
        message: str | None = None,
    ) -> ApiResponse[object]:
        params = {
            "userId": user_id,
            "achievementId": achievement_id,
            "achievementName": achievement_name,
            "message": message or None,
        }
        return await self._client.post("/notification/achievement", params=params)

    async def create_reminder_notification(
        self,
        user_id: int,
        title: str,
        message: str,
        *,
        course_id: int | None = None,
        priority: str = NotificationPriority.NORMAL,
    ) -> ApiResponse[object]:
        params = {
            "userId": user_id,
            "title": title,
            "message": message,
            "priority": priority,
            "courseId": course_id or None,
        }
        return await self._client.post("/notification/reminder", params=params)

    async def send_system_notification(
        self,
        title: str,
        message: str,
        *,
        type: str = "System",
        priority: str = NotificationPriority.HIGH,
    ) -> ApiResponse[object]:
        params = {"title": title, "message": message, "type": type, "priority": priority}
        return await self._client.post("/notification/system", params=params)

    async def cleanup_old_notifications(self, older_than_days: int = 30) -> ApiResponse[int]:
        response = await self._client.delete("/notification/cleanup", params={"olderThanDays": older_than_days})
        return convert(response, int)

    async def get_analytics(
        self,
        start_date: date | datetime | str,
        end_date: date | datetime | str,
    ) -> ApiResponse[object]:
        params = {"startDate": _iso(start_date), "endDate": _iso(end_date)}
        return await self._client.get("/notification/analytics", params=params)

    async def get_preferences(self) -> ApiResponse[NotificationPreferences]:
        return convert(await self._client.get("/notification/preferences"), NotificationPreferences)

    async def update_preferences(
        self, preferences: NotificationPreferences | Mapping[str, object]
    ) -> ApiResponse[object]:
        """Send full or partial preferences.

        A mapping is sent as a partial update; its keys may be snake_case
        field names or the camelCase wire names.
        """
        if isinstance(preferences, NotificationPreferences):
            payload: dict[str, object] = preferences.to_payload()
        else:
            payload = NotificationPreferences.partial_payload(preferences)
        return await self._client.post("/notification/preferences", payload)

    async def stream_url(self) -> str | None:
        """Absolute push-stream URL carrying the access token, or None.

        None when there is no stored access token or no reachable endpoint.
        """
        token = self._client.session_store.access_token
        if not token:
            return None
        url = await self._client.resolve_url(self._stream_path)
        if url is None:
            return None
        return f"{url}?{urlencode({'token': token})}"

    async def connect_real_time(
        self,
        on_message: MessageCallback,
        on_error: ErrorCallback | None = None,
        on_open: OpenCallback | None = None,
    ) -> StreamSubscription | None:
        """Open the push stream.

        Returns:
            The subscription handle, or None when not signed in or no
            endpoint is reachable
        """
        url = await self.stream_url()
        if url is None:
            logger.warning("Real-time notifications unavailable: not signed in or no endpoint reachable")
            return None
        return await self._stream.open(url, on_message, on_error, on_open)
