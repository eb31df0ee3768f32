"""Notification DTOs."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import Field

from learnquest_client.models.base import ApiModel, camel_params


class NotificationPriority(StrEnum):
    """Priorities the backend assigns; other strings are tolerated on read."""

    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"


class Notification(ApiModel):
    """A single notification addressed to the signed-in user."""

    notification_id: int
    user_id: int | None = None
    title: str = ""
    message: str = ""
    type: str = ""
    priority: str = NotificationPriority.NORMAL
    is_read: bool = False
    created_at: datetime | None = None
    read_at: datetime | None = None
    course_id: int | None = None
    course_name: str | None = None
    content_id: int | None = None
    content_title: str | None = None
    achievement_id: int | None = None
    achievement_name: str | None = None
    action_url: str | None = None
    icon: str | None = None
    time_ago: str | None = None


class NotificationStats(ApiModel):
    """Aggregate counts over the user's notifications."""

    total_notifications: Annotated[int, Field(ge=0)] = 0
    unread_count: Annotated[int, Field(ge=0)] = 0
    high_priority_unread: int = 0
    today_count: int = 0
    week_count: int = 0
    type_counts: dict[str, int] = Field(default_factory=dict)
    priority_counts: dict[str, int] = Field(default_factory=dict)


class NotificationPage(ApiModel):
    """One page of notifications plus the stats at fetch time."""

    notifications: list[Notification] = Field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    page_size: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False
    stats: NotificationStats | None = None


class NotificationFilter(ApiModel):
    """Query filter for paged notification reads."""

    page_number: Annotated[int, Field(ge=1)] = 1
    page_size: Annotated[int, Field(ge=1)] = 50
    is_read: bool | None = None
    type: str | None = None
    priority: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    course_id: int | None = None

    def to_params(self) -> dict[str, str | int | float | bool | None]:
        """Render as camelCase query parameters; None values are dropped later."""
        values: dict[str, object] = {
            "page_number": self.page_number,
            "page_size": self.page_size,
            "is_read": self.is_read,
            "type": self.type,
            "priority": self.priority,
            "from_date": self.from_date.isoformat() if self.from_date else None,
            "to_date": self.to_date.isoformat() if self.to_date else None,
            "course_id": self.course_id,
        }
        return camel_params(values)


class NotificationPreferences(ApiModel):
    """Per-user delivery preferences."""

    user_id: int | None = None
    email_notifications: bool = True
    push_notifications: bool = True
    course_update_notifications: bool = True
    achievement_notifications: bool = True
    reminder_notifications: bool = True
    marketing_notifications: bool = False
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None


class RealTimeNotificationEvent(ApiModel):
    """Payload of one push-stream message."""

    event: str = ""
    notification: Notification | None = None
    stats: NotificationStats | None = None
    timestamp: datetime | None = None


class CreateNotificationRequest(ApiModel):
    user_id: int
    title: str
    message: str
    type: str
    priority: str = NotificationPriority.NORMAL
    course_id: int | None = None
    content_id: int | None = None
    achievement_id: int | None = None
    action_url: str | None = None
    icon: str | None = None


class BulkCreateNotificationRequest(ApiModel):
    user_ids: list[int]
    title: str
    message: str
    type: str
    priority: str = NotificationPriority.NORMAL
    course_id: int | None = None
    content_id: int | None = None
    achievement_id: int | None = None
    action_url: str | None = None
    icon: str | None = None
