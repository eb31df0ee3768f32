"""Pydantic DTOs exchanged with the LearnQuest backend."""

from learnquest_client.models.base import ApiModel
from learnquest_client.models.notifications import (
    Notification,
    NotificationFilter,
    NotificationPage,
    NotificationPreferences,
    NotificationPriority,
    NotificationStats,
    RealTimeNotificationEvent,
)

__all__ = [
    "ApiModel",
    "Notification",
    "NotificationFilter",
    "NotificationPage",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationStats",
    "RealTimeNotificationEvent",
]
