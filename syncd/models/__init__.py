from syncd.models.campus_event import (
    CampusEvent,
    EventCategory,
    EventSubscription,
    EventTag,
)
from syncd.models.email_notification import (
    EmailNotification,
    NotificationKind,
    NotificationStatus,
)
from syncd.models.task import Task, TaskTag
from syncd.models.user import User, UserPreference

__all__ = [
    "CampusEvent",
    "EmailNotification",
    "EventCategory",
    "EventSubscription",
    "EventTag",
    "NotificationKind",
    "NotificationStatus",
    "Task",
    "TaskTag",
    "User",
    "UserPreference",
]
