"""Aggregate application use cases."""

from .notifications import dispatch_due_notifications, schedule_notification

__all__ = [
    "dispatch_due_notifications",
    "schedule_notification",
]
