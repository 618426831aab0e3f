"""
Notification channel abstraction - interfaces only, the app layer supplies transports
"""
from core.notification.channel import (
    INotificationChannel,
    NotificationChannelRegistry,
    notification_channels,
)

__all__ = ["INotificationChannel", "NotificationChannelRegistry", "notification_channels"]
