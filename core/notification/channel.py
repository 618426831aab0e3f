"""
Notification channel interface - domain-agnostic outbound delivery

The app layer implements INotificationChannel for concrete transports
(SMTP email, webhooks, ...) and registers them on a NotificationChannelRegistry.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class INotificationChannel(ABC):
    """Notification channel interface"""

    @abstractmethod
    def send(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> bool:
        """Send one notification.

        Args:
            recipient: channel-specific address (email, phone, URL...)
            subject: message subject
            content: message body
            extra: channel-specific options (content_type, cc, ...)

        Returns:
            True when the transport accepted the message
        """

    @abstractmethod
    def get_channel_type(self) -> str:
        """Channel identifier such as 'email' or 'webhook'"""


class NotificationChannelRegistry:
    """Channels keyed by type.

    The application registers its channels during startup:
        notification_channels.register(EmailChannel.from_settings(settings))

    Tests build their own registry instead of touching the shared one.
    """

    def __init__(self) -> None:
        self._channels: Dict[str, INotificationChannel] = {}

    def register(self, channel: INotificationChannel) -> None:
        self._channels[channel.get_channel_type()] = channel

    def unregister(self, channel_type: str) -> None:
        self._channels.pop(channel_type, None)

    def get_channel(self, channel_type: str) -> Optional[INotificationChannel]:
        return self._channels.get(channel_type)

    def has_channel(self, channel_type: str) -> bool:
        return channel_type in self._channels

    def get_all_channels(self) -> List[INotificationChannel]:
        return list(self._channels.values())

    def clear(self) -> None:
        """Drop every channel (test helper)"""
        self._channels.clear()


# Shared registry populated by the application lifespan
notification_channels = NotificationChannelRegistry()
