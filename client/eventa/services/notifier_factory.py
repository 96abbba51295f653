"""
Notifier factory.
Configures which push channel implementation to use.
"""

from typing import Optional

from eventa.core.config import Settings, get_settings
from eventa.infrastructure.relay import NotificationRelay
from eventa.services.interfaces.notifier import Notifier
from eventa.services.interfaces.null_notifier import NullNotifier


def get_notifier(settings: Optional[Settings] = None, token: Optional[str] = None) -> Notifier:
    """
    Get configured notifier.

    - NOTIFICATIONS_ENABLED: NotificationRelay over WS_URL
    - otherwise: NullNotifier
    """
    settings = settings or get_settings()

    if settings.NOTIFICATIONS_ENABLED:
        return NotificationRelay(
            url=settings.WS_URL,
            token=token,
            max_reconnect_attempts=settings.MAX_RECONNECT_ATTEMPTS,
            reconnect_delay=settings.RECONNECT_DELAY_SECONDS,
            heartbeat=settings.WS_HEARTBEAT_SECONDS,
        )
    return NullNotifier()
