"""
Null notifier - push channel disabled.
REST calls remain the source of truth; peers see changes on their next fetch.
"""

from typing import Any

from eventa.core.logging import get_logger
from eventa.services.interfaces.notifier import Handler, Notifier

logger = get_logger(__name__)


class NullNotifier(Notifier):
    """
    Accepts subscriptions, never delivers.

    Use when:
    - NOTIFICATIONS_ENABLED is off
    - Tests that only exercise REST behaviour
    """

    async def send(self, event: str, payload: dict[str, Any]) -> bool:
        logger.debug("notification_skipped", channel=event, reason="notifications_disabled")
        return False

    def on(self, event: str, handler: Handler) -> None:
        pass

    def off(self, event: str, handler: Handler) -> None:
        pass
