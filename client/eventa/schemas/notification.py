"""
Pydantic schemas for push-channel messages and connection status.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from eventa.schemas.event_request import Identifier

NOTIFICATION_EVENT = "notification"
CONNECTION_STATUS_EVENT = "connection_status"


class NotificationKind(str, Enum):
    EVENT_REQUEST = "event_request"
    EVENT_REQUEST_ACCEPTED = "event_request_accepted"
    EVENT_REQUEST_REJECTED = "event_request_rejected"
    ORGANIZER_SELECTED = "organizer_selected"


class NotificationMessage(BaseModel):
    """Payload of a `notification` frame."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    kind: Optional[str] = None
    event_id: Optional[Identifier] = Field(None, alias="eventId")
    organizer_id: Optional[Identifier] = Field(None, alias="organizerId")
    user_id: Optional[Identifier] = Field(None, alias="userId")
    message: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ConnectionStatus(BaseModel):
    connected: bool
    reconnect_attempts: int = Field(0, alias="reconnectAttempts")
    max_reconnect_attempts: int = Field(alias="maxReconnectAttempts")
    lost: bool = False

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_lost(self) -> bool:
        return self.lost and not self.connected

    @property
    def message(self) -> Optional[str]:
        """Banner text, or None while connected."""
        if self.connected:
            return None
        if self.is_lost:
            return "Connection lost. Please refresh the page to reconnect"
        return (
            f"Reconnecting... Attempt {self.reconnect_attempts} "
            f"of {self.max_reconnect_attempts}"
        )
