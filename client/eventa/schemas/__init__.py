from eventa.schemas.event_request import (
    EventType, RequestStatus, InterestStatus,
    RequesterSummary, OrganizerInterest, EventRequest,
    EventRequestCreate, SubmissionResult,
)
from eventa.schemas.notification import (
    NotificationKind, NotificationMessage, ConnectionStatus,
    NOTIFICATION_EVENT, CONNECTION_STATUS_EVENT,
)

__all__ = [
    "EventType", "RequestStatus", "InterestStatus",
    "RequesterSummary", "OrganizerInterest", "EventRequest",
    "EventRequestCreate", "SubmissionResult",
    "NotificationKind", "NotificationMessage", "ConnectionStatus",
    "NOTIFICATION_EVENT", "CONNECTION_STATUS_EVENT",
]
