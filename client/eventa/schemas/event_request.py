"""
Pydantic schemas for event requests and organizer interests.

The backend is not consistent about field names across endpoints: the
organizer listing sends `_id` and a populated `userId`, the requester listing
sends `eventId` and `organizers`. Both shapes parse into the same models.
"""

import math
from datetime import date as Date
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)


class EventType(str, Enum):
    WEDDING = "Wedding"
    SPORTS = "Sports"
    CORPORATE = "Corporate"
    POLITICAL = "Political"
    EDUCATIONAL = "Educational"


class RequestStatus(str, Enum):
    OPEN = "open"
    DEAL_DONE = "deal_done"


class InterestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    APPROVED = "approved"
    REJECTED = "rejected"
    DEAL_DONE = "deal_done"


def _coerce_id(value: Any) -> Any:
    # Populated references arrive as objects
    if isinstance(value, dict):
        value = value.get("_id", value.get("id"))
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return str(value)
    return value


Identifier = Annotated[str, BeforeValidator(_coerce_id)]


def _coerce_requester(value: Any) -> Any:
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return {"id": str(value)}
    return value


class RequesterSummary(BaseModel):
    id: Optional[Identifier] = Field(None, validation_alias=AliasChoices("_id", "id"))
    fullname: Optional[str] = None
    email: Optional[str] = None


class OrganizerInterest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    organizer_id: Identifier = Field(alias="organizerId")
    # Unknown statuses are kept as plain strings
    status: Annotated[Union[InterestStatus, str], Field(union_mode="left_to_right")] = (
        InterestStatus.PENDING
    )
    proposed_budget: Optional[float] = Field(None, alias="proposedBudget")
    response_date: Optional[str] = Field(None, alias="responseDate")
    message: Optional[str] = None
    fullname: Optional[str] = None
    contact: Optional[str] = None

    @field_validator("proposed_budget", mode="before")
    @classmethod
    def _blank_budget_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("proposed_budget")
    @classmethod
    def _positive_budget(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and (not math.isfinite(value) or value <= 0):
            raise ValueError("Proposed budget must be a positive number")
        return value


class EventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Identifier = Field(validation_alias=AliasChoices("_id", "id", "eventId"))
    requester: Optional[Annotated[RequesterSummary, BeforeValidator(_coerce_requester)]] = Field(
        None, validation_alias=AliasChoices("userId", "requester", "requesterId")
    )
    event_type: str = Field("", alias="eventType")
    venue: str = ""
    date: Optional[str] = None
    budget: Optional[float] = None
    description: str = ""
    status: RequestStatus = RequestStatus.OPEN
    interested_organizers: list[OrganizerInterest] = Field(
        default_factory=list,
        validation_alias=AliasChoices("interestedOrganizers", "organizers", "interested_organizers"),
        serialization_alias="interestedOrganizers",
    )

    @property
    def requester_id(self) -> Optional[str]:
        return self.requester.id if self.requester else None

    @property
    def is_deal_done(self) -> bool:
        return self.status == RequestStatus.DEAL_DONE

    def interest_for(self, organizer_id: str) -> Optional[OrganizerInterest]:
        for interest in self.interested_organizers:
            if interest.organizer_id == organizer_id:
                return interest
        return None

    def matches_search(self, term: str) -> bool:
        """Case-insensitive match on event type, venue, requester name and email."""
        needle = term.strip().lower()
        if not needle:
            return True
        requester = self.requester or RequesterSummary()
        haystack = (
            self.event_type,
            self.venue,
            requester.fullname or "",
            requester.email or "",
        )
        return any(needle in value.lower() for value in haystack)


# Messages shown next to each form field
EVENT_TYPE_REQUIRED = "Event type is required"
EVENT_TYPE_INVALID = "Please select a valid event type"
VENUE_REQUIRED = "Venue is required"
DATE_REQUIRED = "Date is required"
DATE_INVALID = "Please enter a valid date"
BUDGET_REQUIRED = "Budget is required"
BUDGET_INVALID = "Please enter a valid budget amount"
DESCRIPTION_REQUIRED = "Description is required"
DESCRIPTION_TOO_SHORT = "Description must be at least 10 characters long"

DESCRIPTION_MIN_LENGTH = 10


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_budget(value: Any) -> float:
    """Parse a budget input into a positive float or raise ValueError."""
    if isinstance(value, bool):
        raise ValueError(BUDGET_INVALID)
    try:
        amount = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValueError(BUDGET_INVALID) from None
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError(BUDGET_INVALID)
    return amount


class EventRequestCreate(BaseModel):
    """A candidate request as typed into the submission form."""

    model_config = ConfigDict(populate_by_name=True)

    event_type: EventType = Field(alias="eventType")
    venue: str
    date: Date
    budget: float
    description: str

    @field_validator("event_type", mode="before")
    @classmethod
    def _check_event_type(cls, value: Any) -> Any:
        if _is_blank(value):
            raise ValueError(EVENT_TYPE_REQUIRED)
        if isinstance(value, EventType):
            return value
        if value not in {member.value for member in EventType}:
            raise ValueError(EVENT_TYPE_INVALID)
        return value

    @field_validator("venue", mode="before")
    @classmethod
    def _check_venue(cls, value: Any) -> Any:
        if _is_blank(value):
            raise ValueError(VENUE_REQUIRED)
        return value.strip() if isinstance(value, str) else value

    @field_validator("date", mode="before")
    @classmethod
    def _check_date(cls, value: Any) -> Any:
        # No past-date check: requests may name any date
        if _is_blank(value):
            raise ValueError(DATE_REQUIRED)
        return value.strip() if isinstance(value, str) else value

    @field_validator("budget", mode="before")
    @classmethod
    def _check_budget(cls, value: Any) -> Any:
        if _is_blank(value):
            raise ValueError(BUDGET_REQUIRED)
        return parse_budget(value)

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value: Any) -> Any:
        if _is_blank(value):
            raise ValueError(DESCRIPTION_REQUIRED)
        if isinstance(value, str):
            value = value.strip()
            if len(value) < DESCRIPTION_MIN_LENGTH:
                raise ValueError(DESCRIPTION_TOO_SHORT)
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SubmissionResult(BaseModel):
    success: bool = False
    message: Optional[str] = None
