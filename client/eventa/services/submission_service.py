"""
Request submission: validate a candidate event request and send it.

Validation is client-side and reports every failing field in one pass.
Problems are returned as a {field: message} map, never raised.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from eventa.api.client import EventRequestApi
from eventa.core.config import Settings, get_settings
from eventa.core.errors import BackendError
from eventa.core.logging import get_logger
from eventa.core.metrics import record_action, record_validation_failure
from eventa.schemas.event_request import (
    BUDGET_INVALID,
    DATE_INVALID,
    EVENT_TYPE_INVALID,
    EventRequestCreate,
)
from eventa.schemas.notification import NOTIFICATION_EVENT, NotificationKind, NotificationMessage
from eventa.services.interfaces.notifier import Notifier

logger = get_logger(__name__)

FORM_FIELDS = ("eventType", "venue", "date", "budget", "description")

REQUIRED_MESSAGES = {
    "eventType": "Event type is required",
    "venue": "Venue is required",
    "date": "Date is required",
    "budget": "Budget is required",
    "description": "Description is required",
}

# Used when pydantic rejects a value after our own checks passed
INVALID_MESSAGES = {
    "eventType": EVENT_TYPE_INVALID,
    "date": DATE_INVALID,
    "budget": BUDGET_INVALID,
}

FIX_ERRORS_MESSAGE = "Please fix form errors"
SUBMITTED_MESSAGE = "Request submitted successfully!"
SUBMIT_FAILED_MESSAGE = "Failed to submit request"


def _error_message(field: str, error: Mapping[str, Any]) -> str:
    if error["type"] == "missing":
        return REQUIRED_MESSAGES.get(field, "This field is required")
    if error["type"] == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return INVALID_MESSAGES.get(field, REQUIRED_MESSAGES.get(field, "Invalid value"))


def parse_request_form(
    data: Mapping[str, Any],
) -> tuple[Optional[EventRequestCreate], dict[str, str]]:
    """Return the validated payload, or None plus one message per failing field."""
    try:
        return EventRequestCreate.model_validate(dict(data)), {}
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else "__all__"
            # First message per field wins
            errors.setdefault(field, _error_message(field, error))
        return None, errors


def validate_request_form(data: Mapping[str, Any]) -> dict[str, str]:
    return parse_request_form(data)[1]


def empty_form() -> dict[str, Any]:
    return {field: "" for field in FORM_FIELDS}


@dataclass
class FormMessage:
    type: str = ""  # "", "success" or "error"
    content: str = ""


class RequestSubmissionForm:
    """
    State of the "Request Event" form.

    `loading` doubles as the disabled-submit guard: a submit issued while
    another is in flight returns False without touching the network.
    """

    def __init__(
        self,
        api: EventRequestApi,
        notifier: Optional[Notifier] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._api = api
        self._notifier = notifier
        self._settings = settings or get_settings()
        self._dismiss_handle: Optional[asyncio.TimerHandle] = None

        self.data = empty_form()
        self.errors: dict[str, str] = {}
        self.message = FormMessage()
        self.loading = False
        self.is_open = False

    def open(self) -> None:
        self._cancel_dismiss()
        self.is_open = True
        self.message = FormMessage()
        self.errors = {}

    def close(self) -> None:
        self._cancel_dismiss()
        self.is_open = False
        self.data = empty_form()
        self.message = FormMessage()
        self.errors = {}

    def update_field(self, field: str, value: Any) -> None:
        if field not in FORM_FIELDS:
            raise KeyError(field)
        self.data[field] = value
        if self.errors.get(field):
            self.errors[field] = ""

    async def submit(self) -> bool:
        """Validate and send the form. True when the backend accepted it."""
        if self.loading:
            logger.debug("event_request_submit_ignored", reason="in_flight")
            return False

        self.message = FormMessage()
        payload, errors = parse_request_form(self.data)
        self.errors = errors
        if payload is None:
            for field in errors:
                record_validation_failure(field)
            self.message = FormMessage("error", FIX_ERRORS_MESSAGE)
            logger.info("event_request_invalid", fields=sorted(errors))
            return False

        self.loading = True
        try:
            result = await self._api.create_request(payload)
        except BackendError as e:
            record_action("create", "failure")
            logger.warning("event_request_submit_failed", error=e.message, status_code=e.status_code)
            self.message = FormMessage("error", e.server_message or SUBMIT_FAILED_MESSAGE)
            return False
        finally:
            self.loading = False

        if not result.success:
            record_action("create", "failure")
            logger.warning("event_request_submit_declined", message=result.message)
            self.message = FormMessage("error", result.message or SUBMIT_FAILED_MESSAGE)
            return False

        record_action("create", "success")
        logger.info(
            "event_request_submitted",
            event_type=payload.event_type.value,
            venue=payload.venue,
        )
        self.message = FormMessage("success", result.message or SUBMITTED_MESSAGE)
        self.data = empty_form()
        self._schedule_dismiss()
        await self._notify(payload)
        return True

    def _schedule_dismiss(self) -> None:
        self._cancel_dismiss()
        loop = asyncio.get_running_loop()
        self._dismiss_handle = loop.call_later(self._settings.FORM_DISMISS_SECONDS, self._dismiss)

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def _dismiss(self) -> None:
        self._dismiss_handle = None
        self.is_open = False

    async def _notify(self, payload: EventRequestCreate) -> None:
        if self._notifier is None:
            return
        message = NotificationMessage(
            kind=NotificationKind.EVENT_REQUEST.value,
            message=f"New {payload.event_type.value} event request at {payload.venue}",
        )
        try:
            await self._notifier.send(NOTIFICATION_EVENT, message.to_payload())
        except Exception:
            logger.exception("notification_not_sent", kind=message.kind)
