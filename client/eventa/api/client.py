"""
REST client for the event request backend.

One method per backend operation. Every call:
1. Binds a short request ID, method and path to structlog context
2. Logs duration and status on completion
3. Raises BackendError for non-2xx responses and transport failures,
   carrying the backend's own message when it sent one
"""

import time
import uuid
from typing import Any, Optional

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from eventa.core.config import Settings, get_settings
from eventa.core.errors import BackendError, ErrorCode
from eventa.core.logging import get_logger
from eventa.core.metrics import backend_latency, record_backend_error
from eventa.schemas.event_request import EventRequest, EventRequestCreate, SubmissionResult

logger = get_logger(__name__)

_request_list = TypeAdapter(list[EventRequest])

UNEXPECTED_RESPONSE = "Unexpected response from server"


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


class EventRequestApi:
    """Backend client scoped to one caller's bearer token."""

    def __init__(
        self,
        token: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=settings.API_BASE_URL,
            headers=headers,
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "EventRequestApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        with structlog.contextvars.bound_contextvars(
            request_id=request_id,
            method=method,
            path=path,
        ):
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
                logger.error("backend_request_failed", error=str(exc), duration_ms=duration_ms)
                record_backend_error("transport")
                raise BackendError(code=ErrorCode.TRANSPORT_ERROR) from exc

            duration = time.perf_counter() - start_time
            backend_latency.labels(method=method).observe(duration)
            logger.info(
                "backend_request_completed",
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )

            if response.is_error:
                record_backend_error("status")
                raise BackendError(_server_message(response), status_code=response.status_code)
            return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            record_backend_error("decode")
            raise BackendError(UNEXPECTED_RESPONSE, status_code=response.status_code) from exc

    def _requests(self, data: Any, status_code: int) -> list[EventRequest]:
        try:
            return _request_list.validate_python(data)
        except ValidationError as exc:
            record_backend_error("decode")
            logger.warning("backend_payload_invalid", errors=exc.error_count())
            raise BackendError(UNEXPECTED_RESPONSE, status_code=status_code) from exc

    async def create_request(self, payload: EventRequestCreate) -> SubmissionResult:
        response = await self._request("POST", "/eventrequest", json=payload.to_payload())
        body = self._json(response)
        if not isinstance(body, dict):
            raise BackendError(UNEXPECTED_RESPONSE, status_code=response.status_code)
        return SubmissionResult.model_validate(body)

    async def list_open_requests(self, event_type: Optional[str] = None) -> list[EventRequest]:
        """Requests visible to organizers, optionally narrowed by event type."""
        params = {"eventType": event_type} if event_type else None
        response = await self._request("GET", "/eventrequest/event-requests", params=params)
        return self._requests(self._json(response), response.status_code)

    async def accept_request(
        self,
        request_id: str,
        organizer_id: str,
        proposed_budget: Optional[float] = None,
    ) -> None:
        await self._request(
            "PUT",
            f"/eventrequest/event-request/{request_id}/accept",
            json={"organizerId": organizer_id, "proposedBudget": proposed_budget},
        )

    async def reject_request(self, request_id: str) -> None:
        await self._request("PUT", f"/eventrequest/event-request/{request_id}/reject", json={})

    async def list_my_requests(self) -> list[EventRequest]:
        """The caller's own requests with their interested organizers."""
        response = await self._request("GET", "/eventrequest/event-requests-for-user")
        body = self._json(response)
        if not isinstance(body, dict):
            raise BackendError(UNEXPECTED_RESPONSE, status_code=response.status_code)
        return self._requests(body.get("eventRequests") or [], response.status_code)

    async def select_organizer(self, event_id: str, organizer_id: str) -> None:
        await self._request(
            "PUT",
            "/eventrequest/event-request/select-organizer",
            json={"eventId": event_id, "organizerId": organizer_id},
        )
