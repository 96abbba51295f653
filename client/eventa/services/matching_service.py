"""
Request matching between organizers and requesters.

ROLE SPLIT
==========

Organizers and requesters mutate disjoint parts of the same request:

  - An organizer only touches its own OrganizerInterest entry (accept/reject)
  - A requester only touches the finalization decision (select organizer)

Each side gets its own board with capability-scoped actions, so neither can
write a field it does not own.

LOCAL STATE
===========

  Organizer actions patch the local list on a 2xx response instead of
  re-fetching (optimistic, reducer-style). The patch is the only truth for
  the session until the next load.

  Selection changes state other parties care about (the other organizers'
  interests become moot), so the requester board flags `needs_refresh` and
  re-fetches instead of patching.

  A request the server reports as deal_done is locked: accept and reject are
  refused without a network call. A deal_done produced by this organizer's
  own accept is provisional and stays actionable by that organizer.

Write actions never raise: every failure ends in an alert and an unchanged
local list.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from eventa.api.client import EventRequestApi
from eventa.core.errors import BackendError, IdentityError, RequestClosedError
from eventa.core.logging import get_logger
from eventa.core.metrics import record_action
from eventa.core.security import NO_TOKEN_MESSAGE, IdentityContext
from eventa.schemas.event_request import (
    BUDGET_INVALID,
    EventRequest,
    InterestStatus,
    OrganizerInterest,
    RequestStatus,
    parse_budget,
)
from eventa.schemas.notification import NOTIFICATION_EVENT, NotificationKind, NotificationMessage
from eventa.services.interfaces.notifier import Notifier

logger = get_logger(__name__)

ACCEPTED_MESSAGE = "Event request accepted successfully"
REJECTED_MESSAGE = "Event request rejected successfully"
ACCEPT_FAILED_MESSAGE = "Error accepting event request"
REJECT_FAILED_MESSAGE = "Error rejecting event request"
FETCH_FAILED_MESSAGE = "Failed to fetch event requests. Please try again."
SELECTED_MESSAGE = "Organizer selected successfully, and status updated to deal_done."
SELECT_FAILED_MESSAGE = "An error occurred while selecting the organizer."
NOT_INTERESTED_MESSAGE = "This organizer has not expressed interest in the request."
EMPTY_STATE_MESSAGE = (
    "You haven't created any event requests yet. Start planning your perfect event today!"
)

# Notification kinds that make a board's list stale
ORGANIZER_REFRESH_KINDS = {NotificationKind.EVENT_REQUEST.value, NotificationKind.ORGANIZER_SELECTED.value}
REQUESTER_REFRESH_KINDS = {
    NotificationKind.EVENT_REQUEST_ACCEPTED.value,
    NotificationKind.EVENT_REQUEST_REJECTED.value,
}


@dataclass(frozen=True)
class Alert:
    level: str  # "info" or "error"
    message: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _with_interest(request: EventRequest, interest: OrganizerInterest) -> list[OrganizerInterest]:
    """Replace the organizer's entry in place, or append it. Others are untouched."""
    interests = list(request.interested_organizers)
    for index, existing in enumerate(interests):
        if existing.organizer_id == interest.organizer_id:
            interests[index] = interest
            return interests
    interests.append(interest)
    return interests


def apply_accept(
    request: EventRequest,
    organizer_id: str,
    proposed_budget: Optional[float],
    responded_at: Optional[str] = None,
) -> EventRequest:
    """Request after this organizer's accepted interest. Budget defaults to the request's."""
    existing = request.interest_for(organizer_id)
    base = existing or OrganizerInterest(organizer_id=organizer_id)
    interest = base.model_copy(
        update={
            "status": InterestStatus.ACCEPTED,
            "proposed_budget": proposed_budget if proposed_budget is not None else request.budget,
            "response_date": responded_at or _now(),
        }
    )
    return request.model_copy(
        update={
            "status": RequestStatus.DEAL_DONE,
            "interested_organizers": _with_interest(request, interest),
        }
    )


def apply_reject(
    request: EventRequest,
    organizer_id: str,
    responded_at: Optional[str] = None,
) -> EventRequest:
    """Request after this organizer's rejection. Aggregate status reverts to open."""
    existing = request.interest_for(organizer_id)
    base = existing or OrganizerInterest(organizer_id=organizer_id)
    interest = base.model_copy(
        update={
            "status": InterestStatus.REJECTED,
            "response_date": responded_at or _now(),
        }
    )
    return request.model_copy(
        update={
            "status": RequestStatus.OPEN,
            "interested_organizers": _with_interest(request, interest),
        }
    )


class _Board:
    """Shared plumbing: alerts, identity, in-flight guard, notifications."""

    refresh_kinds: set[str] = set()

    def __init__(
        self,
        api: EventRequestApi,
        identity: Optional[IdentityContext],
        notifier: Optional[Notifier] = None,
    ) -> None:
        self._api = api
        self._identity = identity
        self._notifier = notifier
        self._attached: Optional[Notifier] = None
        self._pending: set[str] = set()

        self.requests: list[EventRequest] = []
        self.loading = False
        self.error: Optional[str] = None
        self.alerts: list[Alert] = []
        self.needs_refresh = False

    @property
    def last_alert(self) -> Optional[Alert]:
        return self.alerts[-1] if self.alerts else None

    def is_pending(self, request_id: str) -> bool:
        return str(request_id) in self._pending

    def find(self, request_id: str) -> Optional[EventRequest]:
        for request in self.requests:
            if request.id == str(request_id):
                return request
        return None

    def _alert(self, message: str, level: str = "info") -> None:
        self.alerts.append(Alert(level, message))

    def _require_identity(self) -> str:
        if self._identity is None:
            raise IdentityError(NO_TOKEN_MESSAGE)
        return self._identity.require_user_id()

    async def load(self) -> bool:
        """Fetch the list. On failure the list is emptied and `error` is set."""
        self.loading = True
        try:
            self.requests = await self._fetch()
        except BackendError as e:
            record_action("list", "failure")
            logger.warning("event_requests_fetch_failed", error=e.message, status_code=e.status_code)
            self.requests = []
            self.error = e.server_message or FETCH_FAILED_MESSAGE
            self._alert(FETCH_FAILED_MESSAGE, "error")
            return False
        finally:
            self.loading = False

        record_action("list", "success")
        self.error = None
        self.needs_refresh = False
        return True

    async def _fetch(self) -> list[EventRequest]:
        raise NotImplementedError

    async def refresh_if_needed(self) -> bool:
        if not self.needs_refresh:
            return False
        return await self.load()

    # Live updates

    def attach(self, notifier: Notifier) -> None:
        self.detach()
        notifier.on(NOTIFICATION_EVENT, self._on_notification)
        self._attached = notifier

    def detach(self) -> None:
        if self._attached is not None:
            self._attached.off(NOTIFICATION_EVENT, self._on_notification)
            self._attached = None

    def _on_notification(self, message: dict[str, Any]) -> None:
        notification = NotificationMessage.model_validate(message)
        if notification.kind in self.refresh_kinds:
            logger.debug("event_requests_stale", kind=notification.kind)
            self.needs_refresh = True

    async def _notify(self, kind: NotificationKind, request_id: str, organizer_id: str) -> None:
        if self._notifier is None:
            return
        message = NotificationMessage(kind=kind.value, event_id=request_id, organizer_id=organizer_id)
        # Advisory only: the REST call already succeeded
        try:
            await self._notifier.send(NOTIFICATION_EVENT, message.to_payload())
        except Exception:
            logger.exception("notification_not_sent", kind=kind.value, request_id=request_id)


class OrganizerRequestBoard(_Board):
    """Organizer view: browse open requests, accept or reject them."""

    refresh_kinds = ORGANIZER_REFRESH_KINDS

    def __init__(
        self,
        api: EventRequestApi,
        identity: Optional[IdentityContext],
        notifier: Optional[Notifier] = None,
    ) -> None:
        super().__init__(api, identity, notifier)
        self.filter = ""  # "" means all event types
        self.search = ""
        self.proposed_budgets: dict[str, Any] = {}
        self._provisional: set[str] = set()

    async def _fetch(self) -> list[EventRequest]:
        return await self._api.list_open_requests(self.filter or None)

    async def load(self) -> bool:
        loaded = await super().load()
        self._provisional.clear()
        return loaded

    async def set_filter(self, event_type: Optional[str]) -> bool:
        self.filter = event_type or ""
        return await self.load()

    def set_search(self, term: str) -> None:
        self.search = term or ""

    @property
    def visible_requests(self) -> list[EventRequest]:
        return [
            request
            for request in self.requests
            if (not self.filter or request.event_type == self.filter)
            and request.matches_search(self.search)
        ]

    def set_proposed_budget(self, request_id: str, value: Any) -> None:
        self.proposed_budgets[str(request_id)] = value

    def is_locked(self, request: EventRequest) -> bool:
        return request.is_deal_done and request.id not in self._provisional

    def _actionable(self, request_id: str) -> Optional[EventRequest]:
        request = self.find(request_id)
        if request is not None and self.is_locked(request):
            raise RequestClosedError(request.id)
        return request

    async def accept(self, request_id: str, proposed_budget: Any = None) -> bool:
        request_id = str(request_id)
        if request_id in self._pending:
            logger.debug("event_request_action_ignored", request_id=request_id, reason="in_flight")
            return False

        try:
            organizer_id = self._require_identity()
            request = self._actionable(request_id)
        except (IdentityError, RequestClosedError) as e:
            record_action("accept", "refused")
            logger.warning("event_request_accept_refused", request_id=request_id, reason=e.code.value)
            self._alert(e.message, "error")
            return False

        raw_budget = proposed_budget if proposed_budget is not None else self.proposed_budgets.get(request_id)
        budget: Optional[float] = None
        if raw_budget is not None and not (isinstance(raw_budget, str) and not raw_budget.strip()):
            try:
                budget = parse_budget(raw_budget)
            except ValueError:
                record_action("accept", "refused")
                self._alert(BUDGET_INVALID, "error")
                return False

        self._pending.add(request_id)
        try:
            await self._api.accept_request(request_id, organizer_id, budget)
        except BackendError as e:
            record_action("accept", "failure")
            logger.warning("event_request_accept_failed", request_id=request_id, error=e.message)
            self._alert(_with_detail(ACCEPT_FAILED_MESSAGE, e), "error")
            return False
        finally:
            self._pending.discard(request_id)

        if request is not None:
            self._replace(apply_accept(request, organizer_id, budget))
            self._provisional.add(request_id)
        self.proposed_budgets.pop(request_id, None)

        record_action("accept", "success")
        logger.info(
            "event_request_accepted",
            request_id=request_id,
            organizer_id=organizer_id,
            proposed_budget=budget,
        )
        self._alert(ACCEPTED_MESSAGE)
        await self._notify(NotificationKind.EVENT_REQUEST_ACCEPTED, request_id, organizer_id)
        return True

    async def reject(self, request_id: str) -> bool:
        request_id = str(request_id)
        if request_id in self._pending:
            logger.debug("event_request_action_ignored", request_id=request_id, reason="in_flight")
            return False

        try:
            organizer_id = self._require_identity()
            self._actionable(request_id)
        except (IdentityError, RequestClosedError) as e:
            record_action("reject", "refused")
            logger.warning("event_request_reject_refused", request_id=request_id, reason=e.code.value)
            self._alert(e.message, "error")
            return False

        self._pending.add(request_id)
        try:
            await self._api.reject_request(request_id)
        except BackendError as e:
            record_action("reject", "failure")
            logger.warning("event_request_reject_failed", request_id=request_id, error=e.message)
            self._alert(_with_detail(REJECT_FAILED_MESSAGE, e), "error")
            return False
        finally:
            self._pending.discard(request_id)

        self.requests = [
            apply_reject(request, organizer_id) if request.id == request_id else request
            for request in self.requests
        ]
        # Rejected requests leave this organizer's list; other organizers are unaffected
        self.requests = [
            request for request in self.requests if not _rejected_by(request, organizer_id)
        ]
        self._provisional.discard(request_id)
        self.proposed_budgets.pop(request_id, None)

        record_action("reject", "success")
        logger.info("event_request_rejected", request_id=request_id, organizer_id=organizer_id)
        self._alert(REJECTED_MESSAGE)
        await self._notify(NotificationKind.EVENT_REQUEST_REJECTED, request_id, organizer_id)
        return True

    def _replace(self, updated: EventRequest) -> None:
        self.requests = [updated if request.id == updated.id else request for request in self.requests]


class RequesterRequestBoard(_Board):
    """Requester view: own requests, interested organizers, final selection."""

    refresh_kinds = REQUESTER_REFRESH_KINDS

    async def _fetch(self) -> list[EventRequest]:
        return await self._api.list_my_requests()

    @property
    def is_empty(self) -> bool:
        return not self.requests

    @property
    def empty_state_message(self) -> Optional[str]:
        """Guidance shown instead of the list, or None when there is a list."""
        if self.loading or self.error or not self.is_empty:
            return None
        return EMPTY_STATE_MESSAGE

    async def select_organizer(self, request_id: str, organizer_id: str) -> bool:
        request_id, organizer_id = str(request_id), str(organizer_id)
        if request_id in self._pending:
            logger.debug("organizer_selection_ignored", request_id=request_id, reason="in_flight")
            return False

        try:
            self._require_identity()
            request = self.find(request_id)
            if request is not None and request.is_deal_done:
                raise RequestClosedError(request_id)
        except (IdentityError, RequestClosedError) as e:
            record_action("select", "refused")
            logger.warning("organizer_selection_refused", request_id=request_id, reason=e.code.value)
            self._alert(e.message, "error")
            return False

        if request is not None and request.interest_for(organizer_id) is None:
            record_action("select", "refused")
            self._alert(NOT_INTERESTED_MESSAGE, "error")
            return False

        self._pending.add(request_id)
        try:
            await self._api.select_organizer(request_id, organizer_id)
        except BackendError as e:
            record_action("select", "failure")
            logger.warning("organizer_selection_failed", request_id=request_id, error=e.message)
            self._alert(e.server_message or SELECT_FAILED_MESSAGE, "error")
            return False
        finally:
            self._pending.discard(request_id)

        record_action("select", "success")
        logger.info("organizer_selected", request_id=request_id, organizer_id=organizer_id)
        self._alert(SELECTED_MESSAGE)
        self.needs_refresh = True
        await self._notify(NotificationKind.ORGANIZER_SELECTED, request_id, organizer_id)
        await self.refresh_if_needed()
        return True


def _with_detail(message: str, error: BackendError) -> str:
    if error.server_message:
        return f"{message}: {error.server_message}"
    return message


def _rejected_by(request: EventRequest, organizer_id: str) -> bool:
    interest = request.interest_for(organizer_id)
    return interest is not None and interest.status == InterestStatus.REJECTED
