"""
In-process stand-in for the eventA REST backend.

Implements the event request endpoints with an in-memory store so the client
can be exercised end to end through httpx.ASGITransport.
"""

import itertools
from datetime import datetime, timezone
from typing import Any, Optional

import jwt
from fastapi import APIRouter, Body, Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse


class BackendFailure(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message


class FakeBackend:
    """Store plus call log. Set `fail_next` to make the next call fail."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.requests: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_next: Optional[tuple[int, str]] = None
        self._ids = itertools.count(1)

    def add_user(self, user_id: str, fullname: str, email: str, role: str = "user") -> None:
        self.users[user_id] = {"_id": user_id, "fullname": fullname, "email": email, "role": role}

    def add_request(self, requester_id: str, request_id: Optional[str] = None, **fields: Any) -> str:
        request_id = request_id or str(next(self._ids))
        self.requests[request_id] = {
            "_id": request_id,
            "userId": requester_id,
            "eventType": fields.get("eventType", "Wedding"),
            "venue": fields.get("venue", "Hall A"),
            "date": fields.get("date", "2025-12-01"),
            "budget": fields.get("budget", 500),
            "description": fields.get("description", "A small reception"),
            "status": fields.get("status", "open"),
            "interestedOrganizers": list(fields.get("interestedOrganizers", [])),
        }
        return request_id

    def interest(self, request_id: str, organizer_id: str) -> Optional[dict[str, Any]]:
        for interest in self.requests[request_id]["interestedOrganizers"]:
            if interest["organizerId"] == organizer_id:
                return interest
        return None

    def upsert_interest(self, request_id: str, organizer_id: str, **fields: Any) -> None:
        interest = self.interest(request_id, organizer_id)
        if interest is None:
            interest = {"organizerId": organizer_id}
            self.requests[request_id]["interestedOrganizers"].append(interest)
        interest.update(fields)

    def count(self, method: str, suffix: str) -> int:
        return sum(1 for m, path in self.calls if m == method and path.endswith(suffix))


def _requester(backend: FakeBackend, user_id: str) -> dict[str, Any]:
    user = backend.users.get(user_id, {"_id": user_id})
    return {"_id": user["_id"], "fullname": user.get("fullname"), "email": user.get("email")}


def _organizer_view(backend: FakeBackend, record: dict[str, Any]) -> dict[str, Any]:
    return {**record, "userId": _requester(backend, record["userId"])}


def _requester_view(backend: FakeBackend, record: dict[str, Any]) -> dict[str, Any]:
    organizers = []
    for interest in record["interestedOrganizers"]:
        user = backend.users.get(interest["organizerId"], {})
        organizers.append(
            {
                **interest,
                "fullname": user.get("fullname"),
                "contact": user.get("email"),
            }
        )
    return {
        "eventId": record["_id"],
        "eventType": record["eventType"],
        "venue": record["venue"],
        "date": record["date"],
        "budget": record["budget"],
        "description": record["description"],
        "status": record["status"],
        "organizers": organizers,
    }


def create_app(backend: FakeBackend) -> FastAPI:
    app = FastAPI()

    @app.exception_handler(BackendFailure)
    async def backend_failure_handler(request: Request, exc: BackendFailure) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    async def record_call(request: Request) -> None:
        backend.calls.append((request.method, request.url.path))
        if backend.fail_next is not None:
            status_code, message = backend.fail_next
            backend.fail_next = None
            raise BackendFailure(status_code, message)

    def current_user_id(authorization: Optional[str] = Header(None)) -> str:
        if not authorization or not authorization.startswith("Bearer "):
            raise BackendFailure(401, "Not authenticated")
        claims = jwt.decode(authorization[len("Bearer "):], options={"verify_signature": False})
        return str(claims["user"]["id"])

    def get_record(request_id: str) -> dict[str, Any]:
        record = backend.requests.get(request_id)
        if record is None:
            raise BackendFailure(404, "Event request not found")
        return record

    router = APIRouter(prefix="/api/v1/eventrequest", dependencies=[Depends(record_call)])

    @router.post("")
    async def create_request(
        payload: dict[str, Any] = Body(...),
        user_id: str = Depends(current_user_id),
    ):
        backend.add_request(user_id, **payload)
        return {"success": True, "message": "Event request created successfully"}

    @router.get("/event-requests")
    async def list_requests(
        event_type: Optional[str] = Query(None, alias="eventType"),
        user_id: str = Depends(current_user_id),
    ):
        results = []
        for record in backend.requests.values():
            if event_type and record["eventType"] != event_type:
                continue
            interest = backend.interest(record["_id"], user_id)
            if interest is not None and interest.get("status") == "rejected":
                continue
            results.append(_organizer_view(backend, record))
        return results

    @router.put("/event-request/select-organizer")
    async def select_organizer(
        payload: dict[str, Any] = Body(...),
        user_id: str = Depends(current_user_id),
    ):
        record = get_record(str(payload.get("eventId")))
        if record["userId"] != user_id:
            raise BackendFailure(403, "Not your event request")
        if record["status"] == "deal_done":
            raise BackendFailure(409, "Organizer already selected")
        interest = backend.interest(record["_id"], str(payload.get("organizerId")))
        if interest is None or interest.get("status") != "accepted":
            raise BackendFailure(400, "Organizer has not accepted this request")
        record["status"] = "deal_done"
        return {"success": True}

    @router.put("/event-request/{request_id}/accept")
    async def accept_request(
        request_id: str,
        payload: dict[str, Any] = Body(...),
        user_id: str = Depends(current_user_id),
    ):
        record = get_record(request_id)
        if record["status"] == "deal_done":
            raise BackendFailure(409, "Event request is already closed")
        budget = payload.get("proposedBudget")
        backend.upsert_interest(
            request_id,
            str(payload.get("organizerId") or user_id),
            status="accepted",
            proposedBudget=budget if budget is not None else record["budget"],
            responseDate=datetime.now(timezone.utc).isoformat(),
            message="Happy to organize this event",
        )
        return {"success": True}

    @router.put("/event-request/{request_id}/reject")
    async def reject_request(request_id: str, user_id: str = Depends(current_user_id)):
        record = get_record(request_id)
        if record["status"] == "deal_done":
            raise BackendFailure(409, "Event request is already closed")
        backend.upsert_interest(
            request_id,
            user_id,
            status="rejected",
            responseDate=datetime.now(timezone.utc).isoformat(),
        )
        return {"success": True}

    @router.get("/event-requests-for-user")
    async def list_user_requests(user_id: str = Depends(current_user_id)):
        own = [r for r in backend.requests.values() if r["userId"] == user_id]
        return {"eventRequests": [_requester_view(backend, r) for r in own]}

    app.include_router(router)
    return app
