"""Shared test helpers: credentials and an in-memory notifier."""

from typing import Any

import jwt

from eventa.services.interfaces.notifier import Handler, Notifier

REQUESTER_ID = "user1"
ORGANIZER_ID = "org7"
OTHER_ORGANIZER_ID = "org8"


def make_token(user_id: str | None, role: str = "user", exp: Any = None, **user_claims: Any) -> str:
    """JWT shaped like the backend's; the client never checks the signature."""
    user = {"role": role, **user_claims}
    if user_id is not None:
        user["id"] = user_id
    claims: dict[str, Any] = {"user": user}
    if exp is not None:
        claims["exp"] = exp
    return jwt.encode(claims, "test-secret", algorithm="HS256")


class RecordingNotifier(Notifier):
    """Notifier that records sends and lets tests push messages in."""

    def __init__(self, accept_sends: bool = True) -> None:
        self.accept_sends = accept_sends
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.handlers: dict[str, list[Handler]] = {}

    async def send(self, event: str, payload: dict[str, Any]) -> bool:
        self.sent.append((event, payload))
        return self.accept_sends

    def on(self, event: str, handler: Handler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Handler) -> None:
        if handler in self.handlers.get(event, []):
            self.handlers[event].remove(handler)

    def emit(self, event: str, message: dict[str, Any]) -> None:
        for handler in list(self.handlers.get(event, [])):
            handler(message)


class BrokenNotifier(RecordingNotifier):
    """Notifier whose send blows up."""

    async def send(self, event: str, payload: dict[str, Any]) -> bool:
        self.sent.append((event, payload))
        raise ConnectionResetError("push channel went away")
