"""
Pytest fixtures: in-process backend, credentials, API clients and notifiers.

The backend is a FastAPI app served through httpx.ASGITransport, so the
client's real HTTP code runs against it without a network.
"""

from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio

from eventa.api.client import EventRequestApi
from eventa.core.config import Settings
from eventa.core.security import IdentityContext
from eventa.infrastructure.relay import NotificationRelay
from eventa.services.interfaces.notifier import Notifier
from eventa.services.interfaces.null_notifier import NullNotifier
from fake_backend import FakeBackend, create_app
from helpers import (
    OTHER_ORGANIZER_ID,
    ORGANIZER_ID,
    REQUESTER_ID,
    BrokenNotifier,
    RecordingNotifier,
    make_token,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        API_BASE_URL="http://test/api/v1",
        NOTIFICATIONS_ENABLED=False,
        FORM_DISMISS_SECONDS=0.01,
        RECONNECT_DELAY_SECONDS=0,
        HTTP_TIMEOUT=5.0,
    )


@pytest.fixture
def backend() -> FakeBackend:
    backend = FakeBackend()
    backend.add_user(REQUESTER_ID, "Jane Doe", "jane@example.com")
    backend.add_user(ORGANIZER_ID, "Org Seven", "seven@events.example.com", role="organizer")
    backend.add_user(OTHER_ORGANIZER_ID, "Org Eight", "eight@events.example.com", role="organizer")
    return backend


@pytest.fixture
def transport(backend: FakeBackend) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=create_app(backend))


@pytest.fixture
def requester_token() -> str:
    return make_token(REQUESTER_ID, fullname="Jane Doe", email="jane@example.com")


@pytest.fixture
def organizer_token() -> str:
    return make_token(ORGANIZER_ID, role="organizer")


@pytest.fixture
def requester_identity(requester_token: str) -> IdentityContext:
    return IdentityContext.from_token(requester_token)


@pytest.fixture
def organizer_identity(organizer_token: str) -> IdentityContext:
    return IdentityContext.from_token(organizer_token)


@pytest_asyncio.fixture
async def make_api(
    settings: Settings, transport: httpx.ASGITransport
) -> AsyncGenerator[Callable[[str | None], EventRequestApi], None]:
    """Factory for API clients bound to the fake backend; all are closed after the test."""
    clients: list[EventRequestApi] = []

    def factory(token: str | None) -> EventRequestApi:
        api = EventRequestApi(token=token, settings=settings, transport=transport)
        clients.append(api)
        return api

    yield factory

    for api in clients:
        await api.aclose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(params=["null", "closed_relay", "broken"])
def unreliable_notifier(request) -> Notifier:
    """Notifiers that never deliver: disabled, never connected, or raising."""
    if request.param == "null":
        return NullNotifier()
    if request.param == "closed_relay":
        return NotificationRelay("ws://unreachable.test/ws")
    return BrokenNotifier()
