"""
eventA client session - composition root.

Wires one caller's workflow components together:
- Identity resolved once from the bearer credential
- REST client scoped to that credential
- Push channel (relay or null notifier) shared by every component
- Submission form, organizer board and requester board
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx

from eventa.api.client import EventRequestApi
from eventa.core.config import Settings, get_settings
from eventa.core.errors import IdentityError
from eventa.core.logging import setup_logging, get_logger
from eventa.core.security import IdentityContext
from eventa.infrastructure.relay import NotificationRelay
from eventa.services.interfaces.notifier import Notifier
from eventa.services.matching_service import OrganizerRequestBoard, RequesterRequestBoard
from eventa.services.notifier_factory import get_notifier
from eventa.services.submission_service import RequestSubmissionForm


@dataclass
class Session:
    settings: Settings
    identity: Optional[IdentityContext]
    identity_error: Optional[str]
    api: EventRequestApi
    notifier: Notifier
    submission: RequestSubmissionForm
    organizer_board: OrganizerRequestBoard
    requester_board: RequesterRequestBoard


@asynccontextmanager
async def open_session(
    token: Optional[str],
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    notifier: Optional[Notifier] = None,
) -> AsyncIterator[Session]:
    """Session lifecycle: startup and shutdown hooks."""
    settings = settings or get_settings()
    setup_logging(settings)
    logger = get_logger(__name__)

    logger.info(
        "session_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    # Write actions alert on a missing identity; reads still work
    identity: Optional[IdentityContext] = None
    identity_error: Optional[str] = None
    try:
        identity = IdentityContext.from_token(token)
    except IdentityError as e:
        identity_error = e.message
        logger.warning("identity_unavailable", reason=e.code.value)

    api = EventRequestApi(
        token=identity.token if identity else None,
        settings=settings,
        transport=transport,
    )
    notifier = notifier or get_notifier(settings, identity.token if identity else None)

    organizer_board = OrganizerRequestBoard(api, identity, notifier)
    requester_board = RequesterRequestBoard(api, identity, notifier)
    organizer_board.attach(notifier)
    requester_board.attach(notifier)

    session = Session(
        settings=settings,
        identity=identity,
        identity_error=identity_error,
        api=api,
        notifier=notifier,
        submission=RequestSubmissionForm(api, notifier, settings),
        organizer_board=organizer_board,
        requester_board=requester_board,
    )

    if isinstance(notifier, NotificationRelay):
        await notifier.connect()

    try:
        yield session
    finally:
        organizer_board.detach()
        requester_board.detach()
        if isinstance(notifier, NotificationRelay):
            await notifier.disconnect()
        await api.aclose()
        logger.info("session_closed")
