"""
Notification relay over a persistent WebSocket.

RECONNECTION POLICY
===================

  On connection loss (or a failed connect) the relay waits a flat
  RECONNECT_DELAY_SECONDS and tries again, incrementing `reconnect_attempts`
  before each try. When a failure happens with the counter already at
  MAX_RECONNECT_ATTEMPTS the relay moves to LOST, which is terminal: the user
  has to start a new session. A successful connect resets the counter.

  Only the relay's own loop writes the counter and the state.

DELIVERY
========

  Frames are JSON objects `{"type": <event>, ...payload}`. Incoming frames are
  routed to the handlers registered for their type. Sends are at-most-once
  and best-effort: a send on a closed socket is logged and reported as False.
  The REST call that triggered the notification is the source of truth.

  Every state change is also published locally as a `connection_status`
  message so a status banner can subscribe like any other consumer.
"""

import asyncio
import contextlib
import inspect
import json
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from eventa.core.logging import get_logger
from eventa.core.metrics import (
    notification_send_failures,
    relay_connected,
    relay_reconnect_attempts,
)
from eventa.schemas.notification import CONNECTION_STATUS_EVENT, ConnectionStatus
from eventa.services.interfaces.notifier import Handler, Notifier

logger = get_logger(__name__)

Connector = Callable[[str, dict[str, str]], Awaitable[Any]]


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    LOST = "lost"
    CLOSED = "closed"


class NotificationRelay(Notifier):
    """Publish/subscribe registry bound to one WebSocket connection."""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        max_reconnect_attempts: int = 3,
        reconnect_delay: float = 2.0,
        heartbeat: Optional[float] = 30.0,
        connector: Optional[Connector] = None,
    ) -> None:
        self.url = url
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self._heartbeat = heartbeat
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._connector = connector or self._aiohttp_connect
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Any = None
        self._task: Optional[asyncio.Task] = None

        self.state = ConnectionState.IDLE
        self.reconnect_attempts = 0

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def status(self) -> ConnectionStatus:
        return ConnectionStatus(
            connected=self.is_connected,
            reconnect_attempts=self.reconnect_attempts,
            max_reconnect_attempts=self.max_reconnect_attempts,
            lost=self.state is ConnectionState.LOST,
        )

    # Subscriptions

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        with contextlib.suppress(ValueError):
            handlers.remove(handler)
        if not handlers:
            del self._handlers[event]

    # Lifecycle

    async def connect(self) -> None:
        """Start the connection loop in the background."""
        if self._task is not None and not self._task.done():
            return
        if self.state is ConnectionState.LOST:
            logger.warning("relay_connect_refused", url=self.url, reason="connection_lost")
            return

        # A fresh connection gets the full retry budget
        self.reconnect_attempts = 0
        self.state = ConnectionState.CONNECTING
        self._task = asyncio.create_task(self._run())

    async def wait_closed(self) -> None:
        """Wait until the connection loop ends (LOST or CLOSED)."""
        if self._task is not None:
            await self._task

    async def disconnect(self) -> None:
        if self.state is not ConnectionState.LOST:
            self.state = ConnectionState.CLOSED

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        await self._close_socket()
        if self._session is not None:
            await self._session.close()
            self._session = None

        relay_connected.set(0)
        logger.info("relay_disconnected", url=self.url)

    async def _aiohttp_connect(self, url: str, headers: dict[str, str]) -> aiohttp.ClientWebSocketResponse:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return await self._session.ws_connect(url, headers=headers, heartbeat=self._heartbeat)

    async def _run(self) -> None:
        while True:
            try:
                self._ws = await self._connector(self.url, self._headers)
            except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
                logger.warning("relay_connect_failed", url=self.url, error=str(e))
            else:
                await self._on_open()
                await self._listen()
                await self._close_socket()
                if self.state is ConnectionState.CLOSED:
                    return
                relay_connected.set(0)
                logger.warning("relay_connection_dropped", url=self.url)

            if not await self._schedule_reconnect():
                return

    async def _on_open(self) -> None:
        self.reconnect_attempts = 0
        self.state = ConnectionState.CONNECTED
        relay_connected.set(1)
        logger.info("relay_connected", url=self.url)
        await self._publish_status()

    async def _listen(self) -> None:
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    await self._dispatch(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.warning("relay_socket_error", error=str(msg.data))
                    break
        except (aiohttp.ClientError, OSError) as e:
            logger.warning("relay_receive_failed", error=str(e))

    async def _schedule_reconnect(self) -> bool:
        """Count one more attempt and wait, or give up. Returns False when LOST."""
        if self.reconnect_attempts >= self.max_reconnect_attempts:
            await self._mark_lost()
            return False

        self.reconnect_attempts += 1
        self.state = ConnectionState.RECONNECTING
        relay_reconnect_attempts.inc()
        logger.info(
            "relay_reconnecting",
            attempt=self.reconnect_attempts,
            max_attempts=self.max_reconnect_attempts,
            delay=self.reconnect_delay,
        )
        await self._publish_status()
        await asyncio.sleep(self.reconnect_delay)
        return True

    async def _mark_lost(self) -> None:
        if self.state is ConnectionState.LOST:
            return
        self.state = ConnectionState.LOST
        relay_connected.set(0)
        logger.error(
            "relay_connection_lost",
            url=self.url,
            attempts=self.reconnect_attempts,
        )
        await self._publish_status()

    async def _close_socket(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None and not ws.closed:
            await ws.close()

    # Delivery

    async def send(self, event: str, payload: dict[str, Any]) -> bool:
        ws = self._ws
        if ws is None or ws.closed or not self.is_connected:
            logger.warning(
                "notification_not_sent",
                channel=event,
                reason="socket_not_open",
                state=self.state.value,
            )
            notification_send_failures.labels(event=event).inc()
            return False

        frame = {**payload, "type": event}
        try:
            await ws.send_str(json.dumps(frame, default=str))
        except (aiohttp.ClientError, ConnectionError, RuntimeError) as e:
            logger.warning("notification_not_sent", channel=event, reason="send_failed", error=str(e))
            notification_send_failures.labels(event=event).inc()
            return False

        logger.debug("notification_sent", channel=event)
        return True

    async def _dispatch(self, raw: str) -> None:
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("relay_frame_undecodable", size=len(raw))
            return

        if not isinstance(message, dict) or not isinstance(message.get("type"), str):
            logger.warning("relay_frame_untyped")
            return

        await self._deliver(message["type"], message)

    async def _deliver(self, event: str, message: dict[str, Any]) -> None:
        # Copy: handlers may unregister themselves while being called
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(message)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("relay_handler_failed", channel=event)

    async def _publish_status(self) -> None:
        message = {"type": CONNECTION_STATUS_EVENT, **self.status.model_dump(by_alias=True)}
        await self._deliver(CONNECTION_STATUS_EVENT, message)
