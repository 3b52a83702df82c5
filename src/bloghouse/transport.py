"""
socket.io transport for provisioning events.

One ProvisioningTransport is opened per flow and torn down when the flow
closes. Reconnection is disabled: a dropped connection simply stops
delivering events. Every inbound event goes through a single dispatch point
that parses it into a typed event before handing it to subscribers.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from bloghouse.events import (
    EventNamespace,
    EventPayloadError,
    ProvisioningEvent,
    UnknownEventError,
    parse_event,
    split_event_name,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[ProvisioningEvent], Any]
StatusHandler = Callable[[bool], Any]

DEFAULT_TRANSPORTS = ["websocket", "polling"]


class TransportError(Exception):
    """Raised when the socket connection cannot be established."""
    pass


class ProvisioningTransport:
    """
    Authenticated socket.io connection exposing typed provisioning events.

    Usage:
        transport = ProvisioningTransport("http://localhost:3001")
        transport.subscribe(EventNamespace.SIMPLE_VPS, tracker.apply)
        await transport.connect(token)
        ...
        await transport.disconnect()
    """

    def __init__(
        self,
        url: str,
        client_factory: Callable[..., Any] = socketio.AsyncClient,
        transports: Optional[list[str]] = None,
        connect_timeout: float = 10.0,
    ):
        self.url = url
        self.transports = transports or list(DEFAULT_TRANSPORTS)
        self.connect_timeout = connect_timeout
        self._client_factory = client_factory
        self._client = None
        self._subscribers: dict[EventNamespace, list[EventHandler]] = {}
        self._status_handlers: list[StatusHandler] = []

    @property
    def is_connected(self) -> bool:
        return bool(self._client is not None and self._client.connected)

    def subscribe(self, namespace: EventNamespace, handler: EventHandler):
        """Deliver parsed events of a namespace to handler."""
        self._subscribers.setdefault(namespace, []).append(handler)

    def unsubscribe(self, namespace: EventNamespace, handler: EventHandler):
        handlers = self._subscribers.get(namespace, [])
        if handler in handlers:
            handlers.remove(handler)

    def on_status(self, handler: StatusHandler):
        """Register a callback for socket connect (True) / disconnect (False)."""
        self._status_handlers.append(handler)

    async def connect(self, token: str):
        """Open the connection, authenticating with the bearer token."""
        if self.is_connected:
            return

        # Never reuse a stale client
        if self._client is not None:
            await self.disconnect()

        client = self._client_factory(reconnection=False)
        client.on("connect", self._on_connect)
        client.on("disconnect", self._on_disconnect)
        client.on("*", self._dispatch)
        self._client = client

        logger.info(f"Connecting to {self.url}")
        try:
            await client.connect(
                self.url,
                auth={"token": token},
                transports=self.transports,
                wait_timeout=self.connect_timeout,
            )
        except SocketConnectionError as e:
            self._client = None
            raise TransportError(f"Could not connect to {self.url}: {e}") from e

    async def disconnect(self):
        """Tear down the connection unconditionally."""
        client, self._client = self._client, None
        if client is None:
            return
        logger.info(f"Disconnecting from {self.url}")
        await client.disconnect()

    async def _on_connect(self):
        logger.info("Socket connected")
        await self._notify_status(True)

    async def _on_disconnect(self, *args):
        logger.info("Socket disconnected")
        await self._notify_status(False)

    async def _notify_status(self, connected: bool):
        for handler in list(self._status_handlers):
            result = handler(connected)
            if asyncio.iscoroutine(result):
                await result

    async def _dispatch(self, event_name: str, *args):
        """Single entry point for every inbound event."""
        namespace, _ = split_event_name(event_name)
        if namespace is None or namespace not in self._subscribers:
            logger.debug(f"Ignoring event outside subscribed namespaces: {event_name}")
            return

        payload = args[0] if args else None
        try:
            event = parse_event(event_name, payload)
        except (UnknownEventError, EventPayloadError) as e:
            logger.warning(f"Dropping event {event_name}: {e}")
            return

        logger.debug(f"Received {event_name}")
        for handler in list(self._subscribers.get(namespace, [])):
            result = handler(event)
            if asyncio.iscoroutine(result):
                await result
