"""High-level async client mirroring the peer's live streams."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import partial
from typing import Any

import aiohttp

from pylivesync._api._protocol import MessageType, ProtocolMessage, build_complete
from pylivesync._api.operations import (
    build_send_message_request,
    build_subscription_request,
    command_error_from_frame,
    parse_send_message_result,
)
from pylivesync._registry import OperationKind, OperationRegistry
from pylivesync._transport import Transport, TransportState, WebSocketTransport
from pylivesync.config import SyncConfig
from pylivesync.exceptions import (
    ClientStoppedError,
    CommandError,
    StartupError,
    SyncError,
    SyncTransportError,
)
from pylivesync.ingestion.decode import extract_event_payload
from pylivesync.models.message import Message
from pylivesync.models.settings import Settings
from pylivesync.models.status import SystemStatus
from pylivesync.state.events import EventEnvelope, Topic
from pylivesync.state.store import SliceListener, SliceStore

_logger = logging.getLogger(__name__)

ConnectionStateCallback = Callable[[TransportState, BaseException | None], None]


@dataclass(frozen=True, slots=True)
class SubscriptionHandle:
    """An active topic subscription owned by the client."""

    operation_id: str
    topic: Topic
    teardown: Callable[[], Awaitable[None]] = field(repr=False, compare=False)


@dataclass(slots=True)
class _PendingCommand:
    """Correlation between a command's operation id and its waiting caller."""

    operation_id: str
    future: asyncio.Future[Message]


def _settle(future: asyncio.Future[Any], error: BaseException) -> None:
    if not future.done():
        future.set_exception(error)


class SyncClient:
    """Async client keeping a live local mirror of the peer's topics.

    Usage::

        async with SyncClient(SyncConfig(endpoint="ws://localhost:4000/graphql")) as client:
            client.add_listener(lambda topic: print(topic, client.current_status()))
            await client.send_command("hello")
    """

    def __init__(
        self,
        config: SyncConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport_factory: Callable[[], Transport] | None = None,
        on_connection_state: ConnectionStateCallback | None = None,
    ) -> None:
        self._config = config or SyncConfig()
        self._http_session = session
        self._transport_factory = transport_factory or self._default_transport
        self._on_connection_state = on_connection_state
        self._registry = OperationRegistry()
        self._store = SliceStore()
        self._transport: Transport | None = None
        self._startup: asyncio.Task[None] | None = None
        # Last transport handed out by start(); lifecycle events from older ones are ignored.
        self._started_transport: Transport | None = None
        self._subscriptions: dict[Topic, SubscriptionHandle] = {}
        self._pending: dict[str, _PendingCommand] = {}
        self._message_waiters: set[asyncio.Future[Message]] = set()
        self._connection_state = TransportState.IDLE

    def _default_transport(self) -> Transport:
        return WebSocketTransport(self._config, http_session=self._http_session)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SyncClient:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    @property
    def connection_state(self) -> TransportState:
        return self._connection_state

    @property
    def subscriptions(self) -> list[SubscriptionHandle]:
        return list(self._subscriptions.values())

    @property
    def is_sending(self) -> bool:
        """``True`` while at least one ``send_command`` awaits its response."""
        return bool(self._pending)

    async def start(self) -> None:
        """Open the transport, then subscribe to every topic.

        Concurrent callers share one startup and all see its outcome.
        """
        if self._startup is None:
            if self._transport is not None:
                return
            self._startup = asyncio.create_task(self._start(), name="pylivesync-start")
        await asyncio.shield(self._startup)

    async def _start(self) -> None:
        try:
            await self._open_and_subscribe()
        finally:
            self._startup = None

    async def _open_and_subscribe(self) -> None:
        transport = self._transport_factory()
        self._transport = transport
        self._started_transport = transport
        transport.on_frame(self._dispatch)
        transport.on_state_change(partial(self._on_transport_state, transport))

        try:
            await transport.open(self._config.endpoint)
            for topic in Topic:
                if self._transport is not transport:
                    raise ClientStoppedError("Client stopped during startup")
                await self._subscribe(transport, topic)
        except Exception as exc:
            _logger.warning("Startup against %s failed: %s", self._config.endpoint, exc)
            if self._transport is transport:
                await self.stop()
            else:
                await transport.close()
            raise StartupError(f"Failed to start sync client: {exc}") from exc

        _logger.debug("Sync client started endpoint=%s", self._config.endpoint)

    async def stop(self) -> None:
        """Unsubscribe, reject outstanding work and close the transport.

        Never waits on the peer; safe to call at any point and repeatedly.
        """
        transport = self._transport
        self._transport = None
        handles = list(self._subscriptions.values())
        self._subscriptions.clear()

        try:
            for handle in handles:
                await handle.teardown()
        finally:
            stopped = ClientStoppedError("Client stopped")
            for pending in list(self._pending.values()):
                _settle(pending.future, stopped)
            for waiter in list(self._message_waiters):
                _settle(waiter, stopped)
            if transport is not None:
                await transport.close()
                _logger.debug("Sync client stopped")

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise ClientStoppedError("Client is not running; call start() first")
        return self._transport

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def _subscribe(self, transport: Transport, topic: Topic) -> SubscriptionHandle:
        operation_id = self._registry.next_id()
        self._registry.register(
            operation_id,
            OperationKind.SUBSCRIPTION,
            partial(self._on_subscription_frame, topic),
        )
        handle = SubscriptionHandle(
            operation_id=operation_id,
            topic=topic,
            teardown=partial(self._unsubscribe, transport, operation_id),
        )
        self._subscriptions[topic] = handle
        await transport.send(build_subscription_request(operation_id, topic))
        _logger.debug("Subscribed topic=%s id=%s", topic, operation_id)
        return handle

    async def _unsubscribe(self, transport: Transport, operation_id: str) -> None:
        if self._registry.unregister(operation_id) is None:
            return
        if transport.state != TransportState.OPEN:
            return
        try:
            await transport.send(build_complete(operation_id))
        except SyncTransportError:
            _logger.debug("Unsubscribe id=%s not delivered", operation_id, exc_info=True)

    def _release_subscription(self, topic: Topic, operation_id: str) -> None:
        self._registry.unregister(operation_id)
        handle = self._subscriptions.get(topic)
        if handle is not None and handle.operation_id == operation_id:
            del self._subscriptions[topic]

    def _on_subscription_frame(self, topic: Topic, frame: ProtocolMessage) -> None:
        operation_id = frame.id or ""
        if frame.type == MessageType.NEXT:
            payload = extract_event_payload(topic, frame.payload)
            if payload is None:
                return
            self._store.apply(EventEnvelope(topic=topic, payload=payload, operation_id=operation_id))
            return
        if frame.type == MessageType.ERROR:
            _logger.warning("Subscription %s (id=%s) failed: %s", topic, operation_id, frame.payload)
        else:
            _logger.info("Subscription %s (id=%s) completed by peer", topic, operation_id)
        self._release_subscription(topic, operation_id)

    # ------------------------------------------------------------------
    # Inbound dispatch & lifecycle
    # ------------------------------------------------------------------

    def _dispatch(self, frame: ProtocolMessage) -> None:
        if frame.id is None:
            return
        self._registry.dispatch(frame.id, frame)

    def _on_transport_state(
        self,
        transport: Transport,
        state: TransportState,
        error: BaseException | None,
    ) -> None:
        if transport is not self._started_transport:
            return
        self._connection_state = state

        if state in (TransportState.ERRORED, TransportState.CLOSED) and self._pending:
            _logger.warning("Connection %s; rejecting %d outstanding command(s)", state, len(self._pending))
            for pending in list(self._pending.values()):
                lost = CommandError(
                    f"Connection {state} before a response arrived",
                    operation_id=pending.operation_id,
                )
                lost.__cause__ = error
                _settle(pending.future, lost)

        callback = self._on_connection_state
        if callback is None:
            return
        try:
            callback(state, error)
        except Exception:
            _logger.debug("on_connection_state callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Slices
    # ------------------------------------------------------------------

    def current_messages(self) -> list[Message]:
        """Messages received so far, in arrival order, unique by id."""
        return list(self._store.messages)

    def current_status(self) -> SystemStatus | None:
        """Latest status, or ``None`` before the first status event."""
        return self._store.status

    def current_settings(self) -> Settings | None:
        """Latest settings, or ``None`` before the first settings event."""
        return self._store.settings

    def add_listener(self, listener: SliceListener) -> Callable[[], None]:
        """Call *listener(topic)* after each slice change; returns a remover."""
        return self._store.add_listener(listener)

    async def wait_for_message(self, message_id: str, *, timeout: float | None = None) -> Message | None:
        """Wait until a message with *message_id* is in the message slice.

        Returns ``None`` on timeout. Raises :class:`ClientStoppedError` when
        the client stops while waiting.
        """
        existing = self._store.find_message(message_id)
        if existing is not None:
            return existing

        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[Message] = loop.create_future()

        def _listener(topic: Topic) -> None:
            if topic != Topic.MESSAGE_ADDED or waiter.done():
                return
            found = self._store.find_message(message_id)
            if found is not None:
                waiter.set_result(found)

        remove = self._store.add_listener(_listener)
        self._message_waiters.add(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout)
        except TimeoutError:
            return None
        finally:
            remove()
            self._message_waiters.discard(waiter)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_command(self, text: str) -> Message:
        """Send a ``sendMessage`` mutation and wait for its direct response.

        The returned message is what the peer reports as created. It shows
        up in :meth:`current_messages` only when the matching
        ``messageAdded`` event arrives, which is a separate delivery.
        """
        trimmed = text.strip()
        if not trimmed:
            raise ValueError("Command text must not be empty")
        transport = self._require_transport()

        loop = asyncio.get_running_loop()
        operation_id = self._registry.next_id()
        pending = _PendingCommand(operation_id=operation_id, future=loop.create_future())
        self._registry.register(operation_id, OperationKind.COMMAND, partial(self._on_command_frame, pending))
        self._pending[operation_id] = pending

        try:
            try:
                await transport.send(build_send_message_request(operation_id, trimmed))
            except SyncTransportError as exc:
                if pending.future.done():
                    return pending.future.result()
                raise CommandError(f"Failed to send command: {exc}", operation_id=operation_id) from exc

            timeout = self._config.command_timeout
            try:
                return await asyncio.wait_for(pending.future, timeout)
            except TimeoutError as exc:
                await self._abandon(transport, operation_id)
                raise CommandError(
                    f"No response to command within {timeout}s",
                    operation_id=operation_id,
                ) from exc
        finally:
            self._pending.pop(operation_id, None)
            self._registry.unregister(operation_id)

    async def _abandon(self, transport: Transport, operation_id: str) -> None:
        if transport.state != TransportState.OPEN:
            return
        try:
            await transport.send(build_complete(operation_id))
        except SyncError:
            _logger.debug("Could not complete abandoned command id=%s", operation_id, exc_info=True)

    def _on_command_frame(self, pending: _PendingCommand, frame: ProtocolMessage) -> None:
        future = pending.future
        if future.done():
            return
        if frame.type == MessageType.NEXT:
            try:
                message = parse_send_message_result(pending.operation_id, frame.payload)
            except CommandError as exc:
                future.set_exception(exc)
            else:
                _logger.debug("Command id=%s resolved message id=%s", pending.operation_id, message.id)
                future.set_result(message)
        elif frame.type == MessageType.ERROR:
            future.set_exception(command_error_from_frame(pending.operation_id, frame.payload))
        else:
            future.set_exception(
                CommandError("Peer completed the command without a result", operation_id=pending.operation_id)
            )
