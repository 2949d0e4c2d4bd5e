"""WebSocket transport speaking ``graphql-transport-ws`` over aiohttp."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

import aiohttp

from pylivesync._api._protocol import (
    OPERATION_TYPES,
    MessageType,
    ProtocolMessage,
    build_connection_init,
    build_pong,
    parse_frame,
)
from pylivesync._constants import GRAPHQL_WS_SUBPROTOCOL, NORMAL_CLOSE_CODE, USER_AGENT
from pylivesync._redact import redact_for_log
from pylivesync.config import SyncConfig
from pylivesync.exceptions import SyncConnectionError, SyncProtocolError, SyncTransportError

_logger = logging.getLogger(__name__)


class TransportState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
    ERRORED = "errored"


FrameCallback = Callable[[ProtocolMessage], None]
StateCallback = Callable[[TransportState, BaseException | None], None]


class Transport(Protocol):
    """Structural transport interface used by the client.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`WebSocketTransport`) concrete.
    """

    @property
    def state(self) -> TransportState:
        ...

    async def open(self, endpoint: str | None = None) -> None:
        ...

    async def send(self, frame: ProtocolMessage) -> None:
        ...

    def on_frame(self, callback: FrameCallback) -> None:
        ...

    def on_state_change(self, callback: StateCallback) -> None:
        ...

    async def close(self) -> None:
        ...


class WebSocketTransport:
    """One persistent WebSocket connection to the GraphQL peer.

    Inbound frames are read by a single task and handed to the registered
    frame callback one at a time, in arrival order. ``ping`` frames are
    answered here and never reach the callback.

    A transport is single-use: once closed or errored it cannot be reopened.
    """

    def __init__(
        self,
        config: SyncConfig,
        *,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._http = http_session
        self._owns_http = False
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task[None] | None = None
        self._state = TransportState.IDLE
        self._endpoint = config.endpoint
        self._frame_callback: FrameCallback | None = None
        self._state_callback: StateCallback | None = None

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def on_frame(self, callback: FrameCallback) -> None:
        """Register the single dispatcher for operation frames."""
        self._frame_callback = callback

    def on_state_change(self, callback: StateCallback) -> None:
        """Register the lifecycle listener."""
        self._state_callback = callback

    def _set_state(self, state: TransportState, error: BaseException | None = None) -> None:
        if state == self._state:
            return
        _logger.debug("Transport state %s -> %s endpoint=%s", self._state, state, self._endpoint)
        self._state = state
        callback = self._state_callback
        if callback is None:
            return
        try:
            callback(state, error)
        except Exception:
            _logger.warning("Transport state callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, endpoint: str | None = None) -> None:
        """Connect and complete the ``connection_init`` / ``connection_ack`` handshake."""
        url = endpoint or self._config.endpoint
        if self._state != TransportState.IDLE:
            raise SyncConnectionError(f"Transport cannot be opened from state {self._state}", endpoint=url)
        self._endpoint = url
        self._set_state(TransportState.CONNECTING)

        timeout = self._config.connect_timeout
        try:
            await asyncio.wait_for(self._handshake(url), timeout)
        except SyncConnectionError as exc:
            await self._abort(exc)
            raise
        except TimeoutError as exc:
            error = SyncConnectionError(f"Handshake with {url} timed out after {timeout}s", endpoint=url)
            await self._abort(error)
            raise error from exc
        except asyncio.CancelledError:
            await self._abort(None)
            raise
        except Exception as exc:
            error = SyncConnectionError(f"Cannot connect to {url}: {exc}", endpoint=url)
            await self._abort(error)
            raise error from exc

        ws = self._ws
        if self._state != TransportState.CONNECTING or ws is None:
            # close() ran while the handshake was in flight.
            await self._release()
            raise SyncConnectionError("Transport closed during handshake", endpoint=url)

        self._reader = asyncio.create_task(self._read_loop(ws), name="pylivesync-reader")
        self._set_state(TransportState.OPEN)
        _logger.debug("WebSocket open endpoint=%s protocol=%s", url, ws.protocol)

    async def _handshake(self, url: str) -> None:
        session = self._ensure_http()
        ws = await session.ws_connect(
            url,
            protocols=(GRAPHQL_WS_SUBPROTOCOL,),
            heartbeat=self._config.heartbeat,
        )
        self._ws = ws
        if ws.protocol != GRAPHQL_WS_SUBPROTOCOL:
            _logger.debug("Peer did not confirm sub-protocol (got %r)", ws.protocol)

        await self._write(ws, build_connection_init(self._config.connection_params))
        while True:
            msg = await ws.receive()
            if msg.type != aiohttp.WSMsgType.TEXT:
                raise SyncConnectionError(
                    f"Connection closed during handshake (message={msg.type.name}, close_code={ws.close_code})",
                    endpoint=url,
                    close_code=ws.close_code,
                )
            frame = parse_frame(msg.data)
            self._trace("recv", frame)
            if frame.type == MessageType.CONNECTION_ACK:
                return
            if frame.type == MessageType.PING:
                await self._write(ws, build_pong())
                continue
            if frame.type == MessageType.PONG:
                continue
            raise SyncConnectionError(f"Unexpected {frame.type} frame during handshake", endpoint=url)

    def _ensure_http(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = aiohttp.ClientSession(headers={"User-Agent": USER_AGENT})
            self._owns_http = True
        return self._http

    async def _abort(self, error: BaseException | None) -> None:
        await self._release()
        if self._state == TransportState.CONNECTING:
            self._set_state(TransportState.ERRORED, error)

    async def _release(self) -> None:
        """Close the socket and the session we created, if any."""
        ws, self._ws = self._ws, None
        http = self._http if self._owns_http else None
        if http is not None:
            self._http = None
            self._owns_http = False
        try:
            if ws is not None and not ws.closed:
                await ws.close()
        except (aiohttp.ClientError, ConnectionError):
            _logger.debug("WebSocket close failed", exc_info=True)
        finally:
            if http is not None and not http.closed:
                await http.close()

    async def close(self) -> None:
        """Release the connection on every path; safe to call repeatedly."""
        if self._state == TransportState.CLOSED:
            return
        if self._state in (TransportState.CONNECTING, TransportState.OPEN):
            self._set_state(TransportState.CLOSING)

        reader, self._reader = self._reader, None
        try:
            if reader is not None and reader is not asyncio.current_task() and not reader.done():
                reader.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reader
        finally:
            await self._release()
            self._set_state(TransportState.CLOSED)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    async def send(self, frame: ProtocolMessage) -> None:
        ws = self._ws
        if self._state != TransportState.OPEN or ws is None or ws.closed:
            raise SyncTransportError(f"Transport is not open (state={self._state})")
        await self._write(ws, frame)

    async def _write(self, ws: aiohttp.ClientWebSocketResponse, frame: ProtocolMessage) -> None:
        self._trace("send", frame)
        try:
            await ws.send_str(frame.to_json())
        except (aiohttp.ClientError, ConnectionError) as exc:
            raise SyncTransportError(f"Failed to send {frame.type} frame: {exc}") from exc

    def _trace(self, direction: str, frame: ProtocolMessage) -> None:
        if self._config.frame_trace_enabled:
            _logger.debug("Frame %s %s", direction, redact_for_log(frame.to_dict()))

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        error: BaseException | None = None
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    await self._handle_text(ws, msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    error = ws.exception()
                    break
                else:
                    _logger.debug("Ignoring WebSocket message type=%s", msg.type.name)
        except Exception as exc:
            _logger.warning("WebSocket reader failed", exc_info=True)
            error = exc

        if self._state != TransportState.OPEN:
            return

        close_code = ws.close_code
        self._reader = None
        await self._release()
        if error is None and close_code == NORMAL_CLOSE_CODE:
            _logger.info("Peer closed the connection endpoint=%s", self._endpoint)
            self._set_state(TransportState.CLOSED)
            return

        lost = SyncConnectionError(
            f"Connection to {self._endpoint} lost (close_code={close_code})",
            endpoint=self._endpoint,
            close_code=close_code,
        )
        if error is not None:
            lost.__cause__ = error
        _logger.warning("%s", lost)
        self._set_state(TransportState.ERRORED, lost)

    async def _handle_text(self, ws: aiohttp.ClientWebSocketResponse, data: str) -> None:
        try:
            frame = parse_frame(data)
        except SyncProtocolError as exc:
            _logger.warning("Dropping invalid frame: %s", exc)
            return
        self._trace("recv", frame)

        if frame.type == MessageType.PING:
            try:
                await self._write(ws, build_pong())
            except SyncTransportError:
                _logger.debug("Failed to answer ping", exc_info=True)
            return

        if frame.type in OPERATION_TYPES:
            callback = self._frame_callback
            if callback is None:
                _logger.debug("No dispatcher registered; dropping %s frame id=%s", frame.type, frame.id)
                return
            try:
                callback(frame)
            except Exception:
                _logger.exception("Frame dispatcher failed for %s frame id=%s", frame.type, frame.id)
            return

        _logger.debug("Ignoring %s frame", frame.type)
