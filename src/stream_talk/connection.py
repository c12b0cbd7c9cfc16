"""Lifecycle of one streaming HTTPS connection."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

import httpx

from .buffers import ChunkBuffer
from .decoder import EventDecoder
from .dispatch import DispatchSink
from .errors import (
    BufferOverflowError,
    DecodeError,
    DecodeErrorKind,
    LifecycleError,
    StreamTalkError,
    TransportError,
)

if TYPE_CHECKING:
    from .config import ConnectionConfig
    from .dispatch import EventHandler

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionState.CLOSED, ConnectionState.FAILED)


class StreamConnection:
    """
    Reads one streaming response and dispatches an event per JSON record.

    States: IDLE -> CONNECTING -> STREAMING -> CLOSED or FAILED.
    CLOSED and FAILED are final; reconnecting takes a new instance.

    Example:
        async with StreamConnection(handler) as conn:
            await conn.start(ConnectionConfig(params={"track": "python"}))

    start() returns once the stream is closed, by stop() or by the remote
    end, and raises TransportError (or BufferOverflowError) when the
    connection fails. Records that cannot be decoded and handlers that
    raise are logged and skipped.
    """

    def __init__(
        self,
        handler: EventHandler,
        *,
        decoder: EventDecoder | None = None,
        sink: DispatchSink | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the connection.

        Args:
            handler: Called with every decoded event
            decoder: Event decoder (default field paths if not provided)
            sink: Dispatch sink (a fresh one if not provided)
            client: Shared HTTP client; one is created and owned otherwise
        """
        self._handler = handler
        self._decoder = decoder or EventDecoder()
        self._sink = sink or DispatchSink()
        self._client = client
        self._client_owned = client is None
        self._buffer = ChunkBuffer()
        self._state = ConnectionState.IDLE
        self._task: asyncio.Task | None = None
        self.error: StreamTalkError | None = None
        self.events_dispatched = 0
        self.decode_errors = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def sink(self) -> DispatchSink:
        return self._sink

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def _set_state(self, state: ConnectionState) -> None:
        logger.info("Connection %s -> %s", self._state.value, state.value)
        self._state = state

    def _fail(self, error: StreamTalkError) -> None:
        self.error = error
        self._buffer.clear()
        self._set_state(ConnectionState.FAILED)
        logger.error("Stream failed: %s", error)

    async def start(self, config: ConnectionConfig) -> None:
        """
        Connect and stream until closed.

        Args:
            config: Endpoint, query parameters and credentials

        Raises:
            LifecycleError: If the connection was already started
            TransportError: On network/TLS failure or a non-2xx status
            BufferOverflowError: If no record boundary could be found
        """
        if self._state is not ConnectionState.IDLE:
            raise LifecycleError(f"cannot start a connection that is {self._state.value}")

        self._task = asyncio.current_task()
        self._buffer = ChunkBuffer(config.max_pending)
        self._set_state(ConnectionState.CONNECTING)

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=config.timeout, follow_redirects=True)

        auth = config.credentials.auth if config.credentials is not None else None
        try:
            async with self._client.stream(
                "GET",
                config.url,
                params=dict(config.params),
                headers=config.headers,
                auth=auth,
                timeout=config.timeout,
            ) as response:
                if self._state is not ConnectionState.CONNECTING:
                    return
                if not response.is_success:
                    raise TransportError(
                        f"stream rejected with HTTP {response.status_code}",
                        status_code=response.status_code,
                        body_preview=await self._body_preview(response),
                    )

                self._set_state(ConnectionState.STREAMING)
                async for chunk in response.aiter_bytes():
                    self.feed(chunk)
                    if self._state is not ConnectionState.STREAMING:
                        break

        except asyncio.CancelledError:
            if self._state is not ConnectionState.CLOSED:
                # cancelled from outside, e.g. a wait_for timeout
                self._buffer.clear()
                self._set_state(ConnectionState.CLOSED)
                raise
            # stop() cancelled us while waiting on the network
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
        except (TransportError, BufferOverflowError) as e:
            self._fail(e)
            raise
        except httpx.HTTPError as e:
            error = TransportError(f"stream transport failed: {e!r}")
            self._fail(error)
            raise error from e
        finally:
            self._task = None
            if self._client_owned:
                await self._client.aclose()

        if self._state is ConnectionState.STREAMING:
            logger.info("Stream ended by remote host")
            self._buffer.clear()
            self._set_state(ConnectionState.CLOSED)

    async def _body_preview(self, response: httpx.Response) -> str:
        try:
            raw = await response.aread()
        except httpx.HTTPError:
            return "<unreadable>"
        return raw.decode(errors="replace")[:500]

    def feed(self, chunk: bytes) -> int:
        """
        Process one chunk received while streaming.

        Args:
            chunk: Raw bytes from the response body

        Returns:
            Number of events the handler took without raising

        Raises:
            BufferOverflowError: If no record boundary could be found
        """
        if self._state is not ConnectionState.STREAMING:
            return 0

        delivered = 0
        for record in self._buffer.append(chunk):
            if self._state is not ConnectionState.STREAMING:
                break
            try:
                event = self._decoder.decode(record)
            except DecodeError as e:
                self.decode_errors += 1
                if e.kind is DecodeErrorKind.MISSING_FIELD:
                    logger.debug("Skipping record: %s", e)
                else:
                    logger.warning("Skipping malformed record: %s (%r)", e, e.span)
                continue
            if self._sink.dispatch(event, self._handler):
                self.events_dispatched += 1
                delivered += 1
        return delivered

    def stop(self) -> None:
        """
        Close the stream. Buffered records are dropped without dispatch.

        Safe to call from a handler or from another task; does nothing once
        the connection is closed or failed.
        """
        if self._state.is_terminal:
            return
        self._buffer.clear()
        self._set_state(ConnectionState.CLOSED)

        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def aclose(self) -> None:
        """Stop streaming and close the HTTP client if this connection owns it."""
        self.stop()
        if self._client_owned and self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> StreamConnection:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
