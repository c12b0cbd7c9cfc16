"""Delivery of decoded events to caller-supplied handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from .errors import HandlerError

if TYPE_CHECKING:
    from .decoder import DecodedEvent

logger = logging.getLogger(__name__)


class EventHandler(Protocol):
    """Anything that can be called with one decoded event."""

    def __call__(self, event: DecodedEvent) -> None: ...


class DispatchSink:
    """
    Invokes handlers and keeps their failures away from the stream.

    A handler that raises is logged and counted; dispatch() returns False
    and the caller goes on with the next event.
    """

    def __init__(self) -> None:
        self.dispatched = 0
        self.failures = 0
        self.last_error: HandlerError | None = None

    def dispatch(self, event: DecodedEvent, handler: EventHandler) -> bool:
        """
        Call ``handler`` with ``event``.

        Args:
            event: Event to deliver
            handler: Caller-owned handler

        Returns:
            True if the handler returned normally, False if it raised
        """
        try:
            handler(event)
        except Exception as e:
            error = HandlerError(f"handler failed for event from {event.actor!r}: {e}")
            error.__cause__ = e
            self.failures += 1
            self.last_error = error
            logger.error("%s", error, exc_info=e)
            return False
        self.dispatched += 1
        return True
