"""Exception types raised by stream-talk."""

from __future__ import annotations

from enum import Enum


class StreamTalkError(Exception):
    """Base class for all stream-talk errors."""


class TransportError(StreamTalkError):
    """
    Connection-level failure: network, TLS, timeout or a non-2xx status.

    Attributes:
        status_code: HTTP status of the rejected response, if there was one
        body_preview: First bytes of the rejected response body
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_preview: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_preview = body_preview


class DecodeErrorKind(str, Enum):
    MALFORMED_SYNTAX = "malformed_syntax"
    MISSING_FIELD = "missing_field"


class DecodeError(StreamTalkError):
    """
    A record could not be turned into an event.

    Attributes:
        kind: What went wrong
        field: Dotted path of the missing field (MISSING_FIELD only)
        span: Leading bytes of the offending record
    """

    def __init__(
        self,
        kind: DecodeErrorKind,
        message: str,
        *,
        field: str | None = None,
        span: bytes = b"",
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.span = span[:200]


class BufferOverflowError(DecodeError):
    """No record boundary found before the pending data grew past its limit."""

    def __init__(self, pending: int, limit: int, span: bytes = b"") -> None:
        super().__init__(
            DecodeErrorKind.MALFORMED_SYNTAX,
            f"no record boundary within {pending} pending bytes (limit {limit})",
            span=span,
        )
        self.pending = pending
        self.limit = limit


class HandlerError(StreamTalkError):
    """An event handler raised; the original exception is the __cause__."""


class LifecycleError(StreamTalkError):
    """A connection was asked to do something its current state forbids."""
