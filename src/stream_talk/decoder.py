"""Decoding of complete JSON records into events."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .errors import DecodeError, DecodeErrorKind

DEFAULT_ACTOR_FIELD = "user.name"
DEFAULT_BODY_FIELD = "text"


@dataclass(frozen=True, slots=True)
class DecodedEvent:
    """
    One post from the stream.

    Attributes:
        actor: Display name of the posting user
        body: Post text
    """

    actor: str
    body: str


_MISSING = object()


def _lookup(record: dict[str, Any], path: tuple[str, ...]) -> Any:
    value: Any = record
    for key in path:
        if not isinstance(value, dict) or key not in value:
            return _MISSING
        value = value[key]
    return value


class EventDecoder:
    """
    Parses a complete record and checks the fields an event needs.

    Fields are addressed by dotted paths into the JSON object. Any other
    fields in the record are ignored.

    Example:
        decoder = EventDecoder()
        event = decoder.decode(b'{"user":{"name":"Alice"},"text":"hi"}')
        assert event == DecodedEvent(actor="Alice", body="hi")
    """

    def __init__(
        self,
        actor_field: str = DEFAULT_ACTOR_FIELD,
        body_field: str = DEFAULT_BODY_FIELD,
    ) -> None:
        """
        Initialize the decoder.

        Args:
            actor_field: Dotted path of the actor identifier
            body_field: Dotted path of the body text
        """
        if not actor_field or not body_field:
            raise ValueError("field paths must not be empty")
        self.actor_field = actor_field
        self.body_field = body_field
        self._actor_path = tuple(actor_field.split("."))
        self._body_path = tuple(body_field.split("."))

    def decode(self, span: bytes) -> DecodedEvent:
        """
        Decode one record.

        Args:
            span: Bytes of exactly one JSON value

        Returns:
            The decoded event

        Raises:
            DecodeError: MALFORMED_SYNTAX if the span is not a JSON object,
                MISSING_FIELD if the actor or body is absent
        """
        try:
            record = json.loads(span)
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise DecodeError(
                DecodeErrorKind.MALFORMED_SYNTAX,
                f"record is not valid JSON: {e}",
                span=span,
            ) from e

        if not isinstance(record, dict):
            raise DecodeError(
                DecodeErrorKind.MALFORMED_SYNTAX,
                f"record is a JSON {type(record).__name__}, not an object",
                span=span,
            )

        actor = self._require(record, self._actor_path, self.actor_field, span)
        body = self._require(record, self._body_path, self.body_field, span)
        return DecodedEvent(actor=actor, body=body)

    def _require(
        self,
        record: dict[str, Any],
        path: tuple[str, ...],
        name: str,
        span: bytes,
    ) -> str:
        value = _lookup(record, path)
        if not isinstance(value, str):
            raise DecodeError(
                DecodeErrorKind.MISSING_FIELD,
                f"record has no string field {name!r}",
                field=name,
                span=span,
            )
        return value


_default_decoder = EventDecoder()


def decode_event(span: bytes) -> DecodedEvent:
    """Decode a record with the default field paths."""
    return _default_decoder.decode(span)
