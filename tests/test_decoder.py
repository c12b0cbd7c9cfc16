"""Tests for EventDecoder."""

import dataclasses

import pytest

from stream_talk.decoder import DecodedEvent, EventDecoder, decode_event
from stream_talk.errors import DecodeError, DecodeErrorKind


class TestEventDecoder:
    """Tests for decoding records into events."""

    def test_decode(self) -> None:
        """Test decoding a minimal post."""
        event = decode_event(b'{"user":{"name":"Alice"},"text":"hi"}')
        assert event == DecodedEvent(actor="Alice", body="hi")

    def test_extra_fields_ignored(self, alice_record) -> None:
        event = decode_event(alice_record)
        assert event == DecodedEvent(actor="Alice", body="hi")

    def test_event_is_immutable(self) -> None:
        event = decode_event(b'{"user":{"name":"Alice"},"text":"hi"}')
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.actor = "Mallory"  # type: ignore[misc]

    def test_unicode(self) -> None:
        record = '{"user":{"name":"初音ミク"},"text":"こんにちは"}'.encode()
        event = decode_event(record)
        assert event.actor == "初音ミク"
        assert event.body == "こんにちは"

    def test_missing_actor(self) -> None:
        """Test that a record without the actor field is rejected."""
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b'{"text":"hi"}')
        assert exc_info.value.kind is DecodeErrorKind.MISSING_FIELD
        assert exc_info.value.field == "user.name"

    def test_missing_body(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b'{"user":{"name":"Alice"}}')
        assert exc_info.value.kind is DecodeErrorKind.MISSING_FIELD
        assert exc_info.value.field == "text"

    def test_control_message(self) -> None:
        """Test that stream control messages come out as missing fields."""
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b'{"delete":{"status":{"id":1}}}')
        assert exc_info.value.kind is DecodeErrorKind.MISSING_FIELD

    def test_non_string_field(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b'{"user":{"name":42},"text":"hi"}')
        assert exc_info.value.kind is DecodeErrorKind.MISSING_FIELD

    def test_user_not_an_object(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b'{"user":"Alice","text":"hi"}')
        assert exc_info.value.kind is DecodeErrorKind.MISSING_FIELD

    def test_not_json(self) -> None:
        """Test that invalid syntax is reported as malformed."""
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b"not json")
        assert exc_info.value.kind is DecodeErrorKind.MALFORMED_SYNTAX
        assert exc_info.value.span == b"not json"

    def test_invalid_utf8(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b'{"user":{"name":"\xff\xfe"},"text":"hi"}')
        assert exc_info.value.kind is DecodeErrorKind.MALFORMED_SYNTAX

    def test_not_an_object(self) -> None:
        for record in (b"[1, 2]", b'"text"', b"null"):
            with pytest.raises(DecodeError) as exc_info:
                decode_event(record)
            assert exc_info.value.kind is DecodeErrorKind.MALFORMED_SYNTAX

    def test_deeply_nested(self) -> None:
        """Test that nesting beyond the parser's depth is reported as malformed."""
        record = b"[" * 100000 + b"]" * 100000
        with pytest.raises(DecodeError) as exc_info:
            decode_event(record)
        assert exc_info.value.kind is DecodeErrorKind.MALFORMED_SYNTAX
        assert isinstance(exc_info.value.__cause__, RecursionError)

    def test_span_preview_truncated(self) -> None:
        record = b'{"text":"' + b"x" * 1000
        with pytest.raises(DecodeError) as exc_info:
            decode_event(record)
        assert len(exc_info.value.span) == 200

    def test_custom_field_paths(self) -> None:
        """Test decoding with other field paths."""
        decoder = EventDecoder(actor_field="author.profile.handle", body_field="message")
        event = decoder.decode(b'{"author":{"profile":{"handle":"cy"}},"message":"yo"}')
        assert event == DecodedEvent(actor="cy", body="yo")

    def test_empty_field_path_rejected(self) -> None:
        with pytest.raises(ValueError):
            EventDecoder(actor_field="")
