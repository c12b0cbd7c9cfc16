"""Tests for ChunkBuffer record framing."""

import pytest

from stream_talk.buffers import ChunkBuffer
from stream_talk.decoder import decode_event
from stream_talk.errors import BufferOverflowError, DecodeError


class TestChunkBuffer:
    """Tests for complete-record framing."""

    def test_init(self) -> None:
        """Test buffer initialization."""
        buffer = ChunkBuffer(max_pending=100)
        assert len(buffer) == 0
        assert buffer.max_pending == 100

    def test_invalid_max_pending(self) -> None:
        """Test that a non-positive limit is rejected."""
        with pytest.raises(ValueError):
            ChunkBuffer(max_pending=0)

    def test_single_record(self, alice_record) -> None:
        """Test that one whole record comes out unchanged."""
        buffer = ChunkBuffer()
        assert list(buffer.append(alice_record)) == [alice_record]
        assert len(buffer) == 0

    def test_every_split_offset(self) -> None:
        """Test that any two-way split yields the same single record."""
        record = b'{"user":{"name":"Al\\"ice"},"text":"a {b} [c] \\\\"}'
        for offset in range(len(record) + 1):
            buffer = ChunkBuffer()
            records = list(buffer.append(record[:offset]))
            records += list(buffer.append(record[offset:]))
            assert records == [record], f"split at {offset}"
            assert len(buffer) == 0

    def test_byte_by_byte(self, alice_record) -> None:
        """Test one-byte chunks."""
        buffer = ChunkBuffer()
        stream = alice_record + b"\r\n" + alice_record
        records = []
        for i in range(len(stream)):
            records += list(buffer.append(stream[i:i + 1]))
        assert records == [alice_record, alice_record]

    def test_empty_chunk_is_noop(self) -> None:
        """Test that empty chunks yield nothing and raise nothing."""
        buffer = ChunkBuffer()
        for chunk in []:
            list(buffer.append(chunk))
        assert list(buffer.append(b"")) == []
        assert len(buffer) == 0

    def test_empty_chunk_keeps_partial_data(self) -> None:
        """Test that an empty chunk neither drops nor completes a partial record."""
        buffer = ChunkBuffer()
        assert list(buffer.append(b'{"a":')) == []
        assert list(buffer.append(b"")) == []
        assert list(buffer.append(b"1}")) == [b'{"a":1}']

    def test_two_records_two_chunks(self, bob_and_cy_chunks) -> None:
        """Test records split and merged across chunks, in order."""
        buffer = ChunkBuffer()
        events = []
        for chunk in bob_and_cy_chunks:
            for record in buffer.append(chunk):
                events.append(decode_event(record))

        assert [e.actor for e in events] == ["Bob", "Cy"]
        assert [e.body for e in events] == ["yo", "yo2"]

    def test_keepalive_newlines_skipped(self) -> None:
        """Test that blank keep-alive lines between records are discarded."""
        buffer = ChunkBuffer()
        records = list(buffer.append(b'\r\n\r\n{"a":1}\r\n  \r\n[2]\r\n'))
        assert records == [b'{"a":1}', b"[2]"]
        assert len(buffer) == 0

    def test_brackets_inside_strings(self) -> None:
        """Test that brackets and escaped quotes in strings do not end a record."""
        record = b'{"text":"}]\\"{["}'
        buffer = ChunkBuffer()
        assert list(buffer.append(record + b'{"b":2}')) == [record, b'{"b":2}']

    def test_lazy_iteration_resumes(self) -> None:
        """Test that unconsumed records stay buffered for drain()."""
        buffer = ChunkBuffer()
        records = buffer.append(b'{"a":1}{"b":2}')
        assert next(records) == b'{"a":1}'
        assert list(buffer.drain()) == [b'{"b":2}']

    def test_chunk_stored_before_iteration(self) -> None:
        """Test that append() keeps the chunk even if the result is never iterated."""
        buffer = ChunkBuffer()
        buffer.append(b'{"a":1}')
        assert len(buffer) == 7
        assert list(buffer.drain()) == [b'{"a":1}']


class TestScalarRecords:
    """Tests for top-level strings, numbers and literals."""

    def test_string(self) -> None:
        buffer = ChunkBuffer()
        assert list(buffer.append(b'"a}b\\"c" ')) == [b'"a}b\\"c"']

    def test_number_waits_for_delimiter(self) -> None:
        """Test that a number touching the buffer end is still incomplete."""
        buffer = ChunkBuffer()
        assert list(buffer.append(b"12")) == []
        assert list(buffer.append(b"3\n")) == [b"123"]

    def test_literal_split(self) -> None:
        buffer = ChunkBuffer()
        assert list(buffer.append(b"nu")) == []
        assert list(buffer.append(b"ll true\n")) == [b"null", b"true"]


class TestMalformedInput:
    """Tests for bytes that can never form JSON."""

    def test_malformed_span_yielded_at_newline(self) -> None:
        """Test that garbage is handed on as its own record once a newline arrives."""
        buffer = ChunkBuffer()
        assert list(buffer.append(b"not json")) == []
        records = list(buffer.append(b'\r\n{"a":1}'))
        assert records == [b"not json", b'{"a":1}']

        with pytest.raises(DecodeError):
            decode_event(records[0])

    def test_stray_closer(self) -> None:
        buffer = ChunkBuffer()
        assert list(buffer.append(b'}\n{"a":1}')) == [b"}", b'{"a":1}']

    def test_malformed_without_boundary_overflows(self) -> None:
        """Test that garbage with no newline fails instead of stalling forever."""
        buffer = ChunkBuffer(max_pending=8)
        assert list(buffer.append(b"garbage")) == []
        with pytest.raises(BufferOverflowError) as exc_info:
            list(buffer.append(b"-garbage"))
        assert exc_info.value.limit == 8
        assert len(buffer) == 0

    def test_unterminated_record_overflows(self) -> None:
        """Test that an endless record is cut off at max_pending."""
        buffer = ChunkBuffer(max_pending=32)
        list(buffer.append(b'{"text":"'))
        with pytest.raises(BufferOverflowError) as exc_info:
            list(buffer.append(b"x" * 100))
        assert exc_info.value.pending == 109
        assert exc_info.value.span.startswith(b'{"text":')
        assert len(buffer) == 0

    def test_clear(self) -> None:
        buffer = ChunkBuffer()
        list(buffer.append(b'{"a":'))
        buffer.clear()
        assert len(buffer) == 0
        assert list(buffer.append(b'{"b":2}')) == [b'{"b":2}']
