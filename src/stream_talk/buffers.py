"""Incremental JSON record framing for chunked byte streams."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import DEFAULT_MAX_PENDING
from .errors import BufferOverflowError

if TYPE_CHECKING:
    from collections.abc import Iterator

_WHITESPACE = frozenset(b" \t\r\n")
_OPENERS = frozenset(b"{[")
_CLOSERS = frozenset(b"}]")
_NUMBER_START = frozenset(b"-0123456789")
_NUMBER_BYTES = frozenset(b"+-.0123456789eE")
_LITERAL_START = frozenset(b"tfn")
_LETTERS = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
_LITERALS = (b"true", b"false", b"null")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")

# Scan result for leading bytes that can never start a JSON value
_MALFORMED = -1


class ChunkBuffer:
    """
    Accumulates stream chunks and cuts them into complete JSON records.

    Chunks may split or merge records arbitrarily. Every call to append()
    stores the chunk right away and returns an iterator that yields the
    records completed so far, oldest first. Bytes of an unfinished record
    stay buffered until a later chunk completes it.

    Example:
        buffer = ChunkBuffer()
        for chunk in response_chunks:
            for record in buffer.append(chunk):
                handle(record)

    Leading bytes that cannot start a JSON value are skipped up to the next
    newline and yielded as one record of their own, so the decoder reports
    them instead of the stream stalling on them. If no boundary turns up
    before ``max_pending`` bytes pile up, the iterator raises
    BufferOverflowError and the buffer is cleared.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        """
        Initialize the chunk buffer.

        Args:
            max_pending: Maximum bytes held while no record boundary is known
        """
        if max_pending <= 0:
            raise ValueError(f"max_pending must be positive, got {max_pending}")
        self._max_pending = max_pending
        self._pending = bytearray()
        self._reset_scan()

    def _reset_scan(self) -> None:
        # Resumable state of the scan over the record at the buffer head
        self._pos = 0
        self._depth = 0
        self._in_string = False
        self._escaped = False

    def append(self, chunk: bytes) -> Iterator[bytes]:
        """
        Add a chunk and iterate over the records it completes.

        Args:
            chunk: Raw bytes from the stream (may be empty)

        Returns:
            Lazy iterator of complete records; empty for an empty chunk

        Raises:
            BufferOverflowError: From the iterator, when no boundary can be
                found within max_pending bytes
        """
        if not chunk:
            return iter(())
        self._pending += chunk
        return self._records()

    def drain(self) -> Iterator[bytes]:
        """Iterate over records already buffered without adding data."""
        return self._records()

    def clear(self) -> None:
        """Discard all pending bytes."""
        self._pending.clear()
        self._reset_scan()

    @property
    def max_pending(self) -> int:
        return self._max_pending

    def __len__(self) -> int:
        """Return number of pending bytes."""
        return len(self._pending)

    def _records(self) -> Iterator[bytes]:
        while True:
            record = self._next_record()
            if record is None:
                return
            yield record

    def _next_record(self) -> bytes | None:
        pending = self._pending
        if self._pos == 0:
            start = 0
            while start < len(pending) and pending[start] in _WHITESPACE:
                start += 1
            if start:
                del pending[:start]
        if not pending:
            return None

        lead = pending[0]
        if lead in _OPENERS or lead == _QUOTE:
            end = self._scan_delimited()
        elif lead in _NUMBER_START:
            end = self._scan_number()
        elif lead in _LITERAL_START:
            end = self._scan_literal()
        else:
            end = _MALFORMED

        if end == _MALFORMED:
            return self._take_malformed()
        if end is None:
            self._check_overflow()
            return None

        record = bytes(pending[:end])
        del pending[:end]
        self._reset_scan()
        return record

    def _scan_delimited(self) -> int | None:
        """Scan an object, array or string; returns its end offset or None."""
        pending = self._pending
        if self._pos == 0:
            self._pos = 1
            if pending[0] == _QUOTE:
                self._in_string = True
            else:
                self._depth = 1

        i = self._pos
        depth = self._depth
        in_string = self._in_string
        escaped = self._escaped
        n = len(pending)
        while i < n:
            byte = pending[i]
            i += 1
            if in_string:
                if escaped:
                    escaped = False
                elif byte == _BACKSLASH:
                    escaped = True
                elif byte == _QUOTE:
                    in_string = False
                    if depth == 0:
                        return i
            elif byte == _QUOTE:
                in_string = True
            elif byte in _OPENERS:
                depth += 1
            elif byte in _CLOSERS:
                depth -= 1
                if depth == 0:
                    return i

        self._pos = i
        self._depth = depth
        self._in_string = in_string
        self._escaped = escaped
        return None

    def _scan_number(self) -> int | None:
        pending = self._pending
        i = 1
        while i < len(pending) and pending[i] in _NUMBER_BYTES:
            i += 1
        # A number touching the end of the buffer may still continue
        return i if i < len(pending) else None

    def _scan_literal(self) -> int | None:
        pending = self._pending
        i = 0
        while i < len(pending) and pending[i] in _LETTERS:
            i += 1
        word = bytes(pending[:i])
        if i == len(pending):
            if any(literal.startswith(word) for literal in _LITERALS):
                return None
            return _MALFORMED
        return i if word in _LITERALS else _MALFORMED

    def _take_malformed(self) -> bytes | None:
        newline = self._pending.find(b"\n")
        if newline < 0:
            self._check_overflow()
            return None
        span = bytes(self._pending[:newline]).rstrip()
        del self._pending[: newline + 1]
        self._reset_scan()
        return span

    def _check_overflow(self) -> None:
        size = len(self._pending)
        if size > self._max_pending:
            head = bytes(self._pending[:64])
            self.clear()
            raise BufferOverflowError(size, self._max_pending, span=head)
