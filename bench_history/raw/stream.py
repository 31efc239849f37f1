"""Resilient decoding of concatenated JSON values.

Benchmark files are streams of JSON values (one Criterion message per value).
A value that is valid JSON but does not fit the record schema must not take
the rest of the file down with it, so decoding steps past it and continues.
A syntax error ends the stream, since nothing after it can be trusted to
re-synchronize.
"""

from __future__ import annotations

import enum
import json
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WHITESPACE = re.compile(r"[ \t\n\r]*")

# Exceptions a schema decoder raises for a value it cannot accept.
DECODE_ERRORS: tuple[type[Exception], ...] = (ValueError, TypeError, KeyError)


class StreamState(enum.Enum):
    """Cursor state of a `ResilientStreamDecoder`."""

    SCANNING = "scanning"
    SCHEMA_MISMATCH_RECOVERED = "schema_mismatch_recovered"
    UNRECOVERABLE = "unrecoverable"
    EXHAUSTED = "exhausted"


class StreamError(Exception):
    """A stream item that failed to decode.

    Attributes:
        error: The underlying decode or syntax error.
        value: The untyped JSON value, or `None` if the input was not valid JSON.
        offset: Character offset of the failing value in the input text.
    """

    def __init__(self, error: Exception, value: Any, offset: int) -> None:
        super().__init__(error)
        self.error = error
        self.value = value
        self.offset = offset
        self.__cause__ = error

    def __str__(self) -> str:
        return f"{self.error}, value: {json.dumps(self.value)}"


class SchemaMismatchError(StreamError):
    """Valid JSON that does not fit the target schema. The stream continues."""


class UnrecoverableStreamError(StreamError):
    """Invalid JSON at the recovery point. The stream ends after this item."""

    def __init__(self, error: Exception, offset: int) -> None:
        super().__init__(error, None, offset)

    def __str__(self) -> str:
        return str(self.error)


class ResilientStreamDecoder(Generic[T]):
    """Lazily decode a buffer of JSON values into typed records.

    Iteration yields either a decoded record or a `StreamError`; errors are
    returned as items, never raised:

        for item in ResilientStreamDecoder(text, BenchData.from_json):
            if isinstance(item, StreamError):
                ...

    A `SchemaMismatchError` is followed by the next value in the buffer. An
    `UnrecoverableStreamError` discards the rest of the buffer and is always
    the last item.

    Args:
        text: Buffer holding zero or more JSON values. `bytes` are decoded as
            UTF-8; an invalid byte ends the stream with an
            `UnrecoverableStreamError` after the values before it.
        decode: Maps an untyped JSON value to a record, raising one of
            `DECODE_ERRORS` if the value does not fit.
        parse_constant: Passed to `json.JSONDecoder`; called for `NaN`,
            `Infinity` and `-Infinity`. Raise `ValueError` to reject them.
    """

    def __init__(
        self,
        text: str | bytes,
        decode: Callable[[Any], T],
        *,
        parse_constant: Callable[[str], Any] | None = None,
    ) -> None:
        self._encoding_error: UnicodeDecodeError | None = None
        if isinstance(text, (bytes, bytearray)):
            data = bytes(text)
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError as exc:
                self._encoding_error = exc
                text = data[: exc.start].decode("utf-8")
        self._text = text
        self._decode = decode
        self._json = json.JSONDecoder(parse_constant=parse_constant)
        self.offset = 0
        self.last_ok_offset = 0
        self.state = StreamState.SCANNING

    def __iter__(self) -> Iterator[T | StreamError]:
        return self

    def __next__(self) -> T | StreamError:
        if self.state in (StreamState.UNRECOVERABLE, StreamState.EXHAUSTED):
            self.state = StreamState.EXHAUSTED
            raise StopIteration

        start = self._skip_whitespace(self.offset)
        if start >= len(self._text):
            self.offset = start
            if self._encoding_error is not None:
                logger.debug("Invalid UTF-8 at offset %d: %s", start, self._encoding_error)
                self.state = StreamState.UNRECOVERABLE
                return UnrecoverableStreamError(self._encoding_error, start)
            self.state = StreamState.EXHAUSTED
            raise StopIteration

        try:
            value, end = self._json.raw_decode(self._text, start)
            record = self._decode(value)
        except DECODE_ERRORS + (RecursionError,) as exc:
            return self._recover(exc)

        self.offset = self.last_ok_offset = end
        self.state = StreamState.SCANNING
        return record

    def _skip_whitespace(self, pos: int) -> int:
        return _WHITESPACE.match(self._text, pos).end()

    def _recover(self, error: Exception) -> StreamError:
        # Re-scan from the last good position without a schema to tell a
        # type error apart from a syntax error.
        anchor = self._skip_whitespace(self.last_ok_offset)
        try:
            value, end = self._json.raw_decode(self._text, anchor)
        except (ValueError, RecursionError):
            # Any failure of the untyped decode ends the stream.
            logger.debug("Unrecoverable JSON at offset %d: %s", anchor, error)
            self.offset = len(self._text)
            self.state = StreamState.UNRECOVERABLE
            return UnrecoverableStreamError(error, anchor)

        logger.debug("Schema mismatch at offset %d: %s", anchor, error)
        self.offset = self.last_ok_offset = end
        self.state = StreamState.SCHEMA_MISMATCH_RECOVERED
        return SchemaMismatchError(error, value, anchor)


def iter_json_values(text: str | bytes, decode: Callable[[Any], T]) -> Iterator[T | StreamError]:
    """Yield decoded records and stream errors from `text` in input order."""
    yield from ResilientStreamDecoder(text, decode)


def split_results(items: Iterable[T | StreamError]) -> tuple[list[T], list[StreamError]]:
    """Partition stream items into `(records, errors)`, each in input order."""
    records: list[T] = []
    errors: list[StreamError] = []
    for item in items:
        if isinstance(item, StreamError):
            errors.append(item)
        else:
            records.append(item)
    return records, errors
