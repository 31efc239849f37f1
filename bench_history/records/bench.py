"""Benchmark result records decoded from Criterion JSON output."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from bench_history.raw.bench_id import BenchId, parse_bench_id
from bench_history.raw.stream import (
    ResilientStreamDecoder,
    StreamError,
    UnrecoverableStreamError,
    split_results,
)

logger = logging.getLogger(__name__)

_COLUMNS = [
    "group_name",
    "bench_name",
    "commit_hash",
    "commit_timestamp",
    "params",
    "time",
]


class RecordSchemaError(ValueError):
    """JSON value does not have the benchmark record shape."""


def _require(obj: dict[str, Any], key: str, kind: type | tuple[type, ...], where: str) -> Any:
    if key not in obj:
        raise RecordSchemaError(f"missing field `{key}` in {where}")
    v = obj[key]
    # bool is an int subclass but never a valid measurement.
    if isinstance(v, bool) or not isinstance(v, kind):
        raise RecordSchemaError(
            f"invalid type for `{key}` in {where}: {type(v).__name__}"
        )
    return v


def _reject_constant(name: str) -> Any:
    # Criterion never writes these; treat them as a syntax error.
    raise ValueError(f"non-standard JSON constant {name!r}")


@dataclass(frozen=True)
class BenchData:
    """A single benchmark measurement.

    Attributes:
        id: Parsed benchmark identity.
        time: Typical time estimate reported by Criterion (ns).
    """

    id: BenchId
    time: float

    @classmethod
    def from_json(cls, value: Any) -> BenchData:
        """Decode a Criterion `benchmark-complete` message.

        Only `id` and `typical.estimate` are read; other fields are ignored.

        Raises:
            RecordSchemaError: If the value does not have the record shape.
            GrammarError: If `id` is not a valid benchmark ID.
        """
        if not isinstance(value, dict):
            raise RecordSchemaError(f"expected a JSON object, got {type(value).__name__}")
        raw_id = _require(value, "id", str, "record")
        typical = _require(value, "typical", dict, "record")
        estimate = _require(typical, "estimate", (int, float), "`typical`")
        try:
            time = float(estimate)
        except OverflowError as exc:
            raise RecordSchemaError(f"`estimate` out of range for a float: {exc}") from exc
        return cls(id=parse_bench_id(raw_id), time=time)

    def to_row(self) -> dict[str, Any]:
        return {
            "group_name": self.id.group_name,
            "bench_name": self.id.bench_name,
            "commit_hash": self.id.commit_hash,
            "commit_timestamp": self.id.commit_timestamp,
            "params": self.id.params,
            "time": self.time,
        }


class BenchRecords:
    """Immutable collection of benchmark records with fluent filtering.

    Filters return new collections and can be chained:

        records = BenchRecords.from_text(text)
        prove = records.group("Fibonacci-num=10").bench("Prove")
        times = [r.time for r in prove.commit("dd2a8e6")]

    Decode errors collected while loading are kept on `errors`.
    """

    def __init__(
        self,
        records: Sequence[BenchData],
        *,
        errors: Sequence[StreamError] = (),
    ) -> None:
        self._records = tuple(records)
        self._errors = tuple(errors)

    @classmethod
    def from_text(cls, text: str | bytes, *, source: str = "<text>") -> BenchRecords:
        """Decode every benchmark record in a buffer of concatenated JSON values.

        Values that do not fit the record shape are logged and skipped. A JSON
        syntax error, an invalid UTF-8 byte or a `NaN`/`Infinity` literal
        discards the rest of the buffer.

        Args:
            text: Contents of a benchmark output file.
            source: Name used in log messages (usually the file path).
        """
        stream = ResilientStreamDecoder(text, BenchData.from_json, parse_constant=_reject_constant)
        records, errors = split_results(stream)
        for err in errors:
            if isinstance(err, UnrecoverableStreamError):
                logger.error(
                    "Unrecoverable JSON in %s at offset %d, discarding remainder: %s",
                    source,
                    err.offset,
                    err,
                )
            else:
                logger.warning("Skipping record in %s at offset %d: %s", source, err.offset, err)
        logger.debug("Decoded %d records (%d errors) from %s", len(records), len(errors), source)
        return cls(records, errors=errors)

    @property
    def errors(self) -> tuple[StreamError, ...]:
        """Stream errors encountered while loading, in input order."""
        return self._errors

    def _derive(self, records: Sequence[BenchData]) -> BenchRecords:
        return BenchRecords(records, errors=self._errors)

    def group(self, *names: str) -> BenchRecords:
        return self._derive([r for r in self._records if r.id.group_name in names])

    def bench(self, *names: str) -> BenchRecords:
        return self._derive([r for r in self._records if r.id.bench_name in names])

    def commit(self, *hashes: str) -> BenchRecords:
        return self._derive([r for r in self._records if r.id.commit_hash in hashes])

    def params(self, *params: str) -> BenchRecords:
        return self._derive([r for r in self._records if r.id.params in params])

    def where(self, predicate: Callable[[BenchData], bool]) -> BenchRecords:
        """Filter records by an arbitrary predicate."""
        return self._derive([r for r in self._records if predicate(r)])

    def group_by(self, *fields: str) -> dict[Any, BenchRecords]:
        """Group records by one or more `BenchId` fields.

        Args:
            fields: One or more `BenchId` field names to group by.

        Returns:
            Single field: `{value: BenchRecords, ...}`.
            Multiple fields: `{(v1, v2, ...): BenchRecords, ...}`.
        """
        groups: dict[Any, list[BenchData]] = defaultdict(list)
        for r in self._records:
            if len(fields) == 1:
                k = getattr(r.id, fields[0])
            else:
                k = tuple(getattr(r.id, f) for f in fields)
            groups[k].append(r)
        return {k: self._derive(v) for k, v in groups.items()}

    def __iter__(self) -> Iterator[BenchData]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> BenchData:
        return self._records[index]

    def __bool__(self) -> bool:
        return len(self._records) > 0

    def __add__(self, other: BenchRecords) -> BenchRecords:
        return BenchRecords(
            list(self._records) + list(other._records),
            errors=list(self._errors) + list(other._errors),
        )

    def __repr__(self) -> str:
        return f"BenchRecords({len(self._records)} records, {len(self._errors)} errors)"

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per record."""
        if not self._records:
            return pd.DataFrame(columns=_COLUMNS)
        return pd.DataFrame([r.to_row() for r in self._records], columns=_COLUMNS)
