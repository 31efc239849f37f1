"""Parsing helpers for Criterion benchmark identifiers.

A benchmark ID carries three `/`-separated segments:

    <group>/<name>/<commit-hash>-<commit-date>-<params>

e.g. `Fibonacci-num=10/Prove/28db40f-2024-01-30T19_07_04-05_00-rc=100`.
Colons in the commit date are written as underscores by the harness.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

ID_DELIMITER = "/"
ID_SEGMENTS = 3
PARAMS_DELIMITER = "-"
# `YYYY-MM-DDTHH:MM:SS-HH:MM` splits into exactly this many `-` tokens.
TIMESTAMP_TOKENS = 4

_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))",
    re.ASCII,
)


class GrammarError(ValueError):
    """Benchmark ID does not follow the identifier grammar."""


class WrongArityError(GrammarError):
    """Benchmark ID does not split into exactly three segments."""

    def __init__(self, value: str, count: int) -> None:
        super().__init__(
            f"Expected {ID_SEGMENTS} bench ID elements separated by {ID_DELIMITER!r}, "
            f"got {count}: {value!r}"
        )
        self.value = value
        self.count = count


class MalformedParamsError(GrammarError):
    """Params segment lacks a commit hash or a full commit date."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Invalid format for bench params {value!r}: {reason}")
        self.value = value
        self.reason = reason


class InvalidTimestampError(GrammarError):
    """Commit date is not an RFC3339 timestamp."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Failed to parse {value!r} as an RFC3339 timestamp: {reason}")
        self.value = value
        self.reason = reason


@dataclass(frozen=True)
class BenchParams:
    """Parsed third segment of a benchmark ID.

    Attributes:
        commit_hash: Short Git commit hash (e.g. `"dd2a8e6"`).
        commit_timestamp: Commit date, normalized to UTC.
        params: Free-form benchmark parameters (e.g. `"rc=100"`). May contain `-`.
    """

    commit_hash: str
    commit_timestamp: datetime
    params: str


@dataclass(frozen=True)
class BenchId:
    """Structured benchmark identity.

    Attributes:
        group_name: Criterion benchmark group (e.g. `"Fibonacci-num=10"`).
        bench_name: Benchmark function name within the group.
        commit_hash: Short Git commit hash.
        commit_timestamp: Commit date, normalized to UTC.
        params: Free-form benchmark parameters.
    """

    group_name: str
    bench_name: str
    commit_hash: str
    commit_timestamp: datetime
    params: str


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp and normalize it to UTC.

    Fractional seconds beyond microsecond precision are truncated.

    Raises:
        InvalidTimestampError: If `value` is not a valid RFC3339 timestamp.
    """
    m = _RFC3339_RE.fullmatch(value)
    if m is None:
        raise InvalidTimestampError(value, "input does not match YYYY-MM-DDTHH:MM:SS[.f](Z|+HH:MM)")
    year, month, day, hour, minute, second, frac, zulu, sign, off_h, off_m = m.groups()
    try:
        if zulu:
            tz = timezone.utc
        else:
            if int(off_m) > 59:
                raise ValueError(f"offset minute {off_m} out of range")
            offset = timedelta(hours=int(off_h), minutes=int(off_m))
            tz = timezone(-offset if sign == "-" else offset)
        dt = datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int((frac or "0")[:6].ljust(6, "0")),
            tzinfo=tz,
        )
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError) as exc:
        raise InvalidTimestampError(value, str(exc)) from exc


def parse_bench_params(value: str) -> BenchParams:
    """Split a `<commit-hash>-<commit-date>-<params>` segment.

    E.g. `dd2a8e6-2024-02-20T22:48:21-05:00-rc=100` becomes
    `("dd2a8e6", 2024-02-21T03:48:21Z, "rc=100")`.

    Raises:
        MalformedParamsError: If there is no commit hash or fewer than four date tokens.
        InvalidTimestampError: If the commit date does not parse.
    """
    commit_hash, sep, rest = value.partition(PARAMS_DELIMITER)
    if not sep:
        raise MalformedParamsError(value, f"missing {PARAMS_DELIMITER!r} after commit hash")

    tokens = rest.split(PARAMS_DELIMITER)
    # A trailing delimiter opens the params token; it is not a date token.
    date_tokens = len(tokens) - 1 if tokens[-1] == "" else len(tokens)
    if date_tokens < TIMESTAMP_TOKENS:
        raise MalformedParamsError(
            value,
            f"expected at least {TIMESTAMP_TOKENS} {PARAMS_DELIMITER!r}-separated "
            f"commit date tokens, got {date_tokens}",
        )

    date = PARAMS_DELIMITER.join(tokens[:TIMESTAMP_TOKENS]).replace("_", ":")
    params = PARAMS_DELIMITER.join(tokens[TIMESTAMP_TOKENS:])
    return BenchParams(
        commit_hash=commit_hash,
        commit_timestamp=parse_rfc3339(date),
        params=params,
    )


def parse_bench_id(value: str) -> BenchId:
    """Parse a Criterion benchmark ID into a `BenchId`.

    Args:
        value: Raw `id` field of a benchmark record.

    Returns:
        Parsed `BenchId` with the commit date normalized to UTC.

    Raises:
        WrongArityError: If `value` does not have exactly three `/` segments.
        MalformedParamsError: If the params segment is incomplete.
        InvalidTimestampError: If the commit date does not parse.
    """
    parts = value.split(ID_DELIMITER)
    if len(parts) != ID_SEGMENTS:
        raise WrongArityError(value, len(parts))
    group_name, bench_name, raw_params = parts
    parsed = parse_bench_params(raw_params)
    return BenchId(
        group_name=group_name,
        bench_name=bench_name,
        commit_hash=parsed.commit_hash,
        commit_timestamp=parsed.commit_timestamp,
        params=parsed.params,
    )


def _format_timestamp(ts: datetime) -> str:
    offset = ts.utcoffset()
    if offset is None:
        raise ValueError(f"commit timestamp must be timezone-aware: {ts!r}")
    # Only a negative offset adds the fourth `-` token, so everything else is
    # written as the same instant with the `-00:00` offset.
    if offset >= timedelta(0) or offset.total_seconds() % 60:
        utc = ts.astimezone(timezone.utc).replace(tzinfo=None)
        text = f"{utc.isoformat()}-00:00"
    else:
        text = ts.isoformat()
    return text.replace(":", "_")


def format_bench_id(
    group_name: str,
    bench_name: str,
    commit_hash: str,
    commit_timestamp: datetime,
    params: str,
) -> str:
    """Encode benchmark identity fields the way the benchmarking harness does.

    Inverse of `parse_bench_id`: parsing the result returns the same fields,
    with the commit timestamp as the same instant in UTC.

    Raises:
        ValueError: If a field contains a delimiter it cannot carry, or the
            timestamp is naive.
    """
    for field, text in (("group_name", group_name), ("bench_name", bench_name), ("params", params)):
        if ID_DELIMITER in text:
            raise ValueError(f"{field} must not contain {ID_DELIMITER!r}: {text!r}")
    if not commit_hash or PARAMS_DELIMITER in commit_hash or ID_DELIMITER in commit_hash:
        raise ValueError(f"Invalid commit hash: {commit_hash!r}")

    segment = PARAMS_DELIMITER.join(
        [commit_hash, _format_timestamp(commit_timestamp), params]
    )
    return ID_DELIMITER.join([group_name, bench_name, segment])
