"""Raw benchmark input parsers."""

from bench_history.raw.bench_id import (
    BenchId,
    BenchParams,
    GrammarError,
    InvalidTimestampError,
    MalformedParamsError,
    WrongArityError,
    format_bench_id,
    parse_bench_id,
    parse_bench_params,
)
from bench_history.raw.stream import (
    ResilientStreamDecoder,
    SchemaMismatchError,
    StreamError,
    StreamState,
    UnrecoverableStreamError,
)

__all__ = [
    "BenchId",
    "BenchParams",
    "GrammarError",
    "InvalidTimestampError",
    "MalformedParamsError",
    "ResilientStreamDecoder",
    "SchemaMismatchError",
    "StreamError",
    "StreamState",
    "UnrecoverableStreamError",
    "WrongArityError",
    "format_bench_id",
    "parse_bench_id",
    "parse_bench_params",
]
