"""Historical benchmark plot data.

Plots of benchmark results over Git history. The model is persistent between
runs (saved as a single JSON snapshot) and append-only: folding new records in
adds points and re-sorts lines, it never drops stored points.

Plots are keyed by benchmark group and function, e.g. `Fibonacci-num=100-Prove`.
Different inputs (fib-10 vs fib-20) are not comparable, so each gets its own
plot; the benchmark params (e.g. `rc=100`) become separate lines of one plot.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pandas as pd

from bench_history.raw.bench_id import BenchId, parse_rfc3339
from bench_history.records.bench import BenchData

logger = logging.getLogger(__name__)

# Plot titles cannot contain `/`, so group and name are joined with `-`.
SERIES_KEY_SEPARATOR = "-"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_X_MIN_SENTINEL = datetime.max.replace(tzinfo=timezone.utc)
_X_MAX_SENTINEL = datetime.min.replace(tzinfo=timezone.utc)


def series_key(bench_id: BenchId) -> str:
    """Plot name for a benchmark: `<group><SERIES_KEY_SEPARATOR><name>`."""
    return f"{bench_id.group_name}{SERIES_KEY_SEPARATOR}{bench_id.bench_name}"


@dataclass(frozen=True)
class Point:
    """Benchmark result at a given Git commit.

    Attributes:
        x: Commit timestamp (UTC).
        y: Benchmark time (typical estimate).
        label: Short commit hash.
    """

    x: datetime
    y: float
    label: str


def point_sort_key(p: Point) -> tuple[datetime, bool, float, str]:
    """Total order on points: `x`, then `y` with NaN after every number, then `label`."""
    is_nan = math.isnan(p.y)
    return (p.x, is_nan, 0.0 if is_nan else p.y, p.label)


@dataclass
class AxisRange:
    """Min. and max. values seen on one axis.

    Starts inverted (min above max) so the first value sets both bounds.
    """

    min: Any
    max: Any

    def extend(self, value: Any) -> None:
        # NaN compares false both ways and never moves a bound.
        if value < self.min:
            self.min = value
        if value > self.max:
            self.max = value

    def is_empty(self) -> bool:
        return not self.min <= self.max


def _empty_x_axis() -> AxisRange:
    return AxisRange(min=_X_MIN_SENTINEL, max=_X_MAX_SENTINEL)


def _empty_y_axis() -> AxisRange:
    return AxisRange(min=math.inf, max=-math.inf)


def _to_seconds(dt: datetime) -> int:
    return (dt - _EPOCH) // timedelta(seconds=1)


def _from_seconds(raw: Any) -> datetime:
    return _EPOCH + timedelta(seconds=int(raw))


def _format_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


@dataclass
class Plot:
    """Data for one plot: axis ranges and one line of points per params string."""

    x_axis: AxisRange = field(default_factory=_empty_x_axis)
    y_axis: AxisRange = field(default_factory=_empty_y_axis)
    lines: dict[str, list[Point]] = field(default_factory=dict)

    def add_point(self, params: str, point: Point) -> None:
        self.x_axis.extend(point.x)
        self.y_axis.extend(point.y)
        self.lines.setdefault(params, []).append(point)

    def sort_lines(self) -> None:
        for line in self.lines.values():
            line.sort(key=point_sort_key)

    def copy(self) -> Plot:
        return Plot(
            x_axis=AxisRange(self.x_axis.min, self.x_axis.max),
            y_axis=AxisRange(self.y_axis.min, self.y_axis.max),
            lines={k: list(v) for k, v in self.lines.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the snapshot layout (x bounds as epoch seconds)."""
        return {
            "x_axis": {"min": _to_seconds(self.x_axis.min), "max": _to_seconds(self.x_axis.max)},
            "y_axis": {"min": self.y_axis.min, "max": self.y_axis.max},
            "lines": {
                params: [{"x": _format_utc(p.x), "y": p.y, "label": p.label} for p in line]
                for params, line in self.lines.items()
            },
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Plot:
        """Deserialize from the snapshot layout. Line order is kept as stored."""
        lines: dict[str, list[Point]] = {}
        for params, raw_line in d["lines"].items():
            lines[str(params)] = [
                Point(x=parse_rfc3339(p["x"]), y=float(p["y"]), label=str(p["label"]))
                for p in raw_line
            ]
        return cls(
            x_axis=AxisRange(_from_seconds(d["x_axis"]["min"]), _from_seconds(d["x_axis"]["max"])),
            y_axis=AxisRange(float(d["y_axis"]["min"]), float(d["y_axis"]["max"])),
            lines=lines,
        )


class Plots:
    """Mapping of plot name to `Plot`, persisted as one JSON snapshot.

    Example:

        plots = Plots.from_json(snapshot_text)
        plots = fold(plots, BenchRecords.from_text(bench_text))
        snapshot_text = plots.to_json()
    """

    def __init__(self, plots: dict[str, Plot] | None = None) -> None:
        self._plots: dict[str, Plot] = dict(plots or {})

    def get_or_create(self, key: str) -> Plot:
        """Return the plot for `key`, inserting an empty one if absent."""
        plot = self._plots.get(key)
        if plot is None:
            plot = self._plots[key] = Plot()
        return plot

    def add_data(self, records: Iterable[BenchData]) -> None:
        """Append records in place and re-sort every line of each touched plot.

        Records are never deduplicated: adding the same record twice yields
        the point twice.
        """
        touched: set[str] = set()
        for bench in records:
            key = series_key(bench.id)
            point = Point(x=bench.id.commit_timestamp, y=bench.time, label=bench.id.commit_hash)
            self.get_or_create(key).add_point(bench.id.params, point)
            touched.add(key)
        # Whole lines are re-sorted since stored snapshots may predate this order.
        for key in touched:
            self._plots[key].sort_lines()

    def copy(self) -> Plots:
        return Plots({k: v.copy() for k, v in self._plots.items()})

    def items(self) -> Iterator[tuple[str, Plot]]:
        return iter(self._plots.items())

    def __iter__(self) -> Iterator[str]:
        return iter(self._plots)

    def __len__(self) -> int:
        return len(self._plots)

    def __getitem__(self, key: str) -> Plot:
        return self._plots[key]

    def __contains__(self, key: object) -> bool:
        return key in self._plots

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Plots):
            return NotImplemented
        return self._plots == other._plots

    def __repr__(self) -> str:
        return f"Plots({len(self._plots)} plots)"

    def to_dict(self) -> dict[str, Any]:
        return {k: v.to_dict() for k, v in self._plots.items()}

    @classmethod
    def from_dict(cls, d: dict[str, Any] | Any) -> Plots:
        """Deserialize a snapshot mapping.

        Raises:
            ValueError: If the snapshot does not have the expected layout.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Invalid plot snapshot (not object): {type(d).__name__}")
        plots: dict[str, Plot] = {}
        for key, raw in d.items():
            try:
                plots[key] = Plot.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as exc:
                raise ValueError(f"Invalid plot snapshot entry {key!r}: {exc!r}") from exc
        return cls(plots)

    def to_json(self) -> str:
        """Serialize with sorted keys, so unchanged data serializes identically."""
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_json(cls, text: str | bytes) -> Plots:
        return cls.from_dict(json.loads(text))

    def to_dataframe(self) -> pd.DataFrame:
        """Long-form table with columns `series`, `params`, `x`, `y`, `label`."""
        rows = [
            {"series": key, "params": params, "x": p.x, "y": p.y, "label": p.label}
            for key, plot in self._plots.items()
            for params, line in plot.lines.items()
            for p in line
        ]
        return pd.DataFrame(rows, columns=["series", "params", "x", "y", "label"])


def fold(model: Plots, records: Iterable[BenchData]) -> Plots:
    """Return a copy of `model` with `records` added; `model` is left unchanged."""
    records = list(records)
    out = model.copy()
    out.add_data(records)
    logger.info("Folded %d records into %d plots", len(records), len(out))
    return out
