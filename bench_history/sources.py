"""File discovery and on-disk reads and writes for benchmark data."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from bench_history.records.bench import BenchRecords
from bench_history.records.plots import Plots

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "plot-data.json"


def find_bench_files(
    directory: str | Path,
    *,
    suffix: str | None = None,
    exclude: Iterable[str] = (DEFAULT_DATA_FILE,),
) -> list[Path]:
    """List benchmark JSON files in `directory` (non-recursive).

    Args:
        directory: Directory to scan.
        suffix: File name suffix to match, e.g. `"abc1234.json"` matches
            `*abc1234.json`. Defaults to `".json"`.
        exclude: File names to skip (the plot snapshot by default).

    Returns:
        Matching paths, sorted.
    """
    d = Path(directory)
    if not d.is_dir():
        raise FileNotFoundError(f"Benchmark directory does not exist: {d}")
    suffix = suffix or ".json"
    skip = set(exclude)
    out = sorted(
        p for p in d.iterdir() if p.is_file() and p.name.endswith(suffix) and p.name not in skip
    )
    logger.debug("Found %d benchmark files in %s", len(out), d)
    return out


def read_bench_file(path: str | Path) -> BenchRecords:
    """Decode all benchmark records from one file."""
    p = Path(path)
    return BenchRecords.from_text(p.read_bytes(), source=str(p))


def read_bench_files(paths: Iterable[str | Path]) -> BenchRecords:
    """Decode and concatenate records from several files.

    A syntax or encoding error in one file only truncates that file.
    """
    out = BenchRecords([])
    for path in paths:
        out = out + read_bench_file(path)
    logger.info("Read %d records (%d errors)", len(out), len(out.errors))
    return out


def read_plots(path: str | Path) -> Plots:
    """Load a plot snapshot.

    Raises:
        FileNotFoundError: If no snapshot exists at `path`.
        ValueError: If the snapshot is not valid JSON or has the wrong layout.
    """
    p = Path(path)
    plots = Plots.from_json(p.read_text(encoding="utf-8"))
    logger.info("Loaded %d plots from %s", len(plots), p)
    return plots


def write_plots(plots: Plots, path: str | Path) -> Path:
    """Write a plot snapshot, replacing any existing file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(plots.to_json(), encoding="utf-8")
    logger.info("Wrote %d plots to %s", len(plots), p)
    return p
