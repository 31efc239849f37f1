"""Render aggregated benchmark history as PNG line charts."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from pathlib import Path

import matplotlib
import numpy as np
from matplotlib.dates import DateFormatter
from matplotlib.figure import Figure

from bench_history.config import PlotConfig
from bench_history.records.plots import Plot, Plots

logger = logging.getLogger(__name__)


def _unplottable(plot: Plot) -> str | None:
    if plot.x_axis.is_empty() or plot.y_axis.is_empty():
        return "no data points"
    if not (math.isfinite(plot.y_axis.min) and math.isfinite(plot.y_axis.max)):
        return f"non-finite y range [{plot.y_axis.min}, {plot.y_axis.max}]"
    return None


def padded_bounds(
    plot: Plot,
    *,
    x_padding: timedelta = timedelta(days=1),
    y_padding: float = 0.2,
) -> tuple[tuple[datetime, datetime], tuple[float, float]]:
    """Axis limits for `plot` with padding on both sides.

    Returns:
        `((x_min, x_max), (y_min, y_max))`.
    """
    x = (plot.x_axis.min - x_padding, plot.x_axis.max + x_padding)
    y = (plot.y_axis.min - y_padding, plot.y_axis.max + y_padding)
    return x, y


def render_plot(
    name: str,
    plot: Plot,
    out_dir: str | Path,
    config: PlotConfig | None = None,
) -> Path:
    """Draw one plot, one colored line per params string, to `<out_dir>/<name>.png`.

    Each point is annotated with its commit hash.
    """
    config = config or PlotConfig()
    reason = _unplottable(plot)
    if reason is not None:
        raise ValueError(f"Plot {name!r} cannot be drawn: {reason}")

    (x_lo, x_hi), (y_lo, y_hi) = padded_bounds(
        plot,
        x_padding=timedelta(days=config.x_padding_days),
        y_padding=config.y_padding,
    )
    fig = Figure(figsize=(config.width / config.dpi, config.height / config.dpi), dpi=config.dpi)
    ax = fig.add_subplot()
    cmap = matplotlib.colormaps["tab20"]

    for i, (params, line) in enumerate(plot.lines.items()):
        color = cmap(i % cmap.N)
        xs = [p.x for p in line]
        ys = np.asarray([p.y for p in line], dtype=float)
        ax.plot(xs, ys, marker="o", markersize=5, color=color, label=params)
        for p in line:
            ax.annotate(p.label, (p.x, p.y), fontsize=8)

    ax.set_title(name)
    ax.set_xlim(x_lo, x_hi)
    ax.set_ylim(y_lo, y_hi)
    ax.xaxis.set_major_formatter(DateFormatter("%m/%d/%y"))
    ax.set_xlabel("Commit Date")
    ax.set_ylabel("Time (ns)")
    if plot.lines:
        ax.legend(loc="best", frameon=True)
    fig.autofmt_xdate()

    out = Path(out_dir) / f"{name}.png"
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out)
    logger.info("Saved plot %s", out)
    return out


def generate_plots(
    plots: Plots,
    out_dir: str | Path,
    config: PlotConfig | None = None,
) -> list[Path]:
    """Render every plot with a finite, non-empty range. Returns the written paths."""
    written: list[Path] = []
    for name, plot in plots.items():
        reason = _unplottable(plot)
        if reason is not None:
            logger.warning("Skipping plot %s: %s", name, reason)
            continue
        logger.debug("Plotting %s (%d lines)", name, len(plot.lines))
        written.append(render_plot(name, plot, out_dir, config))
    return written
