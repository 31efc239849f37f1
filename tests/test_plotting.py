from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from bench_history.config import PlotConfig
from bench_history.plotting import generate_plots, padded_bounds, render_plot
from bench_history.records.plots import Plot, Plots, Point

T0 = datetime(2024, 2, 20, 12, 0, 0, tzinfo=timezone.utc)


def _plot() -> Plot:
    plot = Plot()
    plot.add_point("rc=100", Point(T0, 10.0, "dd2a8e6"))
    plot.add_point("rc=100", Point(T0 + timedelta(days=2), 12.0, "28db40f"))
    plot.add_point("rc=200", Point(T0 + timedelta(days=1), 8.0, "aaaaaaa"))
    return plot


def test_padded_bounds():
    (x_lo, x_hi), (y_lo, y_hi) = padded_bounds(_plot())
    assert x_lo == T0 - timedelta(days=1)
    assert x_hi == T0 + timedelta(days=3)
    assert y_lo == pytest.approx(7.8)
    assert y_hi == pytest.approx(12.2)

    (x_lo, _), (_, y_hi) = padded_bounds(_plot(), x_padding=timedelta(hours=1), y_padding=1.0)
    assert x_lo == T0 - timedelta(hours=1)
    assert y_hi == 13.0


def test_render_plot_writes_png(tmp_path: Path):
    cfg = PlotConfig(width=320, height=240, dpi=80)
    out = render_plot("Fibonacci-num=10-Prove", _plot(), tmp_path, cfg)
    assert out == tmp_path / "Fibonacci-num=10-Prove.png"
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_render_plot_rejects_empty(tmp_path: Path):
    with pytest.raises(ValueError, match="no data points"):
        render_plot("empty", Plot(), tmp_path)


def test_generate_plots_skips_empty(tmp_path: Path):
    plots = Plots({"Fib-Prove": _plot(), "Fib-Empty": Plot()})
    written = generate_plots(plots, tmp_path, PlotConfig(width=320, height=240, dpi=80))
    assert [p.name for p in written] == ["Fib-Prove.png"]
    assert not (tmp_path / "Fib-Empty.png").exists()


def test_non_finite_range_is_not_drawn(tmp_path: Path):
    plot = _plot()
    plot.add_point("rc=100", Point(T0 + timedelta(days=3), float("inf"), "ffffff0"))
    assert plot.y_axis.max == float("inf")

    with pytest.raises(ValueError, match="non-finite"):
        render_plot("Fib-Inf", plot, tmp_path)

    plots = Plots({"Fib-Prove": _plot(), "Fib-Inf": plot})
    written = generate_plots(plots, tmp_path, PlotConfig(width=320, height=240, dpi=80))
    assert [p.name for p in written] == ["Fib-Prove.png"]
    assert not (tmp_path / "Fib-Inf.png").exists()
