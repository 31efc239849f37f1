from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from bench_history.cli import main
from bench_history.raw.bench_id import format_bench_id

EST = timezone(timedelta(hours=-5))


def _write_bench(path: Path, commit: str, day: int, estimate: float) -> None:
    ts = datetime(2024, 2, 20, 12, 0, 0, tzinfo=EST) + timedelta(days=day)
    lines = [
        {
            "reason": "benchmark-complete",
            "id": format_bench_id("Fibonacci-num=10", "Prove", commit, ts, params),
            "typical": {"estimate": estimate + i},
        }
        for i, params in enumerate(("rc=100", "rc=200"))
    ]
    lines.append({"reason": "group-complete", "group_name": "Fibonacci-num=10"})
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(json.dumps(v) for v in lines) + "\n")


def _points(data_file: Path) -> dict[str, list[str]]:
    snapshot = json.loads(data_file.read_text())
    lines = snapshot["Fibonacci-num=10-Prove"]["lines"]
    return {params: [p["label"] for p in line] for params, line in lines.items()}


def test_plot_first_run_reads_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    _write_bench(tmp_path / "fib-dd2a8e6.json", "dd2a8e6", 0, 100.0)
    _write_bench(tmp_path / "fib-28db40f.json", "28db40f", 1, 90.0)

    assert main(["plot", "--no-render"]) == 0
    assert _points(tmp_path / "plot-data.json") == {
        "rc=100": ["dd2a8e6", "28db40f"],
        "rc=200": ["dd2a8e6", "28db40f"],
    }


def test_plot_appends_commit_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    _write_bench(tmp_path / "fib-dd2a8e6.json", "dd2a8e6", 0, 100.0)
    assert main(["plot", "--no-render"]) == 0

    _write_bench(tmp_path / "fib-28db40f.json", "28db40f", 1, 90.0)
    assert main(["plot", "--no-render", "--commit", "28db40fa1b2c3d4e5f"]) == 0
    assert _points(tmp_path / "plot-data.json")["rc=100"] == ["dd2a8e6", "28db40f"]


def test_plot_commit_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    _write_bench(tmp_path / "fib-dd2a8e6.json", "dd2a8e6", 0, 100.0)
    assert main(["plot", "--no-render"]) == 0

    _write_bench(tmp_path / "fib-28db40f.json", "28db40f", 1, 90.0)
    monkeypatch.setenv("GITHUB_SHA", "28db40f0000000")
    assert main(["plot", "--no-render"]) == 0
    assert _points(tmp_path / "plot-data.json")["rc=200"] == ["dd2a8e6", "28db40f"]


def test_plot_with_history_requires_selection(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    _write_bench(tmp_path / "fib-dd2a8e6.json", "dd2a8e6", 0, 100.0)
    assert main(["plot", "--no-render"]) == 0
    before = (tmp_path / "plot-data.json").read_text()

    assert main(["plot", "--no-render"]) == 1
    assert (tmp_path / "plot-data.json").read_text() == before


def test_plot_dir_and_render(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    _write_bench(tmp_path / "results" / "a.json", "dd2a8e6", 0, 100.0)
    _write_bench(tmp_path / "results" / "b.json", "28db40f", 1, 90.0)
    (tmp_path / "bench.yaml").write_text("width: 320\nheight: 240\ndpi: 80\n")

    code = main(["plot", "--dir", "results", "--config", "bench.yaml", "--out-dir", "png"])
    assert code == 0
    assert (tmp_path / "png" / "Fibonacci-num=10-Prove.png").exists()
    assert len(_points(tmp_path / "plot-data.json")["rc=100"]) == 2


def test_plot_skips_series_with_infinite_time(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    bench = tmp_path / "fib-dd2a8e6.json"
    _write_bench(bench, "dd2a8e6", 0, 100.0)
    bench.write_text(bench.read_text().replace('"estimate": 100.0', '"estimate": 1e999', 1))

    assert main(["plot", "--out-dir", "png"]) == 0
    assert _points(tmp_path / "plot-data.json")["rc=100"] == ["dd2a8e6"]
    assert not (tmp_path / "png" / "Fibonacci-num=10-Prove.png").exists()


def test_plot_invalid_snapshot(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "plot-data.json").write_text("[1, 2")
    _write_bench(tmp_path / "fib-dd2a8e6.json", "dd2a8e6", 0, 100.0)
    assert main(["plot", "--no-render", "--commit", "dd2a8e6"]) == 1
    assert (tmp_path / "plot-data.json").read_text() == "[1, 2"


def test_requires_subcommand():
    with pytest.raises(SystemExit):
        main([])
