"""Command-line interface for plotting Criterion benchmark history.

Usage::

    # First run: read every JSON file in the current directory.
    bench-history plot

    # Later runs: add the results for one commit to the stored history.
    bench-history plot --commit "$GITHUB_SHA"

    # Or add every JSON file in a directory.
    bench-history plot --dir /path/to/results

Plot data is kept in ``plot-data.json`` (see ``PlotConfig.data_file``) and is
append-only, so each result file should be added exactly once.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from bench_history.config import PlotConfig, load_config
from bench_history.plotting import generate_plots
from bench_history.records.plots import Plots, fold
from bench_history.sources import find_bench_files, read_bench_files, read_plots, write_plots

logger = logging.getLogger(__name__)

COMMIT_ENV_VAR = "GITHUB_SHA"
SHORT_HASH_LEN = 7


def _select_bench_files(
    *,
    bench_dir: str | None,
    commit: str | None,
    config: PlotConfig,
    has_history: bool,
) -> list[Path]:
    exclude = (Path(config.data_file).name,)
    if bench_dir is not None:
        return find_bench_files(bench_dir, suffix=config.suffix, exclude=exclude)
    if not has_history:
        return find_bench_files(".", suffix=config.suffix, exclude=exclude)
    # With existing history only the current commit's files are new.
    if not commit:
        raise ValueError(
            f"Plot data exists; pass --dir or --commit (or set {COMMIT_ENV_VAR}) "
            "to select the files to add"
        )
    suffix = f"{commit[:SHORT_HASH_LEN]}{config.suffix}"
    return find_bench_files(".", suffix=suffix, exclude=exclude)


def run_plot(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    data_file = Path(config.data_file)

    if data_file.exists():
        plots = read_plots(data_file)
    else:
        logger.info("No plot data at %s, starting a new history", data_file)
        plots = Plots()

    files = _select_bench_files(
        bench_dir=args.dir,
        commit=args.commit or os.environ.get(COMMIT_ENV_VAR),
        config=config,
        has_history=data_file.exists(),
    )
    if not files:
        logger.warning("No benchmark files found to add")
    logger.info("Adding bench files to plot: %s", [str(f) for f in files])

    records = read_bench_files(files)
    if records.errors:
        logger.warning("Skipped %d invalid entries while reading bench files", len(records.errors))
    plots = fold(plots, records)
    write_plots(plots, data_file)

    if args.no_render:
        logger.info("Skipping rendering (--no-render)")
    else:
        out_dir = Path(args.out_dir or config.out_dir)
        written = generate_plots(plots, out_dir, config)
        logger.info("Rendered %d plots to %s", len(written), out_dir)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bench-history",
        description="Criterion benchmark JSON history plotter",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    plot = sub.add_parser("plot", help="Add benchmark file(s) to the history and plot it")
    plot.add_argument(
        "--dir",
        type=str,
        default=None,
        help="Directory whose JSON files are added to the plot data",
    )
    plot.add_argument(
        "--commit",
        type=str,
        default=None,
        help=f"Commit whose result files (*<short-hash>.json) are added (default: ${COMMIT_ENV_VAR})",
    )
    plot.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML settings file",
    )
    plot.add_argument(
        "--out-dir",
        type=str,
        default=None,
        help="Output directory for PNG plots (overrides config)",
    )
    plot.add_argument(
        "--no-render",
        action="store_true",
        help="Update the plot data without rendering images",
    )
    plot.set_defaults(func=run_plot)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        return args.func(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
