"""Criterion benchmark history toolkit."""

from bench_history.raw.bench_id import BenchId, parse_bench_id
from bench_history.records.bench import BenchData, BenchRecords
from bench_history.records.plots import Plots, fold

__all__ = [
    "BenchData",
    "BenchId",
    "BenchRecords",
    "Plots",
    "fold",
    "parse_bench_id",
]

__version__ = "0.1.0"
