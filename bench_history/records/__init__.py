"""Benchmark records and the aggregated plot model."""

from bench_history.records.bench import BenchData, BenchRecords, RecordSchemaError
from bench_history.records.plots import Plot, Plots, Point, fold, series_key

__all__ = [
    "BenchData",
    "BenchRecords",
    "Plot",
    "Plots",
    "Point",
    "RecordSchemaError",
    "fold",
    "series_key",
]
