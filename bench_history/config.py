"""Settings for plot generation, optionally loaded from YAML."""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BENCH_HISTORY_CONFIG"


@dataclass(frozen=True)
class PlotConfig:
    """Plot generation settings.

    Attributes:
        data_file: Snapshot file holding the aggregated plot data.
        out_dir: Directory PNG plots are written to.
        suffix: File name suffix of benchmark result files.
        x_padding_days: Padding added on both sides of the commit date axis.
        y_padding: Padding added on both sides of the time axis (ns).
        width: Image width in pixels.
        height: Image height in pixels.
        dpi: Image resolution.
    """

    data_file: str = "plot-data.json"
    out_dir: str = "."
    suffix: str = ".json"
    x_padding_days: float = 1.0
    y_padding: float = 0.2
    width: int = 1024
    height: int = 768
    dpi: int = 100


def load_config(path: str | Path | None = None) -> PlotConfig:
    """Load settings from a YAML file on top of the defaults.

    Falls back to the file named by `BENCH_HISTORY_CONFIG` when `path` is
    `None`, and to the defaults when neither is set.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the file is not a mapping or has unknown keys.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return PlotConfig()

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file does not exist: {p}")
    raw = yaml.safe_load(p.read_text()) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config (not object): {p}")

    known = {f.name for f in dataclasses.fields(PlotConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {p}: {', '.join(map(str, unknown))}")
    logger.debug("Loaded config from %s", p)
    return PlotConfig(**raw)
