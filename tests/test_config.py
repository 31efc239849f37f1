from __future__ import annotations

from pathlib import Path

import pytest

from bench_history.config import CONFIG_ENV_VAR, PlotConfig, load_config


def test_load_config_defaults():
    cfg = load_config()
    assert cfg == PlotConfig()
    assert cfg.data_file == "plot-data.json"
    assert cfg.x_padding_days == 1.0
    assert cfg.y_padding == 0.2


def test_load_config_from_yaml(tmp_path: Path):
    p = tmp_path / "bench.yaml"
    p.write_text("out_dir: plots\ny_padding: 5.0\nwidth: 800\n")
    cfg = load_config(p)
    assert cfg.out_dir == "plots"
    assert cfg.y_padding == 5.0
    assert cfg.width == 800
    assert cfg.height == 768


def test_load_config_empty_file(tmp_path: Path):
    p = tmp_path / "bench.yaml"
    p.write_text("")
    assert load_config(p) == PlotConfig()


def test_load_config_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    p = tmp_path / "bench.yaml"
    p.write_text("suffix: .bench.json\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(p))
    assert load_config().suffix == ".bench.json"


def test_load_config_errors(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")

    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="not object"):
        load_config(not_mapping)

    unknown = tmp_path / "unknown.yaml"
    unknown.write_text("colour: red\n")
    with pytest.raises(ValueError, match="colour"):
        load_config(unknown)
