from __future__ import annotations

from pathlib import Path

import pytest

from image_discovery.config import build_discovery_config, load_yaml_config


def test_build_discovery_config_defaults() -> None:
    config = build_discovery_config({})
    assert config.probe_timeout_sec == 4.0
    assert config.max_workers == 20
    assert config.priority_indices == range(0, 6)
    assert config.secondary_indices == range(6, 16)
    assert config.pnumber_fallback is True
    assert config.cache_ttl_sec == 0.0


def test_build_discovery_config_coerces_values() -> None:
    config = build_discovery_config(
        {"probe_timeout_sec": "2.5", "max_workers": "8", "pnumber_fallback": False}
    )
    assert config.probe_timeout_sec == 2.5
    assert config.max_workers == 8
    assert config.pnumber_fallback is False


def test_build_discovery_config_validates_timeout() -> None:
    with pytest.raises(ValueError, match="probe_timeout_sec 必须 > 0"):
        build_discovery_config({"probe_timeout_sec": 0})


def test_build_discovery_config_validates_phase_order() -> None:
    with pytest.raises(ValueError, match="secondary_start 必须 >= priority_end"):
        build_discovery_config({"priority_end": 8, "secondary_start": 6})


def test_build_discovery_config_validates_workers() -> None:
    with pytest.raises(ValueError, match="max_workers 必须 >= 1"):
        build_discovery_config({"max_workers": 0})


def test_load_yaml_config(workspace_temp_dir: Path) -> None:
    path = workspace_temp_dir / "discovery.yaml"
    path.write_text("probe_timeout_sec: 1.5\nmax_workers: 12\n", encoding="utf-8")
    assert load_yaml_config(path) == {"probe_timeout_sec": 1.5, "max_workers": 12}
    assert load_yaml_config(None) == {}


def test_load_yaml_config_rejects_non_mapping(workspace_temp_dir: Path) -> None:
    path = workspace_temp_dir / "discovery.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_yaml_config(path)


def test_load_yaml_config_missing_file(workspace_temp_dir: Path) -> None:
    with pytest.raises(FileNotFoundError, match="配置文件不存在"):
        load_yaml_config(workspace_temp_dir / "missing.yaml")


def test_build_discovery_config_rejects_string_booleans() -> None:
    with pytest.raises(ValueError, match="pnumber_fallback 必须是布尔值"):
        build_discovery_config({"pnumber_fallback": "false"})
