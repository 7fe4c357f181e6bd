"""Configuration helpers for CLI + YAML input."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .models import DiscoveryConfig

CONFIG_KEYS = (
    "probe_timeout_sec",
    "max_workers",
    "priority_start",
    "priority_end",
    "secondary_start",
    "secondary_end",
    "pnumber_fallback",
    "cache_ttl_sec",
    "page_timeout_sec",
)


def load_yaml_config(path: Path | None) -> dict[str, Any]:
    """Load YAML config or return empty dict when path is absent."""
    if path is None:
        return {}
    if not path.exists():
        raise FileNotFoundError(f"配置文件不存在: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML 配置根节点必须是对象（mapping）。")
    return data


def build_discovery_config(raw: dict[str, Any]) -> DiscoveryConfig:
    """Construct DiscoveryConfig with defaults for absent keys."""
    defaults = DiscoveryConfig()
    config = DiscoveryConfig(
        probe_timeout_sec=float(raw.get("probe_timeout_sec", defaults.probe_timeout_sec)),
        max_workers=int(raw.get("max_workers", defaults.max_workers)),
        priority_start=int(raw.get("priority_start", defaults.priority_start)),
        priority_end=int(raw.get("priority_end", defaults.priority_end)),
        secondary_start=int(raw.get("secondary_start", defaults.secondary_start)),
        secondary_end=int(raw.get("secondary_end", defaults.secondary_end)),
        pnumber_fallback=_as_bool(
            raw.get("pnumber_fallback", defaults.pnumber_fallback), "pnumber_fallback"
        ),
        cache_ttl_sec=float(raw.get("cache_ttl_sec", defaults.cache_ttl_sec)),
        page_timeout_sec=float(raw.get("page_timeout_sec", defaults.page_timeout_sec)),
    )
    validate_discovery_config(config)
    return config


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key} 必须是布尔值（true/false）。")
    return value


def validate_discovery_config(config: DiscoveryConfig) -> None:
    """Validate config values and raise ValueError on invalid input."""
    if config.probe_timeout_sec <= 0:
        raise ValueError("probe_timeout_sec 必须 > 0")
    if config.page_timeout_sec <= 0:
        raise ValueError("page_timeout_sec 必须 > 0")
    if config.max_workers < 1:
        raise ValueError("max_workers 必须 >= 1")
    if config.priority_start < 0:
        raise ValueError("priority_start 必须 >= 0")
    if config.priority_end <= config.priority_start:
        raise ValueError("priority_end 必须 > priority_start")
    if config.secondary_start < config.priority_end:
        raise ValueError("secondary_start 必须 >= priority_end")
    if config.secondary_end <= config.secondary_start:
        raise ValueError("secondary_end 必须 > secondary_start")
    if config.cache_ttl_sec < 0:
        raise ValueError("cache_ttl_sec 必须 >= 0")
