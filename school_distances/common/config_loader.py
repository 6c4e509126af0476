"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from school_distances.common.errors import ConfigError
from school_distances.common.fs import read_yaml
from school_distances.common.http import RetryConfig, TimeoutConfig
from school_distances.common.schema import validate_pipeline_config

CONFIG_FILENAME = "pipeline.yml"
DEFAULT_API_KEY_ENV = "DISTANCE_MATRIX_API_KEY"


@dataclass(frozen=True)
class ConfigBundle:
    dataset: dict
    sampling: dict
    lookup: dict
    distance_service: dict
    output: dict


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    overlay_path = overlay_config_dir / CONFIG_FILENAME if overlay_config_dir is not None else None
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    cfg = validate_pipeline_config(cfg, allow_unknown=allow_unknown)
    return ConfigBundle(
        dataset=cfg["dataset"],
        sampling=cfg["sampling"],
        lookup=cfg["lookup"],
        distance_service=cfg["distance_service"],
        output=cfg["output"],
    )


def apply_overrides(bundle: ConfigBundle, **overrides: Any) -> ConfigBundle:
    """Return a bundle with CLI overrides applied; None values are ignored."""
    dataset = dict(bundle.dataset)
    sampling = dict(bundle.sampling)
    lookup = dict(bundle.lookup)
    if overrides.get("dataset") is not None:
        dataset["path"] = overrides["dataset"]
    if overrides.get("seed") is not None:
        sampling["seed"] = int(overrides["seed"])
    if overrides.get("sample_size") is not None:
        sampling["size"] = int(overrides["sample_size"])
    if overrides.get("mode") is not None:
        lookup["mode"] = overrides["mode"]
    return ConfigBundle(
        dataset=dataset,
        sampling=sampling,
        lookup=lookup,
        distance_service=bundle.distance_service,
        output=bundle.output,
    )


def resolve_api_key(service_config: dict) -> str:
    inline = service_config.get("api_key")
    if inline:
        return str(inline)
    env_name = service_config.get("api_key_env") or DEFAULT_API_KEY_ENV
    value = os.environ.get(env_name, "").strip()
    if not value:
        raise ConfigError(f"No distance service API key: set {env_name} or distance_service.api_key")
    return value


def timeout_config(service_config: dict) -> TimeoutConfig:
    raw = service_config.get("timeout") or {}
    defaults = TimeoutConfig()
    return TimeoutConfig(
        connect=float(raw.get("connect", defaults.connect)),
        read=float(raw.get("read", defaults.read)),
    )


def retry_config(service_config: dict) -> RetryConfig:
    raw = service_config.get("retry") or {}
    defaults = RetryConfig()
    return RetryConfig(
        max_attempts=int(raw.get("max_attempts", defaults.max_attempts)),
        multiplier=float(raw.get("multiplier", defaults.multiplier)),
        max_wait=float(raw.get("max_wait", defaults.max_wait)),
    )
