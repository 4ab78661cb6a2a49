from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from mandala_planner.core.grid.store import DEFAULT_TAGLINE
from mandala_planner.core.io.storage import STORAGE_KEY


DEFAULT_STATE_DIR = "~/.mandala"

ENV_STATE_DIR = "MANDALA_STATE_DIR"
ENV_CONFIG = "MANDALA_CONFIG"

KNOWN_KEYS = {"state_dir", "storage_key", "tagline"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class AppConfig:
    state_dir: str = DEFAULT_STATE_DIR
    storage_key: str = STORAGE_KEY
    tagline: str = DEFAULT_TAGLINE

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir).expanduser()


def load_config_file(path: str | Path) -> dict[str, str]:
    """Load settings from a YAML file.

    Format:
      state_dir: ~/.mandala
      storage_key: great7-mandala-chart-data
      tagline: "..."

    Every key is optional; unknown keys are rejected.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"config file is not valid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("config file must be a mapping of setting -> value")

    out: dict[str, str] = {}
    for k, v in raw.items():
        if k not in KNOWN_KEYS:
            raise ConfigError(f"unknown config key: {k} (choose from: {', '.join(sorted(KNOWN_KEYS))})")
        if not isinstance(v, str) or not v.strip():
            raise ConfigError(f"config key '{k}' must be a non-empty string")
        out[k] = v.strip()
    return out


def load_config(
    config_file: Optional[str] = None,
    *,
    state_dir: Optional[str] = None,
) -> AppConfig:
    """Resolve settings: CLI flags, then environment, then config file, then defaults."""

    cfg = AppConfig()

    path = config_file or os.getenv(ENV_CONFIG, "").strip() or None
    if path:
        overrides: dict[str, Any] = load_config_file(path)
        cfg = replace(cfg, **overrides)

    env_dir = (os.getenv(ENV_STATE_DIR, "") or "").strip()
    if env_dir:
        cfg = replace(cfg, state_dir=env_dir)

    if state_dir:
        cfg = replace(cfg, state_dir=state_dir)
    return cfg
