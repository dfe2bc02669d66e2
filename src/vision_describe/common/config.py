"""Settings loaded from YAML with environment overrides."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

LOGGER = logging.getLogger("vision_describe.config")

DEFAULT_CONFIG_PATH = "configs/describe.yaml"

_ENV_OVERRIDES = {
    "base_url": "OLLAMA_BASE_URL",
    "model": "VISION_MODEL_ID",
    "request_timeout": "REQUEST_TIMEOUT",
    "run_timeout": "RUN_TIMEOUT",
    "log_level": "LOG_LEVEL",
}


@dataclass(frozen=True)
class Settings:
    base_url: str = "http://localhost:11434"
    model: str = "llama3.2-vision"
    request_timeout: float = 30.0
    run_timeout: float = 60.0
    log_level: str = "INFO"
    natural_template: str | None = None
    structured_template: str | None = None

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.request_timeout <= 0 or self.run_timeout <= 0:
            raise ValueError("timeouts must be positive")


def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _coerce(name: str, value: Any) -> Any:
    if name in ("request_timeout", "run_timeout"):
        return float(value)
    return None if value is None else str(value)


def load_settings(path: str | None = DEFAULT_CONFIG_PATH, **overrides: Any) -> Settings:
    """
    Build settings from defaults, then the YAML file, then env vars, then overrides.

    Args:
        path: YAML config path. A missing file is not an error.
        overrides: Explicit values (e.g. from CLI flags); ``None`` values are ignored.
    """
    known = {f.name for f in fields(Settings)}
    values: dict[str, Any] = {}

    if path and Path(path).exists():
        raw = load_cfg(path)
        unknown = sorted(set(raw) - known)
        if unknown:
            LOGGER.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
        values.update({k: v for k, v in raw.items() if k in known})
    elif path:
        LOGGER.debug("Config file %s not found, using defaults", path)

    for name, env in _ENV_OVERRIDES.items():
        env_value = os.getenv(env)
        if env_value:
            values[name] = env_value

    values.update({k: v for k, v in overrides.items() if v is not None})
    values = {k: _coerce(k, v) for k, v in values.items()}
    return replace(Settings(), **values)
