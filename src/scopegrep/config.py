"""Search configuration helpers."""

import os
from pathlib import Path
from typing import Any, Dict, List, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    CONFIG_FILE,
    DEFAULT_IGNORE_FILES,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_WORKERS,
    ENV_MODE,
    ENV_WORKERS,
)
from .errors import ConfigError


class SearchConfig(BaseModel):
    """Settings for one search run (optionally from .scopegrep.yaml)."""

    model_config = {"extra": "forbid"}

    workers: int = Field(DEFAULT_WORKERS, ge=1)
    mode: Literal["eager", "frontier"] = "eager"
    ignore_files: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_FILES))
    regex: bool = False
    ignore_case: bool = False
    queue_size: int = Field(DEFAULT_QUEUE_SIZE, ge=1)


def _read_config_file(root: Path) -> Dict[str, Any]:
    cfg_path = root / CONFIG_FILE
    if not cfg_path.is_file():
        return {}

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read {cfg_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{cfg_path} must contain a mapping")

    section = data.get("search", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'search' section in {cfg_path} must be a mapping")
    return dict(section)


def _read_env() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if os.environ.get(ENV_WORKERS):
        values["workers"] = os.environ[ENV_WORKERS]
    if os.environ.get(ENV_MODE):
        values["mode"] = os.environ[ENV_MODE].strip().lower()
    return values


def load_search_config(root: Path, **overrides: Any) -> SearchConfig:
    """Resolve configuration for a search rooted at ``root``.

    Precedence: explicit overrides > environment > config file > defaults.
    Overrides that are None are treated as unset.

    Raises:
        ConfigError: If the file is unreadable or a value is invalid
    """
    values = _read_config_file(Path(root))
    values.update(_read_env())
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return SearchConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
