"""Configuration defaults, overridable from ``~/.astread/config.toml``."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Type

import toml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("ASTREAD_HOME", str(Path.home() / ".astread"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"


class ReadSettings(BaseModel):
    """``[read]`` section."""

    model_config = ConfigDict(strict=True)

    context_lines: int = Field(default=5, ge=0, description="Context lines around a target")
    lines_above: int = Field(default=10, ge=0, description="Lines above the target line in lines mode")
    lines_below: int = Field(default=10, ge=0, description="Lines below the target line in lines mode")


class SearchSettings(BaseModel):
    """``[search]`` section."""

    model_config = ConfigDict(strict=True)

    context: int = Field(default=3, ge=0, description="Context lines around each match")
    skip_dirs: List[str] = Field(default_factory=list, description="Extra directory names never searched")


SECTIONS: Dict[str, Type[BaseModel]] = {
    "read": ReadSettings,
    "search": SearchSettings,
}

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {name: model().model_dump() for name, model in SECTIONS.items()}

# Directories never descended into by search
SKIP_DIRS = {"node_modules", ".git", "dist", "build", ".next"}


def _load_section(name: str, model: Type[BaseModel], overrides: Any, config_file: Path) -> Dict[str, Any]:
    """Validate one section; offending keys fall back to their defaults."""
    if not isinstance(overrides, dict):
        logger.warning("Ignoring [%s] in %s: expected a table", name, config_file)
        return model().model_dump()
    try:
        return model.model_validate(overrides).model_dump()
    except ValidationError as exc:
        invalid = {error["loc"][0] for error in exc.errors() if error["loc"]}
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            logger.warning("Ignoring %s.%s in %s: %s", name, location, config_file, error["msg"])
        valid = {key: value for key, value in overrides.items() if key not in invalid}
        return model.model_validate(valid).model_dump()


def load_config(config_file: Path = CONFIG_FILE) -> Dict[str, Dict[str, Any]]:
    """Load configuration from TOML, layered over :data:`DEFAULT_CONFIG`.

    A missing or unreadable file yields the defaults.  Unknown keys are
    ignored and mistyped values are replaced by their defaults.
    """
    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}
    if not config_file.exists():
        return config
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            loaded = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_file, exc)
        return config
    for name, model in SECTIONS.items():
        if name in loaded:
            config[name] = _load_section(name, model, loaded[name], config_file)
    return config


_config = load_config()

CONTEXT_LINES: int = _config["read"]["context_lines"]
LINES_ABOVE: int = _config["read"]["lines_above"]
LINES_BELOW: int = _config["read"]["lines_below"]
SEARCH_CONTEXT: int = _config["search"]["context"]
SKIP_DIRS.update(_config["search"]["skip_dirs"])

LOG_LEVEL = os.environ.get("ASTREAD_LOG_LEVEL", "WARNING").upper()
