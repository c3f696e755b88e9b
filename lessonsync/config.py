"""
Runtime settings for LessonSync.

Values come from (lowest to highest precedence):
- Field defaults
- An optional YAML settings file
- LESSONSYNC_* environment variables (a .env file is loaded first)
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


ENV_PREFIX = "LESSONSYNC_"
DEFAULT_STATE_DIR = Path.home() / ".lessonsync"
DEFAULT_STATE_DB = DEFAULT_STATE_DIR / "session.db"


class Settings(BaseModel):
    api_base_url: str = "http://localhost:3000/api"
    api_token: Optional[str] = None
    request_timeout_seconds: float = Field(10.0, gt=0)
    tick_interval_seconds: float = Field(1.0, gt=0)
    flush_interval_seconds: float = Field(60.0, gt=0)
    state_db_path: Path = DEFAULT_STATE_DB
    dashboard_path: str = "/dashboard"


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")
    return data


def _read_env() -> dict[str, str]:
    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    return values


def load_settings(path: Optional[Path] = None, dotenv_path: Optional[Path] = None) -> Settings:
    """
    Build settings from defaults, an optional YAML file and the environment.

    Args:
        path: Optional YAML settings file
        dotenv_path: Optional .env file (default: search from the cwd)

    Returns:
        Validated Settings instance
    """
    load_dotenv(dotenv_path)

    values: dict[str, Any] = {}
    if path is not None:
        values.update(_read_yaml(Path(path)))
    values.update(_read_env())
    return Settings(**values)
