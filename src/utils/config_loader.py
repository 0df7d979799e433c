"""
Configuration loader for the bond chatbot (record source, sessions, wizard).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "app_config.yml"


class LookupConfig(BaseModel):
    """Where bond records come from"""

    backend: Literal["csv", "http", "sql"] = "csv"
    csv_path: Optional[str] = None
    url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: float = Field(default=10.0, gt=0, le=120)


class SessionConfig(BaseModel):
    ttl_seconds: int = Field(default=1800, ge=60)


class WizardConfig(BaseModel):
    effective_date_window_days: int = Field(default=365, ge=1)


class AppConfig(BaseModel):
    lookup: LookupConfig = Field(default_factory=LookupConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)


# env var -> (section, key)
_ENV_OVERRIDES = {
    "BOND_LOOKUP_BACKEND": ("lookup", "backend"),
    "BOND_CSV_PATH": ("lookup", "csv_path"),
    "BOND_LOOKUP_URL": ("lookup", "url"),
    "BOND_LOOKUP_API_KEY": ("lookup", "api_key"),
    "SESSION_TTL_SECONDS": ("session", "ttl_seconds"),
}


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data.setdefault(section, {})[key] = value
    return data


def load_app_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load and validate the app configuration from YAML, then apply env overrides.

    Args:
        config_path: Path to config file. Defaults to config/app_config.yml;
            a missing default file just means built-in defaults.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    data: Dict[str, Any] = {}
    path = config_path or DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    elif config_path is not None:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        cfg = AppConfig(**_apply_env_overrides(data))
        logger.info("Loaded app config (lookup backend=%s)", cfg.lookup.backend)
        return cfg
    except ValidationError as e:
        logger.error("Config validation failed: %s", e)
        raise
