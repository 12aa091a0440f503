from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .exceptions import ConfigurationError


class AuditConfig(BaseModel):
    """Where authorization decisions are recorded."""

    backend: Literal["none", "memory", "log", "database"] = "log"
    database_url: Optional[str] = None


class TodoguardConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    log_level: str = "WARNING"
    audit: AuditConfig = Field(default_factory=AuditConfig)


def load_config(path: Optional[str] = None) -> TodoguardConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to TODOGUARD_CONFIG env
            variable or 'todoguard.yaml' in the current directory.
    """

    config_path = path or os.getenv("TODOGUARD_CONFIG", "todoguard.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        config = TodoguardConfig(**data)
    else:
        config = TodoguardConfig()

    env_db_url = os.getenv("TODOGUARD_DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_log_level = os.getenv("TODOGUARD_LOG_LEVEL")
    if env_log_level:
        config.log_level = env_log_level
    return config
