"""
TaskList Configuration — Load and validate tasklist.yaml + environment overrides at startup.

The backend URL and public (anon) key locate the hosted backend. They are
normally supplied through the environment; without them the app cannot start.

Usage:
    from tasklist.engine.config import get_config, require_backend
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from tasklist.engine.errors import TaskListConfigError

CONFIG_FILENAME = "tasklist.yaml"

# Environment variables, first match wins
ENV_BACKEND_URL = ("TASKLIST_BACKEND_URL", "SUPABASE_URL")
ENV_BACKEND_KEY = ("TASKLIST_BACKEND_KEY", "SUPABASE_ANON_KEY")
ENV_LOG_LEVEL = "TASKLIST_LOG_LEVEL"
ENV_ENVIRONMENT = "TASKLIST_ENV"


# ---------------------------------------------------------------------------
# Pydantic models for tasklist.yaml
# ---------------------------------------------------------------------------

class BackendConfig(BaseModel):
    url: str = ""
    anon_key: str = ""
    table: str = "tasks"
    bucket: str = "tasks_image"
    timeout: int = 30

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


class AuthConfig(BaseModel):
    token_path: str = "/auth/v1/token"
    logout_path: str = "/auth/v1/logout"


class UploadConfig(BaseModel):
    # Off by default: any picked file is uploaded. When on, create_task
    # refuses empty files, types outside allowed_types and oversize files.
    validate_files: bool = False
    allowed_types: List[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/gif"]
    )
    max_upload_size_mb: int = 10
    block_on_upload_failure: bool = False


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".tasklist/logs"
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()


class UIConfig(BaseModel):
    title: str = "Tasks"
    thumbnail_size: int = 100


class AppConfig(BaseModel):
    """Root model for tasklist.yaml."""
    name: str = "TaskList"
    environment: str = "dev"

    backend: BackendConfig = BackendConfig()
    auth: AuthConfig = AuthConfig()
    upload: UploadConfig = UploadConfig()
    logging: LoggingConfig = LoggingConfig()
    ui: UIConfig = UIConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[AppConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for tasklist.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def _first_env(names: tuple) -> Optional[str]:
    for name in names:
        value = os.environ.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    backend = dict(data.get("backend") or {})
    url = _first_env(ENV_BACKEND_URL)
    if url:
        backend["url"] = url
    key = _first_env(ENV_BACKEND_KEY)
    if key:
        backend["anon_key"] = key
    data["backend"] = backend

    level = os.environ.get(ENV_LOG_LEVEL)
    if level:
        logging_data = dict(data.get("logging") or {})
        logging_data["level"] = level.upper()
        data["logging"] = logging_data

    env = os.environ.get(ENV_ENVIRONMENT)
    if env:
        data["environment"] = env
    return data


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load and validate tasklist.yaml, then apply environment overrides.

    Args:
        config_path: Explicit path to tasklist.yaml. If None, auto-discovers.

    Returns:
        Validated AppConfig instance. A missing file yields defaults.

    Raises:
        TaskListConfigError if the file or the overrides are invalid.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    raw: Dict[str, Any] = {}
    path = Path(config_path)
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise TaskListConfigError(f"{path} must contain a mapping", path=str(path))

    # tasklist.yaml may wrap everything under an "app:" key
    data = dict(raw.get("app", raw))
    data = _apply_env_overrides(data)

    try:
        _config = AppConfig(**data)
    except ValueError as e:
        raise TaskListConfigError(f"Invalid configuration: {e}", path=str(path)) from e
    return _config


def require_backend(config: AppConfig) -> AppConfig:
    """
    Ensure the backend URL and key are present.

    Raises:
        TaskListConfigError naming the missing values.
    """
    missing = []
    if not config.backend.url:
        missing.append(ENV_BACKEND_URL[0])
    if not config.backend.anon_key:
        missing.append(ENV_BACKEND_KEY[0])
    if missing:
        raise TaskListConfigError(
            f"Backend is not configured: set {', '.join(missing)}",
            missing=missing,
        )
    return config


def get_config() -> AppConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def masked(config: AppConfig) -> Dict[str, Any]:
    """Config as a dict with the backend key masked, for display."""
    data = config.model_dump()
    key = data["backend"]["anon_key"]
    if key:
        data["backend"]["anon_key"] = f"{key[:4]}…" if len(key) > 8 else "****"
    return data
