# src/pourrice/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/pourrice/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `POURRICE_API_BASE_URL`, `FIREBASE_API_KEY`)
- an external YAML file via `POURRICE_CONFIG_PATH`

Design rule:
- Endpoint paths and tuning knobs live in YAML, not hard-coded in client code.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from pourrice.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `pourrice.config`."""
    text = resources.files("pourrice.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "PourRice"
    timezone: str = "Asia/Hong_Kong"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"
    placeholder_image_url: str | None = None


class RetrySettings(BaseModel):
    max_attempts: int = Field(2, ge=0)
    base_delay_seconds: float = Field(0.5, ge=0)
    max_delay_seconds: float = Field(8.0, ge=0)


class EndpointSettings(BaseModel):
    search: str = "API/Algolia/Restaurants"
    restaurants: str = "API/Restaurants"
    reviews: str = "API/Reviews"
    bookings: str = "API/Bookings"
    users: str = "API/Users"
    chat: str = "API/Chat"
    assistant: str = "API/Gemini"


class ApiSettings(BaseModel):
    base_url: str = "http://localhost:3000"
    passcode: str | None = None
    endpoints: EndpointSettings = Field(default_factory=EndpointSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)


class AuthSettings(BaseModel):
    firebase_api_key: str | None = None
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    secure_token_url: str = "https://securetoken.googleapis.com/v1/token"
    refresh_margin_seconds: int = 30


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/pourrice"
    default_ttl_seconds: int = 60 * 60 * 24
    catalog_ttl_seconds: int = 60 * 30


class RankingSettings(BaseModel):
    nearby_limit: int = Field(10, ge=1)
    featured_count: int = Field(10, ge=1)


class SearchSettings(BaseModel):
    hits_per_page: int = Field(12, ge=1, le=1000)
    default_language: Literal["EN", "TC"] = "EN"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    ranking: RankingSettings = Field(default_factory=RankingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    data = dict(data)
    cache_dir = os.getenv("POURRICE_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("POURRICE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    base_url = os.getenv("POURRICE_API_BASE_URL")
    if base_url:
        data.setdefault("api", {})["base_url"] = base_url

    passcode = os.getenv("POURRICE_API_PASSCODE")
    if passcode:
        data.setdefault("api", {})["passcode"] = passcode

    firebase_key = os.getenv("FIREBASE_API_KEY")
    if firebase_key:
        data.setdefault("auth", {})["firebase_api_key"] = firebase_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("POURRICE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
