"""Wiring helpers: build the cache, auth provider and API client from settings."""

from __future__ import annotations

from pourrice.auth.provider import AnonymousAuthProvider, AuthProvider, FirebaseAuthProvider
from pourrice.clients.base import ApiClient
from pourrice.config.settings import Settings
from pourrice.core.cache import FileCache
from pourrice.core.env import resolve_project_path


def build_cache(settings: Settings) -> FileCache:
    return FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


def build_auth(settings: Settings) -> AuthProvider:
    """Firebase provider when an API key is configured, anonymous otherwise."""
    if settings.auth.firebase_api_key:
        return FirebaseAuthProvider(settings)
    return AnonymousAuthProvider()


def build_api(settings: Settings, auth: AuthProvider | None = None) -> ApiClient:
    return ApiClient(settings, auth if auth is not None else build_auth(settings))
