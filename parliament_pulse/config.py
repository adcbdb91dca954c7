"""Configuration helpers for Parliament Pulse."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_BASE_URL = "https://www.parliament.bg/api/v1"
DEFAULT_IMAGES_BASE_URL = "https://www.parliament.bg/images/Assembly"
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://localhost:5174")


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """Process-wide cache behaviour, fixed once the process has started."""

    enable_caching: bool = True
    assembly_ttl_minutes: int = 1440
    parties_ttl_minutes: int = 720
    members_ttl_minutes: int = 180
    absences_ttl_minutes: int = 30
    use_absolute_expiration: bool = True
    max_cache_size_mb: int = 100
    compaction_percentage: float = 0.9
    enable_cache_logging: bool = True

    @property
    def capacity_bytes(self) -> int:
        return self.max_cache_size_mb * 1024 * 1024


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    api_base_url: str = DEFAULT_API_BASE_URL
    images_base_url: str = DEFAULT_IMAGES_BASE_URL
    request_timeout: float = 15.0
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "info"
    cache: CacheSettings = field(default_factory=CacheSettings)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"{name} must be a boolean, got {value!r}")


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}")
    return parsed


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {value!r}") from exc


def load_cache_settings() -> CacheSettings:
    compaction = _env_float("CACHE_COMPACTION_PERCENTAGE", 0.9)
    if not 0 < compaction <= 1:
        raise RuntimeError("CACHE_COMPACTION_PERCENTAGE must be in (0, 1]")

    return CacheSettings(
        enable_caching=_env_bool("CACHE_ENABLED", True),
        assembly_ttl_minutes=_env_int("CACHE_ASSEMBLY_TTL_MINUTES", 1440, minimum=1),
        parties_ttl_minutes=_env_int("CACHE_PARTIES_TTL_MINUTES", 720, minimum=1),
        members_ttl_minutes=_env_int("CACHE_MEMBERS_TTL_MINUTES", 180, minimum=1),
        absences_ttl_minutes=_env_int("CACHE_ABSENCES_TTL_MINUTES", 30, minimum=1),
        use_absolute_expiration=_env_bool("CACHE_USE_ABSOLUTE_EXPIRATION", True),
        max_cache_size_mb=_env_int("CACHE_MAX_SIZE_MB", 100, minimum=1),
        compaction_percentage=compaction,
        enable_cache_logging=_env_bool("CACHE_LOGGING", True),
    )


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    origins = os.getenv("CORS_ORIGINS")
    cors_origins = (
        tuple(origin.strip() for origin in origins.split(",") if origin.strip())
        if origins
        else DEFAULT_CORS_ORIGINS
    )

    timeout = _env_float("PARLIAMENT_API_TIMEOUT", 15.0)
    if timeout <= 0:
        raise RuntimeError("PARLIAMENT_API_TIMEOUT must be positive")

    return Settings(
        api_base_url=os.getenv("PARLIAMENT_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        images_base_url=os.getenv("PARLIAMENT_IMAGES_BASE_URL", DEFAULT_IMAGES_BASE_URL).rstrip("/"),
        request_timeout=timeout,
        cors_origins=cors_origins,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        cache=load_cache_settings(),
    )


__all__ = ["CacheSettings", "Settings", "load_cache_settings", "load_settings"]
