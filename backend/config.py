"""
AquaSight - Runtime settings.
Defaults live here as constants; deployment overrides come from environment variables.
"""
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

logger = logging.getLogger(__name__)

ENV_PREFIX = "AQUASIGHT_"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_CORS_ORIGINS = ("*",)
DEFAULT_MAX_UPLOAD_BYTES = 0  # 0 = no limit
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000

API_TITLE = "AquaSight API"
API_VERSION = "1.0.0"


@dataclass(frozen=True)
class Settings:
    log_level: str = DEFAULT_LOG_LEVEL
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _env_int(name: str, default: int) -> int:
    """Read a non-negative integer from the environment; fall back to default when malformed."""
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s%s=%r: not an integer", ENV_PREFIX, name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring %s%s=%r: must be >= 0", ENV_PREFIX, name, raw)
        return default
    return value


def _env_origins() -> Tuple[str, ...]:
    raw = os.environ.get(ENV_PREFIX + "CORS_ORIGINS")
    if not raw:
        return DEFAULT_CORS_ORIGINS
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    return origins or DEFAULT_CORS_ORIGINS


def _env_log_level() -> str:
    """Read a logging level name; fall back to the default when logging does not know it."""
    raw = os.environ.get(ENV_PREFIX + "LOG_LEVEL")
    if raw is None or not raw.strip():
        return DEFAULT_LOG_LEVEL
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Ignoring %sLOG_LEVEL=%r: unknown logging level", ENV_PREFIX, raw)
        return DEFAULT_LOG_LEVEL
    return level


def load_settings() -> Settings:
    """Build Settings from the current environment (uncached)."""
    return Settings(
        log_level=_env_log_level(),
        cors_origins=_env_origins(),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        host=os.environ.get(ENV_PREFIX + "HOST") or DEFAULT_HOST,
        port=_env_int("PORT", DEFAULT_PORT),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return load_settings()
