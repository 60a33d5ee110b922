"""
Runtime configuration for the POI proximity agent.

Values come from the environment (optionally seeded from a .env file via
python-dotenv) and are collected into one immutable Settings object that is
handed to the cache, places and geocoding clients explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_CACHE_DIR = PROJECT_ROOT / "places_cache"
CACHE_TTL_SECONDS = 7 * 24 * 60 * 60
# Places needs a short pause before a next_page_token becomes valid
PAGE_DELAY_SECONDS = 2.0
MAX_SEARCH_PAGES = 3
REQUEST_TIMEOUT_SECONDS = 8.0
DEFAULT_USER_AGENT = "poi-proximity-agent/1.0"


@dataclass(frozen=True)
class Settings:
    """Container for application configuration."""

    google_maps_api_key: str
    cache_dir: Path = DEFAULT_CACHE_DIR
    cache_ttl_seconds: float = CACHE_TTL_SECONDS
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    page_delay_seconds: float = PAGE_DELAY_SECONDS
    max_pages: int = MAX_SEARCH_PAGES
    geocode_concurrency: int = 1
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def _float(env: Mapping[str, str], name: str, default: float, minimum: float = 0.0) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _int(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ after loading .env.

    Returns:
        Settings populated from the environment, defaults where unset.

    Raises:
        ValueError: a numeric variable is malformed or out of range.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    api_key = env.get("GOOGLE_MAPS_API_KEY", "").strip()
    if not api_key:
        LOGGER.warning("GOOGLE_MAPS_API_KEY is not set; provider calls will be rejected")

    cache_dir_raw = env.get("POI_CACHE_DIR", "").strip()
    log_file_raw = env.get("LOG_FILE", "").strip()

    return Settings(
        google_maps_api_key=api_key,
        cache_dir=Path(cache_dir_raw).expanduser() if cache_dir_raw else DEFAULT_CACHE_DIR,
        cache_ttl_seconds=_float(env, "POI_CACHE_TTL_SECONDS", CACHE_TTL_SECONDS),
        request_timeout=_float(env, "PROVIDER_TIMEOUT_SECONDS", REQUEST_TIMEOUT_SECONDS, minimum=0.1),
        page_delay_seconds=_float(env, "PLACES_PAGE_DELAY_SECONDS", PAGE_DELAY_SECONDS),
        max_pages=_int(env, "PLACES_MAX_PAGES", MAX_SEARCH_PAGES),
        geocode_concurrency=_int(env, "GEOCODE_CONCURRENCY", 1),
        user_agent=env.get("PROVIDER_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
        log_level=(env.get("LOG_LEVEL", "").strip() or "INFO").upper(),
        log_file=Path(log_file_raw).expanduser() if log_file_raw else None,
    )
