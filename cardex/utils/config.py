"""Environment-driven settings for the extraction service."""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_KNOWLEDGE_DIR = Path(__file__).resolve().parent.parent / "knowledge" / "data"
DEFAULT_SPORT_LOOKUP_URL = "https://site.web.api.espn.com/apis/search/v2"

# External lookups must never hold a listing for longer than this
MAX_SPORT_LOOKUP_TIMEOUT = 2.0


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    log_level: str
    knowledge_dir: Path
    catalog_source: str
    sport_lookup_enabled: bool
    sport_lookup_url: str
    sport_lookup_timeout: float
    sport_lookup_cache_ttl: float
    sport_lookup_min_interval: float
    batch_max_workers: int
    reprocess_cron: Optional[str]
    reprocess_batch_size: int


def load_settings() -> Settings:
    """Read settings from the environment (no caching)."""
    timeout = _env_float("SPORT_LOOKUP_TIMEOUT", MAX_SPORT_LOOKUP_TIMEOUT)
    return Settings(
        log_level=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
        knowledge_dir=Path(os.environ.get("KNOWLEDGE_DIR") or DEFAULT_KNOWLEDGE_DIR),
        catalog_source=(os.environ.get("CATALOG_SOURCE") or "static").lower(),
        sport_lookup_enabled=_env_bool("SPORT_LOOKUP_ENABLED"),
        sport_lookup_url=os.environ.get("SPORT_LOOKUP_URL") or DEFAULT_SPORT_LOOKUP_URL,
        sport_lookup_timeout=min(max(timeout, 0.1), MAX_SPORT_LOOKUP_TIMEOUT),
        sport_lookup_cache_ttl=_env_float("SPORT_LOOKUP_CACHE_TTL", 24 * 60 * 60),
        sport_lookup_min_interval=_env_float("SPORT_LOOKUP_MIN_INTERVAL", 0.0),
        batch_max_workers=max(1, _env_int("BATCH_MAX_WORKERS", 4)),
        reprocess_cron=os.environ.get("REPROCESS_CRON") or None,
        reprocess_batch_size=max(1, _env_int("REPROCESS_BATCH_SIZE", 500)),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
