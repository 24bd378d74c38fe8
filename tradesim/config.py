import logging
import os
from typing import Any, Callable, Dict

from pydantic import BaseModel

logger = logging.getLogger(__name__)

ENV_PREFIX = "TRADESIM_"


class Settings(BaseModel):
    api_url: str = "https://api.sleeper.app/v1"
    database_url: str = "sleeper_cache.db"
    cache_ttl_seconds: int = 604800  # 7 days
    use_cache: bool = True
    request_pace_seconds: float = 0.1
    max_concurrent_requests: int = 3
    http_timeout: float = 30.0
    # In-memory league data; in-season matchups go stale as weeks are played.
    league_cache_maxsize: int = 256
    matchup_cache_ttl_seconds: int = 900
    # Sleeper league history is unreliable before this season.
    earliest_season: int = 2018
    max_week: int = 18

    @classmethod
    def from_environment(cls) -> "Settings":
        """Build settings from ``TRADESIM_*`` variables, keeping defaults for bad values."""
        values: Dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            cast = _CASTS.get(field.annotation, str)
            try:
                values[name] = cast(raw)
            except ValueError:
                logger.warning("Invalid %s%s '%s'; keeping default %r", ENV_PREFIX, name.upper(), raw, field.default)
        return cls(**values)


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(raw)


_CASTS: Dict[Any, Callable[[str], Any]] = {
    int: int,
    float: float,
    bool: _parse_bool,
    str: str,
}


settings = Settings.from_environment()
