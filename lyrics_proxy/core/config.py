import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _is_enabled(env_var: str, default: bool = True) -> bool:
    """Check if a feature is enabled via environment variable."""
    value = os.getenv(env_var, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def _get_int(env_var: str, default: Optional[int] = None) -> Optional[int]:
    value = os.getenv(env_var)
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    genius_token: Optional[str] = None
    genius_api_base: str = "https://api.genius.com"
    proxy_secret: Optional[str] = None
    require_secret: bool = True
    client_ip_header: str = "CF-Connecting-IP"
    rate_limit_url: Optional[str] = None
    rate_limit_requests: Optional[int] = None
    rate_limit_period: int = 60
    cache_backend: str = "memory"  # memory, file, none
    cache_dir: str = "data/cache"
    cache_ttl: int = 86400
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            genius_token=os.getenv("GENIUS_ACCESS_TOKEN") or None,
            genius_api_base=os.getenv("GENIUS_API_BASE", cls.genius_api_base).rstrip("/"),
            proxy_secret=os.getenv("PROXY_SECRET") or None,
            require_secret=_is_enabled("REQUIRE_PROXY_SECRET"),
            client_ip_header=os.getenv("CLIENT_IP_HEADER", cls.client_ip_header),
            rate_limit_url=os.getenv("RATE_LIMIT_URL") or None,
            rate_limit_requests=_get_int("RATE_LIMIT_REQUESTS"),
            rate_limit_period=_get_int("RATE_LIMIT_PERIOD", cls.rate_limit_period),
            cache_backend=os.getenv("CACHE_BACKEND", cls.cache_backend).lower(),
            cache_dir=os.getenv("CACHE_DIR", cls.cache_dir),
            cache_ttl=_get_int("CACHE_TTL", cls.cache_ttl),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
