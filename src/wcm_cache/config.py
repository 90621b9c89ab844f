import os
import sys
import uuid
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv
from loguru import logger

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip().lower() for item in raw.split(",") if item.strip())


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    return int(raw) if raw else None


# Directory snapshot TTLs: pages change often while authoring, rarely in production
DEVELOPMENT_DIRECTORY_TTL = 120
PRODUCTION_DIRECTORY_TTL = 60 * 60 * 24


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Mode: "development" or "production"
    appserver_mode: str = os.getenv("APPSERVER_MODE", "development")

    # WCM
    wcm_enabled: bool = _env_flag("WCM_ENABLED", "true")
    wcm_cache: bool = _env_flag("WCM_CACHE")
    force_page_cache: bool = _env_flag("FORCE_WCM_PAGE_CACHE")
    directory_ttl_override: int | None = _env_optional_int("WCM_DIRECTORY_TTL")
    preload_flag_ttl: int = int(os.getenv("WCM_PRELOAD_FLAG_TTL", "30"))
    preload_wait_ms: int = int(os.getenv("WCM_PRELOAD_WAIT_MS", "500"))
    preload_deadline: float = float(os.getenv("WCM_PRELOAD_DEADLINE", "60"))
    page_cache_ttl: int = int(os.getenv("WCM_PAGE_CACHE_TTL", "86400"))  # 24 hours
    cache_headers: tuple[str, ...] = _env_list("WCM_CACHE_HEADERS", "accept,accept-language")

    # Tenancy defaults
    repository_id: str = os.getenv("WCM_REPOSITORY_ID", "default")
    branch_id: str = os.getenv("WCM_BRANCH_ID", "master")

    # Stores
    store_root: str = os.getenv("WCM_STORE_ROOT", "./data")
    template_root: str = os.getenv("WCM_TEMPLATE_ROOT", "./templates")
    content_store_url: str | None = os.getenv("CONTENT_STORE_URL")
    content_store_token: str | None = os.getenv("CONTENT_STORE_TOKEN")
    content_file: str | None = os.getenv("WCM_CONTENT_FILE")

    # Shared cache and broadcast backend: "redis" or "memory" (single process)
    backend: str = os.getenv("WCM_BACKEND", "redis")
    worker_id: str = os.getenv("WORKER_ID", uuid.uuid4().hex)

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    @property
    def is_production(self) -> bool:
        """Check whether the server runs in production mode."""
        return self.appserver_mode == "production"

    @property
    def directory_ttl(self) -> int:
        """Time-to-live of the page directory snapshot in seconds."""
        if self.directory_ttl_override is not None:
            return self.directory_ttl_override
        if self.is_production:
            return PRODUCTION_DIRECTORY_TTL
        return DEVELOPMENT_DIRECTORY_TTL

    @property
    def page_cache_enabled(self) -> bool:
        """Check whether rendered pages should be cached.

        The page cache is only used when WCM is enabled, caching was
        requested (or forced), and the server runs in production mode.

        Returns:
            True if the render cache is active, False otherwise
        """
        if not self.wcm_enabled:
            return False
        if not (self.wcm_cache or self.force_page_cache):
            return False
        return self.is_production

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.appserver_mode not in ("development", "production"):
            raise ValueError(
                f"APPSERVER_MODE must be 'development' or 'production', got {self.appserver_mode!r}"
            )

        if self.backend not in ("redis", "memory"):
            raise ValueError(
                f"WCM_BACKEND must be 'redis' or 'memory', got {self.backend!r}"
            )

        for name in ("preload_flag_ttl", "preload_wait_ms", "preload_deadline", "page_cache_ttl"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

        if self.directory_ttl_override is not None and self.directory_ttl_override <= 0:
            raise ValueError("WCM_DIRECTORY_TTL must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client(config: Settings | None = None) -> redis.Redis:
    """Create an asyncio Redis client instance."""
    config = config or settings
    return redis.from_url(
        config.redis_url,
        password=config.redis_password,
        decode_responses=False,
    )


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with one at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=(level or settings.log_level).upper())
