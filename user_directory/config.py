from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # ReqRes upstream settings
    REQRES_BASE_URL: str = "https://reqres.in/api"
    REQRES_USERS_PATH: str = "/users"
    REQRES_API_KEY: str | None = "reqres-free-v1"
    REQRES_TIMEOUT_SECONDS: float = 10.0
    REQRES_MAX_RETRIES: int = 2
    REQRES_BACKOFF_FACTOR: float = 0.5

    # =================================================================
    # PAGINATION DEFAULTS - what the presentation layer asks for
    # =================================================================
    DEFAULT_PAGE: int = 1
    DEFAULT_PER_PAGE: int = 6
    MAX_PER_PAGE: int = 100
    DEFAULT_CACHE_TTL_SECONDS: int = 300  # 0 disables caching

    # =================================================================
    # CACHE BACKEND
    # =================================================================
    CACHE_BACKEND: Literal["memory", "redis", "none"] = "memory"
    REDIS_URL: str | None = None
    REDIS_SOCKET_TIMEOUT: float = 2.0

    # Bundled list filters (empty disables the filter)
    BLOCKED_EMAIL_DOMAINS: list[str] = []
    BLOCKED_FULL_NAMES: list[str] = []

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def users_endpoint(self) -> str:
        """Full URL of the upstream users collection."""
        base = self.REQRES_BASE_URL.rstrip("/")
        return f"{base}/{self.REQRES_USERS_PATH.lstrip('/')}"

    def get_cache_backend_config(self) -> dict:
        """
        Get cache backend configuration.
        Falls back to the in-process backend when Redis is selected without a URL.
        """
        backend = self.CACHE_BACKEND
        if backend == "redis" and not self.REDIS_URL:
            backend = "memory"

        return {
            "backend": backend,
            "redis_url": self.REDIS_URL,
            "socket_timeout": self.REDIS_SOCKET_TIMEOUT,
        }


settings = Settings()
