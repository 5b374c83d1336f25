"""
User list service: cache lookup, fetch, validate, observe, store.

Request flow:
    cache hit                -> return cached page
    cache miss / no caching  -> fetch -> parse -> observers -> store -> return
    fetch failure            -> empty page (never cached)
    malformed payload        -> empty page (never cached)

Every transport and payload problem ends in the same empty page, so callers
never handle an "unavailable" signal. Observer exceptions are not recovered.
"""

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from user_directory.config import Settings, settings
from user_directory.infrastructure.observability.logging import get_logger
from user_directory.models.domain.user_domain import UserListContext, UserPage
from user_directory.services.infrastructure.memory_cache_backend import InMemoryCacheBackend
from user_directory.services.infrastructure.redis_cache_backend import RedisCacheBackend
from user_directory.services.reqres_client import RequestsUserSource, UserSource, UserSourceError
from user_directory.services.response_validator import validate_users_response
from user_directory.services.result_cache import ResultCache
from user_directory.services.user_filters import build_default_pipeline
from user_directory.services.user_list_pipeline import UserListPipeline

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "reqres_api_users"
CACHE_TAG = "reqres_api_users"


class UserListService:
    """Read-through, observer-aware provider of user pages."""

    def __init__(
        self,
        source: UserSource,
        pipeline: UserListPipeline | None = None,
        cache: ResultCache[UserPage] | None = None,
        endpoint: str = "https://reqres.in/api/users",
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
    ):
        self.source = source
        self.pipeline = pipeline or UserListPipeline()
        self.cache = cache
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def cache_key(page: int, per_page: int) -> str:
        """Depends on pagination only; caller options never vary the key."""
        return f"{CACHE_KEY_PREFIX}:page_{page}:per_page_{per_page}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def get_page(
        self,
        page: int = 1,
        per_page: int = 6,
        cache_ttl_seconds: int = 300,
        options: Mapping[str, Any] | None = None,
    ) -> UserPage:
        """
        Get one page of users.

        Args:
            page: 1-based page number
            per_page: Page size requested from upstream
            cache_ttl_seconds: Cache lifetime; 0 bypasses the cache completely
            options: Caller-supplied values exposed to observers via the context

        Returns:
            UserPage; the empty page when upstream is unreachable or its
            payload is malformed.

        Raises:
            ValueError: On out-of-range arguments.
            Exception: Anything raised by a list observer.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if per_page < 1:
            raise ValueError(f"per_page must be >= 1, got {per_page}")
        if cache_ttl_seconds < 0:
            raise ValueError(f"cache_ttl_seconds must be >= 0, got {cache_ttl_seconds}")

        use_cache = cache_ttl_seconds > 0 and self.cache is not None
        key = self.cache_key(page, per_page)

        if use_cache:
            cached, found = self.cache.get(key)
            if found:
                logger.info("User page served from cache", page=page, per_page=per_page)
                return cached

        try:
            raw = self.source.fetch(
                self.endpoint,
                {"page": page, "per_page": per_page},
                self._headers(),
                self.timeout_seconds,
            )
        except UserSourceError as e:
            logger.warning(
                "User fetch failed, returning empty page",
                page=page,
                per_page=per_page,
                error=str(e),
                error_type=e.error_type,
            )
            return UserPage.empty(page, per_page)

        parsed = validate_users_response(raw)
        if parsed is None:
            # Same outcome as a failed fetch: no observers, nothing cached
            return UserPage.empty(page, per_page)

        context = UserListContext(
            page=page,
            per_page=per_page,
            total=parsed.total,
            total_pages=parsed.total_pages,
            cache_ttl_seconds=cache_ttl_seconds,
            options=options or {},
        )
        result = self.pipeline.run(parsed, context)

        if use_cache:
            self.cache.set(key, result, cache_ttl_seconds, tags={CACHE_TAG})

        logger.info(
            "User page fetched",
            page=page,
            per_page=per_page,
            total=result.total,
            parsed_users=parsed.user_count,
            returned_users=result.user_count,
            cached=use_cache,
        )
        return result

    def invalidate_cache(self) -> None:
        """Drop every page this service has cached."""
        if self.cache is not None:
            self.cache.invalidate_tags([CACHE_TAG])

    def close(self) -> None:
        self.source.close()
        if self.cache is not None:
            self.cache.backend.close()


def build_user_list_service(config: Settings = settings) -> UserListService:
    """Wire the service from settings."""
    backend_config = config.get_cache_backend_config()

    cache: ResultCache[UserPage] | None
    if backend_config["backend"] == "redis":
        backend = RedisCacheBackend.from_url(
            backend_config["redis_url"], socket_timeout=backend_config["socket_timeout"]
        )
        cache = ResultCache(backend, UserPage)
    elif backend_config["backend"] == "memory":
        cache = ResultCache(InMemoryCacheBackend(), UserPage)
    else:
        cache = None

    logger.info("User list service configured", cache_backend=backend_config["backend"])

    return UserListService(
        source=RequestsUserSource(
            max_retries=config.REQRES_MAX_RETRIES,
            backoff_factor=config.REQRES_BACKOFF_FACTOR,
        ),
        pipeline=build_default_pipeline(config),
        cache=cache,
        endpoint=config.users_endpoint(),
        api_key=config.REQRES_API_KEY,
        timeout_seconds=config.REQRES_TIMEOUT_SECONDS,
    )


@lru_cache(maxsize=1)
def get_user_list_service() -> UserListService:
    """Process-wide service instance (FastAPI dependency)."""
    return build_user_list_service(settings)
