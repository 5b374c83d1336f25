"""
users.py
--------
Purpose:
    JSON endpoints over UserListService.

    - GET /users returns one page of users after caching and list observers.
    - POST /users/cache/invalidate drops every cached page.

Usage:
    app.include_router(users.router)
"""

from fastapi import APIRouter, Depends, Query

from user_directory.config import settings
from user_directory.infrastructure.observability.logging import get_logger
from user_directory.models.api.user_response import CacheInvalidationResponse, UserPageResponse
from user_directory.services.user_filters import MAX_USERS_OPTION
from user_directory.services.user_list_service import UserListService, get_user_list_service

router = APIRouter(prefix="/users", tags=["users"])
logger = get_logger(__name__)


@router.get("", response_model=UserPageResponse)
def list_users(
    page: int = Query(settings.DEFAULT_PAGE, ge=1),
    per_page: int = Query(settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
    cache_ttl: int = Query(settings.DEFAULT_CACHE_TTL_SECONDS, ge=0),
    max_users: int | None = Query(None, ge=0),
    service: UserListService = Depends(get_user_list_service),
):
    options = {}
    if max_users is not None:
        options[MAX_USERS_OPTION] = max_users

    result = service.get_page(page=page, per_page=per_page, cache_ttl_seconds=cache_ttl, options=options)
    return UserPageResponse.from_domain(result)


@router.post("/cache/invalidate", response_model=CacheInvalidationResponse)
def invalidate_users_cache(service: UserListService = Depends(get_user_list_service)):
    service.invalidate_cache()
    logger.info("User list cache invalidated via API")
    return CacheInvalidationResponse(success=True, message="User list cache invalidated")
