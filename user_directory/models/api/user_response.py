# user_directory/models/api/user_response.py
from pydantic import BaseModel, Field

from user_directory.models.domain.user_domain import User, UserPage


class UserResponse(BaseModel):
    """One user as exposed by the API."""

    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    avatar_url: str

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            avatar_url=user.avatar_url,
        )


class UserPageResponse(BaseModel):
    """Response for GET /users"""

    page: int
    per_page: int
    total: int
    total_pages: int
    is_empty: bool
    users: list[UserResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: UserPage) -> "UserPageResponse":
        return cls(
            page=result.page,
            per_page=result.per_page,
            total=result.total,
            total_pages=result.total_pages,
            is_empty=result.is_empty,
            users=[UserResponse.from_domain(user) for user in result.users],
        )


class CacheInvalidationResponse(BaseModel):
    """Response for POST /users/cache/invalidate"""

    success: bool
    message: str
