"""
Domain models for the user directory.

User and UserPage are immutable; anything that changes the membership of a
page produces a new UserPage. UserListContext is the read-only metadata handed
to list observers next to the mutable user collection.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """One user retrieved from the upstream directory."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    first_name: str
    last_name: str
    avatar_url: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class UserPage(BaseModel):
    """
    One pagination unit of users plus the upstream-reported totals.

    total_pages is whatever upstream reported; it is never recomputed from
    total and per_page.
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    users: tuple[User, ...] = ()

    @classmethod
    def empty(cls, page: int, per_page: int) -> "UserPage":
        """The single fallback value for every unrecoverable fetch or payload error."""
        return cls(page=page, per_page=per_page, total=0, total_pages=0, users=())

    def with_users(self, users: Iterable[User]) -> "UserPage":
        """Same pagination numbers, new membership."""
        return self.model_copy(update={"users": tuple(users)})

    @property
    def is_empty(self) -> bool:
        return not self.users

    @property
    def user_count(self) -> int:
        return len(self.users)


@dataclass(frozen=True, slots=True)
class UserListContext:
    """Read-only request metadata passed to list observers."""

    page: int
    per_page: int
    total: int
    total_pages: int
    cache_ttl_seconds: int
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Private copy behind a read-only proxy: observers can't write to it and
        # later changes to the caller's dict don't leak in.
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)
