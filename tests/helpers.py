"""
Shared builders and test doubles for the unit tests.
"""

from __future__ import annotations

import json

from user_directory.models.domain.user_domain import User, UserListContext, UserPage
from user_directory.services.reqres_client import UserSource


def make_user_record(user_id: int, **overrides) -> dict:
    record = {
        "id": user_id,
        "email": f"user{user_id}@reqres.in",
        "first_name": f"First{user_id}",
        "last_name": f"Last{user_id}",
        "avatar": f"https://reqres.in/img/faces/{user_id}-image.jpg",
    }
    record.update(overrides)
    return record


def make_payload(records: list, page: int = 1, per_page: int = 6, total: int = 12, total_pages: int = 2) -> bytes:
    return json.dumps(
        {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "data": records,
        }
    ).encode("utf-8")


def make_user(user_id: int, email: str | None = None, first_name: str = "Jane", last_name: str = "Doe") -> User:
    return User(
        id=user_id,
        email=email or f"user{user_id}@reqres.in",
        first_name=first_name,
        last_name=last_name,
        avatar_url=f"https://reqres.in/img/faces/{user_id}-image.jpg",
    )


def make_context(page: UserPage, ttl: int = 300, **options) -> UserListContext:
    return UserListContext(
        page=page.page,
        per_page=page.per_page,
        total=page.total,
        total_pages=page.total_pages,
        cache_ttl_seconds=ttl,
        options=options,
    )


class StubUserSource(UserSource):
    """Returns queued bodies (or raises queued errors) and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []
        self.closed = False

    def fetch(self, url, query, headers, timeout):
        self.calls.append({"url": url, "query": dict(query), "headers": dict(headers), "timeout": timeout})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True


class ManualClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """The subset of redis.Redis the cache backend uses (decode_responses=True)."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.ttls: dict[str, int] = {}
        self.closed = False

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    def sadd(self, key: str, *members: str) -> int:
        bucket = self.sets.setdefault(key, set())
        before = len(bucket)
        bucket.update(members)
        return len(bucket) - before

    def smembers(self, key: str) -> set[str]:
        return set(self.sets.get(key, set()))

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            if self.sets.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        self.closed = True

