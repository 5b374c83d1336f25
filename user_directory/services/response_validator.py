"""
Response validation for the upstream users payload.

Turns raw, untrusted bytes into a UserPage. Malformed input never raises:
an undecodable body or a payload missing its pagination envelope is rejected
as a whole, while individual bad records are dropped without touching their
siblings.
"""

import json
from typing import Any

from pydantic import ValidationError

from user_directory.infrastructure.observability.logging import get_logger
from user_directory.models.domain.user_domain import UserPage
from user_directory.services.record_mapper import map_user_record

logger = get_logger(__name__)

REQUIRED_ENVELOPE_KEYS = ("page", "per_page", "total", "total_pages", "data")


def _reject(reason: str, **fields: Any) -> None:
    logger.warning("Upstream payload rejected", reason=reason, **fields)
    return None


def validate_users_response(raw: bytes | str) -> UserPage | None:
    """
    Validate an upstream users payload.

    Returns:
        UserPage built from the upstream-reported pagination numbers and the
        accepted records in their original order, or None when the payload as
        a whole is malformed.
    """
    try:
        # json detects UTF-8 (with or without BOM), UTF-16 and UTF-32 bodies
        payload = json.loads(raw)
    except (ValueError, RecursionError) as e:
        return _reject("undecodable", error=str(e))

    if not isinstance(payload, dict):
        return _reject("not_an_object", payload_type=type(payload).__name__)

    missing = [key for key in REQUIRED_ENVELOPE_KEYS if payload.get(key) is None]
    if missing:
        return _reject("missing_keys", missing=missing)
    if not isinstance(payload["data"], list):
        return _reject("data_not_a_list", data_type=type(payload["data"]).__name__)

    users = []
    for record in payload["data"]:
        user = map_user_record(record)
        if user is not None:
            users.append(user)

    try:
        result = UserPage(
            page=payload["page"],
            per_page=payload["per_page"],
            total=payload["total"],
            total_pages=payload["total_pages"],
            users=tuple(users),
        )
    except ValidationError as e:
        return _reject("bad_pagination", error_count=e.error_count())

    logger.info(
        "Upstream payload parsed",
        page=result.page,
        per_page=result.per_page,
        total=result.total,
        accepted=len(users),
        rejected=len(payload["data"]) - len(users),
    )
    return result


def parse_users_response(raw: bytes | str, page: int, per_page: int) -> UserPage:
    """
    Parse an upstream users payload, falling back to the empty page.

    Args:
        raw: Response body exactly as received
        page: Requested page, used only for the empty fallback
        per_page: Requested page size, used only for the empty fallback
    """
    result = validate_users_response(raw)
    if result is None:
        return UserPage.empty(page, per_page)
    return result
