"""Maps one raw upstream user record onto the User domain model."""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from user_directory.infrastructure.observability.logging import get_logger
from user_directory.models.domain.user_domain import User

logger = get_logger(__name__)

# Upstream field -> User field
USER_FIELD_MAP = {
    "id": "id",
    "email": "email",
    "first_name": "first_name",
    "last_name": "last_name",
    "avatar": "avatar_url",
}


def map_user_record(raw: Any) -> User | None:
    """
    Convert one raw record into a User, or reject it.

    A record is accepted only when every field in USER_FIELD_MAP is present,
    non-null and coercible to the User schema. Rejection returns None; it is an
    expected outcome and never raises.
    """
    if not isinstance(raw, Mapping):
        logger.debug("User record rejected", reason="not_a_mapping", record_type=type(raw).__name__)
        return None

    missing = [name for name in USER_FIELD_MAP if raw.get(name) is None]
    if missing:
        logger.debug("User record rejected", reason="missing_fields", missing=missing, record_id=raw.get("id"))
        return None

    try:
        return User.model_validate({target: raw[source] for source, target in USER_FIELD_MAP.items()})
    except ValidationError as e:
        logger.debug(
            "User record rejected",
            reason="invalid_types",
            record_id=raw.get("id"),
            error_count=e.error_count(),
        )
        return None
