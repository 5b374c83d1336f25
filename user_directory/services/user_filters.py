"""
Bundled user list observers.

Each factory returns an observer for UserListPipeline.register. The
UserFilterSubscriber groups them with their default priorities:
email domain blocking (100), name blocking (50), then the caller-driven
size limit (-100) so it truncates an already-filtered list.
"""

from collections.abc import Iterable

from user_directory.config import Settings
from user_directory.infrastructure.observability.logging import get_logger
from user_directory.services.user_list_pipeline import UserListEvent, UserListObserver, UserListPipeline

logger = get_logger(__name__)

EMAIL_FILTER_PRIORITY = 100
NAME_FILTER_PRIORITY = 50
LIMIT_PRIORITY = -100

MAX_USERS_OPTION = "max_users"


def block_email_domains(domains: Iterable[str]) -> UserListObserver:
    """Remove users whose email ends with any of the given suffixes (case-insensitive)."""
    suffixes = tuple(domain.lower() for domain in domains)

    def filter_by_email(event: UserListEvent) -> None:
        if not suffixes:
            return
        event.filter_users(lambda user: not user.email.lower().endswith(suffixes))

    return filter_by_email


def block_full_names(names: Iterable[str]) -> UserListObserver:
    """Remove users whose "first last" name matches exactly."""
    blocked = frozenset(names)

    def filter_by_name(event: UserListEvent) -> None:
        if not blocked:
            return
        event.filter_users(lambda user: user.full_name not in blocked)

    return filter_by_name


def limit_users(option: str = MAX_USERS_OPTION) -> UserListObserver:
    """Truncate the list to the caller-supplied maximum, if one was given."""

    def limit(event: UserListEvent) -> None:
        value = event.get_option(option)
        if value is None:
            return
        try:
            max_users = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid user limit option", option=option, value=str(value))
            return
        if max_users < 0:
            return

        users = event.users
        if len(users) > max_users:
            event.set_users(users[:max_users])

    return limit


class UserFilterSubscriber:
    """Email, name and size filters registered as one unit."""

    def __init__(self, blocked_domains: Iterable[str] = (), blocked_names: Iterable[str] = ()):
        self.blocked_domains = list(blocked_domains)
        self.blocked_names = list(blocked_names)

    def subscribed_observers(self) -> list[tuple[UserListObserver, int]]:
        return [
            (block_email_domains(self.blocked_domains), EMAIL_FILTER_PRIORITY),
            (block_full_names(self.blocked_names), NAME_FILTER_PRIORITY),
            (limit_users(), LIMIT_PRIORITY),
        ]


def build_default_pipeline(config: Settings) -> UserListPipeline:
    pipeline = UserListPipeline()
    pipeline.subscribe(
        UserFilterSubscriber(
            blocked_domains=config.BLOCKED_EMAIL_DOMAINS,
            blocked_names=config.BLOCKED_FULL_NAMES,
        )
    )
    return pipeline
