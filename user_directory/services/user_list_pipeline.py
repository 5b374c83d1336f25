"""
Observer pipeline for user lists.

Lets extension code inspect and change the membership of a UserPage before it
is returned and cached. Observers are registered with an integer priority;
higher priorities run first and equal priorities run in registration order.
Every registered observer runs on every page: there is no early exit, and an
observer that raises fails the whole run.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from user_directory.infrastructure.observability.logging import get_logger
from user_directory.models.domain.user_domain import User, UserListContext, UserPage

logger = get_logger(__name__)


def _require_user(value: Any) -> User:
    if not isinstance(value, User):
        raise TypeError(f"Expected User, got {type(value).__name__}")
    return value


class UserListEvent:
    """Mutable view of the user collection handed to each observer."""

    def __init__(self, users: Iterable[User], context: UserListContext):
        self._users = list(users)
        self._context = context

    @property
    def users(self) -> list[User]:
        return list(self._users)

    @property
    def context(self) -> UserListContext:
        return self._context

    def set_users(self, users: Iterable[User]) -> None:
        users = list(users)
        for user in users:
            _require_user(user)
        self._users = users

    def add_user(self, user: User) -> None:
        self._users.append(_require_user(user))

    def remove_user_by_id(self, user_id: int) -> None:
        self._users = [user for user in self._users if user.id != user_id]

    def filter_users(self, predicate: Callable[[User], bool]) -> None:
        """Keep only the users for which predicate returns True."""
        self._users = [user for user in self._users if predicate(user)]

    @property
    def user_count(self) -> int:
        return len(self._users)

    @property
    def is_empty(self) -> bool:
        return not self._users

    # Context shortcuts
    @property
    def page(self) -> int:
        return self._context.page

    @property
    def per_page(self) -> int:
        return self._context.per_page

    @property
    def total(self) -> int:
        return self._context.total

    def get_option(self, key: str, default: Any = None) -> Any:
        return self._context.get_option(key, default)


UserListObserver = Callable[[UserListEvent], None]


class UserListSubscriber(Protocol):
    """An object that contributes several observers at once."""

    def subscribed_observers(self) -> Iterable[tuple[UserListObserver, int]]: ...


@dataclass(frozen=True, slots=True)
class ObserverRegistration:
    priority: int
    sequence_index: int
    action: UserListObserver
    name: str

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.sequence_index)


class UserListPipeline:
    """Priority-ordered, append-only set of user list observers."""

    def __init__(self):
        self._registrations: list[ObserverRegistration] = []
        self._next_sequence = 0

    def register(
        self, action: UserListObserver, priority: int = 0, name: str | None = None
    ) -> ObserverRegistration:
        """
        Add an observer.

        Registration is expected to happen at startup, before requests are
        served; it is not safe to register concurrently with run().
        """
        registration = ObserverRegistration(
            priority=priority,
            sequence_index=self._next_sequence,
            action=action,
            name=name or getattr(action, "__qualname__", repr(action)),
        )
        self._next_sequence += 1
        self._registrations.append(registration)
        self._registrations.sort(key=lambda r: r.sort_key)

        logger.debug(
            "User list observer registered",
            observer=registration.name,
            priority=priority,
            sequence_index=registration.sequence_index,
        )
        return registration

    def subscribe(self, subscriber: UserListSubscriber) -> list[ObserverRegistration]:
        """Register every (observer, priority) pair a subscriber declares."""
        return [self.register(action, priority) for action, priority in subscriber.subscribed_observers()]

    @property
    def observers(self) -> tuple[ObserverRegistration, ...]:
        """Registrations in execution order."""
        return tuple(self._registrations)

    def __len__(self) -> int:
        return len(self._registrations)

    def run(self, page: UserPage, context: UserListContext) -> UserPage:
        """
        Run every observer over the page's users, in order.

        Returns:
            New UserPage with the final users and the input's pagination numbers.

        Raises:
            Whatever an observer raises, unchanged.
        """
        if not self._registrations:
            return page

        event = UserListEvent(page.users, context)

        for registration in self._registrations:
            before = event.user_count
            try:
                registration.action(event)
            except Exception as e:
                logger.error(
                    "User list observer failed",
                    observer=registration.name,
                    priority=registration.priority,
                    page=context.page,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            if event.user_count != before:
                logger.debug(
                    "User list observer changed membership",
                    observer=registration.name,
                    before=before,
                    after=event.user_count,
                )

        return page.with_users(event.users)
