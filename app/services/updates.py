"""Allow-list checks for partial updates."""

from collections.abc import Iterable

USER_UPDATABLE_FIELDS = frozenset({"name", "email", "password", "age"})
TASK_UPDATABLE_FIELDS = frozenset({"description", "completed"})


class InvalidUpdateError(ValueError):
    """Raised when an update names a field outside the allow-list."""

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = sorted(fields)
        super().__init__("Invalid update.")


def check_allowed_updates(fields: Iterable[str], allowed: frozenset[str]) -> None:
    """Reject the whole update if any field is not allowed."""
    rejected = set(fields) - allowed
    if rejected:
        raise InvalidUpdateError(rejected)
