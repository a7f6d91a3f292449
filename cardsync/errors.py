"""
Error taxonomy for card sync.

    InvalidStatus: task status outside pending/in_progress/completed
    UnconfiguredList: board has no list bound to a required role
    TransportError: remote call failed (network, auth, rate limit, 5xx)
    NotFoundError: referenced card or item no longer exists remotely
    ConfigError: credentials or config file unusable

Workflow operations catch CardSyncError at their boundary and turn it into
a result object; nothing here is retried automatically.
"""
from typing import Optional


class CardSyncError(Exception):
    """Base class for every error raised by cardsync."""
    pass


class ConfigError(CardSyncError):
    """Raised when configuration is invalid or incomplete."""
    pass


class InvalidStatus(CardSyncError, ValueError):
    """Raised for a task status the mapper does not know."""

    def __init__(self, status):
        self.status = status
        super().__init__(
            f"Invalid task status: {status!r}. "
            f"Expected one of: pending, in_progress, completed"
        )


class UnconfiguredList(CardSyncError):
    """Raised when no board list is bound to a role."""

    def __init__(self, role):
        self.role = role
        name = getattr(role, "value", role)
        super().__init__(
            f"No list configured for role '{name}'. "
            f"Set TRELLO_LIST_* or rename a board list to match."
        )


class BoardError(CardSyncError):
    """A board service call failed."""
    pass


class TransportError(BoardError):
    """Network, auth, rate-limit or server failure talking to the board."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(BoardError):
    """The referenced remote entity does not exist."""
    pass
