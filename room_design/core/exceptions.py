"""
Error taxonomy for the room design service.

Every error carries a human-readable ``message`` that can be shown to the
player as-is, and the HTTP status the API layer answers with.
"""


class RoomDesignError(Exception):
    """Base exception for all room design operations."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(RoomDesignError):
    """Raised when a design, theme or vote does not exist."""

    status_code = 404


class NoVoteError(NotFoundError):
    """Raised when a vote is changed or removed but none was cast."""


class InvalidInputError(RoomDesignError):
    """Raised when input is malformed. Never partially applied."""

    status_code = 400


class InvalidIndexError(InvalidInputError):
    """Raised when an asset index is outside the design's asset list."""


class InvalidColorError(InvalidInputError):
    """Raised when a background color is not a ``#RRGGBB`` hex string."""


class InvalidDirectionError(InvalidInputError):
    """Raised when a layering direction is neither ``up`` nor ``down``."""


class UnauthorizedError(RoomDesignError):
    """Raised when an operation requires an authenticated identity."""

    status_code = 401

    def __init__(self, message: str = "Authentication required. Please log in to vote, save or submit designs."):
        super().__init__(message)


class ForbiddenError(RoomDesignError):
    """Raised when an authenticated user acts on something they may not touch."""

    status_code = 403


class SelfVoteError(ForbiddenError):
    """Raised when a user votes on their own design."""

    def __init__(self, message: str = "You cannot vote on your own design."):
        super().__init__(message)


class ConflictError(RoomDesignError):
    """Raised when the request conflicts with the current stored state."""

    status_code = 409


class DuplicateVoteError(ConflictError):
    """Raised when a vote already exists for the (voter, design) pair."""


class DuplicateSubmissionError(ConflictError):
    """Raised when a user submits a second design for the same theme."""


class DesignLockedError(ConflictError):
    """Raised when a submitted design is edited."""


class ConcurrentModificationError(ConflictError):
    """Raised when optimistic retries of a design update are exhausted."""


class StoreFailureError(RoomDesignError):
    """Raised when the underlying key-value store fails."""

    status_code = 503
