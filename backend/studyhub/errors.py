"""Error taxonomy for the review engine."""


class ReviewError(Exception):
    """Base class for review engine errors."""

    pass


class LoadFailure(ReviewError):
    """Raised when cards or progress for a session cannot be fetched."""

    pass


class PersistenceFailure(ReviewError):
    """Raised when a scheduling state write fails."""

    pass


class InvalidQuality(ReviewError, ValueError):
    """Raised when a rating falls outside the 0-5 quality scale."""

    pass


class SessionClosedError(ReviewError):
    """Raised when an action targets a session that is not presenting a card."""

    pass
