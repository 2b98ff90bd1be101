"""
Error types raised by the leaderboard components.
"""


class LeaderboardError(Exception):
    """Base class for every error surfaced to a user action."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LeaderboardError):
    """Bad user input, detected before any store call."""

    status = 400


class StoreUnavailable(LeaderboardError):
    """The store could not be reached or rejected the operation."""

    status = 500


TransportError = StoreUnavailable


class NotFound(LeaderboardError):
    """An operation targeted a record that does not exist."""

    status = 404


class AlreadyExists(LeaderboardError):
    """Duplicate admin username, or setup has already been completed."""

    status = 409


class ConfigurationError(LeaderboardError):
    """A required secret or setting is missing."""

    status = 500


class AuthenticationError(LeaderboardError):
    status = 401


class InvalidSetupKey(AuthenticationError):
    pass
