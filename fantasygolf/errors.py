"""Exception taxonomy surfaced to callers of the league engine.

Each error carries the HTTP-style status code the (external) handler layer
should map it to.
"""


class LeagueError(Exception):
    """Base class for all engine errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LeagueError):
    """A referenced tournament, golfer, season, pick or user does not exist."""

    status_code = 404


class ValidationError(LeagueError):
    """Malformed input or a violated game rule (roster size, budget, podium...)."""

    status_code = 400

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class StateError(LeagueError):
    """Operation disallowed by the current league configuration."""

    status_code = 409

    def __init__(self, message: str, setting: str | None = None):
        super().__init__(message)
        self.setting = setting


class DependencyError(LeagueError):
    """The persistence layer failed. Never raised for cache failures."""

    status_code = 500


class DuplicateKeyError(DependencyError):
    """A write would violate a unique index of the document store."""

    status_code = 409
