"""
Errors - Exception taxonomy for the auto-merge action.

Everything below the entrypoint derives from AutoMergeError so the
handler error boundary can report it uniformly.
"""


class AutoMergeError(Exception):
    """Base class for all auto-merge failures."""


class ConfigError(AutoMergeError):
    """Action inputs or runner environment are missing or malformed."""


class ParseError(AutoMergeError):
    """A git reference or commit message does not have the expected shape."""


class GraphQLError(AutoMergeError):
    """The graph API rejected a query or mutation."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.status == 404


class FetchError(AutoMergeError):
    """Reading pull request information failed."""


class MutationError(AutoMergeError):
    """A merge mutation was rejected or could not be sent."""
