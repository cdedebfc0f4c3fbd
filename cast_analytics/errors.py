"""Exception types raised by the analytics service and its collaborators."""


class CastAnalyticsError(Exception):
    """Base class for cast analytics failures."""


class InvalidAccountIdError(CastAnalyticsError, ValueError):
    """Missing or malformed account identifier; no work was done."""


class AccountNotFoundError(CastAnalyticsError, LookupError):
    """The store or the live API has no account for the identifier."""


class SourceUnavailableError(CastAnalyticsError, RuntimeError):
    """
    Raised when the store or the social graph API cannot be read.

    Never retried or cached by the engine; the request fails as a whole.
    """


class ConfigurationError(CastAnalyticsError):
    """A required DSN or API key is missing."""
