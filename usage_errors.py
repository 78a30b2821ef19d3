"""
Exception types for claude-limits.

Everything raised on purpose derives from ClaudeLimitsError so the CLI can
report it and exit non-zero without a traceback.
"""

from typing import Optional


class ClaudeLimitsError(Exception):
    """Base class for all claude-limits errors."""


class NoMatchError(ClaudeLimitsError):
    """No usage field matched a query."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"no match found for query {query!r}")


class AuthError(ClaudeLimitsError):
    """Authentication-related failure."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"authentication error ({source}): {message}")


class CredentialsNotFoundError(AuthError):
    """Claude Code credentials file is missing."""


class RequestError(ClaudeLimitsError):
    """HTTP request to the usage API failed."""

    def __init__(self, message: str, retriable: bool = False):
        self.message = message
        self.retriable = retriable
        super().__init__(message)


class APIError(RequestError):
    """Usage API answered with a non-200 status."""

    def __init__(self, status_code: int, message: str, retriable: bool = False):
        self.status_code = status_code
        super().__init__(f"API error (status {status_code}): {message}", retriable=retriable)
        self.message = message


class ResponseParseError(ClaudeLimitsError):
    """Usage API response could not be parsed."""


class CacheError(ClaudeLimitsError):
    """Reading or writing the usage cache failed."""

    def __init__(self, operation: str, path: str, message: Optional[str] = None):
        self.operation = operation
        self.path = path
        super().__init__(f"cache {operation} error ({path}): {message}")


class CacheExpiredError(ClaudeLimitsError):
    """Cached usage is older than the requested TTL."""

    def __init__(self, age_seconds: float):
        self.age_seconds = age_seconds
        super().__init__(f"cache expired ({age_seconds:.0f}s old)")


class ConfigError(ClaudeLimitsError):
    """Configuration file could not be read or parsed."""


class StatusLineExistsError(ClaudeLimitsError):
    """Claude Code settings already define a statusLine."""


class ScriptInstallError(ClaudeLimitsError):
    """Status line script could not be installed."""
