"""Error taxonomy surfaced to the dashboard."""

from typing import Optional


class DashboardError(Exception):
    """Base class for failures that end up as a user-facing message."""

    def __init__(self, message: str, upstream: Optional[str] = None):
        super().__init__(message)
        self.upstream = upstream


class AuthError(DashboardError):
    """Token missing, invalid or expired (login, page listing, token lookup)."""


class FetchError(DashboardError):
    """An analytics query failed at the network or API level."""


class TokenResolutionError(FetchError):
    """The page-scoped access token could not be obtained."""


class ValidationError(DashboardError):
    """No page selected or a malformed date range."""
