"""Errors raised by the portal API client."""


class PortalError(Exception):
    """Base class for portal API failures."""


class PortalAuthError(PortalError):
    """Raised when the bearer token is missing, expired or rejected."""


class PortalAPIError(PortalError):
    """Raised when the portal API fails for a non-auth reason."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
