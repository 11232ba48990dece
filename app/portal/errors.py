"""
Portal error types.
"""

from __future__ import annotations


class PortalError(RuntimeError):
    """Base exception for portal interaction failures."""


class AuthenticationFailure(PortalError):
    """Raised when the run cannot log in to the portal."""


class SessionExpiredError(PortalError):
    """Raised when the portal rejects the session with 401/403."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"Session rejected status={status_code} url={url}")


class ItemUnavailableError(PortalError):
    """Raised when a listed item was claimed by someone else (HTTP 422)."""


class PortalRequestError(PortalError):
    """Raised when a portal request fails for any other reason."""


class TokenMissingError(PortalRequestError):
    """Raised when a form carries no anti-forgery token."""
