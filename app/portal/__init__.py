"""
Portal integration: session handling, page client and the claim loop.
"""

from app.portal.claim_loop import ClaimLoop, LoopState
from app.portal.client import PortalClient
from app.portal.errors import (
    AuthenticationFailure,
    ItemUnavailableError,
    PortalError,
    PortalRequestError,
    SessionExpiredError,
    TokenMissingError,
)
from app.portal.session import PortalSession, SessionManager

__all__ = [
    "AuthenticationFailure",
    "ClaimLoop",
    "ItemUnavailableError",
    "LoopState",
    "PortalClient",
    "PortalError",
    "PortalRequestError",
    "PortalSession",
    "SessionExpiredError",
    "SessionManager",
    "TokenMissingError",
]
