"""
app/schemas package marker.
"""

from app.schemas.portal import ClaimResponse
from app.schemas.telegram import (
    TelegramChat,
    TelegramMessage,
    TelegramResponse,
    TelegramResponseParameters,
    TelegramUpdate,
    TelegramUser,
)

__all__ = [
    "ClaimResponse",
    "TelegramChat",
    "TelegramMessage",
    "TelegramResponse",
    "TelegramResponseParameters",
    "TelegramUpdate",
    "TelegramUser",
]
