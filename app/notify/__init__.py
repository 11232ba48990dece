"""
Chat transport and run reporting.
"""

from app.notify.report import build_summary_message
from app.notify.telegram import TelegramClient, TelegramDeliveryError, send_message_with_retry

__all__ = [
    "TelegramClient",
    "TelegramDeliveryError",
    "build_summary_message",
    "send_message_with_retry",
]
