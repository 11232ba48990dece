"""
app/schemas/telegram.py

Schemas for Telegram Bot API envelopes and updates.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str | None = None


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str | None = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    chat: TelegramChat
    sender: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: TelegramMessage | None = None


class TelegramResponseParameters(BaseModel):
    model_config = ConfigDict(extra="ignore")

    retry_after: int | None = Field(default=None, ge=0)
    migrate_to_chat_id: int | None = None


class TelegramResponse(BaseModel):
    """
    Envelope wrapping every Bot API reply.
    """

    model_config = ConfigDict(extra="ignore")

    ok: bool
    result: Any = None
    error_code: int | None = None
    description: str | None = None
    parameters: TelegramResponseParameters | None = None
