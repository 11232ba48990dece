"""
app/schemas/portal.py

Schemas for JSON payloads returned by the portal.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ClaimResponse(BaseModel):
    """
    Claim submit response. Only ``newTabOpenUrl`` matters; the rest is ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    new_tab_open_url: str | None = Field(default=None, alias="newTabOpenUrl")
