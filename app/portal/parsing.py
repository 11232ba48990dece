"""
BeautifulSoup-based parsing layer for portal pages.

All knowledge of the portal markup lives here so a layout change only
touches this module.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from app.domain.pickup import ListingEntry
from app.schemas.portal import ClaimResponse

TOKEN_META_SELECTOR = 'meta[name="csrf-token"]'
TOKEN_INPUT_SELECTOR = 'input[name="authenticity_token"]'
LISTING_ROW_SELECTOR = "table tbody tr"
CLAIM_LINK_SELECTOR = 'a[onclick^="openAjaxModal"]'

DIGITS_REGEX = re.compile(r"\d+")


def _soup(html: str | BeautifulSoup) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "html.parser")


def _attr(node: Tag | None, name: str) -> str | None:
    if node is None:
        return None
    value = node.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def extract_csrf_token(html: str | BeautifulSoup) -> str | None:
    """
    Return the anti-forgery token from the page, or None when absent.

    The ``csrf-token`` meta tag wins over a hidden ``authenticity_token`` input.
    """

    soup = _soup(html)
    token = _attr(soup.select_one(TOKEN_META_SELECTOR), "content")
    if token:
        return token
    return _attr(soup.select_one(TOKEN_INPUT_SELECTOR), "value")


def parse_listing(html: str | BeautifulSoup) -> list[ListingEntry]:
    """
    Parse listing table rows into claimable entries.

    Rows without a claim link (already claimed, header filler) are skipped.
    """

    soup = _soup(html)
    entries: list[ListingEntry] = []
    for row in soup.select(LISTING_ROW_SELECTOR):
        first_cell = row.find("td")
        if first_cell is None:
            continue
        claim_url = _attr(row.select_one(CLAIM_LINK_SELECTOR), "data-url")
        if not claim_url:
            continue
        entries.append(
            ListingEntry(
                external_id=first_cell.get_text(" ", strip=True),
                claim_url=claim_url,
            )
        )
    return entries


def parse_claim_form(html: str | BeautifulSoup) -> tuple[str | None, str | None]:
    """
    Return ``(token, form_action)`` from a claim form fragment.
    """

    soup = _soup(html)
    token = extract_csrf_token(soup)
    action = _attr(soup.find("form"), "action")
    return token, action


def extract_claimed_value(payload: Any) -> str | None:
    """
    Pull the claimed number out of a claim response payload.

    Success payloads carry a ``newTabOpenUrl`` whose first run of digits is
    the number (e.g. ``https://wa.me/6281234567890``).
    """

    if not isinstance(payload, dict):
        return None
    try:
        response = ClaimResponse.model_validate(payload)
    except ValidationError:
        return None
    if not response.new_tab_open_url:
        return None
    match = DIGITS_REGEX.search(response.new_tab_open_url)
    return match.group(0) if match else None
