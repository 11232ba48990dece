"""
tests/test_portal_parsing.py

Unit tests for the portal HTML/JSON parsing layer. Pure functions, no I/O.
"""

from __future__ import annotations

import pytest

from app.domain.pickup import ListingEntry
from app.portal.parsing import (
    extract_claimed_value,
    extract_csrf_token,
    parse_claim_form,
    parse_listing,
)
from tests.fakes import LOGIN_HTML, claim_form_html, listing_html


class TestExtractCsrfToken:
    def test_reads_meta_tag(self) -> None:
        assert extract_csrf_token(LOGIN_HTML) == "login-token"

    def test_falls_back_to_hidden_input(self) -> None:
        html = '<form><input type="hidden" name="authenticity_token" value="input-token"></form>'
        assert extract_csrf_token(html) == "input-token"

    def test_meta_tag_wins_over_input(self) -> None:
        html = (
            '<meta name="csrf-token" content="meta-token">'
            '<input name="authenticity_token" value="input-token">'
        )
        assert extract_csrf_token(html) == "meta-token"

    @pytest.mark.parametrize(
        "html",
        [
            "",
            "<html><body>No form here</body></html>",
            '<meta name="csrf-token" content="   ">',
        ],
    )
    def test_missing_token_returns_none(self, html: str) -> None:
        assert extract_csrf_token(html) is None


class TestParseListing:
    def test_parses_each_row(self) -> None:
        entries = parse_listing(listing_html("11", "12", "13"))
        assert entries == [
            ListingEntry(external_id="11", claim_url="/wa_numbers/11/pick_up_form"),
            ListingEntry(external_id="12", claim_url="/wa_numbers/12/pick_up_form"),
            ListingEntry(external_id="13", claim_url="/wa_numbers/13/pick_up_form"),
        ]

    def test_empty_table_yields_no_entries(self) -> None:
        assert parse_listing(listing_html()) == []

    def test_rows_without_claim_link_are_skipped(self) -> None:
        html = """
        <table><tbody>
          <tr><td>21</td><td>Already taken</td></tr>
          <tr><td>22</td><td><a onclick="openAjaxModal(this)" data-url="/wa_numbers/22/pick_up_form">Pick</a></td></tr>
          <tr><td>23</td><td><a onclick="somethingElse()" data-url="/other">Edit</a></td></tr>
        </tbody></table>
        """
        entries = parse_listing(html)
        assert [entry.external_id for entry in entries] == ["22"]

    def test_identifier_whitespace_is_trimmed(self) -> None:
        html = """
        <table><tbody><tr>
          <td>
             31
          </td>
          <td><a onclick="openAjaxModal(this)" data-url="/wa_numbers/31/pick_up_form">Pick</a></td>
        </tr></tbody></table>
        """
        assert parse_listing(html)[0].external_id == "31"

    def test_non_table_markup_yields_no_entries(self) -> None:
        assert parse_listing("<div>Maintenance</div>") == []


class TestParseClaimForm:
    def test_returns_token_and_action(self) -> None:
        assert parse_claim_form(claim_form_html("41")) == (
            "claim-token-41",
            "/wa_numbers/41/pick_up",
        )

    def test_missing_form_returns_none_action(self) -> None:
        token, action = parse_claim_form('<meta name="csrf-token" content="t">')
        assert token == "t"
        assert action is None


class TestExtractClaimedValue:
    def test_extracts_digits_from_open_url(self) -> None:
        payload = {"newTabOpenUrl": "https://wa.me/6281234567890?text=hi", "status": "ok"}
        assert extract_claimed_value(payload) == "6281234567890"

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {},
            {"newTabOpenUrl": ""},
            {"newTabOpenUrl": None},
            {"newTabOpenUrl": "https://wa.me/no-digits"},
            {"newTabOpenUrl": 12345},
            {"message": "not claimable"},
        ],
    )
    def test_unusable_payload_returns_none(self, payload: object) -> None:
        assert extract_claimed_value(payload) is None
