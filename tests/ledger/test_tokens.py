"""
Tests for the receipt token codec.
"""
from __future__ import annotations

import pytest

from ledger.tokens import (
    CHAMBER_CODES,
    MalformedTokenError,
    ParsedToken,
    TokenType,
    is_token,
    make_action_token,
    make_bill_token,
    make_house_vote_token,
    make_section_token,
    make_senate_vote_token,
    make_text_token,
    parse_token,
    require_token,
)


class TestConstruction:
    """Constructors produce the documented shapes."""

    def test_bill(self) -> None:
        assert make_bill_token(118, "HR", 1) == "BILL:118-HR1"

    def test_text(self) -> None:
        assert make_text_token(118, "HR", 1, "IH") == "TEXT:118-HR1-IH"

    def test_section(self) -> None:
        assert make_section_token(118, "HR", 1, "101") == "SECTION:118-HR1-101"

    def test_action(self) -> None:
        assert make_action_token(118, "HR", 1, "10000") == "ACTION:118-HR1-10000"

    def test_house_vote(self) -> None:
        assert make_house_vote_token(118, 123) == "VOTE:HOUSE:118-123"

    def test_senate_vote(self) -> None:
        assert make_senate_vote_token(118, 456) == "VOTE:SENATE:118-456"

    def test_unknown_chamber_still_constructs(self) -> None:
        """Construction checks shape, not existence."""
        assert make_bill_token(118, "XYZ", 9) == "BILL:118-XYZ9"

    @pytest.mark.parametrize("congress", [0, -1, True, "118"])
    def test_rejects_bad_congress(self, congress) -> None:
        with pytest.raises(ValueError):
            make_bill_token(congress, "HR", 1)

    @pytest.mark.parametrize("chamber", ["hr", "H1", "", "H-R"])
    def test_rejects_bad_chamber(self, chamber) -> None:
        with pytest.raises(ValueError):
            make_bill_token(118, chamber, 1)

    def test_rejects_empty_suffix(self) -> None:
        with pytest.raises(ValueError):
            make_text_token(118, "HR", 1, "")

    @pytest.mark.parametrize("suffix", ["101\n102", "101 ", " 101", "10\t1", "101]", "[101", "1,2", "1;2"])
    def test_rejects_whitespace_and_delimiters_in_suffix(self, suffix: str) -> None:
        with pytest.raises(ValueError):
            make_section_token(118, "HR", 1, suffix)

    def test_rejects_zero_roll(self) -> None:
        with pytest.raises(ValueError):
            make_house_vote_token(118, 0)


class TestRoundTrip:
    """parse_token(make_x_token(fields)) returns the same fields."""

    @pytest.mark.parametrize("chamber", CHAMBER_CODES)
    def test_bill_every_chamber(self, chamber: str) -> None:
        parsed = parse_token(make_bill_token(117, chamber, 42))
        assert parsed == ParsedToken(type=TokenType.BILL, congress=117, chamber=chamber, number=42)

    def test_text(self) -> None:
        parsed = parse_token(make_text_token(118, "S", 100, "ENR"))
        assert parsed.type is TokenType.TEXT
        assert (parsed.congress, parsed.chamber, parsed.number, parsed.version) == (118, "S", 100, "ENR")

    def test_section(self) -> None:
        parsed = parse_token(make_section_token(118, "HJRES", 7, "2(a)"))
        assert parsed.type is TokenType.SECTION
        assert parsed.section == "2(a)"
        assert parsed.chamber == "HJRES"

    def test_section_with_dashes(self) -> None:
        parsed = parse_token(make_section_token(118, "HR", 1, "101-b"))
        assert parsed.number == 1
        assert parsed.section == "101-b"

    def test_action(self) -> None:
        parsed = parse_token(make_action_token(118, "HR", 1, "H11100"))
        assert parsed.type is TokenType.ACTION
        assert parsed.action_code == "H11100"

    def test_house_vote(self) -> None:
        parsed = parse_token(make_house_vote_token(118, 123))
        assert parsed == ParsedToken(type=TokenType.VOTE_HOUSE, congress=118, roll_number=123)
        assert parsed.chamber is None

    def test_senate_vote(self) -> None:
        parsed = parse_token(make_senate_vote_token(118, 456))
        assert parsed == ParsedToken(type=TokenType.VOTE_SENATE, congress=118, roll_number=456)

    @pytest.mark.parametrize(
        "token",
        [
            "BILL:118-HR1",
            "TEXT:118-HR1-IH",
            "SECTION:118-HR1-101",
            "ACTION:118-HR1-10000",
            "VOTE:HOUSE:118-123",
            "VOTE:SENATE:118-456",
        ],
    )
    def test_to_token_renders_original(self, token: str) -> None:
        assert parse_token(token).to_token() == token


class TestParsing:
    """Structural parsing edge cases."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "BILL:",
            "SOMETHING:ELSE",
            "INVALID",
            "bill:118-HR1",
            "BILL:118-hr1",
            "BILL:118-HR",
            "BILL:118HR1",
            "BILL:118-HR1-IH",
            "TEXT:118-HR1",
            "TEXT:118-HR1-",
            "VOTE:HOUSE:118",
            "VOTE:HOUSE:118-",
            "VOTE:CONGRESS:118-1",
            " BILL:118-HR1",
            "BILL:118-HR1 ",
            "BILL:118-HR1\n",
            "BILL:118-HR01",
            "VOTE:HOUSE:118-007",
            "BILL:1\u0661\u0668-HR1",
            "VOTE:SENATE:118-\u0664\u0665\u0666",
            "SECTION:118-HR1-101 ",
            "TEXT:118-HR1-I H",
            "ACTION:118-HR1-1,2",
        ],
    )
    def test_not_a_token(self, text: str) -> None:
        assert parse_token(text) is None
        assert not is_token(text)

    def test_non_string_is_not_a_token(self) -> None:
        assert parse_token(None) is None
        assert parse_token(118) is None

    def test_unknown_chamber_parses(self) -> None:
        """Unknown chamber codes are structurally valid; resolution handles them."""
        parsed = parse_token("BILL:118-XYZ9")
        assert parsed.chamber == "XYZ"
        assert parsed.number == 9

    def test_votes_are_not_shadowed(self) -> None:
        assert parse_token("VOTE:HOUSE:118-123").type is TokenType.VOTE_HOUSE
        assert parse_token("VOTE:SENATE:118-123").type is TokenType.VOTE_SENATE

    def test_bill_token_of_child(self) -> None:
        assert parse_token("ACTION:118-HR1-10000").bill_token == "BILL:118-HR1"
        assert parse_token("VOTE:HOUSE:118-1").bill_token is None

    def test_parsed_token_is_frozen(self) -> None:
        parsed = parse_token("BILL:118-HR1")
        with pytest.raises(Exception):
            parsed.congress = 117

    def test_wire_names(self) -> None:
        dumped = parse_token("VOTE:SENATE:118-456").to_wire()
        assert dumped["type"] == "VOTE:SENATE"
        assert dumped["rollNumber"] == 456


class TestRequireToken:
    def test_returns_descriptor(self) -> None:
        assert require_token("BILL:118-S100").chamber == "S"

    def test_raises(self) -> None:
        with pytest.raises(MalformedTokenError) as exc_info:
            require_token("BILL:")
        assert exc_info.value.token == "BILL:"
        assert isinstance(exc_info.value, ValueError)
