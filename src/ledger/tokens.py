"""
Receipt token codec.

Every citable fact is named by a receipt token, a case-sensitive string with
one of six fixed shapes:

    BILL:{congress}-{CHAMBER}{number}                 BILL:118-HR1
    TEXT:{congress}-{CHAMBER}{number}-{version}       TEXT:118-HR1-IH
    SECTION:{congress}-{CHAMBER}{number}-{section}    SECTION:118-HR1-101
    ACTION:{congress}-{CHAMBER}{number}-{actionCode}  ACTION:118-HR1-10000
    VOTE:HOUSE:{congress}-{rollNumber}                VOTE:HOUSE:118-123
    VOTE:SENATE:{congress}-{rollNumber}               VOTE:SENATE:118-456

Constructors always produce a well-formed token; they never check that the
referenced bill or vote exists. Parsing is purely structural and returns
None for anything that is not a token.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ledger.base import LedgerModel

CHAMBER_CODES = ("HR", "S", "HJRES", "SJRES", "HCONRES", "SCONRES", "HRES", "SRES")

_NUM = r"([1-9][0-9]*)"
# No whitespace, and none of the characters briefs use to delimit citations.
_SUFFIX = r"([^\s\[\],;]+)"
_SUFFIX_RE = re.compile(_SUFFIX)
_CHAMBER_RE = re.compile(r"[A-Z]+")


class LedgerError(Exception):
    """Base class for ledger errors."""


class MalformedTokenError(LedgerError, ValueError):
    """A string that was required to be a receipt token is not one."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"not a receipt token: {token!r}")


class TokenType(str, Enum):
    BILL = "BILL"
    TEXT = "TEXT"
    SECTION = "SECTION"
    ACTION = "ACTION"
    VOTE_HOUSE = "VOTE:HOUSE"
    VOTE_SENATE = "VOTE:SENATE"

    @property
    def is_vote(self) -> bool:
        return self in (TokenType.VOTE_HOUSE, TokenType.VOTE_SENATE)


class ParsedToken(LedgerModel):
    """Structured descriptor of a receipt token."""

    type: TokenType
    congress: int
    chamber: Optional[str] = None
    number: Optional[int] = None
    version: Optional[str] = None
    section: Optional[str] = None
    action_code: Optional[str] = None
    roll_number: Optional[int] = None

    @property
    def bill_token(self) -> Optional[str]:
        """The BILL token of the bill this token belongs to, if any."""
        if self.type.is_vote:
            return None
        return make_bill_token(self.congress, self.chamber, self.number)

    def to_token(self) -> str:
        """Render the descriptor back into its canonical token string."""
        if self.type is TokenType.VOTE_HOUSE:
            return make_house_vote_token(self.congress, self.roll_number)
        if self.type is TokenType.VOTE_SENATE:
            return make_senate_vote_token(self.congress, self.roll_number)
        if self.type is TokenType.TEXT:
            return make_text_token(self.congress, self.chamber, self.number, self.version)
        if self.type is TokenType.SECTION:
            return make_section_token(self.congress, self.chamber, self.number, self.section)
        if self.type is TokenType.ACTION:
            return make_action_token(self.congress, self.chamber, self.number, self.action_code)
        return make_bill_token(self.congress, self.chamber, self.number)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def _check_positive(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


def _check_chamber(chamber: str) -> str:
    if not isinstance(chamber, str) or not _CHAMBER_RE.fullmatch(chamber):
        raise ValueError(f"chamber must be upper-case letters, got {chamber!r}")
    return chamber


def _check_suffix(value: str, name: str) -> str:
    if not isinstance(value, str) or not _SUFFIX_RE.fullmatch(value):
        raise ValueError(
            f"{name} must be non-empty without whitespace or any of '[],;', got {value!r}"
        )
    return value


def _bill_core(congress: int, chamber: str, number: int) -> str:
    _check_positive(congress, "congress")
    _check_chamber(chamber)
    _check_positive(number, "number")
    return f"{congress}-{chamber}{number}"


def make_bill_token(congress: int, chamber: str, number: int) -> str:
    return f"BILL:{_bill_core(congress, chamber, number)}"


def make_text_token(congress: int, chamber: str, number: int, version: str) -> str:
    return f"TEXT:{_bill_core(congress, chamber, number)}-{_check_suffix(version, 'version')}"


def make_section_token(congress: int, chamber: str, number: int, section: str) -> str:
    return f"SECTION:{_bill_core(congress, chamber, number)}-{_check_suffix(section, 'section')}"


def make_action_token(congress: int, chamber: str, number: int, action_code: str) -> str:
    return f"ACTION:{_bill_core(congress, chamber, number)}-{_check_suffix(action_code, 'action_code')}"


def make_house_vote_token(congress: int, roll_number: int) -> str:
    _check_positive(congress, "congress")
    _check_positive(roll_number, "roll_number")
    return f"VOTE:HOUSE:{congress}-{roll_number}"


def make_senate_vote_token(congress: int, roll_number: int) -> str:
    _check_positive(congress, "congress")
    _check_positive(roll_number, "roll_number")
    return f"VOTE:SENATE:{congress}-{roll_number}"


# ---------------------------------------------------------------------------
# Parsing
#
# Tried in order: vote shapes first, the bare BILL shape last.
# ---------------------------------------------------------------------------

_Extract = Callable[[re.Match], Dict[str, object]]

_TOKEN_PATTERNS: List[Tuple[re.Pattern, TokenType, _Extract]] = [
    (
        re.compile(rf"VOTE:HOUSE:{_NUM}-{_NUM}"),
        TokenType.VOTE_HOUSE,
        lambda m: {"congress": int(m[1]), "roll_number": int(m[2])},
    ),
    (
        re.compile(rf"VOTE:SENATE:{_NUM}-{_NUM}"),
        TokenType.VOTE_SENATE,
        lambda m: {"congress": int(m[1]), "roll_number": int(m[2])},
    ),
    (
        re.compile(rf"SECTION:{_NUM}-([A-Z]+){_NUM}-{_SUFFIX}"),
        TokenType.SECTION,
        lambda m: {"congress": int(m[1]), "chamber": m[2], "number": int(m[3]), "section": m[4]},
    ),
    (
        re.compile(rf"ACTION:{_NUM}-([A-Z]+){_NUM}-{_SUFFIX}"),
        TokenType.ACTION,
        lambda m: {"congress": int(m[1]), "chamber": m[2], "number": int(m[3]), "action_code": m[4]},
    ),
    (
        re.compile(rf"TEXT:{_NUM}-([A-Z]+){_NUM}-{_SUFFIX}"),
        TokenType.TEXT,
        lambda m: {"congress": int(m[1]), "chamber": m[2], "number": int(m[3]), "version": m[4]},
    ),
    (
        re.compile(rf"BILL:{_NUM}-([A-Z]+){_NUM}"),
        TokenType.BILL,
        lambda m: {"congress": int(m[1]), "chamber": m[2], "number": int(m[3])},
    ),
]


def parse_token(token: str) -> Optional[ParsedToken]:
    """Parse *token*, returning None when it is not a receipt token."""
    if not isinstance(token, str):
        return None
    for regex, token_type, extract in _TOKEN_PATTERNS:
        match = regex.fullmatch(token)
        if match:
            return ParsedToken(type=token_type, **extract(match))
    return None


def require_token(token: str) -> ParsedToken:
    """Parse *token* or raise MalformedTokenError."""
    parsed = parse_token(token)
    if parsed is None:
        raise MalformedTokenError(token)
    return parsed


def is_token(token: str) -> bool:
    return parse_token(token) is not None


__all__ = [
    "CHAMBER_CODES",
    "LedgerError",
    "MalformedTokenError",
    "ParsedToken",
    "TokenType",
    "is_token",
    "make_action_token",
    "make_bill_token",
    "make_house_vote_token",
    "make_section_token",
    "make_senate_vote_token",
    "make_text_token",
    "parse_token",
    "require_token",
]
