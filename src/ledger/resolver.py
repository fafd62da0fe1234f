"""
Primary-source URL resolution for receipt tokens.

Pure, table-driven, no network access. Returns None when a structurally
valid token has no known URL mapping (e.g. an unrecognized chamber code).

Known limitation: Senate roll calls always resolve to session 1 of their
congress. Second-session votes need a date-based rule that tokens do not
carry.
"""
from __future__ import annotations

from typing import Dict, Optional, Union

from ledger.tokens import ParsedToken, TokenType, parse_token

CONGRESS_GOV_BASE = "https://www.congress.gov/bill"
HOUSE_CLERK_BASE = "https://clerk.house.gov/evs"
SENATE_LIS_BASE = "https://www.senate.gov/legislative/LIS/roll_call_votes"

CHAMBER_SLUGS: Dict[str, str] = {
    "HR": "house-bill",
    "S": "senate-bill",
    "HJRES": "house-joint-resolution",
    "SJRES": "senate-joint-resolution",
    "HCONRES": "house-concurrent-resolution",
    "SCONRES": "senate-concurrent-resolution",
    "HRES": "house-resolution",
    "SRES": "senate-resolution",
}

FIRST_CONGRESS_YEAR = 1789


def congress_to_year(congress: int) -> int:
    """First calendar year of *congress* (the 1st Congress began in 1789)."""
    return FIRST_CONGRESS_YEAR + (congress - 1) * 2


def congress_to_session(congress: int) -> int:
    # Always session 1; see module docstring.
    return 1


def bill_url(congress: int, chamber: str, number: int) -> Optional[str]:
    """Congress.gov page for a bill, or None for an unknown chamber code."""
    slug = CHAMBER_SLUGS.get(chamber)
    if slug is None:
        return None
    return f"{CONGRESS_GOV_BASE}/{congress}th-congress/{slug}/{number}"


def house_vote_url(congress: int, roll_number: int) -> str:
    year = congress_to_year(congress)
    return f"{HOUSE_CLERK_BASE}/{year}/roll{roll_number:03d}.xml"


def senate_vote_url(congress: int, roll_number: int, session: Optional[int] = None) -> str:
    if session is None:
        session = congress_to_session(congress)
    return (
        f"{SENATE_LIS_BASE}/vote{congress}{session}/"
        f"vote_{congress}_{session}_{roll_number:05d}.xml"
    )


def resolve_parsed(parsed: ParsedToken) -> Optional[str]:
    """Resolve an already-parsed token to its primary-source URL."""
    if parsed.type is TokenType.VOTE_HOUSE:
        return house_vote_url(parsed.congress, parsed.roll_number)
    if parsed.type is TokenType.VOTE_SENATE:
        return senate_vote_url(parsed.congress, parsed.roll_number)

    base = bill_url(parsed.congress, parsed.chamber, parsed.number)
    if base is None:
        return None
    if parsed.type in (TokenType.TEXT, TokenType.SECTION):
        # Sections anchor to the bill's text page.
        return f"{base}/text"
    if parsed.type is TokenType.ACTION:
        return f"{base}/all-actions"
    return base


def resolve_token_url(token: Union[str, ParsedToken]) -> Optional[str]:
    """Resolve *token* to a primary-source URL, or None if it has none."""
    parsed = token if isinstance(token, ParsedToken) else parse_token(token)
    if parsed is None:
        return None
    return resolve_parsed(parsed)


__all__ = [
    "CHAMBER_SLUGS",
    "bill_url",
    "congress_to_session",
    "congress_to_year",
    "house_vote_url",
    "resolve_parsed",
    "resolve_token_url",
    "senate_vote_url",
]
