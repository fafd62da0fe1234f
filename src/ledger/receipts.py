"""
Receipt factory.

A Receipt binds one receipt token to an evidence class, a human label, and
the token's resolved primary-source URL. The receipt's ``type`` is always
derived by parsing the token, so the two cannot diverge.
"""
from __future__ import annotations

from typing import Optional, Union

from loguru import logger
from pydantic import field_validator, model_validator

from ledger.base import LedgerModel
from ledger.evidence import EvidenceClass
from ledger.resolver import resolve_parsed
from ledger.tokens import TokenType, parse_token, require_token


class Receipt(LedgerModel):
    """Immutable citation record for one token."""

    token: str
    type: TokenType
    evidence_class: EvidenceClass
    resolved_url: Optional[str] = None
    label: str = ""

    @field_validator("evidence_class", mode="before")
    @classmethod
    def _coerce_class(cls, value):
        return EvidenceClass.coerce(value)

    @model_validator(mode="after")
    def _type_matches_token(self) -> "Receipt":
        parsed = parse_token(self.token)
        if parsed is None:
            raise ValueError(f"not a receipt token: {self.token!r}")
        if parsed.type is not self.type:
            raise ValueError(
                f"receipt type {self.type.value} does not match token {self.token!r}"
            )
        return self

    @property
    def resolvable(self) -> bool:
        return self.resolved_url is not None


def create_receipt(
    token: str,
    evidence_class: Union[EvidenceClass, str],
    label: str,
) -> Receipt:
    """Build a Receipt for *token*.

    Raises MalformedTokenError when *token* does not parse, and ValueError
    for an invalid evidence class. An unresolvable URL is not an error: the
    receipt is returned with ``resolved_url=None``.
    """
    parsed = require_token(token)
    resolved_url = resolve_parsed(parsed)
    if resolved_url is None:
        logger.warning("No primary-source URL for {}; recording receipt without link", token)
    return Receipt(
        token=token,
        type=parsed.type,
        evidence_class=EvidenceClass.coerce(evidence_class),
        resolved_url=resolved_url,
        label=label,
    )


def format_token_for_display(token: str) -> str:
    return token


def format_receipt_markdown(receipt: Receipt) -> str:
    """Markdown citation: ``[TOKEN](url) (CLASS)`` or ``TOKEN (CLASS)``."""
    if receipt.resolved_url:
        return f"[{receipt.token}]({receipt.resolved_url}) ({receipt.evidence_class.value})"
    return f"{receipt.token} ({receipt.evidence_class.value})"


__all__ = [
    "Receipt",
    "create_receipt",
    "format_receipt_markdown",
    "format_token_for_display",
]
