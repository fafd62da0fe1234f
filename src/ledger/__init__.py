"""
Ledger: receipt tokens and chain of custody for legislative briefs.

- Mint, parse and resolve receipt tokens for bills, texts, sections,
  actions and roll-call votes
- Wrap tokens into receipts with an evidence class (WITNESSED / INFERENCE)
- Keep an immutable, replayable provenance log per session
- Refuse briefs that carry unwitnessed or untethered claims
"""

__version__ = "0.3.0"

from .evidence import UNWITNESSED_MARKER, EvidenceClass
from .provenance import (
    ProvenanceLog,
    RetrievalStrategy,
    SealedLogError,
    StrategyAttempt,
    add_citation,
    create_provenance_log,
    deselect_bill,
    ensure_open,
    mark_exported,
    provenance_from_json,
    provenance_to_json,
    record_strategy,
    select_bill,
)
from .receipts import Receipt, create_receipt, format_receipt_markdown
from .resolver import resolve_token_url
from .session import generate_session_id
from .tokens import (
    LedgerError,
    MalformedTokenError,
    ParsedToken,
    TokenType,
    make_action_token,
    make_bill_token,
    make_house_vote_token,
    make_section_token,
    make_senate_vote_token,
    make_text_token,
    parse_token,
    require_token,
)

__all__ = [
    "__version__",
    "EvidenceClass",
    "UNWITNESSED_MARKER",
    "LedgerError",
    "MalformedTokenError",
    "ParsedToken",
    "TokenType",
    "make_action_token",
    "make_bill_token",
    "make_house_vote_token",
    "make_section_token",
    "make_senate_vote_token",
    "make_text_token",
    "parse_token",
    "require_token",
    "resolve_token_url",
    "Receipt",
    "create_receipt",
    "format_receipt_markdown",
    "ProvenanceLog",
    "RetrievalStrategy",
    "SealedLogError",
    "StrategyAttempt",
    "add_citation",
    "create_provenance_log",
    "deselect_bill",
    "ensure_open",
    "mark_exported",
    "provenance_from_json",
    "provenance_to_json",
    "record_strategy",
    "select_bill",
    "generate_session_id",
]
