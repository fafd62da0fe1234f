"""
Provenance log: the session's chain of custody.

The log records which retrieval strategies ran, which bills the user
shortlisted, which receipts were collected, and when the log was sealed for
export. It is an immutable value. Every operation returns a new log and
leaves its input untouched, so callers may keep earlier states for audit or
undo.

    OPEN --(record_strategy | add_citation | select_bill | deselect_bill)*--> OPEN
    OPEN --(mark_exported)--> SEALED

Sealing is advisory. The operations below still derive new logs from a
sealed one (with a warning); callers that want a hard stop use ensure_open().
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from loguru import logger
from pydantic import Field, field_serializer, field_validator, model_validator

from ledger.base import LedgerModel, _normalise_utc_millis, read_only, utcnow
from ledger.evidence import EvidenceClass
from ledger.receipts import Receipt, create_receipt
from ledger.session import DEFAULT_PREFIX, check_session_id, generate_session_id
from ledger.tokens import LedgerError

STRATEGY_ID_PREFIX = "strat-"


class SealedLogError(LedgerError):
    """A mutation was attempted on a log that has already been exported."""

    def __init__(self, session_id: str, exported_at: datetime):
        self.session_id = session_id
        self.exported_at = exported_at
        super().__init__(f"provenance log {session_id} was sealed at {exported_at.isoformat()}")


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

class StrategyAttempt(LedgerModel):
    """A retrieval strategy as reported by the collaborator that ran it."""

    label: str
    description: str = ""
    source: str
    endpoint: str
    parameters_used: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    success: bool
    result_count: int = Field(default=0, ge=0)

    @field_validator("parameters_used")
    @classmethod
    def _freeze_parameters(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return read_only(value)

    @field_serializer("parameters_used")
    def _dump_parameters(self, value: Mapping[str, str]) -> Dict[str, str]:
        return dict(value)


class RetrievalStrategy(StrategyAttempt):
    """A strategy attempt as recorded in the log. Never mutated."""

    id: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _millis(cls, value: datetime) -> datetime:
        return _normalise_utc_millis(value)


class ProvenanceLog(LedgerModel):
    session_id: str
    query: str
    timestamp: datetime
    strategies: Tuple[RetrievalStrategy, ...] = ()
    selected_bills: Tuple[str, ...] = ()
    citations_map: Mapping[str, Receipt] = Field(default_factory=dict, validate_default=True)
    exported_at: Optional[datetime] = None

    @field_validator("timestamp", "exported_at")
    @classmethod
    def _millis(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else _normalise_utc_millis(value)

    @field_validator("citations_map")
    @classmethod
    def _freeze_citations(cls, value: Mapping[str, Receipt]) -> Mapping[str, Receipt]:
        return read_only(value)

    @field_serializer("citations_map")
    def _dump_citations(self, value: Mapping[str, Receipt]) -> Dict[str, Receipt]:
        return dict(value)

    @model_validator(mode="after")
    def _check_invariants(self) -> "ProvenanceLog":
        if len(set(self.selected_bills)) != len(self.selected_bills):
            raise ValueError("selectedBills must not contain duplicates")
        for key, receipt in self.citations_map.items():
            if key != receipt.token:
                raise ValueError(f"citationsMap key {key!r} does not match receipt token {receipt.token!r}")
        return self

    @property
    def sealed(self) -> bool:
        return self.exported_at is not None

    def citation_for(self, token: str) -> Optional[Receipt]:
        return self.citations_map.get(token)

    def is_selected(self, token: str) -> bool:
        return token in self.selected_bills


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _warn_if_sealed(log: ProvenanceLog, operation: str) -> None:
    if log.sealed:
        logger.warning("{} on sealed provenance log {}", operation, log.session_id)


def _derive(log: ProvenanceLog, **changes: Any) -> ProvenanceLog:
    fields = {name: getattr(log, name) for name in ProvenanceLog.model_fields}
    fields.update(changes)
    return ProvenanceLog.model_validate(fields)


def ensure_open(log: ProvenanceLog) -> ProvenanceLog:
    """Return *log* unchanged, or raise SealedLogError if it was exported."""
    if log.exported_at is not None:
        raise SealedLogError(log.session_id, log.exported_at)
    return log


def create_provenance_log(
    query: str,
    *,
    session_id: Optional[str] = None,
    prefix: str = DEFAULT_PREFIX,
    now: Optional[datetime] = None,
) -> ProvenanceLog:
    """Start a new session log for *query*.

    Raises ValueError for a session id (or prefix) that is not a safe file name.
    """
    log = ProvenanceLog(
        session_id=check_session_id(session_id) if session_id else generate_session_id(prefix),
        query=query,
        timestamp=utcnow(now),
    )
    logger.debug("Created provenance log {} for query {!r}", log.session_id, query)
    return log


def record_strategy(
    log: ProvenanceLog,
    attempt: Union[StrategyAttempt, Mapping[str, Any]],
    *,
    now: Optional[datetime] = None,
) -> ProvenanceLog:
    """Append a strategy attempt with the next sequential id.

    Identical attempts are recorded again: a retry is its own provenance.
    """
    _warn_if_sealed(log, "record_strategy")
    if not isinstance(attempt, StrategyAttempt):
        attempt = StrategyAttempt.model_validate(dict(attempt))
    strategy = RetrievalStrategy(
        **attempt.model_dump(),
        id=f"{STRATEGY_ID_PREFIX}{len(log.strategies) + 1}",
        timestamp=utcnow(now),
    )
    if strategy.success:
        logger.debug("{}: {} returned {} results", strategy.id, strategy.label, strategy.result_count)
    else:
        logger.warning("{}: {} failed against {}", strategy.id, strategy.label, strategy.endpoint)
    return _derive(log, strategies=log.strategies + (strategy,))


def add_citation(
    log: ProvenanceLog,
    token: str,
    evidence_class: Union[EvidenceClass, str],
    label: str,
) -> ProvenanceLog:
    """Upsert the receipt for *token*; the last write for a token wins.

    Raises MalformedTokenError if *token* does not parse.
    """
    _warn_if_sealed(log, "add_citation")
    receipt = create_receipt(token, evidence_class, label)
    if token in log.citations_map:
        logger.debug("Replacing citation {} with {}", token, receipt.evidence_class.value)
    else:
        logger.debug("Adding citation {} ({})", token, receipt.evidence_class.value)
    citations = dict(log.citations_map)
    citations[token] = receipt
    return _derive(log, citations_map=citations)


def select_bill(log: ProvenanceLog, token: str) -> ProvenanceLog:
    """Add *token* to the shortlist. Selecting twice is a no-op."""
    if token in log.selected_bills:
        return log
    _warn_if_sealed(log, "select_bill")
    logger.debug("Selected {}", token)
    return _derive(log, selected_bills=log.selected_bills + (token,))


def deselect_bill(log: ProvenanceLog, token: str) -> ProvenanceLog:
    """Remove *token* from the shortlist. Removing an absent token is a no-op.

    Citations for the token are kept; selection and citation are independent.
    """
    if token not in log.selected_bills:
        return log
    _warn_if_sealed(log, "deselect_bill")
    logger.debug("Deselected {}", token)
    remaining = tuple(t for t in log.selected_bills if t != token)
    return _derive(log, selected_bills=remaining)


def mark_exported(log: ProvenanceLog, *, now: Optional[datetime] = None) -> ProvenanceLog:
    """Seal the log for export. Sealing again just moves the timestamp."""
    exported_at = utcnow(now)
    if log.sealed:
        logger.warning("Re-sealing provenance log {} (was {})", log.session_id, log.exported_at)
    else:
        logger.debug("Sealed provenance log {}", log.session_id)
    return _derive(log, exported_at=exported_at)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def provenance_to_dict(log: ProvenanceLog) -> Dict[str, Any]:
    return log.to_wire()


def provenance_to_json(log: ProvenanceLog, indent: Optional[int] = 2) -> str:
    """Serialize the log as the exported chain-of-custody document."""
    return log.model_dump_json(by_alias=True, indent=indent)


def provenance_from_json(text: Union[str, bytes]) -> ProvenanceLog:
    """Inverse of provenance_to_json. Raises pydantic.ValidationError."""
    return ProvenanceLog.model_validate_json(text)


def provenance_summary(log: ProvenanceLog) -> Dict[str, Any]:
    """Counts used by export panels and the CLI."""
    by_class = Counter(r.evidence_class.value for r in log.citations_map.values())
    n_ok = sum(1 for s in log.strategies if s.success)
    return {
        "session_id": log.session_id,
        "query": log.query,
        "n_strategies": len(log.strategies),
        "n_strategies_ok": n_ok,
        "n_strategies_failed": len(log.strategies) - n_ok,
        "n_selected": len(log.selected_bills),
        "n_citations": len(log.citations_map),
        "n_witnessed": by_class.get(EvidenceClass.WITNESSED.value, 0),
        "n_inference": by_class.get(EvidenceClass.INFERENCE.value, 0),
        "n_unresolved": sum(1 for r in log.citations_map.values() if r.resolved_url is None),
        "sealed": log.sealed,
        "exported_at": log.exported_at.isoformat() if log.exported_at else None,
    }


__all__ = [
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
    "provenance_summary",
    "provenance_to_dict",
    "provenance_to_json",
    "record_strategy",
    "select_bill",
]
