"""
Shared model base for ledger records.

All ledger records are frozen pydantic models. Attributes are snake_case in
Python and camelCase on the wire, matching the exported provenance artifact.
"""
from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _normalise_utc_millis(dt: datetime) -> datetime:
    """Return a UTC datetime truncated to millisecond precision."""
    if dt.tzinfo is None:
        coerced = dt.replace(tzinfo=timezone.utc)
    else:
        coerced = dt.astimezone(timezone.utc)
    if coerced.microsecond:
        coerced = coerced.replace(microsecond=(coerced.microsecond // 1000) * 1000)
    return coerced


def utcnow(now: Optional[datetime] = None) -> datetime:
    """Current time (or *now*) as a millisecond-precision UTC datetime."""
    return _normalise_utc_millis(now if now is not None else datetime.now(timezone.utc))


_V = TypeVar("_V")


def read_only(mapping: Mapping[str, _V]) -> Mapping[str, _V]:
    """A private read-only copy of *mapping*, never shared with the caller."""
    return MappingProxyType(dict(mapping))


class LedgerModel(BaseModel):
    """Immutable base for every ledger record."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def to_wire(self) -> dict:
        """JSON-ready dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "LedgerModel",
    "_normalise_utc_millis",
    "read_only",
    "utcnow",
]
