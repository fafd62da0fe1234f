"""
Evidence classes.

Exactly two classes are publishable:
    WITNESSED  - directly present in a primary-source payload
    INFERENCE  - derived by reasoning over witnessed data

A claim with no supporting token is "unwitnessed". That is an authoring
error, not a value: it has no slot here and can never become a receipt.
Synthesized briefs mark such claims with the UNWITNESSED_MARKER so that the
brief audit can refuse them.
"""
from __future__ import annotations

from enum import Enum
from typing import Union

UNWITNESSED_MARKER = "UNWITNESSED"


class EvidenceClass(str, Enum):
    WITNESSED = "WITNESSED"
    INFERENCE = "INFERENCE"

    @classmethod
    def coerce(cls, value: Union["EvidenceClass", str]) -> "EvidenceClass":
        """Return the EvidenceClass for *value*, the enum or its exact string value.

        Raises ValueError for anything else, including the unwitnessed
        marker. Passing one is a precondition violation.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            if value == UNWITNESSED_MARKER:
                raise ValueError("unwitnessed claims cannot carry an evidence class")
            try:
                return cls(value)
            except ValueError:
                pass
        raise ValueError(
            f"evidence class must be one of {[c.value for c in cls]}, got {value!r}"
        )

    @property
    def is_direct(self) -> bool:
        return self is EvidenceClass.WITNESSED


__all__ = ["EvidenceClass", "UNWITNESSED_MARKER"]
