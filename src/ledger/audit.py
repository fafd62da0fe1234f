"""
Brief citation audit.

A synthesized brief cites receipt tokens in square brackets, e.g.
``[BILL:118-HR1]`` or ``[ACTION:118-HR1-10000, VOTE:HOUSE:118-123]``, and
marks claims it could not tether with ``[UNWITNESSED]``. The audit checks
such a brief against a provenance log before it may ship:

  - every cited token must parse and must have a receipt in the log
  - no [UNWITNESSED] marker may remain
  - at least one claim must be cited
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ledger.evidence import UNWITNESSED_MARKER, EvidenceClass
from ledger.provenance import ProvenanceLog
from ledger.tokens import TokenType, parse_token

_BRACKET_RE = re.compile(r"\[([^\[\]\n]+)\]")
_SPLIT_RE = re.compile(r"[,;]")
_TOKEN_PREFIXES = tuple(f"{t.value}:" for t in TokenType if not t.is_vote) + ("VOTE:",)


@dataclass
class ExtractedCitations:
    """Citations found in a markdown document, in order of first appearance."""

    tokens: List[str] = field(default_factory=list)
    malformed: List[str] = field(default_factory=list)
    unwitnessed: int = 0


@dataclass
class BriefAudit:
    """Result of auditing a brief against a provenance log."""

    cited: List[str] = field(default_factory=list)
    unknown: List[str] = field(default_factory=list)
    malformed: List[str] = field(default_factory=list)
    inference_only: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)
    unwitnessed: int = 0

    @property
    def shippable(self) -> bool:
        return (
            bool(self.cited)
            and not self.unknown
            and not self.malformed
            and self.unwitnessed == 0
        )

    def problems(self) -> List[str]:
        out = []
        if not self.cited:
            out.append("brief cites no receipt tokens")
        if self.unwitnessed:
            out.append(f"{self.unwitnessed} claim(s) marked {UNWITNESSED_MARKER}")
        for token in self.unknown:
            out.append(f"{token} is cited but has no receipt in the provenance log")
        for text in self.malformed:
            out.append(f"{text!r} looks like a citation but is not a valid token")
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shippable": self.shippable,
            "cited": self.cited,
            "unknown": self.unknown,
            "malformed": self.malformed,
            "inference_only": self.inference_only,
            "unresolved": self.unresolved,
            "unwitnessed": self.unwitnessed,
            "problems": self.problems(),
        }


def extract_citations(markdown: str) -> ExtractedCitations:
    """Find bracketed token citations and UNWITNESSED markers in *markdown*."""
    found = ExtractedCitations()
    for match in _BRACKET_RE.finditer(markdown):
        for part in _SPLIT_RE.split(match.group(1)):
            text = part.strip()
            if text == UNWITNESSED_MARKER:
                found.unwitnessed += 1
            elif parse_token(text) is not None:
                if text not in found.tokens:
                    found.tokens.append(text)
            elif text.startswith(_TOKEN_PREFIXES) and text not in found.malformed:
                found.malformed.append(text)
    return found


def audit_brief(markdown: str, log: ProvenanceLog) -> BriefAudit:
    """Check that every claim in *markdown* is tethered to a receipt in *log*."""
    found = extract_citations(markdown)
    audit = BriefAudit(
        cited=found.tokens,
        malformed=found.malformed,
        unwitnessed=found.unwitnessed,
    )
    for token in found.tokens:
        receipt = log.citation_for(token)
        if receipt is None:
            audit.unknown.append(token)
            continue
        if receipt.evidence_class is EvidenceClass.INFERENCE:
            audit.inference_only.append(token)
        if receipt.resolved_url is None:
            audit.unresolved.append(token)
    return audit


__all__ = ["BriefAudit", "ExtractedCitations", "audit_brief", "extract_citations"]
