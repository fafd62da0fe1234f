"""
Tests for the brief citation audit.
"""
from __future__ import annotations

import pytest

from ledger.audit import audit_brief, extract_citations
from ledger.evidence import EvidenceClass
from ledger.provenance import ProvenanceLog, add_citation, create_provenance_log
from ledger.tokens import make_section_token

BRIEF = """# Data privacy in the 118th Congress

## What the bills say

H.R. 1 sets a national standard [BILL:118-HR1]. Section 101 defines
covered data [SECTION:118-HR1-101].

## What we infer (with receipts)

1. The House vote split on party lines [VOTE:HOUSE:118-123, BILL:118-HR1].
2. Enforcement is likely to shift to states [UNWITNESSED].

See also [the text](https://www.congress.gov/bill/118th-congress/house-bill/1/text).
"""


@pytest.fixture
def log() -> ProvenanceLog:
    log = create_provenance_log("data privacy")
    log = add_citation(log, "BILL:118-HR1", EvidenceClass.WITNESSED, "H.R. 1")
    log = add_citation(log, "SECTION:118-HR1-101", EvidenceClass.WITNESSED, "Sec. 101")
    log = add_citation(log, "VOTE:HOUSE:118-123", EvidenceClass.INFERENCE, "Passage vote")
    return log


class TestExtractCitations:
    def test_tokens_in_order_without_duplicates(self) -> None:
        found = extract_citations(BRIEF)
        assert found.tokens == ["BILL:118-HR1", "SECTION:118-HR1-101", "VOTE:HOUSE:118-123"]

    def test_counts_unwitnessed_markers(self) -> None:
        assert extract_citations(BRIEF).unwitnessed == 1

    def test_ignores_plain_links(self) -> None:
        found = extract_citations("Read [the text](https://example.org) now.")
        assert found.tokens == []
        assert found.malformed == []

    def test_markdown_link_to_token(self) -> None:
        found = extract_citations("[BILL:118-HR1](https://www.congress.gov/bill/118th-congress/house-bill/1)")
        assert found.tokens == ["BILL:118-HR1"]

    def test_malformed_citation(self) -> None:
        found = extract_citations("Claim [BILL:118-hr1]. Other [VOTE:HOUSE:118].")
        assert found.tokens == []
        assert found.malformed == ["BILL:118-hr1", "VOTE:HOUSE:118"]

    def test_semicolon_separated(self) -> None:
        found = extract_citations("[TEXT:118-HR1-IH; ACTION:118-HR1-10000]")
        assert found.tokens == ["TEXT:118-HR1-IH", "ACTION:118-HR1-10000"]


class TestAuditBrief:
    def test_unwitnessed_claim_blocks_shipping(self, log: ProvenanceLog) -> None:
        audit = audit_brief(BRIEF, log)
        assert not audit.shippable
        assert audit.unwitnessed == 1
        assert audit.unknown == []
        assert audit.inference_only == ["VOTE:HOUSE:118-123"]

    def test_clean_brief_ships(self, log: ProvenanceLog) -> None:
        clean = BRIEF.replace(" [UNWITNESSED]", " [VOTE:HOUSE:118-123]")
        audit = audit_brief(clean, log)
        assert audit.shippable
        assert audit.problems() == []

    def test_minted_section_token_matches_its_citation(self) -> None:
        token = make_section_token(118, "HR", 1, "101(a)")
        log = add_citation(create_provenance_log("q"), token, EvidenceClass.WITNESSED, "Sec. 101(a)")
        audit = audit_brief(f"Covered data is defined [{token}].", log)
        assert audit.cited == [token]
        assert audit.unknown == []
        assert audit.shippable

    def test_unknown_token_blocks_shipping(self, log: ProvenanceLog) -> None:
        audit = audit_brief("A claim [BILL:118-S100].", log)
        assert audit.unknown == ["BILL:118-S100"]
        assert not audit.shippable
        assert any("BILL:118-S100" in p for p in audit.problems())

    def test_uncited_brief_blocks_shipping(self, log: ProvenanceLog) -> None:
        audit = audit_brief("Nothing cited here.", log)
        assert not audit.shippable
        assert audit.problems() == ["brief cites no receipt tokens"]

    def test_malformed_blocks_shipping(self, log: ProvenanceLog) -> None:
        audit = audit_brief("[BILL:118-HR1] and [BILL:]", log)
        assert audit.malformed == ["BILL:"]
        assert not audit.shippable

    def test_unresolved_reported(self) -> None:
        log = add_citation(create_provenance_log("q"), "BILL:118-XYZ1", EvidenceClass.WITNESSED, "x")
        audit = audit_brief("[BILL:118-XYZ1]", log)
        assert audit.unresolved == ["BILL:118-XYZ1"]
        assert audit.shippable

    def test_to_dict(self, log: ProvenanceLog) -> None:
        data = audit_brief(BRIEF, log).to_dict()
        assert data["shippable"] is False
        assert data["unwitnessed"] == 1
        assert len(data["cited"]) == 3
