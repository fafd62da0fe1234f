#!/usr/bin/env python3
"""
Ledger Quickstart Example

Demonstrates the complete flow:
1. Mint receipt tokens for facts returned by a retrieval step
2. Record strategies, shortlist bills and collect receipts in a provenance log
3. Audit a synthesized brief and seal the log for export

Run:
    pip install -e .
    python examples/ledger_quickstart.py
"""
from __future__ import annotations

import tempfile
from pathlib import Path

from ledger import (
    EvidenceClass,
    add_citation,
    create_provenance_log,
    format_receipt_markdown,
    make_bill_token,
    make_house_vote_token,
    record_strategy,
    select_bill,
)
from ledger.audit import audit_brief
from ledger.store import ProvenanceStore

# What a congress.gov search adapter might hand back
SEARCH_RESULTS = [
    {"congress": 118, "type": "HR", "number": 1, "title": "Lower Energy Costs Act"},
    {"congress": 118, "type": "S", "number": 100, "title": "An act relating to data"},
]


def main():
    print("=" * 60)
    print("LEDGER QUICKSTART")
    print("=" * 60)

    log = create_provenance_log("data privacy")
    print(f"\n1. Started session: {log.session_id}")

    log = record_strategy(log, {
        "label": "Congress.gov keyword search",
        "description": "Search bills matching 'data privacy'",
        "source": "congress.gov",
        "endpoint": "https://api.congress.gov/v3/bill",
        "parametersUsed": {"query": "data privacy", "limit": "10"},
        "success": True,
        "resultCount": len(SEARCH_RESULTS),
    })
    log = record_strategy(log, {
        "label": "Senate roll calls",
        "source": "senate.gov",
        "endpoint": "https://www.senate.gov/legislative/LIS/roll_call_votes",
        "success": False,
        "resultCount": 0,
    })
    print(f"2. Recorded {len(log.strategies)} strategies")

    for bill in SEARCH_RESULTS:
        token = make_bill_token(bill["congress"], bill["type"], bill["number"])
        log = select_bill(log, token)
        log = add_citation(log, token, EvidenceClass.WITNESSED, bill["title"])
    vote = make_house_vote_token(118, 123)
    log = add_citation(log, vote, EvidenceClass.INFERENCE, "Passage vote split on party lines")

    print("3. Receipts:")
    for receipt in log.citations_map.values():
        print(f"   - {format_receipt_markdown(receipt)}")

    brief = (
        "H.R. 1 lowers energy costs [BILL:118-HR1]. "
        "The vote split on party lines [VOTE:HOUSE:118-123]. "
        "States will follow [UNWITNESSED]."
    )
    audit = audit_brief(brief, log)
    print(f"\n4. Brief shippable: {audit.shippable}")
    for problem in audit.problems():
        print(f"   - {problem}")

    with tempfile.TemporaryDirectory() as tmp:
        store = ProvenanceStore(Path(tmp) / "home")
        sealed = store.export(log, Path(tmp) / "provenance.json")
        print(f"\n5. Sealed at {sealed.exported_at.isoformat()}")
        print(f"   History snapshots: {len(store.history(sealed.session_id))}")


if __name__ == "__main__":
    main()
