"""
Ledger CLI commands: receipt tokens and provenance chain of custody.

Commands:
  ledger parse      - Parse a receipt token into its fields
  ledger resolve    - Resolve a receipt token to its primary-source URL
  ledger new        - Start a provenance log for a query
  ledger strategy   - Record a retrieval strategy attempt
  ledger cite       - Add (or replace) the receipt for a token
  ledger select     - Add a bill token to the shortlist
  ledger deselect   - Remove a bill token from the shortlist
  ledger seal       - Seal a log for export
  ledger show       - Summarize a provenance log
  ledger history    - Replay the stored snapshots of a session
  ledger audit      - Check a markdown brief against a provenance log
  ledger version    - Show version info

Exit codes: 0 ok, 1 error or refused, 2 audit failed, 3 bad input.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ledger.config import LedgerConfig, configure_logging

console = Console()

ledger_app = typer.Typer(
    name="ledger",
    help="Receipt tokens and chain of custody for legislative briefs",
    no_args_is_help=True,
)


@ledger_app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
):
    configure_logging("DEBUG" if verbose else LedgerConfig().log_level)


def _output_json(data: Dict[str, Any], exit_code: Optional[int] = None) -> None:
    """Print structured JSON to stdout and exit.

    Exit codes:
    - 0: success (status == "ok")
    - 1: error (status == "error" or "refused")
    - 2: audit failed (status == "failed")
    - 3: bad input

    Can be overridden with explicit exit_code parameter.
    """
    print(json.dumps(data, indent=2, default=str))
    if exit_code is not None:
        raise typer.Exit(exit_code)
    status = data.get("status", "ok")
    if status == "ok":
        raise typer.Exit(0)
    elif status == "failed":
        raise typer.Exit(2)
    else:
        raise typer.Exit(1)


def _bad_input(message: str, output_json: bool, command: str) -> None:
    if output_json:
        _output_json({"command": command, "status": "error", "error": message}, exit_code=3)
    console.print(f"[red]Error:[/] {escape(message)}")
    raise typer.Exit(3)


def _load_log(path: Path, output_json: bool, command: str):
    from ledger.provenance import provenance_from_json

    if not path.exists():
        _bad_input(f"provenance log not found: {path}", output_json, command)
    try:
        return provenance_from_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        _bad_input(f"invalid provenance log {path}: {e.error_count()} error(s)", output_json, command)


def _save_log(log, path: Path, persist: bool) -> None:
    from ledger.provenance import provenance_to_json
    from ledger.store import ProvenanceStore

    path.write_text(provenance_to_json(log) + "\n", encoding="utf-8")
    if persist:
        ProvenanceStore(LedgerConfig().home).append(log)


def _refuse_if_sealed(log, force: bool, output_json: bool, command: str) -> None:
    from ledger.provenance import SealedLogError, ensure_open

    if force:
        return
    try:
        ensure_open(log)
    except SealedLogError as e:
        if output_json:
            _output_json({"command": command, "status": "refused", "error": str(e)})
        console.print(f"[red]Refused:[/] {escape(str(e))}")
        console.print("Use --force to modify a sealed log.")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

@ledger_app.command("parse")
def parse_cmd(
    token: str = typer.Argument(..., help="Receipt token, e.g. BILL:118-HR1"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Parse a receipt token into its structured fields."""
    from ledger.tokens import parse_token

    parsed = parse_token(token)
    if parsed is None:
        if output_json:
            _output_json({"command": "parse", "status": "error", "token": token, "error": "not a receipt token"})
        console.print(f"[red]Not a receipt token:[/] {escape(token)}")
        raise typer.Exit(1)

    fields = parsed.model_dump(mode="json", by_alias=True, exclude_none=True)
    if output_json:
        _output_json({"command": "parse", "status": "ok", "token": token, "parsed": fields})

    table = Table(title=escape(token), show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in fields.items():
        table.add_row(key, escape(str(value)))
    console.print(table)


@ledger_app.command("resolve")
def resolve_cmd(
    token: str = typer.Argument(..., help="Receipt token to resolve"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Resolve a receipt token to the primary-source URL it names."""
    from ledger.resolver import resolve_token_url

    url = resolve_token_url(token)
    if output_json:
        _output_json({
            "command": "resolve",
            "status": "ok" if url else "error",
            "token": token,
            "url": url,
        })
    if url is None:
        console.print(f"[yellow]No resolvable URL for[/] {escape(token)}")
        raise typer.Exit(1)
    print(url)


# ---------------------------------------------------------------------------
# Provenance log
# ---------------------------------------------------------------------------

@ledger_app.command("new")
def new_cmd(
    query: str = typer.Argument(..., help="The question this session investigates"),
    output: Path = typer.Option(Path("provenance.json"), "--output", "-o", help="Log file to create"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing log file"),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Record snapshot in the ledger store"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Start a new provenance log."""
    from ledger.provenance import create_provenance_log

    if output.exists() and not force:
        if output_json:
            _output_json({"command": "new", "status": "refused", "error": f"{output} already exists"})
        console.print(f"[red]Error:[/] {escape(str(output))} already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    try:
        log = create_provenance_log(query, prefix=LedgerConfig().session_prefix)
    except ValueError as e:
        _bad_input(f"{e} (check LEDGER_SESSION_PREFIX)", output_json, "new")
    _save_log(log, output, persist)

    if output_json:
        _output_json({"command": "new", "status": "ok", "session_id": log.session_id, "path": str(output)})
    console.print(f"Started session [bold]{log.session_id}[/] -> {escape(str(output))}")


def _parse_params(params: List[str], output_json: bool) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for item in params:
        key, sep, value = item.partition("=")
        if not sep or not key:
            _bad_input(f"parameter must be key=value, got {item!r}", output_json, "strategy")
        parsed[key] = value
    return parsed


@ledger_app.command("strategy")
def strategy_cmd(
    log_path: Path = typer.Argument(..., help="Provenance log file"),
    label: str = typer.Option(..., "--label", help="Short strategy name"),
    source: str = typer.Option(..., "--source", help="Data source, e.g. congress.gov"),
    endpoint: str = typer.Option(..., "--endpoint", help="Endpoint queried"),
    description: str = typer.Option("", "--description", help="What the strategy searched for"),
    param: List[str] = typer.Option([], "--param", "-p", help="Parameter used, as key=value (repeatable)"),
    results: int = typer.Option(0, "--results", min=0, help="Number of results returned"),
    failed: bool = typer.Option(False, "--failed", help="Record a failed attempt"),
    force: bool = typer.Option(False, "--force", help="Modify a sealed log"),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Record snapshot in the ledger store"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Record a retrieval strategy attempt (successful or failed)."""
    from ledger.provenance import StrategyAttempt, record_strategy

    log = _load_log(log_path, output_json, "strategy")
    _refuse_if_sealed(log, force, output_json, "strategy")
    attempt = StrategyAttempt(
        label=label,
        description=description,
        source=source,
        endpoint=endpoint,
        parameters_used=_parse_params(param, output_json),
        success=not failed,
        result_count=0 if failed else results,
    )
    log = record_strategy(log, attempt)
    _save_log(log, log_path, persist)
    strategy = log.strategies[-1]

    if output_json:
        _output_json({"command": "strategy", "status": "ok", "strategy": strategy.to_wire()})
    mark = "[green]ok[/]" if strategy.success else "[red]failed[/]"
    console.print(f"Recorded {strategy.id} {mark}: {escape(label)} ({strategy.result_count} results)")


@ledger_app.command("cite")
def cite_cmd(
    log_path: Path = typer.Argument(..., help="Provenance log file"),
    token: str = typer.Argument(..., help="Receipt token to cite"),
    evidence_class: str = typer.Option(..., "--class", "-c", help="WITNESSED or INFERENCE"),
    label: str = typer.Option("", "--label", help="Human-readable label for the citation"),
    force: bool = typer.Option(False, "--force", help="Modify a sealed log"),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Record snapshot in the ledger store"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Add the receipt for a token. Citing a token again replaces its receipt."""
    from ledger.evidence import EvidenceClass
    from ledger.provenance import add_citation

    log = _load_log(log_path, output_json, "cite")
    _refuse_if_sealed(log, force, output_json, "cite")
    try:
        cls = EvidenceClass.coerce(evidence_class)
        log = add_citation(log, token, cls, label)
    except ValueError as e:
        # MalformedTokenError or an invalid evidence class
        _bad_input(str(e), output_json, "cite")
    _save_log(log, log_path, persist)
    receipt = log.citations_map[token]

    if output_json:
        _output_json({"command": "cite", "status": "ok", "receipt": receipt.to_wire()})
    console.print(f"Cited {escape(token)} as [bold]{receipt.evidence_class.value}[/]")
    if receipt.resolved_url is None:
        console.print("[yellow]Warning:[/] no primary-source URL for this token")


def _selection_cmd(log_path: Path, token: str, select: bool, force: bool, persist: bool, output_json: bool) -> None:
    from ledger.provenance import deselect_bill, select_bill
    from ledger.tokens import parse_token

    command = "select" if select else "deselect"
    log = _load_log(log_path, output_json, command)
    _refuse_if_sealed(log, force, output_json, command)
    if select and parse_token(token) is None:
        _bad_input(f"not a receipt token: {token!r}", output_json, command)

    updated = select_bill(log, token) if select else deselect_bill(log, token)
    changed = updated is not log
    if changed:
        _save_log(updated, log_path, persist)

    if output_json:
        _output_json({
            "command": command,
            "status": "ok",
            "changed": changed,
            "selected_bills": list(updated.selected_bills),
        })
    verb = "Selected" if select else "Deselected"
    if changed:
        console.print(f"{verb} {escape(token)} ({len(updated.selected_bills)} on shortlist)")
    else:
        console.print(f"No change: {escape(token)} {'already' if select else 'not'} on shortlist")


@ledger_app.command("select")
def select_cmd(
    log_path: Path = typer.Argument(..., help="Provenance log file"),
    token: str = typer.Argument(..., help="Bill token to shortlist"),
    force: bool = typer.Option(False, "--force", help="Modify a sealed log"),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Record snapshot in the ledger store"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Add a bill token to the shortlist."""
    _selection_cmd(log_path, token, True, force, persist, output_json)


@ledger_app.command("deselect")
def deselect_cmd(
    log_path: Path = typer.Argument(..., help="Provenance log file"),
    token: str = typer.Argument(..., help="Bill token to remove"),
    force: bool = typer.Option(False, "--force", help="Modify a sealed log"),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Record snapshot in the ledger store"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Remove a bill token from the shortlist. Its citations are kept."""
    _selection_cmd(log_path, token, False, force, persist, output_json)


@ledger_app.command("seal")
def seal_cmd(
    log_path: Path = typer.Argument(..., help="Provenance log file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the exported artifact here too"),
    force: bool = typer.Option(False, "--force", help="Re-seal an already sealed log"),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Record sealed snapshot in the ledger store"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Seal a log for export and record the sealed snapshot."""
    from ledger.provenance import mark_exported, provenance_to_json
    from ledger.store import ProvenanceStore

    log = _load_log(log_path, output_json, "seal")
    _refuse_if_sealed(log, force, output_json, "seal")
    if persist:
        sealed = ProvenanceStore(LedgerConfig().home).export(log, output or log_path)
    else:
        sealed = mark_exported(log)
        artifact = output or log_path
        artifact.parent.mkdir(parents=True, exist_ok=True)
        artifact.write_text(provenance_to_json(sealed) + "\n", encoding="utf-8")
    if output is not None:
        log_path.write_text(provenance_to_json(sealed) + "\n", encoding="utf-8")

    if output_json:
        _output_json({
            "command": "seal",
            "status": "ok",
            "session_id": sealed.session_id,
            "exported_at": sealed.exported_at.isoformat(),
        })
    console.print(f"Sealed [bold]{sealed.session_id}[/] at {sealed.exported_at.isoformat()}")


@ledger_app.command("show")
def show_cmd(
    log_path: Path = typer.Argument(..., help="Provenance log file"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Summarize a provenance log: strategies, shortlist, receipts."""
    from ledger.provenance import provenance_summary

    log = _load_log(log_path, output_json, "show")
    summary = provenance_summary(log)
    if output_json:
        _output_json({"command": "show", "status": "ok", **summary})

    state = "[green]SEALED[/]" if log.sealed else "[yellow]OPEN[/]"
    console.print(f"Session [bold]{log.session_id}[/] {state}")
    console.print(f"Query: {escape(log.query)}")
    console.print(
        f"Strategies used: {summary['n_strategies']} "
        f"({summary['n_strategies_failed']} failed)"
    )

    if log.strategies:
        table = Table(title="Retrieval strategies")
        table.add_column("ID")
        table.add_column("Label")
        table.add_column("Source")
        table.add_column("Results", justify="right")
        table.add_column("OK")
        for s in log.strategies:
            table.add_row(s.id, escape(s.label), escape(s.source), str(s.result_count), "yes" if s.success else "no")
        console.print(table)

    console.print(f"Shortlist: {', '.join(log.selected_bills) or '(empty)'}")

    if log.citations_map:
        table = Table(title=f"Receipt tokens: {summary['n_citations']}")
        table.add_column("Token", no_wrap=True)
        table.add_column("Class", no_wrap=True)
        table.add_column("Label")
        table.add_column("URL", overflow="fold")
        for receipt in log.citations_map.values():
            table.add_row(
                receipt.token,
                receipt.evidence_class.value,
                escape(receipt.label),
                receipt.resolved_url or "-",
            )
        console.print(table)


@ledger_app.command("history")
def history_cmd(
    session_id: str = typer.Argument(..., help="Session ID to replay"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Replay the stored snapshots of a session, oldest first."""
    from ledger.provenance import provenance_summary
    from ledger.store import ProvenanceStore

    try:
        snapshots = ProvenanceStore(LedgerConfig().home).history(session_id)
    except ValueError as e:
        _bad_input(str(e), output_json, "history")
    if not snapshots:
        if output_json:
            _output_json({"command": "history", "status": "error", "error": f"no history for {session_id}"})
        console.print(f"[red]No stored history for[/] {escape(session_id)}")
        raise typer.Exit(1)

    rows = [provenance_summary(s) for s in snapshots]
    if output_json:
        _output_json({"command": "history", "status": "ok", "session_id": session_id, "snapshots": rows})

    table = Table(title=f"History of {session_id}")
    table.add_column("#", justify="right")
    table.add_column("Strategies", justify="right")
    table.add_column("Selected", justify="right")
    table.add_column("Citations", justify="right")
    table.add_column("Sealed")
    for i, row in enumerate(rows, 1):
        table.add_row(
            str(i),
            str(row["n_strategies"]),
            str(row["n_selected"]),
            str(row["n_citations"]),
            "yes" if row["sealed"] else "no",
        )
    console.print(table)


@ledger_app.command("audit")
def audit_cmd(
    brief: Path = typer.Argument(..., help="Markdown brief to audit"),
    log_path: Path = typer.Option(..., "--log", "-l", help="Provenance log the brief cites"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Refuse a brief that carries unwitnessed or untethered claims."""
    from ledger.audit import audit_brief

    if not brief.exists():
        _bad_input(f"brief not found: {brief}", output_json, "audit")
    log = _load_log(log_path, output_json, "audit")
    result = audit_brief(brief.read_text(encoding="utf-8"), log)

    if output_json:
        _output_json({
            "command": "audit",
            "status": "ok" if result.shippable else "failed",
            **result.to_dict(),
        })

    console.print(f"Citations: {len(result.cited)} ({len(result.inference_only)} inference)")
    if result.shippable:
        console.print("[green]SHIPPABLE[/] every claim carries a receipt")
        return
    console.print("[red]NOT SHIPPABLE[/]")
    for problem in result.problems():
        console.print(f"  - {escape(problem)}")
    raise typer.Exit(2)


@ledger_app.command("version")
def show_version(
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show version info."""
    from ledger import __version__

    if output_json:
        _output_json({"command": "version", "status": "ok", "version": __version__})
    console.print(f"ledger {__version__}")
