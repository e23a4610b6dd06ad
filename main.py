"""
main.py
CLI entry point for the SoF Laytime Analyzer.

Usage:
  python main.py analyze --file events.json [--allowed-days 3] [--daily-rate 20000] [--json]
  python main.py demo
"""
import argparse
import json
import sys
from pathlib import Path

# Ensure project root is on sys.path when running directly
sys.path.insert(0, str(Path(__file__).parent))

# ── Reference Statement of Facts ──────────────────────────────────────────────
DEMO_SOF = {
    "vesselName": "MV OCEAN PIONEER",
    "portOfCall": "Durban",
    "berth": "Maydon Wharf 5",
    "cargoDescription": "Iron ore fines",
    "cargoQuantity": "40,000 MT",
    "voyageNumber": "OP-2411",
    "noticeOfReadinessTendered": "2024-11-15 10:30",
    "extractionConfidence": 96,
    "events": [
        {"event": "Vessel arrived at outer anchorage", "category": "Arrival",
         "startTime": "2024-11-15 08:00", "endTime": "2024-11-15 10:30", "status": "Completed"},
        {"event": "NOR Tendered", "category": "Other",
         "startTime": "2024-11-15 10:30", "status": "Completed"},
        {"event": "Waiting at anchorage for berth", "category": "Anchorage",
         "startTime": "2024-11-15 10:30", "endTime": "2024-11-16 06:00", "status": "Completed"},
        {"event": "Pilot on board, shifting to berth", "category": "Arrival",
         "startTime": "2024-11-16 06:00", "endTime": "2024-11-16 08:00", "status": "Completed"},
        {"event": "Commenced loading", "category": "Cargo Operations",
         "startTime": "2024-11-16 09:00", "endTime": "2024-11-18 14:00", "status": "Completed"},
        {"event": "Rain stoppage", "category": "Stoppages",
         "startTime": "2024-11-17 02:00", "endTime": "2024-11-17 05:30", "status": "Delayed",
         "remark": "Hatches closed due to rain"},
        {"event": "Bunkering alongside", "category": "Bunkering",
         "startTime": "2024-11-17 12:00", "endTime": "2024-11-17 16:00", "status": "Completed"},
        {"event": "Resumed loading", "category": "Cargo Operations",
         "startTime": "2024-11-18 14:00", "endTime": "2024-11-19 20:00", "status": "Completed"},
        {"event": "Conveyor breakdown", "category": "Delays",
         "startTime": "2024-11-19 20:00", "endTime": "2024-11-19 23:00", "status": "Delayed"},
        {"event": "Completed loading", "category": "Cargo Operations",
         "startTime": "2024-11-19 23:00", "endTime": "2024-11-20 04:00", "status": "Completed"},
        {"event": "Vessel sailed", "category": "Departure",
         "startTime": "2024-11-20 06:00", "status": "Completed"},
    ],
}


def _build_terms(args: argparse.Namespace):
    from events.models import LaytimeTerms
    terms = LaytimeTerms.from_settings()
    overrides = {}
    if args.allowed_days is not None:
        overrides["allowed_minutes"] = int(round(args.allowed_days * 24 * 60))
    if args.daily_rate is not None:
        overrides["daily_rate"] = args.daily_rate
    if not overrides:
        return terms
    return LaytimeTerms(
        allowed_minutes=overrides.get("allowed_minutes", terms.allowed_minutes),
        daily_rate=overrides.get("daily_rate", terms.daily_rate),
        currency_symbol=terms.currency_symbol,
    )


def _render(result) -> None:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    console = Console()
    meta = result.metadata
    console.print("\n[bold blue]═══ SOF LAYTIME ANALYZER ═══[/bold blue]\n")
    if meta.get("vessel_name"):
        console.print(f"  [bold]Vessel:[/bold] {meta['vessel_name']}")
    if meta.get("port_of_call"):
        console.print(f"  [bold]Port:[/bold]   {meta['port_of_call']}")
    if meta.get("nor_tendered"):
        console.print(f"  [bold]NOR:[/bold]    {meta['nor_tendered']}")
    console.print(f"  [bold]Events:[/bold] {len(result.events)} ({result.batch.dropped} dropped)\n")

    # Timeline
    timeline = Table(title="Event Timeline (overlaps merged)", box=box.ROUNDED, show_lines=True)
    timeline.add_column("Block",    style="cyan", width=36)
    timeline.add_column("Category", width=18)
    timeline.add_column("From",     width=14)
    timeline.add_column("To",       width=7)
    timeline.add_column("Duration", justify="right", width=12)
    for block in result.blocks:
        name = block.display_name
        if len(block.members) > 1:
            name += "\n" + "\n".join(f"  • {m.label}" for m in block.members)
        timeline.add_row(
            name,
            block.representative_category.value,
            block.start_label,
            block.end_label,
            block.duration,
        )
    console.print(timeline)

    # Laytime breakdown
    breakdown = Table(title="Laytime Event Breakdown", box=box.ROUNDED, show_lines=True)
    breakdown.add_column("Event",    style="cyan", width=36)
    breakdown.add_column("Duration", justify="right", width=12)
    breakdown.add_column("Counted?", justify="center", width=9)
    breakdown.add_column("Reason",   width=48)
    for le in result.laytime.events:
        counted = "[green]Yes[/green]" if le.counted else "[dim]No[/dim]"
        breakdown.add_row(le.event.label, le.duration, counted, le.reason)
    console.print(breakdown)

    s = result.laytime.summary
    console.print(f"\n  [bold]Total Laytime Used:[/bold]     {s.total_counted_duration}")
    console.print(f"  [bold]Allowed Laytime:[/bold]        {s.allowed_duration}")
    console.print(f"  [bold green]Time Saved (Despatch):[/bold green]  {s.time_saved}")
    console.print(f"  [bold red]Extra Time (Demurrage):[/bold red] {s.overrun}")
    if s.overrun_cost_display:
        console.print(f"  [bold red]Estimated Demurrage Cost:[/bold red] {s.overrun_cost_display}")

    report = result.guardrail_report
    status_str = "[green]PASSED[/green]" if report["passed"] else "[red]FLAGGED[/red]"
    console.print(f"\n  [bold]Confidence Score:[/bold] {report['confidence_score']:.0%}")
    console.print(f"  [bold]Guardrail Status:[/bold] {status_str}")
    for w in report.get("warnings", []) + report.get("violations", []):
        console.print(f"  [yellow]⚠  {w}[/yellow]")
    console.print()


def run_analyze(args: argparse.Namespace) -> int:
    from pydantic import ValidationError

    from analysis_engine.engine import SoFAnalysisEngine
    from schemas.inputs import StatementOfFacts

    path = Path(args.file)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: cannot read events from {path}: {exc}", file=sys.stderr)
        return 2

    try:
        sof = StatementOfFacts.from_payload(payload)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or 'payload'}: {e['msg']}" for e in exc.errors()
        )
        print(f"error: invalid Statement of Facts in {path}: {problems}", file=sys.stderr)
        return 2

    result = SoFAnalysisEngine(terms=_build_terms(args)).analyze(sof)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _render(result)
    return 0


def run_demo(args: argparse.Namespace) -> int:
    from analysis_engine.engine import SoFAnalysisEngine
    from schemas.inputs import StatementOfFacts

    sof    = StatementOfFacts.from_payload(DEMO_SOF)
    result = SoFAnalysisEngine(terms=_build_terms(args)).analyze(sof)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _render(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sof-laytime",
        description="Merge Statement of Facts events into a timeline and allocate laytime.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--allowed-days", type=float, default=None, help="Allowed laytime in days")
        p.add_argument("--daily-rate", type=float, default=None, help="Demurrage rate per day")
        p.add_argument("--json", action="store_true", help="Print the result as JSON")

    analyze = sub.add_parser("analyze", help="Analyse a JSON file of SoF events")
    analyze.add_argument("--file", required=True, help="JSON file: SoF object or list of events")
    _common(analyze)
    analyze.set_defaults(func=run_analyze)

    demo = sub.add_parser("demo", help="Analyse the built-in reference SoF")
    _common(demo)
    demo.set_defaults(func=run_demo)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
