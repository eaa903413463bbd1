"""
Command-line interface for the property tax estimator.

Provides subcommands for computing buyer and seller taxes on a single
transfer or a CSV batch, and for viewing the rate schedule.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import pandas as pd
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from property_tax.calculator import (
    TaxEngine,
    sanitize_property_value,
)
from property_tax.config import Settings, configure_logging
from property_tax.rates import (
    MISC_FEE,
    STAMP_DUTY_RATE,
    TMA_RATE,
    Bracket,
    FilerStatus,
    PropertyRateDatabase,
)
from property_tax.report_generator import (
    ReportGenerator,
    bracket_notice,
    format_pkr,
    format_rate,
)

console = Console()
logger = logging.getLogger(__name__)


def _load_inputs_csv(path: str) -> tuple[list[tuple[str, str, str]], list[str]]:
    """
    Load transfers from a CSV file.

    Expected columns: property_value, buyer_status, seller_status and an
    optional id. Missing statuses default to filer. Statuses are validated
    by the engine so bad rows surface in the batch errors.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        sys.exit(1)

    frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    if "property_value" not in frame.columns:
        console.print("[red]CSV must have a property_value column[/red]")
        sys.exit(1)

    inputs: list[tuple[str, str, str]] = []
    ids: list[str] = []
    for i, row in enumerate(frame.to_dict(orient="records")):
        ids.append(str(row.get("id") or i + 1))
        inputs.append(
            (
                row["property_value"],
                row.get("buyer_status") or FilerStatus.FILER.value,
                row.get("seller_status") or FilerStatus.FILER.value,
            )
        )
    logger.info("Loaded %d transfers from %s", len(inputs), csv_path)
    return inputs, ids


def _parse_status(text: str, role: str) -> FilerStatus:
    try:
        return FilerStatus.parse(text)
    except ValueError:
        choices = ", ".join(s.value for s in FilerStatus)
        console.print(
            f"[red]Unknown {role} status: {text} (choose from {choices})[/red]"
        )
        sys.exit(1)


# -----------------------------------------------------------------------
# Subcommand: calculate
# -----------------------------------------------------------------------


def cmd_calculate(args: argparse.Namespace) -> None:
    """Compute taxes for a single transfer or a CSV batch."""
    engine = TaxEngine()

    if args.file:
        inputs, ids = _load_inputs_csv(args.file)
        batch = engine.compute_batch(inputs, ids=ids)

        table = Table(
            title="Property Tax Results",
            box=box.ROUNDED,
            show_lines=True,
        )
        table.add_column("ID", style="dim")
        table.add_column("Value", justify="right")
        table.add_column("Buyer")
        table.add_column("Seller")
        table.add_column("Buyer Tax", justify="right")
        table.add_column("Seller Tax", justify="right")
        table.add_column("Total", justify="right", style="bold")

        for entry in batch.entries:
            r = entry.result
            style = "yellow" if r.is_above_threshold else ""
            table.add_row(
                entry.entry_id[:12],
                format_pkr(r.property_value),
                f"{r.input.buyer_status.label} ({format_rate(r.buyer_rate)})",
                f"{r.input.seller_status.label} ({format_rate(r.seller_rate)})",
                format_pkr(r.buyer_tax),
                format_pkr(r.seller_tax),
                format_pkr(r.total_tax),
                style=style,
            )

        console.print(table)
        console.print()
        console.print(
            Panel(
                f"[bold]Transfers:[/bold] {len(batch.entries)}\n"
                f"[bold]Above 5 Crore:[/bold] {batch.bracket_counts[Bracket.ABOVE_THRESHOLD]}\n"
                f"[bold]Fixed Charges:[/bold] {format_pkr(batch.total_fixed_charges)}\n"
                f"[bold]Buyer Tax:[/bold] {format_pkr(batch.total_buyer_tax)}\n"
                f"[bold]Seller Tax:[/bold] {format_pkr(batch.total_seller_tax)}\n"
                f"[bold]Total Tax:[/bold] {format_pkr(batch.total_tax)}",
                title="Batch Summary",
                border_style="green",
            )
        )
        for err in batch.errors:
            console.print(f"[yellow]{err}[/yellow]")

        if args.export_json or args.export_csv:
            rg = ReportGenerator(args.output_dir)
            report = rg.batch_report(batch, period_label=args.period or "")
            if args.export_json:
                rg.to_json(report, args.export_json)
                console.print(f"[green]JSON exported to {rg.output_dir / args.export_json}[/green]")
            if args.export_csv:
                rg.to_csv(report, args.export_csv, section="items")
                console.print(f"[green]CSV exported to {rg.output_dir / args.export_csv}[/green]")
        return

    if args.value is None:
        console.print("[red]Provide --value, or --file[/red]")
        sys.exit(1)

    result = engine.compute(
        args.value,
        _parse_status(args.buyer, "buyer"),
        _parse_status(args.seller, "seller"),
    )

    notice = bracket_notice(result.property_value, engine.db.threshold)
    if notice:
        color = "dark_orange" if result.is_above_threshold else "green"
        console.print(Panel(notice, border_style=color))

    console.print(
        Panel(
            f"[bold]TMA ({format_rate(TMA_RATE)}):[/bold] "
            f"{format_pkr(result.tma_amount)}\n"
            f"[bold]Stamp Duty ({format_rate(STAMP_DUTY_RATE)}):[/bold] "
            f"{format_pkr(result.stamp_duty_amount)}\n"
            f"[bold]Total Fixed Charges:[/bold] {format_pkr(result.fixed_charges)}",
            title="Fixed Charges (Applicable to All Buyers)",
            border_style="magenta",
        )
    )
    console.print(
        Panel(
            f"[bold]Filer Status:[/bold] {result.input.buyer_status.label}\n"
            f"[bold]Filer Tax ({format_rate(result.buyer_rate)}):[/bold] "
            f"{format_pkr(result.buyer_filer_tax)}\n"
            f"[bold]Total Buyer Tax:[/bold] {format_pkr(result.buyer_tax)}",
            title="Buyer",
            border_style="blue",
        )
    )
    console.print(
        Panel(
            f"[bold]Filer Status:[/bold] {result.input.seller_status.label}\n"
            f"[bold]Filer Tax ({format_rate(result.seller_rate)}):[/bold] "
            f"{format_pkr(result.seller_tax)}\n"
            f"[bold]Total Seller Tax:[/bold] {format_pkr(result.seller_tax)}",
            title="Seller",
            border_style="green",
        )
    )
    console.print(
        Panel(
            f"[bold yellow]{format_pkr(result.grand_total_displayed)}[/bold yellow]\n"
            f"[dim]Buyer + seller tax {format_pkr(result.total_tax)} "
            f"plus misc. fee {format_pkr(MISC_FEE)}[/dim]",
            title="Combined Total Tax",
            border_style="white",
        )
    )

    if args.export_json:
        rg = ReportGenerator(args.output_dir)
        rg.to_json(rg.breakdown_report(result), args.export_json)
        console.print(f"[green]JSON exported to {rg.output_dir / args.export_json}[/green]")


# -----------------------------------------------------------------------
# Subcommand: rates
# -----------------------------------------------------------------------


def cmd_rates(args: argparse.Namespace) -> None:
    """Display the rate schedule, or the rates that apply to one value."""
    db = PropertyRateDatabase()
    tables = db.all_tables()
    title = "Property Transfer Withholding Tax Rates"

    if args.value is not None:
        value = sanitize_property_value(args.value)
        bracket = db.bracket_for(value)
        tables = [t for t in tables if t[0] is bracket]
        title = bracket_notice(value, db.threshold) or title

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Bracket", style="bold")
    table.add_column("Role")
    for status in db.statuses():
        table.add_column(status.label, justify="right")

    for bracket, role, rates in tables:
        label = (
            "> 5 Crore" if bracket is Bracket.ABOVE_THRESHOLD else "<= 5 Crore"
        )
        table.add_row(
            label,
            role.value.title(),
            *(format_rate(rates[s]) for s in db.statuses()),
        )
    console.print(table)
    console.print(
        f"[dim]Threshold: {format_pkr(db.threshold)}. "
        f"Buyers also pay TMA {format_rate(TMA_RATE)} and "
        f"stamp duty {format_rate(STAMP_DUTY_RATE)}.[/dim]"
    )


# -----------------------------------------------------------------------
# Argument parser
# -----------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="property-tax",
        description="Property Tax Calculator - buyer and seller taxes on property transfers by FBR filer status",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (overrides PROPERTY_TAX_LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # calculate
    calc_p = subparsers.add_parser("calculate", help="Calculate property taxes")
    calc_p.add_argument("--value", "-v", help="Property value in PKR")
    calc_p.add_argument(
        "--buyer", "-b", default=FilerStatus.FILER.value, help="Buyer filer status"
    )
    calc_p.add_argument(
        "--seller", "-s", default=FilerStatus.FILER.value, help="Seller filer status"
    )
    calc_p.add_argument("--file", "-f", help="CSV file with transfers")
    calc_p.add_argument("--period", help="Period label for batch reports")
    calc_p.add_argument("--export-json", help="Export results to JSON file")
    calc_p.add_argument("--export-csv", help="Export batch rows to CSV file")
    calc_p.add_argument("--output-dir", help="Output directory for exports")
    calc_p.set_defaults(func=cmd_calculate)

    # rates
    rates_p = subparsers.add_parser("rates", help="View the rate schedule")
    rates_p.add_argument("--value", "-v", help="Show only the rates for this value")
    rates_p.set_defaults(func=cmd_rates)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    configure_logging(args.log_level or settings.log_level)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if getattr(args, "output_dir", None) is None:
        args.output_dir = settings.output_dir

    args.func(args)
