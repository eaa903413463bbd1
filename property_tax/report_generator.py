"""
Property tax report generator.

Produces:
- Single-transfer tax breakdowns (fixed charges, buyer, seller, totals)
- Batch summaries with per-item detail
- The published rate schedule
- PKR-formatted console text, CSV and JSON export
- pandas DataFrames for batch analysis
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from property_tax.calculator import BatchResult, CalculationResult
from property_tax.rates import (
    MISC_FEE,
    STAMP_DUTY_RATE,
    THRESHOLD,
    TMA_RATE,
    Bracket,
    PropertyRateDatabase,
)

CURRENCY_SYMBOL = "Rs"

_ABOVE_NOTICE = "Property value exceeds 5 Crore PKR - Higher tax rates apply"
_BELOW_NOTICE = "Property value is 5 Crore PKR or below - Standard tax rates apply"


def format_pkr(amount: Decimal | float | int) -> str:
    """
    Format an amount as whole Pakistani rupees, e.g. ``Rs 800,500``.

    Rounds half away from zero; this is the only place amounts are rounded.
    """
    rupees = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if rupees < 0:
        return f"-{CURRENCY_SYMBOL} {-rupees:,}"
    return f"{CURRENCY_SYMBOL} {abs(rupees):,}"


def format_rate(pct: Decimal | float | int) -> str:
    """Format a percentage without trailing zeros: 1.5 -> '1.5%', 2.0 -> '2%'."""
    text = f"{Decimal(str(pct)):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}%"


def bracket_notice(
    property_value: Decimal, threshold: Decimal = THRESHOLD
) -> Optional[str]:
    """Return the bracket banner for a value, or None when no value is entered."""
    if property_value <= 0:
        return None
    if property_value > threshold:
        return _ABOVE_NOTICE
    return _BELOW_NOTICE


def _result_notice(result: CalculationResult) -> Optional[str]:
    """Bracket banner matching the bracket the result was computed in."""
    if result.property_value <= 0:
        return None
    return _ABOVE_NOTICE if result.is_above_threshold else _BELOW_NOTICE


def _serializable(obj: Any) -> Any:
    """Recursively convert Decimal, Enum and date values for serialization."""
    if isinstance(obj, dict):
        return {k: _serializable(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_serializable(i) for i in obj]
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    return obj


class ReportGenerator:
    """
    Generates property tax reports with export capabilities.

    Reports are structured dicts that can be rendered to console text
    or exported to CSV/JSON files under ``output_dir``.
    """

    def __init__(self, output_dir: Optional[str] = None) -> None:
        self.output_dir = Path(output_dir) if output_dir else Path("reports")
        self.output_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Single transfer breakdown
    # ------------------------------------------------------------------

    def breakdown_report(self, result: CalculationResult) -> dict[str, Any]:
        """Itemized charges and taxes for one transfer."""
        return {
            "report_type": "property_tax_breakdown",
            "generated_date": date.today().isoformat(),
            "notice": _result_notice(result),
            "input": {
                "property_value": result.property_value,
                "buyer_status": result.input.buyer_status,
                "seller_status": result.input.seller_status,
                "bracket": result.bracket,
            },
            "fixed_charges": {
                "tma_rate": TMA_RATE,
                "tma_amount": result.tma_amount,
                "stamp_duty_rate": STAMP_DUTY_RATE,
                "stamp_duty_amount": result.stamp_duty_amount,
                "total": result.fixed_charges,
            },
            "buyer": {
                "status": result.input.buyer_status,
                "rate": result.buyer_rate,
                "filer_tax": result.buyer_filer_tax,
                "fixed_charges": result.fixed_charges,
                "total": result.buyer_tax,
            },
            "seller": {
                "status": result.input.seller_status,
                "rate": result.seller_rate,
                "filer_tax": result.seller_tax,
                "total": result.seller_tax,
            },
            "summary": {
                "fixed_charges": result.fixed_charges,
                "buyer_tax": result.buyer_tax,
                "seller_tax": result.seller_tax,
                "total_tax": result.total_tax,
                "misc_fee": MISC_FEE,
                "grand_total_displayed": result.grand_total_displayed,
            },
        }

    # ------------------------------------------------------------------
    # Batch summary
    # ------------------------------------------------------------------

    def batch_report(
        self, batch: BatchResult, period_label: str = ""
    ) -> dict[str, Any]:
        """Aggregate totals plus one flat row per computed transfer."""
        return {
            "report_type": "batch_summary",
            "period": period_label,
            "generated_date": date.today().isoformat(),
            "summary": {
                "total_items": batch.item_count,
                "computed_items": len(batch.entries),
                "above_threshold": batch.bracket_counts[Bracket.ABOVE_THRESHOLD],
                "total_property_value": batch.total_property_value,
                "total_fixed_charges": batch.total_fixed_charges,
                "total_buyer_tax": batch.total_buyer_tax,
                "total_seller_tax": batch.total_seller_tax,
                "total_tax": batch.total_tax,
            },
            "items": [
                self._flat_row(entry.entry_id, entry.result)
                for entry in batch.entries
            ],
            "errors": batch.errors,
        }

    @staticmethod
    def _flat_row(entry_id: str, r: CalculationResult) -> dict[str, Any]:
        return {
            "id": entry_id,
            "property_value": r.property_value,
            "bracket": r.bracket.value,
            "buyer_status": r.input.buyer_status.value,
            "buyer_rate": r.buyer_rate,
            "seller_status": r.input.seller_status.value,
            "seller_rate": r.seller_rate,
            "tma_amount": r.tma_amount,
            "stamp_duty_amount": r.stamp_duty_amount,
            "fixed_charges": r.fixed_charges,
            "buyer_filer_tax": r.buyer_filer_tax,
            "buyer_tax": r.buyer_tax,
            "seller_tax": r.seller_tax,
            "total_tax": r.total_tax,
            "grand_total_displayed": r.grand_total_displayed,
        }

    # ------------------------------------------------------------------
    # Rate schedule
    # ------------------------------------------------------------------

    def rate_schedule_report(
        self, db: Optional[PropertyRateDatabase] = None
    ) -> dict[str, Any]:
        db = db or PropertyRateDatabase()
        rows = []
        for bracket, role, table in db.all_tables():
            row: dict[str, Any] = {"bracket": bracket.value, "role": role.value}
            for status, pct in table.items():
                row[status.value] = pct
            rows.append(row)
        return {
            "report_type": "rate_schedule",
            "generated_date": date.today().isoformat(),
            "summary": {
                "threshold": db.threshold,
                "tma_rate": TMA_RATE,
                "stamp_duty_rate": STAMP_DUTY_RATE,
            },
            "schedule": rows,
        }

    # ------------------------------------------------------------------
    # Export methods
    # ------------------------------------------------------------------

    def to_json(
        self,
        report: dict[str, Any],
        filename: Optional[str] = None,
    ) -> str:
        """Export a report to JSON. Returns the JSON string."""
        json_str = json.dumps(_serializable(report), indent=2)

        if filename:
            path = self.output_dir / filename
            path.write_text(json_str, encoding="utf-8")

        return json_str

    def to_csv(
        self,
        report: dict[str, Any],
        filename: Optional[str] = None,
        section: str = "items",
    ) -> str:
        """
        Export a report section to CSV. Returns the CSV string.

        The section parameter names the list or dict in the report to
        export as rows.
        """
        data = _serializable(report.get(section, []))
        if not data:
            return ""

        output = io.StringIO()

        if isinstance(data, list) and isinstance(data[0], dict):
            writer = csv.DictWriter(output, fieldnames=list(data[0].keys()))
            writer.writeheader()
            writer.writerows(data)
        elif isinstance(data, dict):
            writer = csv.writer(output)
            writer.writerow(["key", "value"])
            for k, v in data.items():
                writer.writerow([k, v])

        csv_str = output.getvalue()

        if filename:
            path = self.output_dir / filename
            path.write_text(csv_str, encoding="utf-8")

        return csv_str

    @staticmethod
    def to_dataframe(batch: BatchResult) -> pd.DataFrame:
        """One row per computed transfer, amounts as floats, indexed by id."""
        rows = [
            _serializable(ReportGenerator._flat_row(e.entry_id, e.result))
            for e in batch.entries
        ]
        frame = pd.DataFrame(rows)
        if frame.empty:
            return frame
        return frame.set_index("id")

    # ------------------------------------------------------------------
    # Console-formatted text output
    # ------------------------------------------------------------------

    def format_text(self, report: dict[str, Any]) -> str:
        """Format a report as human-readable text for console output."""
        lines: list[str] = []
        report_type = report.get("report_type", "report").replace("_", " ").title()
        lines.append(f"{'=' * 60}")
        lines.append(f"  {report_type}")
        lines.append(f"  Generated: {report.get('generated_date', '')}")
        if report.get("period"):
            lines.append(f"  Period: {report['period']}")
        lines.append(f"{'=' * 60}")
        lines.append("")

        if report.get("notice"):
            lines.append(f"  {report['notice']}")
            lines.append("")

        for section in ("fixed_charges", "buyer", "seller", "summary"):
            data = report.get(section)
            if not data:
                continue
            lines.append(section.replace("_", " ").upper())
            lines.append("-" * 40)
            for key, value in data.items():
                lines.append(f"  {key.replace('_', ' ').title()}: {_format_value(key, value)}")
            lines.append("")

        schedule = report.get("schedule", [])
        if schedule:
            lines.append("RATE SCHEDULE")
            lines.append("-" * 40)
            for row in schedule:
                rates = " | ".join(
                    f"{k}: {format_rate(v)}"
                    for k, v in row.items()
                    if k not in ("bracket", "role")
                )
                lines.append(f"  {row['bracket']:<12} {row['role']:<7} {rates}")
            lines.append("")

        items = report.get("items", [])
        if items:
            lines.append("TRANSFERS")
            lines.append("-" * 40)
            for item in items:
                lines.append(
                    f"  {item['id']}: {format_pkr(item['property_value']):>16} | "
                    f"buyer {format_pkr(item['buyer_tax']):>14} | "
                    f"seller {format_pkr(item['seller_tax']):>14}"
                )
            lines.append("")

        errors = report.get("errors", [])
        if errors:
            lines.append("ERRORS")
            lines.append("-" * 40)
            for e in errors:
                lines.append(f"  * {e}")
            lines.append("")

        return "\n".join(lines)


def _format_value(key: str, value: Any) -> str:
    if isinstance(value, Enum):
        return getattr(value, "label", value.value)
    if isinstance(value, Decimal):
        if key == "rate" or key.endswith("_rate"):
            return format_rate(value)
        return format_pkr(value)
    return str(value)
