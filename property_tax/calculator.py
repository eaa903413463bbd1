"""
Property transfer tax calculation engine.

Handles:
- Property value sanitization at the function boundary
- Bracket selection against the 50 million PKR threshold
- Fixed government charges (TMA, stamp duty)
- Buyer and seller withholding tax by filer status
- Batch computation with per-item error collection

All amounts are returned at full Decimal precision. Rounding to whole
rupees is a display concern handled by the report generator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence, Union

from property_tax.rates import (
    MISC_FEE,
    STAMP_DUTY_RATE,
    TMA_RATE,
    Bracket,
    FilerStatus,
    PropertyRateDatabase,
    Role,
)

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

StatusLike = Union[FilerStatus, str]


def sanitize_property_value(value: Any) -> Decimal:
    """
    Coerce a raw property value to a non-negative finite Decimal.

    Non-numeric, non-finite and negative values become zero, matching how
    the input form treats anything it cannot read as a number.
    """
    if value is None or isinstance(value, bool):
        return _ZERO

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return _ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            logger.warning("Non-numeric property value %r treated as 0", value)
            return _ZERO
    else:
        logger.warning(
            "Unsupported property value type %s treated as 0",
            type(value).__name__,
        )
        return _ZERO

    if not amount.is_finite() or amount < 0:
        logger.warning("Invalid property value %s treated as 0", amount)
        return _ZERO
    if amount.is_zero():
        return _ZERO
    return amount


def _percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * rate / _HUNDRED


@dataclass(frozen=True)
class CalculationInput:
    """The three form inputs a calculation is derived from."""

    property_value: Decimal
    buyer_status: FilerStatus = FilerStatus.FILER
    seller_status: FilerStatus = FilerStatus.FILER

    @classmethod
    def create(
        cls,
        property_value: Any,
        buyer_status: StatusLike = FilerStatus.FILER,
        seller_status: StatusLike = FilerStatus.FILER,
    ) -> "CalculationInput":
        """Build an input from raw values, sanitizing and parsing each."""
        return cls(
            property_value=sanitize_property_value(property_value),
            buyer_status=FilerStatus.parse(buyer_status),
            seller_status=FilerStatus.parse(seller_status),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CalculationInput":
        return cls.create(
            data.get("property_value"),
            data.get("buyer_status") or FilerStatus.FILER,
            data.get("seller_status") or FilerStatus.FILER,
        )


@dataclass(frozen=True)
class CalculationResult:
    """Tax breakdown for a single property transfer."""

    input: CalculationInput
    bracket: Bracket
    buyer_rate: Decimal  # percent, e.g. 1.5
    seller_rate: Decimal
    tma_amount: Decimal
    stamp_duty_amount: Decimal
    fixed_charges: Decimal
    buyer_filer_tax: Decimal
    buyer_tax: Decimal
    seller_tax: Decimal
    total_tax: Decimal

    @property
    def property_value(self) -> Decimal:
        return self.input.property_value

    @property
    def is_above_threshold(self) -> bool:
        return self.bracket is Bracket.ABOVE_THRESHOLD

    @property
    def grand_total_displayed(self) -> Decimal:
        """
        Combined total as shown to users: total_tax plus the misc fee.

        The fee is not itemized anywhere, so this figure does not reconcile
        with the breakdown. Use total_tax for any arithmetic.
        """
        return self.total_tax + MISC_FEE


@dataclass
class BatchEntry:
    entry_id: str
    result: CalculationResult


@dataclass
class BatchResult:
    """Aggregated result for a batch of calculations."""

    entries: list[BatchEntry]
    total_property_value: Decimal
    total_fixed_charges: Decimal
    total_buyer_tax: Decimal
    total_seller_tax: Decimal
    total_tax: Decimal
    item_count: int
    bracket_counts: dict[Bracket, int]
    errors: list[str] = field(default_factory=list)

    @property
    def results(self) -> list[CalculationResult]:
        return [e.result for e in self.entries]


class TaxEngine:
    """
    Property transfer tax engine.

    Stateless apart from the rate schedule it reads from; every call to
    compute() is independent of the previous one.
    """

    def __init__(self, db: Optional[PropertyRateDatabase] = None) -> None:
        self.db = db or PropertyRateDatabase()

    def compute(
        self,
        property_value: Any,
        buyer_status: StatusLike = FilerStatus.FILER,
        seller_status: StatusLike = FilerStatus.FILER,
    ) -> CalculationResult:
        """
        Compute charges and withholding taxes for a property transfer.

        Raises ValueError for an unknown filer status. An unusable property
        value is treated as zero.
        """
        return self.compute_input(
            CalculationInput.create(property_value, buyer_status, seller_status)
        )

    def compute_input(self, calc_input: CalculationInput) -> CalculationResult:
        value = calc_input.property_value
        bracket = self.db.bracket_for(value)
        buyer_rate = self.db.rate(bracket, Role.BUYER, calc_input.buyer_status)
        seller_rate = self.db.rate(bracket, Role.SELLER, calc_input.seller_status)

        tma_amount = _percent_of(value, TMA_RATE)
        stamp_duty_amount = _percent_of(value, STAMP_DUTY_RATE)
        fixed_charges = tma_amount + stamp_duty_amount

        buyer_filer_tax = _percent_of(value, buyer_rate)
        buyer_tax = fixed_charges + buyer_filer_tax
        seller_tax = _percent_of(value, seller_rate)

        logger.debug(
            "Computed %s (%s): buyer %s @ %s%%, seller %s @ %s%%",
            value,
            bracket.value,
            calc_input.buyer_status.value,
            buyer_rate,
            calc_input.seller_status.value,
            seller_rate,
        )

        return CalculationResult(
            input=calc_input,
            bracket=bracket,
            buyer_rate=buyer_rate,
            seller_rate=seller_rate,
            tma_amount=tma_amount,
            stamp_duty_amount=stamp_duty_amount,
            fixed_charges=fixed_charges,
            buyer_filer_tax=buyer_filer_tax,
            buyer_tax=buyer_tax,
            seller_tax=seller_tax,
            total_tax=buyer_tax + seller_tax,
        )

    def compute_batch(
        self,
        items: Iterable[Union[CalculationInput, Sequence[Any]]],
        ids: Optional[Sequence[str]] = None,
    ) -> BatchResult:
        """
        Compute a batch of transfers.

        Items are CalculationInput objects or (value, buyer, seller)
        sequences. Items with an invalid status are reported in
        ``errors`` and skipped; the rest of the batch still runs.
        """
        entries: list[BatchEntry] = []
        errors: list[str] = []
        total_value = _ZERO
        total_fixed = _ZERO
        total_buyer = _ZERO
        total_seller = _ZERO
        bracket_counts: dict[Bracket, int] = {b: 0 for b in Bracket}
        count = 0

        for i, item in enumerate(items):
            count += 1
            entry_id = ids[i] if ids is not None and i < len(ids) else str(i + 1)
            try:
                if isinstance(item, CalculationInput):
                    result = self.compute_input(item)
                else:
                    result = self.compute(*item)
            except (ValueError, TypeError) as e:
                logger.warning("Skipping batch item %s: %s", entry_id, e)
                errors.append(f"Item {entry_id}: {e}")
                continue

            entries.append(BatchEntry(entry_id=entry_id, result=result))
            total_value += result.property_value
            total_fixed += result.fixed_charges
            total_buyer += result.buyer_tax
            total_seller += result.seller_tax
            bracket_counts[result.bracket] += 1

        return BatchResult(
            entries=entries,
            total_property_value=total_value,
            total_fixed_charges=total_fixed,
            total_buyer_tax=total_buyer,
            total_seller_tax=total_seller,
            total_tax=total_buyer + total_seller,
            item_count=count,
            bracket_counts=bracket_counts,
            errors=errors,
        )


_default_engine: Optional[TaxEngine] = None


def compute(
    property_value: Any,
    buyer_status: StatusLike = FilerStatus.FILER,
    seller_status: StatusLike = FilerStatus.FILER,
) -> CalculationResult:
    """Compute with the built-in rate schedule."""
    global _default_engine
    if _default_engine is None:
        _default_engine = TaxEngine()
    return _default_engine.compute(property_value, buyer_status, seller_status)
