"""Tests for the TaxEngine."""

import logging
from decimal import Decimal

import pytest

from property_tax.calculator import (
    BatchResult,
    CalculationInput,
    CalculationResult,
    TaxEngine,
    compute,
    sanitize_property_value,
)
from property_tax.rates import Bracket, FilerStatus, PropertyRateDatabase

STATUSES = PropertyRateDatabase.statuses()


@pytest.fixture
def engine() -> TaxEngine:
    return TaxEngine()


# ── Worked examples ──────────────────────────────────────────────────


def test_one_crore_filer_filer(engine: TaxEngine):
    r = engine.compute(10_000_000, FilerStatus.FILER, FilerStatus.FILER)
    assert r.bracket is Bracket.AT_OR_BELOW_THRESHOLD
    assert r.tma_amount == Decimal("100000")
    assert r.stamp_duty_amount == Decimal("100000")
    assert r.fixed_charges == Decimal("200000")
    assert r.buyer_filer_tax == Decimal("150000")
    assert r.buyer_tax == Decimal("350000")
    assert r.seller_tax == Decimal("450000")
    assert r.total_tax == Decimal("800000")
    assert r.grand_total_displayed == Decimal("800500")


def test_six_crore_non_filers(engine: TaxEngine):
    r = engine.compute(60_000_000, FilerStatus.NON_FILER, FilerStatus.NON_FILER)
    assert r.bracket is Bracket.ABOVE_THRESHOLD
    assert r.is_above_threshold
    assert r.buyer_rate == Decimal("14.5")
    assert r.seller_rate == Decimal("11.5")
    assert r.tma_amount == Decimal("600000")
    assert r.stamp_duty_amount == Decimal("600000")
    assert r.fixed_charges == Decimal("1200000")
    assert r.buyer_filer_tax == Decimal("8700000")
    assert r.buyer_tax == Decimal("9900000")
    assert r.seller_tax == Decimal("6900000")
    assert r.total_tax == Decimal("16800000")


def test_zero_value(engine: TaxEngine):
    r = engine.compute(0, FilerStatus.NON_FILER, FilerStatus.LATE_FILER)
    for amount in (
        r.tma_amount,
        r.stamp_duty_amount,
        r.fixed_charges,
        r.buyer_filer_tax,
        r.buyer_tax,
        r.seller_tax,
        r.total_tax,
    ):
        assert amount == 0
    assert r.grand_total_displayed == Decimal("500")


def test_exact_threshold_uses_standard_rates(engine: TaxEngine):
    r = engine.compute(50_000_000, FilerStatus.FILER, FilerStatus.FILER)
    assert r.bracket is Bracket.AT_OR_BELOW_THRESHOLD
    assert r.buyer_rate == Decimal("1.5")
    assert r.seller_rate == Decimal("4.5")
    assert r.buyer_filer_tax == Decimal("750000")


def test_one_rupee_over_threshold_uses_higher_rates(engine: TaxEngine):
    r = engine.compute(50_000_001, FilerStatus.FILER, FilerStatus.FILER)
    assert r.bracket is Bracket.ABOVE_THRESHOLD
    assert r.buyer_rate == Decimal("2")
    assert r.seller_rate == Decimal("5")


def test_full_precision_is_kept(engine: TaxEngine):
    r = engine.compute("1234567.89", "lateFiler", "filer")
    assert r.buyer_filer_tax == Decimal("1234567.89") * Decimal("4.5") / 100
    assert r.buyer_filer_tax == Decimal("55555.55505")


def test_defaults_to_filer(engine: TaxEngine):
    r = engine.compute(10_000_000)
    assert r.input.buyer_status is FilerStatus.FILER
    assert r.input.seller_status is FilerStatus.FILER


def test_module_level_compute():
    r = compute(10_000_000, "filer", "filer")
    assert isinstance(r, CalculationResult)
    assert r.total_tax == Decimal("800000")


# ── Arithmetic identities ────────────────────────────────────────────


@pytest.mark.parametrize(
    "value", ["0", "1", "999999.99", "50000000", "50000000.5", "73125000", "1000000000"]
)
def test_breakdown_identities(engine: TaxEngine, value: str):
    for buyer in STATUSES:
        for seller in STATUSES:
            r = engine.compute(value, buyer, seller)
            v = Decimal(value)
            assert r.fixed_charges == r.tma_amount + r.stamp_duty_amount
            assert r.fixed_charges == v * 2 / 100
            assert r.buyer_tax == r.fixed_charges + r.buyer_filer_tax
            assert r.total_tax == r.buyer_tax + r.seller_tax
            assert r.grand_total_displayed == r.total_tax + 500


@pytest.mark.parametrize("value", [5_000_000, 50_000_000, 80_000_000])
def test_taxes_non_decreasing_with_status_tier(engine: TaxEngine, value: int):
    seller_taxes = [
        engine.compute(value, FilerStatus.FILER, s).seller_tax for s in STATUSES
    ]
    buyer_taxes = [
        engine.compute(value, b, FilerStatus.FILER).buyer_filer_tax for b in STATUSES
    ]
    assert seller_taxes == sorted(seller_taxes)
    assert buyer_taxes == sorted(buyer_taxes)


def test_grand_total_is_not_part_of_total_tax(engine: TaxEngine):
    r = engine.compute(10_000_000)
    assert r.total_tax == r.buyer_tax + r.seller_tax
    assert r.grand_total_displayed - r.total_tax == Decimal("500")


# ── Input sanitization ───────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw",
    [-1, -50_000_000, "-10", float("nan"), float("inf"), float("-inf"),
     "abc", "", "   ", None, True, [], Decimal("NaN"), Decimal("-Infinity")],
)
def test_invalid_values_become_zero(raw):
    assert sanitize_property_value(raw) == Decimal("0")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (10_000_000, Decimal("10000000")),
        (2.5, Decimal("2.5")),
        (" 60000000 ", Decimal("60000000")),
        (Decimal("123.45"), Decimal("123.45")),
        ("-0", Decimal("0")),
    ],
)
def test_valid_values_kept(raw, expected):
    assert sanitize_property_value(raw) == expected


def test_negative_value_computes_as_zero(engine: TaxEngine):
    r = engine.compute(-10_000_000, "nonFiler", "nonFiler")
    assert r.property_value == 0
    assert r.total_tax == 0
    assert r.grand_total_displayed == Decimal("500")


def test_invalid_value_is_logged(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("property_tax"), "propagate", True)
    caplog.set_level(logging.WARNING, logger="property_tax")
    sanitize_property_value("twelve lakh")
    assert "treated as 0" in caplog.text


def test_unknown_status_raises(engine: TaxEngine):
    with pytest.raises(ValueError, match="Unknown filer status"):
        engine.compute(10_000_000, "exempt", "filer")
    with pytest.raises(ValueError, match="Unknown filer status"):
        engine.compute(10_000_000, "filer", "unregistered")


def test_input_is_immutable():
    calc_input = CalculationInput.create(1000)
    with pytest.raises(AttributeError):
        calc_input.property_value = Decimal("5")  # type: ignore[misc]


def test_input_from_dict_defaults_statuses():
    calc_input = CalculationInput.from_dict({"property_value": "7500000", "buyer_status": ""})
    assert calc_input.property_value == Decimal("7500000")
    assert calc_input.buyer_status is FilerStatus.FILER
    assert calc_input.seller_status is FilerStatus.FILER


# ── Batch computation ────────────────────────────────────────────────


def test_batch_aggregates(engine: TaxEngine):
    batch = engine.compute_batch(
        [
            (10_000_000, "filer", "filer"),
            CalculationInput.create(60_000_000, "nonFiler", "nonFiler"),
        ],
        ids=["PLOT-1", "HOUSE-2"],
    )
    assert isinstance(batch, BatchResult)
    assert batch.item_count == 2
    assert [e.entry_id for e in batch.entries] == ["PLOT-1", "HOUSE-2"]
    assert batch.total_property_value == Decimal("70000000")
    assert batch.total_fixed_charges == Decimal("1400000")
    assert batch.total_buyer_tax == Decimal("10250000")
    assert batch.total_seller_tax == Decimal("7350000")
    assert batch.total_tax == Decimal("17600000")
    assert batch.bracket_counts[Bracket.ABOVE_THRESHOLD] == 1
    assert batch.bracket_counts[Bracket.AT_OR_BELOW_THRESHOLD] == 1
    assert batch.errors == []


def test_batch_collects_errors_and_continues(engine: TaxEngine):
    batch = engine.compute_batch(
        [
            (10_000_000, "filer", "filer"),
            (20_000_000, "bogus", "filer"),
            (30_000_000, "lateFiler", "lateFiler"),
        ]
    )
    assert batch.item_count == 3
    assert len(batch.entries) == 2
    assert [e.entry_id for e in batch.entries] == ["1", "3"]
    assert len(batch.errors) == 1
    assert batch.errors[0].startswith("Item 2:")
    assert len(batch.results) == 2


def test_empty_batch(engine: TaxEngine):
    batch = engine.compute_batch([])
    assert batch.item_count == 0
    assert batch.total_tax == 0
