#!/usr/bin/env python3
"""
Quick Start Example
===================

Demonstrates basic usage of the TaxEngine to compute buyer and seller
taxes for a property transfer and print the breakdown.

Usage:
    python examples/quick_start.py
"""

from property_tax.calculator import TaxEngine
from property_tax.rates import FilerStatus, PropertyRateDatabase
from property_tax.report_generator import bracket_notice, format_pkr, format_rate


def main() -> None:
    # Initialize the rate schedule and engine
    db = PropertyRateDatabase()
    engine = TaxEngine(db=db)

    # A 1 crore house: filer buyer, late-filer seller
    result = engine.compute(10_000_000, FilerStatus.FILER, FilerStatus.LATE_FILER)

    print(bracket_notice(result.property_value))
    print(f"Property Value:      {format_pkr(result.property_value)}")
    print(f"TMA:                 {format_pkr(result.tma_amount)}")
    print(f"Stamp Duty:          {format_pkr(result.stamp_duty_amount)}")
    print(f"Fixed Charges:       {format_pkr(result.fixed_charges)}")
    print(f"Buyer Filer Tax:     {format_pkr(result.buyer_filer_tax)} ({format_rate(result.buyer_rate)})")
    print(f"Total Buyer Tax:     {format_pkr(result.buyer_tax)}")
    print(f"Seller Tax:          {format_pkr(result.seller_tax)} ({format_rate(result.seller_rate)})")
    print(f"Total Tax:           {format_pkr(result.total_tax)}")
    print(f"Combined (displayed):{format_pkr(result.grand_total_displayed):>11}")

    # Above the 5 crore threshold the higher tables apply
    print("\n--- Above Threshold ---")
    big = engine.compute("60000000", "nonFiler", "nonFiler")
    print(bracket_notice(big.property_value))
    print(f"Buyer Rate:          {format_rate(big.buyer_rate)}")
    print(f"Seller Rate:         {format_rate(big.seller_rate)}")
    print(f"Total Tax:           {format_pkr(big.total_tax)}")


if __name__ == "__main__":
    main()
