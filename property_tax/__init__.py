"""
Property Tax Calculator
=======================

Estimates the government charges and withholding taxes due on a
property transfer in Pakistan, for both buyer and seller, based on the
property value and each party's FBR filer status.

Modules:
    rates           - Withholding tax rate schedule and filer statuses
    calculator      - Tax computation engine
    report_generator- Breakdown reports with PKR formatting, CSV/JSON export
    config          - Environment settings and logging setup
    cli             - Command-line interface
"""

__version__ = "1.0.0"

from property_tax.rates import Bracket, FilerStatus, PropertyRateDatabase, Role
from property_tax.calculator import (
    CalculationInput,
    CalculationResult,
    TaxEngine,
    compute,
)
from property_tax.report_generator import ReportGenerator

__all__ = [
    "Bracket",
    "FilerStatus",
    "PropertyRateDatabase",
    "Role",
    "CalculationInput",
    "CalculationResult",
    "TaxEngine",
    "compute",
    "ReportGenerator",
]
