#!/usr/bin/env python3
"""
Property Tax Calculator - Entry Point

Calculates buyer and seller taxes on a property transfer based on the
property value and FBR filer status of each party.

Usage:
    python main.py calculate --value 10000000 --buyer filer --seller filer
    python main.py calculate --value 60000000 --buyer nonFiler --seller lateFiler
    python main.py calculate --file data/sample_transfers.csv --export-json batch.json
    python main.py rates
    python main.py rates --value 60000000
"""

from property_tax.cli import main

if __name__ == "__main__":
    main()
