#!/usr/bin/env python3
"""
Import a financial statement CSV into Supabase.

Expected columns: category_code, description, amount, reference_month,
payment_date (`;` or `,` separated).

Usage:
    PYTHONPATH=src python scripts/import_financial_csv.py data/balancete.csv
    PYTHONPATH=src python scripts/import_financial_csv.py data/balancete.csv --condominio <uuid>
    PYTHONPATH=src python scripts/import_financial_csv.py data/balancete.csv --dry-run
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from api.logging import configure_root_logging, get_logger
from api.services.supabase import SupabaseService
from finance.importer import derive_categories, import_transactions, parse_transactions_csv
from knowledge.config import DEFAULT_CONDOMINIO_ID

logger = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Import a financial statement CSV")
    parser.add_argument("csv_path", type=Path, help="Path to the CSV file")
    parser.add_argument(
        "--condominio",
        default=DEFAULT_CONDOMINIO_ID,
        help="Condominium the transactions belong to",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and report without writing",
    )
    args = parser.parse_args()

    configure_root_logging()

    if not args.csv_path.exists():
        logger.error(f"File not found: {args.csv_path}")
        sys.exit(1)

    text = args.csv_path.read_text(encoding="utf-8")
    transactions = parse_transactions_csv(text, args.condominio)

    print("=" * 60)
    print("IMPORT FINANCIAL CSV")
    print("=" * 60)
    print(f"File: {args.csv_path}")
    print(f"Transactions parsed: {len(transactions)}")

    if not transactions:
        print("Nothing to import.")
        return

    if args.dry_run:
        categories = derive_categories(transactions)
        print(f"[DRY RUN] Would sync {len(categories)} categories")
        for t in transactions[:5]:
            print(f"  {t['category_code']:<10} {t['amount']:>12.2f}  {t['description']}")
        return

    result = import_transactions(SupabaseService(), transactions)

    print()
    print(result.summary())
    if result.failed_batches:
        sys.exit(1)


if __name__ == "__main__":
    main()
