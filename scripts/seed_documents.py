#!/usr/bin/env python3
"""
Seed the `documents` table with the Regimento Interno articles.

This script:
1. Clears the documents table (unless --keep-existing)
2. Embeds each article (title, content and tags) with Supabase/gte-small
3. Inserts the rows searched by the ask-ai endpoint

Usage:
    PYTHONPATH=src python scripts/seed_documents.py
    PYTHONPATH=src python scripts/seed_documents.py --dry-run
"""

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()

from api.logging import configure_root_logging, get_logger
from api.services.supabase import SupabaseService
from knowledge.config import SeedConfig
from knowledge.documents import REGIMENTO_DOCUMENTS, seed_documents

logger = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Seed the knowledge base documents")
    parser.add_argument(
        "--source",
        default=SeedConfig.source,
        help="Source name stored in each document's metadata",
    )
    parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="Do not clear the documents table first",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )
    args = parser.parse_args()

    configure_root_logging()

    config = SeedConfig(
        source=args.source,
        clear_existing=not args.keep_existing,
        dry_run=args.dry_run,
    )

    print("=" * 60)
    print("SEED KNOWLEDGE BASE")
    print("=" * 60)
    print(f"Documents: {len(REGIMENTO_DOCUMENTS)}")
    print(f"Source: {config.source}")

    inserted, failed = seed_documents(SupabaseService(), config=config)

    print(f"\nInserted: {inserted}")
    if failed:
        print(f"Failed: {', '.join(failed)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
