#!/usr/bin/env python3
"""
Re-index the AI FAQs from Supabase into Qdrant.

By default only the FAQs of FILTER_CONDOMINIO_ID are re-indexed (their old
points are deleted first). With --all (or INDEX_ALL_AI_FAQS=true) the whole
collection is recreated.

Usage:
    PYTHONPATH=src python scripts/reindex_ai_faqs.py
    PYTHONPATH=src python scripts/reindex_ai_faqs.py --all
    PYTHONPATH=src python scripts/reindex_ai_faqs.py --condominio <uuid> --dry-run
"""

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()

from api.logging import configure_root_logging, get_logger
from api.services.supabase import SupabaseService
from knowledge.config import IndexConfig
from knowledge.faq_index import run_faq_reindex
from knowledge.qdrant_client import FaqQdrant

logger = get_logger(__name__)


def build_config(args: argparse.Namespace) -> IndexConfig:
    config = IndexConfig(dry_run=args.dry_run)
    if args.all:
        config.index_all = True
    if args.condominio:
        config.condominio_id = args.condominio
    if args.collection:
        config.collection_name = args.collection
    return config


def main():
    parser = argparse.ArgumentParser(description="Re-index AI FAQs into Qdrant")
    parser.add_argument("--all", action="store_true", help="Index the FAQs of every condominium")
    parser.add_argument("--condominio", help="Condominium id to index (overrides FILTER_CONDOMINIO_ID)")
    parser.add_argument("--collection", help="Qdrant collection name")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch FAQs without touching Qdrant",
    )
    args = parser.parse_args()

    configure_root_logging()
    config = build_config(args)

    print("=" * 60)
    print("RE-INDEX AI FAQS")
    print("=" * 60)
    print(f"Collection: {config.collection_name}")
    print(f"Scope: {'all condominiums' if config.index_all else config.condominio_id}")

    qdrant = FaqQdrant(config)
    try:
        result = run_faq_reindex(config, SupabaseService(), qdrant=qdrant)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    print()
    print(result.summary())

    if not config.dry_run:
        stats = qdrant.get_collection_stats()
        print(f"\nCollection stats: {stats}")

    if result.batches_failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
