"""
AI FAQ re-index: reads `ai_faqs` from Supabase and rebuilds the Qdrant collection.

A failing batch is logged and skipped; the run continues with the next one.
"""

import logging
import time
from dataclasses import dataclass, field

from api.services.supabase import SupabaseService
from knowledge.config import IndexConfig
from knowledge.embeddings import TextEmbedder, get_embedder
from knowledge.faqs import faq_embedding_text, faq_index_payload
from knowledge.qdrant_client import FaqQdrant

logger = logging.getLogger(__name__)


@dataclass
class IndexResult:
    """Summary of a re-index run."""

    faqs_found: int = 0
    faqs_indexed: int = 0
    batches_failed: int = 0
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def summary(self) -> str:
        lines = [
            f"AI FAQs found: {self.faqs_found}",
            f"AI FAQs indexed: {self.faqs_indexed}",
            f"Batches failed: {self.batches_failed}",
            f"Duration: {self.duration_seconds:.1f}s",
        ]
        return "\n".join(lines)


def fetch_faqs(service: SupabaseService, config: IndexConfig) -> list[dict]:
    """AI FAQs in creation order, filtered by condominium unless indexing all."""
    condominio_id = None if config.index_all else config.condominio_id
    faqs = service.list_ai_faqs(condominio_id=condominio_id, ascending=True)
    if not faqs:
        raise ValueError("Nenhuma AI FAQ encontrada")
    return faqs


def run_faq_reindex(
    config: IndexConfig,
    service: SupabaseService,
    qdrant: FaqQdrant | None = None,
    embedder: TextEmbedder | None = None,
) -> IndexResult:
    """
    Rebuild the AI FAQ vector index.

    Steps:
    1. Fetch FAQs (all, or one condominium's)
    2. Clear their old points (or the whole collection)
    3. Embed "question answer" per FAQ and upsert in batches
    """
    start = time.time()
    result = IndexResult()

    qdrant = qdrant or FaqQdrant(config)
    embedder = embedder or get_embedder(config.embedding_model)

    faqs = fetch_faqs(service, config)
    result.faqs_found = len(faqs)
    logger.info(f"Found {len(faqs)} AI FAQs")

    if config.dry_run:
        logger.info(f"[DRY RUN] Would index {len(faqs)} AI FAQs into {config.collection_name}")
        result.duration_seconds = time.time() - start
        return result

    qdrant.prepare_collection()

    total_batches = (len(faqs) + config.batch_size - 1) // config.batch_size
    for batch_number, i in enumerate(range(0, len(faqs), config.batch_size), start=1):
        batch = faqs[i : i + config.batch_size]
        logger.info(f"Batch {batch_number}/{total_batches} (FAQs {i + 1}-{i + len(batch)})")
        try:
            embeddings = embedder.embed_texts([faq_embedding_text(f) for f in batch])
            payloads = [faq_index_payload(f) for f in batch]
            result.faqs_indexed += qdrant.upsert_faqs(payloads, embeddings)
        except Exception as e:
            result.batches_failed += 1
            result.errors.append(f"batch {batch_number}: {type(e).__name__}: {e}")
            logger.error(f"Batch {batch_number} failed: {type(e).__name__}: {e}")

    result.duration_seconds = time.time() - start
    return result
