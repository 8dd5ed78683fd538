"""
Configuration for knowledge base maintenance jobs.

All free parameters in one place for easy tuning.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from knowledge.embeddings import FAQ_MODEL

load_dotenv()

# Pinheiro Park, the first condominium onboarded
DEFAULT_CONDOMINIO_ID = "5c624180-5fca-41fd-a5a0-a6e724f45d96"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("true", "1", "yes")


@dataclass
class IndexConfig:
    """Configuration for the AI FAQ re-index into Qdrant."""

    collection_name: str = field(
        default_factory=lambda: os.getenv("QDRANT_AI_COLLECTION_NAME", "faqs_ai_collection")
    )
    condominio_id: str = field(
        default_factory=lambda: os.getenv("FILTER_CONDOMINIO_ID", DEFAULT_CONDOMINIO_ID)
    )
    index_all: bool = field(default_factory=lambda: _env_flag("INDEX_ALL_AI_FAQS"))

    embedding_model: str = FAQ_MODEL
    batch_size: int = 10  # FAQs embedded and upserted per batch

    dry_run: bool = False

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if not self.index_all and not self.condominio_id:
            raise ValueError("condominio_id is required unless index_all is set")


@dataclass
class SeedConfig:
    """Configuration for seeding the `documents` table."""

    source: str = "Regimento Interno 2025"
    clear_existing: bool = True
    dry_run: bool = False
