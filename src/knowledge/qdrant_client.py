"""
Qdrant client wrapper for the AI FAQ index.

Point IDs are derived from the FAQ id, so re-indexing overwrites instead of
duplicating.
"""

import hashlib
import logging
import os

from dotenv import load_dotenv
from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from api.utils.retry import with_retry
from knowledge.config import IndexConfig
from knowledge.embeddings import EMBEDDING_DIM

load_dotenv()

logger = logging.getLogger(__name__)

QDRANT_URL = os.getenv("QDRANT_URL")
QDRANT_API_KEY = os.getenv("QDRANT_API_KEY")


def make_point_id(faq_id: str) -> int:
    """Stable positive 64-bit integer id for a FAQ."""
    hash_hex = hashlib.sha256(f"ai_faq_{faq_id}".encode()).hexdigest()[:16]
    return int(hash_hex, 16)


class FaqQdrant:
    """
    Qdrant access for the AI FAQ collection.

    - Creates the collection (384-dim cosine) on first use
    - Clears either every point or one condominium's points before re-indexing
    - Upserts batches with retry
    """

    def __init__(self, config: IndexConfig, client: QdrantClient | None = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> QdrantClient:
        """Lazy-initialize the Qdrant client."""
        if self._client is None:
            if not QDRANT_URL or not QDRANT_API_KEY:
                raise ValueError("QDRANT_URL and QDRANT_API_KEY must be set")
            self._client = QdrantClient(url=QDRANT_URL, api_key=QDRANT_API_KEY)
            logger.info(f"Connected to Qdrant: {QDRANT_URL}")
        return self._client

    def collection_exists(self) -> bool:
        collections = [c.name for c in self.client.get_collections().collections]
        return self.config.collection_name in collections

    def create_collection(self) -> None:
        self.client.create_collection(
            collection_name=self.config.collection_name,
            vectors_config=VectorParams(size=EMBEDDING_DIM, distance=Distance.COSINE),
        )
        logger.info(f"Created collection: {self.config.collection_name}")
        self._ensure_payload_index("condominio_id")

    def _ensure_payload_index(self, field_name: str) -> None:
        try:
            self.client.create_payload_index(
                collection_name=self.config.collection_name,
                field_name=field_name,
                field_schema=PayloadSchemaType.KEYWORD,
            )
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug(f"Index on {field_name} already exists")
            else:
                logger.warning(f"Failed to create index on {field_name}: {e}")

    def prepare_collection(self) -> None:
        """
        Make the collection ready for a fresh index.

        Indexing everything recreates the collection; indexing one
        condominium deletes only its points.
        """
        if not self.collection_exists():
            self.create_collection()
            return

        if self.config.index_all:
            self.client.delete_collection(self.config.collection_name)
            logger.info(f"Dropped collection: {self.config.collection_name}")
            self.create_collection()
            return

        self.client.delete(
            collection_name=self.config.collection_name,
            points_selector=FilterSelector(
                filter=Filter(
                    must=[
                        FieldCondition(
                            key="condominio_id",
                            match=MatchValue(value=self.config.condominio_id),
                        )
                    ]
                )
            ),
        )
        logger.info(f"Cleared points for condominio {self.config.condominio_id}")

    def upsert_faqs(self, payloads: list[dict], embeddings: list[list[float]]) -> int:
        """
        Upsert FAQ points.

        Args:
            payloads: Point payloads (each must carry `faq_id`)
            embeddings: Vectors in the same order

        Returns:
            Number of points upserted
        """
        if len(payloads) != len(embeddings):
            raise ValueError(
                f"Payload/embedding count mismatch: {len(payloads)} vs {len(embeddings)}"
            )

        points = [
            PointStruct(id=make_point_id(str(p["faq_id"])), vector=vector, payload=p)
            for p, vector in zip(payloads, embeddings)
        ]
        if points:
            self._upsert(points)
        return len(points)

    @with_retry(max_retries=3)
    def _upsert(self, points: list[PointStruct]) -> None:
        self.client.upsert(collection_name=self.config.collection_name, points=points)

    def get_collection_stats(self) -> dict:
        """Point count, status and vector settings of the collection."""
        try:
            info = self.client.get_collection(self.config.collection_name)
            vectors = info.config.params.vectors
            return {
                "points_count": info.points_count,
                "status": info.status.value,
                "dimension": getattr(vectors, "size", None),
                "distance": getattr(getattr(vectors, "distance", None), "value", None),
            }
        except Exception as e:
            logger.warning(f"Failed to get collection stats: {e}")
            return {"error": str(e)}
