"""
Embedding utilities for the condominium knowledge base.

Two models are in use:
- Supabase/gte-small for the `documents` table searched by ask-ai
  (mean pooling, L2-normalized, 384 dims). FastEmbed does not ship it, so it
  is registered as a custom ONNX model on first use.
- sentence-transformers/all-MiniLM-L6-v2 for the AI FAQ index in Qdrant
  (also 384 dims).

Texts are passed whole; the model tokenizer applies its own token limit.
"""

import logging
import threading
from dataclasses import dataclass

from fastembed import TextEmbedding
from fastembed.common.model_description import ModelSource, PoolingType

logger = logging.getLogger(__name__)

DOCUMENTS_MODEL = "Supabase/gte-small"
FAQ_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
EMBEDDING_DIM = 384

_register_lock = threading.Lock()
_registered_models: set[str] = set()


def _register_gte_small() -> None:
    """Register Supabase/gte-small with FastEmbed (idempotent)."""
    with _register_lock:
        if DOCUMENTS_MODEL in _registered_models:
            return
        try:
            TextEmbedding.add_custom_model(
                model=DOCUMENTS_MODEL,
                pooling=PoolingType.MEAN,
                normalization=True,
                sources=ModelSource(hf=DOCUMENTS_MODEL),
                dim=EMBEDDING_DIM,
                model_file="onnx/model.onnx",
            )
        except ValueError:
            # Already registered by another embedder in this process
            logger.debug(f"{DOCUMENTS_MODEL} already registered")
        _registered_models.add(DOCUMENTS_MODEL)


@dataclass
class EmbeddingConfig:
    """Configuration for an embedding model."""

    model_name: str = DOCUMENTS_MODEL
    batch_size: int = 32


class TextEmbedder:
    """
    Embeds text with a FastEmbed model, loading it lazily.

    Usage:
        embedder = TextEmbedder()
        vector = embedder.embed_query("Qual o horário de silêncio?")
        vectors = embedder.embed_texts(["Artigo 1º ...", "Artigo 28º ..."])
    """

    def __init__(self, config: EmbeddingConfig | None = None):
        self.config = config or EmbeddingConfig()
        self._model: TextEmbedding | None = None

    @property
    def model(self) -> TextEmbedding:
        """Lazy-load the embedding model."""
        if self._model is None:
            if self.config.model_name == DOCUMENTS_MODEL:
                _register_gte_small()
            logger.info(f"Loading embedding model: {self.config.model_name}")
            try:
                self._model = TextEmbedding(model_name=self.config.model_name)
            except Exception as e:
                logger.error(f"Failed to load embedding model: {type(e).__name__}: {e}")
                raise
            logger.info("Embedding model loaded")
        return self._model

    @property
    def dimension(self) -> int:
        return EMBEDDING_DIM

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """
        Embed a list of texts for indexing.

        Args:
            texts: Texts to embed

        Returns:
            One vector (list of floats) per input text, in order
        """
        if not texts:
            return []

        prepared = [t or "" for t in texts]
        embeddings = self.model.embed(prepared, batch_size=self.config.batch_size)
        return [emb.tolist() for emb in embeddings]

    def embed_query(self, query: str) -> list[float]:
        """Embed a single search query."""
        return self.embed_texts([query])[0]


_embedders: dict[str, TextEmbedder] = {}
_embedders_lock = threading.Lock()


def get_embedder(model_name: str = DOCUMENTS_MODEL) -> TextEmbedder:
    """Get or create the per-process embedder for ``model_name``."""
    with _embedders_lock:
        embedder = _embedders.get(model_name)
        if embedder is None:
            embedder = TextEmbedder(EmbeddingConfig(model_name=model_name))
            _embedders[model_name] = embedder
        return embedder
