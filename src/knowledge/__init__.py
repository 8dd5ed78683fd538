"""Knowledge base maintenance: embeddings, document seeding and the AI FAQ index."""

from knowledge.embeddings import TextEmbedder, get_embedder

__all__ = ["TextEmbedder", "get_embedder"]
