"""
Answer pipeline behind the ask-ai endpoint.

Handles:
1. Query embedding (Supabase/gte-small)
2. Similarity search through the `match_documents` RPC
3. Templated answer with the source of the matched rule
"""

import logging
from dataclasses import dataclass, field

from langfuse import get_client, observe

from api.services.supabase import SupabaseService
from knowledge.embeddings import TextEmbedder, get_embedder
from prompts import render_prompt

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Norma"
DEFAULT_SOURCE = "Regimento Interno"


@dataclass
class RetrievalConfig:
    """Similarity search settings."""

    match_threshold: float = 0.70
    match_count: int = 3


@dataclass
class AnswerSource:
    """A knowledge base document used in the answer."""

    title: str
    source: str
    content: str
    similarity: float | None = None


@dataclass
class AnswerResult:
    """Result of the answer pipeline."""

    answer: str
    sources: list[AnswerSource] = field(default_factory=list)


def to_source(document: dict) -> AnswerSource:
    """Read title, source and content from a `match_documents` row."""
    metadata = document.get("metadata") or {}
    return AnswerSource(
        title=metadata.get("title") or document.get("title") or DEFAULT_TITLE,
        source=metadata.get("source") or DEFAULT_SOURCE,
        content=document.get("content") or "",
        similarity=document.get("similarity"),
    )


def compose_answer(user_name: str, sources: list[AnswerSource]) -> str:
    """
    Build the reply shown to the resident.

    No sources: a polite "not found" pointing to the administration.
    Otherwise: the best match quoted with its source, plus the runner-up
    quoted as a related rule when there is one.
    """
    if not sources:
        return render_prompt("ask_ai_no_match_v1", user_name=user_name)

    top = sources[0]
    answer = render_prompt(
        "ask_ai_answer_v1",
        user_name=user_name,
        title=top.title,
        content=top.content,
        source=top.source,
    )

    if len(sources) > 1:
        related = render_prompt("ask_ai_related_v1", content=sources[1].content)
        answer = f"{answer}\n\n{related}"

    return answer


@observe(name="ask-ai-retrieve")
def retrieve_sources(
    query: str,
    supabase: SupabaseService,
    embedder: TextEmbedder,
    config: RetrievalConfig,
) -> list[AnswerSource]:
    """Embed the query and return matching documents, best first."""
    query_embedding = embedder.embed_query(query)
    documents = supabase.match_documents(
        query_embedding,
        match_threshold=config.match_threshold,
        match_count=config.match_count,
    )
    return [to_source(d) for d in documents]


def annotate_trace(config: RetrievalConfig, sources: list[AnswerSource]) -> None:
    """Attach retrieval metadata to the current trace. Tracing errors never fail an answer."""
    try:
        get_client().update_current_trace(
            metadata={
                "match_threshold": config.match_threshold,
                "matches": len(sources),
                "top_similarity": sources[0].similarity if sources else None,
            },
        )
    except Exception as e:
        logger.warning(f"Could not annotate trace: {type(e).__name__}: {e}")


@observe(name="ask-ai")
def answer_query(
    query: str,
    user_name: str,
    supabase: SupabaseService,
    embedder: TextEmbedder | None = None,
    config: RetrievalConfig | None = None,
) -> AnswerResult:
    """
    Main entry point: answer a resident's question from the knowledge base.

    Args:
        query: The resident's question
        user_name: Name used in the greeting of the answer
        supabase: Backend service (runs the similarity RPC)
        embedder: Query embedder (defaults to the shared gte-small instance)
        config: Retrieval settings

    Returns:
        AnswerResult with the answer text and the matched sources
    """
    embedder = embedder or get_embedder()
    config = config or RetrievalConfig()

    sources = retrieve_sources(query, supabase, embedder, config)
    logger.info(f"Matched {len(sources)} documents for query: {query[:50]}")

    annotate_trace(config, sources)

    return AnswerResult(answer=compose_answer(user_name, sources), sources=sources)
