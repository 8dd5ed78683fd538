"""
Pytest fixtures for API and pipeline testing.
"""

import os
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment before importing app
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test_service_role_key"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("VAPID_PUBLIC_KEY", None)
os.environ.pop("VAPID_PRIVATE_KEY", None)
os.environ.setdefault("LANGFUSE_TRACING_ENABLED", "false")

# Import the app module after setting env vars
import api.main as api_main

CONDOMINIO_ID = "5c624180-5fca-41fd-a5a0-a6e724f45d96"


class FakeEmbedder:
    """Deterministic stand-in for TextEmbedder (no model download)."""

    def __init__(self, dimension: int = 384):
        self.dimension = dimension
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [[float(len(t) % 7)] * self.dimension for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self.embed_texts([query])[0]


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def matched_documents() -> list[dict]:
    """Rows as returned by the match_documents RPC."""
    return [
        {
            "id": 1,
            "content": "Artigo 1º: É obrigatório guardar silêncio das 22h00 às 06h00.",
            "metadata": {"source": "Regimento Interno 2025", "title": "Horário de Silêncio"},
            "similarity": 0.91,
        },
        {
            "id": 5,
            "content": "Artigo 44º: Obras seguem o horário: Seg-Sex (08h-18h) e Sáb (08h-12h).",
            "metadata": {"source": "Regimento Interno 2025", "title": "Obras e Reformas"},
            "similarity": 0.78,
        },
    ]


@pytest.fixture
def mock_ai_faq() -> dict:
    """An `ai_faqs` row."""
    return {
        "id": "faq-1",
        "condominio_id": CONDOMINIO_ID,
        "category": "Convivência",
        "question": "Qual o horário de silêncio?",
        "answer": "Das 22h às 6h.",
        "tags": ["barulho"],
        "keywords": [],
        "scenario_type": "simple",
        "tone": "friendly",
        "priority": 3,
        "requires_sindico_action": False,
        "requires_assembly_decision": False,
        "has_legal_implications": False,
        "question_variations": [],
        "article_reference": "Art. 1º",
        "created_at": "2025-01-01T00:00:00+00:00",
    }


@pytest.fixture
def mock_supabase_service(matched_documents, mock_ai_faq):
    """Mock SupabaseService."""
    mock = MagicMock()
    mock.match_documents.return_value = matched_documents
    mock.get_auth_user.return_value = SimpleNamespace(id="admin-user", email="admin@versix.com.br")
    mock.get_user_role.return_value = "admin"
    mock.delete_auth_user.return_value = None
    mock.get_condominio_balance.return_value = 36000.0
    mock.list_approved_amounts.return_value = [10000.0, 2000.0, -4000.0, -2000.0]
    mock.insert_transactions.side_effect = lambda rows: len(rows)
    mock.list_ai_faqs.return_value = [mock_ai_faq]
    mock.get_ai_faq.return_value = mock_ai_faq
    mock.create_ai_faq.side_effect = lambda row: {"id": "faq-new", **row}
    mock.update_ai_faq.side_effect = lambda faq_id, fields: {**mock_ai_faq, **fields, "id": faq_id}
    mock.list_users.return_value = [
        {"id": "u1", "email": "ana@example.com", "full_name": "Ana Souza"},
        {"id": "u2", "email": "bruno@example.com", "full_name": "Bruno Lima"},
    ]
    mock.list_push_subscriptions.return_value = [
        {"user_id": "u1", "subscription": {"endpoint": "https://push.example.com/ana", "keys": {"p256dh": "k", "auth": "a"}}},
    ]
    mock.list_faq_categories.return_value = ["Convivência", "Áreas Comuns"]
    mock.list_faq_questions.return_value = [
        {"id": "q1", "question": "Qual o horário de silêncio?"},
        {"id": "q2", "question": "Posso fazer obra no sábado?"},
    ]
    mock.get_faq_answer.return_value = "Das 22h às 6h."
    return mock


@pytest.fixture
def client(mock_supabase_service, fake_embedder):
    """
    Test client with mocked dependencies.

    Mocks:
    - SupabaseService (no real database or auth calls)
    - the shared embedder (no model download)
    """
    with patch.object(api_main, "get_supabase", return_value=mock_supabase_service):
        with patch("chatbot.rag.get_embedder", return_value=fake_embedder):
            yield TestClient(api_main.app)


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": "Bearer test-jwt"}
