"""
Tests for the POST /ask-ai endpoint.
"""

from unittest.mock import MagicMock, patch


class TestAskAI:
    """Tests for POST /ask-ai endpoint."""

    def test_answers_with_best_match_and_source(self, client):
        response = client.post("/ask-ai", json={"query": "Até que horas posso fazer barulho?", "userName": "Ana"})
        assert response.status_code == 200

        answer = response.json()["answer"]
        assert answer.startswith("Olá Ana! Encontrei informações relevantes no **Horário de Silêncio**")
        assert "guardar silêncio das 22h00 às 06h00" in answer
        assert "📄 Fonte: Regimento Interno 2025" in answer

    def test_includes_runner_up_as_related(self, client):
        response = client.post("/ask-ai", json={"query": "obra no sábado", "userName": "Ana"})
        answer = response.json()["answer"]
        assert "Também pode ser útil:" in answer
        assert "Obras seguem o horário" in answer

    def test_no_match_answer(self, client, mock_supabase_service):
        mock_supabase_service.match_documents.return_value = []

        response = client.post("/ask-ai", json={"query": "Qual a senha do wifi?", "userName": "Bruno"})
        assert response.status_code == 200
        answer = response.json()["answer"]
        assert answer.startswith("Olá Bruno, pesquisei em nossa base de conhecimento")
        assert "Recomendo verificar com a administração." in answer

    def test_user_name_defaults_to_morador(self, client, mock_supabase_service):
        mock_supabase_service.match_documents.return_value = []

        response = client.post("/ask-ai", json={"query": "Posso ter um cachorro?"})
        assert response.json()["answer"].startswith("Olá Morador,")

    def test_search_uses_threshold_and_count(self, client, mock_supabase_service, fake_embedder):
        client.post("/ask-ai", json={"query": "piscina", "userName": "Ana"})

        mock_supabase_service.match_documents.assert_called_once()
        args, kwargs = mock_supabase_service.match_documents.call_args
        assert len(args[0]) == fake_embedder.dimension
        assert kwargs["match_threshold"] == 0.70
        assert kwargs["match_count"] == 3

    def test_blank_query_gets_no_match_answer(self, client, mock_supabase_service):
        response = client.post("/ask-ai", json={"query": "   ", "userName": "Ana"})
        assert response.status_code == 200
        assert list(response.json()) == ["answer"]
        assert response.json()["answer"].startswith("Olá Ana, pesquisei em nossa base de conhecimento")
        mock_supabase_service.match_documents.assert_not_called()

    def test_missing_query_gets_no_match_answer(self, client, mock_supabase_service):
        response = client.post("/ask-ai", json={"userName": "Ana"})
        assert response.status_code == 200
        assert response.json()["answer"].startswith("Olá Ana, pesquisei")

    def test_answers_when_trace_update_fails(self, client):
        tracer = MagicMock()
        tracer.update_current_trace.side_effect = AttributeError("update_current_trace")

        with patch("chatbot.rag.get_client", return_value=tracer):
            response = client.post("/ask-ai", json={"query": "barulho", "userName": "Ana"})

        assert response.status_code == 200
        assert response.json()["answer"].startswith("Olá Ana! Encontrei")

    def test_search_failure_returns_500(self, client, mock_supabase_service):
        mock_supabase_service.match_documents.side_effect = RuntimeError("rpc unavailable")

        response = client.post("/ask-ai", json={"query": "piscina", "userName": "Ana"})
        assert response.status_code == 500
        assert response.json() == {"error": "rpc unavailable"}
