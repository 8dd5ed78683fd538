"""
Tests for the ask-ai answer pipeline.
"""

from unittest.mock import MagicMock, patch

from chatbot.rag import AnswerSource, RetrievalConfig, answer_query, compose_answer, to_source


class TestToSource:
    """Tests for reading match_documents rows."""

    def test_reads_metadata(self, matched_documents):
        source = to_source(matched_documents[0])
        assert source.title == "Horário de Silêncio"
        assert source.source == "Regimento Interno 2025"
        assert source.similarity == 0.91

    def test_falls_back_to_row_title(self):
        source = to_source({"title": "Mudanças", "content": "Artigo 44º"})
        assert source.title == "Mudanças"
        assert source.source == "Regimento Interno"

    def test_defaults(self):
        source = to_source({"content": "x", "metadata": None})
        assert source.title == "Norma"
        assert source.source == "Regimento Interno"


class TestComposeAnswer:
    """Tests for the answer templates."""

    def test_no_sources(self):
        answer = compose_answer("Ana", [])
        assert answer == (
            "Olá Ana, pesquisei em nossa base de conhecimento mas não encontrei uma regra "
            "específica sobre isso. Recomendo verificar com a administração."
        )

    def test_single_source(self):
        answer = compose_answer("Ana", [AnswerSource("Uso da Piscina", "Regimento", "Artigo 28º: ...")])
        assert answer == (
            'Olá Ana! Encontrei informações relevantes no **Uso da Piscina**:\n\n'
            '"Artigo 28º: ..."\n\n'
            "📄 Fonte: Regimento"
        )

    def test_related_uses_second_source_only(self):
        sources = [
            AnswerSource("A", "S", "primeiro"),
            AnswerSource("B", "S", "segundo"),
            AnswerSource("C", "S", "terceiro"),
        ]
        answer = compose_answer("Ana", sources)
        assert answer.endswith('Também pode ser útil:\n"segundo"')
        assert "terceiro" not in answer

    def test_braces_in_content_are_kept(self):
        answer = compose_answer("Ana", [AnswerSource("T", "S", "uso de {chaves}")])
        assert '"uso de {chaves}"' in answer


class TestAnswerQuery:
    """Tests for the full pipeline with a fake embedder."""

    def test_embeds_and_searches(self, mock_supabase_service, fake_embedder):
        result = answer_query("barulho à noite", "Ana", mock_supabase_service, embedder=fake_embedder)

        assert fake_embedder.calls == [["barulho à noite"]]
        assert [s.title for s in result.sources] == ["Horário de Silêncio", "Obras e Reformas"]
        assert result.answer.startswith("Olá Ana! Encontrei informações relevantes no **Horário de Silêncio**")

    def test_custom_config(self, fake_embedder):
        supabase = MagicMock()
        supabase.match_documents.return_value = []

        answer_query("x", "Ana", supabase, embedder=fake_embedder, config=RetrievalConfig(0.5, 10))

        _, kwargs = supabase.match_documents.call_args
        assert kwargs == {"match_threshold": 0.5, "match_count": 10}

    def test_trace_failure_does_not_fail_answer(self, mock_supabase_service, fake_embedder):
        tracer = MagicMock()
        tracer.update_current_trace.side_effect = AttributeError("'Langfuse' object has no attribute 'update_current_trace'")

        with patch("chatbot.rag.get_client", return_value=tracer):
            result = answer_query("barulho à noite", "Ana", mock_supabase_service, embedder=fake_embedder)

        tracer.update_current_trace.assert_called_once()
        assert result.answer.startswith("Olá Ana! Encontrei informações relevantes")

    def test_trace_metadata(self, mock_supabase_service, fake_embedder):
        tracer = MagicMock()

        with patch("chatbot.rag.get_client", return_value=tracer):
            answer_query("barulho à noite", "Ana", mock_supabase_service, embedder=fake_embedder)

        metadata = tracer.update_current_trace.call_args.kwargs["metadata"]
        assert metadata == {"match_threshold": 0.70, "matches": 2, "top_similarity": 0.91}
