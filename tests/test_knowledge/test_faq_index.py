"""
Tests for the AI FAQ re-index job and its Qdrant wrapper.
"""

from unittest.mock import MagicMock

import pytest
from qdrant_client.models import FilterSelector

from knowledge.config import IndexConfig
from knowledge.faq_index import fetch_faqs, run_faq_reindex
from knowledge.qdrant_client import FaqQdrant, make_point_id


def make_faqs(n: int) -> list[dict]:
    return [
        {"id": f"faq-{i}", "question": f"Pergunta {i}?", "answer": f"Resposta {i}.", "condominio_id": "condo-1"}
        for i in range(n)
    ]


@pytest.fixture
def config() -> IndexConfig:
    return IndexConfig(collection_name="test_faqs", condominio_id="condo-1", index_all=False)


class TestFetchFaqs:
    """Tests for FAQ selection."""

    def test_filters_by_condominium(self, config):
        service = MagicMock()
        service.list_ai_faqs.return_value = make_faqs(2)

        assert len(fetch_faqs(service, config)) == 2
        service.list_ai_faqs.assert_called_once_with(condominio_id="condo-1", ascending=True)

    def test_index_all(self):
        service = MagicMock()
        service.list_ai_faqs.return_value = make_faqs(1)

        fetch_faqs(service, IndexConfig(collection_name="c", index_all=True))
        service.list_ai_faqs.assert_called_once_with(condominio_id=None, ascending=True)

    def test_none_found(self, config):
        service = MagicMock()
        service.list_ai_faqs.return_value = []

        with pytest.raises(ValueError, match="Nenhuma AI FAQ encontrada"):
            fetch_faqs(service, config)


class TestRunFaqReindex:
    """Tests for the batch loop."""

    def test_indexes_in_batches(self, config, fake_embedder):
        service = MagicMock()
        service.list_ai_faqs.return_value = make_faqs(23)
        qdrant = MagicMock()
        qdrant.upsert_faqs.side_effect = lambda payloads, embeddings: len(payloads)

        result = run_faq_reindex(config, service, qdrant=qdrant, embedder=fake_embedder)

        qdrant.prepare_collection.assert_called_once()
        assert [len(batch) for batch in fake_embedder.calls] == [10, 10, 3]
        assert fake_embedder.calls[0][0] == "Pergunta 0? Resposta 0."
        assert result.faqs_found == 23
        assert result.faqs_indexed == 23
        assert result.batches_failed == 0

    def test_failed_batch_is_skipped(self, config, fake_embedder):
        service = MagicMock()
        service.list_ai_faqs.return_value = make_faqs(25)
        qdrant = MagicMock()
        qdrant.upsert_faqs.side_effect = [10, RuntimeError("qdrant down"), 5]

        result = run_faq_reindex(config, service, qdrant=qdrant, embedder=fake_embedder)

        assert result.faqs_indexed == 15
        assert result.batches_failed == 1
        assert "qdrant down" in result.errors[0]
        assert "Batches failed: 1" in result.summary()

    def test_dry_run_does_not_touch_qdrant(self, fake_embedder):
        config = IndexConfig(collection_name="c", condominio_id="condo-1", dry_run=True)
        service = MagicMock()
        service.list_ai_faqs.return_value = make_faqs(3)
        qdrant = MagicMock()

        result = run_faq_reindex(config, service, qdrant=qdrant, embedder=fake_embedder)

        assert result.faqs_found == 3
        qdrant.prepare_collection.assert_not_called()
        assert fake_embedder.calls == []


class TestFaqQdrant:
    """Tests for the Qdrant wrapper with a mocked client."""

    def test_point_ids_are_stable(self):
        assert make_point_id("faq-1") == make_point_id("faq-1")
        assert make_point_id("faq-1") != make_point_id("faq-2")
        assert 0 <= make_point_id("faq-1") < 2**64

    def test_creates_missing_collection(self, config):
        client = MagicMock()
        client.get_collections.return_value.collections = []

        FaqQdrant(config, client=client).prepare_collection()

        client.create_collection.assert_called_once()
        assert client.create_collection.call_args.kwargs["collection_name"] == "test_faqs"
        client.create_payload_index.assert_called_once()
        client.delete.assert_not_called()

    def test_clears_condominium_points(self, config):
        client = MagicMock()
        existing = MagicMock()
        existing.name = "test_faqs"
        client.get_collections.return_value.collections = [existing]

        FaqQdrant(config, client=client).prepare_collection()

        client.delete_collection.assert_not_called()
        selector = client.delete.call_args.kwargs["points_selector"]
        assert isinstance(selector, FilterSelector)
        assert selector.filter.must[0].match.value == "condo-1"

    def test_index_all_recreates_collection(self):
        client = MagicMock()
        existing = MagicMock()
        existing.name = "c"
        client.get_collections.return_value.collections = [existing]

        FaqQdrant(IndexConfig(collection_name="c", index_all=True), client=client).prepare_collection()

        client.delete_collection.assert_called_once_with("c")
        client.create_collection.assert_called_once()

    def test_upsert(self, config):
        client = MagicMock()
        qdrant = FaqQdrant(config, client=client)

        count = qdrant.upsert_faqs([{"faq_id": "faq-1"}, {"faq_id": "faq-2"}], [[0.1] * 384, [0.2] * 384])

        assert count == 2
        points = client.upsert.call_args.kwargs["points"]
        assert [p.id for p in points] == [make_point_id("faq-1"), make_point_id("faq-2")]

    def test_upsert_count_mismatch(self, config):
        with pytest.raises(ValueError, match="mismatch"):
            FaqQdrant(config, client=MagicMock()).upsert_faqs([{"faq_id": "a"}], [])
