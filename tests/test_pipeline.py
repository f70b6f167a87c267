"""
Unit tests for the ingestion pipeline.
"""

from unittest.mock import MagicMock

import pytest

from knowledge_base.exceptions import (
    ChunkingError,
    DocumentProcessingError,
    EmbeddingError,
    IngestionError,
    VectorDBError,
)
from knowledge_base.models import (
    ChunkingOptions,
    DocumentInput,
    DocumentMetadata,
    ProcessedDocument,
)


class TestIngest:
    """Tests for IngestionPipeline.ingest."""

    def test_ingest_text_document(self, pipeline, text_document, mock_embedder, mock_vector_store):
        result = pipeline.ingest(text_document)

        assert result.chunks_created == 1
        assert result.embeddings_generated == 1
        mock_embedder.embed_batch.assert_called_once_with(
            ["First paragraph about apples.\n\nSecond paragraph about pears."]
        )

        records = mock_vector_store.upsert.call_args.args[0]
        assert len(records) == 1
        payload = records[0].payload
        assert payload["document_id"] == result.document_id
        assert payload["chunk_id"] == records[0].id
        assert payload["document_title"] == "Fruit"
        assert payload["tags"] == "food,garden"
        assert payload["source"] == "text"
        assert payload["position"] == 0
        assert payload["start_char"] == 0
        assert payload["token_count"] > 0
        assert records[0].vector == [0.1, 0.2, 0.3]

    def test_chunking_options_passed_through(self, pipeline, text_document, mock_vector_store):
        result = pipeline.ingest(text_document, ChunkingOptions(max_chunk_size=10, overlap_size=0))

        assert result.chunks_created == 2
        records = mock_vector_store.upsert.call_args.args[0]
        assert [r.payload["position"] for r in records] == [0, 1]
        assert records[0].payload["text"] == "First paragraph about apples."

    def test_unknown_document_type(self, pipeline):
        document = DocumentInput(type="pdf", content=b"%PDF", metadata=DocumentMetadata(title="t"))

        with pytest.raises(DocumentProcessingError, match="No processor found"):
            pipeline.ingest(document)

    def test_register_processor(self, pipeline, mock_vector_store):
        processor = MagicMock()
        processor.process.return_value = ProcessedDocument(
            content="Extracted text.", metadata=DocumentMetadata(title="Paper")
        )
        pipeline.register_processor("pdf", processor)

        result = pipeline.ingest(
            DocumentInput(type="pdf", content=b"%PDF", metadata=DocumentMetadata(title="Paper"))
        )

        assert result.chunks_created == 1
        processor.process.assert_called_once()

    def test_processing_error_propagates(self, pipeline, mock_embedder):
        document = DocumentInput(content="   ", metadata=DocumentMetadata(title="Empty"))

        with pytest.raises(DocumentProcessingError):
            pipeline.ingest(document)
        mock_embedder.embed_batch.assert_not_called()

    def test_no_chunks(self, pipeline, mock_vector_store):
        processor = MagicMock()
        processor.process.return_value = ProcessedDocument(
            content="  ", metadata=DocumentMetadata(title="Blank")
        )
        pipeline.register_processor("text", processor)

        with pytest.raises(ChunkingError):
            pipeline.ingest(DocumentInput(content="x", metadata=DocumentMetadata(title="Blank")))
        mock_vector_store.upsert.assert_not_called()

    def test_embedding_count_mismatch(self, pipeline, text_document, mock_embedder, mock_vector_store):
        mock_embedder.embed_batch.side_effect = lambda texts: []

        with pytest.raises(EmbeddingError, match="count mismatch"):
            pipeline.ingest(text_document)
        mock_vector_store.upsert.assert_not_called()


class TestStorageFailure:
    """Tests for compensation when storing fails."""

    def test_vectors_cleaned_up(self, pipeline, text_document, mock_vector_store):
        original = VectorDBError("upsert failed")
        mock_vector_store.upsert.side_effect = original

        with pytest.raises(IngestionError) as exc_info:
            pipeline.ingest(text_document)

        assert exc_info.value.original_error is original
        records = mock_vector_store.upsert.call_args.args[0]
        mock_vector_store.delete.assert_called_once_with([r.id for r in records])

    def test_cleanup_failure_keeps_original_error(self, pipeline, text_document, mock_vector_store):
        original = VectorDBError("upsert failed")
        mock_vector_store.upsert.side_effect = original
        mock_vector_store.delete.side_effect = VectorDBError("delete failed")

        with pytest.raises(IngestionError) as exc_info:
            pipeline.ingest(text_document)

        assert exc_info.value.original_error is original
