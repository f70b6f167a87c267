import uuid
from unittest.mock import MagicMock

import numpy as np
import pytest

from knowledge_base.chunker import ChunkingEngine
from knowledge_base.loader import TextDocumentProcessor
from knowledge_base.models import ChunkingOptions, DocumentInput, DocumentMetadata
from knowledge_base.pipeline import IngestionPipeline


@pytest.fixture
def document_id():
    return str(uuid.uuid4())


@pytest.fixture
def options():
    return ChunkingOptions(max_chunk_size=1000, overlap_size=0, preserve_sentences=True)


@pytest.fixture
def mock_sentence_model():
    """Stand-in for a SentenceTransformer returning 3-dimensional vectors."""
    model = MagicMock()
    model.get_sentence_embedding_dimension.return_value = 3
    model.encode.side_effect = lambda texts, **kwargs: np.array([[0.1, 0.2, 0.3]] * len(texts))
    return model


@pytest.fixture
def mock_embedder():
    embedder = MagicMock()
    embedder.dimensions = 3
    embedder.embed_batch.side_effect = lambda texts: [[0.1, 0.2, 0.3] for _ in texts]
    return embedder


@pytest.fixture
def mock_vector_store():
    return MagicMock()


@pytest.fixture
def mock_qdrant():
    client = MagicMock()
    client.collection_exists.return_value = False
    return client


@pytest.fixture
def text_document():
    return DocumentInput(
        type="text",
        content="First paragraph about apples.\n\nSecond paragraph about pears.",
        metadata=DocumentMetadata(title="Fruit", tags=["food", "garden"]),
    )


@pytest.fixture
def pipeline(mock_embedder, mock_vector_store):
    return IngestionPipeline(
        ChunkingEngine(ChunkingOptions(max_chunk_size=512, overlap_size=0)),
        mock_embedder,
        mock_vector_store,
        processors={"text": TextDocumentProcessor()},
    )
