"""Ingestion pipeline: process document, chunk, embed, store in Qdrant."""

from typing import Dict, List, Optional, Protocol

from loguru import logger

from knowledge_base.chunker import ChunkingEngine
from knowledge_base.embeddings import SentenceTransformerEmbedder
from knowledge_base.exceptions import (
    ChunkingError,
    DocumentProcessingError,
    EmbeddingError,
    IngestionError,
)
from knowledge_base.models import (
    Chunk,
    ChunkingOptions,
    DocumentInput,
    IngestionResult,
    ProcessedDocument,
    VectorRecord,
)
from knowledge_base.vector_store import QdrantVectorStore


class DocumentProcessor(Protocol):
    def process(self, document: DocumentInput) -> ProcessedDocument: ...


class IngestionPipeline:
    def __init__(
        self,
        chunker: ChunkingEngine,
        embedder: SentenceTransformerEmbedder,
        vector_store: QdrantVectorStore,
        processors: Optional[Dict[str, DocumentProcessor]] = None,
    ):
        self.chunker = chunker
        self.embedder = embedder
        self.vector_store = vector_store
        self.processors: Dict[str, DocumentProcessor] = dict(processors or {})

    def register_processor(self, document_type: str, processor: DocumentProcessor) -> None:
        self.processors[document_type] = processor

    def ingest(
        self, document: DocumentInput, options: Optional[ChunkingOptions] = None
    ) -> IngestionResult:
        """
        Run one document through the whole pipeline.

        Args:
            document: Raw document input
            options: Chunking options, defaults to the chunker's

        Returns:
            Ids and counts of what was stored

        Raises:
            DocumentProcessingError: No processor for the type, or extraction failed
            ChunkingError: The document produced no chunks
            EmbeddingError: Embedding failed or returned the wrong number of vectors
            IngestionError: Storing the vectors failed
        """
        processor = self.processors.get(document.type)
        if processor is None:
            raise DocumentProcessingError(
                f"No processor found for document type: {document.type}"
            )

        processed = processor.process(document)

        chunks = self.chunker.chunk(processed.content, processed.id, options)
        if not chunks:
            raise ChunkingError(f"Document {processed.id} produced no chunks")

        embeddings = self.embedder.embed_batch([chunk.content for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise EmbeddingError(
                f"Embedding count mismatch: expected {len(chunks)}, got {len(embeddings)}"
            )

        self._store(processed, chunks, embeddings)

        logger.info(
            f"Ingested '{processed.metadata.title}' as document {processed.id} "
            f"({len(chunks)} chunk(s))"
        )
        return IngestionResult(
            document_id=processed.id,
            chunks_created=len(chunks),
            embeddings_generated=len(embeddings),
        )

    def _store(
        self,
        document: ProcessedDocument,
        chunks: List[Chunk],
        embeddings: List[List[float]],
    ) -> None:
        records = [
            VectorRecord(
                id=chunk.id,
                vector=embedding,
                payload=_chunk_payload(document, chunk),
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

        try:
            self.vector_store.upsert(records)
        except Exception as e:
            # Earlier batches may already be stored
            try:
                self.vector_store.delete([chunk.id for chunk in chunks])
            except Exception as cleanup_error:
                logger.error(
                    f"Failed to clean up vectors of document {document.id}: {cleanup_error}"
                )
            raise IngestionError(f"Failed to store document: {e}", original_error=e)


def _chunk_payload(document: ProcessedDocument, chunk: Chunk) -> dict:
    return {
        "chunk_id": chunk.id,
        "document_id": chunk.document_id,
        "document_title": document.metadata.title,
        "tags": ",".join(document.metadata.tags),
        "source": document.metadata.source or "",
        "position": chunk.position,
        "start_char": chunk.metadata.start_char,
        "end_char": chunk.metadata.end_char,
        "token_count": chunk.metadata.token_count,
        "text": chunk.content,
    }
