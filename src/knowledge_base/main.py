"""Ingest a directory of text and markdown files into Qdrant."""

import argparse
from typing import List, Optional

from loguru import logger
from qdrant_client import QdrantClient

from knowledge_base.chunker import ChunkingEngine
from knowledge_base.config import Settings
from knowledge_base.embeddings import SentenceTransformerEmbedder
from knowledge_base.exceptions import KnowledgeBaseError
from knowledge_base.loader import TextDocumentProcessor, load_documents
from knowledge_base.logging import setup_logger
from knowledge_base.pipeline import IngestionPipeline
from knowledge_base.vector_store import QdrantVectorStore


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chunk, embed and store documents in the knowledge base"
    )
    parser.add_argument("--data-dir", type=str, help="Directory with .txt/.md files")
    parser.add_argument("--collection-name", type=str, help="Qdrant collection name")
    parser.add_argument("--max-chunk-size", type=int, help="Maximum estimated tokens per chunk")
    parser.add_argument("--chunk-overlap", type=int, help="Words shared between adjacent chunks")
    parser.add_argument(
        "--no-preserve-sentences",
        action="store_true",
        help="Split oversized paragraphs by characters instead of sentences",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {
        "data_dir": args.data_dir,
        "kb_name": args.collection_name,
        "max_chunk_size": args.max_chunk_size,
        "chunk_overlap": args.chunk_overlap,
    }
    if args.no_preserve_sentences:
        overrides["preserve_sentences"] = False
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def main(argv: Optional[List[str]] = None) -> int:
    settings = build_settings(parse_args(argv))
    setup_logger(settings.log_level)

    try:
        options = settings.chunking_options()
        documents = load_documents(settings.data_dir)
    except KnowledgeBaseError as e:
        logger.error(e.message)
        return 1

    if not documents:
        logger.warning("No documents found. Exiting.")
        return 0

    embedder = SentenceTransformerEmbedder(
        settings.embedding_model, batch_size=settings.embedding_batch_size
    )
    client = QdrantClient(host=settings.kb_host, port=settings.kb_port)
    vector_store = QdrantVectorStore(client, settings.kb_name, batch_size=settings.kb_batch_size)
    pipeline = IngestionPipeline(
        ChunkingEngine(options),
        embedder,
        vector_store,
        processors={"text": TextDocumentProcessor()},
    )

    failed = 0
    total_chunks = 0
    try:
        vector_store.ensure_collection(embedder.dimensions)
        for document in documents:
            try:
                result = pipeline.ingest(document)
            except KnowledgeBaseError as e:
                failed += 1
                logger.error(f"Skipping '{document.metadata.title}': {e.message}")
                continue
            total_chunks += result.chunks_created
    except KnowledgeBaseError as e:
        logger.error(e.message)
        return 1
    finally:
        client.close()

    logger.info(
        f"Stored {total_chunks} chunk(s) from {len(documents) - failed} document(s) "
        f"in collection '{settings.kb_name}'."
    )
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
