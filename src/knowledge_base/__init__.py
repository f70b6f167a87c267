from knowledge_base.chunker import ChunkingEngine, chunk_text
from knowledge_base.models import Chunk, ChunkingOptions, ChunkMetadata
from knowledge_base.tokens import estimate_tokens, exceeds_token_limit

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ChunkingEngine",
    "ChunkingOptions",
    "chunk_text",
    "estimate_tokens",
    "exceeds_token_limit",
]
