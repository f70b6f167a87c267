from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator

from knowledge_base.exceptions import ConfigurationError


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


#######################################################
### Chunking
#######################################################


class ChunkMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_char: int
    end_char: int
    token_count: int


class Chunk(BaseModel):
    """One bounded passage of a document, the unit of embedding and retrieval."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    document_id: str
    content: str
    position: int
    metadata: ChunkMetadata


class ChunkingOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_chunk_size: int = 512
    overlap_size: int = 50
    preserve_sentences: bool = True
    # Trim borrowed overlap words so a chunk never exceeds max_chunk_size.
    bound_overlap: bool = False

    @model_validator(mode="after")
    def validate_sizes(self) -> "ChunkingOptions":
        if self.max_chunk_size <= 0:
            raise ConfigurationError(
                f"max_chunk_size must be positive, got {self.max_chunk_size}"
            )
        if self.overlap_size < 0:
            raise ConfigurationError(
                f"overlap_size must be non-negative, got {self.overlap_size}"
            )
        return self


#######################################################
### Documents
#######################################################


class DocumentMetadata(BaseModel):
    title: str
    source: Optional[str] = None
    url: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


class DocumentInput(BaseModel):
    type: str = "text"
    content: Union[str, bytes]
    metadata: DocumentMetadata


class ProcessedDocument(BaseModel):
    id: str = Field(default_factory=_new_id)
    content: str
    metadata: DocumentMetadata
    extracted_at: datetime = Field(default_factory=_utcnow)


class IngestionResult(BaseModel):
    document_id: str
    chunks_created: int
    embeddings_generated: int


#######################################################
### Vector store
#######################################################


class VectorRecord(BaseModel):
    id: str
    vector: List[float]
    payload: Dict[str, Any] = Field(default_factory=dict)


class SearchResult(BaseModel):
    id: Union[str, int]
    score: float
    payload: Dict[str, Any] = Field(default_factory=dict)
