"""Custom exception classes for the knowledge base."""


class KnowledgeBaseError(Exception):
    """Base exception for all knowledge base errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class ConfigurationError(KnowledgeBaseError):
    """Raised when configuration or chunking options are invalid."""

    pass


class DocumentProcessingError(KnowledgeBaseError):
    """Raised when a document cannot be extracted or fails validation."""

    pass


class ChunkingError(KnowledgeBaseError):
    """Raised when a document yields no chunks."""

    pass


class EmbeddingError(KnowledgeBaseError):
    """Raised when embedding generation fails."""

    pass


class VectorDBError(KnowledgeBaseError):
    """Raised when vector database operations fail."""

    pass


class IngestionError(KnowledgeBaseError):
    """Raised when storing an ingested document fails."""

    pass
