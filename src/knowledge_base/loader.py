from pathlib import Path
from typing import List

from loguru import logger

from knowledge_base.exceptions import DocumentProcessingError
from knowledge_base.models import DocumentInput, DocumentMetadata, ProcessedDocument

SUPPORTED_EXTENSIONS = {".txt", ".md"}


class TextDocumentProcessor:
    """Validate and normalize plain text documents."""

    document_type = "text"

    def process(self, document: DocumentInput) -> ProcessedDocument:
        """
        Turn a text input into a processed document.

        Args:
            document: Input with `str` or UTF-8 `bytes` content

        Returns:
            Processed document with trimmed content and a fresh id

        Raises:
            DocumentProcessingError: If the input is not text, cannot be decoded,
                or has no title or no content
        """
        if document.type != self.document_type:
            raise DocumentProcessingError(
                f"TextDocumentProcessor can only process text documents, got '{document.type}'"
            )

        content = document.content
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DocumentProcessingError(
                    "Document content is not valid UTF-8", original_error=e
                )

        if not document.metadata.title or not document.metadata.title.strip():
            raise DocumentProcessingError("Document title is required")

        if not content or not content.strip():
            raise DocumentProcessingError("Document content cannot be empty or only whitespace")

        metadata = document.metadata.model_copy(
            update={"source": document.metadata.source or "text"}
        )
        return ProcessedDocument(content=content.strip(), metadata=metadata)


def load_documents(data_dir: str) -> List[DocumentInput]:
    """Read all .txt and .md files from a directory, sorted by name.

    Raises:
        DocumentProcessingError: If the directory does not exist or a file
            cannot be read
    """
    data_path = Path(data_dir)
    if not data_path.is_dir():
        raise DocumentProcessingError(f"Data directory not found: {data_dir}")

    documents = []
    for file_path in sorted(data_path.iterdir()):
        if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS or not file_path.is_file():
            continue
        try:
            content = file_path.read_bytes()
        except OSError as e:
            raise DocumentProcessingError(f"Cannot read {file_path}", original_error=e)

        documents.append(
            DocumentInput(
                type="text",
                content=content,
                metadata=DocumentMetadata(title=file_path.stem, source=file_path.name),
            )
        )

    logger.info(f"Loaded {len(documents)} document(s) from {data_dir}")
    return documents
