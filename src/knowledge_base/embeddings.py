from typing import List, Optional

import numpy as np
from loguru import logger
from sentence_transformers import SentenceTransformer

from knowledge_base.exceptions import EmbeddingError


class SentenceTransformerEmbedder:
    """Generate chunk embeddings with a sentence-transformers model.

    The model is loaded lazily on first use unless one is passed in.
    """

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        batch_size: int = 32,
        model: Optional[SentenceTransformer] = None,
    ):
        self.model_name = model_name
        self.batch_size = batch_size
        self._model = model

    @property
    def model(self) -> SentenceTransformer:
        if self._model is None:
            logger.info(f"Loading embedding model '{self.model_name}'...")
            try:
                self._model = SentenceTransformer(self.model_name)
            except Exception as e:
                raise EmbeddingError(
                    f"Failed to load embedding model '{self.model_name}': {e}", original_error=e
                )
        return self._model

    @property
    def dimensions(self) -> int:
        dimension = self.model.get_sentence_embedding_dimension()
        if not dimension:
            raise EmbeddingError(f"Model '{self.model_name}' does not report a dimension")
        return int(dimension)

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Embed texts in one batched call, preserving order.

        Args:
            texts: Texts to embed, none of them blank

        Returns:
            One vector per input text

        Raises:
            EmbeddingError: If a text is blank, the model fails, or the
                number of vectors differs from the number of texts
        """
        if not texts:
            return []

        for idx, text in enumerate(texts):
            if not text or not text.strip():
                raise EmbeddingError(f"Text at index {idx} was empty or whitespace-only")

        try:
            embeddings = self.model.encode(
                texts,
                batch_size=self.batch_size,
                show_progress_bar=False,
                convert_to_numpy=True,
            )
        except EmbeddingError:
            raise
        except Exception as e:
            logger.error(f"Batch embedding generation failed for {len(texts)} texts: {e}")
            raise EmbeddingError(f"Failed to generate batch embeddings: {e}", original_error=e)

        embeddings = np.asarray(embeddings, dtype=np.float32)
        count = embeddings.shape[0] if embeddings.ndim else 0
        if embeddings.ndim != 2 or count != len(texts):
            raise EmbeddingError(
                f"Embedding count mismatch: expected {len(texts)}, got {count}"
            )

        return embeddings.tolist()
