from typing import List, Optional

from loguru import logger
from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from knowledge_base.exceptions import VectorDBError
from knowledge_base.models import SearchResult, VectorRecord
from knowledge_base.retry import is_transient_error, retry_with_backoff

_retry = retry_with_backoff(
    max_retries=2, initial_delay=0.5, exceptions=(Exception,), retryable=is_transient_error
)


def _document_filter(document_id: str) -> Filter:
    return Filter(must=[FieldCondition(key="document_id", match=MatchValue(value=document_id))])


class QdrantVectorStore:
    """Store and search chunk embeddings in one Qdrant collection.

    The `_raw` methods talk to Qdrant and are retried on transient errors;
    raw exceptions propagate to them so the retry check sees the original
    exception. Public methods wrap failures in VectorDBError.
    """

    def __init__(self, client: QdrantClient, collection_name: str, batch_size: int = 100):
        self.client = client
        self.collection_name = collection_name
        self.batch_size = batch_size

    @_retry
    def _raw_ensure_collection(self, dimension: int) -> bool:
        if self.client.collection_exists(self.collection_name):
            return False
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
        )
        return True

    @_retry
    def _raw_upsert(self, points: List[PointStruct]) -> None:
        self.client.upsert(collection_name=self.collection_name, points=points)

    @_retry
    def _raw_query(self, vector: List[float], limit: int, score_threshold, query_filter):
        return self.client.query_points(
            collection_name=self.collection_name,
            query=vector,
            limit=limit,
            score_threshold=score_threshold,
            query_filter=query_filter,
            with_payload=True,
        ).points

    @_retry
    def _raw_delete(self, selector) -> None:
        self.client.delete(collection_name=self.collection_name, points_selector=selector)

    def ensure_collection(self, dimension: int) -> bool:
        """
        Create the collection (cosine distance) unless it exists.

        Returns:
            True if the collection was created, False if it already existed
        """
        try:
            created = self._raw_ensure_collection(dimension)
        except Exception as e:
            logger.error(f"Failed to prepare collection '{self.collection_name}': {e}")
            raise VectorDBError(
                f"Failed to prepare collection '{self.collection_name}'", original_error=e
            )
        if created:
            logger.info(f"Created collection '{self.collection_name}' (dimension={dimension})")
        return created

    def upsert(self, records: List[VectorRecord]) -> None:
        """Insert or update records in batches of `batch_size`."""
        points = [
            PointStruct(id=record.id, vector=record.vector, payload=record.payload)
            for record in records
        ]

        for i in range(0, len(points), self.batch_size):
            batch = points[i : i + self.batch_size]
            try:
                self._raw_upsert(batch)
            except Exception as e:
                logger.error(
                    f"Upsert of batch {i // self.batch_size + 1} into '{self.collection_name}' failed: {e}"
                )
                raise VectorDBError(
                    f"Failed to upsert vectors into '{self.collection_name}'", original_error=e
                )

        logger.debug(f"Upserted {len(points)} vector(s) into '{self.collection_name}'")

    def query(
        self,
        vector: List[float],
        top_k: int = 5,
        min_score: Optional[float] = None,
        document_id: Optional[str] = None,
    ) -> List[SearchResult]:
        """
        Search the collection for the nearest chunks.

        Args:
            vector: Query embedding
            top_k: Maximum number of results
            min_score: Drop results scoring below this threshold
            document_id: Restrict results to one document

        Returns:
            Results ordered by descending score

        Raises:
            VectorDBError: If the search fails after retries
        """
        query_filter = _document_filter(document_id) if document_id else None
        try:
            points = self._raw_query(vector, top_k, min_score, query_filter)
        except Exception as e:
            logger.error(f"Qdrant search failed for collection '{self.collection_name}': {e}")
            raise VectorDBError(
                f"Vector search failed in collection '{self.collection_name}'", original_error=e
            )

        return [
            SearchResult(id=point.id, score=point.score, payload=point.payload or {})
            for point in points
        ]

    def delete(self, ids: List[str]) -> None:
        if not ids:
            return
        try:
            self._raw_delete(PointIdsList(points=ids))
        except Exception as e:
            raise VectorDBError(
                f"Failed to delete {len(ids)} vector(s) from '{self.collection_name}'",
                original_error=e,
            )

    def delete_by_document_id(self, document_id: str) -> None:
        try:
            self._raw_delete(FilterSelector(filter=_document_filter(document_id)))
        except Exception as e:
            raise VectorDBError(
                f"Failed to delete vectors of document {document_id}", original_error=e
            )
