"""
Ranking Engine - Hybrid search and paginated listing over root thoughts

hybrid_score = vector_weight * cosine(query, thought) + keyword_weight * keyword_hit

where keyword_hit is 1.0 when the thought text contains the query
(case-insensitive) and 0.0 otherwise. Only root thoughts with a comparable
embedding are candidates.
"""

import asyncio
import logging
from typing import List, Optional

import numpy as np

from lines_of_thought.config.settings import settings
from lines_of_thought.models.thought import PaginatedThoughts, SearchHit
from lines_of_thought.services.embeddings import EmbeddingAdapter, get_embedding_adapter
from lines_of_thought.services.errors import ValidationFailedError
from lines_of_thought.services.graph_store import GraphStore, GraphStoreBase
from lines_of_thought.services.similarity import comparable, cosine_similarities

logger = logging.getLogger(__name__)


def keyword_score(query: str, text: str) -> float:
    return 1.0 if query.casefold() in text.casefold() else 0.0


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


class RankingEngine:
    """Hybrid semantic and keyword search plus newest-first root listing."""

    def __init__(
        self,
        store: Optional[GraphStoreBase] = None,
        embedder: Optional[EmbeddingAdapter] = None,
        vector_weight: Optional[float] = None,
        keyword_weight: Optional[float] = None,
    ):
        self.store = store or GraphStore()
        self._embedder = embedder
        self.vector_weight = settings.SEARCH_VECTOR_WEIGHT if vector_weight is None else vector_weight
        self.keyword_weight = settings.SEARCH_KEYWORD_WEIGHT if keyword_weight is None else keyword_weight

    @property
    def embedder(self) -> EmbeddingAdapter:
        if self._embedder is None:
            self._embedder = get_embedding_adapter()
        return self._embedder

    async def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit]:
        if not isinstance(query, str) or not query.strip():
            raise ValidationFailedError("Search query must be a non-empty string")
        query = query.strip()
        limit = clamp(settings.SEARCH_DEFAULT_LIMIT if limit is None else limit, 1, settings.SEARCH_MAX_LIMIT)

        query_embedding = await self.embedder.embed(query)
        roots = await asyncio.to_thread(self.store.root_embeddings)
        candidates = comparable(roots, len(query_embedding))
        if not candidates:
            return []

        matrix = np.asarray([t.embedding for t in candidates], dtype=np.float64)
        vector_scores = cosine_similarities(query_embedding, matrix)

        hits = []
        for thought, vector in zip(candidates, vector_scores):
            keyword = keyword_score(query, thought.text)
            hits.append(SearchHit(
                thought=thought,
                vector_score=float(vector),
                keyword_score=keyword,
                hybrid_score=self.vector_weight * float(vector) + self.keyword_weight * keyword,
            ))

        hits.sort(key=lambda hit: hit.hybrid_score, reverse=True)
        logger.info(f"Search '{query[:50]}' ranked {len(hits)} roots, returning {min(limit, len(hits))}")
        return hits[:limit]

    def list_roots(self, skip: Optional[int] = 0, limit: Optional[int] = None) -> PaginatedThoughts:
        """One page of root thoughts, newest first."""
        limit = clamp(settings.PAGE_DEFAULT_LIMIT if limit is None else limit, 1, settings.PAGE_MAX_LIMIT)
        skip = max(0, skip or 0)

        nodes, total = self.store.list_roots(skip, limit)
        return PaginatedThoughts(
            nodes=nodes,
            total=total,
            limit=limit,
            skip=skip,
            has_more=skip + len(nodes) < total,
        )
