"""
Lazily created service instances for the API routes.

Nothing here connects at import time. Routes receive the instances through
``Depends`` so tests can swap them with ``app.dependency_overrides``.
"""

import threading
from typing import Optional

from lines_of_thought.services.graph_store import GraphStore
from lines_of_thought.services.ranking import RankingEngine
from lines_of_thought.services.retrieval import RetrievalEngine
from lines_of_thought.services.thought_service import ThoughtService

_lock = threading.Lock()
_store: Optional[GraphStore] = None
_thought_service: Optional[ThoughtService] = None
_retrieval_engine: Optional[RetrievalEngine] = None
_ranking_engine: Optional[RankingEngine] = None


def get_graph_store() -> GraphStore:
    global _store
    with _lock:
        if _store is None:
            _store = GraphStore()
        return _store


def get_thought_service() -> ThoughtService:
    global _thought_service
    if _thought_service is None:
        store = get_graph_store()
        with _lock:
            if _thought_service is None:
                _thought_service = ThoughtService(store=store)
    return _thought_service


def get_retrieval_engine() -> RetrievalEngine:
    global _retrieval_engine
    if _retrieval_engine is None:
        store = get_graph_store()
        with _lock:
            if _retrieval_engine is None:
                _retrieval_engine = RetrievalEngine(store=store)
    return _retrieval_engine


def get_ranking_engine() -> RankingEngine:
    global _ranking_engine
    if _ranking_engine is None:
        store = get_graph_store()
        with _lock:
            if _ranking_engine is None:
                _ranking_engine = RankingEngine(store=store)
    return _ranking_engine
