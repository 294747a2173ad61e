"""
Lines of Thought Models
Data models for the thought graph, tree navigation and ranked search
"""

from .thought import (
    BRANCH_TYPE,
    Branch,
    CreationResult,
    GraphView,
    PaginatedThoughts,
    SearchHit,
    SimilarityMatch,
    Thought,
)

__all__ = [
    "BRANCH_TYPE",
    "Branch",
    "CreationResult",
    "GraphView",
    "PaginatedThoughts",
    "SearchHit",
    "SimilarityMatch",
    "Thought",
]
