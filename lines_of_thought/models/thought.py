"""
Thought Graph Models - Nodes, branches and graph read payloads

A Thought is one unit of text plus its embedding. A Branch is the directed
BRANCHES_TO edge from a parent Thought to a child Thought.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

BRANCH_TYPE = "BRANCHES_TO"


class Thought(BaseModel):
    """
    A node in the thought graph.

    The embedding is carried internally for similarity checks and ranking
    but is never serialized into API payloads.
    """

    id: str = Field(..., description="Store-assigned element id")

    text: str = Field(..., description="Thought text")

    created_at: datetime = Field(..., description="When the thought was created")

    is_root: bool = Field(
        default=False,
        description="Top-level thought, eligible for search and root listing"
    )

    embedding: Optional[List[float]] = Field(
        default=None,
        exclude=True,
        repr=False,
        description="Embedding vector, immutable once set"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "4:5f0c2a9e-1d3b-4a53-9d8e-3f0f6a0b7c11:12",
                "text": "Is free will an illusion?",
                "created_at": "2025-10-01T12:00:00Z",
                "is_root": True,
            }
        }
    }


class Branch(BaseModel):
    """Directed edge from a parent thought to a child thought."""

    id: str = Field(..., description="Store-assigned element id")
    from_id: str = Field(..., description="Parent thought id")
    to_id: str = Field(..., description="Child thought id")
    type: str = Field(default=BRANCH_TYPE, description="Relationship type")

    perspective: Optional[str] = Field(
        default=None,
        description="Viewpoint under which the branch was created"
    )

    strength_score: Optional[int] = Field(
        default=None,
        ge=-100,
        le=100,
        description="Logical strength of the child relative to its parent"
    )

    strength_analysis: Optional[str] = Field(
        default=None,
        description="Rationale accompanying the strength score"
    )


class SimilarityMatch(BaseModel):
    """A stored thought together with its cosine similarity to a candidate."""

    thought: Thought
    similarity: float


class GraphView(BaseModel):
    """Nodes and edges returned by tree navigation reads."""

    nodes: List[Thought] = Field(default_factory=list)
    relationships: List[Branch] = Field(default_factory=list)


class PaginatedThoughts(BaseModel):
    """One page of root thoughts, newest first."""

    nodes: List[Thought] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    skip: int = Field(..., ge=0)
    has_more: bool


class SearchHit(BaseModel):
    """Ranked search result with its score breakdown."""

    thought: Thought
    vector_score: float
    keyword_score: float
    hybrid_score: float


class CreationResult(BaseModel):
    """Outcome of a successful thought creation."""

    thought: Thought
    branch: Optional[Branch] = None
