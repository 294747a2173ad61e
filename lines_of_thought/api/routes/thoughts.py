"""
Thought API Routes - Creation, listing, search and tree navigation

POST   /api/thoughts                  create a root or child thought
GET    /api/thoughts                  paginated root thoughts, newest first
GET    /api/thoughts/search           hybrid search over root thoughts
GET    /api/thoughts/health           pipeline component health
GET    /api/thoughts/{id}             single thought
DELETE /api/thoughts/{id}             detach-delete, idempotent
GET    /api/thoughts/{id}/graph       thought with direct neighbors
GET    /api/thoughts/{id}/subgraph    everything reachable from a thought
POST   /api/graph/batch               neighbors of many thoughts at once
"""

from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from lines_of_thought.api.dependencies import get_ranking_engine, get_retrieval_engine, get_thought_service
from lines_of_thought.api.errors import http_error
from lines_of_thought.models.thought import CreationResult, GraphView, PaginatedThoughts, SearchHit, Thought
from lines_of_thought.services.ranking import RankingEngine
from lines_of_thought.services.retrieval import RetrievalEngine
from lines_of_thought.services.thought_service import ThoughtService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["thoughts"])


class CreateThoughtRequest(BaseModel):
    """Request model for thought creation."""
    text: str = Field(..., description="Thought text, 1-5000 characters after trimming")
    parent_id: Optional[str] = Field(None, description="Parent thought id; omit to create a root")
    perspective: Optional[str] = Field(None, description="Viewpoint label for the new branch")


class BatchRequest(BaseModel):
    """Request model for batch neighbor retrieval."""
    ids: List[str] = Field(..., description="Thought ids to expand")


class SearchResponse(BaseModel):
    query: str
    results: List[SearchHit]


@router.post("/thoughts", response_model=CreationResult, status_code=status.HTTP_201_CREATED)
async def create_thought(
    request: CreateThoughtRequest,
    service: ThoughtService = Depends(get_thought_service),
) -> CreationResult:
    """
    Create a thought.

    The candidate is embedded, checked for originality, moderated and, when
    it has a parent, scored for argument strength before it is written.

    Raises:
        400: validation-failed
        404: parent-not-found
        409: duplicate-thought, similar-to-parent, duplicate-branch
        422: moderation-failed
        503: backing service unavailable
    """
    try:
        return await service.create_thought(
            request.text,
            parent_id=request.parent_id,
            perspective=request.perspective,
        )
    except Exception as e:
        raise http_error(e, "Thought creation") from e


@router.get("/thoughts", response_model=PaginatedThoughts)
def list_thoughts(
    skip: int = Query(0, description="Number of root thoughts to skip"),
    limit: Optional[int] = Query(None, description="Page size, clamped to 1-100"),
    ranking: RankingEngine = Depends(get_ranking_engine),
) -> PaginatedThoughts:
    try:
        return ranking.list_roots(skip=skip, limit=limit)
    except Exception as e:
        raise http_error(e, "Thought listing") from e


@router.get("/thoughts/search", response_model=SearchResponse)
async def search_thoughts(
    q: str = Query(..., description="Search text"),
    limit: Optional[int] = Query(None, description="Maximum results"),
    ranking: RankingEngine = Depends(get_ranking_engine),
) -> SearchResponse:
    """Hybrid semantic and keyword search over root thoughts."""
    try:
        results = await ranking.search(q, limit=limit)
    except Exception as e:
        raise http_error(e, "Thought search") from e
    return SearchResponse(query=q, results=results)


@router.get("/thoughts/health", status_code=status.HTTP_200_OK)
async def thoughts_health_check(
    service: ThoughtService = Depends(get_thought_service),
) -> Dict[str, Any]:
    """
    Check health of the thought pipeline components.

    Returns status of Neo4j, the Ollama embedding model and the overall pipeline.
    """
    try:
        health = await service.health_check()
        return {
            "status": "healthy" if health["overall"] else "degraded",
            "components": health,
            "message": "Thought pipeline operational" if health["overall"] else "Some components unavailable",
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {
            "status": "unhealthy",
            "components": {"neo4j": False, "ollama": False, "overall": False},
            "message": "Health check error",
        }


@router.get("/thoughts/{thought_id}", response_model=Thought)
def get_thought(
    thought_id: str,
    service: ThoughtService = Depends(get_thought_service),
) -> Thought:
    try:
        return service.get_thought(thought_id)
    except Exception as e:
        raise http_error(e, "Thought lookup") from e


@router.delete("/thoughts/{thought_id}")
def delete_thought(
    thought_id: str,
    service: ThoughtService = Depends(get_thought_service),
) -> Dict[str, int]:
    """Delete a thought and every branch touching it. Missing thoughts delete 0."""
    try:
        return {"deleted": service.delete_thought(thought_id)}
    except Exception as e:
        raise http_error(e, "Thought deletion") from e


@router.get("/thoughts/{thought_id}/graph", response_model=GraphView)
def get_thought_graph(
    thought_id: str,
    retrieval: RetrievalEngine = Depends(get_retrieval_engine),
) -> GraphView:
    try:
        return retrieval.get_with_neighbors(thought_id)
    except Exception as e:
        raise http_error(e, "Neighbor retrieval") from e


@router.get("/thoughts/{thought_id}/subgraph", response_model=GraphView)
def get_thought_subgraph(
    thought_id: str,
    retrieval: RetrievalEngine = Depends(get_retrieval_engine),
) -> GraphView:
    try:
        return retrieval.get_subgraph(thought_id)
    except Exception as e:
        raise http_error(e, "Subgraph retrieval") from e


@router.post("/graph/batch", response_model=GraphView)
def get_batch_graph(
    request: BatchRequest,
    retrieval: RetrievalEngine = Depends(get_retrieval_engine),
) -> GraphView:
    """Union of the neighborhoods of every known id; unknown ids are skipped."""
    try:
        return retrieval.get_batch_with_neighbors(request.ids)
    except Exception as e:
        raise http_error(e, "Batch retrieval") from e
