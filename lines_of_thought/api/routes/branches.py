"""Branch API Routes - Standalone edges between existing thoughts."""

from typing import Dict, Optional
import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from lines_of_thought.api.dependencies import get_thought_service
from lines_of_thought.api.errors import http_error
from lines_of_thought.models.thought import Branch
from lines_of_thought.services.thought_service import ThoughtService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/branches", tags=["branches"])


class CreateBranchRequest(BaseModel):
    """Request model for linking two existing thoughts."""
    from_id: str = Field(..., description="Parent thought id")
    to_id: str = Field(..., description="Child thought id; must not already have a parent")
    perspective: Optional[str] = Field(None, description="Viewpoint label for the branch")


@router.post("", response_model=Branch, status_code=status.HTTP_201_CREATED)
def create_branch(
    request: CreateBranchRequest,
    service: ThoughtService = Depends(get_thought_service),
) -> Branch:
    """
    Link two existing thoughts.

    Raises:
        400: validation-failed
        404: thought-not-found
        409: branch-conflict (self link, cycle, or the child already has a parent)
    """
    try:
        return service.link_thoughts(request.from_id, request.to_id, request.perspective)
    except Exception as e:
        raise http_error(e, "Branch creation") from e


@router.delete("/{branch_id}")
def delete_branch(
    branch_id: str,
    service: ThoughtService = Depends(get_thought_service),
) -> Dict[str, int]:
    try:
        return {"deleted": service.delete_branch(branch_id)}
    except Exception as e:
        raise http_error(e, "Branch deletion") from e
