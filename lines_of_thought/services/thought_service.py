"""
Thought Service - Orchestrates the thought creation pipeline

Embedding Adapter → Quality Gate → Graph Store (single atomic write)

Also owns the other write operations (standalone links, deletes) and the
component health check used by the API.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from lines_of_thought.config.settings import settings
from lines_of_thought.models.thought import Branch, CreationResult, Thought
from lines_of_thought.services.errors import (
    BranchConflictError,
    ThoughtNotFoundError,
    ValidationFailedError,
)
from lines_of_thought.services.graph_store import GraphStore, GraphStoreBase
from lines_of_thought.services.ollama_client import ModelStatus, OllamaModelManager, get_ollama_manager
from lines_of_thought.services.quality_gate import QualityGate

logger = logging.getLogger(__name__)


def _require_id(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailedError(f"{name} must be a non-empty string")
    return value.strip()


class ThoughtService:
    """Write-side entry point for thoughts and branches."""

    def __init__(
        self,
        store: Optional[GraphStoreBase] = None,
        gate: Optional[QualityGate] = None,
        ollama_manager: Optional[OllamaModelManager] = None,
    ):
        self.store = store or GraphStore()
        self.gate = gate or QualityGate(self.store)
        self._ollama_manager = ollama_manager

    async def create_thought(
        self,
        text: object,
        parent_id: object = None,
        perspective: object = None,
    ) -> CreationResult:
        """
        Run a candidate through the quality gate and persist it.

        A thought without a parent is created as a root. A thought with a
        parent is created together with its incoming branch, carrying the
        perspective and the strength assessment, in one transaction.
        """
        decision = await self.gate.evaluate(text, parent_id=parent_id, perspective=perspective)

        if decision.parent is None:
            thought = await asyncio.to_thread(
                self.store.create_thought, decision.text, decision.embedding, True
            )
            return CreationResult(thought=thought)

        strength = decision.strength
        thought, branch = await asyncio.to_thread(
            self.store.create_branch,
            decision.parent.id,
            decision.text,
            decision.embedding,
            decision.perspective,
            strength.score if strength else None,
            strength.analysis if strength else None,
        )
        return CreationResult(thought=thought, branch=branch)

    def link_thoughts(self, from_id: object, to_id: object, perspective: object = None) -> Branch:
        """Create a standalone branch between two existing thoughts."""
        from_id = _require_id(from_id, "from_id")
        to_id = _require_id(to_id, "to_id")
        if perspective is not None:
            if not isinstance(perspective, str):
                raise ValidationFailedError("Perspective must be a string")
            perspective = perspective.strip() or None
            if perspective is not None and len(perspective) > settings.MAX_PERSPECTIVE_LENGTH:
                raise ValidationFailedError(
                    f"Perspective must be at most {settings.MAX_PERSPECTIVE_LENGTH} characters"
                )
        if from_id == to_id:
            raise BranchConflictError("A thought cannot branch to itself")

        branch = self.store.link_thoughts(from_id, to_id, perspective)
        logger.info(f"Linked {from_id} -> {to_id} via branch {branch.id}")
        return branch

    def get_thought(self, thought_id: object) -> Thought:
        thought_id = _require_id(thought_id, "id")
        thought = self.store.get_thought(thought_id)
        if thought is None:
            raise ThoughtNotFoundError(f"Thought {thought_id} not found")
        return thought

    def delete_thought(self, thought_id: object) -> int:
        """Detach-delete a thought. Deleting an absent thought returns 0."""
        return self.store.delete_thought(_require_id(thought_id, "id"))

    def delete_branch(self, branch_id: object) -> int:
        """Delete a branch. Deleting an absent branch returns 0."""
        return self.store.delete_branch(_require_id(branch_id, "id"))

    async def health_check(self) -> Dict[str, Any]:
        """Check graph store and embedding model availability."""
        neo4j_ok = await asyncio.to_thread(self.store.ping)

        manager = self._ollama_manager or get_ollama_manager()
        health = await manager.check_model_health(settings.EMBEDDING_MODEL)
        ollama_ok = health.status != ModelStatus.ERROR

        return {
            "neo4j": neo4j_ok,
            "ollama": ollama_ok,
            "overall": neo4j_ok and ollama_ok,
        }
