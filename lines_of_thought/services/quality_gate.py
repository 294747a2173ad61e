"""
Quality Gate - Decides whether a candidate thought may enter the graph

Pipeline, in strict order, so the costly classifier calls only run for
candidates that already passed the cheap checks:

1. Input validation (no external calls)
2. Embed the candidate text
3. Originality against root thoughts, or against the parent and its children
4. Moderation
5. Argument-strength scoring (child thoughts only, never rejects)

The gate does not write. ThoughtService commits an approved decision.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from lines_of_thought.config.settings import settings
from lines_of_thought.models.thought import Thought
from lines_of_thought.services.argument_scorer import ArgumentScorer, Scorer, StrengthAssessment
from lines_of_thought.services.embeddings import EmbeddingAdapter, get_embedding_adapter
from lines_of_thought.services.errors import (
    DuplicateBranchError,
    DuplicateThoughtError,
    ModerationRejectedError,
    ModerationUnavailableError,
    ParentNotFoundError,
    SimilarToParentError,
    ValidationFailedError,
)
from lines_of_thought.services.graph_store import GraphStoreBase
from lines_of_thought.services.moderation import ContentModerator, ModerationVerdict, Moderator
from lines_of_thought.services.similarity import cosine_similarity

logger = logging.getLogger(__name__)


@dataclass
class GateDecision:
    """An approved candidate, ready to be committed."""

    text: str
    embedding: List[float]
    perspective: Optional[str] = None
    parent: Optional[Thought] = None
    strength: Optional[StrengthAssessment] = None
    moderation: Optional[ModerationVerdict] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None


class QualityGate:
    """Duplicate detection, moderation and argument scoring for new thoughts."""

    def __init__(
        self,
        store: GraphStoreBase,
        embedder: Optional[EmbeddingAdapter] = None,
        moderator: Optional[Moderator] = None,
        scorer: Optional[Scorer] = None,
        similarity_threshold: Optional[float] = None,
        moderation_fail_open: Optional[bool] = None,
    ):
        self.store = store
        self._embedder = embedder
        self._moderator = moderator
        self._scorer = scorer
        self.similarity_threshold = (
            settings.SIMILARITY_THRESHOLD if similarity_threshold is None else similarity_threshold
        )
        self.moderation_fail_open = (
            settings.MODERATION_FAIL_OPEN if moderation_fail_open is None else moderation_fail_open
        )

    # Collaborators are created on first use so constructing a gate never
    # touches Ollama or Redis.

    @property
    def embedder(self) -> EmbeddingAdapter:
        if self._embedder is None:
            self._embedder = get_embedding_adapter()
        return self._embedder

    @property
    def moderator(self) -> Moderator:
        if self._moderator is None:
            self._moderator = ContentModerator()
        return self._moderator

    @property
    def scorer(self) -> Scorer:
        if self._scorer is None:
            self._scorer = ArgumentScorer()
        return self._scorer

    @staticmethod
    def validate(
        text: object,
        perspective: object = None,
        parent_id: object = None,
    ) -> Tuple[str, Optional[str], Optional[str]]:
        """
        Normalize and validate raw input.

        Returns the trimmed text, the perspective (None when blank) and the
        parent id (None when blank).
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationFailedError("Thought text must be a non-empty string")
        text = text.strip()
        if len(text) > settings.MAX_TEXT_LENGTH:
            raise ValidationFailedError(
                f"Thought text must be at most {settings.MAX_TEXT_LENGTH} characters"
            )

        if perspective is not None:
            if not isinstance(perspective, str):
                raise ValidationFailedError("Perspective must be a string")
            perspective = perspective.strip() or None
            if perspective is not None and len(perspective) > settings.MAX_PERSPECTIVE_LENGTH:
                raise ValidationFailedError(
                    f"Perspective must be at most {settings.MAX_PERSPECTIVE_LENGTH} characters"
                )

        if parent_id is not None:
            if not isinstance(parent_id, str):
                raise ValidationFailedError("Parent id must be a string")
            parent_id = parent_id.strip() or None

        return text, perspective, parent_id

    async def evaluate(
        self,
        text: object,
        parent_id: object = None,
        perspective: object = None,
    ) -> GateDecision:
        text, perspective, parent_id = self.validate(text, perspective, parent_id)

        embedding = await self.embedder.embed(text)

        parent = None
        if parent_id is None:
            await self._check_root_originality(embedding)
        else:
            parent = await self._check_branch_originality(parent_id, embedding)

        verdict = await self._moderate(text)

        strength = None
        if parent is not None:
            strength = await self.scorer.score(parent.text, text)

        return GateDecision(
            text=text,
            embedding=embedding,
            perspective=perspective,
            parent=parent,
            strength=strength,
            moderation=verdict,
        )

    async def _check_root_originality(self, embedding: List[float]) -> None:
        matches = await asyncio.to_thread(
            self.store.find_similar_roots, embedding, self.similarity_threshold
        )
        if matches:
            best = matches[0]
            logger.info(f"Rejected duplicate root thought (similarity {best.similarity:.4f} to {best.thought.id})")
            raise DuplicateThoughtError(
                "A very similar thought already exists",
                similarity=best.similarity,
            )

    async def _check_branch_originality(self, parent_id: str, embedding: List[float]) -> Thought:
        context = await asyncio.to_thread(self.store.get_parent_context, parent_id)
        if context is None:
            raise ParentNotFoundError(f"Parent thought {parent_id} not found")

        parent = context.parent
        if parent.embedding is not None and len(parent.embedding) == len(embedding):
            similarity = cosine_similarity(embedding, parent.embedding)
            if similarity > self.similarity_threshold:
                logger.info(f"Rejected branch too similar to parent {parent_id} ({similarity:.4f})")
                raise SimilarToParentError(
                    "Branch is too similar to its parent thought",
                    similarity=similarity,
                )

        matches = self.store.find_similar_among(context.children, embedding, self.similarity_threshold)
        if matches:
            best = matches[0]
            logger.info(f"Rejected duplicate branch under {parent_id} ({best.similarity:.4f})")
            raise DuplicateBranchError(
                "A very similar branch already exists under this parent",
                similarity=best.similarity,
            )
        return parent

    async def _moderate(self, text: str) -> ModerationVerdict:
        verdict = await self.moderator.moderate(text)
        if verdict.fail_open:
            if not self.moderation_fail_open:
                raise ModerationUnavailableError("Content moderation is currently unavailable")
            logger.warning("Moderation unavailable, accepting candidate")
            return verdict
        if not verdict.valid:
            logger.info(f"Rejected by moderation: {verdict.reason}")
            raise ModerationRejectedError(verdict.reason or "Content did not pass moderation")
        return verdict
