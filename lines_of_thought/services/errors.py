"""
Thought pipeline errors.

Every expected rejection carries a stable machine-readable ``code`` so the
API layer can render targeted messages. Infrastructure failures use
separate exception types and never carry user-facing detail.
"""

from typing import Any, Dict, Optional


class ThoughtError(Exception):
    """Base class for expected, caller-recoverable outcomes."""

    code = "thought-error"

    def __init__(self, message: str, similarity: Optional[float] = None):
        super().__init__(message)
        self.message = message
        self.similarity = similarity

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.similarity is not None:
            detail["similarity"] = round(self.similarity, 4)
        return detail


class ValidationFailedError(ThoughtError):
    code = "validation-failed"


class OriginalityError(ThoughtError):
    """Candidate is too close to existing content."""

    code = "originality-failed"


class DuplicateThoughtError(OriginalityError):
    code = "duplicate-thought"


class SimilarToParentError(OriginalityError):
    code = "similar-to-parent"


class DuplicateBranchError(OriginalityError):
    code = "duplicate-branch"


class ModerationRejectedError(ThoughtError):
    code = "moderation-failed"


class ModerationUnavailableError(ThoughtError):
    """Raised only when moderation is configured to fail closed."""

    code = "moderation-unavailable"


class NotFoundError(ThoughtError):
    code = "not-found"


class ParentNotFoundError(NotFoundError):
    code = "parent-not-found"


class ThoughtNotFoundError(NotFoundError):
    code = "thought-not-found"


class BranchConflictError(ThoughtError):
    """Edge would give a thought a second parent or close a cycle."""

    code = "branch-conflict"


class StoreError(Exception):
    """Graph store failure (connectivity, constraint violation, driver error)."""
