"""
Content Moderation - LLM judgement of whether text is a genuine thought

Classifier infrastructure failures (no provider, transport error, empty or
unparseable output) are reported as ``fail_open`` verdicts. Whether a
fail-open verdict is accepted is decided by the quality gate.
"""

import logging
from dataclasses import dataclass
from textwrap import dedent
from typing import Optional, Protocol, runtime_checkable

from lines_of_thought.services.llm.classifier import ClassifierError, PolicyRoutedClassifier
from lines_of_thought.services.llm.policies import MODERATION

logger = logging.getLogger(__name__)


@dataclass
class ModerationVerdict:
    """Moderation outcome for one candidate text."""

    valid: bool
    reason: Optional[str] = None
    fail_open: bool = False


@runtime_checkable
class Moderator(Protocol):
    """Protocol for pluggable moderators."""

    async def moderate(self, text: str) -> ModerationVerdict:  # pragma: no cover - interface
        """Judge whether ``text`` may enter the graph."""


def build_moderation_prompt(text: str) -> str:
    return dedent(
        f"""
        You are a content moderator for a philosophical thought exploration platform. Analyze the following text and determine if it is a legitimate philosophical thought, idea, question, or reflection worthy of exploration.

        Reject if the text is:
        - Spam or bot-generated garbage
        - Random characters or nonsense
        - Promotional/advertising content
        - Offensive or hateful content
        - Empty or meaningless content
        - Specific to a person or entity, for example a political figure

        Accept if the text is:
        - A genuine philosophical question or thought
        - A reflection or idea worth exploring
        - A concept or theory, even if simple
        - A personal insight or observation

        Text to analyze: "{text}"

        Respond with ONLY a JSON object in this exact format:
        {{"valid": true/false, "reason": "brief explanation"}}
        """
    ).strip()


class ContentModerator(PolicyRoutedClassifier):
    """Moderator backed by the policy-routed classifier."""

    task_type = MODERATION

    async def moderate(self, text: str) -> ModerationVerdict:
        try:
            payload = await self.classify(build_moderation_prompt(text))
        except ClassifierError as error:
            logger.warning(f"Moderation unavailable, failing open: {error}")
            return ModerationVerdict(valid=True, reason=None, fail_open=True)

        reason = payload.get("reason")
        return ModerationVerdict(
            valid=payload.get("valid") is True,
            reason=str(reason) if reason is not None else None,
        )
