"""
Argument Strength Scoring - How logically a child thought follows its parent

Scores fall in [-100, 100]:
- 75..100: exceptionally strong logical connection
- 50..74: strong, well-reasoned argument
- 25..49: reasonable connection with adequate logic
- 0..24: weak or tenuous connection
- -24..-1: poor logic with some fallacies
- -49..-25: seriously flawed reasoning
- -100..-50: completely fallacious or contradictory

Scoring never fails a creation: any classifier failure produces a neutral
score of 0 with an explanatory note.
"""

import logging
import math
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Optional, Protocol, runtime_checkable

from lines_of_thought.services.llm.classifier import ClassifierError, PolicyRoutedClassifier
from lines_of_thought.services.llm.policies import ARGUMENT_SCORING

logger = logging.getLogger(__name__)

MIN_SCORE = -100
MAX_SCORE = 100
NEUTRAL_ANALYSIS = "Analysis failed - assigned neutral score"


@dataclass
class StrengthAssessment:
    """Strength score of a branch plus the scorer's rationale."""

    score: int
    analysis: Optional[str] = None
    neutral_fallback: bool = False

    @classmethod
    def neutral(cls) -> "StrengthAssessment":
        return cls(score=0, analysis=NEUTRAL_ANALYSIS, neutral_fallback=True)


@runtime_checkable
class Scorer(Protocol):
    """Protocol for pluggable argument scorers."""

    async def score(self, parent_text: str, child_text: str) -> StrengthAssessment:  # pragma: no cover
        """Score how well ``child_text`` follows from ``parent_text``."""


def clamp_score(value: Any) -> int:
    """Coerce a model-provided score into an integer in [-100, 100]."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a score")
    number = float(value)
    if math.isnan(number):
        raise ValueError("score is NaN")
    if math.isinf(number):
        return MAX_SCORE if number > 0 else MIN_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, int(round(number))))


def build_scoring_prompt(parent_text: str, child_text: str) -> str:
    return dedent(
        f"""
        You are a logic and reasoning expert analyzing chains of philosophical thought.

        Parent Thought: "{parent_text}"

        Child Thought (branching from parent): "{child_text}"

        Analyze how logically the child thought follows from or relates to the parent thought. Consider:
        - Logical validity and soundness
        - Presence of logical fallacies (ad hominem, strawman, false dichotomy, slippery slope, appeal to emotion, etc.)
        - Coherence and relevance to the parent idea
        - Quality of reasoning and inference
        - Strength of supporting evidence or rationale

        Assign a score from -100 to 100 where:
        - 75-100: Exceptionally strong logical connection
        - 50-74: Strong, well-reasoned argument
        - 25-49: Reasonable connection with adequate logic
        - 0-24: Weak or tenuous logical connection
        - -24-(-1): Poor logic with some fallacies
        - -49-(-25): Seriously flawed reasoning
        - -100-(-50): Completely fallacious or contradictory

        Respond with ONLY a JSON object in this exact format:
        {{"score": <number>, "analysis": "brief explanation of the score and any fallacies identified"}}
        """
    ).strip()


class ArgumentScorer(PolicyRoutedClassifier):
    """Scorer backed by the policy-routed classifier."""

    task_type = ARGUMENT_SCORING

    async def score(self, parent_text: str, child_text: str) -> StrengthAssessment:
        try:
            payload = await self.classify(build_scoring_prompt(parent_text, child_text))
            score = clamp_score(payload.get("score", 0) or 0)
        except (ClassifierError, TypeError, ValueError) as error:
            logger.warning(f"Argument scoring failed, assigning neutral score: {error}")
            return StrengthAssessment.neutral()

        analysis = payload.get("analysis")
        return StrengthAssessment(
            score=score,
            analysis=str(analysis) if analysis is not None else None,
        )
