"""
Story Evaluator.

Deterministic, rule-based scoring of a generated story. No LLM calls: the
same sections and context always produce the same score.

Scoring:
    score = 5.0
          + 1.0  specificity (%, $, or a count of time/people/team units)
          + 0.5  named people extracted from the answers
          + 1.0  counterfactual answer supplied
          + 0.5  quantified metric answer supplied
    clamped to [1.0, 9.5]

Usage:
    evaluation = evaluate_story(narrative.sections, context)
"""

import re
from typing import List, Mapping

from src.career_stories.types import ExtractedContext, StoryEvaluation, StorySection

BASE_SCORE = 5.0
MIN_SCORE = 1.0
MAX_SCORE = 9.5  # 10 is never awarded
SPECIFICITY_BONUS = 1.0
NAMED_PEOPLE_BONUS = 0.5
COUNTERFACTUAL_BONUS = 1.0
METRIC_BONUS = 0.5
MAX_SUGGESTIONS = 3

EXCELLENT, GOOD, ADEQUATE = 8.0, 7.0, 6.0

SPECIFICITY_PATTERN = re.compile(
    r"\d+%|\$[\d,]+|\d+\s*(hours?|days?|weeks?|months?|teams?|users?|engineers?|people)",
    re.IGNORECASE,
)
DIGIT = re.compile(r"\d")

SUGGESTIONS = {
    "specificity": "Add specific numbers to quantify impact",
    "named_people": "Mention specific people by name",
    "counterfactual": "Explain what would have happened without your intervention",
    "metric": "Give me the number that proves it worked",
}


def has_specificity(text: str) -> bool:
    return bool(SPECIFICITY_PATTERN.search(text or ""))


def has_quantified_metric(metric: str) -> bool:
    return bool(metric and DIGIT.search(metric))


def coach_comment(score: float) -> str:
    if score >= EXCELLENT:
        return "THAT'S a story. The details sell it."
    if score >= GOOD:
        return "Good structure. The numbers are there."
    if score >= ADEQUATE:
        return "I can see what happened. Now make me care."
    return "This is a summary, not a story. Where's the drama?"


def evaluate_story(
    sections: Mapping[str, StorySection],
    context: ExtractedContext,
) -> StoryEvaluation:
    """
    Score a story and suggest what would improve it.

    Args:
        sections: Story sections (summaries are scanned for specificity)
        context: Interview context (people, counterfactual, metric)

    Returns:
        StoryEvaluation with score in [1.0, 9.5] and at most 3 suggestions
    """
    score = BASE_SCORE
    suggestions: List[str] = []

    all_text = " ".join(s.summary or "" for s in sections.values())
    metric_quantified = has_quantified_metric(context.metric or "")

    if has_specificity(all_text):
        score += SPECIFICITY_BONUS
    else:
        suggestions.append(SUGGESTIONS["specificity"])

    if context.named_people:
        score += NAMED_PEOPLE_BONUS
    else:
        suggestions.append(SUGGESTIONS["named_people"])

    if context.counterfactual:
        score += COUNTERFACTUAL_BONUS
    else:
        suggestions.append(SUGGESTIONS["counterfactual"])

    if metric_quantified:
        score += METRIC_BONUS
    else:
        suggestions.append(SUGGESTIONS["metric"])

    score = min(MAX_SCORE, max(MIN_SCORE, score))

    return StoryEvaluation(
        score=score,
        breakdown={
            "specificity": 8 if metric_quantified else 5,
            "compellingHook": 7 if context.real_story else 5,
            "evidenceQuality": 6,
            "archetypeFit": 7,
            "actionableImpact": 8 if context.counterfactual else 5,
        },
        suggestions=suggestions[:MAX_SUGGESTIONS],
        coach_comment=coach_comment(score),
    )
