"""
Career Story Wizard.

Promotes a free-form journal entry into a framework-structured career story
with an evidence trail and a quality score.

Pipeline:
1. archetype_detector: Classify the entry into one of 8 archetypes
2. activity_ranker: Rank and normalize the entry's tool activities
3. question_generator: D-I-G interview questions (dynamic or static bank)
4. context_extractor: Map answers to narrative facts
5. narrative_generator: Framework sections (LLM or local fallback)
6. evidence_binder: Link sections to activities and answers
7. evaluator: Deterministic story score
8. story_wizard: Orchestrates analyze / generate and persistence

Usage:
    from src.career_stories.story_wizard import StoryWizardService
"""

from src.career_stories.errors import WizardError
from src.career_stories.types import (
    FRAMEWORK_SECTIONS,
    FrameworkName,
    QuestionPhase,
    StoryArchetype,
)

__all__ = [
    "FRAMEWORK_SECTIONS",
    "FrameworkName",
    "QuestionPhase",
    "StoryArchetype",
    "WizardError",
]
