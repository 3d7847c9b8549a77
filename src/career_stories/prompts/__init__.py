"""
Prompts for the Career Story Wizard.

- wizard_questions: Dynamic D-I-G interview questions
- career_story: Framework-structured narrative generation
"""

from src.career_stories.prompts.career_story import (
    ARCHETYPE_GUIDANCE,
    CAREER_STORY_SYSTEM_PROMPT,
    build_career_story_user_prompt,
)
from src.career_stories.prompts.wizard_questions import (
    WIZARD_QUESTIONS_SYSTEM_PROMPT,
    build_wizard_questions_user_prompt,
)

__all__ = [
    "ARCHETYPE_GUIDANCE",
    "CAREER_STORY_SYSTEM_PROMPT",
    "build_career_story_user_prompt",
    "WIZARD_QUESTIONS_SYSTEM_PROMPT",
    "build_wizard_questions_user_prompt",
]
