"""
Story Wizard Service.

Orchestrates the two-step promotion of a journal entry into a career story.
No session is held between the steps; the caller re-supplies the entry id,
archetype, framework and answers.

    analyze_entry   -> AWAITING_ANSWERS
        ownership + content checks, archetype detection, known context,
        interview questions
    generate_story  -> PROMOTED
        answer context || activity ranking, narrative, evidence binding,
        evaluation, persistence

generate_story is not idempotent: every call creates a new story and new
evidence rows. It fails only on entry lookup, ownership or enum validation;
a missing or failing chat model falls back to local generation.

Usage:
    service = StoryWizardService(entries, activities, stories, llm=create_story_llm())
    analysis = await service.analyze_entry(entry_id, user_id)
    result = await service.generate_story(GenerateInput(...), user_id)
"""

import asyncio
from typing import List, Optional, Tuple

from bson import ObjectId
from langchain_core.language_models import BaseChatModel

from src.common.config import Config
from src.common.logger import get_logger, new_run_id
from src.common.repositories.base import (
    ActivityRepositoryInterface,
    CareerStoryRepositoryInterface,
    JournalEntryRepositoryInterface,
)
from src.career_stories.activity_ranker import build_known_context, rank_activities
from src.career_stories.archetype_detector import ArchetypeDetector
from src.career_stories.context_extractor import answers_to_context, sanitize_answers
from src.career_stories.errors import WizardError
from src.career_stories.evaluator import evaluate_story
from src.career_stories.evidence_binder import bind, sections_with_evidence
from src.career_stories.narrative_generator import NarrativeGenerator
from src.career_stories.question_generator import QuestionGenerator
from src.career_stories.types import (
    FRAMEWORK_SECTIONS,
    AnalyzeResult,
    CareerStory,
    ExtractedContext,
    GenerateInput,
    GenerateResult,
    JournalEntry,
    KnownContext,
    RankedActivity,
    StoryArchetype,
    parse_archetype,
    parse_framework,
)

HOOK_MAX_LENGTH = 200

DEFAULT_HOOKS = {
    StoryArchetype.FIREFIGHTER: "When the alert came in, everything changed.",
    StoryArchetype.ARCHITECT: "I saw what needed to be built, and I built it to last.",
    StoryArchetype.DIPLOMAT: "Two teams, opposing views, one path forward.",
    StoryArchetype.MULTIPLIER: "What started as my solution became everyone's solution.",
    StoryArchetype.DETECTIVE: "No one could figure out why. Until I traced it back.",
    StoryArchetype.PIONEER: "No documentation. No playbook. Just a problem that needed solving.",
    StoryArchetype.TURNAROUND: "I inherited a mess. Here's how I turned it around.",
    StoryArchetype.PREVENTER: "I noticed something others missed. It saved us.",
}


def build_hook(context: ExtractedContext, archetype: StoryArchetype) -> str:
    """Real story, else obstacle, else the archetype's default hook."""
    for candidate in (context.real_story, context.obstacle):
        if candidate:
            return candidate[:HOOK_MAX_LENGTH]
    return DEFAULT_HOOKS[archetype]


class StoryWizardService:
    """
    Two-step story wizard.

    Collaborators are injected; ``llm`` / ``question_llm`` may be None, in
    which case questions come from the static bank and narratives from the
    local fallback.
    """

    def __init__(
        self,
        entry_repository: JournalEntryRepositoryInterface,
        activity_repository: ActivityRepositoryInterface,
        story_repository: CareerStoryRepositoryInterface,
        llm: Optional[BaseChatModel] = None,
        question_llm: Optional[BaseChatModel] = None,
        min_content_length: Optional[int] = None,
        max_ranked_activities: Optional[int] = None,
    ):
        self.entries = entry_repository
        self.activities = activity_repository
        self.stories = story_repository
        self.detector = ArchetypeDetector()
        self.question_generator = QuestionGenerator(llm=question_llm or llm)
        self.narrative_generator = NarrativeGenerator(llm=llm)
        self.min_content_length = (
            Config.MIN_CONTENT_LENGTH if min_content_length is None else min_content_length
        )
        self.max_ranked_activities = (
            Config.MAX_RANKED_ACTIVITIES if max_ranked_activities is None else max_ranked_activities
        )
        self._logger = get_logger(__name__, stage="wizard")

    # ===== SHARED STEPS =====

    async def _load_entry(self, entry_id: str, user_id: str) -> JournalEntry:
        entry = await asyncio.to_thread(self.entries.find_for_user, entry_id, user_id)
        if entry is None:
            self._logger.warning(f"Entry not found for user: {entry_id}")
            raise WizardError("Journal entry not found", "ENTRY_NOT_FOUND")
        return entry

    async def _rank_entry_activities(
        self,
        entry: JournalEntry,
        user_id: str,
    ) -> Tuple[List[RankedActivity], int]:
        """Fetch and rank the entry's activities. Returns (ranked, fetched count)."""
        if not entry.activity_ids:
            return [], 0
        records = await asyncio.to_thread(self.activities.find_by_ids, entry.activity_ids)
        ranked = rank_activities(
            entry.activity_ids,
            records,
            self_identifier=user_id,
            enrichment=entry.enrichment,
            max_count=self.max_ranked_activities,
        )
        return ranked, len(records)

    # ===== STEP 1: ANALYZE =====

    async def analyze_entry(self, entry_id: str, user_id: str) -> AnalyzeResult:
        """
        Detect the archetype and produce interview questions.

        Raises:
            WizardError: ENTRY_NOT_FOUND (missing or not owned),
                INSUFFICIENT_CONTENT (combined text under the minimum)
        """
        log = self._logger.bind(run_id=new_run_id(), entry_id=entry_id, stage="analyze")
        entry = await self._load_entry(entry_id, user_id)

        if entry.content_length < self.min_content_length:
            log.warning(
                f"Insufficient content: {entry.content_length} chars "
                f"(min: {self.min_content_length})"
            )
            raise WizardError(
                f"Entry has insufficient content for analysis "
                f"({entry.content_length} chars, need {self.min_content_length}+)",
                "INSUFFICIENT_CONTENT",
            )

        detection = self.detector.detect(entry)

        known_context = KnownContext()
        if self.question_generator.is_dynamic:
            ranked, _ = await self._rank_entry_activities(entry, user_id)
            known_context = build_known_context(ranked)

        with log.timed("questions"):
            questions = await self.question_generator.generate(entry, detection, known_context)

        log.info(
            f"Analyze complete: archetype={detection.primary.archetype.value}, "
            f"confidence={detection.primary.confidence}, questions={len(questions)}"
        )

        return AnalyzeResult(
            detection=detection,
            questions=questions,
            journal_entry_id=entry.id,
            journal_entry_title=entry.display_title,
        )

    # ===== STEP 2: GENERATE =====

    async def generate_story(
        self,
        request: GenerateInput,
        user_id: str,
        writing_style: Optional[str] = None,
        user_prompt: Optional[str] = None,
    ) -> GenerateResult:
        """
        Generate, bind, score and persist a story.

        Raises:
            WizardError: INVALID_ARCHETYPE / INVALID_FRAMEWORK for values
                outside the fixed sets, ENTRY_NOT_FOUND (missing or not owned)
        """
        archetype = parse_archetype(request.archetype)
        framework = parse_framework(request.framework)
        log = self._logger.bind(
            run_id=new_run_id(), entry_id=request.journal_entry_id, stage="generate"
        )

        entry = await self._load_entry(request.journal_entry_id, user_id)
        answers = sanitize_answers(request.answers)

        log.info(
            f"Generate started: archetype={archetype.value}, framework={framework.value}, "
            f"answers={len(answers)}"
        )

        (ranked, fetched), context = await asyncio.gather(
            self._rank_entry_activities(entry, user_id),
            asyncio.to_thread(answers_to_context, request.answers),
        )

        with log.timed("narrative"):
            narrative = await self.narrative_generator.generate(
                entry,
                framework,
                archetype,
                context,
                ranked,
                writing_style=writing_style,
                user_prompt=user_prompt,
            )

        section_keys = FRAMEWORK_SECTIONS[framework]
        activities = [r.activity for r in ranked]
        sources = bind(narrative, section_keys, activities, entry.activity_ids, answers)
        sections = sections_with_evidence(narrative.sections, section_keys, sources)

        evaluation = evaluate_story(sections, context)

        story = CareerStory(
            id=str(ObjectId()),
            user_id=user_id,
            journal_entry_id=entry.id,
            title=narrative.title or entry.display_title,
            hook=build_hook(context, archetype),
            framework=framework,
            archetype=archetype,
            category=entry.category,
            sections=sections,
            wizard_answers=answers,
            score=evaluation.score,
        )

        write = await asyncio.to_thread(self.stories.create_with_sources, story, sources)
        if write.sources_failed:
            log.error(f"Story {story.id} saved without evidence rows: {write.error}")

        log.info(
            f"Generate complete: story={story.id}, score={evaluation.score}, "
            f"sources={len(sources)}, activities={fetched}, fallback={narrative.used_fallback}"
        )

        return GenerateResult(story=story, evaluation=evaluation, sources=sources)
