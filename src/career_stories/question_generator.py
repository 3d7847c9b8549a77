"""
Question Generator.

Produces the D-I-G interview question set for an entry.

Modes:
- dynamic: 3 gap-targeted questions (1 dig, 1 impact, 1 growth) from the
  chat model, conditioned on archetype, signals and known context
- static: the 6-question per-archetype bank (3 dig, 2 impact, 1 growth)

Any dynamic failure (no model, timeout, unparseable or invalid response)
falls back to the static bank. After either path the count is enforced:
excess is truncated and short sets are padded with archetype-prefixed
defaults, so dig and impact are always represented.

Usage:
    generator = QuestionGenerator(llm=create_question_llm())
    questions = await generator.generate(entry, detection, known_context)
"""

from typing import List, Literal, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field, StrictStr, ValidationError

from src.common.config import Config
from src.common.error_handling import generate_or_default
from src.common.json_utils import message_text, parse_llm_json
from src.common.logger import get_logger
from src.career_stories.prompts.wizard_questions import (
    WIZARD_QUESTIONS_SYSTEM_PROMPT,
    build_wizard_questions_user_prompt,
)
from src.career_stories.question_bank import (
    DISCOVERY_METHODS,
    FALLBACK_QUESTIONS,
    IMPACT_TYPES,
    QUESTION_BANK,
)
from src.career_stories.types import (
    ARCHETYPE_PREFIXES,
    ArchetypeDetection,
    JournalEntry,
    KnownContext,
    QuestionPhase,
    StoryArchetype,
    WizardQuestion,
)

DYNAMIC_QUESTION_COUNT = 3
STATIC_QUESTION_COUNT = 6
REQUIRED_PHASES = (QuestionPhase.DIG, QuestionPhase.IMPACT)
PHASE_ORDER = {QuestionPhase.DIG: 0, QuestionPhase.IMPACT: 1, QuestionPhase.GROWTH: 2}


# ===== SCHEMA VALIDATION =====

class QuestionItemModel(BaseModel):
    """A single generated question."""

    id: StrictStr = Field(..., min_length=1)
    question: StrictStr = Field(..., min_length=1)
    phase: Literal["dig", "impact", "growth"]
    hint: StrictStr


class QuestionListModel(BaseModel):
    questions: List[QuestionItemModel] = Field(..., min_length=1)


def parse_questions_response(content: str, prefix: str) -> Optional[List[WizardQuestion]]:
    """
    Parse and validate a dynamic questions response.

    Accepts a root array or {"questions": [...]}. Every item needs string
    id/question/hint, a valid phase, and an id starting "{prefix}-{phase}-".

    Returns:
        Parsed questions, or None on any failure (triggers the static bank)
    """
    try:
        parsed = parse_llm_json(content)
    except ValueError:
        return None

    payload = {"questions": parsed} if isinstance(parsed, list) else parsed
    try:
        validated = QuestionListModel(**payload)
    except (ValidationError, TypeError):
        return None

    questions = []
    for item in validated.questions:
        if not item.id.startswith(f"{prefix}-{item.phase}-"):
            return None
        questions.append(
            WizardQuestion(
                id=item.id,
                question=item.question,
                phase=QuestionPhase(item.phase),
                hint=item.hint,
            )
        )
    return questions


# ===== COUNT ENFORCEMENT =====

def _pad_question(prefix: str, phase: QuestionPhase, taken: set) -> WizardQuestion:
    _, question, hint = next(f for f in FALLBACK_QUESTIONS if f[0] == phase.value)
    ordinal = 1
    while f"{prefix}-{phase.value}-{ordinal}" in taken:
        ordinal += 1
    return WizardQuestion(
        id=f"{prefix}-{phase.value}-{ordinal}",
        question=question,
        phase=phase,
        hint=hint,
    )


def enforce_question_count(
    questions: List[WizardQuestion],
    prefix: str,
    target: int,
) -> List[WizardQuestion]:
    """
    Return exactly ``target`` questions with unique ids.

    Duplicates are dropped, excess truncated, and missing dig/impact phases
    padded first (replacing trailing questions when full). Remaining slots
    are padded with the fallback questions in dig, impact, growth order.
    Result is ordered by phase, stable within a phase.
    """
    result: List[WizardQuestion] = []
    taken = set()
    for q in questions:
        if q.id not in taken:
            result.append(q)
            taken.add(q.id)
    result = result[:target]
    taken = {q.id for q in result}

    for phase in REQUIRED_PHASES:
        if any(q.phase == phase for q in result):
            continue
        if len(result) >= target:
            # Drop the last question whose phase is still covered without it
            for i in range(len(result) - 1, -1, -1):
                others = result[:i] + result[i + 1:]
                if result[i].phase not in REQUIRED_PHASES or any(o.phase == result[i].phase for o in others):
                    taken.discard(result[i].id)
                    del result[i]
                    break
        pad = _pad_question(prefix, phase, taken)
        result.append(pad)
        taken.add(pad.id)

    index = 0
    while len(result) < target:
        phase = QuestionPhase(FALLBACK_QUESTIONS[index % len(FALLBACK_QUESTIONS)][0])
        pad = _pad_question(prefix, phase, taken)
        result.append(pad)
        taken.add(pad.id)
        index += 1

    result.sort(key=lambda q: PHASE_ORDER[q.phase])
    return [attach_options(q) for q in result]


def attach_options(question: WizardQuestion) -> WizardQuestion:
    """Discovery methods on dig-1, impact types on impact-1."""
    if question.phase == QuestionPhase.DIG and "dig-1" in question.id:
        question.options = list(DISCOVERY_METHODS)
    elif question.phase == QuestionPhase.IMPACT and "impact-1" in question.id:
        question.options = list(IMPACT_TYPES)
    question.allow_free_text = True
    return question


def static_questions(archetype: StoryArchetype) -> List[WizardQuestion]:
    """The 6-question static bank for an archetype, with options attached."""
    questions = [
        WizardQuestion(id=qid, question=text, phase=QuestionPhase(phase), hint=hint)
        for qid, phase, text, hint in QUESTION_BANK[archetype]
    ]
    return enforce_question_count(questions, ARCHETYPE_PREFIXES[archetype], STATIC_QUESTION_COUNT)


# ===== GENERATOR =====

class QuestionGenerator:
    """
    Builds interview questions, dynamically when a chat model is available.

    The model is injected; ``llm=None`` always uses the static bank.
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        dynamic_enabled: Optional[bool] = None,
        timeout: Optional[float] = None,
    ):
        self.llm = llm
        self.dynamic_enabled = (
            Config.ENABLE_DYNAMIC_QUESTIONS if dynamic_enabled is None else dynamic_enabled
        )
        self.timeout = Config.QUESTION_TIMEOUT_SECONDS if timeout is None else timeout
        self._logger = get_logger(__name__, stage="questions")

    @property
    def is_dynamic(self) -> bool:
        return self.llm is not None and self.dynamic_enabled

    async def _generate_dynamic(
        self,
        entry: JournalEntry,
        archetype: StoryArchetype,
        detection: ArchetypeDetection,
        known_context: Optional[KnownContext],
    ) -> Optional[List[WizardQuestion]]:
        prefix = ARCHETYPE_PREFIXES[archetype]
        user_prompt = build_wizard_questions_user_prompt(
            archetype=archetype,
            archetype_reasoning=detection.primary.reasoning,
            entry_title=entry.display_title,
            entry_content=entry.combined_text,
            signals=detection.signals,
            question_id_prefix=prefix,
            known_context=known_context,
        )
        messages = [
            SystemMessage(content=WIZARD_QUESTIONS_SYSTEM_PROMPT),
            HumanMessage(content=user_prompt),
        ]

        response = await self.llm.ainvoke(messages)
        parsed = parse_questions_response(message_text(response), prefix)
        if parsed is None:
            return None

        self._logger.info(f"Generated {len(parsed)} dynamic questions")
        return enforce_question_count(parsed, prefix, DYNAMIC_QUESTION_COUNT)

    async def generate(
        self,
        entry: JournalEntry,
        detection: ArchetypeDetection,
        known_context: Optional[KnownContext] = None,
        archetype: Optional[StoryArchetype] = None,
    ) -> List[WizardQuestion]:
        """
        Generate the question set for an entry.

        Args:
            entry: Journal entry being promoted
            detection: Archetype detection (signals and reasoning)
            known_context: Facts derived from activities
            archetype: Override for the detected primary archetype

        Returns:
            3 questions (dynamic) or 6 questions (static)
        """
        archetype = archetype or detection.primary.archetype

        if not self.is_dynamic:
            self._logger.debug(f"Using static question bank for {archetype.value}")
            return static_questions(archetype)

        return await generate_or_default(
            lambda: self._generate_dynamic(entry, archetype, detection, known_context),
            lambda: static_questions(archetype),
            operation_name="wizard questions",
            timeout=self.timeout,
            logger=self._logger,
        )
