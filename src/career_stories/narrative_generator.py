"""
Narrative Generator.

Synthesizes framework-structured story sections from the archetype, the
interview context and the ranked activity evidence.

The chat model is called at most once per story, bounded by
Config.NARRATIVE_TIMEOUT_SECONDS. The response must carry a description
and a full narrative body; everything else defaults. Any failure (no
model, timeout, malformed JSON, missing required fields) returns the pure
local fallback built from the entry itself.

Usage:
    generator = NarrativeGenerator(llm=create_story_llm())
    narrative = await generator.generate(entry, FrameworkName.STAR,
                                         StoryArchetype.FIREFIGHTER, context, ranked)
"""

from typing import Any, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field, ValidationError, field_validator

from src.common.config import Config
from src.common.error_handling import generate_or_default
from src.common.json_utils import message_text, parse_llm_json_object
from src.common.logger import get_logger
from src.career_stories.prompts.career_story import (
    CAREER_STORY_SYSTEM_PROMPT,
    build_career_story_user_prompt,
)
from src.career_stories.types import (
    FRAMEWORK_SECTIONS,
    EvidenceRef,
    ExtractedContext,
    FrameworkName,
    JournalEntry,
    NarrativePhase,
    NarrativeResult,
    RankedActivity,
    StoryArchetype,
    StorySection,
)

DEFAULT_PHASE_NAME = "Story"


# ===== SCHEMA VALIDATION =====
# Optional fields are lenient: null or mistyped values fall back to their
# defaults so a malformed extra never discards an otherwise valid narrative.

def _scalar_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _text_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [t for t in (_scalar_text(v) for v in value) if t]


class EvidenceModel(BaseModel):
    activityId: Optional[str] = None
    description: Optional[str] = None

    @field_validator("activityId", "description", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Optional[str]:
        return _scalar_text(v)


class SectionModel(BaseModel):
    summary: str = ""
    evidence: List[EvidenceModel] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def coerce_summary(cls, v: Any) -> str:
        return _scalar_text(v) or ""

    @field_validator("evidence", mode="before")
    @classmethod
    def coerce_evidence(cls, v: Any) -> List[Any]:
        """Accept bare ids and drop anything that isn't an object."""
        if not isinstance(v, list):
            return []
        items = []
        for item in v:
            if isinstance(item, dict):
                items.append(item)
            elif _scalar_text(item):
                items.append({"activityId": item})
        return items


class PhaseModel(BaseModel):
    name: str
    summary: str = ""
    activityIds: List[str] = Field(default_factory=list)

    @field_validator("name", "summary", mode="before")
    @classmethod
    def coerce_summary(cls, v: Any) -> str:
        return _scalar_text(v) or ""

    @field_validator("activityIds", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> List[str]:
        return _text_list(v)


class NarrativeResponseModel(BaseModel):
    """Pydantic model for validating the narrative response."""

    title: Optional[str] = None
    description: str = Field(..., min_length=1)
    fullContent: str = Field(..., min_length=1)
    sections: Dict[str, SectionModel] = Field(default_factory=dict)
    topics: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    impactHighlights: List[str] = Field(default_factory=list)
    dominantRole: Optional[str] = None
    phases: List[PhaseModel] = Field(default_factory=list)

    @field_validator("description", "fullContent")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("title", "dominantRole", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Optional[str]:
        return _scalar_text(v)

    @field_validator("topics", "skills", "impactHighlights", mode="before")
    @classmethod
    def coerce_text_lists(cls, v: Any) -> List[str]:
        return _text_list(v)

    @field_validator("sections", mode="before")
    @classmethod
    def drop_malformed_sections(cls, v: Any) -> Dict[str, Any]:
        if not isinstance(v, dict):
            return {}
        return {k: s for k, s in v.items() if isinstance(s, dict)}

    @field_validator("phases", mode="before")
    @classmethod
    def drop_malformed_phases(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        return [p for p in v if isinstance(p, dict) and _scalar_text(p.get("name"))]


def parse_narrative_response(content: str) -> Optional[NarrativeResponseModel]:
    """Parse a narrative response; None when unparseable or required fields are missing."""
    try:
        data = parse_llm_json_object(content)
        return NarrativeResponseModel(**data)
    except (ValueError, ValidationError, TypeError):
        return None


# ===== FALLBACK =====

def fallback_summary(key: str, entry: JournalEntry) -> str:
    return f"{key}: {entry.description or entry.title or 'Details pending'}"


def build_fallback_narrative(
    entry: JournalEntry,
    framework: FrameworkName,
    activity_ids: Optional[List[str]] = None,
    context: Optional[ExtractedContext] = None,
) -> NarrativeResult:
    """
    Build a narrative from the entry alone. No network, no side effects.

    Every section summary comes from the entry's description/title; every
    supplied activity id is attached to a single default phase.
    """
    activity_ids = list(activity_ids if activity_ids is not None else entry.activity_ids)
    sections = {
        key: StorySection(summary=fallback_summary(key, entry))
        for key in FRAMEWORK_SECTIONS[framework]
    }
    description = entry.description or entry.display_title
    full_content = entry.full_content or description

    impact = [context.metric] if context is not None and context.metric else []

    return NarrativeResult(
        title=entry.display_title,
        description=description,
        full_content=full_content,
        sections=sections,
        impact_highlights=impact,
        phases=[NarrativePhase(name=DEFAULT_PHASE_NAME, summary=description, activity_ids=activity_ids)],
        used_fallback=True,
    )


def _to_result(
    response: NarrativeResponseModel,
    entry: JournalEntry,
    framework: FrameworkName,
) -> NarrativeResult:
    sections: Dict[str, StorySection] = {}
    for key in FRAMEWORK_SECTIONS[framework]:
        parsed = response.sections.get(key)
        summary = parsed.summary.strip() if parsed else ""
        evidence = [
            EvidenceRef(activity_id=e.activityId, description=e.description)
            for e in (parsed.evidence if parsed else [])
            if e.activityId or e.description
        ]
        sections[key] = StorySection(summary=summary or fallback_summary(key, entry), evidence=evidence)

    return NarrativeResult(
        title=(response.title or "").strip() or entry.display_title,
        description=response.description,
        full_content=response.fullContent,
        sections=sections,
        topics=response.topics,
        skills=response.skills,
        impact_highlights=response.impactHighlights,
        dominant_role=response.dominantRole,
        phases=[
            NarrativePhase(name=p.name, summary=p.summary, activity_ids=p.activityIds)
            for p in response.phases
        ],
    )


# ===== GENERATOR =====

class NarrativeGenerator:
    """Framework-structured narrative synthesis with a deterministic fallback."""

    def __init__(self, llm: Optional[BaseChatModel] = None, timeout: Optional[float] = None):
        self.llm = llm
        self.timeout = Config.NARRATIVE_TIMEOUT_SECONDS if timeout is None else timeout
        self._logger = get_logger(__name__, stage="narrative")

    async def _generate_remote(
        self,
        entry: JournalEntry,
        framework: FrameworkName,
        archetype: StoryArchetype,
        context: ExtractedContext,
        ranked: List[RankedActivity],
        writing_style: Optional[str],
        user_prompt: Optional[str],
    ) -> Optional[NarrativeResult]:
        prompt = build_career_story_user_prompt(
            entry=entry,
            framework=framework,
            archetype=archetype,
            context=context,
            activities=[r.context for r in ranked],
            writing_style=writing_style,
            user_prompt=user_prompt,
        )
        messages = [
            SystemMessage(content=CAREER_STORY_SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ]

        response = await self.llm.ainvoke(messages)
        content = message_text(response)

        parsed = parse_narrative_response(content)
        if parsed is None:
            return None

        self._logger.info(
            f"Narrative generated: {len(parsed.sections)} sections returned, "
            f"{len(parsed.phases)} phases"
        )
        return _to_result(parsed, entry, framework)

    async def generate(
        self,
        entry: JournalEntry,
        framework: FrameworkName,
        archetype: StoryArchetype,
        context: ExtractedContext,
        ranked: Optional[List[RankedActivity]] = None,
        writing_style: Optional[str] = None,
        user_prompt: Optional[str] = None,
    ) -> NarrativeResult:
        """
        Generate the narrative, never raising for provider problems.

        Returns:
            NarrativeResult whose sections are exactly the framework's keys,
            each with a non-empty summary
        """
        ranked = ranked or []

        def fallback() -> NarrativeResult:
            return build_fallback_narrative(entry, framework, entry.activity_ids, context)

        if self.llm is None:
            self._logger.info("No generation provider configured, using local narrative")
            return fallback()

        return await generate_or_default(
            lambda: self._generate_remote(
                entry, framework, archetype, context, ranked, writing_style, user_prompt
            ),
            fallback,
            operation_name="narrative",
            timeout=self.timeout,
            logger=self._logger,
        )
