"""
Story Wizard Endpoints

Two-step wizard that promotes a journal entry into a career story.

Endpoints:
- POST /career-stories/wizard/analyze: Detect archetype, return D-I-G questions
- POST /career-stories/wizard/generate: Generate, score and persist the story

The acting user comes from the X-User-Id header; authentication happens
upstream.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from src.common.llm_factory import create_question_llm, create_story_llm
from src.common.repositories import (
    get_activity_repository,
    get_career_story_repository,
    get_journal_entry_repository,
)
from src.career_stories.errors import WizardError
from src.career_stories.story_wizard import StoryWizardService
from src.career_stories.types import GenerateInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/career-stories/wizard", tags=["career-stories"])


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================


class AnalyzeRequest(BaseModel):
    """Request body for analyze."""
    journalEntryId: str = Field(..., min_length=1)


class QuestionOptionModel(BaseModel):
    label: str
    value: str


class QuestionModel(BaseModel):
    id: str
    question: str
    phase: str
    hint: Optional[str] = None
    options: Optional[List[QuestionOptionModel]] = None
    allowFreeText: bool = True


class AlternativeModel(BaseModel):
    archetype: str
    confidence: float


class ArchetypeResultModel(BaseModel):
    detected: str
    confidence: float
    reasoning: str
    alternatives: List[AlternativeModel] = Field(default_factory=list)


class EntrySummaryModel(BaseModel):
    id: str
    title: str


class AnalyzeResponse(BaseModel):
    """Response from analyze."""
    archetype: ArchetypeResultModel
    questions: List[QuestionModel]
    journalEntry: EntrySummaryModel


class GenerateRequest(BaseModel):
    """
    Request body for generate.

    Answers are left loosely typed: malformed answers are sanitized by the
    service instead of rejected here. Archetype and framework are untyped so
    any bad value surfaces as INVALID_ARCHETYPE / INVALID_FRAMEWORK.
    """
    journalEntryId: str = Field(..., min_length=1)
    answers: Dict[str, Any] = Field(default_factory=dict)
    archetype: Any = Field(...)
    framework: Any = Field(...)
    style: Optional[str] = None
    userPrompt: Optional[str] = None


class EvidenceModel(BaseModel):
    activityId: Optional[str] = None
    description: Optional[str] = None


class SectionModel(BaseModel):
    summary: str
    evidence: List[EvidenceModel] = Field(default_factory=list)


class StoryModel(BaseModel):
    id: str
    title: str
    hook: str
    framework: str
    archetype: str
    sections: Dict[str, SectionModel]


class EvaluationModel(BaseModel):
    score: float
    breakdown: Dict[str, float] = Field(default_factory=dict)
    suggestions: List[str] = Field(default_factory=list)
    coachComment: str


class GenerateResponse(BaseModel):
    """Response from generate."""
    story: StoryModel
    evaluation: EvaluationModel


# ============================================================================
# DEPENDENCIES
# ============================================================================


_service: Optional[StoryWizardService] = None


def get_wizard_service() -> StoryWizardService:
    """Process-wide wizard service backed by Atlas and the configured model."""
    global _service
    if _service is None:
        _service = StoryWizardService(
            entry_repository=get_journal_entry_repository(),
            activity_repository=get_activity_repository(),
            story_repository=get_career_story_repository(),
            llm=create_story_llm(),
            question_llm=create_question_llm(),
        )
    return _service


def get_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def _to_http(error: WizardError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.to_dict())


# ============================================================================
# ENDPOINTS
# ============================================================================


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_entry(
    request: AnalyzeRequest,
    user_id: str = Depends(get_user_id),
    service: StoryWizardService = Depends(get_wizard_service),
) -> Dict[str, Any]:
    """Detect the entry's archetype and return interview questions."""
    try:
        result = await service.analyze_entry(request.journalEntryId, user_id)
    except WizardError as e:
        logger.info(f"Analyze rejected for {request.journalEntryId}: {e.code}")
        raise _to_http(e)
    return result.to_dict()


@router.post("/generate", response_model=GenerateResponse)
async def generate_story(
    request: GenerateRequest,
    user_id: str = Depends(get_user_id),
    service: StoryWizardService = Depends(get_wizard_service),
) -> Dict[str, Any]:
    """Generate and persist a story from the wizard answers."""
    try:
        result = await service.generate_story(
            GenerateInput(
                journal_entry_id=request.journalEntryId,
                answers=request.answers,
                archetype=request.archetype,
                framework=request.framework,
            ),
            user_id,
            writing_style=request.style,
            user_prompt=request.userPrompt,
        )
    except WizardError as e:
        logger.info(f"Generate rejected for {request.journalEntryId}: {e.code}")
        raise _to_http(e)
    return result.to_dict()
