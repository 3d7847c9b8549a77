"""
Data types for the career story wizard.

Closed taxonomies (archetypes, frameworks, interview phases) are string
enums with exhaustive lookup tables. The dataclasses below are the
intermediate and persisted values of the promotion pipeline:

- JournalEntry / ActivityRecord: read-only inputs from the stores
- ArchetypeDetection: detector output with reusable signals
- WizardQuestion / WizardAnswer: the D-I-G interview round trip
- ExtractedContext: answers mapped to narrative fields (never persisted)
- ActivityContext / RankedActivity / KnownContext: prompt-safe activity views
- NarrativeResult / StorySection: generated narrative
- StorySource / CareerStory / StoryEvaluation: persisted story and score
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from src.career_stories.errors import WizardError


# ===== CLOSED TAXONOMIES =====

class StoryArchetype(str, Enum):
    """Narrative shape of a work story."""

    FIREFIGHTER = "firefighter"
    ARCHITECT = "architect"
    DIPLOMAT = "diplomat"
    MULTIPLIER = "multiplier"
    DETECTIVE = "detective"
    PIONEER = "pioneer"
    TURNAROUND = "turnaround"
    PREVENTER = "preventer"


class FrameworkName(str, Enum):
    """Section schema a narrative is organized into."""

    STAR = "STAR"
    STARL = "STARL"
    CAR = "CAR"
    PAR = "PAR"
    SAR = "SAR"
    SOAR = "SOAR"
    SHARE = "SHARE"
    CARL = "CARL"


class QuestionPhase(str, Enum):
    """D-I-G interview phases, in asking order."""

    DIG = "dig"
    IMPACT = "impact"
    GROWTH = "growth"


class SourceType(str, Enum):
    ACTIVITY = "activity"
    WIZARD_ANSWER = "wizard_answer"


FRAMEWORK_SECTIONS: Dict[FrameworkName, List[str]] = {
    FrameworkName.STAR: ["situation", "task", "action", "result"],
    FrameworkName.STARL: ["situation", "task", "action", "result", "learning"],
    FrameworkName.CAR: ["challenge", "action", "result"],
    FrameworkName.PAR: ["problem", "action", "result"],
    FrameworkName.SAR: ["situation", "action", "result"],
    FrameworkName.SOAR: ["situation", "obstacles", "actions", "results"],
    FrameworkName.SHARE: ["situation", "hindrances", "actions", "results", "evaluation"],
    FrameworkName.CARL: ["context", "action", "result", "learning"],
}

# Question-id namespace per archetype: "{prefix}-{phase}-{n}"
ARCHETYPE_PREFIXES: Dict[StoryArchetype, str] = {
    StoryArchetype.FIREFIGHTER: "ff",
    StoryArchetype.ARCHITECT: "ar",
    StoryArchetype.DIPLOMAT: "di",
    StoryArchetype.MULTIPLIER: "mu",
    StoryArchetype.DETECTIVE: "de",
    StoryArchetype.PIONEER: "pi",
    StoryArchetype.TURNAROUND: "tu",
    StoryArchetype.PREVENTER: "pr",
}


def parse_archetype(value: Any) -> StoryArchetype:
    """
    Validate a caller-supplied archetype.

    Raises:
        WizardError: INVALID_ARCHETYPE if value is not one of the 8 archetypes
    """
    if isinstance(value, StoryArchetype):
        return value
    try:
        return StoryArchetype(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(a.value for a in StoryArchetype)
        raise WizardError(
            f"Invalid archetype '{value}'. Expected one of: {allowed}",
            "INVALID_ARCHETYPE",
        )


def parse_framework(value: Any) -> FrameworkName:
    """
    Validate a caller-supplied framework name.

    Raises:
        WizardError: INVALID_FRAMEWORK if value is not one of the 8 frameworks
    """
    if isinstance(value, FrameworkName):
        return value
    try:
        return FrameworkName(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(f.value for f in FrameworkName)
        raise WizardError(
            f"Invalid framework '{value}'. Expected one of: {allowed}",
            "INVALID_FRAMEWORK",
        )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


# ===== INPUTS =====

@dataclass
class JournalEntry:
    """
    A free-form work journal entry (read-only input).

    ``enrichment`` carries prior AI enrichment when available, e.g.
    {"archetype": "detective", "skills": [...], "activityEdges": [...]}.
    """

    id: str
    user_id: str
    title: str = ""
    description: Optional[str] = None
    full_content: Optional[str] = None
    activity_ids: List[str] = field(default_factory=list)
    category: Optional[str] = None
    enrichment: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_title(self) -> str:
        return self.title or "Untitled"

    @property
    def combined_text(self) -> str:
        """Title, description and body joined for analysis."""
        parts = [self.title, self.description, self.full_content]
        return "\n\n".join(p for p in parts if p)

    @property
    def content_length(self) -> int:
        return len(self.title or "") + len(self.description or "") + len(self.full_content or "")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "JournalEntry":
        """Build from a stored document (MongoDB shape)."""
        return cls(
            id=str(doc.get("_id", doc.get("id", ""))),
            user_id=str(doc.get("user_id", "")),
            title=doc.get("title") or "",
            description=doc.get("description"),
            full_content=doc.get("full_content"),
            activity_ids=[str(a) for a in doc.get("activity_ids") or []],
            category=doc.get("category"),
            enrichment=doc.get("enrichment") or {},
        )


@dataclass
class ActivityRecord:
    """A tool activity (PR, ticket, thread, meeting...) backing an entry."""

    id: str
    source: str
    title: str
    url: Optional[str] = None
    description: Optional[str] = None
    raw_data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ActivityRecord":
        return cls(
            id=str(doc.get("_id", doc.get("id", ""))),
            source=doc.get("source") or "unknown",
            title=doc.get("title") or "",
            url=doc.get("url") or doc.get("source_url"),
            description=doc.get("description"),
            raw_data=doc.get("raw_data") or {},
            timestamp=_parse_timestamp(doc.get("timestamp")),
        )


# ===== ARCHETYPE DETECTION =====

@dataclass
class ArchetypeSignals:
    """
    Heuristic indicators found in entry text.

    The eight ``has_*`` flags mirror the archetypes; the three language
    flags describe how the entry is written. Question generation uses both
    to target what is missing.
    """

    has_crisis: bool = False
    has_architecture: bool = False
    has_stakeholders: bool = False
    has_multiplication: bool = False
    has_mystery: bool = False
    has_pioneering: bool = False
    has_turnaround: bool = False
    has_prevention: bool = False
    has_role_language: bool = False
    has_discovery_language: bool = False
    has_outcome_language: bool = False
    matched_terms: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_crisis": self.has_crisis,
            "has_architecture": self.has_architecture,
            "has_stakeholders": self.has_stakeholders,
            "has_multiplication": self.has_multiplication,
            "has_mystery": self.has_mystery,
            "has_pioneering": self.has_pioneering,
            "has_turnaround": self.has_turnaround,
            "has_prevention": self.has_prevention,
            "has_role_language": self.has_role_language,
            "has_discovery_language": self.has_discovery_language,
            "has_outcome_language": self.has_outcome_language,
            "matched_terms": self.matched_terms,
        }


@dataclass
class ArchetypeCandidate:
    archetype: StoryArchetype
    confidence: float
    reasoning: str = ""


@dataclass
class ArchetypeDetection:
    """Primary archetype plus ranked alternatives. Informational, not gating."""

    primary: ArchetypeCandidate
    alternatives: List[ArchetypeCandidate] = field(default_factory=list)
    signals: ArchetypeSignals = field(default_factory=ArchetypeSignals)

    def to_dict(self) -> Dict[str, Any]:
        """API shape for the analyze response."""
        return {
            "detected": self.primary.archetype.value,
            "confidence": self.primary.confidence,
            "reasoning": self.primary.reasoning,
            "alternatives": [
                {"archetype": a.archetype.value, "confidence": a.confidence}
                for a in self.alternatives
            ],
        }


# ===== INTERVIEW =====

@dataclass
class QuestionOption:
    label: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass
class WizardQuestion:
    """A single D-I-G interview question."""

    id: str                            # "{prefix}-{phase}-{n}", e.g. "ff-dig-1"
    question: str
    phase: QuestionPhase
    hint: Optional[str] = None
    options: Optional[List[QuestionOption]] = None
    allow_free_text: bool = True

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "question": self.question,
            "phase": self.phase.value,
            "allowFreeText": self.allow_free_text,
        }
        if self.hint:
            result["hint"] = self.hint
        if self.options:
            result["options"] = [o.to_dict() for o in self.options]
        return result


@dataclass
class WizardAnswer:
    """
    A caller-supplied answer: selected options plus optional free text.

    Built through ``from_raw`` which tolerates malformed payloads.
    """

    selected: List[str] = field(default_factory=list)
    free_text: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "WizardAnswer":
        """
        Sanitize an untrusted answer payload.

        Non-list selections, non-string options and non-string free text are
        dropped rather than rejected.
        """
        if isinstance(raw, WizardAnswer):
            return raw
        if not isinstance(raw, dict):
            return cls()

        selected_raw = raw.get("selected")
        selected = (
            [s.strip() for s in selected_raw if isinstance(s, str) and s.strip()]
            if isinstance(selected_raw, list)
            else []
        )

        free_raw = raw.get("freeText", raw.get("free_text"))
        free_text = free_raw.strip() if isinstance(free_raw, str) and free_raw.strip() else None

        return cls(selected=selected, free_text=free_text)

    def combined(self) -> str:
        """Selected options and free text joined into one statement."""
        parts = list(self.selected)
        if self.free_text:
            parts.append(self.free_text)
        return ". ".join(parts)

    @property
    def is_empty(self) -> bool:
        return not self.selected and not self.free_text

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"selected": list(self.selected)}
        if self.free_text:
            result["freeText"] = self.free_text
        return result


@dataclass
class ExtractedContext:
    """Narrative facts derived from interview answers (per call only)."""

    real_story: Optional[str] = None
    key_decision: Optional[str] = None
    named_people: List[str] = field(default_factory=list)
    obstacle: Optional[str] = None
    counterfactual: Optional[str] = None
    metric: Optional[str] = None
    learning: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any([
            self.real_story, self.key_decision, self.named_people, self.obstacle,
            self.counterfactual, self.metric, self.learning,
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "real_story": self.real_story,
            "key_decision": self.key_decision,
            "named_people": list(self.named_people),
            "obstacle": self.obstacle,
            "counterfactual": self.counterfactual,
            "metric": self.metric,
            "learning": self.learning,
        }


# ===== ACTIVITY CONTEXT =====

@dataclass
class ActivityContext:
    """
    Prompt-ready projection of an ActivityRecord.

    Carries only normalized facts; the raw payload never leaves the adapter.
    """

    activity_id: str
    title: str
    date: str                          # YYYY-MM-DD or "unknown"
    source: str
    people: List[str] = field(default_factory=list)
    user_role: str = "mentioned"
    source_subtype: Optional[str] = None
    body: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    scope: Optional[str] = None        # e.g. "+120/-40, 6 files" or "45 min"
    container: Optional[str] = None
    state: Optional[str] = None
    linked_items: List[str] = field(default_factory=list)
    sentiment: Optional[str] = None    # e.g. "rocket:12, tada:8"
    is_routine: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.activity_id,
            "title": self.title,
            "date": self.date,
            "source": self.source,
            "people": list(self.people),
            "userRole": self.user_role,
        }
        optional = {
            "sourceSubtype": self.source_subtype,
            "body": self.body,
            "labels": self.labels or None,
            "scope": self.scope,
            "container": self.container,
            "state": self.state,
            "linkedItems": self.linked_items or None,
            "sentiment": self.sentiment,
            "isRoutine": self.is_routine or None,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        return result


@dataclass
class RankedActivity:
    activity: ActivityRecord
    context: ActivityContext
    score: float
    signals: List[str] = field(default_factory=list)


@dataclass
class KnownContext:
    """Facts already derivable from activities, so questions skip them."""

    date_range: Optional[str] = None
    collaborators: Optional[str] = None
    code_stats: Optional[str] = None
    tools: Optional[str] = None
    labels: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return any([self.date_range, self.collaborators, self.code_stats, self.tools, self.labels])

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "date_range": self.date_range,
            "collaborators": self.collaborators,
            "code_stats": self.code_stats,
            "tools": self.tools,
            "labels": self.labels,
        }


# ===== NARRATIVE =====

@dataclass
class EvidenceRef:
    """Evidence item declared by the narrative for one section."""

    activity_id: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        result: Dict[str, str] = {}
        if self.activity_id:
            result["activityId"] = self.activity_id
        if self.description:
            result["description"] = self.description
        return result


@dataclass
class StorySection:
    summary: str
    evidence: List[EvidenceRef] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "evidence": [e.to_dict() for e in self.evidence],
        }


@dataclass
class NarrativePhase:
    name: str
    summary: str = ""
    activity_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "summary": self.summary, "activityIds": list(self.activity_ids)}


@dataclass
class NarrativeResult:
    """
    Generated narrative. ``sections`` holds exactly the framework's keys,
    each with a non-empty summary.
    """

    title: str
    description: str
    full_content: str
    sections: Dict[str, StorySection]
    topics: List[str] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    impact_highlights: List[str] = field(default_factory=list)
    dominant_role: Optional[str] = None
    phases: List[NarrativePhase] = field(default_factory=list)
    used_fallback: bool = False


# ===== PERSISTED STORY =====

@dataclass
class StorySource:
    """A persisted link from a story section to its supporting evidence."""

    section_key: str
    source_type: SourceType
    activity_id: Optional[str] = None
    label: str = ""
    url: Optional[str] = None
    role: Optional[str] = None
    annotation: Optional[str] = None
    sort_order: int = 0

    def to_document(self, story_id: str) -> Dict[str, Any]:
        return {
            "story_id": story_id,
            "section_key": self.section_key,
            "source_type": self.source_type.value,
            "activity_id": self.activity_id,
            "label": self.label,
            "url": self.url,
            "role": self.role,
            "annotation": self.annotation,
            "sort_order": self.sort_order,
        }


@dataclass
class StoryEvaluation:
    """Deterministic, explainable story score in [1.0, 9.5]."""

    score: float
    breakdown: Dict[str, float] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)
    coach_comment: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "breakdown": dict(self.breakdown),
            "suggestions": list(self.suggestions),
            "coachComment": self.coach_comment,
        }


@dataclass
class CareerStory:
    """Story header created once per generate call."""

    id: str
    user_id: str
    journal_entry_id: str
    title: str
    hook: str
    framework: FrameworkName
    archetype: StoryArchetype
    sections: Dict[str, StorySection]
    category: Optional[str] = None
    wizard_answers: Dict[str, WizardAnswer] = field(default_factory=dict)
    score: Optional[float] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "user_id": self.user_id,
            "journal_entry_id": self.journal_entry_id,
            "title": self.title,
            "hook": self.hook,
            "framework": self.framework.value,
            "archetype": self.archetype.value,
            "category": self.category,
            "sections": {k: s.to_dict() for k, s in self.sections.items()},
            "wizard_answers": {k: a.to_dict() for k, a in self.wizard_answers.items()},
            "score": self.score,
            "created_at": self.created_at,
        }

    def to_dict(self) -> Dict[str, Any]:
        """API shape for the generate response."""
        return {
            "id": self.id,
            "title": self.title,
            "hook": self.hook,
            "framework": self.framework.value,
            "archetype": self.archetype.value,
            "sections": {k: s.to_dict() for k, s in self.sections.items()},
        }


# ===== OPERATION RESULTS =====

@dataclass
class AnalyzeResult:
    detection: ArchetypeDetection
    questions: List[WizardQuestion]
    journal_entry_id: str
    journal_entry_title: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "archetype": self.detection.to_dict(),
            "questions": [q.to_dict() for q in self.questions],
            "journalEntry": {"id": self.journal_entry_id, "title": self.journal_entry_title},
        }


@dataclass
class GenerateInput:
    """
    Caller re-supplied state for the second wizard step.

    ``answers`` is left raw (untrusted); archetype and framework are plain
    strings validated by the service.
    """

    journal_entry_id: str
    answers: Dict[str, Any]
    archetype: Any
    framework: Any


@dataclass
class GenerateResult:
    story: CareerStory
    evaluation: StoryEvaluation
    sources: List[StorySource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "story": self.story.to_dict(),
            "evaluation": self.evaluation.to_dict(),
        }
