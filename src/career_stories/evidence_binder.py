"""
Evidence Binder.

Reconciles the evidence a narrative declares with the entry's real
activities and produces the StorySource rows persisted with a story.

Strategies, in priority order:
1. Direct: declared activity ids that exist in the activity set
2. Redistribution: nothing resolved but activities exist, so spread all
   activities over the sections (generator descriptions kept on the first
   item of each bucket)
3. Skeleton: still nothing, so spread the entry's bare activity ids with
   empty labels

Sections left without an activity row after direct resolution are topped
up from the activity set, so a story with activities cites something in
every section. Independently, every non-empty wizard answer becomes one
wizard_answer row on the section it informs.

All functions are pure.
"""

import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from src.career_stories.types import (
    ActivityRecord,
    EvidenceRef,
    NarrativeResult,
    SourceType,
    StorySection,
    StorySource,
    WizardAnswer,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUESTION_SLOT = re.compile(r"(dig|impact|growth)-(\d+)")
MAX_ANNOTATION_LENGTH = 500


# ===== PURE HELPERS =====

def distribute_round_robin(section_keys: Sequence[str], items: Sequence[T]) -> List[Tuple[str, T, bool]]:
    """
    Assign items to sections in contiguous buckets.

    Bucket size is ceil(len(items) / len(section_keys)), at least 1. When
    there are fewer items than sections the items wrap around, so every
    section gets one.

    Returns:
        (section_key, item, is_first_in_bucket) triples in section order

    Example:
        >>> distribute_round_robin(["a", "b"], [1, 2, 3])
        [('a', 1, True), ('a', 2, False), ('b', 3, True)]
    """
    if not section_keys or not items:
        return []

    size = max(1, math.ceil(len(items) / len(section_keys)))
    assignment: List[Tuple[str, T, bool]] = []
    for index, key in enumerate(section_keys):
        bucket = list(items[index * size:(index + 1) * size])
        if not bucket:
            bucket = [items[index % len(items)]]
        for position, item in enumerate(bucket):
            assignment.append((key, item, position == 0))
    return assignment


def detect_role(raw: Optional[Mapping[str, Any]]) -> str:
    """
    Heuristic role of the user in an activity, first match wins:
    author, approval marker, reviewers, assignee, reporter, else mentioned.
    """
    if not isinstance(raw, Mapping):
        return "mentioned"
    if raw.get("author"):
        return "authored"
    if (
        raw.get("approved") is True
        or str(raw.get("state") or "").upper() == "APPROVED"
        or str(raw.get("reviewDecision") or "").upper() == "APPROVED"
    ):
        return "approved"
    if raw.get("reviewers"):
        return "reviewed"
    if raw.get("assignee"):
        return "assigned"
    if raw.get("reporter"):
        return "reported"
    return "mentioned"


def _find_key(keys: Sequence[str], needles: Sequence[str]) -> Optional[str]:
    for key in keys:
        if any(n in key for n in needles):
            return key
    return None


def section_for_answer(question_id: str, section_keys: Sequence[str]) -> str:
    """
    Section a wizard answer most naturally informs.

    dig-1 -> first section, dig-2 -> action-like, dig-3 -> obstacle-like
    (else first), impact -> result-like, growth -> learning-like (else
    result-like). Unrecognized ids go to the first section.
    """
    first = section_keys[0]
    action = _find_key(section_keys, ["action"]) or (section_keys[1] if len(section_keys) > 1 else first)
    result = _find_key(section_keys, ["result"]) or section_keys[-1]
    obstacle = _find_key(section_keys, ["obstacle", "hindrance"]) or first
    learning = _find_key(section_keys, ["learning", "evaluation"]) or result

    match = QUESTION_SLOT.search(question_id)
    if not match:
        return first
    phase, ordinal = match.group(1), int(match.group(2))
    if phase == "dig":
        return {1: first, 2: action, 3: obstacle}.get(ordinal, first)
    if phase == "impact":
        return result
    return learning


def _activity_row(
    key: str,
    activity: ActivityRecord,
    annotation: Optional[str],
    sort_order: int,
) -> StorySource:
    return StorySource(
        section_key=key,
        source_type=SourceType.ACTIVITY,
        activity_id=activity.id,
        label=activity.title,
        url=activity.url,
        role=detect_role(activity.raw_data),
        annotation=annotation,
        sort_order=sort_order,
    )


class _RowBuilder:
    """Tracks per-section sort order while rows are appended."""

    def __init__(self):
        self.rows: List[StorySource] = []
        self._next: Dict[str, int] = {}

    def next_order(self, key: str) -> int:
        order = self._next.get(key, 0)
        self._next[key] = order + 1
        return order

    def add(self, row: StorySource) -> None:
        self.rows.append(row)

    def sections_with_activity(self) -> set:
        return {r.section_key for r in self.rows if r.source_type == SourceType.ACTIVITY}


# ===== BINDING =====

def bind(
    narrative: NarrativeResult,
    section_keys: Sequence[str],
    activities: Sequence[ActivityRecord],
    entry_activity_ids: Sequence[str],
    answers: Optional[Mapping[str, WizardAnswer]] = None,
) -> List[StorySource]:
    """
    Produce the evidence rows for a story.

    Args:
        narrative: Generated narrative (declared evidence per section)
        section_keys: Framework section keys, in order
        activities: Fetched activities (already restricted to the entry)
        entry_activity_ids: The entry's activity ids
        answers: Sanitized wizard answers keyed by question id

    Returns:
        StorySource rows; every activity_id is one of entry_activity_ids
    """
    allowed = set(entry_activity_ids)
    by_id: Dict[str, ActivityRecord] = {a.id: a for a in activities if a.id in allowed}
    ordered = [a for a in activities if a.id in by_id]
    builder = _RowBuilder()

    # 1. Direct resolution
    for key in section_keys:
        section = narrative.sections.get(key)
        seen = set()
        for ref in (section.evidence if section else []):
            activity = by_id.get(ref.activity_id) if ref.activity_id else None
            if activity is None or activity.id in seen:
                continue
            seen.add(activity.id)
            builder.add(_activity_row(key, activity, ref.description, builder.next_order(key)))

    resolved = len(builder.rows)

    if resolved == 0 and ordered:
        # 2. Redistribution
        logger.info(f"No declared evidence resolved; redistributing {len(ordered)} activities")
        for key, activity, is_first in distribute_round_robin(section_keys, ordered):
            annotation = None
            section = narrative.sections.get(key)
            if is_first and section is not None:
                annotation = next((e.description for e in section.evidence if e.description), None)
            builder.add(_activity_row(key, activity, annotation, builder.next_order(key)))
    elif ordered:
        # Top up sections the narrative left without evidence
        missing = [k for k in section_keys if k not in builder.sections_with_activity()]
        if missing:
            logger.debug(f"Filling evidence gaps in sections: {', '.join(missing)}")
            for key, activity, _ in distribute_round_robin(missing, ordered):
                builder.add(_activity_row(key, activity, None, builder.next_order(key)))

    if not builder.rows and entry_activity_ids:
        # 3. Skeleton
        logger.info(f"Emitting skeleton evidence for {len(entry_activity_ids)} activity ids")
        unique_ids = list(dict.fromkeys(entry_activity_ids))
        for key, activity_id, _ in distribute_round_robin(section_keys, unique_ids):
            builder.add(
                StorySource(
                    section_key=key,
                    source_type=SourceType.ACTIVITY,
                    activity_id=activity_id,
                    label="",
                    sort_order=builder.next_order(key),
                )
            )

    # 4. Answer evidence
    for question_id, answer in (answers or {}).items():
        text = answer.combined()
        if not text:
            continue
        key = section_for_answer(question_id, section_keys)
        builder.add(
            StorySource(
                section_key=key,
                source_type=SourceType.WIZARD_ANSWER,
                label=question_id,
                annotation=text[:MAX_ANNOTATION_LENGTH],
                sort_order=builder.next_order(key),
            )
        )

    return builder.rows


def sections_with_evidence(
    sections: Mapping[str, StorySection],
    section_keys: Sequence[str],
    sources: Sequence[StorySource],
) -> Dict[str, StorySection]:
    """
    Rebuild section evidence from bound activity rows.

    Summaries are kept; evidence becomes the resolved activity rows so the
    returned story never cites an id outside the entry's activity set.
    """
    result: Dict[str, StorySection] = {}
    for key in section_keys:
        rows = sorted(
            (s for s in sources if s.section_key == key and s.source_type == SourceType.ACTIVITY),
            key=lambda s: s.sort_order,
        )
        result[key] = StorySection(
            summary=sections[key].summary,
            evidence=[EvidenceRef(activity_id=r.activity_id, description=r.annotation) for r in rows],
        )
    return result
