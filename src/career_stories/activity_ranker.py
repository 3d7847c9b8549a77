"""
Activity Ranker Adapter.

Normalizes raw tool activities into prompt-safe ActivityContext records
and ranks them by story-worthiness, so the narrative prompt sees a bounded,
ordered subset instead of raw payloads.

Per-tool extractors: github, jira, slack, outlook, google-calendar,
google-docs, google-sheets. Any other tool (confluence, figma, ...) goes
through the default extractor (title, date, people).

Ranking signals (no LLM calls, read from ActivityContext only):
1. Role match: the acting user authored/organized/was assigned the activity
2. Recency relative to the newest activity in the set
3. Enrichment edge type (primary, outcome, supporting, contextual)
4. Rich body content
5. Code size
6. People involved
7. High-signal labels (security, incident, p0...)
8. Completion state
9. Reactions
10. Linked items
11. Routine meeting penalty

Usage:
    ranked = rank_activities(entry.activity_ids, activities, "alice", entry.enrichment)
    known = build_known_context(ranked)
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from src.career_stories.types import (
    ActivityContext,
    ActivityRecord,
    KnownContext,
    RankedActivity,
)

logger = logging.getLogger(__name__)

MAX_BODY_LENGTH = 500
DEFAULT_MAX_COUNT = 30
EXCLUDED_BRANCHES = {"main", "master", "develop"}

EDGE_SCORES: Dict[str, float] = {
    "primary": 3.0,
    "outcome": 2.5,
    "supporting": 1.5,
    "contextual": 0.5,
}
ROLE_MATCH_BONUS = 2.0
COMPLETED_STATES = {"merged", "Done", "Resolved"}
HIGH_SIGNAL_LABEL = re.compile(r"security|breaking|critical|urgent|p0|p1|hotfix|incident", re.IGNORECASE)
CODE_SCOPE = re.compile(r"\+(\d+)/-(\d+)")

# Credentials that must never reach a prompt
SECRET_PATTERNS = [
    re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----", re.DOTALL),
    re.compile(r"\bAKIA[0-9A-Z]{16}\b"),
    re.compile(r"\bgh[pousr]_[A-Za-z0-9]{20,}\b"),
    re.compile(r"\bxox[abprs]-[A-Za-z0-9-]{10,}\b"),
    re.compile(r"\bsk-[A-Za-z0-9_-]{20,}\b"),
    re.compile(r"\b[Bb]earer\s+[A-Za-z0-9._~+/=-]{16,}"),
    re.compile(r"\b(password|passwd|secret|api[_-]?key|token)\s*[:=]\s*\S+", re.IGNORECASE),
]
REDACTED = "[REDACTED]"


# ===== HELPERS =====

def strip_secrets(text: str) -> str:
    """Replace credential-looking substrings with a redaction marker."""
    for pattern in SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


def clean_body(text: Optional[str]) -> Optional[str]:
    """Secret-strip and truncate a body to MAX_BODY_LENGTH (+ ellipsis)."""
    if not text or not text.strip():
        return None
    cleaned = strip_secrets(text.strip())
    if len(cleaned) > MAX_BODY_LENGTH:
        return cleaned[:MAX_BODY_LENGTH] + "..."
    return cleaned


def collect_people(candidates: Iterable[Any], self_lower: str) -> List[str]:
    """Distinct people (case-insensitive), first spelling wins, acting user excluded."""
    seen = set()
    result = []
    for candidate in candidates:
        if not candidate or not isinstance(candidate, str):
            continue
        lower = candidate.lower()
        if lower == self_lower or lower in seen:
            continue
        seen.add(lower)
        result.append(candidate)
    return result


def _eq(value: Any, self_lower: str) -> bool:
    return isinstance(value, str) and bool(self_lower) and value.lower() == self_lower


def _includes(values: Any, self_lower: str) -> bool:
    return isinstance(values, list) and any(_eq(v, self_lower) for v in values)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _comment_body(raw: Dict[str, Any]) -> str:
    return "\n".join(
        f"{c.get('author') or 'unknown'}: {c.get('body') or ''}"
        for c in _as_list(raw.get("comments"))
        if isinstance(c, dict)
    )


def _comment_authors(raw: Dict[str, Any]) -> List[Any]:
    return [c.get("author") for c in _as_list(raw.get("comments")) if isinstance(c, dict)]


def _labels(raw: Dict[str, Any]) -> List[str]:
    return [str(label) for label in _as_list(raw.get("labels"))]


def _duration_scope(raw: Dict[str, Any]) -> Optional[str]:
    return f"{raw['duration']} min" if raw.get("duration") else None


def _format_date(timestamp: Optional[datetime]) -> str:
    return timestamp.date().isoformat() if timestamp else "unknown"


def _utc(timestamp: Optional[datetime]) -> Optional[datetime]:
    # Mongo hands back naive UTC datetimes
    if timestamp is not None and timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


# ===== PER-TOOL EXTRACTORS =====

def _extract_github(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    is_commit = not raw.get("number") and bool(raw.get("sha") or raw.get("message"))

    body = raw.get("body") or ""
    comments = [c.get("body") or "" for c in _as_list(raw.get("comments")) if isinstance(c, dict)]
    if comments:
        body += "\n" + "\n".join(comments)
    if not body and raw.get("message"):
        body = raw["message"]

    scope = None
    if raw.get("additions") is not None or raw.get("deletions") is not None:
        files = raw.get("changedFiles") or raw.get("filesChanged") or "?"
        scope = f"+{raw.get('additions') or 0}/-{raw.get('deletions') or 0}, {files} files"

    head_ref = raw.get("headRef")
    container = head_ref if isinstance(head_ref, str) and head_ref not in EXCLUDED_BRANCHES else None

    if _eq(raw.get("author"), me):
        role = "authored"
    elif _includes(raw.get("reviewers"), me):
        role = "reviewed"
    else:
        role = "mentioned"

    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source="github",
        source_subtype="commit" if is_commit else "pr",
        people=collect_people(
            [raw.get("author"), *_as_list(raw.get("reviewers")),
             *_as_list(raw.get("requestedReviewers")), *_as_list(raw.get("mentions"))],
            me,
        ),
        user_role=role,
        body=clean_body(body),
        labels=_labels(raw),
        scope=scope,
        container=container,
        state=raw.get("state"),
    )


def _extract_jira(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    if _eq(raw.get("assignee"), me):
        role = "assigned"
    elif _eq(raw.get("reporter"), me):
        role = "reported"
    elif _includes(raw.get("mentions"), me):
        role = "mentioned"
    else:
        role = "watched"

    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source="jira",
        source_subtype="issue",
        people=collect_people(
            [raw.get("assignee"), raw.get("reporter"), *_as_list(raw.get("watchers")),
             *_as_list(raw.get("mentions")), *_comment_authors(raw)],
            me,
        ),
        user_role=role,
        body=clean_body(_comment_body(raw)),
        labels=_labels(raw),
        scope=f"{raw['storyPoints']} story points" if raw.get("storyPoints") else None,
        state=raw.get("status"),
        linked_items=[str(i) for i in _as_list(raw.get("linkedIssues"))],
    )


def _extract_slack(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    reactions = [r for r in _as_list(raw.get("reactions")) if isinstance(r, dict)]
    sentiment = ", ".join(f"{r.get('name')}:{r.get('count', 0)}" for r in reactions) or None
    authored = _eq(raw.get("parentAuthor"), me) or _eq(raw.get("author"), me)

    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source="slack",
        source_subtype="thread",
        people=collect_people(
            [raw.get("parentAuthor"), raw.get("replyAuthor"), raw.get("author"),
             *_as_list(raw.get("mentions"))],
            me,
        ),
        user_role="authored" if authored else "mentioned",
        body=clean_body(raw.get("text")),
        container=raw.get("threadTs") or raw.get("thread_ts") or raw.get("channel"),
        sentiment=sentiment,
    )


def _extract_outlook(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    authored = _eq(raw.get("from"), me) or _eq(raw.get("organizer"), me)
    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source="outlook",
        source_subtype="email" if raw.get("from") else "meeting",
        people=collect_people(
            [raw.get("from"), raw.get("organizer"), *_as_list(raw.get("to")),
             *_as_list(raw.get("cc")), *_as_list(raw.get("attendees"))],
            me,
        ),
        user_role="organized" if _eq(raw.get("organizer"), me) else ("authored" if authored else "attended"),
        body=clean_body(raw.get("subject")),
        scope=_duration_scope(raw),
    )


def _extract_google_calendar(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source="google-calendar",
        source_subtype="meeting",
        people=collect_people([raw.get("organizer"), *_as_list(raw.get("attendees"))], me),
        user_role="organized" if _eq(raw.get("organizer"), me) else "attended",
        scope=_duration_scope(raw),
        is_routine=raw.get("recurring") is True,
    )


def _extract_google_docs(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    if _eq(raw.get("owner"), me):
        role = "authored"
    elif _includes(raw.get("contributors"), me):
        role = "contributed"
    else:
        role = "mentioned"

    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source="google-docs",
        source_subtype="document",
        people=collect_people(
            [raw.get("owner"), raw.get("lastModifiedBy"), *_as_list(raw.get("contributors")),
             *_as_list(raw.get("suggestedEditors")), *_comment_authors(raw)],
            me,
        ),
        user_role=role,
        body=clean_body(_comment_body(raw)),
    )


def _extract_google_sheets(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    sheets = _as_list(raw.get("sheets"))
    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source="google-sheets",
        source_subtype="spreadsheet",
        people=collect_people(
            [raw.get("owner"), raw.get("lastModifiedBy"), *_as_list(raw.get("mentions")),
             *_comment_authors(raw)],
            me,
        ),
        user_role="authored" if _eq(raw.get("owner"), me) else "mentioned",
        body=clean_body(_comment_body(raw)),
        scope=f"{len(sheets)} sheets" if sheets else None,
    )


def _extract_default(act: ActivityRecord, raw: Dict[str, Any], me: str, date: str) -> ActivityContext:
    owner_fields = ("owner", "creator", "organizer", "author")
    authored = any(_eq(raw.get(f), me) for f in owner_fields)
    return ActivityContext(
        activity_id=act.id,
        title=act.title,
        date=date,
        source=act.source or "unknown",
        people=collect_people(
            [raw.get("owner"), raw.get("creator"), raw.get("organizer"),
             raw.get("lastModifiedBy"), raw.get("author"),
             *_as_list(raw.get("attendees")), *_as_list(raw.get("participants")),
             *_as_list(raw.get("sharedWith")), *_as_list(raw.get("watchers")),
             *_as_list(raw.get("editors")), *_as_list(raw.get("commenters"))],
            me,
        ),
        user_role="authored" if authored else "mentioned",
        scope=_duration_scope(raw),
        is_routine=raw.get("recurring") is True,
    )


EXTRACTORS: Dict[str, Callable[[ActivityRecord, Dict[str, Any], str, str], ActivityContext]] = {
    "github": _extract_github,
    "jira": _extract_jira,
    "slack": _extract_slack,
    "outlook": _extract_outlook,
    "google-calendar": _extract_google_calendar,
    "google-docs": _extract_google_docs,
    "google-sheets": _extract_google_sheets,
}

# Roles meaning the acting user drove the activity
OWNING_ROLES = {"authored", "assigned", "organized"}


# ===== PUBLIC API =====

def to_activity_context(activity: ActivityRecord, self_identifier: Optional[str]) -> ActivityContext:
    """
    Project a raw activity into a prompt-safe ActivityContext.

    Args:
        activity: Raw activity record
        self_identifier: Acting user's handle/email (matched case-insensitively)

    Returns:
        ActivityContext without any raw payload fields
    """
    raw = activity.raw_data if isinstance(activity.raw_data, dict) else {}
    source = (activity.source or "unknown").lower()
    me = (self_identifier or "").lower()
    extractor = EXTRACTORS.get(source, _extract_default)
    return extractor(activity, raw, me, _format_date(activity.timestamp))


def _score(
    activity: ActivityRecord,
    ctx: ActivityContext,
    edges: Dict[str, str],
    newest: Optional[datetime],
) -> RankedActivity:
    score = 0.0
    signals: List[str] = []

    if ctx.user_role in OWNING_ROLES:
        score += ROLE_MATCH_BONUS
        signals.append(f"role:{ctx.user_role}")

    if newest is not None and activity.timestamp is not None:
        age_days = (newest - _utc(activity.timestamp)).days
        if age_days <= 30:
            score += 1.0
            signals.append("recent:30d")
        elif age_days <= 90:
            score += 0.5
            signals.append("recent:90d")

    edge_type = edges.get(activity.id)
    if edge_type:
        score += EDGE_SCORES.get(edge_type, 1.0)
        signals.append(f"edge:{edge_type}")
    else:
        score += 1.0

    if ctx.body and len(ctx.body) > 50:
        score += 2.0
        signals.append(f"body:{len(ctx.body)}chars")

    scope_match = CODE_SCOPE.search(ctx.scope or "")
    code_size = int(scope_match.group(1)) + int(scope_match.group(2)) if scope_match else 0
    if code_size > 200:
        score += 1.5
        signals.append(f"code:{code_size}")
    elif code_size > 50:
        score += 0.5
        signals.append(f"code:{code_size}")

    if len(ctx.people) >= 3:
        score += 1.5
        signals.append(f"people:{len(ctx.people)}")
    elif ctx.people:
        score += 0.5
        signals.append(f"people:{len(ctx.people)}")

    high_labels = [label for label in ctx.labels if HIGH_SIGNAL_LABEL.search(label)]
    if high_labels:
        score += 1.0
        signals.append(f"labels:{','.join(high_labels)}")

    if ctx.state in COMPLETED_STATES:
        score += 0.5
        signals.append("completed")

    if ctx.sentiment:
        total = 0
        for pair in ctx.sentiment.split(", "):
            count = pair.rpartition(":")[2]
            total += int(count) if count.isdigit() else 0
        if total >= 10:
            score += 1.0
            signals.append(f"reactions:{total}")
        elif total >= 3:
            score += 0.5
            signals.append(f"reactions:{total}")

    if ctx.linked_items:
        score += 0.5
        signals.append(f"linked:{len(ctx.linked_items)}")

    if ctx.is_routine:
        score -= 1.0
        signals.append("routine:-1")

    return RankedActivity(activity=activity, context=ctx, score=score, signals=signals)


def _edge_types(enrichment: Optional[Dict[str, Any]]) -> Dict[str, str]:
    edges: Dict[str, str] = {}
    for edge in _as_list((enrichment or {}).get("activityEdges")):
        if isinstance(edge, dict) and edge.get("activityId") and edge.get("type"):
            edges.setdefault(str(edge["activityId"]), str(edge["type"]))
    return edges


def rank_activities(
    activity_ids: List[str],
    activities: List[ActivityRecord],
    self_identifier: Optional[str],
    enrichment: Optional[Dict[str, Any]] = None,
    max_count: int = DEFAULT_MAX_COUNT,
) -> List[RankedActivity]:
    """
    Rank the entry's activities by story-worthiness and keep the top N.

    Activities whose id is not in ``activity_ids`` are ignored. Ties keep
    the newer activity first.

    Args:
        activity_ids: The entry's activity ids
        activities: Fetched activity records
        self_identifier: Acting user's handle/email
        enrichment: Prior enrichment (may carry activityEdges)
        max_count: Cap on returned activities

    Returns:
        Ranked activities, highest score first
    """
    allowed = set(activity_ids)
    seen = set()
    candidates = []
    for activity in activities:
        if activity.id in allowed and activity.id not in seen:
            seen.add(activity.id)
            candidates.append(activity)

    timestamps = [_utc(a.timestamp) for a in candidates if a.timestamp is not None]
    newest = max(timestamps) if timestamps else None
    edges = _edge_types(enrichment)

    scored = [
        _score(activity, to_activity_context(activity, self_identifier), edges, newest)
        for activity in candidates
    ]

    # Newest first, then a stable sort on score keeps recency as the tiebreaker
    scored.sort(
        key=lambda r: _utc(r.activity.timestamp).timestamp() if r.activity.timestamp else float("-inf"),
        reverse=True,
    )
    scored.sort(key=lambda r: r.score, reverse=True)

    if len(scored) > max_count:
        logger.debug(f"Capping ranked activities at {max_count} (of {len(scored)})")

    return scored[:max_count]


def build_known_context(ranked: List[RankedActivity]) -> KnownContext:
    """
    Aggregate facts already derivable from activities.

    Returns primitives only (date span, collaborators, code stats, tools,
    labels) so question generation can skip asking about them.
    """
    if not ranked:
        return KnownContext()

    dates = sorted(r.context.date for r in ranked if r.context.date != "unknown")
    date_range = None
    if dates:
        date_range = dates[0] if dates[0] == dates[-1] else f"{dates[0]} to {dates[-1]}"

    people = collect_people((p for r in ranked for p in r.context.people), "")
    collaborators = None
    if people:
        collaborators = ", ".join(people[:8])
        if len(people) > 8:
            collaborators += f" (+{len(people) - 8} more)"

    additions = deletions = 0
    changes = 0
    for r in ranked:
        match = CODE_SCOPE.search(r.context.scope or "")
        if match:
            additions += int(match.group(1))
            deletions += int(match.group(2))
            changes += 1
    code_stats = f"+{additions}/-{deletions} across {changes} changes" if changes else None

    tools = sorted({r.context.source for r in ranked})
    labels = []
    for r in ranked:
        for label in r.context.labels:
            if label not in labels:
                labels.append(label)

    return KnownContext(
        date_range=date_range,
        collaborators=collaborators,
        code_stats=code_stats,
        tools=", ".join(tools) if tools else None,
        labels=", ".join(labels[:10]) if labels else None,
    )
