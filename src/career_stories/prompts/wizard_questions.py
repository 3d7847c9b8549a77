"""
Prompts for Dynamic Wizard Questions.

Generates 3 gap-targeted D-I-G questions (1 dig, 1 impact, 1 growth) from
the entry text, the detected archetype signals and the facts already known
from activities. The timeline, people and code scope are known, so the
questions go after what the user KNOWS but didn't WRITE.

Model tier: mini (short structured output)
"""

from typing import List, Optional, Tuple

from src.career_stories.types import ArchetypeSignals, KnownContext, StoryArchetype


WIZARD_QUESTIONS_SYSTEM_PROMPT = """You are a Story Coach who questions like Tim Ferriss deconstructs: skip the surface, find the non-obvious specific moment or tactic. You're designing interview questions for someone about a career achievement.

Your style:
- Direct but warm
- Curious, not judgmental
- You dig for specifics: names, numbers, moments
- You find the drama they didn't know was there

Your job: generate questions that pull out what they KNOW but didn't WRITE.

You MUST return valid JSON and nothing else.
"""

SIGNAL_LABELS: List[Tuple[str, str]] = [
    ("has_crisis", "crisis/urgency"),
    ("has_architecture", "system design/architecture"),
    ("has_stakeholders", "stakeholder management"),
    ("has_multiplication", "force multiplication/leverage"),
    ("has_mystery", "investigation/debugging"),
    ("has_pioneering", "pioneering/exploration"),
    ("has_turnaround", "turnaround/recovery"),
    ("has_prevention", "risk prevention"),
]

MAX_ENTRY_CHARS = 3000


def split_signals(signals: ArchetypeSignals) -> Tuple[List[str], List[str]]:
    """Partition signal labels into (present, missing)."""
    present, missing = [], []
    for attr, label in SIGNAL_LABELS:
        (present if getattr(signals, attr, False) else missing).append(label)
    return present, missing


def build_wizard_questions_user_prompt(
    archetype: StoryArchetype,
    archetype_reasoning: str,
    entry_title: str,
    entry_content: str,
    signals: ArchetypeSignals,
    question_id_prefix: str,
    known_context: Optional[KnownContext] = None,
) -> str:
    """
    Build the user prompt for dynamic question generation.

    Args:
        archetype: Detected (or chosen) archetype
        archetype_reasoning: Why the detector picked it
        entry_title: Journal entry title
        entry_content: Combined entry text
        signals: Heuristic signals from the detector
        question_id_prefix: Archetype id prefix ("ff", "ar", ...)
        known_context: Facts derived from activities (skipped when empty)

    Returns:
        Formatted user prompt string
    """
    present, missing = split_signals(signals)

    language_notes = []
    if not signals.has_role_language:
        language_notes.append("The entry never says what THEY personally did.")
    if not signals.has_discovery_language:
        language_notes.append("The entry doesn't say how the problem was discovered.")
    if not signals.has_outcome_language:
        language_notes.append("The entry has no measurable outcome.")
    language_text = "\n".join(f"- {n}" for n in language_notes) or "- None"

    known_text = ""
    if known_context is not None and known_context.has_data:
        lines = []
        if known_context.date_range:
            lines.append(f"Timeline: {known_context.date_range}")
        if known_context.collaborators:
            lines.append(f"Collaborators: {known_context.collaborators}")
        if known_context.code_stats:
            lines.append(f"Code scope: {known_context.code_stats}")
        if known_context.tools:
            lines.append(f"Tools: {known_context.tools}")
        if known_context.labels:
            lines.append(f"Labels: {known_context.labels}")
        known_text = (
            "\n=== ALREADY KNOWN FROM ACTIVITY DATA (do NOT ask about these) ===\n"
            + "\n".join(lines)
            + "\n"
        )

    content = (entry_content or "")[:MAX_ENTRY_CHARS]

    return f"""Design 3 interview questions for a {archetype.value.upper()} story.

=== ARCHETYPE ===
{archetype.value} ({archetype_reasoning or "no reasoning given"})

=== JOURNAL ENTRY ===
Title: {entry_title}
{content}

=== SIGNALS PRESENT ===
{", ".join(present) or "none"}

=== SIGNALS MISSING (target these gaps) ===
{", ".join(missing) or "none"}

=== WRITING GAPS ===
{language_text}
{known_text}
=== REQUIREMENTS ===
1. Exactly 3 questions: 1 "dig", 1 "impact", 1 "growth"
2. Each question targets something specific to THIS entry, not a generic prompt
3. Each has a short hint that nudges toward a name, number or moment
4. Ids MUST be "{question_id_prefix}-<phase>-1", e.g. "{question_id_prefix}-dig-1"

=== OUTPUT FORMAT ===
{{"questions": [
  {{"id": "{question_id_prefix}-dig-1", "phase": "dig", "question": "...", "hint": "..."}},
  {{"id": "{question_id_prefix}-impact-1", "phase": "impact", "question": "...", "hint": "..."}},
  {{"id": "{question_id_prefix}-growth-1", "phase": "growth", "question": "...", "hint": "..."}}
]}}
"""
