"""
Context Extractor.

Maps wizard answers onto the narrative fields of ExtractedContext using
the D-I-G question id convention. Ids are matched by "{phase}-{ordinal}"
substring so dynamically generated ids ("ff-dig-1", "custom-impact-2")
route the same way as the static bank.

    dig-1     -> real_story
    dig-2     -> key_decision (+ named people)
    dig-3     -> obstacle
    impact-1  -> counterfactual
    impact-2  -> metric
    growth-*  -> learning
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.career_stories.types import ExtractedContext, WizardAnswer

logger = logging.getLogger(__name__)

QUESTION_SLOT = re.compile(r"(dig|impact|growth)-(\d+)")

# Capitalized words that are not names: sentence starters, pronouns and
# common past-tense verbs that open a sentence.
NAME_STOPLIST = {
    "The", "This", "That", "These", "Those", "There", "Then", "Than",
    "When", "What", "Where", "Which", "While", "Who", "Why", "How",
    "After", "Before", "During", "Once", "Since", "Until", "Because",
    "And", "But", "Or", "So", "If", "Also", "Just", "Only", "Even",
    "A", "An", "In", "On", "At", "To", "For", "From", "With", "By", "Of",
    "It", "Its", "He", "She", "We", "They", "You", "Me", "My", "Our",
    "His", "Her", "Their", "Your", "Us", "Them", "Everyone", "Nobody",
    "Worked", "Built", "Led", "Decided", "Asked", "Told", "Said", "Helped",
    "Found", "Fixed", "Shipped", "Created", "Designed", "Reviewed", "Met",
    "Called", "Paired", "Convinced", "Talked", "Pushed", "Proposed",
    "Yes", "No", "Not", "Some", "Most", "All", "Each", "Every",
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
}

TOKEN_PATTERN = re.compile(r"[A-Za-z][A-Za-z'\-]*|[^\sA-Za-z]")
NAME_TOKEN = re.compile(r"^[A-Z][a-z][A-Za-z\-]*$")


def _slot(question_id: str) -> Optional[Tuple[str, int]]:
    match = QUESTION_SLOT.search(question_id)
    if not match:
        return None
    return match.group(1), int(match.group(2))


def extract_named_people(text: str) -> List[str]:
    """
    Extract likely person names from free text.

    Consecutive capitalized tokens form one name ("Sarah Chen"). Stoplisted
    tokens and punctuation end a run; stoplisted tokens are dropped.
    Deduplicated case-sensitively, first occurrence order.

    Example:
        >>> extract_named_people("Worked with Sarah and Marcus on the project")
        ['Sarah', 'Marcus']
    """
    if not text:
        return []

    names: List[str] = []
    run: List[str] = []

    def flush():
        if run:
            name = " ".join(run)
            if name not in names:
                names.append(name)
            run.clear()

    for token in TOKEN_PATTERN.findall(text):
        if token.endswith("'s"):
            token = token[:-2]
        if NAME_TOKEN.match(token) and token not in NAME_STOPLIST:
            run.append(token)
        else:
            flush()
    flush()

    return names


def answers_to_context(answers: Mapping[str, Any]) -> ExtractedContext:
    """
    Convert raw wizard answers to ExtractedContext.

    Selected options and free text are joined with ". ". Malformed or empty
    answers are skipped. Unrecognized question ids are ignored.

    Args:
        answers: question id -> raw answer payload ({selected, freeText})

    Returns:
        ExtractedContext (fields left None when unanswered)
    """
    context = ExtractedContext()
    if not isinstance(answers, Mapping):
        logger.warning(f"Ignoring malformed answers payload: {type(answers).__name__}")
        return context

    for question_id, raw in answers.items():
        if not isinstance(question_id, str):
            continue
        combined = WizardAnswer.from_raw(raw).combined()
        if not combined:
            continue

        slot = _slot(question_id)
        if slot is None:
            logger.debug(f"Unmapped question id: {question_id}")
            continue

        phase, ordinal = slot
        if phase == "dig" and ordinal == 1:
            context.real_story = combined
        elif phase == "dig" and ordinal == 2:
            context.key_decision = combined
            context.named_people = extract_named_people(combined)
        elif phase == "dig" and ordinal == 3:
            context.obstacle = combined
        elif phase == "impact" and ordinal == 1:
            context.counterfactual = combined
        elif phase == "impact" and ordinal == 2:
            context.metric = combined
        elif phase == "growth":
            context.learning = combined

    return context


def sanitize_answers(answers: Any) -> Dict[str, WizardAnswer]:
    """Sanitized, non-empty answers keyed by question id (for persistence)."""
    if not isinstance(answers, Mapping):
        return {}
    result: Dict[str, WizardAnswer] = {}
    for question_id, raw in answers.items():
        if not isinstance(question_id, str):
            continue
        answer = WizardAnswer.from_raw(raw)
        if not answer.is_empty:
            result[question_id] = answer
    return result
