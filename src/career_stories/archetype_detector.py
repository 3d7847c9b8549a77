"""
Archetype Detector.

Classifies a journal entry into one of the 8 story archetypes using
keyword lexicons. The result is informational: it seeds the interview
questions and is shown to the user, who may pick a different archetype.

Scoring:
- Each lexicon term found in the entry text counts as one hit
- A prior archetype found in the entry's enrichment adds PRIOR_BONUS hits
- Confidence grows with hits and with the margin over the runner-up (max 0.95)
- No hits at all degrades to DEFAULT_ARCHETYPE at DEFAULT_CONFIDENCE

Usage:
    detector = ArchetypeDetector()
    detection = detector.detect(entry)
    detection.primary.archetype  # StoryArchetype.FIREFIGHTER
"""

import re
from typing import Dict, List, Optional, Tuple

from src.common.logger import get_logger
from src.career_stories.types import (
    ArchetypeCandidate,
    ArchetypeDetection,
    ArchetypeSignals,
    JournalEntry,
    StoryArchetype,
)


# Keyword lexicons per archetype. Multi-word terms are matched as phrases.
ARCHETYPE_LEXICONS: Dict[StoryArchetype, List[str]] = {
    StoryArchetype.FIREFIGHTER: [
        "incident", "outage", "urgent", "emergency", "hotfix", "on-call", "on call",
        "paged", "pager", "production down", "sev1", "sev-1", "p0", "rollback",
        "firefight", "crisis", "escalation", "downtime", "mitigated",
    ],
    StoryArchetype.ARCHITECT: [
        "architecture", "designed", "design doc", "system design", "scalable",
        "scalability", "infrastructure", "framework", "platform", "migration",
        "microservice", "schema", "refactor", "built", "foundation", "rfc",
    ],
    StoryArchetype.DIPLOMAT: [
        "stakeholder", "alignment", "aligned", "negotiated", "consensus",
        "cross-team", "cross-functional", "conflict", "disagreement", "mediated",
        "convinced", "buy-in", "compromise", "leadership", "product manager",
    ],
    StoryArchetype.MULTIPLIER: [
        "mentored", "mentoring", "taught", "onboarding", "documentation",
        "workshop", "enabled", "tooling", "reusable", "template", "shared library",
        "coached", "trained", "adopted by", "other teams", "force multiplier",
    ],
    StoryArchetype.DETECTIVE: [
        "root cause", "investigated", "investigation", "debugged", "debugging",
        "traced", "mystery", "intermittent", "flaky", "memory leak", "race condition",
        "profiling", "bisect", "couldn't figure out", "heisenbug", "diagnosed",
    ],
    StoryArchetype.PIONEER: [
        "prototype", "proof of concept", "poc", "first time", "new technology",
        "experiment", "explored", "research", "spike", "greenfield",
        "no documentation", "uncharted", "pilot", "evaluated", "from scratch",
    ],
    StoryArchetype.TURNAROUND: [
        "turned around", "turnaround", "inherited", "legacy", "tech debt",
        "technical debt", "rescued", "recovered", "cleanup", "clean up",
        "stabilized", "overhaul", "revived", "morale", "behind schedule",
    ],
    StoryArchetype.PREVENTER: [
        "prevented", "prevention", "risk", "vulnerability", "security review",
        "audit", "caught", "before it", "proactive", "proactively", "safeguard",
        "monitoring", "alerting", "compliance", "early warning", "would have",
    ],
}

# Signal attribute per archetype on ArchetypeSignals
SIGNAL_FIELDS: Dict[StoryArchetype, str] = {
    StoryArchetype.FIREFIGHTER: "has_crisis",
    StoryArchetype.ARCHITECT: "has_architecture",
    StoryArchetype.DIPLOMAT: "has_stakeholders",
    StoryArchetype.MULTIPLIER: "has_multiplication",
    StoryArchetype.DETECTIVE: "has_mystery",
    StoryArchetype.PIONEER: "has_pioneering",
    StoryArchetype.TURNAROUND: "has_turnaround",
    StoryArchetype.PREVENTER: "has_prevention",
}

ROLE_PATTERN = re.compile(
    r"\b(i led|i owned|i built|i designed|i drove|i was responsible|my team|i proposed|i decided)\b",
    re.IGNORECASE,
)
DISCOVERY_PATTERN = re.compile(
    r"\b(noticed|discovered|realized|found out|spotted|got paged|was alerted|flagged)\b",
    re.IGNORECASE,
)
OUTCOME_PATTERN = re.compile(
    r"(\d+%|\$[\d,]+|\b(reduced|increased|saved|improved|cut|shipped|launched|resulted in)\b)",
    re.IGNORECASE,
)


class ArchetypeDetector:
    """
    Keyword-based archetype classifier.

    Never raises on weak input: empty or unmatched text yields the default
    archetype with low confidence.
    """

    DEFAULT_ARCHETYPE = StoryArchetype.ARCHITECT
    DEFAULT_CONFIDENCE = 0.3
    MAX_CONFIDENCE = 0.95
    MAX_ALTERNATIVES = 3
    PRIOR_BONUS = 2

    def __init__(self):
        self._logger = get_logger(__name__, stage="archetype")

    def _count_hits(self, text_lower: str) -> Dict[StoryArchetype, List[str]]:
        """Find lexicon terms per archetype (word-bounded)."""
        matches: Dict[StoryArchetype, List[str]] = {}
        for archetype, terms in ARCHETYPE_LEXICONS.items():
            found = [
                term for term in terms
                if re.search(r"(?<![\w-])" + re.escape(term) + r"(?![\w-])", text_lower)
            ]
            matches[archetype] = found
        return matches

    def _prior_archetype(self, entry: JournalEntry) -> Optional[StoryArchetype]:
        raw = (entry.enrichment or {}).get("archetype")
        if not raw:
            return None
        try:
            return StoryArchetype(str(raw).lower())
        except ValueError:
            self._logger.debug(f"Ignoring unknown prior archetype: {raw}")
            return None

    def _build_signals(
        self,
        text: str,
        matches: Dict[StoryArchetype, List[str]],
    ) -> ArchetypeSignals:
        signals = ArchetypeSignals(
            has_role_language=bool(ROLE_PATTERN.search(text)),
            has_discovery_language=bool(DISCOVERY_PATTERN.search(text)),
            has_outcome_language=bool(OUTCOME_PATTERN.search(text)),
            matched_terms={a.value: terms for a, terms in matches.items() if terms},
        )
        for archetype, field_name in SIGNAL_FIELDS.items():
            setattr(signals, field_name, bool(matches.get(archetype)))
        return signals

    def _confidence(self, hits: int, margin: int) -> float:
        confidence = 0.4 + 0.08 * hits + 0.05 * margin
        return round(min(self.MAX_CONFIDENCE, confidence), 2)

    def detect(self, entry: JournalEntry) -> ArchetypeDetection:
        """
        Detect the primary archetype for an entry.

        Args:
            entry: Journal entry (title, description and body are analyzed)

        Returns:
            ArchetypeDetection with primary, up to 3 alternatives and signals
        """
        text = entry.combined_text
        matches = self._count_hits(text.lower())
        signals = self._build_signals(text, matches)

        scores: Dict[StoryArchetype, int] = {a: len(terms) for a, terms in matches.items()}
        prior = self._prior_archetype(entry)
        if prior is not None:
            scores[prior] += self.PRIOR_BONUS

        # Stable on ties: lexicon declaration order
        ranked: List[Tuple[StoryArchetype, int]] = sorted(
            scores.items(), key=lambda item: -item[1]
        )
        top_archetype, top_hits = ranked[0]

        if top_hits == 0:
            self._logger.info(
                f"No archetype signal found, defaulting to {self.DEFAULT_ARCHETYPE.value}"
            )
            return ArchetypeDetection(
                primary=ArchetypeCandidate(
                    archetype=self.DEFAULT_ARCHETYPE,
                    confidence=self.DEFAULT_CONFIDENCE,
                    reasoning="No strong archetype signals found; defaulting to architect.",
                ),
                alternatives=[],
                signals=signals,
            )

        runner_up_hits = ranked[1][1] if len(ranked) > 1 else 0
        confidence = self._confidence(top_hits, top_hits - runner_up_hits)

        reasons = matches[top_archetype][:4]
        reasoning = (
            f"Matched {top_archetype.value} signals: {', '.join(reasons)}"
            if reasons
            else f"Prior enrichment classified this entry as {top_archetype.value}"
        )
        if prior is not None and prior == top_archetype and reasons:
            reasoning += " (consistent with prior enrichment)"

        alternatives = [
            ArchetypeCandidate(
                archetype=archetype,
                confidence=round(confidence * hits / top_hits * 0.9, 2),
            )
            for archetype, hits in ranked[1:]
            if hits > 0
        ][: self.MAX_ALTERNATIVES]

        self._logger.info(
            f"Detected {top_archetype.value} (confidence {confidence}, "
            f"{len(alternatives)} alternatives)"
        )

        return ArchetypeDetection(
            primary=ArchetypeCandidate(
                archetype=top_archetype,
                confidence=confidence,
                reasoning=reasoning,
            ),
            alternatives=alternatives,
            signals=signals,
        )


def detect_archetype(entry: JournalEntry) -> ArchetypeDetection:
    """Convenience wrapper around ArchetypeDetector.detect()."""
    return ArchetypeDetector().detect(entry)
