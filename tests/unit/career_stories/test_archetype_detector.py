"""
Unit tests for src/career_stories/archetype_detector.py
"""

import pytest

from src.career_stories.archetype_detector import ArchetypeDetector, detect_archetype
from src.career_stories.types import JournalEntry, StoryArchetype

from tests.unit.career_stories.fakes import make_entry


def _entry(text: str, enrichment=None) -> JournalEntry:
    return JournalEntry(id="e1", user_id="u1", title="", full_content=text, enrichment=enrichment or {})


class TestDetection:
    """Tests for primary archetype selection."""

    def test_detects_firefighter(self):
        """Incident language should classify as firefighter."""
        detection = detect_archetype(make_entry())
        assert detection.primary.archetype == StoryArchetype.FIREFIGHTER
        assert detection.primary.confidence == 0.87
        assert "incident" in detection.primary.reasoning

    def test_detects_detective(self):
        """Investigation language should classify as detective."""
        detection = detect_archetype(_entry(
            "Investigated an intermittent, flaky test failure. Traced the root cause "
            "to a race condition after days of debugging."
        ))
        assert detection.primary.archetype == StoryArchetype.DETECTIVE

    def test_detects_multiplier(self):
        """Mentoring and reuse language should classify as multiplier."""
        detection = detect_archetype(_entry(
            "Mentored three juniors, ran a workshop and wrote onboarding documentation "
            "that was adopted by other teams."
        ))
        assert detection.primary.archetype == StoryArchetype.MULTIPLIER

    @pytest.mark.parametrize("text", ["", "Had lunch and went home."])
    def test_defaults_to_architect_without_signals(self, text):
        """No signals should yield architect at 0.3 with no alternatives."""
        detection = detect_archetype(_entry(text))
        assert detection.primary.archetype == StoryArchetype.ARCHITECT
        assert detection.primary.confidence == 0.3
        assert detection.alternatives == []
        assert "defaulting to architect" in detection.primary.reasoning

    def test_prior_enrichment_breaks_tie(self):
        """A prior archetype from enrichment should add weight."""
        text = "Fixed an outage. Investigated the logs."
        without_prior = detect_archetype(_entry(text))
        with_prior = detect_archetype(_entry(text, enrichment={"archetype": "detective"}))
        assert without_prior.primary.archetype == StoryArchetype.FIREFIGHTER
        assert with_prior.primary.archetype == StoryArchetype.DETECTIVE

    def test_unknown_prior_is_ignored(self):
        """An unknown prior archetype should not raise."""
        detection = detect_archetype(_entry("Quiet week.", enrichment={"archetype": "wizard"}))
        assert detection.primary.archetype == StoryArchetype.ARCHITECT

    def test_word_boundaries(self):
        """Terms embedded in longer words should not match."""
        detection = detect_archetype(_entry("The poc-free riskiness was fine."))
        assert "risk" not in detection.signals.matched_terms.get("preventer", [])


class TestConfidenceAndAlternatives:
    """Tests for confidence bounds and alternatives."""

    def test_confidence_capped(self):
        """Confidence should never exceed 0.95."""
        text = " ".join([
            "incident outage urgent emergency hotfix on-call paged pager sev1",
            "p0 rollback crisis escalation downtime mitigated",
        ])
        detection = detect_archetype(_entry(text))
        assert detection.primary.confidence == ArchetypeDetector.MAX_CONFIDENCE

    def test_alternatives_bounded_and_below_primary(self):
        """At most 3 alternatives, each less confident than the primary."""
        detection = detect_archetype(_entry(
            "Incident outage hotfix paged. Designed the architecture. Mentored the team. "
            "Investigated the root cause. Built a prototype. Prevented a vulnerability."
        ))
        assert len(detection.alternatives) <= 3
        for alt in detection.alternatives:
            assert alt.archetype != detection.primary.archetype
            assert 0 <= alt.confidence < detection.primary.confidence

    def test_to_dict_shape(self):
        """Should serialize to the analyze response shape."""
        payload = detect_archetype(make_entry()).to_dict()
        assert payload["detected"] == "firefighter"
        assert set(payload) == {"detected", "confidence", "reasoning", "alternatives"}
        for alt in payload["alternatives"]:
            assert set(alt) == {"archetype", "confidence"}


class TestSignals:
    """Tests for reusable signals."""

    def test_signals_for_firefighter_entry(self):
        """Should flag crisis, role, discovery and outcome language."""
        signals = detect_archetype(make_entry()).signals
        assert signals.has_crisis is True
        assert signals.has_role_language is True
        assert signals.has_discovery_language is True
        assert signals.has_outcome_language is True
        assert signals.has_stakeholders is False

    def test_matched_terms_only_for_hits(self):
        """matched_terms should only list archetypes with hits."""
        signals = detect_archetype(make_entry()).signals
        assert "firefighter" in signals.matched_terms
        assert "diplomat" not in signals.matched_terms
