"""
Unit tests for src/career_stories/types.py and errors.py
"""

import pytest

from src.career_stories.errors import WizardError
from src.career_stories.types import (
    ARCHETYPE_PREFIXES,
    FRAMEWORK_SECTIONS,
    FrameworkName,
    JournalEntry,
    StoryArchetype,
    WizardAnswer,
    WizardQuestion,
    QuestionPhase,
    parse_archetype,
    parse_framework,
)


class TestTaxonomies:
    """Tests for the closed archetype/framework tables."""

    def test_every_framework_has_sections(self):
        """Every framework should map to a non-empty ordered key list."""
        assert set(FRAMEWORK_SECTIONS) == set(FrameworkName)
        for keys in FRAMEWORK_SECTIONS.values():
            assert keys
            assert len(keys) == len(set(keys))

    def test_star_sections(self):
        """STAR should be situation, task, action, result."""
        assert FRAMEWORK_SECTIONS[FrameworkName.STAR] == ["situation", "task", "action", "result"]

    def test_share_sections(self):
        """SHARE should include hindrances and evaluation."""
        assert FRAMEWORK_SECTIONS[FrameworkName.SHARE] == [
            "situation", "hindrances", "actions", "results", "evaluation",
        ]

    def test_every_archetype_has_unique_prefix(self):
        """Question id prefixes should be unique per archetype."""
        assert set(ARCHETYPE_PREFIXES) == set(StoryArchetype)
        assert len(set(ARCHETYPE_PREFIXES.values())) == len(StoryArchetype)


class TestParsing:
    """Tests for caller-supplied enum validation."""

    def test_parse_archetype_case_insensitive(self):
        """Should accept archetypes regardless of case."""
        assert parse_archetype("Firefighter") == StoryArchetype.FIREFIGHTER

    def test_parse_framework_case_insensitive(self):
        """Should accept framework names regardless of case."""
        assert parse_framework("starl") == FrameworkName.STARL

    def test_parse_archetype_rejects_unknown(self):
        """Should raise INVALID_ARCHETYPE for values outside the set."""
        with pytest.raises(WizardError) as exc_info:
            parse_archetype("hero")
        assert exc_info.value.code == "INVALID_ARCHETYPE"
        assert exc_info.value.status_code == 400

    def test_parse_framework_rejects_unknown(self):
        """Should raise INVALID_FRAMEWORK for values outside the set."""
        with pytest.raises(WizardError) as exc_info:
            parse_framework("XYZ")
        assert exc_info.value.code == "INVALID_FRAMEWORK"

    def test_parse_framework_rejects_none(self):
        """Should reject a missing framework."""
        with pytest.raises(WizardError):
            parse_framework(None)


class TestWizardError:
    """Tests for the wizard error type."""

    def test_status_codes(self):
        """Should map codes to HTTP statuses."""
        assert WizardError("x", "ENTRY_NOT_FOUND").status_code == 404
        assert WizardError("x", "INSUFFICIENT_CONTENT").status_code == 400

    def test_to_dict(self):
        """Should expose message and code."""
        error = WizardError("Journal entry not found", "ENTRY_NOT_FOUND")
        assert error.to_dict() == {"error": "Journal entry not found", "code": "ENTRY_NOT_FOUND"}


class TestJournalEntry:
    """Tests for JournalEntry helpers."""

    def test_content_length_includes_title(self):
        """Should count title, description and full content."""
        entry = JournalEntry(id="e", user_id="u", title="abc", description="de", full_content="f")
        assert entry.content_length == 6

    def test_display_title_defaults(self):
        """Should fall back to 'Untitled'."""
        assert JournalEntry(id="e", user_id="u").display_title == "Untitled"

    def test_from_document(self):
        """Should build from a stored document, stringifying ids."""
        entry = JournalEntry.from_document({
            "_id": 123,
            "user_id": "alice",
            "title": "T",
            "activity_ids": [1, "b"],
        })
        assert entry.id == "123"
        assert entry.activity_ids == ["1", "b"]
        assert entry.enrichment == {}


class TestWizardAnswer:
    """Tests for answer sanitization."""

    def test_from_raw_accepts_camel_case(self):
        """Should read freeText and selected."""
        answer = WizardAnswer.from_raw({"selected": ["A", " "], "freeText": "  text "})
        assert answer.selected == ["A"]
        assert answer.free_text == "text"

    def test_from_raw_drops_malformed(self):
        """Should drop non-list selections and non-string free text."""
        answer = WizardAnswer.from_raw({"selected": "A", "freeText": 42})
        assert answer.is_empty

    def test_from_raw_non_dict(self):
        """Should return an empty answer for non-dict payloads."""
        assert WizardAnswer.from_raw("oops").is_empty

    def test_combined_joins_with_period(self):
        """Should join selections and free text with '. '."""
        answer = WizardAnswer(selected=["Got paged/alerted"], free_text="At 2am")
        assert answer.combined() == "Got paged/alerted. At 2am"


class TestWizardQuestion:
    """Tests for question serialization."""

    def test_to_dict_omits_empty_optionals(self):
        """Should leave out hint and options when unset."""
        question = WizardQuestion(id="ff-dig-1", question="Q?", phase=QuestionPhase.DIG)
        assert question.to_dict() == {
            "id": "ff-dig-1",
            "question": "Q?",
            "phase": "dig",
            "allowFreeText": True,
        }
