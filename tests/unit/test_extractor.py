"""Tests for keyword-based project attribute extraction."""

from citywise.core.types import ProjectType, RawIntake, TranscriptTurn
from citywise.requirements.extractor import (
    detect_project_type,
    extract_attributes,
    parse_project_type,
    parse_service_amps,
    parse_square_footage,
    parse_stories,
    user_text,
)


class TestParseSquareFootage:
    def test_simple(self):
        assert parse_square_footage("about 900 sq ft") == 900.0

    def test_comma_thousands(self):
        assert parse_square_footage("1,200 square feet") == 1200.0

    def test_range_takes_upper_bound(self):
        assert parse_square_footage("somewhere between 500-1000 sq ft") == 1000.0

    def test_range_with_to(self):
        assert parse_square_footage("400 to 600 sqft") == 600.0

    def test_last_mention_wins(self):
        text = "first we thought 400 sq ft, but now it's 650 square feet"
        assert parse_square_footage(text) == 650.0

    def test_no_match(self):
        assert parse_square_footage("a small bathroom refresh") is None


class TestParseOther:
    def test_amps(self):
        assert parse_service_amps("upgrading panel to 400 amp service") == 400.0

    def test_amps_missing(self):
        assert parse_service_amps("new outlets in the kitchen") is None

    def test_amps_glued_suffix(self):
        assert parse_service_amps("swap the 100a panel for a 200a") == 200.0

    def test_year_before_article_is_not_amps(self):
        assert parse_service_amps("our 100 amp panel, house was built in 1985 a long time ago") == 100.0

    def test_implausible_amps_ignored(self):
        assert parse_service_amps("2024 amps") is None

    def test_stories_word(self):
        assert parse_stories("a two-story addition") == 2

    def test_stories_digit(self):
        assert parse_stories("1 story casita") == 1


class TestProjectType:
    def test_enum_value(self):
        assert parse_project_type("ADU") == ProjectType.ADU

    def test_spaces_and_case(self):
        assert parse_project_type("Garage Conversion") == ProjectType.GARAGE_CONVERSION

    def test_alias(self):
        assert parse_project_type("new build") == ProjectType.NEW_CONSTRUCTION

    def test_unknown(self):
        assert parse_project_type("spaceship") is None

    def test_empty(self):
        assert parse_project_type("") is None
        assert parse_project_type(None) is None

    def test_detect_garage_before_generic(self):
        assert detect_project_type("we want to convert my garage into a studio") == ProjectType.GARAGE_CONVERSION

    def test_detect_remodel(self):
        assert detect_project_type("kitchen remodel") == ProjectType.REMODEL

    def test_detect_whole_word_only(self):
        # "adu" inside another word is not an ADU
        assert detect_project_type("graduate housing") is None


class TestUserText:
    def test_skips_assistant_turns(self):
        intake = RawIntake(transcript=[
            TranscriptTurn("assistant", "Any plumbing work?"),
            TranscriptTurn("user", "Just a NEW patio"),
        ])
        text = user_text(intake)
        assert "plumbing" not in text
        assert "just a new patio" in text


class TestExtractAttributes:
    def test_transcript(self):
        intake = RawIntake(transcript=[
            TranscriptTurn("user", "I want to build a 900 sq ft casita with a bathroom"),
            TranscriptTurn("assistant", "Will there be any electrical work or structural changes?"),
            TranscriptTurn("user", "Not sure yet"),
        ])
        attrs = extract_attributes(intake)
        assert attrs.project_type == ProjectType.ADU
        assert attrs.jurisdiction == "Phoenix"
        assert attrs.square_footage == 900.0
        assert attrs.plumbing_work is True
        assert attrs.electrical_work is False
        assert attrs.structural_changes is False
        assert attrs.electrical_service_amps is None

    def test_no_size_leaves_none(self):
        attrs = extract_attributes(RawIntake(project_type="REMODEL", conversation="new cabinets"))
        assert attrs.square_footage is None

    def test_structural_keywords(self):
        attrs = extract_attributes(RawIntake(conversation="We're removing a load bearing wall"))
        assert attrs.structural_changes is True

    def test_electrical_defaults_to_200_amps(self):
        attrs = extract_attributes(RawIntake(conversation="we need a panel upgrade"))
        assert attrs.electrical_work is True
        assert attrs.electrical_service_amps == 200

    def test_explicit_amps(self):
        attrs = extract_attributes(RawIntake(conversation="upgrading panel to 400 amp service"))
        assert attrs.electrical_service_amps == 400.0

    def test_negation_not_understood(self):
        # Keyword matching can't tell "no bathroom work" from "bathroom work"
        attrs = extract_attributes(RawIntake(conversation="there is no bathroom work"))
        assert attrs.plumbing_work is True

    def test_form_fields(self):
        intake = RawIntake(
            project_type="ADDITION",
            jurisdiction="Phoenix",
            form={
                "squareFootage": "1,200",
                "plumbingWork": "yes",
                "electricalWork": True,
                "electricalServiceAmps": 100,
                "stories": "2",
                "propertyType": "Residential",
            },
        )
        attrs = extract_attributes(intake)
        assert attrs.project_type == ProjectType.ADDITION
        assert attrs.square_footage == 1200.0
        assert attrs.plumbing_work is True
        assert attrs.electrical_work is True
        assert attrs.electrical_service_amps == 100.0
        assert attrs.stories == 2
        assert attrs.property_type == "residential"

    def test_form_overrides_transcript(self):
        intake = RawIntake(
            form={"structural_changes": False, "square_footage": 300},
            conversation="removing a wall, roughly 800 sq ft",
        )
        attrs = extract_attributes(intake)
        assert attrs.structural_changes is False
        assert attrs.square_footage == 300.0

    def test_year_does_not_read_as_amps(self):
        intake = RawIntake(project_type="REMODEL", transcript=[
            TranscriptTurn("user", "electrical work on our 100 amp panel, house was built in 1985 a long time ago, 300 sq ft"),
        ])
        attrs = extract_attributes(intake)
        assert attrs.electrical_work is True
        assert attrs.electrical_service_amps == 100.0
        assert attrs.square_footage == 300.0

    def test_explicit_zero_amps_kept(self):
        intake = RawIntake(form={"electrical_work": True, "electrical_service_amps": "0"})
        assert extract_attributes(intake).electrical_service_amps == 0.0

    def test_amps_dropped_without_electrical(self):
        intake = RawIntake(form={"electrical_work": "no", "electrical_service_amps": 200})
        attrs = extract_attributes(intake)
        assert attrs.electrical_work is False
        assert attrs.electrical_service_amps is None

    def test_project_type_from_form(self):
        attrs = extract_attributes(RawIntake(form={"projectType": "casita"}))
        assert attrs.project_type == ProjectType.ADU

    def test_lot_size(self):
        attrs = extract_attributes(RawIntake(lot_size=7000))
        assert attrs.lot_size == 7000

    def test_empty_intake(self):
        attrs = extract_attributes(RawIntake())
        assert attrs.project_type is None
        assert attrs.square_footage is None
        assert not (attrs.structural_changes or attrs.plumbing_work or attrs.electrical_work)
