"""Tests for the moderation data models."""

from tripguard.moderation.models import (
    IncidentRecord,
    SecurityCategory,
    ValidationRequest,
    ValidationVerdict,
    user_message,
)


def _coupled(v: ValidationVerdict) -> bool:
    return v.is_valid == (
        not (v.has_prompt_injection or v.has_inappropriate_content or not v.is_travel_related)
    )


def test_from_flags_clean_accept():
    v = ValidationVerdict.from_flags(
        is_travel_related=True,
        has_prompt_injection=False,
        has_inappropriate_content=False,
        confidence=90,
    )
    assert v.is_valid
    assert v.reason is None
    assert v.category is None
    assert _coupled(v)


def test_from_flags_rejects_contradictory_accept():
    v = ValidationVerdict.from_flags(
        is_travel_related=True,
        has_prompt_injection=True,
        has_inappropriate_content=False,
        is_valid=True,
    )
    assert not v.is_valid
    assert v.has_prompt_injection
    assert _coupled(v)


def test_from_flags_unflagged_rejection_is_not_travel():
    v = ValidationVerdict.from_flags(
        is_travel_related=True,
        has_prompt_injection=False,
        has_inappropriate_content=False,
        is_valid=False,
    )
    assert not v.is_valid
    assert not v.is_travel_related
    assert _coupled(v)


def test_flag_coupling_holds_for_all_flag_combinations():
    for travel in (True, False):
        for injection in (True, False):
            for inappropriate in (True, False):
                for claimed in (True, False):
                    v = ValidationVerdict.from_flags(
                        is_travel_related=travel,
                        has_prompt_injection=injection,
                        has_inappropriate_content=inappropriate,
                        is_valid=claimed,
                    )
                    assert _coupled(v)


def test_reject_sets_flags_from_category():
    for category in SecurityCategory:
        v = ValidationVerdict.reject(category, "nope", layer="test")
        assert not v.is_valid
        assert v.category == category
        assert v.confidence == 100
        assert _coupled(v)

    assert ValidationVerdict.reject(SecurityCategory.PROMPT_INJECTION, "x", layer="t").has_prompt_injection
    assert ValidationVerdict.reject(SecurityCategory.HATE_SPEECH, "x", layer="t").has_inappropriate_content
    assert not ValidationVerdict.reject(SecurityCategory.INVALID_DESTINATION, "x", layer="t").is_travel_related


def test_reject_keeps_flags_of_related_categories():
    v = ValidationVerdict.reject(
        SecurityCategory.SEXUAL_CONTENT,
        "x",
        layer="t",
        related=(SecurityCategory.PROMPT_INJECTION,),
    )
    assert v.category == SecurityCategory.SEXUAL_CONTENT
    assert v.has_inappropriate_content
    assert v.has_prompt_injection
    assert not v.is_travel_related
    assert _coupled(v)


def test_most_severe():
    assert SecurityCategory.most_severe(
        [SecurityCategory.INVALID_DESTINATION, SecurityCategory.PROMPT_INJECTION]
    ) == SecurityCategory.PROMPT_INJECTION
    assert SecurityCategory.most_severe(
        [SecurityCategory.PROMPT_INJECTION, SecurityCategory.SEXUAL_CONTENT]
    ) == SecurityCategory.SEXUAL_CONTENT
    assert SecurityCategory.most_severe([]) is None


def test_parse_category():
    assert SecurityCategory.parse("hate_speech") == SecurityCategory.HATE_SPEECH
    assert SecurityCategory.parse(" Prompt_Injection ") == SecurityCategory.PROMPT_INJECTION
    assert SecurityCategory.parse("spam") is None
    assert SecurityCategory.parse(None) is None


def test_user_messages_never_name_categories():
    for category in SecurityCategory:
        message = user_message(category)
        assert message
        assert all(c.value not in message for c in SecurityCategory)


def test_household_message_mentions_household_location():
    assert "household location" in user_message("household location")


def test_request_combined_text():
    assert ValidationRequest(destination="Rome", notes=None).combined_text() == "Rome"
    assert ValidationRequest(destination="Rome", notes="food").combined_text() == "Rome food"


def test_incident_record_defaults():
    record = IncidentRecord(category="prompt_injection", severity="hard_block", input_digest="x")
    assert len(record.id) == 16
    assert record.timestamp
    assert record.user_id == "anonymous"
