"""Checks applied to what the generation model sends back.

Two things can come back from a hardened generation prompt: a refusal
object (see :mod:`tripguard.moderation.instructions`) or an itinerary.
An itinerary that reads like a recipe or a homework answer means the
generation model was steered off task and must not be shown.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from tripguard.moderation.instructions import REFUSAL_ERROR
from tripguard.moderation.models import SecurityCategory, Severity

# Older refusal names still produced by cached prompts.
_LEGACY_VIOLATION_TYPES = {
    "weapons_violence": SecurityCategory.WEAPONS_VIOLENCE_TERRORISM,
    "dangerous_activity": SecurityCategory.SELF_HARM_DANGEROUS_ACTIVITY,
}

NON_TRAVEL_OUTPUT_KEYWORDS = (
    "recipe", "ingredients", "pancake", "cooking", "baking",
    "homework", "essay", "assignment", "report",
    "kitchen", "bedroom", "bathroom",
)

_PLACE_MARKERS = ("recipe", "ingredient", "homework")
_DESCRIPTION_MARKERS = ("mix the", "preheat the oven")


@dataclass
class PolicyRefusal:
    """A refusal returned by the generation model instead of content."""

    category: SecurityCategory
    reason: str = ""


@dataclass
class OutputCheck:
    """Result of checking a generated itinerary."""

    is_valid: bool
    severity: Optional[Severity] = None
    issues: list[str] = field(default_factory=list)


def parse_policy_refusal(text: str) -> Optional[PolicyRefusal]:
    """Return the refusal encoded in *text*, or *None* for normal content."""
    if not text or REFUSAL_ERROR not in text:
        return None
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or data.get("error") != REFUSAL_ERROR:
        return None
    raw_type = str(data.get("violation_type", "")).strip().lower()
    category = _LEGACY_VIOLATION_TYPES.get(raw_type) or SecurityCategory.parse(raw_type)
    return PolicyRefusal(
        category=category or SecurityCategory.NON_TRAVEL_TASK,
        reason=str(data.get("reason") or ""),
    )


def _looks_off_task(place: dict[str, Any]) -> bool:
    name = str(place.get("name") or "").lower()
    desc = str(place.get("desc") or "").lower()
    return any(m in name for m in _PLACE_MARKERS) or any(m in desc for m in _DESCRIPTION_MARKERS)


def check_itinerary_output(itinerary: dict[str, Any], original_destination: str) -> OutputCheck:
    """Look for signs that a generated itinerary is not about travel.

    *original_destination* is used so that a keyword the user actually
    asked for (a city whose name contains "report", say) is not held
    against the output.
    """
    issues: list[str] = []
    requested = (original_destination or "").lower()

    city = str(itinerary.get("city") or "").lower()
    for keyword in NON_TRAVEL_OUTPUT_KEYWORDS:
        if keyword in city and keyword not in requested:
            issues.append(f'Generated content appears to be about "{keyword}", not travel')

    places = [
        place
        for day in itinerary.get("days") or []
        if isinstance(day, dict)
        for place in day.get("places") or []
        if isinstance(place, dict)
    ]
    if any(_looks_off_task(place) for place in places):
        issues.append("Generated content contains non-travel activities")

    if issues:
        return OutputCheck(is_valid=False, severity=Severity.HARD_BLOCK, issues=issues)
    return OutputCheck(is_valid=True)
