"""Data models for the input moderation pipeline."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional


class SecurityCategory(Enum):
    """Primary reason a request was rejected."""

    SEXUAL_CONTENT = "sexual_content"
    ILLEGAL_SUBSTANCES = "illegal_substances"
    WEAPONS_VIOLENCE_TERRORISM = "weapons_violence_terrorism"
    HATE_SPEECH = "hate_speech"
    HUMAN_TRAFFICKING = "human_trafficking"
    FINANCIAL_CRIME = "financial_crime"
    SELF_HARM_DANGEROUS_ACTIVITY = "self_harm_dangerous_activity"
    PROMPT_INJECTION = "prompt_injection"
    INVALID_DESTINATION = "invalid_destination"
    NON_TRAVEL_TASK = "non_travel_task"

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return _CATEGORY_RANK[self]

    @classmethod
    def most_severe(cls, categories: Iterable[SecurityCategory]) -> Optional[SecurityCategory]:
        found = [c for c in categories if c is not None]
        if not found:
            return None
        return max(found, key=lambda c: c.rank)

    @classmethod
    def parse(cls, value: object) -> Optional[SecurityCategory]:
        """Return the category named by *value*, or *None* if unknown."""
        if isinstance(value, SecurityCategory):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


_CATEGORY_RANK: dict[SecurityCategory, int] = {
    SecurityCategory.HUMAN_TRAFFICKING: 100,
    SecurityCategory.WEAPONS_VIOLENCE_TERRORISM: 90,
    SecurityCategory.SELF_HARM_DANGEROUS_ACTIVITY: 85,
    SecurityCategory.SEXUAL_CONTENT: 80,
    SecurityCategory.HATE_SPEECH: 75,
    SecurityCategory.ILLEGAL_SUBSTANCES: 70,
    SecurityCategory.FINANCIAL_CRIME: 65,
    SecurityCategory.PROMPT_INJECTION: 50,
    SecurityCategory.NON_TRAVEL_TASK: 20,
    SecurityCategory.INVALID_DESTINATION: 10,
}

# Categories whose offending text is hashed rather than excerpted.
REDACTED_CATEGORIES = frozenset(
    {SecurityCategory.SEXUAL_CONTENT, SecurityCategory.HATE_SPEECH}
)

INAPPROPRIATE_CATEGORIES = frozenset(
    {
        SecurityCategory.SEXUAL_CONTENT,
        SecurityCategory.ILLEGAL_SUBSTANCES,
        SecurityCategory.WEAPONS_VIOLENCE_TERRORISM,
        SecurityCategory.HATE_SPEECH,
        SecurityCategory.HUMAN_TRAFFICKING,
        SecurityCategory.FINANCIAL_CRIME,
        SecurityCategory.SELF_HARM_DANGEROUS_ACTIVITY,
    }
)

_NOT_TRAVEL_CATEGORIES = frozenset(
    {
        SecurityCategory.PROMPT_INJECTION,
        SecurityCategory.INVALID_DESTINATION,
        SecurityCategory.NON_TRAVEL_TASK,
    }
)

# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

SERVICE_UNAVAILABLE_MESSAGE = (
    "Validation service temporarily unavailable. Please try again in a moment."
)

_POLICY_MESSAGE = (
    "This request contains content that violates our content policy. "
    "Our platform is for legitimate travel planning only."
)

USER_MESSAGES: dict[str, str] = {
    SecurityCategory.INVALID_DESTINATION.value: (
        "Please enter a real travel destination (city, country, or region)."
    ),
    SecurityCategory.NON_TRAVEL_TASK.value: (
        "Please describe your travel plans and preferences, not unrelated requests."
    ),
    SecurityCategory.PROMPT_INJECTION.value: (
        "Invalid input format. Please enter only your travel destination and preferences."
    ),
    SecurityCategory.HATE_SPEECH.value: (
        "Please keep your request respectful. Our platform is for legitimate travel planning only."
    ),
    SecurityCategory.SELF_HARM_DANGEROUS_ACTIVITY.value: (
        "We can't plan this trip. If you're going through a difficult time, "
        "please reach out to someone you trust or a mental health professional."
    ),
    # Destination heuristics, keyed by their diagnostic reason.
    "too short": "Destination is too short. Please enter a real travel destination.",
    "numeric only": "Please enter a valid destination name, not a number.",
    "punctuation only": "Please enter a valid destination name.",
    "household location": (
        "That looks like a household location, not a travel destination. "
        "Please enter a real city, country, or region."
    ),
    "not a real place": "Please enter a specific real place you'd like to visit.",
    "non-travel task": "Please enter a real travel destination, not a task or request.",
    "invalid characters": (
        "Destination contains invalid characters. "
        "Please use only letters, spaces, and basic punctuation."
    ),
    # Input shape.
    "missing destination": "Please enter a travel destination.",
    "notes too short": "Please tell us a little more about your trip.",
    "notes too long": "Your notes are too long. Please shorten them and try again.",
}


def user_message(key: SecurityCategory | str) -> str:
    """Return the display message for a category or diagnostic reason."""
    name = key.value if isinstance(key, SecurityCategory) else key
    return USER_MESSAGES.get(name, _POLICY_MESSAGE)


class Severity(Enum):
    """How an incident should be treated during review."""

    SOFT_WARN = "soft_warn"
    HARD_BLOCK = "hard_block"


@dataclass
class ValidationRequest:
    """A single destination/notes pair submitted for validation."""

    destination: Optional[str] = None
    notes: Optional[str] = None
    user_id: Optional[str] = None

    def combined_text(self) -> str:
        return f"{self.destination or ''} {self.notes or ''}".strip()


@dataclass
class ValidationVerdict:
    """Accept/reject decision returned to the caller.

    ``reason`` is safe to show to end users.  ``category`` and ``layer`` are
    diagnostics for logging and tests and must not be surfaced in the UI.
    """

    is_valid: bool
    is_travel_related: bool = True
    has_prompt_injection: bool = False
    has_inappropriate_content: bool = False
    reason: Optional[str] = None
    confidence: int = 100
    category: Optional[SecurityCategory] = None
    layer: str = ""
    service_unavailable: bool = False

    @classmethod
    def from_flags(
        cls,
        *,
        is_travel_related: bool,
        has_prompt_injection: bool,
        has_inappropriate_content: bool,
        reason: Optional[str] = None,
        confidence: int = 100,
        category: Optional[SecurityCategory] = None,
        layer: str = "",
        is_valid: bool = True,
    ) -> ValidationVerdict:
        """Build a verdict whose flags are guaranteed to be consistent.

        A claimed ``is_valid`` is honoured only when no flag contradicts it;
        a rejection without any flag set is recorded as not travel related.
        """
        flagged = has_prompt_injection or has_inappropriate_content or not is_travel_related
        if is_valid and not flagged:
            return cls(
                is_valid=True,
                is_travel_related=True,
                has_prompt_injection=False,
                has_inappropriate_content=False,
                reason=None,
                confidence=confidence,
                layer=layer,
            )
        if not flagged:
            is_travel_related = False
        return cls(
            is_valid=False,
            is_travel_related=is_travel_related,
            has_prompt_injection=has_prompt_injection,
            has_inappropriate_content=has_inappropriate_content,
            reason=reason,
            confidence=confidence,
            category=category,
            layer=layer,
        )

    @classmethod
    def reject(
        cls,
        category: SecurityCategory,
        reason: str,
        *,
        layer: str,
        confidence: int = 100,
        related: Iterable[SecurityCategory] = (),
    ) -> ValidationVerdict:
        """Reject with the flags implied by *category* and any *related* ones."""
        found = {category, *related}
        return cls.from_flags(
            is_travel_related=not (found & _NOT_TRAVEL_CATEGORIES),
            has_prompt_injection=SecurityCategory.PROMPT_INJECTION in found,
            has_inappropriate_content=bool(found & INAPPROPRIATE_CATEGORIES),
            reason=reason,
            confidence=confidence,
            category=category,
            layer=layer,
            is_valid=False,
        )


@dataclass
class PatternMatch:
    """Result of the deterministic pattern pre-filter."""

    flagged: bool
    category: Optional[SecurityCategory] = None
    label: str = ""
    # Every category with a hit, the primary one included.
    matched: tuple[SecurityCategory, ...] = ()


@dataclass
class DestinationCheck:
    """Result of the destination shape heuristics."""

    flagged: bool
    category: Optional[SecurityCategory] = None
    reason: str = ""


@dataclass
class DestinationVerdict:
    """Result of the AI geographic validation of a single destination."""

    is_valid: bool
    confidence: str = "low"  # "high" | "medium" | "low"
    reason: Optional[str] = None


@dataclass
class IncidentRecord:
    """An append-only record of a rejected or suspicious request."""

    category: str
    severity: str
    input_digest: str
    user_id: str = "anonymous"
    layer: str = ""
    confidence: int = 0
    locale_hint: str = ""
    service_unavailable: bool = False
    id: str = ""
    timestamp: str = ""
    details: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = uuid.uuid4().hex[:16]
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()
