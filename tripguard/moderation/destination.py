"""Shape heuristics for the destination field.

Rejects strings that are obviously not places.  Anything in a script these
rules do not understand is passed through to the semantic classifier.
"""

from __future__ import annotations

import re
import unicodedata

from tripguard.moderation.models import DestinationCheck, SecurityCategory

MIN_DESTINATION_LENGTH = 2

# Whole-word seed lists.  Words that are also real place names (Salon,
# Keller, Baños) are left out.
HOUSEHOLD_LOCATIONS: dict[str, list[str]] = {
    "en": [
        "kitchen", "bedroom", "bathroom", "living room", "garage", "basement",
        "attic", "closet", "pantry", "hallway", "toilet", "laundry room",
        "my room", "my house", "my home", "my apartment",
    ],
    "pl": [
        "kuchnia", "kuchni", "kuchnię", "sypialnia", "sypialni", "łazienka",
        "łazienki", "piwnica", "strych", "szafa", "korytarz", "garaż",
    ],
    "es": [
        "cocina", "dormitorio", "baño", "sala de estar", "garaje", "sótano",
        "armario", "despensa",
    ],
    "de": [
        "küche", "kueche", "schlafzimmer", "badezimmer", "wohnzimmer",
        "dachboden", "kleiderschrank",
    ],
    "fr": [
        "cuisine", "chambre à coucher", "salle de bain", "salle de bains",
        "grenier", "placard", "sous-sol",
    ],
}

VAGUE_PLACES = [
    "nowhere", "anywhere", "somewhere", "everywhere",
    "nigdzie", "gdziekolwiek", "ninguna parte", "nirgendwo",
]

NON_TRAVEL_TASKS = [
    "recipe", "homework", "essay", "shopping list",
    "przepis", "praca domowa", "receta", "tarea", "rezept", "hausaufgaben",
]

# Comma, period, hyphen, apostrophes, parentheses, ampersand.
_ALLOWED_PUNCTUATION = frozenset(",.-'()&’")


def _word_pattern(words: list[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE)


_HOUSEHOLD_PATTERN = _word_pattern(
    [word for words in HOUSEHOLD_LOCATIONS.values() for word in words]
)
_VAGUE_PATTERN = _word_pattern(VAGUE_PLACES)
_TASK_PATTERN = _word_pattern(NON_TRAVEL_TASKS)
_DIGITS_ONLY = re.compile(r"^\d+$")


def _is_allowed_char(ch: str) -> bool:
    if ch.isalpha() or ch.isspace() or ch in _ALLOWED_PUNCTUATION:
        return True
    category = unicodedata.category(ch)
    # Non-ASCII punctuation covers script-native separators such as the
    # katakana middle dot, the ideographic comma and the Arabic comma.
    if category.startswith("P") and ord(ch) > 127:
        return True
    # Combining marks keep decomposed accents and Indic/Thai vowel signs legal.
    return category.startswith("M")


def check_destination_shape(destination: str) -> DestinationCheck:
    """Return a flagged :class:`DestinationCheck` for obvious non-places."""
    trimmed = unicodedata.normalize("NFC", destination or "").strip()

    if len(trimmed) < MIN_DESTINATION_LENGTH:
        return _flag("too short")
    if _DIGITS_ONLY.match(trimmed):
        return _flag("numeric only")
    if not any(ch.isalnum() for ch in trimmed):
        return _flag("punctuation only")
    if _HOUSEHOLD_PATTERN.search(trimmed):
        return _flag("household location")
    if _VAGUE_PATTERN.search(trimmed):
        return _flag("not a real place")
    if _TASK_PATTERN.search(trimmed):
        return _flag("non-travel task")
    if not all(_is_allowed_char(ch) for ch in trimmed):
        return _flag("invalid characters")
    return DestinationCheck(flagged=False)


def _flag(reason: str) -> DestinationCheck:
    return DestinationCheck(
        flagged=True,
        category=SecurityCategory.INVALID_DESTINATION,
        reason=reason,
    )
