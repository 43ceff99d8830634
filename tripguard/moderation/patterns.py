"""Deterministic pre-filter for obvious injection, abuse and spam.

These tables only ever cause an early rejection.  They are English-centric
and easy to bypass with creative spelling, so a clean result here means
nothing more than "send it on to the semantic classifier".
"""

from __future__ import annotations

import re

from tripguard.moderation.models import PatternMatch, SecurityCategory

# ---------------------------------------------------------------------------
# Pattern tables
# ---------------------------------------------------------------------------


def _compile(entries: list[tuple[str, str]]) -> list[tuple[str, re.Pattern[str]]]:
    return [(label, re.compile(p, re.IGNORECASE)) for label, p in entries]


_INJECTION_PATTERNS = _compile(
    [
        ("instruction override", r"\bignore\s+(all\s+)?(the\s+|your\s+)?(previous|prior|above|earlier)(\s+(instructions?|prompts?|commands?|rules))?"),
        ("instruction override", r"\bdisregard\s+(all\s+)?(the\s+|your\s+)?(previous|prior|above|earlier)"),
        ("instruction override", r"\bforget\s+(all\s+)?(the\s+|your\s+)?(previous|prior|above|earlier)\s+(instructions?|prompts?|rules)"),
        ("instruction override", r"\boverride\s+(your\s+|the\s+)?(previous|system|safety|content)\s*(instructions?|settings?|prompt|filter|rules)"),
        ("instruction override", r"\bnew\s+instructions?\s*:"),
        ("system prompt injection", r"\bsystem\s*(prompt|message|role)\s*:"),
        ("system prompt injection", r"\[\s*system\s*\]"),
        ("system prompt injection", r"<\|\s*(system|im_start|im_end)\s*\|>"),
        ("system prompt injection", r"\b(developer|admin|debug|god)\s+mode\b"),
        ("prompt extraction", r"\b(reveal|print|show|output|repeat)\s+(me\s+)?(your|the)\s+(system\s+)?(prompt|instructions)\b"),
        ("role manipulation", r"\byou\s+are\s+now\s+(a|an|in|my)\b"),
        ("role manipulation", r"\bact\s+as\s+(a|an)\s+(?!(local\s+)?(travel|tour)\s+guide)"),
        ("role manipulation", r"\bpretend\s+(you\s+are|you're|to\s+be)\b"),
        ("role manipulation", r"\brole\s*-?\s*play(ing)?\s+as\b"),
        ("role manipulation", r"\bplay\s+the\s+role\s+of\b"),
        ("role manipulation", r"\bsimulate\s+being\b"),
        ("jailbreak attempt", r"\bjailbreak"),
        ("jailbreak attempt", r"\bdan\s+mode\b"),
        ("markup injection", r"<\s*(script|iframe)[\s>]"),
        ("markup injection", r"\bjavascript\s*:"),
        ("query injection", r"\b(drop|delete|insert)\s+(table|from|into)\b"),
        ("query injection", r"\bunion\s+select\b"),
        ("task request", r"\b(tell|give|send)\s+me\s+(a\s+|the\s+)?(recipe|joke|story|poem)"),
        ("task request", r"\bwrite\s+(me\s+)?(a\s+|an\s+|some\s+)?(\w+\s+)?(code|program|script|recipe|poem|song|story|essay)\b"),
        ("task request", r"\bhow\s+to\s+(make|cook|prepare|bake)\s+(pancakes?|cakes?|cookies|bread)\b"),
        ("task request", r"\b(do|solve|finish)\s+my\s+(homework|assignment|essay|math)\b"),
    ]
)

_SEXUAL_PATTERNS = _compile(
    [
        ("sexual services", r"\bsex\s+(clubs?|shows?|workers?|tourism|services?|part(y|ies))\b"),
        ("sexual services", r"\b(brothels?|prostitut\w*|hookers?)\b"),
        ("sexual services", r"\bescort\s+(services?|girls?|agenc(y|ies))\b"),
        ("explicit content", r"\b(porn\w*|xxx)\b"),
    ]
)

# Curated, small but representative.  Mild insults ("stupid") and words with
# an ordinary meaning in a seed language ("retard" is a French delay, "chink"
# a gap in English) are left to the classifier.
_ABUSE_WORDS = [
    "fuck", "fucking", "shit", "asshole", "bitch", "bastard", "cunt",
    "nigger", "nigga", "faggot", "kike", "spic",
]

_HATE_PATTERNS = _compile(
    [("abusive language", rf"\b{re.escape(w)}\b") for w in _ABUSE_WORDS]
    + [
        ("abusive language", r"\bkill\s+yourself\b"),
        ("abusive language", r"\bkys\b"),
        ("targeted hate", r"\b(kill|murder|hate)\s+(all\s+)?(the\s+)?(jews|muslims|christians|blacks|gays|immigrants|foreigners)\b"),
    ]
)

_SPAM_PATTERNS = _compile(
    [
        ("spam", r"\b(viagra|cialis)\b"),
        ("spam", r"\b(click\s+here|buy\s+now|limited\s+(time\s+)?offer)\b"),
        ("scam", r"\b(get\s+rich\s+quick|crypto\s+giveaway|wire\s+me\s+money)\b"),
    ]
)

# Every table is scanned; the most severe category with a hit is primary.
PATTERN_TABLE: list[tuple[SecurityCategory, list[tuple[str, re.Pattern[str]]]]] = [
    (SecurityCategory.PROMPT_INJECTION, _INJECTION_PATTERNS),
    (SecurityCategory.SEXUAL_CONTENT, _SEXUAL_PATTERNS),
    (SecurityCategory.HATE_SPEECH, _HATE_PATTERNS),
    (SecurityCategory.FINANCIAL_CRIME, _SPAM_PATTERNS),
]

_SANITIZE_PATTERNS = [
    pattern
    for label, pattern in _INJECTION_PATTERNS
    if label in ("instruction override", "system prompt injection")
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def check_patterns(text: str) -> PatternMatch:
    """Run the pattern tables against *text*.

    Each table contributes at most its first matching label.  The primary
    category is the most severe one hit; the others are kept in
    ``matched`` so their flags survive.
    """
    if not text:
        return PatternMatch(flagged=False)
    hits: dict[SecurityCategory, str] = {}
    for category, patterns in PATTERN_TABLE:
        for label, pattern in patterns:
            if pattern.search(text):
                hits[category] = label
                break
    if not hits:
        return PatternMatch(flagged=False)
    primary = SecurityCategory.most_severe(hits)
    return PatternMatch(
        flagged=True,
        category=primary,
        label=hits[primary],
        matched=tuple(hits),
    )


def sanitize_input(text: str) -> str:
    """Strip the most common injection markers before prompt interpolation.

    Validation should already have rejected such text; this is the last
    line for anything interpolated into a downstream prompt regardless.
    """
    sanitized = text
    for pattern in _SANITIZE_PATTERNS:
        sanitized = pattern.sub("", sanitized)
    return re.sub(r"[ \t]{2,}", " ", sanitized).strip()
