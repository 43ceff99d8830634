"""Semantic, language-agnostic validation backed by an LLM.

The classifier is the authoritative layer of the pipeline.  Any failure to
obtain a well-formed answer (provider error, timeout, empty or malformed
completion) yields a rejection with confidence 0: an outage must never let
unchecked text through to a paid generation call.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tripguard.config import GuardConfig
from tripguard.llm.client import ChatCompletionProvider
from tripguard.llm.prompts import CONTENT_VALIDATION_PROMPT, DESTINATION_VALIDATION_PROMPT
from tripguard.moderation.models import (
    INAPPROPRIATE_CATEGORIES,
    SERVICE_UNAVAILABLE_MESSAGE,
    DestinationVerdict,
    SecurityCategory,
    ValidationVerdict,
    user_message,
)

logger = logging.getLogger(__name__)

LAYER = "classifier"

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_CATEGORY_VALUES = ", ".join(f'"{c.value}"' for c in SecurityCategory)


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class ClassifierOutput(BaseModel):
    """The JSON object the content-validation prompt asks for."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_valid: bool = Field(alias="isValid")
    is_travel_related: bool = Field(alias="isTravelRelated")
    has_prompt_injection: bool = Field(alias="hasPromptInjection")
    has_inappropriate_content: bool = Field(alias="hasInappropriateContent")
    category: Optional[str] = None
    reason: Optional[str] = None
    confidence: float = 0.0


class DestinationOutput(BaseModel):
    """The JSON object the destination-validation prompt asks for."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_valid: bool = Field(alias="isValid")
    confidence: str = "low"
    reason: Optional[str] = None


def extract_json(text: str) -> dict[str, Any]:
    """Parse the first JSON object in *text*, tolerating markdown fences."""
    cleaned = _FENCE.sub("", (text or "").strip())
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object in completion")
    data = json.loads(cleaned[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("completion is not a JSON object")
    return data


def _as_literal(text: Optional[str]) -> str:
    if not text or not text.strip():
        return "(none)"
    # Angle brackets are escaped so quoted text cannot close the <user_input> tag.
    literal = json.dumps(text.strip(), ensure_ascii=False)
    return literal.replace("<", "\\u003c").replace(">", "\\u003e")


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class SemanticClassifier:
    """Ask an LLM whether a destination/notes pair is a real travel request."""

    def __init__(
        self,
        provider: ChatCompletionProvider,
        config: Optional[GuardConfig] = None,
    ) -> None:
        self._provider = provider
        self._config = config or GuardConfig()

    # -- prompts ---------------------------------------------------------------

    @staticmethod
    def build_content_prompt(destination: Optional[str], notes: Optional[str]) -> str:
        return CONTENT_VALIDATION_PROMPT.format(
            destination=_as_literal(destination),
            notes=_as_literal(notes),
            categories=_CATEGORY_VALUES,
        )

    @staticmethod
    def build_destination_prompt(destination: str) -> str:
        return DESTINATION_VALIDATION_PROMPT.format(destination=_as_literal(destination))

    # -- transport -------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the provider if it holds resources."""
        close = getattr(self._provider, "aclose", None)
        if close is not None:
            await close()

    async def _ask(self, prompt: str) -> dict[str, Any]:
        response = await asyncio.wait_for(
            self._provider.complete(
                [{"role": "user", "content": prompt}],
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
                json_response=True,
            ),
            timeout=self._config.classifier_timeout,
        )
        content = getattr(response, "content", "")
        if not content or not content.strip():
            raise ValueError("empty completion")
        return extract_json(content)

    # -- content validation ----------------------------------------------------

    async def classify_content(
        self,
        destination: Optional[str],
        notes: Optional[str],
    ) -> ValidationVerdict:
        """Return the authoritative verdict for *destination* and *notes*."""
        try:
            data = await self._ask(self.build_content_prompt(destination, notes))
            output = ClassifierOutput.model_validate(data)
        except asyncio.TimeoutError:
            logger.warning("content classifier timed out after %.1fs", self._config.classifier_timeout)
            return unavailable_verdict()
        except (ValueError, ValidationError) as exc:
            logger.warning("content classifier returned unusable output: %s", exc.__class__.__name__)
            return unavailable_verdict()
        except Exception as exc:
            logger.warning("content classifier call failed: %s", exc.__class__.__name__)
            return unavailable_verdict()
        return self._to_verdict(output)

    def _to_verdict(self, output: ClassifierOutput) -> ValidationVerdict:
        confidence = int(round(max(0.0, min(100.0, output.confidence))))
        flagged = (
            not output.is_valid
            or output.has_prompt_injection
            or output.has_inappropriate_content
            or not output.is_travel_related
        )
        if not flagged:
            return ValidationVerdict.from_flags(
                is_travel_related=True,
                has_prompt_injection=False,
                has_inappropriate_content=False,
                confidence=confidence,
                layer=LAYER,
            )

        named = SecurityCategory.parse(output.category)
        has_injection = output.has_prompt_injection or named is SecurityCategory.PROMPT_INJECTION
        has_inappropriate = output.has_inappropriate_content or named in INAPPROPRIATE_CATEGORIES
        category = _primary_category(named, has_injection, has_inappropriate, output.reason)

        return ValidationVerdict.from_flags(
            is_travel_related=output.is_travel_related,
            has_prompt_injection=has_injection,
            has_inappropriate_content=has_inappropriate,
            reason=self._public_reason(output.reason, category),
            confidence=confidence,
            category=category,
            layer=LAYER,
            is_valid=False,
        )

    def _public_reason(self, reason: Optional[str], category: SecurityCategory) -> str:
        """Pass the model's explanation through only if it is safe to show."""
        text = (reason or "").strip()
        if not text or any(c.value in text for c in SecurityCategory) or "<user_input>" in text:
            return user_message(category)
        limit = self._config.reason_max_length
        if len(text) > limit:
            text = text[: limit - 3].rstrip() + "..."
        return text

    # -- destination validation ------------------------------------------------

    async def validate_destination(self, destination: str) -> DestinationVerdict:
        """Check a single extracted destination against the geographic rubric."""
        try:
            data = await self._ask(self.build_destination_prompt(destination))
            output = DestinationOutput.model_validate(data)
        except Exception as exc:
            logger.warning("destination classifier failed: %s", exc.__class__.__name__)
            return DestinationVerdict(
                is_valid=False,
                confidence="low",
                reason=SERVICE_UNAVAILABLE_MESSAGE,
            )
        confidence = output.confidence.strip().lower()
        if confidence not in ("high", "medium", "low"):
            confidence = "low"
        return DestinationVerdict(
            is_valid=output.is_valid,
            confidence=confidence,
            reason=output.reason,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


_HATE_HINTS = ("hate", "abus", "offensive", "insult", "racis", "discriminat", "profan")


def _primary_category(
    named: Optional[SecurityCategory],
    has_injection: bool,
    has_inappropriate: bool,
    reason: Optional[str],
) -> SecurityCategory:
    candidates: list[SecurityCategory] = []
    if named is not None:
        candidates.append(named)
    if has_injection:
        candidates.append(SecurityCategory.PROMPT_INJECTION)
    if has_inappropriate and named not in INAPPROPRIATE_CATEGORIES:
        lowered = (reason or "").lower()
        if any(hint in lowered for hint in _HATE_HINTS):
            candidates.append(SecurityCategory.HATE_SPEECH)
        else:
            candidates.append(SecurityCategory.SEXUAL_CONTENT)
    if not candidates:
        lowered = (reason or "").lower()
        if "destination" in lowered or "place" in lowered or "location" in lowered:
            candidates.append(SecurityCategory.INVALID_DESTINATION)
        else:
            candidates.append(SecurityCategory.NON_TRAVEL_TASK)
    return SecurityCategory.most_severe(candidates)


def unavailable_verdict() -> ValidationVerdict:
    """The fail-closed verdict used whenever the classifier cannot answer."""
    return ValidationVerdict(
        is_valid=False,
        is_travel_related=False,
        has_prompt_injection=False,
        has_inappropriate_content=False,
        reason=SERVICE_UNAVAILABLE_MESSAGE,
        confidence=0,
        category=None,
        layer=LAYER,
        service_unavailable=True,
    )
