"""Single entry point for validating a trip request before paid generation.

Layers run cheapest first and stop at the first rejection:

1. input shape (missing destination, notes length)
2. pattern pre-filter on destination + notes
3. destination shape heuristics
4. semantic classifier (authoritative, one LLM round trip)

Every rejection, and every accept below the soft-watch confidence, is
written to the incident sink.  The write runs in the default executor and
is never awaited on the request path; sink failures are logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Optional

from tripguard.config import GuardConfig
from tripguard.llm.client import AnthropicProvider, ChatCompletionProvider
from tripguard.moderation.classifier import SemanticClassifier
from tripguard.moderation.destination import check_destination_shape
from tripguard.moderation.models import (
    IncidentRecord,
    SecurityCategory,
    Severity,
    ValidationRequest,
    ValidationVerdict,
    user_message,
)
from tripguard.moderation.patterns import check_patterns
from tripguard.security.incident_log import IncidentLogger, IncidentSink, build_incident

logger = logging.getLogger(__name__)


class ValidationOrchestrator:
    """Runs the moderation layers in order and records incidents."""

    def __init__(
        self,
        classifier: SemanticClassifier,
        incident_sink: Optional[IncidentSink] = None,
        config: Optional[GuardConfig] = None,
    ) -> None:
        self._classifier = classifier
        self._sink = incident_sink
        self._config = config or GuardConfig()
        self._pending: set[asyncio.Future] = set()

    # -- layers ----------------------------------------------------------------

    def _check_input_shape(self, request: ValidationRequest) -> Optional[ValidationVerdict]:
        destination = (request.destination or "").strip()
        notes = (request.notes or "").strip()

        if not destination:
            category = (
                SecurityCategory.NON_TRAVEL_TASK if not notes
                else SecurityCategory.INVALID_DESTINATION
            )
            return ValidationVerdict.reject(
                category, user_message("missing destination"), layer="input"
            )
        if len(notes) < self._config.min_notes_length:
            return ValidationVerdict.reject(
                SecurityCategory.NON_TRAVEL_TASK, user_message("notes too short"), layer="input"
            )
        if len(notes) > self._config.max_notes_length:
            return ValidationVerdict.reject(
                SecurityCategory.NON_TRAVEL_TASK, user_message("notes too long"), layer="input"
            )
        return None

    @staticmethod
    def _check_patterns(request: ValidationRequest) -> Optional[ValidationVerdict]:
        match = check_patterns(request.combined_text())
        if not match.flagged:
            return None
        logger.info("pattern pre-filter rejected request: %s", match.label)
        return ValidationVerdict.reject(
            match.category,
            user_message(match.category),
            layer="patterns",
            related=match.matched,
        )

    @staticmethod
    def _check_destination(request: ValidationRequest) -> Optional[ValidationVerdict]:
        check = check_destination_shape(request.destination or "")
        if not check.flagged:
            return None
        logger.info("destination heuristics rejected request: %s", check.reason)
        return ValidationVerdict.reject(check.category, user_message(check.reason), layer="destination")

    # -- entry point -----------------------------------------------------------

    async def validate_user_input(self, request: ValidationRequest) -> ValidationVerdict:
        """Return the accept/reject verdict for *request*."""
        if not isinstance(request, ValidationRequest):
            raise TypeError(f"expected ValidationRequest, got {type(request).__name__}")

        verdict = (
            self._check_input_shape(request)
            or self._check_patterns(request)
            or self._check_destination(request)
        )
        if verdict is None:
            verdict = await self._classifier.classify_content(request.destination, request.notes)

        severity = self._severity_for(verdict)
        if severity is not None:
            self._dispatch_incident(request, verdict, severity)
        return verdict

    def _severity_for(self, verdict: ValidationVerdict) -> Optional[Severity]:
        if verdict.is_valid:
            if verdict.confidence < self._config.soft_watch_threshold:
                return Severity.SOFT_WARN
            return None
        if verdict.service_unavailable or verdict.confidence < self._config.severity_floor:
            return Severity.SOFT_WARN
        return Severity.HARD_BLOCK

    # -- incidents -------------------------------------------------------------

    def _dispatch_incident(
        self,
        request: ValidationRequest,
        verdict: ValidationVerdict,
        severity: Severity,
    ) -> None:
        if self._sink is None:
            return
        try:
            record = build_incident(request, verdict, severity)
            loop = asyncio.get_running_loop()
            future = loop.run_in_executor(None, self._write_incident, record)
        except Exception as exc:
            logger.warning("could not schedule incident write: %s", exc.__class__.__name__)
            return
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    def _write_incident(self, record: IncidentRecord) -> None:
        try:
            self._sink.log_incident(record)
        except Exception as exc:
            logger.warning("incident sink failed: %s", exc.__class__.__name__)

    async def drain(self) -> None:
        """Wait for incident writes scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Flush pending incident writes and release the provider."""
        await self.drain()
        await self._classifier.aclose()


def build_orchestrator(
    provider: Optional[ChatCompletionProvider] = None,
    config: Optional[GuardConfig] = None,
    incident_sink: Optional[IncidentSink] = None,
) -> ValidationOrchestrator:
    """Wire up an orchestrator with the default provider and file-backed log."""
    config = config or GuardConfig.from_env()
    provider = provider or AnthropicProvider(model=config.model)
    sink = incident_sink
    if sink is None:
        try:
            sink = IncidentLogger(config.incident_path)
        except OSError as exc:
            logger.warning("incident log unavailable, incidents will be dropped: %s", exc)
    return ValidationOrchestrator(SemanticClassifier(provider, config), sink, config)


@lru_cache(maxsize=8)
def default_orchestrator(config: Optional[GuardConfig] = None) -> ValidationOrchestrator:
    """Return the shared orchestrator for *config* (the env config when *None*).

    One instance, and so one HTTP client, per config for the life of the
    process.  The client binds to the event loop that first uses it.
    """
    return build_orchestrator(config=config)


async def validate_user_input(
    request: ValidationRequest,
    *,
    provider: Optional[ChatCompletionProvider] = None,
    config: Optional[GuardConfig] = None,
    incident_sink: Optional[IncidentSink] = None,
) -> ValidationVerdict:
    """Validate one request.

    Without explicit collaborators the shared :func:`default_orchestrator`
    is used.  A *provider* passed in stays owned by the caller; a provider
    created here for a one-off orchestrator is closed before returning.
    """
    if provider is None and incident_sink is None:
        return await default_orchestrator(config).validate_user_input(request)
    orchestrator = build_orchestrator(provider, config, incident_sink)
    try:
        return await orchestrator.validate_user_input(request)
    finally:
        if provider is None:
            await orchestrator.aclose()
