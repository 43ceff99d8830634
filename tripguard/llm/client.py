"""Chat-completion provider interface and the Anthropic-backed implementation.

The moderation pipeline only ever talks to a :class:`ChatCompletionProvider`.
Tests inject a scripted fake; production wires in :class:`AnthropicProvider`.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import anthropic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pricing table (USD per 1 M tokens)
# ---------------------------------------------------------------------------

MODEL_PRICING: dict[str, dict[str, float]] = {
    "claude-haiku-4-5": {"input": 1.0, "output": 5.0},
    "claude-3-5-haiku-20241022": {"input": 0.80, "output": 4.0},
    "claude-sonnet-4-5": {"input": 3.0, "output": 15.0},
}

DEFAULT_MODEL = "claude-haiku-4-5"

JSON_ONLY_INSTRUCTION = (
    "Respond with a single JSON object and nothing else. "
    "Do not wrap it in markdown fences or add commentary."
)


class ProviderError(RuntimeError):
    """Raised when a completion cannot be obtained from the provider."""


# ---------------------------------------------------------------------------
# Response dataclass
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Structured response from a chat-completion call."""

    content: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
    cost_estimate: float = 0.0


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------


@runtime_checkable
class ChatCompletionProvider(Protocol):
    """Anything that can turn chat messages into one completion."""

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.1,
        max_tokens: int = 500,
        json_response: bool = False,
    ) -> LLMResponse:
        ...


# ---------------------------------------------------------------------------
# Anthropic provider
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """Thin wrapper around the async Anthropic Python SDK.

    Parameters
    ----------
    model : str
        Model identifier to use for completions.
    api_key : str | None
        Anthropic API key.  Falls back to the ``ANTHROPIC_API_KEY``
        environment variable when *None*.
    timeout : float
        Per-request HTTP timeout in seconds.
    max_retries : int
        SDK-level retries on connection errors.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
    ) -> None:
        self.model = model
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self._configured = bool(self.api_key)

        if self._configured:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key,
                timeout=timeout,
                max_retries=max_retries,
            )
        else:
            self._client = None  # type: ignore[assignment]

    # -- properties ----------------------------------------------------------

    @property
    def configured(self) -> bool:
        """Return *True* if an API key is available."""
        return self._configured

    # -- cost helpers --------------------------------------------------------

    def _estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        pricing = MODEL_PRICING.get(self.model, MODEL_PRICING[DEFAULT_MODEL])
        input_cost = (input_tokens / 1_000_000) * pricing["input"]
        output_cost = (output_tokens / 1_000_000) * pricing["output"]
        return round(input_cost + output_cost, 6)

    # -- completion ----------------------------------------------------------

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.1,
        max_tokens: int = 500,
        json_response: bool = False,
    ) -> LLMResponse:
        """Send a chat-completion request and return an :class:`LLMResponse`.

        ``system`` messages are folded into Anthropic's top-level system
        prompt.  ``json_response`` adds a JSON-only instruction there, since
        the Messages API has no response-format switch.
        """
        if not self._configured:
            raise ProviderError("LLM not configured. Set ANTHROPIC_API_KEY.")

        system_parts = [m["content"] for m in messages if m.get("role") == "system"]
        if json_response:
            system_parts.append(JSON_ONLY_INSTRUCTION)
        chat = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m.get("role") in ("user", "assistant")
        ]

        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": chat,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        start = time.monotonic()
        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise ProviderError(f"Anthropic request failed: {exc.__class__.__name__}") from exc
        latency_ms = int((time.monotonic() - start) * 1000)

        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens
        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        cost = self._estimate_cost(input_tokens, output_tokens)
        logger.debug(
            "completion model=%s in=%d out=%d cost=%.6f latency_ms=%d",
            self.model, input_tokens, output_tokens, cost, latency_ms,
        )

        return LLMResponse(
            content=content,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=latency_ms,
            cost_estimate=cost,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client.  Later calls raise :class:`ProviderError`."""
        if self._client is not None:
            await self._client.close()
        self._client = None  # type: ignore[assignment]
        self._configured = False
