"""tripguard LLM integration module.

Provides the chat-completion provider interface, the Anthropic-backed
implementation, and the prompt templates used by the semantic validators.
"""

from tripguard.llm.client import (
    AnthropicProvider,
    ChatCompletionProvider,
    LLMResponse,
    ProviderError,
)

__all__ = [
    "AnthropicProvider",
    "ChatCompletionProvider",
    "LLMResponse",
    "ProviderError",
]
