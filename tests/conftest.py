"""Shared fakes for the moderation tests."""

import asyncio
import json

import pytest

from tripguard.llm.client import LLMResponse


def verdict_json(**overrides) -> str:
    """Classifier JSON for a clean accept, with *overrides* applied."""
    data = {
        "isValid": True,
        "isTravelRelated": True,
        "hasPromptInjection": False,
        "hasInappropriateContent": False,
        "category": None,
        "reason": None,
        "confidence": 95,
    }
    data.update(overrides)
    return json.dumps(data)


def _user_input(prompt):
    """Return the last <user_input> block of *prompt*."""
    start = prompt.rfind("<user_input>")
    end = prompt.find("</user_input>", start)
    if start == -1 or end == -1:
        return prompt
    return prompt[start + len("<user_input>"):end]


class FakeProvider:
    """Scripted stand-in for a chat-completion provider.

    *responder* is either a fixed completion string or a callable that
    receives the text between the ``<user_input>`` tags of the prompt.
    """

    def __init__(self, responder=None, *, error=None, delay=0.0):
        self.responder = verdict_json() if responder is None else responder
        self.error = error
        self.delay = delay
        self.calls = []
        self.closed = False

    async def complete(self, messages, *, temperature=0.1, max_tokens=500, json_response=False):
        prompt = messages[-1]["content"]
        self.calls.append(
            {
                "prompt": prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_response": json_response,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if callable(self.responder):
            content = self.responder(_user_input(prompt))
        else:
            content = self.responder
        return LLMResponse(content=content, model="fake")

    async def aclose(self):
        self.closed = True


class MemorySink:
    """Incident sink that keeps records in a list."""

    def __init__(self, fail=False):
        self.records = []
        self.fail = fail

    def log_incident(self, record):
        if self.fail:
            raise OSError("disk full")
        self.records.append(record)


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def memory_sink():
    return MemorySink()


@pytest.fixture
def failing_sink():
    return MemorySink(fail=True)


@pytest.fixture
def make_verdict_json():
    return verdict_json
