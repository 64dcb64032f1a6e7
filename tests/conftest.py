"""Shared fixtures: in-memory store, scripted gateway, deterministic clock."""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

# Keep test runs from writing daily log files.
os.environ.setdefault("JOBAPPLY_LOG_DIR", "")

import pytest

from jobapply.config import DEFAULT_PREFERENCES
from jobapply.errors import ServiceUnavailable
from jobapply.storage import MemoryStore


class FakeClock:
    """Returns ISO timestamps one second apart, starting at a fixed instant."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> str:
        self.current += timedelta(seconds=1)
        return self.current.isoformat()


class FakeGateway:
    """Stands in for OllamaClient; replies are consumed in order.

    A reply that is an exception instance is raised instead of returned.
    """

    def __init__(self, chat_replies=(), generate_replies=(), *, models=None, available=True) -> None:
        self.base_url = "http://127.0.0.1:11434"
        self.default_model = "llama3.2:3b"
        self.reasoning_model = "deepseek-r1:8b"
        self.chat_replies = list(chat_replies)
        self.generate_replies = list(generate_replies)
        self.models = models if models is not None else [{"name": "llama3.2:3b"}]
        self.available = available
        self.chat_calls: list[dict] = []
        self.generate_calls: list[dict] = []

    @staticmethod
    def _next(replies):
        reply = replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def chat(self, messages, *, model=None, temperature=0.3):
        self.chat_calls.append({"messages": list(messages), "model": model, "temperature": temperature})
        return self._next(self.chat_replies)

    def generate(self, prompt, *, model=None, temperature=0.7, max_tokens=500):
        self.generate_calls.append(
            {"prompt": prompt, "model": model, "temperature": temperature, "max_tokens": max_tokens}
        )
        return self._next(self.generate_replies)

    def list_models(self):
        if not self.available:
            raise ServiceUnavailable(self.base_url, "connection refused")
        return list(self.models)

    def is_available(self):
        return self.available

    def select_model(self):
        if any("deepseek-r1" in m.get("name", "") for m in self.models):
            return self.reasoning_model
        return self.default_model


class WakingGateway(FakeGateway):
    """Refuses connections for the first ``down_for`` model-list polls."""

    def __init__(self, down_for: int) -> None:
        super().__init__()
        self.down_for = down_for
        self.polls = 0

    def list_models(self):
        self.polls += 1
        if self.polls <= self.down_for:
            raise ServiceUnavailable(self.base_url, "connection refused")
        return super().list_models()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def profile():
    return {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-123-4567",
        "location": "Austin, TX",
        "linkedin": "https://linkedin.com/in/janedoe",
        "github": "",
        "website": "",
        "years_experience": "6",
        "skills": "Python, SQL, AWS",
    }


@pytest.fixture
def preferences():
    return dict(DEFAULT_PREFERENCES)
