"""Shared test fixtures."""

import asyncio
from typing import Optional

import pytest

import config
from codemate import db
from codemate.agent import ChatSession
from codemate.models import PageContext


class FakeEditor:
    """Editor surface double that records writes"""

    def __init__(self, markup: str = "", writable: bool = True):
        self.markup = markup
        self.writable = writable
        self.writes = []

    async def read(self) -> str:
        return self.markup

    async def write(self, code: str) -> bool:
        if not self.writable:
            return False
        self.writes.append(code)
        self.markup = code
        return True


class FakeCompletionClient:
    """Completion client double that counts calls and replays canned replies"""

    def __init__(self, replies=None, error: Optional[Exception] = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []
        self.release: Optional[asyncio.Event] = None
        self.observer = None

    async def complete(self, messages, model, api_key):
        self.calls.append({"messages": messages, "model": model, "api_key": api_key})
        if self.observer is not None:
            self.observer()
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


@pytest.fixture(autouse=True)
def fixed_config(monkeypatch):
    """Pin model settings and start every test without a key or sessions"""
    monkeypatch.setattr(config, "AVAILABLE_MODELS", ["gpt-3.5-turbo", "gpt-4"])
    monkeypatch.setattr(config, "DEFAULT_MODEL", "gpt-4")
    monkeypatch.setattr(config, "OPENAI_API_KEY", None)
    db.clear()
    yield
    db.clear()


@pytest.fixture
def context():
    return PageContext(problem_statement="Reverse a string", programming_language="Go")


@pytest.fixture
def editor():
    return FakeEditor(markup="func f(){}")


@pytest.fixture
def client():
    return FakeCompletionClient()


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def make_session(context, editor, client, notifications):
    def factory(api_key: Optional[str] = "sk-test", **kwargs):
        kwargs.setdefault("template", "Lang: {{programming_language}} Problem: {{problem_statement}} Code: {{user_code}}")
        return ChatSession(
            context=context,
            editor=kwargs.pop("editor", editor),
            get_api_key=lambda: api_key,
            client=kwargs.pop("client", client),
            notify=notifications.append,
            **kwargs,
        )

    return factory
