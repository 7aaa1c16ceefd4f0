"""Shared testing fixtures and stubs for the quizmaster test suite."""

from .http import FakeResponse, FakeSession, connection_error  # noqa: F401
from .openai import (  # noqa: F401
    ChatClientFactory,
    ChatClientStub,
    fenced_json,
    question_payload,
)

__all__ = [
    "ChatClientFactory",
    "ChatClientStub",
    "FakeResponse",
    "FakeSession",
    "connection_error",
    "fenced_json",
    "question_payload",
]
