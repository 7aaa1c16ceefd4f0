"""HTTP client for the question provider."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests

from ..models import Question

__all__ = ["ENDPOINT_PATH", "QuestionFetchError", "fetch_questions"]

logger = logging.getLogger(__name__)

ENDPOINT_PATH = "/api/generate-questions"


class QuestionFetchError(RuntimeError):
    """Raised when the provider cannot be reached or returns bad data."""


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Failed to fetch questions: {response.status_code}"


def _parse_questions(data: Any) -> List[Question]:
    raw = data.get("questions") if isinstance(data, dict) else None
    if not isinstance(raw, list) or not raw:
        raise QuestionFetchError("No questions received from the API")
    try:
        return [Question.from_dict(item) for item in raw]
    except ValueError as exc:
        raise QuestionFetchError(f"Malformed question received: {exc}") from exc


def fetch_questions(
    subject: str,
    difficulty: str,
    *,
    base_url: str,
    count: int = 10,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> List[Question]:
    """Request one quiz worth of questions from the provider."""

    http = session or requests.Session()
    url = base_url.rstrip("/") + ENDPOINT_PATH
    logger.info("Fetching questions for %s at %s level", subject, difficulty)
    try:
        response = http.post(
            url,
            json={
                "subject": subject,
                "difficulty": difficulty,
                "numberOfQuestions": count,
            },
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise QuestionFetchError(f"Could not reach {url}: {exc}") from exc

    if not response.ok:
        raise QuestionFetchError(_error_message(response))
    try:
        data = response.json()
    except ValueError as exc:
        raise QuestionFetchError("Provider returned invalid JSON") from exc
    questions = _parse_questions(data)
    logger.info(
        "Received %d questions (source=%s)",
        len(questions),
        data.get("source", "unknown"),
    )
    return questions
