"""FastAPI application exposing the question provider."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from ..settings import AppConfig, load_settings
from .fallback import DEFAULT_SUBJECT, fallback_questions
from .generation import GenerationStage, build_stages, generate_questions

__all__ = ["ERROR_FALLBACK_COUNT", "GenerateQuestionsRequest", "create_app"]

logger = logging.getLogger(__name__)

ERROR_FALLBACK_COUNT = 5
MISSING_FIELDS_ERROR = "Subject and difficulty are required"


class GenerateQuestionsRequest(BaseModel):
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    numberOfQuestions: Optional[int] = None


def _error_fallback() -> JSONResponse:
    questions = fallback_questions(DEFAULT_SUBJECT, ERROR_FALLBACK_COUNT)
    return JSONResponse(
        {
            "questions": [q.to_dict() for q in questions],
            "source": "error-fallback",
        },
        status_code=200,
    )


def _clamp_count(requested: Optional[int], config: AppConfig) -> int:
    generation = config.generation
    if requested is None:
        return generation.default_question_count
    return max(1, min(requested, generation.max_question_count))


def create_app(
    config: Optional[AppConfig] = None,
    stages: Optional[Sequence[GenerationStage]] = None,
) -> FastAPI:
    """Build the provider app.

    ``stages`` defaults to the chain described by ``config.generation``;
    tests pass their own stages to stay offline.
    """

    settings = config or load_settings()
    chain = list(stages) if stages is not None else build_stages(
        settings.generation
    )
    app = FastAPI(title="quizmaster")
    app.state.settings = settings
    app.state.stages = chain
    logger.info(
        "Question provider ready with stages: %s",
        ", ".join(stage.name for stage in chain) or "(fallback only)",
    )

    @app.get("/healthz")
    async def healthz() -> dict:
        return {
            "status": "ok",
            "stages": [stage.name for stage in app.state.stages],
        }

    @app.post("/api/generate-questions")
    async def generate(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
            body = GenerateQuestionsRequest.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            logger.error("Unreadable generate-questions request: %s", exc)
            return _error_fallback()

        subject = (body.subject or "").strip()
        difficulty = (body.difficulty or "").strip()
        if not subject or not difficulty:
            return JSONResponse({"error": MISSING_FIELDS_ERROR}, status_code=400)

        count = _clamp_count(body.numberOfQuestions, settings)
        result = await run_in_threadpool(
            generate_questions, subject, difficulty, count, app.state.stages
        )
        return JSONResponse(result.to_dict(), status_code=200)

    return app
