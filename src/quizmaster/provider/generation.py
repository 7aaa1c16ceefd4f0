"""Question generation with an ordered fallback chain.

Each :class:`GenerationStage` wraps one external text-generation service as a
plain ``prompt -> text`` callable. :func:`generate_questions` tries the stages
in order, parses and validates their output, and falls back to the static
tables in :mod:`quizmaster.provider.fallback` when every stage fails. It never
raises for generation problems.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence

from ..core.ai import load_client
from ..models import Question, validate_question
from ..settings import GenerationConfig, StageConfig
from .fallback import fallback_questions

__all__ = [
    "SOURCE_FALLBACK",
    "STAGE_SOURCES",
    "GenerationError",
    "GenerationResult",
    "GenerationStage",
    "build_prompt",
    "build_stages",
    "chat_completion_stage",
    "generate_questions",
    "parse_questions",
    "strip_code_fences",
]

logger = logging.getLogger(__name__)

STAGE_SOURCES = {
    "primary": "primary-service",
    "secondary": "secondary-service",
}
SOURCE_FALLBACK = "fallback"

_SYSTEM_PROMPT = "You write accurate, educational multiple-choice quizzes."
_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

Generator = Callable[[str], str]


class GenerationError(RuntimeError):
    """Raised when a generation stage produces no usable questions."""


@dataclass(frozen=True)
class GenerationStage:
    """One attempt at obtaining questions from an external service."""

    name: str
    source: str
    generate: Generator


@dataclass(frozen=True)
class GenerationResult:
    questions: List[Question]
    source: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "questions": [q.to_dict() for q in self.questions],
            "source": self.source,
        }


def build_prompt(subject: str, difficulty: str, count: int) -> str:
    return (
        f"Generate {count} multiple-choice questions about {subject} at a "
        f"{difficulty} difficulty level.\n"
        "Each question should have 4 distinct options with only one correct "
        "answer.\n"
        "Format the response as a JSON object with the following structure:\n"
        "{\n"
        '  "questions": [\n'
        "    {\n"
        '      "question": "Question text",\n'
        '      "options": ["Option 1", "Option 2", "Option 3", "Option 4"],\n'
        '      "correctAnswer": "The correct option (must be exactly the same '
        'as one of the options)"\n'
        "    }\n"
        "  ]\n"
        "}\n"
        "Keep the questions educational and appropriate for the difficulty "
        "level. Respond with JSON only."
    )


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content or "").strip()


def parse_questions(content: str, *, limit: Optional[int] = None) -> List[Question]:
    """Parse model output into validated questions.

    Expects a JSON object with a ``questions`` array, optionally wrapped in
    markdown code fences. Invalid items are skipped.
    Raises GenerationError when nothing usable remains.
    """
    payload = strip_code_fences(content)
    if not payload:
        raise GenerationError("empty response")
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GenerationError(f"response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise GenerationError("response is not a JSON object")
    raw = data.get("questions")
    if not isinstance(raw, list) or not raw:
        raise GenerationError("no questions in the response")

    questions: List[Question] = []
    for idx, item in enumerate(raw):
        try:
            validate_question(item)
        except ValueError as exc:
            logger.debug("Skipping generated item %d: %s", idx, exc)
            continue
        questions.append(Question.from_dict(item))
        if limit is not None and len(questions) >= limit:
            break
    if not questions:
        raise GenerationError("no valid questions in the response")
    return questions


def chat_completion_stage(
    client: Any,
    *,
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 2000,
) -> Generator:
    """Adapt an OpenAI-compatible client into a ``prompt -> text`` callable."""

    def _generate(prompt: str) -> str:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        content = (resp.choices[0].message.content or "").strip()
        if not content:
            raise GenerationError(f"{model} returned an empty response")
        return content

    return _generate


def _stage_from_config(
    stage: StageConfig, env: Optional[Mapping[str, str]]
) -> Optional[GenerationStage]:
    if not stage.enabled:
        logger.info("Generation stage '%s' disabled", stage.name)
        return None
    try:
        client = load_client(
            api_key_env=stage.api_key_env,
            api_base=stage.api_base,
            timeout=float(stage.request_timeout_seconds),
            env=env,
        )
    except RuntimeError as exc:
        logger.warning(
            "Generation stage '%s' not configured: %s", stage.name, exc
        )
        return None
    return GenerationStage(
        name=stage.name,
        source=STAGE_SOURCES.get(stage.name, f"{stage.name}-service"),
        generate=chat_completion_stage(
            client,
            model=stage.model,
            temperature=stage.temperature,
            max_tokens=stage.max_tokens,
        ),
    )


def build_stages(
    config: GenerationConfig,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> List[GenerationStage]:
    """Build the configured stages in priority order.

    A stage counts as configured when it is enabled and its API key variable
    is set; otherwise it is left out of the chain.
    """
    stages: List[GenerationStage] = []
    for stage_config in config.stages:
        stage = _stage_from_config(stage_config, env)
        if stage is not None:
            stages.append(stage)
    return stages


def generate_questions(
    subject: str,
    difficulty: str,
    count: int,
    stages: Sequence[GenerationStage],
) -> GenerationResult:
    """Return questions from the first stage that succeeds, else fallback."""

    prompt = build_prompt(subject, difficulty, count)
    for stage in stages:
        logger.info(
            "Generating %d %s questions about %s via %s",
            count,
            difficulty,
            subject,
            stage.name,
        )
        try:
            content = stage.generate(prompt)
            questions = parse_questions(content, limit=count)
        except Exception as exc:  # any stage failure falls through
            logger.warning(
                "Generation stage '%s' failed: %s",
                stage.name,
                exc,
                extra={"stage": stage.name, "subject": subject},
            )
            continue
        logger.info(
            "Generated %d questions via %s", len(questions), stage.name
        )
        return GenerationResult(questions, stage.source)

    questions = fallback_questions(subject, count)
    logger.info(
        "Using %d fallback questions for %s",
        len(questions),
        subject,
        extra={"subject": subject},
    )
    return GenerationResult(questions, SOURCE_FALLBACK)
