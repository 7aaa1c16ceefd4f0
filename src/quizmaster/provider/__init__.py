"""Question provider: generation chain, fallback tables and HTTP app."""

from .fallback import (  # noqa: F401
    DEFAULT_SUBJECT,
    FALLBACK_TABLE,
    fallback_questions,
)
from .generation import (  # noqa: F401
    SOURCE_FALLBACK,
    GenerationError,
    GenerationResult,
    GenerationStage,
    build_prompt,
    build_stages,
    chat_completion_stage,
    generate_questions,
    parse_questions,
    strip_code_fences,
)

__all__ = [
    "DEFAULT_SUBJECT",
    "FALLBACK_TABLE",
    "SOURCE_FALLBACK",
    "GenerationError",
    "GenerationResult",
    "GenerationStage",
    "build_prompt",
    "build_stages",
    "chat_completion_stage",
    "fallback_questions",
    "generate_questions",
    "parse_questions",
    "strip_code_fences",
]
