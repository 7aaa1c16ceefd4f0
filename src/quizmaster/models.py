"""Question data model shared by the provider and the quiz client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

__all__ = ["OPTION_COUNT", "Question", "validate_question"]

OPTION_COUNT = 4


def validate_question(data: Any) -> None:
    """Validate a question payload in wire shape.

    Required keys: ``question`` (non-empty str), ``options`` (list of exactly
    four distinct non-empty strings) and ``correctAnswer`` (equal to one of
    the options). Raises ValueError with actionable messages when invalid.
    """
    if not isinstance(data, Mapping):
        raise ValueError("question must be an object")
    text = data.get("question")
    if not isinstance(text, str) or not text.strip():
        raise ValueError("question text is required")
    options = data.get("options")
    if not isinstance(options, list):
        raise ValueError("options must be a list")
    if len(options) != OPTION_COUNT:
        raise ValueError(
            f"options must contain exactly {OPTION_COUNT} entries, "
            f"got {len(options)}"
        )
    if not all(isinstance(opt, str) and opt.strip() for opt in options):
        raise ValueError("option text must be a non-empty string")
    if len(set(options)) != len(options):
        raise ValueError("duplicate options detected")
    answer = data.get("correctAnswer")
    if not isinstance(answer, str) or not answer:
        raise ValueError("correctAnswer is required")
    if answer not in options:
        raise ValueError("correctAnswer must match one of the options")


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question with one correct option."""

    question: str
    options: tuple[str, ...]
    correct_answer: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Question":
        validate_question(data)
        return cls(
            question=str(data["question"]).strip(),
            options=tuple(data["options"]),
            correct_answer=str(data["correctAnswer"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }

    def is_correct(self, index: int) -> bool:
        if not 0 <= index < len(self.options):
            return False
        return self.options[index] == self.correct_answer

    @property
    def correct_index(self) -> int:
        return self.options.index(self.correct_answer)
