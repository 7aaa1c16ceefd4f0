"""Static question sets served when every generation stage fails."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..models import Question

__all__ = ["DEFAULT_SUBJECT", "FALLBACK_TABLE", "fallback_questions"]

DEFAULT_SUBJECT = "General Knowledge"


def _q(text: str, options: list[str], answer: str) -> Question:
    return Question.from_dict(
        {"question": text, "options": options, "correctAnswer": answer}
    )


_GENERAL_KNOWLEDGE = (
    _q("What is the chemical symbol for gold?", ["Au", "Ag", "Fe", "Cu"], "Au"),
    _q(
        "Which planet is known as the Red Planet?",
        ["Mars", "Venus", "Jupiter", "Mercury"],
        "Mars",
    ),
    _q(
        "What is the process by which plants make their own food using "
        "sunlight?",
        ["Photosynthesis", "Respiration", "Transpiration", "Germination"],
        "Photosynthesis",
    ),
    _q(
        "What is the largest organ in the human body?",
        ["Skin", "Liver", "Heart", "Brain"],
        "Skin",
    ),
    _q(
        "Which of these is NOT a state of matter?",
        ["Energy", "Solid", "Liquid", "Gas"],
        "Energy",
    ),
    _q(
        "How many continents are there on Earth?",
        ["Seven", "Five", "Six", "Eight"],
        "Seven",
    ),
    _q(
        "Which ocean is the largest by area?",
        ["Pacific", "Atlantic", "Indian", "Arctic"],
        "Pacific",
    ),
    _q(
        "Who painted the Mona Lisa?",
        [
            "Leonardo da Vinci",
            "Michelangelo",
            "Raphael",
            "Vincent van Gogh",
        ],
        "Leonardo da Vinci",
    ),
)

_MATHEMATICS = (
    _q("What is 7 multiplied by 8?", ["56", "54", "64", "48"], "56"),
    _q("What is the square root of 144?", ["12", "14", "11", "16"], "12"),
    _q(
        "What is the sum of the interior angles of a triangle?",
        ["180 degrees", "90 degrees", "270 degrees", "360 degrees"],
        "180 degrees",
    ),
    _q(
        "Which of these numbers is prime?",
        ["17", "21", "27", "33"],
        "17",
    ),
    _q(
        "What is 15% of 200?",
        ["30", "15", "20", "35"],
        "30",
    ),
    _q(
        "What is the value of pi rounded to two decimal places?",
        ["3.14", "3.15", "3.41", "3.12"],
        "3.14",
    ),
)

_SCIENCE = (
    _q(
        "What gas do plants absorb from the atmosphere?",
        ["Carbon dioxide", "Oxygen", "Nitrogen", "Hydrogen"],
        "Carbon dioxide",
    ),
    _q(
        "What is the boiling point of water at sea level in Celsius?",
        ["100", "90", "110", "120"],
        "100",
    ),
    _q(
        "Which part of the cell contains genetic material?",
        ["Nucleus", "Ribosome", "Cell membrane", "Cytoplasm"],
        "Nucleus",
    ),
    _q(
        "What force keeps the planets in orbit around the Sun?",
        ["Gravity", "Magnetism", "Friction", "Electrostatic force"],
        "Gravity",
    ),
    _q(
        "What is the chemical formula for water?",
        ["H2O", "CO2", "NaCl", "O2"],
        "H2O",
    ),
    _q(
        "Which planet is closest to the Sun?",
        ["Mercury", "Venus", "Earth", "Mars"],
        "Mercury",
    ),
)

_HISTORY = (
    _q(
        "In which year did World War II end?",
        ["1945", "1939", "1918", "1950"],
        "1945",
    ),
    _q(
        "Who was the first President of the United States?",
        [
            "George Washington",
            "Thomas Jefferson",
            "Abraham Lincoln",
            "John Adams",
        ],
        "George Washington",
    ),
    _q(
        "Which ancient civilization built the pyramids of Giza?",
        ["Egyptians", "Romans", "Greeks", "Mayans"],
        "Egyptians",
    ),
    _q(
        "In which year did the Berlin Wall fall?",
        ["1989", "1991", "1961", "1979"],
        "1989",
    ),
    _q(
        "Who was the first person to walk on the Moon?",
        ["Neil Armstrong", "Buzz Aldrin", "Yuri Gagarin", "John Glenn"],
        "Neil Armstrong",
    ),
    _q(
        "Which empire was ruled by Julius Caesar?",
        ["Roman", "Ottoman", "Persian", "Byzantine"],
        "Roman",
    ),
)

_MACHINE_LEARNING = (
    _q(
        "Which type of learning uses labelled training data?",
        [
            "Supervised learning",
            "Unsupervised learning",
            "Reinforcement learning",
            "Self-play",
        ],
        "Supervised learning",
    ),
    _q(
        "What does overfitting mean?",
        [
            "The model memorises training data and generalises poorly",
            "The model is too simple to capture patterns",
            "The training data is too large",
            "The learning rate is too small",
        ],
        "The model memorises training data and generalises poorly",
    ),
    _q(
        "Which algorithm is commonly used for clustering?",
        ["K-means", "Linear regression", "Logistic regression", "Naive Bayes"],
        "K-means",
    ),
    _q(
        "What is the purpose of a validation set?",
        [
            "Tune hyperparameters on unseen data",
            "Train the final model",
            "Store raw features",
            "Replace the test set",
        ],
        "Tune hyperparameters on unseen data",
    ),
    _q(
        "Which optimisation method updates weights using the gradient of "
        "the loss?",
        [
            "Gradient descent",
            "Grid search",
            "Bagging",
            "Principal component analysis",
        ],
        "Gradient descent",
    ),
    _q(
        "What does a confusion matrix summarise?",
        [
            "Classification predictions against true labels",
            "Feature correlations",
            "Training loss over time",
            "Cluster centroids",
        ],
        "Classification predictions against true labels",
    ),
)

FALLBACK_TABLE: Mapping[str, tuple[Question, ...]] = MappingProxyType(
    {
        "Mathematics": _MATHEMATICS,
        "Science": _SCIENCE,
        "History": _HISTORY,
        DEFAULT_SUBJECT: _GENERAL_KNOWLEDGE,
        "Machine Learning": _MACHINE_LEARNING,
    }
)

_BY_KEY = {name.casefold(): items for name, items in FALLBACK_TABLE.items()}


def fallback_questions(subject: str, count: int) -> list[Question]:
    """Return up to ``count`` canned questions for ``subject``.

    Subjects match case-insensitively; unknown subjects get the
    General Knowledge set.
    """
    items = _BY_KEY.get(
        (subject or "").strip().casefold(), FALLBACK_TABLE[DEFAULT_SUBJECT]
    )
    return list(items[: max(count, 0)])
