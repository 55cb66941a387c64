"""Question-set services built on the TOON codec."""

from .question_service import (
    QuestionInputError,
    QuestionSetService,
    QuestionSetValidationError,
)
from .training import (
    RoundOutcome,
    classify_question_time,
    evaluate_round,
    is_knowledge_gap,
    is_mastered,
    next_target_time,
    rest_seconds_remaining,
)

__all__ = [
    "QuestionInputError",
    "QuestionSetService",
    "QuestionSetValidationError",
    "RoundOutcome",
    "classify_question_time",
    "evaluate_round",
    "is_knowledge_gap",
    "is_mastered",
    "next_target_time",
    "rest_seconds_remaining",
]
