"""
Woodpecker round rules.

A round passes only with every question correct and, from the second round
on, within the target time. Each passed round halves the time budget for the
next one, down to a floor, and rounds are separated by a rest period.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..config import TrainingSettings, settings

logger = logging.getLogger(__name__)

TIME_FAST = "fast"
TIME_MEDIUM = "medium"
TIME_SLOW = "slow"


@dataclass(frozen=True)
class RoundOutcome:
    """Result of scoring one completed round."""
    perfect_accuracy: bool
    beat_target_time: bool
    passed: bool
    next_target_time: int


def _training(training: Optional[TrainingSettings]) -> TrainingSettings:
    return training if training is not None else settings.training


def next_target_time(previous_duration: float, training: Optional[TrainingSettings] = None) -> int:
    """Target time in whole seconds for the round after one that took ``previous_duration``."""
    cfg = _training(training)
    halved = math.floor(previous_duration / cfg.target_time_halving_factor)
    return max(halved, cfg.min_target_time_seconds)


def evaluate_round(
    score: int,
    total_questions: int,
    time_taken: float,
    target_time: Optional[float],
    training: Optional[TrainingSettings] = None,
) -> RoundOutcome:
    """
    Score a finished round.

    ``perfect_accuracy_threshold`` is the percentage of the set that must be
    answered correctly; the default of 100 means ``score == total_questions``.

    Args:
        score: Correct answers in the round
        total_questions: Questions in the set
        time_taken: Round duration in seconds
        target_time: Time budget in seconds, or None for an untimed first round

    Returns:
        RoundOutcome with the pass decision and the next round's target

    Raises:
        ValueError: If ``score`` is negative or above ``total_questions``
    """
    cfg = _training(training)
    if score < 0 or score > total_questions:
        raise ValueError(f"Score {score} is outside 0..{total_questions}")

    # Integer comparison so the default threshold is an exact match
    perfect = score * 100 >= cfg.perfect_accuracy_threshold * total_questions
    beat_target = target_time is None or time_taken <= target_time
    passed = perfect and beat_target

    outcome = RoundOutcome(
        perfect_accuracy=perfect,
        beat_target_time=beat_target,
        passed=passed,
        next_target_time=next_target_time(time_taken, cfg),
    )
    logger.debug(
        f"Round scored {score}/{total_questions} in {time_taken}s "
        f"(target={target_time}) passed={passed}"
    )
    return outcome


def rest_seconds_remaining(
    last_round_end: datetime,
    now: Optional[datetime] = None,
    training: Optional[TrainingSettings] = None,
) -> int:
    """Whole seconds left before the next round may start; 0 once the rest period is over."""
    cfg = _training(training)
    if now is None:
        now = datetime.now(timezone.utc)
    # Naive timestamps are taken as UTC
    if last_round_end.tzinfo is None:
        last_round_end = last_round_end.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = (now - last_round_end).total_seconds()
    remaining = cfg.rest_period_seconds - elapsed
    if remaining <= 0:
        return 0
    return math.ceil(remaining)


def classify_question_time(seconds: float, training: Optional[TrainingSettings] = None) -> str:
    """Bucket a single answer time as fast, medium or slow."""
    cfg = _training(training)
    if seconds < cfg.question_time_fast_threshold:
        return TIME_FAST
    if seconds < cfg.question_time_medium_threshold:
        return TIME_MEDIUM
    return TIME_SLOW


def is_knowledge_gap(seconds: float, training: Optional[TrainingSettings] = None) -> bool:
    return seconds > _training(training).knowledge_gap_time_threshold


def is_mastered(target_time: Optional[float], training: Optional[TrainingSettings] = None) -> bool:
    """True once the round budget has shrunk to the mastery target."""
    if target_time is None:
        return False
    return target_time <= _training(training).mastery_target_time_seconds
