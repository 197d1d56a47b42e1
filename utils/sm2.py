"""SM-2 review scheduling for lecture flashcards.

Every function here is pure: the caller passes the current time in and
persists whatever comes back. Nothing reads a clock or touches the database.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

MIN_EASINESS = 1.3
DEFAULT_EASINESS = 2.5
PASS_GRADE = 3
MIN_GRADE = 0
MAX_GRADE = 5
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6
# about a century; keeps now + interval inside the datetime range
MAX_INTERVAL_DAYS = 36500


class SchedulingError(ValueError):
    """Base class for scheduler input violations."""


class InvalidGradeError(SchedulingError):
    def __init__(self, grade):
        super().__init__(f"Grade must be an integer between {MIN_GRADE} and {MAX_GRADE}, got {grade!r}")
        self.grade = grade


class InvalidStateError(SchedulingError):
    def __init__(self, card_id, reason: str):
        super().__init__(f"Card {card_id} has invalid scheduling state: {reason}")
        self.card_id = card_id
        self.reason = reason


@dataclass(frozen=True)
class ReviewCard:
    id: str
    question: str
    answer: str
    next_review_at: datetime
    easiness_factor: float = DEFAULT_EASINESS
    repetition_count: int = 0
    interval_days: int = 0
    last_reviewed_at: Optional[datetime] = None
    owner_id: Optional[str] = None
    source: str = "lecture"
    lecture_id: Optional[str] = None
    slide_id: Optional[str] = None
    message_id: Optional[str] = None
    source_content: str = ""
    difficulty: str = "medium"
    is_auto_generated: bool = False
    created_at: Optional[datetime] = None
    version: int = 0


def new_card(card_id: str, question: str, answer: str, now: datetime, **fields) -> ReviewCard:
    """Build a card with creation defaults, due immediately."""
    return ReviewCard(
        id=card_id,
        question=question,
        answer=answer,
        next_review_at=now,
        easiness_factor=DEFAULT_EASINESS,
        repetition_count=0,
        interval_days=0,
        last_reviewed_at=None,
        created_at=now,
        **fields,
    )


def validate_grade(grade) -> int:
    # bool is an int subclass; True would otherwise pass as grade 1
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidGradeError(grade)
    if grade < MIN_GRADE or grade > MAX_GRADE:
        raise InvalidGradeError(grade)
    return grade


def validate_state(card: ReviewCard) -> None:
    if card.easiness_factor < MIN_EASINESS:
        raise InvalidStateError(card.id, f"easiness_factor {card.easiness_factor} is below {MIN_EASINESS}")
    if card.repetition_count < 0:
        raise InvalidStateError(card.id, f"repetition_count {card.repetition_count} is negative")
    if card.interval_days < 0:
        raise InvalidStateError(card.id, f"interval_days {card.interval_days} is negative")


def update_easiness(easiness: float, grade: int) -> float:
    miss = MAX_GRADE - grade
    return max(MIN_EASINESS, easiness + (0.1 - miss * (0.08 + miss * 0.02)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_interval(repetition_count: int, interval_days: int, easiness: float) -> int:
    """Interval for a passing review, given the already incremented repetition count."""
    if repetition_count == 1:
        return FIRST_INTERVAL
    if repetition_count == 2:
        return SECOND_INTERVAL
    return min(MAX_INTERVAL_DAYS, max(1, _round_half_up(interval_days * easiness)))


def schedule_next_review(card: ReviewCard, grade: int, now: datetime) -> ReviewCard:
    """Apply one review outcome and return the card's next scheduling state.

    Raises InvalidGradeError for a grade outside 0..5 and InvalidStateError
    when the stored scheduling fields are already corrupt.
    """
    validate_grade(grade)
    validate_state(card)
    easiness = update_easiness(card.easiness_factor, grade)
    if grade < PASS_GRADE:
        repetitions = 0
        interval = FIRST_INTERVAL
    else:
        repetitions = card.repetition_count + 1
        interval = next_interval(repetitions, card.interval_days, easiness)
    return replace(
        card,
        easiness_factor=easiness,
        repetition_count=repetitions,
        interval_days=interval,
        last_reviewed_at=now,
        next_review_at=now + timedelta(days=interval),
    )


def is_due(card: ReviewCard, now: datetime) -> bool:
    return card.next_review_at <= now


def select_due_cards(cards: Iterable[ReviewCard], now: datetime, limit: Optional[int] = None) -> List[ReviewCard]:
    """Due cards, most overdue first, ties broken by id."""
    if limit is not None and limit < 0:
        raise ValueError("limit must be non-negative")
    due = sorted(
        (card for card in cards if is_due(card, now)),
        key=lambda card: (card.next_review_at, str(card.id)),
    )
    if limit is None:
        return due
    return due[:limit]
