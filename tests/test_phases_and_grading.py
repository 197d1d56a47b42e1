from datetime import datetime, timezone

import pytest

from utils.grading import grade_typed_answer
from utils.phases import card_phase, phase_counts, success_rate
from utils.sm2 import new_card, schedule_next_review

T = datetime(2025, 3, 1, tzinfo=timezone.utc)
GRADING_CONFIG = {
    "grading": {
        "perfect_threshold": 0.98,
        "good_threshold": 0.85,
        "pass_threshold": 0.70,
        "close_threshold": 0.50,
        "some_threshold": 0.20,
    }
}


def test_card_phase_follows_repetitions():
    card = new_card("c1", "Q", "A", T)
    assert card_phase(card) == "new"

    card = schedule_next_review(card, 5, T)
    assert card_phase(card) == "learning"
    card = schedule_next_review(card, 5, T)
    card = schedule_next_review(card, 5, T)
    assert card_phase(card) == "reviewing"

    lapsed = schedule_next_review(card, 0, T)
    assert lapsed.repetition_count == 0
    assert card_phase(lapsed) == "learning"


def test_phase_counts_and_success_rate():
    fresh = new_card("c1", "Q", "A", T)
    learning = schedule_next_review(new_card("c2", "Q", "A", T), 4, T)
    assert phase_counts([fresh, learning]) == {"new": 1, "learning": 1, "reviewing": 0}
    assert success_rate(3, 4) == 75.0
    assert success_rate(0, 0) == 0.0


@pytest.mark.parametrize(
    "typed, expected",
    [
        ("Mitochondria", 5),
        ("  mitochondria ", 5),
        ("mitochondira", 4),
        ("xyz", 0),
        ("", 0),
        (None, 0),
    ],
)
def test_grade_typed_answer(typed, expected):
    assert grade_typed_answer("Mitochondria", typed, GRADING_CONFIG) == expected


def test_grade_typed_answer_respects_thresholds():
    strict = {"grading": dict(GRADING_CONFIG["grading"], good_threshold=0.95)}
    assert grade_typed_answer("Mitochondria", "mitochondira", strict) == 3
