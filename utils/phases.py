from typing import Dict, Iterable

from utils.sm2 import ReviewCard

PHASES = ("new", "learning", "reviewing")
REVIEWING_REPETITIONS = 3


def card_phase(card: ReviewCard) -> str:
    if card.repetition_count >= REVIEWING_REPETITIONS:
        return "reviewing"
    if card.repetition_count == 0 and card.last_reviewed_at is None:
        return "new"
    # a lapsed card has repetition_count 0 but restarts the learning path
    return "learning"


def phase_counts(cards: Iterable[ReviewCard]) -> Dict[str, int]:
    counts = {phase: 0 for phase in PHASES}
    for card in cards:
        counts[card_phase(card)] += 1
    return counts


def success_rate(passed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round((passed / total) * 100, 1)
