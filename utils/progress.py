from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, Optional

from utils.sm2 import DEFAULT_EASINESS, ReviewCard, schedule_next_review
from utils.store import delete_last_review, get_card, list_reviews, save_card


def initial_state(card: ReviewCard) -> ReviewCard:
    """The card as it was at creation, before any review."""
    return replace(
        card,
        easiness_factor=DEFAULT_EASINESS,
        repetition_count=0,
        interval_days=0,
        last_reviewed_at=None,
        next_review_at=card.created_at or card.next_review_at,
    )


def compute_state_from_reviews(card: ReviewCard, reviews: Iterable[Dict]) -> ReviewCard:
    """Replay logged grades, oldest first, from the creation defaults."""
    state = initial_state(card)
    for review in reviews:
        state = schedule_next_review(state, int(review["grade"]), review["reviewed_at"])
    return state


def undo_last_review(conn, card_id: str) -> Optional[ReviewCard]:
    """Drop the newest review and rewind the card to the replayed state.

    Returns None when the card has no reviews. The caller commits.
    """
    card = get_card(conn, card_id)
    removed = delete_last_review(conn, card_id)
    if removed is None:
        return None
    rewound = compute_state_from_reviews(card, list_reviews(conn, card_id))
    return save_card(conn, rewound)
