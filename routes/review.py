from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from config import load_config
from db.database import get_db
from logging_config import get_logger
from models.flashcard import Flashcard
from models.review import ReviewHistory, ReviewLogEntry, ReviewResult, ReviewSubmit
from routes.flashcards import to_flashcard
from utils.grading import grade_typed_answer
from utils.progress import undo_last_review
from utils.sm2 import PASS_GRADE, schedule_next_review
from utils.store import (
    StaleCardError,
    as_utc,
    count_due_cards,
    fetch_due_cards,
    get_card,
    list_reviews,
    record_review,
    save_card,
)

router = APIRouter()
logger = get_logger("review")


def resolve_limit(limit: Optional[int], config: dict) -> int:
    review_cfg = config.get("review", {})
    max_limit = review_cfg.get("max_limit", 200)
    if limit is None:
        limit = review_cfg.get("default_limit", 20)
    if limit < 0:
        raise HTTPException(status_code=422, detail="limit must be non-negative")
    return min(limit, max_limit)


@router.get("/due", response_model=List[Flashcard])
async def due_cards(owner_id: str, limit: Optional[int] = None, conn = Depends(get_db)):
    """Cards due now for an owner, most overdue first."""
    config = load_config()
    cards = fetch_due_cards(conn, owner_id, datetime.now(timezone.utc), resolve_limit(limit, config))
    return [to_flashcard(card) for card in cards]


@router.get("/due/count")
async def due_count(owner_id: str, conn = Depends(get_db)):
    """Cheap endpoint for clients that poll for newly due cards."""
    now = datetime.now(timezone.utc)
    return {"owner_id": owner_id, "due": count_due_cards(conn, owner_id, now), "as_of": now.isoformat()}


@router.post("/{card_id}", response_model=ReviewResult)
async def submit_review(card_id: str, payload: ReviewSubmit, conn = Depends(get_db)):
    """Apply one review: grade (explicit or from the typed answer), reschedule, log."""
    card = get_card(conn, card_id)
    if payload.expected_version is not None and payload.expected_version != card.version:
        raise StaleCardError(card_id, payload.expected_version)
    if payload.grade is not None:
        grade = payload.grade
    else:
        grade = grade_typed_answer(card.answer, payload.typed_answer, load_config())
    now = as_utc(payload.reviewed_at) if payload.reviewed_at else datetime.now(timezone.utc)
    scheduled = schedule_next_review(card, grade, now)
    saved = save_card(conn, scheduled)
    record_review(conn, card_id, grade, now, payload.typed_answer)
    conn.commit()
    logger.info(
        "Card %s graded %d: interval %d days, next review %s",
        card_id,
        grade,
        saved.interval_days,
        saved.next_review_at.isoformat(),
    )
    return ReviewResult(card=to_flashcard(saved), grade=grade, passed=grade >= PASS_GRADE)


@router.post("/{card_id}/undo", response_model=Flashcard)
async def undo_review(card_id: str, conn = Depends(get_db)):
    card = undo_last_review(conn, card_id)
    if card is None:
        raise HTTPException(status_code=409, detail="Card has no reviews to undo")
    conn.commit()
    logger.info("Undid last review of card %s", card_id)
    return to_flashcard(card)


@router.get("/{card_id}/history", response_model=ReviewHistory)
async def review_history(card_id: str, conn = Depends(get_db)):
    get_card(conn, card_id)
    reviews = [ReviewLogEntry(**review) for review in list_reviews(conn, card_id)]
    return ReviewHistory(card_id=card_id, reviews=reviews)
