from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from db.database import get_db
from logging_config import get_logger
from models.flashcard import (
    CardSource,
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
    GeneratedFlashcardBatch,
)
from utils.phases import card_phase
from utils.sm2 import ReviewCard
from utils.store import (
    create_card,
    create_cards,
    delete_card,
    delete_cards_for_lecture,
    get_card,
    list_cards,
    update_card_content,
)

router = APIRouter()
logger = get_logger("flashcards")


def to_flashcard(card: ReviewCard) -> Flashcard:
    return Flashcard(**asdict(card), phase=card_phase(card))


@router.post("", response_model=Flashcard, status_code=status.HTTP_201_CREATED)
async def add_flashcard(payload: FlashcardCreate, conn = Depends(get_db)):
    """Create one flashcard, due immediately."""
    data = payload.model_dump(mode="json")
    card = create_card(conn, data, datetime.now(timezone.utc))
    conn.commit()
    return to_flashcard(card)


@router.post("/generated", response_model=List[Flashcard], status_code=status.HTTP_201_CREATED)
async def import_generated(batch: GeneratedFlashcardBatch, conn = Depends(get_db)):
    """Store question/answer pairs produced by the content generator for a lecture."""
    items = [
        {
            **pair.model_dump(mode="json"),
            "owner_id": batch.owner_id,
            "lecture_id": batch.lecture_id,
            "source": CardSource.LECTURE.value,
            "is_auto_generated": True,
        }
        for pair in batch.cards
    ]
    cards = create_cards(conn, items, datetime.now(timezone.utc))
    conn.commit()
    logger.info("Imported %d generated flashcards for lecture %s", len(cards), batch.lecture_id)
    return [to_flashcard(card) for card in cards]


@router.get("", response_model=List[Flashcard])
async def get_flashcards(
    owner_id: Optional[str] = None,
    lecture_id: Optional[str] = None,
    source: Optional[CardSource] = None,
    conn = Depends(get_db),
):
    cards = list_cards(
        conn,
        owner_id=owner_id,
        lecture_id=lecture_id,
        source=source.value if source else None,
    )
    return [to_flashcard(card) for card in cards]


@router.get("/{card_id}", response_model=Flashcard)
async def get_flashcard(card_id: str, conn = Depends(get_db)):
    return to_flashcard(get_card(conn, card_id))


@router.patch("/{card_id}", response_model=Flashcard)
async def edit_flashcard(card_id: str, payload: FlashcardUpdate, conn = Depends(get_db)):
    """Edit question, answer or labels. Scheduling state is not editable here."""
    card = update_card_content(conn, card_id, payload.model_dump(mode="json", exclude_unset=True))
    conn.commit()
    return to_flashcard(card)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_flashcard(card_id: str, conn = Depends(get_db)):
    delete_card(conn, card_id)
    conn.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("")
async def remove_lecture_flashcards(lecture_id: Optional[str] = None, conn = Depends(get_db)):
    """Lecture removed upstream: delete its lecture cards, unlink its tutor cards."""
    if not lecture_id:
        raise HTTPException(status_code=400, detail="lecture_id is required")
    deleted = delete_cards_for_lecture(conn, lecture_id)
    conn.commit()
    logger.info("Deleted %d lecture flashcards for lecture %s", deleted, lecture_id)
    return {"lecture_id": lecture_id, "deleted": deleted}
