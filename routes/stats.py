from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from db.database import get_db
from utils.phases import phase_counts, success_rate
from utils.sm2 import PASS_GRADE, is_due
from utils.store import grade_histogram, list_cards

router = APIRouter()

@router.get("/{owner_id}")
async def owner_stats(owner_id: str, conn = Depends(get_db)):
    """Review stats for an owner: card phases, due now, grade spread, success rate."""
    now = datetime.now(timezone.utc)
    cards = list_cards(conn, owner_id=owner_id)
    grades = grade_histogram(conn, owner_id)
    total_reviews = sum(grades.values())
    passed = sum(count for grade, count in grades.items() if grade >= PASS_GRADE)
    return {
        "owner_id": owner_id,
        "total_cards": len(cards),
        "due_now": sum(1 for card in cards if is_due(card, now)),
        "phases": phase_counts(cards),
        "total_reviews": total_reviews,
        "grades": {str(grade): count for grade, count in grades.items()},
        "success_rate": success_rate(passed, total_reviews),
    }
