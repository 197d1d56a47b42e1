"""SQLite persistence for flashcards and their review log.

Scheduling fields are written only through ``save_card``, which refuses to
overwrite a row whose version moved since the card was read.
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from logging_config import get_logger
from utils.sm2 import ReviewCard, new_card, select_due_cards

logger = get_logger("store")

CONTENT_FIELDS = ("question", "answer", "difficulty", "source_content")

_CARD_COLUMNS = """
    id, owner_id, source, lecture_id, slide_id, message_id, question, answer,
    source_content, difficulty, is_auto_generated, easiness_factor,
    repetition_count, interval_days, last_reviewed_at, next_review_at,
    created_at, version
"""


class CardNotFoundError(LookupError):
    def __init__(self, card_id: str):
        super().__init__(f"Flashcard {card_id} not found")
        self.card_id = card_id


class StaleCardError(RuntimeError):
    def __init__(self, card_id: str, expected_version: int):
        super().__init__(f"Flashcard {card_id} changed since version {expected_version} was read")
        self.card_id = card_id
        self.expected_version = expected_version


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db_ts(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # fixed width so string order in SQL matches time order
    return as_utc(value).isoformat(timespec="microseconds")


def from_db_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value))


def row_to_card(row: sqlite3.Row) -> ReviewCard:
    return ReviewCard(
        id=row["id"],
        owner_id=row["owner_id"],
        source=row["source"],
        lecture_id=row["lecture_id"],
        slide_id=row["slide_id"],
        message_id=row["message_id"],
        question=row["question"],
        answer=row["answer"],
        source_content=row["source_content"] or "",
        difficulty=row["difficulty"],
        is_auto_generated=bool(row["is_auto_generated"]),
        easiness_factor=float(row["easiness_factor"]),
        repetition_count=int(row["repetition_count"]),
        interval_days=int(row["interval_days"]),
        last_reviewed_at=from_db_ts(row["last_reviewed_at"]),
        next_review_at=from_db_ts(row["next_review_at"]),
        created_at=from_db_ts(row["created_at"]),
        version=int(row["version"]),
    )


def _insert_card(cursor, card: ReviewCard) -> None:
    cursor.execute(
        """
        INSERT INTO flashcards (
            id, owner_id, source, lecture_id, slide_id, message_id, question, answer,
            source_content, difficulty, is_auto_generated, easiness_factor,
            repetition_count, interval_days, last_reviewed_at, next_review_at,
            created_at, version
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            card.id,
            card.owner_id,
            card.source,
            card.lecture_id,
            card.slide_id,
            card.message_id,
            card.question,
            card.answer,
            card.source_content,
            card.difficulty,
            int(card.is_auto_generated),
            card.easiness_factor,
            card.repetition_count,
            card.interval_days,
            to_db_ts(card.last_reviewed_at),
            to_db_ts(card.next_review_at),
            to_db_ts(card.created_at),
            card.version,
        ),
    )


def create_card(conn, data: Dict[str, Any], now: datetime) -> ReviewCard:
    """Insert one card with default scheduling state; the caller commits."""
    fields = dict(data)
    question = fields.pop("question")
    answer = fields.pop("answer")
    card = new_card(str(uuid.uuid4()), question, answer, as_utc(now), **fields)
    _insert_card(conn.cursor(), card)
    return card


def create_cards(conn, items: Iterable[Dict[str, Any]], now: datetime) -> List[ReviewCard]:
    return [create_card(conn, item, now) for item in items]


def get_card(conn, card_id: str) -> ReviewCard:
    cursor = conn.cursor()
    cursor.execute(f"SELECT {_CARD_COLUMNS} FROM flashcards WHERE id = ?", (card_id,))
    row = cursor.fetchone()
    if not row:
        raise CardNotFoundError(card_id)
    return row_to_card(row)


def list_cards(
    conn,
    owner_id: Optional[str] = None,
    lecture_id: Optional[str] = None,
    source: Optional[str] = None,
) -> List[ReviewCard]:
    clauses = []
    params: List[Any] = []
    for column, value in (("owner_id", owner_id), ("lecture_id", lecture_id), ("source", source)):
        if value is not None:
            clauses.append(f"{column} = ?")
            params.append(value)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    cursor = conn.cursor()
    cursor.execute(f"SELECT {_CARD_COLUMNS} FROM flashcards {where} ORDER BY created_at, id", params)
    return [row_to_card(row) for row in cursor.fetchall()]


def update_card_content(conn, card_id: str, fields: Dict[str, Any]) -> ReviewCard:
    """Edit content fields only; scheduling state is left alone."""
    updates = {key: value for key, value in fields.items() if key in CONTENT_FIELDS and value is not None}
    if updates:
        assignments = ", ".join(f"{key} = ?" for key in updates)
        cursor = conn.cursor()
        cursor.execute(
            f"UPDATE flashcards SET {assignments} WHERE id = ?",
            (*updates.values(), card_id),
        )
        if cursor.rowcount == 0:
            raise CardNotFoundError(card_id)
    return get_card(conn, card_id)


def delete_card(conn, card_id: str) -> None:
    cursor = conn.cursor()
    cursor.execute("DELETE FROM flashcards WHERE id = ?", (card_id,))
    if cursor.rowcount == 0:
        raise CardNotFoundError(card_id)


def delete_cards_for_lecture(conn, lecture_id: str) -> int:
    cursor = conn.cursor()
    cursor.execute(
        "DELETE FROM flashcards WHERE source = 'lecture' AND lecture_id = ?",
        (lecture_id,),
    )
    deleted = cursor.rowcount
    # tutor cards outlive the lecture, they only lose the link
    cursor.execute(
        "UPDATE flashcards SET lecture_id = NULL WHERE source = 'tutor' AND lecture_id = ?",
        (lecture_id,),
    )
    return deleted


def fetch_due_cards(conn, owner_id: Optional[str], now: datetime, limit: Optional[int] = None) -> List[ReviewCard]:
    cursor = conn.cursor()
    if owner_id is None:
        cursor.execute(
            f"SELECT {_CARD_COLUMNS} FROM flashcards WHERE next_review_at <= ?",
            (to_db_ts(now),),
        )
    else:
        cursor.execute(
            f"SELECT {_CARD_COLUMNS} FROM flashcards WHERE owner_id = ? AND next_review_at <= ?",
            (owner_id, to_db_ts(now)),
        )
    cards = [row_to_card(row) for row in cursor.fetchall()]
    return select_due_cards(cards, as_utc(now), limit)


def count_due_cards(conn, owner_id: Optional[str], now: datetime) -> int:
    return len(fetch_due_cards(conn, owner_id, now))


def save_card(conn, card: ReviewCard) -> ReviewCard:
    """Write the scheduling fields if the row is still at ``card.version``.

    Returns the card with its version bumped. Raises StaleCardError when a
    concurrent save got there first and CardNotFoundError when the row is gone.
    """
    cursor = conn.cursor()
    cursor.execute(
        """
        UPDATE flashcards
        SET easiness_factor = ?, repetition_count = ?, interval_days = ?,
            last_reviewed_at = ?, next_review_at = ?, version = version + 1
        WHERE id = ? AND version = ?
        """,
        (
            card.easiness_factor,
            card.repetition_count,
            card.interval_days,
            to_db_ts(card.last_reviewed_at),
            to_db_ts(card.next_review_at),
            card.id,
            card.version,
        ),
    )
    if cursor.rowcount == 0:
        cursor.execute("SELECT version FROM flashcards WHERE id = ?", (card.id,))
        if cursor.fetchone() is None:
            raise CardNotFoundError(card.id)
        logger.warning("Rejected stale save for card %s at version %s", card.id, card.version)
        raise StaleCardError(card.id, card.version)
    return get_card(conn, card.id)


def record_review(
    conn,
    card_id: str,
    grade: int,
    reviewed_at: datetime,
    typed_answer: Optional[str] = None,
) -> int:
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO flashcard_reviews (card_id, grade, typed_answer, reviewed_at)
        VALUES (?, ?, ?, ?)
        """,
        (card_id, grade, typed_answer, to_db_ts(reviewed_at)),
    )
    return cursor.lastrowid


def list_reviews(conn, card_id: str) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id, card_id, grade, typed_answer, reviewed_at
        FROM flashcard_reviews
        WHERE card_id = ?
        ORDER BY id ASC
        """,
        (card_id,),
    )
    reviews = []
    for row in cursor.fetchall():
        review = dict(row)
        review["reviewed_at"] = from_db_ts(review["reviewed_at"])
        reviews.append(review)
    return reviews


def delete_last_review(conn, card_id: str) -> Optional[Dict[str, Any]]:
    reviews = list_reviews(conn, card_id)
    if not reviews:
        return None
    last = reviews[-1]
    conn.cursor().execute("DELETE FROM flashcard_reviews WHERE id = ?", (last["id"],))
    return last


def grade_histogram(conn, owner_id: str) -> Dict[int, int]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT r.grade, COUNT(*)
        FROM flashcard_reviews r
        JOIN flashcards f ON f.id = r.card_id
        WHERE f.owner_id = ?
        GROUP BY r.grade
        """,
        (owner_id,),
    )
    histogram = {grade: 0 for grade in range(6)}
    for grade, count in cursor.fetchall():
        histogram[int(grade)] = int(count)
    return histogram
