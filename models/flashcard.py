from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, validator


class CardSource(str, Enum):
    LECTURE = "lecture"
    TUTOR = "tutor"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class FlashcardBase(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    difficulty: Difficulty = Difficulty.MEDIUM

    @validator('question', 'answer')
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Question and answer cannot be blank")
        return v


class FlashcardCreate(FlashcardBase):
    owner_id: Optional[str] = None
    source: CardSource = CardSource.LECTURE
    lecture_id: Optional[str] = None
    slide_id: Optional[str] = None
    message_id: Optional[str] = None
    source_content: str = ""

    @validator('lecture_id', always=True)
    def lecture_cards_need_lecture(cls, v, values):
        if values.get('source') == CardSource.LECTURE and not v:
            raise ValueError("Lecture flashcards require a lecture_id")
        return v


class FlashcardUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)
    difficulty: Optional[Difficulty] = None
    source_content: Optional[str] = None

    @validator('question', 'answer')
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Question and answer cannot be blank")
        return v


class GeneratedPair(FlashcardBase):
    slide_id: Optional[str] = None


class GeneratedFlashcardBatch(BaseModel):
    """Question/answer pairs emitted by the external content generator for one lecture."""
    lecture_id: str = Field(..., min_length=1)
    owner_id: Optional[str] = None
    cards: List[GeneratedPair] = Field(..., min_length=1)


class Flashcard(FlashcardCreate):
    id: str
    is_auto_generated: bool = False
    easiness_factor: float = 2.5
    repetition_count: int = 0
    interval_days: int = 0
    last_reviewed_at: Optional[datetime] = None
    next_review_at: datetime
    created_at: Optional[datetime] = None
    version: int = 0
    phase: str = "new"

    class Config:
        from_attributes = True
