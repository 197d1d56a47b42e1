from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt, root_validator

from .flashcard import Flashcard


class ReviewSubmit(BaseModel):
    grade: Optional[StrictInt] = Field(None, ge=0, le=5)
    typed_answer: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    expected_version: Optional[int] = Field(None, ge=0)

    @root_validator(skip_on_failure=True)
    def grade_or_answer(cls, values):
        if values.get('grade') is None and values.get('typed_answer') is None:
            raise ValueError("Provide a grade or a typed_answer")
        return values


class ReviewResult(BaseModel):
    card: Flashcard
    grade: int
    passed: bool


class ReviewLogEntry(BaseModel):
    id: int
    card_id: str
    grade: int
    typed_answer: Optional[str] = None
    reviewed_at: datetime

    class Config:
        from_attributes = True


class ReviewHistory(BaseModel):
    card_id: str
    reviews: List[ReviewLogEntry]
