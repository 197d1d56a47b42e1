from .flashcard import (
    CardSource,
    Difficulty,
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
    GeneratedFlashcardBatch,
    GeneratedPair,
)
from .review import ReviewHistory, ReviewLogEntry, ReviewResult, ReviewSubmit

__all__ = [
    'CardSource', 'Difficulty', 'Flashcard', 'FlashcardCreate', 'FlashcardUpdate',
    'GeneratedFlashcardBatch', 'GeneratedPair', 'ReviewHistory', 'ReviewLogEntry',
    'ReviewResult', 'ReviewSubmit',
]
