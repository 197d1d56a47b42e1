# SQL schema for the LectureLens review database

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Flashcards (lecture cards and tutor cards share one table, keyed by source)
CREATE TABLE IF NOT EXISTS flashcards (
    id TEXT PRIMARY KEY,
    owner_id TEXT,
    source TEXT NOT NULL DEFAULT 'lecture' CHECK(source IN ('lecture', 'tutor')),
    lecture_id TEXT,
    slide_id TEXT,
    message_id TEXT,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    source_content TEXT NOT NULL DEFAULT '',
    difficulty TEXT NOT NULL DEFAULT 'medium' CHECK(difficulty IN ('easy', 'medium', 'hard')),
    is_auto_generated INTEGER NOT NULL DEFAULT 0,
    easiness_factor REAL NOT NULL DEFAULT 2.5,
    repetition_count INTEGER NOT NULL DEFAULT 0,
    interval_days INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT,
    next_review_at TEXT NOT NULL,
    created_at TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 0
);

-- Review log
CREATE TABLE IF NOT EXISTS flashcard_reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    card_id TEXT NOT NULL,
    grade INTEGER NOT NULL CHECK(grade BETWEEN 0 AND 5),
    typed_answer TEXT,
    reviewed_at TEXT NOT NULL,
    FOREIGN KEY (card_id) REFERENCES flashcards (id) ON DELETE CASCADE
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_flashcards_owner_due ON flashcards (owner_id, next_review_at);
CREATE INDEX IF NOT EXISTS idx_flashcards_lecture ON flashcards (lecture_id);
CREATE INDEX IF NOT EXISTS idx_flashcards_message ON flashcards (message_id);
CREATE INDEX IF NOT EXISTS idx_flashcard_reviews_card ON flashcard_reviews (card_id, reviewed_at);
"""
