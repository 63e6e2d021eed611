"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".grammar_tutor" / "progress.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS topic_progress (
    topic TEXT PRIMARY KEY,
    current_level INTEGER NOT NULL DEFAULT 0,
    is_easy_completed INTEGER NOT NULL DEFAULT 0,
    is_medium_completed INTEGER NOT NULL DEFAULT 0,
    is_hard_completed INTEGER NOT NULL DEFAULT 0,
    mastery_score REAL NOT NULL DEFAULT 0,
    last_played TEXT
);

CREATE TABLE IF NOT EXISTS question_reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic TEXT NOT NULL REFERENCES topic_progress(topic) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    question_id INTEGER NOT NULL,
    difficulty INTEGER NOT NULL,
    is_correct INTEGER NOT NULL,
    response_time REAL NOT NULL DEFAULT 0,
    attempts INTEGER NOT NULL DEFAULT 1,
    repetitions INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    interval_days INTEGER NOT NULL DEFAULT 1,
    last_reviewed TEXT,
    UNIQUE(topic, position)
);

CREATE TABLE IF NOT EXISTS difficulty_unlocks (
    topic TEXT NOT NULL,
    difficulty INTEGER NOT NULL,
    PRIMARY KEY (topic, difficulty)
);

CREATE TABLE IF NOT EXISTS module_unlocks (
    module TEXT PRIMARY KEY
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
