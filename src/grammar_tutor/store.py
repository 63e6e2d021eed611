"""Load and save of persisted progress and unlock ledgers.

Three records are kept, each saved on its own:

* topic progress with the full question review history
* the per-topic unlocked difficulty ledger
* the flat list of unlocked modules

Topic progress is written one topic at a time and new answers are appended
to the stored history rather than rewriting it.

There is no transaction spanning the three, so a crash between two saves can
leave a ledger out of step with the completion flags until the next
evaluation rewrites it.

Loading never fails: an unreadable database or rows that cannot be decoded
are logged and replaced by empty defaults.
"""
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from grammar_tutor.db import get_connection, init_db
from grammar_tutor.models import Difficulty, QuestionReviewState, TopicProgress

logger = logging.getLogger(__name__)

LOAD_ERRORS = (sqlite3.DatabaseError, ValueError, TypeError, KeyError)


def open_store(db_path: str) -> None:
    """Create the schema, moving an unreadable database file out of the way first."""
    try:
        init_db(db_path)
    except sqlite3.DatabaseError as exc:
        path = Path(db_path)
        backup = path.with_name(f"{path.name}.corrupt-{datetime.now():%Y%m%d%H%M%S}")
        logger.warning("Progress database %s is unreadable (%s); moved to %s", db_path, exc, backup)
        path.replace(backup)
        init_db(db_path)


def _row_to_state(row: sqlite3.Row) -> QuestionReviewState:
    return QuestionReviewState(
        question_id=int(row["question_id"]),
        difficulty=Difficulty(row["difficulty"]),
        is_correct=bool(row["is_correct"]),
        response_time=float(row["response_time"]),
        attempts=int(row["attempts"]),
        repetitions=int(row["repetitions"]),
        ease_factor=float(row["ease_factor"]),
        interval_days=int(row["interval_days"]),
        last_reviewed=row["last_reviewed"],
    )


def load_progress(db_path: str) -> dict[str, TopicProgress]:
    try:
        conn = get_connection(db_path)
        try:
            topic_rows = conn.execute("SELECT * FROM topic_progress ORDER BY topic").fetchall()
            review_rows = conn.execute(
                "SELECT * FROM question_reviews ORDER BY topic, position"
            ).fetchall()
        finally:
            conn.close()
        progress = {}
        for row in topic_rows:
            progress[row["topic"]] = TopicProgress(
                topic=row["topic"],
                current_level=Difficulty(row["current_level"]),
                is_easy_completed=bool(row["is_easy_completed"]),
                is_medium_completed=bool(row["is_medium_completed"]),
                is_hard_completed=bool(row["is_hard_completed"]),
                mastery_score=min(1.0, max(0.0, float(row["mastery_score"]))),
                last_played=row["last_played"] or datetime.now().isoformat(),
            )
        for row in review_rows:
            progress[row["topic"]].question_history.append(_row_to_state(row))
    except LOAD_ERRORS as exc:
        logger.warning("Could not load topic progress from %s (%s); starting fresh", db_path, exc)
        return {}
    logger.debug("Loaded progress for %d topics", len(progress))
    return progress


TOPIC_UPSERT = """INSERT INTO topic_progress
    (topic, current_level, is_easy_completed, is_medium_completed,
     is_hard_completed, mastery_score, last_played)
    VALUES (?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(topic) DO UPDATE SET
        current_level = excluded.current_level,
        is_easy_completed = excluded.is_easy_completed,
        is_medium_completed = excluded.is_medium_completed,
        is_hard_completed = excluded.is_hard_completed,
        mastery_score = excluded.mastery_score,
        last_played = excluded.last_played"""

REVIEW_INSERT = """INSERT INTO question_reviews
    (topic, position, question_id, difficulty, is_correct, response_time,
     attempts, repetitions, ease_factor, interval_days, last_reviewed)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"""


def _topic_values(tp: TopicProgress) -> tuple:
    return (
        tp.topic, int(tp.current_level), int(tp.is_easy_completed),
        int(tp.is_medium_completed), int(tp.is_hard_completed),
        tp.mastery_score, tp.last_played,
    )


def _review_values(tp: TopicProgress, start: int = 0) -> list[tuple]:
    return [
        (
            tp.topic, position, qs.question_id, int(qs.difficulty), int(qs.is_correct),
            qs.response_time, qs.attempts, qs.repetitions, qs.ease_factor,
            qs.interval_days, qs.last_reviewed,
        )
        for position, qs in enumerate(tp.question_history[start:], start)
    ]


def save_progress(db_path: str, progress: dict[str, TopicProgress]) -> None:
    """Replace every stored topic and its history with ``progress``."""
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute("DELETE FROM question_reviews")
            conn.execute("DELETE FROM topic_progress")
            for tp in progress.values():
                conn.execute(TOPIC_UPSERT, _topic_values(tp))
                conn.executemany(REVIEW_INSERT, _review_values(tp))
    finally:
        conn.close()
    logger.debug("Saved progress for %d topics", len(progress))


def save_topic_progress(db_path: str, tp: TopicProgress, new_from: int | None = None) -> None:
    """Write one topic's row, appending its history entries from ``new_from`` on.

    Entries before ``new_from`` are assumed to be stored already; with
    ``new_from=None`` the history is left as stored.
    """
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute(TOPIC_UPSERT, _topic_values(tp))
            if new_from is not None:
                conn.executemany(REVIEW_INSERT, _review_values(tp, new_from))
    finally:
        conn.close()


def load_difficulty_unlocks(db_path: str) -> dict[str, set[Difficulty]]:
    try:
        conn = get_connection(db_path)
        try:
            rows = conn.execute("SELECT topic, difficulty FROM difficulty_unlocks").fetchall()
        finally:
            conn.close()
        unlocked: dict[str, set[Difficulty]] = {}
        for row in rows:
            unlocked.setdefault(row["topic"], set()).add(Difficulty(row["difficulty"]))
    except LOAD_ERRORS as exc:
        logger.warning("Could not load difficulty unlocks from %s (%s); starting fresh", db_path, exc)
        return {}
    return unlocked


def save_difficulty_unlocks(db_path: str, unlocked: dict[str, set[Difficulty]]) -> None:
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute("DELETE FROM difficulty_unlocks")
            conn.executemany(
                "INSERT INTO difficulty_unlocks (topic, difficulty) VALUES (?, ?)",
                [(topic, int(level)) for topic, levels in unlocked.items() for level in levels],
            )
    finally:
        conn.close()
    logger.debug("Saved difficulty unlocks for %d topics", len(unlocked))


def load_module_unlocks(db_path: str) -> set[str]:
    try:
        conn = get_connection(db_path)
        try:
            rows = conn.execute("SELECT module FROM module_unlocks").fetchall()
        finally:
            conn.close()
    except LOAD_ERRORS as exc:
        logger.warning("Could not load module unlocks from %s (%s); starting fresh", db_path, exc)
        return set()
    return {row["module"] for row in rows if row["module"]}


def save_module_unlocks(db_path: str, modules: set[str]) -> None:
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute("DELETE FROM module_unlocks")
            conn.executemany(
                "INSERT INTO module_unlocks (module) VALUES (?)",
                [(module,) for module in sorted(modules)],
            )
    finally:
        conn.close()
    logger.debug("Saved %d unlocked modules", len(modules))
