"""Tests for data model classes."""
from datetime import datetime

import pytest

from grammar_tutor.models import (
    Difficulty, InvalidIdentifierError, QuestionReviewState, SessionStats, TopicProgress,
    validate_identifier,
)


def test_topic_progress_defaults():
    tp = TopicProgress(topic="Pangngalan")
    assert tp.current_level == Difficulty.EASY
    assert tp.is_easy_completed is False
    assert tp.is_medium_completed is False
    assert tp.is_hard_completed is False
    assert tp.mastery_score == 0.0
    assert tp.question_history == []
    assert tp.is_mastered is False


def test_topic_progress_is_mastered():
    tp = TopicProgress(topic="Pandiwa", is_easy_completed=True, is_medium_completed=True, is_hard_completed=True)
    assert tp.is_mastered is True
    assert tp.is_completed(Difficulty.MEDIUM) is True


def test_latest_state_returns_newest_snapshot():
    tp = TopicProgress(topic="Pandiwa")
    tp.question_history.append(QuestionReviewState(question_id=1, difficulty=Difficulty.EASY, repetitions=1))
    tp.question_history.append(QuestionReviewState(question_id=2, difficulty=Difficulty.EASY))
    tp.question_history.append(QuestionReviewState(question_id=1, difficulty=Difficulty.EASY, repetitions=2))
    assert tp.latest_state(1).repetitions == 2
    assert tp.latest_state(99) is None


def test_question_review_state_defaults():
    qs = QuestionReviewState(question_id=3, difficulty=Difficulty.HARD)
    assert qs.repetitions == 0
    assert qs.ease_factor == 2.5
    assert qs.interval_days == 1
    assert qs.attempts == 1


def test_next_review_adds_interval():
    qs = QuestionReviewState(question_id=3, difficulty=Difficulty.EASY, interval_days=6,
                             last_reviewed="2026-03-01T08:00:00")
    assert qs.next_review() == datetime(2026, 3, 7, 8, 0, 0)


def test_difficulty_next_stops_at_hard():
    assert Difficulty.EASY.next() == Difficulty.MEDIUM
    assert Difficulty.MEDIUM.next() == Difficulty.HARD
    assert Difficulty.HARD.next() == Difficulty.HARD
    assert Difficulty.MEDIUM.label == "Medium"


def test_session_stats_empty():
    stats = SessionStats(topic="Pangngalan")
    assert stats.accuracy == 0.0
    assert stats.average_response_time == 0.0


def test_session_stats_record():
    stats = SessionStats(topic="Pangngalan")
    stats.record(True, 2.0)
    stats.record(False, 4.0)
    stats.record(True, 3.0)
    assert stats.correct == 2
    assert stats.total == 3
    assert stats.accuracy == pytest.approx(2 / 3)
    assert stats.average_response_time == pytest.approx(3.0)


def test_validate_identifier_keeps_case():
    assert validate_identifier("Pang-uri") == "Pang-uri"
    assert validate_identifier("pang-uri") == "pang-uri"


@pytest.mark.parametrize("bad", ["", " Pandiwa", "Pandiwa ", None, 12])
def test_validate_identifier_rejects_malformed(bad):
    with pytest.raises(InvalidIdentifierError):
        validate_identifier(bad)
