# tests/test_integration.py
"""End-to-end test of a learner working through one topic."""
from datetime import datetime, timedelta

from grammar_tutor.engine import ProgressionEngine
from grammar_tutor.models import Difficulty


def _play(engine, topic, level, answers, seconds=2.0, first_id=1):
    session = engine.start_session(topic, level)
    for offset, correct in enumerate(answers):
        engine.record_answer(topic, first_id + offset, level, correct, seconds)
        session.record(correct, seconds)
    return engine.end_session(session)


def test_full_progression_workflow(settings):
    settings.modules = ["Module1"]
    settings.module_topics = {"Module1": ["Pangngalan"]}
    engine = ProgressionEngine(settings)

    # A weak first session unlocks nothing beyond Easy
    outcome = _play(engine, "Pangngalan", Difficulty.EASY, [True, False, False, True])
    assert outcome.completed is False
    assert not engine.can_access_level("Pangngalan", Difficulty.MEDIUM)
    assert not engine.is_unlocked("Pangngalan", Difficulty.MEDIUM)

    # A strong session completes Easy on both gates
    outcome = _play(engine, "Pangngalan", Difficulty.EASY, [True] * 10, seconds=4.0, first_id=10)
    assert outcome.completed is True
    assert engine.can_access_level("Pangngalan", Difficulty.MEDIUM)
    assert engine.is_unlocked("Pangngalan", Difficulty.MEDIUM)
    assert engine.is_unlocked("Pangngalan", Difficulty.HARD) is False  # 4.0s average is too slow

    _play(engine, "Pangngalan", Difficulty.MEDIUM, [True] * 10, seconds=1.5, first_id=30)
    assert engine.is_unlocked("Pangngalan", Difficulty.HARD)
    _play(engine, "Pangngalan", Difficulty.HARD, [True] * 10, seconds=1.5, first_id=50)
    assert engine.is_topic_mastered("Pangngalan")
    assert engine.get_overall_progress() == 0.5

    # Mastery climbed past the module threshold and accuracy is high enough
    assert engine.is_module_unlocked("Module1")

    # Missed questions come back for review the next day
    due = engine.get_questions_for_review(
        "Pangngalan", Difficulty.EASY, datetime.now() + timedelta(days=1, minutes=1),
    )
    assert 2 in due and 3 in due

    # Everything is still there after a restart
    restarted = ProgressionEngine(settings)
    assert restarted.is_topic_mastered("Pangngalan")
    assert restarted.is_module_unlocked("Module1")
