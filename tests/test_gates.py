"""Tests for the interchangeable access gates."""
from grammar_tutor.db import init_db
from grammar_tutor.gates import LedgerGate, MasteryGate, build_gate
from grammar_tutor.models import Difficulty
from grammar_tutor.tracker import TopicProgressTracker
from grammar_tutor.unlocks import DifficultyUnlockEvaluator


def _parts(tmp_db):
    init_db(tmp_db)
    return TopicProgressTracker(tmp_db), DifficultyUnlockEvaluator(tmp_db)


def test_build_gate_selects_policy(tmp_db):
    tracker, ledger = _parts(tmp_db)
    assert isinstance(build_gate("mastery", tracker, ledger), MasteryGate)
    assert isinstance(build_gate("threshold", tracker, ledger), LedgerGate)


def test_mastery_gate_follows_completion(tmp_db):
    tracker, ledger = _parts(tmp_db)
    gate = MasteryGate(tracker)
    assert gate.allows("Pandiwa", Difficulty.EASY) is True
    assert gate.allows("Pandiwa", Difficulty.MEDIUM) is False
    tracker.update_topic_progress("Pandiwa", Difficulty.EASY, True, 0.9)
    assert gate.allows("Pandiwa", Difficulty.MEDIUM) is True


def test_ledger_gate_follows_unlocks(tmp_db):
    tracker, ledger = _parts(tmp_db)
    gate = LedgerGate(ledger)
    assert gate.allows("Pandiwa", Difficulty.EASY) is True
    assert gate.allows("Pandiwa", Difficulty.MEDIUM) is False
    ledger.evaluate_unlocks("Pandiwa", score=6, avg_response_time=4.0)
    assert gate.allows("Pandiwa", Difficulty.MEDIUM) is True
    assert gate.allows("Pandiwa", Difficulty.HARD) is False


def test_gates_can_disagree(tmp_db):
    tracker, ledger = _parts(tmp_db)
    tracker.update_topic_progress("Pandiwa", Difficulty.EASY, True, 0.9)
    assert MasteryGate(tracker).allows("Pandiwa", Difficulty.MEDIUM) is True
    assert LedgerGate(ledger).allows("Pandiwa", Difficulty.MEDIUM) is False
