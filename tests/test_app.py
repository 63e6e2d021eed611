import pytest
from unittest.mock import patch

from grammar_tutor.app import (
    SessionExitRequested, cmd_dashboard, cmd_lock_all, cmd_modules, cmd_review, cmd_unlock_all,
    next_question_id, run_practice_session, session_float_prompt, session_prompt,
)
from grammar_tutor.models import Difficulty


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("grammar_tutor.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("grammar_tutor.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("grammar_tutor.app.Prompt.ask", return_value="hello"):
        assert session_prompt("test prompt") == "hello"


def test_session_float_prompt_retries_until_number():
    with patch("grammar_tutor.app.Prompt.ask", side_effect=["fast", "2.5"]):
        assert session_float_prompt("seconds") == 2.5


def test_practice_session_records_answers(engine):
    # two correct answers, one wrong, then blank to finish; blank ids take the next one
    answers = ["", "y", "2", "", "y", "3", "", "n", "4", "", ""]
    with patch("grammar_tutor.app.Prompt.ask", side_effect=answers):
        outcome = run_practice_session(engine, "Pandiwa", Difficulty.EASY)
    assert outcome is not None
    assert outcome.completed is False
    tp = engine.get_topic_progress("Pandiwa")
    assert [qs.is_correct for qs in tp.question_history] == [True, True, False]
    assert [qs.question_id for qs in tp.question_history] == [1, 2, 3]
    assert engine.is_unlocked("Pandiwa", Difficulty.EASY) is True


def test_practice_session_locked_level(engine):
    with patch("grammar_tutor.app.Prompt.ask") as ask:
        assert run_practice_session(engine, "Pandiwa", Difficulty.HARD) is None
    ask.assert_not_called()


def test_practice_session_exit_keeps_answers(engine):
    with patch("grammar_tutor.app.Prompt.ask", side_effect=["", "y", "2", "q"]):
        with pytest.raises(SessionExitRequested):
            run_practice_session(engine, "Pandiwa", Difficulty.EASY)
    assert len(engine.get_topic_progress("Pandiwa").question_history) == 1


def test_admin_commands(engine):
    with patch("grammar_tutor.app.Confirm.ask", return_value=True):
        cmd_unlock_all(engine)
        assert engine.is_unlocked("Pandiwa", Difficulty.HARD) is True
        cmd_lock_all(engine)
        assert engine.is_unlocked("Pandiwa", Difficulty.MEDIUM) is False


def test_admin_command_declined(engine):
    with patch("grammar_tutor.app.Confirm.ask", return_value=False):
        cmd_unlock_all(engine)
    assert engine.is_unlocked("Pandiwa", Difficulty.HARD) is False


def test_read_only_commands_render(engine):
    engine.record_answer("Pandiwa", 1, Difficulty.EASY, False, 2.0)
    cmd_dashboard(engine)
    cmd_review(engine)
    cmd_modules(engine)


def test_next_question_id_follows_history(engine):
    assert next_question_id(engine.get_topic_progress("Pandiwa")) == 1
    engine.record_answer("Pandiwa", 7, Difficulty.EASY, True, 2.0)
    assert next_question_id(engine.get_topic_progress("Pandiwa")) == 8


def test_later_session_does_not_reuse_earlier_ids(engine):
    engine.record_answer("Pandiwa", 1, Difficulty.EASY, True, 2.0)
    engine.record_answer("Pandiwa", 2, Difficulty.EASY, True, 2.0)
    # a new question, then question 1 again by id
    answers = ["", "n", "5", "1", "y", "2", "", ""]
    with patch("grammar_tutor.app.Prompt.ask", side_effect=answers):
        run_practice_session(engine, "Pandiwa", Difficulty.EASY)
    history = engine.get_topic_progress("Pandiwa").question_history
    assert [qs.question_id for qs in history] == [1, 2, 3, 1]
    assert history[2].repetitions == 0
    assert history[3].repetitions == 2


def test_practice_session_rejects_non_numeric_id(engine):
    answers = ["abc", "4", "y", "2", "", ""]
    with patch("grammar_tutor.app.Prompt.ask", side_effect=answers):
        run_practice_session(engine, "Pandiwa", Difficulty.EASY)
    assert [qs.question_id for qs in engine.get_topic_progress("Pandiwa").question_history] == [4]
