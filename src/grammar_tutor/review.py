"""Due-question selection and weak topic identification."""
from datetime import datetime

from grammar_tutor.models import Difficulty, TopicProgress


def get_due_questions(progress: TopicProgress, level: Difficulty, now: datetime | None = None) -> list[int]:
    """Question ids at ``level`` whose latest review is due, earliest due first."""
    now = now or datetime.now()
    latest = {}
    for state in progress.question_history:
        latest[state.question_id] = state
    due = [
        state for state in latest.values()
        if state.difficulty == level and state.next_review() <= now
    ]
    due.sort(key=lambda s: (s.next_review(), s.question_id))
    return [s.question_id for s in due]


def get_weak_topics(progress: dict[str, TopicProgress], threshold: float = 0.7) -> list[dict]:
    """Get topics whose mastery score is below threshold (sorted weakest first)."""
    weak = [tp for tp in progress.values() if tp.mastery_score < threshold]
    weak.sort(key=lambda tp: (tp.mastery_score, tp.topic))
    return [
        {
            "topic": tp.topic,
            "mastery_score": round(tp.mastery_score, 2),
            "current_level": tp.current_level.label,
            "answered": len(tp.question_history),
        }
        for tp in weak
    ]
