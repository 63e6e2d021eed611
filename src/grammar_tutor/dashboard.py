"""Progress dashboard labels and per-topic summary rows."""
from grammar_tutor.engine import ProgressionEngine
from grammar_tutor.models import Difficulty


def get_mastery_label(score: float) -> str:
    if score >= 0.8:
        return "MASTERED"
    elif score >= 0.65:
        return "STRONG"
    elif score >= 0.5:
        return "NEEDS WORK"
    return "BEGINNER"


def get_mastery_color(score: float) -> str:
    if score >= 0.8:
        return "green"
    elif score >= 0.65:
        return "yellow"
    elif score >= 0.5:
        return "dark_orange"
    return "red"


def _tier_marks(flags: list[bool]) -> str:
    return "".join("✓" if done else "·" for done in flags)


def get_topic_rows(engine: ProgressionEngine) -> list[dict]:
    rows = []
    for topic, tp in engine.all_topic_progress().items():
        rows.append({
            "topic": topic,
            "current_level": tp.current_level.label,
            "completed": _tier_marks([tp.is_easy_completed, tp.is_medium_completed, tp.is_hard_completed]),
            "mastery": round(tp.mastery_score * 100, 1),
            "label": get_mastery_label(tp.mastery_score),
            "unlocked": [level.label for level in Difficulty if engine.is_unlocked(topic, level)],
            "answered": len(tp.question_history),
        })
    return rows


def get_progress_stats(engine: ProgressionEngine) -> dict:
    progress = engine.all_topic_progress()
    answered = sum(len(tp.question_history) for tp in progress.values())
    correct = sum(1 for tp in progress.values() for qs in tp.question_history if qs.is_correct)
    return {
        "topics": len(progress),
        "mastered": sum(1 for tp in progress.values() if tp.is_mastered),
        "overall_progress": round(engine.get_overall_progress() * 100, 1),
        "answers_recorded": answered,
        "accuracy": round(correct / answered * 100, 1) if answered else 0.0,
        "unlocked_modules": engine.unlocked_modules(),
    }
