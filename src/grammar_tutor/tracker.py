"""Per-topic mastery, completion flags and level advancement."""
import logging
import sqlite3
from dataclasses import replace
from datetime import datetime

from grammar_tutor.models import Difficulty, QuestionReviewState, TopicProgress, now_iso
from grammar_tutor.review import get_due_questions
from grammar_tutor.sm2 import schedule
from grammar_tutor.store import load_progress, save_progress, save_topic_progress

logger = logging.getLogger(__name__)

_COMPLETION_FLAGS = {
    Difficulty.EASY: "is_easy_completed",
    Difficulty.MEDIUM: "is_medium_completed",
    Difficulty.HARD: "is_hard_completed",
}


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


class TopicProgressTracker:
    """Owns the topic progress map and writes it back after every change."""

    def __init__(
        self,
        db_path: str,
        mastery_threshold: float = 0.8,
        smoothing_alpha: float = 0.3,
        initial_ease_factor: float = 2.5,
        default_topics: list[str] | None = None,
    ) -> None:
        self.db_path = db_path
        self.mastery_threshold = mastery_threshold
        self.smoothing_alpha = min(1.0, max(0.0, smoothing_alpha))
        self.initial_ease_factor = max(1.3, initial_ease_factor)
        self._progress = load_progress(db_path)
        # The first write replaces whatever is stored, including rows that failed to load.
        self._synced = False
        for topic in default_topics or []:
            self._progress.setdefault(topic, TopicProgress(topic=topic))

    def topics(self) -> list[str]:
        return list(self._progress)

    def all_progress(self) -> dict[str, TopicProgress]:
        return self._progress

    def _snapshot(self, topic: str) -> TopicProgress | None:
        progress = self._progress.get(topic)
        if progress is None:
            return None
        return replace(progress, question_history=list(progress.question_history))

    def get_progress(self, topic: str) -> TopicProgress:
        progress = self._progress.get(topic)
        if progress is None:
            clashes = [t for t in self._progress if t.casefold() == topic.casefold()]
            if clashes:
                logger.warning("Topic %r differs only by case from %s; tracking it separately", topic, clashes)
            progress = TopicProgress(topic=topic)
            self._progress[topic] = progress
        return progress

    def _commit(self, topic: str, before: TopicProgress | None, new_from: int | None = None) -> None:
        """Write ``topic`` back, restoring ``before`` in memory if the write fails."""
        try:
            if self._synced:
                save_topic_progress(self.db_path, self._progress[topic], new_from)
            else:
                save_progress(self.db_path, self._progress)
                self._synced = True
        except sqlite3.Error:
            logger.error("Could not save progress for %s; change discarded", topic)
            if before is None:
                self._progress.pop(topic, None)
            else:
                self._progress[topic] = before
            raise

    def record_answer(
        self,
        topic: str,
        question_id: int,
        difficulty: Difficulty,
        correct: bool,
        response_time: float,
        attempts: int = 1,
    ) -> QuestionReviewState:
        difficulty = Difficulty(difficulty)
        before = self._snapshot(topic)
        progress = self.get_progress(topic)
        previous = progress.latest_state(question_id)
        if previous is None:
            previous = QuestionReviewState(
                question_id=question_id,
                difficulty=difficulty,
                ease_factor=self.initial_ease_factor,
            )
        state = schedule(previous, correct, response_time=response_time, attempts=attempts)
        state.difficulty = difficulty
        progress.question_history.append(state)
        progress.last_played = state.last_reviewed
        self._commit(topic, before, new_from=len(progress.question_history) - 1)
        return state

    def update_topic_progress(
        self,
        topic: str,
        difficulty: Difficulty,
        completed: bool,
        accuracy: float,
    ) -> TopicProgress:
        difficulty = Difficulty(difficulty)
        before = self._snapshot(topic)
        progress = self.get_progress(topic)
        sample = min(1.0, max(0.0, accuracy))
        progress.last_played = now_iso()
        progress.mastery_score = min(1.0, max(0.0, lerp(progress.mastery_score, sample, self.smoothing_alpha)))

        if completed and accuracy >= self.mastery_threshold:
            if difficulty != Difficulty.EASY and not progress.is_completed(Difficulty(difficulty - 1)):
                logger.info(
                    "%s %s passed before %s was completed; not marking it complete",
                    topic, difficulty.label, Difficulty(difficulty - 1).label,
                )
            else:
                if not progress.is_completed(difficulty):
                    setattr(progress, _COMPLETION_FLAGS[difficulty], True)
                    if difficulty == Difficulty.HARD:
                        logger.info("%s Hard level completed! Topic mastered!", topic)
                    else:
                        logger.info(
                            "%s %s level completed! Unlocked %s level.",
                            topic, difficulty.label, difficulty.next().label,
                        )
                progress.current_level = max(progress.current_level, difficulty.next())

        self._commit(topic, before)
        return progress

    def can_access_level(self, topic: str, level: Difficulty) -> bool:
        level = Difficulty(level)
        if level == Difficulty.EASY:
            return True
        progress = self._progress.get(topic)
        if progress is None:
            return False
        return progress.is_completed(Difficulty(level - 1))

    def is_topic_mastered(self, topic: str) -> bool:
        progress = self._progress.get(topic)
        return progress is not None and progress.is_mastered

    def get_overall_progress(self) -> float:
        """Fraction of known topics with all three tiers completed."""
        if not self._progress:
            return 0.0
        mastered = sum(1 for tp in self._progress.values() if tp.is_mastered)
        return mastered / len(self._progress)

    def all_current_levels(self) -> dict[str, Difficulty]:
        return {topic: tp.current_level for topic, tp in self._progress.items()}

    def get_questions_for_review(self, topic: str, level: Difficulty, now: datetime | None = None) -> list[int]:
        progress = self._progress.get(topic)
        if progress is None:
            return []
        return get_due_questions(progress, level, now)
