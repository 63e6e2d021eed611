"""Single entry point over progress tracking, scheduling and unlock ledgers.

Build one ``ProgressionEngine`` at start-up and hand it to whatever needs to
read or change learner progress. Every public method runs under one lock and
every change is saved before the method returns, so a caller always reads
what the previous call wrote.
"""
import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from grammar_tutor.config import Settings, get_settings
from grammar_tutor.gates import build_gate
from grammar_tutor.models import (
    Difficulty, QuestionReviewState, SessionStats, TopicProgress, UnlockMode, validate_identifier,
)
from grammar_tutor.stats import HistoryStatsProvider, StatsProvider
from grammar_tutor.store import open_store
from grammar_tutor.tracker import TopicProgressTracker
from grammar_tutor.unlocks import DifficultyUnlockEvaluator, ModuleUnlockEvaluator, resolve_unlock_policy

logger = logging.getLogger(__name__)


@dataclass
class SessionOutcome:
    progress: TopicProgress
    accuracy: float
    completed: bool
    unlocked_difficulties: set[Difficulty] = field(default_factory=set)
    unlocked_modules: list[str] = field(default_factory=list)


class ProgressionEngine:
    def __init__(self, settings: Settings | None = None, stats: StatsProvider | None = None):
        self.settings = settings or get_settings()
        self._lock = threading.RLock()
        db_path = self.settings.db_path
        open_store(db_path)

        self.tracker = TopicProgressTracker(
            db_path,
            mastery_threshold=self.settings.mastery_threshold,
            smoothing_alpha=self.settings.smoothing_alpha,
            initial_ease_factor=self.settings.initial_ease_factor,
            default_topics=self.settings.default_topics,
        )
        self.difficulty_ledger = DifficultyUnlockEvaluator(
            db_path,
            topics=self.tracker.topics(),
            unlock_medium_score=self.settings.unlock_medium_score,
            unlock_hard_score=self.settings.unlock_hard_score,
            medium_speed_threshold=self.settings.medium_speed_threshold,
            hard_speed_threshold=self.settings.hard_speed_threshold,
        )
        self.module_ledger = ModuleUnlockEvaluator(
            db_path,
            modules=self.settings.modules,
            stats=stats or HistoryStatsProvider(self.tracker, self.settings.module_topics),
            mastery_threshold=self.settings.module_mastery_threshold,
            accuracy_threshold=self.settings.module_accuracy_threshold,
            level_threshold=self.settings.module_level_threshold,
        )
        self.gate = build_gate(self.settings.access_policy, self.tracker, self.difficulty_ledger)

        policy = resolve_unlock_policy(self.settings.unlock_mode)
        self.difficulty_ledger.start(policy)
        self.module_ledger.start(policy)
        logger.info(
            "Progression engine ready (%s, %d topics, unlock mode %s)",
            db_path, len(self.tracker.topics()), UnlockMode(self.settings.unlock_mode).value,
        )

    # --- Answer and session events ---

    def record_answer(
        self,
        topic: str,
        question_id: int,
        difficulty: Difficulty,
        correct: bool,
        response_time: float,
        attempts: int = 1,
    ) -> QuestionReviewState:
        topic = validate_identifier(topic)
        with self._lock:
            state = self.tracker.record_answer(topic, question_id, difficulty, correct, response_time, attempts)
            return copy.deepcopy(state)

    def update_topic_progress(
        self, topic: str, difficulty: Difficulty, completed: bool, accuracy: float,
    ) -> TopicProgress:
        topic = validate_identifier(topic)
        with self._lock:
            progress = self.tracker.update_topic_progress(topic, difficulty, completed, accuracy)
            return copy.deepcopy(progress)

    def start_session(self, topic: str, difficulty: Difficulty = Difficulty.EASY) -> SessionStats:
        return SessionStats(topic=validate_identifier(topic), difficulty=Difficulty(difficulty))

    def end_session(self, stats: SessionStats) -> SessionOutcome:
        """Fold a finished session into topic progress and both unlock ledgers."""
        topic = validate_identifier(stats.topic)
        with self._lock:
            accuracy = stats.accuracy
            completed = stats.total > 0 and accuracy >= self.settings.mastery_threshold
            progress = self.tracker.update_topic_progress(topic, stats.difficulty, completed, accuracy)
            unlocked = self.difficulty_ledger.evaluate_unlocks(topic, stats.correct, stats.average_response_time)
            modules = self.module_ledger.evaluate_unlocks()
            return SessionOutcome(
                progress=copy.deepcopy(progress),
                accuracy=accuracy,
                completed=completed,
                unlocked_difficulties=unlocked,
                unlocked_modules=modules,
            )

    # --- Unlock evaluation ---

    def evaluate_difficulty_unlocks(self, topic: str, score: int, avg_response_time: float) -> set[Difficulty]:
        topic = validate_identifier(topic)
        with self._lock:
            return self.difficulty_ledger.evaluate_unlocks(topic, score, avg_response_time)

    def evaluate_module_unlocks(self) -> list[str]:
        with self._lock:
            return self.module_ledger.evaluate_unlocks()

    # --- Queries ---

    def get_topic_progress(self, topic: str) -> TopicProgress:
        topic = validate_identifier(topic)
        with self._lock:
            return copy.deepcopy(self.tracker.get_progress(topic))

    def all_topic_progress(self) -> dict[str, TopicProgress]:
        with self._lock:
            return copy.deepcopy(self.tracker.all_progress())

    def can_access_level(self, topic: str, level: Difficulty) -> bool:
        topic = validate_identifier(topic)
        with self._lock:
            return self.tracker.can_access_level(topic, level)

    def is_unlocked(self, topic: str, level: Difficulty) -> bool:
        topic = validate_identifier(topic)
        with self._lock:
            return self.difficulty_ledger.is_unlocked(topic, level)

    def is_accessible(self, topic: str, level: Difficulty) -> bool:
        """Access decision from whichever gate ``access_policy`` selects."""
        topic = validate_identifier(topic)
        with self._lock:
            return self.gate.allows(topic, level)

    def is_module_unlocked(self, module: str) -> bool:
        module = validate_identifier(module, kind="module")
        with self._lock:
            return self.module_ledger.is_module_unlocked(module)

    def unlocked_modules(self) -> list[str]:
        with self._lock:
            return self.module_ledger.unlocked_modules()

    def is_topic_mastered(self, topic: str) -> bool:
        topic = validate_identifier(topic)
        with self._lock:
            return self.tracker.is_topic_mastered(topic)

    def get_overall_progress(self) -> float:
        with self._lock:
            return self.tracker.get_overall_progress()

    def get_questions_for_review(self, topic: str, level: Difficulty, now: datetime | None = None) -> list[int]:
        topic = validate_identifier(topic)
        with self._lock:
            return self.tracker.get_questions_for_review(topic, level, now)

    # --- Administration ---

    def lock_all(self, save: bool = True) -> None:
        with self._lock:
            self.difficulty_ledger.lock_all(save=save)
            self.module_ledger.lock_all(save=save)

    def unlock_all(self, save: bool = True) -> None:
        with self._lock:
            self.difficulty_ledger.topics = self.tracker.topics()
            self.difficulty_ledger.unlock_all(save=save)
            self.module_ledger.unlock_all(save=save)
