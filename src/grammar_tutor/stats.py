"""Aggregate learner statistics used by the module unlock ledger."""
import math
from dataclasses import dataclass, field
from typing import Protocol

from grammar_tutor.tracker import TopicProgressTracker

XP_PER_CORRECT_ANSWER = 10
XP_PER_LEVEL = 100


class StatsProvider(Protocol):
    def overall_accuracy(self) -> float:
        """Percentage (0-100) of all answers that were correct."""

    def level(self) -> int:
        ...

    def module_mastery(self, module: str) -> float:
        """Mastery (0-100) of one content module."""


def level_for_experience(experience: int) -> int:
    # level = sqrt(xp / 100) + 1
    return math.floor(math.sqrt(max(0, experience) / XP_PER_LEVEL)) + 1


@dataclass
class StaticStatsProvider:
    accuracy: float = 0.0
    user_level: int = 1
    mastery: dict[str, float] = field(default_factory=dict)

    def overall_accuracy(self) -> float:
        return self.accuracy

    def level(self) -> int:
        return self.user_level

    def module_mastery(self, module: str) -> float:
        return self.mastery.get(module, 0.0)


class HistoryStatsProvider:
    """Derives accuracy, level and module mastery from recorded answers."""

    def __init__(self, tracker: TopicProgressTracker, module_topics: dict[str, list[str]] | None = None):
        self.tracker = tracker
        self.module_topics = module_topics or {}

    def _answer_counts(self) -> tuple[int, int]:
        total = correct = 0
        for tp in self.tracker.all_progress().values():
            total += len(tp.question_history)
            correct += sum(1 for qs in tp.question_history if qs.is_correct)
        return total, correct

    def overall_accuracy(self) -> float:
        total, correct = self._answer_counts()
        if total == 0:
            return 0.0
        return correct / total * 100

    def experience(self) -> int:
        _, correct = self._answer_counts()
        return correct * XP_PER_CORRECT_ANSWER

    def level(self) -> int:
        return level_for_experience(self.experience())

    def module_mastery(self, module: str) -> float:
        progress = self.tracker.all_progress()
        scores = [progress[t].mastery_score for t in self.module_topics.get(module, []) if t in progress]
        if not scores:
            return 0.0
        return sum(scores) / len(scores) * 100
