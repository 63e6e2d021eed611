"""Data classes for the progression domain model."""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, IntEnum


class Difficulty(IntEnum):
    EASY = 0
    MEDIUM = 1
    HARD = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def next(self) -> "Difficulty":
        """The tier above this one; HARD is the top."""
        return Difficulty(min(self + 1, Difficulty.HARD))


class UnlockMode(str, Enum):
    """Start-up override applied to the unlock ledgers."""

    NORMAL = "NORMAL"
    UNLOCK_ALL = "UNLOCK_ALL"
    LOCK_ALL = "LOCK_ALL"
    UNLOCK_ALL_AND_SAVE = "UNLOCK_ALL_AND_SAVE"
    LOCK_ALL_AND_SAVE = "LOCK_ALL_AND_SAVE"


class InvalidIdentifierError(ValueError):
    pass


def validate_identifier(value, kind: str = "topic") -> str:
    """Return ``value`` unchanged if it is usable as a topic or module id.

    Identifiers are case-sensitive and never normalized, so a padded or empty
    string is rejected instead of silently creating a separate record.
    """
    if not isinstance(value, str):
        raise InvalidIdentifierError(f"{kind} id must be a string, got {type(value).__name__}")
    if not value:
        raise InvalidIdentifierError(f"{kind} id must not be empty")
    if value != value.strip():
        raise InvalidIdentifierError(f"{kind} id {value!r} has leading or trailing whitespace")
    return value


def now_iso() -> str:
    return datetime.now().isoformat()


@dataclass
class QuestionReviewState:
    question_id: int
    difficulty: Difficulty
    is_correct: bool = False
    response_time: float = 0.0
    attempts: int = 1
    repetitions: int = 0
    ease_factor: float = 2.5
    interval_days: int = 1
    last_reviewed: str = field(default_factory=now_iso)

    def next_review(self) -> datetime:
        return datetime.fromisoformat(self.last_reviewed) + timedelta(days=self.interval_days)


@dataclass
class TopicProgress:
    topic: str
    current_level: Difficulty = Difficulty.EASY
    is_easy_completed: bool = False
    is_medium_completed: bool = False
    is_hard_completed: bool = False
    mastery_score: float = 0.0
    last_played: str = field(default_factory=now_iso)
    question_history: list[QuestionReviewState] = field(default_factory=list)

    @property
    def is_mastered(self) -> bool:
        return self.is_easy_completed and self.is_medium_completed and self.is_hard_completed

    def is_completed(self, level: Difficulty) -> bool:
        return {
            Difficulty.EASY: self.is_easy_completed,
            Difficulty.MEDIUM: self.is_medium_completed,
            Difficulty.HARD: self.is_hard_completed,
        }[level]

    def latest_state(self, question_id: int) -> QuestionReviewState | None:
        """Most recent review snapshot for a question, if it was ever answered."""
        for state in reversed(self.question_history):
            if state.question_id == question_id:
                return state
        return None


@dataclass
class SessionStats:
    """Running totals for one play session. Never persisted."""

    topic: str
    difficulty: Difficulty = Difficulty.EASY
    correct: int = 0
    total: int = 0
    total_response_time: float = 0.0

    def record(self, correct: bool, response_time: float) -> None:
        self.total += 1
        if correct:
            self.correct += 1
        self.total_response_time += max(0.0, response_time)

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return self.correct / self.total

    @property
    def average_response_time(self) -> float:
        if self.total == 0:
            return 0.0
        return self.total_response_time / self.total
