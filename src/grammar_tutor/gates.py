"""Interchangeable answers to "may the learner open this tier?"."""
from typing import Protocol

from grammar_tutor.models import Difficulty
from grammar_tutor.tracker import TopicProgressTracker
from grammar_tutor.unlocks import DifficultyUnlockEvaluator


class AccessGate(Protocol):
    def allows(self, topic: str, level: Difficulty) -> bool:
        ...


class MasteryGate:
    """Tiers open once the tier below was completed with enough accuracy."""

    def __init__(self, tracker: TopicProgressTracker):
        self.tracker = tracker

    def allows(self, topic: str, level: Difficulty) -> bool:
        return self.tracker.can_access_level(topic, level)


class LedgerGate:
    """Tiers open once a session's score and speed unlocked them."""

    def __init__(self, ledger: DifficultyUnlockEvaluator):
        self.ledger = ledger

    def allows(self, topic: str, level: Difficulty) -> bool:
        return self.ledger.is_unlocked(topic, level)


def build_gate(policy: str, tracker: TopicProgressTracker, ledger: DifficultyUnlockEvaluator) -> AccessGate:
    if policy == "threshold":
        return LedgerGate(ledger)
    return MasteryGate(tracker)
