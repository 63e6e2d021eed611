"""Threshold-based unlock ledgers for difficulty tiers and content modules.

Both ledgers only ever grow during normal play. The only way to remove an
entry is an explicit ``lock_all``.

An override applied with ``save=False`` lives in memory only. While it is in
effect the ledger keeps the saved entries aside and writes back those plus
whatever the learner genuinely earns, never the override itself.
"""
import logging

from grammar_tutor.models import Difficulty, UnlockMode
from grammar_tutor.stats import StatsProvider
from grammar_tutor.store import (
    load_difficulty_unlocks, load_module_unlocks, save_difficulty_unlocks, save_module_unlocks,
)

logger = logging.getLogger(__name__)


# --- Start-up policies ---


class LoadSavedPolicy:
    evaluate_on_start = True

    def apply(self, ledger) -> None:
        ledger.load()


class UnlockAllPolicy:
    evaluate_on_start = False

    def __init__(self, save: bool = False):
        self.save = save

    def apply(self, ledger) -> None:
        if not self.save:
            ledger.load()
        ledger.unlock_all(save=self.save)


class LockAllPolicy:
    evaluate_on_start = False

    def __init__(self, save: bool = False):
        self.save = save

    def apply(self, ledger) -> None:
        if not self.save:
            ledger.load()
        ledger.lock_all(save=self.save)


def resolve_unlock_policy(mode: UnlockMode):
    """Turn the configured start-up mode into the policy object that applies it."""
    return {
        UnlockMode.NORMAL: LoadSavedPolicy,
        UnlockMode.UNLOCK_ALL: lambda: UnlockAllPolicy(save=False),
        UnlockMode.LOCK_ALL: lambda: LockAllPolicy(save=False),
        UnlockMode.UNLOCK_ALL_AND_SAVE: lambda: UnlockAllPolicy(save=True),
        UnlockMode.LOCK_ALL_AND_SAVE: lambda: LockAllPolicy(save=True),
    }[UnlockMode(mode)]()


# --- Difficulty ledger ---


class DifficultyUnlockEvaluator:
    """Unlocked difficulties per topic, earned from session score and speed."""

    def __init__(
        self,
        db_path: str,
        topics: list[str] | None = None,
        unlock_medium_score: int = 5,
        unlock_hard_score: int = 8,
        medium_speed_threshold: float = 6.0,
        hard_speed_threshold: float = 3.0,
    ) -> None:
        self.db_path = db_path
        self.topics = list(topics or [])
        self.unlock_medium_score = unlock_medium_score
        self.unlock_hard_score = unlock_hard_score
        self.medium_speed_threshold = medium_speed_threshold
        self.hard_speed_threshold = hard_speed_threshold
        self._unlocked: dict[str, set[Difficulty]] = {}
        # Saved entries held aside while an in-memory override is active.
        self._saved: dict[str, set[Difficulty]] | None = None

    @property
    def unlocked(self) -> dict[str, set[Difficulty]]:
        return self._unlocked

    def start(self, policy) -> None:
        policy.apply(self)
        logger.debug("Difficulty ledger ready with %d topics", len(self._unlocked))

    def load(self) -> None:
        self._unlocked = load_difficulty_unlocks(self.db_path)
        self._saved = None

    def save(self) -> None:
        save_difficulty_unlocks(self.db_path, self._unlocked if self._saved is None else self._saved)

    def _override(self, save: bool) -> None:
        if save:
            self._saved = None
        elif self._saved is None:
            self._saved = {topic: set(levels) for topic, levels in self._unlocked.items()}

    def is_unlocked(self, topic: str, level: Difficulty) -> bool:
        level = Difficulty(level)
        return level == Difficulty.EASY or level in self._unlocked.get(topic, set())

    def _add(self, topic: str, level: Difficulty) -> bool:
        levels = self._unlocked.setdefault(topic, set())
        if level in levels:
            return False
        levels.add(level)
        logger.info("Unlocked %s for topic %s", level.label, topic)
        return True

    def _record(self, topic: str, level: Difficulty) -> bool:
        if self._saved is None:
            return False
        levels = self._saved.setdefault(topic, set())
        if level in levels:
            return False
        levels.add(level)
        return True

    def unlock(self, topic: str, level: Difficulty) -> None:
        level = Difficulty(level)
        added = self._add(topic, level)
        recorded = self._record(topic, level)
        if added or recorded:
            self.save()

    def _passes(self, tier: Difficulty, score: int, avg_time: float, min_score: int, max_time: float) -> bool:
        if min_score <= 0 or max_time <= 0:
            logger.warning(
                "%s unlock thresholds are not positive (score=%s, time=%s); %s stays locked",
                tier.label, min_score, max_time, tier.label,
            )
            return False
        return score >= min_score and avg_time <= max_time

    def evaluate_unlocks(self, topic: str, score: int, avg_response_time: float) -> set[Difficulty]:
        """Unlock every tier the session qualifies for and return the new ones."""
        earned = [Difficulty.EASY]
        if self._passes(Difficulty.MEDIUM, score, avg_response_time,
                        self.unlock_medium_score, self.medium_speed_threshold):
            earned.append(Difficulty.MEDIUM)
        if self._passes(Difficulty.HARD, score, avg_response_time,
                        self.unlock_hard_score, self.hard_speed_threshold):
            earned.append(Difficulty.HARD)

        added = {level for level in earned if self._add(topic, level)}
        recorded = [level for level in earned if self._record(topic, level)]
        if added or recorded:
            self.save()
        return added

    def lock_all(self, save: bool = True) -> None:
        self._override(save)
        self._unlocked.clear()
        logger.info("All difficulties locked%s", "" if save else " in memory")
        if save:
            self.save()

    def unlock_all(self, save: bool = False) -> None:
        self._override(save)
        for topic in self.topics:
            self._unlocked[topic] = set(Difficulty)
        logger.info("All difficulties unlocked for %d topics%s", len(self.topics), "" if save else " in memory")
        if save:
            self.save()


# --- Module ledger ---


class ModuleUnlockEvaluator:
    """Unlocked content modules, earned from aggregate learner stats."""

    def __init__(
        self,
        db_path: str,
        modules: list[str],
        stats: StatsProvider,
        mastery_threshold: float = 60.0,
        accuracy_threshold: float = 50.0,
        level_threshold: int = 0,
    ) -> None:
        self.db_path = db_path
        self.modules = list(modules)
        self.stats = stats
        self.mastery_threshold = mastery_threshold
        self.accuracy_threshold = accuracy_threshold
        self.level_threshold = level_threshold
        self._unlocked: set[str] = set()
        self._saved: set[str] | None = None

    def start(self, policy) -> None:
        policy.apply(self)
        if policy.evaluate_on_start:
            self.evaluate_unlocks()

    def load(self) -> None:
        self._unlocked = load_module_unlocks(self.db_path)
        self._saved = None

    def save(self) -> None:
        save_module_unlocks(self.db_path, self._unlocked if self._saved is None else self._saved)

    def _override(self, save: bool) -> None:
        if save:
            self._saved = None
        elif self._saved is None:
            self._saved = set(self._unlocked)

    def _record(self, module: str) -> bool:
        if self._saved is None or module in self._saved:
            return False
        self._saved.add(module)
        return True

    def unlocked_modules(self) -> list[str]:
        """Unlocked modules in configured order, then any others alphabetically."""
        ordered = [m for m in self.modules if m in self._unlocked]
        return ordered + sorted(self._unlocked - set(self.modules))

    def is_module_unlocked(self, module: str) -> bool:
        return module in self._unlocked

    def unlock_module(self, module: str) -> None:
        added = module not in self._unlocked
        self._unlocked.add(module)
        recorded = self._record(module)
        if added or recorded:
            self.save()
        if added:
            logger.info("Unlocked module: %s", module)

    def evaluate_unlocks(self) -> list[str]:
        """Unlock every module whose mastery meets the threshold; return the new ones.

        Nothing is evaluated unless overall accuracy and level pass the global
        gate first. Modules are independent of each other.
        """
        if not self.modules:
            logger.warning("No modules configured; nothing to unlock")
            return []
        if self.mastery_threshold <= 0:
            logger.warning("Module mastery threshold %s is not positive; nothing unlocks", self.mastery_threshold)
            return []

        accuracy = self.stats.overall_accuracy()
        level = self.stats.level()
        logger.debug("Evaluating module unlocks: accuracy=%.1f level=%d", accuracy, level)
        if accuracy < self.accuracy_threshold or level < self.level_threshold:
            logger.debug("Not enough stats for module unlock evaluation.")
            return []

        added = []
        recorded = False
        for module in self.modules:
            if module in self._unlocked and (self._saved is None or module in self._saved):
                continue
            if self.stats.module_mastery(module) >= self.mastery_threshold:
                recorded = self._record(module) or recorded
                if module not in self._unlocked:
                    self._unlocked.add(module)
                    added.append(module)
                    logger.info("Unlocked module: %s", module)
        if added or recorded:
            self.save()
        return added

    def lock_all(self, save: bool = True) -> None:
        self._override(save)
        self._unlocked.clear()
        logger.info("All modules locked%s", "" if save else " in memory")
        if save:
            self.save()

    def unlock_all(self, save: bool = False) -> None:
        self._override(save)
        self._unlocked.update(self.modules)
        logger.info("All %d modules unlocked%s", len(self.modules), "" if save else " in memory")
        if save:
            self.save()
