from grammar_tutor.config import DEFAULT_TOPICS, Settings, get_settings
from grammar_tutor.models import UnlockMode


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.mastery_threshold == 0.8
    assert settings.smoothing_alpha == 0.3
    assert settings.unlock_medium_score == 5
    assert settings.unlock_hard_score == 8
    assert settings.medium_speed_threshold == 6.0
    assert settings.hard_speed_threshold == 3.0
    assert settings.module_mastery_threshold == 60.0
    assert settings.module_accuracy_threshold == 50.0
    assert settings.module_level_threshold == 0
    assert settings.default_topics == DEFAULT_TOPICS
    assert settings.unlock_mode is UnlockMode.NORMAL
    assert settings.access_policy == "mastery"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GRAMMAR_TUTOR_UNLOCK_MODE", "UNLOCK_ALL_AND_SAVE")
    monkeypatch.setenv("GRAMMAR_TUTOR_UNLOCK_MEDIUM_SCORE", "3")
    monkeypatch.setenv("GRAMMAR_TUTOR_MODULES", '["Intro", "Advanced"]')
    settings = Settings(_env_file=None)
    assert settings.unlock_mode is UnlockMode.UNLOCK_ALL_AND_SAVE
    assert settings.unlock_medium_score == 3
    assert settings.modules == ["Intro", "Advanced"]


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
