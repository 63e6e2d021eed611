import pytest

from grammar_tutor.config import Settings
from grammar_tutor.engine import ProgressionEngine


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_progress.db")
    return db_path


@pytest.fixture
def settings(tmp_db):
    """Settings pointing at the temporary database, ignoring any local .env."""
    return Settings(_env_file=None, db_path=tmp_db, default_topics=["Pangngalan", "Pandiwa"])


@pytest.fixture
def engine(settings):
    return ProgressionEngine(settings)
