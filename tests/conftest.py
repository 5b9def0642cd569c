import pytest

from prep_progress.db import init_db
from prep_progress.seed import seed_all


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_progress.db")
    return db_path


@pytest.fixture
def seeded_db(tmp_db):
    """A temporary database with sections, topics and achievements loaded."""
    init_db(tmp_db)
    seed_all(tmp_db)
    return tmp_db
