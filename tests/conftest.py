from datetime import datetime

import pytest

from ayah_review.clock import FixedClock
from ayah_review.scheduler import Scheduler

# A Wednesday, so a day either side stays in the same ISO week and month
START = datetime(2024, 3, 13, 9, 0)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_review.db")
    return db_path


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock)
