"""
Pytest fixtures and test configuration
"""
import os

import pytest

from beforeafter.core.models import BeforeAfterRecord
from beforeafter.storage.database import RecordDatabase

from .helpers import data_url, make_image


@pytest.fixture
def black_url():
    return data_url(make_image(color=(0, 0, 0)))


@pytest.fixture
def white_url():
    return data_url(make_image(color=(255, 255, 255)))


@pytest.fixture
def db(tmp_path):
    """Fresh record database in a temporary directory."""
    return RecordDatabase(tmp_path / "records.db")


@pytest.fixture
def sample_record(black_url, white_url):
    return BeforeAfterRecord(
        title="Garden",
        date="2024-05-01",
        before=[black_url],
        after=[white_url],
        change_score=100,
        id="rec-1",
        created_at=1714521600000,
    )


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep BEFOREAFTER_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("BEFOREAFTER_"):
            monkeypatch.delenv(key, raising=False)
