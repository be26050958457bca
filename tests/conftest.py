"""
Shared fixtures
"""

import os
import tempfile
from datetime import datetime

import pytest

from gemitalk.core.database.database_manager import DatabaseManager
from gemitalk.models import ReviewItem, Sentence


class InMemoryStore:
    """Dict-backed store implementing the progress and review-item contract"""

    def __init__(self):
        self.progress = {}
        self.items = {}

    def load_progress(self, user_id):
        return self.progress.get(user_id)

    def save_progress(self, user_id, progress):
        self.progress[user_id] = progress

    def load_review_items(self, user_id):
        return list(self.items.get(user_id, []))

    def save_review_items(self, user_id, items):
        self.items[user_id] = list(items)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def temp_db():
    """Create temporary database for testing"""
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    temp_file.close()

    db_manager = DatabaseManager(temp_file.name)
    db_manager.init_database()

    yield db_manager

    # Cleanup, including WAL side files
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(temp_file.name + suffix):
            os.unlink(temp_file.name + suffix)


@pytest.fixture
def sentence():
    return Sentence(
        id="a1-1-s1",
        text="Hello, how are you today?",
        translation="مرحباً، كيف حالك اليوم؟",
        explanation="A friendly opening greeting.",
    )


@pytest.fixture
def other_sentence():
    return Sentence(
        id="a1-1-s2",
        text="My name is Alex and I am from London.",
        translation="اسمي أليكس وأنا من لندن.",
    )


@pytest.fixture
def now():
    return datetime(2024, 3, 1, 9, 30)


@pytest.fixture
def make_item():
    """Build a ReviewItem due at a given time"""

    def _make(sentence, next_review, box=1, interval=1):
        return ReviewItem(
            id=sentence.id,
            sentence=sentence,
            last_reviewed=next_review,
            next_review=next_review,
            interval=interval,
            box=box,
        )

    return _make
