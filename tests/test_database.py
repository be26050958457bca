"""
Unit tests for database operations
"""

import json
import os
import tempfile
from datetime import date, datetime, timedelta

import pytest

from gemitalk.core.database.database_manager import EXPORT_VERSION, DatabaseManager
from gemitalk.models import UserProgress
from gemitalk.word_bank import WordBank


class TestDatabaseSchema:
    """Test schema creation"""

    def test_database_initialization(self, temp_db):
        with temp_db.get_connection() as conn:
            cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in cursor.fetchall()}

        assert {"profiles", "word_bank", "lesson_completions", "daily_goals"} <= tables

    def test_init_is_repeatable(self, temp_db):
        temp_db.init_database()
        temp_db.init_database()

        assert temp_db.load_progress("learner-1") is None

    def test_word_bank_columns(self, temp_db):
        """Test that a fresh schema carries every word bank column"""
        with temp_db.get_connection() as conn:
            cursor = conn.execute("PRAGMA table_info(word_bank)")
            columns = [row[1] for row in cursor.fetchall()]

        assert columns == [
            "user_id",
            "item_id",
            "text",
            "translation",
            "explanation",
            "phonetic",
            "box",
            "interval_days",
            "last_reviewed",
            "next_review",
            "position",
        ]

    def test_wal_mode(self, temp_db):
        with temp_db.get_connection() as conn:
            mode = conn.execute("PRAGMA journal_mode").fetchone()[0]

        assert mode.lower() == "wal"


class TestProfileStorage:
    """Test progress load and save"""

    def test_missing_profile(self, temp_db):
        assert temp_db.load_progress("nobody") is None

    def test_get_or_create_defaults(self, temp_db):
        progress = temp_db.get_or_create_progress("learner-1")

        assert progress == UserProgress(user_id="learner-1")
        assert progress.level == "A1"
        assert progress.weekly_goal == 150
        assert temp_db.load_progress("learner-1") == progress

    def test_get_or_create_keeps_existing(self, temp_db):
        temp_db.save_progress("learner-1", UserProgress(user_id="learner-1", total_xp=40))

        progress = temp_db.get_or_create_progress("learner-1", level="B2")

        assert progress.total_xp == 40
        assert progress.level == "A1"

    def test_save_and_load_round_trip(self, temp_db):
        progress = UserProgress(
            user_id="learner-1",
            total_xp=1300,
            current_streak=4,
            longest_streak=9,
            level="B1",
            last_practice_date=date(2024, 3, 1),
            lessons_completed=6,
            exercises_completed=42,
            pronunciation_accuracy=77,
            weekly_goal=210,
            weekly_progress=35,
        )

        temp_db.save_progress("learner-1", progress)
        loaded = temp_db.load_progress("learner-1")

        assert loaded == progress
        assert isinstance(loaded.last_practice_date, date)

    def test_save_overwrites(self, temp_db):
        temp_db.save_progress("learner-1", UserProgress(user_id="learner-1", total_xp=1))
        temp_db.save_progress("learner-1", UserProgress(user_id="learner-1", total_xp=2))

        assert temp_db.load_progress("learner-1").total_xp == 2

    def test_increment_exercises(self, temp_db):
        temp_db.get_or_create_progress("learner-1")

        assert temp_db.increment_exercises("learner-1") is True
        assert temp_db.increment_exercises("learner-1", 2) is True
        assert temp_db.increment_exercises("nobody") is False

        assert temp_db.load_progress("learner-1").exercises_completed == 3


class TestLessonCompletion:
    """Test lesson completion bookkeeping"""

    @pytest.fixture
    def db(self, temp_db):
        temp_db.get_or_create_progress("learner-1")
        return temp_db

    def test_first_completion(self, db):
        progress = db.save_lesson_completion("learner-1", "a1-1", 80, datetime(2024, 3, 1, 9))

        assert progress.lessons_completed == 1
        assert progress.pronunciation_accuracy == 40
        assert db.is_lesson_completed("learner-1", "a1-1")
        assert not db.is_lesson_completed("learner-1", "b1-1")

    def test_repeat_completion_counts_once(self, db):
        db.save_lesson_completion("learner-1", "a1-1", 80, datetime(2024, 3, 1, 9))
        progress = db.save_lesson_completion(
            "learner-1", "a1-1", 90, datetime(2024, 3, 2, 9)
        )

        assert progress.lessons_completed == 1
        # round((40 + 90) / 2)
        assert progress.pronunciation_accuracy == 65
        assert db.load_progress("learner-1") == progress

    def test_completed_lessons_in_order(self, db):
        db.save_lesson_completion("learner-1", "b1-1", 70, datetime(2024, 3, 2, 9))
        db.save_lesson_completion("learner-1", "a1-1", 70, datetime(2024, 3, 1, 9))

        assert db.get_completed_lessons("learner-1") == ["a1-1", "b1-1"]
        assert db.load_progress("learner-1").lessons_completed == 2

    def test_average_rounds_half_up(self, db):
        db.save_lesson_completion("learner-1", "a1-1", 75)

        # (0 + 75) / 2 = 37.5
        assert db.load_progress("learner-1").pronunciation_accuracy == 38

    def test_no_profile(self, temp_db):
        assert temp_db.save_lesson_completion("nobody", "a1-1", 90) is None
        assert temp_db.get_completed_lessons("nobody") == []


class TestDailyGoals:
    """Test daily goal tracking"""

    @pytest.fixture
    def db(self, temp_db):
        temp_db.get_or_create_progress("learner-1")
        return temp_db

    def test_goal_created_from_weekly_goal(self, db):
        goal = db.get_daily_goal("learner-1", date(2024, 3, 1))

        assert goal.target_minutes == 22
        assert goal.completed_minutes == 0
        assert goal.is_completed is False
        assert goal.date == date(2024, 3, 1)

    def test_update_accumulates_and_caps(self, db):
        today = date(2024, 3, 1)

        goal = db.update_daily_goal("learner-1", 10, today)
        assert goal.completed_minutes == 10
        assert goal.is_completed is False

        goal = db.update_daily_goal("learner-1", 15, today)
        assert goal.completed_minutes == 22
        assert goal.is_completed is True

        assert db.get_daily_goal("learner-1", today) == goal
        assert db.load_progress("learner-1").weekly_progress == 25

    def test_goals_are_per_day(self, db):
        db.update_daily_goal("learner-1", 10, date(2024, 3, 1))
        db.update_daily_goal("learner-1", 5, date(2024, 3, 2))

        goals = db.get_daily_goals("learner-1")
        assert [goal.completed_minutes for goal in goals] == [10, 5]

    def test_no_profile(self, temp_db):
        assert temp_db.get_daily_goal("nobody", date(2024, 3, 1)) is None
        assert temp_db.update_daily_goal("nobody", 10, date(2024, 3, 1)) is None


class TestExportImport:
    """Test backup and restore of a user's data"""

    @pytest.fixture
    def populated_db(self, temp_db, sentence):
        now = datetime(2024, 3, 1, 9, 30)
        temp_db.save_progress(
            "learner-1",
            UserProgress(
                user_id="learner-1",
                total_xp=640,
                current_streak=2,
                longest_streak=5,
                last_practice_date=date(2024, 3, 1),
            ),
        )
        temp_db.save_lesson_completion("learner-1", "a1-1", 82, now)
        temp_db.update_daily_goal("learner-1", 10, now.date())
        bank = WordBank(temp_db, "learner-1")
        bank.add_to_bank(sentence, now)
        bank.update_review(sentence.id, True, now)
        return temp_db

    @pytest.fixture
    def other_db(self):
        temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
        temp_file.close()
        db_manager = DatabaseManager(temp_file.name)
        db_manager.init_database()

        yield db_manager

        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(temp_file.name + suffix):
                os.unlink(temp_file.name + suffix)

    def test_export_is_json_ready(self, populated_db):
        data = populated_db.export_user_data("learner-1")

        assert data["export_info"]["version"] == EXPORT_VERSION
        assert data["progress"]["total_xp"] == 640
        assert data["progress"]["last_practice_date"] == "2024-03-01"
        assert [row["lesson_id"] for row in data["completed_lessons"]] == ["a1-1"]
        assert len(data["word_bank"]) == 1
        assert len(data["daily_goals"]) == 1
        json.dumps(data)

    def test_export_unknown_user(self, temp_db):
        data = temp_db.export_user_data("nobody")

        assert data["progress"] is None
        assert data["word_bank"] == []

    def test_import_restores_everything(self, populated_db, other_db, sentence):
        data = json.loads(json.dumps(populated_db.export_user_data("learner-1")))

        counts = other_db.import_user_data(data)

        assert counts == {
            "progress": 1,
            "completed_lessons": 1,
            "word_bank": 1,
            "daily_goals": 1,
        }
        assert other_db.load_progress("learner-1") == populated_db.load_progress(
            "learner-1"
        )
        assert other_db.load_review_items("learner-1") == populated_db.load_review_items(
            "learner-1"
        )
        assert other_db.get_completed_lessons("learner-1") == ["a1-1"]
        goal = other_db.get_daily_goal("learner-1", date(2024, 3, 1))
        assert goal.completed_minutes == 10

        item = other_db.load_review_items("learner-1")[0]
        assert item.sentence == sentence
        assert item.next_review == datetime(2024, 3, 1, 9, 30) + timedelta(days=4)
