"""
Tests for XP, levels and streaks
"""

import sqlite3
import threading
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from gemitalk.core.locks.user_lock_manager import UserLockManager
from gemitalk.gamification import (
    LEVEL_MULTIPLIERS,
    XP_TABLE,
    ProgressionEngine,
    get_level_from_xp,
    get_level_progress,
    get_next_level_info,
    update_streak,
)
from gemitalk.models import LevelUpResult, UserProgress


class TestXpCalculation:
    """Test calculate_xp"""

    @pytest.fixture
    def engine(self):
        return ProgressionEngine(MagicMock())

    def test_examples(self, engine):
        assert engine.calculate_xp(100, 100, "A1") == 150
        assert engine.calculate_xp(100, 50, "B1") == 150
        assert engine.calculate_xp(100, 0, "A1") == 50
        assert engine.calculate_xp(100, 80, "C2") == 390

    def test_multipliers_table(self):
        assert LEVEL_MULTIPLIERS == {
            "A1": 1.0,
            "A2": 1.2,
            "B1": 1.5,
            "B2": 1.8,
            "C1": 2.2,
            "C2": 3.0,
        }

    def test_half_rounds_up(self, engine):
        # 5 * 1.0 * 1.5 = 7.5
        assert engine.calculate_xp(5, 100, "A1") == 8

    def test_unknown_level(self, engine):
        with pytest.raises(ValueError):
            engine.calculate_xp(100, 50, "D1")

    def test_accuracy_is_clamped(self, engine):
        assert engine.calculate_xp(100, 150, "A1") == 150
        assert engine.calculate_xp(100, -20, "A1") == 50


class TestLevels:
    """Test the XP milestone table"""

    def test_table_strictly_increasing(self):
        required = [milestone.xp_required for milestone in XP_TABLE]
        assert required == sorted(set(required))
        assert [milestone.level for milestone in XP_TABLE] == list(range(1, 8))
        assert XP_TABLE[-1].title == "GemiMaster"

    @pytest.mark.parametrize(
        "xp, level",
        [(0, 1), (499, 1), (500, 2), (1199, 2), (1200, 3), (2500, 4), (5000, 5),
         (9999, 5), (10000, 6), (20000, 7), (999999, 7), (-10, 1)],
    )
    def test_level_from_xp(self, xp, level):
        assert get_level_from_xp(xp).level == level

    def test_next_level_info(self):
        upcoming = get_next_level_info(0)
        assert upcoming.level == 2
        assert upcoming.xp_required == 500
        assert get_next_level_info(500).level == 3
        assert get_next_level_info(19999).level == 7

    def test_no_next_level_at_max(self):
        assert get_next_level_info(20000) is None

    def test_level_progress(self):
        assert get_level_progress(0) == 0
        assert get_level_progress(250) == 50
        assert get_level_progress(850) == 50
        assert get_level_progress(25000) == 100

    def test_engine_wrappers(self):
        engine = ProgressionEngine(MagicMock())
        assert engine.get_level_from_xp(1300).title == "Apprentice"
        assert engine.get_next_level_info(1300).title == "Scholar"


class TestStreak:
    """Test update_streak"""

    def test_first_practice(self):
        progress = UserProgress(user_id="learner-1")

        update_streak(progress, date(2024, 3, 1))

        assert progress.current_streak == 1
        assert progress.longest_streak == 1

    def test_consecutive_day(self):
        progress = UserProgress(
            user_id="learner-1",
            current_streak=2,
            longest_streak=2,
            last_practice_date=date(2024, 3, 1),
        )

        update_streak(progress, date(2024, 3, 2))

        assert progress.current_streak == 3
        assert progress.longest_streak == 3

    def test_same_day_unchanged(self):
        progress = UserProgress(
            user_id="learner-1",
            current_streak=4,
            longest_streak=6,
            last_practice_date=date(2024, 3, 1),
        )

        update_streak(progress, date(2024, 3, 1))

        assert progress.current_streak == 4
        assert progress.longest_streak == 6

    def test_gap_resets(self):
        progress = UserProgress(
            user_id="learner-1",
            current_streak=3,
            longest_streak=3,
            last_practice_date=date(2024, 3, 1),
        )

        update_streak(progress, date(2024, 3, 6))

        assert progress.current_streak == 1
        assert progress.longest_streak == 3


class TestUpdateProgress:
    """Test ProgressionEngine.update_progress"""

    @pytest.fixture
    def engine(self, memory_store):
        memory_store.save_progress("learner-1", UserProgress(user_id="learner-1"))
        return ProgressionEngine(memory_store)

    def test_no_profile(self, memory_store):
        engine = ProgressionEngine(memory_store)

        result = engine.update_progress("ghost", 100, datetime(2024, 3, 1, 10))

        assert result == LevelUpResult(leveled_up=False, next_level=1)
        assert memory_store.load_progress("ghost") is None

    def test_adds_xp_and_starts_streak(self, engine, memory_store):
        result = engine.update_progress("learner-1", 120, datetime(2024, 3, 1, 10))

        progress = memory_store.load_progress("learner-1")
        assert result == LevelUpResult(leveled_up=False, next_level=1)
        assert progress.total_xp == 120
        assert progress.current_streak == 1
        assert progress.longest_streak == 1
        assert progress.last_practice_date == date(2024, 3, 1)

    def test_level_up(self, engine, memory_store):
        engine.update_progress("learner-1", 450, datetime(2024, 3, 1, 10))

        result = engine.update_progress("learner-1", 60, datetime(2024, 3, 1, 18))

        assert result == LevelUpResult(leveled_up=True, next_level=2)
        assert memory_store.load_progress("learner-1").total_xp == 510

    def test_multi_level_jump(self, engine):
        result = engine.update_progress("learner-1", 3000, datetime(2024, 3, 1, 10))

        assert result == LevelUpResult(leveled_up=True, next_level=4)

    def test_streak_across_days(self, engine, memory_store):
        """Test three consecutive days followed by a five day gap"""
        start = datetime(2024, 3, 1, 20)
        for offset in range(3):
            engine.update_progress("learner-1", 10, start + timedelta(days=offset))

        progress = memory_store.load_progress("learner-1")
        assert progress.current_streak == 3
        assert progress.longest_streak == 3

        engine.update_progress("learner-1", 10, start + timedelta(days=7))

        progress = memory_store.load_progress("learner-1")
        assert progress.current_streak == 1
        assert progress.longest_streak == 3
        assert progress.last_practice_date == date(2024, 3, 8)

    def test_same_day_twice(self, engine, memory_store):
        engine.update_progress("learner-1", 10, datetime(2024, 3, 1, 8))
        engine.update_progress("learner-1", 10, datetime(2024, 3, 1, 22))

        progress = memory_store.load_progress("learner-1")
        assert progress.current_streak == 1
        assert progress.total_xp == 20

    def test_zero_xp_still_counts_as_practice(self, engine, memory_store):
        engine.update_progress("learner-1", 0, datetime(2024, 3, 1, 8))

        progress = memory_store.load_progress("learner-1")
        assert progress.total_xp == 0
        assert progress.current_streak == 1

    def test_saves_through_store(self):
        store = MagicMock()
        store.load_progress.return_value = UserProgress(user_id="learner-1", total_xp=10)
        engine = ProgressionEngine(store)

        engine.update_progress("learner-1", 5, datetime(2024, 3, 1, 8))

        store.save_progress.assert_called_once()
        user_id, saved = store.save_progress.call_args.args
        assert user_id == "learner-1"
        assert saved.total_xp == 15

    def test_failed_save_leaves_loaded_progress_untouched(self, memory_store):
        """Test that a storage error does not leak the new XP into memory"""
        loaded = UserProgress(
            user_id="learner-1",
            total_xp=10,
            current_streak=2,
            longest_streak=2,
            last_practice_date=date(2024, 2, 29),
        )
        memory_store.save_progress("learner-1", loaded)
        memory_store.save_progress = MagicMock(side_effect=sqlite3.OperationalError("disk I/O error"))
        engine = ProgressionEngine(memory_store)

        with pytest.raises(sqlite3.OperationalError):
            engine.update_progress("learner-1", 500, datetime(2024, 3, 1, 8))

        assert memory_store.load_progress("learner-1") is loaded
        assert loaded.total_xp == 10
        assert loaded.current_streak == 2
        assert loaded.last_practice_date == date(2024, 2, 29)


class TestConcurrentUpdates:
    """Test that concurrent updates for one user are serialized"""

    def test_no_lost_updates(self, temp_db):
        temp_db.get_or_create_progress("learner-1")
        engine = ProgressionEngine(temp_db, UserLockManager(lock_timeout_seconds=10))
        when = datetime(2024, 3, 1, 12)
        errors = []

        def worker():
            try:
                for _ in range(5):
                    engine.update_progress("learner-1", 10, when)
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        progress = temp_db.load_progress("learner-1")
        assert progress.total_xp == 200
        assert progress.current_streak == 1
