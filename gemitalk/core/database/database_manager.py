"""
Unified database manager that coordinates all repositories

Implements the storage contract consumed by the progression engine and the
word bank: load/save progress and load/save review items per user.
"""

import logging
from dataclasses import asdict
from datetime import date, datetime
from typing import Any

from ...models import DailyGoal, ReviewItem, UserProgress
from ...utils import safe_int, to_date, to_datetime
from .connection import DatabaseConnection
from .repositories.profile_repository import ProfileRepository, row_to_progress
from .repositories.word_bank_repository import WordBankRepository, row_to_review_item

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


class DatabaseManager:
    """Unified database manager that coordinates all repositories"""

    def __init__(self, db_path: str | None = None):
        self.db_connection = DatabaseConnection(db_path)
        self.profile_repo = ProfileRepository(self.db_connection)
        self.word_bank_repo = WordBankRepository(self.db_connection)

    def init_database(self) -> None:
        """Initialize database tables and indexes"""
        self.db_connection.init_database()

    # Progress methods
    def load_progress(self, user_id: str) -> UserProgress | None:
        return self.profile_repo.load_progress(user_id)

    def save_progress(self, user_id: str, progress: UserProgress) -> None:
        self.profile_repo.save_progress(user_id, progress)

    def get_or_create_progress(
        self, user_id: str, level: str = "A1", weekly_goal: int = 150
    ) -> UserProgress:
        return self.profile_repo.get_or_create_progress(user_id, level, weekly_goal)

    def increment_exercises(self, user_id: str, count: int = 1) -> bool:
        return self.profile_repo.increment_exercises(user_id, count)

    def save_lesson_completion(
        self,
        user_id: str,
        lesson_id: str,
        accuracy: int,
        completed_at: datetime | None = None,
    ) -> UserProgress | None:
        return self.profile_repo.save_lesson_completion(
            user_id, lesson_id, accuracy, completed_at
        )

    def get_completed_lessons(self, user_id: str) -> list[str]:
        return self.profile_repo.get_completed_lessons(user_id)

    def is_lesson_completed(self, user_id: str, lesson_id: str) -> bool:
        return self.profile_repo.is_lesson_completed(user_id, lesson_id)

    def get_daily_goal(self, user_id: str, today: date | None = None) -> DailyGoal | None:
        return self.profile_repo.get_daily_goal(user_id, today)

    def update_daily_goal(
        self, user_id: str, minutes: int, today: date | None = None
    ) -> DailyGoal | None:
        return self.profile_repo.update_daily_goal(user_id, minutes, today)

    def get_daily_goals(self, user_id: str) -> list[DailyGoal]:
        return self.profile_repo.get_daily_goals(user_id)

    # Word bank methods
    def load_review_items(self, user_id: str) -> list[ReviewItem]:
        return self.word_bank_repo.load_review_items(user_id)

    def save_review_items(self, user_id: str, items: list[ReviewItem]) -> None:
        self.word_bank_repo.save_review_items(user_id, items)

    def count_due_items(self, user_id: str, now: datetime | None = None) -> int:
        return self.word_bank_repo.count_due_items(user_id, now or datetime.now())

    # Backup methods
    def export_user_data(self, user_id: str) -> dict[str, Any]:
        """Collect a user's data into a JSON-ready dict"""
        progress = self.load_progress(user_id)

        with self.db_connection.get_connection() as conn:
            completions = [
                dict(row)
                for row in conn.execute(
                    "SELECT * FROM lesson_completions WHERE user_id = ? ORDER BY completed_at",
                    (user_id,),
                ).fetchall()
            ]
            word_bank = [
                dict(row)
                for row in conn.execute(
                    "SELECT * FROM word_bank WHERE user_id = ? ORDER BY position",
                    (user_id,),
                ).fetchall()
            ]
            goals = [
                dict(row)
                for row in conn.execute(
                    "SELECT * FROM daily_goals WHERE user_id = ? ORDER BY goal_date",
                    (user_id,),
                ).fetchall()
            ]

        return _jsonable(
            {
                "export_info": {
                    "exported_at": datetime.now().isoformat(),
                    "version": EXPORT_VERSION,
                },
                "user_id": user_id,
                "progress": asdict(progress) if progress else None,
                "completed_lessons": completions,
                "word_bank": word_bank,
                "daily_goals": goals,
            }
        )

    def import_user_data(self, data: dict[str, Any]) -> dict[str, int]:
        """Restore a user's data from an export; returns imported counts"""
        user_id = data["user_id"]
        counts = {"progress": 0, "completed_lessons": 0, "word_bank": 0, "daily_goals": 0}

        if data.get("progress"):
            raw = dict(data["progress"], user_id=user_id)
            self.save_progress(user_id, row_to_progress(raw))
            counts["progress"] = 1

        items = [
            row_to_review_item(dict(row, user_id=user_id))
            for row in data.get("word_bank", [])
        ]
        if items:
            self.save_review_items(user_id, items)
            counts["word_bank"] = len(items)

        with self.db_connection.get_connection() as conn:
            for completion in data.get("completed_lessons", []):
                conn.execute(
                    """
                    INSERT OR REPLACE INTO lesson_completions
                        (user_id, lesson_id, accuracy, completed_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        completion["lesson_id"],
                        safe_int(completion.get("accuracy")),
                        to_datetime(completion.get("completed_at") or datetime.now()),
                    ),
                )
                counts["completed_lessons"] += 1

            for goal in data.get("daily_goals", []):
                conn.execute(
                    """
                    INSERT OR REPLACE INTO daily_goals
                        (user_id, goal_date, target_minutes, completed_minutes, is_completed)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        to_date(goal["goal_date"]),
                        safe_int(goal["target_minutes"]),
                        safe_int(goal.get("completed_minutes")),
                        bool(goal.get("is_completed", False)),
                    ),
                )
                counts["daily_goals"] += 1

            conn.commit()

        logger.info(f"Imported data for user {user_id}: {counts}")
        return counts

    def get_connection(self):
        """Get database connection for direct SQL access in tests"""
        return self.db_connection.get_connection()


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
