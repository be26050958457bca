"""
Profile repository for learner progress, lesson completions and daily goals
"""

import logging
import math
import sqlite3
from datetime import date, datetime

from ....models import DailyGoal, UserProgress
from ....utils import round_half_up, to_date
from ..connection import DatabaseConnection
from ..models import DailyGoalRow, ProfileRow

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = (
    "total_xp",
    "current_streak",
    "longest_streak",
    "level",
    "last_practice_date",
    "lessons_completed",
    "exercises_completed",
    "pronunciation_accuracy",
    "weekly_goal",
    "weekly_progress",
)


def row_to_progress(row: ProfileRow | sqlite3.Row) -> UserProgress:
    """Map a profile row onto UserProgress, defaulting missing values"""
    data = dict(row)
    return UserProgress(
        user_id=data["user_id"],
        total_xp=data.get("total_xp") or 0,
        current_streak=data.get("current_streak") or 0,
        longest_streak=data.get("longest_streak") or 0,
        level=data.get("level") or "A1",
        last_practice_date=to_date(data.get("last_practice_date")),
        lessons_completed=data.get("lessons_completed") or 0,
        exercises_completed=data.get("exercises_completed") or 0,
        pronunciation_accuracy=data.get("pronunciation_accuracy") or 0,
        weekly_goal=data.get("weekly_goal") or 150,
        weekly_progress=data.get("weekly_progress") or 0,
    )


def row_to_daily_goal(row: DailyGoalRow | sqlite3.Row) -> DailyGoal:
    data = dict(row)
    return DailyGoal(
        user_id=data["user_id"],
        date=to_date(data["goal_date"]),
        target_minutes=data["target_minutes"],
        completed_minutes=data["completed_minutes"],
        is_completed=bool(data["is_completed"]),
    )


class ProfileRepository:
    """Repository for profile-related database operations"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def load_progress(self, user_id: str) -> UserProgress | None:
        """Get progress for a user, None if the profile does not exist"""
        with self.db_connection.get_connection() as conn:
            return self._fetch_progress(conn, user_id)

    def save_progress(self, user_id: str, progress: UserProgress) -> None:
        """Insert or replace the stored progress for a user"""
        with self.db_connection.get_connection() as conn:
            self._write_progress(conn, user_id, progress)
            conn.commit()

    def create_profile(
        self, user_id: str, level: str = "A1", weekly_goal: int = 150
    ) -> UserProgress:
        """Create a profile with zero defaults"""
        progress = UserProgress(user_id=user_id, level=level, weekly_goal=weekly_goal)
        self.save_progress(user_id, progress)
        logger.info(f"Created default profile for user {user_id}")
        return progress

    def get_or_create_progress(
        self, user_id: str, level: str = "A1", weekly_goal: int = 150
    ) -> UserProgress:
        """Get progress for a user, creating a default profile on first use"""
        progress = self.load_progress(user_id)
        if progress is None:
            logger.info(f"No profile found for user {user_id}, creating default")
            progress = self.create_profile(user_id, level, weekly_goal)
        return progress

    def increment_exercises(self, user_id: str, count: int = 1) -> bool:
        """Add completed exercises to the profile counter"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE profiles
                SET exercises_completed = exercises_completed + ?,
                    updated_at = ?
                WHERE user_id = ?
                """,
                (count, datetime.now(), user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def save_lesson_completion(
        self,
        user_id: str,
        lesson_id: str,
        accuracy: int,
        completed_at: datetime | None = None,
    ) -> UserProgress | None:
        """
        Record a completed lesson and fold its accuracy into the profile

        The lesson is recorded once; pronunciation accuracy is averaged with
        the previous value on every completion.
        """
        completed_at = completed_at or datetime.now()

        with self.db_connection.get_connection() as conn:
            progress = self._fetch_progress(conn, user_id)
            if progress is None:
                logger.warning(
                    f"Cannot record lesson {lesson_id}: no profile for user {user_id}"
                )
                return None

            conn.execute(
                """
                INSERT OR IGNORE INTO lesson_completions
                    (user_id, lesson_id, accuracy, completed_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, lesson_id, accuracy, completed_at),
            )

            cursor = conn.execute(
                "SELECT COUNT(*) FROM lesson_completions WHERE user_id = ?",
                (user_id,),
            )
            progress.lessons_completed = cursor.fetchone()[0]
            progress.pronunciation_accuracy = round_half_up(
                (progress.pronunciation_accuracy + accuracy) / 2
            )

            self._write_progress(conn, user_id, progress)
            conn.commit()

        logger.info(
            f"Recorded lesson {lesson_id} for user {user_id} "
            f"(accuracy={accuracy}, average={progress.pronunciation_accuracy})"
        )
        return progress

    def get_completed_lessons(self, user_id: str) -> list[str]:
        """Get IDs of lessons the user has completed, oldest first"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT lesson_id FROM lesson_completions
                WHERE user_id = ?
                ORDER BY completed_at, lesson_id
                """,
                (user_id,),
            )
            return [row["lesson_id"] for row in cursor.fetchall()]

    def is_lesson_completed(self, user_id: str, lesson_id: str) -> bool:
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT 1 FROM lesson_completions WHERE user_id = ? AND lesson_id = ?",
                (user_id, lesson_id),
            )
            return cursor.fetchone() is not None

    def get_daily_goal(self, user_id: str, today: date | None = None) -> DailyGoal | None:
        """Get today's goal, creating it from the weekly goal when missing"""
        today = today or date.today()

        with self.db_connection.get_connection() as conn:
            goal = self._fetch_or_create_goal(conn, user_id, today)
            conn.commit()
            return goal

    def update_daily_goal(
        self, user_id: str, minutes: int, today: date | None = None
    ) -> DailyGoal | None:
        """Add practiced minutes to today's goal and the weekly progress"""
        today = today or date.today()

        with self.db_connection.get_connection() as conn:
            goal = self._fetch_or_create_goal(conn, user_id, today)
            if goal is None:
                return None

            goal.completed_minutes = min(
                goal.completed_minutes + minutes, goal.target_minutes
            )
            goal.is_completed = goal.completed_minutes >= goal.target_minutes

            conn.execute(
                """
                UPDATE daily_goals
                SET completed_minutes = ?, is_completed = ?
                WHERE user_id = ? AND goal_date = ?
                """,
                (goal.completed_minutes, goal.is_completed, user_id, today),
            )
            conn.execute(
                """
                UPDATE profiles
                SET weekly_progress = weekly_progress + ?, updated_at = ?
                WHERE user_id = ?
                """,
                (minutes, datetime.now(), user_id),
            )
            conn.commit()

        if goal.is_completed:
            logger.info(f"User {user_id} reached the daily goal for {today}")
        return goal

    def get_daily_goals(self, user_id: str) -> list[DailyGoal]:
        """Get all stored daily goals for a user"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM daily_goals WHERE user_id = ? ORDER BY goal_date",
                (user_id,),
            )
            return [row_to_daily_goal(row) for row in cursor.fetchall()]

    def _fetch_progress(
        self, conn: sqlite3.Connection, user_id: str
    ) -> UserProgress | None:
        cursor = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,))
        row = cursor.fetchone()
        return row_to_progress(row) if row else None

    def _write_progress(
        self, conn: sqlite3.Connection, user_id: str, progress: UserProgress
    ) -> None:
        values = [getattr(progress, column) for column in PROFILE_COLUMNS]
        assignments = ", ".join(f"{column} = excluded.{column}" for column in PROFILE_COLUMNS)
        conn.execute(
            f"""
            INSERT INTO profiles (user_id, {", ".join(PROFILE_COLUMNS)}, updated_at)
            VALUES (?, {", ".join("?" for _ in PROFILE_COLUMNS)}, ?)
            ON CONFLICT(user_id) DO UPDATE SET {assignments},
                updated_at = excluded.updated_at
            """,  # noqa: S608  # Safe: only fixed column names are interpolated
            (user_id, *values, datetime.now()),
        )

    def _fetch_or_create_goal(
        self, conn: sqlite3.Connection, user_id: str, today: date
    ) -> DailyGoal | None:
        cursor = conn.execute(
            "SELECT * FROM daily_goals WHERE user_id = ? AND goal_date = ?",
            (user_id, today),
        )
        row = cursor.fetchone()
        if row:
            return row_to_daily_goal(row)

        progress = self._fetch_progress(conn, user_id)
        if progress is None:
            logger.warning(f"Cannot create daily goal: no profile for user {user_id}")
            return None

        goal = DailyGoal(
            user_id=user_id,
            date=today,
            target_minutes=math.ceil(progress.weekly_goal / 7),
        )
        conn.execute(
            """
            INSERT INTO daily_goals
                (user_id, goal_date, target_minutes, completed_minutes, is_completed)
            VALUES (?, ?, ?, 0, 0)
            """,
            (user_id, today, goal.target_minutes),
        )
        return goal
