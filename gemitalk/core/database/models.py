"""
Database row models for the GemiTalk practice core
"""

from datetime import date, datetime
from typing import TypedDict


class ProfileRow(TypedDict):
    """Profile row"""
    user_id: str
    total_xp: int
    current_streak: int
    longest_streak: int
    level: str
    last_practice_date: date | None
    lessons_completed: int
    exercises_completed: int
    pronunciation_accuracy: int
    weekly_goal: int
    weekly_progress: int
    created_at: datetime
    updated_at: datetime


class WordBankRow(TypedDict):
    """Word bank (Leitner box) row"""
    user_id: str
    item_id: str
    text: str
    translation: str
    explanation: str | None
    phonetic: str | None
    box: int
    interval_days: int
    last_reviewed: datetime
    next_review: datetime
    position: int


class DailyGoalRow(TypedDict):
    """Daily goal row"""
    user_id: str
    goal_date: date
    target_minutes: int
    completed_minutes: int
    is_completed: bool
