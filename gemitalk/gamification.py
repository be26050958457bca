"""
XP, levels and streaks for learner progression
"""

import logging
from contextlib import nullcontext
from dataclasses import replace
from datetime import date, datetime

from .core.locks.user_lock_manager import UserLockManager
from .models import LevelMilestone, LevelUpResult, UserProgress
from .utils import clamp, round_half_up

logger = logging.getLogger(__name__)

XP_TABLE: tuple[LevelMilestone, ...] = (
    LevelMilestone(level=1, xp_required=0, title="Beginner"),
    LevelMilestone(level=2, xp_required=500, title="Novice"),
    LevelMilestone(level=3, xp_required=1200, title="Apprentice"),
    LevelMilestone(level=4, xp_required=2500, title="Scholar"),
    LevelMilestone(level=5, xp_required=5000, title="Wordsmith"),
    LevelMilestone(level=6, xp_required=10000, title="Sage"),
    LevelMilestone(level=7, xp_required=20000, title="GemiMaster"),
)

# Multiplier based on proficiency level
LEVEL_MULTIPLIERS: dict[str, float] = {
    "A1": 1.0,
    "A2": 1.2,
    "B1": 1.5,
    "B2": 1.8,
    "C1": 2.2,
    "C2": 3.0,
}


def get_level_from_xp(xp: int) -> LevelMilestone:
    """Highest milestone reached with the given XP (level 1 as the floor)"""
    for milestone in reversed(XP_TABLE):
        if xp >= milestone.xp_required:
            return milestone
    return XP_TABLE[0]


def get_next_level_info(xp: int) -> LevelMilestone | None:
    """Next milestone above the given XP, None at max level"""
    return next((m for m in XP_TABLE if m.xp_required > xp), None)


def get_level_progress(xp: int) -> int:
    """Percent of the way from the current milestone to the next one"""
    current = get_level_from_xp(xp)
    upcoming = get_next_level_info(xp)
    if upcoming is None:
        return 100
    span = upcoming.xp_required - current.xp_required
    return int(clamp((xp - current.xp_required) * 100 // span, 0, 100))


def update_streak(progress: UserProgress, today: date) -> None:
    """
    Apply the calendar-day streak rules in place

    No previous practice starts a streak of 1, a one-day gap extends it,
    a longer gap restarts it at 1 and a same-day repeat leaves it alone.
    """
    last_practice = progress.last_practice_date

    if last_practice is None:
        progress.current_streak = 1
    else:
        gap_days = (today - last_practice).days
        if gap_days == 1:
            progress.current_streak += 1
        elif gap_days > 1:
            logger.info(
                f"Streak broken for user {progress.user_id} after {gap_days} days"
            )
            progress.current_streak = 1

    progress.longest_streak = max(progress.longest_streak, progress.current_streak)


class ProgressionEngine:
    """
    Converts practice outcomes into XP and keeps streaks and levels current

    The store must provide load_progress(user_id) and
    save_progress(user_id, progress).
    """

    def __init__(self, store, lock_manager: UserLockManager | None = None):
        self.store = store
        self.lock_manager = lock_manager

    def calculate_xp(self, base_xp: float, accuracy: float, level: str) -> int:
        """
        XP for a practice unit

        Args:
            base_xp: XP before multipliers
            accuracy: Score 0-100, clamped into range
            level: CEFR level of the lesson

        Returns:
            round(base_xp * level multiplier * (0.5 + accuracy / 100))
        """
        if level not in LEVEL_MULTIPLIERS:
            raise ValueError(f"Unknown level {level!r}, expected one of {list(LEVEL_MULTIPLIERS)}")

        level_multiplier = LEVEL_MULTIPLIERS[level]
        # Accuracy bonus (0.5x to 1.5x)
        accuracy_bonus = 0.5 + clamp(accuracy, 0, 100) / 100

        return round_half_up(base_xp * level_multiplier * accuracy_bonus)

    def update_progress(
        self, user_id: str, earned_xp: int, now: datetime | None = None
    ) -> LevelUpResult:
        """
        Add earned XP, update the streak and report a level-up

        Returns:
            LevelUpResult; (False, 1) when the user has no stored progress
        """
        today = (now or datetime.now()).date()

        lock = (
            self.lock_manager.user_lock(user_id, "update_progress")
            if self.lock_manager
            else nullcontext()
        )
        with lock:
            stored = self.store.load_progress(user_id)
            if stored is None:
                logger.warning(f"No progress stored for user {user_id}, skipping XP update")
                return LevelUpResult(leveled_up=False, next_level=1)

            current_level = get_level_from_xp(stored.total_xp)
            new_total_xp = stored.total_xp + earned_xp
            new_level = get_level_from_xp(new_total_xp)

            # Work on a copy; the loaded record is never mutated
            progress = replace(stored, total_xp=new_total_xp)
            update_streak(progress, today)
            progress.last_practice_date = today

            self.store.save_progress(user_id, progress)

        leveled_up = new_level.level > current_level.level
        if leveled_up:
            logger.info(
                f"User {user_id} leveled up to {new_level.level} ({new_level.title})"
            )
        logger.debug(
            f"User {user_id} earned {earned_xp} XP (total={new_total_xp}, "
            f"streak={progress.current_streak})"
        )

        return LevelUpResult(leveled_up=leveled_up, next_level=new_level.level)

    def get_level_from_xp(self, xp: int) -> LevelMilestone:
        return get_level_from_xp(xp)

    def get_next_level_info(self, xp: int) -> LevelMilestone | None:
        return get_next_level_info(xp)
