"""
Spaced Repetition System implementation using Leitner boxes
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

MIN_BOX = 1
DEFAULT_MAX_BOX = 5


@dataclass
class ReviewResult:
    """Result of a Leitner review"""

    new_box: int
    new_interval: int
    last_reviewed: datetime
    next_review_date: datetime


class LeitnerSystem:
    """Leitner box scheduler: promote on success, back to box 1 on failure"""

    def __init__(self, max_box: int = DEFAULT_MAX_BOX):
        if max_box < MIN_BOX:
            raise ValueError(f"max_box must be at least {MIN_BOX}, got {max_box}")
        self.max_box = max_box

    def interval_for_box(self, box: int) -> int:
        """Review interval in days for an item that was just promoted to box"""
        return 2**box

    def is_mastered(self, box: int) -> bool:
        """Item sits in the top box"""
        return box >= self.max_box

    def calculate_review(
        self,
        box: int,
        success: bool,
        review_time: datetime | None = None,
    ) -> ReviewResult:
        """
        Calculate next review from the current box and the review outcome

        Args:
            box: Current Leitner box (1 to max_box)
            success: Whether the learner recalled the item
            review_time: Time of review (defaults to now)

        Returns:
            ReviewResult with new box, interval and review dates
        """
        if review_time is None:
            review_time = datetime.now()

        if success:
            new_box = min(box + 1, self.max_box)
            new_interval = self.interval_for_box(new_box)
        else:
            new_box = MIN_BOX
            new_interval = 1

        result = ReviewResult(
            new_box=new_box,
            new_interval=new_interval,
            last_reviewed=review_time,
            next_review_date=review_time + timedelta(days=new_interval),
        )

        logger.debug(
            f"Review result: box {box} -> {result.new_box}, "
            f"interval={result.new_interval}, next={result.next_review_date}"
        )

        return result

    def get_initial_review_schedule(
        self, added_at: datetime | None = None
    ) -> ReviewResult:
        """Schedule for a freshly banked item: box 1 and due immediately"""
        if added_at is None:
            added_at = datetime.now()
        return ReviewResult(
            new_box=MIN_BOX,
            new_interval=1,
            last_reviewed=added_at,
            next_review_date=added_at,
        )
