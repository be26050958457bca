"""
Word bank of weak sentences scheduled with Leitner boxes
"""

import logging
from collections import Counter
from contextlib import nullcontext
from datetime import datetime

from .core.locks.user_lock_manager import UserLockManager
from .models import ReviewItem, Sentence
from .spaced_repetition import LeitnerSystem

logger = logging.getLogger(__name__)

DEFAULT_WEAKNESS_THRESHOLD = 70


class WordBank:
    """
    A single learner's review queue

    Every operation loads the user's items from the store, applies the change
    and writes them back, under the user's lock when a lock manager is given.
    The store must provide load_review_items(user_id) and
    save_review_items(user_id, items).
    """

    def __init__(
        self,
        store,
        user_id: str,
        srs_system: LeitnerSystem | None = None,
        lock_manager: UserLockManager | None = None,
        weakness_threshold: int = DEFAULT_WEAKNESS_THRESHOLD,
    ):
        self.store = store
        self.user_id = user_id
        self.srs_system = srs_system or LeitnerSystem()
        self.lock_manager = lock_manager
        self.weakness_threshold = weakness_threshold

    def _locked(self, operation: str):
        if self.lock_manager is None:
            return nullcontext()
        return self.lock_manager.user_lock(self.user_id, operation)

    def get_bank(self) -> list[ReviewItem]:
        """Get every item in the bank"""
        return self.store.load_review_items(self.user_id)

    def add_to_bank(self, sentence: Sentence, now: datetime | None = None) -> bool:
        """
        Add a sentence to box 1, due immediately

        Returns:
            True if the sentence was added, False if it was already banked
        """
        with self._locked("add_to_bank"):
            bank = self.store.load_review_items(self.user_id)
            if any(item.id == sentence.id for item in bank):
                logger.debug(f"Sentence {sentence.id} already in bank for {self.user_id}")
                return False

            schedule = self.srs_system.get_initial_review_schedule(now)
            bank.append(
                ReviewItem(
                    id=sentence.id,
                    sentence=sentence,
                    last_reviewed=schedule.last_reviewed,
                    next_review=schedule.next_review_date,
                    interval=schedule.new_interval,
                    box=schedule.new_box,
                )
            )
            self.store.save_review_items(self.user_id, bank)

        logger.info(f"Added sentence {sentence.id} to word bank for user {self.user_id}")
        return True

    def bank_if_weak(
        self, sentence: Sentence, score: int, now: datetime | None = None
    ) -> bool:
        """Bank the sentence when the attempt scored below the weakness threshold"""
        if score >= self.weakness_threshold:
            return False
        return self.add_to_bank(sentence, now)

    def get_due_items(self, now: datetime | None = None) -> list[ReviewItem]:
        """Get items whose next review is at or before now, earliest first"""
        if now is None:
            now = datetime.now()
        due = [item for item in self.get_bank() if item.is_due(now)]
        return sorted(due, key=lambda item: item.next_review)

    def update_review(
        self, item_id: str, success: bool, now: datetime | None = None
    ) -> bool:
        """
        Apply a review outcome to an item

        Args:
            item_id: ID of the banked sentence
            success: Whether the learner recalled it
            now: Time of review (defaults to now)

        Returns:
            True if the item was updated, False if it is not in the bank
        """
        with self._locked("update_review"):
            bank = self.store.load_review_items(self.user_id)
            item = next((entry for entry in bank if entry.id == item_id), None)
            if item is None:
                logger.warning(
                    f"Review item {item_id} not found in bank for user {self.user_id}"
                )
                return False

            result = self.srs_system.calculate_review(item.box, success, now)
            item.box = result.new_box
            item.interval = result.new_interval
            item.last_reviewed = result.last_reviewed
            item.next_review = result.next_review_date

            self.store.save_review_items(self.user_id, bank)

        if self.srs_system.is_mastered(item.box):
            logger.info(f"Item {item_id} is in the top box for user {self.user_id}")
        return True

    def remove_from_bank(self, item_id: str) -> bool:
        """Remove an item from the bank (pruning)"""
        with self._locked("remove_from_bank"):
            bank = self.store.load_review_items(self.user_id)
            remaining = [item for item in bank if item.id != item_id]
            if len(remaining) == len(bank):
                return False
            self.store.save_review_items(self.user_id, remaining)

        logger.info(f"Removed item {item_id} from bank for user {self.user_id}")
        return True

    def get_box_counts(self) -> dict[int, int]:
        """Count items per Leitner box"""
        counts = Counter(item.box for item in self.get_bank())
        return {box: counts.get(box, 0) for box in range(1, self.srs_system.max_box + 1)}
