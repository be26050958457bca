"""
Word bank repository for Leitner review items
"""

import logging
import sqlite3
from datetime import datetime

from ....models import ReviewItem, Sentence
from ....utils import to_datetime
from ..connection import DatabaseConnection
from ..models import WordBankRow

logger = logging.getLogger(__name__)


def row_to_review_item(row: WordBankRow | sqlite3.Row) -> ReviewItem:
    """Map a word bank row onto a ReviewItem"""
    data = dict(row)
    sentence = Sentence(
        id=data["item_id"],
        text=data["text"],
        translation=data["translation"],
        explanation=data.get("explanation"),
        phonetic=data.get("phonetic"),
    )
    return ReviewItem(
        id=data["item_id"],
        sentence=sentence,
        last_reviewed=to_datetime(data["last_reviewed"]),
        next_review=to_datetime(data["next_review"]),
        interval=data["interval_days"],
        box=data["box"],
    )


class WordBankRepository:
    """Repository for word bank operations"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def load_review_items(self, user_id: str) -> list[ReviewItem]:
        """Get a user's word bank in insertion order"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM word_bank
                WHERE user_id = ?
                ORDER BY position, item_id
                """,
                (user_id,),
            )
            return [row_to_review_item(row) for row in cursor.fetchall()]

    def save_review_items(self, user_id: str, items: list[ReviewItem]) -> None:
        """Replace a user's word bank with the given items"""
        with self.db_connection.get_connection() as conn:
            conn.execute("DELETE FROM word_bank WHERE user_id = ?", (user_id,))
            conn.executemany(
                """
                INSERT INTO word_bank (
                    user_id, item_id, text, translation, explanation, phonetic,
                    box, interval_days, last_reviewed, next_review, position
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        user_id,
                        item.id,
                        item.sentence.text,
                        item.sentence.translation,
                        item.sentence.explanation,
                        item.sentence.phonetic,
                        item.box,
                        item.interval,
                        item.last_reviewed,
                        item.next_review,
                        position,
                    )
                    for position, item in enumerate(items)
                ],
            )
            conn.commit()

        logger.debug(f"Saved {len(items)} word bank items for user {user_id}")

    def count_due_items(self, user_id: str, now: datetime) -> int:
        """Count items due at the given time"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM word_bank WHERE user_id = ? AND next_review <= ?",
                (user_id, now),
            )
            return cursor.fetchone()[0]
