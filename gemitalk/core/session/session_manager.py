"""
Session management for practice lessons, word bank reviews and placement tests
"""

import logging
from dataclasses import replace
from datetime import datetime

from ...config import Settings, get_settings
from ...gamification import ProgressionEngine
from ...lessons import PLACEMENT_SENTENCES, determine_placement_level
from ...models import (
    Lesson,
    LessonSummary,
    LevelUpResult,
    PronunciationResult,
    ReviewItem,
    ReviewSummary,
    Sentence,
)
from ...pronunciation import PronunciationScorer
from ...spaced_repetition import LeitnerSystem
from ...utils import Timer, log_execution_time, round_half_up
from ...word_bank import WordBank
from ..database.database_manager import DatabaseManager
from ..locks.user_lock_manager import UserLockManager

logger = logging.getLogger(__name__)


def new_session_id(user_id: str) -> str:
    return f"{user_id}_{int(datetime.now().timestamp()) % 1000000}"


class PracticeSession:
    """Represents a single lesson practice session"""

    def __init__(self, session_id: str, user_id: str, lesson: Lesson):
        self.session_id = session_id
        self.user_id = user_id
        self.lesson = lesson
        self.current_sentence_index = 0
        self.scores: dict[str, int] = {}
        self.weak_sentences: list[str] = []
        self.timer = Timer()
        self.created_at = datetime.now()

    def get_current_sentence(self) -> Sentence | None:
        """Get the sentence being practiced"""
        if self.current_sentence_index < len(self.lesson.sentences):
            return self.lesson.sentences[self.current_sentence_index]
        return None

    def advance_to_next_sentence(self):
        """Move to the next sentence in the lesson"""
        self.current_sentence_index += 1

    def is_finished(self) -> bool:
        """Check if every sentence has been visited"""
        return self.current_sentence_index >= len(self.lesson.sentences)

    def record_score(self, sentence_id: str, score: int):
        """Keep the latest score for a sentence"""
        self.scores[sentence_id] = score

    def average_score(self) -> int:
        """Average of the recorded sentence scores, 0 when nothing was scored"""
        if not self.scores:
            return 0
        return round_half_up(sum(self.scores.values()) / len(self.scores))


class ReviewSession:
    """Represents a word bank review session over due items"""

    def __init__(self, session_id: str, user_id: str, items: list[ReviewItem]):
        self.session_id = session_id
        self.user_id = user_id
        self.items = items
        self.current_item_index = 0
        self.successful = 0
        self.earned_xp = 0
        self.created_at = datetime.now()

    def get_current_item(self) -> ReviewItem | None:
        if self.current_item_index < len(self.items):
            return self.items[self.current_item_index]
        return None

    def is_finished(self) -> bool:
        return self.current_item_index >= len(self.items)


class PlacementSession:
    """Represents a placement test over one sentence per tested level"""

    def __init__(
        self, session_id: str, user_id: str, sentences: list[tuple[str, Sentence]]
    ):
        self.session_id = session_id
        self.user_id = user_id
        self.sentences = sentences
        self.current_index = 0
        self.scores: dict[str, int] = {}
        self.created_at = datetime.now()

    def get_current_sentence(self) -> tuple[str, Sentence] | None:
        """Get the (level, sentence) being read"""
        if self.current_index < len(self.sentences):
            return self.sentences[self.current_index]
        return None

    def is_finished(self) -> bool:
        return self.current_index >= len(self.sentences)


class SessionManager:
    """Runs practice and review sessions for learners"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        settings: Settings | None = None,
        lock_manager: UserLockManager | None = None,
        scorer: PronunciationScorer | None = None,
    ):
        self.db_manager = db_manager
        self.settings = settings or get_settings()
        self.lock_manager = lock_manager or UserLockManager(
            self.settings.lock_timeout_seconds
        )
        self.scorer = scorer or PronunciationScorer(self.settings.pronunciation_alignment)
        self.srs_system = LeitnerSystem(self.settings.leitner_max_box)
        self.engine = ProgressionEngine(db_manager, self.lock_manager)
        self.practice_sessions: dict[str, PracticeSession] = {}
        self.review_sessions: dict[str, ReviewSession] = {}
        self.placement_sessions: dict[str, PlacementSession] = {}

    def get_word_bank(self, user_id: str) -> WordBank:
        """Word bank bound to a user"""
        return WordBank(
            self.db_manager,
            user_id,
            srs_system=self.srs_system,
            lock_manager=self.lock_manager,
            weakness_threshold=self.settings.weakness_threshold,
        )

    def _ensure_profile(self, user_id: str):
        return self.db_manager.get_or_create_progress(
            user_id,
            level=self.settings.default_level,
            weekly_goal=self.settings.default_weekly_goal,
        )

    # Practice sessions
    def start_practice(self, user_id: str, lesson: Lesson) -> PracticeSession:
        """Start a new practice session, replacing any unfinished one"""
        self._ensure_profile(user_id)

        session_id = new_session_id(user_id)
        session = PracticeSession(session_id, user_id, lesson)
        session.timer.start()
        self.practice_sessions[user_id] = session

        logger.info(
            f"Started practice session {session_id} (lesson {lesson.id}) for user {user_id}"
        )
        return session

    def get_practice_session(self, user_id: str) -> PracticeSession:
        session = self.practice_sessions.get(user_id)
        if session is None:
            raise ValueError(f"No active practice session for user {user_id}")
        return session

    @log_execution_time
    def submit_attempt(
        self,
        user_id: str,
        transcript: str,
        confidence: float,
        now: datetime | None = None,
    ) -> PronunciationResult:
        """Score an attempt at the current sentence and bank it when weak"""
        session = self.get_practice_session(user_id)
        sentence = session.get_current_sentence()
        if sentence is None:
            raise ValueError(f"Practice session for user {user_id} has no sentences left")

        result = self.scorer.analyze_pronunciation(sentence.text, transcript, confidence)
        session.record_score(sentence.id, result.overall_score)
        self.db_manager.increment_exercises(user_id)

        if self.get_word_bank(user_id).bank_if_weak(sentence, result.overall_score, now):
            session.weak_sentences.append(sentence.id)

        logger.info(
            f"User {user_id} scored {result.overall_score} on sentence {sentence.id}"
        )
        return result

    def advance(self, user_id: str) -> Sentence | None:
        """Move to the next sentence and return it, None at the end of the lesson"""
        session = self.get_practice_session(user_id)
        session.advance_to_next_sentence()
        return session.get_current_sentence()

    def complete_lesson(self, user_id: str, now: datetime | None = None) -> LessonSummary:
        """Award XP for the lesson and record completion and practice minutes"""
        session = self.get_practice_session(user_id)
        now = now or datetime.now()
        lesson = session.lesson
        session.timer.stop()

        average_score = session.average_score()
        earned_xp = self.engine.calculate_xp(
            self.settings.lesson_base_xp, average_score, lesson.level
        )
        level_up = self.engine.update_progress(user_id, earned_xp, now)

        with self.lock_manager.user_lock(user_id, "complete_lesson"):
            self.db_manager.save_lesson_completion(user_id, lesson.id, average_score, now)
            self.db_manager.update_daily_goal(
                user_id, lesson.estimated_minutes, now.date()
            )

        del self.practice_sessions[user_id]

        logger.info(
            f"User {user_id} completed lesson {lesson.id} in session {session.session_id}: "
            f"score={average_score}, xp={earned_xp}, elapsed={session.timer.elapsed():.1f}s"
        )

        return LessonSummary(
            lesson_id=lesson.id,
            average_score=average_score,
            earned_xp=earned_xp,
            leveled_up=level_up.leveled_up,
            next_level=level_up.next_level,
            weak_sentences=list(session.weak_sentences),
        )

    # Review sessions
    def start_review(self, user_id: str, now: datetime | None = None) -> ReviewSession:
        """Start a review over the items due now (possibly none)"""
        self._ensure_profile(user_id)

        items = self.get_word_bank(user_id).get_due_items(now)
        session_id = new_session_id(user_id)
        session = ReviewSession(session_id, user_id, items)
        self.review_sessions[user_id] = session

        logger.info(
            f"Started review session {session_id} for user {user_id} "
            f"with {len(items)} due items"
        )
        return session

    def get_review_session(self, user_id: str) -> ReviewSession:
        session = self.review_sessions.get(user_id)
        if session is None:
            raise ValueError(f"No active review session for user {user_id}")
        return session

    def answer_review(
        self, user_id: str, success: bool, now: datetime | None = None
    ) -> ReviewSummary | None:
        """
        Record the outcome for the current item

        Returns:
            ReviewSummary once the last item is answered, None otherwise
        """
        session = self.get_review_session(user_id)
        item = session.get_current_item()
        if item is None:
            return self._finish_review(session, now)

        self.get_word_bank(user_id).update_review(item.id, success, now)
        if success:
            session.successful += 1
            session.earned_xp += self.settings.review_success_xp

        session.current_item_index += 1
        if session.is_finished():
            return self._finish_review(session, now)
        return None

    def _finish_review(self, session: ReviewSession, now: datetime | None) -> ReviewSummary:
        if session.items:
            level_up = self.engine.update_progress(session.user_id, session.earned_xp, now)
        else:
            # Nothing was reviewed, so the streak is left alone
            progress = self._ensure_profile(session.user_id)
            level_up = LevelUpResult(
                leveled_up=False,
                next_level=self.engine.get_level_from_xp(progress.total_xp).level,
            )
        del self.review_sessions[session.user_id]

        logger.info(
            f"User {session.user_id} finished review session {session.session_id}: "
            f"{session.successful}/{len(session.items)} recalled, xp={session.earned_xp}"
        )

        return ReviewSummary(
            reviewed=len(session.items),
            successful=session.successful,
            earned_xp=session.earned_xp,
            leveled_up=level_up.leveled_up,
            next_level=level_up.next_level,
        )

    # Placement test
    def start_placement(
        self,
        user_id: str,
        sentences: list[tuple[str, Sentence]] | None = None,
    ) -> PlacementSession:
        """Start a placement test, by default over the built-in sentences"""
        self._ensure_profile(user_id)

        session_id = new_session_id(user_id)
        session = PlacementSession(
            session_id, user_id, list(sentences or PLACEMENT_SENTENCES)
        )
        self.placement_sessions[user_id] = session

        logger.info(
            f"Started placement session {session_id} for user {user_id} "
            f"with {len(session.sentences)} sentences"
        )
        return session

    def get_placement_session(self, user_id: str) -> PlacementSession:
        session = self.placement_sessions.get(user_id)
        if session is None:
            raise ValueError(f"No active placement session for user {user_id}")
        return session

    def submit_placement_attempt(
        self, user_id: str, transcript: str, confidence: float
    ) -> PronunciationResult:
        """Score the current placement sentence and move on to the next one"""
        session = self.get_placement_session(user_id)
        current = session.get_current_sentence()
        if current is None:
            raise ValueError(f"Placement session for user {user_id} has no sentences left")

        level, sentence = current
        result = self.scorer.analyze_pronunciation(sentence.text, transcript, confidence)
        session.scores[level] = result.overall_score
        session.current_index += 1

        logger.debug(
            f"Placement {session.session_id}: {level} scored {result.overall_score}"
        )
        return result

    def complete_placement(self, user_id: str) -> str:
        """
        Place the user at the highest level they passed and save it

        Returns:
            The CEFR level written to the user's progress
        """
        session = self.get_placement_session(user_id)
        level = determine_placement_level(session.scores)

        with self.lock_manager.user_lock(user_id, "complete_placement"):
            progress = self._ensure_profile(user_id)
            self.db_manager.save_progress(user_id, replace(progress, level=level))

        del self.placement_sessions[user_id]

        logger.info(
            f"User {user_id} placed at {level} in session {session.session_id} "
            f"(scores={session.scores})"
        )
        return level
