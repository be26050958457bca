"""
Domain models for the GemiTalk practice core
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

CEFR_LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")


class WordStatus(str, Enum):
    """Pronunciation status buckets for a single word"""

    PERFECT = "perfect"
    GOOD = "good"
    NEEDS_WORK = "needs-work"
    ERROR = "error"


@dataclass(frozen=True)
class Sentence:
    """Practice sentence (reference data, never mutated)"""

    id: str
    text: str
    translation: str
    explanation: str | None = None
    phonetic: str | None = None


@dataclass
class WordRecognition:
    """Scoring result for one expected word"""

    word: str
    expected_word: str
    is_correct: bool
    accuracy: int
    status: WordStatus
    feedback: str


@dataclass
class PronunciationResult:
    """Per-word breakdown plus the blended sentence score"""

    words: list[WordRecognition]
    overall_score: int


@dataclass
class ReviewItem:
    """Leitner box entry in a user's word bank"""

    id: str
    sentence: Sentence
    last_reviewed: datetime
    next_review: datetime
    interval: int = 1  # in days
    box: int = 1  # 1 to 5

    def is_due(self, now: datetime) -> bool:
        """Check whether the item should be reviewed at the given time"""
        return self.next_review <= now


@dataclass
class UserProgress:
    """Progress profile for a learner"""

    user_id: str
    total_xp: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    level: str = "A1"
    last_practice_date: date | None = None
    lessons_completed: int = 0
    exercises_completed: int = 0
    pronunciation_accuracy: int = 0  # average percentage
    weekly_goal: int = 150  # minutes per week
    weekly_progress: int = 0  # minutes completed this week


@dataclass(frozen=True)
class LevelMilestone:
    """Row of the XP milestone table"""

    level: int
    xp_required: int
    title: str


@dataclass
class LevelUpResult:
    """Outcome of applying earned XP to a profile"""

    leveled_up: bool
    next_level: int


@dataclass
class Lesson:
    """Lesson made of practice sentences"""

    id: str
    title: str
    description: str
    level: str
    category: str
    estimated_minutes: int
    sentences: list[Sentence] = field(default_factory=list)
    is_locked: bool = False


@dataclass
class DailyGoal:
    """Minutes practiced against today's target"""

    user_id: str
    date: date
    target_minutes: int
    completed_minutes: int = 0
    is_completed: bool = False


@dataclass
class LessonSummary:
    """Result of completing a practice lesson"""

    lesson_id: str
    average_score: int
    earned_xp: int
    leveled_up: bool
    next_level: int
    weak_sentences: list[str] = field(default_factory=list)


@dataclass
class ReviewSummary:
    """Result of finishing a word bank review session"""

    reviewed: int
    successful: int
    earned_xp: int
    leveled_up: bool
    next_level: int
