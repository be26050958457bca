"""
Utility functions for the GemiTalk practice core
"""

import logging
import time
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (86.5 -> 87)"""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into the closed range [lower, upper]"""
    return max(lower, min(upper, value))


def calculate_success_rate(correct: int, total: int) -> float:
    """Calculate success rate as percentage"""
    if total == 0:
        return 0.0
    return (correct / total) * 100.0


def safe_int(value: Any, default: int = 0) -> int:
    """Safely convert value to integer"""
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def to_date(value: date | datetime | str | None) -> date | None:
    """Coerce a stored date-ish value to a date"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        logger.warning(f"Failed to parse date: {value}")
        return None


def to_datetime(value: datetime | str) -> datetime:
    """Coerce a stored timestamp to a datetime"""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def format_pronunciation_report(result) -> str:
    """Format a PronunciationResult for console display"""
    status_marks = {
        "perfect": "✅",
        "good": "🟢",
        "needs-work": "🟡",
        "error": "❌",
    }

    lines = [f"🎯 Overall score: {result.overall_score}%"]
    for word in result.words:
        mark = status_marks.get(word.status.value, "❓")
        lines.append(
            f"{mark} {word.expected_word} ({word.accuracy}%) - {word.feedback}"
        )

    return "\n".join(lines)


def format_progress_stats(progress, level_title: str | None = None) -> str:
    """Format user progress statistics"""
    result = "📊 Your progress:\n\n"
    result += f"⭐ Total XP: {progress.total_xp}\n"
    if level_title:
        result += f"🏅 Level: {level_title}\n"
    result += f"🔥 Current streak: {progress.current_streak}\n"
    result += f"🏆 Longest streak: {progress.longest_streak}\n"
    result += f"📚 Lessons completed: {progress.lessons_completed}\n"
    result += f"🎤 Pronunciation accuracy: {progress.pronunciation_accuracy}%\n"

    return result


def format_date_relative(target: date, today: date | None = None) -> str:
    """Format date relative to today"""
    today = today or date.today()
    delta = (target - today).days

    if delta == 0:
        return "today"
    elif delta == 1:
        return "tomorrow"
    elif delta == -1:
        return "yesterday"
    elif delta > 0:
        return f"in {delta} days"
    else:
        return f"{abs(delta)} days ago"


class Timer:
    """Simple timer for measuring duration"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer"""
        self.start_time = time.time()
        self.end_time = None

    def stop(self):
        """Stop the timer"""
        if self.start_time is not None:
            self.end_time = time.time()

    def elapsed(self) -> float | None:
        """Get elapsed time in seconds"""
        if self.start_time is None:
            return None

        end = self.end_time or time.time()
        return end - self.start_time


def log_execution_time(func):
    """Decorator to log function execution time"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    return wrapper
