#!/usr/bin/env python3
"""
GemiTalk console practice
Typed text stands in for the speech recognizer transcript.

Usage: python main.py <user_id> [lesson_id | placement]
"""

import logging
import sys

from gemitalk.config import get_database_path, get_settings
from gemitalk.core.database.database_manager import DatabaseManager
from gemitalk.core.session.session_manager import SessionManager
from gemitalk.gamification import get_level_from_xp
from gemitalk.lessons import LessonCatalog
from gemitalk.utils import (
    calculate_success_rate,
    format_date_relative,
    format_progress_stats,
    format_pronunciation_report,
)

TYPED_CONFIDENCE = 1.0


def run_practice(manager: SessionManager, user_id: str, lesson) -> None:
    """Walk through a lesson, scoring each typed attempt"""
    manager.start_practice(user_id, lesson)
    print(f"📚 {lesson.title} ({lesson.level})\n")

    sentence = manager.get_practice_session(user_id).get_current_sentence()
    while sentence is not None:
        print(f"🗣️  {sentence.text}")
        print(f"🌍 {sentence.translation}")
        transcript = input("> ")
        result = manager.submit_attempt(user_id, transcript, TYPED_CONFIDENCE)
        print(format_pronunciation_report(result) + "\n")
        sentence = manager.advance(user_id)

    summary = manager.complete_lesson(user_id)
    print(f"✅ Lesson complete: {summary.average_score}% average, +{summary.earned_xp} XP")
    if summary.leveled_up:
        print(f"🎉 Level up! You reached level {summary.next_level}")
    if summary.weak_sentences:
        print(f"🔄 {len(summary.weak_sentences)} sentence(s) added to your word bank")


def run_placement(manager: SessionManager, user_id: str) -> None:
    """Read one sentence per level and store the placed level"""
    session = manager.start_placement(user_id)
    print("🧭 Placement test: read each sentence aloud\n")

    while not session.is_finished():
        level, sentence = session.get_current_sentence()
        print(f"🗣️  [{level}] {sentence.text}")
        transcript = input("> ")
        result = manager.submit_placement_attempt(user_id, transcript, TYPED_CONFIDENCE)
        print(f"🎯 {result.overall_score}%\n")

    level = manager.complete_placement(user_id)
    print(f"✅ Your level is {level}")


def run_review(manager: SessionManager, user_id: str) -> None:
    """Review due word bank sentences, self-graded"""
    session = manager.start_review(user_id)
    if not session.items:
        upcoming = manager.get_word_bank(user_id).get_bank()
        if upcoming:
            next_item = min(upcoming, key=lambda item: item.next_review)
            print(f"🎉 Nothing due. Next review {format_date_relative(next_item.next_review.date())}.")
        else:
            print("🎉 Your word bank is empty. Start a lesson!")
        return

    summary = None
    while summary is None:
        item = session.get_current_item()
        print(f"🗣️  {item.sentence.text}  (box {item.box})")
        input("Press Enter to reveal the translation...")
        print(f"🌍 {item.sentence.translation}")
        answer = input("Did you remember it? [y/n] ").strip().lower()
        summary = manager.answer_review(user_id, answer.startswith("y"))

    rate = calculate_success_rate(summary.successful, summary.reviewed)
    print(f"✅ Reviewed {summary.reviewed} ({rate:.0f}% recalled), +{summary.earned_xp} XP")
    if summary.leveled_up:
        print(f"🎉 Level up! You reached level {summary.next_level}")


def main() -> int:
    """Main application entry point"""
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)
    logger.info("Starting GemiTalk practice...")

    if len(sys.argv) < 2:
        print(__doc__)
        return 1

    user_id = sys.argv[1]
    lesson_id = sys.argv[2] if len(sys.argv) > 2 else None

    db_manager = DatabaseManager(get_database_path(settings.database_url))
    db_manager.init_database()
    manager = SessionManager(db_manager, settings)
    catalog = LessonCatalog()

    try:
        if lesson_id == "placement":
            run_placement(manager, user_id)
        elif lesson_id:
            lesson = catalog.get_lesson_by_id(lesson_id)
            if lesson is None:
                available = ", ".join(entry.id for entry in catalog.get_all_lessons())
                print(f"❌ Unknown lesson {lesson_id}. Available: {available}")
                return 1
            run_practice(manager, user_id, lesson)
        else:
            run_review(manager, user_id)
    except (KeyboardInterrupt, EOFError):
        logger.info("Session interrupted by user")
        return 130

    progress = db_manager.load_progress(user_id)
    print("\n" + format_progress_stats(progress, get_level_from_xp(progress.total_xp).title))
    return 0


if __name__ == "__main__":
    sys.exit(main())
