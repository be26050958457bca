"""
Lesson catalog with the hand-crafted seed lessons
"""

from .models import CEFR_LEVELS, Lesson, Sentence

SEED_LESSONS: list[Lesson] = [
    Lesson(
        id="a1-1",
        title="Greetings & Introductions",
        description="Master the basics of meeting people professionally.",
        level="A1",
        category="Social",
        estimated_minutes=10,
        sentences=[
            Sentence(
                id="a1-1-s1",
                text="Hello, how are you today?",
                translation="مرحباً، كيف حالك اليوم؟",
                explanation="A friendly opening greeting.",
            ),
            Sentence(
                id="a1-1-s2",
                text="My name is Alex and I am from London.",
                translation="اسمي أليكس وأنا من لندن.",
                explanation="How to introduce yourself.",
            ),
        ],
    ),
    Lesson(
        id="b1-1",
        title="Professional Communication",
        description="Advanced phrases for workplace interaction.",
        level="B1",
        category="Business",
        estimated_minutes=15,
        sentences=[
            Sentence(
                id="b1-1-s1",
                text="I would like to discuss the project timeline.",
                translation="أود مناقشة الجدول الزمني للمشروع.",
                explanation="Professional request.",
            ),
            Sentence(
                id="b1-1-s2",
                text="Could you please provide some feedback on this draft?",
                translation="هل يمكنك تقديم بعض الملاحظات على هذه المسودة؟",
            ),
        ],
    ),
    Lesson(
        id="c1-1",
        title="Abstract Reasoning & Logic",
        description="Nuanced expressions for complex discussions.",
        level="C1",
        category="Science",
        estimated_minutes=20,
        sentences=[
            Sentence(
                id="c1-1-s1",
                text="The empirical evidence suggests a correlation between these variables.",
                translation="تشير الأدلة التجريبية إلى وجود علاقة بين هذه المتغيرات.",
                explanation="Scientific observation.",
            ),
        ],
    ),
]

MAX_RECOMMENDATIONS = 5


class LessonCatalog:
    """Read-only access to lessons"""

    def __init__(self, lessons: list[Lesson] | None = None):
        self.lessons = list(SEED_LESSONS if lessons is None else lessons)

    def get_all_lessons(self) -> list[Lesson]:
        return list(self.lessons)

    def get_lesson_by_id(self, lesson_id: str) -> Lesson | None:
        return next((lesson for lesson in self.lessons if lesson.id == lesson_id), None)

    def get_lessons_by_level(self, level: str) -> list[Lesson]:
        return [lesson for lesson in self.lessons if lesson.level == level]

    def get_lessons_by_category(self, category: str) -> list[Lesson]:
        return [lesson for lesson in self.lessons if lesson.category == category]

    def get_recommended_lessons(
        self, user_level: str, completed_ids: list[str] | None = None
    ) -> list[Lesson]:
        """Unlocked, not yet completed lessons up to one level above the user"""
        completed = set(completed_ids or [])
        if user_level in CEFR_LEVELS:
            target_levels = CEFR_LEVELS[: CEFR_LEVELS.index(user_level) + 2]
        else:
            target_levels = CEFR_LEVELS[:1]

        return [
            lesson
            for lesson in self.lessons
            if lesson.level in target_levels
            and lesson.id not in completed
            and not lesson.is_locked
        ][:MAX_RECOMMENDATIONS]

    def get_next_lesson(self, current_lesson_id: str) -> Lesson | None:
        """Lesson following the given one in catalog order"""
        ids = [lesson.id for lesson in self.lessons]
        if current_lesson_id not in ids:
            return None
        index = ids.index(current_lesson_id)
        if index == len(ids) - 1:
            return None
        return self.lessons[index + 1]

    def get_categories(self) -> list[str]:
        """Distinct categories in catalog order"""
        return list(dict.fromkeys(lesson.category for lesson in self.lessons))

    def search_lessons(self, query: str) -> list[Lesson]:
        """Match query against title, description and category"""
        needle = query.lower()
        return [
            lesson
            for lesson in self.lessons
            if needle in lesson.title.lower()
            or needle in lesson.description.lower()
            or needle in lesson.category.lower()
        ]


PLACEMENT_PASS_SCORE = 70

# One sentence per tested level, easiest first
PLACEMENT_SENTENCES: tuple[tuple[str, Sentence], ...] = (
    (
        "A1",
        Sentence(
            id="placement-a1",
            text="The cat is on the table.",
            translation="القطة على الطاولة.",
        ),
    ),
    (
        "B1",
        Sentence(
            id="placement-b1",
            text="I enjoy traveling to different countries to experience new cultures.",
            translation="أستمتع بالسفر إلى دول مختلفة لتجربة ثقافات جديدة.",
        ),
    ),
    (
        "C1",
        Sentence(
            id="placement-c1",
            text=(
                "The unprecedented economic shift necessitates a radical "
                "re-evaluation of our fiscal policies."
            ),
            translation="التحول الاقتصادي غير المسبوق يتطلب إعادة تقييم جذرية لسياساتنا المالية.",
        ),
    ),
)


def determine_placement_level(
    scores: dict[str, int], pass_score: int = PLACEMENT_PASS_SCORE
) -> str:
    """
    Highest CEFR level whose placement sentence scored above pass_score

    Args:
        scores: Overall pronunciation score per tested level
        pass_score: Score that must be exceeded (a score equal to it fails)

    Returns:
        The placed level, A1 when nothing passed
    """
    passed = [
        level
        for level, score in scores.items()
        if level in CEFR_LEVELS and score > pass_score
    ]
    if not passed:
        return CEFR_LEVELS[0]
    return max(passed, key=CEFR_LEVELS.index)
