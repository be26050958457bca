"""
Pronunciation scoring by comparing expected and recognized speech

Words are aligned positionally by default: expected word i is compared with
heard word i. A dropped or inserted word therefore shifts every later word
out of alignment. Read-aloud attempts are nearly always the same length as
the prompt, so this is the reference behaviour; the "sequence" alignment
mode runs a word-level edit alignment instead.
"""

import logging

from .models import PronunciationResult, WordRecognition, WordStatus
from .utils import clamp, round_half_up

logger = logging.getLogger(__name__)

PUNCTUATION = ".,!?;:"
_PUNCTUATION_TABLE = str.maketrans("", "", PUNCTUATION)
WORD_ACCURACY_WEIGHT = 70  # percent
CONFIDENCE_WEIGHT = 30  # percent
MISSING_WORD = "(missing)"

ALIGNMENT_MODES = ("positional", "sequence")


def normalize_words(text: str) -> list[str]:
    """Lowercase, split on whitespace and remove punctuation; drops empty tokens"""
    tokens = (token.translate(_PUNCTUATION_TABLE) for token in text.lower().split())
    return [token for token in tokens if token]


def levenshtein_distance(a: str, b: str) -> int:
    """Character edit distance with unit insert, delete and substitute costs"""
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(
                    min(previous[j - 1] + 1, current[j - 1] + 1, previous[j] + 1)
                )
        previous = current

    return previous[-1]


def calculate_word_similarity(expected: str, actual: str) -> int:
    """Similarity percentage between two normalized words"""
    if expected == actual:
        return 100
    if not actual:
        return 0

    distance = levenshtein_distance(expected, actual)
    max_length = max(len(expected), len(actual))
    similarity = (max_length - distance) / max_length * 100

    return round_half_up(max(0.0, similarity))


def get_word_status(accuracy: int) -> WordStatus:
    """Bucket a word accuracy into a status"""
    if accuracy >= 95:
        return WordStatus.PERFECT
    if accuracy >= 80:
        return WordStatus.GOOD
    if accuracy >= 60:
        return WordStatus.NEEDS_WORK
    return WordStatus.ERROR


def get_word_feedback(expected: str, actual: str, accuracy: int) -> str:
    """Feedback message for a word"""
    if accuracy == 100:
        return "Perfect pronunciation!"
    if accuracy >= 80:
        return "Very close! Minor adjustment needed."
    if accuracy >= 60:
        return "Good attempt, practice this word more."
    if not actual:
        return f'Missing word: "{expected}"'
    return f'Try again: expected "{expected}", heard "{actual}"'


def align_words(
    expected: list[str], actual: list[str]
) -> list[tuple[str, str]]:
    """
    Word-level edit alignment between expected and heard words

    Returns one (expected, actual) pair per expected word; deleted words pair
    with an empty string and inserted words are dropped.
    """
    n, m = len(expected), len(actual)
    costs = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        costs[i][0] = i
    for j in range(1, m + 1):
        costs[0][j] = j

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            substitution = 0 if expected[i - 1] == actual[j - 1] else 1
            costs[i][j] = min(
                costs[i - 1][j - 1] + substitution,
                costs[i - 1][j] + 1,
                costs[i][j - 1] + 1,
            )

    pairs: list[tuple[str, str]] = []
    i, j = n, m
    while i > 0:
        if j > 0:
            substitution = 0 if expected[i - 1] == actual[j - 1] else 1
            if costs[i][j] == costs[i - 1][j - 1] + substitution:
                pairs.append((expected[i - 1], actual[j - 1]))
                i -= 1
                j -= 1
                continue
            if costs[i][j] == costs[i][j - 1] + 1:
                j -= 1
                continue
        pairs.append((expected[i - 1], ""))
        i -= 1

    pairs.reverse()
    return pairs


class PronunciationScorer:
    """Scores a spoken attempt against the sentence the learner read"""

    def __init__(self, alignment: str = "positional"):
        if alignment not in ALIGNMENT_MODES:
            raise ValueError(
                f"Alignment must be one of {ALIGNMENT_MODES}, got {alignment!r}"
            )
        self.alignment = alignment

    def analyze_pronunciation(
        self, expected: str, actual: str, confidence: float
    ) -> PronunciationResult:
        """
        Analyze pronunciation by comparing expected vs actual text

        Args:
            expected: Sentence the learner was asked to read
            actual: Transcript returned by the recognizer (may be empty)
            confidence: Recognizer confidence, clamped to [0, 1]

        Returns:
            PronunciationResult with per-word breakdown and overall score
        """
        expected_words = normalize_words(expected)
        actual_words = normalize_words(actual)

        if not expected_words:
            return PronunciationResult(words=[], overall_score=0)

        word_results = [
            self._score_word(expected_word, actual_word)
            for expected_word, actual_word in self._pair_words(
                expected_words, actual_words
            )
        ]

        total_accuracy = sum(word.accuracy for word in word_results)
        word_accuracy_score = total_accuracy / len(word_results)
        confidence = clamp(confidence, 0.0, 1.0)

        # Integer weights keep exact halves such as 86.5 from drifting below .5
        blended = (
            word_accuracy_score * WORD_ACCURACY_WEIGHT
            + confidence * 100 * CONFIDENCE_WEIGHT
        ) / 100
        overall_score = int(clamp(round_half_up(blended), 0, 100))

        logger.debug(
            f"Scored {len(word_results)} words: accuracy={word_accuracy_score:.1f}, "
            f"confidence={confidence:.2f}, overall={overall_score}"
        )

        return PronunciationResult(words=word_results, overall_score=overall_score)

    def _pair_words(
        self, expected_words: list[str], actual_words: list[str]
    ) -> list[tuple[str, str]]:
        if self.alignment == "sequence":
            return align_words(expected_words, actual_words)

        return [
            (word, actual_words[i] if i < len(actual_words) else "")
            for i, word in enumerate(expected_words)
        ]

    def _score_word(self, expected_word: str, actual_word: str) -> WordRecognition:
        is_correct = expected_word == actual_word
        accuracy = 100 if is_correct else calculate_word_similarity(
            expected_word, actual_word
        )

        return WordRecognition(
            word=actual_word or MISSING_WORD,
            expected_word=expected_word,
            is_correct=is_correct,
            accuracy=accuracy,
            status=get_word_status(accuracy),
            feedback=get_word_feedback(expected_word, actual_word, accuracy),
        )
