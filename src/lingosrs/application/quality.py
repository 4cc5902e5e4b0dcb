"""
Quality classification: turning practice outcomes into SM-2 grades.

The scheduler only accepts integers 0-5. How a grade is obtained (auto-graded
answer, practice accuracy, or a self-rating button) is decided here.
"""

from dataclasses import dataclass

from lingosrs.application.scheduler import round_half_up, validate_quality
from lingosrs.domain.constants import AUTO_CORRECT_QUALITY, AUTO_INCORRECT_QUALITY

# Rating buttons shown after a review. Presentation choice only.
VOCABULARY_RATING_BUTTONS = (0, 3, 4, 5)
GRAMMAR_RATING_BUTTONS = (0, 2, 3, 5)

# (min accuracy, quality), checked top-down
ACCURACY_GRADES = (
    (0.9, 5),
    (0.7, 4),
    (0.5, 3),
    (0.3, 2),
)


@dataclass(frozen=True)
class QualityLabel:
    label: str
    color: str
    description: str


QUALITY_LABELS: dict[int, QualityLabel] = {
    0: QualityLabel("Again", "red", "Complete blackout"),
    1: QualityLabel("Bad", "orange", "Wrong, but the answer felt familiar"),
    2: QualityLabel("Hard", "yellow", "Wrong, but the answer was easy to recall"),
    3: QualityLabel("Okay", "lime", "Correct with serious effort"),
    4: QualityLabel("Good", "green", "Correct after some hesitation"),
    5: QualityLabel("Easy", "emerald", "Perfect recall"),
}


def quality_from_answer(correct: bool) -> int:
    """
    Auto-grade a single answer.

    Incorrect answers always map to 0; the intermediate failure grades
    (1, 2) are never produced here.
    """
    return AUTO_CORRECT_QUALITY if correct else AUTO_INCORRECT_QUALITY


def quality_from_accuracy(accuracy: float) -> int:
    """Grade a whole practice session from its share of correct answers."""
    if not 0.0 <= accuracy <= 1.0:
        raise ValueError(f"Accuracy must be within [0, 1], got {accuracy}")
    for threshold, quality in ACCURACY_GRADES:
        if accuracy >= threshold:
            return quality
    return 1


def quality_label(quality: int) -> QualityLabel:
    validate_quality(quality)
    return QUALITY_LABELS[quality]


def format_interval(days: int) -> str:
    """Human-readable distance to the next review."""
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if days < 7:
        return f"in {days} d"
    if days < 30:
        return f"in {round_half_up(days / 7)} wk"
    if days < 365:
        return f"in {round_half_up(days / 30)} mo"
    return f"in {round_half_up(days / 365)} yr"
