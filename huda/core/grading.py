# huda/core/grading.py
"""Report-card arithmetic: points to German school grades (1 best, 6 worst)."""

from typing import Optional

MAX_POINTS_PER_SUBJECT = 20
MAX_BONUS_POINTS = 5

# (minimum percentage, grade), best first
GRADE_BANDS = (
    (92, "1"),
    (81, "2"),
    (67, "3"),
    (50, "4"),
    (30, "5"),
)


def german_grade(points: int, max_points: int) -> Optional[str]:
    """None when there is nothing to grade against"""
    if max_points <= 0:
        return None
    percentage = points / max_points * 100
    for minimum, grade in GRADE_BANDS:
        if percentage >= minimum:
            return grade
    return "6"


def final_grade(total_points: int, subject_count: int) -> Optional[str]:
    """Overall grade; the bonus points widen the scale by their own maximum."""
    return german_grade(total_points, subject_count * MAX_POINTS_PER_SUBJECT + MAX_BONUS_POINTS)
