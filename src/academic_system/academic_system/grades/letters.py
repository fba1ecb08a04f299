"""Letter grades, grade points and class statistics."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..core.constants import DEFAULT_PASSING_THRESHOLD

# (lower bound, letter), highest first; the first bound a score reaches wins.
LETTER_TABLE: tuple[tuple[float, str], ...] = (
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (63, "D"),
    (60, "D-"),
    (0, "F"),
)

GRADE_POINTS: dict[str, float] = {
    "A+": 4.0,
    "A": 4.0,
    "A-": 3.7,
    "B+": 3.3,
    "B": 3.0,
    "B-": 2.7,
    "C+": 2.3,
    "C": 2.0,
    "C-": 1.7,
    "D+": 1.3,
    "D": 1.0,
    "D-": 0.7,
    "F": 0.0,
}


def letter_for(percentage: float) -> str:
    for lower, letter in LETTER_TABLE:
        if percentage >= lower:
            return letter
    return "F"


def grade_point(letter: str) -> float:
    return GRADE_POINTS.get(letter, 0.0)


def calculate_gpa(percentages: Iterable[float]) -> float:
    """Unweighted mean of grade points, rounded to 2 decimals; 0 for no courses."""

    points = [grade_point(letter_for(p)) for p in percentages]
    if not points:
        return 0.0
    return round(sum(points) / len(points), 2)


def grade_distribution(percentages: Sequence[float]) -> dict[str, int]:
    """Count of scores per letter, every letter present (highest first)."""

    dist = {letter: 0 for _, letter in LETTER_TABLE}
    for p in percentages:
        dist[letter_for(p)] += 1
    return dist


def is_passing(percentage: float, threshold: float = DEFAULT_PASSING_THRESHOLD) -> bool:
    return percentage >= threshold
