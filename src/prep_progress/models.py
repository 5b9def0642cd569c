"""Data classes for the progress engine's inputs and outputs.

Values are range-checked on construction so the computations themselves can
assume well-formed input.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

WEAKNESS_LEVELS = ("critical", "moderate", "improving")


class InvalidInputError(ValueError):
    """Raised when a value object is built from out-of-range data."""


def _check_count(name: str, value: int) -> None:
    if value < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {value}")


def _check_percentage(name: str, value: float) -> None:
    if not 0 <= value <= 100:
        raise InvalidInputError(f"{name} must be within 0-100, got {value}")


@dataclass
class StreakResult:
    current_streak: int = 0
    longest_streak: int = 0
    total_active_days: int = 0
    last_active_date: Optional[date] = None
    streak_protection: bool = False

    def __post_init__(self):
        _check_count("current_streak", self.current_streak)
        _check_count("longest_streak", self.longest_streak)
        _check_count("total_active_days", self.total_active_days)


@dataclass
class ReviewState:
    review_count: int
    last_accuracy: float
    last_review_date: date

    def __post_init__(self):
        _check_count("review_count", self.review_count)
        _check_percentage("last_accuracy", self.last_accuracy)
        if isinstance(self.last_review_date, datetime):
            self.last_review_date = self.last_review_date.date()


@dataclass
class NextReview:
    next_review_date: date
    interval: int
    review_count: int


@dataclass
class WeakTopic:
    user_id: str
    topic_id: str
    topic_name: str = ""
    total_attempts: int = 0
    correct_attempts: int = 0
    accuracy_percentage: float = 0.0
    weakness_level: str = "critical"
    review_count: int = 0
    next_review_date: Optional[date] = None
    last_practiced_at: Optional[date] = None

    def __post_init__(self):
        _check_count("total_attempts", self.total_attempts)
        _check_count("correct_attempts", self.correct_attempts)
        _check_count("review_count", self.review_count)
        if self.correct_attempts > self.total_attempts:
            raise InvalidInputError(
                f"correct_attempts ({self.correct_attempts}) exceeds "
                f"total_attempts ({self.total_attempts})"
            )
        _check_percentage("accuracy_percentage", self.accuracy_percentage)
        if self.weakness_level not in WEAKNESS_LEVELS:
            raise InvalidInputError(f"unknown weakness level: {self.weakness_level!r}")


@dataclass
class SectionStats:
    section_id: str
    section_name: str
    accuracy: float
    questions_attempted: int
    days_practiced: int = 0

    def __post_init__(self):
        _check_percentage("accuracy", self.accuracy)
        _check_count("questions_attempted", self.questions_attempted)
        _check_count("days_practiced", self.days_practiced)


@dataclass
class UserStats:
    overall_accuracy: float = 0.0
    sections_practiced: int = 0
    total_sections: int = 0
    tests_completed: int = 0
    questions_answered: int = 0
    recent_accuracy_trend: float = 0.0  # signed percentage points
    section_stats: list = field(default_factory=list)
    exam_date: Optional[date] = None

    def __post_init__(self):
        _check_percentage("overall_accuracy", self.overall_accuracy)
        _check_count("sections_practiced", self.sections_practiced)
        _check_count("total_sections", self.total_sections)
        _check_count("tests_completed", self.tests_completed)
        _check_count("questions_answered", self.questions_answered)
        if self.total_sections and self.sections_practiced > self.total_sections:
            raise InvalidInputError(
                f"sections_practiced ({self.sections_practiced}) exceeds "
                f"total_sections ({self.total_sections})"
            )


@dataclass
class ReadinessBreakdown:
    accuracy: int
    coverage: int
    trend: int
    volume: int


@dataclass
class SectionReadiness:
    section_id: str
    section_name: str
    readiness: int
    accuracy: float
    questions_attempted: int


@dataclass
class ReadinessResult:
    overall_readiness: int
    status: str
    breakdown: ReadinessBreakdown
    section_readiness: list = field(default_factory=list)
    days_until_exam: Optional[int] = None


@dataclass
class Achievement:
    id: str
    name: str
    requirement_type: str
    requirement_value: float
    points: int = 0
    description: str = ""
    icon: str = ""
    category: str = "milestone"

    def __post_init__(self):
        _check_count("points", self.points)


@dataclass
class UserProgress:
    tests_completed: int = 0
    questions_answered: int = 0
    best_accuracy: float = 0.0
    average_accuracy: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    sections_attempted: int = 0
    total_sections: int = 0
    perfect_scores: int = 0

    def __post_init__(self):
        for name in (
            "tests_completed", "questions_answered", "current_streak",
            "longest_streak", "sections_attempted", "total_sections", "perfect_scores",
        ):
            _check_count(name, getattr(self, name))
        _check_percentage("best_accuracy", self.best_accuracy)
        _check_percentage("average_accuracy", self.average_accuracy)
