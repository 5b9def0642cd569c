"""Tests for data model validation."""
from datetime import date, datetime

import pytest

from prep_progress.models import (
    Achievement, InvalidInputError, ReviewState, SectionStats, StreakResult, UserProgress,
    UserStats, WeakTopic,
)


def test_streak_result_defaults():
    r = StreakResult()
    assert r.current_streak == 0
    assert r.longest_streak == 0
    assert r.total_active_days == 0
    assert r.last_active_date is None
    assert r.streak_protection is False


def test_review_state_rejects_out_of_range():
    with pytest.raises(InvalidInputError):
        ReviewState(review_count=-1, last_accuracy=50, last_review_date=date(2024, 1, 1))
    with pytest.raises(InvalidInputError):
        ReviewState(review_count=0, last_accuracy=100.5, last_review_date=date(2024, 1, 1))


def test_review_state_strips_time():
    state = ReviewState(review_count=0, last_accuracy=50, last_review_date=datetime(2024, 1, 1, 18, 30))
    assert state.last_review_date == date(2024, 1, 1)


def test_invalid_input_is_value_error():
    assert issubclass(InvalidInputError, ValueError)


def test_weak_topic_defaults():
    t = WeakTopic(user_id="u1", topic_id="t1")
    assert t.total_attempts == 0
    assert t.weakness_level == "critical"
    assert t.next_review_date is None


def test_weak_topic_validation():
    with pytest.raises(InvalidInputError):
        WeakTopic(user_id="u1", topic_id="t1", total_attempts=1, correct_attempts=2)
    with pytest.raises(InvalidInputError):
        WeakTopic(user_id="u1", topic_id="t1", weakness_level="mastered")


def test_user_stats_validation():
    with pytest.raises(InvalidInputError):
        UserStats(sections_practiced=5, total_sections=4)
    with pytest.raises(InvalidInputError):
        UserStats(tests_completed=-1)
    assert UserStats(recent_accuracy_trend=-40).recent_accuracy_trend == -40


def test_section_stats_validation():
    with pytest.raises(InvalidInputError):
        SectionStats("s", "S", accuracy=120, questions_attempted=1)


def test_user_progress_validation():
    with pytest.raises(InvalidInputError):
        UserProgress(perfect_scores=-1)
    with pytest.raises(InvalidInputError):
        UserProgress(best_accuracy=101)


def test_achievement_defaults():
    a = Achievement(id="a", name="A", requirement_type="tests_count", requirement_value=1)
    assert a.points == 0
    assert a.category == "milestone"
    assert a.description == ""
