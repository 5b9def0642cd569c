# tests/test_readiness.py
import random
from datetime import date, datetime, timezone

import pytest

from prep_progress.models import InvalidInputError, SectionStats, UserStats
from prep_progress.readiness import (
    WEIGHTS, calc_section_readiness, calculate_readiness, get_readiness_status,
    readiness_label, section_readiness_band,
)


def test_weights_sum_to_one():
    assert sum(WEIGHTS.values()) == pytest.approx(1.0)


def test_flat_trend_caps_at_ninety():
    """Perfect accuracy, coverage and volume with a flat trend scores 90, not 100."""
    stats = UserStats(
        overall_accuracy=100, sections_practiced=10, total_sections=10,
        tests_completed=50, questions_answered=1000, recent_accuracy_trend=0,
    )
    result = calculate_readiness(stats)
    assert result.breakdown.accuracy == 40
    assert result.breakdown.coverage == 30
    assert result.breakdown.trend == 10
    assert result.breakdown.volume == 10
    assert result.overall_readiness == 90
    assert result.status == "ready"
    assert result.days_until_exam is None


def test_no_activity_scores_only_neutral_trend():
    result = calculate_readiness(UserStats())
    assert result.breakdown.accuracy == 0
    assert result.breakdown.coverage == 0
    assert result.breakdown.trend == 10
    assert result.breakdown.volume == 0
    assert result.overall_readiness == 10
    assert result.status == "not-ready"
    assert result.section_readiness == []


def test_readiness_bounds():
    best = UserStats(
        overall_accuracy=100, sections_practiced=4, total_sections=4,
        tests_completed=500, recent_accuracy_trend=75,
    )
    worst = UserStats(recent_accuracy_trend=-75)
    assert calculate_readiness(best).overall_readiness == 100
    assert calculate_readiness(worst).overall_readiness == 0


def test_mixed_stats_round_half_up():
    stats = UserStats(
        overall_accuracy=72.5, sections_practiced=3, total_sections=4,
        tests_completed=20, recent_accuracy_trend=-3,
    )
    # 29 + 22.5 + 7 + 4 = 62.5
    result = calculate_readiness(stats)
    assert result.overall_readiness == 63
    assert result.status == "almost-ready"
    assert result.breakdown.coverage == 23
    assert result.breakdown.trend == 7


def test_zero_total_sections_gives_no_coverage():
    result = calculate_readiness(UserStats(overall_accuracy=50, total_sections=0))
    assert result.breakdown.coverage == 0


@pytest.mark.parametrize("score, status", [
    (100, "ready"), (80, "ready"), (79.9, "almost-ready"), (60, "almost-ready"),
    (59, "getting-there"), (40, "getting-there"), (39, "not-ready"), (0, "not-ready"),
])
def test_status_thresholds(score, status):
    assert get_readiness_status(score) == status


def test_section_readiness():
    assert calc_section_readiness(SectionStats("s1", "Quant", 80, 50)) == 71
    assert calc_section_readiness(SectionStats("s1", "Quant", 100, 200)) == 100
    assert calc_section_readiness(SectionStats("s1", "Quant", 55.5, 10)) == 42


def test_section_readiness_in_result():
    stats = UserStats(
        overall_accuracy=80, sections_practiced=1, total_sections=2,
        section_stats=[SectionStats("quant", "Quantitative Aptitude", 80, 50, days_practiced=3)],
    )
    [section] = calculate_readiness(stats).section_readiness
    assert section.section_id == "quant"
    assert section.section_name == "Quantitative Aptitude"
    assert section.readiness == 71
    assert section.accuracy == 80
    assert section.questions_attempted == 50


def test_days_until_exam():
    stats = UserStats(exam_date=date(2024, 4, 1))
    assert calculate_readiness(stats, now=datetime(2024, 3, 15, 10, 0)).days_until_exam == 17
    assert calculate_readiness(stats, now=date(2024, 3, 15)).days_until_exam == 17
    aware = datetime(2024, 3, 15, tzinfo=timezone.utc)
    assert calculate_readiness(stats, now=aware).days_until_exam == 17


def test_days_until_past_exam_is_negative():
    stats = UserStats(exam_date=date(2024, 3, 10))
    assert calculate_readiness(stats, now=date(2024, 3, 15)).days_until_exam == -5


def test_exam_date_requires_now():
    with pytest.raises(InvalidInputError):
        calculate_readiness(UserStats(exam_date=date(2024, 4, 1)))


def test_labels_and_bands():
    assert readiness_label("ready") == "Ready for Exam"
    assert readiness_label("not-ready") == "Keep Practicing"
    assert section_readiness_band(85) == "strong"
    assert section_readiness_band(60) == "good"
    assert section_readiness_band(45) == "fair"
    assert section_readiness_band(10) == "weak"


def test_readiness_always_within_bounds():
    rng = random.Random(3)
    for _ in range(300):
        total = rng.randint(0, 12)
        stats = UserStats(
            overall_accuracy=rng.uniform(0, 100),
            sections_practiced=rng.randint(0, total),
            total_sections=total,
            tests_completed=rng.randint(0, 120),
            recent_accuracy_trend=rng.uniform(-60, 60),
        )
        assert 0 <= calculate_readiness(stats).overall_readiness <= 100
