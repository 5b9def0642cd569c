"""Exam readiness scoring."""
import math
from datetime import date, datetime, time

from prep_progress.models import (
    InvalidInputError, ReadinessBreakdown, ReadinessResult, SectionReadiness, UserStats,
)
from prep_progress.rounding import round_half_up

WEIGHTS = {"accuracy": 0.4, "coverage": 0.3, "trend": 0.2, "volume": 0.1}
ACCURACY_WEIGHT = WEIGHTS["accuracy"]

# Points available to each factor out of 100.
COVERAGE_POINTS = 30
TREND_POINTS = 20
VOLUME_POINTS = 10

VOLUME_TARGET_TESTS = 50
SECTION_VOLUME_TARGET = 100

READINESS_LABELS = {
    "ready": "Ready for Exam",
    "almost-ready": "Almost Ready",
    "getting-there": "Getting There",
    "not-ready": "Keep Practicing",
}


def get_readiness_status(score: float) -> str:
    if score >= 80:
        return "ready"
    elif score >= 60:
        return "almost-ready"
    elif score >= 40:
        return "getting-there"
    return "not-ready"


def readiness_label(status: str) -> str:
    return READINESS_LABELS[status]


def section_readiness_band(readiness: float) -> str:
    if readiness >= 80:
        return "strong"
    elif readiness >= 60:
        return "good"
    elif readiness >= 40:
        return "fair"
    return "weak"


def _accuracy_score(stats: UserStats) -> float:
    return min(stats.overall_accuracy, 100) * ACCURACY_WEIGHT


def _coverage_score(stats: UserStats) -> float:
    if stats.total_sections == 0:
        return 0.0
    return stats.sections_practiced / stats.total_sections * COVERAGE_POINTS


def _trend_score(stats: UserStats) -> float:
    # A flat trend sits in the middle of the pool.
    return max(0.0, min(TREND_POINTS, TREND_POINTS / 2 + stats.recent_accuracy_trend))


def _volume_score(stats: UserStats) -> float:
    return min(stats.tests_completed / VOLUME_TARGET_TESTS, 1) * VOLUME_POINTS


def calc_section_readiness(section) -> int:
    accuracy_factor = min(section.accuracy, 100) * 0.7
    volume_factor = min(section.questions_attempted / SECTION_VOLUME_TARGET, 1) * 30
    return round_half_up(accuracy_factor + volume_factor)


def days_until(target, now) -> int:
    """Whole days from ``now`` until ``target``, rounded up."""
    if not isinstance(now, datetime):
        now = datetime.combine(now, time.min)
    if not isinstance(target, datetime):
        target = datetime.combine(target, time.min, tzinfo=now.tzinfo)
    return math.ceil((target - now).total_seconds() / 86400)


def calculate_readiness(stats: UserStats, now=None) -> ReadinessResult:
    """Combine accuracy, coverage, trend and volume into one readiness score.

    Weighted: accuracy 40%, coverage 30%, trend 20%, volume 10%.
    ``now`` is only needed when ``stats.exam_date`` is set.
    """
    accuracy = _accuracy_score(stats)
    coverage = _coverage_score(stats)
    trend = _trend_score(stats)
    volume = _volume_score(stats)
    overall = round_half_up(accuracy + coverage + trend + volume)

    days_until_exam = None
    if stats.exam_date is not None:
        if now is None:
            raise InvalidInputError("now is required when an exam date is set")
        days_until_exam = days_until(stats.exam_date, now)

    return ReadinessResult(
        overall_readiness=overall,
        status=get_readiness_status(overall),
        breakdown=ReadinessBreakdown(
            accuracy=round_half_up(accuracy),
            coverage=round_half_up(coverage),
            trend=round_half_up(trend),
            volume=round_half_up(volume),
        ),
        section_readiness=[
            SectionReadiness(
                section_id=s.section_id,
                section_name=s.section_name,
                readiness=calc_section_readiness(s),
                accuracy=s.accuracy,
                questions_attempted=s.questions_attempted,
            )
            for s in stats.section_stats
        ],
        days_until_exam=days_until_exam,
    )
