"""SM-2 derived spaced repetition scheduling for weak topics."""
import math
from datetime import date, datetime, time, timedelta, timezone

from prep_progress.models import NextReview, ReviewState
from prep_progress.rounding import round_half_up

MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 2.5
MAX_INTERVAL_DAYS = 60

# Upper bounds (exclusive) of accuracy for quality 0-4; anything higher is 5.
QUALITY_THRESHOLDS = (40, 50, 60, 70, 80)


def quality_from_accuracy(accuracy: float) -> int:
    """Map an accuracy percentage onto the SM-2 0-5 quality scale."""
    for quality, upper in enumerate(QUALITY_THRESHOLDS):
        if accuracy < upper:
            return quality
    return 5


def easiness_factor(accuracy: float) -> float:
    ef = MIN_EASE_FACTOR + quality_from_accuracy(accuracy) * 0.24
    return max(MIN_EASE_FACTOR, min(MAX_EASE_FACTOR, ef))


def review_interval(review_count: int, ease_factor: float) -> int:
    """Interval in days before review number ``review_count``.

    1 day for the first review, 3 for the second, then the previous interval
    times the ease factor, capped at MAX_INTERVAL_DAYS at every step.
    """
    if review_count == 0:
        return 1
    interval = 3
    for _ in range(review_count - 1):
        if interval == MAX_INTERVAL_DAYS:
            break
        interval = min(MAX_INTERVAL_DAYS, round_half_up(interval * ease_factor))
    return interval


def calculate_next_review(state: ReviewState) -> NextReview:
    """Calculate next review parameters.

    Args:
        state: Review count so far, accuracy at the last review and the day
            it happened.

    Returns:
        NextReview with the due date, the interval used, and the review count
        incremented by one.
    """
    interval = review_interval(state.review_count, easiness_factor(state.last_accuracy))
    return NextReview(
        next_review_date=state.last_review_date + timedelta(days=interval),
        interval=interval,
        review_count=state.review_count + 1,
    )


def _as_utc(value) -> datetime:
    """A date is midnight UTC; naive datetimes are taken as UTC."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_review_due(next_review_date: date, now) -> bool:
    return _as_utc(next_review_date) <= _as_utc(now)


def days_until_review(next_review_date: date, now) -> int:
    """Whole days until the review, rounded up; negative when overdue."""
    delta = _as_utc(next_review_date) - _as_utc(now)
    return math.ceil(delta.total_seconds() / 86400)


def project_review_schedule(start_date: date, accuracy: float, count: int = 5) -> list[date]:
    """Project the next ``count`` review dates assuming accuracy stays put."""
    schedule = []
    state = ReviewState(review_count=0, last_accuracy=accuracy, last_review_date=start_date)
    for _ in range(count):
        nxt = calculate_next_review(state)
        schedule.append(nxt.next_review_date)
        state = ReviewState(
            review_count=nxt.review_count,
            last_accuracy=accuracy,
            last_review_date=nxt.next_review_date,
        )
    return schedule


def interval_description(days: int) -> str:
    if days == 1:
        return "Tomorrow"
    if days < 7:
        return f"In {days} days"
    if days < 14:
        return "In 1 week"
    if days < 30:
        return f"In {days // 7} weeks"
    if days < 60:
        return "In 1 month"
    return "In 2 months"
