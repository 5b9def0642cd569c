"""Study streaks from activity dates."""
from datetime import date, datetime, timedelta, timezone

from prep_progress.models import StreakResult

STREAK_MILESTONES = (7, 14, 30, 50, 100, 365)


def to_calendar_day(value) -> date:
    """Collapse a date or datetime to a UTC calendar day.

    Aware datetimes are converted to UTC first; naive datetimes are assumed
    to be UTC already.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def _unique_days_desc(activity_dates) -> list[date]:
    return sorted({to_calendar_day(d) for d in activity_dates}, reverse=True)


def _longest_run(days: list[date]) -> int:
    """Longest run of consecutive days in a descending, deduplicated list."""
    if not days:
        return 0
    longest = run = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


def calculate_streak(activity_dates, today: date) -> StreakResult:
    """Calculate current and longest streak.

    Args:
        activity_dates: Dates (or datetimes) with at least one submitted
            attempt, in any order, duplicates allowed.
        today: Reference day for the current streak.

    Returns:
        StreakResult. ``streak_protection`` is set when the user was active
        yesterday but not yet today, i.e. the streak survives until midnight.
    """
    today = to_calendar_day(today)
    days = _unique_days_desc(activity_dates)
    if not days:
        return StreakResult()

    most_recent = days[0]
    longest = _longest_run(days)

    if (today - most_recent).days > 1:
        # Broken: only history counts.
        return StreakResult(
            current_streak=0,
            longest_streak=longest,
            total_active_days=len(days),
            last_active_date=most_recent,
            streak_protection=False,
        )

    current = 0
    cursor = today
    for day in days:
        diff = (cursor - day).days
        if diff == 0:
            current += 1
            cursor -= timedelta(days=1)
        elif diff == 1:
            current += 1
            cursor = day - timedelta(days=1)
        else:
            break

    active_today = most_recent == today
    return StreakResult(
        current_streak=current,
        longest_streak=max(longest, current),
        total_active_days=len(days),
        last_active_date=most_recent,
        streak_protection=not active_today and most_recent == today - timedelta(days=1),
    )


def get_streak_calendar(activity_dates, today: date, days: int = 30) -> list[tuple[date, bool]]:
    """Trailing window of (day, has_activity), oldest first, ending today."""
    today = to_calendar_day(today)
    active = {to_calendar_day(d) for d in activity_dates}
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    return [(day, day in active) for day in window]


def get_streak_milestone(current_streak: int) -> dict:
    next_milestone = next((m for m in STREAK_MILESTONES if m > current_streak), None)
    if next_milestone is None:
        next_milestone = current_streak + 30
    return {
        "current": current_streak,
        "next": next_milestone,
        "remaining": next_milestone - current_streak,
    }


def get_streak_status(last_active_date, today: date) -> str:
    """'active' if practiced today, 'at-risk' if only yesterday, else 'broken'."""
    if last_active_date is None:
        return "broken"
    gap = (to_calendar_day(today) - to_calendar_day(last_active_date)).days
    if gap == 0:
        return "active"
    if gap == 1:
        return "at-risk"
    return "broken"
