"""Weak topic classification, tracking and review recommendations."""
from dataclasses import replace
from datetime import date
from typing import Optional

from prep_progress.models import InvalidInputError, ReviewState, WeakTopic
from prep_progress.rounding import round_half_up
from prep_progress.sm2 import calculate_next_review, is_review_due

# At or above this accuracy a topic needs no scheduled review.
MASTERED_ACCURACY = 75
# Batch analysis: below MIN_ATTEMPTS answers a topic is left alone; below
# FULL_TIER_ATTEMPTS only topics under PROVISIONAL_ACCURACY are flagged, as moderate.
MIN_ATTEMPTS = 3
FULL_TIER_ATTEMPTS = 5
PROVISIONAL_ACCURACY = 50

_LEVEL_ORDER = {"critical": 0, "moderate": 1, "improving": 2}


def classify_weakness(accuracy: float, review_count: int = 0) -> str:
    """Weakness tier for an accuracy percentage.

    ``review_count`` does not change the outcome; it is accepted so callers
    can pass the full review state.
    """
    if accuracy < 40:
        return "critical"
    if accuracy < 60:
        return "moderate"
    return "improving"


def _accuracy(correct: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(correct / total * 100)


def _reschedule(topic: WeakTopic, today: date, advance: bool = True) -> WeakTopic:
    """Set the topic's next review, or clear it once the topic is mastered.

    With ``advance`` False the review is scheduled from the current count but
    the count itself is kept, so repeating the call changes nothing.
    """
    if topic.accuracy_percentage >= MASTERED_ACCURACY:
        return replace(topic, next_review_date=None)
    nxt = calculate_next_review(ReviewState(
        review_count=topic.review_count,
        last_accuracy=topic.accuracy_percentage,
        last_review_date=today,
    ))
    review_count = nxt.review_count if advance else topic.review_count
    return replace(topic, next_review_date=nxt.next_review_date, review_count=review_count)


def record_topic_answer(
    topic: Optional[WeakTopic],
    was_correct: bool,
    today: date,
    user_id: Optional[str] = None,
    topic_id: Optional[str] = None,
    topic_name: str = "",
) -> Optional[WeakTopic]:
    """Fold one answered question into a topic's weak-topic state.

    Args:
        topic: Current state, or None if the topic is not tracked yet.
        was_correct: Whether the answer was correct.
        today: Day of the answer; reviews are scheduled from it.
        user_id, topic_id, topic_name: Identify a new row when ``topic`` is None.

    Returns:
        The updated WeakTopic to upsert, or None when an untracked topic was
        answered correctly (topics are only tracked after a first miss).
    """
    if topic is None:
        if was_correct:
            return None
        if user_id is None or topic_id is None:
            raise InvalidInputError("user_id and topic_id are required to start tracking a topic")
        topic = WeakTopic(user_id=user_id, topic_id=topic_id, topic_name=topic_name)

    total = topic.total_attempts + 1
    correct = topic.correct_attempts + (1 if was_correct else 0)
    accuracy = _accuracy(correct, total)
    updated = replace(
        topic,
        total_attempts=total,
        correct_attempts=correct,
        accuracy_percentage=accuracy,
        weakness_level=classify_weakness(accuracy, topic.review_count),
        last_practiced_at=today,
    )
    return _reschedule(updated, today)


def analyze_topic_performance(
    performance: list[dict],
    user_id: str,
    today: date,
    existing: Optional[dict] = None,
) -> list[WeakTopic]:
    """Rebuild weak topics from aggregated per-topic answer counts.

    ``performance`` rows carry ``topic_id``, ``topic_name``, ``total`` and
    ``correct``. ``existing`` maps topic_id to the stored WeakTopic so review
    counts carry over. Topics with too few answers or mastered accuracy are
    left out. Review counts are read but never advanced here, so running the
    analysis again on the same day gives the same result.
    """
    existing = existing or {}
    weak = []
    for row in performance:
        total, correct = row["total"], row["correct"]
        if total < MIN_ATTEMPTS:
            continue
        accuracy = _accuracy(correct, total)
        if accuracy >= MASTERED_ACCURACY:
            continue
        if total >= FULL_TIER_ATTEMPTS:
            level = classify_weakness(accuracy)
        elif accuracy < PROVISIONAL_ACCURACY:
            level = "moderate"
        else:
            continue
        previous = existing.get(row["topic_id"])
        topic = WeakTopic(
            user_id=user_id,
            topic_id=row["topic_id"],
            topic_name=row.get("topic_name", ""),
            total_attempts=total,
            correct_attempts=correct,
            accuracy_percentage=accuracy,
            weakness_level=level,
            review_count=previous.review_count if previous else 0,
            last_practiced_at=previous.last_practiced_at if previous else None,
        )
        weak.append(_reschedule(topic, today, advance=False))
    return weak


def recommend_topics(topics: list[WeakTopic], now, limit: int = 5) -> list[WeakTopic]:
    """Due topics, most severe first, then the longest overdue."""
    due = [t for t in topics if t.next_review_date is not None and is_review_due(t.next_review_date, now)]
    due.sort(key=lambda t: (_LEVEL_ORDER[t.weakness_level], t.next_review_date))
    return due[:limit]
