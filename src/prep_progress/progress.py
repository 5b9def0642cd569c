"""Store-backed progress queries that feed the engine and persist its results.

Each function reads rows for one user, shapes them into the engine's value
objects, runs the pure computation and, where there is something to keep,
writes it back. Timestamps are stored as ISO strings and collapsed to UTC
calendar days before they reach the engine.
"""
import logging
from datetime import date, datetime, timezone

from prep_progress.achievements import check_achievements
from prep_progress.db import get_connection, get_setting
from prep_progress.models import (
    Achievement, ReadinessResult, SectionStats, StreakResult, UserProgress, UserStats, WeakTopic,
)
from prep_progress.readiness import calculate_readiness
from prep_progress.review import analyze_topic_performance, recommend_topics, record_topic_answer
from prep_progress.streak import calculate_streak, to_calendar_day

logger = logging.getLogger(__name__)

# Attempts compared on each side when measuring the recent accuracy trend.
TREND_WINDOW = 10


def _utc_stamp(value: datetime) -> str:
    """ISO string in UTC, so stored stamps sort in time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_day(value: str | None) -> date | None:
    if not value:
        return None
    return to_calendar_day(datetime.fromisoformat(value))


def _attempt_accuracy(row) -> float | None:
    total = row["correct_answers"] + row["incorrect_answers"] + row["unanswered"]
    if total == 0:
        return None
    return row["correct_answers"] / total * 100


def _mean(values: list) -> float:
    return sum(values) / len(values) if values else 0.0


def _row_to_weak_topic(row) -> WeakTopic:
    return WeakTopic(
        user_id=row["user_id"],
        topic_id=row["topic_id"],
        topic_name=row["topic_name"] or "",
        total_attempts=row["total_attempts"],
        correct_attempts=row["correct_attempts"],
        accuracy_percentage=row["accuracy_percentage"],
        weakness_level=row["weakness_level"],
        review_count=row["review_count"],
        next_review_date=date.fromisoformat(row["next_review_date"]) if row["next_review_date"] else None,
        last_practiced_at=date.fromisoformat(row["last_practiced_at"]) if row["last_practiced_at"] else None,
    )


_WEAK_TOPIC_SELECT = """SELECT w.*, t.name as topic_name
    FROM weak_topics w LEFT JOIN topics t ON w.topic_id = t.id"""


def _load_weak_topic(conn, user_id: str, topic_id: str) -> WeakTopic | None:
    row = conn.execute(
        _WEAK_TOPIC_SELECT + " WHERE w.user_id = ? AND w.topic_id = ?", (user_id, topic_id)
    ).fetchone()
    return _row_to_weak_topic(row) if row else None


def _upsert_weak_topic(conn, topic: WeakTopic, updated_at: str) -> None:
    conn.execute(
        """INSERT INTO weak_topics
        (user_id, topic_id, total_attempts, correct_attempts, accuracy_percentage,
         weakness_level, review_count, next_review_date, last_practiced_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id, topic_id) DO UPDATE SET
            total_attempts = excluded.total_attempts,
            correct_attempts = excluded.correct_attempts,
            accuracy_percentage = excluded.accuracy_percentage,
            weakness_level = excluded.weakness_level,
            review_count = excluded.review_count,
            next_review_date = excluded.next_review_date,
            last_practiced_at = excluded.last_practiced_at,
            updated_at = excluded.updated_at""",
        (
            topic.user_id, topic.topic_id, topic.total_attempts, topic.correct_attempts,
            topic.accuracy_percentage, topic.weakness_level, topic.review_count,
            topic.next_review_date.isoformat() if topic.next_review_date else None,
            topic.last_practiced_at.isoformat() if topic.last_practiced_at else None,
            updated_at,
        ),
    )


def submit_attempt(
    db_path: str,
    user_id: str,
    answers: list[dict],
    submitted_at: datetime,
    unanswered: int = 0,
) -> int:
    """Store a submitted attempt and fold each answer into the weak topics.

    Args:
        answers: Dicts with ``topic_id`` and ``is_correct``.
        submitted_at: Submission time; its UTC day is the activity day.
        unanswered: Questions left blank, counted against accuracy.

    Returns:
        The new attempt id.
    """
    stamp = _utc_stamp(submitted_at)
    today = to_calendar_day(submitted_at)
    correct = sum(1 for a in answers if a["is_correct"])
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            """INSERT INTO test_attempts
            (user_id, status, correct_answers, incorrect_answers, unanswered, submitted_at)
            VALUES (?, 'submitted', ?, ?, ?, ?)""",
            (user_id, correct, len(answers) - correct, unanswered, stamp),
        )
        attempt_id = cursor.lastrowid
        for answer in answers:
            conn.execute(
                "INSERT INTO user_answers (attempt_id, topic_id, is_correct, answered_at) VALUES (?, ?, ?, ?)",
                (attempt_id, answer["topic_id"], int(answer["is_correct"]), stamp),
            )
            topic = record_topic_answer(
                _load_weak_topic(conn, user_id, answer["topic_id"]),
                bool(answer["is_correct"]),
                today,
                user_id=user_id,
                topic_id=answer["topic_id"],
            )
            if topic is not None:
                _upsert_weak_topic(conn, topic, stamp)
        conn.commit()
    finally:
        conn.close()
    logger.debug("Stored attempt %s for %s: %d/%d correct", attempt_id, user_id, correct, len(answers))
    return attempt_id


def _submitted_attempts(conn, user_id: str) -> list:
    return conn.execute(
        """SELECT * FROM test_attempts
        WHERE user_id = ? AND status = 'submitted' AND submitted_at IS NOT NULL
        ORDER BY submitted_at DESC""",
        (user_id,),
    ).fetchall()


def get_activity_dates(db_path: str, user_id: str) -> list[date]:
    """UTC days with at least one submitted attempt, newest first, deduplicated."""
    conn = get_connection(db_path)
    rows = _submitted_attempts(conn, user_id)
    conn.close()
    return sorted({_parse_day(r["submitted_at"]) for r in rows}, reverse=True)


def get_user_streak(db_path: str, user_id: str, today: date) -> StreakResult:
    return calculate_streak(get_activity_dates(db_path, user_id), today)


def _section_coverage(conn, user_id: str) -> tuple[int, int]:
    practiced = conn.execute(
        """SELECT COUNT(DISTINCT t.section_id)
        FROM user_answers a
        JOIN test_attempts ta ON a.attempt_id = ta.id
        JOIN topics t ON a.topic_id = t.id
        WHERE ta.user_id = ?""",
        (user_id,),
    ).fetchone()[0]
    total = conn.execute("SELECT COUNT(*) FROM sections").fetchone()[0]
    return practiced, total


def _section_stats(conn, user_id: str) -> list[SectionStats]:
    rows = conn.execute(
        """SELECT s.id as section_id, s.name as section_name, a.is_correct, a.answered_at
        FROM user_answers a
        JOIN test_attempts ta ON a.attempt_id = ta.id
        JOIN topics t ON a.topic_id = t.id
        JOIN sections s ON t.section_id = s.id
        WHERE ta.user_id = ?
        ORDER BY s.id""",
        (user_id,),
    ).fetchall()
    grouped = {}
    for r in rows:
        entry = grouped.setdefault(r["section_id"], {"name": r["section_name"], "answers": [], "days": set()})
        entry["answers"].append(r["is_correct"])
        day = _parse_day(r["answered_at"])
        if day is not None:
            entry["days"].add(day)
    return [
        SectionStats(
            section_id=section_id,
            section_name=entry["name"],
            accuracy=sum(entry["answers"]) / len(entry["answers"]) * 100,
            questions_attempted=len(entry["answers"]),
            days_practiced=len(entry["days"]),
        )
        for section_id, entry in grouped.items()
    ]


def _accuracy_trend(attempts: list) -> float:
    """Mean accuracy of the latest window minus the window before it."""
    accuracies = [a for a in (_attempt_accuracy(r) for r in attempts) if a is not None]
    recent = accuracies[:TREND_WINDOW]
    previous = accuracies[TREND_WINDOW:2 * TREND_WINDOW]
    if len(recent) < TREND_WINDOW or not previous:
        return 0.0
    return _mean(recent) - _mean(previous)


def get_user_stats(db_path: str, user_id: str) -> UserStats:
    conn = get_connection(db_path)
    attempts = _submitted_attempts(conn, user_id)
    practiced, total_sections = _section_coverage(conn, user_id)
    section_stats = _section_stats(conn, user_id)
    conn.close()

    accuracies = [a for a in (_attempt_accuracy(r) for r in attempts) if a is not None]
    exam_date = get_setting(db_path, user_id, "exam_date")
    return UserStats(
        overall_accuracy=_mean(accuracies),
        sections_practiced=practiced,
        total_sections=total_sections,
        tests_completed=len(attempts),
        questions_answered=sum(r["correct_answers"] + r["incorrect_answers"] for r in attempts),
        recent_accuracy_trend=_accuracy_trend(attempts),
        section_stats=section_stats,
        exam_date=date.fromisoformat(exam_date) if exam_date else None,
    )


def get_user_readiness(db_path: str, user_id: str, now: datetime) -> ReadinessResult:
    return calculate_readiness(get_user_stats(db_path, user_id), now)


def get_user_progress(db_path: str, user_id: str, today: date) -> UserProgress:
    """Snapshot of everything the achievement rules look at."""
    conn = get_connection(db_path)
    attempts = _submitted_attempts(conn, user_id)
    practiced, total_sections = _section_coverage(conn, user_id)
    conn.close()

    accuracies = [a for a in (_attempt_accuracy(r) for r in attempts) if a is not None]
    streak = calculate_streak([_parse_day(r["submitted_at"]) for r in attempts], today)
    perfect = sum(
        1 for r in attempts
        if r["correct_answers"] > 0 and r["incorrect_answers"] == 0 and r["unanswered"] == 0
    )
    return UserProgress(
        tests_completed=len(attempts),
        questions_answered=sum(r["correct_answers"] + r["incorrect_answers"] for r in attempts),
        best_accuracy=max(accuracies, default=0.0),
        average_accuracy=_mean(accuracies),
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        sections_attempted=practiced,
        total_sections=total_sections,
        perfect_scores=perfect,
    )


def _load_catalog(conn) -> list[Achievement]:
    rows = conn.execute("SELECT * FROM achievements ORDER BY rowid").fetchall()
    return [
        Achievement(
            id=r["id"],
            name=r["name"],
            description=r["description"] or "",
            icon=r["icon"] or "",
            category=r["category"],
            requirement_type=r["requirement_type"],
            requirement_value=r["requirement_value"],
            points=r["points"],
        )
        for r in rows
    ]


def unlock_achievements(db_path: str, user_id: str, now: datetime) -> list[Achievement]:
    """Check the catalog against the user's progress and record new unlocks.

    Only rows this call actually inserted are returned, so a concurrent call
    that got there first is not reported twice.
    """
    progress = get_user_progress(db_path, user_id, to_calendar_day(now))
    conn = get_connection(db_path)
    try:
        catalog = _load_catalog(conn)
        unlocked_ids = {
            r["achievement_id"]
            for r in conn.execute(
                "SELECT achievement_id FROM user_achievements WHERE user_id = ?", (user_id,)
            ).fetchall()
        }
        recorded = []
        for achievement in check_achievements(progress, catalog, unlocked_ids):
            cursor = conn.execute(
                "INSERT OR IGNORE INTO user_achievements (user_id, achievement_id, unlocked_at) VALUES (?, ?, ?)",
                (user_id, achievement.id, _utc_stamp(now)),
            )
            if cursor.rowcount == 1:
                recorded.append(achievement)
        conn.commit()
    finally:
        conn.close()
    if recorded:
        logger.info("Unlocked %d achievement(s) for %s: %s",
                    len(recorded), user_id, ", ".join(a.name for a in recorded))
    return recorded


def get_unlocked_achievement_ids(db_path: str, user_id: str) -> set[str]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT achievement_id FROM user_achievements WHERE user_id = ?", (user_id,)
    ).fetchall()
    conn.close()
    return {r["achievement_id"] for r in rows}


def get_weak_topics(db_path: str, user_id: str) -> list[WeakTopic]:
    conn = get_connection(db_path)
    rows = conn.execute(
        _WEAK_TOPIC_SELECT + " WHERE w.user_id = ? ORDER BY w.accuracy_percentage ASC", (user_id,)
    ).fetchall()
    conn.close()
    return [_row_to_weak_topic(r) for r in rows]


def get_due_topics(db_path: str, user_id: str, now: datetime, limit: int = 5) -> list[WeakTopic]:
    return recommend_topics(get_weak_topics(db_path, user_id), now, limit=limit)


def reanalyze_weak_topics(db_path: str, user_id: str, today: date) -> list[WeakTopic]:
    """Rebuild weak topics from the user's full answer history.

    Rows for topics that are no longer weak are kept as they are.
    """
    conn = get_connection(db_path)
    try:
        performance = [
            dict(r) for r in conn.execute(
                """SELECT a.topic_id, t.name as topic_name,
                    COUNT(*) as total, SUM(a.is_correct) as correct
                FROM user_answers a
                JOIN test_attempts ta ON a.attempt_id = ta.id
                JOIN topics t ON a.topic_id = t.id
                WHERE ta.user_id = ?
                GROUP BY a.topic_id""",
                (user_id,),
            ).fetchall()
        ]
        existing = {
            r["topic_id"]: _row_to_weak_topic(r)
            for r in conn.execute(_WEAK_TOPIC_SELECT + " WHERE w.user_id = ?", (user_id,)).fetchall()
        }
        weak = analyze_topic_performance(performance, user_id, today, existing)
        stamp = _utc_stamp(datetime.combine(today, datetime.min.time()))
        for topic in weak:
            _upsert_weak_topic(conn, topic, stamp)
        conn.commit()
    finally:
        conn.close()
    logger.info("Reanalyzed %d topic(s) for %s, %d weak", len(performance), user_id, len(weak))
    return weak
