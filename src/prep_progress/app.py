"""Maintenance commands for the progress store."""
import argparse
import logging
import sqlite3
import sys
from datetime import date, datetime, timezone

from prep_progress.achievements import total_points
from prep_progress.db import DEFAULT_DB_PATH, init_db, set_setting
from prep_progress.log import configure_logging
from prep_progress.progress import reanalyze_weak_topics, unlock_achievements
from prep_progress.seed import seed_all
from prep_progress.sm2 import days_until_review, interval_description
from prep_progress.streak import to_calendar_day

logger = logging.getLogger(__name__)


def cmd_init(args, now: datetime) -> int:
    init_db(args.db)
    seed_all(args.db)
    logger.info("Database ready at %s", args.db)
    return 0


def cmd_unlock_achievements(args, now: datetime) -> int:
    unlocked = unlock_achievements(args.db, args.user, now)
    if not unlocked:
        logger.info("No new achievements to unlock for %s", args.user)
        return 0
    points = total_points(unlocked)
    for a in unlocked:
        logger.info("  %s (+%d) - %s", a.name, a.points, a.description)
    logger.info("%d achievement(s), %d point(s) for %s", len(unlocked), points, args.user)
    return 0


def cmd_analyze_weak_topics(args, now: datetime) -> int:
    weak = reanalyze_weak_topics(args.db, args.user, to_calendar_day(now))
    for topic in weak:
        when = "not scheduled"
        if topic.next_review_date is not None:
            when = interval_description(max(1, days_until_review(topic.next_review_date, now)))
        logger.info(
            "  %s: %s%% (%s) next review %s",
            topic.topic_name or topic.topic_id, topic.accuracy_percentage, topic.weakness_level, when,
        )
    return 0


def cmd_set_exam_date(args, now: datetime) -> int:
    exam_date = date.fromisoformat(args.date)
    set_setting(args.db, args.user, "exam_date", exam_date.isoformat())
    logger.info("Exam date for %s set to %s", args.user, exam_date.isoformat())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="prep-progress", description="Exam prep progress maintenance")
    parser.add_argument("--db", default=DEFAULT_DB_PATH, help=f"Path to sqlite DB (default: {DEFAULT_DB_PATH})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create tables and seed sections and achievements")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("unlock-achievements", help="Record achievements the user has earned")
    p.add_argument("--user", required=True)
    p.set_defaults(func=cmd_unlock_achievements)

    p = sub.add_parser("analyze-weak-topics", help="Rebuild weak topics from answer history")
    p.add_argument("--user", required=True)
    p.set_defaults(func=cmd_analyze_weak_topics)

    p = sub.add_parser("set-exam-date", help="Store the user's exam date (YYYY-MM-DD)")
    p.add_argument("--user", required=True)
    p.add_argument("date")
    p.set_defaults(func=cmd_set_exam_date)
    return parser


def main(argv=None, now: datetime = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    now = now or datetime.now(timezone.utc)
    try:
        return args.func(args, now)
    except ValueError as e:
        logger.error("Invalid input: %s", e)
    except sqlite3.Error as e:
        logger.error("Database error: %s", e)
    return 1


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
