import logging
from datetime import datetime, timezone

from prep_progress.app import build_parser, main
from prep_progress.db import get_connection, get_setting
from prep_progress.progress import get_unlocked_achievement_ids, submit_attempt

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_parser_reads_db_and_user():
    parser = build_parser()
    args = parser.parse_args(["--db", "x.db", "unlock-achievements", "--user", "u1"])
    assert args.db == "x.db"
    assert args.user == "u1"


def test_init_creates_and_seeds(tmp_db):
    assert main(["--db", tmp_db, "init"], now=NOW) == 0
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM sections").fetchone()[0] == 4
    assert conn.execute("SELECT COUNT(*) FROM achievements").fetchone()[0] == 15
    conn.close()


def test_unlock_achievements_command(tmp_db, caplog):
    main(["--db", tmp_db, "init"], now=NOW)
    submit_attempt(tmp_db, "u1", [{"topic_id": "quant-ratio", "is_correct": True}], NOW)
    with caplog.at_level(logging.INFO, logger="prep_progress"):
        assert main(["--db", tmp_db, "unlock-achievements", "--user", "u1"], now=NOW) == 0
    assert "First Steps" in caplog.text
    assert "first-steps" in get_unlocked_achievement_ids(tmp_db, "u1")

    caplog.clear()
    with caplog.at_level(logging.INFO, logger="prep_progress"):
        assert main(["--db", tmp_db, "unlock-achievements", "--user", "u1"], now=NOW) == 0
    assert "No new achievements" in caplog.text


def test_analyze_weak_topics_command(tmp_db, caplog):
    main(["--db", tmp_db, "init"], now=NOW)
    answers = [{"topic_id": "reasoning-series", "is_correct": False}] * 5
    submit_attempt(tmp_db, "u1", answers, NOW)
    with caplog.at_level(logging.INFO, logger="prep_progress"):
        assert main(["--db", tmp_db, "analyze-weak-topics", "--user", "u1"], now=NOW) == 0
    assert "Number Series" in caplog.text
    assert "critical" in caplog.text


def test_set_exam_date(tmp_db):
    main(["--db", tmp_db, "init"], now=NOW)
    assert main(["--db", tmp_db, "set-exam-date", "--user", "u1", "2024-06-01"], now=NOW) == 0
    assert get_setting(tmp_db, "u1", "exam_date") == "2024-06-01"


def test_set_exam_date_rejects_bad_date(tmp_db, caplog):
    main(["--db", tmp_db, "init"], now=NOW)
    with caplog.at_level(logging.ERROR, logger="prep_progress"):
        assert main(["--db", tmp_db, "set-exam-date", "--user", "u1", "soon"], now=NOW) == 1
    assert "Invalid input" in caplog.text


def test_database_error_exits_nonzero(tmp_db, caplog):
    # tables were never created
    with caplog.at_level(logging.ERROR, logger="prep_progress"):
        assert main(["--db", tmp_db, "unlock-achievements", "--user", "u1"], now=NOW) == 1
    assert "Database error" in caplog.text
