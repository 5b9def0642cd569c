"""Seed the database with exam sections, topics, and the achievement catalog."""
import json
from pathlib import Path

from prep_progress.achievements import load_default_achievements
from prep_progress.db import get_connection

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database has already been seeded with sections."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM sections").fetchone()[0]
    conn.close()
    return count > 0


def seed_sections(db_path: str) -> None:
    """Insert all exam sections and their topics from sections.json."""
    data = json.loads((CONTENT_DIR / "sections.json").read_text(encoding="utf-8"))
    conn = get_connection(db_path)
    for section in data["sections"]:
        conn.execute(
            "INSERT OR IGNORE INTO sections (id, name) VALUES (?, ?)",
            (section["id"], section["name"]),
        )
        for topic in section["topics"]:
            conn.execute(
                "INSERT OR IGNORE INTO topics (id, section_id, name) VALUES (?, ?, ?)",
                (topic["id"], section["id"], topic["name"]),
            )
    conn.commit()
    conn.close()


def seed_achievements(db_path: str, achievements=None) -> None:
    """Insert the achievement catalog; existing ids are left untouched."""
    if achievements is None:
        achievements = load_default_achievements()
    conn = get_connection(db_path)
    for a in achievements:
        conn.execute(
            """INSERT OR IGNORE INTO achievements
            (id, name, description, icon, category, requirement_type, requirement_value, points)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (a.id, a.name, a.description, a.icon, a.category,
             a.requirement_type, a.requirement_value, a.points),
        )
    conn.commit()
    conn.close()


def seed_all(db_path: str) -> None:
    """Run all seed functions in order."""
    if not is_seeded(db_path):
        seed_sections(db_path)
    seed_achievements(db_path)
