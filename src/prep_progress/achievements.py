"""Achievement unlock rules."""
import json
import logging
from pathlib import Path

from prep_progress.models import Achievement, UserProgress
from prep_progress.rounding import round_half_up

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"


def _coverage_percent(progress: UserProgress) -> float:
    if progress.total_sections == 0:
        return 0.0
    return progress.sections_attempted / progress.total_sections * 100


# requirement_type -> the progress value compared against requirement_value
REQUIREMENT_METRICS = {
    "tests_count": lambda p: p.tests_completed,
    "questions_count": lambda p: p.questions_answered,
    "accuracy": lambda p: p.best_accuracy,
    "streak_days": lambda p: max(p.current_streak, p.longest_streak),
    "consecutive_days": lambda p: p.current_streak,
    "sections_covered": _coverage_percent,
    "perfect_score": lambda p: p.perfect_scores,
}


def load_default_achievements() -> list[Achievement]:
    """The built-in catalog from content/achievements.json."""
    data = json.loads((CONTENT_DIR / "achievements.json").read_text(encoding="utf-8"))
    return [Achievement(**entry) for entry in data["achievements"]]


def is_satisfied(achievement: Achievement, progress: UserProgress) -> bool:
    metric = REQUIREMENT_METRICS.get(achievement.requirement_type)
    if metric is None:
        logger.debug(
            "Unknown requirement type %r on achievement %s",
            achievement.requirement_type, achievement.id,
        )
        return False
    return metric(progress) >= achievement.requirement_value


def check_achievements(progress: UserProgress, achievements, unlocked_ids) -> list[Achievement]:
    """Return achievements newly satisfied by ``progress``.

    Anything in ``unlocked_ids`` is skipped, so feeding the result back into
    ``unlocked_ids`` makes a second call return none of the same ids.
    """
    seen = set(unlocked_ids)
    newly_unlocked = []
    for achievement in achievements:
        if achievement.id in seen:
            continue
        if is_satisfied(achievement, progress):
            newly_unlocked.append(achievement)
            seen.add(achievement.id)
    return newly_unlocked


def achievement_progress(achievement: Achievement, progress: UserProgress) -> dict:
    """How far the user is towards an achievement, as current/target/percentage."""
    metric = REQUIREMENT_METRICS.get(achievement.requirement_type)
    current = metric(progress) if metric else 0
    target = achievement.requirement_value
    if metric is None:
        percentage = 0
    elif target <= 0:
        percentage = 100
    else:
        percentage = min(round_half_up(current / target * 100), 100)
    return {"current": current, "target": target, "percentage": percentage}


def total_points(achievements) -> int:
    return sum(a.points for a in achievements)
