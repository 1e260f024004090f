"""
Gamification rules: points, levels, streaks and achievements.

Pure functions only. The ProfileProjector applies them to the event stream,
so replaying the log always yields the same profile.

Level formula: every 500 points is one level, starting at level 1.
  0..499   -> 1
  500..999 -> 2
"""
from dataclasses import dataclass
from datetime import date, timedelta

POINTS_PER_LEVEL = 500
TASK_POINTS = 10


def level_for_points(total_points: int) -> int:
    """Level derived from total points (never below 1)."""
    return max(1, total_points // POINTS_PER_LEVEL + 1)


@dataclass(frozen=True)
class LevelProgress:
    level: int
    points_in_level: int
    points_needed: int
    percent: float


def level_progress(total_points: int) -> LevelProgress:
    """
    Progress inside the current level, as shown on dashboard and rewards.

    Returns:
        LevelProgress with points_in_level in [0, 500) and the points still
        needed to reach the next level.
    """
    points = max(total_points, 0)
    in_level = points % POINTS_PER_LEVEL
    return LevelProgress(
        level=level_for_points(points),
        points_in_level=in_level,
        points_needed=POINTS_PER_LEVEL - in_level,
        percent=round(in_level / POINTS_PER_LEVEL * 100, 1),
    )


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StreakUpdate:
    current_streak: int
    longest_streak: int
    last_task_date: date


def next_streak(
    current_streak: int,
    longest_streak: int,
    last_task_date: date | None,
    task_date: date,
    today: date,
) -> StreakUpdate:
    """
    Streak after completing a task scheduled for task_date.

    Only tasks scheduled for today move the streak:
      - first completion ever        -> 1
      - last completion yesterday    -> +1
      - last completion today        -> unchanged
      - anything older               -> 1
    A task scheduled for another day leaves the streak as it is, but still
    becomes the new last_task_date.
    """
    if last_task_date is None:
        streak = 1
    elif task_date == today:
        if last_task_date == today - timedelta(days=1):
            streak = current_streak + 1
        elif last_task_date == today:
            streak = current_streak
        else:
            streak = 1
    else:
        streak = current_streak

    return StreakUpdate(
        current_streak=streak,
        longest_streak=max(longest_streak, streak),
        last_task_date=task_date,
    )


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------

KIND_TASKS = "tasks"
KIND_STREAK = "streak"


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    required: int
    points: int
    kind: str = KIND_TASKS

    def is_satisfied(self, completed_tasks: int, current_streak: int) -> bool:
        if self.kind == KIND_STREAK:
            return current_streak >= self.required
        return completed_tasks >= self.required


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement("first-task", "First Step", "Complete your first task", 1, 50),
    Achievement("task-master", "Task Master", "Complete 10 tasks", 10, 200),
    Achievement("dedication", "Dedication", "Complete 25 tasks", 25, 500),
    Achievement("perfectionist", "Perfectionist", "Complete 50 tasks", 50, 1000),
    Achievement("legend", "Legend", "Complete 100 tasks", 100, 2500),
    Achievement("streak", "On a Roll", "Complete tasks 7 days in a row", 7, 300, kind=KIND_STREAK),
)

ACHIEVEMENTS_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def newly_unlocked(
    completed_tasks: int,
    current_streak: int,
    unlocked: list[str] | set[str],
) -> list[Achievement]:
    """Achievements whose threshold is met and that are not unlocked yet, in table order."""
    already = set(unlocked)
    return [
        a for a in ACHIEVEMENTS
        if a.id not in already and a.is_satisfied(completed_tasks, current_streak)
    ]
