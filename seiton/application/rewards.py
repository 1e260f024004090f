"""Rewards view builder - level progress, streaks and the achievement board"""
from sqlalchemy.orm import Session

from seiton.domain.gamification import ACHIEVEMENTS, KIND_STREAK, level_progress
from seiton.application.gamification import PointsHistoryService
from seiton.application.profile import ProfileService


def build_achievement_board(unlocked: list[str], completed_tasks: int, current_streak: int) -> list[dict]:
    """
    One entry per achievement, in table order.

    Only unlocks recorded on the profile count as unlocked; a threshold that is
    met but not yet recorded shows as full progress.
    """
    unlocked_ids = set(unlocked)
    board = []
    for a in ACHIEVEMENTS:
        current = current_streak if a.kind == KIND_STREAK else completed_tasks
        board.append({
            "id": a.id,
            "title": a.title,
            "description": a.description,
            "points": a.points,
            "required": a.required,
            "progress": min(current, a.required),
            "unlocked": a.id in unlocked_ids,
        })
    return board


class RewardsService:
    def __init__(self, db: Session):
        self.db = db

    def build(self, user_id: int) -> dict:
        profile = ProfileService(self.db).get_profile(user_id)
        board = build_achievement_board(
            profile.unlocked_achievements, profile.completed_tasks, profile.current_streak
        )
        return {
            "profile": profile,
            "progress": level_progress(profile.total_points),
            "achievements": board,
            "unlocked_count": sum(1 for a in board if a["unlocked"]),
            "history": PointsHistoryService(self.db).list_recent(user_id, limit=10),
        }
