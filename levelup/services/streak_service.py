"""
Streak and user progress bookkeeping.
Recomputes streaks from stored completion dates, so toggling a habit off
undoes its effect on the streak as well.
"""
from datetime import date
from sqlalchemy.orm import Session

from levelup.models import Profile, UserProgress
from levelup.repositories.habit_repository import CompletionRepository
from levelup.repositories.profile_repository import ProfileRepository, UserProgressRepository
from levelup.services.progression import calculate_streak


class StreakService:
    """Keeps profile.streak_count and user_progress in sync with completions"""

    def __init__(self, db: Session):
        self.db = db

    def refresh(self, user_id: str, today: date) -> UserProgress:
        """
        Recompute streak and lifetime counters for a user.

        Does not commit; runs inside the caller's transaction.

        Args:
            user_id: User to refresh
            today: Current effective date

        Returns:
            Updated user progress
        """
        dates = CompletionRepository.get_completion_dates(self.db, user_id)
        streak = calculate_streak(dates, today)
        last_activity = max(dates) if dates else None
        completed_count, total_xp = CompletionRepository.get_totals(self.db, user_id)

        progress = UserProgressRepository.get_or_create(self.db, user_id)
        progress.current_streak = streak
        progress.longest_streak = max(progress.longest_streak or 0, streak)
        progress.last_activity_date = last_activity
        progress.total_habits_completed = completed_count
        progress.total_xp_earned = total_xp

        profile = ProfileRepository.get_by_user_id(self.db, user_id)
        if profile:
            self._apply_to_profile(profile, streak, last_activity)

        self.db.flush()
        return progress

    @staticmethod
    def _apply_to_profile(profile: Profile, streak: int, last_activity) -> None:
        profile.streak_count = streak
        profile.last_activity_date = last_activity
