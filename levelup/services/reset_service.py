"""
Daily reset.
Completion records are keyed by day, so a new day starts with every habit
unchecked. The reset recomputes streaks so users who skipped yesterday see
their streak broken, and stamps the processed day.
"""
import logging
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from levelup.database import commit_or_rollback
from levelup.repositories.profile_repository import ProfileRepository, UserProgressRepository
from levelup.services.date_service import DateService
from levelup.services.streak_service import StreakService

logger = logging.getLogger("levelup.reset")


class ResetService:
    """Service for the daily habit reset"""

    def __init__(self, db: Session, date_service: Optional[DateService] = None):
        self.db = db
        self.date_service = date_service or DateService()
        self.streak_service = StreakService(db)

    def reset_daily_habits(self, today: Optional[date] = None) -> int:
        """
        Run the reset for the effective date.

        Idempotent: users already processed for the day are skipped.

        Returns:
            Number of users processed
        """
        today = today or self.date_service.get_effective_date()
        processed = 0

        for profile in ProfileRepository.get_all(self.db):
            progress = UserProgressRepository.get_or_create(self.db, profile.user_id)
            if progress.last_reset_date == today:
                continue

            self.streak_service.refresh(profile.user_id, today)
            progress.last_reset_date = today
            processed += 1

        commit_or_rollback(self.db, "daily reset")
        if processed:
            logger.info(f"Daily reset for {today}: {processed} users processed")
        return processed
