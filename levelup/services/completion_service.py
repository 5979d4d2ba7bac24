"""
Completion service.
Toggles a habit's completion for the current effective day and applies the
matching XP delta.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from levelup.auth import UserContext
from levelup.constants import EVENT_INSERT, EVENT_DELETE
from levelup.database import commit_or_rollback
from levelup.exceptions import DuplicateCompletionException, HabitInactiveException
from levelup.models import HabitCompletion, Profile
from levelup.repositories.habit_repository import CompletionRepository
from levelup.services.date_service import DateService
from levelup.services.events import ChangeEvent, ChangeNotifier, notifier as default_notifier
from levelup.services.habit_service import HabitService
from levelup.services.profile_service import ProfileService
from levelup.services.streak_service import StreakService

logger = logging.getLogger("levelup.completions")


@dataclass
class ToggleResult:
    habit_id: int
    completed: bool
    xp_delta: int
    completed_date: date
    profile: Profile


class CompletionService:
    """Service for habit completion records"""

    def __init__(self, db: Session, notifier: Optional[ChangeNotifier] = None,
                 date_service: Optional[DateService] = None):
        self.db = db
        self.notifier = notifier or default_notifier
        self.date_service = date_service or DateService()
        self.habit_service = HabitService(db, self.notifier, self.date_service)
        self.profile_service = ProfileService(db, self.notifier)
        self.streak_service = StreakService(db)

    def get_today_completions(self, user: UserContext) -> List[HabitCompletion]:
        today = self.date_service.get_effective_date()
        return CompletionRepository.get_for_date(self.db, user.user_id, today)

    def get_all_completions(self, user: UserContext) -> List[HabitCompletion]:
        return CompletionRepository.get_all(self.db, user.user_id)

    def is_completed(self, user: UserContext, habit_id: int, day: Optional[date] = None) -> bool:
        day = day or self.date_service.get_effective_date()
        return CompletionRepository.get(self.db, user.user_id, habit_id, day) is not None

    def toggle_habit(self, user: UserContext, habit_id: int, day: Optional[date] = None) -> ToggleResult:
        """
        Mark a habit done for the day, or undo it if already done.

        Completing inserts a record snapshotting habit.xp_value and adds that
        XP. Undoing deletes the record and subtracts exactly its xp_earned.
        The record change, XP change and streak refresh commit together;
        nothing is reported before the commit succeeds.

        Args:
            user: Acting user
            habit_id: Habit to toggle
            day: Completion day (defaults to the current effective date)

        Raises:
            HabitNotFoundException: If the habit does not belong to the user
            HabitInactiveException: If completing a deactivated habit
            DuplicateCompletionException: If a concurrent request completed it first
            ProfileNotFoundException: If the user has not onboarded
        """
        day = day or self.date_service.get_effective_date()
        habit = self.habit_service.get_habit(user, habit_id)
        self.profile_service.get_profile(user.user_id)

        existing = CompletionRepository.get(self.db, user.user_id, habit.id, day)

        if existing:
            xp_delta = -existing.xp_earned
            CompletionRepository.delete(self.db, existing)
            action = EVENT_DELETE
        else:
            if not habit.is_active:
                raise HabitInactiveException(habit.id)
            xp_delta = habit.xp_value
            try:
                CompletionRepository.create(self.db, HabitCompletion(
                    habit_id=habit.id,
                    user_id=user.user_id,
                    completed_date=day,
                    xp_earned=habit.xp_value,
                ))
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateCompletionException(habit.id, day) from e
            action = EVENT_INSERT

        profile = self.profile_service.add_xp(user.user_id, xp_delta, commit=False)
        self.streak_service.refresh(user.user_id, self.date_service.get_effective_date())
        commit_or_rollback(self.db, "toggle habit")
        self.db.refresh(profile)

        completed = action == EVENT_INSERT
        logger.info(
            f"User {user.user_id} {'completed' if completed else 'uncompleted'} habit {habit.id} "
            f"on {day} ({xp_delta:+d} XP, now {profile.current_xp} XP, level {profile.current_level})"
        )

        self.notifier.publish(ChangeEvent(
            user.user_id, "habit_completions", action,
            {"habit_id": habit.id, "completed_date": day.isoformat(), "xp_delta": xp_delta}
        ))

        return ToggleResult(
            habit_id=habit.id,
            completed=completed,
            xp_delta=xp_delta,
            completed_date=day,
            profile=profile,
        )
