"""
Habit management service.
Creates, edits and removes habits. xp_value is always derived from difficulty.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from levelup.auth import UserContext
from levelup.constants import ATTRIBUTES, DIFFICULTY_XP, EVENT_INSERT, EVENT_UPDATE, EVENT_DELETE
from levelup.database import commit_or_rollback
from levelup.exceptions import HabitNotFoundException, ValidationException
from levelup.models import Habit
from levelup.repositories.habit_repository import HabitRepository, CompletionRepository
from levelup.schemas import HabitCreate, HabitUpdate
from levelup.services.date_service import DateService
from levelup.services.events import ChangeEvent, ChangeNotifier, notifier as default_notifier
from levelup.services.progression import xp_for_difficulty
from levelup.services.streak_service import StreakService

logger = logging.getLogger("levelup.habits")


class HabitService:
    """Service for managing a user's habits"""

    def __init__(self, db: Session, notifier: Optional[ChangeNotifier] = None,
                 date_service: Optional[DateService] = None):
        self.db = db
        self.notifier = notifier or default_notifier
        self.date_service = date_service or DateService()

    def build_habit(self, user_id: str, data: HabitCreate) -> Habit:
        """
        Validate and build a habit without persisting it.

        Raises:
            ValidationException: If a field is missing or unknown
        """
        name = (data.name or "").strip()
        if not name:
            raise ValidationException("name", "is required")
        if data.attribute not in ATTRIBUTES:
            raise ValidationException("attribute", f"unknown attribute {data.attribute!r}")
        if data.difficulty not in DIFFICULTY_XP:
            raise ValidationException("difficulty", f"unknown difficulty {data.difficulty!r}")

        return Habit(
            user_id=user_id,
            name=name,
            attribute=data.attribute,
            difficulty=data.difficulty,
            xp_value=xp_for_difficulty(data.difficulty),
            is_active=True,
        )

    def create_habit(self, user: UserContext, data: HabitCreate) -> Habit:
        """Create a new habit"""
        habit = HabitRepository.create(self.db, self.build_habit(user.user_id, data))
        commit_or_rollback(self.db, "create habit")
        self.db.refresh(habit)

        logger.info(f"User {user.user_id} created habit {habit.id} ({habit.difficulty}, {habit.xp_value} XP)")
        self.notifier.publish(ChangeEvent(user.user_id, "habits", EVENT_INSERT, {"habit_id": habit.id}))
        return habit

    def list_habits(self, user: UserContext, active_only: bool = True) -> List[Habit]:
        return HabitRepository.get_for_user(self.db, user.user_id, active_only)

    def get_habit(self, user: UserContext, habit_id: int) -> Habit:
        """
        Get one of the user's habits.

        Raises:
            HabitNotFoundException: If missing or owned by someone else
        """
        habit = HabitRepository.get_by_id(self.db, user.user_id, habit_id)
        if not habit:
            raise HabitNotFoundException(habit_id)
        return habit

    def update_habit(self, user: UserContext, habit_id: int, data: HabitUpdate) -> Habit:
        """
        Update a habit.

        A new difficulty re-derives xp_value. Past completions keep the
        xp_earned they were recorded with.
        """
        habit = self.get_habit(user, habit_id)
        update_data = data.model_dump(exclude_unset=True)

        if "name" in update_data:
            name = (update_data["name"] or "").strip()
            if not name:
                raise ValidationException("name", "is required")
            habit.name = name
        if update_data.get("attribute") is not None:
            habit.attribute = update_data["attribute"]
        if update_data.get("difficulty") is not None:
            habit.difficulty = update_data["difficulty"]
            habit.xp_value = xp_for_difficulty(habit.difficulty)
        if update_data.get("is_active") is not None:
            habit.is_active = update_data["is_active"]

        commit_or_rollback(self.db, "update habit")
        self.db.refresh(habit)
        self.notifier.publish(ChangeEvent(user.user_id, "habits", EVENT_UPDATE, {"habit_id": habit.id}))
        return habit

    def delete_habit(self, user: UserContext, habit_id: int) -> None:
        """Delete a habit and its completion records (earned XP is kept)"""
        habit = self.get_habit(user, habit_id)
        removed = CompletionRepository.delete_for_habit(self.db, habit.id)
        HabitRepository.delete(self.db, habit)
        StreakService(self.db).refresh(user.user_id, self.date_service.get_effective_date())
        commit_or_rollback(self.db, "delete habit")

        logger.info(f"User {user.user_id} deleted habit {habit_id} ({removed} completions removed)")
        self.notifier.publish(ChangeEvent(user.user_id, "habits", EVENT_DELETE, {"habit_id": habit_id}))
