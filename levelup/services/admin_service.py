"""
Admin service.
User listing and administrative overrides (progress reset, account deletion).
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from levelup.auth import UserContext
from levelup.constants import EVENT_UPDATE, EVENT_DELETE
from levelup.database import commit_or_rollback
from levelup.exceptions import PermissionDeniedException, UserNotFoundException
from levelup.models import Profile
from levelup.repositories.habit_repository import HabitRepository, CompletionRepository
from levelup.repositories.profile_repository import (
    ProfileRepository, UserRoleRepository, UserProgressRepository
)
from levelup.schemas import AdminUserResponse
from levelup.services.events import ChangeEvent, ChangeNotifier, notifier as default_notifier

logger = logging.getLogger("levelup.admin")


class AdminService:
    """Service for administrative operations"""

    def __init__(self, db: Session, notifier: Optional[ChangeNotifier] = None):
        self.db = db
        self.notifier = notifier or default_notifier

    def list_users(self) -> List[AdminUserResponse]:
        """All profiles combined with their role and progress statistics"""
        roles = {r.user_id: r.role for r in UserRoleRepository.get_all(self.db)}
        progress = {p.user_id: p for p in UserProgressRepository.get_all(self.db)}

        users = []
        for profile in ProfileRepository.get_all(self.db):
            user_progress = progress.get(profile.user_id)
            users.append(AdminUserResponse(
                user_id=profile.user_id,
                full_name=profile.full_name,
                email=profile.email or "",
                current_level=profile.current_level or 1,
                current_xp=profile.current_xp or 0,
                role=roles.get(profile.user_id, "user"),
                total_habits_completed=user_progress.total_habits_completed if user_progress else 0,
                current_streak=user_progress.current_streak if user_progress else 0,
                longest_streak=user_progress.longest_streak if user_progress else 0,
                created_at=profile.created_at,
            ))
        return users

    def _get_target(self, user_id: str) -> Profile:
        profile = ProfileRepository.get_by_user_id(self.db, user_id)
        if not profile:
            raise UserNotFoundException(user_id)
        return profile

    def reset_user_progress(self, actor: UserContext, target_user_id: str) -> Profile:
        """
        Clear a user's XP, level, streaks and completion logs.

        Habits are kept.
        """
        profile = self._get_target(target_user_id)

        removed = CompletionRepository.delete_for_user(self.db, target_user_id)
        profile.current_xp = 0
        profile.current_level = 1
        profile.streak_count = 0
        profile.last_activity_date = None

        progress = UserProgressRepository.get_or_create(self.db, target_user_id)
        progress.current_streak = 0
        progress.longest_streak = 0
        progress.total_habits_completed = 0
        progress.total_xp_earned = 0
        progress.last_activity_date = None

        commit_or_rollback(self.db, "reset user progress")
        self.db.refresh(profile)

        logger.warning(f"Admin {actor.user_id} reset progress of {target_user_id} ({removed} completions removed)")
        self.notifier.publish(ChangeEvent(target_user_id, "profiles", EVENT_UPDATE, {"reset": True}))
        return profile

    def delete_user(self, actor: UserContext, target_user_id: str) -> None:
        """
        Delete a user and everything they own.

        Raises:
            PermissionDeniedException: If an admin targets their own account
            UserNotFoundException: If the user has no profile
        """
        if actor.user_id == target_user_id:
            raise PermissionDeniedException("admins cannot delete their own account")

        profile = self._get_target(target_user_id)

        CompletionRepository.delete_for_user(self.db, target_user_id)
        HabitRepository.delete_for_user(self.db, target_user_id)
        UserProgressRepository.delete_for_user(self.db, target_user_id)
        UserRoleRepository.delete_for_user(self.db, target_user_id)
        ProfileRepository.delete(self.db, profile)

        commit_or_rollback(self.db, "delete user")

        logger.warning(f"Admin {actor.user_id} deleted user {target_user_id}")
        self.notifier.publish(ChangeEvent(target_user_id, "profiles", EVENT_DELETE))
