"""
Profile service.
Handles onboarding, profile reads with derived progression values, and the
atomic XP mutation.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session

from levelup.auth import UserContext
from levelup.constants import ROLE_USER, EVENT_INSERT, EVENT_UPDATE
from levelup.database import commit_or_rollback
from levelup.exceptions import (
    ProfileNotFoundException, ProfileAlreadyExistsException, ValidationException
)
from levelup.models import Profile
from levelup.repositories.habit_repository import HabitRepository
from levelup.repositories.profile_repository import (
    ProfileRepository, UserRoleRepository, UserProgressRepository
)
from levelup.schemas import OnboardingRequest, ProfileResponse
from levelup.services.events import ChangeEvent, ChangeNotifier, notifier as default_notifier
from levelup.services.habit_service import HabitService
from levelup.services.progression import summarize_progress

logger = logging.getLogger("levelup.profiles")


def build_profile_response(profile: Profile) -> ProfileResponse:
    """Profile plus rank and progress towards the next level"""
    snapshot = summarize_progress(profile.current_xp, profile.current_level)
    return ProfileResponse(
        user_id=profile.user_id,
        full_name=profile.full_name,
        email=profile.email or "",
        current_xp=profile.current_xp,
        current_level=profile.current_level,
        streak_count=profile.streak_count or 0,
        rank=snapshot.rank,
        next_level_xp=snapshot.next_level_xp,
        progress=snapshot.progress,
    )


class ProfileService:
    """Service for profile management"""

    def __init__(self, db: Session, notifier: Optional[ChangeNotifier] = None):
        self.db = db
        self.notifier = notifier or default_notifier

    def create_profile(self, user: UserContext, data: OnboardingRequest) -> Profile:
        """
        Onboard a user: profile, role, progress row and initial habits.

        Everything is written in one transaction.

        Raises:
            ProfileAlreadyExistsException: If the user already onboarded
            ValidationException: If the name or habit list is missing
        """
        if ProfileRepository.get_by_user_id(self.db, user.user_id):
            raise ProfileAlreadyExistsException(user.user_id)

        full_name = (data.full_name or "").strip()
        if not full_name:
            raise ValidationException("full_name", "is required")
        if not data.habits:
            raise ValidationException("habits", "at least one habit is required")

        habit_service = HabitService(self.db, self.notifier)
        habits = [habit_service.build_habit(user.user_id, h) for h in data.habits]

        profile = ProfileRepository.create(self.db, Profile(
            user_id=user.user_id,
            full_name=full_name,
            email=user.email,
            current_xp=0,
            current_level=1,
            streak_count=0,
        ))
        if not UserRoleRepository.get_by_user_id(self.db, user.user_id):
            UserRoleRepository.set_role(self.db, user.user_id, ROLE_USER)
        UserProgressRepository.get_or_create(self.db, user.user_id)
        for habit in habits:
            HabitRepository.create(self.db, habit)

        commit_or_rollback(self.db, "onboarding")
        self.db.refresh(profile)

        logger.info(f"Onboarded user {user.user_id} with {len(habits)} habits")
        self.notifier.publish(ChangeEvent(user.user_id, "profiles", EVENT_INSERT))
        return profile

    def get_profile(self, user_id: str) -> Profile:
        """
        Get a user's profile.

        Raises:
            ProfileNotFoundException: If the user has not onboarded yet
        """
        profile = ProfileRepository.get_by_user_id(self.db, user_id)
        if not profile:
            raise ProfileNotFoundException(user_id)
        return profile

    def get_profile_view(self, user_id: str) -> ProfileResponse:
        return build_profile_response(self.get_profile(user_id))

    def add_xp(self, user_id: str, delta: int, commit: bool = True) -> Profile:
        """
        Apply an XP delta atomically and resync the level.

        Args:
            user_id: Target user
            delta: XP to add (negative to remove)
            commit: Commit now, or leave it to the caller's transaction

        Raises:
            ProfileNotFoundException: If the user has no profile
        """
        profile = ProfileRepository.add_xp(self.db, user_id, delta)
        if profile is None:
            raise ProfileNotFoundException(user_id)

        if commit:
            commit_or_rollback(self.db, "add xp")
            self.db.refresh(profile)
            self.notifier.publish(ChangeEvent(user_id, "profiles", EVENT_UPDATE, {"xp_delta": delta}))
        return profile
