"""
Profile repository - Data access layer for profile-related models.
Handles all database queries related to profiles, roles and user progress.

Write methods flush but do not commit; the calling service owns the
transaction.
"""
from typing import List, Optional
from sqlalchemy import case, update
from sqlalchemy.orm import Session

from levelup.models import Profile, UserRole, UserProgress
from levelup.constants import ROLE_USER
from levelup.services.progression import level_for_xp


class ProfileRepository:
    """Repository for Profile data access"""

    @staticmethod
    def get_by_user_id(db: Session, user_id: str) -> Optional[Profile]:
        """Get profile by identity provider user id"""
        return db.query(Profile).filter(Profile.user_id == user_id).first()

    @staticmethod
    def get_all(db: Session) -> List[Profile]:
        """Get all profiles, newest first"""
        return db.query(Profile).order_by(Profile.created_at.desc()).all()

    @staticmethod
    def create(db: Session, profile: Profile) -> Profile:
        """Add a new profile"""
        db.add(profile)
        db.flush()
        return profile

    @staticmethod
    def add_xp(db: Session, user_id: str, delta: int) -> Optional[Profile]:
        """
        Atomically add XP to a profile and resync its level.

        The increment is a single UPDATE evaluated by the database
        (current_xp = max(current_xp + delta, 0)), so concurrent completions
        for the same user cannot lose an update.

        Returns:
            Updated profile, or None if the user has no profile
        """
        new_xp = Profile.current_xp + delta
        result = db.execute(
            update(Profile)
            .where(Profile.user_id == user_id)
            .values(current_xp=case((new_xp < 0, 0), else_=new_xp))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None

        profile = ProfileRepository.get_by_user_id(db, user_id)
        db.refresh(profile)
        level = level_for_xp(profile.current_xp)
        if profile.current_level != level:
            profile.current_level = level
        db.flush()
        return profile

    @staticmethod
    def delete(db: Session, profile: Profile) -> None:
        """Delete a profile"""
        db.delete(profile)
        db.flush()


class UserRoleRepository:
    """Repository for UserRole data access"""

    @staticmethod
    def get_by_user_id(db: Session, user_id: str) -> Optional[UserRole]:
        return db.query(UserRole).filter(UserRole.user_id == user_id).first()

    @staticmethod
    def get_all(db: Session) -> List[UserRole]:
        return db.query(UserRole).all()

    @staticmethod
    def get_role(db: Session, user_id: str) -> str:
        """Get role name (users without a row are plain users)"""
        role = UserRoleRepository.get_by_user_id(db, user_id)
        return role.role if role else ROLE_USER

    @staticmethod
    def set_role(db: Session, user_id: str, role_name: str) -> UserRole:
        """Create or change a user's role"""
        role = UserRoleRepository.get_by_user_id(db, user_id)
        if role:
            role.role = role_name
        else:
            role = UserRole(user_id=user_id, role=role_name)
            db.add(role)
        db.flush()
        return role

    @staticmethod
    def delete_for_user(db: Session, user_id: str) -> int:
        return db.query(UserRole).filter(UserRole.user_id == user_id).delete(
            synchronize_session=False
        )


class UserProgressRepository:
    """Repository for UserProgress data access"""

    @staticmethod
    def get_by_user_id(db: Session, user_id: str) -> Optional[UserProgress]:
        return db.query(UserProgress).filter(UserProgress.user_id == user_id).first()

    @staticmethod
    def get_all(db: Session) -> List[UserProgress]:
        return db.query(UserProgress).all()

    @staticmethod
    def get_or_create(db: Session, user_id: str) -> UserProgress:
        """Get progress row (creates with defaults if not exists)"""
        progress = UserProgressRepository.get_by_user_id(db, user_id)
        if not progress:
            progress = UserProgress(user_id=user_id)
            db.add(progress)
            db.flush()
        return progress

    @staticmethod
    def delete_for_user(db: Session, user_id: str) -> int:
        return db.query(UserProgress).filter(UserProgress.user_id == user_id).delete(
            synchronize_session=False
        )
