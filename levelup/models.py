from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, ForeignKey, UniqueConstraint
)
from datetime import datetime

from levelup.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, unique=True, index=True)  # Identity provider id
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, default="")

    # Progression (current_level is a cache of level_for_xp(current_xp))
    current_xp = Column(Integer, nullable=False, default=0)
    current_level = Column(Integer, nullable=False, default=1)
    streak_count = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    attribute = Column(String, nullable=False)  # brain, health, skill, discipline, focus
    difficulty = Column(String, nullable=False)  # trivial, easy, medium, hard
    xp_value = Column(Integer, nullable=False, default=5)  # Derived from difficulty
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class HabitCompletion(Base):
    __tablename__ = "habit_completions"
    __table_args__ = (
        UniqueConstraint("habit_id", "completed_date", name="uq_habit_completion_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    completed_date = Column(Date, nullable=False, index=True)
    xp_earned = Column(Integer, nullable=False)  # Snapshot of habit.xp_value at completion
    completed_at = Column(DateTime, default=datetime.now)


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, unique=True, index=True)
    role = Column(String, nullable=False, default="user")  # admin, user
    created_at = Column(DateTime, default=datetime.now)


class UserProgress(Base):
    __tablename__ = "user_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, unique=True, index=True)

    # Streak tracking
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)

    # Lifetime counters
    total_habits_completed = Column(Integer, nullable=False, default=0)
    total_xp_earned = Column(Integer, nullable=False, default=0)

    last_activity_date = Column(Date, nullable=True)
    last_reset_date = Column(Date, nullable=True)  # Last effective date processed by daily reset

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
