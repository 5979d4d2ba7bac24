"""
Shared fixtures: in-memory database, dates, users and onboarded profiles.
"""
import os

os.environ.setdefault("LEVELUP_DATABASE_URL", "sqlite://")
os.environ.setdefault("LEVELUP_AUTO_RESET_ENABLED", "false")
os.environ.setdefault("LEVELUP_LOG_DIR", "./logs")

import pytest
from datetime import date, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from levelup.auth import UserContext
from levelup.database import Base
from levelup.models import Profile, Habit, HabitCompletion, UserProgress, UserRole
from levelup.services.date_service import DateService
from levelup.services.events import ChangeNotifier
from levelup.services.progression import xp_for_difficulty


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def date_service():
    """Day boundary at midnight so the effective date is the calendar date"""
    return DateService(day_start_enabled=False)


@pytest.fixture
def today(date_service):
    return date_service.get_effective_date()


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def user():
    return UserContext(user_id="user_1", email="hunter@example.com")


@pytest.fixture
def other_user():
    return UserContext(user_id="user_2", email="other@example.com")


@pytest.fixture
def admin_user(db_session):
    create_profile(db_session, "admin_1", full_name="Admin", role="admin")
    return UserContext(user_id="admin_1", email="admin@example.com")


@pytest.fixture
def profile(db_session, user):
    return create_profile(db_session, user.user_id, full_name="Sung Jinwoo", email=user.email)


def create_profile(db_session, user_id: str, full_name: str = "Test User",
                   email: str = "", current_xp: int = 0, current_level: int = 1,
                   role: str = "user") -> Profile:
    """Helper to insert an onboarded profile with role and progress rows"""
    profile = Profile(
        user_id=user_id,
        full_name=full_name,
        email=email,
        current_xp=current_xp,
        current_level=current_level,
        streak_count=0,
    )
    db_session.add(profile)
    db_session.add(UserRole(user_id=user_id, role=role))
    db_session.add(UserProgress(user_id=user_id))
    db_session.commit()
    db_session.refresh(profile)
    return profile


def create_habit(db_session, user_id: str, name: str = "Read 20 pages",
                 attribute: str = "brain", difficulty: str = "easy",
                 is_active: bool = True) -> Habit:
    """Helper to insert a habit with its difficulty-derived XP value"""
    habit = Habit(
        user_id=user_id,
        name=name,
        attribute=attribute,
        difficulty=difficulty,
        xp_value=xp_for_difficulty(difficulty),
        is_active=is_active,
    )
    db_session.add(habit)
    db_session.commit()
    db_session.refresh(habit)
    return habit


def create_completion(db_session, habit: Habit, completed_date: date,
                      xp_earned: int = None) -> HabitCompletion:
    """Helper to insert a raw completion record (no XP applied)"""
    completion = HabitCompletion(
        habit_id=habit.id,
        user_id=habit.user_id,
        completed_date=completed_date,
        xp_earned=habit.xp_value if xp_earned is None else xp_earned,
    )
    db_session.add(completion)
    db_session.commit()
    return completion
