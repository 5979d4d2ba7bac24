"""
Tests for CompletionService.

Tests cover:
1. Toggle on/off and XP deltas
2. Round trips across difficulties
3. Multi-day scenarios
4. Streak and user progress bookkeeping
5. Error cases
"""
import pytest
from datetime import timedelta
from sqlalchemy.orm import sessionmaker

from levelup.exceptions import (
    DuplicateCompletionException, HabitNotFoundException, HabitInactiveException,
    ProfileNotFoundException
)
from levelup.models import HabitCompletion, UserProgress
from levelup.repositories.habit_repository import CompletionRepository
from levelup.services.completion_service import CompletionService
from levelup.services.progression import rank_for_level
from levelup.tests.conftest import create_habit, create_completion


@pytest.fixture
def service(db_session, notifier, date_service):
    return CompletionService(db_session, notifier, date_service)


class TestToggleHabit:
    """Tests for toggle_habit"""

    def test_complete_inserts_record_and_adds_xp(self, db_session, service, user, profile, today):
        habit = create_habit(db_session, user.user_id, difficulty="hard")

        result = service.toggle_habit(user, habit.id)

        assert result.completed is True
        assert result.xp_delta == 20
        assert result.completed_date == today
        assert result.profile.current_xp == 20

        record = db_session.query(HabitCompletion).one()
        assert record.habit_id == habit.id
        assert record.completed_date == today
        assert record.xp_earned == 20

    def test_second_toggle_removes_record_and_xp(self, db_session, service, user, profile):
        habit = create_habit(db_session, user.user_id, difficulty="medium")

        service.toggle_habit(user, habit.id)
        result = service.toggle_habit(user, habit.id)

        assert result.completed is False
        assert result.xp_delta == -15
        assert result.profile.current_xp == 0
        assert db_session.query(HabitCompletion).count() == 0

    def test_is_completed(self, db_session, service, user, profile):
        habit = create_habit(db_session, user.user_id)
        assert service.is_completed(user, habit.id) is False

        service.toggle_habit(user, habit.id)

        assert service.is_completed(user, habit.id) is True

    @pytest.mark.parametrize("difficulty", ["trivial", "easy", "medium", "hard"])
    def test_round_trip_restores_xp(self, db_session, service, user, profile, difficulty):
        """Completing then un-completing returns XP to its prior value exactly"""
        profile.current_xp = 137
        db_session.commit()
        habit = create_habit(db_session, user.user_id, difficulty=difficulty)

        service.toggle_habit(user, habit.id)
        result = service.toggle_habit(user, habit.id)

        assert result.profile.current_xp == 137

    def test_uncomplete_reverses_snapshot_not_current_value(self, db_session, service, user, profile):
        """Editing a habit after completing it does not change the XP removed on undo"""
        habit = create_habit(db_session, user.user_id, difficulty="easy")
        service.toggle_habit(user, habit.id)

        habit.difficulty = "hard"
        habit.xp_value = 20
        db_session.commit()

        result = service.toggle_habit(user, habit.id)

        assert result.xp_delta == -10
        assert result.profile.current_xp == 0

    def test_completion_on_other_day_is_separate(self, db_session, service, user, profile, today, yesterday):
        habit = create_habit(db_session, user.user_id, difficulty="easy")

        service.toggle_habit(user, habit.id, day=yesterday)
        result = service.toggle_habit(user, habit.id, day=today)

        assert result.completed is True
        assert result.profile.current_xp == 20
        assert db_session.query(HabitCompletion).count() == 2

    def test_publishes_change_event(self, db_session, service, user, profile, notifier):
        events = []
        notifier.subscribe(events.append, user.user_id)
        habit = create_habit(db_session, user.user_id)

        service.toggle_habit(user, habit.id)

        assert [e.action for e in events] == ["INSERT"]
        assert events[0].table == "habit_completions"
        assert events[0].payload["xp_delta"] == 10


class TestScenarios:
    """End-to-end progression scenarios"""

    def test_five_hard_completions_stay_e_rank(self, db_session, service, user, profile, today):
        """5 x 20 XP = 100 XP, far below the 1000 XP first threshold"""
        habit = create_habit(db_session, user.user_id, difficulty="hard")

        for offset in range(5):
            result = service.toggle_habit(user, habit.id, day=today - timedelta(days=offset))

        assert result.profile.current_xp == 100
        assert result.profile.current_level == 1
        assert rank_for_level(result.profile.current_level) == "E-Rank"

    def test_level_up_through_completions(self, db_session, service, user, profile):
        profile.current_xp = 990
        db_session.commit()
        habit = create_habit(db_session, user.user_id, difficulty="hard")

        result = service.toggle_habit(user, habit.id)

        assert result.profile.current_xp == 1010
        assert result.profile.current_level == 2

        result = service.toggle_habit(user, habit.id)
        assert result.profile.current_level == 1


class TestStreakBookkeeping:
    """Tests for streak and user progress updates after toggles"""

    def test_streak_counts_consecutive_days(self, db_session, service, user, profile, today):
        habit = create_habit(db_session, user.user_id)

        for offset in (2, 1, 0):
            result = service.toggle_habit(user, habit.id, day=today - timedelta(days=offset))

        assert result.profile.streak_count == 3
        progress = db_session.query(UserProgress).filter(UserProgress.user_id == user.user_id).one()
        assert progress.current_streak == 3
        assert progress.longest_streak == 3
        assert progress.total_habits_completed == 3
        assert progress.total_xp_earned == 30
        assert progress.last_activity_date == today

    def test_uncomplete_reverts_streak(self, db_session, service, user, profile, today, yesterday):
        habit = create_habit(db_session, user.user_id)
        create_completion(db_session, habit, yesterday)

        service.toggle_habit(user, habit.id)
        result = service.toggle_habit(user, habit.id)

        # Yesterday's completion still counts while today is open
        assert result.profile.streak_count == 1
        progress = db_session.query(UserProgress).filter(UserProgress.user_id == user.user_id).one()
        assert progress.longest_streak == 2
        assert progress.total_habits_completed == 1


class TestToggleErrors:
    """Error cases for toggle_habit"""

    def test_unknown_habit(self, service, user, profile):
        with pytest.raises(HabitNotFoundException):
            service.toggle_habit(user, 999)

    def test_other_users_habit(self, db_session, service, user, other_user, profile):
        habit = create_habit(db_session, other_user.user_id)
        with pytest.raises(HabitNotFoundException):
            service.toggle_habit(user, habit.id)

    def test_inactive_habit_cannot_be_completed(self, db_session, service, user, profile):
        habit = create_habit(db_session, user.user_id, is_active=False)
        with pytest.raises(HabitInactiveException):
            service.toggle_habit(user, habit.id)
        assert db_session.query(HabitCompletion).count() == 0

    def test_inactive_habit_can_be_uncompleted(self, db_session, service, user, profile, today):
        """A completion recorded before deactivation can still be undone"""
        habit = create_habit(db_session, user.user_id)
        service.toggle_habit(user, habit.id)
        habit.is_active = False
        db_session.commit()

        result = service.toggle_habit(user, habit.id)

        assert result.completed is False
        assert result.profile.current_xp == 0

    def test_requires_profile(self, db_session, service, user):
        habit = create_habit(db_session, user.user_id)
        with pytest.raises(ProfileNotFoundException):
            service.toggle_habit(user, habit.id)
        assert db_session.query(HabitCompletion).count() == 0

    def test_concurrent_completion_raises_duplicate(self, engine, db_session, service, user, profile,
                                                    today, monkeypatch):
        """A completion committed by another request after the existence check is rejected"""
        habit = create_habit(db_session, user.user_id, difficulty="hard")

        other_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
        try:
            other_session.add(HabitCompletion(
                habit_id=habit.id,
                user_id=user.user_id,
                completed_date=today,
                xp_earned=habit.xp_value,
            ))
            other_session.commit()
        finally:
            other_session.close()

        # The existence check runs before the other request's insert lands
        monkeypatch.setattr(CompletionRepository, "get", staticmethod(lambda *args, **kwargs: None))

        with pytest.raises(DuplicateCompletionException):
            service.toggle_habit(user, habit.id)

        db_session.refresh(profile)
        assert profile.current_xp == 0
        assert db_session.query(HabitCompletion).count() == 1
