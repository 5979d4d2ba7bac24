"""
Tests for ResetService.
"""
from datetime import timedelta

from levelup.models import Profile, UserProgress
from levelup.services.reset_service import ResetService
from levelup.tests.conftest import create_habit, create_completion, create_profile


class TestDailyReset:
    """Tests for reset_daily_habits"""

    def test_processes_every_user(self, db_session, profile, today, date_service):
        create_profile(db_session, "user_3")

        processed = ResetService(db_session, date_service).reset_daily_habits(today)

        assert processed == 2
        for progress in db_session.query(UserProgress).all():
            assert progress.last_reset_date == today

    def test_idempotent_within_a_day(self, db_session, profile, today, date_service):
        service = ResetService(db_session, date_service)

        assert service.reset_daily_habits(today) == 1
        assert service.reset_daily_habits(today) == 0

    def test_runs_again_next_day(self, db_session, profile, today, date_service):
        service = ResetService(db_session, date_service)
        service.reset_daily_habits(today)

        assert service.reset_daily_habits(today + timedelta(days=1)) == 1

    def test_breaks_streak_after_missed_day(self, db_session, user, profile, today, date_service):
        habit = create_habit(db_session, user.user_id)
        for offset in (3, 2):
            create_completion(db_session, habit, today - timedelta(days=offset))
        profile.streak_count = 2
        db_session.commit()

        ResetService(db_session, date_service).reset_daily_habits(today)

        db_session.refresh(profile)
        assert profile.streak_count == 0
        progress = db_session.query(UserProgress).filter(UserProgress.user_id == user.user_id).one()
        assert progress.current_streak == 0

    def test_keeps_streak_when_yesterday_completed(self, db_session, user, profile, today, date_service):
        habit = create_habit(db_session, user.user_id)
        for offset in (2, 1):
            create_completion(db_session, habit, today - timedelta(days=offset))

        ResetService(db_session, date_service).reset_daily_habits(today)

        db_session.refresh(profile)
        assert profile.streak_count == 2

    def test_does_not_touch_xp(self, db_session, user, profile, today, date_service):
        profile.current_xp = 1200
        profile.current_level = 2
        db_session.commit()

        ResetService(db_session, date_service).reset_daily_habits(today)

        refreshed = db_session.query(Profile).filter(Profile.user_id == user.user_id).one()
        assert refreshed.current_xp == 1200
        assert refreshed.current_level == 2
