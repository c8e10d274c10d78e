from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core import lock_policy
from app.core.lock_policy import LockState
from app.services.progress_service import compute_streak

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_user(days_ago=None, sessions=0, aars=0, requested=False):
    locked_at = NOW - timedelta(days=days_ago) if days_ago is not None else None
    return SimpleNamespace(
        primary_subject_id=uuid4() if locked_at else None,
        locked_at=locked_at,
        lock_expires_at=locked_at + lock_policy.LOCK_PERIOD if locked_at else None,
        session_count=sessions,
        aar_count=aars,
        unlock_requested=requested,
        unlock_requested_at=NOW if requested else None,
    )


class TestDeriveState:
    def test_unassigned(self):
        assert lock_policy.derive_state(make_user()) is LockState.UNASSIGNED

    def test_locked(self):
        assert lock_policy.derive_state(make_user(days_ago=1)) is LockState.LOCKED

    def test_pending(self):
        user = make_user(days_ago=1, requested=True)
        assert lock_policy.derive_state(user) is LockState.UNLOCK_PENDING


class TestEvaluateLock:
    def test_unassigned_user_is_not_locked(self):
        status = lock_policy.evaluate_lock(make_user(), NOW)
        assert status.state is LockState.UNASSIGNED
        assert status.is_locked is False
        assert status.eligible is False
        assert status.days_elapsed == 0
        assert status.days_remaining == 0
        assert status.sessions_needed == lock_policy.UNLOCK_MIN_SESSIONS
        assert status.aars_needed == lock_policy.UNLOCK_MIN_AARS

    def test_fresh_lock(self):
        status = lock_policy.evaluate_lock(make_user(days_ago=0), NOW)
        assert status.is_locked is True
        assert status.eligible is False
        assert status.days_elapsed == 0
        assert status.days_remaining == 7

    def test_seven_days_with_all_counters_is_eligible(self):
        status = lock_policy.evaluate_lock(make_user(days_ago=7, sessions=5, aars=3), NOW)
        assert status.days_elapsed == 7
        assert status.days_remaining == 0
        assert status.eligible is True
        assert status.is_locked is False

    def test_just_under_seven_days_is_not_eligible(self):
        status = lock_policy.evaluate_lock(
            make_user(days_ago=7 - 1 / 24, sessions=5, aars=3), NOW
        )
        assert status.days_elapsed == 6
        assert status.days_remaining == 1
        assert status.eligible is False
        assert status.is_locked is True

    @pytest.mark.parametrize("sessions,aars", [(4, 3), (5, 2), (0, 0)])
    def test_counters_below_threshold_keep_lock(self, sessions, aars):
        status = lock_policy.evaluate_lock(make_user(days_ago=30, sessions=sessions, aars=aars), NOW)
        assert status.eligible is False
        assert status.is_locked is True
        assert status.sessions_needed == max(0, 5 - sessions)
        assert status.aars_needed == max(0, 3 - aars)

    def test_days_remaining_rounds_up(self):
        status = lock_policy.evaluate_lock(make_user(days_ago=2.5), NOW)
        assert status.days_elapsed == 2
        assert status.days_remaining == 5

    def test_naive_datetimes_are_treated_as_utc(self):
        user = make_user(days_ago=3)
        user.locked_at = user.locked_at.replace(tzinfo=None)
        user.lock_expires_at = user.lock_expires_at.replace(tzinfo=None)
        status = lock_policy.evaluate_lock(user, NOW)
        assert status.days_elapsed == 3
        assert status.locked_at.tzinfo is not None

    def test_progress_view(self):
        status = lock_policy.evaluate_lock(make_user(days_ago=4, sessions=2, aars=1), NOW)
        assert status.progress() == {"days": 4, "sessions": 2, "aars": 1}


class TestTransitionFields:
    def test_locked_fields_set_expiry_seven_days_out(self):
        subject_id = uuid4()
        fields = lock_policy.locked_fields(subject_id, NOW)
        assert fields["primary_subject_id"] == subject_id
        assert fields["lock_expires_at"] - fields["locked_at"] == timedelta(days=7)
        assert fields["onboarding_complete"] is True
        assert fields["unlock_requested"] is False

    def test_cleared_fields_keep_counters_by_default(self):
        fields = lock_policy.cleared_fields()
        assert fields["primary_subject_id"] is None
        assert "session_count" not in fields
        assert "aar_count" not in fields

    def test_cleared_fields_reset_counters(self):
        fields = lock_policy.cleared_fields(reset_counters=True)
        assert fields["session_count"] == 0
        assert fields["aar_count"] == 0


class TestSessionRules:
    def test_exactly_five_minutes_is_enough(self):
        minutes = lock_policy.session_minutes(NOW - timedelta(minutes=5), NOW)
        assert minutes == 5
        assert lock_policy.is_session_long_enough(minutes)

    def test_four_minutes_is_too_short(self):
        minutes = lock_policy.session_minutes(NOW - timedelta(minutes=4), NOW)
        assert not lock_policy.is_session_long_enough(minutes)

    def test_minutes_round_to_nearest(self):
        assert lock_policy.session_minutes(NOW - timedelta(minutes=4, seconds=40), NOW) == 5
        assert lock_policy.session_minutes(NOW - timedelta(minutes=4, seconds=20), NOW) == 4

    def test_half_minute_rounds_up(self):
        assert lock_policy.session_minutes(NOW - timedelta(seconds=270), NOW) == 5
        assert lock_policy.session_minutes(NOW - timedelta(seconds=269), NOW) == 4
        assert lock_policy.session_minutes(NOW - timedelta(seconds=330), NOW) == 6
        assert lock_policy.session_minutes(NOW - timedelta(seconds=390), NOW) == 7

    def test_four_and_a_half_minutes_is_long_enough(self):
        minutes = lock_policy.session_minutes(NOW - timedelta(minutes=4, seconds=30), NOW)
        assert lock_policy.is_session_long_enough(minutes)

    def test_naive_start_time(self):
        started = (NOW - timedelta(minutes=30)).replace(tzinfo=None)
        assert lock_policy.session_minutes(started, NOW) == 30


class TestAarRules:
    def test_twenty_words_accepted(self):
        assert lock_policy.aar_problems(
            "one two three four five six seven",
            "one two three four five six seven",
            "one two three four five six",
        ) == []

    def test_nineteen_words_rejected(self):
        problems = lock_policy.aar_problems(
            "one two three four five six seven",
            "one two three four five six",
            "one two three four five six",
        )
        assert problems == ["Minimum 20 words required (got 19)"]

    def test_blank_field_rejected(self):
        problems = lock_policy.aar_problems("word " * 25, "   ", "plan")
        assert "what_blocked is required" in problems

    def test_words_are_counted_across_whitespace(self):
        assert lock_policy.count_words("a\tb\nc", None, "  d  ") == 4


class TestStreak:
    TODAY = date(2026, 10, 19)

    def test_no_sessions(self):
        assert compute_streak([], self.TODAY) == 0

    def test_streak_including_today(self):
        dates = [self.TODAY - timedelta(days=i) for i in range(3)]
        assert compute_streak(dates, self.TODAY) == 3

    def test_streak_ending_yesterday_is_current(self):
        dates = [self.TODAY - timedelta(days=i) for i in range(1, 5)]
        assert compute_streak(dates, self.TODAY) == 4

    def test_gap_ends_streak(self):
        dates = [self.TODAY, self.TODAY - timedelta(days=1), self.TODAY - timedelta(days=3)]
        assert compute_streak(dates, self.TODAY) == 2

    def test_old_sessions_only(self):
        assert compute_streak([self.TODAY - timedelta(days=2)], self.TODAY) == 0
