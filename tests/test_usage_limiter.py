import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from wellness.infra.supabase.repositories import UsageRecordRepository, UserProfileRepository
from wellness.models.timer import UsageAction
from wellness.services.usage_limiter import SubscriptionUsageLimiter, week_start

from tests.fakes import FakeClock, FakeSupabase

THURSDAY = datetime(2026, 3, 5, 10, 0, tzinfo=timezone.utc)
USER = "user-1"


@pytest.fixture
def db():
    return FakeSupabase()


def make_limiter(db, now=THURSDAY):
    return SubscriptionUsageLimiter(
        UserProfileRepository(db),
        UsageRecordRepository(db),
        clock=FakeClock(now.timestamp()),
        trial_days=14,
    )


def add_profile(db, plan="free", status="active", created_at=THURSDAY - timedelta(days=3)):
    db.rows("user_profiles").append({
        "id": USER,
        "email": "sam@example.com",
        "name": "sam",
        "subscription_plan": plan,
        "subscription_status": status,
        "created_at": created_at.isoformat(),
    })


def add_usage(db, *days):
    for day in days:
        db.add("usage_records", {
            "user_id": USER,
            "action": UsageAction.TIMER_START.value,
            "created_at": datetime(2026, 3, day, 9, 30, tzinfo=timezone.utc).isoformat(),
        })


def check(limiter):
    return asyncio.run(limiter.check_allowed(USER))


class TestWeekStart:
    def test_sunday_belongs_to_week_starting_monday(self):
        assert week_start(datetime(2026, 3, 8, 23, 0, tzinfo=timezone.utc)) == datetime(2026, 3, 2, tzinfo=timezone.utc)

    def test_monday_midnight(self):
        monday = datetime(2026, 3, 2, tzinfo=timezone.utc)
        assert week_start(monday) == monday

    def test_naive_treated_as_utc(self):
        assert week_start(datetime(2026, 3, 4, 12, 0)) == datetime(2026, 3, 2, tzinfo=timezone.utc)


class TestFreePlan:
    def test_missing_profile_is_allowed(self, db):
        assert check(make_limiter(db)).allowed

    def test_inside_trial(self, db):
        add_profile(db)
        assert check(make_limiter(db)).allowed

    def test_trial_ended(self, db):
        add_profile(db, created_at=THURSDAY - timedelta(days=30))
        decision = check(make_limiter(db))
        assert not decision.allowed
        assert "trial" in decision.reason

    @pytest.mark.parametrize("status", ["past_due", "canceled", "incomplete"])
    def test_lapsed_subscription_falls_back_to_free(self, db, status):
        add_profile(db, plan="7day", status=status, created_at=THURSDAY - timedelta(days=60))
        assert not check(make_limiter(db)).allowed


class TestPaidPlans:
    def test_unused_days_remaining(self, db):
        add_profile(db, plan="3day")
        add_usage(db, 2, 3)
        assert check(make_limiter(db)).allowed

    def test_weekly_days_used_up(self, db):
        add_profile(db, plan="3day")
        add_usage(db, 2, 3, 4)
        decision = check(make_limiter(db))
        assert not decision.allowed
        assert "3 days per week" in decision.reason

    def test_day_already_used_stays_open(self, db):
        add_profile(db, plan="3day")
        add_usage(db, 2, 3, 4)
        wednesday = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)
        assert check(make_limiter(db, now=wednesday)).allowed

    def test_previous_week_not_counted(self, db):
        add_profile(db, plan="3day")
        add_usage(db, 1, 2, 3)
        assert check(make_limiter(db)).allowed

    def test_trialing_status_is_entitled(self, db):
        add_profile(db, plan="5day", status="trialing", created_at=THURSDAY - timedelta(days=60))
        add_usage(db, 2, 3, 4)
        assert check(make_limiter(db)).allowed

    def test_seven_day_plan_skips_usage_lookup(self, db):
        add_profile(db, plan="7day")
        assert check(make_limiter(db)).allowed
        assert ("usage_records", "select") not in db.calls


def test_report_usage_records_action_at_clock_time(db):
    limiter = make_limiter(db)
    asyncio.run(limiter.report_usage(USER, UsageAction.MANUAL_BREAK))

    (row,) = db.rows("usage_records")
    assert row["user_id"] == USER
    assert row["action"] == "manual_break"
    assert datetime.fromisoformat(row["created_at"].replace("Z", "+00:00")) == THURSDAY
