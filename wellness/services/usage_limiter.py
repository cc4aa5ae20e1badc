"""Subscription-based usage limits for the break timer"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Set

from wellness import config
from wellness.infra.supabase.repositories.usage_records import UsageRecordRepository
from wellness.infra.supabase.repositories.user_profiles import UserProfileRepository
from wellness.models.timer import UsageAction
from wellness.models.usage import UsageRecordCreate
from wellness.models.user import SubscriptionPlan, SubscriptionStatus, UserProfile
from wellness.services.timer.collaborators import Clock, SystemClock, UsageDecision

logger = logging.getLogger(__name__)

# Distinct days per ISO week (Monday start, UTC) each paid plan may use the timer
PLAN_DAYS_PER_WEEK = {
    SubscriptionPlan.THREE_DAY: 3,
    SubscriptionPlan.FIVE_DAY: 5,
    SubscriptionPlan.SEVEN_DAY: 7,
}

ENTITLED_STATUSES = {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING}


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


def week_start(now: datetime) -> datetime:
    """Midnight UTC of the Monday starting the week containing `now`"""
    now = _as_utc(now)
    monday = now - timedelta(days=now.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


class SubscriptionUsageLimiter:
    """
    Gates timer starts and manual breaks by the user's plan.

    A plan allows the timer on N distinct days per week; every action on a
    day that already has usage is free. Free accounts get every day during
    the trial and nothing after it. Lapsed subscriptions fall back to free.
    """

    def __init__(
        self,
        profiles: UserProfileRepository,
        usage: UsageRecordRepository,
        clock: Optional[Clock] = None,
        trial_days: int = config.FREE_TRIAL_DAYS,
    ):
        self.profiles = profiles
        self.usage = usage
        self._clock = clock or SystemClock()
        self.trial_days = trial_days

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock.now(), tz=timezone.utc)

    def effective_plan(self, profile: UserProfile) -> SubscriptionPlan:
        if profile.subscription_status not in ENTITLED_STATUSES:
            return SubscriptionPlan.FREE
        return profile.subscription_plan

    def days_allowed(self, profile: Optional[UserProfile], now: datetime) -> int:
        """Days per week the profile may use the timer at `now`"""
        if profile is None:
            # Profile row not created yet: brand new account, still in trial
            return 7

        plan = self.effective_plan(profile)
        if plan != SubscriptionPlan.FREE:
            return PLAN_DAYS_PER_WEEK[plan]

        trial_end = _as_utc(profile.created_at) + timedelta(days=self.trial_days)
        return 7 if _as_utc(now) < trial_end else 0

    async def used_days_this_week(self, user_id: str, now: datetime) -> Set[date]:
        records = await self.usage.find_since(user_id, week_start(now))
        return {_as_utc(record.created_at).date() for record in records}

    async def check_allowed(self, user_id: str) -> UsageDecision:
        now = self._now()
        profile = await self.profiles.find_by_id(user_id)
        allowance = self.days_allowed(profile, now)

        if allowance >= 7:
            return UsageDecision(allowed=True)

        if allowance == 0:
            return UsageDecision(
                allowed=False,
                reason="Your free trial has ended. Choose a plan to keep your break reminders running.",
            )

        used = await self.used_days_this_week(user_id, now)
        if now.date() in used or len(used) < allowance:
            return UsageDecision(allowed=True)

        plan = self.effective_plan(profile)
        logger.info(f"User {user_id} reached weekly limit of {allowance} days on plan {plan.value}")
        return UsageDecision(
            allowed=False,
            reason=(
                f"Your {plan.value} plan includes break reminders on {allowance} days per week, "
                f"and you've used all of them this week."
            ),
        )

    async def report_usage(self, user_id: str, action: UsageAction) -> None:
        await self.usage.create(UsageRecordCreate(user_id=user_id, action=action, created_at=self._now()))
        logger.info(f"Recorded {action.value} for user {user_id}")
