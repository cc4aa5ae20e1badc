"""Wires a BreakTimer to its Supabase-backed collaborators"""
from wellness.infra.supabase.client import get_supabase_client
from wellness.infra.supabase.repositories import RepositoryFactory
from wellness.services.push_notification_service import PushNotifier
from wellness.services.usage_limiter import SubscriptionUsageLimiter

from .break_timer import BreakTimer
from .collaborators import BreakDecisionSink, SystemClock


def build_break_timer(user_id: str, on_break: BreakDecisionSink) -> BreakTimer:
    """Timer for a signed-in user: state in timer_store, alerts via push, quota by plan"""
    client = get_supabase_client()
    repos = RepositoryFactory(client)
    clock = SystemClock()

    return BreakTimer(
        user_id=user_id,
        clock=clock,
        persistence=repos.timer_store(user_id),
        notifier=PushNotifier(client, user_id),
        on_break=on_break,
        usage_limiter=SubscriptionUsageLimiter(repos.user_profiles, repos.usage_records, clock),
    )
