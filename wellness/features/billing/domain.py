"""Domain rules for the Billing feature"""

from wellness.models.user import SubscriptionPlan, SubscriptionStatus


PURCHASABLE_PLANS = (
    SubscriptionPlan.THREE_DAY,
    SubscriptionPlan.FIVE_DAY,
    SubscriptionPlan.SEVEN_DAY,
)

# Stripe subscription.status -> our status
STRIPE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIALING,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete": SubscriptionStatus.INCOMPLETE,
    "incomplete_expired": SubscriptionStatus.CANCELED,
    "paused": SubscriptionStatus.PAST_DUE,
}


def parse_plan(plan_id: str | None) -> SubscriptionPlan | None:
    """Purchasable plan for an id, or None"""
    try:
        plan = SubscriptionPlan(plan_id)
    except ValueError:
        return None
    return plan if plan in PURCHASABLE_PLANS else None


def map_stripe_status(stripe_status: str | None) -> SubscriptionStatus:
    return STRIPE_STATUS_MAP.get(stripe_status or "", SubscriptionStatus.INCOMPLETE)
