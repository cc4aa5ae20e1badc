"""Webhook service for handling Stripe subscription events

This service is the **only writer** of billing state. The subscription
fields on user_profiles (plan, status, Stripe ids) are updated exclusively
through Stripe webhook events handled here.
"""
import logging

from wellness.features.billing.domain import map_stripe_status, parse_plan
from wellness.features.billing.models.stripe_event import StripeEventCreate
from wellness.features.billing.repositories.stripe_events import StripeEventRepository
from wellness.infra.supabase.repositories.user_profiles import UserProfileRepository
from wellness.models.user import SubscriptionPlan, SubscriptionStatus, UserProfileUpdate

logger = logging.getLogger(__name__)


class BillingWebhookService:
    """Service for handling Stripe payment and subscription webhooks"""

    def __init__(self, profile_repo: UserProfileRepository, stripe_event_repo: StripeEventRepository):
        self.profile_repo = profile_repo
        self.stripe_event_repo = stripe_event_repo

    async def _persist_raw_event(self, event_id: str, event_type: str, raw_event: dict) -> None:
        """
        Persist raw event first

        Raises:
            Exception: If persistence fails the webhook fails too, so the
                       event is either stored or retried by Stripe.
        """
        try:
            await self.stripe_event_repo.record(
                StripeEventCreate(stripe_event_id=event_id, type=event_type, payload=raw_event)
            )
        except Exception:
            logger.error("BillingWebhookService: Failed to persist Stripe event, aborting", exc_info=True)
            raise

    async def _already_processed(self, event_id: str) -> bool:
        existing_event = await self.stripe_event_repo.find_by_stripe_event_id(event_id)
        if existing_event and existing_event.processed:
            logger.info(f"BillingWebhookService: Event {event_id} already processed at {existing_event.processed_at}, skipping")
            return True
        return False

    async def _mark_event_processed(self, event_id: str) -> None:
        try:
            await self.stripe_event_repo.mark_as_processed(event_id)
        except Exception:
            # The event itself was handled; a redelivery will be applied again harmlessly
            logger.error(f"BillingWebhookService: Failed to mark event {event_id} as processed", exc_info=True)

    async def handle_webhook_event(self, event_type: str, event_data: dict, event_id: str, raw_event: dict) -> None:
        """
        Route webhook events to appropriate handlers

        Args:
            event_type: Stripe event type (e.g., 'checkout.session.completed')
            event_data: Stripe event data object
            event_id: Stripe event ID for idempotency
            raw_event: Full Stripe event object for persistence
        """
        await self._persist_raw_event(event_id, event_type, raw_event)

        if await self._already_processed(event_id):
            return

        if event_type == "checkout.session.completed":
            await self.handle_checkout_session_completed(event_data)
        elif event_type in ("customer.subscription.created", "customer.subscription.updated"):
            await self.handle_subscription_updated(event_data)
        elif event_type == "customer.subscription.deleted":
            await self.handle_subscription_deleted(event_data)
        else:
            logger.debug(f"BillingWebhookService: Unhandled event type {event_type} (stored but ignored)")

        await self._mark_event_processed(event_id)

    async def handle_checkout_session_completed(self, session: dict) -> None:
        """First moment a purchased plan is granted"""
        if session.get("mode") != "subscription":
            return

        metadata = session.get("metadata") or {}
        user_id = metadata.get("userId") or session.get("client_reference_id")
        plan = parse_plan(metadata.get("planId"))

        if not user_id:
            logger.warning("BillingWebhookService: No userId in checkout metadata, cannot process")
            return
        if plan is None:
            logger.error(f"BillingWebhookService: Unknown planId {metadata.get('planId')!r}, not granting access")
            return

        update = UserProfileUpdate(
            subscription_plan=plan,
            subscription_status=SubscriptionStatus.ACTIVE,
            stripe_customer_id=session.get("customer"),
            stripe_subscription_id=session.get("subscription"),
        )
        updated = await self.profile_repo.update(user_id, update)
        if not updated:
            logger.error(f"BillingWebhookService: Profile {user_id} not found for completed checkout")
            raise ValueError(f"Failed to update profile {user_id}")

        logger.info(f"BillingWebhookService: User {user_id} subscribed to {plan.value}")

    async def handle_subscription_updated(self, subscription: dict) -> None:
        profile = await self.profile_repo.find_by_stripe_subscription_id(subscription.get("id"))
        if profile is None:
            # Subscription metadata carries the user when the checkout event has not landed yet
            user_id = (subscription.get("metadata") or {}).get("userId")
            profile = await self.profile_repo.find_by_id(user_id) if user_id else None
        if profile is None:
            logger.warning(f"BillingWebhookService: No profile for subscription {subscription.get('id')}")
            return

        status = map_stripe_status(subscription.get("status"))
        fields = {
            "subscription_status": status,
            "stripe_subscription_id": subscription.get("id"),
        }
        plan = parse_plan((subscription.get("metadata") or {}).get("planId"))
        if plan is not None:
            fields["subscription_plan"] = plan

        await self.profile_repo.update(profile.id, UserProfileUpdate(**fields))
        logger.info(f"BillingWebhookService: Subscription for user {profile.id} is now {status.value}")

    async def handle_subscription_deleted(self, subscription: dict) -> None:
        profile = await self.profile_repo.find_by_stripe_subscription_id(subscription.get("id"))
        if profile is None:
            logger.warning(f"BillingWebhookService: No profile for deleted subscription {subscription.get('id')}")
            return

        await self.profile_repo.update(
            profile.id,
            UserProfileUpdate(
                subscription_plan=SubscriptionPlan.FREE,
                subscription_status=SubscriptionStatus.CANCELED,
                stripe_subscription_id=None,
            ),
        )
        logger.info(f"BillingWebhookService: User {profile.id} reverted to free plan")
