"""Checkout service for subscription purchases"""
import logging
from typing import Dict, Optional, Tuple

import stripe

from wellness import config
from wellness.features.billing.domain import parse_plan
from wellness.models.user import SubscriptionPlan

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Stripe refused or failed a checkout operation"""


class CheckoutService:
    """
    Opaque "create session, redirect, come back" contract with Stripe Checkout.

    The success and cancel callbacks are plain redirects to the client; the
    subscription itself is recorded by the webhook handler.
    """

    def __init__(
        self,
        price_ids: Optional[Dict[Tuple[str, bool], Optional[str]]] = None,
        client_url: Optional[str] = None,
    ):
        self.price_ids = price_ids if price_ids is not None else config.STRIPE_PRICE_IDS
        self.client_url = (client_url or config.CLIENT_URL).rstrip("/")

    def get_price_id(self, plan: SubscriptionPlan, is_annual: bool) -> str:
        """
        Stripe price for a plan and billing period

        Raises:
            ValueError: No price configured for the plan
        """
        price_id = self.price_ids.get((plan.value, is_annual))
        if not price_id:
            logger.error(f"No Stripe price configured for plan {plan.value} (annual={is_annual})")
            raise ValueError(f"Plan {plan.value} is not available")
        return price_id

    def create_checkout_session(
        self,
        plan_id: str,
        is_annual: bool,
        user_id: str,
        user_email: Optional[str] = None,
    ) -> stripe.checkout.Session:
        """
        Create a subscription Checkout Session

        Raises:
            ValueError: Unknown plan
            CheckoutError: Stripe error
        """
        plan = parse_plan(plan_id)
        if plan is None:
            raise ValueError("Invalid plan ID")

        price_id = self.get_price_id(plan, is_annual)
        metadata = {
            "userId": user_id,
            "planId": plan.value,
            "isAnnual": str(is_annual).lower(),
        }

        params = dict(
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=f"{self.client_url}/dashboard?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.client_url}/pricing",
            client_reference_id=user_id,
            metadata=metadata,
            subscription_data={"metadata": {"userId": user_id, "planId": plan.value}},
        )
        if user_email:
            params["customer_email"] = user_email

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            logger.error(f"Stripe session creation failed: {e}")
            raise CheckoutError(f"Failed to create checkout session: {str(e)}")

        logger.info(f"Created checkout session {session.id} for user {user_id} ({plan.value})")
        return session

    def get_checkout_session(self, session_id: str) -> stripe.checkout.Session:
        """
        Retrieve a session after the success redirect

        Raises:
            CheckoutError: Stripe error (including unknown session)
        """
        try:
            return stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve checkout session {session_id}: {e}")
            raise CheckoutError(f"Failed to retrieve checkout session: {str(e)}")
