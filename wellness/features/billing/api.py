"""Billing API endpoints for plan checkout and Stripe webhooks"""
import logging
import json
from typing import Any, Dict
from fastapi import APIRouter, Depends, Request, HTTPException, Header
from fastapi.responses import Response
import stripe

from wellness import config
from wellness.auth import get_current_claims
from wellness.infra.supabase.client import get_supabase_client
from wellness.infra.supabase.repositories.user_profiles import UserProfileRepository
from wellness.features.billing.repositories.stripe_events import StripeEventRepository
from wellness.features.billing.service import CheckoutError, CheckoutService
from wellness.features.billing.webhook_service import BillingWebhookService
from wellness.features.billing.schemas import (
    CheckoutStatusResponse,
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
)

logger = logging.getLogger(__name__)

# Initialize Stripe
stripe.api_key = config.STRIPE_SECRET_KEY

billing_router = APIRouter(prefix="/api/billing", tags=["billing"])
stripe_router = APIRouter(prefix="/api/stripe", tags=["stripe"])


def get_checkout_service() -> CheckoutService:
    return CheckoutService()


def get_webhook_service() -> BillingWebhookService:
    client = get_supabase_client()
    return BillingWebhookService(UserProfileRepository(client), StripeEventRepository(client))


# ============================================================================
# STRIPE WEBHOOK ENDPOINT
# ============================================================================

def verify_webhook_signature(payload: bytes, signature: str) -> stripe.Event:
    """Verify Stripe webhook signature"""
    try:
        event = stripe.Webhook.construct_event(
            payload, signature, config.STRIPE_WEBHOOK_SECRET
        )
        logger.info(f"Stripe webhook signature verified for event {getattr(event, 'id', None)}")
        return event
    except ValueError as e:
        logger.error(f"Invalid payload: {e}")
        raise HTTPException(status_code=400, detail="Invalid payload")
    except stripe.SignatureVerificationError as e:
        logger.error(f"Invalid signature: {e}")
        raise HTTPException(status_code=400, detail="Invalid signature")


@stripe_router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(..., alias="stripe-signature"),
    webhook_service: BillingWebhookService = Depends(get_webhook_service),
):
    """
    Stripe webhook endpoint to handle subscription events

    Handles:
    - checkout.session.completed: Plan purchased
    - customer.subscription.created / updated: Status or plan change
    - customer.subscription.deleted: Back to free
    """
    payload = await request.body()
    logger.info(f"Received Stripe webhook request (payload size: {len(payload)} bytes)")

    verify_webhook_signature(payload, stripe_signature)

    # Handlers work on plain dicts, not StripeObjects
    event = json.loads(payload)
    event_type = event["type"]
    event_data = event["data"]["object"]
    event_id = event.get("id", "unknown")

    logger.info(f"Processing Stripe webhook event: {event_type} (ID: {event_id})")
    logger.debug(f"Full event data: {json.dumps(event, indent=2, default=str)}")

    try:
        await webhook_service.handle_webhook_event(event_type, event_data, event_id, event)
        logger.info(f"Successfully processed webhook event {event_type} (ID: {event_id})")
    except Exception as e:
        logger.error(
            f"Error processing webhook {event_type} (ID: {event_id}): {e}",
            exc_info=True
        )

    # Always 200 so Stripe does not retry
    return Response(status_code=200)


# ============================================================================
# CHECKOUT ENDPOINTS
# ============================================================================

@billing_router.post("/checkout-session", response_model=CreateCheckoutSessionResponse)
async def create_checkout_session(
    req: CreateCheckoutSessionRequest,
    claims: Dict[str, Any] = Depends(get_current_claims),
    checkout_service: CheckoutService = Depends(get_checkout_service),
):
    """
    Start a Stripe Checkout for a plan.

    The client redirects to the returned URL; Stripe sends the user back to
    /dashboard?session_id=... on success or /pricing on cancel.
    """
    user_id = claims["sub"]
    logger.info(f"Processing {req.plan_id} checkout for user {user_id} (annual={req.is_annual})")

    try:
        session = checkout_service.create_checkout_session(
            plan_id=req.plan_id,
            is_annual=req.is_annual,
            user_id=user_id,
            user_email=req.user_email or claims.get("email"),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CheckoutError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return CreateCheckoutSessionResponse(session_id=session.id, url=getattr(session, "url", None))


@billing_router.get("/checkout-session/{session_id}", response_model=CheckoutStatusResponse)
async def get_checkout_status(
    session_id: str,
    claims: Dict[str, Any] = Depends(get_current_claims),
    checkout_service: CheckoutService = Depends(get_checkout_service),
):
    """Success callback: report how the user's checkout ended"""
    try:
        session = checkout_service.get_checkout_session(session_id)
    except CheckoutError as e:
        raise HTTPException(status_code=502, detail=str(e))

    metadata = getattr(session, "metadata", None)
    if getattr(metadata, "userId", None) != claims["sub"]:
        raise HTTPException(status_code=404, detail="Checkout session not found")

    status = getattr(session, "status", None)
    return CheckoutStatusResponse(
        session_id=session.id,
        status=status,
        payment_status=getattr(session, "payment_status", None),
        plan_id=getattr(metadata, "planId", None),
        completed=status == "complete",
    )


# Combined router that includes both billing and stripe routes
router = APIRouter()
router.include_router(billing_router)
router.include_router(stripe_router)
