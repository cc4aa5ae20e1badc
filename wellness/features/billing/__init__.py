"""Billing feature module"""

from wellness.features.billing.domain import PURCHASABLE_PLANS, map_stripe_status, parse_plan
from wellness.features.billing.schemas import (
    CheckoutStatusResponse,
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
)
from wellness.features.billing.models import StripeEvent, StripeEventCreate, StripeEventUpdate
from wellness.features.billing.repositories import StripeEventRepository
from wellness.features.billing.service import CheckoutError, CheckoutService
from wellness.features.billing.webhook_service import BillingWebhookService
from wellness.features.billing.api import router

__all__ = [
    "router",
    "CheckoutError",
    "CheckoutService",
    "BillingWebhookService",
    "PURCHASABLE_PLANS",
    "map_stripe_status",
    "parse_plan",
    "StripeEvent",
    "StripeEventCreate",
    "StripeEventUpdate",
    "StripeEventRepository",
    "CheckoutStatusResponse",
    "CreateCheckoutSessionRequest",
    "CreateCheckoutSessionResponse",
]
