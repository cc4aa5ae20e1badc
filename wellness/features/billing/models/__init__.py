"""Billing feature models"""
from .stripe_event import StripeEvent, StripeEventCreate, StripeEventUpdate

__all__ = [
    "StripeEvent",
    "StripeEventCreate",
    "StripeEventUpdate",
]
