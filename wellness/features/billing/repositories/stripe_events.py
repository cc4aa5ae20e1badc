"""Stripe events repository"""
from datetime import datetime, timezone
from typing import Optional

from supabase import Client  # type: ignore

from wellness.features.billing.models.stripe_event import StripeEvent, StripeEventCreate, StripeEventUpdate
from wellness.infra.supabase.repositories.base import BaseRepository


class StripeEventRepository(BaseRepository[StripeEvent, StripeEventCreate, StripeEventUpdate]):
    """Log of webhook events keyed by their Stripe id"""

    def __init__(self, client: Client):
        super().__init__(client, "stripe_events", StripeEvent)

    async def find_by_stripe_event_id(self, stripe_event_id: str) -> Optional[StripeEvent]:
        results = await self.find_by_filters({"stripe_event_id": stripe_event_id}, limit=1)
        return results[0] if results else None

    async def record(self, data: StripeEventCreate) -> None:
        """Store a received event; redelivery of the same event id is a no-op"""
        self._table().upsert(
            data.model_dump(mode="json"),
            on_conflict="stripe_event_id",
            ignore_duplicates=True,
        ).execute()

    async def mark_as_processed(self, stripe_event_id: str) -> bool:
        """Stamp `processed_at`; False when no such event was recorded"""
        stamp = StripeEventUpdate(processed_at=datetime.now(timezone.utc))
        response = (
            self._table()
            .update(stamp.model_dump(mode="json"))
            .eq("stripe_event_id", stripe_event_id)
            .execute()
        )
        return bool(response.data)
