"""Usage records repository"""
from datetime import datetime
from typing import List

from supabase import Client  # type: ignore

from wellness.models.usage import UsageRecord, UsageRecordCreate, UsageRecordUpdate

from .base import BaseRepository


class UsageRecordRepository(BaseRepository[UsageRecord, UsageRecordCreate, UsageRecordUpdate]):
    """Repository for timer usage records"""

    def __init__(self, client: Client):
        super().__init__(client, "usage_records", UsageRecord)

    async def find_since(self, user_id: str, since: datetime) -> List[UsageRecord]:
        """All of a user's usage records at or after `since`"""
        response = (
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .gte("created_at", since.isoformat())
            .order("created_at")
            .execute()
        )
        return self._rows_to_models(response.data or [])
