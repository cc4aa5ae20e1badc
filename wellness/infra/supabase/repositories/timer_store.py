"""Per-user key-value store backing break timer persistence"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client  # type: ignore

logger = logging.getLogger(__name__)

TIMER_STORE_TABLE = "timer_store"


class SupabasePersistence:
    """
    Timer persistence over the `timer_store` table.

    Rows are keyed by (user_id, key) and hold a jsonb `value`. Calls are
    synchronous so the timer can save from inside a tick.
    """

    def __init__(self, client: Client, user_id: str):
        self._client = client
        self._user_id = user_id

    def _table(self):
        return self._client.table(TIMER_STORE_TABLE)

    def save(self, key: str, value: Dict[str, Any]) -> None:
        self._table().upsert(
            {
                "user_id": self._user_id,
                "key": key,
                "value": value,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="user_id,key",
        ).execute()

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        response = (
            self._table()
            .select("value")
            .eq("user_id", self._user_id)
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def delete(self, key: str) -> None:
        self._table().delete().eq("user_id", self._user_id).eq("key", key).execute()
        logger.debug(f"Deleted {key} for user {self._user_id}")
