"""Repository factory and exports"""
from supabase import Client
from .timer_store import SupabasePersistence
from .usage_records import UsageRecordRepository
from .user_profiles import UserProfileRepository


class RepositoryFactory:
    """Factory for creating repository instances"""

    def __init__(self, client: Client):
        self._client = client
        self._user_profiles: UserProfileRepository = None
        self._usage_records: UsageRecordRepository = None

    @property
    def user_profiles(self) -> UserProfileRepository:
        """Get user profiles repository"""
        if self._user_profiles is None:
            self._user_profiles = UserProfileRepository(self._client)
        return self._user_profiles

    @property
    def usage_records(self) -> UsageRecordRepository:
        """Get usage records repository"""
        if self._usage_records is None:
            self._usage_records = UsageRecordRepository(self._client)
        return self._usage_records

    def timer_store(self, user_id: str) -> SupabasePersistence:
        """Get a user's timer key-value store"""
        return SupabasePersistence(self._client, user_id)


__all__ = [
    'RepositoryFactory',
    'SupabasePersistence',
    'UsageRecordRepository',
    'UserProfileRepository',
]
