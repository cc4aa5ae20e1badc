import asyncio
import warnings
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from wellness.api.users import get_profile_repository
from wellness.auth import get_current_claims
from wellness.infra.supabase.repositories import RepositoryFactory, UserProfileRepository
from wellness.main import app
from wellness.features.billing.models.stripe_event import StripeEvent
from wellness.models.push_notification import PushNotification
from wellness.models.usage import UsageRecord
from wellness.models.user import SubscriptionPlan, UserProfile

from tests.fakes import FakeSupabase


@pytest.fixture
def db():
    return FakeSupabase()


class TestTimerStore:
    def test_round_trip(self, db):
        store = RepositoryFactory(db).timer_store("user-1")
        store.save("wellness-timer-state", {"time_remaining": 120})
        assert store.load("wellness-timer-state") == {"time_remaining": 120}

    def test_save_overwrites_key(self, db):
        store = RepositoryFactory(db).timer_store("user-1")
        store.save("wellness-timer-state", {"time_remaining": 120})
        store.save("wellness-timer-state", {"time_remaining": 60})
        assert store.load("wellness-timer-state") == {"time_remaining": 60}
        assert len(db.rows("timer_store")) == 1

    def test_users_are_isolated(self, db):
        factory = RepositoryFactory(db)
        factory.timer_store("user-1").save("wellness-timer-settings", {"interval_minutes": 20})
        assert factory.timer_store("user-2").load("wellness-timer-settings") is None

    def test_delete(self, db):
        store = RepositoryFactory(db).timer_store("user-1")
        store.save("wellness-auto-restart", {"enabled": True})
        store.delete("wellness-auto-restart")
        assert store.load("wellness-auto-restart") is None


class TestUserProfiles:
    def test_get_or_create_creates_free_profile(self, db):
        repo = UserProfileRepository(db)
        profile = asyncio.run(repo.get_or_create("user-1", "sam@example.com"))
        assert profile.id == "user-1"
        assert profile.name == "sam"
        assert profile.subscription_plan == SubscriptionPlan.FREE

    def test_get_or_create_returns_existing(self, db):
        repo = UserProfileRepository(db)
        asyncio.run(repo.get_or_create("user-1", "sam@example.com"))
        asyncio.run(repo.get_or_create("user-1", "sam@example.com"))
        assert len(db.rows("user_profiles")) == 1


def test_me_endpoint(db):
    app.dependency_overrides[get_current_claims] = lambda: {"sub": "user-1", "email": "sam@example.com"}
    app.dependency_overrides[get_profile_repository] = lambda: UserProfileRepository(db)
    try:
        with TestClient(app) as client:
            response = client.get("/api/users/me")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "sam@example.com"
    assert body["subscription_plan"] == "free"
    assert body["subscription_status"] == "active"


@pytest.mark.parametrize("model, row", [
    (UserProfile, {"id": "user-1", "email": "sam@example.com", "created_at": "2026-03-02T10:00:00+00:00"}),
    (UsageRecord, {"id": 1, "user_id": "user-1", "action": "timer_start", "created_at": "2026-03-02T10:00:00+00:00"}),
    (PushNotification, {
        "id": 1, "user_id": "user-1", "title": "t", "body": "b", "created_at": "2026-03-02T10:00:00+00:00",
    }),
    (StripeEvent, {
        "id": 1, "stripe_event_id": "evt_1", "type": "invoice.paid", "payload": {},
        "received_at": "2026-03-02T10:00:00+00:00",
    }),
])
def test_row_models_read_attribute_objects(model, row):
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        record = model.model_validate(SimpleNamespace(**row))
    assert record.id == row["id"]
