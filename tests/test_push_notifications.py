import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from wellness.api.push_notifications import get_push_service
from wellness.auth import get_current_user_id
from wellness.main import app
from wellness.models.push_notification import PushTokenCreate
from wellness.models.timer import NotificationPermission
from wellness.services import PushNotificationService, PushNotifier
from wellness.services.push_notification_service import EXPO_PUSH_URL

from tests.fakes import FakeSupabase

TOKEN_A = "ExponentPushToken[aaa]"
TOKEN_B = "ExponentPushToken[bbb]"


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def expo(monkeypatch):
    """Routes the service's Expo calls to a canned response"""
    state = {"status": 200, "tickets": [], "requests": []}
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if state["status"] != 200:
            return httpx.Response(state["status"], text="expo unavailable")
        return httpx.Response(200, json={"data": state["tickets"]})

    monkeypatch.setattr(httpx, "AsyncClient", lambda *a, **kw: real_client(transport=httpx.MockTransport(handler)))
    return state


def register(db, user_id, token):
    service = PushNotificationService(db)
    asyncio.run(service.register_token(PushTokenCreate(user_id=user_id, expo_push_token=token)))


def queue_break(db, user_id="user-1"):
    notifier = PushNotifier(db, user_id)
    notifier.request_permission()
    notifier.dispatch("Time for a Break!", "Your break reminder is ready. Choose your activity!")
    return db.rows("push_notifications")[-1]["id"]


class TestPushNotifier:
    def test_no_device_means_denied(self, db):
        notifier = PushNotifier(db, "user-1")
        assert notifier.request_permission() == NotificationPermission.DENIED
        notifier.dispatch("title", "body")
        assert db.rows("push_notifications") == []

    def test_dispatch_queues_break_alert(self, db):
        register(db, "user-1", TOKEN_A)
        notifier = PushNotifier(db, "user-1")
        assert notifier.request_permission() == NotificationPermission.GRANTED

        notifier.dispatch("Time for a Break!", "Choose your activity!")
        (row,) = db.rows("push_notifications")
        assert row["user_id"] == "user-1"
        assert row["status"] == "pending"
        assert row["data"]["url"] == "/dashboard"
        assert row["data"]["autoDismissSeconds"] == 30
        assert row["data"]["requireInteraction"] is True
        assert row["data"]["tag"].startswith("wellness-break-")

    def test_register_same_token_twice(self, db):
        register(db, "user-1", TOKEN_A)
        register(db, "user-1", TOKEN_A)
        assert len(db.rows("push_tokens")) == 1


class TestSendNotification:
    def test_sends_to_every_device_and_prunes_dead_tokens(self, db, expo):
        register(db, "user-1", TOKEN_A)
        register(db, "user-1", TOKEN_B)
        notification_id = queue_break(db)
        expo["tickets"] = [
            {"status": "ok", "id": "ticket-1"},
            {"status": "error", "message": "not registered", "details": {"error": "DeviceNotRegistered"}},
        ]

        result = asyncio.run(PushNotificationService(db).send_notification(notification_id))

        assert result["sent"] == 1
        assert result["failed"] == 1
        assert [t["expo_push_token"] for t in db.rows("push_tokens")] == [TOKEN_A]
        row = db.rows("push_notifications")[0]
        assert row["status"] == "sent"
        assert row["error_message"] == "Sent to 1 devices, 1 failed"

        (request,) = expo["requests"]
        assert str(request.url) == EXPO_PUSH_URL

    def test_already_sent_is_not_resent(self, db, expo):
        register(db, "user-1", TOKEN_A)
        notification_id = queue_break(db)
        db.rows("push_notifications")[0]["status"] = "sent"

        result = asyncio.run(PushNotificationService(db).send_notification(notification_id))
        assert result["message"] == "Already sent"
        assert expo["requests"] == []

    def test_no_devices_marks_failed(self, db, expo):
        db.add("push_notifications", {"user_id": "user-1", "title": "t", "body": "b", "status": "pending"})
        notification_id = db.rows("push_notifications")[0]["id"]

        result = asyncio.run(PushNotificationService(db).send_notification(notification_id))
        assert result["success"] is False
        assert db.rows("push_notifications")[0]["status"] == "failed"

    def test_expo_error_marks_failed(self, db, expo):
        register(db, "user-1", TOKEN_A)
        notification_id = queue_break(db)
        expo["status"] = 503

        with pytest.raises(RuntimeError):
            asyncio.run(PushNotificationService(db).send_notification(notification_id))
        assert db.rows("push_notifications")[0]["status"] == "failed"

    def test_unknown_notification(self, db):
        with pytest.raises(ValueError):
            asyncio.run(PushNotificationService(db).send_notification(404))


@pytest.fixture
def client(db):
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    app.dependency_overrides[get_push_service] = lambda: PushNotificationService(db)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestPushApi:
    def test_register_token(self, client, db):
        response = client.post("/api/push-notifications/tokens", json={"expoPushToken": TOKEN_A})
        assert response.status_code == 201
        assert db.rows("push_tokens")[0]["user_id"] == "user-1"

    def test_send_webhook(self, client, db, expo):
        register(db, "user-1", TOKEN_A)
        notification_id = queue_break(db)
        row = db.rows("push_notifications")[0]
        expo["tickets"] = [{"status": "ok", "id": "ticket-1"}]

        response = client.post("/api/push-notifications/send", json={
            "type": "INSERT",
            "table": "push_notifications",
            "schema": "public",
            "record": row,
            "old_record": None,
        })
        assert response.status_code == 200
        assert response.json()["notificationId"] == notification_id
        assert response.json()["sent"] == 1

    def test_send_webhook_unknown_record(self, client):
        response = client.post("/api/push-notifications/send", json={
            "type": "INSERT",
            "table": "push_notifications",
            "schema": "public",
            "record": {
                "id": 999,
                "user_id": "user-1",
                "title": "t",
                "body": "b",
                "status": "pending",
                "created_at": "2026-03-02T10:00:00+00:00",
            },
        })
        assert response.status_code == 404

    def test_health(self, client):
        assert client.get("/api/push-notifications/health").json()["status"] == "healthy"
