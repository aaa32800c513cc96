"""HTTP API tests: events, tags, reminder settings and the reminder service routes."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import FrozenClock, InMemoryStore, RecordingSender
from smartcalendar.db.session import get_db
from smartcalendar.main import create_app
from smartcalendar.models import Event, Tag, User
from smartcalendar.reminders.dispatcher import ReminderDispatcher


HEADERS = {"X-API-Key": "test-key"}


@pytest.fixture
def app(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    # No context manager: the lifespan (and so the dispatcher) is not started
    return TestClient(app)


@pytest.fixture
def user(db):
    user = User(id="u1", full_name="Ada Lovelace", email="ada@example.com", receive_reminders=True)
    db.add(user)
    db.commit()
    return user


def create_event(client, **overrides):
    payload = {
        "user_id": "u1",
        "title": "Standup",
        "start_date": "2025-01-10T10:00:00",
        "reminder_minutes_before": 10,
        "tags": ["work", " Work ", "", "daily"],
    }
    payload.update(overrides)
    return client.post("/api/v1/events/", json=payload, headers=HEADERS)


def test_requires_api_key(client, user):
    response = client.get("/api/v1/events/", params={"user_id": "u1"})
    assert response.status_code == 401

    response = client.get("/api/v1/events/", params={"user_id": "u1"}, headers={"X-API-Key": "wrong"})
    assert response.status_code == 401

    response = client.get(
        "/api/v1/events/", params={"user_id": "u1"}, headers={"Authorization": "Bearer test-key"}
    )
    assert response.status_code == 200


def test_create_event_resolves_tags(client, user, db):
    response = create_event(client)
    assert response.status_code == 201
    body = response.json()
    assert body["reminder_sent"] is False
    assert sorted(t["name"] for t in body["tags"]) == ["Work", "daily", "work"]

    # Second event reuses the existing tags instead of creating duplicates
    create_event(client, title="Retro", tags=["work"])
    assert db.query(Tag).filter(Tag.name == "work").count() == 1


def test_create_event_normalizes_timezone(client, user, db):
    response = create_event(client, start_date="2025-01-10T13:00:00+03:00", tags=[])
    assert response.status_code == 201

    ev = db.get(Event, response.json()["id"])
    assert ev.start_date == datetime(2025, 1, 10, 10, 0)
    assert ev.remind_at == datetime(2025, 1, 10, 9, 50)


def test_create_event_validation(client, user):
    assert create_event(client, end_date="2025-01-10T09:00:00").status_code == 422
    assert create_event(client, reminder_minutes_before=-5).status_code == 422
    assert create_event(client, user_id="nobody").status_code == 404


def test_list_events_filters_by_tag(client, user):
    create_event(client, title="Standup", tags=["Work"])
    create_event(client, title="Gym", start_date="2025-01-09T18:00:00", tags=["health"])

    everything = client.get("/api/v1/events/", params={"user_id": "u1"}, headers=HEADERS).json()
    assert [e["title"] for e in everything] == ["Gym", "Standup"]

    work = client.get("/api/v1/events/", params={"user_id": "u1", "tag": "work"}, headers=HEADERS).json()
    assert [e["title"] for e in work] == ["Standup"]


def test_update_never_resets_reminder_flag(client, user, db):
    event_id = create_event(client).json()["id"]
    ev = db.get(Event, event_id)
    ev.reminder_sent = True
    db.commit()

    response = client.put(
        f"/api/v1/events/{event_id}",
        json={"start_date": "2025-01-11T10:00:00", "tags": ["moved"]},
        headers=HEADERS,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["reminder_sent"] is True
    assert body["title"] == "Standup"
    assert [t["name"] for t in body["tags"]] == ["moved"]

    db.expire_all()
    assert db.get(Event, event_id).remind_at == datetime(2025, 1, 11, 9, 50)


def test_update_rejects_end_before_start(client, user):
    event_id = create_event(client).json()["id"]
    response = client.put(
        f"/api/v1/events/{event_id}", json={"end_date": "2025-01-01T00:00:00"}, headers=HEADERS
    )
    assert response.status_code == 400


def test_delete_event_keeps_tags(client, user, db):
    event_id = create_event(client, tags=["work"]).json()["id"]

    assert client.delete(f"/api/v1/events/{event_id}", headers=HEADERS).status_code == 204
    assert client.get(f"/api/v1/events/{event_id}", headers=HEADERS).status_code == 404
    assert client.delete(f"/api/v1/events/{event_id}", headers=HEADERS).status_code == 404

    tags = client.get("/api/v1/tags/", headers=HEADERS).json()
    assert [t["name"] for t in tags] == ["work"]


def test_reminder_settings_round_trip(client, user):
    url = "/api/v1/users/u1/reminder-settings"
    assert client.get(url, headers=HEADERS).json() == {"receive_reminders": True}

    response = client.put(url, json={"receive_reminders": False}, headers=HEADERS)
    assert response.json() == {"receive_reminders": False}
    assert client.get(url, headers=HEADERS).json() == {"receive_reminders": False}

    assert client.get("/api/v1/users/nobody/reminder-settings", headers=HEADERS).status_code == 404


def test_reminder_routes_without_dispatcher(client):
    health = client.get("/api/v1/reminders/health", headers=HEADERS).json()
    assert health["dispatcher_running"] is False
    assert client.post("/api/v1/reminders/scan", headers=HEADERS).status_code == 503


def _dispatcher_factory(store, sender):
    def factory():
        return ReminderDispatcher(
            store=store,
            sender=sender,
            clock=FrozenClock(datetime(2025, 1, 10, 9, 50)),
            interval_seconds=3600,
        )
    return factory


def test_lifespan_starts_dispatcher_and_scan_runs_a_tick():
    store = InMemoryStore()
    sender = RecordingSender()
    store.add_user("u1", "ada@example.com")
    store.add_event(title="Standup", start_date=datetime(2025, 1, 10, 10, 0), user_id="u1",
                    reminder_minutes_before=10)

    app = create_app(dispatcher_factory=_dispatcher_factory(store, sender))
    with TestClient(app) as client:
        health = client.get("/api/v1/reminders/health", headers=HEADERS).json()
        assert health == {"status": "healthy", "service": "reminders", "dispatcher_running": True}

        summary = client.post("/api/v1/reminders/scan", headers=HEADERS).json()
        assert summary["committed"] is True

        status = client.get("/api/v1/reminders/status", headers=HEADERS).json()
        assert status["committed"] is True

    # Background tick and manual scan together still send exactly once
    assert len(sender.sent) == 1
    assert app.state.reminder_dispatcher.running is False


def test_unreachable_store_keeps_api_up_without_dispatcher():
    store = InMemoryStore()
    store.fail_query = True

    app = create_app(dispatcher_factory=_dispatcher_factory(store, RecordingSender()))
    with TestClient(app) as client:
        assert client.get("/health").json()["status"] == "healthy"
        health = client.get("/api/v1/reminders/health", headers=HEADERS).json()
        assert health["status"] == "degraded"
        assert health["dispatcher_running"] is False


def test_missing_smtp_configuration_disables_dispatcher():
    def factory():
        raise ValueError("SMTP_SERVER is required but not configured")

    app = create_app(dispatcher_factory=factory)
    with TestClient(app) as client:
        assert client.post("/api/v1/reminders/scan", headers=HEADERS).status_code == 503
