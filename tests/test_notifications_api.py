from datetime import timedelta

import pytest

from config import database
from core.utils.datetime import utc_now
from notifications.application.dispatcher import NotificationDispatcher
from notifications.domain.entities import NotificationIntent
from notifications.infrastructure.repositories import NotificationRepository


@pytest.fixture
def notify(run, fake_channel):
    """Store a notification directly, optionally as if created in the past."""

    async def _create(recipient_id, title, minutes_ago=0, expires_in_hours=None):
        created_at = utc_now() - timedelta(minutes=minutes_ago)
        async with database.database_session() as db_session:
            dispatcher = NotificationDispatcher(
                NotificationRepository(db_session),
                fake_channel,
                clock=lambda: created_at,
            )
            return await dispatcher.dispatch(
                NotificationIntent(
                    recipient_id=recipient_id,
                    title=title,
                    message=f"{title} message",
                    expires_in_hours=expires_in_hours,
                )
            )

    def _notify(recipient_id, title="Heads up", **kwargs):
        return run(_create, recipient_id, title, **kwargs)

    return _notify


@pytest.fixture
def engineer(run, seed):
    return run(seed.user, "Eve Engineer")


@pytest.fixture
def admin(run, seed):
    return run(seed.admin, "Ada Admin")


def test_requests_without_token_are_rejected(client):
    response = client.get("/notifications/")

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_list_is_newest_first_with_counts(client, engineer, auth_headers, notify):
    notify(engineer.id, "Oldest", minutes_ago=30)
    middle = notify(engineer.id, "Middle", minutes_ago=20)
    notify(engineer.id, "Newest", minutes_ago=10)
    client.put(f"/notifications/{middle.id}/read", headers=auth_headers(engineer))

    response = client.get("/notifications/", headers=auth_headers(engineer))

    assert response.status_code == 200
    data = response.json()["data"]
    assert [n["title"] for n in data["notifications"]] == ["Newest", "Middle", "Oldest"]
    assert data["total"] == 3
    assert data["unread_count"] == 2


def test_list_pagination_and_unread_filter(client, engineer, auth_headers, notify):
    for minutes_ago in (40, 30, 20, 10):
        notify(engineer.id, f"Item {minutes_ago}", minutes_ago=minutes_ago)
    headers = auth_headers(engineer)

    page = client.get(
        "/notifications/", params={"limit": 2, "offset": 1}, headers=headers
    ).json()["data"]
    assert [n["title"] for n in page["notifications"]] == ["Item 20", "Item 30"]
    assert page["total"] == 4

    client.put("/notifications/read-all", headers=headers)
    unread = client.get(
        "/notifications/", params={"unread_only": True}, headers=headers
    ).json()["data"]
    assert unread["notifications"] == []
    assert unread["total"] == 0


def test_expired_notifications_are_hidden(client, engineer, auth_headers, notify):
    expired = notify(engineer.id, "Gone", minutes_ago=120, expires_in_hours=1)
    notify(engineer.id, "Still here", expires_in_hours=1)
    headers = auth_headers(engineer)

    data = client.get("/notifications/", headers=headers).json()["data"]

    assert [n["title"] for n in data["notifications"]] == ["Still here"]
    assert data["total"] == 1
    assert data["unread_count"] == 1
    assert client.put(f"/notifications/{expired.id}/read", headers=headers).status_code == 404


@pytest.mark.parametrize("limit, status_code", [(101, 400), (0, 422), (100, 200)])
def test_list_limit_bounds(client, engineer, auth_headers, limit, status_code):
    response = client.get(
        "/notifications/", params={"limit": limit}, headers=auth_headers(engineer)
    )

    assert response.status_code == status_code


def test_mark_read_is_idempotent(client, engineer, auth_headers, notify):
    notification = notify(engineer.id)
    headers = auth_headers(engineer)

    first = client.put(f"/notifications/{notification.id}/read", headers=headers)
    second = client.put(f"/notifications/{notification.id}/read", headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json()["data"]["is_read"] is True
    assert second.json()["data"]["is_read"] is True
    data = client.get("/notifications/", headers=headers).json()["data"]
    assert data["unread_count"] == 0


def test_cannot_read_someone_elses_notification(
    client, run, seed, engineer, auth_headers, notify
):
    other = run(seed.user, "Olu Other")
    notification = notify(engineer.id)

    response = client.put(
        f"/notifications/{notification.id}/read", headers=auth_headers(other)
    )

    assert response.status_code == 403
    data = client.get("/notifications/", headers=auth_headers(engineer)).json()["data"]
    assert data["unread_count"] == 1


def test_mark_all_read(client, engineer, auth_headers, notify):
    notify(engineer.id, "One")
    notify(engineer.id, "Two")
    headers = auth_headers(engineer)

    response = client.put("/notifications/read-all", headers=headers)

    assert response.json()["data"] == {"updated": 2}
    assert client.get("/notifications/", headers=headers).json()["data"]["unread_count"] == 0


def test_delete_own_notification(client, engineer, auth_headers, notify):
    notification = notify(engineer.id)
    headers = auth_headers(engineer)

    response = client.delete(f"/notifications/{notification.id}", headers=headers)

    assert response.status_code == 200
    assert client.get("/notifications/", headers=headers).json()["data"]["total"] == 0


def test_deleting_someone_elses_notification_is_refused(
    client, run, seed, engineer, auth_headers, notify
):
    intruder = run(seed.user, "Ian Intruder")
    notification = notify(engineer.id)

    response = client.delete(
        f"/notifications/{notification.id}", headers=auth_headers(intruder)
    )

    assert response.status_code == 403
    data = client.get("/notifications/", headers=auth_headers(engineer)).json()["data"]
    assert [n["id"] for n in data["notifications"]] == [notification.id]


def test_unknown_notification_is_not_found(client, engineer, auth_headers):
    response = client.delete("/notifications/9999", headers=auth_headers(engineer))

    assert response.status_code == 404


def test_clear_all(client, run, seed, engineer, auth_headers, notify):
    other = run(seed.user, "Olu Other")
    notify(engineer.id, "One")
    notify(engineer.id, "Two")
    notify(other.id, "Theirs")

    response = client.delete("/notifications/", headers=auth_headers(engineer))

    assert response.json()["data"] == {"deleted": 2}
    assert client.get("/notifications/", headers=auth_headers(other)).json()["data"]["total"] == 1


class TestSendNotification:
    def payload(self, recipient_id, **overrides):
        body = {
            "recipient_id": recipient_id,
            "title": "Safety briefing",
            "message": "Mandatory briefing at 7am on site.",
            "category": "warning",
            "priority": "high",
        }
        body.update(overrides)
        return body

    def test_engineers_cannot_send(self, client, engineer, auth_headers):
        response = client.post(
            "/notifications/send",
            json=self.payload(engineer.id),
            headers=auth_headers(engineer),
        )

        assert response.status_code == 403

    def test_admin_sends_to_engineer(self, client, admin, engineer, auth_headers):
        response = client.post(
            "/notifications/send",
            json=self.payload(engineer.id, action_url="/briefings/7"),
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        sent = response.json()["data"]
        assert sent["recipient_id"] == engineer.id
        assert sent["category"] == "warning"
        assert sent["priority"] == "high"
        assert sent["is_read"] is False

        inbox = client.get("/notifications/", headers=auth_headers(engineer)).json()
        assert [n["id"] for n in inbox["data"]["notifications"]] == [sent["id"]]

    def test_blank_title_is_rejected(self, client, admin, engineer, auth_headers):
        response = client.post(
            "/notifications/send",
            json=self.payload(engineer.id, title="   "),
            headers=auth_headers(admin),
        )

        assert response.status_code == 400

    def test_unknown_category_is_rejected(self, client, admin, engineer, auth_headers):
        response = client.post(
            "/notifications/send",
            json=self.payload(engineer.id, category="celebration"),
            headers=auth_headers(admin),
        )

        assert response.status_code == 422


def test_send_test_notification_to_self(client, engineer, auth_headers):
    response = client.post("/notifications/test", headers=auth_headers(engineer))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["recipient_id"] == engineer.id
    assert data["title"] == "🔔 Test Notification"
    assert data["metadata"]["test"] is True


def test_presence_endpoints_are_admin_only(client, admin, engineer, auth_headers):
    assert client.get("/notifications/presence", headers=auth_headers(engineer)).status_code == 403

    snapshot = client.get("/notifications/presence", headers=auth_headers(admin))
    assert snapshot.status_code == 200
    assert snapshot.json()["data"]["online_users"] == 0

    user_presence = client.get(
        f"/notifications/presence/{engineer.id}", headers=auth_headers(admin)
    ).json()["data"]
    assert user_presence == {
        "user_id": engineer.id,
        "online": False,
        "connections": 0,
        "connection_ids": [],
    }


def test_read_me(client, engineer, auth_headers):
    response = client.get("/users/me", headers=auth_headers(engineer))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == engineer.id
    assert data["role"] == "Engineer"
