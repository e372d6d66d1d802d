from datetime import datetime, timedelta, timezone

from tadbeer.domain.enums import NotificationType
from tadbeer.domain.models import Notification
from tadbeer.repositories.notification_repo import NotificationRepository

API = "/api/v1/notifications"


def _seed(user, count):
    repo = NotificationRepository()
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(count):
        created = base + timedelta(minutes=i)
        repo.create_notification(Notification(
            notification_id=f"NTF-{user.user_id}-{i}",
            user_id=user.user_id,
            type=NotificationType.SYSTEM,
            title=f"Notice {i}",
            message="Maintenance window",
            created_at=created,
            updated_at=created,
        ))


def test_inbox_newest_first(client, make_user, auth_headers):
    user = make_user()
    _seed(user, 3)

    response = client.get(API, headers=auth_headers(user))

    assert response.status_code == 200
    assert [n["title"] for n in response.json()] == ["Notice 2", "Notice 1", "Notice 0"]


def test_unread_count_and_mark_read(client, make_user, auth_headers):
    user = make_user()
    _seed(user, 3)
    headers = auth_headers(user)

    assert client.get(f"{API}/unread-count", headers=headers).json() == {"unread_count": 3}

    one = client.patch(f"{API}/NTF-{user.user_id}-0/read", headers=headers)
    assert one.status_code == 200
    assert one.json()["is_read"] is True
    assert client.get(f"{API}/unread-count", headers=headers).json()["unread_count"] == 2

    everything = client.patch(f"{API}/read-all", headers=headers)
    assert everything.json() == {"success": True, "marked_count": 2}
    assert client.get(f"{API}/unread-count", headers=headers).json()["unread_count"] == 0


def test_other_users_notifications_are_not_found(client, make_user, auth_headers):
    owner = make_user()
    intruder = make_user()
    _seed(owner, 1)
    notification_id = f"NTF-{owner.user_id}-0"

    read = client.patch(f"{API}/{notification_id}/read", headers=auth_headers(intruder))
    assert read.status_code == 404
    assert read.json()["error"]["code"] == "NOTIFICATION_NOT_FOUND"

    delete = client.delete(f"{API}/{notification_id}", headers=auth_headers(intruder))
    assert delete.status_code == 404

    assert len(client.get(API, headers=auth_headers(owner)).json()) == 1


def test_delete_own_notification(client, make_user, auth_headers):
    user = make_user()
    _seed(user, 2)
    headers = auth_headers(user)

    assert client.delete(f"{API}/NTF-{user.user_id}-1", headers=headers).status_code == 200
    assert [n["title"] for n in client.get(API, headers=headers).json()] == ["Notice 0"]
