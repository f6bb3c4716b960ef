"""
Notification Tests
In-app notification endpoints and best-effort delivery
"""

from conftest import auth_headers, make_bookable
from finance_portal.models.notification import Notification, NotificationHistory
from finance_portal.services.notification_service import notification_service


def add_notification(db, user, title="Budget approved", is_read=False):
    notification = Notification(user_id=user.id, title=title, message=f"{title}!", is_read=is_read)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


class TestNotificationEndpoints:
    """/api/notifications"""

    def test_my_notifications_with_unread_filter(self, client, db, users):
        user = users["event_team_lead"]
        add_notification(db, user, "First", is_read=True)
        add_notification(db, user, "Second")
        add_notification(db, users["finance_team"], "Not mine")

        everything = client.get("/api/notifications/my-notifications", headers=auth_headers(user)).json()
        unread = client.get(
            "/api/notifications/my-notifications",
            params={"unread_only": True},
            headers=auth_headers(user)
        ).json()

        assert everything["total"] == 2
        assert everything["unread_count"] == 1
        assert [n["title"] for n in unread["notifications"]] == ["Second"]

    def test_mark_read_and_count(self, client, db, users):
        user = users["event_team_lead"]
        note = add_notification(db, user)

        assert client.get("/api/notifications/unread-count", headers=auth_headers(user)).json()["unread_count"] == 1

        response = client.put(f"/api/notifications/{note.id}/read", headers=auth_headers(user))

        assert response.status_code == 200
        assert client.get("/api/notifications/unread-count", headers=auth_headers(user)).json()["unread_count"] == 0

    def test_mark_all_read(self, client, db, users):
        user = users["event_team_lead"]
        add_notification(db, user, "One")
        add_notification(db, user, "Two")

        response = client.put("/api/notifications/mark-all-read", headers=auth_headers(user))

        assert response.json()["count"] == 2

    def test_cannot_touch_others_notifications(self, client, db, users):
        note = add_notification(db, users["finance_team"])

        response = client.delete(f"/api/notifications/{note.id}", headers=auth_headers(users["event_team_lead"]))

        assert response.status_code == 404

    def test_delete(self, client, db, users):
        user = users["event_team_lead"]
        note = add_notification(db, user)

        response = client.delete(f"/api/notifications/{note.id}", headers=auth_headers(user))

        assert response.status_code == 200
        assert db.query(Notification).count() == 0


class TestNotify:
    """notification_service.notify"""

    def test_skips_missing_inactive_and_duplicate_recipients(self, db, users):
        lead = users["event_team_lead"]
        inactive = users["event_coordinator"]
        inactive.is_active = False
        db.commit()
        event = make_bookable(db, lead)

        count = notification_service.notify(
            db, [lead, lead, None, inactive], "venue_assigned",
            {"kind": "event", "title": event.title, "venue": "Main Auditorium"},
            bookable_id=event.id
        )

        assert count == 1
        assert db.query(Notification).one().user_id == lead.id

    def test_bad_template_data_is_swallowed(self, db, users):
        count = notification_service.notify(db, [users["admin"]], "budget_approved", {"title": "Fest"})

        assert count == 0
        assert db.query(Notification).count() == 0


class TestBroadcast:
    """/api/notifications broadcast, history and resend"""

    def test_send_to_all_active_users(self, client, db, users):
        users["event_coordinator"].is_active = False
        db.commit()

        response = client.post(
            "/api/notifications",
            json={"title": "Maintenance", "message": "Portal down on Sunday", "send_to_all": True},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 201
        assert response.json()["count"] == len(users) - 1
        assert response.json()["history"]["target_type"] == "all"
        assert db.query(Notification).filter(Notification.user_id == users["event_coordinator"].id).count() == 0

    def test_send_to_role(self, client, db, users):
        response = client.post(
            "/api/notifications",
            json={"title": "Audit", "message": "Close the books", "target_role": "finance_team"},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 201
        assert response.json()["count"] == 1
        assert db.query(Notification).one().user_id == users["finance_team"].id

    def test_send_to_one_user(self, client, db, users):
        target = users["facilities_team"]

        response = client.post(
            "/api/notifications",
            json={"title": "Keys", "message": "Collect the hall keys", "target_user_id": target.id},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 201
        assert response.json()["history"]["target_user_id"] == target.id
        assert db.query(Notification).one().user_id == target.id

    def test_inactive_target_user_rejected(self, client, db, users):
        target = users["facilities_team"]
        target.is_active = False
        db.commit()

        response = client.post(
            "/api/notifications",
            json={"title": "Keys", "message": "Collect the hall keys", "target_user_id": target.id},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 400
        assert db.query(NotificationHistory).count() == 0

    def test_audience_required(self, client, db, users):
        response = client.post(
            "/api/notifications",
            json={"title": "Hello", "message": "Nobody in particular"},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 400
        assert db.query(Notification).count() == 0

    def test_only_admin_can_broadcast(self, client, db, users):
        response = client.post(
            "/api/notifications",
            json={"title": "Hello", "message": "Everyone", "send_to_all": True},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 403
        assert client.get(
            "/api/notifications/history", headers=auth_headers(users["finance_team"])
        ).status_code == 403

    def test_history_lists_sender(self, client, db, users):
        admin = users["admin"]
        client.post(
            "/api/notifications",
            json={"title": "Audit", "message": "Close the books", "target_role": "finance_team"},
            headers=auth_headers(admin)
        )

        body = client.get("/api/notifications/history", headers=auth_headers(admin)).json()

        assert body["total"] == 1
        entry = body["history"][0]
        assert entry["target_role"] == "finance_team"
        assert entry["sent_to_count"] == 1
        assert entry["sender"]["id"] == admin.id

    def test_resend_logs_new_entry(self, client, db, users):
        admin = users["admin"]
        sent = client.post(
            "/api/notifications",
            json={"title": "Audit", "message": "Close the books", "target_role": "finance_team"},
            headers=auth_headers(admin)
        ).json()["history"]

        response = client.post(f"/api/notifications/resend/{sent['id']}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["history"]["id"] != sent["id"]
        assert db.query(NotificationHistory).count() == 2
        assert db.query(Notification).filter(Notification.user_id == users["finance_team"].id).count() == 2

    def test_resend_unknown_entry(self, client, db, users):
        response = client.post("/api/notifications/resend/999", headers=auth_headers(users["admin"]))

        assert response.status_code == 404
