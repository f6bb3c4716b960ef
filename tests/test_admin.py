"""
Admin Tests
User management, audit logs and system statistics
"""

from conftest import auth_headers, make_bookable, make_user
from finance_portal.models.approval import ApprovalDecision, BudgetApproval
from finance_portal.models.audit_log import AuditLog
from finance_portal.models.bookable import Bookable, BookableStatus
from finance_portal.models.budget import BudgetLine
from finance_portal.models.expense import Expense
from finance_portal.models.notification import BroadcastTarget, Notification, NotificationHistory
from finance_portal.models.user import User, UserRole


class TestUserManagement:
    """/api/admin/users"""

    def test_create_user(self, client, db, users):
        response = client.post(
            "/api/admin/users",
            json={"email": "New.Lead@Test.com", "full_name": "New Lead", "role": "event_team_lead"},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 201
        assert response.json()["user"]["email"] == "new.lead@test.com"

    def test_duplicate_email(self, client, db, users):
        response = client.post(
            "/api/admin/users",
            json={"email": users["finance_team"].email, "full_name": "Copy", "role": "finance_team"},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 409

    def test_non_admin_forbidden(self, client, db, users):
        response = client.get("/api/admin/users", headers=auth_headers(users["finance_team"]))

        assert response.status_code == 403

    def test_list_filtered_by_role(self, client, db, users):
        response = client.get(
            "/api/admin/users",
            params={"role": "finance_team"},
            headers=auth_headers(users["admin"])
        )

        assert [u["id"] for u in response.json()["users"]] == [users["finance_team"].id]

    def test_deactivate_user(self, client, db, users):
        target = users["facilities_team"]

        response = client.put(
            f"/api/admin/users/{target.id}",
            json={"is_active": False},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 200
        assert response.json()["user"]["is_active"] is False


class TestDeleteUser:
    """DELETE /api/admin/users/{id}"""

    def test_admin_cannot_delete_self(self, client, db, users):
        admin = users["admin"]

        response = client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400
        db.expire_all()
        assert db.get(User, admin.id) is not None

    def test_delete_team_lead_cascades(self, client, db, users, categories):
        lead = users["event_team_lead"]
        finance = users["finance_team"]
        event = make_bookable(db, lead, status=BookableStatus.APPROVED)
        db.add_all([
            BudgetLine(bookable_id=event.id, category_id=categories["catering"].id, amount=100),
            BudgetApproval(bookable_id=event.id, reviewer_id=finance.id,
                           decision=ApprovalDecision.APPROVED, remarks="ok"),
            Expense(bookable_id=event.id, category_id=categories["catering"].id, added_by_id=finance.id,
                    item_name="Tea", quantity=1, unit_price=10, amount=10),
            Notification(user_id=lead.id, title="Hello", message="Welcome"),
            AuditLog(user_id=lead.id, action="create_event", entity_type="event",
                     entity_id=event.id, description="Created event"),
        ])
        db.commit()
        lead_id, event_id = lead.id, event.id

        response = client.delete(f"/api/admin/users/{lead_id}", headers=auth_headers(users["admin"]))

        assert response.status_code == 200
        assert response.json()["removed"]["bookables_deleted"] == 1
        db.expire_all()
        assert db.get(User, lead_id) is None
        assert db.get(Bookable, event_id) is None
        assert db.query(BudgetLine).count() == 0
        assert db.query(BudgetApproval).count() == 0
        assert db.query(Expense).count() == 0
        assert db.query(Notification).filter(Notification.user_id == lead_id).count() == 0
        history = db.query(AuditLog).filter(AuditLog.action == "create_event").one()
        assert history.user_id is None

    def test_delete_coordinator_clears_reference(self, client, db, users):
        coordinator = users["event_coordinator"]
        event = make_bookable(db, users["event_team_lead"], coordinator=coordinator)
        event_id = event.id

        response = client.delete(f"/api/admin/users/{coordinator.id}", headers=auth_headers(users["admin"]))

        assert response.status_code == 200
        db.expire_all()
        remaining = db.get(Bookable, event_id)
        assert remaining is not None
        assert remaining.coordinator_id is None

    def test_delete_keeps_broadcast_log(self, client, db, users):
        former_admin = make_user(db, UserRole.ADMIN, "former.admin@test.com")
        target = users["facilities_team"]
        db.add(NotificationHistory(
            title="Keys", message="Collect the hall keys", target_type=BroadcastTarget.USER,
            target_user_id=target.id, sent_to_count=1, sent_by_id=former_admin.id
        ))
        db.commit()
        admin_headers = auth_headers(users["admin"])

        assert client.delete(f"/api/admin/users/{former_admin.id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/admin/users/{target.id}", headers=admin_headers).status_code == 200

        db.expire_all()
        entry = db.query(NotificationHistory).one()
        assert entry.sent_by_id is None
        assert entry.target_user_id is None
        assert entry.title == "Keys"

    def test_delete_reviewer_removes_their_work(self, client, db, users, categories):
        finance = users["finance_team"]
        event = make_bookable(db, users["event_team_lead"])
        db.add_all([
            BudgetApproval(bookable_id=event.id, reviewer_id=finance.id,
                           decision=ApprovalDecision.REJECTED, remarks="no"),
            Expense(bookable_id=event.id, category_id=categories["catering"].id, added_by_id=finance.id,
                    item_name="Tea", quantity=1, unit_price=10, amount=10),
        ])
        db.commit()
        event_id = event.id

        response = client.delete(f"/api/admin/users/{finance.id}", headers=auth_headers(users["admin"]))

        assert response.status_code == 200
        db.expire_all()
        assert db.get(Bookable, event_id) is not None
        assert db.query(BudgetApproval).count() == 0
        assert db.query(Expense).count() == 0

    def test_unknown_user(self, client, db, users):
        response = client.delete("/api/admin/users/999", headers=auth_headers(users["admin"]))

        assert response.status_code == 404


class TestAuditAndStats:
    """Audit log listing and dashboard statistics"""

    def test_audit_logs_filtered(self, client, db, users):
        client.post("/api/events", json={"title": "Fest"}, headers=auth_headers(users["event_team_lead"]))
        client.post("/api/workshops", json={"title": "Class"}, headers=auth_headers(users["workshop_team_lead"]))

        response = client.get(
            "/api/admin/audit-logs",
            params={"entity_type": "workshop"},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["logs"][0]["action"] == "create_workshop"
        assert body["logs"][0]["user_name"] == users["workshop_team_lead"].full_name

    def test_audit_logs_admin_only(self, client, db, users):
        response = client.get("/api/admin/audit-logs", headers=auth_headers(users["finance_team"]))

        assert response.status_code == 403

    def test_system_stats(self, client, db, users, categories):
        event = make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED)
        make_bookable(db, users["event_team_lead"])
        db.add(BudgetLine(bookable_id=event.id, category_id=categories["catering"].id, amount=250))
        db.commit()

        response = client.get("/api/admin/system-stats", headers=auth_headers(users["admin"]))

        body = response.json()
        assert body["users"]["active"] == len(users)
        assert body["bookables"] == {"pending": 1, "approved": 1, "rejected": 0, "completed": 0}
        assert body["total_requested_budget"] == 250


class TestUserDirectory:
    """GET /api/users"""

    def test_team_lead_lists_coordinators(self, client, db, users):
        users["workshop_coordinator"].is_active = False
        db.commit()

        response = client.get(
            "/api/users",
            params={"role": "event_coordinator"},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 200
        listed = response.json()["users"]
        assert [u["email"] for u in listed] == ["event_coordinator@test.com"]
        assert listed[0]["role"] == "event_coordinator"

    def test_inactive_users_not_listed(self, client, db, users):
        users["workshop_coordinator"].is_active = False
        db.commit()

        body = client.get("/api/users", headers=auth_headers(users["workshop_team_lead"])).json()

        assert "workshop_coordinator@test.com" not in [u["email"] for u in body["users"]]
        assert body["total"] == len(users) - 1

    def test_coordinator_cannot_list(self, client, db, users):
        response = client.get("/api/users", headers=auth_headers(users["event_coordinator"]))

        assert response.status_code == 403
