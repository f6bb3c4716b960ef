"""
Bookable Tests
Event and workshop creation, edit guard and cascading delete
"""

from datetime import date

import pytest

from conftest import auth_headers, make_bookable
from finance_portal.models.approval import ApprovalDecision, BudgetApproval
from finance_portal.models.audit_log import AuditLog
from finance_portal.models.bookable import Bookable, BookableKind, BookableStatus
from finance_portal.models.budget import BudgetLine
from finance_portal.models.expense import Expense
from finance_portal.models.notification import Notification
from finance_portal.services.venue_service import venue_service


class TestCreateBookable:
    """POST /api/events and /api/workshops"""

    def test_event_lead_creates_event(self, client, db, users):
        response = client.post(
            "/api/events",
            json={"title": "Tech Fest", "start_date": "2024-03-01", "end_date": "2024-03-03",
                  "start_time": "09:30", "end_time": "18:00"},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 201
        event = response.json()["event"]
        assert event["status"] == "pending"
        assert event["kind"] == "event"
        assert event["creator"]["id"] == users["event_team_lead"].id

    def test_workshop_lead_cannot_create_event(self, client, db, users):
        response = client.post(
            "/api/events",
            json={"title": "Tech Fest"},
            headers=auth_headers(users["workshop_team_lead"])
        )

        assert response.status_code == 403

    def test_admin_creates_workshop(self, client, db, users):
        response = client.post(
            "/api/workshops",
            json={"title": "Intro to SQL"},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 201
        assert response.json()["workshop"]["kind"] == "workshop"

    def test_coordinator_is_notified(self, client, db, users):
        coordinator = users["event_coordinator"]

        response = client.post(
            "/api/events",
            json={"title": "Tech Fest", "coordinator_email": coordinator.email},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 201
        assert response.json()["event"]["coordinator"]["id"] == coordinator.id
        notes = db.query(Notification).filter(Notification.user_id == coordinator.id).all()
        assert len(notes) == 1
        assert "Tech Fest" in notes[0].message

    def test_coordinator_of_other_kind_is_rejected(self, client, db, users):
        response = client.post(
            "/api/events",
            json={"title": "Tech Fest", "coordinator_email": users["workshop_coordinator"].email},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 400
        assert db.query(Bookable).count() == 0

    def test_inverted_dates_are_rejected(self, client, db, users):
        response = client.post(
            "/api/events",
            json={"title": "Tech Fest", "start_date": "2024-03-05", "end_date": "2024-03-01"},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 422

    def test_bad_time_format(self, client, db, users):
        response = client.post(
            "/api/events",
            json={"title": "Tech Fest", "start_time": "25:00"},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 422


class TestUpdateBookable:
    """PUT /api/events/{id}"""

    def _update(self, client, user, event_id, body):
        return client.put(f"/api/events/{event_id}", json=body, headers=auth_headers(user))

    @pytest.mark.parametrize("status", [BookableStatus.PENDING, BookableStatus.REJECTED])
    def test_team_lead_edits_while_editable(self, client, db, users, status):
        lead = users["event_team_lead"]
        event = make_bookable(db, lead, status=status)

        response = self._update(client, lead, event.id, {"title": "Tech Fest 2024"})

        assert response.status_code == 200
        assert response.json()["event"]["title"] == "Tech Fest 2024"

    @pytest.mark.parametrize("status", [BookableStatus.APPROVED, BookableStatus.COMPLETED])
    def test_team_lead_blocked_after_approval(self, client, db, users, status):
        lead = users["event_team_lead"]
        event = make_bookable(db, lead, status=status)

        response = self._update(client, lead, event.id, {"title": "Renamed"})

        assert response.status_code == 400
        assert response.json()["error"] == "precondition_failed"
        db.expire_all()
        assert db.get(Bookable, event.id).title == "Tech Fest"

    def test_admin_edits_approved(self, client, db, users):
        event = make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED)

        response = self._update(client, users["admin"], event.id, {"description": "Annual fest"})

        assert response.status_code == 200
        assert response.json()["event"]["description"] == "Annual fest"

    def test_coordinator_cannot_edit(self, client, db, users):
        coordinator = users["event_coordinator"]
        event = make_bookable(db, users["event_team_lead"], coordinator=coordinator)

        response = self._update(client, coordinator, event.id, {"title": "Renamed"})

        assert response.status_code == 403

    def test_end_date_before_stored_start(self, client, db, users):
        lead = users["event_team_lead"]
        event = make_bookable(db, lead, start=date(2024, 3, 5), end=date(2024, 3, 6))

        response = self._update(client, lead, event.id, {"end_date": "2024-03-01"})

        assert response.status_code == 400

    def test_moving_dates_onto_booked_venue(self, client, db, users, venue):
        make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED,
                      start=date(2024, 3, 1), end=date(2024, 3, 3), venue=venue, title="A")
        c = make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED,
                          start=date(2024, 3, 10), end=date(2024, 3, 12), venue=venue, title="C")

        response = self._update(client, users["admin"], c.id, {"start_date": "2024-03-03", "end_date": "2024-03-04"})

        assert response.status_code == 409
        assert response.json()["conflicts"][0]["title"] == "A"

    def test_date_move_locks_venue_before_checking(self, client, db, users, venue, monkeypatch):
        calls = []
        original_lock = venue_service.lock_venue
        original_find = venue_service.find_conflicts

        def lock_venue(session, venue_id):
            calls.append(("lock", venue_id))
            return original_lock(session, venue_id)

        def find_conflicts(session, venue_id, *args, **kwargs):
            calls.append(("check", venue_id))
            return original_find(session, venue_id, *args, **kwargs)

        monkeypatch.setattr(venue_service, "lock_venue", lock_venue)
        monkeypatch.setattr(venue_service, "find_conflicts", find_conflicts)
        event = make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED,
                              start=date(2024, 3, 10), end=date(2024, 3, 12), venue=venue)

        response = self._update(client, users["admin"], event.id, {"end_date": "2024-03-13"})

        assert response.status_code == 200
        assert calls == [("lock", venue.id), ("check", venue.id)]

    def test_date_move_on_deactivated_venue(self, client, db, users, venue):
        event = make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED,
                              start=date(2024, 3, 10), end=date(2024, 3, 12), venue=venue)
        venue.is_active = False
        db.commit()

        response = self._update(client, users["admin"], event.id, {"end_date": "2024-03-13"})

        assert response.status_code == 200
        assert response.json()["event"]["end_date"] == "2024-03-13"


class TestDeleteBookable:
    """DELETE /api/events/{id}"""

    def test_admin_delete_cascades(self, client, db, users, categories):
        lead = users["event_team_lead"]
        event = make_bookable(db, lead, status=BookableStatus.APPROVED)
        catering = categories["catering"]
        db.add_all([
            BudgetLine(bookable_id=event.id, category_id=catering.id, amount=100),
            BudgetApproval(bookable_id=event.id, reviewer_id=users["finance_team"].id,
                           decision=ApprovalDecision.APPROVED, remarks="ok"),
            Expense(bookable_id=event.id, category_id=catering.id, added_by_id=users["finance_team"].id,
                    item_name="Tea", quantity=10, unit_price=5, amount=50),
            Notification(user_id=lead.id, title="Budget approved", message="ok", bookable_id=event.id),
        ])
        db.commit()
        event_id = event.id

        response = client.delete(f"/api/events/{event_id}", headers=auth_headers(users["admin"]))

        assert response.status_code == 200
        assert response.json()["removed"] == {
            "budget_lines": 1, "approvals": 1, "expenses": 1, "notifications": 1
        }
        db.expire_all()
        assert db.get(Bookable, event_id) is None
        assert db.query(BudgetLine).count() == 0
        assert db.query(BudgetApproval).count() == 0
        assert db.query(Expense).count() == 0
        assert db.query(Notification).count() == 0
        assert db.query(AuditLog).filter(AuditLog.action == "delete_event").count() == 1

    def test_team_lead_cannot_delete(self, client, db, users):
        lead = users["event_team_lead"]
        event = make_bookable(db, lead)

        response = client.delete(f"/api/events/{event.id}", headers=auth_headers(lead))

        assert response.status_code == 403

    def test_delete_wrong_kind_is_not_found(self, client, db, users):
        workshop = make_bookable(db, users["workshop_team_lead"], kind=BookableKind.WORKSHOP)

        response = client.delete(f"/api/events/{workshop.id}", headers=auth_headers(users["admin"]))

        assert response.status_code == 404
