"""
Budget Category Tests
"""

from conftest import auth_headers
from finance_portal.models.budget import BudgetCategory


class TestCategories:
    """/api/categories"""

    def test_order_defaults_to_after_last(self, client, db, users, categories):
        response = client.post(
            "/api/categories",
            json={"name": "Marketing"},
            headers=auth_headers(users["finance_team"])
        )

        assert response.status_code == 201
        assert response.json()["category"]["order"] == 3

    def test_duplicate_name_conflicts(self, client, db, users, categories):
        response = client.post(
            "/api/categories",
            json={"name": "catering"},
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_team_lead_cannot_manage(self, client, db, users):
        response = client.post(
            "/api/categories",
            json={"name": "Marketing"},
            headers=auth_headers(users["event_team_lead"])
        )

        assert response.status_code == 403

    def test_soft_delete_hides_from_list(self, client, db, users, categories):
        catering = categories["catering"]

        response = client.delete(f"/api/categories/{catering.id}", headers=auth_headers(users["admin"]))
        listed = client.get("/api/categories", headers=auth_headers(users["event_team_lead"])).json()

        assert response.status_code == 200
        assert [c["name"] for c in listed["categories"]] == ["Venue"]
        db.expire_all()
        assert db.get(BudgetCategory, catering.id).is_active is False

    def test_rename(self, client, db, users, categories):
        response = client.put(
            f"/api/categories/{categories['venue'].id}",
            json={"name": "Hall Rental"},
            headers=auth_headers(users["finance_team"])
        )

        assert response.status_code == 200
        assert response.json()["category"]["name"] == "Hall Rental"
