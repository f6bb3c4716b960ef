"""
Summary Tests
Budget versus expense aggregation
"""

from conftest import auth_headers, make_bookable
from finance_portal.models.bookable import BookableStatus
from finance_portal.models.budget import BudgetLine
from finance_portal.models.expense import Expense
from finance_portal.services.summary_service import summary_service


def add_line(db, bookable, category, amount, approved_amount=None, sponsor_amount=0.0):
    line = BudgetLine(
        bookable_id=bookable.id,
        category_id=category.id,
        amount=amount,
        approved_amount=approved_amount,
        sponsor_amount=sponsor_amount
    )
    db.add(line)
    db.commit()
    return line


def add_expense(db, bookable, category, user, amount, item_name="Item"):
    expense = Expense(
        bookable_id=bookable.id,
        category_id=category.id,
        added_by_id=user.id,
        item_name=item_name,
        quantity=1,
        unit_price=amount,
        amount=amount
    )
    db.add(expense)
    db.commit()
    return expense


class TestSummarize:
    """summary_service.summarize"""

    def test_overspend_gives_negative_remaining(self, db, users, categories):
        event = make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED)
        catering = categories["catering"]
        add_line(db, event, catering, amount=1500, approved_amount=1000)
        add_expense(db, event, catering, users["facilities_team"], 700, "Lunch")
        add_expense(db, event, catering, users["facilities_team"], 500, "Snacks")

        summary = summary_service.summarize(db, event.id)

        assert len(summary) == 1
        entry = summary[0]
        assert entry["category"]["name"] == "Catering"
        assert entry["budget_amount"] == 1000
        assert entry["total_expense"] == 1200
        assert entry["remaining"] == -200
        assert entry["expense_count"] == 2

    def test_requested_amount_used_until_approved(self, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        add_line(db, event, categories["venue"], amount=800)

        summary = summary_service.summarize(db, event.id)

        assert summary[0]["budget_amount"] == 800
        assert summary[0]["remaining"] == 800
        assert summary[0]["expense_count"] == 0

    def test_expense_without_budget_line_is_not_listed(self, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        add_line(db, event, categories["catering"], amount=100)
        add_expense(db, event, categories["venue"], users["finance_team"], 50)

        summary = summary_service.summarize(db, event.id)

        assert [s["category"]["name"] for s in summary] == ["Catering"]
        assert summary[0]["total_expense"] == 0

    def test_lines_follow_category_order(self, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        add_line(db, event, categories["venue"], amount=300)
        add_line(db, event, categories["catering"], amount=100)

        summary = summary_service.summarize(db, event.id)

        assert [s["category"]["name"] for s in summary] == ["Catering", "Venue"]

    def test_other_bookables_are_ignored(self, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        other = make_bookable(db, users["event_team_lead"], title="Other")
        add_line(db, event, categories["catering"], amount=100)
        add_expense(db, other, categories["catering"], users["finance_team"], 90)

        assert summary_service.summarize(db, event.id)[0]["total_expense"] == 0

    def test_repeated_calls_agree(self, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        add_line(db, event, categories["catering"], amount=100)
        add_expense(db, event, categories["catering"], users["finance_team"], 30)

        assert summary_service.summarize(db, event.id) == summary_service.summarize(db, event.id)

    def test_empty_bookable(self, db, users):
        event = make_bookable(db, users["event_team_lead"])

        assert summary_service.summarize(db, event.id) == []


class TestSummaryEndpoints:
    """Summary, report and overall summary endpoints"""

    def test_summary_endpoint_scoped_to_creator(self, client, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        add_line(db, event, categories["catering"], amount=100)

        own = client.get(f"/api/events/{event.id}/summary", headers=auth_headers(users["event_team_lead"]))
        foreign = client.get(f"/api/events/{event.id}/summary", headers=auth_headers(users["event_coordinator"]))

        assert own.status_code == 200
        assert own.json()["summary"][0]["budget_amount"] == 100
        assert foreign.status_code == 403

    def test_financial_report_totals(self, client, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        add_line(db, event, categories["catering"], amount=1500, approved_amount=1000, sponsor_amount=250)
        add_line(db, event, categories["venue"], amount=500)
        add_expense(db, event, categories["catering"], users["finance_team"], 400)

        response = client.get(f"/api/events/{event.id}/report", headers=auth_headers(users["finance_team"]))

        totals = response.json()["report"]["totals"]
        assert totals["total_budget"] == 2000
        assert totals["total_approved_budget"] == 1000
        assert totals["total_sponsor_contribution"] == 250
        assert totals["total_expenses"] == 400

    def test_report_remaining_mixes_approved_and_requested(self, client, db, users, categories):
        event = make_bookable(db, users["event_team_lead"])
        add_line(db, event, categories["catering"], amount=1500, approved_amount=1000)
        add_line(db, event, categories["venue"], amount=500)
        add_expense(db, event, categories["catering"], users["finance_team"], 400)

        response = client.get(f"/api/events/{event.id}/report", headers=auth_headers(users["finance_team"]))

        assert response.json()["report"]["totals"]["remaining"] == 1100

    def test_overall_summary_for_finance_only(self, client, db, users, categories):
        event = make_bookable(db, users["event_team_lead"], status=BookableStatus.APPROVED)
        add_line(db, event, categories["catering"], amount=300, approved_amount=250)
        add_expense(db, event, categories["catering"], users["finance_team"], 100)

        response = client.get("/api/reports/overall-summary", headers=auth_headers(users["finance_team"]))
        denied = client.get("/api/reports/overall-summary", headers=auth_headers(users["event_team_lead"]))

        assert response.status_code == 200
        body = response.json()
        assert body["bookables"]["event"]["approved"] == 1
        assert body["bookables"]["workshop"]["pending"] == 0
        assert body["totals"]["total_requested_budget"] == 300
        assert body["totals"]["total_approved_budget"] == 250
        assert body["expenses_by_category"] == {"Catering": 100}
        assert denied.status_code == 403
