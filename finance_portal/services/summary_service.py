"""
Summary Service
Budget versus expense aggregation for bookables and portal-wide reports
"""

from collections import defaultdict
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from finance_portal.models.bookable import Bookable, BookableKind, BookableStatus
from finance_portal.models.budget import BudgetCategory, BudgetLine
from finance_portal.models.expense import Expense
from finance_portal.utils.helpers import round_money


def _category_dict(category: BudgetCategory) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "order": category.order,
        "is_active": category.is_active,
    }


class SummaryService:
    """Read-only aggregation, recomputed on every call"""

    def summarize(self, db: Session, bookable_id: int) -> List[dict]:
        """
        Budget and spend per budget line of one bookable

        Expenses in a category without a budget line are not listed. The
        budget amount is the approved amount once finance has set one,
        otherwise the requested amount. Remaining may be negative.

        Args:
            db: Database session
            bookable_id: Bookable ID

        Returns:
            list: One entry per budget line ordered by category order
        """
        lines = db.query(BudgetLine).join(BudgetCategory).filter(
            BudgetLine.bookable_id == bookable_id
        ).order_by(BudgetCategory.order, BudgetCategory.id).all()
        if not lines:
            return []

        spend_rows = db.query(
            Expense.category_id,
            func.coalesce(func.sum(Expense.amount), 0.0),
            func.count(Expense.id)
        ).filter(
            Expense.bookable_id == bookable_id
        ).group_by(Expense.category_id).all()
        spend_by_category = {row[0]: (float(row[1]), int(row[2])) for row in spend_rows}

        summary = []
        for line in lines:
            budget_amount = float(line.effective_amount)
            total_expense, expense_count = spend_by_category.get(line.category_id, (0.0, 0))
            summary.append({
                "category": _category_dict(line.category),
                "budget_amount": budget_amount,
                "total_expense": total_expense,
                "remaining": round_money(budget_amount - total_expense),
                "expense_count": expense_count,
            })
        return summary

    def financial_report(self, db: Session, bookable: Bookable) -> dict:
        """Budget lines, expenses and totals of one bookable"""
        lines = db.query(BudgetLine).filter(BudgetLine.bookable_id == bookable.id).all()
        expenses = db.query(Expense).filter(
            Expense.bookable_id == bookable.id
        ).order_by(Expense.created_at).all()

        total_budget = sum(line.amount for line in lines)
        total_approved = sum(line.approved_amount or 0.0 for line in lines)
        total_sponsor = sum(line.sponsor_amount or 0.0 for line in lines)
        total_effective = sum(line.effective_amount for line in lines)
        total_expenses = sum(expense.amount for expense in expenses)

        return {
            "bookable": {
                "id": bookable.id,
                "kind": bookable.kind.value,
                "title": bookable.title,
                "status": bookable.status.value,
                "start_date": bookable.start_date.isoformat() if bookable.start_date else None,
                "end_date": bookable.end_date.isoformat() if bookable.end_date else None,
            },
            "budget_lines": [
                {
                    "category": line.category.name,
                    "amount": line.amount,
                    "sponsor_amount": line.sponsor_amount,
                    "approved_amount": line.approved_amount,
                    "remarks": line.remarks,
                }
                for line in lines
            ],
            "expenses": [
                {
                    "id": expense.id,
                    "category": expense.category.name,
                    "item_name": expense.item_name,
                    "quantity": expense.quantity,
                    "unit_price": expense.unit_price,
                    "amount": expense.amount,
                    "added_by": expense.added_by.full_name,
                    "created_at": expense.created_at.isoformat() if expense.created_at else None,
                }
                for expense in expenses
            ],
            "summary": self.summarize(db, bookable.id),
            "totals": {
                "total_budget": total_budget,
                "total_approved_budget": total_approved,
                "total_sponsor_contribution": total_sponsor,
                "total_expenses": total_expenses,
                "remaining": round_money(total_effective - total_expenses),
            },
        }

    def overall_summary(self, db: Session) -> dict:
        """Portal-wide counts and money totals for finance dashboards"""
        counts = defaultdict(lambda: defaultdict(int))
        for kind, status, count in db.query(
            Bookable.kind, Bookable.status, func.count(Bookable.id)
        ).group_by(Bookable.kind, Bookable.status).all():
            counts[kind.value][status.value] = count

        by_kind = {
            kind.value: {status.value: counts[kind.value][status.value] for status in BookableStatus}
            for kind in BookableKind
        }

        total_requested = db.query(func.coalesce(func.sum(BudgetLine.amount), 0.0)).scalar()
        total_approved = db.query(func.coalesce(func.sum(BudgetLine.approved_amount), 0.0)).scalar()
        total_sponsor = db.query(func.coalesce(func.sum(BudgetLine.sponsor_amount), 0.0)).scalar()
        total_expenses = db.query(func.coalesce(func.sum(Expense.amount), 0.0)).scalar()

        spend_by_category = db.query(
            BudgetCategory.name,
            func.coalesce(func.sum(Expense.amount), 0.0)
        ).join(Expense, Expense.category_id == BudgetCategory.id).group_by(
            BudgetCategory.name
        ).order_by(BudgetCategory.name).all()

        return {
            "bookables": by_kind,
            "totals": {
                "total_requested_budget": float(total_requested),
                "total_approved_budget": float(total_approved),
                "total_sponsor_contribution": float(total_sponsor),
                "total_expenses": float(total_expenses),
            },
            "expenses_by_category": {name: float(total) for name, total in spend_by_category},
        }


# Create singleton instance
summary_service = SummaryService()
