"""
Expense Routes
Expenses recorded against event and workshop budgets
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from finance_portal.config.database import get_db
from finance_portal.models.user import User
from finance_portal.schemas.expense import ExpenseCreate, ExpenseListResponse, ExpenseResponse, ExpenseUpdate
from finance_portal.services.auth_service import auth_service
from finance_portal.services.expense_service import expense_service

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_in: ExpenseCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_expenses"))
):
    """
    Record an expense

    The stored amount is always quantity x unit_price; a client amount that
    differs by more than 0.01 is rejected.
    """
    expense = expense_service.create_expense(db, expense_in, current_user, background_tasks)
    return {
        "success": True,
        "message": "Expense added successfully",
        "expense": ExpenseResponse.model_validate(expense)
    }


@router.get("/bookable/{bookable_id}", response_model=ExpenseListResponse)
async def list_expenses(
    bookable_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_user)
):
    expenses = expense_service.list_expenses(db, bookable_id, current_user)
    return {"total": len(expenses), "expenses": expenses}


@router.put("/{expense_id}")
async def update_expense(
    expense_id: int,
    expense_in: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_expenses"))
):
    expense = expense_service.update_expense(db, expense_id, expense_in, current_user)
    return {
        "success": True,
        "message": "Expense updated successfully",
        "expense": ExpenseResponse.model_validate(expense)
    }


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_expenses"))
):
    expense_service.delete_expense(db, expense_id, current_user)
    return {
        "success": True,
        "message": "Expense deleted successfully"
    }
