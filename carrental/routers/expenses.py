# carrental/routers/expenses.py
"""Expense ledger."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, require_roles
from carrental.schemas.expense import ExpenseCreate
from carrental.services import expense_service

router = APIRouter()
staff = require_roles("admin", "employee")


@router.get("/expenses", summary="List expenses with filters and summary")
def list_expenses(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category: Optional[str] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    sort: str = "date",
    db: Session = Depends(get_db),
    actor: Actor = Depends(staff),
):
    """sort: date (newest first), date_asc, amount (largest first), amount_asc."""
    return expense_service.list_expenses(db, start_date, end_date, category, min_amount, max_amount, sort)


@router.post("/expenses", status_code=status.HTTP_201_CREATED, summary="Record an expense")
def add_expense(body: ExpenseCreate, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    expense = expense_service.create_expense(db, body, actor.user)
    return {"message": "Expense added successfully", "expense": expense_service.expense_row(expense)}


@router.get("/expenses/statistics", summary="Expense totals by category and month")
def expense_statistics(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(staff),
):
    return expense_service.expense_statistics(db, start_date, end_date)


@router.delete("/expenses/{expense_id}", summary="Delete an expense")
def delete_expense(expense_id: int, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    deleted = expense_service.delete_expense(db, expense_id, actor.user)
    return {"message": "Expense deleted successfully", "deleted_expense": deleted}
