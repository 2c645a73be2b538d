# carrental/services/expense_service.py
"""
Expense ledger: record, filter, summarise, delete.
"""

from datetime import date, datetime
from typing import Optional
from sqlalchemy import extract, func
from sqlalchemy.orm import Session
from carrental.exceptions import InvalidInputError, NotFoundError, PermissionDeniedError
from carrental.models.expense import Expense, EXPENSE_CATEGORIES
from carrental.models.user import User
from carrental.models.vehicle import Vehicle
from carrental.schemas.expense import ExpenseCreate
from carrental.utils.logger import get_logger

logger = get_logger(__name__)

SORT_ORDERS = {
    "date": Expense.date.desc(),
    "date_asc": Expense.date.asc(),
    "amount": Expense.amount.desc(),
    "amount_asc": Expense.amount.asc(),
}


def _date_window(q, start_date: Optional[date], end_date: Optional[date]):
    if start_date:
        q = q.filter(Expense.date >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        q = q.filter(Expense.date <= datetime.combine(end_date, datetime.max.time()))
    return q


def expense_row(e: Expense) -> dict:
    return {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "amount": e.amount,
        "date": e.date,
        "category": e.category,
        "added_by": e.author.name if e.author else None,
        "office": e.office,
        "vehicle_id": e.vehicle_id,
        "created_at": e.created_at,
    }


def create_expense(db: Session, body: ExpenseCreate, actor: User) -> Expense:
    if body.vehicle_id is not None:
        if not db.query(Vehicle).filter(Vehicle.id == body.vehicle_id).first():
            raise NotFoundError("Vehicle not found")
    expense = Expense(
        title=body.title,
        description=body.description,
        amount=body.amount,
        date=body.date or datetime.utcnow(),
        category=body.category,
        office=body.office,
        vehicle_id=body.vehicle_id,
        added_by=actor.id,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info(f"Expense {expense.id} added: {expense.category} {expense.amount} by user {actor.id}")
    return expense


def list_expenses(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category: Optional[str] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    sort: str = "date",
) -> dict:
    """Filtered expenses plus count/total summary broken down by category."""
    q = _date_window(db.query(Expense), start_date, end_date)
    if category:
        if category not in EXPENSE_CATEGORIES:
            raise InvalidInputError("Invalid category")
        q = q.filter(Expense.category == category)
    if min_amount is not None:
        q = q.filter(Expense.amount >= min_amount)
    if max_amount is not None:
        q = q.filter(Expense.amount <= max_amount)
    expenses = q.order_by(SORT_ORDERS.get(sort, SORT_ORDERS["date"]), Expense.id.desc()).all()

    by_category = {}
    for e in expenses:
        bucket = by_category.setdefault(e.category, {"count": 0, "total": 0.0})
        bucket["count"] += 1
        bucket["total"] += e.amount

    return {
        "expenses": [expense_row(e) for e in expenses],
        "summary": {
            "total_expenses": len(expenses),
            "total_amount": sum(e.amount for e in expenses),
            "by_category": by_category,
        },
    }


def expense_statistics(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    category_rows = (
        _date_window(
            db.query(
                Expense.category,
                func.sum(Expense.amount),
                func.count(Expense.id),
                func.avg(Expense.amount),
            ),
            start_date, end_date,
        )
        .group_by(Expense.category)
        .order_by(func.sum(Expense.amount).desc())
        .all()
    )
    year_col = extract("year", Expense.date)
    month_col = extract("month", Expense.date)
    monthly_rows = (
        _date_window(db.query(year_col, month_col, func.sum(Expense.amount), func.count(Expense.id)), start_date, end_date)
        .group_by(year_col, month_col)
        .order_by(year_col.desc(), month_col.desc())
        .all()
    )

    categories = [
        {"category": cat, "total_amount": total or 0, "count": count, "avg_amount": avg or 0}
        for cat, total, count, avg in category_rows
    ]
    count = sum(c["count"] for c in categories)
    amount = sum(c["total_amount"] for c in categories)
    return {
        "category_statistics": categories,
        "monthly_statistics": [
            {"year": int(y), "month": int(m), "total_amount": total or 0, "count": n}
            for y, m, total, n in monthly_rows
        ],
        "summary": {
            "total_expenses": count,
            "total_amount": amount,
            "average_expense": amount / count if count else 0,
        },
    }


def delete_expense(db: Session, expense_id: int, actor: User) -> dict:
    """Only admins and the expense's author may delete it."""
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFoundError("Expense not found")
    if actor.role != "admin" and expense.added_by != actor.id:
        raise PermissionDeniedError("You don't have permission to delete this expense")

    deleted = {
        "id": expense.id,
        "title": expense.title,
        "amount": expense.amount,
        "category": expense.category,
        "date": expense.date,
        "added_by": expense.author.name if expense.author else None,
        "deleted_at": datetime.utcnow(),
        "deleted_by": actor.id,
    }
    db.delete(expense)
    db.commit()
    logger.info(f"Expense {expense_id} deleted by user {actor.id}")
    return deleted
