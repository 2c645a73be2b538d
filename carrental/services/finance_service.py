# carrental/services/finance_service.py
"""
Read-side financial aggregation: dashboard, monthly report, per-vehicle
financials and reports, stakeholder fleet summary, fleet availability.

    revenue(b)     = total_bill * (100 - discount_percentage) / 100
    total_revenue  = sum of revenue(b) over non-cancelled bookings in scope
    commission     = total_revenue * c / 100
    total_profit   = total_revenue - commission - total_expenses

Nothing here writes to the database.
"""

import calendar
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Iterable, Optional
from sqlalchemy.orm import Session
from carrental.config import settings
from carrental.exceptions import InvalidInputError
from carrental.models.booking import Booking
from carrental.models.customer import Customer
from carrental.models.expense import Expense
from carrental.models.user import User
from carrental.models.vehicle import Vehicle
from carrental.services.availability_service import unavailable_vehicle_ids
from carrental.services.billing import booking_revenue, trip_duration_days
from carrental.utils.logger import get_logger

logger = get_logger(__name__)

MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]
PLACEHOLDER_IMAGE = "/placeholder.svg?height=200&width=300"


# ── Pure helpers ────────────────────────────────────────────────────────────
@dataclass
class FinancialSummary:
    total_revenue: float
    commission: float
    commission_amount: float
    total_expenses: float
    total_profit: float

    def to_dict(self) -> dict:
        return asdict(self)


def total_revenue(bookings: Iterable[Booking]) -> float:
    return sum(booking_revenue(b) for b in bookings if b.status != "cancelled")


def total_expenses(expenses: Iterable[Expense]) -> float:
    return sum(e.amount for e in expenses)


def summarize(bookings, expenses, commission_percentage: Optional[float] = 0) -> FinancialSummary:
    commission = commission_percentage or 0
    revenue = total_revenue(bookings)
    spent = total_expenses(expenses)
    commission_amount = revenue * commission / 100
    return FinancialSummary(
        total_revenue=revenue,
        commission=commission,
        commission_amount=commission_amount,
        total_expenses=spent,
        total_profit=revenue - commission_amount - spent,
    )


def percent_change(current: float, previous: float) -> str:
    """Month-over-month change as a display string, e.g. "+12.5%"."""
    if previous == 0:
        return "+100%" if current > 0 else "0%"
    change = (current - previous) / previous * 100
    return f"{'+' if change > 0 else ''}{change:.1f}%"


def signed_delta(current: int, previous: int) -> str:
    delta = current - previous
    return f"{'+' if delta > 0 else ''}{delta} from last month"


def shift_month(year: int, month: int, delta: int) -> tuple:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int) -> tuple:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def trailing_months(today: date, count: int = 6) -> list:
    """(year, month) pairs for the last `count` months, oldest first, ending with today's month."""
    return [shift_month(today.year, today.month, -i) for i in range(count - 1, -1, -1)]


def _day_span(first: date, last: date) -> tuple:
    """Datetime bounds covering whole days, for DateTime columns."""
    return datetime.combine(first, datetime.min.time()), datetime.combine(last, datetime.max.time())


# ── Queries ─────────────────────────────────────────────────────────────────
def _bookings_starting_in(db: Session, first: date, last: date, vehicle_id: Optional[int] = None):
    q = db.query(Booking).filter(Booking.start_date >= first, Booking.start_date <= last)
    if vehicle_id is not None:
        q = q.filter(Booking.vehicle_id == vehicle_id)
    return q.all()


def _expenses_dated_in(db: Session, first: date, last: date, vehicle_id: Optional[int] = None):
    lo, hi = _day_span(first, last)
    q = db.query(Expense).filter(Expense.date >= lo, Expense.date <= hi)
    if vehicle_id is not None:
        q = q.filter(Expense.vehicle_id == vehicle_id)
    return q.all()


def _active_vehicle_ids(db: Session, first: Optional[date] = None, last: Optional[date] = None) -> set:
    q = db.query(Booking.vehicle_id).filter(Booking.status == "active")
    if first and last:
        q = q.filter(Booking.start_date >= first, Booking.start_date <= last)
    return {row[0] for row in q.distinct().all()}


# ── Dashboard ───────────────────────────────────────────────────────────────
def dashboard(db: Session, today: date) -> dict:
    this_first, this_last = month_bounds(today.year, today.month)
    prev_first, prev_last = month_bounds(*shift_month(today.year, today.month, -1))

    current_revenue = total_revenue(_bookings_starting_in(db, this_first, this_last))
    previous_revenue = total_revenue(_bookings_starting_in(db, prev_first, prev_last))

    active_now = db.query(Booking).filter(Booking.status == "active").count()
    active_prev = (
        db.query(Booking)
        .filter(Booking.status == "active", Booking.start_date >= prev_first, Booking.start_date <= prev_last)
        .count()
    )

    fleet_size = db.query(Vehicle).filter(Vehicle.deleted.is_(False)).count()
    available_now = fleet_size - len(_active_vehicle_ids(db))
    available_prev = fleet_size - len(_active_vehicle_ids(db, prev_first, prev_last))

    customers_now = db.query(Customer).count()
    customers_prev = db.query(Customer).filter(Customer.created_at <= _day_span(prev_first, prev_last)[1]).count()

    series = []
    for year, month in trailing_months(today, 6):
        first, last = month_bounds(year, month)
        series.append({
            "month": calendar.month_abbr[month],
            "revenue": total_revenue(_bookings_starting_in(db, first, last)),
            "expenses": total_expenses(_expenses_dated_in(db, first, last)),
        })

    recent = (
        db.query(Booking)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(settings.RECENT_BOOKINGS_LIMIT)
        .all()
    )

    return {
        "stats": {
            "total_revenue": current_revenue,
            "revenue_sub_text": f"{percent_change(current_revenue, previous_revenue)} from last month",
            "active_bookings": active_now,
            "active_sub_text": signed_delta(active_now, active_prev),
            "available_cars": available_now,
            "cars_sub_text": signed_delta(available_now, available_prev),
            "total_customers": customers_now,
            "customer_sub_text": signed_delta(customers_now, customers_prev),
        },
        "revenue_data": series,
        "recent_bookings": [
            {
                "id": b.id,
                "car_model": b.vehicle.model,
                "customer_name": b.customer.full_name,
                "start_date": b.start_date,
                "end_date": b.end_date,
                "amount": booking_revenue(b) if b.status != "cancelled" else 0,
                "status": b.status,
            }
            for b in recent
        ],
    }


# ── Monthly report ──────────────────────────────────────────────────────────
def monthly_report(db: Session, month_name: str, year: int) -> dict:
    if not month_name or not year:
        raise InvalidInputError("Month and year are required")
    try:
        month = MONTH_NAMES.index(month_name.lower()) + 1
    except ValueError:
        raise InvalidInputError("Invalid month name")

    prev_year, prev_month = shift_month(year, month, -1)
    first, last = month_bounds(year, month)
    prev_first, prev_last = month_bounds(prev_year, prev_month)

    bookings = sorted(_bookings_starting_in(db, first, last), key=lambda b: (b.start_date, b.id))
    expenses = _expenses_dated_in(db, first, last)
    revenue = total_revenue(bookings)
    spent = total_expenses(expenses)

    prev_revenue = total_revenue(_bookings_starting_in(db, prev_first, prev_last))
    prev_spent = total_expenses(_expenses_dated_in(db, prev_first, prev_last))

    def count(status):
        return sum(1 for b in bookings if b.status == status)

    logger.debug(f"Monthly report {month_name} {year}: {len(bookings)} bookings, revenue={revenue}")
    return {
        "stats": {
            "total_bookings": len(bookings),
            "active_bookings": count("active"),
            "completed_bookings": count("completed"),
            "cancelled_bookings": count("cancelled"),
            "total_revenue": revenue,
            "revenue_percent": percent_change(revenue, prev_revenue),
            "total_expenses": spent,
            "expenses_percent": percent_change(spent, prev_spent),
            "net_profit": revenue - spent,
            "net_percent": percent_change(revenue - spent, prev_revenue - prev_spent),
        },
        "booking_report_data": [
            {
                "id": b.id,
                "car_model": b.vehicle.model,
                "registration_number": b.vehicle.registration_number,
                "customer_name": b.customer.full_name,
                "driver_name": b.driver.name if b.driver else "Self",
                "start_date": b.start_date,
                "end_date": b.end_date,
                "total_amount": booking_revenue(b),
                "status": b.status,
            }
            for b in bookings
        ],
        "revenue_report_data": [
            {
                "month": MONTH_NAMES[prev_month - 1].capitalize(),
                "revenue": prev_revenue,
                "expenses": prev_spent,
                "profit": prev_revenue - prev_spent,
            },
            {
                "month": MONTH_NAMES[month - 1].capitalize(),
                "revenue": revenue,
                "expenses": spent,
                "profit": revenue - spent,
            },
        ],
    }


# ── Per vehicle ─────────────────────────────────────────────────────────────
def _vehicle_status(db: Session, vehicle_id: int) -> str:
    active = db.query(Booking).filter(Booking.vehicle_id == vehicle_id, Booking.status == "active").first()
    return "booked" if active else "available"


def _expense_row(e: Expense) -> dict:
    return {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "amount": e.amount,
        "date": e.date.date(),
        "category": e.category,
    }


def vehicle_financials(db: Session, vehicle: Vehicle, today: date) -> dict:
    """Lifetime figures for one vehicle, net of the owner's commission."""
    bookings = (
        db.query(Booking)
        .filter(Booking.vehicle_id == vehicle.id)
        .order_by(Booking.start_date.desc())
        .all()
    )
    expenses = db.query(Expense).filter(Expense.vehicle_id == vehicle.id).order_by(Expense.date.desc()).all()
    commission = vehicle.owner.commission_percentage if vehicle.owner else 0
    summary = summarize(bookings, expenses, commission)

    monthly = [0.0] * 12
    for b in bookings:
        if b.status != "cancelled" and b.start_date.year == today.year:
            monthly[b.start_date.month - 1] += booking_revenue(b)

    return {
        "vehicle": {
            "id": vehicle.id,
            "model": vehicle.model,
            "year": vehicle.year,
            "color": vehicle.color,
            "variant": vehicle.variant,
            "registration_number": vehicle.registration_number,
            "owner": vehicle.owner.name if vehicle.owner else None,
            "status": _vehicle_status(db, vehicle.id),
        },
        "financials": summary.to_dict(),
        "bookings": [
            {
                "id": b.id,
                "customer_name": b.customer.full_name if b.customer else "N/A",
                "driver_name": b.driver.name if b.driver else "Self Drive",
                "start_date": b.start_date,
                "end_date": b.end_date,
                "total_amount": booking_revenue(b),
                "status": b.status,
            }
            for b in bookings
        ],
        "expenses": [_expense_row(e) for e in expenses],
        "monthly_stats": [
            {"month": calendar.month_abbr[i + 1], "revenue": monthly[i]} for i in range(12)
        ],
    }


def vehicle_report(db: Session, vehicle: Vehicle, today: date) -> dict:
    """Trailing six-month performance report for one vehicle."""
    start_year, start_month = shift_month(today.year, today.month, -6)
    window_start = date(start_year, start_month, min(today.day, calendar.monthrange(start_year, start_month)[1]))

    bookings = _bookings_starting_in(db, window_start, date.max, vehicle_id=vehicle.id)
    bookings.sort(key=lambda b: (b.start_date, b.id))
    expenses = _expenses_dated_in(db, window_start, today, vehicle_id=vehicle.id)

    revenue = total_revenue(bookings)
    spent = total_expenses(expenses)

    window_days = max((today - window_start).days, 1)
    booked_days = sum(
        trip_duration_days(b.start_date, b.end_date)
        for b in bookings if b.status in ("completed", "active")
    )
    completed = [b for b in bookings if b.status == "completed"]
    average_duration = (
        round(sum(trip_duration_days(b.start_date, b.end_date) for b in completed) / len(completed))
        if completed else 0
    )

    per_month = {}
    for b in bookings:
        if b.status == "cancelled":
            continue
        key = (b.start_date.year, b.start_date.month)
        revenue_sum, count = per_month.get(key, (0.0, 0))
        per_month[key] = (revenue_sum + booking_revenue(b), count + 1)

    months = trailing_months(today, 6)
    return {
        "id": vehicle.id,
        "model": vehicle.model,
        "variant": vehicle.variant or "N/A",
        "registration_number": vehicle.registration_number,
        "year": vehicle.year,
        "color": vehicle.color,
        "chassis_number": vehicle.chassis_number,
        "engine_number": vehicle.engine_number,
        "total_bookings": sum(1 for b in bookings if b.status != "cancelled"),
        "total_revenue": round(revenue),
        "total_expenses": round(spent),
        "net_profit": round(revenue - spent),
        "utilization_rate": round(booked_days / window_days * 100),
        "average_booking_duration": average_duration,
        "booking_history": [
            {
                "id": b.id,
                "customer_name": b.customer.full_name if b.customer else "N/A",
                "start_date": b.start_date,
                "end_date": b.end_date,
                "amount": booking_revenue(b),
                "status": b.status.capitalize(),
            }
            for b in bookings
        ],
        "expenses": [_expense_row(e) for e in expenses],
        "monthly_revenue": [
            {"month": calendar.month_abbr[m], "revenue": per_month.get((y, m), (0.0, 0))[0]} for y, m in months
        ],
        "monthly_bookings": [
            {"month": calendar.month_abbr[m], "bookings": per_month.get((y, m), (0.0, 0))[1]} for y, m in months
        ],
    }


# ── Stakeholders ────────────────────────────────────────────────────────────
def stakeholder_vehicles(db: Session, stakeholder: User) -> list:
    """Vehicles owned by a stakeholder with closed-booking revenue and profit after commission."""
    commission = stakeholder.commission_percentage or 0
    vehicles = (
        db.query(Vehicle)
        .filter(Vehicle.owner_id == stakeholder.id, Vehicle.deleted.is_(False))
        .order_by(Vehicle.model)
        .all()
    )
    rows = []
    for v in vehicles:
        closed = db.query(Booking).filter(Booking.vehicle_id == v.id, Booking.status != "active").all()
        revenue = total_revenue(closed)
        rows.append({
            "id": v.id,
            "model": v.model,
            "year": v.year,
            "color": v.color,
            "variant": v.variant,
            "registration_number": v.registration_number,
            "chassis_number": v.chassis_number,
            "engine_number": v.engine_number,
            "image": v.image or PLACEHOLDER_IMAGE,
            "available": _vehicle_status(db, v.id) == "available",
            "total_bookings": sum(1 for b in closed if b.status != "cancelled"),
            "total_revenue": revenue,
            "total_profit": round(revenue * (100 - commission) / 100),
        })
    return rows


# ── Fleet availability ──────────────────────────────────────────────────────
def fleet_availability(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    """Fleet grouped by model, with availability for the optional date range."""
    blocked = set()
    if start_date and end_date:
        if start_date > end_date:
            raise InvalidInputError("Start date must be before end date")
        blocked = unavailable_vehicle_ids(db, start_date, end_date)

    vehicles = db.query(Vehicle).filter(Vehicle.deleted.is_(False)).order_by(Vehicle.id).all()
    groups = {}
    for v in vehicles:
        completed = db.query(Booking).filter(Booking.vehicle_id == v.id, Booking.status == "completed").all()
        available = v.id not in blocked
        color = v.color.lower()
        group = groups.get(v.model)
        if group is None:
            groups[v.model] = {
                "id": len(groups) + 1,
                "name": v.model,
                "image": v.image or PLACEHOLDER_IMAGE,
                "available_colors": [color],
                "available_count": 1 if available else 0,
                "total_count": 1,
                "vehicle_ids": [v.id],
                "available_vehicle_ids": [v.id] if available else [],
                "stats": {
                    "total_bookings": len(completed),
                    "total_revenue": sum(b.total_bill for b in completed),
                },
            }
            continue
        if color not in group["available_colors"]:
            group["available_colors"].append(color)
        group["total_count"] += 1
        group["vehicle_ids"].append(v.id)
        if available:
            group["available_count"] += 1
            group["available_vehicle_ids"].append(v.id)
        group["stats"]["total_bookings"] += len(completed)
        group["stats"]["total_revenue"] += sum(b.total_bill for b in completed)

    response = {
        "cars": list(groups.values()),
        "summary": {
            "total_models": len(groups),
            "total_cars": len(vehicles),
            "available_cars": sum(1 for v in vehicles if v.id not in blocked),
        },
    }
    if start_date and end_date:
        response["search_period"] = {
            "start_date": start_date,
            "end_date": end_date,
            "duration_days": trip_duration_days(start_date, end_date),
        }
    return response
