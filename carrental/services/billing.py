# carrental/services/billing.py
"""
Billing and derived-field arithmetic for bookings.
Every figure shown for a booking (create response, detail view, cancel and
completion snapshots, reports) goes through these functions.

    discount_amount   = total_bill * discount_percentage / 100
    discounted_total  = total_bill - discount_amount
    remaining_balance = discounted_total - advance_paid
"""

from dataclasses import dataclass, asdict
from datetime import date


@dataclass
class BillingSnapshot:
    total_amount: float
    advance_paid: float
    discount: float
    discount_amount: float
    discounted_total: float
    remaining: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CompletionBilling:
    original_amount: float
    additional_charges: float
    total_amount: float
    advance_paid: float
    remaining_payment_received: float
    discount: float
    discount_amount: float
    discounted_total: float
    final_remaining_balance: float

    def to_dict(self) -> dict:
        return asdict(self)


def compute_billing(total_bill: float, advance_paid: float, discount_percentage: float = 0) -> BillingSnapshot:
    discount_percentage = discount_percentage or 0
    discount_amount = total_bill * discount_percentage / 100
    discounted_total = total_bill - discount_amount
    return BillingSnapshot(
        total_amount=total_bill,
        advance_paid=advance_paid,
        discount=discount_percentage,
        discount_amount=discount_amount,
        discounted_total=discounted_total,
        remaining=discounted_total - advance_paid,
    )


def booking_billing(booking) -> BillingSnapshot:
    """Billing snapshot for a stored booking."""
    return compute_billing(booking.total_bill, booking.advance_paid, booking.discount_percentage)


def compute_completion_billing(
    total_bill: float,
    additional_charges: float,
    advance_paid: float,
    remaining_payment: float,
    discount_percentage: float = 0,
) -> CompletionBilling:
    """Final bill on completion: extra charges are added before the discount is reapplied."""
    updated_total = total_bill + additional_charges
    snapshot = compute_billing(updated_total, advance_paid, discount_percentage)
    return CompletionBilling(
        original_amount=total_bill,
        additional_charges=additional_charges,
        total_amount=updated_total,
        advance_paid=advance_paid,
        remaining_payment_received=remaining_payment,
        discount=snapshot.discount,
        discount_amount=snapshot.discount_amount,
        discounted_total=snapshot.discounted_total,
        final_remaining_balance=snapshot.discounted_total - advance_paid - remaining_payment,
    )


def booking_revenue(booking) -> float:
    """Net revenue of one booking. Callers exclude cancelled bookings."""
    return booking.total_bill * (100 - (booking.discount_percentage or 0)) / 100


def trip_duration_days(start_date: date, end_date: date) -> int:
    return abs((end_date - start_date).days)
