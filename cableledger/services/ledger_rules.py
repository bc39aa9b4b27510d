"""Authoritative balance derivations for bills and subscribers.

These rules are always re-derived server side. `total_payable`,
`remaining_balance` and `status` are never taken from client input.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from cableledger.core.exceptions import InvalidAmountError
from cableledger.models import Bill, BillStatus, Subscriber
from cableledger.utils.periods import BillingPeriod

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_money(value: object, field: str = "amount") -> Decimal:
    """Parse a monetary value into a 2-place Decimal."""
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(f"{field} is required.")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(f"{field} must be a number, got {value!r}.") from exc
    if not amount.is_finite():
        raise InvalidAmountError(f"{field} must be a finite number.")
    return amount.quantize(CENT)


def bill_status(paid_amount: Decimal, total_payable: Decimal) -> BillStatus:
    # Zero paid reads as Unpaid even when carried credit makes total_payable <= 0.
    if paid_amount == ZERO:
        return BillStatus.UNPAID
    if paid_amount >= total_payable:
        return BillStatus.PAID
    return BillStatus.PARTIAL


def apply_bill_derivations(bill: Bill) -> Bill:
    """Recompute remaining balance and status after any bill mutation."""
    paid = Decimal(bill.paid_amount or ZERO)
    total = Decimal(bill.total_payable)
    bill.remaining_balance = total - paid
    bill.status = bill_status(paid, total)
    return bill


def open_bill(subscriber: Subscriber, period: BillingPeriod, generated_by: int | None) -> Bill:
    """Create the period's bill and fold its charge into the subscriber's running balance."""
    package_amount = Decimal(subscriber.package_amount)
    carried = Decimal(subscriber.previous_balance or ZERO)
    bill = Bill(
        scope_id=subscriber.scope_id,
        subscriber_id=subscriber.id,
        month=period.month,
        month_number=period.month_number,
        year=period.year,
        package_amount=package_amount,
        previous_balance=carried,
        total_payable=carried + package_amount,
        paid_amount=ZERO,
        generated_by=generated_by,
    )
    apply_bill_derivations(bill)
    subscriber.previous_balance = carried + package_amount
    return bill
