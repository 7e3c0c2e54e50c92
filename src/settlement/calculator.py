"""
Monthly settlement calculations.

Pure functions shared by every service that needs a monthly-equivalent
amount, an activity check, a per-category breakdown or a member's share.
Inputs are stored rows (dictionaries with snake_case attributes).
"""

from collections import OrderedDict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
import logging

from shared.exceptions import ValidationError

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = 4.33
DAYS_PER_MONTH = 30

# Sum of all members' quotas may exceed 100 by this much
QUOTA_CEILING = 110.0

UNCATEGORIZED_NAME = "Altro"
UNCATEGORIZED_COLOR = "#6b7280"

OPEN_START = date(2000, 1, 1)
OPEN_END = date(2100, 12, 1)

# Absorbs binary float noise only, far below a cent
SETTLED_EPSILON = 1e-9


def normalize_monthly(amount: float, frequency_type: str, frequency_value: int = 1) -> float:
    """
    Convert a per-cycle amount to its monthly equivalent.

    Args:
        amount: Amount charged each cycle
        frequency_type: weekly, monthly, yearly, days or months
        frequency_value: N in "every N days" / "every N months"

    Returns:
        Monthly-equivalent amount; unknown frequency types pass through unchanged
    """
    amount = float(amount)

    if frequency_type == 'weekly':
        return amount * WEEKS_PER_MONTH
    if frequency_type == 'monthly':
        return amount
    if frequency_type == 'yearly':
        return amount / 12
    if frequency_type in ('days', 'months'):
        value = int(frequency_value or 0)
        if value < 1:
            # Writes reject this; rows edited out of band are clamped
            logger.warning(f"Clamping frequency value {frequency_value} to 1")
            value = 1
        if frequency_type == 'days':
            return amount * (DAYS_PER_MONTH / value)
        return amount / value

    return amount


def monthly_amount(expense: Dict[str, Any]) -> float:
    """Monthly-equivalent amount of a stored recurring expense."""
    return normalize_monthly(
        expense.get('amount', 0),
        expense.get('frequency_type'),
        expense.get('frequency_value', 1)
    )


def is_active_for_month(expense: Dict[str, Any], month: int, year: int) -> bool:
    """
    Whether a recurring expense applies to the given month.

    Bounds are compared at month granularity; a bound with only one of
    month/year set is treated as open.
    """
    if not expense.get('is_active', True):
        return False

    start = _month_start(expense.get('start_year'), expense.get('start_month'), OPEN_START)
    end = _month_start(expense.get('end_year'), expense.get('end_month'), OPEN_END)
    current = date(int(year), int(month), 1)

    return start <= current <= end


def total_monthly(expenses: Iterable[Dict[str, Any]]) -> float:
    """Sum of the monthly-equivalent amounts of the given expenses."""
    return sum((monthly_amount(expense) for expense in expenses), 0.0)


def aggregate_by_category(
    expenses: Iterable[Dict[str, Any]],
    categories: Iterable[Dict[str, Any]]
) -> Dict[str, Dict[str, Any]]:
    """
    Group expenses by category name and sum their monthly amounts.

    Returns:
        Mapping of category name to {'total', 'color'}, in first-seen order
    """
    categories_by_id = {category['category_id']: category for category in categories}
    totals = OrderedDict()

    for expense in expenses:
        category = categories_by_id.get(expense.get('category_id'))
        name = category['name'] if category else UNCATEGORIZED_NAME

        if name not in totals:
            color = category.get('color') if category else None
            totals[name] = {'total': 0.0, 'color': color or UNCATEGORIZED_COLOR}

        totals[name]['total'] += monthly_amount(expense)

    return dict(totals)


def allocate_quotas(
    total: float,
    members: Iterable[Dict[str, Any]],
    payments: Iterable[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Compute each member's share of the monthly total and what they have paid.

    Args:
        total: Monthly total over all active recurring expenses
        members: Group members with quota_percent
        payments: Settlement payments recorded for the month

    Returns:
        One entry per member: member, calculated, paid, confirmed, progress
    """
    paid_by_member = {}
    for payment in payments:
        member_id = payment.get('member_id')
        paid_by_member[member_id] = paid_by_member.get(member_id, 0.0) + float(payment.get('amount_paid', 0))

    quotas = []
    for member in members:
        calculated = float(total) * float(member.get('quota_percent', 0)) / 100
        paid = paid_by_member.get(member.get('member_id'), 0.0)

        quotas.append({
            'member': member,
            'calculated': calculated,
            'paid': paid,
            'confirmed': is_settled(paid, calculated),
            'progress': payment_progress(paid, calculated)
        })

    return quotas


def is_settled(paid: float, calculated: float) -> bool:
    """Whether payments cover the calculated share (paid >= calculated)."""
    return float(paid) + SETTLED_EPSILON >= float(calculated)


def payment_progress(paid: float, calculated: float) -> float:
    """
    Percentage of the calculated share already paid, capped at 100.

    A zero share has no meaningful ratio and reports 0.
    """
    if calculated <= 0:
        return 0.0

    return round(min(float(paid) / float(calculated) * 100, 100.0), 2)


def check_quota_ceiling(
    members: Iterable[Dict[str, Any]],
    quota_percent: float,
    member_id: Optional[str] = None
) -> float:
    """
    Ensure a new or updated quota keeps the group total within the ceiling.

    Args:
        members: Current members of the group
        quota_percent: Proposed quota
        member_id: Member being updated (excluded from the sum), None when adding

    Returns:
        The resulting group total

    Raises:
        ValidationError: If the total would exceed QUOTA_CEILING
    """
    others = sum(
        float(member.get('quota_percent', 0))
        for member in members
        if member.get('member_id') != member_id
    )
    new_total = round(others + float(quota_percent), 6)

    if new_total > QUOTA_CEILING:
        raise ValidationError(f"Total quota exceeds {QUOTA_CEILING:g}%")

    return new_total


def _month_start(year: Optional[int], month: Optional[int], default: date) -> date:
    if year is None or month is None:
        return default
    return date(int(year), int(month), 1)
