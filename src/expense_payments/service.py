"""
Recurring expense payment reconciliation.

Recording that a recurring expense was paid in a given month writes two
rows: the per-month payment record and a mirrored one-time expense so the
payment also shows up among the month's actual spending. There is at most
one payment record per (expense, month, year); recording again overwrites
the amount instead of adding a second row.
"""

import uuid
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging
from boto3.dynamodb.conditions import Key, Attr

from shared.access import GroupAccess
from shared.config import Settings, get_settings
from shared.dynamodb import DynamoDBClient
from shared.validators import validate_amount, validate_month, validate_year
from shared.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def payment_key(expense_id: str, month: int, year: int) -> str:
    """Sort key of the payment record for an expense in a month."""
    return f"{expense_id}#{year:04d}-{month:02d}"


class ExpensePaymentService:
    """Service for recording payments of recurring expenses."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize expense payment service."""
        settings = settings or get_settings()
        endpoint = settings.endpoint_url

        self.expense_payments_table = DynamoDBClient(settings.expense_payments_table, endpoint)
        self.recurring_expenses_table = DynamoDBClient(settings.recurring_expenses_table, endpoint)
        self.one_time_expenses_table = DynamoDBClient(settings.one_time_expenses_table, endpoint)
        self.cascade_mirror_on_delete = settings.cascade_mirror_on_payment_delete
        self.access = GroupAccess(settings)

    def record_recurring_payment(
        self,
        user_id: str,
        group_id: str,
        expense_id: str,
        month: Any,
        year: Any,
        amount: Any
    ) -> Dict[str, Any]:
        """
        Record or overwrite the payment of a recurring expense for a month.

        Args:
            user_id: Acting user ID (must own the group)
            group_id: Group ID
            expense_id: Recurring expense ID
            month: Month (1-12)
            year: Year
            amount: Amount actually paid (may be zero)

        Returns:
            Dictionary with payment_id, updated and one_time_expense_id

        Raises:
            ValidationError: If validation fails
            AuthorizationError: If the user is not the owner
            NotFoundError: If no payment exists yet and the expense is unknown
        """
        month = validate_month(month)
        year = validate_year(year)
        amount = float(validate_amount(amount, allow_zero=True))

        self.access.require_owner(group_id, user_id)

        key = {'group_id': group_id, 'payment_key': payment_key(expense_id, month, year)}
        existing = self.expense_payments_table.get_item(key)
        expense = self.recurring_expenses_table.get_item({'group_id': group_id, 'expense_id': expense_id})

        if existing:
            return self._update_payment(existing, expense, amount)

        if not expense:
            raise NotFoundError("Expense not found")

        try:
            return self._insert_payment(expense, month, year, amount)
        except ConflictError:
            # Recorded concurrently; overwrite that row instead
            logger.info(f"Payment for expense {expense_id} in {year}-{month:02d} recorded concurrently")
            existing = self.expense_payments_table.get_item(key)
            if not existing:
                raise
            return self._update_payment(existing, expense, amount)

    def list_expense_payments(
        self,
        user_id: str,
        group_id: str,
        month: int,
        year: int
    ) -> List[Dict[str, Any]]:
        """
        List recurring expense payments of a month.

        Returns:
            Payments annotated with their recurring expense (None if deleted)
        """
        self.access.require_member(group_id, user_id)

        payments = self.expense_payments_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id),
            filter_expression=Attr('month').eq(month) & Attr('year').eq(year)
        )
        expenses = self.recurring_expenses_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        expenses_by_id = {expense['expense_id']: expense for expense in expenses}

        result = []
        for payment in payments:
            annotated = dict(payment)
            annotated['expense'] = expenses_by_id.get(payment.get('expense_id'))
            result.append(annotated)

        return result

    def delete_expense_payment(self, user_id: str, group_id: str, payment_id: str) -> None:
        """
        Delete a recurring expense payment.

        The mirrored one-time expense is kept unless the deployment enables
        cascading, in which case both rows go in one transaction.

        Raises:
            NotFoundError: If the payment is not found
        """
        self.access.require_owner(group_id, user_id)

        matches = self.expense_payments_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id),
            filter_expression=Attr('payment_id').eq(payment_id)
        )
        if not matches:
            raise NotFoundError("Payment not found")

        payment = matches[0]
        operations = [
            self.expense_payments_table.delete_operation(
                {'group_id': group_id, 'payment_key': payment['payment_key']}
            )
        ]

        mirror_id = payment.get('one_time_expense_id')
        if self.cascade_mirror_on_delete and mirror_id:
            operations.append(self.one_time_expenses_table.delete_operation(
                {'group_id': group_id, 'one_time_expense_id': mirror_id}
            ))

        self.expense_payments_table.transact_write(operations)

        logger.info(f"Deleted expense payment {payment_id} ({len(operations)} rows)")

    def _insert_payment(
        self,
        expense: Dict[str, Any],
        month: int,
        year: int,
        amount: float
    ) -> Dict[str, Any]:
        group_id = expense['group_id']
        now = datetime.utcnow()
        payment_id = str(uuid.uuid4())
        mirror_id = str(uuid.uuid4())

        payment = {
            'group_id': group_id,
            'payment_key': payment_key(expense['expense_id'], month, year),
            'payment_id': payment_id,
            'expense_id': expense['expense_id'],
            'month': month,
            'year': year,
            'amount': amount,
            'paid_at': now.isoformat(),
            'one_time_expense_id': mirror_id
        }
        mirror = {
            'group_id': group_id,
            'one_time_expense_id': mirror_id,
            'expense_id': expense['expense_id'],
            'category_id': expense.get('category_id'),
            'name': expense['name'],
            'amount': amount,
            'date': now.strftime('%Y-%m-%d'),
            'month': month,
            'year': year,
            'is_paid': True,
            'receipt_text': None,
            'created_at': now.isoformat(),
            'updated_at': now.isoformat()
        }

        self.expense_payments_table.transact_write([
            self.expense_payments_table.put_operation(
                payment, condition_expression='attribute_not_exists(payment_key)'
            ),
            self.one_time_expenses_table.put_operation(mirror)
        ])

        logger.info(f"Recorded payment {payment_id} for expense {expense['expense_id']} in {year}-{month:02d}")
        return {'payment_id': payment_id, 'updated': False, 'one_time_expense_id': mirror_id}

    def _update_payment(
        self,
        payment: Dict[str, Any],
        expense: Optional[Dict[str, Any]],
        amount: float
    ) -> Dict[str, Any]:
        group_id = payment['group_id']
        now = datetime.utcnow().isoformat()

        operations = [
            self.expense_payments_table.update_operation(
                key={'group_id': group_id, 'payment_key': payment['payment_key']},
                update_expression="SET amount = :amount, paid_at = :paid_at",
                expression_values={':amount': amount, ':paid_at': now},
                condition_expression='attribute_exists(payment_key)'
            )
        ]

        mirror_id = payment.get('one_time_expense_id')
        mirror = None
        if expense and mirror_id:
            mirror = self.one_time_expenses_table.get_item(
                {'group_id': group_id, 'one_time_expense_id': mirror_id}
            )
        if mirror:
            operations.append(self.one_time_expenses_table.update_operation(
                key={'group_id': group_id, 'one_time_expense_id': mirror_id},
                update_expression="SET amount = :amount, is_paid = :paid, updated_at = :updated_at",
                expression_values={':amount': amount, ':paid': True, ':updated_at': now},
                condition_expression='attribute_exists(one_time_expense_id)'
            ))

        self.expense_payments_table.transact_write(operations)

        logger.info(f"Updated payment {payment['payment_id']} for expense {payment['expense_id']}")
        return {
            'payment_id': payment['payment_id'],
            'updated': True,
            'one_time_expense_id': mirror_id if mirror else None
        }
