"""Settlement service: monthly report and member payments."""

import uuid
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging
from boto3.dynamodb.conditions import Key, Attr

from shared.access import GroupAccess
from shared.config import Settings, get_settings
from shared.dynamodb import DynamoDBClient
from shared.validators import validate_amount, validate_month, validate_year
from shared.exceptions import NotFoundError
from settlement.calculator import aggregate_by_category, allocate_quotas, total_monthly
from expenses.service import annotate_expense

logger = logging.getLogger(__name__)


class SettlementService:
    """Service for monthly settlement between group members."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize settlement service."""
        settings = settings or get_settings()
        endpoint = settings.endpoint_url

        self.members_table = DynamoDBClient(settings.members_table, endpoint)
        self.categories_table = DynamoDBClient(settings.categories_table, endpoint)
        self.recurring_expenses_table = DynamoDBClient(settings.recurring_expenses_table, endpoint)
        self.payments_table = DynamoDBClient(settings.payments_table, endpoint)
        self.access = GroupAccess(settings)

    def compute_monthly_settlement(
        self,
        user_id: str,
        group_id: str,
        month: int,
        year: int
    ) -> Dict[str, Any]:
        """
        Build the settlement report of a month.

        Every recurring expense flagged active counts towards the total;
        start/end bounds are not applied here.

        Args:
            user_id: Acting user ID
            group_id: Group ID
            month: Month (1-12)
            year: Year

        Returns:
            Dictionary with month, year, total_monthly, member_quotas,
            expenses_by_category, expenses and payments
        """
        self.access.require_member(group_id, user_id)

        members = self.members_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        members.sort(key=lambda m: m.get('created_at', ''))

        expenses = self.recurring_expenses_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id),
            filter_expression=Attr('is_active').eq(True)
        )
        expenses.sort(key=lambda e: e.get('created_at', ''))

        categories = self.categories_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        categories_by_id = {category['category_id']: category for category in categories}

        payments = self._payments_for_month(group_id, month, year)

        total = total_monthly(expenses)
        by_category = aggregate_by_category(expenses, categories)

        return {
            'month': month,
            'year': year,
            'total_monthly': round(total, 2),
            'member_quotas': [
                dict(quota, calculated=round(quota['calculated'], 2), paid=round(quota['paid'], 2))
                for quota in allocate_quotas(total, members, payments)
            ],
            'expenses_by_category': {
                name: {'total': round(bucket['total'], 2), 'color': bucket['color']}
                for name, bucket in by_category.items()
            },
            'expenses': [annotate_expense(expense, categories_by_id) for expense in expenses],
            'payments': payments
        }

    def list_payments(self, user_id: str, group_id: str, month: int, year: int) -> List[Dict[str, Any]]:
        """List member settlement payments of a month."""
        self.access.require_member(group_id, user_id)
        return self._payments_for_month(group_id, month, year)

    def record_member_settlement_payment(
        self,
        user_id: str,
        group_id: str,
        member_id: str,
        month: Any,
        year: Any,
        amount_paid: Any,
        is_confirmed: bool = False
    ) -> Dict[str, Any]:
        """
        Record a payment a member made towards their share.

        Payments accumulate; several per member and month are allowed.

        Raises:
            ValidationError: If validation fails
            AuthorizationError: If the user is not the owner
            NotFoundError: If the member is not part of the group
        """
        month = validate_month(month)
        year = validate_year(year)
        amount_paid = float(validate_amount(amount_paid, allow_zero=True))

        self.access.require_owner(group_id, user_id)

        if not self.members_table.get_item({'group_id': group_id, 'member_id': member_id}):
            raise NotFoundError("Member not found")

        now = datetime.utcnow().isoformat()
        payment = {
            'group_id': group_id,
            'payment_id': str(uuid.uuid4()),
            'member_id': member_id,
            'expense_id': None,
            'month': month,
            'year': year,
            'amount_paid': amount_paid,
            'is_confirmed': bool(is_confirmed),
            'confirmed_at': now if is_confirmed else None,
            'created_at': now
        }

        self.payments_table.put_item(payment)

        logger.info(f"Recorded payment {payment['payment_id']} of member {member_id} for {year}-{month:02d}")
        return payment

    def confirm_or_unconfirm_payment(
        self,
        user_id: str,
        group_id: str,
        payment_id: str,
        is_confirmed: bool
    ) -> Dict[str, Any]:
        """
        Set the confirmation flag of a payment.

        Raises:
            NotFoundError: If the payment is not found
        """
        self.access.require_owner(group_id, user_id)
        self._load_payment(group_id, payment_id)

        payment = self.payments_table.update_item(
            key={'group_id': group_id, 'payment_id': payment_id},
            update_expression="SET is_confirmed = :confirmed, confirmed_at = :confirmed_at",
            expression_values={
                ':confirmed': bool(is_confirmed),
                ':confirmed_at': datetime.utcnow().isoformat() if is_confirmed else None
            },
            condition_expression='attribute_exists(payment_id)'
        )

        logger.info(f"Payment {payment_id} {'confirmed' if is_confirmed else 'unconfirmed'}")
        return payment

    def delete_payment(self, user_id: str, group_id: str, payment_id: str) -> None:
        """
        Delete a member payment.

        Raises:
            NotFoundError: If the payment is not found
        """
        self.access.require_owner(group_id, user_id)
        self._load_payment(group_id, payment_id)

        self.payments_table.delete_item({'group_id': group_id, 'payment_id': payment_id})

        logger.info(f"Deleted payment {payment_id}")

    def _load_payment(self, group_id: str, payment_id: str) -> Dict[str, Any]:
        payment = self.payments_table.get_item({'group_id': group_id, 'payment_id': payment_id})

        if not payment:
            raise NotFoundError("Payment not found")

        return payment

    def _payments_for_month(self, group_id: str, month: int, year: int) -> List[Dict[str, Any]]:
        payments = self.payments_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id),
            filter_expression=Attr('month').eq(month) & Attr('year').eq(year)
        )
        payments.sort(key=lambda p: p.get('created_at', ''))
        return payments
