"""Recurring expense service."""

import uuid
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging
from boto3.dynamodb.conditions import Key, Attr

from shared.access import GroupAccess
from shared.config import Settings, get_settings
from shared.dynamodb import DynamoDBClient
from shared.validators import (
    validate_amount,
    validate_activity_window,
    validate_frequency,
    validate_day_of_month,
    sanitize_string
)
from shared.exceptions import ValidationError, NotFoundError
from settlement.calculator import is_active_for_month, monthly_amount

logger = logging.getLogger(__name__)

WINDOW_FIELDS = ('start_month', 'start_year', 'end_month', 'end_year')
UPDATABLE_FIELDS = (
    'name', 'amount', 'frequency_type', 'frequency_value', 'category_id',
    'day_of_month', 'is_active'
) + WINDOW_FIELDS
REQUIRED_FIELDS = ('name', 'amount', 'frequency_type', 'is_active')


def annotate_expense(expense: Dict[str, Any], categories_by_id: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of an expense row with its resolved category and monthly amount."""
    annotated = dict(expense)
    annotated['category'] = categories_by_id.get(expense.get('category_id'))
    annotated['monthly_amount'] = round(monthly_amount(expense), 2)
    return annotated


class RecurringExpenseService:
    """Service for managing recurring expenses."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize recurring expense service."""
        settings = settings or get_settings()
        endpoint = settings.endpoint_url

        self.expenses_table = DynamoDBClient(settings.recurring_expenses_table, endpoint)
        self.categories_table = DynamoDBClient(settings.categories_table, endpoint)
        self.one_time_expenses_table = DynamoDBClient(settings.one_time_expenses_table, endpoint)
        self.expense_payments_table = DynamoDBClient(settings.expense_payments_table, endpoint)
        self.payments_table = DynamoDBClient(settings.payments_table, endpoint)
        self.access = GroupAccess(settings)

    def get_recurring_expense(self, user_id: str, group_id: str, expense_id: str) -> Dict[str, Any]:
        """
        Get recurring expense by ID.

        Raises:
            NotFoundError: If the group or expense is not found
        """
        self.access.require_member(group_id, user_id)
        return self._load_expense(group_id, expense_id)

    def list_active_expenses_for_month(
        self,
        user_id: str,
        group_id: str,
        month: int,
        year: int
    ) -> List[Dict[str, Any]]:
        """
        List recurring expenses that apply to a month.

        Both the is_active flag and the start/end window are honored.

        Args:
            user_id: Acting user ID
            group_id: Group ID
            month: Month (1-12)
            year: Year

        Returns:
            Expenses annotated with category, monthly_amount and is_active_for_month
        """
        self.access.require_member(group_id, user_id)

        expenses = self.expenses_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        categories_by_id = self._categories_by_id(group_id)

        active = []
        for expense in sorted(expenses, key=lambda e: e.get('created_at', '')):
            if not is_active_for_month(expense, month, year):
                continue
            annotated = annotate_expense(expense, categories_by_id)
            annotated['is_active_for_month'] = True
            active.append(annotated)

        return active

    def create_recurring_expense(
        self,
        user_id: str,
        group_id: str,
        data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Create a recurring expense.

        Args:
            user_id: Acting user ID (must own the group)
            group_id: Group ID
            data: name, amount, frequency_type and optional frequency_value,
                category_id, day_of_month, is_active and window bounds

        Returns:
            Created expense

        Raises:
            ValidationError: If validation fails
            AuthorizationError: If the user is not the owner
        """
        name = sanitize_string(data.get('name'), max_length=100)
        amount = float(validate_amount(data.get('amount'), allow_zero=True))
        frequency_type, frequency_value = validate_frequency(
            data.get('frequency_type'), data.get('frequency_value', 1)
        )
        window = validate_activity_window(*(data.get(field) for field in WINDOW_FIELDS))
        day_of_month = self._day_of_month(data.get('day_of_month'))

        self.access.require_owner(group_id, user_id)
        category_id = self._validate_category(group_id, data.get('category_id'))

        now = datetime.utcnow().isoformat()
        expense = {
            'group_id': group_id,
            'expense_id': str(uuid.uuid4()),
            'category_id': category_id,
            'name': name,
            'amount': amount,
            'frequency_type': frequency_type,
            'frequency_value': frequency_value,
            'day_of_month': day_of_month,
            'is_active': bool(data.get('is_active', True)),
            'created_at': now,
            'updated_at': now
        }
        expense.update(window)

        self.expenses_table.put_item(expense)

        logger.info(f"Created recurring expense {expense['expense_id']} in group {group_id}")
        return expense

    def update_recurring_expense(
        self,
        user_id: str,
        group_id: str,
        expense_id: str,
        updates: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Update a recurring expense; only the given fields change.

        Raises:
            NotFoundError: If the expense is not found
            ValidationError: If validation fails
        """
        if not updates:
            raise ValidationError("No updates provided")

        unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(unknown)}")

        cleared = sorted(field for field in REQUIRED_FIELDS if field in updates and updates[field] is None)
        if cleared:
            raise ValidationError(f"Fields cannot be null: {', '.join(cleared)}")

        self.access.require_owner(group_id, user_id)
        expense = self._load_expense(group_id, expense_id)

        updates = dict(updates)

        if 'name' in updates:
            updates['name'] = sanitize_string(updates['name'], max_length=100)

        if 'amount' in updates:
            updates['amount'] = float(validate_amount(updates['amount'], allow_zero=True))

        if 'frequency_type' in updates or 'frequency_value' in updates:
            frequency_type, frequency_value = validate_frequency(
                updates.get('frequency_type', expense.get('frequency_type')),
                updates.get('frequency_value', expense.get('frequency_value', 1))
            )
            updates['frequency_type'] = frequency_type
            updates['frequency_value'] = frequency_value

        if any(field in updates for field in WINDOW_FIELDS):
            merged = {field: updates.get(field, expense.get(field)) for field in WINDOW_FIELDS}
            window = validate_activity_window(*(merged[field] for field in WINDOW_FIELDS))
            for field in WINDOW_FIELDS:
                if field in updates:
                    updates[field] = window[field]

        if 'day_of_month' in updates:
            updates['day_of_month'] = self._day_of_month(updates['day_of_month'])

        if 'is_active' in updates:
            updates['is_active'] = bool(updates['is_active'])

        if 'category_id' in updates:
            updates['category_id'] = self._validate_category(group_id, updates['category_id'])

        # Build update expression
        update_parts = []
        expr_values = {}
        expr_names = {}

        for key, value in updates.items():
            update_parts.append(f"#{key} = :{key}")
            expr_names[f'#{key}'] = key
            expr_values[f':{key}'] = value

        update_parts.append("#updated_at = :updated_at")
        expr_names['#updated_at'] = 'updated_at'
        expr_values[':updated_at'] = datetime.utcnow().isoformat()

        updated_expense = self.expenses_table.update_item(
            key={'group_id': group_id, 'expense_id': expense_id},
            update_expression="SET " + ", ".join(update_parts),
            expression_values=expr_values,
            expression_names=expr_names
        )

        logger.info(f"Updated recurring expense {expense_id}")
        return updated_expense

    def delete_recurring_expense(self, user_id: str, group_id: str, expense_id: str) -> None:
        """
        Delete a recurring expense.

        Its per-month payment records are deleted; one-time expenses and
        settlement payments that referenced it keep existing, unlinked.

        Raises:
            NotFoundError: If the expense is not found
        """
        self.access.require_owner(group_id, user_id)
        self._load_expense(group_id, expense_id)

        self.expenses_table.delete_item({'group_id': group_id, 'expense_id': expense_id})

        expense_payments = self.expense_payments_table.query_all(
            key_condition_expression=(
                Key('group_id').eq(group_id) & Key('payment_key').begins_with(f"{expense_id}#")
            )
        )
        self.expense_payments_table.batch_delete([
            {'group_id': group_id, 'payment_key': payment['payment_key']}
            for payment in expense_payments
        ])

        for table, sort_key in (
            (self.one_time_expenses_table, 'one_time_expense_id'),
            (self.payments_table, 'payment_id')
        ):
            linked = table.query_all(
                key_condition_expression=Key('group_id').eq(group_id),
                filter_expression=Attr('expense_id').eq(expense_id)
            )
            for row in linked:
                table.update_item(
                    key={'group_id': group_id, sort_key: row[sort_key]},
                    update_expression="SET expense_id = :none",
                    expression_values={':none': None}
                )

        logger.info(
            f"Deleted recurring expense {expense_id} and {len(expense_payments)} payment records"
        )

    def _load_expense(self, group_id: str, expense_id: str) -> Dict[str, Any]:
        expense = self.expenses_table.get_item({'group_id': group_id, 'expense_id': expense_id})

        if not expense:
            raise NotFoundError("Expense not found")

        return expense

    def _categories_by_id(self, group_id: str) -> Dict[str, Dict[str, Any]]:
        categories = self.categories_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        return {category['category_id']: category for category in categories}

    def _validate_category(self, group_id: str, category_id: Optional[str]) -> Optional[str]:
        if not category_id:
            return None

        if not self.categories_table.get_item({'group_id': group_id, 'category_id': category_id}):
            raise ValidationError("Category not found")

        return category_id

    @staticmethod
    def _day_of_month(day_of_month: Any) -> Optional[int]:
        return None if day_of_month is None else validate_day_of_month(day_of_month)
