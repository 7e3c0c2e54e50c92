"""One-time expense service."""

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
    validate_date,
    validate_month,
    validate_year,
    sanitize_string
)
from shared.exceptions import ValidationError, NotFoundError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'amount', 'category_id', 'date', 'month', 'year', 'is_paid', 'receipt_text')
REQUIRED_FIELDS = ('name', 'amount', 'date', 'month', 'year', 'is_paid')


class OneTimeExpenseService:
    """Service for managing one-time expenses."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize one-time expense service."""
        settings = settings or get_settings()
        endpoint = settings.endpoint_url

        self.one_time_expenses_table = DynamoDBClient(settings.one_time_expenses_table, endpoint)
        self.recurring_expenses_table = DynamoDBClient(settings.recurring_expenses_table, endpoint)
        self.categories_table = DynamoDBClient(settings.categories_table, endpoint)
        self.access = GroupAccess(settings)

    def list_one_time_expenses(
        self,
        user_id: str,
        group_id: str,
        month: int,
        year: int
    ) -> List[Dict[str, Any]]:
        """
        List one-time expenses booked in a month.

        Returns:
            Expenses annotated with their category, most recent date first
        """
        self.access.require_member(group_id, user_id)

        expenses = self.one_time_expenses_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id),
            filter_expression=Attr('month').eq(month) & Attr('year').eq(year)
        )
        categories_by_id = self._categories_by_id(group_id)

        expenses.sort(key=lambda e: (e.get('date', ''), e.get('created_at', '')), reverse=True)
        return [self._annotate(expense, categories_by_id) for expense in expenses]

    def get_one_time_expense(self, user_id: str, group_id: str, one_time_expense_id: str) -> Dict[str, Any]:
        """
        Get a one-time expense with its category.

        Raises:
            NotFoundError: If the group or expense is not found
        """
        self.access.require_member(group_id, user_id)
        expense = self.load_expense(group_id, one_time_expense_id)
        return self._annotate(expense, self._categories_by_id(group_id))

    def load_expense(self, group_id: str, one_time_expense_id: str) -> Dict[str, Any]:
        """
        Load a one-time expense row without access checks.

        Raises:
            NotFoundError: If the expense is not found
        """
        expense = self.one_time_expenses_table.get_item({
            'group_id': group_id,
            'one_time_expense_id': one_time_expense_id
        })

        if not expense:
            raise NotFoundError("Expense not found")

        return expense

    def create_one_time_expense(
        self,
        user_id: str,
        group_id: str,
        data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Create a one-time expense.

        Month and year default to those of the expense date. The amount must
        be positive unless the expense is linked to a recurring expense, whose
        recorded payments may be zero.

        Args:
            user_id: Acting user ID (must own the group)
            group_id: Group ID
            data: name, amount, date and optional month, year, category_id, expense_id

        Returns:
            Created expense

        Raises:
            ValidationError: If validation fails
            AuthorizationError: If the user is not the owner
        """
        name = sanitize_string(data.get('name'), max_length=100)
        amount = float(validate_amount(data.get('amount'), allow_zero=bool(data.get('expense_id'))))
        expense_date = validate_date(data.get('date'))
        month = validate_month(data['month']) if data.get('month') is not None else int(expense_date[5:7])
        year = validate_year(data['year']) if data.get('year') is not None else int(expense_date[:4])

        self.access.require_owner(group_id, user_id)
        category_id = self._validate_category(group_id, data.get('category_id'))
        expense_id = self._validate_recurring_expense(group_id, data.get('expense_id'))

        now = datetime.utcnow().isoformat()
        expense = {
            'group_id': group_id,
            'one_time_expense_id': str(uuid.uuid4()),
            'expense_id': expense_id,
            'category_id': category_id,
            'name': name,
            'amount': amount,
            'date': expense_date,
            'month': month,
            'year': year,
            'is_paid': False,
            'receipt_text': None,
            'created_at': now,
            'updated_at': now
        }

        self.one_time_expenses_table.put_item(expense)

        logger.info(f"Created one-time expense {expense['one_time_expense_id']} in group {group_id}")
        return expense

    def update_one_time_expense(
        self,
        user_id: str,
        group_id: str,
        one_time_expense_id: str,
        updates: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Update a one-time expense; only the given fields change.

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
        existing = self.load_expense(group_id, one_time_expense_id)

        updates = dict(updates)

        if 'name' in updates:
            updates['name'] = sanitize_string(updates['name'], max_length=100)
        if 'amount' in updates:
            updates['amount'] = float(validate_amount(updates['amount'], allow_zero=bool(existing.get('expense_id'))))
        if 'date' in updates:
            updates['date'] = validate_date(updates['date'])
        if 'month' in updates:
            updates['month'] = validate_month(updates['month'])
        if 'year' in updates:
            updates['year'] = validate_year(updates['year'])
        if 'is_paid' in updates:
            updates['is_paid'] = bool(updates['is_paid'])
        if 'category_id' in updates:
            updates['category_id'] = self._validate_category(group_id, updates['category_id'])

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

        updated_expense = self.one_time_expenses_table.update_item(
            key={'group_id': group_id, 'one_time_expense_id': one_time_expense_id},
            update_expression="SET " + ", ".join(update_parts),
            expression_values=expr_values,
            expression_names=expr_names
        )

        logger.info(f"Updated one-time expense {one_time_expense_id}")
        return updated_expense

    def delete_one_time_expense(self, user_id: str, group_id: str, one_time_expense_id: str) -> None:
        """
        Delete a one-time expense.

        Raises:
            NotFoundError: If the expense is not found
        """
        self.access.require_owner(group_id, user_id)
        self.load_expense(group_id, one_time_expense_id)

        self.one_time_expenses_table.delete_item({
            'group_id': group_id,
            'one_time_expense_id': one_time_expense_id
        })

        logger.info(f"Deleted one-time expense {one_time_expense_id}")

    def _categories_by_id(self, group_id: str) -> Dict[str, Dict[str, Any]]:
        categories = self.categories_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        return {category['category_id']: category for category in categories}

    @staticmethod
    def _annotate(expense: Dict[str, Any], categories_by_id: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        annotated = dict(expense)
        annotated['category'] = categories_by_id.get(expense.get('category_id'))
        return annotated

    def _validate_category(self, group_id: str, category_id: Optional[str]) -> Optional[str]:
        if not category_id:
            return None

        if not self.categories_table.get_item({'group_id': group_id, 'category_id': category_id}):
            raise ValidationError("Category not found")

        return category_id

    def _validate_recurring_expense(self, group_id: str, expense_id: Optional[str]) -> Optional[str]:
        if not expense_id:
            return None

        if not self.recurring_expenses_table.get_item({'group_id': group_id, 'expense_id': expense_id}):
            raise ValidationError("Recurring expense not found")

        return expense_id
