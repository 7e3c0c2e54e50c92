"""Unit tests for recurring expense service."""

import pytest
from unittest.mock import Mock, patch
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from expenses.service import RecurringExpenseService, annotate_expense
from shared.config import Settings
from shared.exceptions import NotFoundError, ValidationError


class TestRecurringExpenseService:
    """Test cases for RecurringExpenseService."""

    @pytest.fixture
    def expense_service(self):
        """Create expense service instance with mocked DynamoDB."""
        with patch('expenses.service.DynamoDBClient'), patch('expenses.service.GroupAccess'):
            service = RecurringExpenseService(Settings())
            service.expenses_table = Mock()
            service.categories_table = Mock()
            service.one_time_expenses_table = Mock()
            service.expense_payments_table = Mock()
            service.payments_table = Mock()
            return service

    @pytest.fixture
    def sample_expense(self):
        """Sample expense data."""
        return {
            'group_id': 'g1',
            'expense_id': 'exp123',
            'category_id': 'cat1',
            'name': 'Luce',
            'amount': 120,
            'frequency_type': 'months',
            'frequency_value': 2,
            'is_active': True,
            'start_month': 3,
            'start_year': 2024,
            'end_month': None,
            'end_year': None,
            'created_at': '2024-01-15T10:00:00',
            'updated_at': '2024-01-15T10:00:00'
        }

    def test_get_expense_success(self, expense_service, sample_expense):
        """Test getting an expense successfully."""
        expense_service.expenses_table.get_item.return_value = sample_expense

        result = expense_service.get_recurring_expense('user123', 'g1', 'exp123')

        assert result == sample_expense
        expense_service.access.require_member.assert_called_once_with('g1', 'user123')
        expense_service.expenses_table.get_item.assert_called_once_with({
            'group_id': 'g1',
            'expense_id': 'exp123'
        })

    def test_get_expense_not_found(self, expense_service):
        """Test getting a non-existent expense."""
        expense_service.expenses_table.get_item.return_value = None

        with pytest.raises(NotFoundError, match="Expense not found"):
            expense_service.get_recurring_expense('user123', 'g1', 'nonexistent')

    def test_create_validates_before_access_check(self, expense_service):
        """Test invalid input is rejected without touching the group."""
        with pytest.raises(ValidationError):
            expense_service.create_recurring_expense('user123', 'g1', {
                'name': 'Luce', 'amount': 'abc', 'frequency_type': 'monthly'
            })

        expense_service.access.require_owner.assert_not_called()
        expense_service.expenses_table.put_item.assert_not_called()

    def test_create_unknown_category(self, expense_service):
        """Test the category must belong to the group."""
        expense_service.categories_table.get_item.return_value = None

        with pytest.raises(ValidationError, match="Category not found"):
            expense_service.create_recurring_expense('user123', 'g1', {
                'name': 'Luce', 'amount': 120, 'frequency_type': 'monthly', 'category_id': 'cat9'
            })

    def test_update_expense_success(self, expense_service, sample_expense):
        """Test updating an expense successfully."""
        expense_service.expenses_table.get_item.return_value = sample_expense
        expense_service.expenses_table.update_item.return_value = {
            **sample_expense,
            'amount': 130.0
        }

        result = expense_service.update_recurring_expense('user123', 'g1', 'exp123', {'amount': 130})

        assert result['amount'] == 130.0
        call = expense_service.expenses_table.update_item.call_args.kwargs
        assert call['expression_values'][':amount'] == 130.0
        assert '#updated_at = :updated_at' in call['update_expression']
        expense_service.access.require_owner.assert_called_once_with('g1', 'user123')

    def test_update_expense_validate_amount(self, expense_service, sample_expense):
        """Test that update validates amount."""
        expense_service.expenses_table.get_item.return_value = sample_expense

        with pytest.raises(ValidationError):
            expense_service.update_recurring_expense('user123', 'g1', 'exp123', {'amount': -10})

    def test_update_end_before_stored_start(self, expense_service, sample_expense):
        """Test that the merged window is validated."""
        expense_service.expenses_table.get_item.return_value = sample_expense

        with pytest.raises(ValidationError, match="before start"):
            expense_service.update_recurring_expense(
                'user123', 'g1', 'exp123', {'end_month': 1, 'end_year': 2024}
            )

        expense_service.expenses_table.update_item.assert_not_called()

    def test_update_frequency_type_keeps_stored_value(self, expense_service, sample_expense):
        """Test the stored multiplier is revalidated with the new type."""
        expense_service.expenses_table.get_item.return_value = sample_expense
        expense_service.expenses_table.update_item.return_value = sample_expense

        expense_service.update_recurring_expense('user123', 'g1', 'exp123', {'frequency_type': 'Monthly'})

        values = expense_service.expenses_table.update_item.call_args.kwargs['expression_values']
        assert values[':frequency_type'] == 'monthly'
        assert values[':frequency_value'] == 2

    def test_update_no_fields(self, expense_service):
        """Test that an empty update is rejected."""
        with pytest.raises(ValidationError, match="No updates provided"):
            expense_service.update_recurring_expense('user123', 'g1', 'exp123', {})

    def test_delete_expense_success(self, expense_service, sample_expense):
        """Test deleting an expense removes its payment records."""
        expense_service.expenses_table.get_item.return_value = sample_expense
        expense_service.expense_payments_table.query_all.return_value = [
            {'group_id': 'g1', 'payment_key': 'exp123#2024-03'},
            {'group_id': 'g1', 'payment_key': 'exp123#2024-05'}
        ]
        expense_service.one_time_expenses_table.query_all.return_value = [
            {'group_id': 'g1', 'one_time_expense_id': 'ot1', 'expense_id': 'exp123'}
        ]
        expense_service.payments_table.query_all.return_value = []

        expense_service.delete_recurring_expense('user123', 'g1', 'exp123')

        expense_service.expenses_table.delete_item.assert_called_once_with({
            'group_id': 'g1',
            'expense_id': 'exp123'
        })
        expense_service.expense_payments_table.batch_delete.assert_called_once_with([
            {'group_id': 'g1', 'payment_key': 'exp123#2024-03'},
            {'group_id': 'g1', 'payment_key': 'exp123#2024-05'}
        ])
        expense_service.one_time_expenses_table.update_item.assert_called_once()
        expense_service.payments_table.update_item.assert_not_called()

    def test_delete_expense_not_found(self, expense_service):
        """Test deleting a non-existent expense."""
        expense_service.expenses_table.get_item.return_value = None

        with pytest.raises(NotFoundError):
            expense_service.delete_recurring_expense('user123', 'g1', 'nonexistent')

    def test_list_active_for_month(self, expense_service, sample_expense):
        """Test listing applies the flag and the window."""
        expense_service.expenses_table.query_all.return_value = [
            sample_expense,
            {**sample_expense, 'expense_id': 'exp2', 'is_active': False},
            {**sample_expense, 'expense_id': 'exp3', 'start_month': 6}
        ]
        expense_service.categories_table.query_all.return_value = [
            {'category_id': 'cat1', 'name': 'Utenze', 'color': '#f59e0b'}
        ]

        result = expense_service.list_active_expenses_for_month('user123', 'g1', 4, 2024)

        assert [e['expense_id'] for e in result] == ['exp123']
        assert result[0]['monthly_amount'] == 60
        assert result[0]['category']['name'] == 'Utenze'
        assert result[0]['is_active_for_month'] is True


def test_annotate_expense_missing_category():
    """Test expenses whose category is gone get None."""
    annotated = annotate_expense(
        {'amount': 100, 'frequency_type': 'weekly', 'category_id': 'gone'}, {}
    )

    assert annotated['category'] is None
    assert annotated['monthly_amount'] == 433.0


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
