"""Unit tests for recurring expense payment reconciliation."""

import pytest
from unittest.mock import Mock, patch
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from expense_payments.service import ExpensePaymentService, payment_key
from shared.config import Settings
from shared.exceptions import ConflictError, NotFoundError, ValidationError


class TestExpensePaymentService:
    """Test cases for ExpensePaymentService."""

    @pytest.fixture
    def expense(self):
        """Sample recurring expense."""
        return {
            'group_id': 'g1',
            'expense_id': 'e1',
            'category_id': 'c1',
            'name': 'Luce',
            'amount': 80,
            'frequency_type': 'monthly'
        }

    @pytest.fixture
    def existing_payment(self):
        """Payment already recorded for March 2024."""
        return {
            'group_id': 'g1',
            'payment_key': 'e1#2024-03',
            'payment_id': 'p1',
            'expense_id': 'e1',
            'month': 3,
            'year': 2024,
            'amount': 80,
            'one_time_expense_id': 'ote1'
        }

    @pytest.fixture
    def payment_service(self):
        """Create payment service with mocked tables."""
        with patch('expense_payments.service.DynamoDBClient'), patch('expense_payments.service.GroupAccess'):
            service = ExpensePaymentService(Settings())
            service.expense_payments_table = Mock()
            service.recurring_expenses_table = Mock()
            service.one_time_expenses_table = Mock()
            return service

    def test_payment_key(self):
        """Test the key is zero padded so it sorts by period."""
        assert payment_key('e1', 3, 2024) == 'e1#2024-03'

    def test_first_payment_inserts_both_rows(self, payment_service, expense):
        """Test a new payment writes the record and its mirror together."""
        payment_service.expense_payments_table.get_item.return_value = None
        payment_service.recurring_expenses_table.get_item.return_value = expense

        result = payment_service.record_recurring_payment('owner1', 'g1', 'e1', 3, 2024, 85.5)

        assert result['updated'] is False
        payment_service.expense_payments_table.transact_write.assert_called_once()

        payment_item = payment_service.expense_payments_table.put_operation.call_args.args[0]
        mirror_item = payment_service.one_time_expenses_table.put_operation.call_args.args[0]
        assert payment_item['payment_key'] == 'e1#2024-03'
        assert payment_item['amount'] == 85.5
        assert payment_item['one_time_expense_id'] == mirror_item['one_time_expense_id']
        assert result['one_time_expense_id'] == mirror_item['one_time_expense_id']
        assert mirror_item['name'] == 'Luce'
        assert mirror_item['category_id'] == 'c1'
        assert mirror_item['expense_id'] == 'e1'
        assert mirror_item['is_paid'] is True
        assert (mirror_item['month'], mirror_item['year']) == (3, 2024)

    def test_second_payment_updates(self, payment_service, expense, existing_payment):
        """Test recording again overwrites the amount of the existing rows."""
        payment_service.expense_payments_table.get_item.return_value = existing_payment
        payment_service.recurring_expenses_table.get_item.return_value = expense
        payment_service.one_time_expenses_table.get_item.return_value = {'one_time_expense_id': 'ote1'}

        result = payment_service.record_recurring_payment('owner1', 'g1', 'e1', 3, 2024, 92)

        assert result == {'payment_id': 'p1', 'updated': True, 'one_time_expense_id': 'ote1'}
        payment_service.expense_payments_table.put_operation.assert_not_called()
        mirror_update = payment_service.one_time_expenses_table.update_operation.call_args.kwargs
        assert mirror_update['expression_values'][':amount'] == 92.0
        assert mirror_update['expression_values'][':paid'] is True

    def test_update_skips_missing_mirror(self, payment_service, expense, existing_payment):
        """Test a deleted mirror is not recreated."""
        payment_service.expense_payments_table.get_item.return_value = existing_payment
        payment_service.recurring_expenses_table.get_item.return_value = expense
        payment_service.one_time_expenses_table.get_item.return_value = None

        result = payment_service.record_recurring_payment('owner1', 'g1', 'e1', 3, 2024, 92)

        assert result['one_time_expense_id'] is None
        payment_service.one_time_expenses_table.update_operation.assert_not_called()
        operations = payment_service.expense_payments_table.transact_write.call_args.args[0]
        assert len(operations) == 1

    def test_unknown_expense(self, payment_service):
        """Test paying an expense that does not exist."""
        payment_service.expense_payments_table.get_item.return_value = None
        payment_service.recurring_expenses_table.get_item.return_value = None

        with pytest.raises(NotFoundError, match="Expense not found"):
            payment_service.record_recurring_payment('owner1', 'g1', 'e9', 3, 2024, 10)

        payment_service.expense_payments_table.transact_write.assert_not_called()

    def test_lost_insert_race_falls_back_to_update(self, payment_service, expense, existing_payment):
        """Test a concurrent insert makes this call overwrite that row."""
        payment_service.expense_payments_table.get_item.side_effect = [None, existing_payment]
        payment_service.recurring_expenses_table.get_item.return_value = expense
        payment_service.one_time_expenses_table.get_item.return_value = {'one_time_expense_id': 'ote1'}
        payment_service.expense_payments_table.transact_write.side_effect = [ConflictError(), None]

        result = payment_service.record_recurring_payment('owner1', 'g1', 'e1', 3, 2024, 70)

        assert result == {'payment_id': 'p1', 'updated': True, 'one_time_expense_id': 'ote1'}
        assert payment_service.expense_payments_table.transact_write.call_count == 2

    def test_negative_amount_rejected(self, payment_service):
        """Test negative amounts never reach storage."""
        with pytest.raises(ValidationError):
            payment_service.record_recurring_payment('owner1', 'g1', 'e1', 3, 2024, -5)

        payment_service.access.require_owner.assert_not_called()

    def test_zero_amount_accepted(self, payment_service, expense):
        """Test a zero payment is a valid record."""
        payment_service.expense_payments_table.get_item.return_value = None
        payment_service.recurring_expenses_table.get_item.return_value = expense

        result = payment_service.record_recurring_payment('owner1', 'g1', 'e1', 3, 2024, 0)

        assert result['updated'] is False

    def test_delete_keeps_mirror_by_default(self, payment_service, existing_payment):
        """Test deleting a payment leaves the mirrored expense."""
        payment_service.expense_payments_table.query_all.return_value = [existing_payment]

        payment_service.delete_expense_payment('owner1', 'g1', 'p1')

        operations = payment_service.expense_payments_table.transact_write.call_args.args[0]
        assert len(operations) == 1
        payment_service.one_time_expenses_table.delete_operation.assert_not_called()

    def test_delete_cascades_mirror_when_enabled(self, payment_service, existing_payment):
        """Test the cascade setting deletes the mirror in the same transaction."""
        payment_service.cascade_mirror_on_delete = True
        payment_service.expense_payments_table.query_all.return_value = [existing_payment]

        payment_service.delete_expense_payment('owner1', 'g1', 'p1')

        operations = payment_service.expense_payments_table.transact_write.call_args.args[0]
        assert len(operations) == 2
        payment_service.one_time_expenses_table.delete_operation.assert_called_once_with(
            {'group_id': 'g1', 'one_time_expense_id': 'ote1'}
        )

    def test_delete_unknown_payment(self, payment_service):
        """Test deleting a payment that does not exist."""
        payment_service.expense_payments_table.query_all.return_value = []

        with pytest.raises(NotFoundError, match="Payment not found"):
            payment_service.delete_expense_payment('owner1', 'g1', 'p9')
