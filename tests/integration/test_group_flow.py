"""Integration tests for group lifecycle and access control."""

import pytest

from conftest import OWNER, PARTNER, STRANGER
from shared.exceptions import AuthorizationError, NotFoundError


class TestGroupFlow:
    """Integration tests for groups."""

    def test_create_group_adds_owner_member(self, services):
        """Test the owner becomes the first member with a full quota."""
        group = services.groups.create_group(OWNER, '  Casa  ')

        members = services.members.list_members(OWNER, group['group_id'])

        assert group['name'] == 'Casa'
        assert group['owner_id'] == OWNER
        assert len(members) == 1
        assert members[0]['user_id'] == OWNER
        assert members[0]['name'] == 'Me'
        assert members[0]['quota_percent'] == 100

    def test_list_groups_by_membership(self, services, household):
        """Test both the owner and a linked member see the group."""
        assert [g['group_id'] for g in services.groups.list_groups(OWNER)] == [household['group_id']]
        assert [g['group_id'] for g in services.groups.list_groups(PARTNER)] == [household['group_id']]
        assert services.groups.list_groups(STRANGER) == []

    def test_reads_require_membership(self, services, household):
        """Test a non-member cannot see the group at all."""
        with pytest.raises(NotFoundError, match="Group not found"):
            services.groups.get_group(STRANGER, household['group_id'])

        assert services.groups.get_group(PARTNER, household['group_id'])['name'] == 'Casa'

    def test_mutations_require_ownership(self, services, household):
        """Test a member who is not the owner cannot mutate."""
        with pytest.raises(AuthorizationError):
            services.categories.create_category(PARTNER, household['group_id'], 'Animali')

        with pytest.raises(AuthorizationError):
            services.groups.delete_group(PARTNER, household['group_id'])

    def test_unknown_group(self, services):
        """Test operations on a group that does not exist."""
        with pytest.raises(NotFoundError):
            services.members.list_members(OWNER, 'no-such-group')

    def test_delete_group_cascades(self, services, household, dynamodb, settings):
        """Test deleting a group removes every row it owns."""
        group_id = household['group_id']
        services.categories.list_categories(OWNER, group_id)
        expense = services.expenses.create_recurring_expense(OWNER, group_id, {
            'name': 'Internet', 'amount': 30, 'frequency_type': 'monthly'
        })
        services.expense_payments.record_recurring_payment(OWNER, group_id, expense['expense_id'], 1, 2024, 30)
        services.settlement.record_member_settlement_payment(
            OWNER, group_id, household['partner_member_id'], 1, 2024, 100
        )

        services.groups.delete_group(OWNER, group_id)

        for table_name in (
            settings.groups_table,
            settings.members_table,
            settings.categories_table,
            settings.recurring_expenses_table,
            settings.one_time_expenses_table,
            settings.expense_payments_table,
            settings.payments_table
        ):
            assert dynamodb.Table(table_name).scan()['Items'] == [], table_name

        assert services.groups.list_groups(PARTNER) == []
