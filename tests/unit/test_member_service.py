"""Unit tests for member service."""

import pytest
from unittest.mock import Mock, patch
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from members.service import MemberService
from shared.config import Settings
from shared.exceptions import ConflictError, NotFoundError, ValidationError


class TestMemberService:
    """Test cases for MemberService."""

    @pytest.fixture
    def group(self):
        """Sample group."""
        return {'group_id': 'g1', 'owner_id': 'owner1', 'quota_version': 3}

    @pytest.fixture
    def members(self):
        """Owner at 60% and a partner at 40%."""
        return [
            {'group_id': 'g1', 'member_id': 'm1', 'name': 'Anna', 'quota_percent': 60, 'created_at': '1'},
            {'group_id': 'g1', 'member_id': 'm2', 'name': 'Marco', 'quota_percent': 40, 'created_at': '2'}
        ]

    @pytest.fixture
    def member_service(self, group, members):
        """Create member service with mocked tables."""
        with patch('members.service.DynamoDBClient'), patch('members.service.GroupAccess'):
            service = MemberService(Settings())
            service.members_table = Mock()
            service.groups_table = Mock()
            service.payments_table = Mock()
            service.access.require_owner.return_value = group
            service.members_table.query_all.return_value = members
            return service

    def test_add_member(self, member_service):
        """Test adding a member within the ceiling."""
        member = member_service.record_member_quota('owner1', 'g1', 'Luca', 10)

        assert member['name'] == 'Luca'
        assert member['quota_percent'] == 10.0
        assert 'user_id' not in member
        member_service.members_table.put_operation.assert_called_once()
        member_service.members_table.transact_write.assert_called_once()

    def test_add_member_requires_name_and_quota(self, member_service):
        """Test adding without a quota is rejected."""
        with pytest.raises(ValidationError, match="Name and quota required"):
            member_service.record_member_quota('owner1', 'g1', 'Luca', None)

        member_service.members_table.transact_write.assert_not_called()

    def test_add_member_over_ceiling(self, member_service):
        """Test the total may not exceed 110%."""
        with pytest.raises(ValidationError, match="Total quota exceeds 110%"):
            member_service.record_member_quota('owner1', 'g1', 'Luca', 11)

        member_service.members_table.transact_write.assert_not_called()

    def test_update_member_quota(self, member_service):
        """Test updating replaces the member's own share in the sum."""
        member = member_service.record_member_quota('owner1', 'g1', None, 50, member_id='m2')

        assert member['name'] == 'Marco'
        assert member['quota_percent'] == 50.0
        update_kwargs = member_service.members_table.update_operation.call_args.kwargs
        assert update_kwargs['expression_values'][':quota'] == 50.0

    def test_update_unknown_member(self, member_service):
        """Test updating a member that does not exist."""
        with pytest.raises(NotFoundError, match="Member not found"):
            member_service.record_member_quota('owner1', 'g1', 'Ghost', 10, member_id='m9')

    def test_quota_write_is_guarded_by_version(self, member_service):
        """Test the group's quota version is checked and bumped."""
        member_service.record_member_quota('owner1', 'g1', 'Luca', 10)

        version_kwargs = member_service.groups_table.update_operation.call_args.kwargs
        assert version_kwargs['expression_values'][':current'] == 3
        assert version_kwargs['expression_values'][':next'] == 4
        assert 'quota_version = :current' in version_kwargs['condition_expression']

    def test_concurrent_quota_edit(self, member_service):
        """Test losing the version race surfaces a conflict."""
        member_service.members_table.transact_write.side_effect = ConflictError()

        with pytest.raises(ConflictError, match="modified concurrently"):
            member_service.record_member_quota('owner1', 'g1', 'Luca', 10)

    def test_delete_member_cascades_payments(self, member_service):
        """Test deleting a member removes their payments."""
        member_service.members_table.get_item.return_value = {'group_id': 'g1', 'member_id': 'm2'}
        member_service.payments_table.query_all.return_value = [
            {'group_id': 'g1', 'payment_id': 'p1', 'member_id': 'm2'}
        ]

        member_service.delete_member('owner1', 'g1', 'm2')

        member_service.payments_table.batch_delete.assert_called_once_with([
            {'group_id': 'g1', 'payment_id': 'p1'}
        ])
        member_service.members_table.delete_item.assert_called_once_with({
            'group_id': 'g1',
            'member_id': 'm2'
        })
