"""Integration tests for member quotas."""

import pytest
from unittest.mock import patch

from conftest import OWNER
from shared.exceptions import ConflictError, NotFoundError, ValidationError


class TestMemberQuotas:
    """Integration tests for the quota ceiling and its concurrency guard."""

    def test_ceiling_is_inclusive(self, services, household):
        """Test quotas may add up to exactly 110%."""
        group_id = household['group_id']

        services.members.record_member_quota(OWNER, group_id, 'Luca', 10)

        total = sum(m['quota_percent'] for m in services.members.list_members(OWNER, group_id))
        assert total == 110

    def test_ceiling_rejects_excess(self, services, household):
        """Test nothing is written when the ceiling would be exceeded."""
        group_id = household['group_id']

        with pytest.raises(ValidationError, match="Total quota exceeds 110%"):
            services.members.record_member_quota(OWNER, group_id, 'Luca', 10.5)

        assert len(services.members.list_members(OWNER, group_id)) == 2

    def test_update_member(self, services, household):
        """Test renaming a member and changing their quota."""
        group_id = household['group_id']

        member = services.members.record_member_quota(
            OWNER, group_id, 'Marco R.', 50, member_id=household['partner_member_id']
        )

        stored = {m['member_id']: m for m in services.members.list_members(OWNER, group_id)}
        assert member['name'] == 'Marco R.'
        assert stored[household['partner_member_id']]['quota_percent'] == 50

    def test_update_unknown_member(self, services, household):
        """Test updating a member that does not exist."""
        with pytest.raises(NotFoundError):
            services.members.record_member_quota(OWNER, household['group_id'], 'X', 1, member_id='missing')

    def test_stale_quota_version_conflicts(self, services, household):
        """Test an edit based on outdated quotas loses instead of overshooting."""
        group_id = household['group_id']
        stale_group = services.groups.get_group(OWNER, group_id)
        stale_members = services.members.list_members(OWNER, group_id)

        # A concurrent editor adds a 10% member after our read
        services.members.record_member_quota(OWNER, group_id, 'Luca', 10)

        with patch.object(services.members.access, 'require_owner', return_value=stale_group), \
                patch.object(services.members, '_load_members', return_value=stale_members):
            with pytest.raises(ConflictError, match="modified concurrently"):
                services.members.record_member_quota(OWNER, group_id, 'Giulia', 10)

        total = sum(m['quota_percent'] for m in services.members.list_members(OWNER, group_id))
        assert total == 110

    def test_delete_member_cascades_payments(self, services, household):
        """Test a member's settlement payments go with them."""
        group_id = household['group_id']
        services.settlement.record_member_settlement_payment(
            OWNER, group_id, household['partner_member_id'], 5, 2024, 200
        )
        services.settlement.record_member_settlement_payment(
            OWNER, group_id, household['owner_member_id'], 5, 2024, 300
        )

        services.members.delete_member(OWNER, group_id, household['partner_member_id'])

        payments = services.settlement.list_payments(OWNER, group_id, 5, 2024)
        assert [p['member_id'] for p in payments] == [household['owner_member_id']]

    def test_member_without_user_link(self, services, household):
        """Test members need not correspond to a registered user."""
        member = services.members.record_member_quota(OWNER, household['group_id'], 'Nonna', 0)

        assert 'user_id' not in member
