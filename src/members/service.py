"""Member service for managing group members and their quotas."""

import uuid
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging
from boto3.dynamodb.conditions import Key, Attr

from shared.access import GroupAccess
from shared.config import Settings, get_settings
from shared.dynamodb import DynamoDBClient
from shared.exceptions import ConflictError, NotFoundError, ValidationError
from shared.validators import sanitize_string, validate_quota_percent
from settlement.calculator import check_quota_ceiling

logger = logging.getLogger(__name__)


class MemberService:
    """Service for managing members."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize member service."""
        settings = settings or get_settings()
        endpoint = settings.endpoint_url

        self.groups_table = DynamoDBClient(settings.groups_table, endpoint)
        self.members_table = DynamoDBClient(settings.members_table, endpoint)
        self.payments_table = DynamoDBClient(settings.payments_table, endpoint)
        self.access = GroupAccess(settings)

    def list_members(self, user_id: str, group_id: str) -> List[Dict[str, Any]]:
        """
        List members of a group.

        Args:
            user_id: Acting user ID
            group_id: Group ID

        Returns:
            Members, oldest first
        """
        self.access.require_member(group_id, user_id)
        return self._load_members(group_id)

    def record_member_quota(
        self,
        user_id: str,
        group_id: str,
        name: Optional[str],
        quota_percent: Optional[float],
        member_id: Optional[str] = None,
        member_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Add a member or update an existing member's name and quota.

        The sum of all quotas may not exceed the ceiling. Reading the current
        quotas and writing the member happen under the group's quota_version,
        so a concurrent quota edit makes this call fail instead of both
        writes passing the check.

        Args:
            user_id: Acting user ID (must own the group)
            group_id: Group ID
            name: Display name (optional on update)
            quota_percent: Quota percentage (optional on update)
            member_id: Member to update, None to add a new member
            member_user_id: Registered user the new member corresponds to

        Returns:
            The stored member

        Raises:
            ValidationError: If input is invalid or the quota ceiling is exceeded
            NotFoundError: If the member does not exist
            AuthorizationError: If the user is not the owner
            ConflictError: If quotas were modified concurrently
        """
        if member_id is None and (name is None or quota_percent is None):
            raise ValidationError("Name and quota required")

        if name is not None:
            name = sanitize_string(name, max_length=100)
        if quota_percent is not None:
            quota_percent = validate_quota_percent(quota_percent)

        group = self.access.require_owner(group_id, user_id)
        members = self._load_members(group_id)
        now = datetime.utcnow().isoformat()

        if member_id is None:
            member = {
                'group_id': group_id,
                'member_id': str(uuid.uuid4()),
                'name': name,
                'quota_percent': quota_percent,
                'created_at': now,
                'updated_at': now
            }
            # user_id is the user-index key and cannot be stored as null
            if member_user_id:
                member['user_id'] = member_user_id
            member_op = self.members_table.put_operation(
                member,
                condition_expression='attribute_not_exists(member_id)'
            )
        else:
            existing = next((m for m in members if m['member_id'] == member_id), None)
            if not existing:
                raise NotFoundError("Member not found")

            member = {
                **existing,
                'name': name if name is not None else existing['name'],
                'quota_percent': quota_percent if quota_percent is not None else existing.get('quota_percent', 0),
                'updated_at': now
            }
            member_op = self.members_table.update_operation(
                key={'group_id': group_id, 'member_id': member_id},
                update_expression="SET #name = :name, quota_percent = :quota, updated_at = :updated_at",
                expression_values={
                    ':name': member['name'],
                    ':quota': member['quota_percent'],
                    ':updated_at': now
                },
                expression_names={'#name': 'name'},
                condition_expression='attribute_exists(member_id)'
            )

        total = check_quota_ceiling(members, member['quota_percent'], member_id)

        try:
            self.members_table.transact_write([
                member_op,
                self._quota_version_operation(group, now)
            ])
        except ConflictError:
            raise ConflictError("Quotas were modified concurrently, please retry")

        logger.info(
            f"{'Updated' if member_id else 'Added'} member {member['member_id']} "
            f"in group {group_id} (quota total {total:g}%)"
        )
        return member

    def delete_member(self, user_id: str, group_id: str, member_id: str) -> None:
        """
        Delete a member and the settlement payments recorded for them.

        Raises:
            NotFoundError: If the member does not exist
            AuthorizationError: If the user is not the owner
        """
        self.access.require_owner(group_id, user_id)

        member = self.members_table.get_item({'group_id': group_id, 'member_id': member_id})
        if not member:
            raise NotFoundError("Member not found")

        payments = self.payments_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id),
            filter_expression=Attr('member_id').eq(member_id)
        )
        self.payments_table.batch_delete([
            {'group_id': group_id, 'payment_id': p['payment_id']} for p in payments
        ])
        self.members_table.delete_item({'group_id': group_id, 'member_id': member_id})

        logger.info(f"Deleted member {member_id} and {len(payments)} payments")

    def _load_members(self, group_id: str) -> List[Dict[str, Any]]:
        members = self.members_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        members.sort(key=lambda m: m.get('created_at', ''))
        return members

    def _quota_version_operation(self, group: Dict[str, Any], now: str) -> Dict[str, Any]:
        current = int(group.get('quota_version') or 0)

        return self.groups_table.update_operation(
            key={'group_id': group['group_id']},
            update_expression="SET quota_version = :next, updated_at = :updated_at",
            expression_values={
                ':current': current,
                ':next': current + 1,
                ':updated_at': now
            },
            condition_expression='attribute_not_exists(quota_version) OR quota_version = :current'
        )
