"""Group service for managing households."""

import uuid
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging
from boto3.dynamodb.conditions import Key

from shared.access import GroupAccess
from shared.config import Settings, get_settings
from shared.dynamodb import DynamoDBClient
from shared.validators import sanitize_string

logger = logging.getLogger(__name__)

OWNER_DEFAULT_NAME = "Me"
OWNER_DEFAULT_QUOTA = 100.0


class GroupService:
    """Service for managing groups and their lifecycle."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize group service."""
        settings = settings or get_settings()
        endpoint = settings.endpoint_url

        self.groups_table = DynamoDBClient(settings.groups_table, endpoint)
        self.members_table = DynamoDBClient(settings.members_table, endpoint)
        self.owned_tables = [
            (self.members_table, 'member_id'),
            (DynamoDBClient(settings.categories_table, endpoint), 'category_id'),
            (DynamoDBClient(settings.recurring_expenses_table, endpoint), 'expense_id'),
            (DynamoDBClient(settings.one_time_expenses_table, endpoint), 'one_time_expense_id'),
            (DynamoDBClient(settings.expense_payments_table, endpoint), 'payment_key'),
            (DynamoDBClient(settings.payments_table, endpoint), 'payment_id')
        ]
        self.access = GroupAccess(settings)

    def create_group(
        self,
        user_id: str,
        name: str,
        owner_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create a group owned by the user.

        The owner is added as the first member with a 100% quota.

        Args:
            user_id: Owner user ID
            name: Group name
            owner_name: Display name for the owner's member row

        Returns:
            Created group
        """
        name = sanitize_string(name, max_length=100)
        now = datetime.utcnow().isoformat()
        group_id = str(uuid.uuid4())

        group = {
            'group_id': group_id,
            'name': name,
            'owner_id': user_id,
            'quota_version': 0,
            'category_seed_version': 0,
            'created_at': now,
            'updated_at': now
        }
        owner_member = {
            'group_id': group_id,
            'member_id': str(uuid.uuid4()),
            'user_id': user_id,
            'name': (owner_name or '').strip() or OWNER_DEFAULT_NAME,
            'quota_percent': OWNER_DEFAULT_QUOTA,
            'created_at': now,
            'updated_at': now
        }

        self.groups_table.transact_write([
            self.groups_table.put_operation(group, condition_expression='attribute_not_exists(group_id)'),
            self.members_table.put_operation(owner_member)
        ])

        logger.info(f"Created group {group_id} for owner {user_id}")
        return group

    def get_group(self, user_id: str, group_id: str) -> Dict[str, Any]:
        """
        Get a group the user belongs to.

        Raises:
            NotFoundError: If the group does not exist or the user is not a member
        """
        return self.access.require_member(group_id, user_id)

    def list_groups(self, user_id: str) -> List[Dict[str, Any]]:
        """
        List groups the user is a member of.

        Args:
            user_id: User ID

        Returns:
            Groups, oldest first
        """
        memberships = self.members_table.query_all(
            key_condition_expression=Key('user_id').eq(user_id),
            index_name='user-index'
        )

        groups = []
        seen = set()
        for membership in memberships:
            group_id = membership['group_id']
            if group_id in seen:
                continue
            seen.add(group_id)

            group = self.groups_table.get_item({'group_id': group_id})
            if group:
                groups.append(group)

        groups.sort(key=lambda g: g.get('created_at', ''))
        return groups

    def delete_group(self, user_id: str, group_id: str) -> None:
        """
        Delete a group and everything it owns.

        Raises:
            NotFoundError: If the group does not exist
            AuthorizationError: If the user is not the owner
        """
        self.access.require_owner(group_id, user_id)

        for table, sort_key in self.owned_tables:
            items = table.query_all(key_condition_expression=Key('group_id').eq(group_id))
            table.batch_delete([
                {'group_id': group_id, sort_key: item[sort_key]} for item in items
            ])

        self.groups_table.delete_item({'group_id': group_id})

        logger.info(f"Deleted group {group_id}")
