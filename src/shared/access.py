"""Group access checks shared by every service."""

import logging
from typing import Any, Dict, Optional

from boto3.dynamodb.conditions import Key, Attr

from .config import Settings
from .dynamodb import DynamoDBClient
from .exceptions import AuthorizationError, NotFoundError

logger = logging.getLogger(__name__)


class GroupAccess:
    """
    Verifies that a user may read or mutate a group's data.

    Reads require group membership; mutations require group ownership.
    A missing group is always reported as not found.
    """

    def __init__(self, settings: Settings):
        self.groups_table = DynamoDBClient(settings.groups_table, settings.endpoint_url)
        self.members_table = DynamoDBClient(settings.members_table, settings.endpoint_url)

    def get_group(self, group_id: str) -> Dict[str, Any]:
        """
        Get a group by ID.

        Raises:
            NotFoundError: If the group does not exist
        """
        group = self.groups_table.get_item({'group_id': group_id})

        if not group:
            raise NotFoundError("Group not found")

        return group

    def find_membership(self, group_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Member row linking the user to the group, if any."""
        members = self.members_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id),
            filter_expression=Attr('user_id').eq(user_id)
        )
        return members[0] if members else None

    def require_member(self, group_id: str, user_id: str) -> Dict[str, Any]:
        """
        Ensure the user belongs to the group.

        Returns:
            The group

        Raises:
            NotFoundError: If the group does not exist or the user is not a member
        """
        group = self.get_group(group_id)

        if group.get('owner_id') != user_id and not self.find_membership(group_id, user_id):
            logger.info(f"User {user_id} is not a member of group {group_id}")
            raise NotFoundError("Group not found")

        return group

    def require_owner(self, group_id: str, user_id: str) -> Dict[str, Any]:
        """
        Ensure the user owns the group.

        Returns:
            The group

        Raises:
            NotFoundError: If the group does not exist
            AuthorizationError: If the user is not the owner
        """
        group = self.get_group(group_id)

        if group.get('owner_id') != user_id:
            logger.info(f"User {user_id} is not the owner of group {group_id}")
            raise AuthorizationError()

        return group
