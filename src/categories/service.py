"""Category service for managing expense categories."""

import uuid
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging
from boto3.dynamodb.conditions import Key, Attr

from shared.access import GroupAccess
from shared.config import Settings, get_settings
from shared.dynamodb import DynamoDBClient
from shared.exceptions import ConflictError, NotFoundError
from shared.validators import sanitize_string, validate_color

logger = logging.getLogger(__name__)

# Provisioned the first time a group's categories are listed and none exist
DEFAULT_CATEGORIES = [
    {'name': 'Alimentari', 'icon': 'ShoppingCart', 'color': '#22c55e'},
    {'name': 'Mutuo', 'icon': 'Home', 'color': '#3b82f6'},
    {'name': 'Utenze', 'icon': 'Zap', 'color': '#f59e0b'},
    {'name': 'Trasporti', 'icon': 'Car', 'color': '#8b5cf6'},
    {'name': 'Assicurazioni', 'icon': 'Shield', 'color': '#ef4444'},
    {'name': 'Tasse', 'icon': 'FileText', 'color': '#dc2626'},
    {'name': 'Svago', 'icon': 'Gamepad2', 'color': '#ec4899'},
    {'name': 'Altro', 'icon': 'MoreHorizontal', 'color': '#6b7280'}
]

DEFAULT_ICON = 'Tag'
DEFAULT_COLOR = '#6b7280'


class CategoryService:
    """Service for managing categories."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize category service."""
        settings = settings or get_settings()
        endpoint = settings.endpoint_url

        self.groups_table = DynamoDBClient(settings.groups_table, endpoint)
        self.categories_table = DynamoDBClient(settings.categories_table, endpoint)
        self.recurring_expenses_table = DynamoDBClient(settings.recurring_expenses_table, endpoint)
        self.one_time_expenses_table = DynamoDBClient(settings.one_time_expenses_table, endpoint)
        self.access = GroupAccess(settings)

    def list_categories(self, user_id: str, group_id: str) -> List[Dict[str, Any]]:
        """
        List a group's categories, provisioning the defaults if there are none.

        Args:
            user_id: Acting user ID
            group_id: Group ID

        Returns:
            Categories in display order
        """
        group = self.access.require_member(group_id, user_id)

        categories = self.load_categories(group_id)
        if categories:
            return categories

        try:
            self._seed_defaults(group)
        except ConflictError:
            # Another request seeded first
            logger.info(f"Default categories for group {group_id} seeded concurrently")

        return self.load_categories(group_id)

    def load_categories(self, group_id: str) -> List[Dict[str, Any]]:
        """Categories of a group without access checks or seeding."""
        categories = self.categories_table.query_all(
            key_condition_expression=Key('group_id').eq(group_id)
        )
        categories.sort(key=lambda c: (c.get('created_at', ''), c.get('position', 0)))
        return categories

    def create_category(
        self,
        user_id: str,
        group_id: str,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create a category.

        Raises:
            ValidationError: If validation fails
            AuthorizationError: If the user is not the owner
        """
        name = sanitize_string(name, max_length=50)
        color = validate_color(color) if color else DEFAULT_COLOR

        self.access.require_owner(group_id, user_id)

        category = {
            'group_id': group_id,
            'category_id': str(uuid.uuid4()),
            'name': name,
            'icon': (icon or '').strip() or DEFAULT_ICON,
            'color': color,
            'created_at': datetime.utcnow().isoformat()
        }
        self.categories_table.put_item(category)

        logger.info(f"Created category {category['category_id']} in group {group_id}")
        return category

    def delete_category(self, user_id: str, group_id: str, category_id: str) -> None:
        """
        Delete a category; expenses that used it become uncategorized.

        Raises:
            NotFoundError: If the category does not exist
            AuthorizationError: If the user is not the owner
        """
        self.access.require_owner(group_id, user_id)

        category = self.categories_table.get_item({'group_id': group_id, 'category_id': category_id})
        if not category:
            raise NotFoundError("Category not found")

        self.categories_table.delete_item({'group_id': group_id, 'category_id': category_id})

        detached = 0
        for table, sort_key in (
            (self.recurring_expenses_table, 'expense_id'),
            (self.one_time_expenses_table, 'one_time_expense_id')
        ):
            expenses = table.query_all(
                key_condition_expression=Key('group_id').eq(group_id),
                filter_expression=Attr('category_id').eq(category_id)
            )
            for expense in expenses:
                table.update_item(
                    key={'group_id': group_id, sort_key: expense[sort_key]},
                    update_expression="SET category_id = :none",
                    expression_values={':none': None}
                )
            detached += len(expenses)

        logger.info(f"Deleted category {category_id}; {detached} expenses uncategorized")

    def _seed_defaults(self, group: Dict[str, Any]) -> None:
        group_id = group['group_id']
        current = int(group.get('category_seed_version') or 0)
        now = datetime.utcnow().isoformat()

        operations = [
            self.groups_table.update_operation(
                key={'group_id': group_id},
                update_expression="SET category_seed_version = :next",
                expression_values={':current': current, ':next': current + 1},
                condition_expression=(
                    'attribute_not_exists(category_seed_version) OR category_seed_version = :current'
                )
            )
        ]
        for position, default in enumerate(DEFAULT_CATEGORIES):
            operations.append(self.categories_table.put_operation({
                'group_id': group_id,
                'category_id': str(uuid.uuid4()),
                'name': default['name'],
                'icon': default['icon'],
                'color': default['color'],
                'position': position,
                'created_at': now
            }))

        self.categories_table.transact_write(operations)
        logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories for group {group_id}")
