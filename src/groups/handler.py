"""Lambda handler for group operations."""

import os
import logging
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import get_settings
from shared.exceptions import LedgerException
from shared.request import get_user_id, get_user_name, parse_json_body, parse_model, path_param
from shared.response import (
    success_response,
    exception_response,
    internal_error_response,
    not_found_response
)
from groups.models import Group, GroupCreate
from groups.service import GroupService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
group_service = GroupService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for group operations.

    Handles:
    - GET /groups - List the caller's groups
    - POST /groups - Create group
    - GET /groups/{id} - Get group
    - DELETE /groups/{id} - Delete group and everything it owns

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    try:
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        user_id = get_user_id(event)
        http_method = event.get('httpMethod')
        group_id = path_param(event, 'id')

        if group_id is None and http_method == 'GET':
            return handle_list(user_id)
        elif group_id is None and http_method == 'POST':
            return handle_create(event, user_id)
        elif group_id and http_method == 'GET':
            return handle_get(user_id, group_id)
        elif group_id and http_method == 'DELETE':
            return handle_delete(user_id, group_id)
        else:
            return not_found_response("Route not found")

    except LedgerException as e:
        logger.warning(f"Application error: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return internal_error_response()


def handle_list(user_id: str) -> Dict[str, Any]:
    """Handle list groups."""
    groups = group_service.list_groups(user_id)
    return success_response(data=[Group.model_validate(g).model_dump() for g in groups])


def handle_create(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """Handle create group."""
    request = parse_model(GroupCreate, parse_json_body(event))

    group = group_service.create_group(
        user_id=user_id,
        name=request.name,
        owner_name=request.owner_name or get_user_name(event)
    )

    logger.info(f"Group created successfully: {group['group_id']}")

    return success_response(
        data=Group.model_validate(group).model_dump(),
        message="Group created successfully",
        status_code=201
    )


def handle_get(user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle get group."""
    group = group_service.get_group(user_id, group_id)
    return success_response(data=Group.model_validate(group).model_dump())


def handle_delete(user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle delete group."""
    group_service.delete_group(user_id, group_id)

    logger.info(f"Group deleted successfully: {group_id}")

    return success_response(message="Group deleted successfully")
