"""Lambda handler for member operations."""

import os
import logging
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import get_settings
from shared.exceptions import LedgerException
from shared.request import (
    get_user_id,
    parse_json_body,
    parse_model,
    path_param,
    query_param,
    require_param
)
from shared.response import (
    success_response,
    exception_response,
    internal_error_response,
    not_found_response
)
from members.models import MemberCreate, MemberUpdate
from members.service import MemberService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
member_service = MemberService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for member operations.

    Handles:
    - GET /groups/{id}/members - List members
    - POST /groups/{id}/members - Add member
    - PUT /groups/{id}/members - Update member name/quota
    - DELETE /groups/{id}/members?member_id= - Remove member

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    try:
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        user_id = get_user_id(event)
        group_id = require_param(path_param(event, 'id'), "Group ID")
        http_method = event.get('httpMethod')

        if http_method == 'GET':
            return success_response(data=member_service.list_members(user_id, group_id))
        elif http_method == 'POST':
            return handle_create(event, user_id, group_id)
        elif http_method == 'PUT':
            return handle_update(event, user_id, group_id)
        elif http_method == 'DELETE':
            return handle_delete(event, user_id, group_id)
        else:
            return not_found_response("Route not found")

    except LedgerException as e:
        logger.warning(f"Application error: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return internal_error_response()


def handle_create(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle add member."""
    request = parse_model(MemberCreate, parse_json_body(event))

    member = member_service.record_member_quota(
        user_id=user_id,
        group_id=group_id,
        name=request.name,
        quota_percent=request.quota_percent,
        member_user_id=request.user_id
    )

    return success_response(
        data=member,
        message="Member added successfully",
        status_code=201
    )


def handle_update(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle update member."""
    request = parse_model(MemberUpdate, parse_json_body(event))

    member = member_service.record_member_quota(
        user_id=user_id,
        group_id=group_id,
        name=request.name,
        quota_percent=request.quota_percent,
        member_id=request.member_id
    )

    return success_response(data=member, message="Member updated successfully")


def handle_delete(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle remove member."""
    member_id = require_param(query_param(event, 'member_id'), "Member ID")

    member_service.delete_member(user_id, group_id, member_id)

    return success_response(message="Member removed successfully")
