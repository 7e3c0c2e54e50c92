"""Lambda handler for category operations."""

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
from categories.models import Category, CategoryCreate
from categories.service import CategoryService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
category_service = CategoryService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for category operations.

    Handles:
    - GET /groups/{id}/categories - List categories (seeding defaults)
    - POST /groups/{id}/categories - Create category
    - DELETE /groups/{id}/categories?category_id= - Delete category
    """
    try:
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        user_id = get_user_id(event)
        group_id = require_param(path_param(event, 'id'), "Group ID")
        http_method = event.get('httpMethod')

        if http_method == 'GET':
            categories = category_service.list_categories(user_id, group_id)
            return success_response(data=[Category.model_validate(c).model_dump() for c in categories])
        elif http_method == 'POST':
            return handle_create(event, user_id, group_id)
        elif http_method == 'DELETE':
            category_id = require_param(query_param(event, 'category_id'), "Category ID")
            category_service.delete_category(user_id, group_id, category_id)
            return success_response(message="Category deleted successfully")
        else:
            return not_found_response("Route not found")

    except LedgerException as e:
        logger.warning(f"Application error: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return internal_error_response()


def handle_create(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle create category."""
    request = parse_model(CategoryCreate, parse_json_body(event))

    category = category_service.create_category(
        user_id=user_id,
        group_id=group_id,
        name=request.name,
        icon=request.icon,
        color=request.color
    )

    return success_response(
        data=Category.model_validate(category).model_dump(),
        message="Category created successfully",
        status_code=201
    )
