"""Lambda handler for one-time expense operations."""

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
    require_param,
    resolve_period
)
from shared.response import (
    success_response,
    exception_response,
    internal_error_response,
    not_found_response
)
from one_time_expenses.models import OneTimeExpenseCreate, OneTimeExpenseUpdate
from one_time_expenses.service import OneTimeExpenseService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
one_time_expense_service = OneTimeExpenseService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for one-time expense operations.

    Handles:
    - GET /groups/{id}/one-time-expenses?month=&year= - List expenses of a month
    - GET /groups/{id}/one-time-expenses?one_time_expense_id= - Get expense
    - POST /groups/{id}/one-time-expenses - Create expense
    - PUT /groups/{id}/one-time-expenses - Update expense
    - DELETE /groups/{id}/one-time-expenses?one_time_expense_id= - Delete expense
    """
    try:
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        user_id = get_user_id(event)
        group_id = require_param(path_param(event, 'id'), "Group ID")
        http_method = event.get('httpMethod')
        one_time_expense_id = query_param(event, 'one_time_expense_id')

        if http_method == 'GET' and one_time_expense_id:
            expense = one_time_expense_service.get_one_time_expense(user_id, group_id, one_time_expense_id)
            return success_response(data=expense)
        elif http_method == 'GET':
            return handle_list(event, user_id, group_id)
        elif http_method == 'POST':
            return handle_create(event, user_id, group_id)
        elif http_method == 'PUT':
            return handle_update(event, user_id, group_id)
        elif http_method == 'DELETE':
            one_time_expense_service.delete_one_time_expense(
                user_id, group_id, require_param(one_time_expense_id, "Expense ID")
            )
            return success_response(message="Expense deleted successfully")
        else:
            return not_found_response("Route not found")

    except LedgerException as e:
        logger.warning(f"Application error: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return internal_error_response()


def handle_list(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle list expenses of a month."""
    month, year = resolve_period(event)

    expenses = one_time_expense_service.list_one_time_expenses(user_id, group_id, month, year)

    return success_response(data={
        'month': month,
        'year': year,
        'expenses': expenses,
        'count': len(expenses)
    })


def handle_create(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle create expense."""
    request = parse_model(OneTimeExpenseCreate, parse_json_body(event))

    expense = one_time_expense_service.create_one_time_expense(user_id, group_id, request.model_dump())

    return success_response(
        data=expense,
        message="Expense created successfully",
        status_code=201
    )


def handle_update(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle update expense."""
    request = parse_model(OneTimeExpenseUpdate, parse_json_body(event))

    expense = one_time_expense_service.update_one_time_expense(
        user_id, group_id, request.one_time_expense_id, request.changes()
    )

    return success_response(data=expense, message="Expense updated successfully")
