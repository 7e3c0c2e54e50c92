"""Lambda handler for recurring expense operations."""

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
from expenses.models import RecurringExpense, RecurringExpenseCreate, RecurringExpenseUpdate
from expenses.service import RecurringExpenseService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
expense_service = RecurringExpenseService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for recurring expense operations.

    Handles:
    - GET /groups/{id}/expenses?month=&year= - List expenses active in a month
    - GET /groups/{id}/expenses?expense_id= - Get expense
    - POST /groups/{id}/expenses - Create expense
    - PUT /groups/{id}/expenses - Update expense
    - DELETE /groups/{id}/expenses?expense_id= - Delete expense

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

        if http_method == 'GET' and query_param(event, 'expense_id'):
            return handle_get(event, user_id, group_id)
        elif http_method == 'GET':
            return handle_list(event, user_id, group_id)
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


def handle_list(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle list expenses active in a month."""
    month, year = resolve_period(event)

    expenses = expense_service.list_active_expenses_for_month(user_id, group_id, month, year)

    return success_response(data={
        'month': month,
        'year': year,
        'expenses': expenses,
        'count': len(expenses)
    })


def handle_get(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle get expense."""
    expense = expense_service.get_recurring_expense(user_id, group_id, query_param(event, 'expense_id'))
    return success_response(data=RecurringExpense.model_validate(expense).model_dump())


def handle_create(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle create expense."""
    request = parse_model(RecurringExpenseCreate, parse_json_body(event))

    expense = expense_service.create_recurring_expense(user_id, group_id, request.model_dump())

    logger.info(f"Recurring expense created successfully: {expense['expense_id']}")

    return success_response(
        data=RecurringExpense.model_validate(expense).model_dump(),
        message="Expense created successfully",
        status_code=201
    )


def handle_update(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle update expense."""
    request = parse_model(RecurringExpenseUpdate, parse_json_body(event))

    expense = expense_service.update_recurring_expense(
        user_id, group_id, request.expense_id, request.changes()
    )

    return success_response(
        data=RecurringExpense.model_validate(expense).model_dump(),
        message="Expense updated successfully"
    )


def handle_delete(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle delete expense."""
    expense_id = require_param(query_param(event, 'expense_id'), "Expense ID")

    expense_service.delete_recurring_expense(user_id, group_id, expense_id)

    return success_response(message="Expense deleted successfully")
