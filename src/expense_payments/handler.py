"""Lambda handler for recurring expense payment operations."""

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
from expense_payments.models import ExpensePaymentCreate
from expense_payments.service import ExpensePaymentService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
expense_payment_service = ExpensePaymentService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for recurring expense payment operations.

    Handles:
    - GET /groups/{id}/expense-payments?month=&year= - List payments of a month
    - POST /groups/{id}/expense-payments - Record (or overwrite) a payment
    - DELETE /groups/{id}/expense-payments?payment_id= - Delete a payment
    """
    try:
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        user_id = get_user_id(event)
        group_id = require_param(path_param(event, 'id'), "Group ID")
        http_method = event.get('httpMethod')

        if http_method == 'GET':
            month, year = resolve_period(event)
            payments = expense_payment_service.list_expense_payments(user_id, group_id, month, year)
            return success_response(data=payments)
        elif http_method == 'POST':
            return handle_record(event, user_id, group_id)
        elif http_method == 'DELETE':
            payment_id = require_param(query_param(event, 'payment_id'), "Payment ID")
            expense_payment_service.delete_expense_payment(user_id, group_id, payment_id)
            return success_response(message="Payment deleted successfully")
        else:
            return not_found_response("Route not found")

    except LedgerException as e:
        logger.warning(f"Application error: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return internal_error_response()


def handle_record(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle record payment."""
    request = parse_model(ExpensePaymentCreate, parse_json_body(event))

    result = expense_payment_service.record_recurring_payment(
        user_id=user_id,
        group_id=group_id,
        expense_id=request.expense_id,
        month=request.month,
        year=request.year,
        amount=request.amount
    )

    if result['updated']:
        return success_response(data=result, message="Payment updated successfully")

    return success_response(data=result, message="Payment recorded successfully", status_code=201)
