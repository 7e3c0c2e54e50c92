"""Lambda handler for settlement operations."""

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
from settlement.models import PaymentConfirmation, PaymentCreate
from settlement.service import SettlementService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
settlement_service = SettlementService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for settlement operations.

    Handles:
    - GET /groups/{id}/settlement?month=&year= - Monthly settlement report
    - GET /groups/{id}/payments?month=&year= - List member payments
    - POST /groups/{id}/payments - Record member payment
    - PATCH /groups/{id}/payments - Confirm or unconfirm payment
    - DELETE /groups/{id}/payments?payment_id= - Delete payment

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
        path = event.get('path') or ''

        if path.endswith('/settlement') and http_method == 'GET':
            return handle_report(event, user_id, group_id)
        elif path.endswith('/payments') and http_method == 'GET':
            month, year = resolve_period(event)
            return success_response(data=settlement_service.list_payments(user_id, group_id, month, year))
        elif path.endswith('/payments') and http_method == 'POST':
            return handle_record(event, user_id, group_id)
        elif path.endswith('/payments') and http_method == 'PATCH':
            return handle_confirm(event, user_id, group_id)
        elif path.endswith('/payments') and http_method == 'DELETE':
            payment_id = require_param(query_param(event, 'payment_id'), "Payment ID")
            settlement_service.delete_payment(user_id, group_id, payment_id)
            return success_response(message="Payment deleted successfully")
        else:
            return not_found_response("Route not found")

    except LedgerException as e:
        logger.warning(f"Application error: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return internal_error_response()


def handle_report(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle monthly settlement report."""
    month, year = resolve_period(event)

    report = settlement_service.compute_monthly_settlement(user_id, group_id, month, year)

    return success_response(data=report)


def handle_record(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle record member payment."""
    request = parse_model(PaymentCreate, parse_json_body(event))

    payment = settlement_service.record_member_settlement_payment(
        user_id=user_id,
        group_id=group_id,
        member_id=request.member_id,
        month=request.month,
        year=request.year,
        amount_paid=request.amount_paid,
        is_confirmed=request.is_confirmed
    )

    return success_response(
        data=payment,
        message="Payment recorded successfully",
        status_code=201
    )


def handle_confirm(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle confirm or unconfirm payment."""
    request = parse_model(PaymentConfirmation, parse_json_body(event))

    payment = settlement_service.confirm_or_unconfirm_payment(
        user_id, group_id, request.payment_id, request.is_confirmed
    )

    return success_response(data=payment, message="Payment updated successfully")
