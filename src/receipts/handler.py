"""Lambda handler for receipt operations."""

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
from receipts.models import ReceiptUploadRequest
from receipts.service import ReceiptService

settings = get_settings()

# Configure logging
logger = logging.getLogger()
logger.setLevel(settings.log_level)

# Initialize service
receipt_service = ReceiptService(settings)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for receipt operations.

    Handles:
    - POST /groups/{id}/receipts - Upload receipt and extract its text
    - GET /groups/{id}/receipts?one_time_expense_id= - Get receipt text
    - DELETE /groups/{id}/receipts?one_time_expense_id= - Clear receipt text

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

        if http_method == 'POST':
            return handle_upload(event, user_id, group_id)
        elif http_method == 'GET':
            expense_id = require_param(query_param(event, 'one_time_expense_id'), "Expense ID")
            return success_response(data=receipt_service.get_receipt_text(user_id, group_id, expense_id))
        elif http_method == 'DELETE':
            expense_id = require_param(query_param(event, 'one_time_expense_id'), "Expense ID")
            receipt_service.clear_receipt(user_id, group_id, expense_id)
            return success_response(message="Receipt deleted successfully")
        else:
            return not_found_response("Route not found")

    except LedgerException as e:
        logger.warning(f"Application error: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return internal_error_response()


def handle_upload(event: Dict[str, Any], user_id: str, group_id: str) -> Dict[str, Any]:
    """Handle receipt upload."""
    request = parse_model(ReceiptUploadRequest, parse_json_body(event))

    result = receipt_service.attach_receipt(
        user_id=user_id,
        group_id=group_id,
        one_time_expense_id=request.one_time_expense_id,
        image_data=request.image_data,
        content_type=request.content_type
    )

    message = "Receipt processed successfully"
    if result['ocr_error']:
        message = "Receipt saved but text extraction failed"

    return success_response(data=result, message=message)
