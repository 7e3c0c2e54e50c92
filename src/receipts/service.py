"""Receipt service: attach receipt text to one-time expenses."""

import base64
from typing import Dict, Any, Optional
from datetime import datetime
import logging

from shared.access import GroupAccess
from shared.config import Settings, get_settings
from shared.dynamodb import DynamoDBClient
from shared.validators import (
    decode_base64_image,
    validate_file_size,
    validate_image_content_type
)
from shared.exceptions import NotFoundError, ReceiptExtractionError
from receipts.textract_service import TextractService

logger = logging.getLogger(__name__)


class ReceiptService:
    """
    Extracts text from receipt images and stores it on the expense.

    Images themselves are not stored. Text extraction failures never fail
    the request: the expense keeps an empty receipt text and the error is
    reported back to the caller.
    """

    def __init__(self, settings: Optional[Settings] = None, textract: Optional[TextractService] = None):
        """Initialize receipt service."""
        settings = settings or get_settings()

        self.one_time_expenses_table = DynamoDBClient(settings.one_time_expenses_table, settings.endpoint_url)
        self.textract = textract or TextractService(settings)
        self.max_size_mb = settings.receipt_max_size_mb
        self.access = GroupAccess(settings)

    def attach_receipt(
        self,
        user_id: str,
        group_id: str,
        one_time_expense_id: str,
        image_data: str,
        content_type: str
    ) -> Dict[str, Any]:
        """
        Extract a receipt's text and store it on a one-time expense.

        Args:
            user_id: Acting user ID (must be a group member)
            group_id: Group ID
            one_time_expense_id: Expense the receipt belongs to
            image_data: Base64-encoded image
            content_type: Image MIME type

        Returns:
            Dictionary with receipt_text, ocr_error and image_url (a data URI)

        Raises:
            ValidationError: If the image is invalid or too large
            NotFoundError: If the group or expense is not found
        """
        content_type = validate_image_content_type(content_type)
        image_bytes = decode_base64_image(image_data)
        validate_file_size(len(image_bytes), self.max_size_mb)

        self.access.require_member(group_id, user_id)
        self._load_expense(group_id, one_time_expense_id)

        receipt_text = ''
        ocr_error = None
        try:
            receipt_text = self.textract.detect_document_text(image_bytes)
        except ReceiptExtractionError as e:
            logger.warning(f"Receipt text extraction failed for {one_time_expense_id}: {e.message}")
            ocr_error = e.message

        self._set_receipt_text(group_id, one_time_expense_id, receipt_text)

        logger.info(f"Attached receipt to one-time expense {one_time_expense_id}")

        encoded = base64.b64encode(image_bytes).decode('ascii')
        return {
            'receipt_text': receipt_text,
            'ocr_error': ocr_error,
            'image_url': f"data:{content_type};base64,{encoded}"
        }

    def get_receipt_text(self, user_id: str, group_id: str, one_time_expense_id: str) -> Dict[str, Any]:
        """Stored receipt text of a one-time expense."""
        self.access.require_member(group_id, user_id)
        expense = self._load_expense(group_id, one_time_expense_id)

        return {
            'one_time_expense_id': one_time_expense_id,
            'receipt_text': expense.get('receipt_text')
        }

    def clear_receipt(self, user_id: str, group_id: str, one_time_expense_id: str) -> None:
        """Remove the receipt text from a one-time expense."""
        self.access.require_member(group_id, user_id)
        self._load_expense(group_id, one_time_expense_id)

        self._set_receipt_text(group_id, one_time_expense_id, None)

        logger.info(f"Cleared receipt of one-time expense {one_time_expense_id}")

    def _load_expense(self, group_id: str, one_time_expense_id: str) -> Dict[str, Any]:
        expense = self.one_time_expenses_table.get_item({
            'group_id': group_id,
            'one_time_expense_id': one_time_expense_id
        })

        if not expense:
            raise NotFoundError("Expense not found")

        return expense

    def _set_receipt_text(self, group_id: str, one_time_expense_id: str, receipt_text: Optional[str]) -> None:
        self.one_time_expenses_table.update_item(
            key={'group_id': group_id, 'one_time_expense_id': one_time_expense_id},
            update_expression="SET receipt_text = :text, updated_at = :updated_at",
            expression_values={
                ':text': receipt_text,
                ':updated_at': datetime.utcnow().isoformat()
            }
        )
