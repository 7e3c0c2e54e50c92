"""AWS Textract service for receipt OCR."""

import boto3
from typing import Any, Dict, List
from botocore.exceptions import BotoCoreError, ClientError
import logging

from shared.config import Settings
from shared.exceptions import ReceiptExtractionError

logger = logging.getLogger(__name__)


class TextractService:
    """AWS Textract client wrapper for receipt text extraction."""

    def __init__(self, settings: Settings):
        """Initialize Textract client."""
        self.enabled = settings.receipt_ocr_enabled

        kwargs = {}
        if settings.endpoint_url:
            kwargs['endpoint_url'] = settings.endpoint_url
        if settings.textract_region:
            kwargs['region_name'] = settings.textract_region

        self.client = boto3.client('textract', **kwargs) if self.enabled else None

    def detect_document_text(self, image_bytes: bytes) -> str:
        """
        Detect all text lines in a receipt image.

        Args:
            image_bytes: Raw image content

        Returns:
            Extracted text, one line per detected LINE block

        Raises:
            ReceiptExtractionError: If extraction is disabled or Textract fails
        """
        if not self.enabled:
            raise ReceiptExtractionError("Receipt text extraction is not configured")

        try:
            logger.info(f"Detecting document text in {len(image_bytes)} bytes")

            response = self.client.detect_document_text(Document={'Bytes': image_bytes})

            text_lines = self._line_texts(response.get('Blocks', []))
            logger.info(f"Extracted {len(text_lines)} lines of text")

            return '\n'.join(text_lines)

        except ClientError as e:
            error_code = e.response['Error']['Code']
            logger.error(f"Text detection failed: {error_code}")
            raise ReceiptExtractionError(f"Text detection failed: {error_code}")
        except BotoCoreError as e:
            logger.error(f"Text detection request failed: {str(e)}")
            raise ReceiptExtractionError(f"Text detection request failed: {str(e)}")

    @staticmethod
    def _line_texts(blocks: List[Dict[str, Any]]) -> List[str]:
        return [block.get('Text', '') for block in blocks if block.get('BlockType') == 'LINE']
