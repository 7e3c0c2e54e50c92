"""DynamoDB utilities and helper functions."""

import boto3
from typing import Any, Dict, List, Optional
from decimal import Decimal
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
import logging

from .exceptions import ConflictError, DatabaseError

logger = logging.getLogger(__name__)

CONFLICT_ERROR_CODES = ('ConditionalCheckFailedException', 'TransactionCanceledException')


class DynamoDBClient:
    """DynamoDB client wrapper with common operations."""

    _serializer = TypeSerializer()

    def __init__(self, table_name: str, endpoint_url: Optional[str] = None):
        """
        Initialize DynamoDB client.

        Args:
            table_name: Name of the DynamoDB table
            endpoint_url: Optional endpoint override (LocalStack)
        """
        self.table_name = table_name

        if endpoint_url:
            self.dynamodb = boto3.resource('dynamodb', endpoint_url=endpoint_url)
        else:
            self.dynamodb = boto3.resource('dynamodb')

        self.table = self.dynamodb.Table(table_name)

    def put_item(
        self,
        item: Dict[str, Any],
        condition_expression: Optional[Any] = None
    ) -> Dict[str, Any]:
        """
        Put an item in the table.

        Args:
            item: Item to put
            condition_expression: Optional condition that must hold for the write

        Returns:
            The item that was put

        Raises:
            ConflictError: If the condition fails
            DatabaseError: If the operation fails
        """
        try:
            # Convert floats to Decimal for DynamoDB
            item = self._python_to_dynamodb(item)
            kwargs = {'Item': item}
            if condition_expression is not None:
                kwargs['ConditionExpression'] = condition_expression
            self.table.put_item(**kwargs)
            return self._dynamodb_to_python(item)
        except ClientError as e:
            self._raise_for_error("putting item", e)

    def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Get an item from the table.

        Args:
            key: Primary key of the item

        Returns:
            The item if found, None otherwise

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            response = self.table.get_item(Key=key, ConsistentRead=True)
            item = response.get('Item')
            if item:
                return self._dynamodb_to_python(item)
            return None
        except ClientError as e:
            self._raise_for_error("getting item", e)

    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_values: Optional[Dict[str, Any]] = None,
        expression_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[Any] = None
    ) -> Dict[str, Any]:
        """
        Update an item in the table.

        Args:
            key: Primary key of the item
            update_expression: Update expression
            expression_values: Expression attribute values
            expression_names: Optional expression attribute names
            condition_expression: Optional condition that must hold for the write

        Returns:
            Updated item

        Raises:
            ConflictError: If the condition fails
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ReturnValues': 'ALL_NEW'
            }

            if expression_values:
                kwargs['ExpressionAttributeValues'] = self._python_to_dynamodb(expression_values)
            if expression_names:
                kwargs['ExpressionAttributeNames'] = expression_names
            if condition_expression is not None:
                kwargs['ConditionExpression'] = condition_expression

            response = self.table.update_item(**kwargs)
            return self._dynamodb_to_python(response['Attributes'])
        except ClientError as e:
            self._raise_for_error("updating item", e)

    def delete_item(self, key: Dict[str, Any]) -> None:
        """
        Delete an item from the table.

        Args:
            key: Primary key of the item

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            self.table.delete_item(Key=key)
        except ClientError as e:
            self._raise_for_error("deleting item", e)

    def query(
        self,
        key_condition_expression: Any,
        filter_expression: Optional[Any] = None,
        index_name: Optional[str] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Query items from the table.

        Args:
            key_condition_expression: Key condition expression
            filter_expression: Optional filter expression
            index_name: Optional index name
            limit: Optional limit
            scan_forward: Sort order (default: True for ascending)
            exclusive_start_key: Optional pagination key

        Returns:
            Dictionary with items and optional LastEvaluatedKey

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {
                'KeyConditionExpression': key_condition_expression,
                'ScanIndexForward': scan_forward
            }

            if filter_expression is not None:
                kwargs['FilterExpression'] = filter_expression
            if index_name:
                kwargs['IndexName'] = index_name
            else:
                kwargs['ConsistentRead'] = True
            if limit:
                kwargs['Limit'] = limit
            if exclusive_start_key:
                kwargs['ExclusiveStartKey'] = exclusive_start_key

            response = self.table.query(**kwargs)

            return {
                'items': [self._dynamodb_to_python(item) for item in response.get('Items', [])],
                'last_evaluated_key': response.get('LastEvaluatedKey')
            }
        except ClientError as e:
            self._raise_for_error("querying items", e)

    def query_all(
        self,
        key_condition_expression: Any,
        filter_expression: Optional[Any] = None,
        index_name: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Query items from the table, following pagination to the end.

        Returns:
            All matching items
        """
        items = []
        last_key = None

        while True:
            result = self.query(
                key_condition_expression=key_condition_expression,
                filter_expression=filter_expression,
                index_name=index_name,
                exclusive_start_key=last_key
            )

            items.extend(result['items'])
            last_key = result.get('last_evaluated_key')

            if not last_key:
                break

        return items

    def batch_write(self, items: List[Dict[str, Any]]) -> None:
        """
        Batch write items to the table.

        Args:
            items: List of items to write

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.put_item(Item=self._python_to_dynamodb(item))
        except ClientError as e:
            self._raise_for_error("batch writing items", e)

    def batch_delete(self, keys: List[Dict[str, Any]]) -> None:
        """
        Batch delete items from the table.

        Args:
            keys: Primary keys of the items to delete

        Raises:
            DatabaseError: If the operation fails
        """
        if not keys:
            return

        try:
            with self.table.batch_writer() as batch:
                for key in keys:
                    batch.delete_item(Key=key)
        except ClientError as e:
            self._raise_for_error("batch deleting items", e)

    def put_operation(
        self,
        item: Dict[str, Any],
        condition_expression: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build a Put entry for transact_write."""
        operation = {
            'TableName': self.table_name,
            'Item': self._serialize(self._python_to_dynamodb(item))
        }
        if condition_expression:
            operation['ConditionExpression'] = condition_expression
        return {'Put': operation}

    def update_operation(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_values: Optional[Dict[str, Any]] = None,
        expression_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build an Update entry for transact_write."""
        operation = {
            'TableName': self.table_name,
            'Key': self._serialize(key),
            'UpdateExpression': update_expression
        }
        if expression_values:
            operation['ExpressionAttributeValues'] = self._serialize(
                self._python_to_dynamodb(expression_values)
            )
        if expression_names:
            operation['ExpressionAttributeNames'] = expression_names
        if condition_expression:
            operation['ConditionExpression'] = condition_expression
        return {'Update': operation}

    def delete_operation(
        self,
        key: Dict[str, Any],
        condition_expression: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build a Delete entry for transact_write."""
        operation = {
            'TableName': self.table_name,
            'Key': self._serialize(key)
        }
        if condition_expression:
            operation['ConditionExpression'] = condition_expression
        return {'Delete': operation}

    def transact_write(self, operations: List[Dict[str, Any]]) -> None:
        """
        Write several items, possibly across tables, in one transaction.

        Args:
            operations: Entries built with put_operation/update_operation/delete_operation

        Raises:
            ConflictError: If any condition fails or the transaction is cancelled
            DatabaseError: If the operation fails
        """
        if not operations:
            return

        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=operations)
        except ClientError as e:
            self._raise_for_error("writing transaction", e)

    def _raise_for_error(self, action: str, error: ClientError) -> None:
        error_code = error.response.get('Error', {}).get('Code')

        if error_code in CONFLICT_ERROR_CODES:
            logger.warning(f"Conflict {action} on {self.table_name}: {error_code}")
            raise ConflictError(f"Concurrent modification detected while {action}")

        logger.error(f"Error {action} on {self.table_name}: {error}")
        raise DatabaseError(f"Failed {action}: {str(error)}")

    @classmethod
    def _serialize(cls, item: Dict[str, Any]) -> Dict[str, Any]:
        return {k: cls._serializer.serialize(v) for k, v in item.items()}

    @staticmethod
    def _python_to_dynamodb(obj: Any) -> Any:
        """Convert Python objects to DynamoDB compatible format."""
        if isinstance(obj, dict):
            return {k: DynamoDBClient._python_to_dynamodb(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DynamoDBClient._python_to_dynamodb(item) for item in obj]
        elif isinstance(obj, float):
            return Decimal(str(obj))
        return obj

    @staticmethod
    def _dynamodb_to_python(obj: Any) -> Any:
        """Convert DynamoDB objects to Python format."""
        if isinstance(obj, dict):
            return {k: DynamoDBClient._dynamodb_to_python(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DynamoDBClient._dynamodb_to_python(item) for item in obj]
        elif isinstance(obj, Decimal):
            if obj % 1 == 0:
                return int(obj)
            return float(obj)
        return obj
