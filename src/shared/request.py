"""Helpers for reading API Gateway proxy events."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import AuthenticationError, ValidationError
from .validators import validate_month, validate_year

ModelT = TypeVar('ModelT', bound=BaseModel)


def get_user_id(event: Dict[str, Any]) -> str:
    """
    Extract user ID from Cognito authorizer claims.

    Args:
        event: Lambda event

    Returns:
        User ID (sub claim)

    Raises:
        AuthenticationError: If the request carries no identity
    """
    request_context = event.get('requestContext') or {}
    authorizer = request_context.get('authorizer') or {}
    claims = authorizer.get('claims') or {}
    user_id = claims.get('sub')

    if not user_id:
        raise AuthenticationError()

    return user_id


def get_user_name(event: Dict[str, Any]) -> Optional[str]:
    """Display name from Cognito claims, if present."""
    request_context = event.get('requestContext') or {}
    claims = (request_context.get('authorizer') or {}).get('claims') or {}
    return claims.get('name')


def parse_json_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse the JSON request body.

    Raises:
        ValidationError: If the body is not a JSON object
    """
    try:
        body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON body")

    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    return body


def parse_model(model_class: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """
    Validate request data against a pydantic model.

    Raises:
        ValidationError: Listing the invalid fields
    """
    try:
        return model_class.model_validate(data)
    except PydanticValidationError as e:
        fields = sorted({'.'.join(str(part) for part in error['loc']) or 'body' for error in e.errors()})
        raise ValidationError(f"Invalid fields: {', '.join(fields)}")


def path_param(event: Dict[str, Any], name: str) -> Optional[str]:
    """Get a path parameter."""
    return (event.get('pathParameters') or {}).get(name)


def query_param(event: Dict[str, Any], name: str) -> Optional[str]:
    """Get a query string parameter."""
    return (event.get('queryStringParameters') or {}).get(name)


def require_param(value: Optional[str], name: str) -> str:
    """Ensure a path or query parameter was supplied."""
    if not value:
        raise ValidationError(f"{name} is required")
    return value


def current_period(now: Optional[datetime] = None) -> Tuple[int, int]:
    """
    Current (month, year) in UTC.

    Computed at call time, never cached.
    """
    now = now or datetime.now(timezone.utc)
    return now.month, now.year


def resolve_period(event: Dict[str, Any]) -> Tuple[int, int]:
    """
    Read month/year from the query string, defaulting to the current month.

    Returns:
        Tuple of (month, year)
    """
    default_month, default_year = current_period()
    month = query_param(event, 'month')
    year = query_param(event, 'year')

    return (
        validate_month(month) if month else default_month,
        validate_year(year) if year else default_year
    )
