"""Helpers shared by the route handlers: request parsing and error envelopes."""

import logging

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from utils import Response
from utils.errors import LabelingError, ValidationError

logger = logging.getLogger(__name__)


def query_params(event: dict) -> dict:
    return event.get('queryStringParameters', {}) or {}


def path_param(event: dict, name: str) -> str:
    return (event.get('pathParameters', {}) or {}).get(name, '')


def request_body(event: dict) -> dict:
    """The decoded JSON body of the request.

    Raises:
        ValidationError: If the body is missing or is not a JSON object.
    """
    body = event.get('body')
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _describe(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item.get('loc', ())) or 'body'
        parts.append(f"{location}: {item.get('msg')}")
    return '; '.join(parts)


def parse_model(model: type[BaseModel], data: dict):
    """Validate ``data`` into ``model``, reporting failures as ValidationError."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_describe(e)) from e


def parse_int(value, name: str, minimum: int | None = None, maximum: int | None = None) -> int:
    """Parse an integer parameter, optionally bounded to ``minimum..maximum``."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer") from e
    if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
        raise ValidationError(f"{name} must be between {minimum} and {maximum}")
    return number


def error_response(response: Response, error: LabelingError):
    """Write the ``{'success': False, 'comment', 'error'}`` envelope for a domain error."""
    if error.status_code >= 500:
        logger.error("%s: %s", error.comment, error.message, exc_info=error.__cause__)
    return response.status(error.status_code).json(error.to_dict())
