"""Domain errors raised by the labeling and reporting core.

Each error carries the HTTP status code and the ``comment`` code used in the
``{'success': False, 'comment': ...}`` response envelope.
"""

from contextlib import contextmanager
import logging

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class LabelingError(Exception):
    status_code = 500
    comment = 'INTERNAL_ERROR'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            'success': False,
            'comment': self.comment,
            'error': self.message,
        }


class NotFoundError(LabelingError):
    status_code = 404
    comment = 'NOT_FOUND'


class ValidationError(LabelingError):
    status_code = 400
    comment = 'VALIDATION_ERROR'


class ConflictError(LabelingError):
    status_code = 409
    comment = 'CONFLICT'


class InternalError(LabelingError):
    status_code = 500
    comment = 'INTERNAL_ERROR'


def _is_foreign_key_violation(error: IntegrityError) -> bool:
    # Postgres reports SQLSTATE 23503, SQLite only a message
    code = getattr(error.orig, 'pgcode', None)
    if code is not None:
        return code == '23503'
    return 'FOREIGN KEY' in str(error.orig).upper()


@contextmanager
def translate_store_errors(action: str):
    """Translate store failures raised inside the block into domain errors.

    Uniqueness violations become ConflictError, missing related rows become
    NotFoundError and anything unexpected becomes InternalError with the
    original exception chained as its cause. Domain errors pass through.

    Args:
        action (str): Short description of the operation, used in messages and logs.
    """
    try:
        yield
    except LabelingError:
        raise
    except IntegrityError as e:
        if _is_foreign_key_violation(e):
            logger.warning("Missing related row while trying to %s: %s", action, e.orig)
            raise NotFoundError(f"Referenced record not found while trying to {action}") from e
        logger.warning("Uniqueness violation while trying to %s: %s", action, e.orig)
        raise ConflictError(f"Conflicting record while trying to {action}") from e
    except Exception as e:
        logger.exception("Failed to %s", action)
        raise InternalError(f"Failed to {action}") from e
