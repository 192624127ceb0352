"""
Domain Error Decorator

Converts domain errors raised inside a view into structured JSON error
responses, so views only describe the success path.
"""

import logging
from functools import wraps

from flask import jsonify, make_response

from filedrop.domain.errors import (
    DomainError,
    ErrorCategory,
    create_error_response,
    error_response_for,
)

logger = logging.getLogger(__name__)


def json_error(category: ErrorCategory, technical_message: str = None, status_code: int = None):
    """
    Build a JSON error response.

    Args:
        category: Error category
        technical_message: Details for the log
        status_code: Overrides the category's status

    Returns:
        Flask response
    """
    body, status = create_error_response(category, technical_message, status_code=status_code)
    return make_response(jsonify(body), status)


def handle_domain_errors(f):
    """
    Decorator mapping DomainError subclasses to their HTTP error responses.

    Usage:
        @handle_domain_errors
        def get(self, name):
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except DomainError as e:
            body, status = error_response_for(e)
            if status >= 500:
                logger.error(f"{e.category.value}: {e}", exc_info=e.original_error or e)
            else:
                logger.info(f"{e.category.value}: {e}")
            return make_response(jsonify(body), status)

    return decorated_function
