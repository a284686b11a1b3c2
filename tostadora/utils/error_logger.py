"""
Error Logger Utility
Stores unhandled request errors in the error_logs table with request context.
"""

import json
import logging
import traceback
from datetime import datetime
from flask import request, has_request_context
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# Keys to redact from request data
SENSITIVE_KEYS = {
    'password', 'token', 'secret', 'api_key', 'key', 'authorization', 'cookie', 'session'
}


def _sanitize_data(data):
    """Redact sensitive keys from a dict."""
    if not isinstance(data, dict):
        return data
    sanitized = {}
    for key, value in data.items():
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            sanitized[key] = '[REDACTED]'
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_data(value)
        else:
            sanitized[key] = str(value)[:500]  # Truncate long values
    return sanitized


def _request_data():
    raw_data = {}
    if request.args:
        raw_data['args'] = dict(request.args)
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        raw_data['json'] = payload
    if not raw_data:
        return None
    return json.dumps(_sanitize_data(raw_data))[:4000]


def log_error(error, status_code=500):
    """
    Log an error to the database.

    Safe to call from error handlers: a failure to store the entry is
    logged and rolled back, never raised.

    Args:
        error: The exception or error object
        status_code: HTTP status code (default 500)

    Returns:
        ErrorLog: The stored entry, or None
    """
    from tostadora.models import db, ErrorLog

    tb = traceback.format_exc()
    error_log = ErrorLog(
        timestamp=datetime.utcnow(),
        error_type=type(error).__name__,
        error_message=str(error)[:2000],
        traceback=None if tb == 'NoneType: None\n' else tb,
        status_code=status_code,
    )

    if has_request_context():
        error_log.request_url = request.url[:512]
        error_log.request_method = request.method
        error_log.request_data = _request_data()
        error_log.ip_address = request.remote_addr
        error_log.blueprint = request.blueprints[0] if request.blueprints else None
        error_log.endpoint = request.endpoint

    try:
        db.session.add(error_log)
        db.session.commit()
        return error_log
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Could not store error log entry: {e}")
        return None
