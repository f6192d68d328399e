"""
Standardized API response helpers.

Every JSON endpoint answers with the same envelope:

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "...", "code": "..."}

Usage:
    from utils.api_response import api_success, api_error

    return api_success(data={'step': 2}, message='Saved')
    return api_error('Postcode not found', status=422, code='postcode_not_found')
"""

from flask import jsonify
from typing import Any


def api_success(
    data: dict | None = None,
    message: str | None = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a standardized success JSON response.

    Args:
        data: Optional dict to include as 'data' key.
        message: Optional success message.
        status: HTTP status code (default 200).
        **extra_fields: Additional top-level fields.

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}

    if data is not None:
        response['data'] = data

    if message:
        response['message'] = message

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_error(error: str, status: int = 400, code: str | None = None, **extra_fields: Any) -> tuple:
    """
    Build a standardized error JSON response.

    Args:
        error: User-facing error message.
        status: HTTP status code (default 400).
        code: Machine-readable error code (e.g. 'postcode_not_found').
        **extra_fields: Additional top-level fields (e.g. field errors).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': False, 'error': error}

    if code:
        response['code'] = code

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status
