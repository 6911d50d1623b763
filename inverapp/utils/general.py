# inverapp/utils/general.py
"""
Helpers shared by the blueprints: turning service results into responses
and making computed payloads safe for JSON.
"""

import math

from flask import jsonify
from inverapp.jwt_auth import admin_required, finance_admin_required


def _handle_service_result(result, default_error_status=500):
    """
    Services return either a result dict or an (error_dict, status) tuple.
    Failures get an 'error_code' mirroring the HTTP status so the frontend
    can branch on it without reading the status line.
    """
    if isinstance(result, tuple) and len(result) == 2:
        body, status_code = result
        if not body.get("success", True):
            body.setdefault("error_code", status_code)
        return jsonify(body), status_code

    if result.get("success"):
        return jsonify(result), 200

    result.setdefault("error_code", default_error_status)
    return jsonify(result), default_error_status


def convert_to_json_safe(obj):
    """
    Recursively replaces NaN and infinities with None and expands anything
    exposing to_dict() (breakdowns, records).
    """
    if isinstance(obj, dict):
        return {k: convert_to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [convert_to_json_safe(i) for i in obj]
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if hasattr(obj, 'to_dict'):
        return convert_to_json_safe(obj.to_dict())
    return obj


__all__ = [
    '_handle_service_result',
    'convert_to_json_safe',
    'admin_required',
    'finance_admin_required',
]
