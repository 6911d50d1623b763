# inverapp/utils/__init__.py
"""
Utility functions package.

This package contains reusable utility functions organized by domain:
- general.py: Service result handling and JSON sanitizing
- math_utils.py: Total numeric coercion and rounding used by the pricing engine
- formatting.py: UF / peso display formatting
"""

from .general import _handle_service_result, convert_to_json_safe
from .general import admin_required, finance_admin_required

__all__ = [
    '_handle_service_result',
    'convert_to_json_safe',
    'admin_required',
    'finance_admin_required',
]
