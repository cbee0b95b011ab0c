from __future__ import annotations
"""Reusable validation helpers for request payloads.

All helpers abort with 400 so route handlers can use them inline.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional
from flask import abort

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
# fits a signed 64-bit INTEGER column with room to spare
MAX_COST_CENTS = 10 ** 12


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or aborts with 400.
    """
    if new_status not in allowed:
        abort(400, description=f"{field_name} invalid")
    return new_status


def validate_email(email: Any) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email):
        abort(400, description='Invalid email format')
    return email


def require_fields(data: dict, *names: str):
    missing = [n for n in names if not data.get(n)]
    if missing:
        abort(400, description=f"Missing required fields: {', '.join(names)}")


def parse_cost_cents(raw: Any, field_name: str = 'estimatedCost') -> Optional[int]:
    """Money arrives as a decimal string or number; stored as integer cents.

    Empty values clear the field.
    """
    if raw is None or raw == '':
        return None
    if isinstance(raw, bool):
        abort(400, description=f'{field_name} invalid')
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        abort(400, description=f'{field_name} invalid')
    if not amount.is_finite() or amount < 0 or amount * 100 > MAX_COST_CENTS:
        abort(400, description=f'{field_name} invalid')
    try:
        return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        abort(400, description=f'{field_name} invalid')


def format_cents(cents: Optional[int]) -> Optional[str]:
    if cents is None:
        return None
    return f"{Decimal(cents) / 100:.2f}"


def parse_bool(raw: Any, field_name: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.lower() in ('true', 'false'):
        return raw.lower() == 'true'
    abort(400, description=f'{field_name} must be boolean')

__all__ = ['validate_status', 'validate_email', 'require_fields', 'parse_cost_cents', 'format_cents', 'parse_bool']
