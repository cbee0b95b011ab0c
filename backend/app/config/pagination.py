"""Page window for list endpoints (board, customers, labels, activity, users)."""
DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def _as_int(raw, name: str, default: int) -> int:
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f'{name} must be an integer')


def normalize_pagination(limit_raw, offset_raw):
    """Return (limit, offset); out-of-range values are clamped, not rejected."""
    limit = min(max(_as_int(limit_raw, 'limit', DEFAULT_LIMIT), 1), MAX_LIMIT)
    offset = max(_as_int(offset_raw, 'offset', 0), 0)
    return limit, offset
