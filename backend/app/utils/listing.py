from __future__ import annotations
from typing import Iterable, Optional, Tuple
from flask import request, abort, make_response
from sqlalchemy.orm import Query
from app.config.pagination import normalize_pagination
import hashlib
from datetime import datetime, timezone, timedelta
from email.utils import parsedate_to_datetime, format_datetime

TIMESTAMP_TOLERANCE = timedelta(seconds=1)


def canonicalize_timestamp(dt: datetime) -> datetime:
    """Return UTC tz-aware timestamp truncated to whole seconds (microseconds removed)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.replace(microsecond=0)


def iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace('+00:00', 'Z')


def pagination_args() -> Tuple[int, int]:
    try:
        return normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    limit, offset = pagination_args()
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def compute_etag(ids: Iterable, total: int, limit: int, offset: int, latest_ts: Optional[str] = '') -> str:
    seed = f"{list(ids)}|{total}|{limit}|{offset}|{latest_ts or ''}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def build_list_payload(key: str, rows: list, total: int, limit: int, offset: int):
    return {
        key: rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'hasMore': offset + limit < total,
        }
    }


def _http_date(dt: datetime) -> str:
    """Return RFC1123 HTTP-date string in GMT."""
    return format_datetime(dt, usegmt=True)


def make_cached_list_response(key: str, rows: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    ids = [r.get('id') for r in rows]
    latest_ts_c = canonicalize_timestamp(latest_ts) if isinstance(latest_ts, datetime) else None
    latest_iso = iso(latest_ts_c) or ''
    etag = compute_etag(ids, total, limit, offset, latest_iso)
    resp = make_response(build_list_payload(key, rows, total, limit, offset))
    resp.headers['ETag'] = etag
    if latest_ts_c:
        resp.headers['Last-Modified'] = _http_date(latest_ts_c)
    return resp, etag


def _parse_if_modified_since(header_val: str) -> Optional[datetime]:
    if not header_val:
        return None
    try:
        dt = parsedate_to_datetime(header_val)
    except (TypeError, ValueError):
        return None
    if dt and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def handle_conditional(etag_value: str, latest_ts: Optional[datetime]):
    """Evaluate conditional request headers.

    Precedence: If-None-Match over If-Modified-Since (per RFC 9110 semantics).
    Returns a 304 response object if conditions satisfied, else None.
    """
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag_value:
        resp = make_response('', 304)
        resp.headers['ETag'] = etag_value
        return resp
    ims_raw = request.headers.get('If-Modified-Since')
    if not inm and ims_raw and latest_ts:
        ims_dt = _parse_if_modified_since(ims_raw)
        if ims_dt:
            latest_c = canonicalize_timestamp(latest_ts)
            if latest_c <= canonicalize_timestamp(ims_dt) + TIMESTAMP_TOLERANCE:
                resp = make_response('', 304)
                resp.headers['ETag'] = etag_value
                resp.headers['Last-Modified'] = _http_date(latest_c)
                return resp
    return None


def cached_list(key: str, rows: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    """Build the list response, or a 304 when the client copy is current."""
    resp, etag = make_cached_list_response(key, rows, total, limit, offset, latest_ts)
    cond = handle_conditional(etag, latest_ts)
    return cond or resp
