from __future__ import annotations
from flask import Blueprint, request, abort, current_app
from sqlalchemy.exc import SQLAlchemyError
from app import get_checked_db
from app.decorators.auth import require_user
from app.services.reporting import dashboard_stats

dashboard_bp = Blueprint('dashboard', __name__)

DEFAULT_RANGE_DAYS = 30
MAX_RANGE_DAYS = 36500


@dashboard_bp.get('/stats')
@require_user
def stats():
    raw = request.args.get('range')
    try:
        days = int(raw) if raw else DEFAULT_RANGE_DAYS
    except ValueError:
        abort(400, description='range must be a whole number of days')
    if not 1 <= days <= MAX_RANGE_DAYS:
        abort(400, description=f'range must be between 1 and {MAX_RANGE_DAYS} days')
    session = get_checked_db()
    try:
        return {'stats': dashboard_stats(session, days)}
    except SQLAlchemyError as e:
        session.rollback()
        current_app.logger.exception('Dashboard stats query failed')
        return {'error': 'Failed to fetch dashboard statistics', 'details': str(e)}, 500
