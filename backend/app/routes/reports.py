from __future__ import annotations
from flask import Blueprint, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from app import get_checked_db
from app.decorators.auth import require_user
from app.services.reporting import task_metrics, service_type_breakdown, status_breakdown

rpt_bp = Blueprint('reports', __name__)


def _report(builder, error_message: str):
    session = get_checked_db()
    time_range = request.args.get('timeRange')
    try:
        return builder(session, time_range)
    except SQLAlchemyError as e:
        session.rollback()
        current_app.logger.exception('Report query failed')
        return {'error': error_message, 'details': str(e)}, 500


@rpt_bp.get('/metrics')
@require_user
def metrics():
    return _report(task_metrics, 'Failed to fetch metrics')


@rpt_bp.get('/service-types')
@require_user
def service_types():
    return _report(service_type_breakdown, 'Failed to fetch service types')


@rpt_bp.get('/status-distribution')
@require_user
def status_distribution():
    return _report(status_breakdown, 'Failed to fetch status distribution')
