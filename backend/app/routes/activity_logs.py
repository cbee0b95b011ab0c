from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from app import get_db
from app.decorators.auth import require_user
from app.models.activity_log import ActivityLog
from app.models.service_task import ServiceTask
from app.services.audit import add_activity
from app.services.identity import current_user
from app.services.tasks import get_task_or_404, activity_json
from app.utils.filters import apply_filters
from app.utils.listing import apply_pagination, cached_list
from app.utils.validation import require_fields

activity_bp = Blueprint('activity_logs', __name__)

ACTIVITY_FILTERS = {
    'taskId': {'op': lambda q, v: q.filter(ActivityLog.task_id == v)},
    'action': {'op': lambda q, v: q.filter(ActivityLog.action == v)},
    'userId': {'op': lambda q, v: q.filter(ActivityLog.performed_by_id == v)},
}


def _log_json(log: ActivityLog, task) -> dict:
    body = activity_json(log)
    if log.performed_by:
        body['performedBy']['role'] = log.performed_by.role
    # the task may have been deleted since; the log stays
    body['task'] = {
        'id': task.id,
        'customerName': task.customer_name,
        'serviceType': task.service_type,
        'status': task.status,
    } if task else None
    return body


@activity_bp.get('')
@require_user
def list_activity():
    session = get_db()
    q = apply_filters(session.query(ActivityLog), ACTIVITY_FILTERS, request.args)
    q = q.order_by(ActivityLog.created_at.desc(), ActivityLog.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    task_ids = {r.task_id for r in rows if r.task_id}
    tasks = {}
    if task_ids:
        tasks = {t.id: t for t in session.execute(
            select(ServiceTask).where(ServiceTask.id.in_(task_ids))).scalars()}
    rows_json = [_log_json(r, tasks.get(r.task_id)) for r in rows]
    latest_ts = max((r.created_at for r in rows), default=None)
    return cached_list('activityLogs', rows_json, total, limit, offset, latest_ts)


@activity_bp.post('')
@require_user
def create_activity():
    session = get_db()
    data = request.get_json(silent=True) or {}
    require_fields(data, 'taskId', 'action', 'description')
    task = get_task_or_404(data['taskId'])
    if data['action'] not in ActivityLog.ALL_ACTIONS:
        abort(400, description='action invalid')
    meta = data.get('metadata')
    if meta is not None and not isinstance(meta, dict):
        abort(400, description='metadata must be an object')
    user = current_user()
    log = add_activity(task.id, data['action'], data['description'], user.id, meta)
    session.commit()
    return {'message': 'Activity log created successfully', 'activityLog': _log_json(log, task)}, 201
