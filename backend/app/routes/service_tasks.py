from __future__ import annotations
from collections import defaultdict
from flask import Blueprint, request
from sqlalchemy import select
from app import get_db
from app.decorators.auth import require_user
from app.models.activity_log import ActivityLog
from app.models.printed_label import PrintedLabel
from app.models.service_task import ServiceTask, StatusUpdate
from app.services.identity import current_user
from app.services.printing import label_json
from app.services.tasks import (
    get_task_or_404, create_task, change_status, edit_task, delete_task,
    task_json, created_task_json, status_update_json, activity_json,
)
from app.utils.listing import apply_pagination, cached_list
from app.utils.sorting import apply_multi_sort
from app.utils.validation import validate_status

tasks_bp = Blueprint('service_tasks', __name__)

SORTABLE = {
    'createdAt': ServiceTask.created_at,
    'updatedAt': ServiceTask.updated_at,
    'priority': ServiceTask.priority,
    'status': ServiceTask.status,
    'customerName': ServiceTask.customer_name,
}
HISTORY_PER_CARD = 3


def _latest_status_updates(task_ids, per_task: int):
    if not task_ids:
        return {}
    rows = get_db().execute(
        select(StatusUpdate).where(StatusUpdate.task_id.in_(task_ids))
        .order_by(StatusUpdate.created_at.desc(), StatusUpdate.id)
    ).scalars().all()
    grouped = defaultdict(list)
    for su in rows:
        if len(grouped[su.task_id]) < per_task:
            grouped[su.task_id].append(su)
    return grouped


@tasks_bp.get('')
@require_user
def list_tasks():
    session = get_db()
    q = session.query(ServiceTask)
    status = request.args.get('status')
    if status:
        q = q.filter(ServiceTask.status == validate_status(status, ServiceTask.ALL_STATUSES))
    q = apply_multi_sort(q, request.args.get('sort'), SORTABLE, ServiceTask.id,
                         default=[ServiceTask.created_at.desc()])
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    history = _latest_status_updates([t.id for t in rows], HISTORY_PER_CARD)
    rows_json = [task_json(t, history.get(t.id, [])) for t in rows]
    latest_ts = max((t.updated_at for t in rows), default=None)
    return cached_list('serviceJobs', rows_json, total, limit, offset, latest_ts)


@tasks_bp.post('')
@require_user
def create():
    data = request.get_json(silent=True) or {}
    task = create_task(data, current_user())
    get_db().commit()
    return {'message': 'Service task created successfully', 'serviceJob': created_task_json(task)}, 201


@tasks_bp.get('/<task_id>')
@require_user
def get_task(task_id: str):
    session = get_db()
    task = get_task_or_404(task_id)
    history = session.execute(
        select(StatusUpdate).where(StatusUpdate.task_id == task.id).order_by(StatusUpdate.created_at.desc())
    ).scalars().all()
    logs = session.execute(
        select(ActivityLog).where(ActivityLog.task_id == task.id)
        .order_by(ActivityLog.created_at.desc()).limit(20)
    ).scalars().all()
    labels = session.execute(
        select(PrintedLabel).where(PrintedLabel.task_id == task.id).order_by(PrintedLabel.created_at.desc())
    ).scalars().all()
    body = task_json(task, history)
    body['description'] = task.description
    body['activityLogs'] = [activity_json(log) for log in logs]
    body['printedLabels'] = [label_json(label) for label in labels]
    return {'serviceTask': body}


@tasks_bp.put('/<task_id>')
@require_user
def update_task(task_id: str):
    session = get_db()
    data = request.get_json(silent=True) or {}
    task = get_task_or_404(task_id)
    user = current_user()
    if data.get('status'):
        change_status(task, data['status'], user, notes=data.get('notes'),
                      client_from_status=data.get('fromStatus'))
        session.commit()
        return {'message': 'Status updated successfully', 'serviceTask': task_json(task)}
    edit_task(task, data, user)
    session.commit()
    return {'message': 'Service task updated successfully', 'serviceTask': task_json(task)}


@tasks_bp.delete('/<task_id>')
@require_user
def remove_task(task_id: str):
    session = get_db()
    task = get_task_or_404(task_id)
    delete_task(task, current_user())
    session.commit()
    return {'message': 'Service task deleted successfully'}
