from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from app import get_db
from app.decorators.auth import require_user
from app.models.printed_label import PrintedLabel
from app.models.service_task import ServiceTask
from app.services.identity import current_user
from app.services.printing import print_label, label_json
from app.services.tasks import get_task_or_404
from app.utils.filters import apply_filters, coerce_bool
from app.utils.listing import apply_pagination, cached_list
from app.utils.validation import validate_status

labels_bp = Blueprint('labels', __name__)

LABEL_FILTERS = {
    'taskId': {'op': lambda q, v: q.filter(PrintedLabel.task_id == v)},
    'labelType': {
        'op': lambda q, v: q.filter(PrintedLabel.label_type == v),
        'validate': lambda v: v in PrintedLabel.ALL_TYPES,
    },
    'success': {'op': lambda q, v: q.filter(PrintedLabel.success == v), 'coerce': coerce_bool},
}


def _label_type(data: dict) -> str:
    return validate_status(data.get('labelType') or PrintedLabel.TYPE_SERVICE_TAG, PrintedLabel.ALL_TYPES,
                           field_name='labelType')


@labels_bp.get('')
@require_user
def list_labels():
    session = get_db()
    q = apply_filters(session.query(PrintedLabel), LABEL_FILTERS, request.args)
    q = q.order_by(PrintedLabel.created_at.desc(), PrintedLabel.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    task_ids = {r.task_id for r in rows}
    tasks = {}
    if task_ids:
        tasks = {t.id: t for t in session.execute(
            select(ServiceTask).where(ServiceTask.id.in_(task_ids))).scalars()}
    rows_json = [label_json(r, tasks.get(r.task_id)) for r in rows]
    latest_ts = max((r.created_at for r in rows), default=None)
    return cached_list('printedLabels', rows_json, total, limit, offset, latest_ts)


@labels_bp.post('')
@require_user
def create_label():
    session = get_db()
    data = request.get_json(silent=True) or {}
    if not data.get('taskId'):
        abort(400, description='Missing required field: taskId')
    task = get_task_or_404(data['taskId'])
    label_type = _label_type(data)
    label = print_label(task, label_type, data.get('printerName'), current_user())
    session.commit()
    body = label_json(label, task)
    if label.success:
        return {'message': 'Label printed successfully', 'printedLabel': body}, 201
    return {'message': 'Label printing failed', 'printedLabel': body, 'error': label.error_msg}, 500


@labels_bp.post('/batch')
@require_user
def batch_labels():
    session = get_db()
    data = request.get_json(silent=True) or {}
    task_ids = data.get('taskIds')
    if not isinstance(task_ids, list) or not task_ids or not all(isinstance(t, str) for t in task_ids):
        abort(400, description='Missing or invalid taskIds array')
    label_type = _label_type(data)
    found = {t.id: t for t in session.execute(
        select(ServiceTask).where(ServiceTask.id.in_(task_ids))).scalars()}
    if len(found) != len(set(task_ids)):
        abort(404, description='Some tasks not found')
    user = current_user()
    printer_name = data.get('printerName')
    results = []
    for task_id in task_ids:
        task = found[task_id]
        label = print_label(task, label_type, printer_name, user, batch=True)
        # committed per task so finished prints survive a later failure
        session.commit()
        results.append({
            'taskId': task.id,
            'customerName': task.customer_name,
            'success': label.success,
            'errorMsg': label.error_msg,
            'printedLabelId': label.id,
        })
    successful = sum(1 for r in results if r['success'])
    failed = len(results) - successful
    return {
        'message': f'Batch printing completed: {successful} successful, {failed} failed',
        'results': results,
        'summary': {'total': len(results), 'successful': successful, 'failed': failed},
    }
