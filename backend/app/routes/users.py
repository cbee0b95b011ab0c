from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, func
from app import get_db
from app.constants.service import service_type_to_display
from app.decorators.auth import require_user, require_roles
from app.models.activity_log import ActivityLog
from app.models.printed_label import PrintedLabel
from app.models.service_task import ServiceTask, StatusUpdate
from app.models.user import User
from app.services.identity import current_user, has_role
from app.utils.filters import apply_filters, coerce_bool
from app.utils.listing import apply_pagination, cached_list, iso
from app.utils.validation import parse_bool, validate_status

users_bp = Blueprint('users', __name__)

USER_FILTERS = {
    'role': {'op': lambda q, v: q.filter(User.role == v), 'validate': lambda v: v in User.ALL_ROLES},
    'isActive': {'op': lambda q, v: q.filter(User.is_active == v), 'coerce': coerce_bool},
}
MANAGERS = (User.ROLE_ADMIN, User.ROLE_MANAGER)


def _user_json(u: User) -> dict:
    return {
        'id': u.id,
        'email': u.email,
        'name': u.name,
        'role': u.role,
        'isActive': u.is_active,
        'createdAt': iso(u.created_at),
        'updatedAt': iso(u.updated_at),
    }


def _count_by(column, user_ids):
    if not user_ids:
        return {}
    rows = get_db().execute(select(column, func.count()).where(column.in_(user_ids)).group_by(column)).all()
    return {uid: int(n) for uid, n in rows}


def _get_user_or_404(user_id: str) -> User:
    u = get_db().get(User, user_id)
    if u is None:
        abort(404, description='User not found')
    return u


def _task_ref(t: ServiceTask) -> dict:
    return {
        'id': t.id,
        'customerName': t.customer_name,
        'serviceType': service_type_to_display(t.service_type),
        'status': t.status,
        'createdAt': iso(t.created_at),
    }


@users_bp.get('')
@require_roles(*MANAGERS)
def list_users():
    session = get_db()
    q = apply_filters(session.query(User), USER_FILTERS, request.args)
    q = q.order_by(User.created_at.desc(), User.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    ids = [u.id for u in rows]
    created = _count_by(ServiceTask.created_by_id, ids)
    assigned = _count_by(ServiceTask.assigned_to_id, ids)
    updates = _count_by(StatusUpdate.updated_by_id, ids)
    logs = _count_by(ActivityLog.performed_by_id, ids)
    rows_json = []
    for u in rows:
        body = _user_json(u)
        body['stats'] = {
            'tasksCreated': created.get(u.id, 0),
            'tasksAssigned': assigned.get(u.id, 0),
            'statusUpdates': updates.get(u.id, 0),
            'activityLogs': logs.get(u.id, 0),
        }
        rows_json.append(body)
    latest_ts = max((u.updated_at for u in rows), default=None)
    return cached_list('users', rows_json, total, limit, offset, latest_ts)


@users_bp.get('/me')
@require_user
def me():
    return {'user': _user_json(current_user())}


@users_bp.get('/<user_id>')
@require_user
def get_user(user_id: str):
    session = get_db()
    viewer = current_user()
    target = _get_user_or_404(user_id)
    if viewer.id != target.id and not has_role(viewer, *MANAGERS):
        abort(403, description='Insufficient permissions')
    created = session.execute(
        select(ServiceTask).where(ServiceTask.created_by_id == target.id)
        .order_by(ServiceTask.created_at.desc()).limit(10)).scalars().all()
    assigned = session.execute(
        select(ServiceTask).where(ServiceTask.assigned_to_id == target.id)
        .order_by(ServiceTask.created_at.desc()).limit(10)).scalars().all()
    activity = session.execute(
        select(ActivityLog).where(ActivityLog.performed_by_id == target.id)
        .order_by(ActivityLog.created_at.desc()).limit(20)).scalars().all()
    body = _user_json(target)
    body['recentCreatedTasks'] = [_task_ref(t) for t in created]
    body['recentAssignedTasks'] = [_task_ref(t) for t in assigned]
    body['recentActivity'] = [{
        'id': log.id,
        'action': log.action,
        'description': log.description,
        'createdAt': iso(log.created_at),
    } for log in activity]
    ids = [target.id]
    body['stats'] = {
        'createdTasks': _count_by(ServiceTask.created_by_id, ids).get(target.id, 0),
        'assignedTasks': _count_by(ServiceTask.assigned_to_id, ids).get(target.id, 0),
        'statusUpdates': _count_by(StatusUpdate.updated_by_id, ids).get(target.id, 0),
        'activityLogs': _count_by(ActivityLog.performed_by_id, ids).get(target.id, 0),
        'printedLabels': _count_by(PrintedLabel.printed_by_id, ids).get(target.id, 0),
    }
    return {'user': body}


@users_bp.put('/<user_id>')
@require_user
def update_user(user_id: str):
    session = get_db()
    actor = current_user()
    target = _get_user_or_404(user_id)
    data = request.get_json(silent=True) or {}
    is_self = actor.id == target.id
    is_admin = has_role(actor, User.ROLE_ADMIN)
    is_manager = has_role(actor, *MANAGERS)
    if not is_self and not is_manager:
        abort(403, description='Insufficient permissions')

    role = data.get('role')
    if role is not None:
        validate_status(role, User.ALL_ROLES, field_name='role')
        if role != target.role and not is_admin:
            abort(403, description='Only admins can change user roles')
    is_active = None
    if 'isActive' in data:
        is_active = parse_bool(data['isActive'], 'isActive')
        if is_active != target.is_active and not is_manager:
            abort(403, description='Only admins/managers can change user status')
    if 'name' in data:
        if not data['name']:
            abort(400, description='name cannot be empty')
        target.name = data['name']
    if role is not None and is_admin:
        target.role = role
    if is_active is not None and is_manager:
        target.is_active = is_active
    session.commit()
    return {'message': 'User updated successfully', 'user': _user_json(target)}
