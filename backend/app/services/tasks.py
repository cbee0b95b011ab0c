from __future__ import annotations
"""Service-task lifecycle: create, status change, full edit, delete.

Each operation stages the task mutation together with its audit rows (and any
customer upsert) in the request session. Routes commit once, so either all of
it lands or none of it does.
"""
from typing import Any, Dict, List, Optional
from flask import abort, current_app
from app import get_db
from app.constants.service import service_type_from_display, service_type_to_display
from app.models.activity_log import ActivityLog
from app.models.service_task import ServiceTask, StatusUpdate
from app.models.user import User
from app.models.base import utcnow
from app.services.audit import add_activity, add_status_update
from app.services.customers import upsert_customer
from app.utils.fsm import TransitionValidator
from app.utils.listing import iso
from app.utils.validation import (
    validate_status, validate_email, require_fields, parse_cost_cents, format_cents,
)

DEFAULT_STATUS_NOTE = 'Status changed via drag & drop'

TASK_FSM = TransitionValidator({
    ServiceTask.STATUS_FUTURE: {ServiceTask.STATUS_IN_SHOP, ServiceTask.STATUS_CANCELLED},
    ServiceTask.STATUS_IN_SHOP: {ServiceTask.STATUS_IN_PROGRESS, ServiceTask.STATUS_ON_HOLD,
                                 ServiceTask.STATUS_FUTURE, ServiceTask.STATUS_CANCELLED},
    ServiceTask.STATUS_IN_PROGRESS: {ServiceTask.STATUS_COMPLETED, ServiceTask.STATUS_ON_HOLD,
                                     ServiceTask.STATUS_IN_SHOP, ServiceTask.STATUS_CANCELLED},
    ServiceTask.STATUS_ON_HOLD: {ServiceTask.STATUS_IN_SHOP, ServiceTask.STATUS_IN_PROGRESS,
                                 ServiceTask.STATUS_CANCELLED},
    ServiceTask.STATUS_COMPLETED: {ServiceTask.STATUS_CLOSED, ServiceTask.STATUS_IN_PROGRESS},
    ServiceTask.STATUS_CANCELLED: {ServiceTask.STATUS_CLOSED, ServiceTask.STATUS_FUTURE},
    ServiceTask.STATUS_CLOSED: set(),
})


def get_task_or_404(task_id: str) -> ServiceTask:
    task = get_db().get(ServiceTask, task_id)
    if task is None:
        abort(404, description='Service task not found')
    return task


def _priority(raw: Any) -> str:
    if not isinstance(raw, str):
        abort(400, description='priority invalid')
    return validate_status(raw.upper(), ServiceTask.ALL_PRIORITIES, field_name='priority')


def _text(data: dict, key: str) -> Optional[str]:
    # explicit null and empty string both clear the column
    value = data.get(key)
    return value or None


def create_task(data: Dict[str, Any], actor: User) -> ServiceTask:
    require_fields(data, 'customerName', 'email', 'phone', 'serviceType')
    email = validate_email(data['email'])
    priority = _priority(data['priority']) if data.get('priority') else ServiceTask.PRIORITY_NORMAL
    estimated_cost = parse_cost_cents(data.get('estimatedCost'))
    name, phone = data['customerName'], data['phone']
    notes = _text(data, 'notes')
    display_type = data['serviceType']

    upsert_customer(email, {'name': name, 'phone': phone}, {'name': name, 'phone': phone})
    task = ServiceTask(
        customer_name=name,
        email=email,
        phone=phone,
        item_model=_text(data, 'bikeModel'),
        serial_number=_text(data, 'serialNumber'),
        service_type=service_type_from_display(display_type),
        custom_service=notes if display_type == 'Other' else None,
        description=notes,
        notes=notes,
        estimated_cost_cents=estimated_cost,
        status=ServiceTask.STATUS_FUTURE,
        priority=priority,
        created_by_id=actor.id,
    )
    session = get_db()
    session.add(task)
    session.flush()
    add_activity(task.id, ActivityLog.ACTION_TASK_CREATED, f'Service task created for {name}', actor.id, {
        'serviceType': display_type,
        'itemModel': data.get('bikeModel'),
        'estimatedCost': data.get('estimatedCost'),
    })
    current_app.logger.info('Service task %s created by %s', task.id, actor.id)
    return task


def change_status(task: ServiceTask, new_status: Any, actor: User, notes: Optional[str] = None,
                  client_from_status: Optional[str] = None, method: str = 'drag_drop') -> bool:
    """Move the task to new_status; returns False when it is already there.

    The recorded fromStatus is the persisted value, never the caller's view.
    """
    validate_status(new_status, ServiceTask.ALL_STATUSES)
    previous = task.status
    if previous == new_status:
        return False
    if current_app.config.get('ENFORCE_STATUS_TRANSITIONS', True):
        TASK_FSM.assert_can_transition(previous, new_status)
    task.status = new_status
    if new_status == ServiceTask.STATUS_COMPLETED:
        task.actual_completion = utcnow()
    add_status_update(task.id, previous, new_status, actor.id, notes or DEFAULT_STATUS_NOTE)
    meta = {'fromStatus': previous, 'toStatus': new_status, 'method': method}
    if client_from_status and client_from_status != previous:
        meta['clientFromStatus'] = client_from_status
    add_activity(task.id, ActivityLog.ACTION_STATUS_CHANGED,
                 f'Status changed from {previous} to {new_status}', actor.id, meta)
    current_app.logger.info('Service task %s status %s -> %s', task.id, previous, new_status)
    return True


def edit_task(task: ServiceTask, data: Dict[str, Any], actor: User) -> ServiceTask:
    previous_values = {
        'customerName': task.customer_name,
        'email': task.email,
        'phone': task.phone,
        'itemModel': task.item_model,
        'serviceType': task.service_type,
    }
    for key in ('customerName', 'email', 'phone', 'serviceType'):
        if key in data and not data[key]:
            abort(400, description=f'{key} cannot be empty')
    new_email = validate_email(data['email']) if 'email' in data else None
    new_name = data.get('customerName')
    new_phone = data.get('phone')

    if new_email and new_email != task.email:
        name = new_name or task.customer_name
        phone = new_phone or task.phone
        upsert_customer(new_email, {'name': name, 'phone': phone}, {'name': name, 'phone': phone})
    elif (new_name and new_name != task.customer_name) or (new_phone and new_phone != task.phone):
        changes = {}
        if new_name:
            changes['name'] = new_name
        if new_phone:
            changes['phone'] = new_phone
        upsert_customer(task.email, changes, {
            'name': new_name or task.customer_name,
            'phone': new_phone or task.phone,
        })

    if new_name:
        task.customer_name = new_name
    if new_email:
        task.email = new_email
    if new_phone:
        task.phone = new_phone
    if 'bikeModel' in data:
        task.item_model = _text(data, 'bikeModel')
    if 'serialNumber' in data:
        task.serial_number = _text(data, 'serialNumber')
    if 'notes' in data:
        task.notes = _text(data, 'notes')
    if 'serviceType' in data:
        task.service_type = service_type_from_display(data['serviceType'])
        task.custom_service = task.notes if data['serviceType'] == 'Other' else None
    if 'estimatedCost' in data:
        task.estimated_cost_cents = parse_cost_cents(data['estimatedCost'])
    if data.get('priority'):
        task.priority = _priority(data['priority'])

    add_activity(task.id, ActivityLog.ACTION_TASK_UPDATED, f'Service task updated for {task.customer_name}',
                 actor.id, {'updatedFields': list(data.keys()), 'previousValues': previous_values})
    return task


def delete_task(task: ServiceTask, actor: User):
    if task.status in ServiceTask.FINISHED_STATUSES:
        abort(409, description='Cannot delete completed or closed service tasks')
    add_activity(task.id, ActivityLog.ACTION_TASK_DELETED, f'Service task deleted for {task.customer_name}',
                 actor.id, {'deletedTask': {
                     'customerName': task.customer_name,
                     'serviceType': task.service_type,
                     'status': task.status,
                 }})
    get_db().delete(task)
    current_app.logger.info('Service task %s deleted by %s', task.id, actor.id)


def _user_ref(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {'id': user.id, 'name': user.name, 'email': user.email}


def status_update_json(su: StatusUpdate) -> dict:
    return {
        'id': su.id,
        'taskId': su.task_id,
        'fromStatus': su.from_status,
        'toStatus': su.to_status,
        'notes': su.notes,
        'createdAt': iso(su.created_at),
        'updatedBy': _user_ref(su.updated_by),
    }


def activity_json(log: ActivityLog) -> dict:
    return {
        'id': log.id,
        'taskId': log.task_id,
        'action': log.action,
        'description': log.description,
        'metadata': log.meta or {},
        'createdAt': iso(log.created_at),
        'performedBy': _user_ref(log.performed_by),
    }


def task_json(task: ServiceTask, status_history: Optional[List[StatusUpdate]] = None) -> dict:
    """Kanban card shape; ``bikeModel`` mirrors itemModel for the board UI."""
    body = {
        'id': task.id,
        'customerName': task.customer_name,
        'email': task.email,
        'phone': task.phone,
        'bikeModel': task.item_model or '',
        'itemModel': task.item_model,
        'serialNumber': task.serial_number or '',
        'serviceType': service_type_to_display(task.service_type),
        'serviceTypeKey': task.service_type,
        'customService': task.custom_service,
        'status': task.status,
        'priority': task.priority,
        'notes': task.notes or '',
        'estimatedCost': format_cents(task.estimated_cost_cents),
        'actualCost': format_cents(task.actual_cost_cents),
        'estimatedCompletion': iso(task.estimated_completion),
        'actualCompletion': iso(task.actual_completion),
        'createdAt': iso(task.created_at),
        'updatedAt': iso(task.updated_at),
        'createdBy': _user_ref(task.created_by),
        'assignedTo': task.assigned_to.name if task.assigned_to else None,
    }
    if status_history is not None:
        body['statusHistory'] = [status_update_json(s) for s in status_history]
    return body


def created_task_json(task: ServiceTask) -> dict:
    return {
        'id': task.id,
        'customerName': task.customer_name,
        'email': task.email,
        'phone': task.phone,
        'bikeModel': task.item_model or '',
        'serialNumber': task.serial_number or '',
        'serviceType': service_type_to_display(task.service_type),
        'status': task.status,
        'priority': task.priority,
        'createdAt': iso(task.created_at),
        'notes': task.notes or '',
    }
