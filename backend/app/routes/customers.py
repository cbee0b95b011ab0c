from __future__ import annotations
from flask import Blueprint, request, abort, current_app
from sqlalchemy import select, func, or_
from app import get_db
from app.constants.service import service_type_to_display
from app.decorators.auth import require_user
from app.models.customer import Customer
from app.models.service_task import ServiceTask
from app.services.customers import customer_json, unique_items, repoint_tasks_email
from app.utils.listing import apply_pagination, cached_list, iso
from app.utils.validation import validate_email, require_fields, format_cents, parse_bool

customers_bp = Blueprint('customers', __name__)

OPTIONAL_FIELDS = {
    'address': 'address',
    'city': 'city',
    'state': 'state',
    'zipCode': 'zip_code',
    'preferredContact': 'preferred_contact',
}
RECENT_TASKS = 3
SEARCH_MIN_CHARS = 2
SEARCH_LIMIT = 10


def _get_customer_or_404(customer_id: str) -> Customer:
    c = get_db().get(Customer, customer_id)
    if c is None:
        abort(404, description='Customer not found')
    return c


def _matching(q, term: str):
    pattern = f'%{term}%'
    return q.filter(or_(Customer.name.ilike(pattern), Customer.email.ilike(pattern), Customer.phone.ilike(pattern)))


def _tasks_for(email: str):
    return get_db().execute(
        select(ServiceTask).where(ServiceTask.email == email).order_by(ServiceTask.created_at.desc())
    ).scalars().all()


@customers_bp.get('')
@require_user
def list_customers():
    session = get_db()
    q = session.query(Customer)
    search = request.args.get('search')
    if search:
        q = _matching(q, search)
    q = q.order_by(Customer.updated_at.desc(), Customer.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    emails = [c.email for c in rows]
    counts = {}
    if emails:
        counts = dict(session.execute(
            select(ServiceTask.email, func.count(ServiceTask.id))
            .where(ServiceTask.email.in_(emails)).group_by(ServiceTask.email)
        ).all())
    rows_json = []
    for c in rows:
        body = customer_json(c)
        body['serviceTaskCount'] = int(counts.get(c.email, 0))
        body['recentTasks'] = [{
            'id': t.id,
            'serviceType': service_type_to_display(t.service_type),
            'status': t.status,
            'createdAt': iso(t.created_at),
            'itemModel': t.item_model,
        } for t in _tasks_for(c.email)[:RECENT_TASKS]]
        rows_json.append(body)
    latest_ts = max((c.updated_at for c in rows), default=None)
    return cached_list('customers', rows_json, total, limit, offset, latest_ts)


@customers_bp.get('/search')
@require_user
def search_customers():
    term = (request.args.get('q') or '').strip()
    if len(term) < SEARCH_MIN_CHARS:
        return {'customers': []}
    rows = _matching(get_db().query(Customer), term).order_by(Customer.name.asc()).limit(SEARCH_LIMIT).all()
    result = []
    for c in rows:
        bikes = [{k: item[k] for k in ('id', 'model', 'brand', 'serialNumber')}
                 for item in unique_items(_tasks_for(c.email), limit=RECENT_TASKS)]
        result.append({
            'id': c.id,
            'name': c.name,
            'email': c.email,
            'phone': c.phone,
            'address': c.address,
            'preferredContact': c.preferred_contact,
            'bikes': bikes,
        })
    return {'customers': result}


@customers_bp.post('')
@require_user
def create_customer():
    session = get_db()
    data = request.get_json(silent=True) or {}
    require_fields(data, 'name', 'email', 'phone')
    email = validate_email(data['email'])
    if session.execute(select(Customer.id).where(Customer.email == email)).first():
        abort(409, description='Customer with this email already exists')
    c = Customer(
        name=data['name'],
        email=email,
        phone=data['phone'],
        notifications=parse_bool(data.get('notifications', True), 'notifications'),
        preferred_contact=data.get('preferredContact') or 'email',
    )
    for key in ('address', 'city', 'state', 'zipCode'):
        setattr(c, OPTIONAL_FIELDS[key], data.get(key) or None)
    session.add(c)
    session.commit()
    return {'message': 'Customer created successfully', 'customer': customer_json(c)}, 201


@customers_bp.get('/<customer_id>')
@require_user
def get_customer(customer_id: str):
    c = _get_customer_or_404(customer_id)
    tasks = _tasks_for(c.email)
    completed = [t for t in tasks if t.status == ServiceTask.STATUS_COMPLETED]
    spent_cents = sum(t.actual_cost_cents or 0 for t in completed)
    body = customer_json(c)
    body['serviceTasks'] = [{
        'id': t.id,
        'serviceType': service_type_to_display(t.service_type),
        'status': t.status,
        'itemModel': t.item_model,
        'serialNumber': t.serial_number,
        'estimatedCost': format_cents(t.estimated_cost_cents),
        'actualCost': format_cents(t.actual_cost_cents),
        'createdAt': iso(t.created_at),
        'createdBy': t.created_by.name if t.created_by else None,
        'assignedTo': t.assigned_to.name if t.assigned_to else None,
        'notes': t.notes,
    } for t in tasks]
    body['items'] = unique_items(tasks)
    body['metrics'] = {
        'totalTasks': len(tasks),
        'completedTasks': len(completed),
        'totalSpent': format_cents(spent_cents),
        'lastService': iso(tasks[0].created_at) if tasks else None,
        'averageTaskValue': format_cents(spent_cents // len(completed) if completed else 0),
    }
    return {'customer': body}


@customers_bp.put('/<customer_id>')
@require_user
def update_customer(customer_id: str):
    session = get_db()
    c = _get_customer_or_404(customer_id)
    data = request.get_json(silent=True) or {}
    for key in ('name', 'email', 'phone'):
        if key in data and not data[key]:
            abort(400, description=f'{key} cannot be empty')
    old_email = c.email
    new_email = validate_email(data['email']) if 'email' in data else None
    if new_email and new_email != old_email:
        conflict = session.execute(select(Customer.id).where(Customer.email == new_email)).first()
        if conflict:
            abort(409, description='Another customer with this email already exists')
    if 'name' in data:
        c.name = data['name']
    if 'phone' in data:
        c.phone = data['phone']
    for key, attr in OPTIONAL_FIELDS.items():
        if key in data:
            setattr(c, attr, data[key] or None)
    if 'preferredContact' in data and not data['preferredContact']:
        c.preferred_contact = 'email'
    if 'notifications' in data:
        c.notifications = parse_bool(data['notifications'], 'notifications')
    if new_email and new_email != old_email:
        c.email = new_email
        repoint_tasks_email(old_email, new_email)
        current_app.logger.info('Customer %s email changed', c.id)
    session.commit()
    return {'message': 'Customer updated successfully', 'customer': customer_json(c)}


@customers_bp.delete('/<customer_id>')
@require_user
def delete_customer(customer_id: str):
    session = get_db()
    c = _get_customer_or_404(customer_id)
    active = session.execute(
        select(func.count(ServiceTask.id))
        .where(ServiceTask.email == c.email, ServiceTask.status.in_(ServiceTask.ACTIVE_STATUSES))
    ).scalar_one()
    if active:
        return {'error': 'Cannot delete customer with active service tasks', 'activeTasks': int(active)}, 409
    session.delete(c)
    session.commit()
    return {'message': 'Customer deleted successfully'}
