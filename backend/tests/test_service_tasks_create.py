from app import get_db
from app.models.activity_log import ActivityLog
from app.models.customer import Customer
from app.models.service_task import ServiceTask
from app.models.user import User
from tests.test_lifecycle_helpers import INTAKE, auth_headers, create_task_via_api
from tests.test_utils_seed import activity_for, make_customer


def test_create_task_from_intake(client):
    headers = auth_headers('emp-1', name='Sam Mechanic')
    job = create_task_via_api(client, headers)
    assert job['status'] == 'FUTURE'
    assert job['priority'] == 'NORMAL'
    assert job['serviceType'] == 'Full Service'
    assert job['bikeModel'] == 'Trek Domane SL5'
    assert job['serialNumber'] == 'WTU123'
    assert job['notes'] == 'Squeaky brakes'
    assert job['createdAt'].endswith('Z')

    task = get_db().get(ServiceTask, job['id'])
    assert task.service_type == 'FULL_SERVICE'
    assert task.estimated_cost_cents == 12050
    assert task.created_by.name == 'Sam Mechanic'

    logs = activity_for(job['id'], ActivityLog.ACTION_TASK_CREATED)
    assert len(logs) == 1
    assert logs[0].description == 'Service task created for Alice Rider'
    assert logs[0].meta == {'serviceType': 'Full Service', 'itemModel': 'Trek Domane SL5', 'estimatedCost': '120.50'}


def test_create_task_upserts_customer(client):
    headers = auth_headers()
    make_customer(email='alice@example.com', name='A. Rider', phone='000')
    create_task_via_api(client, headers)
    create_task_via_api(client, headers, phone='555-0199')
    customers = get_db().query(Customer).filter_by(email='alice@example.com').all()
    assert len(customers) == 1
    assert customers[0].name == 'Alice Rider'
    assert customers[0].phone == '555-0199'


def test_create_task_new_customer_defaults(client):
    create_task_via_api(client, auth_headers(), email='new@example.com')
    c = get_db().query(Customer).filter_by(email='new@example.com').one()
    assert c.notifications is True
    assert c.preferred_contact == 'email'


def test_create_task_missing_fields(client):
    headers = auth_headers()
    resp = client.post('/api/service-tasks', json={'customerName': 'Bob'}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'Missing required fields: customerName, email, phone, serviceType'}
    assert get_db().query(ServiceTask).count() == 0


def test_create_task_rejects_bad_input(client):
    headers = auth_headers()
    for override in ({'email': 'not-an-email'}, {'priority': 'SOMEDAY'}, {'estimatedCost': '-5'},
                     {'estimatedCost': 'abc'}, {'estimatedCost': '1e30'}):
        resp = client.post('/api/service-tasks', json={**INTAKE, **override}, headers=headers)
        assert resp.status_code == 400, override
    assert get_db().query(ServiceTask).count() == 0
    assert get_db().query(Customer).count() == 0


def test_create_task_priority_is_case_insensitive(client):
    job = create_task_via_api(client, auth_headers(), priority='high')
    assert job['priority'] == 'HIGH'


def test_unknown_service_type_maps_to_other(client):
    job = create_task_via_api(client, auth_headers(), serviceType='Paint Job')
    task = get_db().get(ServiceTask, job['id'])
    assert task.service_type == 'OTHER'
    assert task.custom_service is None
    assert job['serviceType'] == 'Other'


def test_other_service_type_keeps_notes_as_custom_service(client):
    job = create_task_via_api(client, auth_headers(), serviceType='Other', notes='Fit a dynamo hub')
    task = get_db().get(ServiceTask, job['id'])
    assert task.custom_service == 'Fit a dynamo hub'


def test_create_requires_token(client):
    resp = client.post('/api/service-tasks', json=INTAKE)
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Unauthorized'


def test_local_user_created_lazily(client):
    headers = auth_headers('provider-42', email='casey@example.com')
    assert get_db().query(User).filter_by(provider_id='provider-42').one_or_none() is None
    resp = client.get('/api/service-tasks', headers=headers)
    assert resp.status_code == 200
    user = get_db().query(User).filter_by(provider_id='provider-42').one()
    assert user.name == 'casey'
    assert user.role == User.ROLE_EMPLOYEE
    client.get('/api/service-tasks', headers=headers)
    assert get_db().query(User).filter_by(provider_id='provider-42').count() == 1
