from tests.test_lifecycle_helpers import auth_headers, create_task_via_api, walk_statuses
from tests.test_utils_seed import make_task


def test_board_list_includes_latest_three_status_updates(client):
    headers = auth_headers()
    job = create_task_via_api(client, headers)
    walk_statuses(client, headers, job['id'], ['IN_SHOP', 'IN_PROGRESS', 'ON_HOLD', 'IN_PROGRESS'])
    create_task_via_api(client, headers, customerName='Bob', email='bob@example.com')
    resp = client.get('/api/service-tasks', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['pagination'] == {'total': 2, 'limit': 50, 'offset': 0, 'hasMore': False}
    card = next(t for t in body['serviceJobs'] if t['id'] == job['id'])
    assert card['status'] == 'IN_PROGRESS'
    assert len(card['statusHistory']) == 3
    assert card['bikeModel'] == 'Trek Domane SL5'


def test_board_list_status_filter_and_sort(client):
    headers = auth_headers()
    make_task(customer_name='Carol', status='IN_SHOP')
    make_task(customer_name='Bob', status='IN_SHOP')
    make_task(customer_name='Dave', status='FUTURE')
    body = client.get('/api/service-tasks?status=IN_SHOP&sort=customerName', headers=headers).get_json()
    assert [t['customerName'] for t in body['serviceJobs']] == ['Bob', 'Carol']
    assert client.get('/api/service-tasks?status=LOST', headers=headers).status_code == 400
    assert client.get('/api/service-tasks?sort=colour', headers=headers).status_code == 400


def test_board_list_etag(client):
    headers = auth_headers()
    create_task_via_api(client, headers)
    first = client.get('/api/service-tasks', headers=headers)
    etag = first.headers.get('ETag')
    assert etag
    second = client.get('/api/service-tasks', headers={**headers, 'If-None-Match': etag})
    assert second.status_code == 304


def test_task_detail(client):
    headers = auth_headers()
    job = create_task_via_api(client, headers)
    walk_statuses(client, headers, job['id'], ['IN_SHOP'])
    client.post('/api/labels', json={'taskId': job['id']}, headers=headers)
    resp = client.get(f"/api/service-tasks/{job['id']}", headers=headers)
    assert resp.status_code == 200
    task = resp.get_json()['serviceTask']
    assert task['description'] == 'Squeaky brakes'
    assert [s['toStatus'] for s in task['statusHistory']] == ['IN_SHOP']
    assert {a['action'] for a in task['activityLogs']} == {'TASK_CREATED', 'STATUS_CHANGED', 'LABEL_PRINTED'}
    assert len(task['printedLabels']) == 1
    assert client.get('/api/service-tasks/none', headers=headers).status_code == 404
