from tests.test_lifecycle_helpers import auth_headers, create_task_via_api, walk_statuses
from tests.test_utils_seed import ensure_user, make_task


def test_activity_feed_filters(client):
    headers = auth_headers('emp-1')
    job = create_task_via_api(client, headers)
    walk_statuses(client, headers, job['id'], ['IN_SHOP'])
    other = create_task_via_api(client, auth_headers('emp-2'), customerName='Bob', email='bob@example.com')

    body = client.get('/api/activity-logs', headers=headers).get_json()
    assert body['pagination']['total'] == 3
    assert body['activityLogs'][0]['createdAt'] >= body['activityLogs'][-1]['createdAt']

    by_task = client.get(f"/api/activity-logs?taskId={job['id']}", headers=headers).get_json()['activityLogs']
    assert {l['action'] for l in by_task} == {'TASK_CREATED', 'STATUS_CHANGED'}
    assert by_task[0]['task']['customerName'] == 'Alice Rider'

    by_action = client.get('/api/activity-logs?action=STATUS_CHANGED', headers=headers).get_json()['activityLogs']
    assert len(by_action) == 1
    assert by_action[0]['performedBy']['role'] == 'EMPLOYEE'

    emp2 = ensure_user('emp-2')
    by_user = client.get(f'/api/activity-logs?userId={emp2.id}', headers=headers).get_json()['activityLogs']
    assert [l['taskId'] for l in by_user] == [other['id']]


def test_logs_of_deleted_task_have_no_task_summary(client):
    headers = auth_headers()
    job = create_task_via_api(client, headers)
    client.delete(f"/api/service-tasks/{job['id']}", headers=headers)
    logs = client.get(f"/api/activity-logs?taskId={job['id']}", headers=headers).get_json()['activityLogs']
    assert len(logs) == 2
    assert all(l['task'] is None for l in logs)


def test_manual_activity_entry(client):
    headers = auth_headers()
    task = make_task()
    resp = client.post('/api/activity-logs', json={
        'taskId': task.id, 'action': 'TASK_UPDATED', 'description': 'Called customer', 'metadata': {'channel': 'phone'},
    }, headers=headers)
    assert resp.status_code == 201
    log = resp.get_json()['activityLog']
    assert log['description'] == 'Called customer'
    assert log['metadata'] == {'channel': 'phone'}


def test_manual_activity_validation(client):
    headers = auth_headers()
    task = make_task()
    resp = client.post('/api/activity-logs', json={'taskId': task.id}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'Missing required fields: taskId, action, description'}
    resp = client.post('/api/activity-logs', json={'taskId': 'none', 'action': 'TASK_UPDATED', 'description': 'x'},
                       headers=headers)
    assert resp.status_code == 404
    resp = client.post('/api/activity-logs', json={'taskId': task.id, 'action': 'DANCED', 'description': 'x'},
                       headers=headers)
    assert resp.status_code == 400
