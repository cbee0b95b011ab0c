from tests.test_lifecycle_helpers import auth_headers
from tests.test_utils_seed import make_task


def test_list_pagination_meta(client):
    for i in range(5):
        make_task(customer_name=f'Rider {i}')
    headers = auth_headers()
    body = client.get('/api/service-tasks?limit=2&offset=1', headers=headers).get_json()
    assert body['pagination'] == {'total': 5, 'limit': 2, 'offset': 1, 'hasMore': True}
    assert len(body['serviceJobs']) == 2
    last = client.get('/api/service-tasks?limit=2&offset=4', headers=headers).get_json()
    assert last['pagination']['hasMore'] is False
    assert len(last['serviceJobs']) == 1


def test_limit_is_clamped(client):
    body = client.get('/api/service-tasks?limit=5000', headers=auth_headers()).get_json()
    assert body['pagination']['limit'] == 200
    body = client.get('/api/service-tasks?limit=0&offset=-3', headers=auth_headers()).get_json()
    assert body['pagination']['limit'] == 1
    assert body['pagination']['offset'] == 0


def test_non_integer_limit(client):
    resp = client.get('/api/service-tasks?limit=ten', headers=auth_headers())
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'limit must be an integer'}


def test_etag_conditional_get(client):
    make_task()
    headers = auth_headers()
    first = client.get('/api/service-tasks', headers=headers)
    etag = first.headers['ETag']
    assert first.headers.get('Last-Modified')
    again = client.get('/api/service-tasks', headers={**headers, 'If-None-Match': etag})
    assert again.status_code == 304
    make_task(customer_name='Someone New')
    changed = client.get('/api/service-tasks', headers={**headers, 'If-None-Match': etag})
    assert changed.status_code == 200


def test_non_integer_offset(client):
    resp = client.get('/api/customers?offset=1.5', headers=auth_headers())
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'offset must be an integer'}
