def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    assert resp.status_code == 404
    assert set(resp.get_json()) == {'error'}


def test_missing_token(client):
    resp = client.get('/api/service-tasks')
    assert resp.status_code == 401
    body = resp.get_json()
    assert body['error'] == 'Unauthorized'
    assert body['details']


def test_garbage_token(client):
    resp = client.get('/api/service-tasks', headers={'Authorization': 'Bearer not.a.jwt'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Unauthorized'


def test_internal_error_shape(client, monkeypatch):
    from tests.test_lifecycle_helpers import auth_headers
    import app.routes.dashboard as dashboard_mod

    def boom(session, days):
        raise RuntimeError('explode')
    monkeypatch.setattr(dashboard_mod, 'dashboard_stats', boom)
    resp = client.get('/api/dashboard/stats', headers=auth_headers())
    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'Internal Server Error'}


def test_healthz(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}
