from datetime import timedelta
from app.models.base import utcnow
from tests.test_lifecycle_helpers import auth_headers
from tests.test_utils_seed import make_customer, make_task


def test_dashboard_stats(client):
    now = utcnow()
    make_customer()
    make_task(status='COMPLETED', service_type='FULL_SERVICE', actual_cost_cents=10000,
              created_at=now - timedelta(days=3), actual_completion=now - timedelta(days=1, hours=12))
    make_task(status='CLOSED', service_type='FLAT_TIRE_REPAIR', actual_cost_cents=2550,
              created_at=now - timedelta(days=2), actual_completion=now - timedelta(days=2) + timedelta(hours=1))
    make_task(status='IN_SHOP', service_type='FULL_SERVICE', actual_cost_cents=9900)
    make_task(status='FUTURE', created_at=now - timedelta(days=45))

    resp = client.get('/api/dashboard/stats', headers=auth_headers())
    assert resp.status_code == 200
    stats = resp.get_json()['stats']
    assert stats['timeRange'] == 30
    assert stats['summary'] == {
        'totalTasks': 3,
        'completedTasks': 2,
        'avgTurnaroundDays': 1.5,
        'totalCustomers': 1,
        'totalRevenue': '125.50',
        'completionRate': 67,
    }
    types = {r['serviceTypeKey']: r for r in stats['serviceTypeDistribution']}
    assert types['FULL_SERVICE']['serviceType'] == 'Full Service'
    assert types['FULL_SERVICE']['count'] == 2
    assert {r['statusKey'] for r in stats['statusDistribution']} == {'COMPLETED', 'CLOSED', 'IN_SHOP'}
    assert len(stats['recentActivity']) == 3
    assert stats['recentActivity'][0]['assignedTo'] == 'Unassigned'

    volume = stats['dailyVolume']
    assert len(volume) == 30
    assert volume[-1] == {'date': now.date().isoformat(), 'count': 1}
    assert volume[-4]['count'] == 1
    assert sum(d['count'] for d in volume) == 3


def test_dashboard_custom_range(client):
    now = utcnow()
    make_task(created_at=now - timedelta(days=10))
    make_task()
    stats = client.get('/api/dashboard/stats?range=7', headers=auth_headers()).get_json()['stats']
    assert stats['timeRange'] == 7
    assert stats['summary']['totalTasks'] == 1


def test_dashboard_invalid_range(client):
    headers = auth_headers()
    for raw in ('abc', '0', '-5', '36501', '1000000'):
        resp = client.get(f'/api/dashboard/stats?range={raw}', headers=headers)
        assert resp.status_code == 400
    assert resp.get_json() == {'error': 'range must be between 1 and 36500 days'}


def test_dashboard_empty(client):
    stats = client.get('/api/dashboard/stats', headers=auth_headers()).get_json()['stats']
    assert stats['summary']['avgTurnaroundDays'] == 0
    assert stats['summary']['totalRevenue'] == '0.00'
    assert all(d['count'] == 0 for d in stats['dailyVolume'])


def test_dashboard_longest_range(client):
    make_task()
    stats = client.get('/api/dashboard/stats?range=36500', headers=auth_headers()).get_json()['stats']
    assert stats['timeRange'] == 36500
    assert stats['summary']['totalTasks'] == 1
