"""Reusable test helpers for the service-task lifecycle.

Patterns unified:
 - Auth header creation using identity-provider style claims (sub, email, name).
 - Creation through the intake endpoint and status walks along the board.
"""
from __future__ import annotations
from typing import Dict, Iterable, Optional
from flask_jwt_extended import create_access_token

INTAKE = {
    'customerName': 'Alice Rider',
    'email': 'alice@example.com',
    'phone': '555-0100',
    'bikeModel': 'Trek Domane SL5',
    'serialNumber': 'WTU123',
    'serviceType': 'Full Service',
    'notes': 'Squeaky brakes',
    'estimatedCost': '120.50',
}


def auth_headers(provider_id: str = 'emp-1', email: Optional[str] = None, name: Optional[str] = None) -> Dict[str, str]:
    claims = {'email': email or f'{provider_id}@example.com'}
    if name:
        claims['name'] = name
    token = create_access_token(identity=provider_id, additional_claims=claims)
    return {'Authorization': f'Bearer {token}'}


def create_task_via_api(client, headers, **overrides) -> dict:
    payload = {**INTAKE, **overrides}
    resp = client.post('/api/service-tasks', json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['serviceJob']


def set_status(client, headers, task_id: str, status: str, **extra):
    return client.put(f'/api/service-tasks/{task_id}', json={'status': status, **extra}, headers=headers)


def walk_statuses(client, headers, task_id: str, statuses: Iterable[str]):
    for s in statuses:
        resp = set_status(client, headers, task_id, s)
        assert resp.status_code == 200, (s, resp.get_json())
        assert resp.get_json()['serviceTask']['status'] == s


__all__ = ['INTAKE', 'auth_headers', 'create_task_via_api', 'set_status', 'walk_statuses']
