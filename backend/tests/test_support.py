import re
import pytest
import resend

TICKET = {
    'name': 'Alice Rider',
    'email': 'alice@example.com',
    'subject': 'Label printer jammed',
    'message': 'The receipt printer stopped mid-label.',
}
TICKET_ID_RE = re.compile(r'^ST-\d+-[A-Z0-9]{9}$')


@pytest.fixture()
def mail_enabled(app_context):
    app_context.config['RESEND_API_KEY'] = 're_test_key'
    app_context.config['SUPPORT_TEAM_EMAIL'] = 'team@shop.test'
    return app_context


@pytest.fixture()
def sent(monkeypatch):
    calls = []

    def fake_send(params):
        calls.append(params)
        return {'id': f'em_{len(calls)}'}
    monkeypatch.setattr(resend.Emails, 'send', fake_send)
    return calls


def test_ticket_requires_fields(client):
    resp = client.post('/api/support/ticket', json={'name': 'Alice'})
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'Missing required fields: name, email, subject, message'}
    resp = client.post('/api/support/ticket', json={**TICKET, 'email': 'not-an-email'})
    assert resp.status_code == 400


def test_ticket_logged_when_mail_not_configured(client, sent):
    resp = client.post('/api/support/ticket', json=TICKET)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success'] is True
    assert TICKET_ID_RE.match(body['ticketId'])
    assert body['expectedResponseTime'] == '8-24 hours'
    assert 'emailIds' not in body
    assert sent == []


def test_ticket_emails_team_and_customer(client, mail_enabled, sent):
    resp = client.post('/api/support/ticket', json={**TICKET, 'priority': 'URGENT', 'category': 'technical'})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['emailIds'] == {'support': 'em_1', 'confirmation': 'em_2'}
    assert body['expectedResponseTime'] == '2-4 hours'
    team, confirmation = sent
    assert team['to'] == ['team@shop.test']
    assert team['reply_to'] == 'alice@example.com'
    assert team['subject'] == '[Support - URGENT] Label printer jammed'
    assert body['ticketId'] in team['text']
    assert 'Category: TECHNICAL' in team['text']
    assert confirmation['to'] == ['alice@example.com']
    assert body['ticketId'] in confirmation['text']


def test_team_email_failure_is_an_error(client, mail_enabled, monkeypatch):
    def failing_send(params):
        raise ConnectionError('upstream down')
    monkeypatch.setattr(resend.Emails, 'send', failing_send)
    resp = client.post('/api/support/ticket', json=TICKET)
    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'Failed to send email'}


def test_confirmation_failure_still_succeeds(client, mail_enabled, monkeypatch):
    calls = []

    def flaky_send(params):
        calls.append(params)
        if len(calls) == 2:
            raise RuntimeError('mailbox unavailable')
        return {'id': 'em_team'}
    monkeypatch.setattr(resend.Emails, 'send', flaky_send)
    resp = client.post('/api/support/ticket', json={**TICKET, 'priority': 'low'})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['emailIds'] == {'support': 'em_team', 'confirmation': None}
    assert body['expectedResponseTime'] == '24-48 hours'
