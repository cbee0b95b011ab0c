from __future__ import annotations
from flask import Blueprint, request, abort, current_app
from app.services.notifications import SupportMailer, SupportEmailError, new_ticket_id, response_time
from app.utils.validation import require_fields, validate_email

support_bp = Blueprint('support', __name__)


@support_bp.post('/ticket')
def submit_ticket():
    """Public endpoint; no token required."""
    data = request.get_json(silent=True) or {}
    require_fields(data, 'name', 'email', 'subject', 'message')
    validate_email(data['email'])
    ticket = {
        'name': data['name'],
        'email': data['email'],
        'subject': data['subject'],
        'message': data['message'],
        'priority': str(data.get('priority') or 'medium').lower(),
        'category': str(data.get('category') or 'other').lower(),
    }
    ticket_id = new_ticket_id()
    mailer = SupportMailer.from_config(current_app.config)
    if not mailer.enabled:
        current_app.logger.info('Support ticket %s submitted (email delivery not configured): %s', ticket_id, ticket)
        return {
            'success': True,
            'message': 'Ticket submitted successfully (logged only - configure RESEND_API_KEY for email delivery)',
            'ticketId': ticket_id,
            'expectedResponseTime': response_time(ticket['priority']),
        }
    try:
        email_ids = mailer.send_ticket(ticket, ticket_id)
    except SupportEmailError as e:
        current_app.logger.error('Support email for ticket %s failed: %s', ticket_id, e)
        abort(500, description='Failed to send email')
    current_app.logger.info('Support ticket %s emailed: %s', ticket_id, email_ids)
    return {
        'success': True,
        'message': 'Support ticket submitted successfully',
        'ticketId': ticket_id,
        'emailIds': email_ids,
        'expectedResponseTime': response_time(ticket['priority']),
    }
