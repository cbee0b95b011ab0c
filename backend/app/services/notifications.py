from __future__ import annotations
"""Support-ticket email delivery through Resend."""
import random
import string
import time
from typing import Dict, Optional
import resend
from flask import current_app

RESPONSE_TIMES = {
    'urgent': '2-4 hours',
    'high': '4-8 hours',
    'medium': '8-24 hours',
}
DEFAULT_RESPONSE_TIME = '24-48 hours'


class SupportEmailError(Exception):
    pass


def response_time(priority: Optional[str]) -> str:
    return RESPONSE_TIMES.get((priority or '').lower(), DEFAULT_RESPONSE_TIME)


def new_ticket_id(now_ms: Optional[int] = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=9))
    return f'ST-{now_ms}-{suffix}'


class SupportMailer:
    """Sends the team notification and the customer confirmation.

    ``enabled`` is False when no API key (or no team inbox) is configured;
    callers then only log the ticket.
    """

    def __init__(self, api_key: Optional[str], from_email: str, team_email: Optional[str]):
        self.api_key = api_key
        self.from_email = from_email
        self.team_email = team_email

    @classmethod
    def from_config(cls, config) -> 'SupportMailer':
        return cls(config.get('RESEND_API_KEY'), config['SUPPORT_FROM_EMAIL'], config.get('SUPPORT_TEAM_EMAIL'))

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.team_email)

    def send_ticket(self, ticket: Dict[str, str], ticket_id: str) -> Dict[str, Optional[str]]:
        resend.api_key = self.api_key
        priority = ticket['priority'].upper()
        team_params = {
            'from': self.from_email,
            'to': [self.team_email],
            'reply_to': ticket['email'],
            'subject': f"[Support - {priority}] {ticket['subject']}",
            'text': (
                f"Support Ticket Submission - {ticket_id}\n"
                f"Name: {ticket['name']}\n"
                f"Email: {ticket['email']}\n"
                f"Subject: {ticket['subject']}\n"
                f"Priority: {priority}\n"
                f"Category: {ticket['category'].upper()}\n\n"
                f"Message:\n{ticket['message']}\n"
            ),
        }
        try:
            team_response = resend.Emails.send(team_params)
        except Exception as e:
            raise SupportEmailError(str(e)) from e

        confirmation_id = None
        confirmation_params = {
            'from': self.from_email,
            'to': [ticket['email']],
            'subject': f"Support Request Received - {ticket['subject']}",
            'text': (
                f"Hi {ticket['name']},\n\n"
                "Thank you for contacting ServiceTracker Pro support!\n\n"
                f"- Subject: {ticket['subject']}\n"
                f"- Priority: {priority}\n"
                f"- Ticket ID: {ticket_id}\n\n"
                f"Expected response time: {response_time(ticket['priority'])}\n\n"
                "ServiceTracker Pro Support Team\n"
            ),
        }
        try:
            confirmation_id = resend.Emails.send(confirmation_params).get('id')
        except Exception:
            # the team already has the ticket; a lost confirmation is not fatal
            current_app.logger.exception('Customer confirmation email failed for ticket %s', ticket_id)
        return {'support': team_response.get('id'), 'confirmation': confirmation_id}
