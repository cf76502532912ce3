"""
Email transports used by the batch dispatcher.

A send request is the /api/send-email payload plus the recipient id:

    {'id': 12, 'to': 'ada@example.com', 'data': {..., 'isCustomEmail': True}}

Every transport returns {'success': bool, 'id': message id, 'error': str}.
"""

import logging

import requests

from hackwknd.core import get_config_value
from hackwknd.modules.email.email_service import email_service
from .renderer import build_envelope

logger = logging.getLogger(__name__)


def build_request(recipient, rendered, hackathon_title):
    """Send request for one recipient from its personalised subject/body"""
    return {
        'id': recipient['id'],
        'to': recipient['email'],
        'data': {
            'name': recipient['name'],
            'email': recipient['email'],
            'hackathonTitle': hackathon_title,
            'customSubject': rendered['subject'],
            'customContent': rendered['body'],
            'partnershipLogos': recipient.get('partnership_logos') or [],
            'isCustomEmail': True,
        },
    }


class DirectEmailTransport:
    """Renders the envelope in-process and sends through the email service"""

    name = 'direct'

    def __init__(self, service=None):
        self.service = service or email_service

    def send(self, request):
        data = request['data']
        html = build_envelope(
            data['customSubject'], data['customContent'], data.get('partnershipLogos'),
            hackathon_title=data.get('hackathonTitle'),
        )
        return self.service.send_message(request['to'], data['customSubject'], html, email_type='campaign')


class HttpEmailTransport:
    """Posts each request to a /api/send-email endpoint"""

    name = 'http'

    def __init__(self, endpoint, timeout=30, token=None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.token = token

    def send(self, request):
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'

        try:
            resp = requests.post(
                self.endpoint,
                headers=headers,
                json={'to': request['to'], 'data': request['data']},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as e:
            error_detail = ''
            if hasattr(e, 'response') and e.response is not None:
                error_detail = e.response.text
            return {'success': False, 'id': None, 'error': f'Send endpoint error: {e} {error_detail}'.strip()}
        except ValueError:
            return {'success': False, 'id': None, 'error': 'Send endpoint returned invalid JSON'}

        if not isinstance(body, dict) or not body.get('success'):
            error = body.get('error') if isinstance(body, dict) else None
            return {'success': False, 'id': None, 'error': error or 'Send endpoint reported failure'}
        return {'success': True, 'id': body.get('messageId'), 'error': None}


def get_transport(name=None):
    """Transport selected by CAMPAIGN_TRANSPORT ('direct' or 'http')"""
    name = (name or get_config_value('CAMPAIGN_TRANSPORT', 'direct')).lower()
    if name == 'http':
        return HttpEmailTransport(
            endpoint=get_config_value('SEND_EMAIL_ENDPOINT'),
            timeout=int(get_config_value('SEND_EMAIL_TIMEOUT', 30)),
            token=get_config_value('SEND_EMAIL_TOKEN'),
        )
    if name != 'direct':
        raise ValueError(f"Unknown campaign transport: {name}")
    return DirectEmailTransport()
