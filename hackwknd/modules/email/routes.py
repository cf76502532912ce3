"""
Email Routes
============

Provides:
- POST /api/send-email -- send one email: registration confirmation, or a
  campaign message when data.isCustomEmail is set (admin session or
  SEND_EMAIL_TOKEN bearer required for campaign messages)
- /api/emails -- legacy email template CRUD (admin)
- POST /api/emails/<id>/send -- send an active template (admin)
- POST /api/emails/send-custom -- send an ad-hoc message (admin)
- GET /api/emails/logs -- recent delivery attempts (admin)
"""

import hmac
import logging
import sqlite3

from flask import request, jsonify, session

from hackwknd.core import db_log, get_config_value
from hackwknd.modules.campaigns.renderer import build_envelope, substitute
from . import email_bp
from .email_service import email_service, is_valid_email
from .models import (
    list_templates, get_template, create_template, update_template, delete_template,
    record_sent, missing_fields
)

logger = logging.getLogger(__name__)


def _db_log(level, message, details=None):
    db_log(level, 'email', message, details)


def _internal_caller():
    """True for an admin session or a request carrying the configured send token"""
    if 'admin_id' in session:
        return True
    token = get_config_value('SEND_EMAIL_TOKEN')
    header = request.headers.get('Authorization', '')
    if token and header.startswith('Bearer '):
        return hmac.compare_digest(header[len('Bearer '):], token)
    return False


def _address(value):
    return value.strip() if isinstance(value, str) else ''


@email_bp.route('/send-email', methods=['POST'])
def send_email():
    """Send one email for the registration form or a campaign batch"""
    payload = request.get_json(silent=True) or {}
    to = _address(payload.get('to'))
    data = payload.get('data') or {}

    if not to or not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Missing recipient or data'}), 400
    if not is_valid_email(to):
        return jsonify({'success': False, 'error': 'Invalid email address'}), 400

    if data.get('isCustomEmail'):
        if not _internal_caller():
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        recipient = {'name': data.get('name', ''), 'email': data.get('email') or to}
        subject = substitute(data.get('customSubject') or '', recipient)
        if not subject:
            subject = f"Message from {data.get('hackathonTitle') or email_service.brand_name}"
        html = build_envelope(
            subject,
            substitute(data.get('customContent') or '', recipient),
            data.get('partnershipLogos') or [],
        )
        result = email_service.send_message(to, subject, html, email_type='campaign')
    else:
        hackathon = {'title': data.get('hackathonTitle')} if data.get('hackathonTitle') else None
        result = email_service.send_registration_confirmation(to, data.get('name', ''), hackathon)

    if not result['success']:
        _db_log('error', f'Email to {to} failed', {'error': result['error']})
        return jsonify({'success': False, 'error': 'Failed to send email'}), 502

    return jsonify({'success': True, 'messageId': result['id']}), 200


# ===================
# LEGACY TEMPLATES
# ===================

def _template_payload(data):
    """Accept both snake_case and the old camelCase field names"""
    mapped = dict(data)
    if 'fromEmail' in data and 'from_email' not in data:
        mapped['from_email'] = data['fromEmail']
    if 'isActive' in data and 'is_active' not in data:
        mapped['is_active'] = data['isActive']
    return mapped


@email_bp.route('/emails', methods=['GET'])
def templates_list():
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    include_sent = request.args.get('include_sent', 'false').lower() == 'true'
    return jsonify({'emails': list_templates(include_sent=include_sent)}), 200


@email_bp.route('/emails', methods=['POST'])
def templates_create():
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = _template_payload(request.get_json(silent=True) or {})
    missing = missing_fields(data)
    if missing:
        return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

    try:
        template = create_template(data)
    except sqlite3.Error as e:
        logger.error(f"Error creating email template: {e}")
        return jsonify({'error': 'Database error occurred'}), 500
    return jsonify({'email': template}), 201


@email_bp.route('/emails/<int:template_id>', methods=['GET'])
def templates_detail(template_id):
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    template = get_template(template_id)
    if not template:
        return jsonify({'error': 'Email template not found'}), 404
    return jsonify({'email': template}), 200


@email_bp.route('/emails/<int:template_id>', methods=['PUT'])
def templates_update(template_id):
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = _template_payload(request.get_json(silent=True) or {})
    template = update_template(template_id, data)
    if not template:
        return jsonify({'error': 'Email template not found'}), 404
    return jsonify({'email': template}), 200


@email_bp.route('/emails/<int:template_id>', methods=['DELETE'])
def templates_delete(template_id):
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    if not delete_template(template_id):
        return jsonify({'error': 'Email template not found'}), 404
    return jsonify({'message': 'Email template deleted'}), 200


@email_bp.route('/emails/<int:template_id>/send', methods=['POST'])
def templates_send(template_id):
    """Send an active template to one address and record the sent copy"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    template = get_template(template_id)
    if not template or not template['is_active']:
        return jsonify({'error': 'Email template not found or inactive'}), 404

    to = _address((request.get_json(silent=True) or {}).get('to'))
    if not to:
        return jsonify({'error': 'Missing required fields: to'}), 400

    result = email_service.send_message(
        to, template['subject'], template['body'],
        email_type='template', sender=template['from_email']
    )
    if not result['success']:
        _db_log('error', f"Template {template_id} send failed", {'to': to, 'error': result['error']})
        return jsonify({'error': 'Failed to send email'}), 500

    record_sent(f"Sent: {template['name']}", template['subject'], template['body'],
                template['from_email'], to)
    return jsonify({'message': 'Email sent successfully', 'messageId': result['id']}), 200


@email_bp.route('/emails/send-custom', methods=['POST'])
def templates_send_custom():
    """Send an ad-hoc message without a stored template"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = _template_payload(request.get_json(silent=True) or {})
    if missing_fields(data, required=('to', 'subject', 'body', 'from_email')):
        return jsonify({'error': 'Missing required fields'}), 400

    to = data['to'].strip()
    result = email_service.send_message(
        to, data['subject'], data['body'], email_type='custom', sender=data['from_email']
    )
    if not result['success']:
        _db_log('error', 'Custom email send failed', {'to': to, 'error': result['error']})
        return jsonify({'error': 'Failed to send custom email'}), 500

    record_sent(f"Custom: {data['subject']}", data['subject'], data['body'], data['from_email'], to)
    return jsonify({'message': 'Custom email sent successfully', 'messageId': result['id']}), 200


@email_bp.route('/emails/logs', methods=['GET'])
def email_logs():
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    limit = request.args.get('limit', 50, type=int)
    return jsonify({'logs': email_service.recent_logs(limit=limit)}), 200
