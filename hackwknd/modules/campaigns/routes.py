"""
Campaigns Routes
================

Admin-only bulk email to the registrants of one hackathon.

- GET  /admin/campaigns/presets?hackathon_id=
- GET  /admin/campaigns/recipients?hackathon_id=&status=
- POST /admin/campaigns/preview -- rendered email for the first recipient
- POST /admin/campaigns/send -- resolve, confirm and dispatch in batches
"""

import logging

from flask import request, jsonify, session, current_app

from hackwknd.core import db_log
from hackwknd.modules.hackathons.models import HackathonStoreError, fetch_hackathon
from . import campaigns_bp
from .controller import (
    CampaignController, CampaignStateError, CampaignValidationError, EDITING
)
from .recipients import resolve_recipients, RecipientResolutionError
from .renderer import list_presets
from .transport import get_transport

logger = logging.getLogger(__name__)


def _db_log(level, message, details=None):
    db_log(level, 'campaigns', message, details)


def _in_app_context(send):
    """Run each send inside the app context so worker threads see app config"""
    app = current_app._get_current_object()

    def wrapped(req):
        with app.app_context():
            return send(req)
    return wrapped


def _load_hackathon(value):
    """Hackathon for a submitted id or None; a failing store raises RecipientResolutionError"""
    try:
        hackathon_id = int(value)
    except (TypeError, ValueError):
        return None
    try:
        return fetch_hackathon(hackathon_id)
    except HackathonStoreError as e:
        raise RecipientResolutionError(f"Could not load hackathon {hackathon_id}: {e}") from e


def _resolution_failed(hackathon_id, error, **extra):
    _db_log('error', 'Recipient resolution failed', {'hackathon_id': hackathon_id, 'error': str(error)})
    return jsonify({'error': 'Could not load recipients', **extra}), 503


def _prepare(data):
    """Controller resolved and loaded with the submitted content.

    Returns (controller, error_response).
    """
    try:
        hackathon = _load_hackathon(data.get('hackathon_id'))
    except RecipientResolutionError as e:
        return None, _resolution_failed(data.get('hackathon_id'), e)
    if not hackathon:
        return None, (jsonify({'error': 'Hackathon not found'}), 404)

    controller = CampaignController(hackathon, status_filter=data.get('status') or 'all')
    try:
        controller.resolve()
    except ValueError as e:
        return None, (jsonify({'error': str(e)}), 400)
    except RecipientResolutionError as e:
        return None, _resolution_failed(hackathon['id'], e, **controller.to_dict())

    if controller.state != EDITING:
        return controller, None

    try:
        if data.get('preset'):
            controller.apply_preset(data['preset'])
        controller.edit(subject=data.get('subject'), body=data.get('body'))
    except KeyError as e:
        return None, (jsonify({'error': str(e).strip("'")}), 400)
    return controller, None


@campaigns_bp.route('/presets', methods=['GET'])
def presets():
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    try:
        hackathon = _load_hackathon(request.args.get('hackathon_id'))
    except RecipientResolutionError as e:
        logger.warning(f"Presets fall back to the given title: {e}")
        hackathon = None
    title = hackathon['title'] if hackathon else request.args.get('title', '')
    return jsonify({'presets': list_presets(title)}), 200


@campaigns_bp.route('/recipients', methods=['GET'])
def recipients():
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    try:
        hackathon = _load_hackathon(request.args.get('hackathon_id'))
    except RecipientResolutionError as e:
        return _resolution_failed(request.args.get('hackathon_id'), e)
    if not hackathon:
        return jsonify({'error': 'Hackathon not found'}), 404

    try:
        found = resolve_recipients(hackathon['id'], request.args.get('status') or 'all')
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except RecipientResolutionError as e:
        return _resolution_failed(hackathon['id'], e)

    return jsonify({'recipients': found, 'count': len(found)}), 200


@campaigns_bp.route('/preview', methods=['POST'])
def preview():
    """Render the campaign for its first recipient"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    controller, error = _prepare(request.get_json(silent=True) or {})
    if error:
        return error
    if controller.state != EDITING:
        return jsonify(controller.to_dict()), 200

    return jsonify({**controller.to_dict(), 'preview': controller.preview()}), 200


@campaigns_bp.route('/send', methods=['POST'])
def send():
    """Send a campaign to every registrant matching the filter"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = request.get_json(silent=True) or {}
    controller, error = _prepare(data)
    if error:
        return error
    if controller.state != EDITING:
        return jsonify(controller.to_dict()), 200

    try:
        controller.confirm()
    except CampaignValidationError as e:
        return jsonify({'error': str(e), **controller.to_dict()}), 400

    try:
        transport = get_transport(data.get('transport'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    try:
        report = controller.send(_in_app_context(transport.send))
    except CampaignStateError as e:
        return jsonify({'error': str(e)}), 409

    _db_log('info' if not report.failed else 'warning', 'Campaign sent', {
        'hackathon_id': controller.hackathon['id'],
        'status_filter': controller.status_filter,
        'subject': controller.subject,
        'failures': report.failures,
        **report.to_dict(),
    })
    return jsonify(controller.to_dict()), 200
