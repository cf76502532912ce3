"""
Registrations Routes
====================

Admin (session required):
- GET  /admin/registrations/ -- filtered list + counts
- PUT  /admin/registrations/<id>/status -- change one status
- POST /admin/registrations/bulk-status -- one status for many registrations
- POST /admin/registrations/confirm-pending -- confirm every pending registration of an event
- GET  /admin/registrations/export -- CSV of the filtered list

Public:
- POST /api/hackathon/<slug>/register
- POST /api/registrations -- register for the active hackathon
- POST /api/check-registration
"""

import logging
from datetime import date, datetime

from flask import request, jsonify, session, Response
from flask_cors import cross_origin

from hackwknd.core import Config, db_log
from hackwknd.modules.hackathons.models import (
    get_hackathon, get_hackathon_by_slug, get_active_hackathon, OPEN_STATUSES
)
from hackwknd.modules.email.email_service import email_service, is_valid_email
from . import registrations_admin_bp, registrations_public_bp
from .models import (
    RegistrationStoreError, DuplicateRegistrationError, STATUSES,
    list_registrations, get_registration, create_registration, registration_exists,
    update_status, bulk_update_status
)
from .view import RegistrationView
from .export import registrations_to_csv, export_filename

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('name', 'email', 'phone')


def _db_log(level, message, details=None):
    db_log(level, 'registrations', message, details)


def _int_or_none(value):
    try:
        return int(value) if value not in (None, '') else None
    except (TypeError, ValueError):
        return None


def _text(value):
    """Form value as a stripped string; JSON numbers (phones) are accepted"""
    return str(value).strip() if value is not None else ''


def _load_view(args):
    """Build the admin view from query/body args (hackathon_id, status, search)"""
    hackathon_id = _int_or_none(args.get('hackathon_id'))
    return RegistrationView(
        registrations=list_registrations(hackathon_id=hackathon_id),
        hackathon_id=hackathon_id,
        status_filter=args.get('status') or 'all',
        search=args.get('search') or '',
    )


# ===================
# ADMIN ROUTES
# ===================

@registrations_admin_bp.route('/', methods=['GET'])
def admin_list():
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    try:
        view = _load_view(request.args)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except RegistrationStoreError as e:
        _db_log('error', 'Failed to load registrations', {'error': str(e)})
        return jsonify({'error': 'Failed to load registrations'}), 500

    return jsonify(view.to_dict()), 200


@registrations_admin_bp.route('/<int:registration_id>/status', methods=['PUT'])
def admin_update_status(registration_id):
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    status = (request.get_json(silent=True) or {}).get('status')
    if status not in STATUSES:
        return jsonify({'error': f"Invalid status: {status}"}), 400

    try:
        changed = update_status(registration_id, status)
    except RegistrationStoreError as e:
        _db_log('error', f'Status update failed for registration {registration_id}', {'error': str(e)})
        return jsonify({'error': 'Failed to update registration status'}), 500

    if not changed:
        return jsonify({'error': 'Registration not found'}), 404
    return jsonify({'registration': get_registration(registration_id)}), 200


@registrations_admin_bp.route('/bulk-status', methods=['POST'])
def admin_bulk_status():
    """Apply one status to the given registrations of one event.

    Body: {hackathon_id, ids, status, [status_filter], [search]}. The
    returned view is the admin's list with the change mirrored in.
    """
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = request.get_json(silent=True) or {}
    hackathon_id = _int_or_none(data.get('hackathon_id'))
    ids = data.get('ids') or []
    status = data.get('status')

    if hackathon_id is None:
        return jsonify({'error': 'hackathon_id is required'}), 400
    if not isinstance(ids, list) or not ids:
        return jsonify({'error': 'No registrations selected'}), 400
    if status not in STATUSES:
        return jsonify({'error': f"Invalid status: {status}"}), 400

    try:
        ids = [int(i) for i in ids]
    except (TypeError, ValueError):
        return jsonify({'error': 'Invalid registration id'}), 400

    try:
        view = _load_view({
            'hackathon_id': hackathon_id,
            'status': data.get('status_filter'),
            'search': data.get('search'),
        })
        changed = bulk_update_status(hackathon_id, ids, status)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except RegistrationStoreError as e:
        logger.error(f"Bulk status update failed: {e}")
        _db_log('error', 'Bulk status update failed', {
            'hackathon_id': hackathon_id, 'count': len(ids), 'status': status, 'error': str(e)
        })
        return jsonify({'error': 'Failed to update registrations'}), 500

    view = view.with_status(ids, status)
    _db_log('info', f'Bulk status update: {changed} -> {status}', {'hackathon_id': hackathon_id})
    return jsonify({
        'message': f'Updated {changed} registrations to {status}',
        'updated': changed,
        **view.to_dict(),
    }), 200


@registrations_admin_bp.route('/confirm-pending', methods=['POST'])
def admin_confirm_pending():
    """Confirm every pending (or unset) registration of one event"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = request.get_json(silent=True) or {}
    hackathon_id = _int_or_none(data.get('hackathon_id'))
    if hackathon_id is None:
        return jsonify({'error': 'hackathon_id is required'}), 400

    try:
        view = _load_view({
            'hackathon_id': hackathon_id,
            'status': data.get('status_filter'),
            'search': data.get('search'),
        })
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except RegistrationStoreError as e:
        _db_log('error', 'Failed to load registrations', {'error': str(e)})
        return jsonify({'error': 'Failed to load registrations'}), 500

    ids = view.pending_ids(hackathon_id)
    if not ids:
        return jsonify({'message': 'No pending registrations', 'updated': 0, **view.to_dict()}), 200

    try:
        changed = bulk_update_status(hackathon_id, ids, 'confirmed')
    except RegistrationStoreError as e:
        _db_log('error', 'Confirm all pending failed', {'hackathon_id': hackathon_id, 'error': str(e)})
        return jsonify({'error': 'Failed to confirm registrations'}), 500

    view = view.with_status(ids, 'confirmed')
    _db_log('info', f'Confirmed {changed} pending registrations', {'hackathon_id': hackathon_id})
    return jsonify({
        'message': f'Confirmed {changed} registrations',
        'updated': changed,
        **view.to_dict(),
    }), 200


@registrations_admin_bp.route('/export', methods=['GET'])
def admin_export():
    """Download the currently filtered registrations as CSV"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    try:
        view = _load_view(request.args)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except RegistrationStoreError as e:
        _db_log('error', 'Failed to load registrations for export', {'error': str(e)})
        return jsonify({'error': 'Failed to load registrations'}), 500

    csv_text = registrations_to_csv(view.visible())
    if csv_text is None:
        return jsonify({'message': 'No registrations to export'}), 200

    hackathon = get_hackathon(view.hackathon_id) if view.hackathon_id else None
    filename = export_filename(date.today(), hackathon['title'] if hackathon else None)
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )


# ===================
# PUBLIC ROUTES
# ===================

def _registration_closed(hackathon):
    """Reason registration is not possible, or None when open"""
    if hackathon['event_status'] not in OPEN_STATUSES:
        return 'Registration is closed for this event'
    end = hackathon.get('registration_end_date')
    if end:
        try:
            if datetime.fromisoformat(str(end).replace('Z', '+00:00')).date() < date.today():
                return 'Registration deadline has passed'
        except ValueError:
            logger.warning(f"Unparseable registration_end_date for hackathon {hackathon['id']}: {end}")
    return None


def _register(hackathon):
    data = request.get_json(silent=True) or {}
    fields = {field: _text(data.get(field)) for field in REQUIRED_FIELDS}
    missing = [field for field in REQUIRED_FIELDS if not fields[field]]
    if missing:
        return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400
    if not is_valid_email(fields['email']):
        return jsonify({'error': 'Invalid email address'}), 400

    reason = _registration_closed(hackathon)
    if reason:
        return jsonify({'error': reason}), 400

    try:
        registration = create_registration(hackathon['id'], fields['name'], fields['email'], fields['phone'])
    except DuplicateRegistrationError as e:
        return jsonify({'error': str(e)}), 409
    except RegistrationStoreError as e:
        _db_log('error', 'Registration insert failed', {'hackathon_id': hackathon['id'], 'error': str(e)})
        return jsonify({'error': 'Registration failed, please try again'}), 500

    # Confirmation email is best effort
    result = email_service.send_registration_confirmation(
        registration['email'], registration['name'], hackathon
    )
    if not result['success']:
        logger.warning(f"Confirmation email to {registration['email']} failed: {result['error']}")
        _db_log('warning', 'Confirmation email failed', {
            'registration_id': registration['id'], 'error': result['error']
        })

    _db_log('info', f"New registration for {hackathon['title']}", {'registration_id': registration['id']})
    return jsonify({'registration': registration, 'message': 'Registration successful'}), 201


@registrations_public_bp.route('/hackathon/<slug>/register', methods=['POST'])
@cross_origin(origins=Config.CORS_ORIGINS)
def register_for_hackathon(slug):
    hackathon = get_hackathon_by_slug(slug)
    if not hackathon or hackathon['event_status'] == 'draft':
        return jsonify({'error': 'Hackathon not found'}), 404
    return _register(hackathon)


@registrations_public_bp.route('/registrations', methods=['POST'])
@cross_origin(origins=Config.CORS_ORIGINS)
def register_for_active():
    """Register for the next hackathon open for registration"""
    hackathon = get_active_hackathon()
    if not hackathon:
        return jsonify({'error': 'No hackathon is currently open for registration'}), 400
    return _register(hackathon)


@registrations_public_bp.route('/check-registration', methods=['POST'])
@cross_origin(origins=Config.CORS_ORIGINS)
def check_registration():
    """True when the email or phone is already registered"""
    data = request.get_json(silent=True) or {}
    email = _text(data.get('email'))
    phone = _text(data.get('phone'))
    if not email and not phone:
        return jsonify({'error': 'Email or phone is required'}), 400

    try:
        exists = registration_exists(email=email, phone=phone,
                                     hackathon_id=_int_or_none(data.get('hackathon_id')))
    except RegistrationStoreError as e:
        _db_log('error', 'Registration check failed', {'error': str(e)})
        return jsonify({'error': 'Failed to check registration'}), 500
    return jsonify(exists), 200
