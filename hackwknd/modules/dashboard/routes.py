import logging
import sqlite3

from flask import request, jsonify, session

from hackwknd.core import db_log, logger as app_logger
from hackwknd.modules.hackathons.models import count_hackathons
from hackwknd.modules.registrations.models import (
    RegistrationStoreError, count_registrations, recent_registrations
)
from . import dashboard_bp
from .models import (
    MIN_PASSWORD_LENGTH, init_admin_table, count_admins, authenticate, create_admin as insert_admin,
    change_password as update_password
)

logger = logging.getLogger(__name__)

RECENT_REGISTRATIONS = 5


def _db_log(level, message, details=None):
    db_log(level, 'admin', message, details)


def _payload():
    """JSON body, or form fields for plain HTML posts"""
    return request.get_json(silent=True) or request.form


@dashboard_bp.route('/login', methods=['POST'])
def login():
    """Admin login route"""
    init_admin_table()
    data = _payload()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'Please enter both email and password'}), 400

    admin = authenticate(email, password)
    if not admin:
        _db_log('warning', 'Failed admin login', {'email': email})
        return jsonify({'error': 'Invalid email or password'}), 401

    session['admin_id'] = admin['id']
    session['admin_email'] = admin['email']
    return jsonify({'message': 'Login successful', 'email': admin['email']}), 200


@dashboard_bp.route('/logout', methods=['POST'])
def logout():
    """Admin logout route"""
    session.pop('admin_id', None)
    session.pop('admin_email', None)
    return jsonify({'message': 'You have been logged out'}), 200


@dashboard_bp.route('/status', methods=['GET'])
def status():
    """Check admin login status"""
    if 'admin_id' in session:
        return jsonify({'logged_in': True, 'email': session.get('admin_email')}), 200
    return jsonify({'logged_in': False}), 200


@dashboard_bp.route('/create-admin', methods=['POST'])
def create_admin():
    """Create new admin (only by an existing admin, or when no admins exist)"""
    init_admin_table()
    if count_admins() > 0 and 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = _payload()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    confirm_password = data.get('confirm_password') or password

    if not email or not password:
        return jsonify({'error': 'All fields are required'}), 400
    if password != confirm_password:
        return jsonify({'error': 'Passwords do not match'}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters long'}), 400

    try:
        admin_id = insert_admin(email, password)
    except sqlite3.IntegrityError:
        return jsonify({'error': 'An admin with this email already exists'}), 409

    _db_log('info', f'Admin {email} created')
    return jsonify({'message': f'Admin {email} created successfully', 'id': admin_id}), 201


@dashboard_bp.route('/change-password', methods=['POST'])
def change_password():
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = _payload()
    current_password = data.get('current_password') or ''
    new_password = data.get('new_password') or ''
    confirm_password = data.get('confirm_password') or ''

    if not all([current_password, new_password, confirm_password]):
        return jsonify({'error': 'All fields are required'}), 400
    if new_password != confirm_password:
        return jsonify({'error': 'New passwords do not match'}), 400
    if len(new_password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters long'}), 400

    if not update_password(session['admin_id'], current_password, new_password):
        return jsonify({'error': 'Current password is incorrect'}), 400
    return jsonify({'message': 'Password changed successfully'}), 200


@dashboard_bp.route('/stats', methods=['GET'])
def stats():
    """Dashboard counters and the latest registrations"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    try:
        return jsonify({
            'total_hackathons': count_hackathons(),
            'total_registrations': count_registrations(),
            'recent_registrations': recent_registrations(RECENT_REGISTRATIONS),
        }), 200
    except (sqlite3.Error, RegistrationStoreError) as e:
        logger.error(f"Error loading dashboard stats: {e}")
        return jsonify({'error': 'Failed to load stats'}), 500


@dashboard_bp.route('/logs', methods=['GET'])
def logs():
    """Recent persistent log entries, optionally filtered by source/level"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    entries = app_logger.recent(
        limit=request.args.get('limit', 50, type=int),
        source=request.args.get('source'),
        level=request.args.get('level'),
    )
    return jsonify({'logs': entries}), 200
