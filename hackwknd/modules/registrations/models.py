"""
Registration Models
===================

Schema, queries and the bulk status updater for event registrations.
A NULL status is the default state and is read as 'pending' everywhere.
"""

import sqlite3
import logging

from hackwknd.core import Database

logger = logging.getLogger(__name__)

STATUSES = ('pending', 'confirmed', 'rejected')
STATUS_FILTERS = ('all',) + STATUSES
DEFAULT_STATUS = 'pending'


class RegistrationStoreError(Exception):
    """The store rejected or could not serve a registration query"""


class DuplicateRegistrationError(Exception):
    """Email or phone already registered for this event"""


def init_registrations_db():
    """Create the registrations table"""
    Database.execute_script(Database.get_db_path(), [
        '''
        CREATE TABLE IF NOT EXISTS registrations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone TEXT DEFAULT '',
            status TEXT DEFAULT 'pending',
            hackathon_id INTEGER NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (hackathon_id) REFERENCES hackathons(id)
        )
        ''',
        'CREATE INDEX IF NOT EXISTS idx_registrations_hackathon ON registrations(hackathon_id, status)',
        'CREATE INDEX IF NOT EXISTS idx_registrations_email ON registrations(email)',
    ])


def status_of(registration):
    """Effective status of a registration dict"""
    return registration.get('status') or DEFAULT_STATUS


def status_clause(status_filter):
    """SQL condition + params selecting a status filter

    'pending' also matches rows whose status was never set.
    """
    if status_filter not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status_filter}")
    if status_filter == 'all':
        return '1=1', ()
    if status_filter == DEFAULT_STATUS:
        return "(status = ? OR status IS NULL)", (DEFAULT_STATUS,)
    return "status = ?", (status_filter,)


def _connect():
    try:
        return Database.connect(Database.get_db_path())
    except sqlite3.Error as e:
        raise RegistrationStoreError(f"Registration store unavailable: {e}") from e


def list_registrations(hackathon_id=None, status_filter='all'):
    """Registrations joined with their hackathon title, newest first"""
    condition, params = status_clause(status_filter)
    query = f'''
        SELECT r.*, h.title AS hackathon_title, h.slug AS hackathon_slug
        FROM registrations r
        LEFT JOIN hackathons h ON h.id = r.hackathon_id
        WHERE {condition.replace('status', 'r.status')}
    '''
    params = list(params)
    if hackathon_id is not None:
        query += ' AND r.hackathon_id = ?'
        params.append(hackathon_id)
    query += ' ORDER BY r.created_at DESC, r.id DESC'

    try:
        with _connect() as conn:
            return [dict(row) for row in conn.execute(query, params).fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Error listing registrations: {e}")
        raise RegistrationStoreError(str(e)) from e


def get_registration(registration_id):
    try:
        with _connect() as conn:
            row = conn.execute('SELECT * FROM registrations WHERE id = ?', (registration_id,)).fetchone()
            return dict(row) if row else None
    except sqlite3.Error as e:
        logger.error(f"Error getting registration {registration_id}: {e}")
        raise RegistrationStoreError(str(e)) from e


def find_existing(hackathon_id, email=None, phone=None):
    """Registrations of this event sharing the email or the phone"""
    clauses = []
    params = [hackathon_id]
    if email:
        clauses.append('lower(email) = lower(?)')
        params.append(email.strip())
    if phone:
        clauses.append('phone = ?')
        params.append(phone.strip())
    if not clauses:
        return []

    query = f"SELECT * FROM registrations WHERE hackathon_id = ? AND ({' OR '.join(clauses)})"
    try:
        with _connect() as conn:
            return [dict(row) for row in conn.execute(query, params).fetchall()]
    except sqlite3.Error as e:
        raise RegistrationStoreError(str(e)) from e


def registration_exists(email=None, phone=None, hackathon_id=None):
    """True when any registration uses this email or phone (optionally per event)"""
    clauses = []
    params = []
    if email:
        clauses.append('lower(email) = lower(?)')
        params.append(email.strip())
    if phone:
        clauses.append('phone = ?')
        params.append(phone.strip())
    if not clauses:
        return False

    query = f"SELECT 1 FROM registrations WHERE ({' OR '.join(clauses)})"
    if hackathon_id is not None:
        query += ' AND hackathon_id = ?'
        params.append(hackathon_id)
    try:
        with _connect() as conn:
            return conn.execute(query + ' LIMIT 1', params).fetchone() is not None
    except sqlite3.Error as e:
        raise RegistrationStoreError(str(e)) from e


def create_registration(hackathon_id, name, email, phone=''):
    """Insert a pending registration after a duplicate check.

    The check and the insert are separate statements, so two simultaneous
    submissions with the same email can both succeed.
    """
    if find_existing(hackathon_id, email=email, phone=phone):
        raise DuplicateRegistrationError('Registration already exists for this email or phone')

    try:
        with _connect() as conn:
            cursor = conn.execute('''
                INSERT INTO registrations (name, email, phone, status, hackathon_id)
                VALUES (?, ?, ?, ?, ?)
            ''', (name.strip(), email.strip(), (phone or '').strip(), DEFAULT_STATUS, hackathon_id))
            conn.commit()
            registration_id = cursor.lastrowid
    except sqlite3.Error as e:
        logger.error(f"Error creating registration for {email}: {e}")
        raise RegistrationStoreError(str(e)) from e

    logger.info(f"Registration {registration_id} created for hackathon {hackathon_id}")
    return get_registration(registration_id)


def update_status(registration_id, status):
    """Set the status of one registration; returns True when a row changed"""
    if status not in STATUSES:
        raise ValueError(f"Invalid status: {status}")
    try:
        with _connect() as conn:
            cursor = conn.execute(
                'UPDATE registrations SET status = ? WHERE id = ?', (status, registration_id)
            )
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.Error as e:
        logger.error(f"Error updating registration {registration_id}: {e}")
        raise RegistrationStoreError(str(e)) from e


def bulk_update_status(hackathon_id, registration_ids, status):
    """Apply one status to many registrations of one event in a single statement.

    Candidates are not re-checked against their current status here; the
    caller decides who is included. Returns the number of rows changed.
    """
    if status not in STATUSES:
        raise ValueError(f"Invalid status: {status}")
    ids = [int(i) for i in registration_ids]
    if not ids:
        return 0

    placeholders = ', '.join('?' for _ in ids)
    try:
        with _connect() as conn:
            cursor = conn.execute(
                f'UPDATE registrations SET status = ? '
                f'WHERE hackathon_id = ? AND id IN ({placeholders})',
                (status, hackathon_id, *ids)
            )
            conn.commit()
            changed = cursor.rowcount
    except sqlite3.Error as e:
        logger.error(f"Bulk status update failed for hackathon {hackathon_id}: {e}")
        raise RegistrationStoreError(str(e)) from e

    logger.info(f"Bulk status update: {changed} registrations of hackathon {hackathon_id} -> {status}")
    return changed


def count_registrations():
    with _connect() as conn:
        return conn.execute('SELECT COUNT(*) FROM registrations').fetchone()[0]


def recent_registrations(limit=5):
    """Latest registrations with their hackathon title"""
    with _connect() as conn:
        rows = conn.execute('''
            SELECT r.*, h.title AS hackathon_title
            FROM registrations r
            LEFT JOIN hackathons h ON h.id = r.hackathon_id
            ORDER BY r.created_at DESC, r.id DESC
            LIMIT ?
        ''', (limit,)).fetchall()
        return [dict(row) for row in rows]
