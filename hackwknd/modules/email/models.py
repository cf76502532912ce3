"""
Email template records (legacy email API).

Templates are editable rows; sending one stores a copy with is_active = 0
as the record of what went out, to whom and when.
"""

import logging
from datetime import datetime

from hackwknd.core import Database

logger = logging.getLogger(__name__)

TEMPLATE_FIELDS = ('name', 'subject', 'body', 'from_email', 'is_active')


def init_email_templates_db():
    Database.execute_script(Database.get_db_path(), ['''
        CREATE TABLE IF NOT EXISTS email_templates (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            subject TEXT NOT NULL,
            body TEXT NOT NULL,
            from_email TEXT NOT NULL,
            is_active BOOLEAN DEFAULT 1,
            sent_to TEXT,
            sent_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    '''])


def _row_to_dict(row):
    d = dict(row)
    d['is_active'] = bool(d.get('is_active'))
    return d


def list_templates(include_sent=False):
    query = 'SELECT * FROM email_templates'
    if not include_sent:
        query += ' WHERE is_active = 1'
    query += ' ORDER BY created_at DESC, id DESC'
    with Database.connect(Database.get_db_path()) as conn:
        return [_row_to_dict(row) for row in conn.execute(query).fetchall()]


def get_template(template_id):
    with Database.connect(Database.get_db_path()) as conn:
        row = conn.execute('SELECT * FROM email_templates WHERE id = ?', (template_id,)).fetchone()
        return _row_to_dict(row) if row else None


def missing_fields(data, required=('name', 'subject', 'body', 'from_email')):
    """Required fields that are absent, blank or not text"""
    return [field for field in required
            if not isinstance(data.get(field), str) or not data[field].strip()]


def create_template(data):
    with Database.connect(Database.get_db_path()) as conn:
        cursor = conn.execute('''
            INSERT INTO email_templates (name, subject, body, from_email, is_active)
            VALUES (?, ?, ?, ?, ?)
        ''', (
            data['name'].strip(), data['subject'].strip(), data['body'],
            data['from_email'].strip(), 1 if data.get('is_active', True) else 0
        ))
        conn.commit()
        template_id = cursor.lastrowid
    logger.info(f"Created email template {template_id}")
    return get_template(template_id)


def update_template(template_id, data):
    """Update the given fields; returns None when the template does not exist"""
    values = {field: data[field] for field in TEMPLATE_FIELDS if field in data}
    if 'is_active' in values:
        values['is_active'] = 1 if values['is_active'] else 0
    if not values:
        return get_template(template_id)

    assignments = ', '.join(f'{column} = ?' for column in values)
    with Database.connect(Database.get_db_path()) as conn:
        cursor = conn.execute(
            f'UPDATE email_templates SET {assignments} WHERE id = ?',
            (*values.values(), template_id)
        )
        conn.commit()
        if cursor.rowcount == 0:
            return None
    return get_template(template_id)


def delete_template(template_id):
    with Database.connect(Database.get_db_path()) as conn:
        cursor = conn.execute('DELETE FROM email_templates WHERE id = ?', (template_id,))
        conn.commit()
        return cursor.rowcount > 0


def record_sent(name, subject, body, from_email, to):
    """Store an inactive copy of a message that was sent"""
    with Database.connect(Database.get_db_path()) as conn:
        cursor = conn.execute('''
            INSERT INTO email_templates (name, subject, body, from_email, is_active, sent_to, sent_at)
            VALUES (?, ?, ?, ?, 0, ?, ?)
        ''', (name, subject, body, from_email, to, datetime.now().isoformat()))
        conn.commit()
        return cursor.lastrowid
