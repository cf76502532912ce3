"""
Hackathon Models
================

Schema and CRUD for hackathon records. Nested structures (schedule, prizes,
FAQ, partnership logos, poster images) live in JSON text columns and are
decoded once here, at the data-access boundary.
"""

import json
import re
import sqlite3
import logging

from hackwknd.core import Database

logger = logging.getLogger(__name__)

EVENT_STATUSES = ('upcoming', 'ongoing', 'finished', 'draft')
OPEN_STATUSES = ('upcoming', 'ongoing')

# Current shape of the prizes column, see normalize_prizes()
PRIZES_SCHEMA_VERSION = 2
LEGACY_MAIN_SLOTS = (
    ('first', 'first-place'),
    ('second', 'second-place'),
    ('third', 'third-place'),
)

# Editable scalar columns replaced wholesale on save
EDITABLE_FIELDS = (
    'title', 'theme', 'date', 'location', 'slug', 'event_status',
    'registration_end_date', 'image_url',
)
JSON_FIELDS = {
    'schedule': {'schedule': []},
    'prizes': {'prizes': {}},
    'faq': [],
    'partnership_logos': [],
    'poster_images': [],
}


class HackathonError(Exception):
    """Raised when a hackathon cannot be saved"""


class HackathonStoreError(Exception):
    """Raised when the hackathon store cannot be read"""


def init_hackathons_db():
    """Create the hackathons table and add columns introduced after launch"""
    db_path = Database.get_db_path()
    Database.execute_script(db_path, ['''
        CREATE TABLE IF NOT EXISTS hackathons (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            theme TEXT DEFAULT '',
            date TEXT,
            location TEXT DEFAULT '',
            slug TEXT NOT NULL UNIQUE,
            description TEXT DEFAULT '',
            schedule TEXT DEFAULT '{"schedule": []}',
            prizes TEXT DEFAULT '{"prizes": {}}',
            faq TEXT DEFAULT '[]',
            partnership_logos TEXT DEFAULT '[]',
            poster_images TEXT DEFAULT '[]',
            image_url TEXT,
            event_status TEXT DEFAULT 'upcoming',
            registration_end_date TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''', 'CREATE INDEX IF NOT EXISTS idx_hackathons_slug ON hackathons(slug)'])

    # Migrate: older databases predate logos and posters
    with Database.connect(db_path) as conn:
        columns = Database.table_columns(conn, 'hackathons')
        for col_name in ('partnership_logos', 'poster_images'):
            if col_name not in columns:
                conn.execute(f"ALTER TABLE hackathons ADD COLUMN {col_name} TEXT DEFAULT '[]'")
                logger.info(f"Migrated hackathons table: added {col_name} column")
        conn.commit()


# ===================
# NORMALIZATION
# ===================

def slugify(text):
    """Lowercase, drop non-word characters, join words with single hyphens"""
    slug = re.sub(r'[^\w\s-]', '', (text or '').lower())
    slug = re.sub(r'[-\s]+', '-', slug)
    return slug.strip('-_')


def normalize_prizes(raw):
    """Bring any stored prizes value to the current versioned shape.

    Legacy rows keep main prizes under fixed ``first/second/third`` keys and
    special prizes as an object keyed by category. Both become ordered lists
    with an ``id`` per entry:

        {'version': 2, 'main': [...], 'special': [...]}
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            logger.error("Unparseable prizes column, treating as empty")
            raw = {}
    raw = raw or {}

    if raw.get('version') == PRIZES_SCHEMA_VERSION:
        return {
            'version': PRIZES_SCHEMA_VERSION,
            'main': list(raw.get('main') or []),
            'special': list(raw.get('special') or []),
        }

    prizes = raw.get('prizes', raw) or {}

    if isinstance(prizes.get('main'), list):
        main = list(prizes['main'])
    else:
        main = [
            {'id': slot_id, **prizes[key]}
            for key, slot_id in LEGACY_MAIN_SLOTS
            if isinstance(prizes.get(key), dict)
        ]

    special = prizes.get('special') or []
    if isinstance(special, dict):
        special = [{'id': key, **value} for key, value in special.items() if isinstance(value, dict)]

    return {'version': PRIZES_SCHEMA_VERSION, 'main': main, 'special': list(special)}


def description_text(raw):
    """Plain text of a stored description (JSON block list or bare text)"""
    if not raw:
        return ''
    try:
        blocks = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw
    if not isinstance(blocks, list):
        return raw
    if blocks and isinstance(blocks[0], dict) and isinstance(blocks[0].get('children'), list):
        return ''.join(child.get('text', '') for child in blocks[0]['children'])
    return ''


def description_blocks(text):
    """Store a plain description as a single-paragraph block list"""
    return json.dumps([{'type': 'paragraph', 'children': [{'text': text or ''}]}])


def _load_json(value, default):
    if value is None or value == '':
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.error(f"Unparseable JSON column value: {value[:80]}")
        return default


def _row_to_dict(row):
    """Convert a sqlite3.Row into a hackathon dict with decoded nested fields"""
    d = dict(row)
    for field, default in JSON_FIELDS.items():
        d[field] = _load_json(d.get(field), json.loads(json.dumps(default)))
    d['prizes'] = normalize_prizes(d['prizes'])
    d['poster_images'] = sorted(d['poster_images'], key=lambda p: p.get('order', 0))
    d['description_text'] = description_text(d.get('description'))
    d['event_status'] = d.get('event_status') or 'upcoming'
    return d


def _encode(field, value):
    if field == 'prizes':
        return json.dumps(normalize_prizes(value))
    if isinstance(value, str):
        try:
            json.loads(value)
        except json.JSONDecodeError:
            raise HackathonError(f"{field} is not valid JSON")
        return value
    return json.dumps(value)


# ===================
# CRUD
# ===================

def create_slug(title, exclude_id=None):
    """Create URL-friendly slug with uniqueness checking"""
    base_slug = slugify(title) or 'hackathon'
    slug = base_slug
    counter = 2
    with Database.connect(Database.get_db_path()) as conn:
        while True:
            row = conn.execute('SELECT id FROM hackathons WHERE slug = ?', (slug,)).fetchone()
            if not row or row['id'] == exclude_id:
                return slug
            slug = f"{base_slug}-{counter}"
            counter += 1


def _validate(data):
    if not (data.get('title') or '').strip():
        raise HackathonError('Title is required')
    status = data.get('event_status') or 'upcoming'
    if status not in EVENT_STATUSES:
        raise HackathonError(f"Invalid event status: {status}")


def create_hackathon(data):
    """Insert a hackathon; returns the stored record"""
    _validate(data)
    slug = slugify(data.get('slug')) if data.get('slug') else create_slug(data['title'])

    values = {field: data.get(field) for field in EDITABLE_FIELDS}
    values['slug'] = slug
    values['event_status'] = data.get('event_status') or 'upcoming'
    values['description'] = description_blocks(data.get('description', ''))
    for field, default in JSON_FIELDS.items():
        values[field] = _encode(field, data.get(field, default))

    columns = ', '.join(values)
    placeholders = ', '.join('?' for _ in values)
    try:
        with Database.connect(Database.get_db_path()) as conn:
            cursor = conn.execute(
                f'INSERT INTO hackathons ({columns}) VALUES ({placeholders})',
                tuple(values.values())
            )
            conn.commit()
            hackathon_id = cursor.lastrowid
    except sqlite3.IntegrityError:
        raise HackathonError(f"Slug already in use: {slug}")

    logger.info(f"Created hackathon {hackathon_id}: {values['title']}")
    return get_hackathon(hackathon_id)


def update_hackathon(hackathon_id, data):
    """Full-record replace of the editable fields (and logos/posters when given)"""
    _validate(data)
    slug = slugify(data.get('slug')) if data.get('slug') else create_slug(data['title'], hackathon_id)

    values = {field: data.get(field) for field in EDITABLE_FIELDS}
    values['slug'] = slug
    values['event_status'] = data.get('event_status') or 'upcoming'
    values['description'] = description_blocks(data.get('description', ''))
    for field in ('partnership_logos', 'poster_images'):
        if field in data:
            values[field] = _encode(field, data[field])

    assignments = ', '.join(f'{column} = ?' for column in values)
    try:
        with Database.connect(Database.get_db_path()) as conn:
            cursor = conn.execute(
                f'UPDATE hackathons SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?',
                (*values.values(), hackathon_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
    except sqlite3.IntegrityError:
        raise HackathonError(f"Slug already in use: {slug}")

    logger.info(f"Updated hackathon {hackathon_id}")
    return get_hackathon(hackathon_id)


def update_hackathon_content(hackathon_id, schedule=None, prizes=None, faq=None):
    """Save the advanced editor fields; omitted fields are left as they are"""
    values = {}
    if schedule is not None:
        values['schedule'] = _encode('schedule', schedule)
    if prizes is not None:
        values['prizes'] = _encode('prizes', prizes)
    if faq is not None:
        values['faq'] = _encode('faq', faq)
    if not values:
        return get_hackathon(hackathon_id)

    assignments = ', '.join(f'{column} = ?' for column in values)
    with Database.connect(Database.get_db_path()) as conn:
        cursor = conn.execute(
            f'UPDATE hackathons SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?',
            (*values.values(), hackathon_id)
        )
        conn.commit()
        if cursor.rowcount == 0:
            return None
    return get_hackathon(hackathon_id)


def fetch_hackathon(hackathon_id):
    """Get a single hackathon by ID, raising HackathonStoreError when the store fails.

    Returns None only when no such hackathon exists.
    """
    try:
        with Database.connect(Database.get_db_path()) as conn:
            row = conn.execute('SELECT * FROM hackathons WHERE id = ?', (hackathon_id,)).fetchone()
    except sqlite3.Error as e:
        logger.error(f"Error getting hackathon {hackathon_id}: {e}")
        raise HackathonStoreError(str(e)) from e
    return _row_to_dict(row) if row else None


def get_hackathon(hackathon_id):
    """Get a single hackathon by ID"""
    try:
        return fetch_hackathon(hackathon_id)
    except HackathonStoreError:
        return None


def get_hackathon_by_slug(slug):
    """Public lookup by slug"""
    try:
        with Database.connect(Database.get_db_path()) as conn:
            row = conn.execute('SELECT * FROM hackathons WHERE slug = ?', (slug,)).fetchone()
            return _row_to_dict(row) if row else None
    except sqlite3.Error as e:
        logger.error(f"Error getting hackathon by slug {slug}: {e}")
        return None


def list_hackathons(include_drafts=True):
    """All hackathons, most recent date first"""
    query = 'SELECT * FROM hackathons'
    if not include_drafts:
        query += " WHERE event_status != 'draft'"
    query += ' ORDER BY date DESC'
    try:
        with Database.connect(Database.get_db_path()) as conn:
            return [_row_to_dict(row) for row in conn.execute(query).fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Error listing hackathons: {e}")
        return []


def get_active_hackathon():
    """The next hackathon open for registration (earliest upcoming/ongoing)"""
    with Database.connect(Database.get_db_path()) as conn:
        row = conn.execute('''
            SELECT * FROM hackathons
            WHERE event_status IN ('upcoming', 'ongoing')
            ORDER BY date ASC
            LIMIT 1
        ''').fetchone()
        return _row_to_dict(row) if row else None


def count_hackathons():
    with Database.connect(Database.get_db_path()) as conn:
        return conn.execute('SELECT COUNT(*) FROM hackathons').fetchone()[0]
