import hashlib
import logging

from hackwknd.core import Database

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def hash_password(password):
    """Simple password hashing"""
    return hashlib.sha256(password.encode()).hexdigest()


def init_admin_table():
    """Initialize admin table if it doesn't exist"""
    Database.execute_script(Database.get_db_path(), ['''
        CREATE TABLE IF NOT EXISTS admin (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    '''])
    if count_admins() == 0:
        logger.info("No admin users found. Create one with POST /admin/create-admin")


def count_admins():
    with Database.connect(Database.get_db_path()) as conn:
        return conn.execute("SELECT COUNT(*) FROM admin").fetchone()[0]


def authenticate(email, password):
    """Admin row for valid credentials, else None"""
    with Database.connect(Database.get_db_path()) as conn:
        row = conn.execute("""
            SELECT id, email FROM admin
            WHERE email = ? AND password_hash = ?
        """, (email.strip().lower(), hash_password(password))).fetchone()
        return dict(row) if row else None


def create_admin(email, password):
    """Insert an admin; sqlite3.IntegrityError when the email is taken"""
    with Database.connect(Database.get_db_path()) as conn:
        cursor = conn.execute("""
            INSERT INTO admin (email, password_hash)
            VALUES (?, ?)
        """, (email.strip().lower(), hash_password(password)))
        conn.commit()
        return cursor.lastrowid


def change_password(admin_id, current_password, new_password):
    """False when the current password does not match"""
    with Database.connect(Database.get_db_path()) as conn:
        row = conn.execute("""
            SELECT id FROM admin
            WHERE id = ? AND password_hash = ?
        """, (admin_id, hash_password(current_password))).fetchone()
        if not row:
            return False
        conn.execute("UPDATE admin SET password_hash = ? WHERE id = ?",
                     (hash_password(new_password), admin_id))
        conn.commit()
        return True
