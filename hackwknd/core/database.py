import os
import sqlite3
import threading

from .config import get_config_value


class Database:
    # Serialises schema creation when several worker threads hit a cold database
    _lock = threading.Lock()

    @staticmethod
    def connect(path):
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        return conn

    @staticmethod
    def get_db_path():
        """Path of the main HackWknd database (hackathons, registrations, templates)"""
        path = get_config_value('HACKWKND_DB')
        if path:
            return path
        db_dir = get_config_value('DB_DIR', os.path.join(os.getcwd(), 'databases'))
        return os.path.join(db_dir, 'hackwknd.db')

    @staticmethod
    def get_logs_path():
        path = get_config_value('LOGS_DB')
        if path:
            return path
        db_dir = get_config_value('DB_DIR', os.path.join(os.getcwd(), 'databases'))
        return os.path.join(db_dir, 'app_logs.db')

    @classmethod
    def ensure_dir(cls, path):
        """Create the parent directory of a database file if it has one"""
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    @classmethod
    def execute_script(cls, path, statements):
        """Run a list of DDL statements in one connection"""
        with cls._lock:
            cls.ensure_dir(path)
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                for statement in statements:
                    cursor.execute(statement)
                conn.commit()

    @staticmethod
    def table_columns(conn, table):
        cursor = conn.execute(f"PRAGMA table_info({table})")
        return [col[1] for col in cursor.fetchall()]
