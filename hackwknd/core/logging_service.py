"""
Centralized logging service for HackWknd.
Stores structured log entries in the app_logs table so operational detail
(failed sends, rejected bulk updates) survives restarts.
"""

import json
import logging
import traceback
from datetime import datetime, timedelta

from flask import request, has_request_context

from .database import Database

console = logging.getLogger(__name__)


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _ensure_logs_table():
        """Ensure the app_logs table exists"""
        Database.execute_script(Database.get_logs_path(), [
            """
            CREATE TABLE IF NOT EXISTS app_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                level TEXT NOT NULL,
                source TEXT NOT NULL,
                message TEXT NOT NULL,
                details TEXT,
                ip_address TEXT,
                request_path TEXT,
                user_id TEXT
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON app_logs(timestamp DESC)",
            "CREATE INDEX IF NOT EXISTS idx_logs_level ON app_logs(level)",
            "CREATE INDEX IF NOT EXISTS idx_logs_source ON app_logs(source)",
        ])

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()
        return ip_address, request.path

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (campaigns, registrations, ...)
            message (str): Main log message
            details (str/dict): Additional details (JSON-encoded if not a string)
            user_id (str): Optional admin identifier
        """
        try:
            LoggingService._ensure_logs_table()
            ip_address, request_path = LoggingService._get_request_context()

            if details is not None and not isinstance(details, str):
                details = json.dumps(details, indent=2, default=str)

            with Database.connect(Database.get_logs_path()) as conn:
                conn.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    datetime.now().isoformat(), level.upper(), source, message,
                    details, ip_address, request_path, user_id
                ))
                conn.commit()

        except Exception as e:
            # Fallback to console logging if database fails
            console.warning(f"[{level.upper()}] [{source}] {message} ({e})")

    @staticmethod
    def info(source, message, details=None, user_id=None):
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def warning(source, message, details=None, user_id=None):
        LoggingService.log('WARNING', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def recent(limit=50, source=None, level=None):
        """Most recent log entries, newest first"""
        query = "SELECT * FROM app_logs WHERE 1=1"
        params = []
        if source:
            query += " AND source = ?"
            params.append(source)
        if level:
            query += " AND level = ?"
            params.append(level.upper())
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        try:
            LoggingService._ensure_logs_table()
            with Database.connect(Database.get_logs_path()) as conn:
                return [dict(row) for row in conn.execute(query, params).fetchall()]
        except Exception as e:
            console.error(f"Failed to read app logs: {e}")
            return []

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
        try:
            with Database.connect(Database.get_logs_path()) as conn:
                cursor = conn.execute("DELETE FROM app_logs WHERE timestamp < ?", (cutoff_iso,))
                deleted_count = cursor.rowcount
                conn.commit()
            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count
        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Shortcut used by modules: persist a log entry, never raise"""
    LoggingService.log(level, source, message, details)


# Convenience instance for easy importing
logger = LoggingService()
