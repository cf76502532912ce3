"""
Email Service Module
====================

Email service supporting Resend and SMTP, plus a disabled mode that accepts
every message without contacting a provider. Provider is selected via
EMAIL_PROVIDER config ('resend', 'smtp' or 'disabled'); EMAIL_ENABLED=false
forces the disabled mode. Branding is configurable through Flask app config.
"""

import re
import logging
import sqlite3
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import make_msgid
from typing import Optional, Dict, Any

import resend

from hackwknd.core import Config, Database
from .templates import registration_confirmation_html

# Rejects consecutive dots, leading/trailing dots in local part
_VALID_EMAIL = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

DISABLED_MESSAGE_ID = 'email_disabled'
PROVIDERS = ('resend', 'smtp', 'disabled')

logger = logging.getLogger(__name__)


def is_valid_email(address):
    return bool(address) and bool(_VALID_EMAIL.match(address.strip()))


class EmailService:
    """
    Configurable email service.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'resend' (default), 'smtp' or 'disabled'
        EMAIL_ENABLED: False short-circuits every send with id 'email_disabled'
        RESEND_API_KEY: Resend API key (required if provider is 'resend')
        EMAIL_HOST / EMAIL_PORT / EMAIL_PASSWORD: SMTP settings
        EMAIL_ADDRESS: Sender address
        EMAIL_BRAND_NAME, EMAIL_TEAM_NAME, EMAIL_HEADER_IMAGE, EMAIL_WEBSITE_URL: branding
        HACKWKND_DB: SQLite database holding the email_logs table
    """

    def __init__(self, app=None):
        self.provider = 'resend'
        self.enabled = True
        self.api_key = None
        self.sender_email = Config.EMAIL_ADDRESS
        self.brand_name = Config.EMAIL_BRAND_NAME
        self.team_name = Config.EMAIL_TEAM_NAME
        self.header_image = Config.EMAIL_HEADER_IMAGE
        self.website_url = Config.EMAIL_WEBSITE_URL
        self.smtp_host = Config.EMAIL_HOST
        self.smtp_port = Config.EMAIL_PORT
        self.smtp_password = None
        self.db_path = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'resend').lower()
        if self.provider not in PROVIDERS:
            logger.warning(f"Unknown EMAIL_PROVIDER '{self.provider}', falling back to resend")
            self.provider = 'resend'
        self.enabled = bool(app.config.get('EMAIL_ENABLED', True)) and self.provider != 'disabled'
        logger.info(f"Initializing email service (provider: {self.provider}, enabled: {self.enabled})")

        self.sender_email = app.config.get('EMAIL_ADDRESS') or Config.EMAIL_ADDRESS
        self.brand_name = app.config.get('EMAIL_BRAND_NAME') or Config.EMAIL_BRAND_NAME
        self.team_name = app.config.get('EMAIL_TEAM_NAME') or Config.EMAIL_TEAM_NAME
        self.header_image = app.config.get('EMAIL_HEADER_IMAGE') or Config.EMAIL_HEADER_IMAGE
        self.website_url = app.config.get('EMAIL_WEBSITE_URL') or Config.EMAIL_WEBSITE_URL
        self.db_path = app.config.get('HACKWKND_DB')

        if not self.enabled:
            logger.info("Email sending disabled - messages will be accepted but not delivered")
        elif self.provider == 'smtp':
            self._init_smtp(app)
        else:
            self._init_resend(app)

    def _init_resend(self, app):
        self.api_key = app.config.get('RESEND_API_KEY')
        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending will fail")
            return
        resend.api_key = self.api_key
        logger.info("Resend API client initialized")

    def _init_smtp(self, app):
        """Initialize SMTP provider (e.g. Gmail)"""
        self.smtp_host = app.config.get('EMAIL_HOST') or Config.EMAIL_HOST
        self.smtp_port = int(app.config.get('EMAIL_PORT') or Config.EMAIL_PORT)
        self.smtp_password = app.config.get('EMAIL_PASSWORD')
        if not self.smtp_password:
            logger.warning("EMAIL_PASSWORD not configured - SMTP email sending will fail")
            return
        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    # ==================== Logging ====================

    def _get_db_path(self):
        return self.db_path or Database.get_db_path()

    def init_email_logs_db(self):
        Database.execute_script(self._get_db_path(), ["""
            CREATE TABLE IF NOT EXISTS email_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                recipient TEXT NOT NULL,
                subject TEXT NOT NULL,
                email_type TEXT,
                status TEXT NOT NULL,
                message_id TEXT,
                error_message TEXT,
                sent_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """])

    def _log_email(self, recipient: str, subject: str, email_type: str,
                   status: str, message_id: Optional[str] = None,
                   error_message: Optional[str] = None):
        """Log email attempt to database"""
        try:
            self.init_email_logs_db()
            with Database.connect(self._get_db_path()) as conn:
                conn.execute("""
                    INSERT INTO email_logs (recipient, subject, email_type, status, message_id, error_message)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (recipient, subject, email_type, status, message_id, error_message))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to log email to database: {e}")

    def recent_logs(self, limit=50):
        self.init_email_logs_db()
        with Database.connect(self._get_db_path()) as conn:
            rows = conn.execute(
                'SELECT * FROM email_logs ORDER BY id DESC LIMIT ?', (limit,)
            ).fetchall()
            return [dict(row) for row in rows]

    # ==================== Sending ====================

    def send_message(self, to: str, subject: str, html: str,
                     email_type: str = 'other', sender: Optional[str] = None) -> Dict[str, Any]:
        """
        Send one email via the configured provider.

        Returns:
            dict: {'success': bool, 'id': provider message id or None, 'error': str or None}
        """
        if not is_valid_email(to):
            logger.warning(f"Skipping invalid email address: {to}")
            self._log_email(to or '', subject or '', email_type, 'failed', error_message='Invalid email address')
            return {'success': False, 'id': None, 'error': 'Invalid email address'}

        if not self.enabled:
            logger.info(f"Email disabled, not sending '{subject}' to {to}")
            self._log_email(to, subject, email_type, 'disabled', DISABLED_MESSAGE_ID)
            return {'success': True, 'id': DISABLED_MESSAGE_ID, 'error': None}

        logger.info(f"Sending email from: {sender or self.sender_email} to: {to}")
        try:
            if self.provider == 'smtp':
                message_id = self._send_via_smtp(to, subject, html, sender)
            else:
                message_id = self._send_via_resend(to, subject, html, sender)
        except Exception as e:
            logger.error(f"Error sending to {to}: {e}")
            self._log_email(to, subject, email_type, 'failed', error_message=str(e))
            return {'success': False, 'id': None, 'error': str(e)}

        self._log_email(to, subject, email_type, 'sent', message_id)
        return {'success': True, 'id': message_id, 'error': None}

    def _send_via_resend(self, recipient: str, subject: str, html_body: str,
                         sender: Optional[str] = None) -> str:
        """Send a single email via Resend API; returns the message id"""
        if not self.api_key:
            raise RuntimeError('Resend API key not configured')

        r = resend.Emails.send({
            "from": sender or self.sender_email,
            "to": recipient,
            "subject": subject,
            "html": html_body,
        })
        logger.debug(f"Resend response: {r}")

        if r and r.get('id'):
            return r['id']
        raise RuntimeError(f"Resend returned no message id: {r}")

    def _send_via_smtp(self, recipient: str, subject: str, html_body: str,
                       sender: Optional[str] = None) -> str:
        """Send a single email via SMTP; returns the generated Message-ID"""
        if not self.smtp_password:
            raise RuntimeError('SMTP password not configured')

        msg = MIMEMultipart('alternative')
        msg['From'] = sender or self.sender_email
        msg['To'] = recipient
        msg['Subject'] = subject
        msg['Message-ID'] = make_msgid()
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            server.starttls()
            server.login(self.sender_email, self.smtp_password)
            server.send_message(msg)

        logger.info(f"SMTP email sent to {recipient}")
        return msg['Message-ID']

    # ==================== Registration Confirmation ====================

    def confirmation_subject(self, hackathon_title: Optional[str] = None) -> str:
        return f"Thank You for Registering for {hackathon_title or self.brand_name}!"

    def send_registration_confirmation(self, email: str, name: str,
                                       hackathon: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send the confirmation email a participant gets after registering"""
        hackathon = hackathon or {}
        subject = self.confirmation_subject(hackathon.get('title'))
        html = registration_confirmation_html(
            name=name,
            email=email,
            hackathon=hackathon,
            brand_name=self.brand_name,
            team_name=self.team_name,
            header_image=self.header_image,
            website_url=self.website_url,
        )
        return self.send_message(email, subject, html, email_type='registration_confirmation')


email_service = EmailService()
