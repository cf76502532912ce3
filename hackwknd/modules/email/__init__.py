"""
Email Module
============

Provides email sending with Resend or SMTP (or a disabled mode), the
/api/send-email endpoint used by registration and campaigns, and the
legacy email template API.
"""

from flask import Blueprint

email_bp = Blueprint(
    'email',
    __name__,
    url_prefix='/api'
)

from .email_service import EmailService, email_service
from . import routes

__all__ = ['email_bp', 'EmailService', 'email_service']
