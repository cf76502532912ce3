import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _env_flag(name, default='true'):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration for HackWknd.
    Projects override any of these through app.config or environment variables.
    """
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths - use environment variables or fallback to DB_DIR
    HACKWKND_DB = os.getenv('HACKWKND_DB', os.path.join(DB_DIR, 'hackwknd.db'))
    LOGS_DB = os.getenv('LOGS_DB', os.path.join(DB_DIR, 'app_logs.db'))

    # Table names
    HACKATHONS_TABLE = 'hackathons'
    REGISTRATIONS_TABLE = 'registrations'
    EMAIL_TEMPLATES_TABLE = 'email_templates'
    ADMIN_TABLE = 'admin'

    # Email settings
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'resend')
    EMAIL_ENABLED = _env_flag('EMAIL_ENABLED')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS', 'HackWknd Team <no-reply@hackwknd.sarawak.digital>')
    EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
    EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
    EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD')

    # Resend API settings
    RESEND_API_KEY = os.getenv('RESEND_API_KEY') or os.getenv('RESEND')

    # Branding used by the email envelope
    EMAIL_BRAND_NAME = os.getenv('EMAIL_BRAND_NAME', 'HackWknd')
    EMAIL_TEAM_NAME = os.getenv('EMAIL_TEAM_NAME', 'HackWknd Team')
    EMAIL_WEBSITE_URL = os.getenv('EMAIL_WEBSITE_URL', 'https://hackwknd.com')
    EMAIL_HEADER_IMAGE = os.getenv(
        'EMAIL_HEADER_IMAGE',
        'https://hebbkx1anhila5yf.public.blob.vercel-storage.com/HackWknd%20SDEC-BwCXqqMM3vFQm9z1GKx2H7mMsFvZSP.png'
    )

    # Campaign dispatch
    CAMPAIGN_BATCH_SIZE = int(os.getenv('CAMPAIGN_BATCH_SIZE', '5'))
    CAMPAIGN_TRANSPORT = os.getenv('CAMPAIGN_TRANSPORT', 'direct')
    SEND_EMAIL_ENDPOINT = os.getenv('SEND_EMAIL_ENDPOINT', 'http://localhost:5000/api/send-email')
    SEND_EMAIL_TIMEOUT = int(os.getenv('SEND_EMAIL_TIMEOUT', '30'))
    # Shared secret letting server-side callers send campaign emails without a session
    SEND_EMAIL_TOKEN = os.getenv('SEND_EMAIL_TOKEN')

    # Origins allowed to read the public hackathon API
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

    # Port for local server
    port = int(os.getenv('PORT', '5000'))


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None and val != '':
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None and val != '':
        return val
    return os.getenv(key, default)
