"""
HackWknd - Hackathon Event Management
=====================================

A Flask application package for running hackathons:
- Hackathon records with schedule, prizes, FAQ, partnership logos and posters
- Public registration with confirmation email
- Admin registration management (bulk status updates, CSV export)
- Bulk email campaigns to registrants, sent in batches

Usage:
    from flask import Flask
    from hackwknd import HackWknd

    app = Flask(__name__)
    HackWknd(app)

or simply:

    from hackwknd import create_app
    app = create_app()
"""

import os
import logging

from flask import Flask

from .core import Config, Database

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

DB_PATH_KEYS = {'HACKWKND_DB': 'hackwknd.db', 'LOGS_DB': 'app_logs.db'}


class HackWknd:
    """Flask extension wiring every HackWknd module into an app"""

    def __init__(self, app=None):
        self._modules = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        # Config class values are defaults; anything already on app.config wins
        for key in dir(Config):
            if key.isupper() and key not in DB_PATH_KEYS:
                app.config.setdefault(key, getattr(Config, key))
        # Database files follow the app's DB_DIR unless set explicitly
        db_dir = app.config['DB_DIR']
        for key, filename in DB_PATH_KEYS.items():
            app.config.setdefault(key, os.getenv(key) or os.path.join(db_dir, filename))
        if not app.config.get('SECRET_KEY'):
            logger.warning("SECRET_KEY not set - admin sessions will not work")

        app.config.setdefault('SESSION_COOKIE_HTTPONLY', True)
        app.config.setdefault('SESSION_COOKIE_SAMESITE', 'Lax')

        Database.ensure_dir(app.config['HACKWKND_DB'])
        Database.ensure_dir(app.config['LOGS_DB'])

        from .modules.hackathons import hackathons_admin_bp, hackathons_public_bp
        from .modules.hackathons.models import init_hackathons_db
        from .modules.registrations import registrations_admin_bp, registrations_public_bp
        from .modules.registrations.models import init_registrations_db
        from .modules.campaigns import campaigns_bp
        from .modules.email import email_bp, email_service
        from .modules.email.models import init_email_templates_db
        from .modules.dashboard import dashboard_bp
        from .modules.dashboard.models import init_admin_table

        with app.app_context():
            init_hackathons_db()
            init_registrations_db()
            init_email_templates_db()
            init_admin_table()
            email_service.init_app(app)
            email_service.init_email_logs_db()

        blueprints = [
            ('dashboard', dashboard_bp),
            ('hackathons', hackathons_admin_bp),
            ('hackathons', hackathons_public_bp),
            ('registrations', registrations_admin_bp),
            ('registrations', registrations_public_bp),
            ('campaigns', campaigns_bp),
            ('email', email_bp),
        ]
        for module_name, blueprint in blueprints:
            app.register_blueprint(blueprint)
            if module_name not in self._modules:
                self._modules.append(module_name)

        app.extensions['hackwknd'] = self
        logger.info(f"HackWknd initialized with modules: {', '.join(self._modules)}")

    def get_registered_modules(self):
        return list(self._modules)


def create_app(config=None):
    """Application factory; ``config`` is a dict applied over the defaults"""
    app = Flask(__name__)
    app.config['SECRET_KEY'] = Config.SECRET_KEY
    if config:
        app.config.update(config)
    HackWknd(app)
    return app


__all__ = ['HackWknd', 'create_app', '__version__']
