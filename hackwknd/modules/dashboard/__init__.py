"""
Dashboard Module
================

Admin session handling and dashboard statistics for HackWknd.

Provides core admin functionality:
- Admin authentication (login/logout/status)
- Password management
- Admin user creation (open until the first admin exists)
- Dashboard stats: hackathon and registration counts, latest registrations

This is the foundation module the other admin routes rely on: they all
check for 'admin_id' in the session it sets.
"""

from flask import Blueprint

dashboard_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin'
)

# Import routes after blueprint is created
from . import routes

__all__ = ['dashboard_bp']
