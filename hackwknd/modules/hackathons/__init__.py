"""
Hackathons Module
=================

Provides:
- Admin CRUD for hackathon records (basic details, partnership logos, posters)
- Advanced content editor endpoint (schedule, prizes, FAQ)
- Public read-only API by slug (CORS enabled)
"""

from flask import Blueprint

hackathons_admin_bp = Blueprint(
    'hackathons_admin',
    __name__,
    url_prefix='/admin/hackathons'
)

hackathons_public_bp = Blueprint(
    'hackathons_public',
    __name__,
    url_prefix='/api'
)

from . import routes
