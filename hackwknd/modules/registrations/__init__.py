"""
Registrations Module
====================

Provides:
- Admin registration list with event/status/search filters and badge counts
- Single and bulk status updates, "confirm all pending"
- CSV export of the filtered list
- Public registration (by event slug or for the active event) with a
  confirmation email, and the duplicate check used by the form
"""

from flask import Blueprint

registrations_admin_bp = Blueprint(
    'registrations_admin',
    __name__,
    url_prefix='/admin/registrations'
)

registrations_public_bp = Blueprint(
    'registrations_public',
    __name__,
    url_prefix='/api'
)

from . import routes
