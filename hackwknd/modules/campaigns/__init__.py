"""
Campaigns Module
================

Provides:
- Bulk email to the registrants of one hackathon, filtered by status
- Preset subject/body pairs and {{name}} / {{email}} substitution
- Batched dispatch with per-batch concurrency and partial-failure counts
"""

from flask import Blueprint

campaigns_bp = Blueprint(
    'campaigns',
    __name__,
    url_prefix='/admin/campaigns'
)

from . import routes
