"""
Hackathons Routes
=================

Admin CRUD (session required) and the public read API.
"""

import logging
import sqlite3

from flask import request, jsonify, session
from flask_cors import cross_origin

from hackwknd.core import Config, db_log
from . import hackathons_admin_bp, hackathons_public_bp
from .models import (
    HackathonError, create_hackathon, update_hackathon, update_hackathon_content,
    get_hackathon, get_hackathon_by_slug, list_hackathons, slugify
)

logger = logging.getLogger(__name__)

# Fields the public site never needs
PRIVATE_FIELDS = ('description',)


def _db_log(level, message, details=None):
    db_log(level, 'hackathons', message, details)


def _public_view(hackathon):
    return {k: v for k, v in hackathon.items() if k not in PRIVATE_FIELDS}


# ===================
# ADMIN ROUTES
# ===================

@hackathons_admin_bp.route('/', methods=['GET'])
def admin_list():
    """List every hackathon, drafts included"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    hackathons = list_hackathons()
    return jsonify({'hackathons': hackathons, 'total_count': len(hackathons)}), 200


@hackathons_admin_bp.route('/', methods=['POST'])
def admin_create():
    """Create a hackathon; slug is generated from the title when omitted"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'No data provided'}), 400

    try:
        hackathon = create_hackathon(data)
    except HackathonError as e:
        return jsonify({'error': str(e)}), 400
    except sqlite3.Error as e:
        logger.error(f"Error creating hackathon: {e}")
        _db_log('error', 'Error creating hackathon', {'error': str(e)})
        return jsonify({'error': 'Database error occurred'}), 500

    _db_log('info', f"Hackathon created: {hackathon['title']}", {'id': hackathon['id']})
    return jsonify({'hackathon': hackathon, 'message': 'Hackathon created'}), 201


@hackathons_admin_bp.route('/slug-preview', methods=['GET'])
def slug_preview():
    """Slug the editor would generate for a title"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401
    return jsonify({'slug': slugify(request.args.get('title', ''))}), 200


@hackathons_admin_bp.route('/<int:hackathon_id>', methods=['GET'])
def admin_detail(hackathon_id):
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    hackathon = get_hackathon(hackathon_id)
    if not hackathon:
        return jsonify({'error': 'Hackathon not found'}), 404
    return jsonify({'hackathon': hackathon}), 200


@hackathons_admin_bp.route('/<int:hackathon_id>', methods=['PUT'])
def admin_update(hackathon_id):
    """Replace the basic details of a hackathon"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'No data provided'}), 400

    try:
        hackathon = update_hackathon(hackathon_id, data)
    except HackathonError as e:
        return jsonify({'error': str(e)}), 400
    except sqlite3.Error as e:
        logger.error(f"Error updating hackathon {hackathon_id}: {e}")
        _db_log('error', f'Error updating hackathon {hackathon_id}', {'error': str(e)})
        return jsonify({'error': 'Database error occurred'}), 500

    if not hackathon:
        return jsonify({'error': 'Hackathon not found'}), 404

    _db_log('info', f'Hackathon updated: {hackathon["title"]}', {'id': hackathon_id})
    return jsonify({'hackathon': hackathon, 'message': 'Hackathon updated successfully'}), 200


@hackathons_admin_bp.route('/<int:hackathon_id>/advanced', methods=['PUT'])
def admin_update_content(hackathon_id):
    """Save schedule, prizes and FAQ from the advanced editor"""
    if 'admin_id' not in session:
        return jsonify({'error': 'Authentication required'}), 401

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'No data provided'}), 400

    try:
        hackathon = update_hackathon_content(
            hackathon_id,
            schedule=data.get('schedule'),
            prizes=data.get('prizes'),
            faq=data.get('faq'),
        )
    except HackathonError as e:
        return jsonify({'error': str(e)}), 400
    except sqlite3.Error as e:
        logger.error(f"Error saving content for hackathon {hackathon_id}: {e}")
        _db_log('error', f'Error saving content for hackathon {hackathon_id}', {'error': str(e)})
        return jsonify({'error': 'Database error occurred'}), 500

    if not hackathon:
        return jsonify({'error': 'Hackathon not found'}), 404
    return jsonify({'hackathon': hackathon, 'message': 'Content saved'}), 200


# ===================
# PUBLIC ROUTES
# ===================

@hackathons_public_bp.route('/hackathons', methods=['GET'])
@cross_origin(origins=Config.CORS_ORIGINS)
def public_list():
    """Published hackathons for the landing page"""
    hackathons = [_public_view(h) for h in list_hackathons(include_drafts=False)]
    return jsonify({'hackathons': hackathons}), 200


@hackathons_public_bp.route('/hackathon/<slug>', methods=['GET'])
@cross_origin(origins=Config.CORS_ORIGINS)
def public_detail(slug):
    """Hackathon page data by slug; drafts are not public"""
    hackathon = get_hackathon_by_slug(slug)
    if not hackathon or hackathon['event_status'] == 'draft':
        return jsonify({'error': 'Hackathon not found'}), 404
    return jsonify({'hackathon': _public_view(hackathon)}), 200
