"""
Blacklist routes — companies/domains an organization never targets.

Reads are open to any member; changes need the admin role.
"""
from flask import Blueprint, request, jsonify

from recruitops.auth import require_org, require_admin
from recruitops.database import get_session
from recruitops.services.blacklist import list_entries, add_entry, bulk_add, remove_entry, is_blacklisted
from recruitops.services.orgs import ensure_organization

bp = Blueprint('blacklist', __name__)


@bp.route('/blacklist/<org_id>')
def get_blacklist(org_id):
    require_org(org_id)
    session = get_session()
    try:
        return jsonify({'entries': [e.to_dict() for e in list_entries(session, org_id)]})
    finally:
        session.close()


@bp.route('/blacklist/<org_id>', methods=['POST'])
def add_blacklist_entry(org_id):
    identity = require_admin(org_id)
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        ensure_organization(session, org_id)
        try:
            entry = add_entry(
                session, org_id,
                company=data.get('company'),
                domain=data.get('domain'),
                reason=data.get('reason'),
                added_by=identity.user_id,
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify({'success': True, 'entry': entry.to_dict()}), 201
    finally:
        session.close()


@bp.route('/blacklist/<org_id>/bulk', methods=['POST'])
def bulk_add_blacklist(org_id):
    identity = require_admin(org_id)
    data = request.get_json(silent=True) or {}
    entries = data.get('entries')
    if not isinstance(entries, list):
        return jsonify({'error': 'entries must be a list'}), 400

    session = get_session()
    try:
        ensure_organization(session, org_id)
        added = bulk_add(session, org_id, entries, added_by=identity.user_id)
        return jsonify({'success': True, 'added': added, 'skipped': len(entries) - added})
    finally:
        session.close()


@bp.route('/blacklist/<org_id>/<int:entry_id>', methods=['DELETE'])
def delete_blacklist_entry(org_id, entry_id):
    require_admin(org_id)
    session = get_session()
    try:
        if not remove_entry(session, org_id, entry_id):
            return jsonify({'error': 'Entry not found'}), 404
        return jsonify({'success': True})
    finally:
        session.close()


@bp.route('/blacklist/<org_id>/check', methods=['POST'])
def check_blacklist(org_id):
    require_org(org_id)
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        match = is_blacklisted(session, org_id, data.get('company'), data.get('jobUrl') or '')
        return jsonify({
            'blacklisted': match.matched,
            'entry': match.entry.to_dict() if match.entry is not None else None,
        })
    finally:
        session.close()
