"""
Organization routes — member sync from the identity provider + API keys.
"""
from flask import Blueprint, request, jsonify

from recruitops.auth import require_org, require_admin, create_api_key
from recruitops.database import get_session, as_utc
from recruitops.services.orgs import ensure_organization, sync_members, list_members

bp = Blueprint('orgs', __name__)


@bp.route('/org-members/<org_id>/sync', methods=['POST'])
def sync_org_members(org_id):
    require_org(org_id)
    data = request.get_json(silent=True) or {}
    members = data.get('members')
    if not isinstance(members, list) or not all(isinstance(m, dict) for m in members):
        return jsonify({'error': 'members must be a list of objects'}), 400

    session = get_session()
    try:
        ensure_organization(session, org_id, name=data.get('organizationName'))
        synced = sync_members(session, org_id, members)
        return jsonify({'success': True, 'synced': synced})
    finally:
        session.close()


@bp.route('/org-members/<org_id>')
def get_org_members(org_id):
    require_org(org_id)
    session = get_session()
    try:
        return jsonify({'members': [m.to_dict() for m in list_members(session, org_id)]})
    finally:
        session.close()


@bp.route('/api-keys/create', methods=['POST'])
def create_key():
    """Issue a webhook API key for the caller's organization. The key is shown once."""
    identity = require_admin()
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Missing required field: name'}), 400

    session = get_session()
    try:
        ensure_organization(session, identity.org_id)
        api_key = create_api_key(session, identity.org_id, name, data.get('scopes'))
        return jsonify({
            'id': api_key.id,
            'key': api_key.key,
            'name': api_key.name,
            'scopes': api_key.scopes,
            'createdAt': as_utc(api_key.created_at).isoformat() if api_key.created_at else None,
        }), 201
    finally:
        session.close()
