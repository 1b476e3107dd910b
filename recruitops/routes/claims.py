"""
Claim routes — "I'm working on this job" markers shared across the team.
"""
from flask import Blueprint, request, jsonify

from recruitops.auth import require_org
from recruitops.database import get_session
from recruitops.services.claims import try_claim, release_claim, list_active_claims, delete_claim
from recruitops.services.orgs import ensure_organization, member_name

bp = Blueprint('claims', __name__)


@bp.route('/claims/create', methods=['POST'])
def create_claim():
    identity = require_org()
    data = request.get_json(silent=True) or {}
    job_url = (data.get('jobUrl') or '').strip()
    if not job_url:
        return jsonify({'error': 'Missing required field: jobUrl'}), 400

    session = get_session()
    try:
        ensure_organization(session, identity.org_id)
        result = try_claim(
            session,
            identity.org_id,
            job_url,
            holder_id=identity.user_id,
            holder_name=member_name(session, identity.user_id, default=identity.email or 'Unknown'),
            job_title=data.get('jobTitle'),
            company=data.get('company'),
        )
        if not result.granted:
            return jsonify({
                'error': 'job_claimed_by_other',
                'message': 'This job is currently claimed by another team member',
                'claimedBy': result.held_by,
                'claimedAt': result.held_since,
            }), 409
        return jsonify({'success': True, 'claim': result.claim.to_dict()})
    finally:
        session.close()


@bp.route('/claims/release', methods=['POST'])
def release_own_claim():
    identity = require_org()
    data = request.get_json(silent=True) or {}
    job_url = (data.get('jobUrl') or '').strip()
    if not job_url:
        return jsonify({'error': 'Missing required field: jobUrl'}), 400

    session = get_session()
    try:
        released = release_claim(session, identity.org_id, job_url, holder_id=identity.user_id)
        return jsonify({'success': True, 'released': released})
    finally:
        session.close()


@bp.route('/claims/<org_id>')
def get_claims(org_id):
    require_org(org_id)
    session = get_session()
    try:
        claims = list_active_claims(session, org_id)
        return jsonify({'claims': [c.to_dict() for c in claims]})
    finally:
        session.close()


@bp.route('/claims/<org_id>/<int:claim_id>', methods=['DELETE'])
def remove_claim(org_id, claim_id):
    require_org(org_id)
    session = get_session()
    try:
        if not delete_claim(session, org_id, claim_id):
            return jsonify({'error': 'Claim not found'}), 404
        return jsonify({'success': True})
    finally:
        session.close()
