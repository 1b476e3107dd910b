"""
Warmup routes — progress widget + the invite path's check/increment calls.
"""
from flask import Blueprint, request, jsonify

from recruitops.auth import require_org
from recruitops.database import get_session
from recruitops.services.orgs import ensure_organization
from recruitops.services.warmup import get_warmup_status, check_warmup, increment_warmup

bp = Blueprint('warmup', __name__)


@bp.route('/warmup/<org_id>')
def warmup_status(org_id):
    require_org(org_id)
    session = get_session()
    try:
        ensure_organization(session, org_id)
        return jsonify(get_warmup_status(session, org_id))
    finally:
        session.close()


@bp.route('/warmup/<org_id>/check', methods=['POST'])
def warmup_check(org_id):
    require_org(org_id)
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        ensure_organization(session, org_id)
        try:
            check = check_warmup(session, org_id, data.get('action', 'run'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify(check.to_dict())
    finally:
        session.close()


@bp.route('/warmup/<org_id>/increment', methods=['POST'])
def warmup_increment(org_id):
    """Record actions that already happened (e.g. invites sent by the outreach tool)."""
    require_org(org_id)
    data = request.get_json(silent=True) or {}
    amount = data.get('amount', 1)
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 1:
        return jsonify({'error': 'amount must be a positive integer'}), 400

    session = get_session()
    try:
        try:
            recorded = increment_warmup(session, org_id, data.get('action', 'invite'), amount)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify({'success': recorded})
    finally:
        session.close()
