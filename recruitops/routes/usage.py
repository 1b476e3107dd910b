"""
Usage routes — plan limits and current-period consumption.
"""
from flask import Blueprint, request, jsonify

from recruitops.auth import require_org, current_identity
from recruitops.database import get_session
from recruitops.services.quota import get_usage_summary, check_quota, list_plans

bp = Blueprint('usage', __name__)


@bp.route('/usage/<org_id>')
def usage_summary(org_id):
    require_org(org_id)
    session = get_session()
    try:
        return jsonify(get_usage_summary(session, org_id))
    finally:
        session.close()


@bp.route('/usage/<org_id>/check', methods=['POST'])
def usage_check(org_id):
    require_org(org_id)
    data = request.get_json(silent=True) or {}
    amount = data.get('amount', 1)
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 1:
        return jsonify({'error': 'amount must be a positive integer'}), 400

    session = get_session()
    try:
        try:
            check = check_quota(session, org_id, data.get('metric', 'runs'), amount)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify(check.to_dict())
    finally:
        session.close()


@bp.route('/plans')
def plans():
    current_identity()
    session = get_session()
    try:
        return jsonify({'plans': list_plans(session)})
    finally:
        session.close()
