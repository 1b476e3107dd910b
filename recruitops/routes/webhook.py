"""
Webhook routes — callbacks from the outreach collaborator (Make.com scenario).

Authenticated with an organization API key, not a user token.
"""
import logging

from flask import Blueprint, request, jsonify

from recruitops.auth import require_api_key
from recruitops.database import get_session
from recruitops.services.runs import get_run, store_prospects, mark_campaign_created

logger = logging.getLogger('routes.webhook')

bp = Blueprint('webhook', __name__)


@bp.route('/runs/<run_id>/prospects', methods=['POST'])
def receive_prospects(run_id):
    """Decision makers found for a run; moves it queued → running."""
    session = get_session()
    try:
        api_key = require_api_key(session)
        data = request.get_json(silent=True) or {}
        prospects = data.get('prospects')
        if not isinstance(prospects, list) or not all(isinstance(p, dict) for p in prospects):
            return jsonify({'error': 'prospects must be a list of objects'}), 400

        run = get_run(session, api_key.organization_id, run_id)
        if run is None:
            return jsonify({'error': 'Run not found'}), 404

        ids = store_prospects(session, run, prospects)
        return jsonify({'success': True, 'count': len(ids), 'prospectIds': ids, 'status': run.status})
    finally:
        session.close()


@bp.route('/runs/<run_id>/campaign-created', methods=['POST'])
def campaign_created(run_id):
    """Outreach campaign is live; prospects → invite_sent, run → completed."""
    session = get_session()
    try:
        api_key = require_api_key(session)
        data = request.get_json(silent=True) or {}
        campaign_id = data.get('campaignId')
        if not campaign_id:
            return jsonify({'error': 'Missing required field: campaignId'}), 400
        campaigns = data.get('campaigns') or []
        if not isinstance(campaigns, list) or not all(isinstance(c, dict) for c in campaigns):
            return jsonify({'error': 'campaigns must be a list of objects'}), 400

        run = get_run(session, api_key.organization_id, run_id)
        if run is None:
            return jsonify({'error': 'Run not found'}), 404

        updated = mark_campaign_created(session, run, campaign_id, campaigns)
        logger.info("Campaign webhook for run %s via key '%s'", run_id, api_key.name)
        return jsonify({'success': True, 'updated': updated, 'status': run.status})
    finally:
        session.close()
