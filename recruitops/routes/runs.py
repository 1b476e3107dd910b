"""
Run routes — admission entry point + the organization's run history.
"""
import logging

from flask import Blueprint, request, jsonify

from recruitops.auth import require_org
from recruitops.database import get_session
from recruitops.services.admission import admit_run
from recruitops.services.outreach import dispatch_run
from recruitops.services.runs import list_runs, get_run_detail

logger = logging.getLogger('routes.runs')

bp = Blueprint('runs', __name__)


@bp.route('/runs/create', methods=['POST'])
def create_run():
    """Admit a new run for a job posting, or explain which policy denied it."""
    identity = require_org()
    data = request.get_json(silent=True) or {}

    job_url = (data.get('jobUrl') or '').strip()
    if not job_url:
        return jsonify({'error': 'Missing required field: jobUrl'}), 400

    session = get_session()
    try:
        result = admit_run(
            session,
            org_id=identity.org_id,
            user_id=identity.user_id,
            job_url=job_url,
            job_title=data.get('jobTitle'),
            company=data.get('company'),
        )
    finally:
        session.close()

    # Hand-off only after the admission transaction has committed
    if result.admitted:
        dispatch_run(result.run_id)

    return jsonify(result.to_dict()), result.http_status


@bp.route('/runs')
def runs_list():
    identity = require_org()
    session = get_session()
    try:
        return jsonify({'runs': list_runs(session, identity.org_id)})
    finally:
        session.close()


@bp.route('/runs/<run_id>')
def run_detail(run_id):
    identity = require_org()
    session = get_session()
    try:
        detail = get_run_detail(session, identity.org_id, run_id)
        if detail is None:
            return jsonify({'error': 'Run not found'}), 404
        return jsonify(detail)
    finally:
        session.close()
