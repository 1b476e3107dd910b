"""
Outreach hand-off — pushes an admitted run to the external outreach collaborator.

dispatch_run() runs in the request process, after the admission commit, and
only enqueues. trigger_outreach() runs on the RQ worker and does the HTTP call
through the 'outreach' circuit breaker.
"""
import logging

import requests

from recruitops.config import OUTREACH_WEBHOOK_URL, OUTREACH_TIMEOUT_SECONDS
from recruitops.database import get_session
from recruitops.models.run import Run
from recruitops.services.circuit_breaker import get_breaker, CircuitOpenError

logger = logging.getLogger('services.outreach')


def dispatch_run(run_id):
    """Enqueue the outreach job. Returns False (run stays queued) if Redis is unavailable."""
    from recruitops.extensions import get_queue
    try:
        get_queue().enqueue(trigger_outreach, run_id, job_timeout=OUTREACH_TIMEOUT_SECONDS * 4)
    except Exception as e:
        logger.error("Failed to enqueue outreach for run %s: %s", run_id, e)
        return False
    logger.info("Outreach enqueued for run %s", run_id)
    return True


def _post_run(payload):
    resp = requests.post(OUTREACH_WEBHOOK_URL, json=payload, timeout=OUTREACH_TIMEOUT_SECONDS)
    resp.raise_for_status()
    return resp


def trigger_outreach(run_id):
    """RQ job: POST the run to the outreach webhook. Marks the run failed on error."""
    session = get_session()
    try:
        run = session.get(Run, run_id)
        if run is None:
            logger.warning("Outreach skipped: run %s not found", run_id)
            return False
        if run.status != 'queued':
            logger.info("Outreach skipped: run %s is %s", run_id, run.status)
            return False
        if not OUTREACH_WEBHOOK_URL:
            logger.warning("OUTREACH_WEBHOOK_URL not set, run %s left queued", run_id)
            return False

        payload = {
            'runId': run.id,
            'organizationId': run.organization_id,
            'userId': run.created_by,
            'jobUrl': run.job_url,
            'jobTitle': run.title,
            'company': run.company,
        }

        try:
            get_breaker('outreach').call(_post_run, payload)
        except CircuitOpenError as e:
            logger.warning("Outreach circuit open, failing run %s (retry after %.0fs)",
                           run_id, e.retry_after or 0)
            _fail(session, run)
            return False
        except requests.RequestException as e:
            logger.error("Outreach webhook failed for run %s: %s", run_id, e)
            _fail(session, run)
            return False

        logger.info("Outreach triggered for run %s", run_id)
        return True
    finally:
        session.close()


def _fail(session, run):
    from recruitops.services.runs import transition_run
    transition_run(session, run, 'failed')
