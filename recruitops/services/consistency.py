"""
Consistency sweep — periodic repair of derived state.

  reconcile_usage        runs_used for the current period recomputed from committed Runs
  purge_stale_claims     expired claims older than CLAIM_RETENTION_DAYS removed
  redispatch_stale_runs  runs stuck in 'queued' handed to the outreach queue again

Run from scripts/maintenance.py (cron / Railway scheduled job).
"""
import logging
from datetime import timedelta

from sqlalchemy import select, func

from recruitops.config import CLAIM_RETENTION_DAYS, STALE_QUEUED_MINUTES
from recruitops.database import utcnow, as_utc
from recruitops.models.organization import Organization
from recruitops.models.run import Run
from recruitops.services.claims import purge_expired_claims
from recruitops.services.quota import find_current_counter

logger = logging.getLogger('services.consistency')


def reconcile_usage(session, org_id=None, now=None):
    """
    Set runs_used on each current-period counter to the number of Runs created
    inside that period. Returns {org_id: (old, new)} for counters that changed.
    """
    now = now or utcnow()
    stmt = select(Organization.id)
    if org_id is not None:
        stmt = stmt.where(Organization.id == org_id)

    changed = {}
    for oid in session.execute(stmt).scalars().all():
        counter = find_current_counter(session, oid, now)
        if counter is None:
            continue
        actual = session.execute(
            select(func.count(Run.id)).where(
                Run.organization_id == oid,
                Run.created_at >= as_utc(counter.period_start),
                Run.created_at < as_utc(counter.period_end),
            )
        ).scalar_one()
        if counter.runs_used != actual:
            logger.warning("Usage drift for org %s: runs_used=%d, committed runs=%d",
                           oid, counter.runs_used, actual)
            changed[oid] = (counter.runs_used, actual)
            counter.runs_used = actual
            counter.updated_at = now
    session.commit()
    return changed


def purge_stale_claims(session, now=None):
    now = now or utcnow()
    return purge_expired_claims(session, now - timedelta(days=CLAIM_RETENTION_DAYS))


def find_stale_runs(session, now=None):
    now = now or utcnow()
    cutoff = now - timedelta(minutes=STALE_QUEUED_MINUTES)
    return session.execute(
        select(Run)
        .where(Run.status == 'queued', Run.created_at < cutoff)
        .order_by(Run.created_at.asc())
    ).scalars().all()


def redispatch_stale_runs(session, now=None):
    """Re-enqueue outreach for runs left queued too long. Returns how many were enqueued."""
    from recruitops.services.outreach import dispatch_run

    count = 0
    for run in find_stale_runs(session, now):
        if dispatch_run(run.id):
            count += 1
    if count:
        logger.info("Re-dispatched %d stale queued runs", count)
    return count


def run_sweep(session, now=None):
    now = now or utcnow()
    summary = {
        'usage_corrected': len(reconcile_usage(session, now=now)),
        'claims_purged': purge_stale_claims(session, now),
        'runs_redispatched': redispatch_stale_runs(session, now),
    }
    logger.info("Consistency sweep complete: %s", summary)
    return summary
