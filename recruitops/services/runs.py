"""
Run read API + lifecycle updates driven by the outreach collaborator's webhooks.

Runs are only *created* by the admission pipeline; this module reads them and
moves them forward (queued → running → completed, or → failed).
"""
import logging

from sqlalchemy import select, func

from recruitops.database import utcnow
from recruitops.models.prospect import Prospect
from recruitops.models.run import Run

logger = logging.getLogger('services.runs')


def list_runs(session, org_id):
    """Organization's runs, newest first, with prospect counts."""
    counts = (
        select(Prospect.run_id, func.count(Prospect.id).label('n'))
        .group_by(Prospect.run_id)
        .subquery()
    )
    rows = session.execute(
        select(Run, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.run_id == Run.id)
        .where(Run.organization_id == org_id)
        .order_by(Run.created_at.desc())
    ).all()
    return [{**run.to_dict(), 'prospectCount': count} for run, count in rows]


def get_run(session, org_id, run_id):
    run = session.get(Run, run_id)
    if run is None or run.organization_id != org_id:
        return None
    return run


def get_run_detail(session, org_id, run_id):
    run = get_run(session, org_id, run_id)
    if run is None:
        return None
    prospects = session.execute(
        select(Prospect)
        .where(Prospect.run_id == run.id)
        .order_by(Prospect.rank.asc(), Prospect.id.asc())
    ).scalars().all()
    return {'run': run.to_dict(), 'prospects': [p.to_dict() for p in prospects]}


def transition_run(session, run, new_status, commit=True):
    """Move a run forward. Returns False (and changes nothing) for a backwards or repeated move."""
    if not run.can_transition(new_status):
        logger.info("Ignoring run %s transition %s → %s", run.id, run.status, new_status)
        return False
    logger.info("Run %s: %s → %s", run.id, run.status, new_status)
    run.status = new_status
    run.updated_at = utcnow()
    if commit:
        session.commit()
    return True


def store_prospects(session, run, prospects):
    """Persist decision makers found for a run and mark it running. Returns the new ids."""
    rows = []
    for p in prospects:
        known = {'name', 'title', 'company', 'linkedinUrl', 'email', 'rank'}
        rows.append(Prospect(
            run_id=run.id,
            organization_id=run.organization_id,
            name=p.get('name') or '',
            title=p.get('title') or '',
            company=p.get('company') or '',
            linkedin_url=p.get('linkedinUrl'),
            email=p.get('email'),
            rank=p.get('rank'),
            stage='not_started',
            extra_data={k: v for k, v in p.items() if k not in known} or None,
        ))
    session.add_all(rows)
    session.flush()
    transition_run(session, run, 'running', commit=False)
    session.commit()
    logger.info("Stored %d prospects for run %s", len(rows), run.id)
    return [row.id for row in rows]


def mark_campaign_created(session, run, campaign_id, campaigns=None):
    """Outreach campaign is live: prospects → invite_sent, run → completed."""
    updated = 0
    for item in campaigns or []:
        prospect = session.get(Prospect, item.get('prospectId'))
        if prospect is None or prospect.run_id != run.id:
            continue
        prospect.stage = 'invite_sent'
        extra = dict(prospect.extra_data or {})
        extra['campaign_id'] = item.get('heyReachCampaignId') or campaign_id
        prospect.extra_data = extra
        updated += 1

    run.campaign_id = campaign_id
    transition_run(session, run, 'completed', commit=False)
    session.commit()
    logger.info("Campaign %s created for run %s, %d prospects invite_sent", campaign_id, run.id, updated)
    return updated
