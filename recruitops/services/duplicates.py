"""
Duplicate detector — one Run per (organization, job URL), whatever its status.
"""
from sqlalchemy import select

from recruitops.models.organization import Member
from recruitops.models.run import Run


def find_duplicate(session, org_id, job_url):
    return session.execute(
        select(Run).where(Run.organization_id == org_id, Run.job_url == job_url)
    ).scalars().first()


def describe_existing_run(session, run):
    """Pointer to the earlier run for the 'view existing run' prompt."""
    member = session.get(Member, run.created_by)
    return {
        'id': run.id,
        'userId': run.created_by,
        'userName': (member.name if member is not None else None) or 'Unknown',
        'createdAt': run.to_dict()['createdAt'],
        'status': run.status,
    }
