"""
Organization + member bookkeeping.

The identity provider owns users; we mirror just enough (name, role) to label
claims and runs. Organizations are created on first sync or first admission.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from recruitops.config import DEFAULT_PLAN
from recruitops.models.organization import Organization, Member

logger = logging.getLogger('services.orgs')


def ensure_organization(session, org_id, name=None):
    """Return the organization, inserting it on the default plan if missing. Commits on insert."""
    org = session.get(Organization, org_id)
    if org is not None:
        return org

    org = Organization(id=org_id, name=name or 'Organization', plan=DEFAULT_PLAN, seats=3)
    session.add(org)
    try:
        session.commit()
        logger.info("Organization %s created on plan '%s'", org_id, DEFAULT_PLAN)
    except IntegrityError:
        session.rollback()
        org = session.get(Organization, org_id)
    return org


def sync_members(session, org_id, members):
    """Upsert the identity provider's member list for an organization. Returns the count."""
    ensure_organization(session, org_id)

    count = 0
    for m in members:
        member_id = m.get('id')
        if not member_id:
            continue
        member = session.get(Member, member_id)
        if member is None:
            member = Member(id=member_id, organization_id=org_id)
            session.add(member)
        member.organization_id = org_id
        member.email = m.get('email') or member.email or ''
        member.name = m.get('name') or member.name or ''
        member.role = (m.get('role') or 'member').lower()
        count += 1

    session.commit()
    logger.info("Synced %d members for org %s", count, org_id)
    return count


def list_members(session, org_id):
    return session.execute(
        select(Member).where(Member.organization_id == org_id).order_by(Member.name.asc())
    ).scalars().all()


def member_name(session, user_id, default='Unknown'):
    member = session.get(Member, user_id)
    return (member.name if member is not None else None) or default
