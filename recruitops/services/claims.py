"""
Job claim manager — advisory 24h exclusivity on a job URL within an organization.

Expiry is lazy: rows past expires_at are ignored by reads and overwritten by
the next claimant. Grants go through a conditional UPDATE (or an INSERT
guarded by the unique constraint), so two different holders can never both
be granted the same URL.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import IntegrityError

from recruitops.config import CLAIM_TTL_HOURS
from recruitops.database import utcnow, as_utc
from recruitops.models.job_claim import JobClaim

logger = logging.getLogger('services.claims')


@dataclass
class ClaimResult:
    granted: bool
    claim: Optional[JobClaim] = None
    held_by: Optional[str] = None
    held_since: Optional[str] = None


def _find_claim(session, org_id, job_url):
    return session.execute(
        select(JobClaim).where(
            JobClaim.organization_id == org_id,
            JobClaim.job_url == job_url,
        )
    ).scalars().first()


def _denied(claim):
    return ClaimResult(
        granted=False,
        claim=claim,
        held_by=claim.holder_name or 'Unknown',
        held_since=as_utc(claim.claimed_at).isoformat() if claim.claimed_at else None,
    )


def get_active_claim(session, org_id, job_url, now=None):
    """The non-expired claim on this URL, if any."""
    now = now or utcnow()
    return session.execute(
        select(JobClaim).where(
            JobClaim.organization_id == org_id,
            JobClaim.job_url == job_url,
            JobClaim.expires_at > now,
        )
    ).scalars().first()


def check_claim(session, org_id, job_url, requester_id, now=None):
    """Read-only: is this URL free (or already ours) for requester_id?"""
    active = get_active_claim(session, org_id, job_url, now)
    if active is not None and active.holder_id != requester_id:
        return _denied(active)
    return ClaimResult(granted=True, claim=active)


def try_claim(session, org_id, job_url, holder_id, holder_name='', job_title=None,
              company=None, now=None):
    """
    Grant (or refresh) a claim for holder_id.

    Granted when the URL is unclaimed, the existing claim has expired, or the
    existing claim is already held by holder_id (refreshing its TTL). A live
    claim held by someone else is a denial, not an error.
    """
    now = now or utcnow()
    expires_at = now + timedelta(hours=CLAIM_TTL_HOURS)

    existing = _find_claim(session, org_id, job_url)
    if existing is None:
        claim = JobClaim(
            organization_id=org_id,
            job_url=job_url,
            job_title=job_title,
            company=company,
            holder_id=holder_id,
            holder_name=holder_name,
            claimed_at=now,
            expires_at=expires_at,
        )
        session.add(claim)
        try:
            session.commit()
            logger.info("Job claimed: %s by %s (org %s)", job_url, holder_name or holder_id, org_id)
            return ClaimResult(granted=True, claim=claim)
        except IntegrityError:
            # Lost the insert race; fall through to the conditional update path
            session.rollback()
            existing = _find_claim(session, org_id, job_url)
            if existing is None:
                raise

    result = session.execute(
        update(JobClaim)
        .where(
            JobClaim.id == existing.id,
            or_(JobClaim.holder_id == holder_id, JobClaim.expires_at <= now),
        )
        .values(
            holder_id=holder_id,
            holder_name=holder_name,
            job_title=job_title,
            company=company,
            claimed_at=now,
            expires_at=expires_at,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        session.rollback()
        session.refresh(existing)
        logger.info("Claim on %s denied to %s: held by %s", job_url, holder_id, existing.holder_name)
        return _denied(existing)

    session.commit()
    session.refresh(existing)
    logger.info("Job claimed: %s by %s (org %s)", job_url, holder_name or holder_id, org_id)
    return ClaimResult(granted=True, claim=existing)


def release_claim(session, org_id, job_url, holder_id=None, now=None, commit=True):
    """
    Drop the claim on job_url.

    With holder_id, only a claim held by that user (or one that has already
    expired) is removed; someone else's live claim is left alone.
    Returns the number of rows deleted.
    """
    stmt = delete(JobClaim).where(
        JobClaim.organization_id == org_id,
        JobClaim.job_url == job_url,
    )
    if holder_id is not None:
        now = now or utcnow()
        stmt = stmt.where(or_(JobClaim.holder_id == holder_id, JobClaim.expires_at <= now))
    result = session.execute(stmt.execution_options(synchronize_session=False))
    if commit:
        session.commit()
    return result.rowcount


def list_active_claims(session, org_id, now=None):
    now = now or utcnow()
    return session.execute(
        select(JobClaim)
        .where(JobClaim.organization_id == org_id, JobClaim.expires_at > now)
        .order_by(JobClaim.claimed_at.desc())
    ).scalars().all()


def delete_claim(session, org_id, claim_id):
    """Administrative release by id. Returns False if no such claim in this org."""
    result = session.execute(
        delete(JobClaim)
        .where(JobClaim.id == claim_id, JobClaim.organization_id == org_id)
        .execution_options(synchronize_session=False)
    )
    session.commit()
    return result.rowcount > 0


def purge_expired_claims(session, before):
    """Compaction: remove claims that expired before `before`. Returns the count."""
    result = session.execute(
        delete(JobClaim)
        .where(JobClaim.expires_at < before)
        .execution_options(synchronize_session=False)
    )
    session.commit()
    if result.rowcount:
        logger.info("Purged %d expired job claims", result.rowcount)
    return result.rowcount
