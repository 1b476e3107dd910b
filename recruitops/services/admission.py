"""
Admission pipeline — decides whether a team member may start a new run.

  QUOTA → WARMUP → CLAIM → BLACKLIST → DUPLICATE → COMMIT

The five checks are pure reads (apart from idempotent bookkeeping: creating
the organization / usage period / warmup row and the warmup daily reset) and
short-circuit on the first denial.

The commit phase is a single transaction:
  1. INSERT the Run            (unique (org, job_url) → duplicate on race)
  2. runs_used += 1            (conditional UPDATE, must stay ≤ runs_limit)
  3. warmup daily/total += 1   (conditional UPDATE, must stay ≤ today's cap)
  4. DELETE the requester's (or an expired) claim on the URL
If any guarded write loses a race the transaction rolls back and the checks
are re-evaluated once against fresh state, so the caller gets the denial that
now applies. Nothing is ever partially committed.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from recruitops.database import StoreUnavailableError, utcnow
from recruitops.models.run import Run
from recruitops.services.orgs import ensure_organization
from recruitops.services.quota import check_quota, get_or_create_counter, reserve_quota
from recruitops.services.warmup import check_warmup, reserve_warmup
from recruitops.services.claims import check_claim, release_claim
from recruitops.services.blacklist import is_blacklisted
from recruitops.services.duplicates import find_duplicate, describe_existing_run

logger = logging.getLogger('services.admission')

# Denial codes
USAGE_LIMIT_EXCEEDED = 'usage_limit_exceeded'
WARMUP_LIMIT = 'warmup_limit'
JOB_CLAIMED_BY_OTHER = 'job_claimed_by_other'
COMPANY_BLACKLISTED = 'company_blacklisted'
DUPLICATE_JOB_URL = 'duplicate_job_url'
ADMISSION_CONFLICT = 'admission_conflict'

# Attempts at the commit phase before giving up on a contended organization
MAX_ATTEMPTS = 2


@dataclass
class AdmissionResult:
    admitted: bool
    http_status: int
    run_id: Optional[str] = None
    error: Optional[str] = None
    message: str = ''
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        if self.admitted:
            return {'runId': self.run_id, 'status': 'queued', 'message': self.message}
        return {'error': self.error, 'message': self.message, **self.context}


class _LostRace(Exception):
    """A guarded write in the commit phase matched no row."""
    def __init__(self, policy):
        self.policy = policy
        super().__init__(policy)


def _deny(error, status, message, **context):
    return AdmissionResult(admitted=False, http_status=status, error=error, message=message, context=context)


# ── Public API ────────────────────────────────────────────────────────────────

def admit_run(session, org_id, user_id, job_url, job_title=None, company=None, now=None):
    """
    Evaluate every policy for a new run and, if all pass, commit it.

    Returns an AdmissionResult; denials are ordinary return values.
    Raises StoreUnavailableError if the store fails mid-pipeline (after
    rolling back, so no counter is left half-updated).
    """
    now = now or utcnow()
    job_url = (job_url or '').strip()
    if not job_url:
        raise ValueError('Missing required field: jobUrl')

    lost = None
    for attempt in range(MAX_ATTEMPTS):
        try:
            denial, approved = _evaluate(session, org_id, user_id, job_url, company, now)
            if denial is not None:
                logger.info("Run denied for org=%s user=%s url=%s: %s",
                            org_id, user_id, job_url, denial.error)
                return denial
            run_id = _commit(session, approved, org_id, user_id, job_url, job_title, company, now)
        except _LostRace as race:
            session.rollback()
            lost = race.policy
            logger.warning("Admission race on %s for org=%s (attempt %d/%d)",
                           lost, org_id, attempt + 1, MAX_ATTEMPTS)
            continue
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Store failure admitting run for org=%s", org_id, exc_info=True)
            raise StoreUnavailableError('admission', e) from e

        logger.info("Run admitted: %s for org=%s by user=%s", run_id, org_id, user_id)
        return AdmissionResult(
            admitted=True,
            http_status=200,
            run_id=run_id,
            message='Run created and queued for processing',
        )

    return _deny(
        ADMISSION_CONFLICT, 409,
        'Another request for your organization changed its limits at the same time. Please retry.',
        policy=lost,
    )


# ── Check phase ───────────────────────────────────────────────────────────────

@dataclass
class _Approved:
    """What the commit phase needs from a passing evaluation."""
    counter_id: int
    runs_limit: int
    warmup_complete: bool
    warmup_limit: Optional[int]


def _evaluate(session, org_id, user_id, job_url, company, now):
    """Run the five policies in order. Returns (denial, None) or (None, _Approved)."""
    ensure_organization(session, org_id)
    counter = get_or_create_counter(session, org_id, now)

    # 1. Quota
    quota = check_quota(session, org_id, 'runs', now=now)
    if not quota.allowed:
        return _deny(
            USAGE_LIMIT_EXCEEDED, 403,
            f"You've reached your monthly limit of {quota.limit} runs",
            current=quota.used,
            limit=quota.limit,
        ), None

    # 2. Warmup
    warmup = check_warmup(session, org_id, 'run', now=now)
    if not warmup.allowed:
        return _deny(
            WARMUP_LIMIT, 403, warmup.message,
            current=warmup.current,
            limit=warmup.limit,
            daysSinceStart=warmup.days_since_start,
            daysRemaining=warmup.days_remaining,
            tomorrowLimit=warmup.tomorrow_limit,
        ), None

    # 3. Claim (informational: only someone else's live claim blocks)
    claim = check_claim(session, org_id, job_url, user_id, now)
    if not claim.granted:
        return _deny(
            JOB_CLAIMED_BY_OTHER, 409,
            'This job is currently claimed by another team member',
            claimedBy=claim.held_by,
            claimedAt=claim.held_since,
        ), None

    # 4. Blacklist
    match = is_blacklisted(session, org_id, company, job_url)
    if match.matched:
        entry = match.entry
        return _deny(
            COMPANY_BLACKLISTED, 403,
            "This company is on your organization's blacklist",
            reason=entry.reason or 'No reason provided',
            blacklistedCompany=entry.company or entry.domain,
        ), None

    # 5. Duplicate
    existing = find_duplicate(session, org_id, job_url)
    if existing is not None:
        return _deny(
            DUPLICATE_JOB_URL, 409,
            'This job URL has already been run by a team member',
            existingRun=describe_existing_run(session, existing),
        ), None

    return None, _Approved(
        counter_id=counter.id,
        runs_limit=quota.limit,
        warmup_complete=warmup.warmup_complete,
        warmup_limit=warmup.limit,
    )


# ── Commit phase ──────────────────────────────────────────────────────────────

def _commit(session, approved, org_id, user_id, job_url, job_title, company, now):
    """Apply all admission mutations in one transaction. Returns the new run id."""
    run = Run(
        id=str(uuid.uuid4()),
        organization_id=org_id,
        created_by=user_id,
        job_url=job_url,
        title=(job_title or '').strip() or 'Untitled Position',
        company=(company or '').strip() or None,
        status='queued',
        created_at=now,
        updated_at=now,
    )
    session.add(run)
    try:
        session.flush()
    except IntegrityError:
        raise _LostRace('duplicate')

    if not reserve_quota(session, approved.counter_id, 'runs', approved.runs_limit):
        raise _LostRace('quota')

    if not approved.warmup_complete:
        if not reserve_warmup(session, org_id, 'run', approved.warmup_limit, now.date()):
            raise _LostRace('warmup')

    release_claim(session, org_id, job_url, holder_id=user_id, now=now, commit=False)
    session.commit()
    return run.id
