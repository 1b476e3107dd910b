"""
Quota enforcer — monthly usage counters vs plan limits.

Checks are pure reads. The only writes are period rollover (creating the next
UsageCounter) and reserve_quota(), the atomic increment-if-below-limit used by
the admission commit phase.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from recruitops.config import (
    DEFAULT_PLAN, DEFAULT_PLAN_LIMITS, BILLING_PERIOD_DAYS, USAGE_METRICS, UNLIMITED,
)
from recruitops.database import utcnow, as_utc
from recruitops.models.organization import Organization
from recruitops.models.usage import PlanLimits, UsageCounter

logger = logging.getLogger('services.quota')


@dataclass
class QuotaCheck:
    """Result of comparing one metric's usage against its plan limit."""
    metric: str
    allowed: bool
    used: int
    limit: int
    remaining: int  # -1 when unlimited

    def to_dict(self):
        return {
            'allowed': self.allowed,
            'current': self.used,
            'limit': self.limit,
            'remaining': self.remaining,
        }


# ── Plans ────────────────────────────────────────────────────────────────────

def get_org_plan(session, org_id):
    org = session.get(Organization, org_id)
    return (org.plan if org is not None else None) or DEFAULT_PLAN


def get_plan_limits(session, plan_name):
    """Plan limits as a dict; falls back to the built-in defaults when no row exists."""
    row = session.get(PlanLimits, plan_name)
    if row is not None:
        return {
            'plan_name': row.plan_name,
            'runs_limit': row.runs_limit,
            'prospects_limit': row.prospects_limit,
            'messages_limit': row.messages_limit,
        }
    defaults = DEFAULT_PLAN_LIMITS.get(plan_name) or DEFAULT_PLAN_LIMITS[DEFAULT_PLAN]
    return {'plan_name': plan_name, **defaults}


def list_plans(session):
    rows = session.execute(
        select(PlanLimits).order_by(PlanLimits.price_usd.asc())
    ).scalars().all()
    if rows:
        return [row.to_dict() for row in rows]
    return [
        {
            'plan': name,
            'runsLimit': limits['runs_limit'],
            'prospectsLimit': limits['prospects_limit'],
            'messagesLimit': limits['messages_limit'],
            'priceUsd': None,
        }
        for name, limits in DEFAULT_PLAN_LIMITS.items()
    ]


# ── Usage counters ───────────────────────────────────────────────────────────

def _period_bounds(anchor, now):
    """Step forward from anchor in billing-period increments until the period covers now."""
    step = timedelta(days=BILLING_PERIOD_DAYS)
    start = anchor
    while start + step <= now:
        start += step
    return start, start + step


def find_current_counter(session, org_id, now=None):
    now = now or utcnow()
    return session.execute(
        select(UsageCounter)
        .where(
            UsageCounter.organization_id == org_id,
            UsageCounter.period_start <= now,
            UsageCounter.period_end > now,
        )
        .order_by(UsageCounter.period_start.desc())
    ).scalars().first()


def get_or_create_counter(session, org_id, now=None):
    """
    Return the counter for the billing period covering now, rolling over if needed.

    A new period chains from the previous period_end; the very first period is
    anchored at UTC midnight so concurrent creators collide on the
    (organization_id, period_start) unique constraint instead of forking.
    Commits when it creates a row.
    """
    now = now or utcnow()
    counter = find_current_counter(session, org_id, now)
    if counter is not None:
        return counter

    previous = session.execute(
        select(UsageCounter)
        .where(UsageCounter.organization_id == org_id)
        .order_by(UsageCounter.period_end.desc())
    ).scalars().first()

    if previous is not None:
        anchor = as_utc(previous.period_end)
    else:
        anchor = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
    start, end = _period_bounds(anchor, now)

    counter = UsageCounter(
        organization_id=org_id,
        runs_used=0,
        prospects_used=0,
        messages_used=0,
        period_start=start,
        period_end=end,
    )
    session.add(counter)
    try:
        session.commit()
        logger.info("Opened usage period %s → %s for org %s", start.date(), end.date(), org_id)
    except IntegrityError:
        session.rollback()
        counter = find_current_counter(session, org_id, now)
    return counter


def _validate_metric(metric):
    if metric not in USAGE_METRICS:
        raise ValueError(f"Unknown usage metric: {metric}. Available: {USAGE_METRICS}")


def check_quota(session, org_id, metric='runs', amount=1, now=None):
    """Compare current-period usage of a metric against the organization's plan limit."""
    _validate_metric(metric)
    counter = find_current_counter(session, org_id, now)
    used = (getattr(counter, f'{metric}_used') or 0) if counter is not None else 0
    limits = get_plan_limits(session, get_org_plan(session, org_id))
    limit = limits[f'{metric}_limit']

    if limit == UNLIMITED:
        return QuotaCheck(metric=metric, allowed=True, used=used, limit=UNLIMITED, remaining=UNLIMITED)

    return QuotaCheck(
        metric=metric,
        allowed=used + amount <= limit,
        used=used,
        limit=limit,
        remaining=max(0, limit - used),
    )


def reserve_quota(session, counter_id, metric, limit, amount=1):
    """
    Atomically bump a usage counter if it stays within limit.

    Single conditional UPDATE, so two concurrent admissions can never both take
    the last slot. Returns True when the row was updated. Does not commit.
    """
    _validate_metric(metric)
    column = getattr(UsageCounter, f'{metric}_used')
    stmt = update(UsageCounter).where(UsageCounter.id == counter_id)
    if limit != UNLIMITED:
        stmt = stmt.where(column + amount <= limit)
    result = session.execute(
        stmt.values({column: column + amount}).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_usage_summary(session, org_id, now=None):
    """Per-metric used/limit for the current period, plus plan and period bounds."""
    now = now or utcnow()
    counter = find_current_counter(session, org_id, now)
    limits = get_plan_limits(session, get_org_plan(session, org_id))

    if counter is not None:
        period_start = as_utc(counter.period_start)
        period_end = as_utc(counter.period_end)
    else:
        period_start = now
        period_end = now + timedelta(days=BILLING_PERIOD_DAYS)

    usage = {}
    for metric in USAGE_METRICS:
        used = (getattr(counter, f'{metric}_used') or 0) if counter is not None else 0
        usage[metric] = {'used': used, 'limit': limits[f'{metric}_limit']}

    return {
        'usage': usage,
        'plan': limits['plan_name'],
        'periodStart': period_start.isoformat(),
        'periodEnd': period_end.isoformat(),
    }
