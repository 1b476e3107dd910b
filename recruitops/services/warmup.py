"""
Warmup throttler — progressive daily caps for new organizations.

The schedule is keyed off WarmupStatus.start_date (days since start, not the
calendar), ramps from 1 run/day to unlimited over WARMUP_TOTAL_DAYS, and then
flips `completed` for good.

Daily counters are reconciled before every read or write: a conditional
UPDATE zeroes them when last_reset_date is not today, so two requests racing
across midnight cannot both reset (and erase each other's increment).
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from recruitops.config import WARMUP_SCHEDULE, WARMUP_TOTAL_DAYS, WARMUP_ACTIONS
from recruitops.database import utcnow, as_utc
from recruitops.models.warmup import WarmupStatus

logger = logging.getLogger('services.warmup')

_DAILY_FIELDS = {'run': 'daily_runs_created', 'invite': 'daily_invites_sent'}
_TOTAL_FIELDS = {'run': 'total_runs_created', 'invite': 'total_invites_sent'}
_NOUNS = {'run': 'runs', 'invite': 'invites'}


@dataclass
class WarmupLimits:
    max_runs: int
    max_invites: int

    def for_action(self, action):
        return self.max_runs if action == 'run' else self.max_invites

    def to_dict(self):
        return {'maxRuns': self.max_runs, 'maxInvites': self.max_invites}


@dataclass
class WarmupCheck:
    """Outcome of a warmup check for one action."""
    allowed: bool
    action: str
    warmup_complete: bool = False
    current: int = 0
    limit: Optional[int] = None
    days_since_start: int = 0
    days_remaining: int = 0
    tomorrow_limit: object = None  # int, or 'unlimited'
    reason: Optional[str] = None
    message: str = ''

    def to_dict(self):
        if self.warmup_complete:
            return {'allowed': True, 'warmupComplete': True}
        data = {
            'allowed': self.allowed,
            'warmupComplete': False,
            'current': self.current,
            'limit': self.limit,
            'daysSinceStart': self.days_since_start,
            'daysRemaining': self.days_remaining,
            'tomorrowLimit': self.tomorrow_limit,
        }
        if not self.allowed:
            data['reason'] = self.reason
            data['message'] = self.message
        return data


# ── Schedule ─────────────────────────────────────────────────────────────────

def get_warmup_limits(days_since_start):
    """Caps for a given warmup day, or None once the schedule is over."""
    for last_day, max_runs, max_invites in WARMUP_SCHEDULE:
        if days_since_start <= last_day:
            return WarmupLimits(max_runs=max_runs, max_invites=max_invites)
    return None


def days_since_start(start_date, now):
    """1-based warmup day: the first 24h after start_date is day 1."""
    elapsed = abs((now - as_utc(start_date)).total_seconds())
    return max(1, math.ceil(elapsed / 86400))


def _tomorrow_limit(days, action):
    limits = get_warmup_limits(days + 1)
    return limits.for_action(action) if limits else 'unlimited'


def _validate_action(action):
    if action not in WARMUP_ACTIONS:
        raise ValueError(f"Unknown warmup action: {action}. Available: {WARMUP_ACTIONS}")


# ── State ────────────────────────────────────────────────────────────────────

def get_or_create_warmup(session, org_id, now=None):
    """Fetch the organization's warmup row, creating it (start = now) on first use."""
    now = now or utcnow()
    warmup = session.get(WarmupStatus, org_id)
    if warmup is not None:
        return warmup

    warmup = WarmupStatus(
        organization_id=org_id,
        start_date=now,
        last_reset_date=now.date(),
        daily_runs_created=0,
        daily_invites_sent=0,
        total_runs_created=0,
        total_invites_sent=0,
        completed=False,
    )
    session.add(warmup)
    try:
        session.commit()
        logger.info("Warmup started for org %s", org_id)
    except IntegrityError:
        session.rollback()
        warmup = session.get(WarmupStatus, org_id)
    return warmup


def reconcile_daily_reset(session, org_id, today):
    """Zero the daily counters if they belong to an earlier day. Returns True if a reset happened."""
    result = session.execute(
        update(WarmupStatus)
        .where(
            WarmupStatus.organization_id == org_id,
            WarmupStatus.last_reset_date != today,
        )
        .values(daily_runs_created=0, daily_invites_sent=0, last_reset_date=today)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _mark_completed(session, org_id, now):
    """One-way ratchet: only flips rows that are not yet completed."""
    result = session.execute(
        update(WarmupStatus)
        .where(WarmupStatus.organization_id == org_id, WarmupStatus.completed.is_(False))
        .values(completed=True, completed_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info("Warmup completed for org %s", org_id)


def _reconciled_warmup(session, org_id, now):
    warmup = get_or_create_warmup(session, org_id, now)
    if not warmup.completed and reconcile_daily_reset(session, org_id, now.date()):
        session.commit()
        session.refresh(warmup)
    return warmup


# ── Public API ───────────────────────────────────────────────────────────────

def check_warmup(session, org_id, action='run', now=None):
    """
    Decide whether one more `action` fits in today's warmup cap.

    The only writes are reconciliations (daily reset, completion ratchet);
    usage itself is never bumped here.
    """
    _validate_action(action)
    now = now or utcnow()
    warmup = _reconciled_warmup(session, org_id, now)

    if warmup.completed:
        return WarmupCheck(allowed=True, action=action, warmup_complete=True)

    days = days_since_start(warmup.start_date, now)
    limits = get_warmup_limits(days)
    if limits is None:
        _mark_completed(session, org_id, now)
        session.commit()
        return WarmupCheck(allowed=True, action=action, warmup_complete=True, days_since_start=days)

    limit = limits.for_action(action)
    current = getattr(warmup, _DAILY_FIELDS[action]) or 0
    check = WarmupCheck(
        allowed=current < limit,
        action=action,
        current=current,
        limit=limit,
        days_since_start=days,
        days_remaining=max(0, WARMUP_TOTAL_DAYS - days),
        tomorrow_limit=_tomorrow_limit(days, action),
    )
    if not check.allowed:
        check.reason = 'warmup_limit'
        check.message = (
            f"Warmup day {days}/{WARMUP_TOTAL_DAYS}: you've used all {limit} "
            f"{_NOUNS[action]} for today. Tomorrow's limit: {check.tomorrow_limit}. "
            f"This protects your LinkedIn account!"
        )
    return check


def reserve_warmup(session, org_id, action, limit, today, amount=1):
    """
    Atomically bump today's counter (and the lifetime total) if it stays under limit.

    Guarded on last_reset_date == today so a stale day's row is never charged.
    Returns True when the row was updated. Does not commit.
    """
    _validate_action(action)
    daily = getattr(WarmupStatus, _DAILY_FIELDS[action])
    total = getattr(WarmupStatus, _TOTAL_FIELDS[action])
    result = session.execute(
        update(WarmupStatus)
        .where(
            WarmupStatus.organization_id == org_id,
            WarmupStatus.last_reset_date == today,
            WarmupStatus.completed.is_(False),
            daily + amount <= limit,
        )
        .values({daily: daily + amount, total: total + amount})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def increment_warmup(session, org_id, action, amount=1, now=None):
    """
    Record `amount` completed actions after the fact (invite path).

    Not idempotent: call once per committed action. Missing the call under-counts
    (fails open). Returns False when the organization has no warmup row.
    """
    _validate_action(action)
    now = now or utcnow()
    warmup = session.get(WarmupStatus, org_id)
    if warmup is None:
        return False

    reconcile_daily_reset(session, org_id, now.date())
    daily = getattr(WarmupStatus, _DAILY_FIELDS[action])
    total = getattr(WarmupStatus, _TOTAL_FIELDS[action])
    session.execute(
        update(WarmupStatus)
        .where(WarmupStatus.organization_id == org_id)
        .values({daily: daily + amount, total: total + amount})
        .execution_options(synchronize_session=False)
    )
    session.commit()
    return True


def get_warmup_status(session, org_id, now=None):
    """Progress view for the dashboard's warmup widget."""
    now = now or utcnow()
    warmup = _reconciled_warmup(session, org_id, now)
    days = days_since_start(warmup.start_date, now)
    limits = get_warmup_limits(days)

    if warmup.completed or limits is None:
        if not warmup.completed:
            _mark_completed(session, org_id, now)
            session.commit()
        return {
            'warmupComplete': True,
            'daysSinceStart': days,
            'totalDays': WARMUP_TOTAL_DAYS,
            'progress': 100,
        }

    tomorrow = get_warmup_limits(days + 1)
    next_week = get_warmup_limits(days + 7)
    runs_used = warmup.daily_runs_created or 0
    invites_used = warmup.daily_invites_sent or 0
    return {
        'warmupComplete': False,
        'daysSinceStart': days,
        'totalDays': WARMUP_TOTAL_DAYS,
        'progress': round(days / WARMUP_TOTAL_DAYS * 100),
        'today': {
            'runsUsed': runs_used,
            'runsLimit': limits.max_runs,
            'runsRemaining': max(0, limits.max_runs - runs_used),
            'invitesUsed': invites_used,
            'invitesLimit': limits.max_invites,
            'invitesRemaining': max(0, limits.max_invites - invites_used),
        },
        'daysUntilFullAccess': max(0, WARMUP_TOTAL_DAYS - days),
        'schedule': {
            'tomorrow': tomorrow.to_dict() if tomorrow else None,
            'nextWeek': next_week.to_dict() if next_week else None,
        },
    }
