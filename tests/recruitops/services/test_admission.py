"""Tests for recruitops.services.admission — the five-policy pipeline and its commit phase."""
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from recruitops.database import StoreUnavailableError
from recruitops.models.job_claim import JobClaim
from recruitops.models.organization import Organization
from recruitops.models.run import Run
from recruitops.models.usage import UsageCounter
from recruitops.models.warmup import WarmupStatus
from recruitops.services.admission import admit_run
from recruitops.services.blacklist import add_entry
from recruitops.services.claims import try_claim, get_active_claim

JOB_URL = 'https://jobs.example/123'


def _runs_used(session, org_id='org_1'):
    session.expire_all()
    return session.execute(
        select(UsageCounter.runs_used).where(UsageCounter.organization_id == org_id)
    ).scalar_one()


def _run_count(session, org_id='org_1'):
    return session.execute(
        select(func.count(Run.id)).where(Run.organization_id == org_id)
    ).scalar_one()


class TestHappyPath:

    def test_admits_and_returns_queued_run(self, db_session, make_org, now):
        make_org()
        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, 'Backend Engineer', 'Initech', now=now)

        assert result.admitted is True
        assert result.http_status == 200
        body = result.to_dict()
        assert body['status'] == 'queued'
        assert body['runId'] == result.run_id

        run = db_session.get(Run, result.run_id)
        assert run.status == 'queued'
        assert run.title == 'Backend Engineer'
        assert run.company == 'Initech'
        assert run.created_by == 'user_a'

    def test_increments_quota_and_warmup_counters(self, db_session, make_org, now):
        make_org()
        admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert _runs_used(db_session) == 1
        warmup = db_session.get(WarmupStatus, 'org_1')
        assert warmup.daily_runs_created == 1
        assert warmup.total_runs_created == 1

    def test_missing_title_defaults(self, db_session, make_org, now):
        make_org()
        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, company='  ', now=now)
        run = db_session.get(Run, result.run_id)
        assert run.title == 'Untitled Position'
        assert run.company is None

    def test_first_admission_bootstraps_organization(self, db_session, now):
        result = admit_run(db_session, 'org_new', 'user_a', JOB_URL, now=now)

        assert result.admitted is True
        org = db_session.get(Organization, 'org_new')
        assert org.plan == 'pilot'
        assert _runs_used(db_session, 'org_new') == 1
        assert db_session.get(WarmupStatus, 'org_new').daily_runs_created == 1

    def test_empty_job_url_rejected(self, db_session, now):
        with pytest.raises(ValueError, match='jobUrl'):
            admit_run(db_session, 'org_1', 'user_a', '   ', now=now)


class TestQuotaPolicy:

    def test_denied_at_limit(self, db_session, make_org, now):
        make_org(runs_limit=2, runs_used=2, warmup_completed=True)
        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert result.admitted is False
        assert result.http_status == 403
        body = result.to_dict()
        assert body['error'] == 'usage_limit_exceeded'
        assert body['current'] == 2
        assert body['limit'] == 2
        assert _run_count(db_session) == 0

    def test_runs_used_tracks_admissions(self, db_session, make_org, now):
        make_org(runs_limit=3, warmup_completed=True)
        outcomes = [
            admit_run(db_session, 'org_1', 'user_a', f'{JOB_URL}/{i}', now=now).admitted
            for i in range(4)
        ]

        assert outcomes == [True, True, True, False]
        assert _runs_used(db_session) == 3
        assert _run_count(db_session) == 3

    def test_unlimited_plan_never_denies(self, db_session, make_org, now):
        make_org(runs_limit=-1, runs_used=5000, warmup_completed=True)
        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)
        assert result.admitted is True
        assert _runs_used(db_session) == 5001

    def test_quota_checked_before_warmup(self, db_session, make_org, now):
        make_org(runs_limit=1, runs_used=1, daily_runs=1)
        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)
        assert result.error == 'usage_limit_exceeded'


class TestWarmupPolicy:

    def test_second_run_on_day_one_denied(self, db_session, make_org, now):
        make_org(warmup_day=1)
        first = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)
        second = admit_run(db_session, 'org_1', 'user_a', f'{JOB_URL}/other', now=now)

        assert first.admitted is True
        assert second.admitted is False
        assert second.http_status == 403
        body = second.to_dict()
        assert body['error'] == 'warmup_limit'
        assert body['limit'] == 1
        assert body['current'] == 1
        assert body['daysSinceStart'] == 1
        assert body['tomorrowLimit'] == 1
        assert 'Warmup day 1/14' in body['message']
        assert _runs_used(db_session) == 1

    def test_completed_warmup_skips_daily_counter(self, db_session, make_org, now):
        make_org(warmup_completed=True, daily_runs=50)
        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)
        assert result.admitted is True
        db_session.expire_all()
        assert db_session.get(WarmupStatus, 'org_1').daily_runs_created == 50

    def test_new_day_resets_cap(self, db_session, make_org, now):
        make_org(warmup_day=1, daily_runs=1)
        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now + timedelta(days=1))
        assert result.admitted is True
        db_session.expire_all()
        assert db_session.get(WarmupStatus, 'org_1').daily_runs_created == 1


class TestClaimPolicy:

    def test_claim_by_other_member_denies(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        try_claim(db_session, 'org_1', JOB_URL, 'user_b', 'Bob', now=now)

        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert result.http_status == 409
        body = result.to_dict()
        assert body['error'] == 'job_claimed_by_other'
        assert body['claimedBy'] == 'Bob'
        assert body['claimedAt'].startswith('2026-03-10T15:00:00')
        assert _runs_used(db_session) == 0

    def test_own_claim_is_released_on_admission(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        try_claim(db_session, 'org_1', JOB_URL, 'user_a', 'Alice', now=now)

        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert result.admitted is True
        assert get_active_claim(db_session, 'org_1', JOB_URL, now) is None

    def test_expired_claim_does_not_block(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        try_claim(db_session, 'org_1', JOB_URL, 'user_b', 'Bob', now=now - timedelta(hours=25))

        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert result.admitted is True
        remaining = db_session.execute(select(func.count(JobClaim.id))).scalar_one()
        assert remaining == 0


class TestBlacklistPolicy:

    def test_blacklisted_company_denied(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        add_entry(db_session, 'org_1', company='Acme Corp', reason='Existing client')

        result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, company='ACME corp', now=now)

        assert result.http_status == 403
        body = result.to_dict()
        assert body['error'] == 'company_blacklisted'
        assert body['reason'] == 'Existing client'
        assert body['blacklistedCompany'] == 'Acme Corp'
        assert _run_count(db_session) == 0

    def test_blacklisted_domain_denied_without_company(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        add_entry(db_session, 'org_1', domain='https://www.example-corp.com/')

        result = admit_run(db_session, 'org_1', 'user_a', 'https://careers.example-corp.com/job/9', now=now)

        assert result.error == 'company_blacklisted'
        assert result.context['reason'] == 'No reason provided'
        assert result.context['blacklistedCompany'] == 'example-corp.com'


class TestDuplicatePolicy:

    def test_second_submission_points_to_first(self, db_session, make_org, now):
        make_org(warmup_completed=True, members={'user_a': 'Alice'})
        first = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)
        second = admit_run(db_session, 'org_1', 'user_b', JOB_URL, now=now)

        assert second.http_status == 409
        body = second.to_dict()
        assert body['error'] == 'duplicate_job_url'
        assert body['existingRun']['id'] == first.run_id
        assert body['existingRun']['userName'] == 'Alice'
        assert body['existingRun']['status'] == 'queued'
        assert _run_count(db_session) == 1
        assert _runs_used(db_session) == 1

    def test_same_url_allowed_in_another_org(self, db_session, make_org, now):
        make_org('org_1', warmup_completed=True)
        make_org('org_2', warmup_completed=True)
        assert admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now).admitted
        assert admit_run(db_session, 'org_2', 'user_z', JOB_URL, now=now).admitted

    def test_unique_constraint_catches_concurrent_insert(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        first = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)
        existing = db_session.get(Run, first.run_id)

        # First evaluation misses the committed row, as a concurrent request would
        with patch('recruitops.services.admission.find_duplicate', side_effect=[None, existing]):
            second = admit_run(db_session, 'org_1', 'user_b', JOB_URL, now=now)

        assert second.error == 'duplicate_job_url'
        assert _run_count(db_session) == 1
        assert _runs_used(db_session) == 1


class TestCommitPhase:

    def test_lost_quota_race_rolls_back_and_conflicts(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        with patch('recruitops.services.admission.reserve_quota', return_value=False) as reserve:
            result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert reserve.call_count == 2
        assert result.http_status == 409
        assert result.error == 'admission_conflict'
        assert result.context['policy'] == 'quota'
        assert _run_count(db_session) == 0

    def test_lost_warmup_race_leaves_no_quota_charge(self, db_session, make_org, now):
        make_org()
        with patch('recruitops.services.admission.reserve_warmup', return_value=False):
            result = admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert result.error == 'admission_conflict'
        assert _runs_used(db_session) == 0
        assert _run_count(db_session) == 0

    def test_store_failure_raises_without_partial_commit(self, db_session, make_org, now):
        make_org(warmup_completed=True)
        error = OperationalError('UPDATE usage_counters', {}, Exception('database is locked'))
        with patch('recruitops.services.admission.reserve_quota', side_effect=error):
            with pytest.raises(StoreUnavailableError) as exc_info:
                admit_run(db_session, 'org_1', 'user_a', JOB_URL, now=now)

        assert exc_info.value.operation == 'admission'
        assert _run_count(db_session) == 0
        assert _runs_used(db_session) == 0
