"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch, MagicMock

import jwt
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recruitops.config import JWT_SECRET
from recruitops.database import Base

# Fixed clock for service tests: mid-afternoon UTC
NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


class FakeRedis:
    """Minimal in-memory Redis fake (hashes only) for circuit breaker tests."""

    def __init__(self):
        self.hash_store = {}

    def hset(self, key, field=None, value=None, mapping=None):
        h = self.hash_store.setdefault(key, {})
        if field is not None:
            h[field] = str(value)
        for k, v in (mapping or {}).items():
            h[k] = str(v)

    def hincrby(self, key, field, amount=1):
        h = self.hash_store.setdefault(key, {})
        h[field] = str(int(h.get(field, 0)) + amount)
        return int(h[field])

    def hgetall(self, key):
        return dict(self.hash_store.get(key, {}))

    def delete(self, *keys):
        for k in keys:
            self.hash_store.pop(k, None)

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Fake Redis pipeline that replays queued calls on execute()."""

    def __init__(self, redis):
        self._redis = redis
        self._ops = []

    def hset(self, *args, **kwargs):
        self._ops.append(('hset', args, kwargs))
        return self

    def hincrby(self, *args, **kwargs):
        self._ops.append(('hincrby', args, kwargs))
        return self

    def execute(self):
        results = [getattr(self._redis, name)(*args, **kwargs) for name, args, kwargs in self._ops]
        self._ops = []
        return results


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created, shared across threads/sessions."""
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, 'connect')
    def _enforce_foreign_keys(dbapi_conn, _record):
        # SQLite only enforces foreign keys when asked to
        dbapi_conn.execute('PRAGMA foreign_keys=ON')

    import recruitops.models.organization
    import recruitops.models.usage
    import recruitops.models.warmup
    import recruitops.models.job_claim
    import recruitops.models.blacklist
    import recruitops.models.run
    import recruitops.models.prospect
    import recruitops.models.api_key
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(db_session):
    """Route all get_session() calls to the test session.

    We disable close() so that route handlers calling session.close()
    in their finally blocks don't invalidate the shared test session.
    """
    _real_close = db_session.close
    db_session.close = lambda: None
    with patch('recruitops.database.SessionLocal', return_value=db_session):
        yield db_session
    db_session.close = _real_close


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def mock_queue():
    """Stand-in for the RQ outreach queue."""
    queue = MagicMock()
    with patch('recruitops.extensions.get_queue', return_value=queue):
        yield queue


@pytest.fixture
def app(fake_redis, mock_queue):
    """Flask test app."""
    with patch('recruitops.extensions.redis_client', fake_redis):
        from recruitops import create_app
        app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def auth_headers():
    """Factory: Authorization header carrying a signed user token."""
    def _make(user_id='user_a', org_id='org_1', org_role='org:member', email='a@example.com'):
        payload = {'sub': user_id, 'org_role': org_role, 'email': email}
        if org_id is not None:
            payload['org_id'] = org_id
        token = jwt.encode(payload, JWT_SECRET, algorithm='HS256')
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture
def make_org(db_session):
    """Factory: organization with plan, usage counter and warmup row in a known state.

    warmup_day=d places start_date so that days_since_start(NOW) == d.
    """
    from recruitops.models.organization import Organization, Member
    from recruitops.models.usage import PlanLimits, UsageCounter
    from recruitops.models.warmup import WarmupStatus

    def _make(org_id='org_1', runs_limit=10, runs_used=0, warmup_day=1, daily_runs=0,
              daily_invites=0, warmup_completed=False, members=None, now=NOW):
        plan = f'plan_{org_id}'
        db_session.add(PlanLimits(plan_name=plan, runs_limit=runs_limit,
                                  prospects_limit=100, messages_limit=500))
        org = db_session.get(Organization, org_id) or Organization(id=org_id)
        org.name = f'Org {org_id}'
        org.plan = plan
        db_session.add(org)
        db_session.flush()
        for member_id, name in (members or {}).items():
            db_session.add(Member(id=member_id, organization_id=org_id, name=name, email=f'{member_id}@example.com'))

        period_start = datetime(now.year, now.month, now.day, tzinfo=timezone.utc) - timedelta(days=5)
        db_session.add(UsageCounter(
            organization_id=org_id,
            runs_used=runs_used,
            prospects_used=0,
            messages_used=0,
            period_start=period_start,
            period_end=period_start + timedelta(days=30),
        ))
        db_session.add(WarmupStatus(
            organization_id=org_id,
            start_date=now - timedelta(days=warmup_day - 1, hours=12),
            daily_runs_created=daily_runs,
            daily_invites_sent=daily_invites,
            last_reset_date=now.date(),
            total_runs_created=daily_runs,
            total_invites_sent=daily_invites,
            completed=warmup_completed,
        ))
        db_session.commit()
        return org_id
    return _make


@pytest.fixture
def orgs(db_session):
    """org_1 and org_2 on the default plan, for tests that write org-owned rows directly."""
    from recruitops.services.orgs import ensure_organization
    return [ensure_organization(db_session, org_id) for org_id in ('org_1', 'org_2')]
