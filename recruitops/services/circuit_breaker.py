"""
Redis-backed circuit breaker for outbound calls to the outreach collaborator.

All state for a breaker lives in one Redis hash, `cb:{name}`:
  state       closed | open | half_open
  failures    consecutive failures since the last success
  opened_at   epoch seconds when the circuit last opened
  success / failure / last_error   lifetime health counters for /api/health

OPEN short-circuits with CircuitOpenError until reset_timeout has passed,
then calls go through again (HALF_OPEN): a success closes the circuit and a
failure re-opens it for another reset_timeout. If Redis itself is down the
breaker fails open and calls pass straight through.
"""
import logging
import time
from functools import wraps

logger = logging.getLogger('services.circuit_breaker')

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'


class CircuitOpenError(Exception):
    """Raised when calling through an open circuit breaker."""
    def __init__(self, name, retry_after=None):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{name}' is OPEN — service unavailable")


class CircuitBreaker:

    def __init__(self, name, redis_client, failure_threshold=3, reset_timeout=300):
        self.name = name
        self.redis = redis_client
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout

    @property
    def key(self):
        return f'cb:{self.name}'

    def _read(self):
        try:
            return self.redis.hgetall(self.key) or {}
        except Exception:
            logger.debug("Redis unavailable reading breaker '%s'", self.name)
            return None

    def _seconds_open(self, data):
        opened_at = data.get('opened_at')
        return time.time() - float(opened_at) if opened_at else float('inf')

    @property
    def state(self):
        data = self._read()
        if not data:
            return CLOSED
        current = data.get('state', CLOSED)
        if current == OPEN and self._seconds_open(data) > self.reset_timeout:
            return HALF_OPEN
        return current

    @property
    def failure_count(self):
        data = self._read() or {}
        return int(data.get('failures', 0) or 0)

    def call(self, func, *args, **kwargs):
        """Execute func through the breaker."""
        data = self._read()
        if data and data.get('state') == OPEN:
            elapsed = self._seconds_open(data)
            if elapsed <= self.reset_timeout:
                raise CircuitOpenError(self.name, retry_after=max(0, self.reset_timeout - elapsed))

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        self._on_success()
        return result

    def protect(self, func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            return self.call(func, *args, **kwargs)
        return wrapper

    def _on_success(self):
        try:
            pipe = self.redis.pipeline()
            pipe.hset(self.key, mapping={'state': CLOSED, 'failures': 0})
            pipe.hincrby(self.key, 'success', 1)
            pipe.execute()
        except Exception:
            logger.debug("Redis unavailable recording success for '%s'", self.name)

    def _on_failure(self, error):
        try:
            failures = self.redis.hincrby(self.key, 'failures', 1)
            pipe = self.redis.pipeline()
            pipe.hincrby(self.key, 'failure', 1)
            pipe.hset(self.key, 'last_error', str(error)[:200])
            if failures >= self.failure_threshold:
                pipe.hset(self.key, mapping={'state': OPEN, 'opened_at': time.time()})
            pipe.execute()
        except Exception:
            logger.debug("Redis unavailable recording failure for '%s'", self.name)
            return

        if failures >= self.failure_threshold:
            logger.warning("Circuit '%s' OPENED after %d failures: %s", self.name, failures, error)
        else:
            logger.info("Circuit '%s' failure %d/%d: %s", self.name, failures, self.failure_threshold, error)

    def reset(self):
        try:
            self.redis.hset(self.key, mapping={'state': CLOSED, 'failures': 0, 'opened_at': ''})
            logger.info("Circuit '%s' manually reset to CLOSED", self.name)
        except Exception as e:
            logger.error("Failed to reset circuit '%s': %s", self.name, e)

    def get_health(self):
        data = self._read() or {}
        return {
            'name': self.name,
            'state': self.state if data else CLOSED,
            'failure_count': int(data.get('failures', 0) or 0),
            'failure_threshold': self.failure_threshold,
            'reset_timeout': self.reset_timeout,
            'total_success': int(data.get('success', 0) or 0),
            'total_failure': int(data.get('failure', 0) or 0),
            'last_error': data.get('last_error', ''),
        }


# ── Registry ──────────────────────────────────────────────────────────────────

_registry = {}


def get_breaker(name, redis_client=None, **kwargs):
    """Get or create a named circuit breaker (one per name per process)."""
    if name not in _registry:
        if redis_client is None:
            from recruitops.extensions import redis_client as rc
            redis_client = rc
        _registry[name] = CircuitBreaker(name, redis_client, **kwargs)
    return _registry[name]


def get_all_breakers():
    return dict(_registry)


def init_breakers(redis_client):
    """Register the breakers for every outbound dependency."""
    _registry['outreach'] = CircuitBreaker('outreach', redis_client, failure_threshold=3, reset_timeout=180)
    return dict(_registry)
