"""
Shared client instances — Redis and the RQ outreach queue.

redis.from_url() does not connect until first use, so importing this module is
always safe (even when Redis is down during tests).
"""
import logging
import redis

from recruitops.config import REDIS_URL

logger = logging.getLogger('recruitops.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(REDIS_URL, decode_responses=True)

# ── RQ (lazy, avoids building a queue in processes that never enqueue) ───────
_queue = None


def get_queue():
    global _queue
    if _queue is None:
        from rq import Queue
        # RQ pickles job payloads, so it needs a non-decoding connection
        _queue = Queue('outreach', connection=redis.from_url(REDIS_URL))
        logger.info("RQ queue 'outreach' initialized")
    return _queue
