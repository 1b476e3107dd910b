"""
Centralized configuration — env vars, plan defaults, warmup schedule.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# Every store call is bounded: connect, pool checkout and statement execution.
STORE_TIMEOUT_SECONDS = int(os.getenv('STORE_TIMEOUT_SECONDS', '5'))

# ── Auth ─────────────────────────────────────────────────────────────────────
JWT_SECRET = os.getenv('JWT_SECRET', 'dev-secret-change-me-before-deploying')
JWT_ISSUER = os.getenv('JWT_ISSUER')

# ── Outreach collaborator (Make.com scenario / HeyReach) ─────────────────────
OUTREACH_WEBHOOK_URL = os.getenv('OUTREACH_WEBHOOK_URL')
OUTREACH_TIMEOUT_SECONDS = int(os.getenv('OUTREACH_TIMEOUT_SECONDS', '15'))

# ── Plans & billing ───────────────────────────────────────────────────────────
DEFAULT_PLAN = os.getenv('DEFAULT_PLAN', 'pilot')
UNLIMITED = -1

DEFAULT_PLAN_LIMITS = {
    'pilot': {'runs_limit': 10, 'prospects_limit': 100, 'messages_limit': 500},
}

BILLING_PERIOD_DAYS = 30

USAGE_METRICS = ['runs', 'prospects', 'messages']

# ── Job claims ────────────────────────────────────────────────────────────────
CLAIM_TTL_HOURS = 24

# Expired claims older than this are removed by the maintenance sweep
CLAIM_RETENTION_DAYS = int(os.getenv('CLAIM_RETENTION_DAYS', '7'))

# ── Warmup ────────────────────────────────────────────────────────────────────
WARMUP_TOTAL_DAYS = 14

# (last day of band, max runs/day, max invites/day), lower bound inclusive
WARMUP_SCHEDULE = [
    (2, 1, 3),
    (4, 1, 5),
    (7, 2, 10),
    (10, 3, 15),
    (14, 4, 20),
]

WARMUP_ACTIONS = ['run', 'invite']

# ── Run status values ─────────────────────────────────────────────────────────
RUN_STATUSES = [
    'queued',
    'running',
    'completed',
    'failed',
]

# Runs still queued after this many minutes are re-dispatched by the sweep
STALE_QUEUED_MINUTES = int(os.getenv('STALE_QUEUED_MINUTES', '30'))
