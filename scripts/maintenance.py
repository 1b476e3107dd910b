#!/usr/bin/env python3
"""
Consistency sweep for the admission store.

  1. Recompute runs_used for each organization's current period from committed runs
  2. Purge job claims that expired more than CLAIM_RETENTION_DAYS ago
  3. Re-enqueue outreach for runs stuck in 'queued'

Usage:
    python scripts/maintenance.py                 # full sweep
    python scripts/maintenance.py --usage --org org_123
    python scripts/maintenance.py --claims --dry-run

Requires: DATABASE_URL set (or defaults to sqlite:///local.db); Redis for re-dispatch.
"""
import sys
import os
import argparse
import logging
from datetime import timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recruitops.config import CLAIM_RETENTION_DAYS
from recruitops.database import get_session, utcnow
from recruitops.logging_config import configure_logging
from recruitops.services.consistency import (
    reconcile_usage, purge_stale_claims, find_stale_runs, redispatch_stale_runs, run_sweep,
)

logger = logging.getLogger('scripts.maintenance')


def main(argv=None):
    parser = argparse.ArgumentParser(description='Admission store consistency sweep')
    parser.add_argument('--usage', action='store_true', help='Reconcile usage counters only')
    parser.add_argument('--claims', action='store_true', help='Purge stale claims only')
    parser.add_argument('--runs', action='store_true', help='Re-dispatch stale queued runs only')
    parser.add_argument('--org', help='Limit usage reconciliation to one organization')
    parser.add_argument('--dry-run', action='store_true', help='Report stale runs and claim cutoff without changing anything')
    parser.add_argument('--log-level', default=None)
    args = parser.parse_args(argv)

    configure_logging(level_name=args.log_level)

    session = get_session()
    try:
        if args.dry_run:
            stale = find_stale_runs(session)
            cutoff = utcnow() - timedelta(days=CLAIM_RETENTION_DAYS)
            print(f"{len(stale)} stale queued runs; claims expired before {cutoff.isoformat()} would be purged")
            return 0

        if not (args.usage or args.claims or args.runs):
            summary = run_sweep(session)
            print(summary)
            return 0

        if args.usage:
            changed = reconcile_usage(session, org_id=args.org)
            for org_id, (old, new) in changed.items():
                print(f"{org_id}: runs_used {old} → {new}")
        if args.claims:
            print(f"Purged {purge_stale_claims(session)} claims")
        if args.runs:
            print(f"Re-dispatched {redispatch_stale_runs(session)} runs")
        return 0
    finally:
        session.close()


if __name__ == '__main__':
    sys.exit(main())
