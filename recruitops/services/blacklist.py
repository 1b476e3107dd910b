"""
Blacklist filter — organization-maintained company/domain denylist.

Matching is deliberately fuzzy: company names match when either contains the
other (case-insensitive); domain entries match as substrings of the job URL.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, delete

from recruitops.models.blacklist import BlacklistEntry

logger = logging.getLogger('services.blacklist')


@dataclass
class BlacklistMatch:
    matched: bool
    entry: Optional[BlacklistEntry] = None


def normalize_domain(domain):
    """'https://www.Acme.com/' → 'acme.com'."""
    value = (domain or '').strip().lower()
    for prefix in ('https://', 'http://'):
        if value.startswith(prefix):
            value = value[len(prefix):]
    if value.startswith('www.'):
        value = value[4:]
    return value.rstrip('/')


def find_match(entries, company, job_url):
    """
    First entry that rejects this (company, job_url), or None.

    An entry with a company name is judged on the company alone whenever the
    submission names a company; otherwise its domain (if any) is checked
    against the job URL.
    """
    company_l = (company or '').strip().lower()
    url_l = (job_url or '').strip().lower()

    for entry in entries:
        entry_company = (entry.company or '').strip().lower()
        if company_l and entry_company:
            if company_l in entry_company or entry_company in company_l:
                return entry
            continue
        domain = normalize_domain(entry.domain)
        if domain and domain in url_l:
            return entry
    return None


def list_entries(session, org_id):
    return session.execute(
        select(BlacklistEntry)
        .where(BlacklistEntry.organization_id == org_id)
        .order_by(BlacklistEntry.created_at.desc(), BlacklistEntry.id.desc())
    ).scalars().all()


def is_blacklisted(session, org_id, company, job_url):
    entry = find_match(list_entries(session, org_id), company, job_url)
    return BlacklistMatch(matched=entry is not None, entry=entry)


def _clean(value):
    value = (value or '').strip()
    return value or None


def add_entry(session, org_id, company=None, domain=None, reason=None, added_by=None):
    company, domain = _clean(company), _clean(domain)
    if not company and not domain:
        raise ValueError('Must provide company name or domain')

    entry = BlacklistEntry(
        organization_id=org_id,
        company=company,
        domain=normalize_domain(domain) if domain else None,
        reason=_clean(reason),
        added_by=added_by,
    )
    session.add(entry)
    session.commit()
    logger.info("Blacklisted %s for org %s", company or domain, org_id)
    return entry


def bulk_add(session, org_id, entries, added_by=None):
    """Insert many entries in one commit; non-object rows and rows with neither company nor domain are skipped."""
    count = 0
    for item in entries:
        if not isinstance(item, dict):
            continue
        company, domain = _clean(item.get('company')), _clean(item.get('domain'))
        if not company and not domain:
            continue
        session.add(BlacklistEntry(
            organization_id=org_id,
            company=company,
            domain=normalize_domain(domain) if domain else None,
            reason=_clean(item.get('reason')),
            added_by=added_by,
        ))
        count += 1
    session.commit()
    logger.info("Bulk blacklisted %d entries for org %s", count, org_id)
    return count


def remove_entry(session, org_id, entry_id):
    result = session.execute(
        delete(BlacklistEntry)
        .where(BlacklistEntry.id == entry_id, BlacklistEntry.organization_id == org_id)
        .execution_options(synchronize_session=False)
    )
    session.commit()
    return result.rowcount > 0
