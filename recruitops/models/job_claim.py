"""
JobClaim model — advisory, time-boxed exclusivity on a job URL.

At most one row per (organization, job_url); expired rows are ignored at read
time and overwritten by the next claimant.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint

from recruitops.database import Base, as_utc


class JobClaim(Base):
    __tablename__ = 'job_claims'

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Text, ForeignKey('organizations.id'), nullable=False)
    job_url = Column(Text, nullable=False)
    job_title = Column(Text, nullable=True)
    company = Column(Text, nullable=True)
    holder_id = Column(Text, nullable=False)
    holder_name = Column(Text, default='')
    claimed_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint('organization_id', 'job_url', name='uq_claim_org_job_url'),
    )

    def is_active(self, now):
        return as_utc(self.expires_at) > now

    def to_dict(self):
        return {
            'id': self.id,
            'jobUrl': self.job_url,
            'jobTitle': self.job_title,
            'company': self.company,
            'userId': self.holder_id,
            'userName': self.holder_name,
            'claimedAt': as_utc(self.claimed_at).isoformat() if self.claimed_at else None,
            'expiresAt': as_utc(self.expires_at).isoformat() if self.expires_at else None,
        }
