"""
Run model — one admitted unit of outreach automation for a job posting.

Rows are only ever inserted by the admission pipeline's commit phase.
(organization_id, job_url) is unique: it backs duplicate detection.
"""
import uuid

from sqlalchemy import Column, Text, DateTime, ForeignKey, UniqueConstraint

from recruitops.database import Base, as_utc


# Forward-only lifecycle; 'failed' is reachable from any non-terminal state
RUN_TRANSITIONS = {
    'queued': {'running', 'completed', 'failed'},
    'running': {'completed', 'failed'},
    'completed': set(),
    'failed': set(),
}


class Run(Base):
    __tablename__ = 'runs'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(Text, ForeignKey('organizations.id'), nullable=False, index=True)
    created_by = Column(Text, nullable=False)
    job_url = Column(Text, nullable=False)
    title = Column(Text, default='Untitled Position')
    company = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default='queued')
    campaign_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('organization_id', 'job_url', name='uq_run_org_job_url'),
    )

    def can_transition(self, new_status):
        return new_status in RUN_TRANSITIONS.get(self.status, set())

    def to_dict(self):
        return {
            'id': self.id,
            'orgId': self.organization_id,
            'userId': self.created_by,
            'jobUrl': self.job_url,
            'jobTitle': self.title,
            'company': self.company,
            'status': self.status,
            'campaignId': self.campaign_id,
            'createdAt': as_utc(self.created_at).isoformat() if self.created_at else None,
        }
