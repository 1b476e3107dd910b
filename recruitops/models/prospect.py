"""
Prospect model — decision makers pushed back by the outreach collaborator.
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func

from recruitops.database import Base


class Prospect(Base):
    __tablename__ = 'prospects'

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(Text, ForeignKey('runs.id'), nullable=False, index=True)
    organization_id = Column(Text, ForeignKey('organizations.id'), nullable=False)
    name = Column(Text, default='')
    title = Column(Text, default='')
    company = Column(Text, default='')
    linkedin_url = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    rank = Column(Integer, nullable=True)
    stage = Column(Text, default='not_started')  # not_started / invite_sent
    extra_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'runId': self.run_id,
            'name': self.name,
            'title': self.title,
            'company': self.company,
            'linkedinUrl': self.linkedin_url,
            'email': self.email,
            'rank': self.rank,
            'pipelineStage': self.stage or 'not_started',
        }
