"""
BlacklistEntry model — organization-maintained company/domain denylist.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from recruitops.database import Base, as_utc


class BlacklistEntry(Base):
    __tablename__ = 'blacklist'

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Text, ForeignKey('organizations.id'), nullable=False, index=True)
    company = Column(Text, nullable=True)
    domain = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    added_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'company': self.company,
            'domain': self.domain,
            'reason': self.reason,
            'addedBy': self.added_by,
            'createdAt': as_utc(self.created_at).isoformat() if self.created_at else None,
        }
